"""Resumable booking wizard state, one JSON checkpoint per service type."""

import json
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

PROGRESS_VERSION = 1
BOOKING_STEPS = ('calendar', 'time_slots', 'contact_info')

_UNSAFE_KEY_CHARACTERS = re.compile(r'[^A-Za-z0-9_-]+')


class BookingProgressStore:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, service_type: str) -> Path:
        key = _UNSAFE_KEY_CHARACTERS.sub('-', service_type.strip().lower()).strip('-') or 'default'
        return self.directory / f'booking-progress-{key}.json'

    def save(self, service_type: str, step: str, data: dict) -> None:
        if step not in BOOKING_STEPS:
            raise ValueError(f'Unknown booking step: {step}')

        self.directory.mkdir(parents=True, exist_ok=True)
        checkpoint = {'version': PROGRESS_VERSION, 'step': step, 'data': data}
        self._path(service_type).write_text(json.dumps(checkpoint), encoding='utf-8')

    def load(self, service_type: str) -> dict | None:
        """Return the saved checkpoint, or ``None`` when there is nothing usable to resume."""
        path = self._path(service_type)
        if not path.exists():
            return None

        try:
            checkpoint = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError):
            logger.warning('Discarding unreadable booking progress at %s', path)
            path.unlink(missing_ok=True)
            return None

        if (
            not isinstance(checkpoint, dict)
            or checkpoint.get('version') != PROGRESS_VERSION
            or checkpoint.get('step') not in BOOKING_STEPS
        ):
            logger.info('Discarding stale booking progress for %s', service_type)
            path.unlink(missing_ok=True)
            return None

        return checkpoint

    def clear(self, service_type: str) -> None:
        self._path(service_type).unlink(missing_ok=True)
