import pytest

from thyme_api.core import config


def test_validate_runtime_config_accepts_defaults() -> None:
    config.validate_runtime_config()


@pytest.mark.parametrize(
    ('setting', 'value', 'message'),
    [
        ('RECORD_STORE', 'sqlite', 'RECORD_STORE'),
        ('HOME_TIMEZONE', 'Mountain/Nowhere', 'HOME_TIMEZONE'),
        ('BUSINESS_START_HOUR', 18, 'BUSINESS_START_HOUR'),
        ('SLOT_DURATION_MINUTES', 0, 'SLOT_DURATION_MINUTES'),
        ('ADVISORS', [], 'ADVISORS'),
    ],
)
def test_validate_runtime_config_rejects_bad_settings(
    monkeypatch: pytest.MonkeyPatch,
    setting: str,
    value,
    message: str,
) -> None:
    monkeypatch.setattr(config, setting, value)

    with pytest.raises(RuntimeError, match=message):
        config.validate_runtime_config()


def test_memory_store_is_rejected_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'RECORD_STORE', 'memory')

    with pytest.raises(RuntimeError, match='not allowed in production'):
        config.validate_runtime_config()


@pytest.mark.parametrize(
    ('value', 'expected'),
    [(None, ['fallback']), ('', []), ('Heidi Lynn, Illiana ,', ['Heidi Lynn', 'Illiana'])],
)
def test_get_list_splits_comma_separated_values(value, expected: list[str]) -> None:
    assert config._get_list(value, ['fallback']) == expected
