import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from thyme_api.core import config
from thyme_api.core.validation import describe_validation_errors
from thyme_api.routes import booking_routes, content_routes

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

app = FastAPI(title='A Thyme to Heal API', debug=config.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.middleware('http')
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        '%s %s -> %s (%.1f ms)',
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


@app.on_event('startup')
def check_configuration() -> None:
    config.validate_runtime_config()
    logger.info(
        'Starting in %s mode with %s record store, home timezone %s',
        config.APP_ENV,
        config.RECORD_STORE,
        config.HOME_TIMEZONE,
    )


def allowed_methods(request: Request) -> list[str]:
    """Collect the methods of every route registered for the request path."""
    methods = set()
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(getattr(route, 'methods', None) or ())
    methods.discard('HEAD')
    return sorted(methods)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = getattr(exc, 'headers', None)
    message = exc.detail
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        allowed = allowed_methods(request) or ['GET']
        headers = {**(headers or {}), 'Allow': ', '.join(allowed)}
        message = f'Method not allowed. Use {" or ".join(allowed)} for this endpoint.'
    return JSONResponse(status_code=exc.status_code, content={'error': message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_errors(exc.errors())
    logger.warning('Rejected %s %s: %s', request.method, request.url.path, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'error': message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={'error': 'Internal server error'})


@app.get('/')
def root():
    return {'status': 'A Thyme to Heal API Running'}


app.include_router(booking_routes.router, prefix=config.API_PREFIX)
app.include_router(content_routes.router, prefix=config.API_PREFIX)
