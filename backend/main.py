import logging
import sys
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from app.api.routes import router
from app.api.metrics import router as metrics_router
from app.core.config import get_settings
from app.core.errors import ErrorCodes, get_error_response
from app.core.logging import configure_logging
from app.core.middleware import CORRELATION_HEADER, CorrelationIDMiddleware, TimeoutMiddleware

load_dotenv()

try:
    settings = get_settings()
except Exception as e:
    logging.basicConfig(level=logging.ERROR)
    logging.getLogger(__name__).error(f"Failed to load configuration: {e}")
    sys.exit(1)

configure_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Adaptive Charts API",
    description="Validates proposed chart specs against real data and prepares chart-ready rows",
    version="1.0.0"
)

# Routes read both from app.state so tests can swap them
app.state.limiter = Limiter(key_func=get_remote_address)
app.state.settings = settings


def _error_body(request: Request, code: str, detail: str = None) -> dict:
    error_info = get_error_response(code, detail)
    error_info['correlation_id'] = getattr(request.state, 'correlation_id', 'unknown')
    return error_info


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    body = _error_body(request, ErrorCodes.RATE_LIMIT_EXCEEDED)
    logger.warning(f"Rate limit hit on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content=body,
        headers={
            "Retry-After": str(getattr(exc, 'retry_after', 60)),
            CORRELATION_HEADER: body['correlation_id'],
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()[:5]
    )
    body = _error_body(request, ErrorCodes.INVALID_REQUEST, problems)
    # pydantic error contexts can hold exception instances
    body['errors'] = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    return JSONResponse(status_code=422, content=body)


# Last added runs first: correlation ids wrap the timeout
app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", CORRELATION_HEADER],
    expose_headers=[CORRELATION_HEADER]
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(CorrelationIDMiddleware)

app.include_router(router, prefix="/api")
app.include_router(metrics_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Adaptive Charts API is running"}


logger.info(
    f"Adaptive Charts API ready (origins={settings.allowed_origins_list}, "
    f"rate_limit={settings.rate_limit_per_minute}/minute, max_rows={settings.max_dataset_rows})"
)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
