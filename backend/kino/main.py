import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from slowapi.errors import RateLimitExceeded

from kino.core.config import settings, require_jwt_secret
from kino.core.rate_limit import limiter
from kino.routes.auth import router as auth_router
from kino.routes.movies import router as movies_router
from kino.routes.reviews import router as reviews_router
from kino.routes.tmdb import router as tmdb_router
from kino.routes.users import router as users_router
from kino.services.avatars import AVATAR_URL_PREFIX

logger = logging.getLogger(__name__)

require_jwt_secret()

app = FastAPI(title="Kino Movie Diary")
logger.info(
    "Startup config: ENV=%s EMAIL_ENABLED=%s provider=%s RATE_LIMITING=%s TMDB=%s",
    settings.ENV,
    settings.EMAIL_ENABLED,
    (settings.EMAIL_PROVIDER or "smtp"),
    settings.ENABLE_RATE_LIMITING,
    "configured" if settings.TMDB_API_KEY else "missing",
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
    502: "UPSTREAM_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    code = _error_code(exc.status_code)
    message: str
    details: dict | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        # Routes may raise HTTPException(detail={"error": "...", "message": "...", "details": {...}}).
        err = detail.get("error")
        if isinstance(err, str) and err:
            code = err
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        det = detail.get("details")
        details = det if isinstance(det, dict) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    payload: dict = {"error": code, "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
        headers=getattr(exc, "headers", None),
    )


# Auth endpoints report malformed input as a plain 400, like their other rejections.
AUTH_VALIDATION_PATHS = frozenset(
    {
        "/api/auth/register",
        "/api/auth/verify-email",
        "/api/auth/resend-verification",
        "/api/auth/login",
    }
)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):
    status_code = 400 if request.url.path.rstrip("/") in AUTH_VALIDATION_PATHS else 422
    return JSONResponse(
        status_code=status_code,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


if settings.ENABLE_RATE_LIMITING:
    app.state.limiter = limiter
    # Standard error shape for rate limits, instead of slowapi's default.
    app.add_exception_handler(
        RateLimitExceeded,
        lambda request, exc: JSONResponse(  # noqa: ARG005
            status_code=429,
            content={"error": "RATE_LIMITED", "message": "Too many requests"},
        ),
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(reviews_router)
app.include_router(users_router)
app.include_router(movies_router)
app.include_router(tmdb_router)

avatar_root = Path(settings.AVATAR_UPLOAD_DIR)
avatar_root.mkdir(parents=True, exist_ok=True)
app.mount(AVATAR_URL_PREFIX, StaticFiles(directory=str(avatar_root)), name="avatars")


@app.get("/health")
def health_check():
    return {"status": "ok"}
