import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import PasswordHasher, TokenService
from .config import Settings, get_settings
from .database import build_engine, build_session_factory, check_connection, get_db, init_db
from .errors import ApiError, InternalError, NotFoundOrForbidden, ValidationError
from .logging_config import setup_logging
from .routers import books, users

logger = logging.getLogger(__name__)

# Message returned when a required body field is missing or empty.
REQUIRED_FIELDS_MESSAGES = {
    "/register": "All fields are required.",
    "/login": "Email and password are required.",
    "/books": "Title and Author are required.",
}
REQUIRED_FIELDS = {"body", "username", "email", "password", "title", "author"}


def _is_missing(error: dict) -> bool:
    if error.get("type") == "missing":
        return True
    return error.get("input") is None or error.get("input") == ""


def _validation_error(request: Request, exc: RequestValidationError) -> ApiError:
    path = request.url.path
    route_key = "/books" if path.startswith("/books") else path
    errors = exc.errors()

    required_message = REQUIRED_FIELDS_MESSAGES.get(route_key)
    if required_message:
        for error in errors:
            loc = error.get("loc", ())
            if loc and loc[-1] in REQUIRED_FIELDS and _is_missing(error):
                return ValidationError(required_message)

    # A book id that is not an integer cannot match any row.
    if path.startswith("/books/") and any(error.get("loc", ())[:1] == ("path",) for error in errors):
        return NotFoundOrForbidden(books.NOT_FOUND_MESSAGES.get(request.method))

    for error in errors:
        loc = [part for part in error.get("loc", ()) if isinstance(part, str)]
        if len(loc) > 1:
            return ValidationError(f"Invalid value for '{loc[-1]}'.")
    return ValidationError("Invalid request body.")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return await http_exception_handler(request, _validation_error(request, exc))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": InternalError.default_message},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    # Refuse to start without a signing secret.
    secret = settings.require_secret()

    setup_logging(settings.LOG_LEVEL)

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up booktracker...")
        try:
            check_connection(engine)
        except Exception:
            logger.exception("Error connecting to the database")
            raise
        logger.info("Successfully connected to the database!")
        init_db(engine)
        yield
        logger.info("Shutting down booktracker...")
        engine.dispose()

    app = FastAPI(
        title="Booktracker API",
        description="Personal book lists with per-user ownership",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.token_service = TokenService(
        secret,
        algorithm=settings.ALGORITHM,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    request_logger = logging.getLogger("booktracker.requests")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        request_logger.info(
            "%s %s -> %s (%.2f ms) ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.client.host if request.client else "unknown",
        )
        return response

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/health", tags=["System"])
    def health_check(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Service unhealthy",
            )
        return {"status": "healthy", "service": "booktracker", "database": "connected"}

    app.include_router(users.router)
    app.include_router(books.router)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.API_HOST, port=settings.API_PORT)
