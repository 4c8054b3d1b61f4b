import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookwyrm import models  # noqa: F401  (registers tables on Base.metadata)
from bookwyrm.config import Settings, settings
from bookwyrm.database import Base, build_engine, build_session_factory, get_db
from bookwyrm.errors import AccessDenied, BookWyrmError, Unexpected
from bookwyrm.forms import describe_validation_error
from bookwyrm.logging_config import setup_logging
from bookwyrm.rate_limiter import configure_limiter, limiter
from bookwyrm.routers import books, home, reviews, users
from bookwyrm.sessions import SessionReader, SessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up bookwyrm...")
    if app.state.settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=app.state.engine)
    yield
    logger.info("Shutting down bookwyrm...")
    app.state.engine.dispose()


async def handle_app_error(request: Request, exc: BookWyrmError):
    if isinstance(exc, AccessDenied):
        logger.info("%s %s denied: %s", request.method, request.url.path, exc.message)
        return RedirectResponse(url=exc.redirect_to, status_code=status.HTTP_303_SEE_OTHER)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": describe_validation_error(exc.errors())},
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return await handle_app_error(request, Unexpected())


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return await handle_app_error(request, Unexpected())


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings

    app = FastAPI(
        title="BookWyrm",
        description="Book reviews with an admin panel for books, reviews and users",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Data access and sessions are built here and handed to handlers via app.state
    app.state.settings = app_settings
    app.state.engine = build_engine(app_settings.DATABASE_URL)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.session_store = SessionStore(
        secret_key=app_settings.SECRET_KEY,
        algorithm=app_settings.ALGORITHM,
        max_age_seconds=app_settings.SESSION_MAX_AGE_SECONDS,
        cookie_name=app_settings.SESSION_COOKIE_NAME,
        secure=app_settings.SESSION_COOKIE_SECURE,
    )
    app.state.session_reader = SessionReader(app.state.session_store)

    configure_limiter(app_settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(BookWyrmError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        logger.info(
            "%s %s -> %s (%.2f ms) ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.client.host if request.client else "unknown",
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["System"])
    def health_check(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
            return {"status": "healthy", "service": "bookwyrm", "database": "connected"}
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Service unhealthy",
            )

    app.include_router(home.router)
    app.include_router(users.router)
    app.include_router(books.router)
    app.include_router(reviews.router)
    return app


setup_logging()
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
