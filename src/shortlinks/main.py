from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.shortlinks.api.endpoints import links, public
from src.shortlinks.core.config import Settings, configure_logging, get_settings, logger
from src.shortlinks.core.errors import install_error_handlers
from src.shortlinks.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from src.shortlinks.db.session import create_engine, create_session_factory, init_db
from src.shortlinks.services.auth_service import TokenVerifier


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db(app.state.engine)
    logger.info("Database schema ready")
    yield
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with its own engine, session factory and token verifier.

    Args:
        settings: Configuration to use, defaults to the environment

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="shortlinks",
        description="""
        Authenticated URL shortener.

        ## Features
        * Shorten http(s) URLs into 6-8 character codes
        * List and delete your own links
        * Public redirects with click counting
        """,
        version="1.0.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    engine = create_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_verifier = TokenVerifier.from_settings(settings)

    allowed_origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allowed_origins != ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)

    install_error_handlers(app, settings)

    app.include_router(links.router, prefix="/api", tags=["links"])
    # Catch-all /{short_code} goes last
    app.include_router(public.router, tags=["public"])

    return app


app = create_app()


def serve() -> None:
    settings = get_settings()
    logger.info(f"Backend listening on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        "src.shortlinks.main:app",
        host=settings.HOST,
        port=settings.PORT,
        server_header=False,
    )


if __name__ == "__main__":
    serve()
