"""
Code Explainer API — application entry point.
"""

from __future__ import annotations

import logging
import sys

import pathlib

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.middleware import register_exception_handlers, register_middleware
from api.proxy import router as proxy_router
from api.rate_limit import RateLimiter
from api.routes import router as api_router
from auth.routes import router as auth_router
from auth.service import AuthService
from config.settings import Settings, config
from core.ocr import OCRExtractor
from database.history import HistoryStore
from database.users import CredentialStore
from utils.llm_providers import get_llm_provider

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "openai", "urllib3", "PIL"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


class SPAStaticFiles(StaticFiles):
    """Static frontend whose unknown GET paths fall back to ``index.html``."""

    async def get_response(self, path: str, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)
        if response.status_code == 404:
            return await super().get_response("index.html", scope)
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or config

    app = FastAPI(
        title=settings.app_title,
        version="1.0.0",
        description="Explain, convert, optimize and complete code with an LLM.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Collaborators
    users = CredentialStore(settings.users_path)
    history = HistoryStore(settings.history_path, scope=settings.resolved_history_scope)

    app.state.settings = settings
    app.state.auth_service = AuthService(
        users,
        secret=settings.jwt_secret,
        expiry_seconds=settings.jwt_expiry_seconds,
        bcrypt_rounds=settings.bcrypt_rounds,
        mode=settings.auth_mode,
    )
    app.state.history_store = history
    app.state.llm = get_llm_provider(settings)
    app.state.ocr = OCRExtractor(settings.ocr_language, settings.tesseract_cmd or None)
    app.state.proxy_transport = None
    app.state.rate_limiter = RateLimiter(
        settings.rate_limit_max_requests, settings.rate_limit_window_seconds
    )

    # Routes
    app.include_router(auth_router)
    app.include_router(api_router)
    app.include_router(proxy_router)

    frontend_dir = pathlib.Path(settings.frontend_dir)
    if not frontend_dir.is_absolute():
        frontend_dir = pathlib.Path(__file__).resolve().parent / frontend_dir
    if frontend_dir.is_dir():
        logger.info("Serving frontend from %s", frontend_dir)
        app.mount("/", SPAStaticFiles(directory=str(frontend_dir), html=True), name="frontend")
    else:
        @app.get("/")
        async def root():
            return {"message": f"{settings.app_title} API is running (No Frontend)"}

    @app.on_event("startup")
    async def on_startup():
        users.ensure_exists()
        history.ensure_exists()

        for name in settings.insecure_defaults():
            logger.warning("%s is unset or on its insecure default; fix this before deploying", name)
        logger.info(
            "Auth mode: %s, history scope: %s",
            app.state.auth_service.mode.value,
            history.scope.value,
        )
        limiter = app.state.rate_limiter
        if limiter.enabled:
            logger.info(
                "Rate limit: %d generation requests per %.0fs per client",
                limiter.max_requests,
                limiter.window_seconds,
            )
        else:
            logger.warning("Rate limiting is disabled")
        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
