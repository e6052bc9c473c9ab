"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse

from vault import __version__
from vault.config import Settings, settings as default_settings
from vault.errors import VaultError
from vault.routes.files import router as files_router
from vault.routes.health import router as health_router
from vault.services.file_storage import FileStorageService
from vault.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

DASHBOARD_PAGE = Path(__file__).parent / "static" / "index.html"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the metadata store and storage directory; dispose of the engine on shutdown."""
    cfg: Settings = app.state.settings

    app.state.file_storage = FileStorageService(cfg.UPLOAD_PATH, chunk_size=cfg.UPLOAD_CHUNK_SIZE)
    store = MetadataStore(cfg.DB_URI)
    await store.open(fail_fast=cfg.DB_FAIL_FAST)
    app.state.store = store

    yield

    await store.close()


async def vault_error_handler(request: Request, exc: VaultError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return PlainTextResponse(VaultError.default_message, status_code=500)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title="Vault",
        version=__version__,
        description="Single-file upload vault with download/delete of the latest upload.",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(VaultError, vault_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/", include_in_schema=False)
    async def dashboard():
        """Serve the HTML dashboard."""
        return FileResponse(DASHBOARD_PAGE, media_type="text/html")

    app.include_router(files_router)
    app.include_router(health_router)

    return app


app = create_app()
