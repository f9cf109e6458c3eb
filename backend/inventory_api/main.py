import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_api.config import DB_PATH, ON_CORRUPT, PUBLIC_DIR, REFRESH_ON_READ
from inventory_api.errors import StoreError
from inventory_api.routes.items import router as items_router
from inventory_api.schemas import describe_validation_errors, failure
from inventory_api.storage import DocumentStore

APP_VERSION = "0.2.0"

logger = logging.getLogger(__name__)


class SPAStaticFiles(StaticFiles):
    """Static files that answer unknown non-API paths with index.html."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404 or path == "api" or path.startswith("api/"):
                raise
            return await super().get_response("index.html", scope)


async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content=failure(exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=failure(describe_validation_errors(exc.errors())))


def create_app(
    store: Optional[DocumentStore] = None,
    db_path: Optional[Path] = None,
    public_dir: Optional[Path] = None,
    on_corrupt: Optional[str] = None,
    refresh_on_read: Optional[bool] = None,
) -> FastAPI:
    """
    Build the API around one DocumentStore.

    The store is loaded here, so a corrupt db file with the "fail" policy
    raises CorruptStoreError and the server never starts.
    """

    if store is None:
        store = DocumentStore(db_path or DB_PATH, on_corrupt=on_corrupt or ON_CORRUPT)
    store.load()
    logger.info("Store %s ready with %d items", store.path, len(store))

    app = FastAPI(title="Inventory API", version=APP_VERSION)
    app.state.store = store
    app.state.refresh_on_read = REFRESH_ON_READ if refresh_on_read is None else refresh_on_read

    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(items_router)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "version": APP_VERSION, "items": len(app.state.store)}

    public_dir = Path(public_dir or PUBLIC_DIR)
    if public_dir.is_dir():
        app.mount("/", SPAStaticFiles(directory=public_dir, html=True), name="public")
        logger.info("Serving static files from %s", public_dir)
    else:
        logger.warning("Public dir %s not found, static files won't be served", public_dir)

    return app
