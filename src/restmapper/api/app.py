"""FastAPI front controller.

Maps each HTTP method to a model verb:

    GET    /api/{entity}        -> get
    GET    /api/{entity}/count  -> count
    POST   /api/{entity}        -> post (update)
    PUT    /api/{entity}        -> put (insert)
    DELETE /api/{entity}        -> delete

Query-string parameters (repeated keys become lists) are merged with the
optional JSON body ``{"data": {...}}``; body values win.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from restmapper.core.config import configure_logging, resolve_base_path, resolve_metadata_path
from restmapper.core.errors import RestError
from restmapper.crud.model import Model
from restmapper.crud.registry import ModelRegistry
from restmapper.metadata.loader import MetadataLoader
from restmapper.metadata.validator import validate_metadata_dir
from restmapper.persistence.config import DatabaseConfig, create_driver

logger = logging.getLogger(__name__)


class WriteRequest(BaseModel):
    """Request body carrying field values."""
    data: dict[str, Any] = {}


def request_params(request: Request, body: WriteRequest | None = None) -> dict[str, Any]:
    """Flatten query-string and body values into one parameter set."""
    params: dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values[0] if len(values) == 1 else values
    if body is not None:
        params.update(body.data)
    return params


def _load(request: Request, entity: str, params: dict[str, Any]) -> Model:
    registry: ModelRegistry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RestError("Model registry not initialized", status_code=500)
    return registry.load(entity, params)


router = APIRouter(prefix="/api")


@router.get("/{entity}/count")
def count_records(entity: str, request: Request) -> dict[str, Any]:
    """Count records matching the query-string filters."""
    model = _load(request, entity, request_params(request))
    return {"data": model.count()}


@router.get("/{entity}")
def get_records(entity: str, request: Request) -> dict[str, Any]:
    """List records matching the query-string filters."""
    model = _load(request, entity, request_params(request))
    rows = model.get()
    return {"data": rows, "count": len(rows)}


@router.post("/{entity}")
def update_record(entity: str, request: Request, body: WriteRequest | None = None) -> dict[str, Any]:
    """Update the record identified by its primary fields."""
    model = _load(request, entity, request_params(request, body))
    return {"data": model.post().to_dict()}


@router.put("/{entity}", status_code=201)
def insert_record(entity: str, request: Request, body: WriteRequest | None = None) -> dict[str, Any]:
    """Insert a record."""
    model = _load(request, entity, request_params(request, body))
    return {"data": model.put().to_dict()}


@router.delete("/{entity}")
def delete_record(entity: str, request: Request, body: WriteRequest | None = None) -> dict[str, Any]:
    """Delete the record identified by its primary fields."""
    model = _load(request, entity, request_params(request, body))
    return {"data": {"affectedRows": model.delete()}}


async def handle_rest_error(request: Request, exc: RestError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load metadata and connect the database on startup, disconnect on shutdown."""
    configure_logging()

    base_path = resolve_base_path()
    metadata_path = resolve_metadata_path(base_path)

    # Schema problems are reported but do not block startup
    for issue in validate_metadata_dir(metadata_path):
        if issue.severity == "error":
            logger.error("Metadata schema error: %s", issue)
        else:
            logger.warning("Metadata schema warning: %s", issue)

    loader = MetadataLoader(metadata_path)
    loader.load_all()

    db_config = DatabaseConfig.from_env(base_path)
    if db_config.is_sqlite and db_config.sqlite_path != ":memory:":
        Path(db_config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    driver = create_driver(db_config)
    driver.connect()
    app.state.registry = ModelRegistry(loader, driver)

    yield

    driver.close()


def create_app(registry: ModelRegistry | None = None) -> FastAPI:
    """Create the API application.

    With a registry, the app serves it as-is (no startup work); without
    one, metadata and the database are configured from the environment.
    """
    if registry is None:
        application = FastAPI(title="restmapper API", lifespan=lifespan)
    else:
        application = FastAPI(title="restmapper API")
        application.state.registry = registry
    application.include_router(router)
    application.add_exception_handler(RestError, handle_rest_error)
    return application


app = create_app()
