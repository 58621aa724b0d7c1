"""
HTTP API over registered collections.

Collections are registered at startup with ``register_model(name, model)``; every
route goes through the same Model methods as library callers, so documents are
reconciled on read and guarded on update.
"""

from fastapi import APIRouter, Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from typing import Any, Dict, List

from .schemas import (
    ChangeRecordResponse,
    CollectionInfo,
    CollectionListResponse,
    DocumentListResponse,
    DocumentPatchRequest,
    DocumentResponse,
    DocumentUpdateResponse,
    ErrorResponse,
    HealthResponse,
)
from ..core.config import API_ENABLED, VERSION, debug_enabled, validate_config
from ..core.diff import diff
from ..core.model import ImmutabilityViolationError, Model, NotFoundError, SchemaMismatchError
from ..core.schema import schema_to_dict
from ..util.logging import logger

# Initialize the FastAPI application
app = FastAPI(
    title="Document Store API",
    version=VERSION,
    description="Schema-governed JSON document collections",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

router = APIRouter(prefix="/collections")

_models: Dict[str, Model] = {}


def register_model(name: str, model: Model) -> None:
    """Expose a collection under /collections/{name}."""
    _models[name] = model
    logger.info(f"Registered collection {name} ({model.count()} documents)")


def unregister_model(name: str) -> None:
    _models.pop(name, None)


def get_registered_models() -> Dict[str, Model]:
    return dict(_models)


def _get_model(name: str) -> Model:
    model = _models.get(name)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {name}")
    return model


def _error(status_code: int, error_type: str, message: str, details: Dict[str, Any] = None) -> JSONResponse:
    body = ErrorResponse(error_type=error_type, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, "NOT_FOUND", str(exc))


@app.exception_handler(SchemaMismatchError)
async def schema_mismatch_handler(request: Request, exc: SchemaMismatchError):
    return _error(422, "SCHEMA_MISMATCH", str(exc), {"expected": exc.expected})


@app.exception_handler(ImmutabilityViolationError)
async def immutability_violation_handler(request: Request, exc: ImmutabilityViolationError):
    return _error(409, "IMMUTABILITY_VIOLATION", str(exc), {"paths": exc.paths})


@app.exception_handler(ValueError)
async def invalid_request_handler(request: Request, exc: ValueError):
    return _error(400, "INVALID_REQUEST", str(exc))


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    issues = validate_config()
    return HealthResponse(
        status="healthy" if not issues else "degraded",
        version=VERSION,
        collections=len(_models),
        config_issues=issues
    )


@router.get("", response_model=CollectionListResponse)
def list_collections_endpoint():
    """List registered collections with their schemas."""
    return CollectionListResponse(
        collections=[
            CollectionInfo(
                name=name,
                count=model.count(),
                strict=model.strict,
                schema_definition=schema_to_dict(model.schema)
            )
            for name, model in _models.items()
        ]
    )


@router.get("/{name}/documents", response_model=DocumentListResponse)
def list_documents_endpoint(name: str):
    model = _get_model(name)
    documents = model.find()
    return DocumentListResponse(collection=name, count=len(documents), documents=documents)


@router.get("/{name}/documents/{doc_id}", response_model=DocumentResponse)
def get_document_endpoint(name: str, doc_id: str):
    model = _get_model(name)
    return DocumentResponse(collection=name, document=model.get(doc_id))


@router.post("/{name}/documents", response_model=DocumentResponse, status_code=201)
def create_document_endpoint(name: str, document: Dict[str, Any] = Body(...)):
    model = _get_model(name)
    return DocumentResponse(collection=name, document=model.create(document))


@router.patch("/{name}/documents/{doc_id}", response_model=DocumentUpdateResponse)
def update_document_endpoint(name: str, doc_id: str, req: DocumentPatchRequest):
    """Overwrite top-level fields through the guarded update path."""
    model = _get_model(name)
    before = model.get(doc_id)

    def apply_fields(document):
        document.update(req.fields)

    after = model.update(before, apply_fields)
    changes: List[ChangeRecordResponse] = [
        ChangeRecordResponse(**record.to_dict()) for record in diff(before, after)
    ]
    return DocumentUpdateResponse(collection=name, document=after, changes=changes)


@router.delete("/{name}/documents/{doc_id}", status_code=204)
def delete_document_endpoint(name: str, doc_id: str):
    model = _get_model(name)
    model.delete(model.get(doc_id))


if API_ENABLED:
    app.include_router(router)
