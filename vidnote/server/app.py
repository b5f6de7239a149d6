"""
Reference implementation of the remote annotation service.

Routes (mounted under ``prefix``, ``/api`` by default):

- ``GET /annotations`` and ``GET /annotations/{video_id}``
- ``POST /annotations`` and ``POST /annotations/bulk``
- ``PUT /annotations/{annotation_id}``
- ``DELETE /annotations/{annotation_id}`` and ``DELETE /annotations``
- ``GET /health``

Every response, errors included, is an :class:`Envelope`.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from ..utils.misc import utc_now_iso
from .repository import AnnotationRepository
from .schemas import BulkSaveRequest, Envelope

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("tool", "start", "end")


def _is_missing(value: Any) -> bool:
    # 0 is a valid start/end
    return value is None or value is False or value == ""


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Envelope(success=False, error=error).model_dump(exclude_none=True),
    )


def create_router(repository: AnnotationRepository) -> APIRouter:
    router = APIRouter(tags=["annotations"])

    @router.get("/annotations", response_model=Envelope, response_model_exclude_none=True)
    def list_annotations() -> Envelope:
        return Envelope(success=True, data=repository.list())

    @router.get(
        "/annotations/{video_id}",
        response_model=Envelope,
        response_model_exclude_none=True,
    )
    def list_video_annotations(video_id: str) -> Envelope:
        return Envelope(success=True, data=repository.list(video_id))

    @router.post(
        "/annotations",
        status_code=201,
        response_model=Envelope,
        response_model_exclude_none=True,
    )
    def create_annotation(payload: Dict[str, Any] = Body(...)) -> Envelope:
        for name in REQUIRED_FIELDS:
            if _is_missing(payload.get(name)):
                raise HTTPException(status_code=400, detail=f"Missing required field: {name}")
        return Envelope(success=True, data=repository.create(payload))

    @router.post(
        "/annotations/bulk",
        response_model=Envelope,
        response_model_exclude_none=True,
    )
    def save_annotations(payload: BulkSaveRequest) -> Envelope:
        annotations = payload.annotations
        if not isinstance(annotations, list):
            raise HTTPException(status_code=400, detail="Annotations must be an array")
        if not all(isinstance(annotation, dict) for annotation in annotations):
            raise HTTPException(status_code=400, detail="Annotations must be objects")
        saved = repository.replace(annotations, payload.videoId)
        logger.info(f"Saved {len(saved)} annotations for video {payload.videoId or '*'}")
        return Envelope(
            success=True,
            data=saved,
            message=f"Saved {len(annotations)} annotations",
        )

    @router.put(
        "/annotations/{annotation_id}",
        response_model=Envelope,
        response_model_exclude_none=True,
    )
    def update_annotation(annotation_id: str, payload: Dict[str, Any] = Body(...)) -> Envelope:
        updated = repository.update(annotation_id, payload)
        if updated is None:
            raise HTTPException(status_code=404, detail="Annotation not found")
        return Envelope(success=True, data=updated)

    @router.delete(
        "/annotations/{annotation_id}",
        response_model=Envelope,
        response_model_exclude_none=True,
    )
    def delete_annotation(annotation_id: str) -> Envelope:
        deleted = repository.delete(annotation_id)
        if deleted is None:
            raise HTTPException(status_code=404, detail="Annotation not found")
        return Envelope(success=True, data=deleted)

    @router.delete("/annotations", response_model=Envelope, response_model_exclude_none=True)
    def delete_all_annotations() -> Envelope:
        repository.clear()
        return Envelope(success=True, message="All annotations deleted")

    @router.get("/health", response_model=Envelope, response_model_exclude_none=True)
    def health() -> Envelope:
        return Envelope(
            success=True,
            message="Annotation API is running",
            timestamp=utc_now_iso(),
        )

    return router


def create_app(
    data_file: Path,
    prefix: str = "/api",
    cors_origin: str = "*",
) -> FastAPI:
    """
    Build the service.

    Args:
        data_file: JSON file holding every record, created if missing
        prefix: Path prefix of all routes
        cors_origin: Allowed origin, ``*`` for any
    """
    repository = AnnotationRepository(Path(data_file))
    repository.initialize()

    app = FastAPI(title="vidnote annotation API")
    app.state.repository = repository

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cors_origin],
        allow_credentials=cors_origin != "*",
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        detail = exc.detail
        if exc.status_code == 404 and detail == "Not Found":
            detail = "Route not found"
        return _error(exc.status_code, str(detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, "Something went wrong!")

    app.include_router(create_router(repository), prefix=prefix)
    return app
