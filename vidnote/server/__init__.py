from .app import create_app, create_router
from .repository import AnnotationRepository, same_id
from .schemas import BulkSaveRequest, Envelope

__all__ = [
    "AnnotationRepository",
    "BulkSaveRequest",
    "Envelope",
    "create_app",
    "create_router",
    "same_id",
]
