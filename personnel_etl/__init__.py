"""Personnel workbook ingestion and the admin-facing JSON document store."""

from .config import PipelineSettings
from .exceptions import AuthenticationError, AuthorizationError, IngestionError, NotFoundError, PersonnelError, ValidationError
from .models import Document
from .pipeline import IngestionResult, ingest_workbooks, run_ingestion
from .store import AdminSession, DocumentStore, MutationResult

__version__ = "0.1.0"

__all__ = [
    "AdminSession",
    "AuthenticationError",
    "AuthorizationError",
    "Document",
    "DocumentStore",
    "IngestionError",
    "IngestionResult",
    "MutationResult",
    "NotFoundError",
    "PersonnelError",
    "PipelineSettings",
    "ValidationError",
    "ingest_workbooks",
    "run_ingestion",
]
