from .canonical import UrlCanonicalizer, canonicalize_url
from .ledger import DocumentRecord, Ledger
from .aggregator import Aggregator, AggregationResult, Corrections, select_new
from .uploader import BatchUploader, NewDocument, UploadOutcome
from .validator import Validator
from .pipeline import ExitStatus, Pipeline, run_pipeline
from .config import Settings, SyncConfig

__all__ = [
    "UrlCanonicalizer",
    "canonicalize_url",
    "DocumentRecord",
    "Ledger",
    "Aggregator",
    "AggregationResult",
    "Corrections",
    "select_new",
    "BatchUploader",
    "NewDocument",
    "UploadOutcome",
    "Validator",
    "ExitStatus",
    "Pipeline",
    "run_pipeline",
    "Settings",
    "SyncConfig",
]
