from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic_settings import BaseSettings

from .canonical import DEFAULT_HOST_ALIASES
from .store import DEFAULT_API_URL, DEFAULT_AUTH_URL
from .throttle import DEFAULT_REQUEST_DELAY


class Settings(BaseSettings):
    # Remote store credentials (supplied out of band, e.g. CI secrets)
    username: Optional[str] = None
    password: Optional[str] = None
    auth_url: str = DEFAULT_AUTH_URL
    api_url: str = DEFAULT_API_URL
    # Account whose documents the validator lists; looked up via users/me/ when unset
    user_id: Optional[int] = None
    # Local state
    ledger_path: str = "documents.json"
    sources_file: str = "sources.yml"
    # Behaviour
    dry_run: bool = False
    request_delay: float = DEFAULT_REQUEST_DELAY
    chunk_size: int = 25
    http_timeout: float = 60.0
    max_new_documents: Optional[int] = None
    # Observability
    metrics_textfile: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    class Config:
        env_prefix = "DOCSYNC_"
        env_file = ".env"
        extra = "ignore"


@dataclass
class SyncConfig:
    """What to discover and how to label it; loaded from the sources file."""

    sources: List[Dict[str, Any]] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    host_aliases: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HOST_ALIASES))
    index_patterns: List[str] = field(default_factory=list)
    max_index_documents: Optional[int] = None
    extra_urls: List[str] = field(default_factory=list)
    skip_urls: List[str] = field(default_factory=list)
