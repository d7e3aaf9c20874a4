from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Gauge, write_to_textfile

# Discovery
source_candidates = Gauge(
    "docsync_source_candidates", "Candidate URLs returned by a source on the last run", labelnames=("source",)
)
source_degraded_total = Counter(
    "docsync_source_degraded_total", "Runs in which a source fell below its expected minimum", labelnames=("source",)
)
secondary_links_total = Counter(
    "docsync_secondary_links_total", "PDF URLs discovered inside index documents"
)

# Upload
upload_chunks_total = Counter(
    "docsync_upload_chunks_total", "Upload chunks by outcome", labelnames=("outcome",)
)
documents_uploaded_total = Counter(
    "docsync_documents_uploaded_total", "Documents confirmed by the remote store"
)

# Validation
validator_failures = Gauge(
    "docsync_validator_failures", "Ingested documents not in the success state at last validation"
)

# Run
last_exit_status = Gauge("docsync_last_exit_status", "Exit status of the last pipeline run")


def write_textfile(path: str) -> None:
    """Dump the default registry for the node exporter textfile collector."""
    write_to_textfile(path, REGISTRY)
