"""Default values shared across tutorsync."""

# Per-step retry policy for job processing
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_INITIAL_DELAY_MS: int = 500
DEFAULT_BACKOFF_FACTOR: float = 2.0
DEFAULT_JITTER_MS: int = 100

# Plain remote calls; blob downloads can legitimately take longer
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 10.0
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS: float = 30.0

DEFAULT_STORAGE_BUCKET: str = "user-content"
DEFAULT_STATUS_COLUMN: str = "processing_status"
