"""Media processing errors."""


class MediaProcessingError(Exception):
    """The payload cannot be processed (corrupt, unsupported codec). Terminal."""


class MediaToolError(Exception):
    """An external media tool is missing or timed out. Retryable."""
