"""Logging constants."""


class Logging:
    """Logging configuration constants."""

    DEFAULT_LEVEL = "INFO"
    ROOT_LOGGER = "cachevault"
    TIME_FORMAT = "[%H:%M:%S]"


class LogContextKeys:
    """Keys used in structured log ``extra`` payloads."""

    OPERATION = "operation"
    ERROR_CODE = "error_code"
    CONTEXT = "context"
    DURATION_MS = "duration_ms"
    RESULT_INFO = "result_info"


__all__ = ["LogContextKeys", "Logging"]
