"""Core cache protocol: hashing, archiving, key resolution and orchestration."""

from cachevault.core.cacher import Cacher, RestoreRequest, RestoreResult, SaveRequest, SaveResult
from cachevault.core.cancellation import Deadline, raise_if_cancelled
from cachevault.core.resolver import KeyResolver

__all__ = [
    "Cacher",
    "Deadline",
    "KeyResolver",
    "RestoreRequest",
    "RestoreResult",
    "SaveRequest",
    "SaveResult",
    "raise_if_cancelled",
]
