"""CacheVault Error Handling Module

This module defines the error handling system for CacheVault, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext records the operation and entity involved
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for CacheVault.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # Argument Errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    # Cache Errors
    CACHE_NOT_FOUND = "CACHE_NOT_FOUND"

    # Object Store Errors
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    OBJECT_ALREADY_EXISTS = "OBJECT_ALREADY_EXISTS"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    STORAGE_ERROR = "STORAGE_ERROR"

    # File System Errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"
    DIRECTORY_CREATION_FAILED = "DIRECTORY_CREATION_FAILED"

    # Archive Errors
    UNSUPPORTED_ENTRY_TYPE = "UNSUPPORTED_ENTRY_TYPE"
    ARCHIVE_CORRUPTED = "ARCHIVE_CORRUPTED"
    ARCHIVE_UNSAFE_PATH = "ARCHIVE_UNSAFE_PATH"

    # Configuration Errors
    CONFIG_ERROR = "CONFIG_ERROR"

    # Application Errors
    OPERATION_CANCELLED = "OPERATION_CANCELLED"
    RESOURCE_CLEANUP_ERROR = "RESOURCE_CLEANUP_ERROR"

    # CLI Errors
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"
    CLI_COMMAND_INTERRUPTED = "CLI_COMMAND_INTERRUPTED"
    CLI_OUTPUT_ERROR = "CLI_OUTPUT_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path and Enum values to their primitive form.

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Attributes:
        file_path: Optional local path associated with the error
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        if self.additional_data is not None:
            object.__setattr__(self, "additional_data", _coerce_primitives(self.additional_data))

    def safe_dict(self) -> dict[str, Any]:
        """Export context as a dict for logging and error reporting.

        ``additional_data`` is always present (never None) for consumers.
        """
        data: dict[str, Any] = {}
        if self.file_path is not None:
            data["file_path"] = self.file_path
        if self.operation is not None:
            data["operation"] = self.operation
        data["additional_data"] = dict(self.additional_data or {})
        return data


class CacheVaultError(Exception):
    """Base exception class for all CacheVault errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """Initialize CacheVaultError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(CacheVaultError):
    """Domain-specific errors.

    These errors occur when cache protocol rules are violated, e.g. no cached
    object matches the requested keys or an archive holds an entry that cannot
    be materialized.
    """


class InfrastructureError(CacheVaultError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems like the local
    file system or the remote object store.
    """


class ApplicationError(CacheVaultError):
    """Application-level errors.

    These errors occur at the application layer, typically related to
    arguments, configuration, command handling or cancellation.
    """


class InvalidArgumentError(ApplicationError):
    """A required request field is missing or empty."""


class OperationCancelledError(ApplicationError):
    """The caller cancelled the operation or its deadline passed."""


class CacheNotFoundError(DomainError):
    """No cached object matches any of the requested keys."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        keys: Sequence[str] = (),
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.keys = list(keys)


class StorageError(InfrastructureError):
    """The remote object store rejected or failed a request."""


class ObjectNotFoundError(StorageError):
    """The requested object does not exist in the store."""


class ObjectExistsError(StorageError):
    """An object already exists under the requested name."""


class PreconditionFailedError(StorageError):
    """The store rejected a conditional write."""


class CacheIOError(InfrastructureError):
    """Local file system failure, wrapping the path and the cause."""


class ResourceCleanupError(InfrastructureError):
    """Releasing a resource failed after an earlier failure.

    ``original_error`` holds the earlier failure and ``cleanup_error`` the
    release failure, so neither cause is lost.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        cleanup_error: BaseException | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.cleanup_error = cleanup_error


class ArchiveError(DomainError):
    """The archive stream is corrupted or holds an unsafe entry."""


class UnsupportedEntryTypeError(ArchiveError):
    """The archive holds an entry type the extractor cannot materialize."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        entry_name: str | None = None,
        type_code: str | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.entry_name = entry_name
        self.type_code = type_code


class CliError(ApplicationError):
    """CLI-specific error with enhanced context for command-line operations."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


# Convenience functions for common error scenarios
def create_invalid_argument_error(
    field: str,
    message: str | None = None,
    operation: str | None = None,
) -> InvalidArgumentError:
    """Create an invalid argument error for a missing or empty field."""
    return InvalidArgumentError(
        ErrorCode.INVALID_ARGUMENT,
        message or f"missing {field}",
        ErrorContext(operation=operation, additional_data={"field": field}),
    )


def create_cancelled_error(
    operation: str,
    original_error: BaseException | None = None,
) -> OperationCancelledError:
    """Create a cancellation error for the given operation."""
    return OperationCancelledError(
        ErrorCode.OPERATION_CANCELLED,
        f"{operation} cancelled",
        ErrorContext(operation=operation),
        original_error,
    )


def create_cache_not_found_error(
    keys: Sequence[str],
    operation: str | None = None,
) -> CacheNotFoundError:
    """Create a not-found error naming every attempted key."""
    quoted = ", ".join(f'"{key}"' for key in keys)
    return CacheNotFoundError(
        ErrorCode.CACHE_NOT_FOUND,
        f"failed to find cached objects among keys [{quoted}]",
        ErrorContext(operation=operation, additional_data={"key_count": len(keys)}),
        keys=keys,
    )


def create_object_not_found_error(
    bucket: str,
    name: str,
    operation: str | None = None,
    original_error: BaseException | None = None,
) -> ObjectNotFoundError:
    """Create an error for an object missing from the store."""
    return ObjectNotFoundError(
        ErrorCode.OBJECT_NOT_FOUND,
        f"object {bucket}/{name} does not exist",
        ErrorContext(operation=operation, additional_data={"bucket": bucket, "object": name}),
        original_error,
    )


def create_object_exists_error(
    bucket: str,
    name: str,
    operation: str | None = None,
    original_error: BaseException | None = None,
) -> ObjectExistsError:
    """Create an error for a name that is already taken."""
    return ObjectExistsError(
        ErrorCode.OBJECT_ALREADY_EXISTS,
        f"object {bucket}/{name} already exists",
        ErrorContext(operation=operation, additional_data={"bucket": bucket, "object": name}),
        original_error,
    )


def create_precondition_failed_error(
    bucket: str,
    name: str,
    operation: str | None = None,
    original_error: BaseException | None = None,
) -> PreconditionFailedError:
    """Create an error for a rejected create-if-absent write."""
    return PreconditionFailedError(
        ErrorCode.PRECONDITION_FAILED,
        f"object {bucket}/{name} already exists",
        ErrorContext(operation=operation, additional_data={"bucket": bucket, "object": name}),
        original_error,
    )


def create_storage_error(
    message: str,
    bucket: str | None = None,
    name: str | None = None,
    operation: str | None = None,
    original_error: BaseException | None = None,
) -> StorageError:
    """Create a generic object store error."""
    additional_data: dict[str, PrimitiveContextValue] = {}
    if bucket is not None:
        additional_data["bucket"] = bucket
    if name is not None:
        additional_data["object"] = name
    return StorageError(
        ErrorCode.STORAGE_ERROR,
        message,
        ErrorContext(operation=operation, additional_data=additional_data or None),
        original_error,
    )


def create_io_error(
    message: str,
    file_path: str | Path,
    operation: str | None = None,
    original_error: BaseException | None = None,
    code: ErrorCode = ErrorCode.FILE_READ_ERROR,
) -> CacheIOError:
    """Create a local file system error with context."""
    if original_error is not None:
        message = f"{message}: {original_error}"
    return CacheIOError(
        code,
        message,
        ErrorContext(file_path=str(file_path), operation=operation),
        original_error,
    )


def create_unsupported_entry_error(
    entry_name: str,
    type_code: str,
    operation: str | None = None,
) -> UnsupportedEntryTypeError:
    """Create an error for an archive entry that cannot be extracted."""
    return UnsupportedEntryTypeError(
        ErrorCode.UNSUPPORTED_ENTRY_TYPE,
        f"{entry_name}: unknown type flag: {type_code!r}",
        ErrorContext(
            operation=operation,
            additional_data={"entry": entry_name, "type_code": type_code},
        ),
        entry_name=entry_name,
        type_code=type_code,
    )


def create_archive_error(
    message: str,
    code: ErrorCode = ErrorCode.ARCHIVE_CORRUPTED,
    entry_name: str | None = None,
    operation: str | None = None,
    original_error: BaseException | None = None,
) -> ArchiveError:
    """Create an archive stream error."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"entry": entry_name} if entry_name else None
    )
    return ArchiveError(
        code,
        message,
        ErrorContext(operation=operation, additional_data=additional_data),
        original_error,
    )


def create_cleanup_error(
    resource: str,
    primary_error: BaseException,
    cleanup_error: BaseException,
    operation: str | None = None,
) -> ResourceCleanupError:
    """Combine an earlier failure with a failure to release a resource."""
    return ResourceCleanupError(
        ErrorCode.RESOURCE_CLEANUP_ERROR,
        f"{_describe(primary_error)}: failed to close {resource}: {_describe(cleanup_error)}",
        ErrorContext(operation=operation, additional_data={"resource": resource}),
        original_error=primary_error,
        cleanup_error=cleanup_error,
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: BaseException | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        ErrorContext(operation=operation, additional_data=additional_data),
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    operation: str | None = None,
    original_error: BaseException | None = None,
    exit_code: int = 1,
    code: ErrorCode = ErrorCode.CLI_UNEXPECTED_ERROR,
) -> CliError:
    """Create a CLI error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"command": command} if command else None
    )
    return CliError(
        code,
        message,
        ErrorContext(operation=operation, additional_data=additional_data),
        original_error,
        command,
        exit_code,
    )


def create_cli_output_error(
    message: str,
    command: str | None = None,
    output_type: str | None = None,
    original_error: BaseException | None = None,
) -> CliError:
    """Create a CLI output error with context."""
    additional_data: dict[str, PrimitiveContextValue] = {}
    if command is not None:
        additional_data["command"] = command
    if output_type is not None:
        additional_data["output_type"] = output_type

    return CliError(
        ErrorCode.CLI_OUTPUT_ERROR,
        message,
        ErrorContext(operation="cli_output", additional_data=additional_data or None),
        original_error,
        command,
        exit_code=1,
    )


def _describe(error: BaseException) -> str:
    if isinstance(error, CacheVaultError):
        return error.message
    return str(error) or type(error).__name__
