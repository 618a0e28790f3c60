"""Centralized error handling and custom exceptions for the Nestbox CLI."""

from __future__ import annotations

from enum import Enum
from typing import Any

LOGIN_HINT = 'Please login again using "nestbox login <domain>".'


class ErrorCode(str, Enum):
    """Standardized error codes surfaced by commands."""

    # General errors
    INTERNAL_ERROR = "internal_error"
    VALIDATION_ERROR = "validation_error"

    # Local config errors
    CONFIG_READ_FAILED = "config_read_failed"
    CONFIG_CONFLICT = "config_conflict"

    # Project resolution errors
    NO_PROJECT_SPECIFIED = "no_project_specified"
    PROJECT_NOT_FOUND = "project_not_found"

    # Auth errors
    NOT_AUTHENTICATED = "not_authenticated"
    AUTH_EXPIRED = "auth_expired"
    TOKEN_REFRESH_FAILED = "token_refresh_failed"

    # Remote errors
    REMOTE_ERROR = "remote_error"
    REMOTE_NOT_FOUND = "remote_not_found"


class NestboxError(Exception):
    """Base exception for all Nestbox CLI errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(NestboxError):
    """Command input validation failed."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Invalid value for '{field}': {message}",
            code=ErrorCode.VALIDATION_ERROR,
            details={"field": field, "error": message},
        )


class ConfigError(NestboxError):
    """Errors related to the local project config file."""

    pass


class ConfigReadError(ConfigError):
    """Local config file is unreadable or corrupt."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Could not read project config at {path}: {reason}",
            code=ErrorCode.CONFIG_READ_FAILED,
            details={"path": path, "reason": reason},
        )


class ConfigConflictError(ConfigError):
    """Project or alias already present in the local config."""

    def __init__(self, key: str, kind: str = "Project"):
        super().__init__(
            message=f"{kind} '{key}' already exists.",
            code=ErrorCode.CONFIG_CONFLICT,
            details={"key": key, "kind": kind.lower()},
        )


class ResolutionError(NestboxError):
    """A target project could not be determined."""

    pass


class NoProjectSpecifiedError(ResolutionError):
    """No --project given and no default project configured."""

    def __init__(self) -> None:
        super().__init__(
            message=(
                "No project specified and no default project set. "
                "Please provide a project ID or set a default project."
            ),
            code=ErrorCode.NO_PROJECT_SPECIFIED,
        )


class ProjectNotFoundError(ResolutionError):
    """Remote system has no project with the given id or name.

    ``from_default`` marks a stale default in .nestboxrc rather than a bad
    ``--project`` value.
    """

    def __init__(self, identifier: str, *, from_default: bool = False):
        if from_default:
            message = (
                f'Default project "{identifier}" not found. '
                "Set another default with: nestbox project use <name>"
            )
        else:
            message = f"Project not found with ID or name: {identifier}"
        details: dict[str, Any] = {"identifier": identifier}
        if from_default:
            details["from_default"] = True
        super().__init__(
            message=message,
            code=ErrorCode.PROJECT_NOT_FOUND,
            details=details,
        )
        self.identifier = identifier
        self.from_default = from_default


class AuthError(NestboxError):
    """Errors related to authentication."""

    pass


class NotAuthenticatedError(AuthError):
    """No stored session to talk to the API with."""

    def __init__(self) -> None:
        super().__init__(
            message="No authentication token found. Please login first.",
            code=ErrorCode.NOT_AUTHENTICATED,
        )


class AuthExpiredError(AuthError):
    """The remote API rejected the session token."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message=message or f"Authentication token has expired. {LOGIN_HINT}",
            code=ErrorCode.AUTH_EXPIRED,
        )


class TokenRefreshError(AuthError):
    """Exchanging stored credentials for a new token failed."""

    def __init__(self, reason: str):
        super().__init__(
            message=(
                "Authentication token has expired and automatic refresh failed "
                f"({reason}). {LOGIN_HINT}"
            ),
            code=ErrorCode.TOKEN_REFRESH_FAILED,
            details={"reason": reason},
        )


class RemoteError(NestboxError):
    """Any other failure reported by the remote API or transport."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.REMOTE_ERROR,
            details={"status_code": status_code},
        )
        self.status_code = status_code


class RemoteNotFoundError(RemoteError):
    """The remote API reported that a resource does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)
        self.code = ErrorCode.REMOTE_NOT_FOUND
