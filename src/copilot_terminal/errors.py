from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    TRANSPORT_UNAVAILABLE = "transport_unavailable"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_REQUEST = "invalid_request"
    IDENTITY_EXPIRED = "identity_expired"
    SERVICE_TOKEN_EXPIRED = "service_token_expired"
    EMPTY_RESULT = "empty_result"
    AUTHENTICATION_FAILED = "authentication_failed"
    REQUEST_FAILED = "request_failed"
    DEVICE_CODE_FAILED = "device_code_failed"
    DEVICE_CODE_EXPIRED = "device_code_expired"
    STORAGE_FAILED = "storage_failed"
    UNKNOWN = "unknown"


# Which HTTP call a status code came from. The same status maps to
# different kinds depending on whose token was rejected.
STAGE_TOKEN = "token"
STAGE_COMPLETION = "completion"

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.TRANSPORT_UNAVAILABLE: (
        "Network error: Unable to connect to GitHub Copilot. Please check your internet connection."
    ),
    ErrorKind.RATE_LIMITED: "You have reached your Copilot usage limit. Please try again later.",
    ErrorKind.SERVICE_UNAVAILABLE: "GitHub Copilot service is currently unavailable. Please try again later.",
    ErrorKind.INVALID_REQUEST: "Invalid request to Copilot. Please try a different prompt.",
    ErrorKind.IDENTITY_EXPIRED: "GitHub access token expired or invalid",
    ErrorKind.SERVICE_TOKEN_EXPIRED: "Copilot token expired or invalid",
    ErrorKind.EMPTY_RESULT: (
        "Copilot was unable to generate a command for your request. Please try rephrasing."
    ),
    ErrorKind.AUTHENTICATION_FAILED: "Unable to authenticate with GitHub Copilot.",
    ErrorKind.REQUEST_FAILED: "Unable to get a response from GitHub Copilot.",
    ErrorKind.DEVICE_CODE_FAILED: "Failed to start GitHub device authorization.",
    ErrorKind.DEVICE_CODE_EXPIRED: "The device code expired before authorization completed. Please log in again.",
    ErrorKind.STORAGE_FAILED: "Could not update authentication tokens. Check file permissions in your home directory.",
    ErrorKind.UNKNOWN: "Unable to get command suggestion from GitHub Copilot. Please try again.",
}

_TOKEN_STAGE_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please try again later.",
    ErrorKind.SERVICE_UNAVAILABLE: "GitHub service is currently unavailable. Please try again later.",
}


def user_message(kind: ErrorKind, stage: str = STAGE_COMPLETION) -> str:
    if stage == STAGE_TOKEN and kind in _TOKEN_STAGE_MESSAGES:
        return _TOKEN_STAGE_MESSAGES[kind]
    return _MESSAGES[kind]


class CopilotError(Exception):
    """Failure with a stable kind the caller can branch on."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        super().__init__(message or user_message(kind))
        self.kind = kind

    @property
    def message(self) -> str:
        return str(self)


class TokenExpiredError(CopilotError):
    """A bearer token was rejected.

    ``token_type`` is ``"github"`` when the identity token must be replaced
    (re-run the device flow) and ``"copilot"`` when only the derived service
    token was rejected (its cache has already been cleared).
    """

    def __init__(self, kind: ErrorKind, token_type: str, message: str | None = None):
        super().__init__(kind, message)
        self.token_type = token_type


class StorageError(CopilotError):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.STORAGE_FAILED, message)


def classify_status(status: int, *, stage: str) -> ErrorKind | None:
    """Map an HTTP status to an error kind. Returns None for 2xx."""
    if 200 <= status < 300:
        return None
    if status in (401, 403):
        if stage == STAGE_TOKEN:
            return ErrorKind.IDENTITY_EXPIRED
        return ErrorKind.SERVICE_TOKEN_EXPIRED
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status >= 500:
        return ErrorKind.SERVICE_UNAVAILABLE
    if stage == STAGE_COMPLETION:
        if status == 400:
            return ErrorKind.INVALID_REQUEST
        return ErrorKind.REQUEST_FAILED
    return ErrorKind.AUTHENTICATION_FAILED
