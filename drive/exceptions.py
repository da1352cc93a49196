"""Custom exception classes for the drive client."""

import threading
from typing import Optional


class DriveError(Exception):
    """
    Base exception class for all drive-related errors.
    """
    pass


class TransportError(DriveError):
    """
    Raised when the network or local IO fails before a response is received.
    """
    pass


class HTTPStatusError(DriveError):
    """
    Raised when the backend answers with an unexpected 4xx/5xx status.
    """

    def __init__(self, message: str, status_code: int, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class AuthExpiredError(HTTPStatusError):
    """
    Raised when the bearer credential is rejected even after one refresh,
    or when the refresh itself is rejected.
    """

    def __init__(self, message: str, status_code: int = 401, code: Optional[str] = None):
        super().__init__(message, status_code, code)


class NotFoundError(HTTPStatusError):
    """
    Raised when a node, path or share does not exist.
    """

    def __init__(self, message: str, status_code: int = 404, code: Optional[str] = None):
        super().__init__(message, status_code, code)


class RateLimitedError(HTTPStatusError):
    """
    Raised when the backend throttles the caller (HTTP 429).
    """

    def __init__(self, message: str, status_code: int = 429, code: Optional[str] = None):
        super().__init__(message, status_code, code)


class AlreadyExistsError(DriveError):
    """
    Raised when the target name is already taken under the parent folder.
    """
    pass


class ProtocolError(DriveError):
    """
    Raised when a response is malformed or inconsistent with the request.
    """
    pass


class ZeroSizeProofUndefinedError(DriveError):
    """
    Raised when a proof code is requested for a zero-length file.
    """
    pass


class MissingFieldsError(DriveError):
    """
    Raised when a create request lacks parent_file_id or name.
    """

    def __init__(self, message: str = "required fields: parent_file_id, name"):
        super().__init__(message)


class RootOperationError(DriveError):
    """
    Raised when a mutation targets the root folder or an empty node id.
    """
    pass


class LivpUploadError(DriveError):
    """
    Raised when uploading a .livp bundle, which the backend does not accept.
    """

    def __init__(self, message: str = "uploading .livp is not supported"):
        super().__init__(message)


class OperationCancelledError(DriveError):
    """
    Raised when the caller's cancel event is set before a remote call.
    """
    pass


def check_cancelled(cancel: Optional[threading.Event], action: str) -> None:
    """Raise OperationCancelledError if the caller's cancel event is set."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError(f"cancelled before {action}")
