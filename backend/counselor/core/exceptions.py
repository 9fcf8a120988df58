"""
Custom exception classes for unified error handling.
"""

from fastapi import HTTPException


class AppBaseError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ModelProviderError(AppBaseError):
    """Raised when the chat completion provider returns an unusable answer."""
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(
            message=message,
            detail=f"Provider responded with HTTP {status_code}.",
        )


class ProviderTimeoutError(AppBaseError):
    """Raised when every attempt against the provider timed out."""
    def __init__(self, attempts: int):
        super().__init__(
            message=f"Request timed out after {attempts} attempts",
            detail="This might be due to the complexity of your query or server load.",
        )


class ProfileNotFoundError(AppBaseError):
    """Raised when a student profile does not exist."""
    def __init__(self, message: str = "Profile not found"):
        super().__init__(message=message)


class UnsupportedFileError(AppBaseError):
    """Raised when an uploaded file has the wrong type or format."""
    def __init__(self, message: str):
        super().__init__(
            message=message,
            detail="Upload a PDF, DOCX, CSV, TXT, JPEG or PNG file.",
        )


class DocumentProcessingError(AppBaseError):
    """Raised when text extraction or indexing of a document fails."""
    def __init__(self, message: str, original_error: str | None = None):
        super().__init__(message=message, detail=original_error)


# ── Utility: convert to HTTPException ────────────────────

def app_error_to_http(error: AppBaseError, status_code: int = 400) -> HTTPException:
    """Convert an AppBaseError to an HTTPException with consistent JSON body."""
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
    )
