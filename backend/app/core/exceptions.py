"""
Application exceptions.

Every error raised by the chat services derives from AppException so the API
layer can translate it into a consistent JSON body and status code.
"""

from app.core.messages import ERROR


class AppException(Exception):
    """
    Base application exception.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        status_code: int = 400,
        details: str = None
    ):
        """
        Args:
            error_code (str): Unique business error identifier
            message (str): User-friendly error message
            status_code (int): HTTP status code (default: 400)
            details (str): Optional internal/debug details
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details

        super().__init__(message)

    def to_dict(self) -> dict:
        """
        Convert exception to standardized API response format.
        """
        response = {
            "status": "error",
            "error_code": self.error_code,
            "message": self.message
        }

        if self.details:
            response["details"] = self.details

        return response


class MessageValidationError(AppException):
    """Raised when a message is rejected before any side effect."""

    def __init__(self, error_code: str = "MESSAGE_EMPTY", message: str = None):
        super().__init__(
            error_code=error_code,
            message=message or ERROR[error_code],
            status_code=400,
        )


class FileValidationError(AppException):
    """Raised when an upload has a disallowed type or exceeds the size limit."""

    def __init__(self, reason: str, message: str):
        self.reason = reason  # 'type' or 'size'
        super().__init__(
            error_code="INVALID_FILE_TYPE" if reason == "type" else "FILE_TOO_LARGE",
            message=message,
            status_code=400,
        )


class StorageError(AppException):
    """Raised by blob storage backends when an object cannot be stored."""

    def __init__(self, details: str = None):
        super().__init__(
            error_code="STORAGE_UNAVAILABLE",
            message=ERROR["STORAGE_UNAVAILABLE"],
            status_code=502,
            details=details,
        )


class UploadFailedError(AppException):
    """Raised when an upload passed validation but could not be completed."""

    def __init__(self, details: str = None):
        super().__init__(
            error_code="UPLOAD_FAILED",
            message=ERROR["UPLOAD_FAILED"],
            status_code=502,
            details=details,
        )


class ConversationNotFoundError(AppException):
    """Raised when a conversation does not exist or is owned by someone else."""

    def __init__(self, conversation_id=None):
        super().__init__(
            error_code="CONVERSATION_NOT_FOUND",
            message=ERROR["CONVERSATION_NOT_FOUND"],
            status_code=404,
            details=None if conversation_id is None else f"conversation_id={conversation_id}",
        )


class MessageNotFoundError(AppException):
    def __init__(self, message_id=None):
        super().__init__(
            error_code="MESSAGE_NOT_FOUND",
            message=ERROR["MESSAGE_NOT_FOUND"],
            status_code=404,
            details=None if message_id is None else f"message_id={message_id}",
        )


class ScooterModelNotFoundError(AppException):
    def __init__(self, model_id=None):
        super().__init__(
            error_code="MODEL_NOT_FOUND",
            message=ERROR["MODEL_NOT_FOUND"],
            status_code=404,
            details=None if model_id is None else f"model_id={model_id}",
        )
