"""
File upload pipeline.

idle -> validating -> uploading -> persisting -> scheduling_reply -> idle

Validation runs before the blob store is touched. Any failure leaves no
message behind, puts the pipeline back to idle and raises a distinct error
for the caller to report.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import (
    AppException,
    FileValidationError,
    UploadFailedError,
)
from app.core.messages import ERROR
from app.schemas import FileDescriptor, FileMessage
from app.services.storage_service import BlobStorage

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    SCHEDULING_REPLY = "scheduling_reply"
    ERROR = "error"


@dataclass
class UploadedFile:
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


# listener(state, progress 0-100)
UploadListener = Callable[[UploadState, int], None]


def validate_upload(content_type: Optional[str], size: int) -> None:
    """Raise FileValidationError for a disallowed type or an oversized file."""
    if content_type not in settings.ALLOWED_FILE_TYPES:
        raise FileValidationError("type", ERROR["INVALID_FILE_TYPE"])
    if size > settings.MAX_UPLOAD_SIZE:
        limit_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
        raise FileValidationError("size", ERROR["FILE_TOO_LARGE"].format(limit_mb))


class FileUploadPipeline:
    def __init__(
        self,
        message_service,
        storage: BlobStorage,
        auto_replies,
        listener: Optional[UploadListener] = None,
    ):
        self.message_service = message_service
        self.storage = storage
        self.auto_replies = auto_replies
        self.listener = listener
        self.state = UploadState.IDLE
        self.progress = 0

    def upload(
        self, db: Session, conversation_id: int, author_id: str, file: UploadedFile
    ) -> FileMessage:
        try:
            self._set_state(UploadState.VALIDATING, 0)
            validate_upload(file.content_type, file.size)

            self._set_state(UploadState.UPLOADING, 0)
            path = f"{conversation_id}/{int(time.time() * 1000)}-{file.file_name}"
            try:
                key = self.storage.upload(
                    path,
                    file.data,
                    file.content_type,
                    progress=lambda sent: self._on_bytes(sent, file.size),
                )
                url = self.storage.get_public_url(key)
            except AppException as e:
                raise UploadFailedError(details=e.details or e.message)
            except Exception as e:
                raise UploadFailedError(details=str(e))
            self._set_progress(100)

            self._set_state(UploadState.PERSISTING, 100)
            try:
                message = self.message_service.append_file_message(
                    db,
                    conversation_id,
                    author_id,
                    FileDescriptor(
                        url=url,
                        name=file.file_name,
                        size=file.size,
                        type=file.content_type,
                    ),
                )
            except Exception as e:
                db.rollback()
                raise UploadFailedError(details=str(e))

            self._set_state(UploadState.SCHEDULING_REPLY, 100)
            self.auto_replies.schedule_file_ack(conversation_id, file.file_name, file.content_type)
        except FileValidationError as e:
            logger.warning(f"Rejected upload {file.file_name!r} ({e.reason}): {e.message}")
            self._fail()
            raise
        except UploadFailedError as e:
            logger.error(f"Upload of {file.file_name!r} failed: {e.details}")
            self._fail()
            raise

        logger.info(f"Uploaded {file.file_name!r} to conversation {conversation_id}")
        self._set_state(UploadState.IDLE, 0)
        return message

    def _on_bytes(self, sent: int, total: int) -> None:
        if total <= 0:
            return
        # 100 is reserved for after the storage call returned
        self._set_progress(min(99, sent * 100 // total))

    def _set_progress(self, progress: int) -> None:
        if progress <= self.progress:
            return
        self.progress = progress
        self._notify()

    def _set_state(self, state: UploadState, progress: int) -> None:
        self.state = state
        self.progress = progress
        self._notify()

    def _fail(self) -> None:
        self._set_state(UploadState.ERROR, 0)
        self._set_state(UploadState.IDLE, 0)

    def _notify(self) -> None:
        if self.listener is not None:
            self.listener(self.state, self.progress)
