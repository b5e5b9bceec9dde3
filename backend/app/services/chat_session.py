"""
Chat interface controller.

ChatContext wires the chat services around one session factory, change feed,
blob store and scheduler. ChatSession is the per-user controller on top of it:
it owns the active conversation, its local message list and the realtime
subscription that keeps that list in sync.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from app.core.exceptions import (
    AppException,
    ConversationNotFoundError,
    FileValidationError,
    MessageValidationError,
    ScooterModelNotFoundError,
)
from app.core.messages import ERROR, SUCCESS
from app.schemas import FileMessage, TextMessage
from app.services.auto_reply_service import AutoReplyMatcher, AutoReplyService
from app.services.conversation_service import ConversationService
from app.services.feedback_service import FeedbackService
from app.services.message_service import MessageService
from app.services.notifications import LoggingNotificationSink, NotificationSink
from app.services.realtime import ChangeEvent, ChangeFeed, Subscription
from app.services.scheduler import Scheduler
from app.services.storage_service import BlobStorage
from app.services.typing_service import TypingCoordinator
from app.services.upload_service import FileUploadPipeline, UploadedFile, UploadState

logger = logging.getLogger(__name__)

ChatMessage = Union[TextMessage, FileMessage]


@dataclass
class ChatContext:
    session_factory: Callable[[], Session]
    feed: ChangeFeed
    storage: BlobStorage
    scheduler: Scheduler
    notifier: NotificationSink
    conversations: ConversationService
    messages: MessageService
    auto_replies: AutoReplyService
    typing: TypingCoordinator
    feedback: FeedbackService

    @classmethod
    def build(
        cls,
        session_factory: Callable[[], Session],
        scheduler: Scheduler,
        storage: BlobStorage,
        notifier: Optional[NotificationSink] = None,
        feed: Optional[ChangeFeed] = None,
        auto_reply_delay: Optional[float] = None,
        typing_timeout: Optional[float] = None,
    ) -> "ChatContext":
        feed = feed or ChangeFeed()
        conversations = ConversationService()
        messages = MessageService(feed=feed, conversations=conversations)
        return cls(
            session_factory=session_factory,
            feed=feed,
            storage=storage,
            scheduler=scheduler,
            notifier=notifier or LoggingNotificationSink(),
            conversations=conversations,
            messages=messages,
            auto_replies=AutoReplyService(
                session_factory, messages, scheduler, delay=auto_reply_delay
            ),
            typing=TypingCoordinator(session_factory, scheduler, timeout=typing_timeout),
            feedback=FeedbackService(),
        )

    def close(self) -> None:
        self.typing.close()
        self.feed.close()


class ChatSession:
    """
    Per-user chat controller.

    Every operation is a no-op while no user id is known. User-facing failures
    are reported through the notification sink instead of being raised.
    """

    def __init__(
        self,
        context: ChatContext,
        user_id: Optional[str],
        notifier: Optional[NotificationSink] = None,
    ):
        self.context = context
        self.user_id = user_id
        self.notifier = notifier or context.notifier
        self.conversation_id: Optional[int] = None
        self.model_id: Optional[str] = None
        self._model_matcher: Optional[AutoReplyMatcher] = None
        self.upload_state = UploadState.IDLE
        self.upload_progress = 0
        self._messages: List[ChatMessage] = []
        self._message_ids = set()
        self._subscription: Optional[Subscription] = None
        self._uploads = FileUploadPipeline(
            context.messages, context.storage, context.auto_replies, listener=self._on_upload
        )

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @contextmanager
    def _db(self):
        db = self.context.session_factory()
        try:
            yield db
        finally:
            db.close()

    # --- Conversations ---

    def open(self) -> Optional[int]:
        """Activate the user's most recent conversation, creating one if needed."""
        if not self.user_id:
            return None
        try:
            with self._db() as db:
                conversation = self.context.conversations.get_or_create_latest(db, self.user_id)
                self._activate(db, conversation.id)
        except Exception as e:
            logger.error(f"Error initializing conversation: {e}")
            self.notifier.error("Error", ERROR["CONVERSATION_INIT_FAILED"])
            return None
        return self.conversation_id

    def list_conversations(self) -> List[dict]:
        if not self.user_id:
            return []
        try:
            with self._db() as db:
                return self.context.conversations.list_conversations(db, self.user_id)
        except Exception as e:
            logger.error(f"Error loading conversations: {e}")
            self.notifier.error("Error", ERROR["CONVERSATION_LOAD_FAILED"])
            return []

    def select_conversation(self, conversation_id: int) -> bool:
        if not self.user_id:
            return False
        try:
            with self._db() as db:
                self.context.conversations.get_owned(db, conversation_id, self.user_id)
                self._activate(db, conversation_id)
        except ConversationNotFoundError as e:
            self.notifier.error("Error", e.message)
            return False
        except Exception as e:
            logger.error(f"Error loading messages: {e}")
            self.notifier.error("Error", ERROR["MESSAGE_LOAD_FAILED"])
            return False
        return True

    def new_conversation(self, title: Optional[str] = None) -> Optional[int]:
        if not self.user_id:
            return None
        try:
            with self._db() as db:
                conversation = self.context.conversations.create_conversation(
                    db, self.user_id, title
                )
                self._activate(db, conversation.id)
        except Exception as e:
            logger.error(f"Error creating conversation: {e}")
            self.notifier.error("Error", ERROR["CONVERSATION_CREATE_FAILED"])
            return None
        self.notifier.success("New conversation created", SUCCESS["CONVERSATION_CREATED"])
        return self.conversation_id

    def delete_conversation(self, conversation_id: int) -> bool:
        """Delete a conversation; if it was active, move to the most recent remaining one."""
        if not self.user_id:
            return False
        try:
            with self._db() as db:
                self.context.conversations.delete_conversation(db, conversation_id, self.user_id)
                if conversation_id == self.conversation_id:
                    self._deactivate()
                    conversation = self.context.conversations.get_or_create_latest(
                        db, self.user_id
                    )
                    self._activate(db, conversation.id)
        except ConversationNotFoundError as e:
            self.notifier.error("Error", e.message)
            return False
        except Exception as e:
            logger.error(f"Error deleting conversation: {e}")
            self.notifier.error("Error", ERROR["CONVERSATION_DELETE_FAILED"])
            return False
        self.notifier.success("Conversation deleted", SUCCESS["CONVERSATION_DELETED"])
        return True

    def rename_conversation(self, conversation_id: int, title: str) -> bool:
        if not self.user_id:
            return False
        try:
            with self._db() as db:
                self.context.conversations.rename_conversation(
                    db, conversation_id, self.user_id, title
                )
        except AppException as e:
            self.notifier.error("Error", e.message)
            return False
        except Exception as e:
            logger.error(f"Error updating conversation title: {e}")
            self.notifier.error("Error", ERROR["CONVERSATION_RENAME_FAILED"])
            return False
        self.notifier.success("Title updated", SUCCESS["CONVERSATION_RENAMED"])
        return True

    # --- Messages ---

    def send(self, text: str) -> Optional[TextMessage]:
        """Persist a text message and schedule its automated reply."""
        if not self.user_id or self.conversation_id is None:
            return None
        if not (text or "").strip():
            self.notifier.error("Error", ERROR["MESSAGE_EMPTY"])
            return None

        conversation_id = self.conversation_id
        try:
            with self._db() as db:
                message = self.context.messages.append_text_message(
                    db, conversation_id, self.user_id, text
                )
        except (MessageValidationError, ConversationNotFoundError) as e:
            self.notifier.error("Error", e.message)
            return None
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            self.notifier.error("Error", ERROR["MESSAGE_SEND_FAILED"])
            return None

        self._merge(message)
        self.context.typing.clear(conversation_id, self.user_id)
        self.context.auto_replies.schedule_reply(
            conversation_id, message.content, self._model_matcher
        )
        return message

    def send_question(self, question_id: str) -> Optional[TextMessage]:
        """
        Send the text of a quick question, as if the user had typed it. The
        selected scooter model's questions are offered alongside the general ones.
        """
        for entry in self.quick_questions:
            if entry.id == question_id:
                return self.send(entry.question)
        logger.warning(f"Unknown predefined question {question_id}")
        return None

    def select_model(self, model_id: Optional[str]) -> bool:
        """Scope quick questions and auto-replies to a scooter model; None clears it."""
        if model_id is None:
            self.model_id = None
            self._model_matcher = None
            return True
        try:
            matcher = self.context.auto_replies.matcher_for(model_id)
        except ScooterModelNotFoundError as e:
            self.notifier.error("Error", e.message)
            return False
        self.model_id = model_id
        self._model_matcher = matcher
        return True

    @property
    def quick_questions(self):
        matcher = self._model_matcher or self.context.auto_replies.matcher
        return list(matcher.questions)

    def keystroke(self) -> None:
        if not self.user_id or self.conversation_id is None:
            return
        self.context.typing.keystroke(self.conversation_id, self.user_id)

    def upload(self, file_name: str, content_type: str, data: bytes) -> Optional[FileMessage]:
        if not self.user_id or self.conversation_id is None:
            return None
        try:
            with self._db() as db:
                message = self._uploads.upload(
                    db,
                    self.conversation_id,
                    self.user_id,
                    UploadedFile(file_name=file_name, content_type=content_type, data=data),
                )
        except FileValidationError as e:
            title = "Invalid file type" if e.reason == "type" else "File too large"
            self.notifier.error(title, e.message)
            return None
        except AppException:
            self.notifier.error("Upload failed", ERROR["UPLOAD_FAILED"])
            return None

        self._merge(message)
        self.notifier.success("File uploaded", SUCCESS["FILE_UPLOADED"])
        return message

    # --- Realtime ---

    def apply_event(self, change: ChangeEvent) -> bool:
        """Merge a realtime insert into the local list; True if it was added."""
        if self.conversation_id is None or change.conversation_id != self.conversation_id:
            return False
        return self._merge(change.record)

    def drain(self) -> List[ChatMessage]:
        """Apply every queued realtime event and return the messages it added."""
        if self._subscription is None:
            return []
        added = []
        for change in self._subscription.drain():
            if self.apply_event(change):
                added.append(change.record)
        return added

    async def next_message(self) -> Optional[ChatMessage]:
        """Wait for the next realtime message that changes the local list."""
        while self._subscription is not None:
            subscription = self._subscription
            change = await subscription.get()
            if change is None:
                # Closed, possibly replaced by a conversation switch
                if subscription is self._subscription:
                    return None
                continue
            if self.apply_event(change):
                return change.record
        return None

    def close(self) -> None:
        self._deactivate()

    # --- Internals ---

    def _activate(self, db: Session, conversation_id: int) -> None:
        self._deactivate()
        self.conversation_id = conversation_id
        self._subscription = self.context.feed.subscribe(conversation_id)
        self._messages = self.context.messages.load_messages(db, conversation_id)
        self._message_ids = {m.id for m in self._messages}
        logger.info(f"User {self.user_id} switched to conversation {conversation_id}")

    def _deactivate(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        self.conversation_id = None
        self._messages = []
        self._message_ids = set()

    def _merge(self, message: ChatMessage) -> bool:
        if message.conversation_id != self.conversation_id or message.id in self._message_ids:
            return False
        self._message_ids.add(message.id)
        self._messages.append(message)
        return True

    def _on_upload(self, state: UploadState, progress: int) -> None:
        self.upload_state = state
        self.upload_progress = progress
