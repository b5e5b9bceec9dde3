"""
Predefined-question auto-replies.

A sent text is matched against the predefined questions by trimmed,
case-insensitive equality on the full question text. Every send produces a
reply: the matched answer, or a fixed fallback. Replies are persisted after a
short delay under the auto-reply author id, and dropped if the conversation
was deleted in the meantime.

With a scooter model selected, that model's questions are matched first.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import ConversationNotFoundError, ScooterModelNotFoundError
from app.data.predefined_questions import PREDEFINED_QUESTIONS, QuestionEntry
from app.models.predefined_question import PredefinedQuestion
from app.models.scooter_model import ModelQuestion, ScooterModel
from app.services.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "Thanks for your message! Our support team will get back to you shortly. "
    "Meanwhile, you can pick one of the quick questions for an instant answer."
)

FILE_ACK_TEMPLATE = (
    'Thanks for sharing the {category} "{file_name}". '
    "Our support team will review it and get back to you shortly."
)


def file_category(content_type: Optional[str]) -> str:
    """Coarse label used in file acknowledgements."""
    content_type = (content_type or "").lower()
    if content_type.startswith("image/"):
        return "image"
    if content_type.startswith("video/"):
        return "video"
    if content_type == "application/pdf":
        return "document"
    return "file"


class AutoReplyMatcher:
    def __init__(self, questions: Sequence[QuestionEntry]):
        self.questions = list(questions)
        self._index: Dict[str, QuestionEntry] = {}
        for entry in self.questions:
            # First entry wins when two questions normalize the same
            self._index.setdefault(self.normalize(entry.question), entry)

    @staticmethod
    def normalize(text: Optional[str]) -> str:
        return (text or "").strip().lower()

    def match(self, text: str) -> Optional[QuestionEntry]:
        return self._index.get(self.normalize(text))

    def reply_for(self, text: str) -> str:
        entry = self.match(text)
        if entry is None:
            return FALLBACK_REPLY
        return entry.answer


def load_questions(db: Session) -> List[QuestionEntry]:
    """
    Active questions from the admin table, or the static list when the table
    has no active rows.
    """
    rows = (
        db.query(PredefinedQuestion)
        .filter(PredefinedQuestion.is_active.is_(True))
        .order_by(PredefinedQuestion.category, PredefinedQuestion.display_order)
        .all()
    )
    if not rows:
        return list(PREDEFINED_QUESTIONS)
    return [
        QuestionEntry(id=row.id, category=row.category, question=row.question, answer=row.answer)
        for row in rows
    ]


def list_scooter_models(db: Session) -> List[ScooterModel]:
    return (
        db.query(ScooterModel)
        .filter(ScooterModel.is_active.is_(True))
        .order_by(ScooterModel.model_name.asc())
        .all()
    )


def load_model_questions(db: Session, model_id: str) -> List[ModelQuestion]:
    """Active questions of an active scooter model, in display order."""
    model = (
        db.query(ScooterModel)
        .filter(ScooterModel.id == model_id, ScooterModel.is_active.is_(True))
        .first()
    )
    if model is None:
        raise ScooterModelNotFoundError(model_id)
    return (
        db.query(ModelQuestion)
        .filter(ModelQuestion.model_id == model_id, ModelQuestion.is_active.is_(True))
        .order_by(ModelQuestion.display_order.asc(), ModelQuestion.id.asc())
        .all()
    )


def seed_predefined_questions(db: Session) -> int:
    """Insert the static questions that are missing from the admin table."""
    existing = {row[0] for row in db.query(PredefinedQuestion.id).all()}
    added = 0
    for position, entry in enumerate(PREDEFINED_QUESTIONS):
        if entry.id in existing:
            continue
        db.add(
            PredefinedQuestion(
                id=entry.id,
                category=entry.category,
                question=entry.question,
                answer=entry.answer,
                is_active=True,
                display_order=position,
            )
        )
        added += 1
    if added:
        db.commit()
        logger.info(f"Seeded {added} predefined questions")
    return added


class AutoReplyService:
    """
    Schedules delayed automated replies.

    The reply text is decided when the triggering message is sent; only its
    persistence is delayed. Pending replies cannot be cancelled and each send
    schedules its own, so several may be in flight at once.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        message_service,
        scheduler: Scheduler,
        delay: Optional[float] = None,
        matcher: Optional[AutoReplyMatcher] = None,
    ):
        self.session_factory = session_factory
        self.message_service = message_service
        self.scheduler = scheduler
        self.delay = settings.AUTO_REPLY_DELAY_SECONDS if delay is None else delay
        self._matcher = matcher

    @property
    def matcher(self) -> AutoReplyMatcher:
        if self._matcher is None:
            self.reload()
        return self._matcher

    def reload(self) -> AutoReplyMatcher:
        db = self.session_factory()
        try:
            self._matcher = AutoReplyMatcher(load_questions(db))
        finally:
            db.close()
        logger.info(f"Loaded {len(self._matcher.questions)} predefined questions")
        return self._matcher

    def matcher_for(self, model_id: Optional[str] = None) -> AutoReplyMatcher:
        """
        Matcher for sends made with a scooter model selected. The model's own
        questions take precedence over the general ones.

        Raises ScooterModelNotFoundError for an unknown or inactive model.
        """
        if model_id is None:
            return self.matcher
        db = self.session_factory()
        try:
            rows = load_model_questions(db, model_id)
            model_questions = [
                QuestionEntry(id=row.id, category=row.category, question=row.question, answer=row.answer)
                for row in rows
            ]
        finally:
            db.close()
        return AutoReplyMatcher(model_questions + self.matcher.questions)

    def compose_reply(self, text: str, matcher: Optional[AutoReplyMatcher] = None) -> str:
        matcher = matcher or self.matcher
        return f"{settings.AUTO_REPLY_TAG} {matcher.reply_for(text)}"

    def compose_file_ack(self, file_name: str, content_type: Optional[str]) -> str:
        body = FILE_ACK_TEMPLATE.format(category=file_category(content_type), file_name=file_name)
        return f"{settings.AUTO_REPLY_TAG} {body}"

    def schedule_reply(
        self, conversation_id: int, text: str, matcher: Optional[AutoReplyMatcher] = None
    ) -> ScheduledTask:
        reply = self.compose_reply(text, matcher)
        logger.debug(f"Scheduling auto-reply for conversation {conversation_id}")
        return self.scheduler.call_later(self.delay, lambda: self._persist(conversation_id, reply))

    def schedule_file_ack(
        self, conversation_id: int, file_name: str, content_type: Optional[str]
    ) -> ScheduledTask:
        reply = self.compose_file_ack(file_name, content_type)
        logger.debug(f"Scheduling file acknowledgement for conversation {conversation_id}")
        return self.scheduler.call_later(self.delay, lambda: self._persist(conversation_id, reply))

    def _persist(self, conversation_id: int, reply: str) -> None:
        db = self.session_factory()
        try:
            self.message_service.append_text_message(
                db, conversation_id, settings.AUTO_REPLY_AUTHOR_ID, reply
            )
        except ConversationNotFoundError:
            db.rollback()
            logger.info(f"Dropped auto-reply for deleted conversation {conversation_id}")
        except Exception as e:
            # Not surfaced to the user
            db.rollback()
            logger.error(f"Error sending auto-reply to conversation {conversation_id}: {e}")
        finally:
            db.close()
