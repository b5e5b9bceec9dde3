"""
Tests for predefined-question matching and delayed auto-replies.
"""
import logging
from unittest.mock import Mock

import pytest

from app.config import settings
from app.data.predefined_questions import PREDEFINED_QUESTIONS
from app.models.chat_history import Message
from app.models.predefined_question import PredefinedQuestion
from app.services.auto_reply_service import (
    FALLBACK_REPLY,
    AutoReplyMatcher,
    AutoReplyService,
    file_category,
    load_questions,
    seed_predefined_questions,
)

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

TRACK_ORDER_ANSWER = next(q.answer for q in PREDEFINED_QUESTIONS if q.id == "delivery-1")


@pytest.mark.unit
class TestAutoReplyMatcher:
    @pytest.fixture
    def matcher(self):
        return AutoReplyMatcher(PREDEFINED_QUESTIONS)

    def test_every_question_yields_its_answer(self, matcher):
        for entry in PREDEFINED_QUESTIONS:
            assert matcher.reply_for(entry.question) == entry.answer
            assert matcher.reply_for(f"  {entry.question.upper()}\n") == entry.answer

    def test_casing_and_surrounding_whitespace_are_ignored(self, matcher):
        entry = matcher.match("   how CAN i track my ORDER?  ")
        assert entry is not None
        assert entry.id == "delivery-1"

    def test_partial_text_falls_back(self, matcher):
        assert matcher.match("track my order") is None
        assert matcher.reply_for("How can I track my order") == FALLBACK_REPLY
        assert matcher.reply_for("How can I track my order? Thanks") == FALLBACK_REPLY

    def test_inner_whitespace_is_significant(self, matcher):
        assert matcher.reply_for("How can I  track my order?") == FALLBACK_REPLY

    def test_empty_text_falls_back(self, matcher):
        assert matcher.reply_for("") == FALLBACK_REPLY
        assert matcher.reply_for(None) == FALLBACK_REPLY


@pytest.mark.unit
@pytest.mark.parametrize(
    "content_type, label",
    [
        ("image/png", "image"),
        ("image/jpeg", "image"),
        ("video/mp4", "video"),
        ("application/pdf", "document"),
        ("application/zip", "file"),
        (None, "file"),
    ],
)
def test_file_category(content_type, label):
    assert file_category(content_type) == label


@pytest.mark.unit
class TestQuestionSource:
    def test_static_list_used_when_table_is_empty(self, test_db):
        questions = load_questions(test_db)
        assert [q.id for q in questions] == [q.id for q in PREDEFINED_QUESTIONS]

    def test_seed_is_idempotent(self, test_db):
        assert seed_predefined_questions(test_db) == len(PREDEFINED_QUESTIONS)
        assert seed_predefined_questions(test_db) == 0
        assert test_db.query(PredefinedQuestion).count() == len(PREDEFINED_QUESTIONS)

    def test_table_rows_replace_static_list(self, test_db):
        test_db.add(
            PredefinedQuestion(
                id="custom-1",
                category="Delivery",
                question="Do you ship abroad?",
                answer="Yes, to all EU countries.",
                display_order=0,
            )
        )
        test_db.add(
            PredefinedQuestion(
                id="custom-2",
                category="Delivery",
                question="Hidden question",
                answer="Hidden answer",
                is_active=False,
            )
        )
        test_db.commit()

        matcher = AutoReplyMatcher(load_questions(test_db))
        assert matcher.reply_for("do you ship abroad?") == "Yes, to all EU countries."
        assert matcher.reply_for("Hidden question") == FALLBACK_REPLY
        assert matcher.reply_for("How can I track my order?") == FALLBACK_REPLY


@pytest.mark.unit
class TestAutoReplyService:
    def _replies(self, test_db, conversation_id):
        test_db.expire_all()
        return (
            test_db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.user_id == settings.AUTO_REPLY_AUTHOR_ID,
            )
            .order_by(Message.id)
            .all()
        )

    def test_reply_is_persisted_after_delay(self, test_db, chat_context, scheduler, conversation):
        chat_context.auto_replies.schedule_reply(conversation.id, "How can I track my order?")

        scheduler.advance(0.999)
        assert self._replies(test_db, conversation.id) == []

        scheduler.advance(0.01)
        replies = self._replies(test_db, conversation.id)
        assert len(replies) == 1
        assert replies[0].content == f"{settings.AUTO_REPLY_TAG} {TRACK_ORDER_ANSWER}"

    def test_each_send_schedules_its_own_reply(self, test_db, chat_context, scheduler, conversation):
        chat_context.auto_replies.schedule_reply(conversation.id, "hello")
        scheduler.advance(0.5)
        chat_context.auto_replies.schedule_reply(conversation.id, "What payment methods do you accept?")

        scheduler.advance(0.5)
        assert len(self._replies(test_db, conversation.id)) == 1

        scheduler.advance(0.5)
        replies = self._replies(test_db, conversation.id)
        assert len(replies) == 2
        assert replies[0].content.endswith(FALLBACK_REPLY)
        assert "payment" in replies[1].content.lower()

    def test_reply_text_is_decided_at_send_time(self, session_factory, scheduler):
        matcher = AutoReplyMatcher(PREDEFINED_QUESTIONS)
        message_service = Mock()
        service = AutoReplyService(session_factory, message_service, scheduler, 1.0, matcher=matcher)

        service.schedule_reply(7, "How can I track my order?")
        service._matcher = AutoReplyMatcher([])
        scheduler.advance(1.0)

        args = message_service.append_text_message.call_args[0]
        assert args[1:] == (
            7,
            settings.AUTO_REPLY_AUTHOR_ID,
            f"{settings.AUTO_REPLY_TAG} {TRACK_ORDER_ANSWER}",
        )

    def test_persistence_failure_is_swallowed(self, session_factory, scheduler, caplog):
        message_service = Mock()
        message_service.append_text_message.side_effect = RuntimeError("database is gone")
        service = AutoReplyService(
            session_factory,
            message_service,
            scheduler,
            1.0,
            matcher=AutoReplyMatcher(PREDEFINED_QUESTIONS),
        )

        service.schedule_reply(1, "hi")
        assert scheduler.advance(1.0) == 1
        assert "Error sending auto-reply" in caplog.text

    def test_file_acknowledgement_names_file_and_category(
        self, test_db, chat_context, scheduler, conversation
    ):
        chat_context.auto_replies.schedule_file_ack(conversation.id, "invoice.pdf", "application/pdf")
        scheduler.advance(1.0)

        replies = self._replies(test_db, conversation.id)
        assert len(replies) == 1
        assert replies[0].content.startswith(settings.AUTO_REPLY_TAG)
        assert '"invoice.pdf"' in replies[0].content
        assert "document" in replies[0].content

    def test_track_order_scenario(self, test_db, chat_context, scheduler, conversation):
        sent = chat_context.messages.append_text_message(
            test_db, conversation.id, USER_ID, "How can I track my order?"
        )
        chat_context.auto_replies.schedule_reply(conversation.id, sent.content)
        scheduler.advance(1.0)

        messages = chat_context.messages.load_messages(test_db, conversation.id)
        assert [m.author_id for m in messages] == [USER_ID, settings.AUTO_REPLY_AUTHOR_ID]
        assert messages[1].is_auto_reply
        assert messages[1].content == f"{settings.AUTO_REPLY_TAG} {TRACK_ORDER_ANSWER}"

    def test_reply_dropped_when_conversation_deleted_while_pending(
        self, test_db, chat_context, scheduler, conversation, caplog
    ):
        caplog.set_level(logging.INFO)
        conversation_id = conversation.id
        chat_context.auto_replies.schedule_reply(conversation_id, "How can I track my order?")
        chat_context.conversations.delete_conversation(test_db, conversation_id, USER_ID)
        theirs = chat_context.conversations.get_or_create_latest(test_db, OTHER_USER_ID)

        assert scheduler.advance(1.0) == 1

        assert theirs.id != conversation_id
        assert chat_context.messages.load_messages(test_db, theirs.id) == []
        test_db.expire_all()
        assert test_db.query(Message).count() == 0
        assert "Dropped auto-reply" in caplog.text
