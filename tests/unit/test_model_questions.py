"""
Tests for scooter-model-specific quick questions.
"""
import pytest

from app.config import settings
from app.core.exceptions import ScooterModelNotFoundError
from app.services.auto_reply_service import (
    FALLBACK_REPLY,
    list_scooter_models,
    load_model_questions,
)
from app.services.chat_session import ChatSession

USER_ID = "user-1"

GLIDE_SPEED = "The Glide 200 reaches 25 km/h."


@pytest.mark.unit
class TestModelCatalogue:
    def test_lists_active_models_by_name(self, test_db, scooter_models):
        assert [m.id for m in list_scooter_models(test_db)] == ["apex-500", "glide-200"]

    def test_questions_in_display_order_without_inactive(self, test_db, scooter_models):
        rows = load_model_questions(test_db, "glide-200")
        assert [r.id for r in rows] == ["g200-speed", "g200-beep"]

    @pytest.mark.parametrize("model_id", ["nope", "retro-1"])
    def test_unknown_or_retired_model_rejected(self, test_db, scooter_models, model_id):
        with pytest.raises(ScooterModelNotFoundError):
            load_model_questions(test_db, model_id)


@pytest.mark.unit
class TestModelMatcher:
    def test_model_answer_takes_precedence(self, chat_context, scooter_models):
        glide = chat_context.auto_replies.matcher_for("glide-200")
        apex = chat_context.auto_replies.matcher_for("apex-500")

        assert glide.reply_for("what is the top speed?") == GLIDE_SPEED
        assert apex.reply_for("What is the top speed?") == "The Apex 500 reaches 45 km/h."

    def test_general_questions_still_match(self, chat_context, scooter_models):
        matcher = chat_context.auto_replies.matcher_for("glide-200")

        assert matcher.reply_for("How can I track my order?").startswith("You can track your order")
        assert matcher.reply_for("Is there a seat kit?") == FALLBACK_REPLY

    def test_without_model_only_general_questions(self, chat_context, scooter_models):
        assert chat_context.auto_replies.matcher_for(None).reply_for("What is the top speed?") == FALLBACK_REPLY

    def test_scheduled_reply_uses_model_answer(self, test_db, chat_context, scheduler, conversation, scooter_models):
        matcher = chat_context.auto_replies.matcher_for("glide-200")
        chat_context.auto_replies.schedule_reply(conversation.id, "What is the top speed?", matcher)
        scheduler.advance(1.0)

        [reply] = chat_context.messages.load_messages(test_db, conversation.id)
        assert reply.content == f"{settings.AUTO_REPLY_TAG} {GLIDE_SPEED}"


@pytest.mark.unit
class TestSessionModelSelection:
    @pytest.fixture
    def session(self, chat_context, scooter_models):
        session = ChatSession(chat_context, USER_ID)
        session.open()
        yield session
        session.close()

    def test_model_question_gets_model_answer(self, session, scheduler):
        assert session.select_model("glide-200")

        sent = session.send_question("g200-speed")
        scheduler.advance(1.0)
        session.drain()

        assert sent.content == "What is the top speed?"
        assert session.messages[-1].content == f"{settings.AUTO_REPLY_TAG} {GLIDE_SPEED}"

    def test_quick_questions_include_model_and_general(self, session):
        session.select_model("glide-200")
        ids = [q.id for q in session.quick_questions]

        assert ids[:2] == ["g200-speed", "g200-beep"]
        assert "delivery-1" in ids

    def test_other_models_questions_not_offered(self, session):
        session.select_model("apex-500")
        assert session.send_question("g200-beep") is None

    def test_unknown_model_notifies_and_keeps_selection(self, session, notifier):
        session.select_model("glide-200")

        assert not session.select_model("retro-1")
        assert session.model_id == "glide-200"
        assert notifier.errors[-1].message == "Scooter model not found"

    def test_clearing_model_falls_back_to_general(self, session, scheduler):
        session.select_model("glide-200")
        assert session.select_model(None)

        session.send("What is the top speed?")
        scheduler.advance(1.0)
        session.drain()

        assert session.messages[-1].content.endswith(FALLBACK_REPLY)
