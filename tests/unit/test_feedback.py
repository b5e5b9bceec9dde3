"""
Tests for message feedback.
"""
import pytest

from app.core.exceptions import MessageNotFoundError, MessageValidationError
from app.models.chat_history import MessageFeedback

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def message(test_db, chat_context, conversation):
    return chat_context.messages.append_text_message(
        test_db, conversation.id, "system", "[Auto-Reply] Try restarting the scooter."
    )


@pytest.mark.unit
class TestFeedbackService:
    def test_submit_and_read_back(self, test_db, chat_context, message):
        feedback = chat_context.feedback.submit(test_db, message.id, USER_ID, "positive")

        assert feedback.feedback_type == "positive"
        assert chat_context.feedback.get_feedback(test_db, message.id, USER_ID).id == feedback.id

    def test_second_submit_updates_in_place(self, test_db, chat_context, message):
        chat_context.feedback.submit(test_db, message.id, USER_ID, "positive")
        chat_context.feedback.submit(test_db, message.id, USER_ID, "negative", "Did not help")

        rows = test_db.query(MessageFeedback).all()
        assert len(rows) == 1
        assert rows[0].feedback_type == "negative"
        assert rows[0].feedback_comment == "Did not help"

    def test_invalid_type_rejected(self, test_db, chat_context, message):
        with pytest.raises(MessageValidationError) as exc_info:
            chat_context.feedback.submit(test_db, message.id, USER_ID, "meh")
        assert exc_info.value.error_code == "INVALID_FEEDBACK_TYPE"

    def test_other_users_message_is_not_found(self, test_db, chat_context, message):
        with pytest.raises(MessageNotFoundError):
            chat_context.feedback.submit(test_db, message.id, OTHER_USER_ID, "positive")
        assert test_db.query(MessageFeedback).count() == 0

    def test_unknown_message(self, test_db, chat_context):
        with pytest.raises(MessageNotFoundError):
            chat_context.feedback.get_feedback(test_db, 12345, USER_ID)
