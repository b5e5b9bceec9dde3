from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field

from app.config import settings
from app.models.chat_history import Message, MESSAGE_TYPE_FILE, MESSAGE_TYPE_TEXT


# --- Messages ---
class FileDescriptor(BaseModel):
    url: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    type: str = Field(..., min_length=1)


class MessageBase(BaseModel):
    id: int
    conversation_id: int
    author_id: str
    created_at: datetime
    is_auto_reply: bool = False


class TextMessage(MessageBase):
    kind: Literal["text"] = MESSAGE_TYPE_TEXT
    content: str


class FileMessage(MessageBase):
    kind: Literal["file"] = MESSAGE_TYPE_FILE
    file: FileDescriptor


ChatMessage = Annotated[Union[TextMessage, FileMessage], Field(discriminator="kind")]


def to_message(row: Message, auto_reply_author: str = None) -> Union[TextMessage, FileMessage]:
    """Convert a stored row into its tagged message variant."""
    if auto_reply_author is None:
        auto_reply_author = settings.AUTO_REPLY_AUTHOR_ID

    common = {
        "id": row.id,
        "conversation_id": row.conversation_id,
        "author_id": row.user_id,
        "created_at": row.created_at,
        "is_auto_reply": row.user_id == auto_reply_author,
    }
    if row.message_type == MESSAGE_TYPE_FILE:
        return FileMessage(
            file=FileDescriptor(
                url=row.file_url,
                name=row.file_name,
                size=row.file_size,
                type=row.file_type,
            ),
            **common,
        )
    return TextMessage(content=row.content or "", **common)


class MessageCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    model_id: Optional[str] = None  # scooter model whose questions take precedence

    class Config:
        protected_namespaces = ()


class ClearConversationResponse(BaseModel):
    deleted: int


# --- Conversations ---
class ConversationBase(BaseModel):
    title: Optional[str] = None


class ConversationCreate(ConversationBase):
    pass


class ConversationRename(BaseModel):
    title: str = Field(..., max_length=200)


class ConversationResponse(ConversationBase):
    id: int
    user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConversationSummary(ConversationResponse):
    first_message: Optional[str] = None
    display_title: str


# --- Typing ---
class TypingResponse(BaseModel):
    conversation_id: int
    typing_users: List[str]


# --- Uploads ---
class UploadResponse(BaseModel):
    message: FileMessage
    progress: int


# --- Feedback ---
class FeedbackCreate(BaseModel):
    feedback_type: str = Field(..., pattern="^(positive|negative)$")
    comment: Optional[str] = Field(None, max_length=2000)


class FeedbackResponse(BaseModel):
    id: int
    message_id: int
    user_id: str
    feedback_type: str
    feedback_comment: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Predefined questions ---
class QuestionResponse(BaseModel):
    id: str
    category: str
    question: str
    answer: str


class QuestionCategoriesResponse(BaseModel):
    categories: Dict[str, List[QuestionResponse]]


# --- Scooter models ---
class ScooterModelResponse(BaseModel):
    id: str
    model_name: str
    model_code: str
    max_speed: Optional[int] = None
    range_km: Optional[int] = None
    battery_capacity: Optional[str] = None
    motor_power: Optional[str] = None
    price: Optional[float] = None

    class Config:
        from_attributes = True
        protected_namespaces = ()


class ModelQuestionResponse(BaseModel):
    id: str
    question: str
    answer: str
    question_type: str
    category: str

    class Config:
        from_attributes = True


class ModelQuestionsResponse(BaseModel):
    model_id: str
    question_types: Dict[str, List[ModelQuestionResponse]]

    class Config:
        protected_namespaces = ()
