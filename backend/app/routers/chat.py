"""
Support chat API: conversations, messages, uploads, typing, feedback and a
websocket for realtime delivery.
"""

import asyncio
import logging
from typing import List

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Query,
    Request,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.config import settings
from app.core import security
from app.core.limiter import limiter
from app.core.messages import ERROR
from app.data.predefined_questions import QUESTION_CATEGORIES
from app.database import get_db
from app.dependencies import get_chat_context, get_current_user
from app.schemas import (
    ChatMessage,
    ClearConversationResponse,
    ConversationCreate,
    ConversationRename,
    ConversationResponse,
    ConversationSummary,
    FeedbackCreate,
    FeedbackResponse,
    MessageCreate,
    ModelQuestionsResponse,
    QuestionCategoriesResponse,
    QuestionResponse,
    ScooterModelResponse,
    TextMessage,
    TypingResponse,
    UploadResponse,
)
from app.models.scooter_model import QUESTION_TYPES
from app.services.auto_reply_service import list_scooter_models, load_model_questions
from app.services.chat_session import ChatContext, ChatSession
from app.services.notifications import QueueNotificationSink
from app.services.upload_service import FileUploadPipeline, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/questions", response_model=QuestionCategoriesResponse)
async def list_questions(context: ChatContext = Depends(get_chat_context)):
    """Predefined quick questions grouped by category."""
    categories = {category: [] for category in QUESTION_CATEGORIES}
    for entry in context.auto_replies.matcher.questions:
        categories.setdefault(entry.category, []).append(
            QuestionResponse(
                id=entry.id, category=entry.category, question=entry.question, answer=entry.answer
            )
        )
    return {"categories": categories}


@router.get("/models", response_model=List[ScooterModelResponse])
async def list_models(db: Session = Depends(get_db)):
    """Active scooter models, by name."""
    return list_scooter_models(db)


@router.get("/models/{model_id}/questions", response_model=ModelQuestionsResponse)
async def list_model_questions(model_id: str, db: Session = Depends(get_db)):
    """Quick questions of one scooter model grouped by question type."""
    question_types = {question_type: [] for question_type in QUESTION_TYPES}
    for row in load_model_questions(db, model_id):
        question_types.setdefault(row.question_type, []).append(row)
    return {"model_id": model_id, "question_types": question_types}


# --- Conversations ---


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    """List the user's conversations, most recently updated first."""
    return context.conversations.list_conversations(db, user_id)


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    request: ConversationCreate = Body(default=ConversationCreate()),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    return context.conversations.create_conversation(db, user_id, request.title)


@router.post("/conversations/latest", response_model=ConversationResponse)
async def get_or_create_latest_conversation(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    """Conversation the chat opens on; created on first use."""
    return context.conversations.get_or_create_latest(db, user_id)


@router.patch("/conversations/{conversation_id}", response_model=ConversationResponse)
async def rename_conversation(
    conversation_id: int,
    request: ConversationRename,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    return context.conversations.rename_conversation(db, conversation_id, user_id, request.title)


@router.delete("/conversations/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    context.conversations.delete_conversation(db, conversation_id, user_id)


# --- Messages ---


@router.get("/conversations/{conversation_id}/messages", response_model=List[ChatMessage])
async def get_messages(
    conversation_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    """Get all messages of a conversation, oldest first."""
    context.conversations.get_owned(db, conversation_id, user_id)
    return context.messages.load_messages(db, conversation_id)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=TextMessage,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.MESSAGE_RATE_LIMIT)
async def send_message(
    request: Request,
    conversation_id: int,
    body: MessageCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    """Send a message; the automated reply follows after a short delay."""
    context.conversations.get_owned(db, conversation_id, user_id)
    matcher = context.auto_replies.matcher_for(body.model_id)
    message = context.messages.append_text_message(db, conversation_id, user_id, body.content)
    context.typing.clear(conversation_id, user_id)
    context.auto_replies.schedule_reply(conversation_id, message.content, matcher)
    return message


@router.delete(
    "/conversations/{conversation_id}/messages", response_model=ClearConversationResponse
)
async def clear_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    deleted = context.messages.clear_conversation(db, conversation_id, user_id)
    return {"deleted": deleted}


@router.post(
    "/conversations/{conversation_id}/files",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.UPLOAD_RATE_LIMIT)
async def upload_file(
    request: Request,
    conversation_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    """Upload an attachment and post it as a file message."""
    context.conversations.get_owned(db, conversation_id, user_id)

    progress = []
    pipeline = FileUploadPipeline(
        context.messages,
        context.storage,
        context.auto_replies,
        listener=lambda state, value: progress.append(value),
    )
    data = await file.read()
    message = pipeline.upload(
        db,
        conversation_id,
        user_id,
        UploadedFile(
            file_name=file.filename or "upload",
            content_type=file.content_type,
            data=data,
        ),
    )
    return {"message": message, "progress": max(progress)}


# --- Typing ---


@router.post("/conversations/{conversation_id}/typing", response_model=TypingResponse)
async def keystroke(
    conversation_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    context.conversations.get_owned(db, conversation_id, user_id)
    context.typing.keystroke(conversation_id, user_id)
    return {
        "conversation_id": conversation_id,
        "typing_users": context.typing.typing_users(db, conversation_id),
    }


@router.get("/conversations/{conversation_id}/typing", response_model=TypingResponse)
async def get_typing_users(
    conversation_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    context.conversations.get_owned(db, conversation_id, user_id)
    return {
        "conversation_id": conversation_id,
        "typing_users": context.typing.typing_users(db, conversation_id),
    }


# --- Feedback ---


@router.put("/messages/{message_id}/feedback", response_model=FeedbackResponse)
async def submit_feedback(
    message_id: int,
    request: FeedbackCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
    context: ChatContext = Depends(get_chat_context),
):
    return context.feedback.submit(
        db, message_id, user_id, request.feedback_type, request.comment
    )


# --- Realtime ---


def _snapshot(session: ChatSession) -> dict:
    return {
        "type": "snapshot",
        "conversation_id": session.conversation_id,
        "messages": [m.model_dump(mode="json") for m in session.messages],
    }


def _message_frame(message) -> dict:
    return {"type": "message", "message": message.model_dump(mode="json")}


def _questions_frame(session: ChatSession) -> dict:
    return {
        "type": "questions",
        "model_id": session.model_id,
        "questions": [
            {"id": q.id, "category": q.category, "question": q.question}
            for q in session.quick_questions
        ],
    }


@router.websocket("/ws")
async def chat_websocket(websocket: WebSocket, token: str = Query(...)):
    """
    Chat over a websocket.

    Client commands: send, question, typing, model, select, new.
    Server frames: snapshot, message, questions, notification.
    """
    user_id = security.decode_user_id(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    notifications = QueueNotificationSink()
    session = ChatSession(websocket.app.state.chat_context, user_id, notifier=notifications)
    session.open()
    await websocket.send_json(_snapshot(session))

    async def push_messages():
        while True:
            message = await session.next_message()
            if message is None:
                await asyncio.sleep(0.1)
                continue
            await websocket.send_json(_message_frame(message))

    async def push_notifications():
        while True:
            notification = await notifications.get()
            await websocket.send_json({"type": "notification", **notification.to_dict()})

    def reject(reason: str) -> None:
        logger.warning(f"Invalid websocket command from user {user_id}: {reason}")
        notifications.error("Invalid command", ERROR["INVALID_COMMAND"])

    async def handle(command: dict) -> None:
        kind = command.get("type")
        if kind == "send":
            content = command.get("content", "")
            if not isinstance(content, str):
                return reject("content must be a string")
            message = session.send(content)
            if message is not None:
                await websocket.send_json(_message_frame(message))
        elif kind == "question":
            question_id = command.get("question_id")
            if not isinstance(question_id, str):
                return reject("question_id must be a string")
            message = session.send_question(question_id)
            if message is not None:
                await websocket.send_json(_message_frame(message))
        elif kind == "typing":
            session.keystroke()
        elif kind == "model":
            model_id = command.get("model_id")
            if model_id is not None and not isinstance(model_id, str):
                return reject("model_id must be a string")
            if session.select_model(model_id):
                await websocket.send_json(_questions_frame(session))
        elif kind == "select":
            try:
                conversation_id = int(command.get("conversation_id"))
            except (TypeError, ValueError):
                return reject(f"bad conversation_id {command.get('conversation_id')!r}")
            if session.select_conversation(conversation_id):
                await websocket.send_json(_snapshot(session))
        elif kind == "new":
            title = command.get("title")
            if title is not None and not isinstance(title, str):
                return reject("title must be a string")
            if session.new_conversation(title) is not None:
                await websocket.send_json(_snapshot(session))
        else:
            reject(f"unknown type {kind!r}")

    async def read_commands():
        while True:
            try:
                command = await websocket.receive_json()
            except ValueError:
                reject("frame is not JSON")
                continue
            if not isinstance(command, dict):
                reject("frame is not an object")
                continue
            await handle(command)

    tasks = [
        asyncio.create_task(read_commands()),
        asyncio.create_task(push_messages()),
        asyncio.create_task(push_notifications()),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error(f"WebSocket error for user {user_id}: {exc}")
    finally:
        for task in tasks:
            task.cancel()
        session.close()
        logger.info(f"WebSocket closed for user {user_id}")
