"""
Shared API dependencies.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core import security
from app.services.chat_session import ChatContext

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """
    Validate the provider's access token and return the opaque user id.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    user_id = security.decode_user_id(credentials.credentials)
    if user_id is None:
        raise credentials_exception

    return user_id


def get_chat_context(request: Request) -> ChatContext:
    return request.app.state.chat_context
