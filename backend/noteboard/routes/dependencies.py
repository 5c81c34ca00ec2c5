"""
NoteBoard Backend - Route Dependencies
======================================

What:  FastAPI dependencies resolving the caller's session and board.
How:   The bearer token issued by the platform's hosted sign-in identifies
       the session; the registry maps it to a NoteBoard.
"""

from typing import Optional

from fastapi import Depends, Header

from noteboard.exceptions import AuthenticationError
from noteboard.services.note_board import NoteBoard
from noteboard.services.session_registry import SessionRegistry, session_registry


def get_registry() -> SessionRegistry:
    """The process-wide registry (overridden in tests)."""
    return session_registry


async def get_session_token(
    authorization: Optional[str] = Header(default=None),
) -> str:
    """
    Extract the bearer token from the Authorization header.

    Raises:
        AuthenticationError: Header missing or not of the form 'Bearer <token>'
    """
    if not authorization:
        raise AuthenticationError()

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError(message="Authorization header must be 'Bearer <token>'.")
    return token


async def get_board(
    token: str = Depends(get_session_token),
    registry: SessionRegistry = Depends(get_registry),
) -> NoteBoard:
    """The caller's NoteBoard, mounted on first access."""
    return await registry.get_or_create(token)
