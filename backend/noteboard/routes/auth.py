"""
NoteBoard Backend - Auth Route Handlers
=======================================

What:  POST /api/auth/sign-out.
How:   Delegates to the platform's auth service through the session's board.
       A failed platform sign-out is logged, never reported to the client;
       the local board is dropped either way.
"""

from fastapi import APIRouter, Depends, Response

from noteboard.routes.dependencies import get_registry, get_session_token
from noteboard.schemas.note import ErrorResponse
from noteboard.services.session_registry import SessionRegistry

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/sign-out",
    status_code=204,
    responses={401: {"description": "No session token", "model": ErrorResponse}},
    summary="Sign out and drop the session's board",
)
async def sign_out(
    token: str = Depends(get_session_token),
    registry: SessionRegistry = Depends(get_registry),
) -> Response:
    await registry.sign_out(token)
    return Response(status_code=204)
