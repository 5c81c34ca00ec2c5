"""
NoteBoard Backend - Auth Client
===============================

What:  httpx implementation of AuthClient.
How:   GET /user returns {"username", "userId"}; POST /sign-out ends the
       session on the platform. A 401 surfaces as AuthenticationError.
"""

from pydantic import ValidationError as PydanticValidationError

from noteboard.clients.base import AuthClient
from noteboard.clients.transport import PlatformTransport
from noteboard.exceptions import AuthServiceError
from noteboard.schemas.note import CurrentUser


class HttpAuthClient(AuthClient):
    """Session-bound auth calls over the platform's REST auth API."""

    def __init__(self, transport: PlatformTransport):
        self.transport = transport

    async def get_current_user(self) -> CurrentUser:
        payload = await self.transport.request(
            "GET",
            "user",
            operation="look up the signed-in user",
        )
        try:
            return CurrentUser.model_validate(payload or {})
        except PydanticValidationError:
            raise AuthServiceError(message="The auth service returned a malformed user.")

    async def sign_out(self) -> None:
        await self.transport.request("POST", "sign-out", operation="sign out")
