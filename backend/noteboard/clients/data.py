"""
NoteBoard Backend - Notes Data Client
=====================================

What:  httpx implementation of DataClient against the platform's notes API.
How:   The platform wraps every result in an envelope:
           {"data": <record or list>, "errors": [{"message": ...}, ...]}
       A non-empty `errors` list is a failure even on HTTP 200.
"""

import logging
from typing import Any, Dict, List
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from noteboard.clients.base import DataClient
from noteboard.clients.transport import PlatformTransport
from noteboard.exceptions import DataServiceError
from noteboard.schemas.note import Note

logger = logging.getLogger(__name__)


class HttpDataClient(DataClient):
    """Notes CRUD over the platform's REST data API."""

    def __init__(self, transport: PlatformTransport):
        self.transport = transport

    async def list_notes(self) -> List[Note]:
        payload = await self.transport.request("GET", "notes", operation="list notes")
        items = self._unwrap(payload, "list notes") or []
        if not isinstance(items, list):
            raise DataServiceError(
                message="The notes platform returned a malformed note list.",
                context={"data_type": type(items).__name__},
            )
        return [self._parse(item, "list notes") for item in items]

    async def create_note(self, fields: Dict[str, str]) -> Note:
        payload = await self.transport.request(
            "POST",
            "notes",
            json=fields,
            operation="create the note",
        )
        data = self._unwrap(payload, "create the note")
        if not data:
            raise DataServiceError(message="The notes platform did not return the created note.")
        note = self._parse(data, "create the note")
        logger.info("Note created: %s", note.id)
        return note

    async def delete_note(self, note_id: str) -> None:
        payload = await self.transport.request(
            "DELETE",
            f"notes/{quote(note_id, safe='')}",
            operation="delete the note",
        )
        if payload is not None:
            self._unwrap(payload, "delete the note")
        logger.info("Note deleted: %s", note_id)

    @staticmethod
    def _unwrap(payload: Any, operation: str) -> Any:
        """Return the envelope's `data`, raising on reported errors."""
        if not isinstance(payload, dict):
            raise DataServiceError(
                message=f"The notes platform sent an unexpected response to {operation}.",
                context={"operation": operation},
            )

        errors = payload.get("errors") or []
        if errors:
            messages = [
                e.get("message", str(e)) if isinstance(e, dict) else str(e)
                for e in errors
            ]
            raise DataServiceError(
                message=f"Could not {operation}: {messages[0]}",
                context={"operation": operation, "errors": messages},
            )

        return payload.get("data")

    @staticmethod
    def _parse(item: Any, operation: str) -> Note:
        try:
            return Note.model_validate(item)
        except PydanticValidationError as e:
            raise DataServiceError(
                message="The notes platform returned a malformed note.",
                context={"operation": operation, "errors": e.error_count()},
            )
