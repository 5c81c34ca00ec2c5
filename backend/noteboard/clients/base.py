"""
NoteBoard Backend - Abstract Platform Client Interfaces
=======================================================

What:  Contracts for the three managed-platform collaborators of a NoteBoard.
How:   Concrete implementations (httpx-backed, in this package) inherit from
       these classes; tests substitute AsyncMock fakes with the same shape.
Who:   Consumed by NoteBoard; built per session by the SessionRegistry.

Failure contract:
    Every method raises a PlatformError subclass (or AuthenticationError for
    a rejected session). Whether a failure is soft or hard is decided by the
    caller, not by the client.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, NamedTuple, Optional

from noteboard.schemas.note import CurrentUser, Note

# Builds the full storage path from the identity id the platform supplies
PathResolver = Callable[[str], str]


class DataClient(ABC):
    """
    Object-model client for the platform's Note records.

    Implementations:
        - HttpDataClient: REST calls against PLATFORM_DATA_URL
    """

    @abstractmethod
    async def list_notes(self) -> List[Note]:
        """
        Fetch every note visible to the current session.

        Returns:
            Notes in the order the platform returns them.

        Raises:
            DataServiceError: Network failure or the platform reported errors.
        """
        ...

    @abstractmethod
    async def create_note(self, fields: Dict[str, str]) -> Note:
        """
        Create a note from the given fields.

        Args:
            fields: Only the populated fields; empty ones are omitted, not null.

        Returns:
            The created note, including its platform-assigned id.
        """
        ...

    @abstractmethod
    async def delete_note(self, note_id: str) -> None:
        """Delete the note with the given identifier."""
        ...


class StorageClient(ABC):
    """Blob storage client for note images."""

    @abstractmethod
    async def upload(
        self,
        path: PathResolver,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload raw bytes to an identity-scoped path.

        Args:
            path: Called with the session's identity id, returns the full path.
            data: File content.
            content_type: MIME type to store with the blob.

        Returns:
            The storage path the blob was written to.
        """
        ...

    @abstractmethod
    async def get_signed_url(self, path: str) -> str:
        """Resolve a storage path to a time-limited URL."""
        ...

    @abstractmethod
    async def remove(self, path: str) -> None:
        """Delete the blob at the given path."""
        ...


class AuthClient(ABC):
    """Session-bound client for the platform's auth service."""

    @abstractmethod
    async def get_current_user(self) -> CurrentUser:
        """Return the user the session belongs to."""
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """Invalidate the session on the platform."""
        ...


class PlatformClients(NamedTuple):
    """The three clients bound to one session."""
    data: DataClient
    storage: StorageClient
    auth: AuthClient
