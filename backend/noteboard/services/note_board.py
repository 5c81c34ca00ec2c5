"""
NoteBoard Backend - NoteBoard Controller
========================================

What:  The per-session view-state controller behind the notes page.
How:   Holds the note list, the create-note draft and the image sub-flow
       state; every operation is a short sequence of platform calls.
Who:   One instance per signed-in session, owned by the SessionRegistry and
       driven by the board routes.

Image Sub-flow:
    Empty ──select──▶ Selecting (preview stored)
          ──upload──▶ Uploading
          ──────────▶ Uploaded (image_path set)  |  FailedDiscarded (back to Empty)
    Uploaded ──remove / note created──▶ Empty

Late Upload Completions:
    Each selection, removal and draft reset starts a new image generation.
    An upload that finishes after its generation was superseded leaves the
    draft untouched, whether it succeeded or failed. The blob it may have
    written stays in storage.

Error Handling Strategy:
    - Signed URL resolution and blob removal: logged, never raised
    - Upload: logged, reverts the draft image and preview
    - Listing, creation, deletion, user lookup: propagate to the caller
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional

from noteboard.clients.base import PlatformClients
from noteboard.config import settings
from noteboard.exceptions import NoteBoardError, NotFoundError
from noteboard.schemas.note import BoardState, ImageFile, Note, NoteDraft
from noteboard.services.preview_service import Preview, PreviewService, preview_service

logger = logging.getLogger(__name__)


class SelectedImage(NamedTuple):
    """A file picked in the image input."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


class NoteBoard:
    """
    View-state controller for one session's notes.

    State:
        notes:           Local copy of the session's notes, newest creations first
        draft:           Create-note form (name, description, image file/path)
        preview:         Local preview of the selected image, if any
        is_uploading:    An image upload for the current selection is in flight
        upload_progress: 0 until the current upload completes, then 100
        is_submitting:   A create_note() call is in flight
    """

    def __init__(
        self,
        clients: PlatformClients,
        previews: Optional[PreviewService] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.data = clients.data
        self.storage = clients.storage
        self.auth = clients.auth
        self.previews = previews or preview_service
        self._clock = clock

        self.notes: List[Note] = []
        self.draft = NoteDraft()
        self.preview: Optional[Preview] = None
        self.is_uploading = False
        self.upload_progress = 0
        self.is_submitting = False
        self.mounted = False

        self._image_generation = 0
        self._mount_lock = asyncio.Lock()

    # ── View State ────────────────────────────────────────────────────────

    @property
    def can_submit(self) -> bool:
        return not self.is_submitting and not self.is_uploading

    @property
    def submit_label(self) -> str:
        if self.is_submitting:
            return "Creating..."
        if self.is_uploading:
            return "Uploading..."
        return "Create Note"

    def snapshot(self) -> BoardState:
        """Copy of the current state for the API layer."""
        return BoardState(
            notes=[note.model_copy() for note in self.notes],
            draft=self.draft.model_copy(deep=True),
            preview_url=self.preview.url if self.preview else None,
            is_uploading=self.is_uploading,
            upload_progress=self.upload_progress,
            is_submitting=self.is_submitting,
            can_submit=self.can_submit,
            submit_label=self.submit_label,
        )

    def find_note(self, note_id: str) -> Note:
        """Return the note with the given id from the local list."""
        for note in self.notes:
            if note.id == note_id:
                return note
        raise NotFoundError(resource="note", resource_id=note_id)

    # ── Notes ─────────────────────────────────────────────────────────────

    async def mount(self) -> None:
        """
        Initial fetch, run once when the session's board is first used.

        Concurrent first requests wait for the same listing instead of each
        starting their own, which could land after a newer local change.
        """
        async with self._mount_lock:
            if not self.mounted:
                await self.list_notes()
                self.mounted = True

    async def list_notes(self) -> List[Note]:
        """
        Fetch all notes and attach a signed URL to each one with an image.

        URL resolution runs concurrently and keeps the platform's order.
        A note whose URL cannot be resolved is kept without image_url.
        Replaces the local list.
        """
        notes = await self.data.list_notes()
        self.notes = list(await asyncio.gather(*(self._with_image_url(n) for n in notes)))
        logger.info("Listed %d notes", len(self.notes))
        return self.notes

    async def create_note(self) -> Optional[Note]:
        """
        Create a note from the current draft and prepend it to the list.

        A draft with neither name nor description is a no-op (returns None).
        Empty fields are omitted from the create call; owner is the
        signed-in username. Resets the draft on success.

        Raises:
            AuthenticationError / AuthServiceError: User lookup failed
            DataServiceError: The platform rejected the note
        """
        draft = self.draft.model_copy(deep=True)
        if draft.is_blank:
            return None

        self.is_submitting = True
        try:
            user = await self.auth.get_current_user()

            fields = {
                "name": draft.name,
                "description": draft.description,
                "image": draft.image_path,
            }
            fields = {key: value for key, value in fields.items() if value}
            fields["owner"] = user.username

            note = await self.data.create_note(fields)
            note = await self._with_image_url(note)

            self.notes = [note, *self.notes]
            await self._reset_draft()
            return note
        finally:
            self.is_submitting = False

    async def delete_note(self, note: Note) -> None:
        """
        Delete the note record, then best-effort remove its image blob.

        The note leaves the local list even if the blob removal fails.

        Raises:
            DataServiceError: The record could not be deleted (list unchanged)
        """
        await self.data.delete_note(note.id)

        if note.image:
            try:
                await self.storage.remove(note.image)
            except NoteBoardError as e:
                logger.warning("Orphaned image %s left in storage: %s", note.image, e.message)

        self.notes = [n for n in self.notes if n.id != note.id]

    # ── Draft ─────────────────────────────────────────────────────────────

    def update_draft(self, name: Optional[str] = None, description: Optional[str] = None) -> None:
        """Set the given draft text fields; None leaves a field unchanged."""
        if name is not None:
            self.draft.name = name
        if description is not None:
            self.draft.description = description

    async def select_image(self, image: Optional[SelectedImage]) -> None:
        """
        Handle a change of the image input.

        With a file: validate, store a preview, then upload the bytes to
        <media_prefix>/<identity>/<millis>_<filename>. On success the draft
        gets the storage path; on failure preview and file are discarded.
        Without a file: clear preview and draft image fields.

        Raises:
            ValidationError: Not an image (by name, declared type or content),
                             empty or too large (state unchanged)
            PreviewStorageError: The preview could not be written
        """
        if image is None:
            self._next_image_generation()
            await self._clear_image()
            return

        self.previews.validate_image(image.filename, image.content_type, image.content)

        generation = self._next_image_generation()
        await self._clear_image()

        preview = await self.previews.store(image.content, image.filename)
        if generation != self._image_generation:
            await self.previews.discard(preview.name)
            return

        filename = Path(image.filename).name
        self.preview = preview
        self.draft.image_file = ImageFile(
            filename=filename,
            content_type=image.content_type,
            size=len(image.content),
        )
        self.is_uploading = True
        self.upload_progress = 0

        key = f"{int(self._clock() * 1000)}_{filename}"
        try:
            path = await self.storage.upload(
                lambda identity_id: f"{settings.media_prefix}/{identity_id}/{key}",
                image.content,
                image.content_type,
            )
        except NoteBoardError as e:
            if generation != self._image_generation:
                logger.info("Ignoring failed upload of a superseded image: %s", e.message)
                return
            logger.error("Upload failed: %s", e.message)
            self.is_uploading = False
            await self._clear_image()
            return

        if generation != self._image_generation:
            logger.warning("Discarding late upload %s: the image selection changed", path)
            return

        self.draft.image_path = path
        self.upload_progress = 100
        self.is_uploading = False

    async def remove_image(self) -> None:
        """Clear preview, draft image and progress; a pending upload is ignored."""
        self._next_image_generation()
        await self._clear_image()

    # ── Session ───────────────────────────────────────────────────────────

    async def sign_out(self) -> None:
        """Sign out on the platform. Failures are logged, not raised."""
        try:
            await self.auth.sign_out()
        except NoteBoardError as e:
            logger.error("Error signing out: %s", e.message)
        await self.close()

    async def close(self) -> None:
        """Release local resources (the preview file)."""
        self._next_image_generation()
        await self._discard_preview()

    # ── Internals ─────────────────────────────────────────────────────────

    async def _with_image_url(self, note: Note) -> Note:
        if not note.image:
            return note
        try:
            url = await self.storage.get_signed_url(note.image)
        except NoteBoardError as e:
            logger.warning("Could not resolve image URL for note %s: %s", note.id, e.message)
            return note
        return note.model_copy(update={"image_url": url})

    def _next_image_generation(self) -> int:
        """Start a new image selection; any in-flight upload becomes stale."""
        self._image_generation += 1
        self.is_uploading = False
        return self._image_generation

    async def _discard_preview(self) -> None:
        preview, self.preview = self.preview, None
        if preview is not None:
            await self.previews.discard(preview.name)

    async def _clear_image(self) -> None:
        self.draft.image_file = None
        self.draft.image_path = None
        self.upload_progress = 0
        await self._discard_preview()

    async def _reset_draft(self) -> None:
        self._next_image_generation()
        self.draft = NoteDraft()
        self.upload_progress = 0
        await self._discard_preview()
