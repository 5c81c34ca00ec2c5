"""
NoteBoard Backend - Pydantic Schemas
====================================

What:  Pydantic models for platform records, board view state and API contracts.
How:   Platform JSON is parsed into these models; FastAPI serializes them
       back out (by alias, so every key on the wire is camelCase).
Who:   Used by the platform clients, the NoteBoard and the route handlers.

Design Decision:
    One alias generator for every model keeps the BFF's JSON identical in
    shape to the platform's (createdAt, imageUrl, isUploading, ...), so the
    frontend sees a single naming convention.
"""

from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Platform Records
# ══════════════════════════════════════════════════════════════════════════


class Note(BaseModel):
    """
    What:  A user-owned note as stored by the platform's data service.
    Who:   Returned by DataClient.list_notes/create_note; held in board state.

    Fields:
        - id: Assigned by the platform at creation
        - name / description: Both optional; a note may have neither
        - image: Opaque storage path, present only if the upload succeeded
        - owner: Username stamped at creation
        - image_url: Client-only signed URL, recomputed on every list fetch
    """
    id: str = Field(description="Platform-assigned note identifier")
    name: Optional[str] = Field(default=None, description="Short title")
    description: Optional[str] = Field(default=None, description="Long text")
    image: Optional[str] = Field(default=None, description="Storage path of the note image")
    owner: Optional[str] = Field(default=None, description="Username of the creator")
    created_at: Optional[str] = Field(default=None, description="Creation timestamp, as sent by the platform")
    updated_at: Optional[str] = Field(default=None, description="Last update timestamp, as sent by the platform")
    image_url: Optional[str] = Field(
        default=None,
        description="Time-limited signed URL for the image (never persisted)",
    )

    # Some platforms send numeric ids
    model_config = {**CAMEL_CONFIG, "coerce_numbers_to_str": True}


class CurrentUser(BaseModel):
    """The signed-in user as reported by the auth service."""
    username: str
    user_id: Optional[str] = None

    model_config = CAMEL_CONFIG


# ══════════════════════════════════════════════════════════════════════════
# Board View State
# ══════════════════════════════════════════════════════════════════════════


class ImageFile(BaseModel):
    """
    Metadata of the locally selected image.

    The bytes themselves are uploaded immediately and not kept in the draft.
    """
    filename: str
    content_type: Optional[str] = None
    size: int = 0

    model_config = CAMEL_CONFIG


class NoteDraft(BaseModel):
    """
    What:  Transient create-note form state.
    When:  Reset to empty after each successful creation; image fields also
           cleared by removal or a failed upload.
    """
    name: str = ""
    description: str = ""
    image_file: Optional[ImageFile] = None
    image_path: Optional[str] = None

    model_config = CAMEL_CONFIG

    @property
    def is_blank(self) -> bool:
        """A draft with neither name nor description cannot be submitted."""
        return not self.name and not self.description


class BoardState(BaseModel):
    """
    What:  Snapshot of one session's NoteBoard, returned by every board route.

    Derived fields:
        - can_submit: False while a note is submitting or an image uploading
        - submit_label: Text for the submit button in the current state
    """
    notes: List[Note] = Field(default_factory=list)
    draft: NoteDraft = Field(default_factory=NoteDraft)
    preview_url: Optional[str] = None
    is_uploading: bool = False
    upload_progress: int = Field(default=0, ge=0, le=100)
    is_submitting: bool = False
    can_submit: bool = True
    submit_label: str = "Create Note"

    model_config = CAMEL_CONFIG


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class DraftUpdate(BaseModel):
    """
    Partial draft text update (one form field change).

    Omitted fields are left as they are; empty strings clear the field.
    """
    name: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=20_000)

    model_config = CAMEL_CONFIG


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "File type '.pdf' is not supported",
            "details": {"field": "file"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service status and local resources."""
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    preview_storage: str = Field(description="Preview directory: writable, unwritable")
    active_sessions: int = Field(description="Boards currently held in memory")
    uptime_seconds: float = Field(description="Seconds since service started")
