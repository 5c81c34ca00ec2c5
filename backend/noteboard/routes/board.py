"""
NoteBoard Backend - Board Route Handlers
========================================

What:  JSON endpoints for the notes page: state, draft, image, notes.
How:   Each handler performs one NoteBoard operation on the caller's board
       and returns the resulting BoardState snapshot.
Who:   Called by the single-page frontend.

Caching:
    Board state is per-session and changes on every operation, so every
    response is marked `Cache-Control: no-store`. Previews are immutable
    once written and cached privately.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.responses import FileResponse

from noteboard.exceptions import ConflictError
from noteboard.routes.dependencies import get_board
from noteboard.schemas.note import BoardState, DraftUpdate, ErrorResponse
from noteboard.services.note_board import NoteBoard, SelectedImage
from noteboard.services.preview_service import preview_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/board", tags=["Board"])

NO_STORE = "no-store"


@router.get(
    "",
    response_model=BoardState,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Current board state",
    description="Returns the session's notes and draft. The first call lists the notes.",
)
async def get_board_state(
    response: Response,
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()


@router.post(
    "/refresh",
    response_model=BoardState,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Re-fetch notes from the platform",
)
async def refresh_notes(
    response: Response,
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    await board.list_notes()
    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()


@router.patch(
    "/draft",
    response_model=BoardState,
    responses={401: {"model": ErrorResponse}},
    summary="Update draft title and/or description",
)
async def update_draft(
    update: DraftUpdate,
    response: Response,
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    board.update_draft(name=update.name, description=update.description)
    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()


@router.put(
    "/draft/image",
    response_model=BoardState,
    responses={
        400: {"description": "Not an image, empty or too large", "model": ErrorResponse},
        401: {"model": ErrorResponse},
    },
    summary="Select (and immediately upload) the draft image",
    description=(
        "Stores a preview and uploads the image to the platform. The response "
        "reflects the finished upload: on success the draft carries imagePath, "
        "on failure the image is dropped from the draft. Sending no file clears "
        "the draft image."
    ),
)
async def select_image(
    response: Response,
    file: Optional[UploadFile] = File(default=None, description="Image file (png, jpg, gif, webp)"),
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    if file is None or not file.filename:
        await board.select_image(None)
    else:
        try:
            content = await file.read()
            logger.info(
                "Image selected: filename=%s, size=%d bytes",
                file.filename,
                len(content),
            )
            await board.select_image(
                SelectedImage(
                    filename=file.filename,
                    content=content,
                    content_type=file.content_type,
                )
            )
        finally:
            await file.close()

    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()


@router.delete(
    "/draft/image",
    response_model=BoardState,
    responses={401: {"model": ErrorResponse}},
    summary="Remove the draft image",
)
async def remove_image(
    response: Response,
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    await board.remove_image()
    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()


@router.get(
    "/preview/{name}",
    summary="Serve a draft image preview",
    responses={
        200: {"description": "Image file"},
        404: {"description": "Preview not found", "model": ErrorResponse},
    },
)
async def serve_preview(name: str) -> FileResponse:
    """
    Previews are addressed by unguessable generated names so <img> tags can
    load them without an Authorization header.
    """
    path = preview_service.resolve(name)
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "private, max-age=3600"},
    )


@router.post(
    "/notes",
    response_model=BoardState,
    responses={
        200: {"description": "Draft was blank; nothing created", "model": BoardState},
        201: {"description": "Note created and prepended", "model": BoardState},
        401: {"model": ErrorResponse},
        409: {"description": "Submission or upload in progress", "model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Create a note from the draft",
)
async def create_note(
    response: Response,
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    if not board.can_submit:
        raise ConflictError(
            message=(
                "An image is still uploading."
                if board.is_uploading
                else "A note is already being created."
            ),
        )

    note = await board.create_note()
    response.status_code = 201 if note is not None else 200
    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()


@router.delete(
    "/notes/{note_id}",
    response_model=BoardState,
    responses={
        401: {"model": ErrorResponse},
        404: {"description": "Note not on this board", "model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Delete a note and its image",
)
async def delete_note(
    note_id: str,
    response: Response,
    board: NoteBoard = Depends(get_board),
) -> BoardState:
    await board.delete_note(board.find_note(note_id))
    response.headers["Cache-Control"] = NO_STORE
    return board.snapshot()
