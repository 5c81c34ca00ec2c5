"""
NoteBoard Backend - API Route Tests
===================================

What:  End-to-end tests of the HTTP API through the FastAPI app.
How:   HTTPX AsyncClient over ASGITransport; the session registry is
       overridden so every board talks to the AsyncMock platform fakes.

What we test:
    ✅ Bearer token required, platform rejection → 401
    ✅ Board state is camelCase and never cached
    ✅ Draft → create (201), blank draft (200), busy board (409)
    ✅ Multipart image upload and preview serving
    ✅ Delete, unknown note (404), platform failure (502)
    ✅ Sign-out (204)
"""

import pytest

from noteboard.exceptions import AuthenticationError, DataServiceError, StorageError
from noteboard.schemas.note import Note

TOKEN = "token-alice"


def created_from(note_id: str):
    return lambda fields: Note(id=note_id, **fields)


class TestHealthAndAuth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["preview_storage"] == "writable"
        assert body["active_sessions"] == 0

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_non_bearer_authorization_rejected(self, test_client):
        response = await test_client.get("/api/board", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_platform_rejected_token(self, test_client, data_client, registry):
        data_client.list_notes.side_effect = AuthenticationError()

        response = await test_client.get("/api/board")

        assert response.status_code == 401
        assert len(registry) == 0


class TestBoardState:

    @pytest.mark.asyncio
    async def test_state_is_camel_case_and_not_cached(self, test_client, data_client):
        data_client.list_notes.return_value = [
            Note(id="n1", name="Trip", image="media/u1/1_a.png"),
        ]

        response = await test_client.get("/api/board")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        body = response.json()
        assert body["notes"][0]["imageUrl"] == "https://cdn.platform.test/media/u1/1_a.png?sig=abc"
        assert body["canSubmit"] is True
        assert body["submitLabel"] == "Create Note"
        assert body["draft"]["imagePath"] is None

    @pytest.mark.asyncio
    async def test_refresh_failure_is_bad_gateway(self, test_client, data_client):
        await test_client.get("/api/board")
        data_client.list_notes.side_effect = DataServiceError(message="Could not list notes: down")

        response = await test_client.post("/api/board/refresh")

        assert response.status_code == 502
        assert response.json()["error"] == "platform_error"

    @pytest.mark.asyncio
    async def test_refresh_reloads_notes(self, test_client, data_client):
        await test_client.get("/api/board")
        data_client.list_notes.return_value = [Note(id="n9", name="From elsewhere")]

        response = await test_client.post("/api/board/refresh")

        assert [n["id"] for n in response.json()["notes"]] == ["n9"]


class TestCreateNote:

    @pytest.mark.asyncio
    async def test_draft_then_create(self, test_client, data_client):
        data_client.create_note.side_effect = created_from("n1")

        draft = await test_client.patch("/api/board/draft", json={"name": "Groceries"})
        assert draft.json()["draft"]["name"] == "Groceries"

        response = await test_client.post("/api/board/notes")

        assert response.status_code == 201
        body = response.json()
        assert body["notes"][0]["id"] == "n1"
        assert body["notes"][0]["owner"] == "alice"
        assert body["draft"]["name"] == ""
        data_client.create_note.assert_awaited_once_with({"name": "Groceries", "owner": "alice"})

    @pytest.mark.asyncio
    async def test_blank_draft_creates_nothing(self, test_client, data_client):
        response = await test_client.post("/api/board/notes")

        assert response.status_code == 200
        assert response.json()["notes"] == []
        data_client.create_note.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_while_uploading_conflicts(self, test_client, registry, data_client):
        board = await registry.get_or_create(TOKEN)
        board.update_draft(name="Too early")
        board.is_uploading = True

        response = await test_client.post("/api/board/notes")

        assert response.status_code == 409
        assert "uploading" in response.json()["message"]
        data_client.create_note.assert_not_awaited()


class TestDraftImage:

    @pytest.mark.asyncio
    async def test_upload_and_preview(self, test_client, sample_image_bytes):
        response = await test_client.put(
            "/api/board/draft/image",
            files={"file": ("photo.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["draft"]["imagePath"].startswith("media/u1/")
        assert body["draft"]["imagePath"].endswith("_photo.png")
        assert body["draft"]["imageFile"]["filename"] == "photo.png"
        assert body["uploadProgress"] == 100
        assert body["isUploading"] is False

        preview = await test_client.get(body["previewUrl"])
        assert preview.status_code == 200
        assert preview.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_invalid_file_rejected(self, test_client):
        response = await test_client.put(
            "/api/board/draft/image",
            files={"file": ("notes.pdf", b"%PDF-1.7", "application/pdf")},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "file"

    @pytest.mark.asyncio
    async def test_renamed_non_image_rejected(self, test_client, storage_client):
        response = await test_client.put(
            "/api/board/draft/image",
            files={"file": ("photo.png", b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n", "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["details"]["detected_mime"] == "application/pdf"
        storage_client.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remove_image_discards_preview(self, test_client, sample_image_bytes):
        uploaded = await test_client.put(
            "/api/board/draft/image",
            files={"file": ("photo.png", sample_image_bytes, "image/png")},
        )
        preview_url = uploaded.json()["previewUrl"]

        response = await test_client.delete("/api/board/draft/image")

        assert response.json()["previewUrl"] is None
        assert response.json()["draft"]["imagePath"] is None
        assert (await test_client.get(preview_url)).status_code == 404

    @pytest.mark.asyncio
    async def test_failed_upload_drops_image(self, test_client, storage_client, sample_image_bytes):
        storage_client.upload.side_effect = StorageError(message="quota exceeded")

        response = await test_client.put(
            "/api/board/draft/image",
            files={"file": ("photo.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["draft"]["imageFile"] is None
        assert body["previewUrl"] is None


class TestDeleteAndSignOut:

    @pytest.mark.asyncio
    async def test_delete_note(self, test_client, data_client, storage_client):
        data_client.list_notes.return_value = [
            Note(id="n1", image="media/u1/1_a.png"),
            Note(id="n2", name="keep"),
        ]
        await test_client.get("/api/board")

        response = await test_client.delete("/api/board/notes/n1")

        assert response.status_code == 200
        assert [n["id"] for n in response.json()["notes"]] == ["n2"]
        data_client.delete_note.assert_awaited_once_with("n1")
        storage_client.remove.assert_awaited_once_with("media/u1/1_a.png")

    @pytest.mark.asyncio
    async def test_delete_unknown_note(self, test_client, data_client):
        response = await test_client.delete("/api/board/notes/missing")

        assert response.status_code == 404
        data_client.delete_note.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sign_out(self, test_client, registry, auth_client):
        await test_client.get("/api/board")
        assert len(registry) == 1

        response = await test_client.post("/api/auth/sign-out")

        assert response.status_code == 204
        auth_client.sign_out.assert_awaited_once()
        assert len(registry) == 0
