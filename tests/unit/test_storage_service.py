"""
Unit tests for bucketed file storage.
"""
import os

import pytest

from copymode.core.exceptions import BadRequestError
from copymode.services.storage_service import (
    AVATARS_BUCKET,
    KNOWLEDGE_BUCKET,
    StorageService,
)


@pytest.fixture
def storage(tmp_path):
    storage = StorageService(root=str(tmp_path))
    storage.ensure_buckets()
    return storage


class TestStorageService:

    def test_ensure_buckets_creates_directories(self, storage):
        assert os.path.isdir(os.path.join(storage.root, "agent.files"))
        assert os.path.isdir(os.path.join(storage.root, "content.type.avatars"))

    def test_upload_download_remove(self, storage):
        path = storage.upload(KNOWLEDGE_BUCKET, "agent-1/a.txt", b"data")

        assert storage.download(KNOWLEDGE_BUCKET, path) == b"data"
        assert storage.remove(KNOWLEDGE_BUCKET, path) is True
        assert storage.remove(KNOWLEDGE_BUCKET, path) is False

    def test_build_path_keeps_extension(self, storage):
        path = storage.build_path("agent-1", "Guide.PDF")

        assert path.startswith("agent-1/")
        assert path.endswith(".pdf")
        assert path != storage.build_path("agent-1", "Guide.PDF")

    def test_remove_folder(self, storage):
        storage.upload(KNOWLEDGE_BUCKET, "agent-1/a.txt", b"a")
        storage.upload(KNOWLEDGE_BUCKET, "agent-1/b.txt", b"b")

        storage.remove_folder(KNOWLEDGE_BUCKET, "agent-1")

        assert not os.path.exists(os.path.join(storage.root, KNOWLEDGE_BUCKET, "agent-1"))

    def test_unknown_bucket(self, storage):
        with pytest.raises(BadRequestError):
            storage.upload("secrets", "a.txt", b"x")

    @pytest.mark.parametrize("path", ["../avatars/x.png", "agent-1/../../escape.txt", ""])
    def test_path_traversal_blocked(self, storage, path):
        with pytest.raises(BadRequestError):
            storage.upload(KNOWLEDGE_BUCKET, path, b"x")

    def test_public_url(self, storage):
        assert storage.public_url(AVATARS_BUCKET, "u1/x.png") == "/storage/avatars/u1/x.png"


class TestUploadImage:

    def test_stores_image_and_returns_url(self, storage):
        url = storage.upload_image(AVATARS_BUCKET, "user-1", "me.PNG", b"\x89PNG")

        assert url.startswith("/storage/avatars/user-1/")
        assert url.endswith(".png")

    def test_rejects_non_image(self, storage):
        with pytest.raises(BadRequestError):
            storage.upload_image(AVATARS_BUCKET, "user-1", "cv.pdf", b"%PDF")

    def test_rejects_empty(self, storage):
        with pytest.raises(BadRequestError):
            storage.upload_image(AVATARS_BUCKET, "user-1", "me.png", b"")

    def test_rejects_large_image(self, storage, monkeypatch):
        from copymode.core.config import settings
        monkeypatch.setattr(settings, "MAX_AVATAR_FILE_SIZE", 10)

        with pytest.raises(BadRequestError):
            storage.upload_image(AVATARS_BUCKET, "user-1", "me.png", b"x" * 11)
