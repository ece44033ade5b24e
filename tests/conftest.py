"""Shared fixtures for django-article-blog tests."""
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from .helpers import make_image_bytes


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Give every test its own MEDIA_ROOT."""
    root = tmp_path / "media"
    root.mkdir()
    settings.MEDIA_ROOT = str(root)
    return root


@pytest.fixture
def png_upload():
    return SimpleUploadedFile(
        "photo.png",
        make_image_bytes(size=(120, 80)),
        content_type="image/png",
    )


@pytest.fixture
def jpeg_upload():
    return SimpleUploadedFile(
        "photo.jpg",
        make_image_bytes(size=(100, 100), fmt="JPEG"),
        content_type="image/jpeg",
    )
