"""
Tests for upload intake validation.
"""
import pytest
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from article_blog.exceptions import ValidationFailed
from article_blog.intake import validate_upload

from .helpers import make_image_bytes, make_mpo_bytes


class TestValidateUpload:
    """Tests for validate_upload."""

    def test_admits_png(self, png_upload):
        info = validate_upload(png_upload)
        assert info.mime_type == "image/png"
        assert (info.width, info.height) == (120, 80)
        assert info.size == png_upload.size

    def test_admits_jpeg(self, jpeg_upload):
        assert validate_upload(jpeg_upload).mime_type == "image/jpeg"

    def test_rewinds_file(self, png_upload):
        validate_upload(png_upload)
        assert png_upload.tell() == 0

    def test_mime_sniffed_from_content(self):
        upload = SimpleUploadedFile(
            "photo.gif",
            make_image_bytes(fmt="PNG"),
            content_type="image/gif",
        )
        assert validate_upload(upload).mime_type == "image/png"

    def test_rejects_disallowed_type(self):
        upload = SimpleUploadedFile("scan.bmp", make_image_bytes(fmt="BMP"), content_type="image/bmp")
        with pytest.raises(ValidationFailed) as excinfo:
            validate_upload(upload)
        assert excinfo.value.code == "invalid_mime_type"

    def test_rejects_non_image(self):
        upload = SimpleUploadedFile("notes.jpg", b"plain text", content_type="image/jpeg")
        with pytest.raises(ValidationFailed) as excinfo:
            validate_upload(upload)
        assert excinfo.value.code == "invalid_image"

    def test_rejects_oversized(self, settings):
        settings.ARTICLE_BLOG = {"MAX_UPLOAD_SIZE_MB": 0}
        upload = SimpleUploadedFile("big.png", make_image_bytes(), content_type="image/png")
        with pytest.raises(ValidationFailed) as excinfo:
            validate_upload(upload)
        assert excinfo.value.code == "file_too_large"

    def test_custom_allowlist(self, settings):
        settings.ARTICLE_BLOG = {"ALLOWED_IMAGE_TYPES": ["image/bmp"]}
        upload = SimpleUploadedFile("scan.bmp", make_image_bytes(fmt="BMP"))
        assert validate_upload(upload).mime_type == "image/bmp"

    def test_is_a_django_validation_error(self):
        upload = SimpleUploadedFile("notes.png", b"nope")
        with pytest.raises(ValidationError):
            validate_upload(upload)

    def test_admits_multi_picture_jpeg(self):
        upload = SimpleUploadedFile("phone.jpg", make_mpo_bytes(), content_type="image/jpeg")
        info = validate_upload(upload)
        assert info.mime_type == "image/jpeg"
        assert (info.width, info.height) == (64, 48)

    def test_rejects_decompression_bomb(self, png_upload, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(ValidationFailed) as excinfo:
            validate_upload(png_upload)
        assert excinfo.value.code == "image_too_large"
        assert png_upload.tell() == 0
