"""
Tests for django-article-blog models.
"""
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from PIL import Image

from article_blog.exceptions import ValidationFailed
from article_blog.imaging import get_derivative_cache
from article_blog.models import Article, SourceImage

from .helpers import make_image_bytes

User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username="testuser",
        email="test@example.com",
        password="testpass123",
    )


@pytest.fixture
def source_image(db, png_upload):
    """Create a stored source image."""
    image, _ = SourceImage.get_or_create_from_file(png_upload)
    return image


class TestArticle:
    """Tests for Article model."""

    def test_create_article(self, db):
        """Test creating an article."""
        article = Article.objects.create(title="Hello World", content="First!")
        assert article.title == "Hello World"
        assert str(article) == "Hello World"
        assert article.created_at is not None

    def test_recent_orders_newest_first(self, db):
        """Test recent() ordering."""
        now = timezone.now()
        old = Article.objects.create(title="Old", created_at=now - timedelta(days=2))
        new = Article.objects.create(title="New", created_at=now)
        middle = Article.objects.create(title="Middle", created_at=now - timedelta(days=1))

        assert list(Article.objects.recent()) == [new, middle, old]

    def test_absolute_url(self, db):
        article = Article.objects.create(title="Linked")
        assert article.get_absolute_url() == f"/article/{article.pk}/"

    def test_preview_truncation(self, db):
        """Test content preview truncation."""
        article = Article.objects.create(title="Long", content="x" * 500)
        assert len(article.preview) == 283  # 280 + "..."

    def test_image_deleted_keeps_article(self, db, source_image):
        article = Article.objects.create(title="Illustrated", image=source_image)
        source_image.delete()
        article.refresh_from_db()
        assert article.image is None


class TestSourceImage:
    """Tests for SourceImage model."""

    def test_create_from_upload(self, db, user, png_upload):
        """Test storing an upload."""
        image, created = SourceImage.get_or_create_from_file(png_upload, uploaded_by=user)

        assert created
        assert image.mime_type == "image/png"
        assert (image.width, image.height) == (120, 80)
        assert image.file_size == png_upload.size
        assert image.original_filename == "photo.png"
        assert image.uploaded_by == user

    def test_stored_name_from_content_hash(self, db, png_upload):
        image, _ = SourceImage.get_or_create_from_file(png_upload)

        assert image.identity.startswith("articles/images/")
        assert image.identity.endswith(f"{image.content_hash[:32]}.png")
        assert image.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_deduplication(self, db):
        """Test same content uploaded twice is stored once."""
        data = make_image_bytes(size=(20, 20))
        first, created_first = SourceImage.get_or_create_from_file(
            SimpleUploadedFile("a.png", data, content_type="image/png")
        )
        second, created_second = SourceImage.get_or_create_from_file(
            SimpleUploadedFile("b.png", data, content_type="image/png")
        )

        assert created_first
        assert not created_second
        assert first.pk == second.pk
        assert SourceImage.objects.count() == 1

    def test_rejects_invalid_upload(self, db):
        upload = SimpleUploadedFile("notes.png", b"not an image", content_type="image/png")
        with pytest.raises(ValidationFailed):
            SourceImage.get_or_create_from_file(upload)
        assert SourceImage.objects.count() == 0

    def test_human_file_size(self, db):
        """Test human-readable file size."""
        image = SourceImage(file_size=1536000)
        assert "MB" in image.human_file_size

    def test_replace_file_invalidates_derivatives(self, db, source_image):
        cache = get_derivative_cache()
        old_path = cache.get_or_create(source_image, "article_card")
        old_name = source_image.identity
        old_marker = source_image.last_modified

        replacement = SimpleUploadedFile(
            "new.jpg",
            make_image_bytes(size=(300, 300), fmt="JPEG"),
            content_type="image/jpeg",
        )
        source_image.replace_file(replacement)

        assert source_image.identity != old_name
        assert source_image.last_modified >= old_marker
        assert source_image.mime_type == "image/jpeg"
        assert not source_image.file.storage.exists(old_name)
        assert not cache.is_cached(source_image, "article_card")

        new_path = cache.get_or_create(source_image, "article_card")
        assert new_path != old_path
        assert Image.open(new_path).size == (400, 400)

    def test_replace_with_existing_content(self, db, source_image):
        other, _ = SourceImage.get_or_create_from_file(
            SimpleUploadedFile("other.png", make_image_bytes(size=(10, 10)))
        )
        duplicate = SimpleUploadedFile("dup.png", other.read_bytes())

        with pytest.raises(ValidationFailed):
            source_image.replace_file(duplicate)

    def test_delete_removes_file_and_derivatives(self, db, source_image):
        cache = get_derivative_cache()
        path = cache.get_or_create(source_image, "thumbnail")
        storage = source_image.file.storage
        name = source_image.identity

        source_image.delete()

        assert not storage.exists(name)
        assert not path.exists()
