"""
Source image model for django-article-blog.

Uploaded images are named after their SHA256 content hash, so the same file
uploaded twice is stored once.
"""
import hashlib
import logging
import os

from django.conf import settings
from django.db import models
from django.utils import timezone

from ..conf import article_settings
from ..exceptions import ValidationFailed
from ..intake import validate_upload

logger = logging.getLogger(__name__)


def get_upload_path(instance, filename):
    """Generate upload path for source images: UPLOAD_PATH + content hash."""
    directory = timezone.now().strftime(article_settings.UPLOAD_PATH)
    extension = os.path.splitext(filename)[1].lower()
    return f"{directory}{instance.content_hash[:32]}{extension}"


def _hash_file(file_obj):
    hasher = hashlib.sha256()
    file_obj.seek(0)
    for chunk in file_obj.chunks():
        hasher.update(chunk)
    file_obj.seek(0)
    return hasher.hexdigest()


class SourceImage(models.Model):
    """
    An uploaded image that derivatives are generated from.

    ``identity`` is the stored file name and ``last_modified`` the time the
    content last changed; together they key the derivative cache.
    """

    file = models.FileField(upload_to=get_upload_path, max_length=255)
    content_hash = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="SHA256 hash of file content for deduplication",
    )
    original_filename = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100)
    file_size = models.PositiveIntegerField(default=0, help_text="File size in bytes")
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploaded_article_images",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Changes whenever the content is replaced",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Source Image"
        verbose_name_plural = "Source Images"

    def __str__(self):
        return self.original_filename or self.file.name

    @property
    def identity(self):
        return self.file.name

    @property
    def last_modified(self):
        return self.updated_at

    def read_bytes(self):
        """Return the stored file content."""
        with self.file.open("rb") as fh:
            return fh.read()

    @property
    def file_url(self):
        """Return URL to the file."""
        if self.file:
            return self.file.url
        return None

    @property
    def human_file_size(self):
        """Return human-readable file size."""
        size = self.file_size
        for unit in ["B", "KB", "MB", "GB"]:
            if size < 1024:
                return f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} TB"

    @classmethod
    def get_or_create_from_file(cls, file_obj, uploaded_by=None):
        """
        Get existing source image or create a new one based on content hash.

        Args:
            file_obj: Django UploadedFile or File
            uploaded_by: User who uploaded the file

        Returns:
            (SourceImage instance, created boolean)

        Raises:
            ValidationFailed: the upload was rejected by intake
        """
        info = validate_upload(file_obj)
        content_hash = _hash_file(file_obj)

        existing = cls.objects.filter(content_hash=content_hash).first()
        if existing:
            return existing, False

        item = cls(
            content_hash=content_hash,
            original_filename=os.path.basename(file_obj.name),
            mime_type=info.mime_type,
            file_size=info.size,
            width=info.width,
            height=info.height,
            uploaded_by=uploaded_by,
        )
        item.file.save(file_obj.name, file_obj, save=False)
        item.save()
        logger.info(
            "Stored source image %s (%s, %dx%d)",
            item.identity,
            info.mime_type,
            info.width,
            info.height,
        )
        return item, True

    def replace_file(self, file_obj):
        """
        Swap in new content for this image.

        The new content gets a new name and updated_at moves forward, so every
        derivative of the old content stops matching.
        """
        info = validate_upload(file_obj)
        content_hash = _hash_file(file_obj)
        if content_hash == self.content_hash:
            return self
        if SourceImage.objects.filter(content_hash=content_hash).exclude(pk=self.pk).exists():
            raise ValidationFailed(
                "An identical image already exists in the library.",
                code="duplicate",
            )

        old_name = self.file.name
        self.content_hash = content_hash
        self.original_filename = os.path.basename(file_obj.name)
        self.mime_type = info.mime_type
        self.file_size = info.size
        self.width = info.width
        self.height = info.height
        self.file.save(file_obj.name, file_obj, save=False)
        self.save()

        if old_name and old_name != self.file.name:
            self.file.storage.delete(old_name)
        logger.info("Replaced source image %s with %s", old_name, self.identity)
        return self
