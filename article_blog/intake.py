"""
Upload intake: checks an uploaded file before it becomes a SourceImage.

The MIME type is sniffed from the content with Pillow; the client-supplied
content type is not trusted.
"""
import logging
from dataclasses import dataclass

from PIL import Image

from .conf import article_settings
from .exceptions import ValidationFailed

logger = logging.getLogger(__name__)

# Pillow formats reported under another format's MIME type
FORMAT_MIME_TYPES = {
    # Multi-picture JPEG from phone cameras; the first frame is a plain JPEG
    "MPO": "image/jpeg",
}


@dataclass(frozen=True)
class UploadInfo:
    """What intake learned about an admitted upload."""

    mime_type: str
    width: int
    height: int
    size: int


def validate_upload(file_obj):
    """
    Validate an uploaded image.

    Args:
        file_obj: Django UploadedFile or File

    Returns:
        UploadInfo for the admitted file

    Raises:
        ValidationFailed: file or pixel count too large, not an image, or
            MIME type not allowed
    """
    name = getattr(file_obj, "name", "upload")
    max_bytes = article_settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if file_obj.size > max_bytes:
        logger.warning("Rejected upload %s: %d bytes exceeds limit", name, file_obj.size)
        raise ValidationFailed(
            f"File is too large ({file_obj.size} bytes). "
            f"Maximum size is {article_settings.MAX_UPLOAD_SIZE_MB} MB.",
            code="file_too_large",
        )

    file_obj.seek(0)
    try:
        with Image.open(file_obj) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
    except Image.DecompressionBombError as exc:
        logger.warning("Rejected upload %s: %s", name, exc)
        raise ValidationFailed(
            "Image dimensions are too large.",
            code="image_too_large",
        ) from exc
    except (OSError, SyntaxError, ValueError) as exc:
        logger.warning("Rejected upload %s: not a readable image (%s)", name, exc)
        raise ValidationFailed(
            "Upload a valid image. The file is either not an image or corrupted.",
            code="invalid_image",
        ) from exc
    finally:
        file_obj.seek(0)

    mime_type = FORMAT_MIME_TYPES.get(image_format) or Image.MIME.get(image_format, "")
    allowed = article_settings.ALLOWED_IMAGE_TYPES
    if mime_type not in allowed:
        logger.warning("Rejected upload %s: MIME type %r not allowed", name, mime_type)
        raise ValidationFailed(
            f"Unsupported image type {mime_type or image_format!r}. "
            f"Allowed types: {', '.join(allowed)}.",
            code="invalid_mime_type",
        )

    declared = getattr(file_obj, "content_type", None)
    if declared and declared != mime_type:
        logger.debug("Upload %s declared %s but contains %s", name, declared, mime_type)

    return UploadInfo(mime_type=mime_type, width=width, height=height, size=file_obj.size)
