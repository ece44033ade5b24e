"""Image and source builders shared by the tests."""
import io
from datetime import datetime, timezone

from PIL import Image

from article_blog.imaging.primitives import ImageBuffer


def make_image_bytes(size=(64, 48), mode="RGB", fmt="PNG", color=None, **save_kwargs):
    """Encode a solid-colour test image."""
    if color is None:
        color = (200, 30, 30, 128) if "A" in mode else (200, 30, 30)
        if mode == "L":
            color = 128
    out = io.BytesIO()
    Image.new(mode, size, color).save(out, fmt, **save_kwargs)
    return out.getvalue()


def make_mpo_bytes(size=(64, 48)):
    """Encode a two-frame multi-picture JPEG, as phone cameras write."""
    out = io.BytesIO()
    first = Image.new("RGB", size, (200, 30, 30))
    second = Image.new("RGB", size, (30, 30, 200))
    first.save(out, "MPO", save_all=True, append_images=[second])
    return out.getvalue()


def make_buffer(size=(64, 48), mode="RGB", fmt="PNG"):
    return ImageBuffer(image=Image.new(mode, size), format=fmt)


class FakeSource:
    """Minimal stand-in for SourceImage as the derivative cache sees it."""

    def __init__(self, data, identity="articles/images/sample.png", last_modified=None):
        self.data = data
        self.identity = identity
        self.last_modified = last_modified or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.reads = 0

    def read_bytes(self):
        self.reads += 1
        return self.data
