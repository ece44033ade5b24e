"""
Image transform primitives.

Every primitive takes an ImageBuffer plus keyword params and returns a new
ImageBuffer; the input is never modified. Encoding settings (format, quality,
interlace, metadata) travel with the buffer and are applied by encode().
"""
import io
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from PIL import Image, ImageColor, ImageOps, UnidentifiedImageError

from ..exceptions import InvalidParams, OutOfBounds, UnsupportedConversion, UnsupportedFormat

logger = logging.getLogger(__name__)

# Metadata blocks carried through the pipeline until stripped
METADATA_KEYS = ("exif", "icc_profile", "comment")

INTERLACE_MODES = ("none", "line", "plane", "partition")

# MPO is the multi-picture JPEG written by phone cameras
FORMAT_ALIASES = {"JPG": "JPEG", "TIF": "TIFF", "MPO": "JPEG"}

FORMAT_EXTENSIONS = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
    "GIF": "gif",
    "TIFF": "tif",
    "BMP": "bmp",
}

# Formats without an alpha channel; transparency is flattened away
OPAQUE_FORMATS = frozenset({"JPEG", "BMP"})

ALPHA_FORMATS = frozenset({"PNG", "WEBP", "TIFF"})

# Which metadata blocks each writer accepts as save() options
METADATA_OPTIONS = {
    "JPEG": ("exif", "icc_profile", "comment"),
    "PNG": ("exif", "icc_profile"),
    "WEBP": ("exif", "icc_profile"),
    "TIFF": ("exif", "icc_profile"),
    "GIF": ("comment",),
}

# Pixel modes each writer takes as-is; anything else goes to RGB or RGBA
WRITER_MODES = {
    "JPEG": frozenset({"L", "RGB", "CMYK"}),
    "PNG": frozenset({"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}),
    "WEBP": frozenset({"RGB", "RGBA"}),
    "GIF": frozenset({"1", "L", "P", "RGB", "RGBA"}),
    "BMP": frozenset({"1", "L", "P", "RGB"}),
}

DEFAULT_BACKGROUND = "#ffffff"


class Primitive(str, Enum):
    """Kinds of transform step a filter set can contain."""

    SCALE = "scale"
    CROP = "crop"
    ROTATE = "rotate"
    STRIP_METADATA = "strip_metadata"
    INTERLACE = "interlace"
    RELATIVE_RESIZE = "relative_resize"
    CONVERT = "convert"
    THUMBNAIL = "thumbnail"


@dataclass
class ImageBuffer:
    """Decoded pixels plus the settings used when encoding them."""

    image: Image.Image
    format: str
    quality: Optional[int] = None
    interlace: str = "none"
    metadata: dict = field(default_factory=dict)

    @property
    def size(self):
        return self.image.size

    @property
    def width(self):
        return self.image.width

    @property
    def height(self):
        return self.image.height


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

def normalize_format(name):
    """Return Pillow's writer name for a format, or raise UnsupportedConversion."""
    if not isinstance(name, str) or not name:
        raise UnsupportedConversion(f"Invalid image format: {name!r}")
    fmt = name.upper().lstrip(".")
    fmt = FORMAT_ALIASES.get(fmt, fmt)
    Image.init()
    if fmt not in Image.SAVE:
        raise UnsupportedConversion(f"Cannot write images as {name!r}")
    return fmt


def extension_for(fmt):
    """File extension (without dot) for a Pillow format name."""
    return FORMAT_EXTENSIONS.get(fmt, fmt.lower())


def load(data: bytes) -> ImageBuffer:
    """Decode image bytes into a buffer, keeping metadata and interlacing."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise UnsupportedFormat(f"Source is not a decodable image: {exc}") from exc

    metadata = {key: image.info[key] for key in METADATA_KEYS if key in image.info}
    interlaced = image.info.get("progressive") or image.info.get("interlace")
    return ImageBuffer(
        image=image,
        format=FORMAT_ALIASES.get(image.format, image.format),
        interlace="line" if interlaced else "none",
        metadata=metadata,
    )


def encode(buffer: ImageBuffer) -> bytes:
    """Encode a buffer with its format, quality, interlace and metadata."""
    fmt = normalize_format(buffer.format)
    image = _pixels_only(buffer.image)
    try:
        image = _writable(image, fmt)
    except ValueError as exc:
        raise UnsupportedConversion(f"Cannot write {buffer.image.mode} images as {fmt}") from exc

    options = {}
    if buffer.quality is not None and fmt in ("JPEG", "WEBP"):
        options["quality"] = buffer.quality
    progressive = buffer.interlace != "none"
    if fmt == "JPEG":
        options["progressive"] = progressive
    elif fmt == "GIF":
        options["interlace"] = progressive
    for key in METADATA_OPTIONS.get(fmt, ()):
        if key in buffer.metadata:
            options[key] = buffer.metadata[key]

    out = io.BytesIO()
    try:
        image.save(out, fmt, **options)
    except (OSError, ValueError) as exc:
        raise UnsupportedConversion(f"Could not encode {image.mode} image as {fmt}: {exc}") from exc
    return out.getvalue()


def _writable(image, fmt):
    """Convert image to a mode the fmt writer accepts."""
    if fmt in OPAQUE_FORMATS and image.has_transparency_data:
        return _flatten(image)
    modes = WRITER_MODES.get(fmt)
    if modes is None or image.mode in modes:
        return image
    if image.has_transparency_data and "RGBA" in modes:
        return image.convert("RGBA")
    return image.convert("RGB")


def _pixels_only(image):
    """Copy of the image with every info entry except transparency dropped."""
    clean = image.copy()
    clean.info = {
        key: value for key, value in image.info.items() if key == "transparency"
    }
    return clean


def _flatten(image, background=DEFAULT_BACKGROUND):
    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background)
    canvas.paste(rgba, mask=rgba.getchannel("A"))
    return canvas


def _pair(value, name, minimum):
    """Validate a [a, b] integer pair param."""
    try:
        first, second = value
        first, second = int(first), int(second)
    except (TypeError, ValueError) as exc:
        raise InvalidParams(f"{name} must be a pair of integers, got {value!r}") from exc
    if first < minimum or second < minimum:
        raise InvalidParams(f"{name} values must be >= {minimum}, got {value!r}")
    return first, second


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def scale(buffer, dim):
    """Resize to fit inside dim=[w, h], keeping the aspect ratio."""
    target_w, target_h = _pair(dim, "dim", 1)
    width, height = buffer.size
    ratio = min(target_w / width, target_h / height)
    new_size = (
        max(1, min(target_w, round(width * ratio))),
        max(1, min(target_h, round(height * ratio))),
    )
    image = buffer.image.resize(new_size, Image.Resampling.LANCZOS)
    return replace(buffer, image=image)


def crop(buffer, start, size):
    """Extract the rectangle [x, y, x + w, y + h]."""
    x, y = _pair(start, "start", 0)
    w, h = _pair(size, "size", 1)
    width, height = buffer.size
    if x + w > width or y + h > height:
        raise OutOfBounds(
            f"Crop {w}x{h}+{x}+{y} exceeds image bounds {width}x{height}"
        )
    return replace(buffer, image=buffer.image.crop((x, y, x + w, y + h)))


def rotate(buffer, angle, background=None):
    """
    Rotate clockwise by angle degrees.

    Right angles are exact transposes. Other angles grow the canvas to hold
    the rotated content; the uncovered corners are transparent when the image
    or its output format has alpha, otherwise filled with background.
    """
    try:
        angle = float(angle) % 360
    except (TypeError, ValueError) as exc:
        raise InvalidParams(f"angle must be a number, got {angle!r}") from exc

    image = buffer.image
    if angle == 0:
        return replace(buffer, image=image.copy())
    if angle % 90 == 0:
        transpose = {
            90: Image.Transpose.ROTATE_270,
            180: Image.Transpose.ROTATE_180,
            270: Image.Transpose.ROTATE_90,
        }[int(angle)]
        return replace(buffer, image=image.transpose(transpose))

    if image.mode in ("1", "P"):
        image = image.convert("RGBA" if image.has_transparency_data else "RGB")

    if background is None and (image.has_transparency_data or buffer.format in ALPHA_FORMATS):
        if image.mode not in ("RGBA", "LA"):
            image = image.convert("RGBA")
        fill = (0,) * len(image.getbands())
    else:
        try:
            fill = ImageColor.getcolor(background or DEFAULT_BACKGROUND, image.mode)
        except ValueError as exc:
            raise InvalidParams(f"Invalid background color: {background!r}") from exc

    rotated = image.rotate(
        -angle,
        resample=Image.Resampling.BICUBIC,
        expand=True,
        fillcolor=fill,
    )
    return replace(buffer, image=rotated)


def strip_metadata(buffer):
    """Drop EXIF, ICC profile and comments. Pixels are untouched."""
    return replace(buffer, image=_pixels_only(buffer.image), metadata={})


def interlace(buffer, mode="line"):
    """Set the pixel storage order used when encoding."""
    if mode not in INTERLACE_MODES:
        raise InvalidParams(
            f"interlace mode must be one of {', '.join(INTERLACE_MODES)}, got {mode!r}"
        )
    return replace(buffer, interlace=mode)


def relative_resize(buffer, scale):
    """Multiply both sides by scale, rounding each to at least 1px."""
    try:
        factor = float(scale)
    except (TypeError, ValueError) as exc:
        raise InvalidParams(f"scale must be a number, got {scale!r}") from exc
    if factor <= 0:
        raise InvalidParams(f"scale must be > 0, got {scale!r}")

    width, height = buffer.size
    new_size = (max(1, round(width * factor)), max(1, round(height * factor)))
    image = buffer.image.resize(new_size, Image.Resampling.LANCZOS)
    return replace(buffer, image=image)


def convert(buffer, format, quality=None):
    """
    Re-encode as another format.

    Converting a transparent image to a format without alpha flattens it onto
    white. That loses the transparency, so it is logged rather than refused.
    """
    fmt = normalize_format(format)
    if quality is not None:
        quality = _quality(quality)

    image = buffer.image
    if fmt in OPAQUE_FORMATS and image.has_transparency_data:
        logger.warning(
            "Converting %s image with transparency to %s; alpha channel dropped",
            buffer.format,
            fmt,
        )
        image = _flatten(image)

    return replace(
        buffer,
        image=image,
        format=fmt,
        quality=buffer.quality if quality is None else quality,
    )


def thumbnail(buffer, size, mode="outbound"):
    """
    Fit into size=[w, h].

    outbound: scale and centre-crop to exactly w x h.
    inset: shrink to fit inside w x h, never enlarging.
    """
    target = _pair(size, "size", 1)
    if mode == "outbound":
        image = ImageOps.fit(buffer.image, target, Image.Resampling.LANCZOS)
    elif mode == "inset":
        image = buffer.image.copy()
        image.thumbnail(target, Image.Resampling.LANCZOS)
    else:
        raise InvalidParams(f"thumbnail mode must be outbound or inset, got {mode!r}")
    return replace(buffer, image=image)


def _quality(value):
    try:
        quality = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParams(f"quality must be an integer, got {value!r}") from exc
    if not 0 <= quality <= 100:
        raise InvalidParams(f"quality must be between 0 and 100, got {value!r}")
    return quality


PRIMITIVES = {
    Primitive.SCALE: scale,
    Primitive.CROP: crop,
    Primitive.ROTATE: rotate,
    Primitive.STRIP_METADATA: strip_metadata,
    Primitive.INTERLACE: interlace,
    Primitive.RELATIVE_RESIZE: relative_resize,
    Primitive.CONVERT: convert,
    Primitive.THUMBNAIL: thumbnail,
}
