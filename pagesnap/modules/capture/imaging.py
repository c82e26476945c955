"""
Image pipeline - normalize a raw capture to PNG and optionally trim borders.
"""

from io import BytesIO

from PIL import Image, ImageChops, ImageColor, ImageFilter, UnidentifiedImageError

from pagesnap.shared.errors import ImageProcessingError
from pagesnap.shared.logging import get_logger

from .schemas import TRIM_COLOR_PATTERN

logger = get_logger(__name__)

OUTPUT_WIDTH = 1080
DEFAULT_TRIM_THRESHOLD = 10
DEFAULT_COMPRESS_LEVEL = 6


def process_image(
    raw: bytes,
    trim_color: str | None = None,
    *,
    width: int = OUTPUT_WIDTH,
    trim_threshold: int = DEFAULT_TRIM_THRESHOLD,
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
) -> bytes:
    """
    Resize a raster to ``width`` pixels wide and encode it as PNG.

    When ``trim_color`` is given, border regions matching that color are
    cropped away after resizing.

    Raises:
        ImageProcessingError: the raster cannot be decoded or the trim color
            is not 6 hex digits.
    """
    background = parse_trim_color(trim_color) if trim_color else None
    image = decode_raster(raw)

    image = resize_to_width(image, width)
    if background is not None:
        image = trim_background(image, background, threshold=trim_threshold, line_art=True)

    output = encode_png(image, compress_level=compress_level)
    logger.debug(f"Processed image: {len(raw)} -> {len(output)} bytes, size={image.size}")
    return output


def parse_trim_color(value: str) -> tuple[int, int, int]:
    """Parse a 6-hex-digit color (no leading '#') into an RGB tuple."""
    if not isinstance(value, str) or not TRIM_COLOR_PATTERN.fullmatch(value):
        raise ImageProcessingError(f"Unparsable trim color: {value!r}")
    try:
        return ImageColor.getrgb(f"#{value}")[:3]
    except ValueError as e:
        raise ImageProcessingError(f"Unparsable trim color: {value!r}") from e


def decode_raster(raw: bytes) -> Image.Image:
    # Pillow reports some broken PNG chunks as SyntaxError
    try:
        image = Image.open(BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        raise ImageProcessingError(f"Corrupt raster: {e}") from e

    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    return image


def resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """Scale to ``width`` keeping the aspect ratio."""
    if image.width == width:
        return image
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.Resampling.LANCZOS)


def trim_background(
    image: Image.Image,
    color: tuple[int, int, int],
    *,
    threshold: int = DEFAULT_TRIM_THRESHOLD,
    line_art: bool = True,
) -> Image.Image:
    """
    Crop uniform borders whose pixels are within ``threshold`` of ``color``.

    In line-art mode every pixel counts, so thin vector strokes keep their
    bounding box. Otherwise the difference mask is smoothed first, which drops
    isolated noisy pixels typical of photographic content.

    An image made entirely of background is returned unchanged.
    """
    rgb = image.convert("RGB")
    background = Image.new("RGB", rgb.size, color)

    diff = ImageChops.difference(rgb, background)
    # Per-pixel max channel distance
    r, g, b = diff.split()
    distance = ImageChops.lighter(ImageChops.lighter(r, g), b)
    if not line_art:
        distance = distance.filter(ImageFilter.MedianFilter(3))

    mask = distance.point(lambda p: 255 if p > threshold else 0)
    if image.mode == "RGBA":
        # Fully transparent pixels count as background
        alpha = image.getchannel("A").point(lambda p: 255 if p > 0 else 0)
        mask = ImageChops.multiply(mask, alpha)

    bbox = mask.getbbox()
    if bbox is None:
        return image
    return image.crop(bbox)


def encode_png(image: Image.Image, *, compress_level: int = DEFAULT_COMPRESS_LEVEL) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG", compress_level=compress_level)
    return buffer.getvalue()
