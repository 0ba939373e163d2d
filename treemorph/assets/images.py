"""Photo sources for the ornament slots: discovery, decoding, placeholders."""

import colorsys
import logging
import os

import numpy as np
from PIL import Image, ImageDraw

from treemorph.morph.ornaments import assign_image_slots

logger = logging.getLogger(__name__)

PHOTOS_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "assets", "photos",
)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")
PLACEHOLDER_COUNT = 11
TEXTURE_SIZE = 512


def list_image_sources(directory: str = PHOTOS_DIR) -> list[str]:
    """Sorted image paths in `directory` (empty if it doesn't exist)."""
    if not os.path.isdir(directory):
        return []
    return [
        os.path.join(directory, fname)
        for fname in sorted(os.listdir(directory))
        if fname.lower().endswith(IMAGE_EXTENSIONS)
    ]


def slot_sources(slot_count: int, sources: list) -> list:
    """The source shown by each ornament slot, reusing sources cyclically."""
    return [sources[i] for i in assign_image_slots(slot_count, len(sources))]


def load_image(path: str, size: int = TEXTURE_SIZE) -> Image.Image:
    """Decode an image as RGBA, centre-cropped to a square of `size`."""
    with Image.open(path) as img:
        img = img.convert("RGBA")
    side = min(img.size)
    left = (img.width - side) // 2
    top = (img.height - side) // 2
    img = img.crop((left, top, left + side, top + side))
    return img.resize((size, size), Image.Resampling.LANCZOS)


def placeholder_image(index: int, size: int = TEXTURE_SIZE) -> Image.Image:
    """A festive solid card with a frame, used when no photos are available."""
    hue = (index * 0.137) % 1.0
    r, g, b = colorsys.hsv_to_rgb(hue, 0.55, 0.85)
    img = Image.new("RGBA", (size, size), (int(r * 255), int(g * 255), int(b * 255), 255))
    draw = ImageDraw.Draw(img)
    border = size // 16
    draw.rectangle((0, 0, size - 1, size - 1), outline=(255, 245, 220, 255), width=border)
    draw.ellipse((size // 3, size // 3, 2 * size // 3, 2 * size // 3), fill=(255, 255, 255, 200))
    return img


def load_sources(directory: str = PHOTOS_DIR) -> list[Image.Image]:
    """Every photo in `directory`, or generated placeholders if there are none."""
    paths = list_image_sources(directory)
    images = []
    for path in paths:
        try:
            images.append(load_image(path))
        except OSError as e:
            logger.warning("[Assets] Skipping unreadable image %s: %s", path, e)
    if not images:
        logger.warning("[Assets] No photos in %s, using %d placeholders",
                       directory, PLACEHOLDER_COUNT)
        images = [placeholder_image(i) for i in range(PLACEHOLDER_COUNT)]
    else:
        logger.info("[Assets] Loaded %d photos from %s", len(images), directory)
    return images


def image_bytes(img: Image.Image) -> bytes:
    """RGBA bytes flipped for bottom-up GL texture rows."""
    return np.ascontiguousarray(np.asarray(img, dtype=np.uint8)[::-1]).tobytes()
