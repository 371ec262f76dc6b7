"""
Qt-free image I/O utilities.

Provides helpers to open images (including PSD), wrap them as SourceImage
values, encode rasters as PNG, and generate unique file paths.
Safe to import in worker processes.
"""

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from psd_tools import PSDImage

from image_toolkit.config import PNG_COMPRESS_LEVEL
from image_toolkit.errors import InvalidImage
from image_toolkit.models import SourceImage

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    path = Path(path)
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    return Image.open(path)


def decode_image(source) -> Image.Image:
    """Fully decode *source* (a path, bytes or an open PIL image).

    Raises InvalidImage if the data cannot be decoded.
    """
    try:
        if isinstance(source, Image.Image):
            img = source
        elif isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(source))
        else:
            img = open_image(Path(source))
        if img is None:
            # psd-tools returns None for a PSD with nothing to composite
            raise InvalidImage("Could not decode image: no pixel data")
        img.load()
    except InvalidImage:
        raise
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise InvalidImage(f"Could not decode image: {exc}") from exc
    return img


def load_source_image(source) -> SourceImage:
    """Decode *source* and wrap it for the crop session."""
    img = decode_image(source)
    path = Path(source) if isinstance(source, (str, Path)) else None
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    return SourceImage(img, path)


def encode_png(img: Image.Image, compress_level: int = PNG_COMPRESS_LEVEL) -> bytes:
    """Encode a raster as PNG bytes."""
    buffer = io.BytesIO()
    img.save(buffer, "PNG", compress_level=compress_level)
    return buffer.getvalue()


def save_png(img: Image.Image, out_path: Path) -> Path:
    """Save *img* as PNG at a unique path derived from *out_path*; return the path used."""
    out_path = unique_path(Path(out_path).with_suffix(".png"))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    img.save(str(out_path), "PNG", compress_level=PNG_COMPRESS_LEVEL)
    return out_path


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def unique_name(name: str, taken: set[str]) -> str:
    """In-memory counterpart of ``unique_path`` for archive member names."""
    if name not in taken:
        return name
    stem, dot, suffix = name.rpartition(".")
    if not dot:
        stem, suffix = name, ""
    counter = 1
    while True:
        candidate = f"{stem}-{counter:02d}" + (f".{suffix}" if dot else "")
        if candidate not in taken:
            return candidate
        counter += 1
