from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

THUMB_SIZE = 256
JPEG_QUALITY = 85


def make_thumbnail(src: Path, dest: Path, size: int = THUMB_SIZE, log=None) -> bool:
    """Downscale *src* to fit a ``size`` x ``size`` box and save it as JPEG."""
    try:
        with Image.open(src) as img:
            img = ImageOps.exif_transpose(img)
            img.thumbnail((size, size), Image.Resampling.LANCZOS)
            if img.mode != 'RGB':
                img = img.convert('RGB')
            dest.parent.mkdir(parents=True, exist_ok=True)
            img.save(dest, 'JPEG', quality=JPEG_QUALITY)
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as exc:
        if log:
            log(f'thumbnail decode failed for {src.name}: {exc}')
        return False
    return True
