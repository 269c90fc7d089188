"""
Product image pipeline.

Downloads a remote product image, pads it onto a fixed canvas and stores it
as WebP under PRODUCT_IMAGE_ROOT. Best-effort: any failure is logged and
reported as None so the product save is never affected.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Tuple

import httpx
from asgiref.sync import sync_to_async
from django.conf import settings
from PIL import Image, ImageOps

logger = logging.getLogger(__name__)


def fit_to_canvas(
    data: bytes,
    size: Tuple[int, int],
    background: Tuple[int, int, int],
    quality: int,
) -> bytes:
    """
    Scale an image to fit inside size, centre it on a solid background and
    encode it as WebP.
    """
    with Image.open(io.BytesIO(data)) as source:
        image = source.convert("RGBA")

    canvas = Image.new("RGBA", image.size, background + (255,))
    canvas.alpha_composite(image)
    padded = ImageOps.pad(
        canvas.convert("RGB"),
        size,
        method=Image.LANCZOS,
        color=background,
        centering=(0.5, 0.5),
    )

    buffer = io.BytesIO()
    padded.save(buffer, format="WEBP", quality=quality)
    return buffer.getvalue()


class ImageProcessor:
    """Download, resize and store product images."""

    def __init__(
        self,
        output_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
        size: Optional[Tuple[int, int]] = None,
        background: Optional[Tuple[int, int, int]] = None,
        quality: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.output_dir = Path(output_dir or settings.PRODUCT_IMAGE_ROOT)
        self.url_prefix = (url_prefix or settings.PRODUCT_IMAGE_URL_PREFIX).rstrip("/")
        self.size = tuple(size or settings.PRODUCT_IMAGE_SIZE)
        self.background = tuple(background or settings.PRODUCT_IMAGE_BACKGROUND)
        self.quality = quality or settings.PRODUCT_IMAGE_QUALITY
        self.timeout = timeout or getattr(settings, "PRODUCT_IMAGE_DOWNLOAD_TIMEOUT", 30)

    async def _download(self, image_url: str) -> bytes:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(image_url)
            response.raise_for_status()
            return response.content

    def _store(self, data: bytes, slug: str) -> str:
        encoded = fit_to_canvas(data, self.size, self.background, self.quality)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        (self.output_dir / f"{slug}.webp").write_bytes(encoded)
        return f"{self.url_prefix}/{slug}.webp"

    async def download_and_process(self, image_url: str, slug: str) -> Optional[str]:
        """
        Store the image for a product.

        Args:
            image_url: Remote image URL
            slug: Product slug, used as the file name

        Returns:
            Public path such as "/images/products/<slug>.webp", or None on failure
        """
        try:
            data = await self._download(image_url)
            path = await sync_to_async(self._store, thread_sensitive=False)(data, slug)
        except (httpx.HTTPError, OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning(f"Image processing failed for {slug} ({image_url}): {e}")
            return None

        logger.info(f"Saved product image {path}")
        return path
