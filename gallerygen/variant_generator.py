"""
VariantGenerator - Resizes a source image into a fixed ladder of JPEG widths.
"""

import io
import logging
import math
from dataclasses import dataclass
from typing import Iterator, List, Optional

from PIL import Image, UnidentifiedImageError

from .image_entry import ImageVariant

BASE_WIDTHS = (480, 640, 768, 960, 1024, 1280, 1440, 1536, 1600, 1920)
MAX_WIDTH = 3840
WIDTH_PRESET = tuple(sorted({
    width
    for width in BASE_WIDTHS + tuple(w * 2 for w in BASE_WIDTHS)
    if 0 < width <= MAX_WIDTH
}))


def compute_target_widths(
    original_width: Optional[float] = None,
    preset=WIDTH_PRESET,
    max_width: int = MAX_WIDTH
) -> List[int]:
    """
    Widths to attempt for an image.

    With a known original width the preset is cut at min(original, max_width)
    and that cap is always added, so the native resolution (or the closest
    allowed) is available. Without one, the full preset is used.
    """
    has_original = (
        isinstance(original_width, (int, float))
        and not isinstance(original_width, bool)
        and math.isfinite(original_width)
        and original_width > 0
    )
    cap = min(int(round(original_width)), max_width) if has_original else max_width

    widths = {width for width in preset if 0 < width <= cap}
    if has_original and cap > 0:
        widths.add(cap)

    result = sorted(widths)
    if not result:
        result = [cap if has_original and cap > 0 else (preset[0] if preset else 480)]
    return result


@dataclass
class RenderedVariant:
    """An encoded variant that has not been written anywhere yet."""
    width: int
    height: int
    data: bytes


class VariantGenerator:
    """
    Generates deterministic JPEG variants from original images using Pillow.

    Encoder settings are fixed so identical input and width always produce
    byte-identical output.
    """

    CONTENT_TYPE = 'image/jpeg'

    def __init__(
        self,
        quality: int = 82,
        subsampling: str = '4:2:0',
        progressive: bool = True,
        max_width: int = MAX_WIDTH,
        preset=WIDTH_PRESET,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize variant generator.

        Args:
            quality: JPEG quality (default: 82)
            subsampling: Chroma subsampling (default: '4:2:0')
            progressive: Write progressive JPEGs (default: True)
            max_width: Hard cap on output width (default: 3840)
            preset: Ascending widths to attempt
            logger: Optional logger instance
        """
        self.quality = quality
        self.subsampling = subsampling
        self.progressive = progressive
        self.max_width = max_width
        self.preset = tuple(preset)
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def variant_key(collection_slug: str, width: int, image_slug: str) -> str:
        """Storage key for a variant: <collection>/w-<width>/<image>.jpg"""
        return f"{collection_slug}/w-{width}/{image_slug}.jpg"

    def target_widths(self, original_width: Optional[float] = None) -> List[int]:
        return compute_target_widths(original_width, self.preset, self.max_width)

    def open_image(self, image_data: bytes) -> Optional[Image.Image]:
        """Decode image bytes, or None if they are empty or not an image."""
        if not image_data:
            return None
        try:
            img = Image.open(io.BytesIO(image_data))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            self.logger.warning(f"Cannot decode image: {e}")
            return None
        return self._convert_color_mode(img)

    def render_variants(
        self,
        image_data: bytes,
        original_width: Optional[float] = None
    ) -> Iterator[RenderedVariant]:
        """
        Render variants one width at a time.

        Widths that collapse onto an already produced width (the source is
        narrower than the target) are skipped.

        Args:
            image_data: Original image as bytes
            original_width: Width reported by the CMS, if known

        Yields:
            RenderedVariant in ascending width order
        """
        img = self.open_image(image_data)
        if img is None:
            return

        seen = set()
        for target_width in self.target_widths(original_width):
            resized = self._resize_inside(img, target_width)
            width, height = resized.size
            if width in seen:
                continue
            seen.add(width)
            yield RenderedVariant(width=width, height=height, data=self._encode(resized))

    def generate(
        self,
        image_data: bytes,
        collection_slug: str,
        image_slug: str,
        storage,
        original_width: Optional[float] = None
    ) -> List[ImageVariant]:
        """
        Render and write every variant of an image.

        Args:
            image_data: Original image as bytes
            collection_slug: Slug of the owning collection
            image_slug: Slug of the image
            storage: LocalClient or S3Client receiving the files
            original_width: Width reported by the CMS, if known

        Returns:
            ImageVariant list sorted by width; empty if the image is unusable
        """
        variants = []
        for rendered in self.render_variants(image_data, original_width):
            key = self.variant_key(collection_slug, rendered.width, image_slug)
            storage.upload_object(key, rendered.data, self.CONTENT_TYPE)
            self.logger.debug(f"  {key} {rendered.width}x{rendered.height} ({len(rendered.data)} bytes)")
            variants.append(ImageVariant(
                width=rendered.width,
                height=rendered.height,
                size=len(rendered.data),
                aspect_ratio=rendered.width / rendered.height if rendered.height > 0 else float(rendered.width),
                src=storage.public_url(key),
            ))

        variants.sort(key=lambda v: v.width)
        return variants

    def _resize_inside(self, img: Image.Image, target_width: int) -> Image.Image:
        """Scale to target_width preserving aspect ratio, never enlarging."""
        src_width, src_height = img.size
        if target_width >= src_width:
            return img
        height = max(1, int(round(src_height * target_width / src_width)))
        return img.resize((target_width, height), Image.Resampling.LANCZOS)

    def _encode(self, img: Image.Image) -> bytes:
        output = io.BytesIO()
        img.save(
            output,
            format='JPEG',
            quality=self.quality,
            subsampling=self.subsampling,
            progressive=self.progressive,
            optimize=True,
        )
        return output.getvalue()

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Convert image to RGB, flattening transparency onto white."""
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            if img.mode == 'LA':
                img = img.convert('RGBA')
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode == 'P':
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
