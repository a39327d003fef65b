"""
Manifest entities - variants, images and collections.

Each entity serialises with to_dict() using the manifest's camelCase keys.
parse() is the reverse and is defensive: the manifest is untrusted input,
so every field is coerced with a safe fallback and entities that fail
minimum validity come back as None instead of raising.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from .documents import to_numeric, to_optional_string

Number = Union[int, float]


def to_positive(value: Any) -> Optional[Number]:
    """Positive finite number, integral floats collapsed to int."""
    number = to_numeric(value)
    if number is None or number <= 0:
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def image_sort_key(image: 'ImageEntry'):
    return (image.order, image.slug)


def collection_sort_key(collection: 'CollectionEntry'):
    order = collection.order if collection.order is not None else math.inf
    return (order, collection.slug)


@dataclass
class ImageVariant:
    """
    One resized rendition of an image.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        size: Encoded size in bytes (serialised as 'bytes')
        aspect_ratio: width / height unless supplied explicitly
        src: Public URL of the file
    """
    width: Number
    height: Number
    size: int
    aspect_ratio: float
    src: str

    def to_dict(self) -> dict:
        return {
            'width': self.width,
            'height': self.height,
            'bytes': self.size,
            'aspectRatio': self.aspect_ratio,
            'src': self.src,
        }

    @classmethod
    def parse(cls, raw: Any) -> Optional['ImageVariant']:
        """Parse a variant; None unless width, height and src are usable."""
        if not isinstance(raw, dict):
            return None

        width = to_positive(raw.get('width'))
        height = to_positive(raw.get('height'))
        src = to_optional_string(raw.get('src'))
        if width is None or height is None or src is None:
            return None

        size = to_numeric(raw.get('bytes'))
        aspect_ratio = to_positive(raw.get('aspectRatio'))

        return cls(
            width=width,
            height=height,
            size=int(size) if size is not None and size >= 0 else 0,
            aspect_ratio=aspect_ratio if aspect_ratio is not None else width / height,
            src=src,
        )


@dataclass
class ImageEntry:
    """
    One photograph and its variants.

    Attributes:
        slug: Unique within the collection
        document_id: Source document id
        document_uid: Source document uid
        order: Explicit order or position in the source list
        caption: Optional caption
        credits: Optional credits line
        alt: Optional alternative text
        hash: SHA-256 of the original bytes
        variants: Variants sorted by ascending width, never empty
    """
    slug: str
    document_id: str
    document_uid: Optional[str]
    order: Number
    caption: Optional[str] = None
    credits: Optional[str] = None
    alt: Optional[str] = None
    hash: str = ''
    variants: List[ImageVariant] = field(default_factory=list)

    @property
    def smallest(self) -> ImageVariant:
        return self.variants[0]

    @property
    def largest(self) -> ImageVariant:
        return self.variants[-1]

    @property
    def total_bytes(self) -> int:
        return sum(v.size for v in self.variants)

    def to_dict(self) -> dict:
        return {
            'slug': self.slug,
            'documentId': self.document_id,
            'documentUid': self.document_uid,
            'order': self.order,
            'caption': self.caption,
            'credits': self.credits,
            'alt': self.alt,
            'hash': self.hash,
            'variants': [v.to_dict() for v in self.variants],
        }

    @classmethod
    def parse(cls, raw: Any, index: int) -> Optional['ImageEntry']:
        """
        Parse an image entry.

        Args:
            raw: Untrusted value from the manifest
            index: Position in the collection's image list (fallback order/slug)

        Returns:
            ImageEntry, or None if it has no valid variant
        """
        if not isinstance(raw, dict):
            return None

        variants = []
        seen_widths = set()
        raw_variants = raw.get('variants') if isinstance(raw.get('variants'), list) else []
        parsed = [ImageVariant.parse(v) for v in raw_variants]
        for variant in sorted((v for v in parsed if v is not None), key=lambda v: v.width):
            if variant.width in seen_widths:
                continue
            seen_widths.add(variant.width)
            variants.append(variant)

        if not variants:
            return None

        slug = to_optional_string(raw.get('slug')) or f"image-{index + 1}"
        order = to_numeric(raw.get('order'))

        return cls(
            slug=slug,
            document_id=to_optional_string(raw.get('documentId')) or slug,
            document_uid=to_optional_string(raw.get('documentUid')),
            order=order if order is not None else index,
            caption=to_optional_string(raw.get('caption')),
            credits=to_optional_string(raw.get('credits')),
            alt=to_optional_string(raw.get('alt')),
            hash=to_optional_string(raw.get('hash')) or '',
            variants=variants,
        )


@dataclass
class CollectionEntry:
    """
    A named, ordered group of images.

    Attributes:
        slug: Unique across the manifest
        title: Optional title
        description: Optional short description
        order: Optional display order (None sorts last)
        images: Images sorted by (order, slug)
    """
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    order: Optional[Number] = None
    images: List[ImageEntry] = field(default_factory=list)

    def index_of(self, image_slug: str) -> int:
        """Position of an image in the collection, -1 if absent."""
        for index, image in enumerate(self.images):
            if image.slug == image_slug:
                return index
        return -1

    def to_dict(self) -> dict:
        return {
            'slug': self.slug,
            'title': self.title,
            'description': self.description,
            'order': self.order,
            'images': [image.to_dict() for image in self.images],
        }

    @classmethod
    def parse(cls, key: str, raw: Any) -> Optional['CollectionEntry']:
        """
        Parse a collection entry.

        Args:
            key: The collection's key in the manifest mapping (fallback slug)
            raw: Untrusted value from the manifest

        Returns:
            CollectionEntry, or None if raw is not a mapping
        """
        if not isinstance(raw, dict):
            return None

        raw_images = raw.get('images') if isinstance(raw.get('images'), list) else []
        images = [ImageEntry.parse(value, index) for index, value in enumerate(raw_images)]
        images = sorted((image for image in images if image is not None), key=image_sort_key)

        return cls(
            slug=to_optional_string(raw.get('slug')) or key,
            title=to_optional_string(raw.get('title')),
            description=to_optional_string(raw.get('description')),
            order=to_numeric(raw.get('order')),
            images=images,
        )
