"""
Responsive source and preload resolution for a single image.
"""

from dataclasses import dataclass
from typing import List, Optional

from .image_entry import CollectionEntry, ImageEntry, ImageVariant

FORWARD = 'forward'
BACKWARD = 'backward'
DIRECTIONS = (FORWARD, BACKWARD)
DEFAULT_SIZES = '100vw'


@dataclass
class PreloadDescriptor:
    """Attributes of a <link rel="preload" as="image"> for the next image."""
    href: str
    imagesrcset: str
    imagesizes: str
    rel: str = 'preload'
    as_: str = 'image'
    type: str = 'image/jpeg'

    def to_dict(self) -> dict:
        return {
            'rel': self.rel,
            'as': self.as_,
            'href': self.href,
            'imagesrcset': self.imagesrcset,
            'imagesizes': self.imagesizes,
            'type': self.type,
        }


@dataclass
class ImageSource:
    """
    Everything the presentation layer needs to render one image.

    Attributes:
        src: URL of the primary variant
        src_set: srcset string covering every variant
        sizes: sizes hint passed through from the caller
        hash: Content hash of the original
        width: Width of the primary variant
        height: Height of the primary variant
        image: The image entry
        collection: The owning collection
        preload: Preload hint for the neighbouring image, if there is one
    """
    src: str
    src_set: str
    sizes: str
    hash: str
    width: float
    height: float
    image: ImageEntry
    collection: CollectionEntry
    preload: Optional[PreloadDescriptor] = None


def build_src_set(variants: List[ImageVariant]) -> str:
    return ', '.join(f"{v.src} {v.width}w" for v in variants)


def primary_variant(variants: List[ImageVariant], prefer_largest: bool = False) -> ImageVariant:
    return variants[-1] if prefer_largest else variants[0]


def neighbour_index(index: int, total: int, direction: str = FORWARD, loop: bool = False) -> Optional[int]:
    """
    Index of the neighbouring image, or None past either end without loop.

    Raises:
        ValueError: If direction is not 'forward' or 'backward'
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
    if total <= 0:
        return None

    target = index - 1 if direction == BACKWARD else index + 1
    if loop:
        target %= total
    if target < 0 or target >= total:
        return None
    return target


def resolve_preload(
    collection: CollectionEntry,
    index: int,
    direction: str = FORWARD,
    sizes: str = DEFAULT_SIZES,
    loop: bool = False
) -> Optional[PreloadDescriptor]:
    """Preload hint pointing at the neighbour's largest variant."""
    if len(collection.images) <= 1:
        return None

    target = neighbour_index(index, len(collection.images), direction, loop)
    if target is None:
        return None

    image = collection.images[target]
    if not image.variants:
        return None

    return PreloadDescriptor(
        href=image.largest.src,
        imagesrcset=build_src_set(image.variants),
        imagesizes=sizes,
    )


def resolve_image_sources(
    collection: CollectionEntry,
    image_slug: str,
    sizes: str = DEFAULT_SIZES,
    direction: str = FORWARD,
    loop: bool = False,
    prefer_largest: bool = False
) -> Optional[ImageSource]:
    """
    Resolve sources for an image of a collection.

    The returned ImageSource references the given collection and image
    objects; callers that hand results out should pass in copies.

    Returns:
        ImageSource, or None if the image is unknown or has no variants
    """
    index = collection.index_of(image_slug)
    if index == -1:
        return None

    image = collection.images[index]
    if not image.variants:
        return None

    primary = primary_variant(image.variants, prefer_largest)

    return ImageSource(
        src=primary.src,
        src_set=build_src_set(image.variants),
        sizes=sizes,
        hash=image.hash,
        width=primary.width,
        height=primary.height,
        image=image,
        collection=collection,
        preload=resolve_preload(collection, index, direction, sizes, loop),
    )
