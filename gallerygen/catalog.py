"""
GalleryCatalog - Read-only, serve-time view of an image manifest.
"""

import copy
import logging
from typing import List, Optional, Tuple

from .image_entry import CollectionEntry, ImageEntry, collection_sort_key
from .image_sources import (
    DEFAULT_SIZES,
    FORWARD,
    ImageSource,
    neighbour_index,
    resolve_image_sources,
)
from .manifest import ImageManifest


class GalleryCatalog:
    """
    Immutable snapshot of a manifest.

    The catalog keeps its own deep copy of the manifest and every public
    method returns deep copies, so callers can neither observe nor cause
    mutations across calls. Safe to share between concurrent requests.
    """

    def __init__(self, manifest: ImageManifest):
        self._manifest = copy.deepcopy(manifest)

    @classmethod
    def from_dict(cls, data) -> 'GalleryCatalog':
        """Build a catalog from untrusted manifest data."""
        return cls(ImageManifest.from_dict(data))

    def _find(self, collection_slug: str, image_slug: str) -> Tuple[Optional[CollectionEntry], int]:
        collection = self._manifest.collections.get(collection_slug)
        if collection is None:
            return None, -1
        return collection, collection.index_of(image_slug)

    def get_manifest(self) -> ImageManifest:
        return copy.deepcopy(self._manifest)

    def get_collections(self) -> List[CollectionEntry]:
        """All collections, by explicit order (missing last) then slug."""
        ordered = sorted(self._manifest.collections.values(), key=collection_sort_key)
        return [copy.deepcopy(c) for c in ordered]

    def get_collection(self, slug: str) -> Optional[CollectionEntry]:
        collection = self._manifest.collections.get(slug)
        return copy.deepcopy(collection) if collection is not None else None

    def get_collection_image(
        self,
        collection_slug: str,
        image_slug: str
    ) -> Optional[Tuple[CollectionEntry, ImageEntry, int]]:
        """Return (collection, image, index), or None if either slug is unknown."""
        collection, index = self._find(collection_slug, image_slug)
        if collection is None or index == -1:
            return None

        collection_copy = copy.deepcopy(collection)
        return collection_copy, collection_copy.images[index], index

    def get_image_sources(
        self,
        collection_slug: str,
        image_slug: str,
        sizes: str = DEFAULT_SIZES,
        direction: str = FORWARD,
        loop: bool = False,
        prefer_largest: bool = False
    ) -> Optional[ImageSource]:
        """
        Responsive sources for an image plus a preload hint for its neighbour.

        Args:
            collection_slug: Collection slug
            image_slug: Image slug
            sizes: sizes attribute to pass through (default: '100vw')
            direction: 'forward' or 'backward', which neighbour to preload
            loop: Wrap around the ends of the collection
            prefer_largest: Use the largest variant as primary src

        Returns:
            ImageSource, or None for unknown slugs or images without variants
        """
        collection = self._manifest.collections.get(collection_slug)
        if collection is None:
            return None

        return resolve_image_sources(
            copy.deepcopy(collection),
            image_slug,
            sizes=sizes,
            direction=direction,
            loop=loop,
            prefer_largest=prefer_largest,
        )

    def get_next_image_slug(
        self,
        collection_slug: str,
        image_slug: str,
        direction: str = FORWARD,
        loop: bool = False
    ) -> Optional[str]:
        """Slug of the neighbouring image, or None at the ends without loop."""
        collection, index = self._find(collection_slug, image_slug)
        if collection is None or index == -1:
            return None

        target = neighbour_index(index, len(collection.images), direction, loop)
        return collection.images[target].slug if target is not None else None

    @property
    def generated_at(self) -> Optional[str]:
        return self._manifest.generated_at


def load_catalog(filepath: str, logger: Optional[logging.Logger] = None) -> GalleryCatalog:
    """
    Load a manifest file into a catalog.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    logger = logger or logging.getLogger(__name__)
    manifest = ImageManifest.load(filepath)
    logger.info(
        f"Loaded manifest {filepath}: {len(manifest.collections)} collections, "
        f"{manifest.total_images} images (generated {manifest.generated_at or 'unknown'})"
    )
    return GalleryCatalog(manifest)
