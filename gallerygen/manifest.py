"""
ImageManifest - The persisted description of all collections, images and variants.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .image_entry import CollectionEntry, ImageEntry, Number, to_positive
from .collection_stats import CollectionStats

DEFAULT_MANIFEST_PATH = os.path.join('generated', 'image-manifest.json')

logger = logging.getLogger(__name__)


@dataclass
class ImageManifest:
    """
    Root aggregate bridging build time and serve time.

    Attributes:
        generated_at: ISO timestamp of the build (None if unknown)
        widths: Ascending width preset the pipeline attempted
        collections: Mapping of collection slug -> CollectionEntry
    """
    generated_at: Optional[str] = None
    widths: List[Number] = field(default_factory=list)
    collections: Dict[str, CollectionEntry] = field(default_factory=dict)

    def add_collection(self, collection: CollectionEntry) -> None:
        """Add a collection, replacing any previous entry with the same slug."""
        self.collections[collection.slug] = collection

    def iter_images(self) -> Iterator[Tuple[CollectionEntry, ImageEntry]]:
        """Yield (collection, image) pairs in manifest order."""
        for collection in self.collections.values():
            for image in collection.images:
                yield collection, image

    @property
    def total_images(self) -> int:
        """Total number of images across all collections."""
        return sum(len(c.images) for c in self.collections.values())

    @property
    def total_variants(self) -> int:
        """Total number of variant files."""
        return sum(len(image.variants) for _, image in self.iter_images())

    @property
    def total_bytes(self) -> int:
        """Total encoded size of all variants."""
        return sum(image.total_bytes for _, image in self.iter_images())

    @property
    def collection_stats(self) -> Dict[str, CollectionStats]:
        """Statistics per collection, keyed by slug."""
        return {
            slug: CollectionStats.for_collection(collection)
            for slug, collection in self.collections.items()
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'generatedAt': self.generated_at,
            'widths': list(self.widths),
            'collections': {
                slug: collection.to_dict()
                for slug, collection in self.collections.items()
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + '\n'

    @classmethod
    def from_dict(cls, data: Any) -> 'ImageManifest':
        """
        Create from untrusted data.

        Never raises on shape: wrong-typed fields fall back to defaults and
        invalid collections/images/variants are dropped.
        """
        if not isinstance(data, dict):
            return cls()

        generated_at = data.get('generatedAt')
        raw_widths = data.get('widths') if isinstance(data.get('widths'), list) else []
        widths = sorted({w for w in (to_positive(v) for v in raw_widths) if w is not None})

        manifest = cls(
            generated_at=generated_at if isinstance(generated_at, str) else None,
            widths=widths,
        )

        raw_collections = data.get('collections')
        if isinstance(raw_collections, dict):
            for key, raw in raw_collections.items():
                collection = CollectionEntry.parse(str(key), raw)
                if collection is not None:
                    manifest.add_collection(collection)

        return manifest

    def save(self, filepath: str) -> None:
        """
        Save manifest to a JSON file atomically.

        The JSON is written to a temporary file in the destination directory
        and moved into place, so readers never see a partial manifest.
        """
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.to_json()

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix='.tmp',
            dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        size_kb = path.stat().st_size / 1024
        logger.info(f"Manifest saved: {filepath} ({size_kb:.1f} KB)")

    @classmethod
    def load(cls, filepath: str) -> 'ImageManifest':
        """
        Load manifest from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            json.JSONDecodeError: If the file is not valid JSON
        """
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def create_new(cls, widths: List[Number]) -> 'ImageManifest':
        """Create a new empty manifest stamped with the current UTC time."""
        generated_at = datetime.now(timezone.utc).isoformat(timespec='milliseconds')
        return cls(
            generated_at=generated_at.replace('+00:00', 'Z'),
            widths=list(widths),
        )
