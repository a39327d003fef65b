"""
CollectionStats - Statistics for a single collection.
"""

from dataclasses import dataclass, asdict


@dataclass
class CollectionStats:
    """
    Statistics for a single collection.

    Attributes:
        name: Collection slug
        total_images: Number of images
        total_variants: Number of variant files
        total_bytes: Total encoded size of all variants
        max_width: Widest variant in the collection
    """
    name: str
    total_images: int = 0
    total_variants: int = 0
    total_bytes: int = 0
    max_width: int = 0

    @property
    def variants_per_image(self) -> float:
        """Average number of variants per image."""
        if self.total_images == 0:
            return 0.0
        return self.total_variants / self.total_images

    @classmethod
    def for_collection(cls, collection) -> 'CollectionStats':
        """Compute statistics for a CollectionEntry."""
        stats = cls(name=collection.slug)
        for image in collection.images:
            stats.total_images += 1
            stats.total_variants += len(image.variants)
            stats.total_bytes += image.total_bytes
            stats.max_width = max(stats.max_width, int(image.largest.width))
        return stats

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'CollectionStats':
        """Create from dictionary."""
        return cls(**data)
