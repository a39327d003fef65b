"""
BuildProgress - Tracks and displays manifest build progress.
"""

import logging
from typing import Optional

from .build_stats import BuildStats
from .image_entry import ImageEntry


class BuildProgress:
    """
    Tracks and displays build progress with optional per-image output.
    """

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 25,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each image as it's processed
            log_interval: Log summary progress every N images (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = 0

    def on_collection_start(self, collection_slug: str, references: int) -> None:
        """Called when starting to process a collection."""
        if self.show_files:
            print(f"\n=== Collection: {collection_slug} ({references} references) ===")
        else:
            self.logger.info(f"Processing collection: {collection_slug} ({references} references)")

    def on_image_built(self, collection_slug: str, image: ImageEntry) -> None:
        """Called when an image and its variants have been written."""
        if self.show_files:
            widths = ', '.join(str(v.width) for v in image.variants)
            size_str = self._format_bytes(image.total_bytes)
            print(f"  [OK] {collection_slug}/{image.slug} -> {len(image.variants)} variants [{widths}] ({size_str})")

    def on_image_skipped(self, collection_slug: str, reason: str) -> None:
        """Called when an image reference is excluded."""
        if self.show_files:
            print(f"  [SKIP] {collection_slug}: {reason}")

    def on_dry_run(self, collection_slug: str, image_slug: str, url: str) -> None:
        """Called in dry-run mode."""
        if self.show_files:
            print(f"  [DRY RUN] {collection_slug}/{image_slug} <- {url}")

    def on_progress_update(self, stats: BuildStats) -> None:
        """
        Called after every image reference to report overall progress.

        Args:
            stats: Current build statistics
        """
        total_done = stats.completed_count

        if not self.show_files and total_done - self.last_logged >= self.log_interval:
            self.last_logged = total_done
            self.logger.info(
                f"Progress: {stats.images} images, {stats.variants} variants, "
                f"{stats.skipped} skipped ({stats.rate_per_minute:.1f}/min)"
            )

    @staticmethod
    def _format_bytes(bytes_val: Optional[int]) -> str:
        """Format bytes as human-readable string."""
        if bytes_val is None:
            return "unknown"
        for unit in ['B', 'KB', 'MB', 'GB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} TB"

    def __call__(self, stats: BuildStats) -> None:
        """Allow use as callback for stats updates."""
        self.on_progress_update(stats)
