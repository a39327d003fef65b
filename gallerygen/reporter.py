"""
Reporter - Generates human-readable reports from manifest data.
"""

import logging
import sys
from collections import defaultdict
from typing import Dict, List, Optional, TextIO

from .build_stats import BuildStats
from .image_sources import ImageSource
from .manifest import ImageManifest


class Reporter:
    """
    Generates human-readable reports from manifest data.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reporter.

        Args:
            output: Output stream (default: stdout)
            logger: Optional logger instance
        """
        self.output = output or sys.stdout
        self.logger = logger or logging.getLogger(__name__)

    def _print(self, text: str = "") -> None:
        """Print to output stream."""
        print(text, file=self.output)

    def _format_bytes(self, bytes_val: float) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} PB"

    def _format_duration(self, seconds: float) -> str:
        """Format duration as human-readable string."""
        if seconds < 60:
            return f"{seconds:.1f} seconds"
        elif seconds < 3600:
            return f"{seconds / 60:.1f} minutes"
        else:
            return f"{seconds / 3600:.1f} hours"

    def _analyze_widths(
        self,
        manifest: ImageManifest,
        collections: Optional[List[str]] = None
    ) -> Dict[int, dict]:
        """
        Count variants per width.

        Returns:
            Dict of width -> {'count': int, 'total_bytes': int}
        """
        by_width: Dict[int, dict] = defaultdict(lambda: {'count': 0, 'total_bytes': 0})
        for collection, image in manifest.iter_images():
            if collections and collection.slug not in collections:
                continue
            for variant in image.variants:
                width = int(variant.width)
                by_width[width]['count'] += 1
                by_width[width]['total_bytes'] += variant.size
        return by_width

    def report_summary(self, manifest: ImageManifest) -> None:
        """Generate a summary report."""
        self._print("=" * 70)
        self._print("GALLERY IMAGE MANIFEST SUMMARY")
        self._print("=" * 70)
        self._print()

        self._print("Manifest Information:")
        self._print(f"  Generated:   {manifest.generated_at or 'unknown'}")
        widths = ', '.join(str(w) for w in manifest.widths) or 'none'
        self._print(f"  Widths:      {widths}")
        self._print()

        self._print("Overall Statistics:")
        self._print(f"  Collections:          {len(manifest.collections):,}")
        self._print(f"  Total Images:         {manifest.total_images:,}")
        self._print(f"  Total Variants:       {manifest.total_variants:,}")
        self._print(f"  Total Size:           {self._format_bytes(manifest.total_bytes)}")
        self._print()

        if not manifest.collections:
            self._print("No collections in manifest.")
            self._print()
            return

        self._print("Collections:")
        self._print("-" * 70)
        self._print(f"{'Collection':<24} {'Images':>8} {'Variants':>10} {'Per Image':>10} {'Max Width':>12}")
        self._print("-" * 70)

        all_stats = manifest.collection_stats
        for name in sorted(all_stats.keys()):
            stats = all_stats[name]
            self._print(
                f"{name:<24} {stats.total_images:>8,} {stats.total_variants:>10,} "
                f"{stats.variants_per_image:>10.1f} {stats.max_width:>12,}"
            )

        self._print("-" * 70)
        self._print()

    def report_detailed(
        self,
        manifest: ImageManifest,
        collections: Optional[List[str]] = None
    ) -> None:
        """Generate a detailed report including size information per width."""
        self.report_summary(manifest)

        self._print("Storage Statistics:")
        self._print("-" * 70)
        self._print(f"{'Collection':<24} {'Variant Size':>15} {'Avg / Image':>15}")
        self._print("-" * 70)

        all_stats = manifest.collection_stats
        for name in sorted(all_stats.keys()):
            if collections and name not in collections:
                continue
            stats = all_stats[name]
            avg_bytes = stats.total_bytes / stats.total_images if stats.total_images else 0
            self._print(
                f"{name:<24} "
                f"{self._format_bytes(stats.total_bytes):>15} "
                f"{self._format_bytes(avg_bytes):>15}"
            )

        self._print("-" * 70)
        self._print()

        by_width = self._analyze_widths(manifest, collections)
        if not by_width:
            self._print("No variants found in manifest.")
            self._print()
            return

        self._print("Variants by Width:")
        self._print(f"    {'Width':<10} {'Count':>10} {'Total Size':>14} {'Avg Size':>12}")
        self._print(f"    {'-'*10} {'-'*10} {'-'*14} {'-'*12}")
        for width in sorted(by_width):
            count = by_width[width]['count']
            total_bytes = by_width[width]['total_bytes']
            avg_bytes = total_bytes // count if count > 0 else 0
            self._print(
                f"    {width:<10} {count:>10,} "
                f"{self._format_bytes(total_bytes):>14} {self._format_bytes(avg_bytes):>12}"
            )
        self._print()

    def report_images(
        self,
        manifest: ImageManifest,
        collections: Optional[List[str]] = None,
        limit: int = 100
    ) -> None:
        """List images with their variant widths."""
        self._print("=" * 70)
        self._print("IMAGES")
        self._print("=" * 70)
        self._print()

        count = 0
        for collection, image in manifest.iter_images():
            if collections and collection.slug not in collections:
                continue
            widths = ', '.join(str(v.width) for v in image.variants)
            self._print(f"  [{collection.slug}] {image.slug} ({widths})")
            count += 1
            if count >= limit:
                remaining = manifest.total_images - count
                if remaining > 0:
                    self._print(f"  ... and {remaining:,} more")
                break

        self._print()
        self._print(f"Total images: {manifest.total_images:,}")
        self._print()

    def report_build(self, stats: BuildStats, dry_run: bool = False) -> None:
        """Print the statistics of a finished build."""
        self._print("=" * 70)
        self._print("BUILD RESULT [DRY RUN]" if dry_run else "BUILD RESULT")
        self._print("=" * 70)
        self._print()

        label = "Images Resolved:" if dry_run else "Images Built:"
        self._print(f"  Collections:          {stats.collections:,}")
        self._print(f"  {label:<22}{stats.images:,}")
        self._print(f"  Skipped:              {stats.skipped:,}")
        if not dry_run:
            self._print(f"  Variants Written:     {stats.variants:,}")
            self._print(f"  Bytes Written:        {self._format_bytes(stats.bytes_written)}")
            self._print(f"  Downloads:            {stats.downloads:,}")
        self._print(f"  Time:                 {self._format_duration(stats.elapsed_seconds)}")
        self._print()

        if stats.skip_details:
            self._print("Skipped References:")
            for detail in stats.skip_details:
                self._print(f"  {detail}")
            self._print()

    def report_sources(self, source: ImageSource) -> None:
        """Print the resolved sources of one image."""
        self._print(f"Collection:  {source.collection.slug}")
        self._print(f"Image:       {source.image.slug}")
        self._print(f"Hash:        {source.hash or 'unknown'}")
        self._print(f"src:         {source.src} ({source.width}x{source.height})")
        self._print(f"sizes:       {source.sizes}")
        self._print("srcset:")
        for candidate in source.src_set.split(', '):
            self._print(f"  {candidate}")
        if source.preload:
            self._print(f"preload:     {source.preload.href}")
        else:
            self._print("preload:     none")
