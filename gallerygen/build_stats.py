"""
BuildStats - Statistics for a manifest build.
"""

import time
from dataclasses import dataclass, field
from typing import List


@dataclass
class BuildStats:
    """
    Statistics for a manifest build.

    Attributes:
        collections: Collections written to the manifest
        images: Images written to the manifest
        skipped: Image references excluded (unresolved, no URL, 404, no variants)
        variants: Variant files written
        bytes_written: Total bytes of variant files
        downloads: Source images actually downloaded (cache misses)
        start_time: Start timestamp
        skip_details: One message per skipped reference
    """
    collections: int = 0
    images: int = 0
    skipped: int = 0
    variants: int = 0
    bytes_written: int = 0
    downloads: int = 0
    start_time: float = field(default_factory=time.time)
    skip_details: List[str] = field(default_factory=list)

    def record_skip(self, message: str) -> None:
        self.skipped += 1
        self.skip_details.append(message)

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def rate_per_minute(self) -> float:
        """Images built per minute."""
        if self.elapsed_seconds > 0:
            return self.images / self.elapsed_seconds * 60
        return 0.0

    @property
    def completed_count(self) -> int:
        """Total image references handled (built + skipped)."""
        return self.images + self.skipped
