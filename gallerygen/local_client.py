"""
LocalClient - Writes image variants under a local output root.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass
class LocalConfig:
    """
    Local filesystem configuration.

    Attributes:
        root_path: Output root for variant files (e.g., public/i)
        url_prefix: Public URL prefix the root is served under (e.g., /i)
    """
    root_path: str = os.path.join('public', 'i')
    url_prefix: str = '/i'

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        root = Path(self.root_path).resolve()
        if not self.root_path or root == Path(root.anchor):
            errors.append(f"Refusing to use filesystem root as output root: {self.root_path!r}")
        elif root == Path.cwd().resolve():
            errors.append("Output root must not be the working directory (it is cleared on every build)")
        if root.exists() and not root.is_dir():
            errors.append(f"Output root is not a directory: {self.root_path}")
        return errors


class LocalClient:
    """
    Storage client for the local filesystem.

    Mirrors the S3Client interface so the builder can use either.
    """

    def __init__(self, config: LocalConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize local client.

        Args:
            config: Local configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.root = Path(config.root_path)

    def clear(self) -> None:
        """Remove everything under the output root and recreate it."""
        if self.root.exists():
            self.logger.info(f"Clearing output root: {self.root}")
            shutil.rmtree(self.root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Filesystem path for a storage key."""
        return self.root.joinpath(*key.split('/'))

    def upload_object(
        self,
        key: str,
        data: bytes,
        content_type: str = 'application/octet-stream'
    ) -> None:
        """Write an object below the output root."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)

    def public_url(self, key: str) -> str:
        """URL the presentation layer uses for a storage key."""
        return f"{self.config.url_prefix.rstrip('/')}/{key}"

    def describe(self) -> str:
        return f"local:{self.root}"
