"""
PrismicConfig - Content API endpoint configuration.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .documents import to_numeric


REPOSITORY_FROM_ENDPOINT = re.compile(r'https?://([^.]+)\.')


@dataclass
class PrismicConfig:
    """
    Configuration for the Prismic content API.

    Attributes:
        api_endpoint: Full API v2 endpoint (e.g., https://repo.cdn.prismic.io/api/v2)
        repository_name: Repository name, used to derive the endpoint if missing
        access_token: Optional access token for private repositories
        timeout: HTTP timeout in seconds
        page_size: Documents per search page (Prismic caps this at 100)
    """
    api_endpoint: Optional[str] = None
    repository_name: Optional[str] = None
    access_token: Optional[str] = None
    timeout: Optional[float] = 30.0
    page_size: int = 100

    @staticmethod
    def endpoint_for_repository(repository_name: str) -> str:
        """Build the CDN endpoint for a repository name."""
        return f"https://{repository_name}.cdn.prismic.io/api/v2"

    @classmethod
    def from_env(cls) -> 'PrismicConfig':
        """Create configuration from PRISMIC_* environment variables only."""
        repository_name = os.getenv('PRISMIC_REPOSITORY_NAME') or None
        api_endpoint = os.getenv('PRISMIC_API_ENDPOINT') or None
        timeout = to_numeric(os.getenv('PRISMIC_TIMEOUT', '30'))
        if not api_endpoint and repository_name:
            api_endpoint = cls.endpoint_for_repository(repository_name)

        return cls(
            api_endpoint=api_endpoint,
            repository_name=repository_name,
            access_token=os.getenv('PRISMIC_ACCESS_TOKEN') or None,
            timeout=float(timeout) if timeout is not None else None,
        )

    @classmethod
    def resolve(
        cls,
        project_dir: str = '.',
        logger: Optional[logging.Logger] = None
    ) -> 'PrismicConfig':
        """
        Resolve configuration from the environment and project files.

        Order of precedence for the endpoint:
            1. PRISMIC_API_ENDPOINT
            2. apiEndpoint in slicemachine.config.json, then sm.json
            3. Derived from the repository name (PRISMIC_REPOSITORY_NAME,
               then repositoryName from the project files)

        Args:
            project_dir: Directory holding slicemachine.config.json / sm.json
            logger: Optional logger instance

        Returns:
            PrismicConfig, possibly without an endpoint (see validate())
        """
        logger = logger or logging.getLogger(__name__)
        config = cls.from_env()
        file_endpoint, file_repository = cls._read_project_files(Path(project_dir), logger)

        env_endpoint = os.getenv('PRISMIC_API_ENDPOINT') or None
        repository_name = config.repository_name or file_repository

        if env_endpoint:
            config.api_endpoint = env_endpoint
        elif file_endpoint:
            config.api_endpoint = file_endpoint
        elif repository_name:
            config.api_endpoint = cls.endpoint_for_repository(repository_name)
        else:
            config.api_endpoint = None

        config.repository_name = repository_name
        return config

    @staticmethod
    def _read_json(path: Path, logger: logging.Logger) -> Optional[dict]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    @classmethod
    def _read_project_files(
        cls,
        project_dir: Path,
        logger: logging.Logger
    ) -> Tuple[Optional[str], Optional[str]]:
        """Return (apiEndpoint, repositoryName) found in the project files."""
        endpoint = None
        repository = None

        slicemachine = cls._read_json(project_dir / 'slicemachine.config.json', logger)
        if slicemachine:
            if isinstance(slicemachine.get('repositoryName'), str):
                repository = slicemachine['repositoryName']
            if isinstance(slicemachine.get('apiEndpoint'), str):
                endpoint = slicemachine['apiEndpoint']

        if not endpoint:
            legacy = cls._read_json(project_dir / 'sm.json', logger)
            if legacy and isinstance(legacy.get('apiEndpoint'), str):
                endpoint = legacy['apiEndpoint']
                if not repository:
                    match = REPOSITORY_FROM_ENDPOINT.match(endpoint)
                    if match:
                        repository = match.group(1)

        return endpoint or None, repository or None

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if not self.api_endpoint:
            errors.append(
                "Cannot determine the Prismic API endpoint. "
                "Set PRISMIC_API_ENDPOINT or PRISMIC_REPOSITORY_NAME."
            )
        elif not self.api_endpoint.startswith(('http://', 'https://')):
            errors.append(f"Invalid Prismic API endpoint: {self.api_endpoint}")
        if self.page_size < 1 or self.page_size > 100:
            errors.append(f"page_size must be between 1 and 100, got {self.page_size}")
        if self.timeout is None or self.timeout <= 0:
            errors.append("PRISMIC_TIMEOUT must be a positive number of seconds")
        return errors
