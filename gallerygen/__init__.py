"""
Responsive image pipeline for the photo gallery

Build time: fetch collections and image assets from the Prismic content API,
render a fixed ladder of JPEG widths per image and write the image manifest.

Serve time: read the manifest into an immutable catalog, resolve responsive
sources with preload hints, and drive the gallery viewer's navigation and
screensaver.
"""

__version__ = "1.0.0"

from .errors import (
    GalleryGenError,
    ConfigurationError,
    ContentError,
    ContentNotFoundError,
    ContentTransportError,
)
from .prismic_config import PrismicConfig
from .s3_config import S3Config
from .s3_client import S3Client
from .local_client import LocalConfig, LocalClient
from .content_client import ContentClient
from .variant_generator import VariantGenerator
from .image_entry import ImageVariant, ImageEntry, CollectionEntry
from .collection_stats import CollectionStats
from .manifest import ImageManifest
from .build_stats import BuildStats
from .build_progress import BuildProgress
from .manifest_builder import ManifestBuilder
from .image_sources import ImageSource, PreloadDescriptor
from .catalog import GalleryCatalog, load_catalog
from .navigation import EventTarget, GalleryNavigator, NavigatorState
from .reporter import Reporter

__all__ = [
    "GalleryGenError",
    "ConfigurationError",
    "ContentError",
    "ContentNotFoundError",
    "ContentTransportError",
    "PrismicConfig",
    "S3Config",
    "S3Client",
    "LocalConfig",
    "LocalClient",
    "ContentClient",
    "VariantGenerator",
    "ImageVariant",
    "ImageEntry",
    "CollectionEntry",
    "CollectionStats",
    "ImageManifest",
    "BuildStats",
    "BuildProgress",
    "ManifestBuilder",
    "ImageSource",
    "PreloadDescriptor",
    "GalleryCatalog",
    "load_catalog",
    "EventTarget",
    "GalleryNavigator",
    "NavigatorState",
    "Reporter",
]
