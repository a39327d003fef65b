"""
ManifestBuilder - Fetches content, generates variants and assembles the manifest.
"""

import hashlib
import logging
from typing import Dict, List, Optional, Set, Tuple

from .build_progress import BuildProgress
from .build_stats import BuildStats
from .content_client import ContentClient
from .documents import (
    AssetLink,
    CollectionDocument,
    ImageAssetDocument,
    ensure_unique_slug,
    slugify,
)
from .errors import ConfigurationError, ContentNotFoundError
from .image_entry import CollectionEntry, ImageEntry, collection_sort_key, image_sort_key
from .manifest import ImageManifest
from .variant_generator import VariantGenerator

COLLECTION_TYPE = 'collection'
IMAGE_ASSET_TYPE = 'image_asset'


class ImageAssetIndex:
    """Lookup of image_asset documents by id, then by uid."""

    def __init__(self, documents: List[ImageAssetDocument]):
        self.by_id: Dict[str, ImageAssetDocument] = {}
        self.by_uid: Dict[str, ImageAssetDocument] = {}
        for doc in documents:
            self.by_id[doc.id] = doc
            if doc.uid:
                self.by_uid[doc.uid] = doc

    def resolve(self, link: AssetLink) -> Optional[ImageAssetDocument]:
        if link.id and link.id in self.by_id:
            return self.by_id[link.id]
        if link.uid and link.uid in self.by_uid:
            return self.by_uid[link.uid]
        return None

    def __len__(self) -> int:
        return len(self.by_id)


class ManifestBuilder:
    """
    Rebuilds every image variant and the manifest from the content API.

    The output root is cleared before anything is written, and the manifest
    is only saved once the whole traversal has succeeded.
    """

    def __init__(
        self,
        content_client: ContentClient,
        storage,
        variant_generator: VariantGenerator,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize builder.

        Args:
            content_client: Content API client
            storage: LocalClient or S3Client receiving variant files
            variant_generator: Variant generator instance
            dry_run: If True, resolve references only (no downloads, no writes)
            logger: Optional logger instance
        """
        self.content = content_client
        self.storage = storage
        self.variant_gen = variant_generator
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)
        self.stats = BuildStats()
        self._byte_cache: Dict[str, bytes] = {}

    def build(
        self,
        progress: Optional[BuildProgress] = None,
        limit: Optional[int] = None
    ) -> ImageManifest:
        """
        Run the full pipeline and return the manifest (without saving it).

        Args:
            progress: Optional progress tracker
            limit: Optional limit on number of images to build (for testing)

        Returns:
            The assembled ImageManifest

        Raises:
            ConfigurationError: If the content endpoint is unknown
            ContentTransportError: On any non-404 failure from the content API
        """
        if not self.content.endpoint:
            raise ConfigurationError("Content API endpoint is not configured")

        self.stats = BuildStats()
        self._byte_cache = {}

        collection_docs = self._parse_all(
            self.content.get_all_by_type(COLLECTION_TYPE), CollectionDocument.parse
        )
        image_docs = self._parse_all(
            self.content.get_all_by_type(IMAGE_ASSET_TYPE), ImageAssetDocument.parse
        )
        index = ImageAssetIndex(image_docs)

        mode_str = " [DRY RUN]" if self.dry_run else ""
        limit_str = f" (limited to {limit} images)" if limit else ""
        self.logger.info(
            f"Starting build: {len(collection_docs)} collections, "
            f"{len(index)} image assets{mode_str}{limit_str}"
        )

        if not self.dry_run:
            self.storage.clear()

        manifest = ImageManifest.create_new(self.variant_gen.preset)
        collections = []
        used_collection_slugs: Set[str] = set()

        # Stable processing order keeps slug disambiguation reproducible
        for doc in sorted(collection_docs, key=lambda d: d.id):
            base_slug = doc.slug
            slug = ensure_unique_slug(base_slug, used_collection_slugs)
            if slug != base_slug:
                self.logger.warning(f"Duplicate collection slug {base_slug!r} for {doc.id}, using {slug!r}")

            collections.append(self._build_collection(doc, slug, index, progress, limit))

        for collection in sorted(collections, key=collection_sort_key):
            manifest.add_collection(collection)
        self.stats.collections = len(collections)

        self.logger.info(
            f"Build complete: {self.stats.variants} variant files for {self.stats.images} images "
            f"in {self.stats.collections} collections, {self.stats.skipped} skipped "
            f"({self.stats.elapsed_seconds:.1f}s)"
        )
        return manifest

    def build_and_save(
        self,
        manifest_path: str,
        progress: Optional[BuildProgress] = None,
        limit: Optional[int] = None
    ) -> ImageManifest:
        """Build, then atomically write the manifest (skipped on dry runs)."""
        manifest = self.build(progress=progress, limit=limit)
        if self.dry_run:
            self.logger.info(f"[DRY RUN] Manifest not written: {manifest_path}")
        else:
            manifest.save(manifest_path)
        return manifest

    def _parse_all(self, raw_documents: list, parser) -> list:
        documents = []
        for raw in raw_documents:
            doc = parser(raw)
            if doc is None:
                self.logger.warning("Ignoring document without an id")
                continue
            documents.append(doc)
        return documents

    def _limit_reached(self, limit: Optional[int]) -> bool:
        return bool(limit) and self.stats.images >= limit

    def _build_collection(
        self,
        doc: CollectionDocument,
        collection_slug: str,
        index: ImageAssetIndex,
        progress: Optional[BuildProgress],
        limit: Optional[int]
    ) -> CollectionEntry:
        """Build one collection entry, skipping unusable image references."""
        if progress:
            progress.on_collection_start(collection_slug, len(doc.image_links))

        used_slugs: Set[str] = set()
        images: List[ImageEntry] = []

        for position, link in enumerate(doc.image_links):
            if self._limit_reached(limit):
                self.logger.info(f"Limit of {limit} images reached, skipping remaining references")
                break

            asset, reason = self._resolve_reference(link, index)
            if asset is None:
                self._skip(collection_slug, f"reference #{position}: {reason}", progress)
                continue

            image = self._build_image(asset, collection_slug, position, used_slugs, progress)
            if image is not None:
                images.append(image)

            if progress:
                progress.on_progress_update(self.stats)

        images.sort(key=image_sort_key)

        return CollectionEntry(
            slug=collection_slug,
            title=doc.title,
            description=doc.description,
            order=doc.order,
            images=images,
        )

    @staticmethod
    def _resolve_reference(
        link: Optional[AssetLink],
        index: ImageAssetIndex
    ) -> Tuple[Optional[ImageAssetDocument], str]:
        """Return (asset, '') or (None, reason)."""
        if link is None:
            return None, "empty relationship"
        if not link.is_image_asset_link:
            return None, f"not an image_asset document link (link_type={link.link_type}, type={link.type})"

        asset = index.resolve(link)
        if asset is None:
            return None, f"no image_asset document for id={link.id} uid={link.uid}"
        if not asset.url:
            return None, f"image_asset {asset.id} has no image URL"
        return asset, ''

    def _build_image(
        self,
        asset: ImageAssetDocument,
        collection_slug: str,
        position: int,
        used_slugs: Set[str],
        progress: Optional[BuildProgress]
    ) -> Optional[ImageEntry]:
        """Download, fan out and describe one image; None if it was skipped."""
        image_slug = ensure_unique_slug(slugify(asset.uid, asset.id), used_slugs)

        if self.dry_run:
            if progress:
                progress.on_dry_run(collection_slug, image_slug, asset.url)
            else:
                self.logger.info(f"[DRY RUN] Would build: {collection_slug}/{image_slug}")
            self.stats.images += 1
            return None

        try:
            data = self._fetch_bytes(asset.url)
        except ContentNotFoundError:
            used_slugs.discard(image_slug)
            self._skip(collection_slug, f"image_asset {asset.id}: source not found ({asset.url})", progress)
            return None

        variants = self.variant_gen.generate(
            data,
            collection_slug=collection_slug,
            image_slug=image_slug,
            storage=self.storage,
            original_width=asset.width,
        )
        if not variants:
            used_slugs.discard(image_slug)
            self._skip(collection_slug, f"image_asset {asset.id}: no variants could be generated", progress)
            return None

        image = ImageEntry(
            slug=image_slug,
            document_id=asset.id,
            document_uid=asset.uid,
            order=asset.order if asset.order is not None else position,
            caption=asset.caption,
            credits=asset.credits,
            alt=asset.alt,
            hash=hashlib.sha256(data).hexdigest(),
            variants=variants,
        )

        self.stats.images += 1
        self.stats.variants += len(variants)
        self.stats.bytes_written += image.total_bytes

        if progress:
            progress.on_image_built(collection_slug, image)
        else:
            self.logger.debug(f"Built: {collection_slug}/{image_slug} ({len(variants)} variants)")

        return image

    def _fetch_bytes(self, url: str) -> bytes:
        """Download source bytes once per URL for the lifetime of a build."""
        cached = self._byte_cache.get(url)
        if cached is not None:
            return cached

        data = self.content.download_bytes(url)
        self._byte_cache[url] = data
        self.stats.downloads += 1
        return data

    def _skip(self, collection_slug: str, reason: str, progress: Optional[BuildProgress]) -> None:
        message = f"[{collection_slug}] {reason}"
        self.logger.warning(f"Skipping {message}")
        self.stats.record_skip(message)
        if progress:
            progress.on_image_skipped(collection_slug, reason)
