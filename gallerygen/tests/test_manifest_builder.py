"""Tests for ManifestBuilder class."""

import hashlib
import os
from unittest.mock import MagicMock

import pytest

from gallerygen.build_progress import BuildProgress
from gallerygen.documents import AssetLink, ImageAssetDocument
from gallerygen.errors import ConfigurationError, ContentNotFoundError, ContentTransportError
from gallerygen.manifest import ImageManifest
from gallerygen.manifest_builder import ImageAssetIndex, ManifestBuilder
from gallerygen.variant_generator import VariantGenerator

from conftest import collection_document, document_link, image_asset_document


class TestImageAssetIndex:
    """Tests for ImageAssetIndex."""

    @pytest.fixture
    def index(self):
        """Fixture providing an index of two assets."""
        return ImageAssetIndex([
            ImageAssetDocument(id='img-1', uid='sunset', url='https://x/1.jpg'),
            ImageAssetDocument(id='img-2', uid=None, url='https://x/2.jpg'),
        ])

    def test_len(self, index):
        """Test the number of indexed assets."""
        assert len(index) == 2

    def test_resolve_by_id(self, index):
        """Test resolution by id."""
        assert index.resolve(AssetLink(id='img-2')).url == 'https://x/2.jpg'

    def test_resolve_by_uid(self, index):
        """Test resolution falls back to uid."""
        assert index.resolve(AssetLink(id='unknown', uid='sunset')).id == 'img-1'

    def test_unresolved(self, index):
        """Test unknown links give None."""
        assert index.resolve(AssetLink(id='nope', uid='nope')) is None


class TestManifestBuilder:
    """Tests for ManifestBuilder class."""

    @pytest.fixture
    def builder(self, mock_content_client, local_storage, logger):
        """Fixture providing a builder with real variant generation."""
        return ManifestBuilder(
            content_client=mock_content_client,
            storage=local_storage,
            variant_generator=VariantGenerator(logger=logger),
            logger=logger,
        )

    def test_build(self, builder, local_storage, sample_image_bytes):
        """Test a full build."""
        manifest = builder.build()

        assert list(manifest.collections) == ['coast', 'woods']
        coast = manifest.collections['coast']
        assert coast.title == 'Coast'
        assert coast.order == 1
        assert [i.slug for i in coast.images] == ['harbor', 'sunset']

        sunset = coast.images[1]
        assert sunset.document_id == 'img-1'
        assert sunset.order == 2
        assert sunset.hash == hashlib.sha256(sample_image_bytes).hexdigest()
        assert [v.width for v in sunset.variants] == [480, 640, 768, 960, 1024, 1200]
        assert sunset.variants[0].src == '/i/coast/w-480/sunset.jpg'
        assert local_storage.path_for('coast/w-1200/sunset.jpg').is_file()

        forest = manifest.collections['woods'].images[0]
        assert forest.slug == 'forest'
        assert forest.order == 0

        assert builder.stats.collections == 2
        assert builder.stats.images == 3
        assert builder.stats.skipped == 0
        assert builder.stats.variants == 18

    def test_widths_recorded(self, builder):
        """Test the manifest carries the attempted width preset."""
        manifest = builder.build()
        assert manifest.widths == list(builder.variant_gen.preset)

    def test_fetches_all_languages(self, builder, mock_content_client):
        """Test both document types are requested."""
        builder.build()

        requested = [c.args[0] for c in mock_content_client.get_all_by_type.call_args_list]
        assert requested == ['collection', 'image_asset']

    def test_clears_output_root(self, builder, local_storage):
        """Test stale files are removed before the build."""
        local_storage.upload_object('old/w-480/stale.jpg', b'stale')

        builder.build()

        assert not local_storage.path_for('old/w-480/stale.jpg').exists()

    def test_deterministic(self, builder):
        """Test identical inputs give identical manifests and files."""
        first = builder.build().to_dict()
        second = builder.build().to_dict()

        first.pop('generatedAt')
        second.pop('generatedAt')
        assert first == second

    def test_duplicate_image_slugs(self, builder, content_documents, mock_content_client):
        """Test the same asset twice in a collection gets foo and foo-2."""
        content_documents['collection'] = [
            collection_document('col-1', 'coast', [document_link('img-1'), document_link('img-1')]),
        ]

        manifest = builder.build()

        slugs = [i.slug for i in manifest.collections['coast'].images]
        assert sorted(slugs) == ['sunset', 'sunset-2']
        assert mock_content_client.download_bytes.call_count == 1
        assert builder.stats.downloads == 1

    def test_duplicate_collection_slugs(self, builder, content_documents):
        """Test colliding collection slugs are disambiguated by document id."""
        content_documents['collection'] = [
            collection_document('col-b', 'Gallery', [document_link('img-2')]),
            collection_document('col-a', 'gallery', [document_link('img-1')]),
        ]

        manifest = builder.build()

        assert manifest.collections['gallery'].images[0].slug == 'sunset'
        assert manifest.collections['gallery-2'].images[0].slug == 'harbor'

    def test_skipped_references(self, builder, content_documents):
        """Test unusable references are skipped and recorded."""
        content_documents['image_asset'].append(
            image_asset_document('img-9', 'no-url', None)
        )
        content_documents['collection'] = [
            collection_document('col-1', 'coast', [
                None,
                {'link_type': 'Web', 'url': 'https://example.com'},
                {'id': 'x', 'type': 'page', 'link_type': 'Document'},
                document_link('does-not-exist'),
                document_link('img-9'),
                document_link('img-1'),
            ]),
        ]

        manifest = builder.build()

        assert [i.slug for i in manifest.collections['coast'].images] == ['sunset']
        assert builder.stats.skipped == 5
        assert len(builder.stats.skip_details) == 5
        assert all(d.startswith('[coast]') for d in builder.stats.skip_details)

    def test_order_falls_back_to_position(self, builder, content_documents):
        """Test images without explicit order use their list position."""
        content_documents['image_asset'] = [
            image_asset_document('img-1', 'zulu', 'https://images.example.com/z.jpg'),
            image_asset_document('img-2', 'alpha', 'https://images.example.com/a.jpg'),
        ]
        content_documents['collection'] = [
            collection_document('col-1', 'coast', [document_link('img-1'), document_link('img-2')]),
        ]

        manifest = builder.build()

        images = manifest.collections['coast'].images
        assert [(i.slug, i.order) for i in images] == [('zulu', 0), ('alpha', 1)]

    def test_not_found_is_skipped(self, builder, mock_content_client, sample_image_bytes):
        """Test a 404 on source bytes skips only that image."""
        def download(url):
            if 'harbor' in url:
                raise ContentNotFoundError(f'Not found: {url}', url=url, status_code=404)
            return sample_image_bytes

        mock_content_client.download_bytes.side_effect = download

        manifest = builder.build()

        assert [i.slug for i in manifest.collections['coast'].images] == ['sunset']
        assert builder.stats.skipped == 1
        assert 'source not found' in builder.stats.skip_details[0]

    def test_transport_error_aborts(self, builder, mock_content_client, tmp_path):
        """Test other transport errors abort before the manifest is written."""
        mock_content_client.download_bytes.side_effect = ContentTransportError('503', status_code=503)
        manifest_path = tmp_path / 'generated' / 'image-manifest.json'

        with pytest.raises(ContentTransportError):
            builder.build_and_save(str(manifest_path))

        assert not manifest_path.exists()

    def test_undecodable_image_skipped(self, builder, mock_content_client):
        """Test images that yield no variants are left out."""
        mock_content_client.download_bytes.return_value = b'not an image'

        manifest = builder.build()

        assert manifest.total_images == 0
        assert builder.stats.skipped == 3
        assert set(manifest.collections) == {'coast', 'woods'}

    def test_limit(self, builder):
        """Test the image limit."""
        manifest = builder.build(limit=1)

        assert manifest.total_images == 1
        assert builder.stats.images == 1

    def test_missing_endpoint(self, builder, mock_content_client):
        """Test building without an endpoint is a configuration error."""
        mock_content_client.endpoint = ''

        with pytest.raises(ConfigurationError):
            builder.build()

    def test_build_and_save(self, builder, tmp_path):
        """Test the manifest is written after the build."""
        manifest_path = tmp_path / 'generated' / 'image-manifest.json'

        manifest = builder.build_and_save(str(manifest_path))

        assert ImageManifest.load(str(manifest_path)) == manifest

    def test_progress_callbacks(self, builder):
        """Test progress is notified for collections and images."""
        progress = MagicMock(spec=BuildProgress)

        builder.build(progress=progress)

        assert progress.on_collection_start.call_count == 2
        assert progress.on_image_built.call_count == 3
        assert progress.on_progress_update.call_count == 3


class TestDryRun:
    """Tests for dry-run builds."""

    @pytest.fixture
    def builder(self, mock_content_client, local_storage, logger):
        """Fixture providing a dry-run builder."""
        return ManifestBuilder(
            content_client=mock_content_client,
            storage=local_storage,
            variant_generator=VariantGenerator(logger=logger),
            dry_run=True,
            logger=logger,
        )

    def test_writes_nothing(self, builder, mock_content_client, local_storage, tmp_path):
        """Test a dry run neither clears, downloads nor writes."""
        local_storage.upload_object('old/w-480/stale.jpg', b'stale')
        manifest_path = tmp_path / 'generated' / 'image-manifest.json'

        builder.build_and_save(str(manifest_path))

        assert local_storage.path_for('old/w-480/stale.jpg').is_file()
        mock_content_client.download_bytes.assert_not_called()
        assert not os.path.exists(manifest_path)
        assert builder.stats.images == 3

    def test_progress(self, builder):
        """Test dry-run progress callbacks."""
        progress = MagicMock(spec=BuildProgress)

        builder.build(progress=progress)

        assert progress.on_dry_run.call_count == 3
        progress.on_image_built.assert_not_called()
