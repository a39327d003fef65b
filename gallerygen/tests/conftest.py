"""
Pytest fixtures for gallerygen tests.
"""

import io
import logging

import pytest


def make_image_bytes(width, height, mode='RGB', color='red', fmt='JPEG'):
    """Encode a solid-colour image with Pillow."""
    from PIL import Image

    img = Image.new(mode, (width, height), color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def variant_dict(collection, image, width, height, size=1000):
    return {
        'width': width,
        'height': height,
        'bytes': size,
        'aspectRatio': width / height,
        'src': f'/i/{collection}/w-{width}/{image}.jpg',
    }


def image_dict(collection, slug, order, widths=(480, 960), ratio=0.5):
    return {
        'slug': slug,
        'documentId': f'doc-{slug}',
        'documentUid': slug,
        'order': order,
        'caption': f'Caption {slug}',
        'credits': None,
        'alt': f'Alt {slug}',
        'hash': f'hash-{slug}',
        'variants': [variant_dict(collection, slug, w, int(w * ratio)) for w in widths],
    }


def api_document(doc_id, doc_type, data, uid=None):
    """A raw Prismic document as returned by documents/search."""
    return {
        'id': doc_id,
        'uid': uid,
        'type': doc_type,
        'lang': 'en-us',
        'data': data,
    }


def image_asset_document(doc_id, uid, url, width=1200, height=800, order=None, caption=None):
    data = {
        'image': {
            'url': url,
            'alt': f'Alt {uid}',
            'dimensions': {'width': width, 'height': height},
        },
        'caption': [{'type': 'paragraph', 'text': caption}] if caption else [],
        'credits': 'CAS',
    }
    if order is not None:
        data['order'] = order
    return api_document(doc_id, 'image_asset', data, uid=uid)


def collection_document(doc_id, uid, asset_links, title='A collection', order=None):
    data = {
        'title': [{'type': 'heading1', 'text': title}],
        'short_description': 'Short description',
        'images': [{'asset': link} for link in asset_links],
    }
    if order is not None:
        data['order'] = order
    return api_document(doc_id, 'collection', data, uid=uid)


def document_link(doc_id, uid=None):
    return {'id': doc_id, 'uid': uid, 'type': 'image_asset', 'link_type': 'Document'}


class FakeHandle:
    """Timer handle returned by FakeScheduler.call_later."""

    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for an asyncio loop's call_later."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled and h.when is not None]

    def advance(self, seconds):
        """Move the clock forward, running every callback that falls due."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.now = handle.when
            handle.when = None
            handle.callback()
        self.now = target


class FakePreloader:
    """Records preload/release calls; handles are the preloaded index."""

    def __init__(self):
        self.calls = []
        self.active = set()

    def preload(self, index):
        self.calls.append(('preload', index))
        self.active.add(index)
        return index

    def release(self, handle):
        self.calls.append(('release', handle))
        self.active.discard(handle)


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    return logging.getLogger('test')


@pytest.fixture
def sample_image_bytes():
    """Fixture providing a 1200x800 JPEG."""
    return make_image_bytes(1200, 800)


@pytest.fixture
def small_image_bytes():
    """Fixture providing a JPEG narrower than every preset width."""
    return make_image_bytes(100, 50)


@pytest.fixture
def sample_png_bytes():
    """Fixture providing a PNG with transparency."""
    return make_image_bytes(600, 300, mode='RGBA', color=(255, 0, 0, 128), fmt='PNG')


@pytest.fixture
def sample_manifest_data():
    """Fixture providing raw manifest data with two collections."""
    return {
        'generatedAt': '2026-01-01T00:00:00.000Z',
        'widths': [480, 960, 1920],
        'collections': {
            'landscapes': {
                'slug': 'landscapes',
                'title': 'Landscapes',
                'description': 'Wide views',
                'order': 1,
                'images': [
                    image_dict('landscapes', 'alpha', 0),
                    image_dict('landscapes', 'bravo', 1),
                    image_dict('landscapes', 'charlie', 2, widths=(480, 960, 1920)),
                ],
            },
            'portraits': {
                'slug': 'portraits',
                'title': 'Portraits',
                'images': [
                    image_dict('portraits', 'solo', 0, widths=(640,), ratio=1.5),
                ],
            },
        },
    }


@pytest.fixture
def sample_manifest(sample_manifest_data):
    """Fixture providing a parsed sample manifest."""
    from gallerygen.manifest import ImageManifest

    return ImageManifest.from_dict(sample_manifest_data)


@pytest.fixture
def empty_manifest():
    """Fixture providing an empty manifest."""
    from gallerygen.manifest import ImageManifest

    return ImageManifest(generated_at='2026-01-01T00:00:00.000Z', widths=[480])


@pytest.fixture
def temp_manifest_file(sample_manifest, tmp_path):
    """Fixture providing a temporary manifest file."""
    filepath = tmp_path / 'generated' / 'image-manifest.json'
    sample_manifest.save(str(filepath))
    return str(filepath)


@pytest.fixture
def local_storage(tmp_path):
    """Fixture providing a LocalClient writing below tmp_path."""
    from gallerygen.local_client import LocalClient, LocalConfig

    return LocalClient(LocalConfig(root_path=str(tmp_path / 'public' / 'i'), url_prefix='/i'))


@pytest.fixture
def mock_storage():
    """Fixture providing a mock storage client."""
    from unittest.mock import MagicMock

    mock = MagicMock()
    mock.upload_object.return_value = None
    mock.public_url.side_effect = lambda key: f'/i/{key}'
    return mock


@pytest.fixture
def content_documents():
    """Fixture providing raw collection and image_asset documents."""
    images = [
        image_asset_document('img-1', 'sunset', 'https://images.example.com/sunset.jpg', order=2),
        image_asset_document('img-2', 'harbor', 'https://images.example.com/harbor.jpg', order=1),
        image_asset_document('img-3', 'forest', 'https://images.example.com/forest.jpg'),
    ]
    collections = [
        collection_document(
            'col-1', 'coast',
            [document_link('img-1'), document_link('img-2')],
            title='Coast', order=1,
        ),
        collection_document(
            'col-2', 'woods',
            [document_link(None, uid='forest')],
            title='Woods',
        ),
    ]
    return {'collection': collections, 'image_asset': images}


@pytest.fixture
def mock_content_client(content_documents, sample_image_bytes):
    """Fixture providing a mock ContentClient serving content_documents."""
    from unittest.mock import MagicMock

    mock = MagicMock()
    mock.endpoint = 'https://gallery.cdn.prismic.io/api/v2'
    mock.get_all_by_type.side_effect = lambda doc_type, lang='*': content_documents.get(doc_type, [])
    mock.download_bytes.return_value = sample_image_bytes
    return mock


@pytest.fixture
def scheduler():
    """Fixture providing a fake scheduler."""
    return FakeScheduler()


@pytest.fixture
def preloader():
    """Fixture providing a recording preloader."""
    return FakePreloader()
