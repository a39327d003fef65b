"""Tests for LocalClient and LocalConfig."""

import os

from gallerygen.local_client import LocalClient, LocalConfig


class TestLocalConfig:
    """Tests for LocalConfig."""

    def test_defaults(self):
        """Test default output root and URL prefix."""
        config = LocalConfig()
        assert config.root_path == os.path.join('public', 'i')
        assert config.url_prefix == '/i'

    def test_validate_ok(self, tmp_path):
        """Test a subdirectory is accepted."""
        assert LocalConfig(root_path=str(tmp_path / 'out')).validate() == []

    def test_validate_filesystem_root(self):
        """Test the filesystem root is refused."""
        assert LocalConfig(root_path=os.sep).validate()

    def test_validate_working_directory(self, tmp_path, monkeypatch):
        """Test the working directory is refused."""
        monkeypatch.chdir(tmp_path)
        assert LocalConfig(root_path='.').validate()

    def test_validate_file(self, tmp_path):
        """Test a regular file is refused."""
        path = tmp_path / 'file.txt'
        path.write_text('x')
        assert LocalConfig(root_path=str(path)).validate()


class TestLocalClient:
    """Tests for LocalClient."""

    def test_upload_object(self, local_storage):
        """Test writing an object below the root."""
        local_storage.upload_object('coast/w-480/sunset.jpg', b'data', 'image/jpeg')

        assert local_storage.path_for('coast/w-480/sunset.jpg').read_bytes() == b'data'

    def test_clear(self, local_storage):
        """Test clear removes everything and recreates the root."""
        local_storage.upload_object('coast/w-480/sunset.jpg', b'data')

        local_storage.clear()

        assert local_storage.root.is_dir()
        assert list(local_storage.root.iterdir()) == []

    def test_clear_missing_root(self, tmp_path):
        """Test clear creates a missing root."""
        client = LocalClient(LocalConfig(root_path=str(tmp_path / 'new' / 'root')))
        client.clear()
        assert client.root.is_dir()

    def test_public_url(self, local_storage):
        """Test public URLs use the URL prefix."""
        assert local_storage.public_url('coast/w-480/sunset.jpg') == '/i/coast/w-480/sunset.jpg'

    def test_public_url_trailing_slash(self, tmp_path):
        """Test a trailing slash on the prefix is not doubled."""
        client = LocalClient(LocalConfig(root_path=str(tmp_path), url_prefix='/static/i/'))
        assert client.public_url('a/w-1/b.jpg') == '/static/i/a/w-1/b.jpg'

    def test_describe(self, local_storage):
        """Test the description names the root."""
        assert local_storage.describe().startswith('local:')
