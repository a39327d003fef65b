"""Tests for S3Client class."""

from unittest.mock import MagicMock, patch

import pytest

from gallerygen.s3_client import S3Client
from gallerygen.s3_config import S3Config


class TestS3Client:
    """Tests for S3Client class."""

    @pytest.fixture
    def config(self):
        """Fixture providing S3 config."""
        return S3Config(
            endpoint='https://minio.example.com:9000',
            bucket='gallery',
            prefix='i',
            access_key='test-access-key',
            secret_key='test-secret-key',
            region='us-east-1',
        )

    @pytest.fixture
    def client_with_mock(self, config):
        """Fixture providing S3Client with mocked boto3."""
        mock_boto = MagicMock()
        with patch('gallerygen.s3_client.boto3.client', return_value=mock_boto):
            client = S3Client(config)
            client._test_mock = mock_boto
            yield client

    def test_full_key(self, client_with_mock):
        """Test keys are placed under the prefix."""
        assert client_with_mock.full_key('coast/w-480/a.jpg') == 'i/coast/w-480/a.jpg'

    def test_list_keys(self, client_with_mock):
        """Test listing keys under the prefix."""
        mock_paginator = MagicMock()
        mock_paginator.paginate.return_value = [
            {'Contents': [{'Key': 'i/coast/w-480/a.jpg'}, {'Key': 'i/coast/w-960/a.jpg'}]},
            {},
        ]
        client_with_mock._test_mock.get_paginator.return_value = mock_paginator

        keys = list(client_with_mock.list_keys())

        assert keys == ['i/coast/w-480/a.jpg', 'i/coast/w-960/a.jpg']
        mock_paginator.paginate.assert_called_once_with(Bucket='gallery', Prefix='i/')

    def test_clear_deletes_in_batches(self, client_with_mock):
        """Test clear deletes every listed key in batches."""
        client_with_mock.DELETE_BATCH_SIZE = 2
        mock_paginator = MagicMock()
        mock_paginator.paginate.return_value = [
            {'Contents': [{'Key': f'i/k{n}.jpg'} for n in range(5)]},
        ]
        client_with_mock._test_mock.get_paginator.return_value = mock_paginator
        client_with_mock._test_mock.delete_objects.return_value = {}

        client_with_mock.clear()

        assert client_with_mock._test_mock.delete_objects.call_count == 3

    def test_clear_raises_on_errors(self, client_with_mock):
        """Test a failed delete raises."""
        mock_paginator = MagicMock()
        mock_paginator.paginate.return_value = [{'Contents': [{'Key': 'i/a.jpg'}]}]
        client_with_mock._test_mock.get_paginator.return_value = mock_paginator
        client_with_mock._test_mock.delete_objects.return_value = {
            'Errors': [{'Key': 'i/a.jpg', 'Code': 'AccessDenied'}]
        }

        with pytest.raises(RuntimeError):
            client_with_mock.clear()

    def test_upload_object(self, client_with_mock):
        """Test uploading an object."""
        client_with_mock.upload_object('coast/w-480/a.jpg', b'jpeg', 'image/jpeg')

        client_with_mock._test_mock.put_object.assert_called_once_with(
            Bucket='gallery',
            Key='i/coast/w-480/a.jpg',
            Body=b'jpeg',
            ContentType='image/jpeg',
        )

    def test_public_url_from_endpoint(self, client_with_mock):
        """Test path-style URLs from the endpoint."""
        assert client_with_mock.public_url('a/w-480/b.jpg') == \
            'https://minio.example.com:9000/gallery/i/a/w-480/b.jpg'

    def test_public_url_from_base_url(self, config):
        """Test the public base URL wins."""
        config.public_base_url = 'https://cdn.example.com/'
        with patch('gallerygen.s3_client.boto3.client', return_value=MagicMock()):
            client = S3Client(config)

        assert client.public_url('a/w-480/b.jpg') == 'https://cdn.example.com/i/a/w-480/b.jpg'

    def test_public_url_aws_default(self, config):
        """Test virtual-hosted URLs without an endpoint."""
        config.endpoint = None
        with patch('gallerygen.s3_client.boto3.client', return_value=MagicMock()):
            client = S3Client(config)

        assert client.public_url('x.jpg') == 'https://gallery.s3.amazonaws.com/i/x.jpg'

    def test_describe(self, client_with_mock):
        """Test the description names bucket and prefix."""
        assert client_with_mock.describe() == 's3://gallery/i'
