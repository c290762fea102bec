import pytest

from dropzone import create_app
from dropzone.services import SizePolicy, StorageResolver, UploadManager


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / 'uploads'
    path.mkdir()
    return path


@pytest.fixture
def manager(upload_dir):
    resolver = StorageResolver(upload_dir)
    resolver.ensure_root()
    return UploadManager(resolver, SizePolicy.from_megabytes(1024))


@pytest.fixture
def app(upload_dir):
    return create_app('testing', {'UPLOAD_DIR': str(upload_dir), 'UPLOAD_SECRET': ''})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def secret_app(upload_dir):
    return create_app('testing', {'UPLOAD_DIR': str(upload_dir), 'UPLOAD_SECRET': '4242'})


@pytest.fixture
def secret_client(secret_app):
    return secret_app.test_client()
