"""Tests for the Cloud Storage writer."""

import io

import pytest
from PIL import Image

from conftest import BASE_URL, BUCKET, FakeStorageClient
from grayrelay.services.imaging import convert_to_gray
from grayrelay.services import storage as storage_module
from grayrelay.services.storage import StorageWriteError, StorageWriter


def test_public_url_composition():
    writer = StorageWriter(BUCKET, base_url=BASE_URL + "/", client=FakeStorageClient())
    assert writer.public_url("images/1.jpg") == f"{BASE_URL}/{BUCKET}/images/1.jpg"


def test_write_image_uploads_public_jpeg(writer, storage_client):
    writer.write_image(convert_to_gray(Image.new("RGB", (20, 10), (9, 9, 9))), "images/abc.jpg")

    stored = storage_client.objects[f"{BUCKET}/images/abc.jpg"]
    assert stored["content_type"] == "image/jpeg"
    assert stored["predefined_acl"] == "publicRead"
    decoded = Image.open(io.BytesIO(stored["data"]))
    assert decoded.format == "JPEG"
    assert decoded.size == (20, 10)
    assert all(w.closed for w in storage_client.writers)


def test_write_failure_is_wrapped():
    client = FakeStorageClient(failing_paths={"images/x.jpg"})
    writer = StorageWriter(BUCKET, base_url=BASE_URL, client=client)
    with pytest.raises(StorageWriteError) as exc_info:
        writer.write_image(Image.new("L", (4, 4)), "images/x.jpg")
    assert exc_info.value.path == "images/x.jpg"
    assert isinstance(exc_info.value.cause, OSError)
    assert client.objects == {}


def test_client_construction_failure_is_wrapped(monkeypatch):
    def broken_client():
        raise RuntimeError("no credentials")

    monkeypatch.setattr(storage_module.storage, "Client", broken_client)
    writer = StorageWriter(BUCKET, base_url=BASE_URL)
    with pytest.raises(StorageWriteError):
        writer.write_image(Image.new("L", (4, 4)), "images/y.jpg")
