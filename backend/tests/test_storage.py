"""Local and S3 blob stores."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from courtfile.services.s3_service import S3Service
from courtfile.services.storage import LocalBlobStore, S3BlobStore, StorageError


class TestLocalBlobStore:
    def test_put_then_delete(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "/uploads/")
        blob = store.put("case-1/123-deed.pdf", b"pdf")
        assert blob.url == "/uploads/case-1/123-deed.pdf"
        assert blob.size_bytes == 3
        assert (tmp_path / "case-1" / "123-deed.pdf").read_bytes() == b"pdf"

        assert store.delete("case-1/123-deed.pdf") is True
        assert store.delete("case-1/123-deed.pdf") is False

    def test_refuses_overwrite(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))
        store.put("a.txt", b"1")
        with pytest.raises(StorageError):
            store.put("a.txt", b"2")

    def test_rejects_path_traversal(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "root"))
        with pytest.raises(StorageError):
            store.put("../escape.txt", b"x")


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "HeadObject")


class TestS3BlobStore:
    def _store(self, client):
        return S3BlobStore(S3Service(client=client, bucket="evidence"))

    def test_put_uploads_and_presigns(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("404")
        client.generate_presigned_url.return_value = "https://s3.test/signed"

        blob = self._store(client).put("case-1/x.pdf", b"abc", "application/pdf")

        client.put_object.assert_called_once_with(
            Bucket="evidence", Key="case-1/x.pdf", Body=b"abc", ContentType="application/pdf"
        )
        assert blob.url == "https://s3.test/signed"

    def test_existing_object_is_not_overwritten(self):
        client = MagicMock()
        with pytest.raises(StorageError):
            self._store(client).put("case-1/x.pdf", b"abc")
        client.put_object.assert_not_called()

    def test_upload_failure_becomes_storage_error(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("404")
        client.put_object.side_effect = _client_error("AccessDenied")
        with pytest.raises(StorageError):
            self._store(client).put("case-1/x.pdf", b"abc")

    def test_delete_missing_object(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("NoSuchKey")
        assert self._store(client).delete("gone.pdf") is False
        client.delete_object.assert_not_called()
