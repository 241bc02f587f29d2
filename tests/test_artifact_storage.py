import re

import pytest

from bizdocs.services.artifact_storage import LocalArtifactStorage, unique_document_name


def test_upload_writes_bytes_and_builds_public_url(tmp_path):
    storage = LocalArtifactStorage(str(tmp_path), "https://cdn.example/docs/")
    stored = storage.upload(b"%PDF-1.4 test", "invoices/inv-1.pdf")
    assert stored.path == str(tmp_path / "invoices" / "inv-1.pdf")
    assert (tmp_path / "invoices" / "inv-1.pdf").read_bytes() == b"%PDF-1.4 test"
    assert stored.public_url == "https://cdn.example/docs/invoices/inv-1.pdf"
    assert stored.byte_size == len(b"%PDF-1.4 test")


def test_upload_without_public_base_has_no_url(tmp_path):
    stored = LocalArtifactStorage(str(tmp_path)).upload(b"x", "a.pdf")
    assert stored.public_url is None


def test_existing_object_is_not_overwritten(tmp_path):
    storage = LocalArtifactStorage(str(tmp_path))
    storage.upload(b"first", "same.pdf")
    with pytest.raises(FileExistsError):
        storage.upload(b"second", "same.pdf")
    assert (tmp_path / "same.pdf").read_bytes() == b"first"


@pytest.mark.parametrize("name", ["../escape.pdf", "a/../../escape.pdf", "", "."])
def test_destination_must_stay_under_root(tmp_path, name):
    with pytest.raises(ValueError):
        LocalArtifactStorage(str(tmp_path)).upload(b"x", name)


def test_unique_document_name_shape():
    a = unique_document_name("ledger-cust-1")
    b = unique_document_name("ledger-cust-1")
    assert re.fullmatch(r"ledger-cust-1-\d{8}T\d{6}-[0-9a-f]{8}\.pdf", a)
    assert a != b
