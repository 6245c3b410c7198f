"""Tests for the filesystem-backed object storage."""
import pytest

from projecthub.core.exceptions import DuplicatePathError, ValidationError
from projecthub.services.storage import LocalObjectStorage


@pytest.fixture
def bucket(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(root=str(tmp_path), bucket="docs", public_base_url="http://files.test/storage/")


@pytest.mark.asyncio
async def test_put_object(bucket, tmp_path):
    stored = await bucket.put_object("Refinery_Upgrade/Recommendation_Letters/1_signed.pdf", b"%PDF", "application/pdf")

    assert stored.size == 4
    assert stored.content_type == "application/pdf"
    assert stored.url == "http://files.test/storage/docs/Refinery_Upgrade/Recommendation_Letters/1_signed.pdf"
    assert (tmp_path / "docs" / "Refinery_Upgrade" / "Recommendation_Letters" / "1_signed.pdf").read_bytes() == b"%PDF"
    assert bucket.exists("Refinery_Upgrade/Recommendation_Letters/1_signed.pdf")


@pytest.mark.asyncio
async def test_existing_object_is_never_overwritten(bucket):
    await bucket.put_object("a/letter.pdf", b"first")

    with pytest.raises(DuplicatePathError) as exc_info:
        await bucket.put_object("a/letter.pdf", b"second")

    assert exc_info.value.path == "a/letter.pdf"


@pytest.mark.asyncio
async def test_paths_outside_bucket_rejected(bucket):
    with pytest.raises(ValidationError):
        await bucket.put_object("../escape.pdf", b"x")
    with pytest.raises(ValidationError):
        await bucket.put_object("", b"x")


def test_public_url_is_quoted(bucket):
    assert bucket.public_url("a b/c.pdf") == "http://files.test/storage/docs/a%20b/c.pdf"
