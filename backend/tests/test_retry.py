"""Tests for the bounded upload retry."""
import pytest

from projecthub.core.exceptions import CollaboratorError, DuplicatePathError
from projecthub.services.retry import with_retry


class PathSource:
    def __init__(self):
        self.issued = []

    def __call__(self):
        path = f"letters/{len(self.issued) + 1}.pdf"
        self.issued.append(path)
        return path


@pytest.mark.asyncio
async def test_first_attempt_succeeds():
    paths = PathSource()

    async def operation(path):
        return path

    assert await with_retry(3, operation, paths) == "letters/1.pdf"
    assert paths.issued == ["letters/1.pdf"]


@pytest.mark.asyncio
async def test_collisions_get_fresh_paths():
    paths = PathSource()
    tried = []

    async def operation(path):
        tried.append(path)
        if len(tried) < 3:
            raise DuplicatePathError(path)
        return path

    assert await with_retry(3, operation, paths) == "letters/3.pdf"
    assert tried == ["letters/1.pdf", "letters/2.pdf", "letters/3.pdf"]


@pytest.mark.asyncio
async def test_exhaustion_escalates():
    async def operation(path):
        raise DuplicatePathError(path)

    with pytest.raises(CollaboratorError) as exc_info:
        await with_retry(3, operation, PathSource())

    assert not isinstance(exc_info.value, DuplicatePathError)
    assert exc_info.value.message == "Failed to upload file after 3 attempts"
    assert isinstance(exc_info.value.__cause__, DuplicatePathError)


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    paths = PathSource()

    async def operation(path):
        raise CollaboratorError("disk full")

    with pytest.raises(CollaboratorError, match="disk full"):
        await with_retry(3, operation, paths)
    assert len(paths.issued) == 1


@pytest.mark.asyncio
async def test_max_attempts_must_be_positive():
    async def operation(path):
        return path

    with pytest.raises(ValueError):
        await with_retry(0, operation, PathSource())
