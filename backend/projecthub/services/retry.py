"""Bounded retry for uploads that may collide on their storage path."""
import logging
from typing import Awaitable, Callable, TypeVar

from projecthub.core.exceptions import CollaboratorError, DuplicatePathError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    max_attempts: int,
    operation: Callable[[str], Awaitable[T]],
    next_path: Callable[[], str],
) -> T:
    """
    Run ``operation`` against a fresh path until it stops colliding.

    ``next_path`` is called once per attempt. Only ``DuplicatePathError`` is
    retried; any other error propagates at once. When every attempt collides
    the last collision is escalated to ``CollaboratorError``.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        path = next_path()
        try:
            return await operation(path)
        except DuplicatePathError as e:
            logger.warning(f"Storage path collision on attempt {attempt}/{max_attempts}: {e.path}")
            last_error = e

    raise CollaboratorError(
        f"Failed to upload file after {max_attempts} attempts"
    ) from last_error
