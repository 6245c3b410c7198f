"""
Error taxonomy for ProjectHub.

Every error carries the HTTP status the API reports it with and a short
``kind`` string surfaced to the UI next to the message.
"""


class ProjectHubError(Exception):
    """Base class for all domain errors."""
    status_code: int = 500
    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProjectHubError):
    """Bad user input or an invalid transition; nothing was attempted."""
    status_code = 400
    kind = "validation"


class PermissionDeniedError(ProjectHubError):
    """Session role is not allowed to perform the action."""
    status_code = 403
    kind = "forbidden"


class NotFoundError(ProjectHubError):
    """Project, equipment or document does not exist."""
    status_code = 404
    kind = "not_found"


class CollaboratorError(ProjectHubError):
    """Generator, storage, mail or persistence failure."""
    status_code = 502
    kind = "collaborator"


class DuplicatePathError(CollaboratorError):
    """Object storage already holds an object at the requested path."""
    status_code = 409
    kind = "duplicate_path"

    def __init__(self, path: str):
        super().__init__(f"Object already exists: {path}")
        self.path = path


_STATUS_BY_KIND = {
    cls.kind: cls.status_code
    for cls in (
        ProjectHubError,
        ValidationError,
        PermissionDeniedError,
        NotFoundError,
        CollaboratorError,
        DuplicatePathError,
    )
}


def status_for_kind(kind: str) -> int:
    """HTTP status reported for an error ``kind``."""
    return _STATUS_BY_KIND.get(kind, ProjectHubError.status_code)
