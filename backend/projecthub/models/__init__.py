"""
SQLAlchemy models for ProjectHub.

- Projects: client engagements with documents and the recommendation letter record
- Equipment: units built under a project
- Activity: audit trail of project actions
"""
from projecthub.models.project import Project, ProjectStatus, LetterStatus
from projecthub.models.equipment import Equipment
from projecthub.models.activity import ProjectActivity, ActivityAction

__all__ = [
    "Project",
    "ProjectStatus",
    "LetterStatus",
    "Equipment",
    "ProjectActivity",
    "ActivityAction",
]
