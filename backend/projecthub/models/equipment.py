"""
Equipment model.

One row per equipment unit (heat exchanger, pressure vessel, ...) built
under a project.
"""
from typing import Optional
from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projecthub.models.base import BaseModel


class Equipment(BaseModel):
    __tablename__ = "equipment"

    project_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    tag_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    job_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    manufacturing_serial: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    project: Mapped["Project"] = relationship(back_populates="equipment")

    def __repr__(self) -> str:
        return f"<Equipment {self.type} {self.tag_number or self.id}>"
