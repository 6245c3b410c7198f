"""
Recommendation letter document generator.

Produces a Word (.docx) template the client fills in, signs and sends back.
"""
import io
import logging
from typing import Optional

from docx import Document
from docx.shared import Pt

from projecthub.core.config import settings
from projecthub.core.exceptions import CollaboratorError
from projecthub.schemas.letter import LetterFields

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ENDORSEMENT_POINTS = [
    "Quality of work delivered",
    "Adherence to timelines and specifications",
    "Professional conduct and communication",
    "Overall satisfaction with our services",
]


class LetterDocumentGenerator:
    """Builds the recommendation letter template for a project."""

    content_type = DOCX_CONTENT_TYPE
    extension = "docx"

    def __init__(self, firm_name: Optional[str] = None):
        self.firm_name = firm_name or settings.FIRM_NAME

    def _build(self, fields: LetterFields) -> bytes:
        document = Document()
        style = document.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        document.add_paragraph("[Client Letterhead]")
        document.add_paragraph("Date: ____________________")
        document.add_heading("Letter of Recommendation", level=1)
        document.add_paragraph("To Whom It May Concern,")

        document.add_paragraph(
            f"{fields.client} engaged {self.firm_name} for the {fields.project_name} "
            f"project at {fields.location} under purchase order {fields.po_number}. "
            f"The project was completed on {fields.completion_date} under the "
            f"management of {fields.manager}."
        )
        document.add_paragraph("We are pleased to confirm the following:")
        for point in ENDORSEMENT_POINTS:
            document.add_paragraph(f"{point}: ____________________", style="List Bullet")

        document.add_paragraph("Additional comments:")
        document.add_paragraph("_" * 60)
        document.add_paragraph("_" * 60)

        document.add_heading("Project Details", level=2)
        table = document.add_table(rows=0, cols=2)
        for label, value in (
            ("Project Name", fields.project_name),
            ("Client", fields.client),
            ("Location", fields.location),
            ("Completion Date", fields.completion_date),
            ("PO Number", fields.po_number),
            ("Project Manager", fields.manager),
        ):
            cells = table.add_row().cells
            cells[0].text = label
            cells[1].text = value

        document.add_paragraph("Sincerely,")
        document.add_paragraph(fields.client_contact)
        document.add_paragraph(fields.client)
        document.add_paragraph("Signature: ____________________")

        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    async def generate_letter(self, fields: LetterFields) -> bytes:
        """
        Generate the letter document.

        Args:
            fields: Project facts merged into the template

        Returns:
            The .docx file content

        Raises:
            CollaboratorError: document generation failed
        """
        try:
            content = self._build(fields)
        except Exception as e:
            logger.error(f"Failed to generate letter for {fields.project_name}: {e}")
            raise CollaboratorError("Failed to generate Word file. Please try again.") from e

        logger.debug(f"Generated letter for {fields.project_name} ({len(content)} bytes)")
        return content
