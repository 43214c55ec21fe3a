"""
Report Exporter

Renders a finished assessment into downloadable documents:
- to_csv(): one header row plus one data row, every field quoted
- to_pdf(): A4 report built with reportlab platypus
"""

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from myeloma_guard.config import settings
from myeloma_guard.models.patient import Gender, PatientRecord
from myeloma_guard.models.schemas import AssessmentResult, Modality

CSV_COLUMNS = [
    "Patient ID",
    "UHID",
    "Age",
    "Gender",
    "Location",
    "Risk Level",
    "Summary",
    "Findings",
    "Recommendations",
    "General Notes",
    "CT Notes",
    "X-Ray Notes",
    "Ultrasound Notes",
    "Date",
]

LIST_SEPARATOR = "; "

DISCLAIMER = (
    "This report is AI-generated decision support and must be reviewed by a "
    "qualified clinician. It is not a diagnosis."
)

CONFIRMATORY_NOTE = (
    "Proceed with BMA (Bone Marrow Aspiration) to confirm plasma cell "
    "percentage if indicated above. Monitor Serum Calcium and Creatinine "
    "levels closely."
)

RISK_COLORS = {
    "Critical": "#fee2e2",
    "High": "#ffedd5",
    "Moderate": "#fef9c3",
    "Low": "#dcfce7",
}


@dataclass(frozen=True)
class ReportData:
    """Everything an export needs from a finished session."""

    record: PatientRecord
    result: AssessmentResult
    modality_notes: Mapping[Modality, str] = field(default_factory=dict)
    generated_at: Optional[datetime] = None

    @property
    def timestamp(self) -> datetime:
        return self.generated_at or datetime.now()


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def csv_row(data: ReportData) -> list[str]:
    record, result = data.record, data.result
    return [
        record.patient_id or "",
        record.uhid or "",
        record.age.strip(),
        record.gender.value if record.gender else "",
        record.location,
        result.risk_level.value,
        result.summary,
        LIST_SEPARATOR.join(result.findings),
        LIST_SEPARATOR.join(result.recommendations),
        record.notes,
        data.modality_notes.get(Modality.CT, ""),
        data.modality_notes.get(Modality.XRAY, ""),
        data.modality_notes.get(Modality.ULTRASOUND, ""),
        data.timestamp.strftime("%Y-%m-%d"),
    ]


def to_csv(data: ReportData) -> str:
    """Render the header row and a single data row.

    Every field is wrapped in double quotes and embedded quotes are doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    writer.writerow(csv_row(data))
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle",
            parent=base["Heading1"],
            fontSize=18,
            textColor=colors.HexColor("#0f766e"),
            alignment=TA_CENTER,
            spaceAfter=6,
            fontName="Helvetica-Bold",
        ),
        "meta": ParagraphStyle(
            "ReportMeta",
            parent=base["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#64748b"),
            alignment=TA_CENTER,
            spaceAfter=18,
        ),
        "heading": ParagraphStyle(
            "ReportHeading",
            parent=base["Heading2"],
            fontSize=13,
            textColor=colors.HexColor("#1e293b"),
            spaceBefore=14,
            spaceAfter=8,
            fontName="Helvetica-Bold",
        ),
        "body": ParagraphStyle(
            "ReportBody",
            parent=base["Normal"],
            fontSize=10,
            spaceAfter=4,
        ),
        "cell": ParagraphStyle(
            "ReportCell",
            parent=base["Normal"],
            fontSize=8.5,
            leading=11,
        ),
        "footer": ParagraphStyle(
            "ReportFooter",
            parent=base["Normal"],
            fontSize=8,
            textColor=colors.HexColor("#94a3b8"),
            alignment=TA_CENTER,
            spaceBefore=24,
        ),
    }


def _p(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(text).replace("\n", "<br/>"), style)


def _bullet_cell(items: list[str], style: ParagraphStyle) -> Paragraph:
    return Paragraph("<br/>".join(f"&bull; {escape(i)}" for i in items), style)


def _patient_block(record: PatientRecord, styles: dict) -> list:
    rows = []
    if record.patient_id:
        rows.append(("Patient ID", record.patient_id))
    if record.uhid:
        rows.append(("UHID", record.uhid))
    rows.extend([
        ("Age", record.age.strip()),
        ("Gender", record.gender.value if record.gender else "Unspecified"),
        ("Location", record.location),
    ])
    if record.is_pregnant and record.gender is Gender.FEMALE:
        rows.append(("Pregnancy", "Pregnant"))
    table = Table(
        [[_p(k, styles["cell"]), _p(v, styles["cell"])] for k, v in rows],
        colWidths=[1.5 * inch, 4.5 * inch],
    )
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#f1f5f9")),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cbd5e1")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return [_p("Patient Details", styles["heading"]), table]


def _assessment_table(result: AssessmentResult, styles: dict) -> list:
    cell = styles["cell"]
    header = [
        _p(h, cell) for h in ("Risk Level", "Summary", "Key Findings", "Recommendations")
    ]
    row = [
        _p(result.risk_level.value, cell),
        _p(result.summary, cell),
        _bullet_cell(result.findings, cell),
        _bullet_cell(result.recommendations, cell),
    ]
    table = Table(
        [header, row],
        colWidths=[0.9 * inch, 1.7 * inch, 1.8 * inch, 1.8 * inch],
        repeatRows=1,
    )
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0f766e")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("BACKGROUND", (0, 1), (0, 1), colors.HexColor(
            RISK_COLORS.get(result.risk_level.value, "#f1f5f9")
        )),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cbd5e1")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return [_p("Risk Assessment", styles["heading"]), table]


def _notes_section(data: ReportData, styles: dict) -> list:
    content = [_p("Clinical Notes", styles["heading"])]
    notes = data.record.notes.strip()
    content.append(_p(f"General: {notes or 'None'}", styles["body"]))
    for modality in Modality:
        note = data.modality_notes.get(modality, "").strip()
        if note:
            content.append(_p(f"{modality.label}: {note}", styles["body"]))
    return content


def build_story(data: ReportData, styles: Optional[dict] = None) -> list:
    """Return the ordered flowables that make up the PDF report."""
    styles = styles or _styles()
    generated = data.timestamp.strftime("%B %d, %Y at %I:%M %p")
    content = [
        _p(f"{settings.TOOL_NAME} - Multiple Myeloma Risk Report", styles["title"]),
        _p(f"{settings.FACILITY_NAME} | Generated {generated}", styles["meta"]),
    ]
    content.extend(_patient_block(data.record, styles))
    content.extend(_assessment_table(data.result, styles))
    content.extend(_notes_section(data, styles))
    content.append(Spacer(1, 0.2 * inch))
    content.append(_p("Confirmatory Diagnostics", styles["heading"]))
    content.append(_p(CONFIRMATORY_NOTE, styles["body"]))
    content.append(_p(DISCLAIMER, styles["footer"]))
    return content


def to_pdf(data: ReportData) -> bytes:
    """Render the report as PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=54,
        leftMargin=54,
        topMargin=54,
        bottomMargin=36,
        title=f"{settings.TOOL_NAME} Assessment Report",
    )
    doc.build(build_story(data))
    return buffer.getvalue()
