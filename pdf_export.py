"""
🧠 PDF EXPORT - Baby-level explanation
======================================
Turns the finished setup into a clean, printable summary PDF.
- Light theme only (white background, black text)
- Completeness, validation findings, then every assignment
- A4 printable
"""

from io import BytesIO
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from assignments import AssignmentEngine
from models import CompletenessReport, Finding, SetupData


FINDING_COLORS = {
    "error": colors.HexColor("#fee2e2"),
    "warning": colors.HexColor("#fef9c3"),
    "success": colors.HexColor("#dcfce7"),
}


def _light_theme_table_style(num_rows: int, num_cols: int) -> TableStyle:
    """Light theme: white/gray grid, black text."""
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f0f0f0")),
        ("TEXTCOLOR", (0, 0), (-1, -1), colors.black),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 10),
        ("FONTSIZE", (0, 1), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#fafafa")]),
    ])


def export_setup_report_pdf(
    data: SetupData,
    completeness: CompletenessReport,
    findings: List[Finding],
    engine: AssignmentEngine,
) -> bytes:
    """
    One document: school header, completeness table, findings table,
    assignments table. Returns the PDF bytes.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=1.5*cm, rightMargin=1.5*cm)
    styles = getSampleStyleSheet()
    story = []

    school_name = data.school.name if data.school else "School"
    story.append(Paragraph(f"<b>{escape(school_name)} - Setup Summary</b>", styles["Title"]))
    story.append(Spacer(1, 0.4*cm))

    # Completeness
    rows = [["Section", "Weight", "Score"]]
    for s in completeness.sections:
        rows.append([s.name, str(s.weight), str(s.score)])
    rows.append(["Total", "100", f"{completeness.percentage:.1f}%"])
    t = Table(rows, colWidths=[8*cm, 3*cm, 3*cm])
    t.setStyle(_light_theme_table_style(len(rows), 3))
    story.append(Paragraph("<b>Setup Completeness</b>", styles["Heading2"]))
    story.append(Spacer(1, 0.3*cm))
    story.append(t)
    story.append(Spacer(1, 0.8*cm))

    # Findings
    rows = [["Type", "Category", "Message"]]
    for f in findings:
        rows.append([f.kind, f.category, Paragraph(escape(f.message), styles["BodyText"])])
    t = Table(rows, colWidths=[2.5*cm, 3*cm, 12*cm])
    style = _light_theme_table_style(len(rows), 3)
    for i, f in enumerate(findings, start=1):
        style.add("BACKGROUND", (0, i), (1, i), FINDING_COLORS.get(f.kind, colors.white))
    t.setStyle(style)
    story.append(Paragraph("<b>Validation &amp; Quality Checks</b>", styles["Heading2"]))
    story.append(Spacer(1, 0.3*cm))
    story.append(t)
    story.append(Spacer(1, 0.8*cm))

    # Assignments
    story.append(Paragraph(
        f"<b>Teacher Assignments</b> ({len(engine.assignments)}, "
        f"{engine.total_periods()} periods/week)",
        styles["Heading2"],
    ))
    story.append(Spacer(1, 0.3*cm))
    if engine.assignments:
        rows = [["Teacher", "Subject", "Class", "Periods/Week"]]
        for a in engine.assignments:
            rows.append([
                engine.teacher_name(a.teacher_id),
                engine.subject_name(a.subject_id),
                engine.class_name(a.class_id),
                str(a.periods_per_week),
            ])
        t = Table(rows, colWidths=[5.5*cm, 5*cm, 4*cm, 3*cm])
        t.setStyle(_light_theme_table_style(len(rows), 4))
        story.append(t)
    else:
        story.append(Paragraph("No assignments yet.", styles["BodyText"]))

    doc.build(story)
    return buffer.getvalue()
