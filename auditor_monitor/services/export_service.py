"""
Export / import encoders for audit plans.

    JSON        export_state_json / import_state_json   whole-state dump
    Word        generate_audit_docx                     python-docx report + Gantt snapshot
    PDF         generate_audit_pdf                      summary raster sliced per page
    Excel       generate_schedule_xlsx                  Summary + Schedule sheets

Every encoder returns in-memory bytes; nothing is written to disk.
Rasterisation goes through ``raster.rasterize_*`` and both image-carrying
encoders branch on the same RasterSuccess / RasterFailure result.
"""

from __future__ import annotations

import io
import json
import logging
from datetime import datetime
from typing import Callable

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from auditor_monitor.core.exceptions import ValidationError
from auditor_monitor.models.audit import Audit
from auditor_monitor.models.state import AppState
from auditor_monitor.services.raster import (
    RasterFailure,
    RasterResult,
    rasterize_summary,
    rasterize_timeline,
)
from auditor_monitor.services.role_service import fallback_role_id
from auditor_monitor.services.timeline import RenderPlan, project_days
from auditor_monitor.utils.helpers import format_date_display

logger = logging.getLogger(__name__)

APP_NAME = "AuditorMonitor"
JSON_FILENAME = "auditor-monitor-data.json"
INVALID_IMPORT_MESSAGE = "Could not read the JSON file (invalid file)."
NO_STAGES_TEXT = "No stages defined."

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
RISK_FILLS = {
    "low": PatternFill(start_color="27AE60", end_color="27AE60", fill_type="solid"),
    "medium": PatternFill(start_color="F39C12", end_color="F39C12", fill_type="solid"),
    "high": PatternFill(start_color="E74C3C", end_color="E74C3C", fill_type="solid"),
}

_GREY = RGBColor(0x7F, 0x8C, 0x8D)
_ACCENT = RGBColor(0xF5, 0x7C, 0x00)


def report_title(audit: Audit, title: str | None = None) -> str:
    """User-provided title, else audit name, else audit code."""
    return (title or "").strip() or audit.name or audit.code or "Audit report"


def safe_filename(text: str, extension: str) -> str:
    cleaned = "".join(c if c.isalnum() or c in "-_." else "_" for c in text.strip())
    return f"{cleaned or 'audit'}.{extension}"


# ═════════════════════════════════════════════════════════════════════════════
# JSON
# ═════════════════════════════════════════════════════════════════════════════


def export_state_json(state: AppState) -> bytes:
    with state.lock:
        payload = state.to_dict()
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def _decode_import(raw) -> tuple[dict[str, Audit], str]:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    data = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(data, dict):
        raise ValueError("top-level value is not an object")

    if isinstance(data.get("audits"), dict):
        audits: dict[str, Audit] = {}
        for key, item in data["audits"].items():
            if not isinstance(item, dict):
                raise ValueError(f"audit {key!r} is not an object")
            audit = Audit.from_dict(item)
            audit.code = audit.code or str(key)
            audits[audit.code] = audit
        current = str(data.get("currentAuditCode") or "")
        if current not in audits:
            current = next(iter(sorted(audits)), "")
        return audits, current

    # single audit exported by older versions
    if data.get("code"):
        audit = Audit.from_dict(data)
        return {audit.code: audit}, audit.code

    raise ValueError("neither an audit map nor a single audit")


def import_state_json(state: AppState, raw) -> dict:
    """Replace the state with an uploaded dump.

    Accepts ``{"audits": {...}, "currentAuditCode": "..."}`` or a single
    audit object carrying a ``code``. Any decoding problem raises
    ValidationError and leaves the state as it was.
    """
    try:
        audits, current = _decode_import(raw)
    except (ValueError, TypeError, AttributeError, UnicodeDecodeError) as exc:
        logger.warning("Rejected JSON import: %s", exc)
        raise ValidationError(INVALID_IMPORT_MESSAGE, details={"reason": str(exc)}) from exc

    with state.lock:
        valid_roles = state.role_ids()
        fallback = fallback_role_id(state.roles)
        for audit in audits.values():
            for participant in audit.participants:
                if participant.role not in valid_roles and fallback:
                    participant.role = fallback
            audit.refresh_lead()
        state.replace(audits, current)
        if current:
            state.ensure_audit(current)
        if state.scheduler is not None:
            state.scheduler.invalidate_all(state.audits)

    logger.info("Imported %d audit(s); current=%s", len(audits), current or "-")
    return {"audits": len(audits), "currentAuditCode": current}


# ═════════════════════════════════════════════════════════════════════════════
# Word (.docx)
# ═════════════════════════════════════════════════════════════════════════════


def _small(paragraph, size: int = 9, color: RGBColor | None = None, italic: bool = False) -> None:
    for run in paragraph.runs:
        run.font.size = Pt(size)
        run.font.italic = italic
        if color is not None:
            run.font.color.rgb = color


def _docx_table(doc, headers: list[str], rows: list[list[str]]):
    table = doc.add_table(rows=1, cols=len(headers))
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    for idx, text in enumerate(headers):
        cell = table.rows[0].cells[idx]
        cell.text = text
        for paragraph in cell.paragraphs:
            for run in paragraph.runs:
                run.font.bold = True
                run.font.size = Pt(9)
    for values in rows:
        cells = table.add_row().cells
        for idx, value in enumerate(values):
            cells[idx].text = value
            _small(cells[idx].paragraphs[0])
    return table


def schedule_rows(audit: Audit) -> list[list[str]]:
    """Type / element / start / end for every entity carrying at least one date."""
    rows = []
    for stage in audit.stages:
        if stage.start_date or stage.end_date:
            rows.append([
                "Stage",
                stage.name,
                format_date_display(stage.start_date),
                format_date_display(stage.end_date),
            ])
        for activity in stage.activities:
            if activity.start_date or activity.end_date:
                rows.append([
                    "Activity",
                    f"{stage.name} / {activity.name}",
                    format_date_display(activity.start_date),
                    format_date_display(activity.end_date),
                ])
    return rows


def generate_audit_docx(
    audit: Audit,
    role_label: Callable[[str], str],
    plan: RenderPlan,
    title: str | None = None,
    rasterizer: Callable[[RenderPlan], RasterResult] = rasterize_timeline,
) -> bytes:
    """Build the Word report for one audit.

    The Gantt snapshot comes last; when rasterisation fails the document
    carries a short note instead of the image.
    """
    doc = Document()
    for section in doc.sections:
        section.left_margin = Inches(0.75)
        section.right_margin = Inches(0.75)

    # ── Header ────────────────────────────────────────────────────────
    brand = doc.add_paragraph(APP_NAME)
    brand.runs[0].font.bold = True
    brand.runs[0].font.color.rgb = _ACCENT
    generated = doc.add_paragraph(f"Generated: {datetime.now().strftime('%d/%m/%Y %H:%M')}")
    _small(generated, color=_GREY)

    heading = doc.add_heading(report_title(audit, title), level=0)
    heading.alignment = WD_ALIGN_PARAGRAPH.LEFT

    # ── Audit metadata ────────────────────────────────────────────────
    doc.add_heading("Audit details", level=1)
    lead = audit.lead
    for label, value in (
        ("Code", audit.code),
        ("Name", audit.name),
        ("Description", audit.description),
        ("Lead auditor", lead.name if lead else "Not assigned"),
    ):
        p = doc.add_paragraph()
        p.add_run(f"{label}: ").bold = True
        p.add_run(value or "")

    # ── Participants ──────────────────────────────────────────────────
    doc.add_heading("Participants", level=1)
    if audit.participants:
        for participant in audit.participants:
            doc.add_paragraph(
                f"{participant.name} ({participant.email or 'no email'}) - "
                f"{role_label(participant.role)}",
                style="List Bullet",
            )
    else:
        doc.add_paragraph("No participants.")

    # ── Stages ────────────────────────────────────────────────────────
    doc.add_heading("Stages and activities", level=1)
    if not audit.stages:
        doc.add_paragraph(NO_STAGES_TEXT)
    for stage in audit.stages:
        doc.add_heading(stage.name, level=2)
        p = doc.add_paragraph()
        p.add_run("Risk: ").bold = True
        p.add_run(stage.risk)
        p = doc.add_paragraph()
        p.add_run("Dates: ").bold = True
        p.add_run(
            f"{format_date_display(stage.start_date)} → {format_date_display(stage.end_date)}"
        )
        p = doc.add_paragraph()
        p.add_run("Attachments: ").bold = True
        p.add_run(", ".join(a.name for a in stage.attachments) or "None")

        if stage.activities:
            _docx_table(
                doc,
                ["Activity", "Start", "End", "Description"],
                [
                    [
                        a.name,
                        format_date_display(a.start_date),
                        format_date_display(a.end_date),
                        a.description,
                    ]
                    for a in stage.activities
                ],
            )
        else:
            doc.add_paragraph("No activities")

    # ── Schedule table ────────────────────────────────────────────────
    doc.add_heading("Gantt diagram", level=1)
    rows = schedule_rows(audit)
    if rows:
        _docx_table(doc, ["Type", "Element", "Start", "End"], rows)
    else:
        doc.add_paragraph("No dates to show in the diagram.")

    footer = doc.add_paragraph(f"Report generated by {APP_NAME}.")
    _small(footer, size=8, color=_GREY, italic=True)

    # ── Gantt snapshot ────────────────────────────────────────────────
    result = rasterizer(plan)
    if isinstance(result, RasterFailure):
        note = doc.add_paragraph(
            f"The Gantt diagram image could not be generated ({result.reason})."
        )
        _small(note, color=RGBColor(0xC0, 0x39, 0x2B), italic=True)
    else:
        doc.add_picture(io.BytesIO(result.image), width=Inches(6.5))

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


# ═════════════════════════════════════════════════════════════════════════════
# PDF
# ═════════════════════════════════════════════════════════════════════════════


def _pdf_text_page(pdf: canvas.Canvas, audit: Audit, page_height: float) -> None:
    y = page_height - inch
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(inch, y, report_title(audit))
    pdf.setFont("Helvetica", 11)
    for line in (
        f"Code: {audit.code}",
        f"Audit name: {audit.name}",
        f"Participants: {len(audit.participants)}",
        f"Stages: {len(audit.stages)}",
        f"Activities: {audit.activity_count}",
    ):
        y -= 20
        pdf.drawString(inch, y, line)
    if not audit.stages:
        y -= 28
        pdf.setFont("Helvetica-Oblique", 11)
        pdf.drawString(inch, y, NO_STAGES_TEXT)
    pdf.showPage()


def generate_audit_pdf(
    audit: Audit,
    role_label: Callable[[str], str],
    plan: RenderPlan,
    rasterizer: Callable[..., RasterResult] = rasterize_summary,
) -> bytes:
    """Rasterise the audit summary and paginate it, one slice per page.

    Falls back to a single text page when rasterisation fails.
    """
    buf = io.BytesIO()
    page_width, page_height = A4
    pdf = canvas.Canvas(buf, pagesize=A4)
    pdf.setTitle(report_title(audit))
    pdf.setAuthor(APP_NAME)

    result = rasterizer(audit, plan, role_label)
    if isinstance(result, RasterFailure):
        logger.info("PDF for %s falls back to text: %s", audit.code, result.reason)
        _pdf_text_page(pdf, audit, page_height)
    else:
        margin = 0.4 * inch
        usable_w = page_width - 2 * margin
        usable_h = page_height - 2 * margin
        with Image.open(io.BytesIO(result.image)) as image:
            image = image.convert("RGB")
            scale = usable_w / image.width
            slice_px = max(1, int(usable_h / scale))
            for top in range(0, image.height, slice_px):
                part = image.crop((0, top, image.width, min(top + slice_px, image.height)))
                draw_h = part.height * scale
                pdf.drawImage(
                    ImageReader(part),
                    margin,
                    page_height - margin - draw_h,
                    width=usable_w,
                    height=draw_h,
                )
                pdf.showPage()

    pdf.save()
    return buf.getvalue()


# ═════════════════════════════════════════════════════════════════════════════
# Excel (.xlsx)
# ═════════════════════════════════════════════════════════════════════════════


def _apply_header_style(ws, row: int, col_count: int) -> None:
    for col in range(1, col_count + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _auto_width(ws) -> None:
    """Auto-size column widths based on content (capped at 60 chars)."""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value:
                max_len = max(max_len, min(len(str(cell.value)), 60))
        ws.column_dimensions[col_letter].width = max(max_len + 4, 12)


def generate_schedule_xlsx(audit: Audit, plan: RenderPlan) -> bytes:
    """Two sheets: Summary (metadata + counters) and Schedule (one row per bar)."""
    wb = Workbook()

    # ── Sheet 1: Summary ──────────────────────────────────────────────
    ws = wb.active
    ws.title = "Summary"
    ws.merge_cells("A1:D1")
    ws["A1"] = report_title(audit)
    ws["A1"].font = Font(size=16, bold=True, color="354A5F")
    ws["A2"] = f"Generated: {datetime.now().strftime('%d/%m/%Y %H:%M')}"
    ws["A2"].font = Font(size=10, italic=True, color="666666")

    lead = audit.lead
    summary = [
        ("Code", audit.code),
        ("Name", audit.name),
        ("Description", audit.description),
        ("Lead auditor", lead.name if lead else "Not assigned"),
        ("Participants", len(audit.participants)),
        ("Stages", len(audit.stages)),
        ("Activities", audit.activity_count),
        ("Project days", project_days(audit.stages)),
        ("Timeline", f"{plan.date_range.range_label} ({plan.date_range.span_label})"),
    ]
    for i, (label, value) in enumerate(summary, 4):
        ws.cell(row=i, column=1, value=label).font = Font(bold=True)
        ws.cell(row=i, column=2, value=value)
    _auto_width(ws)

    # ── Sheet 2: Schedule ─────────────────────────────────────────────
    ws2 = wb.create_sheet("Schedule")
    headers = ["Type", "Stage", "Element", "Risk", "Start", "End",
               "Duration (days)", "Offset %", "Width %"]
    for col, header in enumerate(headers, 1):
        ws2.cell(row=1, column=col, value=header)
    _apply_header_style(ws2, 1, len(headers))

    names = {a.id: a.name for s in audit.stages for a in s.activities}
    row = 1
    for stage_row in plan.rows:
        bars = [("Stage", stage_row.label, stage_row.bar)] if stage_row.bar else []
        bars += [("Activity", names.get(b.activity_id, ""), b) for b in stage_row.activity_bars]
        for kind, element, bar in bars:
            row += 1
            values = [
                kind,
                stage_row.label,
                element,
                stage_row.risk,
                bar.start.isoformat(),
                bar.end.isoformat(),
                bar.duration_days,
                round(bar.offset_percent, 2),
                round(bar.width_percent, 2),
            ]
            for col, value in enumerate(values, 1):
                ws2.cell(row=row, column=col, value=value).border = THIN_BORDER
            if kind == "Stage":
                risk_cell = ws2.cell(row=row, column=4)
                risk_cell.fill = RISK_FILLS.get(stage_row.risk, PatternFill())
                risk_cell.font = Font(color="FFFFFF", bold=True)
    ws2.freeze_panes = "A2"
    _auto_width(ws2)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
