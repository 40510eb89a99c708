"""Sample audit plan used by the "load sample" action and the demo page."""

from auditor_monitor.models.audit import Activity, Attachment, Audit, Participant, Stage

SAMPLE_AUDIT_CODE = "AUD-2025-01"

_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def build_sample_audit() -> Audit:
    audit = Audit(
        code=SAMPLE_AUDIT_CODE,
        name="Comprehensive audit 2025",
        description="Comprehensive financial audit plan for 2025",
    )
    audit.participants = [
        Participant(name="Ana Torres", email="ana.torres@example.com", role="auditor_lider"),
        Participant(name="Luis Pérez", email="luis.perez@example.com", role="auditor"),
        Participant(name="María Gómez", email="maria.gomez@example.com", role="responsable_proceso"),
        Participant(name="Carlos Rivas", email="carlos.rivas@example.com", role="responsable_proceso"),
        Participant(name="Elena Núñez", email="elena.nunez@example.com", role="observador"),
    ]
    audit.lead_auditor_id = audit.participants[0].id
    audit.stages = [
        Stage(
            name="Audit planning",
            risk="low",
            start_date="2025-01-10",
            end_date="2025-01-15",
            activities=[
                Activity("Define scope", "2025-01-10", "2025-01-11",
                         "Meeting with management to agree objectives and scope."),
                Activity("Identify key risks", "2025-01-12", "2025-01-15",
                         "Preliminary analysis of processes and controls."),
            ],
            attachments=[Attachment("audit_scope.pdf", "application/pdf")],
        ),
        Stage(
            name="Financial documentation review",
            risk="high",
            start_date="2025-01-16",
            end_date="2025-01-25",
            activities=[
                Activity("Financial statements review", "2025-01-16", "2025-01-20",
                         "Compare balances against subsidiary ledgers and records."),
                Activity("Accounting evidence validation", "2025-01-21", "2025-01-25",
                         "Check invoices and related vouchers."),
            ],
            attachments=[Attachment("document_list.xlsx", _XLSX)],
        ),
        Stage(
            name="Internal control testing",
            risk="medium",
            start_date="2025-01-26",
            end_date="2025-02-02",
            activities=[
                Activity("Control walkthrough", "2025-01-26", "2025-01-28",
                         "Document existing controls and their owners."),
                Activity("Test execution", "2025-01-29", "2025-02-02",
                         "Run compliance and effectiveness tests."),
            ],
            attachments=[Attachment("control_matrix.docx", _DOCX)],
        ),
        Stage(
            name="Report and closing",
            risk="medium",
            start_date="2025-02-03",
            end_date="2025-02-10",
            activities=[
                Activity("Report drafting", "2025-02-03", "2025-02-07",
                         "Consolidate findings and recommendations."),
                Activity("Closing meeting", "2025-02-10", "2025-02-10",
                         "Present results to management."),
            ],
            attachments=[Attachment("draft_report.pdf", "application/pdf")],
        ),
    ]
    return audit
