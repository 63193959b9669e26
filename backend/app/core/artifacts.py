# backend/app/core/artifacts.py

from typing import Dict, Any, BinaryIO, List, Optional, Union
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, ListFlowable
from reportlab.lib import colors
import datetime
import json
import re

# (section title, score field, score label, feedback field, calculation field)
SECTIONS = (
    ("CV Evaluation", "cv_match_rate", "Match rate", "cv_feedback", "cv_calculation_detail"),
    ("Project Evaluation", "project_score", "Score", "project_feedback", "project_calculation_detail"),
)

_BULLET_RE = re.compile(r"^\s*(?:[-*]|\d+\.)\s+(.*)$")


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _fmt_number(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def render_markdown(job_id: str, job_title: str, result: Dict[str, Any]) -> str:
    """Markdown report of a completed evaluation."""
    md = f"# Candidate Evaluation Report\n\n_Generated: {_now()}_\n\n"
    md += f"**Job:** {job_title}  \n**Job ID:** `{job_id}`\n\n"
    for title, score_key, label, feedback_key, calc_key in SECTIONS:
        md += f"## {title}\n**{label}:** {_fmt_number(result.get(score_key))}\n\n"
        md += f"### Feedback\n{result.get(feedback_key) or '_No feedback provided._'}\n\n"
        md += f"### Calculation\n{result.get(calc_key) or '_No calculation detail._'}\n\n"
    md += f"## Overall Summary\n{result.get('overall_summary') or '_No summary provided._'}\n"
    return md


def render_json(job_id: str, job_title: str, result: Dict[str, Any]) -> str:
    payload = {"job_id": job_id, "job_title": job_title, "generated_at": _now(), "result": result}
    return json.dumps(payload, indent=2, ensure_ascii=False)


class PDFRenderer:
    """Render completed evaluation results as PDFs using ReportLab."""

    def __init__(self):
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            name="TitleCentered",
            parent=styles["Title"],
            alignment=TA_CENTER,
            spaceAfter=12,
        )
        self.h2 = styles["Heading2"]
        self.h3 = styles["Heading3"]
        self.body = styles["BodyText"]

    # ---------- Public API ----------
    def build_report_pdf(self, target: Union[str, BinaryIO], job_id: str, job_title: str, result: Dict[str, Any]) -> None:
        """Write the report to `target`, a file path or a binary stream."""
        doc = SimpleDocTemplate(
            target, pagesize=A4,
            topMargin=2 * cm, bottomMargin=2 * cm,
            leftMargin=2 * cm, rightMargin=2 * cm
        )
        flow: List = []
        flow += self._header("Candidate Evaluation Report", job_id, job_title)

        for title, score_key, label, feedback_key, calc_key in SECTIONS:
            flow.append(Paragraph(title, self.h2))
            flow.append(Paragraph(
                f"<b>{label}:</b> {self._escape_html(_fmt_number(result.get(score_key)))}", self.body
            ))
            flow.append(Paragraph("Feedback", self.h3))
            flow += self._text_block(result.get(feedback_key), "No feedback provided.")
            flow.append(Paragraph("Calculation", self.h3))
            flow += self._text_block(result.get(calc_key), "No calculation detail.")
            flow.append(Spacer(1, 0.3 * cm))

        flow.append(Paragraph("Overall Summary", self.h2))
        flow += self._text_block(result.get("overall_summary"), "No summary provided.")

        doc.build(flow)

    # ---------- Section Builders ----------
    def _header(self, title: str, job_id: str, job_title: str) -> List:
        return [
            Paragraph(title, self.title_style),
            Paragraph(f"<font size=9 color=grey>Generated: {self._escape_html(_now())}</font>", self.body),
            Paragraph(f"<b>Job:</b> {self._escape_html(job_title)}", self.body),
            Paragraph(f"<font size=9>Job ID: {self._escape_html(job_id)}</font>", self.body),
            Spacer(1, 0.5 * cm),
        ]

    def _text_block(self, text: Optional[str], empty: str) -> List:
        """Paragraphs, with '-', '*' and '1.' lines collected into a bullet list."""
        if not text or not text.strip():
            return [Paragraph(f"<i>{empty}</i>", self.body)]
        flow: List = []
        bullets: List[str] = []
        for line in text.splitlines():
            m = _BULLET_RE.match(line)
            if m:
                bullets.append(m.group(1))
                continue
            if bullets:
                flow += self._bullet_list(bullets)
                bullets = []
            if line.strip():
                flow.append(Paragraph(self._inline_format(self._escape_html(line.strip())), self.body))
        if bullets:
            flow += self._bullet_list(bullets)
        return flow

    def _bullet_list(self, items: List[str]) -> List:
        paras = [Paragraph(self._inline_format(self._escape_html(x)), self.body) for x in items]
        return [ListFlowable(
            paras,
            bulletType="bullet",
            leftIndent=10,
            bulletColor=colors.black,
        )]

    # ---------- Inline helpers ----------
    @staticmethod
    def _escape_html(text: str) -> str:
        """Minimal XML/HTML escaping for ReportLab Paragraph."""
        return (
            text.replace("&", "&amp;")
                .replace("<", "&lt;")
                .replace(">", "&gt;")
        )

    @staticmethod
    def _inline_format(text: str) -> str:
        """Convert **bold** markdown to HTML for ReportLab."""
        return re.sub(r"\*\*(.+?)\*\*", r"<b>\1</b>", text)
