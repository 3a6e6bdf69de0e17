"""PDF and LaTeX reports for a simulated plan.

Every figure printed here comes straight from the ``SimulationResult`` (and
the projection derived from it); nothing is recalculated, so the exported
numbers match the ones shown on screen.

Three PDF documents are available:

* ``build_pl_pdf`` - loan details, revenues/expenses and the yearly P/L table
* ``build_amortization_pdf`` - the month-by-month schedule of both tracks
* ``build_complete_pdf`` - both of the above in one document

``build_latex_report`` produces the complete report as LaTeX source.
"""

from __future__ import annotations

from datetime import date
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A3, A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .data_models import LoanPlan, SimulationResult
from .projector import exclude_own_columns
from .utils import format_currency, format_percentage

DEFAULT_BRAND = "EMI Plan Calculator"

HEADER_BLUE = colors.HexColor("#00008B")
ACCENT_BLUE = colors.HexColor("#00BFFF")
PROFIT_FILL = colors.HexColor("#DCFFDC")
LOSS_FILL = colors.HexColor("#FFDCDC")
PROFIT_TEXT = colors.HexColor("#008000")
LOSS_TEXT = colors.HexColor("#C80000")


# ----------------------------------------------------------------------
# Table data shared by the PDF and LaTeX renderings
# ----------------------------------------------------------------------
def loan_details_rows(plan: LoanPlan) -> List[List[str]]:
    return [
        ["Type", plan.plan_name or "Not specified"],
        ["Tenure (Yrs)", str(plan.loan_tenure)],
        ["Amount", format_currency(plan.loan_amount)],
        ["Int. Rate", format_percentage(plan.interest_per_annum)],
        ["Bank %", format_percentage(plan.bank_percent)],
        ["Own %", format_percentage(plan.own_percent)],
        ["Own Tenure", str(plan.own_tenure)],
        ["Own Int.", format_percentage(plan.own_funds_interest_rate)],
        ["GST %", format_percentage(plan.gst_percentage)],
    ]


def line_item_rows(plan: LoanPlan) -> List[List[str]]:
    rows = [[item.name, format_currency(item.amount), item.period, "Revenue"] for item in plan.revenues]
    rows += [[item.name, format_currency(item.amount), item.period, "Expense"] for item in plan.expenses]
    return rows


def pl_header(include_own: bool) -> List[str]:
    header = ["Period", "Revenue", "Expenses"]
    if include_own:
        header += ["Own Amt", "Own Pay"]
    header += ["Loan Amt", "Loan Pay"]
    if include_own:
        header.append("Own Int")
    header += ["Loan Int", "P/L", "Status"]
    return header


def pl_rows(result: SimulationResult, include_own: bool) -> List[List[str]]:
    rows = []
    for entry in result.yearly_avg:
        row = [f"Year {entry.period}", format_currency(entry.revenue), format_currency(entry.expenses)]
        if include_own:
            row += [format_currency(entry.own_amount), format_currency(entry.own_repayment)]
        row += [format_currency(entry.loan_amount), format_currency(entry.loan_repayment)]
        if include_own:
            row.append(format_currency(entry.own_interest))
        row += [
            format_currency(entry.loan_interest),
            format_currency(entry.pl),
            "Profit" if entry.pl >= 0 else "Loss",
        ]
        rows.append(row)
    return rows


AMORTIZATION_SUBHEADER = [
    "Beginning Principal",
    "Principal",
    "Interest",
    "Total EMI",
    "Ending Principal",
]


def amortization_rows(result: SimulationResult) -> List[List[str]]:
    return [
        [
            str(row.month),
            format_currency(row.bank_beginning_principal),
            format_currency(row.bank_principal),
            format_currency(row.bank_interest),
            format_currency(row.bank_total_emi),
            format_currency(row.bank_ending_principal),
            format_currency(row.own_beginning_principal),
            format_currency(row.own_principal),
            format_currency(row.own_interest),
            format_currency(row.own_total_emi),
            format_currency(row.own_ending_principal),
        ]
        for row in result.amortization
    ]


# ----------------------------------------------------------------------
# PDF
# ----------------------------------------------------------------------
def _grid_style(font_size: float = 6) -> List[tuple]:
    return [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BLUE),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("FONTSIZE", (0, 0), (-1, -1), font_size),
        ("BACKGROUND", (0, 1), (-1, -1), colors.white),
    ]


def _header(story: list, plan: LoanPlan, title: str, brand: str, today: date) -> None:
    styles = getSampleStyleSheet()
    brand_style = ParagraphStyle("Brand", parent=styles["Title"], textColor=HEADER_BLUE, fontSize=16)
    title_style = ParagraphStyle("ReportTitle", parent=styles["Heading2"], alignment=1, textColor=ACCENT_BLUE)
    meta_style = ParagraphStyle("Meta", parent=styles["Normal"], fontSize=7, textColor=colors.grey)
    story.append(Paragraph(escape(brand), brand_style))
    story.append(Paragraph(title, title_style))
    story.append(
        Paragraph(
            f"Plan: {escape(plan.plan_name or 'Not specified')} &nbsp;&nbsp; Generated: {today.isoformat()}",
            meta_style,
        )
    )
    story.append(Spacer(1, 4 * mm))


def _details_tables(story: list, plan: LoanPlan) -> None:
    details = Table([["Loan Details", "Values"]] + loan_details_rows(plan), colWidths=[35 * mm, 40 * mm])
    details.setStyle(TableStyle(_grid_style()))
    items = Table(
        [["Name", "Amount", "Period", "Type"]] + line_item_rows(plan),
        colWidths=[35 * mm, 28 * mm, 20 * mm, 20 * mm],
    )
    items.setStyle(TableStyle(_grid_style()))
    side_by_side = Table([[details, items]])
    side_by_side.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    story.append(side_by_side)
    story.append(Spacer(1, 6 * mm))


def _pl_table(story: list, result: SimulationResult) -> None:
    include_own = not exclude_own_columns(result)
    rows = pl_rows(result, include_own)
    table = Table([pl_header(include_own)] + rows, repeatRows=1)
    style = _grid_style()
    status_col = len(rows[0]) - 1 if rows else 0
    for index, entry in enumerate(result.yearly_avg, start=1):
        profit = entry.pl >= 0
        style.append(("TEXTCOLOR", (status_col - 1, index), (status_col, index), PROFIT_TEXT if profit else LOSS_TEXT))
        style.append(("BACKGROUND", (status_col, index), (status_col, index), PROFIT_FILL if profit else LOSS_FILL))
    table.setStyle(TableStyle(style))
    story.append(table)


def _amortization_table(story: list, result: SimulationResult) -> None:
    head = [
        ["Month", "Loan Details", "", "", "", "", "Own Funds Details", "", "", "", ""],
        [""] + AMORTIZATION_SUBHEADER + AMORTIZATION_SUBHEADER,
    ]
    table = Table(head + amortization_rows(result), repeatRows=2)
    style = _grid_style(5.5)
    style += [
        ("SPAN", (0, 0), (0, 1)),
        ("SPAN", (1, 0), (5, 0)),
        ("SPAN", (6, 0), (10, 0)),
        ("BACKGROUND", (0, 1), (-1, 1), HEADER_BLUE),
        ("TEXTCOLOR", (0, 1), (-1, 1), colors.white),
        ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
    ]
    table.setStyle(TableStyle(style))
    story.append(table)


def _footer(story: list, brand: str) -> None:
    styles = getSampleStyleSheet()
    footer_style = ParagraphStyle("Footer", parent=styles["Normal"], fontSize=6, alignment=1, textColor=colors.grey)
    story.append(Spacer(1, 6 * mm))
    story.append(Paragraph(f"Generated by {escape(brand)}", footer_style))


def _render(story: list, pagesize) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=8 * mm,
        rightMargin=8 * mm,
        topMargin=8 * mm,
        bottomMargin=8 * mm,
    )
    doc.build(story)
    return buffer.getvalue()


def build_pl_pdf(
    plan: LoanPlan,
    result: SimulationResult,
    brand: str = DEFAULT_BRAND,
    today: Optional[date] = None,
) -> bytes:
    """Return the Profit/Loss overview report as PDF bytes."""
    story: list = []
    _header(story, plan, "Profit/Loss Overview Report", brand, today or date.today())
    _details_tables(story, plan)
    _pl_table(story, result)
    _footer(story, brand)
    return _render(story, A3)


def build_amortization_pdf(
    plan: LoanPlan,
    result: SimulationResult,
    brand: str = DEFAULT_BRAND,
    today: Optional[date] = None,
) -> bytes:
    """Return the monthly amortization schedule of both tracks as PDF bytes."""
    story: list = []
    _header(story, plan, "Amortization Schedule Report", brand, today or date.today())
    _amortization_table(story, result)
    _footer(story, brand)
    return _render(story, landscape(A4))


def build_complete_pdf(
    plan: LoanPlan,
    result: SimulationResult,
    brand: str = DEFAULT_BRAND,
    today: Optional[date] = None,
) -> bytes:
    story: list = []
    _header(story, plan, "Complete EMI Plan Report", brand, today or date.today())
    _details_tables(story, plan)
    _pl_table(story, result)
    story.append(PageBreak())
    _amortization_table(story, result)
    _footer(story, brand)
    return _render(story, A3)


# ----------------------------------------------------------------------
# LaTeX
# ----------------------------------------------------------------------
_LATEX_SPECIAL = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def latex_escape(text: str) -> str:
    return "".join(_LATEX_SPECIAL.get(ch, ch) for ch in str(text))


def _latex_table(header: List[str], rows: List[List[str]], long: bool = False) -> List[str]:
    env = "longtable" if long else "tabular"
    column_spec = "|" + "|".join("c" for _ in header) + "|"
    lines = [f"\\begin{{{env}}}{{{column_spec}}}", "\\hline"]
    lines.append(" & ".join(f"\\textbf{{{latex_escape(h)}}}" for h in header) + " \\\\")
    lines.append("\\hline")
    if long:
        lines.append("\\endhead")
    for row in rows:
        lines.append(" & ".join(latex_escape(cell) for cell in row) + " \\\\")
    lines.append("\\hline")
    lines.append(f"\\end{{{env}}}")
    return lines


def build_latex_report(
    plan: LoanPlan,
    result: SimulationResult,
    brand: str = DEFAULT_BRAND,
    today: Optional[date] = None,
) -> str:
    """Return the complete report as a standalone LaTeX document."""
    today = today or date.today()
    include_own = not exclude_own_columns(result)
    lines = [
        "\\documentclass[a4paper,landscape]{article}",
        "\\usepackage[margin=1cm]{geometry}",
        "\\usepackage{longtable}",
        "\\begin{document}",
        "\\begin{center}",
        f"{{\\Large \\textbf{{{latex_escape(brand)}}}}}\\\\[2mm]",
        "Complete EMI Plan Report\\\\",
        f"Plan: {latex_escape(plan.plan_name or 'Not specified')} \\quad Generated: {today.isoformat()}",
        "\\end{center}",
        "\\section*{Loan Details}",
    ]
    lines += _latex_table(["Loan Details", "Values"], loan_details_rows(plan))
    lines.append("\\section*{Revenues and Expenses}")
    lines += _latex_table(["Name", "Amount", "Period", "Type"], line_item_rows(plan))
    lines.append("\\section*{Profit/Loss Overview}")
    lines += _latex_table(pl_header(include_own), pl_rows(result, include_own), long=True)
    lines.append("\\section*{Amortization Schedule}")
    amortization_header = ["Month"] + [f"Loan {h}" for h in AMORTIZATION_SUBHEADER]
    amortization_header += [f"Own {h}" for h in AMORTIZATION_SUBHEADER]
    lines += _latex_table(amortization_header, amortization_rows(result), long=True)
    lines.append("\\end{document}")
    return "\n".join(lines) + "\n"
