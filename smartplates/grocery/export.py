"""
Grocery list export to plain text and PDF.

Both formats list every item exactly once, grouped by category when the
list is categorized, with its current purchased state.
"""

import re
from dataclasses import dataclass
from io import BytesIO
from typing import List, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from ..data.models import GroceryItem, GroceryList
from ..errors import UnsupportedExportFormat

EXPORT_FORMATS = {
    "text": ("txt", "text/plain; charset=utf-8"),
    "pdf": ("pdf", "application/pdf"),
}


@dataclass
class ExportedDocument:
    filename: str
    content: bytes
    media_type: str


def export_filename(list_name: str, export_format: str) -> str:
    """
    Build the download filename for a list.

    Every character outside [a-zA-Z0-9] becomes "_", so
    "Grocery List for Week 1" -> "Grocery_List_for_Week_1.txt".
    """
    if export_format not in EXPORT_FORMATS:
        raise UnsupportedExportFormat(export_format)
    extension = EXPORT_FORMATS[export_format][0]
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', list_name)}.{extension}"


def _sections(grocery_list: GroceryList) -> List[Tuple[str, List[GroceryItem]]]:
    if grocery_list.categorized:
        return sorted(grocery_list.categories.items())
    return [("Items", list(grocery_list.items))]


def _recipes_label(item: GroceryItem) -> str:
    recipes = ", ".join(item.recipes[:3])
    if len(item.recipes) > 3:
        recipes += f", +{len(item.recipes) - 3} more"
    return recipes


def render_text(grocery_list: GroceryList) -> str:
    """
    Format a grocery list as plain text.

    Args:
        grocery_list: List to render

    Returns:
        Text document, one "[x]"/"[ ]" line per item
    """
    lines = [
        grocery_list.name,
        "=" * 60,
        f"Generated: {grocery_list.generated_at.strftime('%Y-%m-%d %H:%M')}",
        f"Items: {grocery_list.items_count} ({grocery_list.purchased_count} purchased)",
    ]

    for section, items in _sections(grocery_list):
        lines.append("")
        lines.append(section.upper())
        lines.append("-" * 30)

        for item in items:
            checkbox = "[x]" if item.is_purchased else "[ ]"
            line = f"  {checkbox} {item.display_name} - {item.quantity_label()}"
            if item.estimated_cost is not None:
                line += f" (~${item.estimated_cost:.2f})"
            lines.append(line)
            if item.recipes:
                lines.append(f"      For: {_recipes_label(item)}")
            if item.notes:
                lines.append(f"      Note: {item.notes}")

    if grocery_list.total_estimated_cost is not None:
        lines.append("")
        lines.append(f"Estimated total: ${grocery_list.total_estimated_cost:.2f}")

    return "\n".join(lines) + "\n"


def render_pdf(grocery_list: GroceryList) -> bytes:
    """Render a grocery list as a PDF document."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, title=grocery_list.name)
    story = []

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ListTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#2f855a'),
        spaceAfter=12,
    )
    cell_style = ParagraphStyle(
        'ItemCell',
        parent=styles['Normal'],
        fontSize=9,
        leading=11,
    )

    story.append(Paragraph(escape(grocery_list.name), title_style))
    story.append(Paragraph(
        f"{grocery_list.items_count} items, {grocery_list.purchased_count} purchased",
        styles['Normal'],
    ))
    story.append(Spacer(1, 0.2 * inch))

    for section, items in _sections(grocery_list):
        story.append(Paragraph(f"<b>{escape(section)}</b>", styles['Heading2']))

        rows = [[
            Paragraph("", cell_style),
            Paragraph("<b>Item</b>", cell_style),
            Paragraph("<b>Quantity</b>", cell_style),
            Paragraph("<b>Recipes</b>", cell_style),
        ]]
        for item in items:
            rows.append([
                Paragraph("[x]" if item.is_purchased else "[ ]", cell_style),
                Paragraph(escape(item.display_name), cell_style),
                Paragraph(escape(item.quantity_label()), cell_style),
                Paragraph(escape(_recipes_label(item)), cell_style),
            ])

        table = Table(rows, colWidths=[0.4 * inch, 2.2 * inch, 1.5 * inch, 3.0 * inch])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#e6fffa')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('GRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ]))
        story.append(table)
        story.append(Spacer(1, 0.2 * inch))

    if grocery_list.total_estimated_cost is not None:
        story.append(Paragraph(
            f"<b>Estimated total:</b> ${grocery_list.total_estimated_cost:.2f}",
            styles['Normal'],
        ))

    doc.build(story)
    return buffer.getvalue()


def export_grocery_list(grocery_list: GroceryList, export_format: str) -> ExportedDocument:
    """
    Export a list in the requested format.

    Args:
        grocery_list: List to export
        export_format: "text" or "pdf"

    Returns:
        ExportedDocument with filename, bytes and media type

    Raises:
        UnsupportedExportFormat: For any other format
    """
    filename = export_filename(grocery_list.name, export_format)
    media_type = EXPORT_FORMATS[export_format][1]

    if export_format == "pdf":
        content = render_pdf(grocery_list)
    else:
        content = render_text(grocery_list).encode("utf-8")

    return ExportedDocument(filename=filename, content=content, media_type=media_type)
