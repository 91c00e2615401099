"""
Inventory export to XML and XLSX documents
"""

import io
import xml.etree.ElementTree as ET

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill


EXPORT_COLUMNS = ('name', 'sku', 'quantity', 'location', 'notes', 'created_at')

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _clean(value):
    """Drop control characters that worksheets and XML 1.0 cannot hold"""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub('', value)
    return value


def _text(value):
    return '' if value is None else _clean(str(value))


def items_to_xml(items):
    """
    Build an XML document with one <item> node per inventory item

    Each column of the item becomes a child node holding its value as text.

    Args:
        items (list[Item]): Items to export

    Returns:
        io.BytesIO: UTF-8 encoded document, rewound
    """
    root = ET.Element('inventory')
    for item in items:
        item_elmt = ET.SubElement(root, 'item', id=str(item.id))
        for column in EXPORT_COLUMNS:
            ET.SubElement(item_elmt, column).text = _text(getattr(item, column))

    output_xml = io.BytesIO()
    ET.ElementTree(root).write(output_xml, encoding='utf-8', xml_declaration=True)
    output_xml.seek(0)
    return output_xml


def items_to_xlsx(items):
    """
    Build an Excel workbook with a styled header row and one row per item

    Args:
        items (list[Item]): Items to export

    Returns:
        io.BytesIO: Saved workbook, rewound
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Inventory"

    headers = ["Name", "SKU", "Quantity", "Location", "Notes", "Created"]
    ws.append(headers)

    # Style headers: bold, white text, blue fill, centered
    header_fill = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)
    for col_num in range(1, len(headers) + 1):
        cell = ws.cell(row=1, column=col_num)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 25

    for letter, width in zip("ABCDEF", (30, 15, 10, 20, 40, 20)):
        ws.column_dimensions[letter].width = width

    for item in items:
        ws.append([_clean(item.name), _clean(item.sku), item.quantity, _clean(item.location), _clean(item.notes),
                   _text(item.created_at)])
        ws.cell(row=ws.max_row, column=3).alignment = Alignment(horizontal="center")

    output_xlsx = io.BytesIO()
    wb.save(output_xlsx)
    output_xlsx.seek(0)
    return output_xlsx
