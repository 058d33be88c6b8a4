"""Report text rendering and cell formatting."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from core.types import ReportTable

NULL_DISPLAY = "-"


def format_cell(value: object) -> str | None:
    """Format one report cell as text, keeping nulls as ``None``.

    Decimals render fixed-point so ``Decimal("1E+2")`` prints as ``100``.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def json_cell(value: object) -> object:
    """Convert one report cell into a JSON-serializable value.

    Integers and strings pass through; Decimals become fixed-point
    strings so no precision is lost.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return format_cell(value)


def render_report_table(table: ReportTable) -> str:
    """Render a report as aligned plain-text columns.

    Args:
        table: Report output.

    Returns:
        Title line, header, separator, and one line per row.
    """
    body = [
        [_display(row.get(column)) for column in table.columns] for row in table.rows
    ]
    widths = [
        max([len(column)] + [len(cells[index]) for cells in body])
        for index, column in enumerate(table.columns)
    ]
    lines = [
        f"== {table.name}: {table.title} ({len(table.rows)} rows)",
        _join_cells(list(table.columns), widths),
        _join_cells(["-" * width for width in widths], widths),
    ]
    lines.extend(_join_cells(cells, widths) for cells in body)
    return "\n".join(lines)


def render_report_tables(tables: list[ReportTable]) -> str:
    """Render several reports separated by blank lines."""
    return "\n\n".join(render_report_table(table) for table in tables)


def _display(value: object) -> str:
    formatted = format_cell(value)
    return NULL_DISPLAY if formatted is None else formatted


def _join_cells(cells: list[str], widths: list[int]) -> str:
    return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()
