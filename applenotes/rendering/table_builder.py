"""
Table reconstruction for Apple Notes CRDT tables.

Turns an identifier-addressed TableContent (rows, columns and the cells that
reference them) into a dense positional grid, then renders it as a
pipe-delimited Markdown table. Cell contents are themselves note text;
callers provide a callback rendering a TextContent through the text path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..domain import Anomaly, AnomalyKind, TableAxisItem, TableContent, TableGrid, TextContent

LOGGER = logging.getLogger(__name__)


@dataclass
class AxisState:
    """Identifier -> grid position for one axis."""

    indices: Dict[str, int] = field(default_factory=dict)
    total: int = 0

    @classmethod
    def from_items(cls, items: Sequence[TableAxisItem]) -> "AxisState":
        # Position comes from the ordering key; equal keys share a slot
        slots = {order: pos for pos, order in enumerate(sorted({i.order for i in items}))}
        return cls(
            indices={item.identifier: slots[item.order] for item in items},
            total=len(slots),
        )


def reconstruct_table(
    table: TableContent, render_cell: Callable[[TextContent], str]
) -> Tuple[TableGrid, List[Anomaly]]:
    rows = AxisState.from_items(table.rows)
    cols = AxisState.from_items(table.columns)
    anomalies: List[Anomaly] = []
    cells: List[List[str]] = [["" for _ in range(cols.total)] for _ in range(rows.total)]
    placed: Dict[Tuple[int, int], str] = {}

    for cell in table.cells:
        row_pos: Optional[int] = rows.indices.get(cell.row_id)
        col_pos: Optional[int] = cols.indices.get(cell.column_id)
        if row_pos is None or col_pos is None:
            missing = cell.row_id if row_pos is None else cell.column_id
            axis = "row" if row_pos is None else "column"
            anomalies.append(
                Anomaly(
                    kind=AnomalyKind.DANGLING_REFERENCE,
                    message=f"cell references unknown {axis} {missing}; dropped",
                    identifier=missing,
                )
            )
            continue
        coord = (row_pos, col_pos)
        if coord in placed:
            anomalies.append(
                Anomaly(
                    kind=AnomalyKind.TABLE_CONFLICT,
                    message=(
                        f"cells {placed[coord]} and {cell.row_id}/{cell.column_id} "
                        f"share position {coord}; keeping the later one"
                    ),
                    identifier=f"{cell.row_id}/{cell.column_id}",
                )
            )
        placed[coord] = f"{cell.row_id}/{cell.column_id}"
        cells[row_pos][col_pos] = render_cell(cell.content)

    LOGGER.debug(
        "notes.table.reconstructed rows=%d cols=%d cells=%d anomalies=%d",
        rows.total,
        cols.total,
        len(placed),
        len(anomalies),
    )
    if cols.total == 0:
        return TableGrid(), anomalies
    return TableGrid(rows=tuple(tuple(r) for r in cells)), anomalies


def _escape_cell(text: str) -> str:
    text = text.strip("\n").replace("\r\n", "\n")
    return text.replace("|", "\\|").replace("\u2028", "<br>").replace("\n", "<br>")


def render_markdown_table(grid: TableGrid) -> str:
    if not grid.rows or grid.column_count == 0:
        return ""
    lines = ["| " + " | ".join(_escape_cell(c) for c in row) + " |" for row in grid.rows]
    separator = "| " + " | ".join("--" for _ in range(grid.column_count)) + " |"
    lines.insert(1, separator)
    return "\n".join(lines)
