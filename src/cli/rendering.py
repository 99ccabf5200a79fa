"""Dual-mode renderer (Rich tables or JSON).

The mode is chosen once per invocation by the global `--json` option.
Commands hand over normalised rows plus the raw payload; the renderer decides
which of the two reaches stdout.

Table mode:
- one header line, then one line per row;
- every cell is truncated (`…`) and padded to its column width;
- an empty page prints exactly `No <items> found.`;
- a page with a cursor ends with a continuation hint.

JSON mode prints indented JSON and nothing else, so output can be piped.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from core.domain.models import PageEnvelope
from core.services.pagination import MergedPage

ELLIPSIS = "…"
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]+")
COLUMN_GAP = 2


class OutputMode(str, Enum):
    TABLE = "table"
    JSON = "json"


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    width: int


def truncate(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width == 1:
        return ELLIPSIS
    return text[: width - 1] + ELLIPSIS


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def single_line(text: str) -> str:
    """Collapse line breaks and other control characters into one space."""

    return _CONTROL_CHARS.sub(" ", text)


def continuation_hint(cursor: str, *, label: str | None = None) -> str:
    prefix = f"More {label} results available." if label else "More results available."
    return f"{prefix} Run with: --cursor {cursor}"


class Renderer:
    """Writes command results to one stdout console."""

    def __init__(self, mode: OutputMode = OutputMode.TABLE, console: Console | None = None) -> None:
        self.mode = mode
        self.console = console or Console(highlight=False, soft_wrap=True)

    @property
    def is_json(self) -> bool:
        return self.mode is OutputMode.JSON

    # -- low level ---------------------------------------------------------

    def emit_json(self, payload: Any) -> None:
        self.console.out(json.dumps(payload, indent=2, ensure_ascii=False, default=str), highlight=False)

    def line(self, text: str = "") -> None:
        self.console.out(text, highlight=False)

    def table(self, columns: Sequence[Column], rows: Sequence[Mapping[str, Any]]) -> None:
        table = Table(
            box=None,
            show_edge=False,
            pad_edge=False,
            padding=(0, COLUMN_GAP, 0, 0),
            header_style="bold",
        )
        for column in columns:
            table.add_column(column.header, width=column.width, no_wrap=True, overflow="ellipsis")
        for row in rows:
            table.add_row(
                *(Text(truncate(single_line(_cell(row.get(column.key))), column.width)) for column in columns)
            )
        # Fixed total width so every cell gets exactly its declared width.
        total = sum(column.width + COLUMN_GAP for column in columns)
        self.console.print(table, width=total)

    # -- pages -------------------------------------------------------------

    def render_page(
        self,
        page: PageEnvelope[Any],
        columns: Sequence[Column],
        rows: Sequence[Mapping[str, Any]],
        *,
        noun: str,
    ) -> None:
        """Render one list page.

        `page` is what JSON mode prints (server items verbatim, `nextCursor`
        always present); `rows` are the normalised cells for table mode.
        """

        if self.is_json:
            self.emit_json(page.to_json())
            return
        if not rows:
            self.line(f"No {noun} found.")
        else:
            self.table(columns, rows)
        if page.next_cursor:
            self.line()
            self.line(continuation_hint(page.next_cursor))

    def render_merged(
        self,
        merged: MergedPage,
        columns: Sequence[Column],
        rows: Sequence[Mapping[str, Any]],
        *,
        noun: str,
    ) -> None:
        if self.is_json:
            self.emit_json(merged.to_json())
            return
        if not rows:
            self.line(f"No {noun} found.")
        else:
            self.table(columns, rows)
        hints = [
            continuation_hint(page.next_cursor, label=source.label)
            for source, page in merged.sources
            if page.next_cursor
        ]
        if hints:
            self.line()
            for hint in hints:
                self.line(hint)

    # -- single entities ---------------------------------------------------

    def render_entity(
        self,
        raw: Mapping[str, Any],
        title: str,
        fields: Sequence[tuple[str, Any]],
    ) -> None:
        if self.is_json:
            self.emit_json(dict(raw))
            return
        self.line(title)
        self.line("─" * max(len(title), 40))
        for label, value in fields:
            self.line(f"{label}: {_cell(value) or '-'}")

    def render_message(self, text: str, payload: Mapping[str, Any] | None = None) -> None:
        """Plain confirmation line; JSON mode prints `payload` instead."""

        if self.is_json:
            self.emit_json(dict(payload) if payload is not None else {"message": text})
            return
        self.line(text)
