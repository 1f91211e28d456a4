"""Table and value formatting for command output."""

import csv
import io
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import humanize
from tabulate import tabulate

from aws_infra.core.constants import DEFAULT_TABLE_FORMAT, OUTPUT_FORMATS, SCAN_TIME_FORMAT

NO_RESULTS = "No results"


def format_bytes(num_bytes: Optional[int]) -> str:
    """Format a byte count with binary units, e.g. ``1.5 KiB``."""
    if num_bytes is None:
        return "n/a"
    return humanize.naturalsize(num_bytes, binary=True)


def format_timestamp(value: Any) -> str:
    """Render SDK datetimes as ``YYYY-mm-dd HH:MM:SS``; other values as str."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(SCAN_TIME_FORMAT)
    return str(value)


def format_tags(tags: Dict[str, str]) -> str:
    return ", ".join(f"{key}={tags[key]}" for key in sorted(tags))


def render_table(
    rows: Sequence[Dict[str, Any]],
    headers: Optional[List[str]] = None,
    tablefmt: str = DEFAULT_TABLE_FORMAT,
) -> str:
    """Render rows (dicts) as a text table.

    Columns follow ``headers`` when given, else the key order of the first row.
    """
    if not rows:
        return NO_RESULTS

    headers = headers or list(rows[0].keys())
    body = [[row.get(header, "") for header in headers] for row in rows]
    return tabulate(body, headers=[h.upper() for h in headers], tablefmt=tablefmt)


def render_csv(rows: Sequence[Dict[str, Any]], headers: Optional[List[str]] = None) -> str:
    if not rows:
        return ""
    headers = headers or list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\r\n")


def format_output(
    rows: Sequence[Dict[str, Any]],
    fmt: str = "table",
    headers: Optional[List[str]] = None,
) -> str:
    """Render rows as ``table``, ``json`` or ``csv``."""
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {fmt}. Expected one of {', '.join(OUTPUT_FORMATS)}")

    if fmt == "json":
        return json.dumps(list(rows), indent=2, default=str)
    if fmt == "csv":
        return render_csv(rows, headers)
    return render_table(rows, headers)
