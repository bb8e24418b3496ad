"""HTML report rendering for benchmark results."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_ROW_KEYS = ("implementation", "size", "best", "mean", "relative")


def render_report(results: dict[str, Any]) -> str:
    """Render an HTML report from a benchmark results document.

    Raises ValueError when the document is not shaped like the output of the
    ``bench`` command, and KeyError when a result row lacks a field.
    """

    if not isinstance(results, dict):
        raise ValueError("results document must be a JSON object")
    config = results.get("config") or {}
    rows = results.get("results", [])
    if not isinstance(config, dict):
        raise ValueError("'config' must be a JSON object")
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValueError("'results' must be a list of objects")
    for row in rows:
        missing = [key for key in _ROW_KEYS if key not in row]
        if missing:
            raise KeyError(f"result row is missing {', '.join(missing)}")

    env = Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("report.html.j2")
    sizes = sorted({row["size"] for row in rows})
    return template.render(config=config, rows=rows, sizes=sizes)
