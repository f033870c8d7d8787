"""HTML report built from persisted JSON-lines logs."""

from __future__ import annotations

import html
import json
import logging
import re
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from spotify_contract.errors import ReportGenerationError
from spotify_contract.logger import LogEntry, LogLevel


logger = logging.getLogger(__name__)

LOG_EXTENSIONS = (".json", ".log")
TEMPLATE_PATH = Path(__file__).parent / "templates" / "log-report.html"


def parse_log_lines(lines: Iterable[str | bytes]) -> list[LogEntry]:
    """Parse JSON-lines records, skipping blank, partial or malformed lines.

    Byte lines are decoded one at a time, so a record cut off in the middle
    of a multi-byte character only loses that record.
    """
    entries: list[LogEntry] = []
    for line in lines:
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError:
                continue
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(LogEntry.model_validate_json(line))
        except ValidationError:
            continue
    return entries


def _cell(value: Any) -> str:
    return html.escape(str(value), quote=True)


def _entry_payload(entry: LogEntry) -> str:
    payload = entry.value if entry.level is LogLevel.METRIC else entry.details
    if payload is None:
        payload = {}
    return json.dumps(payload, ensure_ascii=False, default=str)


def render_log_rows(entries: list[LogEntry]) -> str:
    rows = []
    for entry in entries:
        rows.append(
            f'\n        <tr class="level-{_cell(entry.level.value)}">'
            f"<td>{_cell(entry.timestamp)}</td>"
            f"<td>{_cell(entry.test_case)}</td>"
            f"<td>{_cell(entry.level.value)}</td>"
            f"<td>{_cell(entry.action)}</td>"
            f'<td class="details">{_cell(_entry_payload(entry))}</td></tr>'
        )
    return "".join(rows)


def render_endpoint_rows(endpoint_metrics: list[dict[str, Any]]) -> str:
    rows = []
    for stats in endpoint_metrics:
        codes = ", ".join(str(code) for code in stats.get("status_codes", []))
        cells = "".join(
            f"<td>{_cell(stats.get(key, ''))}</td>"
            for key in ("endpoint", "count", "avg", "min", "max", "p95", "p99")
        )
        rows.append(f"\n        <tr>{cells}<td>{_cell(codes)}</td></tr>")
    return "".join(rows)


def _replace_element(template: str, tag: str, element_id: str, content: str) -> str:
    pattern = rf'<{tag} id="{element_id}">.*?</{tag}>'

    # function replacement keeps backslashes in content literal
    def replace(match: re.Match[str]) -> str:
        return f'<{tag} id="{element_id}">{content}</{tag}>'

    return re.sub(pattern, replace, template, flags=re.DOTALL)


def _remove_element(template: str, tag: str, element_id: str) -> str:
    return re.sub(rf'\s*<{tag} id="{element_id}">.*?</{tag}>', "", template, flags=re.DOTALL)


def render_report(
    entries: list[LogEntry],
    metrics_report: dict[str, Any] | None = None,
    template: str | None = None,
) -> str:
    """Fill the report template. Every interpolated value is HTML-escaped."""
    if template is None:
        template = TEMPLATE_PATH.read_text(encoding="utf-8")

    level_counts = Counter(entry.level.value for entry in entries)
    counts = " ".join(
        f"<span>{_cell(level.value)}: {level_counts.get(level.value, 0)}</span>" for level in LogLevel
    )

    content = _replace_element(template, "tbody", "log-rows", render_log_rows(entries))
    content = _replace_element(content, "span", "entryCount", str(len(entries)))
    content = _replace_element(content, "span", "levelCounts", counts)
    content = _replace_element(
        content, "span", "generatedAt", _cell(datetime.now(timezone.utc).isoformat())
    )

    endpoint_metrics = (metrics_report or {}).get("endpoint_metrics") or []
    if endpoint_metrics:
        content = _replace_element(content, "tbody", "endpoint-rows", render_endpoint_rows(endpoint_metrics))
    else:
        content = _remove_element(content, "section", "endpoint-metrics")
    return content


class LogReportGenerator:
    """Reads every log file in a directory and writes one static HTML report."""

    def __init__(
        self,
        log_dir: Path | str,
        output_path: Path | str,
        metrics_path: Path | str | None = None,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.output_path = Path(output_path)
        self.metrics_path = Path(metrics_path) if metrics_path else None

    def log_files(self) -> list[Path]:
        if not self.log_dir.is_dir():
            raise ReportGenerationError(f"Log directory not found: {self.log_dir}")
        files = sorted(
            p for p in self.log_dir.iterdir() if p.is_file() and p.suffix in LOG_EXTENSIONS
        )
        if not files:
            raise ReportGenerationError(f"No log files found in {self.log_dir}")
        return files

    def collect_entries(self) -> list[LogEntry]:
        entries: list[LogEntry] = []
        for path in self.log_files():
            entries.extend(parse_log_lines(path.read_bytes().splitlines()))
        return entries

    def load_metrics(self) -> dict[str, Any] | None:
        if self.metrics_path is None or not self.metrics_path.is_file():
            return None
        try:
            data = json.loads(self.metrics_path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Ignoring unreadable metrics file %s", self.metrics_path)
            return None
        return data if isinstance(data, dict) else None

    def generate(self) -> Path:
        """Write the report, replacing any previous one, and return its path.

        Raises:
            ReportGenerationError: If the log directory is missing or holds no
                ``.json``/``.log`` files.
        """
        entries = self.collect_entries()
        document = render_report(entries, self.load_metrics())
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(document, encoding="utf-8")
        logger.info("Report with %d entries written to %s", len(entries), self.output_path)
        return self.output_path
