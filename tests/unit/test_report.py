import io
import json

import pytest
from rich.console import Console

from spotify_contract.errors import ReportGenerationError
from spotify_contract.logger import RunLogger
from spotify_contract.report import LogReportGenerator, parse_log_lines, render_report


def _entry(level: str, test_case: str, action: str, **extra) -> str:
    record = {"timestamp": "2024-01-01T00:00:00+00:00", "level": level, "testCase": test_case, "action": action}
    record.update(extra)
    return json.dumps(record)


def test_parse_log_lines_skips_malformed_lines() -> None:
    lines = [
        _entry("INFO", "TC-001", "START", details={}),
        "",
        "{not json",
        '{"level": "INFO"}',
        _entry("METRIC", "TC-001", "responseTime", value=12),
        '{"timestamp": "x", "level": "INFO", "testCase": "TC-1", "act',
    ]

    entries = parse_log_lines(lines)

    assert [e.action for e in entries] == ["START", "responseTime"]


def test_generate_renders_one_row_per_valid_entry(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    (log_dir / "a.log").write_text(
        "\n".join(
            [
                _entry("INFO", "TC-001", "START", details={}),
                "garbage line",
                _entry("SUCCESS", "TC-001", "DONE", details={"status": 200}),
            ]
        ),
        encoding="utf-8",
    )
    (log_dir / "b.json").write_text(_entry("ERROR", "TC-002", "FAILED", details={}) + "\n{oops", encoding="utf-8")
    (log_dir / "notes.txt").write_text(_entry("INFO", "TC-999", "IGNORED", details={}), encoding="utf-8")
    (log_dir / "empty.log").write_text("", encoding="utf-8")
    output = tmp_path / "out" / "report.html"

    path = LogReportGenerator(log_dir, output).generate()

    document = path.read_text(encoding="utf-8")
    assert path == output
    assert document.count('<tr class="level-') == 3
    assert '<tr class="level-ERROR">' in document
    assert "TC-999" not in document
    assert '<span id="entryCount">3</span>' in document


def test_entry_text_is_html_escaped(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    (log_dir / "run.log").write_text(
        _entry("ERROR", "<script>alert(1)</script>", "FAILED", details={"body": "<b>&</b>"}),
        encoding="utf-8",
    )

    path = LogReportGenerator(log_dir, tmp_path / "report.html").generate()

    document = path.read_text(encoding="utf-8")
    assert "<script>alert(1)</script>" not in document
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in document
    assert "<b>&</b>" not in document


def test_missing_log_directory_raises(tmp_path) -> None:
    generator = LogReportGenerator(tmp_path / "missing", tmp_path / "report.html")

    with pytest.raises(ReportGenerationError, match="not found"):
        generator.generate()
    assert not (tmp_path / "report.html").exists()


def test_directory_without_log_files_raises(tmp_path) -> None:
    (tmp_path / "readme.txt").write_text("hello", encoding="utf-8")

    with pytest.raises(ReportGenerationError, match="No log files"):
        LogReportGenerator(tmp_path, tmp_path / "report.html").generate()


def test_existing_report_is_overwritten(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    output = tmp_path / "report.html"
    output.write_text("stale report", encoding="utf-8")
    RunLogger(log_dir / "test-execution.log").info("TC-001", "START")

    LogReportGenerator(log_dir, output).generate()

    document = output.read_text(encoding="utf-8")
    assert "stale report" not in document
    assert "TC-001" in document


def test_endpoint_metrics_table(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    (log_dir / "run.log").write_text(_entry("INFO", "TC-001", "START", details={}), encoding="utf-8")
    metrics_path = tmp_path / "metrics.json"
    metrics_path.write_text(
        json.dumps(
            {
                "endpoint_metrics": [
                    {
                        "endpoint": "/albums",
                        "count": 2,
                        "avg": 110,
                        "min": 100,
                        "max": 120,
                        "p95": 120,
                        "p99": 120,
                        "status_codes": [200, 404],
                    }
                ]
            }
        ),
        encoding="utf-8",
    )

    path = LogReportGenerator(log_dir, tmp_path / "report.html", metrics_path=metrics_path).generate()

    document = path.read_text(encoding="utf-8")
    assert '<section id="endpoint-metrics">' in document
    assert "<td>/albums</td>" in document
    assert "<td>200, 404</td>" in document


def test_endpoint_section_removed_without_metrics() -> None:
    document = render_report([], None)

    assert 'id="endpoint-metrics"' not in document
    assert '<tbody id="log-rows"></tbody>' in document
    assert '<span id="entryCount">0</span>' in document


def test_line_cut_inside_multibyte_character_is_skipped(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    good = _entry("INFO", "TC-001", "START", details={"artist": "Beyoncé"}).encode("utf-8")
    truncated = '{"timestamp": "t", "level": "INFO", "testCase": "TC-002", "action": "Beyoncé'.encode("utf-8")
    truncated = truncated[: truncated.index("é".encode("utf-8")) + 1]
    (log_dir / "run.log").write_bytes(good + b"\n" + truncated)

    path = LogReportGenerator(log_dir, tmp_path / "report.html").generate()

    document = path.read_text(encoding="utf-8")
    assert document.count('<tr class="level-') == 1
    assert "Beyoncé" in document
    assert "TC-002" not in document


def test_parse_log_lines_skips_undecodable_bytes() -> None:
    lines = [_entry("SUCCESS", "TC-001", "DONE", details={}).encode("utf-8"), b"\xc3", b"\xff\xfe{}"]

    entries = parse_log_lines(lines)

    assert [e.action for e in entries] == ["DONE"]


def test_logger_entries_round_trip_into_report_rows(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    log_path = log_dir / "test-execution.log"
    run_logger = RunLogger(log_path, console=Console(file=io.StringIO()))

    run_logger.info("TC-001", "REQUEST_START", {"path": "/albums"})
    run_logger.metric("TC-001", "responseTime_ms", 87)
    run_logger.success("TC-001", "REQUEST_SUCCESS", {"status": 200})
    with log_path.open("a", encoding="utf-8") as f:
        f.write("not json at all\n")
        f.write('{"timestamp": "t", "level": "INFO"\n')
        f.write("\n")
    run_logger.error("TC-002", "REQUEST_FAILED", {"status": 404})
    run_logger.metric("TC-002", "responseTime_ms", 45)
    partial = '{"timestamp": "t", "level": "ERROR", "testCase": "TC-003", "action": "Motörhead'.encode("utf-8")
    with log_path.open("ab") as f:
        f.write(partial[: partial.index("ö".encode("utf-8")) + 1])

    path = LogReportGenerator(log_dir, tmp_path / "report.html").generate()

    document = path.read_text(encoding="utf-8")
    assert document.count('<tr class="level-') == 5
    assert document.count('<tr class="level-METRIC">') == 2
    assert document.count('<tr class="level-ERROR">') == 1
    assert '<span id="entryCount">5</span>' in document
    assert "TC-003" not in document
