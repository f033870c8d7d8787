from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .auth import fetch_access_token
from .config import HarnessSettings
from .errors import HarnessError, ReportGenerationError
from .report import LogReportGenerator


def mask_token(token: str, visible: int = 6) -> str:
    if len(token) <= visible:
        return "*" * len(token)
    return token[:visible] + "*" * (len(token) - visible)


class CLIApplication:
    """Top-level command router."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None) -> None:
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.parser = argparse.ArgumentParser(
            prog="spotify-contract",
            description="Utilities for the catalog API contract test suite.",
        )
        subparsers = self.parser.add_subparsers(dest="command", required=True)
        report = subparsers.add_parser(
            "report",
            help="Render the persisted JSON-lines logs into an HTML report.",
        )
        report.add_argument(
            "--log-dir",
            dest="log_dir",
            help="Directory holding .json/.log files (default: SPOTIFY_LOG_DIR or ./logs)",
        )
        report.add_argument(
            "--output",
            dest="output",
            help="Where to write the HTML report (default: SPOTIFY_REPORT_PATH or logs/report.html)",
        )
        report.add_argument(
            "--metrics",
            dest="metrics",
            help="Optional metrics JSON written by the suite, shown as an endpoint table.",
        )
        subparsers.add_parser(
            "token",
            help="Exchange client credentials for a bearer token and print it masked.",
        )

    def run(self, argv: Sequence[str] | None = None) -> int:
        load_dotenv(Path.cwd() / ".env")
        args = self.parser.parse_args(argv)
        settings = HarnessSettings()
        if args.command == "report":
            return ReportCommand(self.console, self.err_console, settings, args).run()
        return TokenCommand(self.console, self.err_console, settings).run()


class ReportCommand:
    """Driver for `spotify-contract report`."""

    def __init__(
        self,
        console: Console,
        err_console: Console,
        settings: HarnessSettings,
        args: argparse.Namespace,
    ) -> None:
        self.console = console
        self.err_console = err_console
        metrics = args.metrics or (settings.metrics_path if settings.metrics_path.is_file() else None)
        self.generator = LogReportGenerator(
            log_dir=Path(args.log_dir).expanduser() if args.log_dir else settings.log_dir,
            output_path=Path(args.output).expanduser() if args.output else settings.report_path,
            metrics_path=metrics,
        )

    def run(self) -> int:
        try:
            path = self.generator.generate()
        except ReportGenerationError as exc:
            self.err_console.print(f"[red]{escape(str(exc))}[/red]")
            return 1
        report_url = path.resolve().as_uri()
        self.console.print(f"Report saved to [link={report_url}]{report_url}[/link]", style="bold green")
        return 0


class TokenCommand:
    """Driver for `spotify-contract token`."""

    def __init__(self, console: Console, err_console: Console, settings: HarnessSettings) -> None:
        self.console = console
        self.err_console = err_console
        self.settings = settings

    def run(self) -> int:
        try:
            token = asyncio.run(fetch_access_token(self.settings))
        except HarnessError as exc:
            self.err_console.print(f"[red]{escape(str(exc))}[/red]")
            return 1
        self.console.print(f"Token: {mask_token(token)}", style="bold green")
        return 0


def main() -> None:
    sys.exit(CLIApplication().run())
