"""
Report Generator Module

Renders an aggregate sweep report:
- Colorized tables with rich
- Plain text summary
- JSON and CSV export
"""

import csv
import io
import json
from datetime import datetime
from typing import Optional
import logging

try:
    from rich.console import Console
    from rich.table import Table
    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False
    logging.warning("Rich not available. Reports will use basic output.")

from .aggregator import AggregateReport

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("txt", "json", "csv")


def _format_ports(ports) -> str:
    return ", ".join(str(p) for p in ports) if ports else "-"


class ReportRenderer:
    """Render and export an aggregate report."""

    def __init__(self, report: AggregateReport, console: Optional["Console"] = None):
        self.report = report
        self.console = console

    def display(self):
        """Print the report to the console."""
        if self.console:
            self._display_rich()
        else:
            print(self.format_text())

    def _display_rich(self):
        self.console.print(f"[bold]Total IPs scanned:[/bold] {self.report.total_scanned}")
        self.console.print(f"[bold green]IPs UP:[/bold green] {self.report.total_up}")

        up_hosts = self.report.up_hosts
        if up_hosts:
            table = Table(title="Hosts Up")
            table.add_column("Address", style="cyan")
            table.add_column("Hostname", style="blue")
            table.add_column("Open TCP Ports", style="green")
            for result in up_hosts:
                table.add_row(str(result.address), result.hostname or "-", _format_ports(result.open_ports))
            self.console.print(table)
        else:
            self.console.print("No hosts up.", style="yellow")

        down_hosts = self.report.down_hosts
        if down_hosts:
            self.console.print("\n[bold red]Hosts Down:[/bold red]")
            for result in down_hosts:
                self.console.print(f"  {result.address}", style="dim")

    def format_text(self) -> str:
        """Format the report as text."""
        output = "Network Sweep Results\n"
        output += f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
        output += f"Total IPs scanned: {self.report.total_scanned}\n"
        output += f"IPs UP: {self.report.total_up}\n\n"

        output += "IPs UP:\n"
        output += f"{'Address':<16} {'Hostname':<40} {'Open TCP Ports'}\n"
        output += "-" * 80 + "\n"
        for result in self.report.up_hosts:
            output += f"{str(result.address):<16} {result.hostname or '-':<40} {_format_ports(result.open_ports)}\n"

        output += "\nIPs DOWN:\n"
        for result in self.report.down_hosts:
            output += f"{result.address}\n"
        return output

    def export_json(self) -> str:
        data = self.report.to_dict()
        data["generated"] = datetime.now().isoformat()
        return json.dumps(data, indent=2)

    def export_csv(self) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["address", "status", "hostname", "open_ports"])
        for result in self.report.results:
            writer.writerow([
                str(result.address),
                result.status.value,
                result.hostname or "",
                " ".join(str(p) for p in result.open_ports)
            ])
        return output.getvalue()

    def render(self, format: str) -> str:
        if format == "json":
            return self.export_json()
        if format == "csv":
            return self.export_csv()
        if format == "txt":
            return self.format_text()
        raise ValueError(f"Unknown report format: {format}")

    def save(self, output_path: str, format: str = "txt"):
        """Save the report to a file."""
        content = self.render(format)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info(f"Report saved to {output_path}")
