"""
Command Line Interface

Provides a rich CLI interface for network sweeps:
- Colorized output with rich
- Progress bar driven by completed hosts
- Local interface listing
- Multiple output formats
"""

import asyncio
import argparse
import sys
from typing import List, Optional, Tuple
import logging

try:
    from rich.console import Console
    from rich.table import Table
    from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn, TimeElapsedColumn
    from rich.panel import Panel
    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False
    logging.warning("Rich not available. CLI will use basic output.")

from .aggregator import AggregateReport
from .discover import select_liveness_probe
from .exceptions import SweepError
from .interfaces import list_ipv4_interfaces
from .parser import AddressRange, Target, parse_target, total_addresses
from .reporter import EXPORT_FORMATS, ReportRenderer
from .scanner import DEFAULT_TCP_PORTS, HostProber, ScanConfig
from .sweeper import NetworkSweeper

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def parse_ports(ports_str: str) -> Tuple[int, ...]:
    """Parse port string (e.g. ``22,80,8000-8010``) into a port tuple."""
    ports = []
    for port_str in ports_str.split(","):
        port_str = port_str.strip()
        if not port_str:
            continue
        if "-" in port_str:
            start, end = map(int, port_str.split("-", 1))
            if start > end:
                raise ValueError(f"invalid port range: {port_str}")
            ports.extend(range(start, end + 1))
        else:
            ports.append(int(port_str))
    if not ports:
        raise ValueError("no ports given")
    # keep order, drop duplicates
    return tuple(dict.fromkeys(ports))


class NetSweepCLI:
    """Command line interface for network sweeps."""

    def __init__(self):
        self.console = Console() if RICH_AVAILABLE else None
        self.sweeper: Optional[NetworkSweeper] = None
        self.report: Optional[AggregateReport] = None

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI with given arguments and return the exit code."""
        parser = self._create_parser()
        args = parser.parse_args(args)

        # Configure logging
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        if args.interfaces or args.target is None:
            self._show_interfaces()

        if args.target is None:
            self._print("No target specified, nothing to scan.", style="yellow")
            return EXIT_OK

        try:
            target = parse_target(args.target, args.end)
            config = self._build_config(args)
            liveness_probe = select_liveness_probe(prefer_raw=not args.no_raw)
        except SweepError as e:
            self._print_error(str(e))
            return e.exit_code
        except ValueError as e:
            self._print_error(f"Invalid option: {e}")
            return EXIT_USAGE

        prober = HostProber(config, liveness_probe)
        try:
            self.report = asyncio.run(self._run_sweep(target, config, prober))
        except KeyboardInterrupt:
            self._print("Sweep interrupted.", style="red")
            return EXIT_INTERRUPTED
        finally:
            prober.close()

        ReportRenderer(self.report, self.console).display()

        if args.output:
            self._save_report(args.output, args.format)
        return EXIT_OK

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog="netsweep",
            description="Sweep an IPv4 address, range or network for live hosts, hostnames and open TCP ports",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s 192.168.0.14
  %(prog)s 192.168.0.0/24 --timeout 200
  %(prog)s 192.168.0.1 192.168.0.254 --chunk-size 16 --workers 8
  %(prog)s 10.0.0.0/28 --ports 22,80,8000-8010 --output sweep.json --format json
  %(prog)s --interfaces

Local IPv4 interfaces are listed only with --interfaces, or when no target
is given. They are never used to pick the sweep target.
            """
        )
        parser.add_argument("target", nargs="?",
                            help="IPv4 address or CIDR network. With END, the start of the range")
        parser.add_argument("end", nargs="?",
                            help="End of the range when TARGET is an address. Must be greater than TARGET")
        parser.add_argument("--timeout", "-t", default=100, type=int,
                            help="Ping and TCP connect timeout in milliseconds (default: 100)")
        parser.add_argument("--dns-timeout", default=1.0, type=float,
                            help="Reverse DNS lookup timeout in seconds (default: 1.0)")
        parser.add_argument("--chunk-size", "-c", default=10, type=int,
                            help="Number of addresses each worker receives (default: 10)")
        parser.add_argument("--workers", "-w", type=int,
                            help="Maximum number of concurrent workers (default: one per chunk)")
        parser.add_argument("--ports", "-p", default=",".join(str(p) for p in DEFAULT_TCP_PORTS),
                            help="TCP ports to check on live hosts (e.g. 22,80,443 or 1-1024)")
        parser.add_argument("--no-raw", action="store_true",
                            help="Always use the system ping command instead of raw ICMP")
        parser.add_argument("--interfaces", "-i", action="store_true",
                            help="List local IPv4 interfaces before scanning (default when no target is given)")
        parser.add_argument("--output", "-o", help="Output file")
        parser.add_argument("--format", choices=EXPORT_FORMATS, default="txt", help="Output format")
        parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
        return parser

    def _build_config(self, args) -> ScanConfig:
        return ScanConfig(
            timeout=args.timeout / 1000.0,
            dns_timeout=args.dns_timeout,
            ports=parse_ports(args.ports),
            chunk_size=args.chunk_size,
            max_workers=args.workers,
            verbose=args.verbose
        )

    async def _run_sweep(self, target: Target, config: ScanConfig, prober: HostProber) -> AggregateReport:
        """Run the sweep with a progress bar."""
        address_range = target if isinstance(target, AddressRange) else None
        total = total_addresses(target)

        if self.console:
            if address_range:
                self.console.print(Panel.fit(f"Scanning IP range {address_range}", style="bold blue"))
            else:
                self.console.print(Panel.fit(f"Scanning single IP {target}", style="bold blue"))

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console
            ) as progress:
                task = progress.add_task("Sweeping...", total=total)

                def on_host_done(result, completed, expected):
                    progress.update(task, completed=completed)

                self.sweeper = NetworkSweeper(config, prober=prober, progress_callback=on_host_done)
                return await self.sweeper.sweep_target(target)

        print(f"Scanning {total} address(es)...")
        self.sweeper = NetworkSweeper(config, prober=prober)
        return await self.sweeper.sweep_target(target)

    def _show_interfaces(self):
        """Display local IPv4 interfaces."""
        interfaces = list_ipv4_interfaces()
        if self.console:
            table = Table(title="Local IPv4 Interfaces")
            table.add_column("Interface", style="cyan")
            table.add_column("Address", style="magenta")
            table.add_column("Network", style="green")
            table.add_column("State", style="bold")
            for iface in interfaces:
                table.add_row(iface.interface, str(iface), iface.network, "up" if iface.is_up else "down")
            self.console.print(table)
        else:
            print("Local IPv4 Interfaces:")
            for iface in interfaces:
                state = "up" if iface.is_up else "down"
                print(f"  {iface.interface:<20} {str(iface):<20} {iface.network:<20} {state}")

    def _save_report(self, output_path: str, format: str):
        """Save the report to file."""
        try:
            ReportRenderer(self.report).save(output_path, format)
            self._print(f"Results saved to {output_path}", style="green")
        except OSError as e:
            self._print_error(f"Error saving results: {e}")

    def _print(self, message: str, style: Optional[str] = None):
        if self.console:
            self.console.print(message, style=style)
        else:
            print(message)

    def _print_error(self, message: str):
        if self.console:
            self.console.print(f"Error: {message}", style="bold red")
        else:
            print(f"Error: {message}", file=sys.stderr)


def main():
    """Main entry point for CLI."""
    cli = NetSweepCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
