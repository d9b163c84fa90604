"""
Main entry point for the LAN survey.

This module provides the command-line interface for the survey tool,
including argument parsing, configuration overrides, pre-flight checks
and the mapping of outcomes to process exit codes.
"""

import argparse
import asyncio
import signal
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config.config_loader import ConfigLoader, SurveyConfig
from .core.survey_orchestrator import SurveyCapabilities, SurveyOrchestrator
from .utils.csv_reporter import RowSink
from .utils.error_handler import ErrorHandler, SurveyError, ToolValidator
from .utils.logger import LogLevel, get_logger, set_log_level

EXIT_OK = 0
EXIT_INTERRUPTED = 130


class LanSurveyApp:
    """
    Main application class for the LAN survey.

    Handles configuration, pre-flight checks and the application lifecycle.
    """

    def __init__(self):
        """Initialize the application."""
        self.logger = get_logger(__name__)
        self.error_handler = ErrorHandler(self.logger)
        self.orchestrator: Optional[SurveyOrchestrator] = None

        # SIGTERM ends the survey the same way Ctrl-C does
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame) -> None:
        """
        Turn a termination signal into a KeyboardInterrupt.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        self.logger.warning(f"Received signal {signum} - stopping survey")
        raise KeyboardInterrupt

    def build_config(self, args: argparse.Namespace) -> SurveyConfig:
        """
        Load the YAML configuration and apply command line overrides.

        Args:
            args: Parsed command line arguments

        Returns:
            SurveyConfig: Effective configuration
        """
        config = ConfigLoader().load(args.config)

        if args.segments:
            config = replace(config, segments_path=args.segments)

        inventory = config.inventory
        if args.inventory:
            inventory = replace(inventory, path=args.inventory)
        if args.no_update_inventory:
            inventory = replace(inventory, update_enabled=False)
        if args.no_segment_overwrite:
            inventory = replace(inventory, segment_overwrite=False)

        watch = config.watch
        if args.watch is not None:
            watch = replace(watch, enabled=args.watch)
        if args.watch_interval is not None:
            if args.watch_interval > 0:
                watch = replace(watch, interval=args.watch_interval)
            else:
                self.logger.warning(
                    f"Ignoring non-positive watch interval {args.watch_interval}"
                )

        snmp = config.snmp
        if args.snmp_community:
            snmp = replace(snmp, community=args.snmp_community)

        output = config.output
        if args.output:
            output = replace(output, path=args.output)

        return replace(config, inventory=inventory, watch=watch, snmp=snmp, output=output)

    def _perform_preflight_checks(self) -> None:
        """
        Check the external tools the survey relies on.

        Raises:
            ToolMissingError: If ping is not available
        """
        self.logger.section("PRE-FLIGHT CHECKS")
        validator = ToolValidator(self.logger)
        validator.require_ping()
        validator.has_neighbor_tool()
        self.logger.success("Pre-flight checks passed")

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the survey application.

        Args:
            args: Parsed command line arguments

        Returns:
            int: Exit code (0 for success, 130 when a single cycle is
            interrupted, 1 for a fatal error)
        """
        config: Optional[SurveyConfig] = None
        try:
            config = self.build_config(args)

            if args.skip_checks:
                self.logger.warning("Skipping pre-flight checks as requested")
            else:
                self._perform_preflight_checks()

            self.orchestrator = SurveyOrchestrator(
                config=config,
                capabilities=SurveyCapabilities.from_config(config, self.logger),
                sink=RowSink(output_path=config.output.path),
                logger=self.logger,
            )
            asyncio.run(self.orchestrator.run())
            return EXIT_OK

        except SurveyError as e:
            return self.error_handler.report_fatal(e)
        except KeyboardInterrupt:
            if config is not None and config.watch.enabled:
                self.logger.info("Watch mode stopped by user")
                return EXIT_OK
            self.logger.warning("Survey interrupted by user")
            return EXIT_INTERRUPTED


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="lan-survey",
        description="LAN survey - find live hosts per segment, name and fingerprint them, "
                    "and keep a CSV inventory up to date",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lan-survey segments.txt                          # One cycle, rows on stdout
  lan-survey segments.txt inventory.csv            # Also update the inventory
  lan-survey segments.txt inventory.csv --watch    # Repeat every watch interval
  lan-survey segments.txt --output last_cycle.csv  # Also write rows to a file
  lan-survey --config ./survey_config.yml          # Segments file from the config
        """
    )

    parser.add_argument(
        "segments",
        nargs="?",
        help="Segment list file (one '<name> <CIDR>' per line). "
             "Defaults to segments_file from the configuration"
    )

    parser.add_argument(
        "inventory",
        nargs="?",
        help="Inventory CSV to seed from and update"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="YAML configuration file. Defaults to lan_survey/config/survey_config.yml"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Also write each cycle's rows to this CSV file"
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--watch",
        dest="watch",
        action="store_true",
        default=None,
        help="Repeat survey cycles until interrupted"
    )
    mode.add_argument(
        "--once",
        dest="watch",
        action="store_false",
        help="Run a single survey cycle"
    )

    parser.add_argument(
        "--watch-interval",
        type=float,
        help="Seconds to sleep between cycles in watch mode"
    )

    parser.add_argument(
        "--snmp-community",
        type=str,
        help="SNMP v1 community string"
    )

    parser.add_argument(
        "--no-update-inventory",
        action="store_true",
        help="Read the inventory but never rewrite it"
    )

    parser.add_argument(
        "--no-segment-overwrite",
        action="store_true",
        help="Keep persisted segment labels instead of the segment a host was found in"
    )

    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Skip pre-flight checks for external tools (ping, ip/arp)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"LAN Survey {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the LAN survey.

    Returns:
        int: Exit code
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(LogLevel.DEBUG)

    app = LanSurveyApp()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
