"""
xmltv_url.args - Command line argument parsing

Arguments follow the XMLTV baseline grabber capabilities
(https://wiki.xmltv.org/index.php/XmltvCapabilities).
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .grabber import XmltvUrlGrabber


class ArgumentValidator:
    """Validates command-line arguments"""

    @classmethod
    def validate_actions(cls, args) -> Tuple[bool, Optional[str]]:
        """
        Validate that informational actions are not combined

        Returns:
            Tuple of (is_valid, error_message)
        """
        if args.description and args.capabilities:
            return False, "cannot use --description and --capabilities together"
        return True, None

    @classmethod
    def validate_urls(cls, urls: Sequence[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate source URLs: at least one, none blank

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not urls or not urls[0].strip():
            return False, (
                "at least one URL must be provided unless --description or --capabilities is used"
            )

        for url in urls:
            if not url.strip():
                return False, "URLs must not be blank"

        return True, None


class ArgumentParser:
    """Command line argument parser for tv_grab_xmltv_url"""

    def __init__(self, grabber: Optional[XmltvUrlGrabber] = None):
        self.grabber = grabber or XmltvUrlGrabber()
        self.parser = self._create_parser()
        self.validator = ArgumentValidator()

    def _create_parser(self):
        """Create the argument parser with all options"""
        parser = argparse.ArgumentParser(
            prog="tv_grab_xmltv_url",
            usage="%(prog)s [flags] <url> [<url>...]",
            description=self.grabber.get_description(),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_epilog_text(),
        )

        # XMLTV baseline capabilities
        parser.add_argument(
            "--description", "-d", action="store_true", help="Prints name of program"
        )

        parser.add_argument(
            "--capabilities", "-c", action="store_true", help="Prints the capabilities of program"
        )

        parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

        # Log level selection
        level_group = parser.add_mutually_exclusive_group()
        level_group.add_argument(
            "--warning", "-w", action="store_true", help="Only log warnings and errors"
        )

        level_group.add_argument(
            "--debug", action="store_true", help="Log all debug information (very verbose)"
        )

        # Console output control
        console_group = parser.add_mutually_exclusive_group()
        console_group.add_argument(
            "--console",
            action="store_true",
            help="Display active log level to console (can combine with --warning/--debug)",
        )

        console_group.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Suppress all output except for errors",
        )

        # Output control
        parser.add_argument("--output", "-o", type=Path, help="Output file (default: stdout)")

        # Guide parameters
        parser.add_argument(
            "--days", type=int, help="Number of days to fetch (default: 7)"
        )

        parser.add_argument(
            "--offset", type=int, help="Number of days to offset the start date (default: 0)"
        )

        # Configuration
        parser.add_argument("--config-file", type=Path, help="Configuration file path")

        parser.add_argument(
            "urls",
            nargs="*",
            metavar="url",
            help="The URLs to process (positional, at least one required)",
        )

        return parser

    def _get_epilog_text(self):
        """Get the epilog help text"""
        return """
Examples:
  tv_grab_xmltv_url --capabilities
  tv_grab_xmltv_url http://example.com/guide.xml
  tv_grab_xmltv_url --days 2 --offset 1 http://example.com/a.xml.gz http://example.com/b.xml
  tv_grab_xmltv_url --quiet --output guide.xml http://example.com/guide.xml
  tv_grab_xmltv_url --config-file ~/.xmltv/tv_grab_xmltv_url.xml

Guide window:
  The guide starts at midnight today plus --offset days and covers --days days.
  --days 0 (or no --days) selects a 7 day window; longer windows are honoured.

Sources:
  Every url is downloaded in turn; gzip compressed documents are detected
  automatically. Channels and programmes are merged in the order given.
  Any failed source aborts the run without writing output.
        """

    def parse_args(self, args: Optional[List[str]] = None):
        """Parse command line arguments with validation"""
        args = self.parser.parse_args(args)

        valid, error = self.validator.validate_actions(args)
        if not valid:
            self.error(error)

        # Handle special actions that exit immediately
        if self._handle_special_actions(args):
            sys.exit(0)

        return args

    def _handle_special_actions(self, args) -> bool:
        """Handle special actions that exit immediately"""
        if args.description:
            print(self.grabber.get_description())
            return True

        if args.version:
            from . import __version__

            print(__version__)
            return True

        if args.capabilities:
            for capability in self.grabber.get_capabilities():
                print(capability)
            return True

        return False

    def apply_config(self, args, settings: dict):
        """Fill options missing from the command line with configuration values"""
        if args.days is None:
            args.days = settings.get("days", 0)
        if args.offset is None:
            args.offset = settings.get("offset", 0)
        if not args.urls:
            args.urls = list(settings.get("url", []))

        valid, error = self.validator.validate_urls(args.urls)
        if not valid:
            self.error(error)

        return args

    def error(self, message: str):
        """Report message with usage on stderr and exit with status 1"""
        print(f"Error: {message}", file=sys.stderr)
        self.parser.print_usage(sys.stderr)
        sys.exit(1)

    def get_logging_config(self, args):
        """Determine logging configuration from arguments"""
        config = {
            "level": "default",
            "console": False,
            "quiet": False,
        }

        if args.debug:
            config["level"] = "debug"
        elif args.warning:
            config["level"] = "warning"

        if args.console:
            config["console"] = True
        elif args.quiet:
            config["quiet"] = True

        return config
