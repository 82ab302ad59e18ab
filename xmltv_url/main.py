#!/usr/bin/env python3
"""
tv_grab_xmltv_url - XMLTV grabber for Tvheadend

Downloads XMLTV documents from URLs, keeps the requested days and merges
them into a single guide.
"""

import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from .args import ArgumentParser
from .config import ConfigManager
from .exceptions import GrabberError
from .grabber import Request, XmltvUrlGrabber
from .logrotate import LogRotationManager

# Package version
from . import __version__


def setup_logging(logging_config: dict, log_file: Optional[Path], retention_config: dict):
    """Setup logging: optional rotating log file plus console on stderr"""
    if logging_config["level"] == "warning":
        level = logging.WARNING
    elif logging_config["level"] == "debug":
        level = logging.DEBUG
    else:  # default
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    file_handler = None
    if log_file is not None:
        file_handler = LogRotationManager.create_rotating_handler(log_file, retention_config)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(message)s", datefmt="%Y/%m/%d %H:%M:%S")
        )
        root_logger.addHandler(file_handler)

    # stdout carries the XML, so the console is stderr; warnings are shown
    # unless --quiet, the active level only with --console
    if not logging_config["quiet"]:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level if logging_config["console"] else max(level, logging.WARNING))
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root_logger.addHandler(console_handler)

    return file_handler


def write_output(content: str, output: Optional[Path]):
    """Write content to output, or stdout when no output file is given"""
    if output is None:
        print(content)
        return

    # output is only replaced by a complete file
    data = content.encode("utf-8")
    output = Path(output)
    tmp = output.with_suffix(output.suffix + ".tmp")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, 0o644)
        os.replace(tmp, output)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logging.info("XMLTV output written to: %s", output)


def main(argv=None):
    """Main application entry point"""
    start_time = time.time()

    grabber = XmltvUrlGrabber()
    arg_parser = ArgumentParser(grabber)
    args = arg_parser.parse_args(argv)

    logging_config = arg_parser.get_logging_config(args)
    setup_logging(logging_config, None, {})

    try:
        config_manager = ConfigManager(args.config_file)
        settings = config_manager.load_config()
    except GrabberError as e:
        arg_parser.error(str(e))

    log_file = config_manager.get_log_file()
    if log_file is not None:
        setup_logging(logging_config, log_file, config_manager.get_retention_config())

    args = arg_parser.apply_config(args, settings)

    logging.info("=" * 60)
    logging.info("tv_grab_xmltv_url session started - Version %s", __version__)
    config_manager.log_config_summary()

    request = Request(
        urls=args.urls,
        length_in_days=args.days,
        offset_in_days=args.offset,
        quiet=args.quiet,
    )

    try:
        content = grabber.get_content(request)
        write_output(content, args.output)
    except GrabberError as e:
        logging.debug("Pipeline failed", exc_info=True)
        logging.info("tv_grab_xmltv_url session ended with error")
        arg_parser.error(str(e))
    except (OSError, UnicodeError) as e:
        arg_parser.error(f"error writing to file: {e}")
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 1

    logging.info("Total execution time: %.2f seconds", time.time() - start_time)
    logging.info("tv_grab_xmltv_url session ended successfully")
    logging.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
