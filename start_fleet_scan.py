"""
Run a single fleet endpoint diagnostic scan
"""

import argparse
import asyncio
import logging
import sys

from fleet_diagnostics.config import get_scan_settings
from fleet_diagnostics.services.scan_runner import build_scan_runner
from shared.exceptions import ConfigurationError, RegistryUnavailableError


logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: str | None = None):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Diagnose registered worker endpoints")
    parser.add_argument(
        "--registry",
        type=str,
        default=None,
        help="Registry gRPC address or JSON snapshot path (default: $REGISTRY_ADDRESS)",
    )
    parser.add_argument(
        "--report", type=str, default=None, help="Where to write the JSON report"
    )
    parser.add_argument(
        "--status-page",
        type=str,
        default=None,
        help="Document to append the 'Updated at' marker to",
    )
    parser.add_argument("--log-level", type=str, default="INFO")
    parser.add_argument("--log-file", type=str, default=None)
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        settings = get_scan_settings(
            registry_address=args.registry,
            report_path=args.report,
            status_page_path=args.status_page,
        )
        runner = build_scan_runner(settings)
        await runner.run()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except RegistryUnavailableError as e:
        logger.error(f"Registry unavailable: {e}")
        return 1
    except Exception as e:
        logger.error(f"Scan failed: {e}", exc_info=True)
        return 1
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
