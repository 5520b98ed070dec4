"""
Command-line interface for the link generator.

Provides commands for generating claim links and inspecting the signer.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import structlog

from linkdrop import __version__
from linkdrop.config import LinkdropConfig, NetworkType, set_config
from linkdrop.core.batcher import LinkBatcher
from linkdrop.core.types import BatchResult, ClaimLink, ClaimOutcome
from linkdrop.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so stdout carries only the links
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--network",
        choices=[n.value for n in NetworkType],
        help="Sui network (default: NETWORK or mainnet)",
    )
    parser.add_argument(
        "--rpc-url",
        help="Custom fullnode JSON-RPC URL",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="linkdrop",
        description="Generate Sui claim links for owned objects",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate claim links")
    generate_parser.add_argument(
        "--object-type",
        help="Struct type of the objects to hand out (default: OBJECT_TYPE)",
    )
    generate_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of links (default: LIMIT)",
    )
    generate_parser.add_argument(
        "--gas-budget",
        type=int,
        help="Gas budget per claim transaction in MIST (default: GAS_BUDGET)",
    )
    generate_parser.add_argument(
        "--tip",
        type=int,
        help="SUI tip per link in MIST (default: GAS_TIPS)",
    )
    generate_parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum claim transactions in flight, 0 for unbounded (default: 16)",
    )
    generate_parser.add_argument(
        "--output", "-o",
        help="Write the result as JSON to this file",
    )
    _add_common_arguments(generate_parser)

    # Discover command (read only)
    discover_parser = subparsers.add_parser("discover", help="List the objects a run would use")
    discover_parser.add_argument(
        "--object-type",
        help="Struct type of the objects to list (default: OBJECT_TYPE)",
    )
    discover_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of objects to list (default: LIMIT)",
    )
    _add_common_arguments(discover_parser)

    # Address command
    address_parser = subparsers.add_parser("address", help="Show the signer address")
    address_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )

    return parser


def build_config(args: argparse.Namespace) -> LinkdropConfig:
    """Environment configuration with command-line overrides applied."""
    overrides = {
        "network": getattr(args, "network", None),
        "rpc_url": getattr(args, "rpc_url", None),
        "object_type": getattr(args, "object_type", None),
        "limit": getattr(args, "limit", None),
        "gas_budget": getattr(args, "gas_budget", None),
        "gas_tips": getattr(args, "tip", None),
        "concurrency_limit": getattr(args, "concurrency", None),
        "log_level": getattr(args, "log_level", None),
    }
    if getattr(args, "log_json", False):
        overrides["log_json"] = True

    config = LinkdropConfig(**{k: v for k, v in overrides.items() if v is not None})
    set_config(config)
    return config


def print_outcome(outcome: ClaimOutcome) -> None:
    """Print one link (stdout) or failure (stderr) as soon as it is known."""
    if isinstance(outcome, ClaimLink):
        print(outcome.url, flush=True)
        return

    message = f"FAILED {outcome.asset_id or '<missing>'}: {outcome.reason}"
    if outcome.url:
        message += f" (link, outcome unknown: {outcome.url})"
    print(message, file=sys.stderr, flush=True)


async def generate_links(config: LinkdropConfig, output: str = None) -> BatchResult:
    """Run the full pipeline, printing counts and links as they are produced."""
    batcher = LinkBatcher(config)
    await batcher.initialize()

    try:
        print(f"signer: {batcher.signer_address}", flush=True)
        result = await batcher.run(
            on_discovered=lambda assets: print(f"object count: {len(assets)}", flush=True),
            on_funded=lambda coins: print(f"sui coin count: {len(coins)}", flush=True),
            on_outcome=print_outcome,
        )
    finally:
        await batcher.shutdown()

    if output:
        Path(output).write_text(json.dumps(result.to_dict(), indent=2))
        print(f"Result written to {output}", file=sys.stderr)

    return result


async def discover_objects(config: LinkdropConfig) -> None:
    """One-time listing of the objects a run would hand out."""
    batcher = LinkBatcher(config)
    try:
        assets = await batcher.discover()
    finally:
        await batcher.shutdown()

    print(f"signer: {batcher.signer_address}")
    print(f"object count: {len(assets)}")
    for asset in assets:
        if asset.has_data:
            print(f"  {asset.object_id}  v{asset.version}  {asset.object_type}")
        else:
            print(f"  <missing data>  {asset.error}")


def show_address(config: LinkdropConfig) -> None:
    signer = TransactionSigner(config)
    signer.load_from_config()
    print(signer.address)


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = build_config(args)
        setup_logging(config.log_level, config.log_json)

        if args.command == "generate":
            asyncio.run(generate_links(config, args.output))
        elif args.command == "discover":
            asyncio.run(discover_objects(config))
        elif args.command == "address":
            show_address(config)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        logger.error("command_failed", command=args.command, error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
