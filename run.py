#!/usr/bin/env python3
"""
SAP Contract Reads Connector - Entry Point.

Reads configuration from a .env file, fetches the requested contract aspects
from the SAP C4C OData API concurrently, and publishes every result to the
first configured output queue (or to timestamped JSON files in dry-run mode).

Aspects:
  ContractCollection      contract by ID (--id), with price components, items and parties
  ContractItemCollection  contract item by ID (--item-id), with its price components
  ContractName            contracts whose Name contains --name, with the same dependents

Usage:
    python run.py --id C100 --aspect ContractCollection
    python run.py --id C100 --item-id I200 --aspect ContractCollection --aspect ContractItemCollection
    python run.py --name Acme --aspect ContractName --push     # publish to Redis
    python run.py --debug                                      # verbose logging
    python run.py --version
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from core import ContractOrchestrator

VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def _split_aspects(values):
    aspects = []
    for value in values or []:
        aspects.extend(a.strip() for a in value.split(",") if a.strip())
    return aspects


def main():
    """Parse CLI arguments and dispatch the requested aspects."""
    parser = argparse.ArgumentParser(
        description="SAP Contract Reads - Fetch contract data from SAP C4C and publish it"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--id", dest="primary_id", help="Contract ID (ContractCollection aspect)")
    parser.add_argument("--item-id", help="Contract item ID (ContractItemCollection aspect)")
    parser.add_argument("--name", help="Contract name substring (ContractName aspect)")
    parser.add_argument(
        "--aspect", "-a", action="append",
        help="Aspect to fetch; repeat or comma-separate for several",
    )
    parser.add_argument("--dry-run", action="store_true", help="Write messages to JSON files only")
    parser.add_argument("--push", action="store_true", help="Publish messages to Redis")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"sap-contract-reads {VERSION}")
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(name)s - %(levelname)s - %(message)s'
    )

    orchestrator = ContractOrchestrator.from_env(env_file=args.env)
    settings = orchestrator.settings

    # CLI overrides on top of .env values
    if args.dry_run:
        settings.dry_run = True
    if args.push:
        settings.dry_run = False
    if args.debug:
        settings.debug = True

    primary_id = args.primary_id or os.getenv("CONTRACT_ID", "")
    item_id = args.item_id or os.getenv("CONTRACT_ITEM_ID", "")
    name = args.name or os.getenv("CONTRACT_NAME", "")
    aspects = _split_aspects(args.aspect or [os.getenv("ASPECTS", "")])

    print(f"\n{'='*60}")
    print(f"SAP CONTRACT READS v{VERSION}")
    print("="*60)
    print(f"Mode: {'DRY RUN' if settings.dry_run else 'LIVE PUSH'}")
    print(f"SAP: {settings.base_url}")
    print(f"Output queue: {settings.output_queue}")
    print(f"Aspects: {', '.join(aspects) or '(none)'}")
    orchestrator.print_proxy_status()

    if not orchestrator.validate_config():
        sys.exit(1)
    if not settings.dry_run and not orchestrator.check_publisher():
        sys.exit(1)
    if not aspects:
        print("\nNo aspects requested (use --aspect or ASPECTS)")
        sys.exit(1)

    output_manager = getattr(orchestrator.publisher, "output_manager", None)
    if output_manager is not None and output_manager.retention_days > 0:
        deleted = output_manager.cleanup_old_folders()
        if deleted > 0:
            print(f"Cleaned up {deleted} old output folder(s)")

    orchestrator.dispatch(primary_id, item_id, name, aspects)

    print(f"\n{'='*60}")
    print("DISPATCH COMPLETE")
    print("="*60)
    print(f"Messages published: {orchestrator.publisher.sent_count}")
    if output_manager is not None and output_manager.current_dir:
        print(f"Output: {output_manager.current_dir}")


if __name__ == "__main__":
    main()
