#!/usr/bin/env python3
"""
BambooHR Authorization Data Extractor - Entry Point.

Reads configuration from a .env file, runs the extraction pipeline
(BambooHROrchestrator) and saves structured JSON output, optionally pushing
the result to Veza.

Usage:
    python run.py               # Extract and save JSON (DRY_RUN from .env)
    python run.py --dry-run     # Extract and save JSON only
    python run.py --push        # Extract and push to Veza
    python run.py --debug       # Verbose output
    python run.py --no-files    # Skip company/employee file listings
    python run.py --version     # Show version
    python run.py --env /path   # Use alternate .env file
"""

import sys
import argparse

from bamboohr_oaa import __version__
from bamboohr_oaa.orchestrator import BambooHROrchestrator


def main(argv=None):
    """Parse CLI arguments and run the extraction pipeline."""
    parser = argparse.ArgumentParser(
        description="BambooHR Extractor - Extract authorization data from BambooHR for Veza"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--dry-run", action="store_true", help="Generate JSON only (no push)")
    parser.add_argument("--push", action="store_true", help="Push to Veza")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--no-files", action="store_true", help="Skip file listings")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args(argv)

    if args.version:
        print(f"bamboohr-oaa {__version__}")
        sys.exit(0)

    orchestrator = BambooHROrchestrator(env_file=args.env)

    # CLI overrides on top of .env values
    if args.dry_run:
        orchestrator.dry_run = True
    if args.push:
        orchestrator.dry_run = False
    if args.debug:
        orchestrator.debug = True
    if args.no_files:
        orchestrator.include_files = False

    print(f"\n{'='*60}")
    print(f"BAMBOOHR EXTRACTOR v{__version__}")
    print("="*60)
    print(f"Mode: {'DRY RUN' if orchestrator.dry_run else 'LIVE PUSH'}")
    print(f"Namespace: {orchestrator.client_namespace}")
    print(f"Files: {'Enabled' if orchestrator.include_files else 'Disabled'}")

    if not orchestrator.validate_config():
        sys.exit(1)

    if orchestrator.output_manager.retention_days > 0:
        deleted = orchestrator.output_manager.cleanup_old_runs(orchestrator.debug)
        if deleted > 0:
            print(f"Cleaned up {deleted} old output folder(s)")

    results = orchestrator.run()
    orchestrator.print_summary(results)

    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
