"""
Parts Finder - Main Entry Point

This is the command-line interface for fetching parts from the configured
marketplace sites. It prints the normalized parts as a JSON array.

Usage:
    python -m partsfinder.site_clients.main [OPTIONS]

Options:
    --config PATH         Sites configuration file (default: config/sites.yml)
    --site NAME           Only fetch this site, even if disabled (repeatable)
    --limit INTEGER       Maximum number of parts per site (0 = no limit)
    --offset INTEGER      Result offset for sites that support it
    --year-from INTEGER   First model year
    --year-to INTEGER     Last model year
    --timeout SECONDS     Overall deadline for all sites
    --output FILE         Write JSON to FILE instead of stdout
    --dry-run             Use mock adapters instead of the real sites
    --verbose             Enable debug logging
    --help                Show this message and exit

Examples:
    # Fetch from every enabled site:
    python -m partsfinder.site_clients.main

    # Fetch at most 50 parts from Kleinanzeigen:
    python -m partsfinder.site_clients.main --site kleinanzeigen --limit 50

    # Dry run with mock data:
    python -m partsfinder.site_clients.main --dry-run

Exit Codes:
    0: Success
    1: At least one site failed
    2: Fatal error (configuration, etc.)
"""

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from dotenv import load_dotenv

from .base import FetchCancelled, Part, SearchParams, SiteClient, SiteClientError
from .context import FetchContext
from .site_config import build_site_clients, load_sites_config

# Load environment variables
load_dotenv()

# Configure logging (stdout carries the JSON result)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Fetch used car parts from the configured marketplaces',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--config', type=str, default=None, help='Sites configuration file')
    parser.add_argument(
        '--site',
        action='append',
        dest='sites',
        default=None,
        help='Only fetch this site (repeatable)'
    )
    parser.add_argument('--limit', type=int, default=0, help='Maximum parts per site')
    parser.add_argument('--offset', type=int, default=0, help='Result offset')
    parser.add_argument('--year-from', type=int, default=0, dest='year_from')
    parser.add_argument('--year-to', type=int, default=0, dest='year_to')
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Overall deadline in seconds for all sites'
    )
    parser.add_argument('--output', type=str, default=None, help='Write JSON to this file')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        dest='dry_run',
        help='Use mock adapters instead of the real sites'
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    return parser.parse_args(argv)


def run_fetch(
    clients: Mapping[str, SiteClient],
    params: SearchParams,
    ctx: FetchContext,
) -> tuple[list[Part], dict[str, Any]]:
    """
    Fetch parts from every site sequentially.

    A failing site is logged and counted; the other sites still run.

    Args:
        clients: Adapters keyed by site name
        params: Search parameters passed to every adapter
        ctx: Shared fetch context

    Returns:
        Tuple of (all parts in site order, statistics dict with keys
        sites, succeeded, failed, parts, failed_sites)
    """
    stats: dict[str, Any] = {
        'sites': len(clients),
        'succeeded': 0,
        'failed': 0,
        'parts': 0,
        'failed_sites': [],
    }
    all_parts: list[Part] = []

    start_time = datetime.now(timezone.utc)

    for site_name, client in clients.items():
        logger.info(
            f"Fetching parts from {client.name}",
            extra={'site': site_name, 'site_id': client.site_id}
        )
        try:
            parts = client.fetch_parts(ctx, params)
        except FetchCancelled as e:
            stats['failed'] += 1
            stats['failed_sites'].append(site_name)
            logger.warning(f"Fetch from {site_name} cancelled: {e}")
            continue
        except SiteClientError as e:
            stats['failed'] += 1
            stats['failed_sites'].append(site_name)
            logger.error(
                "Failed to fetch parts",
                extra={
                    'site': site_name,
                    'error': str(e),
                    'error_type': type(e).__name__,
                }
            )
            continue

        stats['succeeded'] += 1
        stats['parts'] += len(parts)
        all_parts.extend(parts)
        logger.info(f"Fetched {len(parts)} parts from {client.name}")

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(
        "Fetch completed",
        extra={
            'duration_seconds': duration,
            'succeeded': stats['succeeded'],
            'failed': stats['failed'],
            'parts': stats['parts'],
        }
    )

    return all_parts, stats


def write_parts(parts: list[Part], output: Optional[str]) -> None:
    """Write parts as a JSON array to a file or stdout."""
    payload = json.dumps([part.to_dict() for part in parts], ensure_ascii=False, indent=2)
    if output:
        with open(output, 'w', encoding='utf-8') as handle:
            handle.write(payload)
        logger.info(f"Wrote {len(parts)} parts to {output}")
    else:
        sys.stdout.write(payload + '\n')


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the parts finder.

    Returns:
        Exit code (0 = success, 1 = partial failure, 2 = fatal error)
    """
    args = parse_args(argv)

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    try:
        configs = load_sites_config(args.config)
        if args.sites:
            unknown = [name for name in args.sites if name not in configs]
            if unknown:
                logger.error(f"Unknown site(s): {', '.join(unknown)}")
                return 2
            # Sites named on the command line run even if disabled in the config
            configs = {name: replace(configs[name], enabled=True) for name in args.sites}

        clients = build_site_clients(configs, dry_run=args.dry_run)
    except (FileNotFoundError, ValueError, TypeError) as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if not clients:
        logger.warning("No enabled sites configured")
        write_parts([], args.output)
        return 0

    params = SearchParams(
        year_from=args.year_from,
        year_to=args.year_to,
        offset=args.offset,
        limit=args.limit,
    )
    ctx = FetchContext(timeout_seconds=args.timeout)

    try:
        parts, stats = run_fetch(clients, params, ctx)
        write_parts(parts, args.output)

    except KeyboardInterrupt:
        ctx.cancel()
        logger.warning("Interrupted by user")
        return 130  # Standard Unix exit code for SIGINT

    except OSError as e:
        logger.error(f"Failed to write output: {e}")
        return 2

    if stats['failed'] > 0:
        logger.warning(
            f"Completed with errors: {stats['failed']} of {stats['sites']} sites failed",
            extra={'failed_sites': stats['failed_sites']}
        )
        return 1

    logger.info("Parts finder completed successfully")
    return 0


if __name__ == '__main__':
    sys.exit(main())
