#!/usr/bin/env python3
"""
Command-line interface for URL shortener service.

Usage:
    python url_shortener_cli.py shorten <url> [--shortcode CODE] [--validity MINUTES]
    python url_shortener_cli.py get <shortcode>
    python url_shortener_cli.py stats <shortcode>
    python url_shortener_cli.py list [--limit N]
    python url_shortener_cli.py deactivate <shortcode>
    python url_shortener_cli.py init-db
    python url_shortener_cli.py health
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Optional

# Add parent directories to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from shortener.analytics import AnalyticsRecorder
from shortener.common.logging_config import setup_logging
from shortener.common.timeutils import to_iso
from shortener.database import create_database
from shortener.database.cache import RedisCache
from shortener.errors import ShortenerError
from shortener.service import URLShortenerService


def _print_json(payload: dict, error: bool = False) -> None:
    print(json.dumps(payload, indent=2, default=str), file=sys.stderr if error else sys.stdout)


class URLShortenerCLI:
    """Command-line interface for URL shortener."""

    def __init__(self, db_url: str, base_url: str, redis_url: Optional[str] = None, verbose: bool = False):
        """Initialize CLI."""
        self.db_url = db_url
        self.base_url = base_url
        self.redis_url = redis_url
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.db = None
        self.service = None
        self.analytics = None

    async def initialize(self, create_tables: bool = False):
        """Initialize database and service."""
        self.db = create_database(self.db_url, create_tables=create_tables, logger=self.logger)
        await self.db.initialize()

        # Deactivation must evict the server's cached copy
        cache = None
        if self.redis_url:
            cache = RedisCache(redis_url=self.redis_url, logger=self.logger)
            await cache.connect()

        self.service = URLShortenerService(
            db=self.db,
            cache=cache,
            base_url=self.base_url,
            logger=self.logger,
        )
        self.analytics = AnalyticsRecorder(db=self.db, logger=self.logger)

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    async def shorten(self, url: str, shortcode: Optional[str] = None, validity: Optional[float] = None):
        """Shorten a URL."""
        try:
            result = await self.service.create_short_url(url, shortcode, validity)
        except ShortenerError as e:
            _print_json({"success": False, "code": e.code, "error": e.message}, error=True)
            return 1

        _print_json({
            "success": True,
            "shortLink": result["short_link"],
            "shortcode": result["short_code"],
            "expiry": to_iso(result["expiry"]),
        })
        return 0

    async def get(self, shortcode: str):
        """Resolve a short code without recording a click."""
        link = await self.service.get_original_url(shortcode)
        if link is None:
            _print_json({
                "success": False,
                "error": f"Short code '{shortcode}' not found or expired",
            }, error=True)
            return 1

        _print_json({"success": True, "shortcode": shortcode, "originalUrl": link.original_url})
        return 0

    async def stats(self, shortcode: str):
        """Get statistics for a short code."""
        statistics = await self.analytics.get_statistics(shortcode)
        if statistics is None:
            _print_json({"success": False, "error": f"Short code '{shortcode}' not found"}, error=True)
            return 1

        _print_json({
            "success": True,
            "totalClicks": statistics["total_clicks"],
            "originalUrl": statistics["original_url"],
            "createdAt": to_iso(statistics["created_at"]),
            "expiry": to_iso(statistics["expiry"]),
            "clickData": [
                {**click, "timestamp": to_iso(click["timestamp"])}
                for click in statistics["click_data"]
            ],
        })
        return 0

    async def list_urls(self, limit: int = 100):
        """List recent short links."""
        links = await self.service.list_recent_urls(limit)
        _print_json({
            "success": True,
            "count": len(links),
            "urls": [link.to_dict() for link in links],
        })
        return 0

    async def deactivate(self, shortcode: str):
        """Retire a short link; the code stays reserved."""
        if not await self.service.deactivate_short_url(shortcode):
            _print_json({"success": False, "error": f"Short code '{shortcode}' not found"}, error=True)
            return 1

        _print_json({"success": True, "shortcode": shortcode, "isActive": False})
        return 0

    async def health(self):
        """Check service health."""
        health_status = await self.service.health_check()
        _print_json({"success": health_status["overall"], "health": health_status})
        return 0 if health_status["overall"] else 1


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="URL Shortener CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL valid for one hour
  %(prog)s shorten https://example.com/long/url --validity 60

  # Shorten with custom code
  %(prog)s shorten https://example.com/long/url --shortcode mylink

  # Get statistics
  %(prog)s stats mylink

  # Create tables and indexes
  %(prog)s init-db
        """
    )

    parser.add_argument(
        "--db-url",
        default=os.getenv("DATABASE_URL"),
        help="Store connection URL (default: from DATABASE_URL env)"
    )
    parser.add_argument(
        "--base-url",
        default=os.getenv("BASE_URL", "http://localhost:3000"),
        help="Base URL for short links (default: from BASE_URL env or http://localhost:3000)"
    )
    parser.add_argument(
        "--redis-url",
        default=os.getenv("REDIS_URL"),
        help="Redis URL of the service cache (default: from REDIS_URL env)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--shortcode", help="Custom short code")
    shorten_parser.add_argument("--validity", type=float, help="Validity in minutes (default 30)")

    get_parser = subparsers.add_parser("get", help="Get original URL")
    get_parser.add_argument("shortcode", help="Short code to lookup")

    stats_parser = subparsers.add_parser("stats", help="Get click statistics")
    stats_parser.add_argument("shortcode", help="Short code to get stats for")

    list_parser = subparsers.add_parser("list", help="List recent short links")
    list_parser.add_argument("--limit", type=int, default=100, help="Maximum number to return")

    deactivate_parser = subparsers.add_parser("deactivate", help="Deactivate a short link")
    deactivate_parser.add_argument("shortcode", help="Short code to deactivate")

    subparsers.add_parser("init-db", help="Create tables and indexes")
    subparsers.add_parser("health", help="Check store health")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if not args.db_url:
        parser.error("--db-url or DATABASE_URL is required")

    cli = URLShortenerCLI(
        db_url=args.db_url,
        base_url=args.base_url,
        redis_url=args.redis_url,
        verbose=args.verbose,
    )

    try:
        await cli.initialize(create_tables=args.command == "init-db")

        if args.command == "shorten":
            return await cli.shorten(args.url, args.shortcode, args.validity)
        elif args.command == "get":
            return await cli.get(args.shortcode)
        elif args.command == "stats":
            return await cli.stats(args.shortcode)
        elif args.command == "list":
            return await cli.list_urls(args.limit)
        elif args.command == "deactivate":
            return await cli.deactivate(args.shortcode)
        elif args.command == "init-db":
            _print_json({"success": True, "message": "Tables initialized"})
            return 0
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    except Exception as e:
        _print_json({"success": False, "error": f"Unexpected error: {e}"}, error=True)
        return 1

    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
