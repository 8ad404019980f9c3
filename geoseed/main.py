import argparse
import logging
import sys
from typing import List, Optional

from geoseed.config import Settings
from geoseed.errors import SeedException
from geoseed.opensearch import OpenSearchClient
from geoseed.pipeline import SeedRunner

logger = logging.getLogger("geoseed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geoseed", description="Load the GeoNames gazetteer into OpenSearch.")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    seed = subparsers.add_parser("seed", help="Seed the geolocations index from a GeoNames dump")
    seed.add_argument("-p", "--path", required=True, help="Zip archive whose first entry is the gazetteer TSV")
    seed.add_argument("-1", "--admin1", required=True, help="admin1CodesASCII.txt")
    seed.add_argument("-2", "--admin2", required=True, help="admin2Codes.txt")
    seed.add_argument("-e", "--elasticsearch", default=None, help="Search endpoint URL (default OS_URL or http://localhost:9200)")
    seed.add_argument("-i", "--index", default=None, help="Target index (default GEO_INDEX or geolocations)")
    seed.add_argument("-b", "--buffer", type=int, default=None, help="Documents per bulk request (default 100000)")
    seed.add_argument("--error-log", default=None, help="Where a failed bulk response is written (default error.log)")
    seed.add_argument("--no-verify", action="store_true", help="Skip the refresh and count after loading")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env().override(
        {
            "os_url": getattr(args, "elasticsearch", None),
            "index_name": getattr(args, "index", None),
            "bulk_size": getattr(args, "buffer", None),
            "error_log_path": getattr(args, "error_log", None),
            "verify_count": False if getattr(args, "no_verify", False) else None,
            "log_level": args.log_level,
        }
    )
    if not isinstance(logging.getLevelName(settings.log_level), int):
        print(f"Unknown log level {settings.log_level!r}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if settings.bulk_size < 1:
        logger.error("Batch size must be at least 1, got %d", settings.bulk_size)
        return 2

    client = OpenSearchClient(settings)
    runner = SeedRunner(settings, client)
    try:
        summary = runner.run(args.path, args.admin1, args.admin2)
    except SeedException as exc:
        logger.error("Seeding aborted at stage %s: %s", exc.stage, exc)
        return 1

    print(f"[OK] records={summary.records} inserted={summary.inserted} requests={summary.requests}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
