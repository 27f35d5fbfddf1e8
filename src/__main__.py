"""Entry point of the src package. Enables python -m src."""

import argparse
import json
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from src.etl.utils import setup_logger
from src.settings import get_masked_settings


def run_init_db(drop: bool, check: bool) -> int:
    """Create the catalog schema."""
    from src.database import get_database

    db = get_database()
    if not db.check_connection():
        print("❌ Database connection failed")
        return 1
    print("✅ Database connection OK")
    if check:
        return 0

    db.create_schema(drop=drop)
    print("✅ Schema recreated" if drop else "✅ Schema created")
    return 0


def load_records(path: Path) -> list[dict]:
    """Read a JSON list of normalized provider records.

    Raises:
        ValueError: If the file does not hold a JSON list.
    """
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and "results" in data:
        data = data["results"]
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of records")
    return data


def run_ingest(provider: str, input_path: Path, batch_size: int | None, delay: float | None) -> int:
    """Feed a provider export through the unification pipeline."""
    from src.etl.unification import ContentIngestor

    records = load_records(input_path)
    print(f"📂 {len(records)} {provider} records from {input_path}")

    result = ContentIngestor().ingest(records, provider, batch_size=batch_size, delay=delay)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.errors == 0 else 2


def run_recompute_scores() -> int:
    """Recompute every unified score."""
    from src.database import ContentRepository, get_database
    from src.etl.unification import ScoreCalculator

    with get_database().session() as session:
        stats = ScoreCalculator().recompute_all(ContentRepository(session))
    print(f"✅ {stats.processed} records, {stats.changed} changed, {stats.null_scores} without score")
    return 0


def run_assign_franchises() -> int:
    """Attach franchise names from the static table."""
    from src.database import ContentRepository, get_database
    from src.etl.unification import FranchiseLinker

    with get_database().session() as session:
        updated = FranchiseLinker(ContentRepository(session)).assign_franchises()
    print(f"✅ {updated} records updated with franchise information")
    return 0


def run_check_relationships() -> int:
    """Report relationship links pointing to missing records."""
    from src.database import ContentRepository, get_database
    from src.etl.unification import FranchiseLinker

    with get_database().session() as session:
        broken = FranchiseLinker(ContentRepository(session)).find_broken_relationships()

    if not broken:
        print("✅ No broken relationships")
        return 0
    for link in broken:
        print(f"  - '{link.title}' {link.kind}: {link.target_id}")
    print(f"⚠️  {len(broken)} broken relationship(s)")
    return 2


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="python -m src",
        description="Media catalog - TMDB/MAL content unification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src init-db --drop                          # Recreate schema
  python -m src ingest --provider tmdb --input tmdb.json
  python -m src ingest --provider mal --input mal.json --delay 0
  python -m src recompute-scores                        # Rescore catalog
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    init_parser = subparsers.add_parser("init-db", help="Create database schema")
    init_parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    init_parser.add_argument("--check", action="store_true", help="Only check the connection")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest provider records")
    ingest_parser.add_argument("--provider", required=True, choices=["tmdb", "mal"])
    ingest_parser.add_argument("--input", required=True, type=Path, help="JSON list of records")
    ingest_parser.add_argument("--batch-size", type=int, help="Records between pauses")
    ingest_parser.add_argument("--delay", type=float, help="Pause between batches (seconds)")

    subparsers.add_parser("recompute-scores", help="Recompute unified scores")
    subparsers.add_parser("assign-franchises", help="Attach franchises from known ids")
    subparsers.add_parser("check-relationships", help="Report broken relationship links")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logger = setup_logger("src")
    logger.debug("Configuration: %s", get_masked_settings())

    try:
        if args.command == "init-db":
            return run_init_db(args.drop, args.check)
        if args.command == "ingest":
            return run_ingest(args.provider, args.input, args.batch_size, args.delay)
        if args.command == "recompute-scores":
            return run_recompute_scores()
        if args.command == "assign-franchises":
            return run_assign_franchises()
        if args.command == "check-relationships":
            return run_check_relationships()
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        return 130
    except (OSError, ValueError, SQLAlchemyError) as e:
        print(f"\n❌ ERROR: {e}")
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
