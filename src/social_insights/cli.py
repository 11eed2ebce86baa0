"""CLI for social-insights reports."""
import argparse
import json
import logging
import sys

from .config import settings
from .database import init_db, SessionLocal
from .maintenance import rename_engagement_type
from .reports import REPORTS, ReportConfig, UnknownReportError, run_report
from .sample_data import generate_sample_dataset
from .scoring import ActivityWeights
from .segments import THRESHOLD_SETS
from .store import EntityStore, StructuralError
from .validation import validate


def _print_table(records: list[dict]) -> None:
    if not records:
        print("No records")
        return

    columns = list(records[0].keys())
    widths = {
        col: max(len(col), *(len(str(row.get(col, ""))) for row in records))
        for col in columns
    }
    print("  ".join(col.ljust(widths[col]) for col in columns))
    print("  ".join("-" * widths[col] for col in columns))
    for row in records:
        print("  ".join(str(row.get(col, "")).ljust(widths[col]) for col in columns))


def cmd_init(args):
    """Initialize the database."""
    print("Initializing database...")
    init_db()
    print("Database initialized successfully")


def cmd_seed(args):
    """Seed a synthetic dataset."""
    init_db()
    db = SessionLocal()

    try:
        counts = generate_sample_dataset(db, users=args.users, days=args.days, seed=args.seed)
        print("Seeded sample dataset")
        print("=" * 40)
        for relation, count in counts.items():
            print(f"{relation}: {count}")
    finally:
        db.close()


def cmd_reports(args):
    """List the report catalogue."""
    print(f"Available reports ({len(REPORTS)}):")
    print("-" * 70)
    for name in sorted(REPORTS):
        print(f"  {name}")
        print(f"    {REPORTS[name].description}")


def cmd_report(args):
    """Run a named report."""
    options = {}
    if args.strict is not None:
        options["strict"] = args.strict
    if args.limit is not None:
        options["limit"] = args.limit
    if args.window_days is not None:
        options["window_days"] = args.window_days
    if args.threshold_set:
        options["threshold_set"] = args.threshold_set
    if args.weights:
        posts, likes, comments = args.weights
        options["weights"] = ActivityWeights(posts=posts, likes=likes, comments=comments)
    config = ReportConfig(**options)

    db = SessionLocal()
    try:
        result = run_report(args.name, db, config)
    finally:
        db.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return

    print(f"{result.name}: {result.description}")
    print(f"Reference instant: {result.reference_instant.isoformat()}")
    print("=" * 70)
    _print_table(result.records)

    for key, value in result.notes.items():
        print(f"\n{key}: {value}")

    if result.diagnostics.has_findings:
        flagged = [row for row in result.diagnostics.findings() if row["count"]]
        print("\nData-quality findings:")
        for row in flagged:
            print(f"  {row['check']}: {row['count']}")


def cmd_quality(args):
    """Run the data-quality pass only."""
    db = SessionLocal()
    try:
        store = EntityStore.load(db)
    finally:
        db.close()

    strict = args.strict if args.strict is not None else settings.strict_validation
    diagnostics = validate(store, strict=strict)
    if args.json:
        print(json.dumps(diagnostics.to_dict(), indent=2))
        return

    print("Data-quality checks")
    print("=" * 40)
    for row in diagnostics.findings():
        print(f"{row['check']}: {row['count']}")
    for username, count in diagnostics.duplicate_usernames.items():
        print(f"  duplicate username '{username}' x{count}")


def cmd_rename(args):
    """Rename an engagement type in the interaction log."""
    db = SessionLocal()
    try:
        changed = rename_engagement_type(db, old=args.old, new=args.new)
    finally:
        db.close()
    print(f"Renamed '{args.old}' -> '{args.new}' on {changed} row(s)")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Social Insights - engagement, activity and influence reports"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init
    init_parser = subparsers.add_parser("init", help="Initialize database")
    init_parser.set_defaults(func=cmd_init)

    # seed
    seed_parser = subparsers.add_parser("seed", help="Seed a synthetic dataset")
    seed_parser.add_argument("--users", type=int, default=100, help="Number of users")
    seed_parser.add_argument("--days", type=int, default=120, help="History length in days")
    seed_parser.add_argument("--seed", type=int, default=42, help="Random seed")
    seed_parser.set_defaults(func=cmd_seed)

    # reports
    reports_parser = subparsers.add_parser("reports", help="List available reports")
    reports_parser.set_defaults(func=cmd_reports)

    # report
    report_parser = subparsers.add_parser("report", help="Run a report")
    report_parser.add_argument("name", help="Report name (see `reports`)")
    report_parser.add_argument("--limit", type=int, help="Top-N cutoff")
    report_parser.add_argument("--window-days", type=int, help="Trailing window in days")
    report_parser.add_argument("--threshold-set", choices=sorted(THRESHOLD_SETS), help="Segment thresholds")
    report_parser.add_argument(
        "--weights", type=int, nargs=3, metavar=("POSTS", "LIKES", "COMMENTS"),
        help="Activity score weights",
    )
    report_parser.add_argument("--strict", action="store_true", default=None, help="Fail on dangling references")
    report_parser.add_argument("--json", action="store_true", help="Output the full result as JSON")
    report_parser.set_defaults(func=cmd_report)

    # quality
    quality_parser = subparsers.add_parser("quality", help="Run data-quality checks")
    quality_parser.add_argument("--strict", action="store_true", default=None, help="Fail on dangling references")
    quality_parser.add_argument("--json", action="store_true", help="Output as JSON")
    quality_parser.set_defaults(func=cmd_quality)

    # rename
    rename_parser = subparsers.add_parser("rename", help="Rename an engagement type")
    rename_parser.add_argument("--from", dest="old", default="Like", help="Current type")
    rename_parser.add_argument("--to", dest="new", default="Heart", help="New type")
    rename_parser.set_defaults(func=cmd_rename)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        args.func(args)
    except (UnknownReportError, StructuralError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
