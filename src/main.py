"""
1) Optionally import a GEDCOM file into the local record store.
2) Fetch the records owned by the current user.
3) Build the family forest and lay it out.
4) Validate the records for cycles, missing references and impossible ages.
5) Print an outline and plot the forest.
"""

import argparse
from pathlib import Path

from database import RecordValidationError, StoreError, create_database, store_records
from layout import format_outline
from models import Session
from parsing import read_gedcom, records_from_gedcom
from plotting import ages_for, plot_layout, write_dot
from session import FamilyTreeView, LoadState
from validation import validate_records

DEFAULT_OWNER = "local"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build and draw a family forest.")
    parser.add_argument("--owner", default=DEFAULT_OWNER, help="owner id of the records to show")
    parser.add_argument("--admin", action="store_true", help="act as an administrator")
    parser.add_argument("--gedcom", type=Path, help="GEDCOM file to import before drawing")
    parser.add_argument(
        "--promote-cycles",
        action="store_true",
        help="show records caught in parent cycles as separate trees",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Paths
    project_root = Path(__file__).parent.parent
    db_path = project_root / "family_tree.db"
    plot_path = project_root / "family_tree.png"
    dot_path = project_root / "family_tree.dot"

    print(f"Opening record store: {db_path}")
    conn = create_database(db_path)

    if args.gedcom:
        print(f"Importing GEDCOM file: {args.gedcom}")
        individuals, families = read_gedcom(args.gedcom)
        records, skipped = records_from_gedcom(individuals, families, args.owner)
        store_records(conn, records)
        print(f"  Imported {len(records)} persons, skipped {len(skipped)}")

    session = Session(owner_id=args.owner, is_admin=args.admin)
    view = FamilyTreeView(conn, session, promote_cycles=args.promote_cycles)

    print(f"Fetching records for {session.owner_id}...")
    if view.refresh() is LoadState.FAILED:
        print(f"  Could not load the family tree: {view.error}")
        conn.close()
        return 1
    print(f"  Found {len(view.records)} persons in {len(view.forest)} trees")

    print("Validating records...")
    warnings = validate_records(view.records, promote_cycles=args.promote_cycles)
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:  # Show first 10 warnings
            print(f"    - {w}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No validation issues found")

    print()
    print(format_outline(view.forest))
    print()

    print(f"Plotting tree to: {plot_path}")
    plot_layout(view.layout, plot_path, ages=ages_for(view.forest))
    write_dot(view.forest, dot_path)
    print(f"DOT graph saved to {dot_path}")

    conn.close()
    print("Done!")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except StoreError as e:
        raise SystemExit(f"Record store error: {e}")
    except RecordValidationError as e:
        raise SystemExit(f"Rejected record: {e}")
