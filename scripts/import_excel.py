import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from simpligest.core.logging import setup_logging
from simpligest.database import Base, engine, ensure_sqlite_schema, session_scope
from simpligest.models import import_all_models
from simpligest.services.product_service import import_products_workbook


def parse_args():
    parser = argparse.ArgumentParser(
        description="Import or update products from an Excel workbook."
    )
    parser.add_argument("--path", required=True, help="Path to .xlsx workbook.")
    parser.add_argument("--sheet", default=None, help="Sheet to read. Default: the first one.")
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving.")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()

    try:
        with session_scope() as db:
            counts = import_products_workbook(db, args.path, args.sheet, dry_run=args.dry_run)
    except (OSError, ValueError, SQLAlchemyError, InvalidFileException) as exc:
        raise SystemExit(f"Import failed: {exc}") from exc

    print(
        f"products: {counts['created']} created, "
        f"{counts['updated']} updated, {counts['skipped']} skipped"
    )
    for message in counts["errors"]:
        print(f"  {message}")

    if args.dry_run:
        print("Dry run complete, no changes committed.")
    else:
        print("Import complete.")


if __name__ == "__main__":
    main()
