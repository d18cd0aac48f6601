import argparse
import sys
import time
from pathlib import Path
from sqlalchemy import text

from shared.core import setup_logging, get_logger
from app.core_settings import get_settings
from app.application.migration import load_inventory_csv, migrate_store
from app.infrastructure.db import SessionLocal, engine, get_local_store, init_models
from app.infrastructure.local_store import LocalJsonPersistence
from app.infrastructure.sql_store import SqlAlchemyPersistence

MAX_ATTEMPTS = 30
SLEEP_SECONDS = 2

settings = get_settings()
setup_logging(service_name="billing-seed", level=settings.LOG_LEVEL)
logger = get_logger(__name__)

def wait_for_database() -> bool:
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            if attempt == 1:
                logger.info(f"Waiting for database: {e}")
            time.sleep(SLEEP_SECONDS)
    return False

def report_errors(report) -> None:
    for error in report.errors:
        logger.warning(error)

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Seed the billing store")
    parser.add_argument("--inventory-csv", type=Path, help="CSV with name,description,stock,unit_rate,low_stock_threshold")
    parser.add_argument("--from-local", type=Path, help="JSON store file to copy into the configured store")
    return parser.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)
    if not args.inventory_csv and not args.from_local:
        logger.error("Nothing to do: pass --inventory-csv and/or --from-local")
        return 2

    if settings.STORE_BACKEND == "local":
        target = get_local_store()
        db = None
    else:
        if not wait_for_database():
            logger.error(f"Database not reachable after {MAX_ATTEMPTS} attempts")
            return 1
        init_models()
        db = SessionLocal()
        target = SqlAlchemyPersistence(db)

    failed = False
    try:
        if args.from_local:
            report = migrate_store(LocalJsonPersistence(args.from_local), target)
            report_errors(report)
            failed = failed or bool(report.errors)
        if args.inventory_csv:
            report = load_inventory_csv(args.inventory_csv, target)
            report_errors(report)
            failed = failed or bool(report.errors)
    finally:
        if db is not None:
            db.close()
    return 1 if failed else 0

if __name__ == "__main__":
    sys.exit(main())
