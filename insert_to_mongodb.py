"""
Import every stored JSON file under FINMAIL_DATA_DIR into MongoDB.

Usage:
    python insert_to_mongodb.py
"""

import logging
import sys

from dotenv import load_dotenv
load_dotenv()

from finmail import config
from finmail.exceptions import ExportError
from finmail.services.mongo_export import import_to_mongodb

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    logger.info("🚀 Starting MongoDB insertion process...")
    logger.info("📊 Database: %s / Collection: %s", config.MONGODB_DATABASE, config.MONGODB_COLLECTION)

    try:
        report = import_to_mongodb()
    except ExportError as e:
        logger.error("❌ %s", e)
        logger.error("💡 Make sure MongoDB is running and MONGODB_URI is correct")
        return 1

    logger.info("📧 Records found: %d", report.total)
    logger.info("✅ Records inserted: %d", report.inserted)
    logger.info("⏭️  Duplicates skipped: %d", report.duplicates)
    if report.skipped_files:
        logger.info("⚠️  Files skipped: %s", ", ".join(report.skipped_files))
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
