"""
Import stored JSON artifacts into MongoDB.

Each element of a file's emails / transactions / statements array
becomes one document tagged with its source file and array position.
Re-running is safe: documents already imported from the same file and
position are skipped.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from finmail import config
from finmail.exceptions import ExportError, StorageError
from finmail.services.storage_service import list_files, read_file

logger = logging.getLogger(__name__)

ARRAY_KEYS = ("emails", "transactions", "statements")


@dataclass
class ImportReport:
    files: int = 0
    total: int = 0
    inserted: int = 0
    skipped_files: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def duplicates(self) -> int:
        return self.total - self.inserted - len(self.errors)


def _document_id(item: dict) -> Optional[str]:
    return item.get("email_id") or item.get("emailId") or item.get("id")


def import_files(collection, data_dir: Optional[str] = None) -> ImportReport:
    """
    Insert every stored file's records into a MongoDB collection.

    Args:
        collection: pymongo Collection (or anything with find_one/insert_one)
        data_dir: Directory holding the stored JSON files

    Returns:
        ImportReport with counts
    """
    report = ImportReport()
    files = list_files(data_dir=data_dir)

    if not files:
        logger.info("❌ No JSON files found. Please fetch some emails first.")
        return report

    logger.info("📂 Found %d JSON files to process", len(files))

    for stored in files:
        try:
            data = read_file(stored.filename, data_dir)
        except StorageError as e:
            logger.warning("⚠️ Skipping %s: %s", stored.filename, e)
            report.skipped_files.append(stored.filename)
            continue

        arrays = [(key, data.get(key)) for key in ARRAY_KEYS if isinstance(data.get(key), list)]
        if not arrays:
            logger.warning("⚠️ Skipping %s: no record arrays found", stored.filename)
            report.skipped_files.append(stored.filename)
            continue

        report.files += 1
        for key, items in arrays:
            for index, item in enumerate(items):
                report.total += 1
                doc_id = _document_id(item)
                # One email can yield several records; position identifies each
                try:
                    existing = collection.find_one({
                        "source_file": stored.filename,
                        "record_kind": key,
                        "record_index": index,
                    })
                    if existing:
                        continue
                    collection.insert_one({
                        **item,
                        "record_id": doc_id,
                        "record_kind": key,
                        "record_index": index,
                        "source_file": stored.filename,
                        "metadata": data.get("metadata"),
                        "inserted_at": datetime.now(timezone.utc).isoformat(),
                    })
                    report.inserted += 1
                except PyMongoError as e:
                    logger.error("❌ Error inserting %s from %s: %s", doc_id, stored.filename, e)
                    report.errors.append(f"{stored.filename}:{doc_id}: {e}")

    logger.info(
        "🎉 Import complete: %d records, %d inserted, %d duplicates skipped",
        report.total, report.inserted, report.duplicates
    )
    return report


def import_to_mongodb(
    uri: Optional[str] = None,
    database: Optional[str] = None,
    collection_name: Optional[str] = None,
    data_dir: Optional[str] = None
) -> ImportReport:
    """Connect with the configured settings and run import_files."""
    client = MongoClient(uri or config.MONGODB_URI)
    try:
        collection = client[database or config.MONGODB_DATABASE][collection_name or config.MONGODB_COLLECTION]
        return import_files(collection, data_dir)
    except PyMongoError as e:
        raise ExportError(f"MongoDB import failed: {e}") from e
    finally:
        client.close()
