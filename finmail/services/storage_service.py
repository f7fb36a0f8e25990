"""
JSON file storage for finmail.

This module provides the persistence layer:
- save_json: write an artifact under a fresh timestamped filename
- list_files / read_file / latest_file: directory listing is the index
- save_email_dump / save_transaction_batch: artifact shapes
- build_transactions_hub: aggregate every normalized batch into one file

Every write targets a new filename, so concurrent runs never clobber a
file; a listing may still show a file that is mid-write.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from finmail import config
from finmail.exceptions import StorageError, StoredFileNotFoundError
from finmail.models.email import EmailRecord
from finmail.models.stored_file import FileKind, StoredFile
from finmail.models.transaction import BalanceEstimate, StatementRecord, TransactionRecord
from finmail.services.balance_service import reconcile_balance

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S%fZ"
_FILENAME_PATTERN = re.compile(
    r'^(?P<kind>' + "|".join(k.value for k in FileKind) + r')_(?P<ts>\d{8}T\d{12}Z)\.json$'
)


def _data_dir(data_dir: Optional[str]) -> str:
    return data_dir or config.DATA_DIR


def make_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).strftime(TIMESTAMP_FORMAT)


def parse_filename(filename: str) -> Optional[Tuple[FileKind, str]]:
    """(kind, timestamp) for a stored filename, None for foreign files."""
    match = _FILENAME_PATTERN.match(filename)
    if not match:
        return None
    return FileKind(match.group("kind")), match.group("ts")


# ============ RAW FILE OPERATIONS ============

def save_json(kind: FileKind, payload: Dict[str, Any], data_dir: Optional[str] = None) -> StoredFile:
    """
    Write payload to <kind>_<timestamp>.json.

    Returns:
        StoredFile describing the new artifact
    """
    directory = _data_dir(data_dir)
    os.makedirs(directory, exist_ok=True)

    timestamp = make_timestamp()
    filename = f"{kind.value}_{timestamp}.json"
    path = os.path.join(directory, filename)

    # Same-microsecond collision: bump until the name is fresh
    while os.path.exists(path):
        timestamp = make_timestamp()
        filename = f"{kind.value}_{timestamp}.json"
        path = os.path.join(directory, filename)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise StorageError(f"Failed to write {filename}: {e}") from e

    logger.info("💾 Saved %s", filename)
    return StoredFile(filename=filename, kind=kind, timestamp=timestamp, size_bytes=os.path.getsize(path))


def list_files(kind: Optional[FileKind] = None, data_dir: Optional[str] = None) -> List[StoredFile]:
    """Stored files, newest first, optionally filtered by kind."""
    directory = _data_dir(data_dir)
    if not os.path.isdir(directory):
        return []

    files = []
    for filename in os.listdir(directory):
        parsed = parse_filename(filename)
        if parsed is None:
            continue
        file_kind, timestamp = parsed
        if kind is not None and file_kind != kind:
            continue
        files.append(StoredFile(
            filename=filename,
            kind=file_kind,
            timestamp=timestamp,
            size_bytes=os.path.getsize(os.path.join(directory, filename)),
        ))

    files.sort(key=lambda f: f.timestamp, reverse=True)
    return files


def read_file(filename: str, data_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load a stored artifact by filename."""
    if parse_filename(filename) is None:
        # Also rejects path traversal: only bare stored names match
        raise StoredFileNotFoundError(f"Not a stored file: {filename}")

    path = os.path.join(_data_dir(data_dir), filename)
    if not os.path.exists(path):
        raise StoredFileNotFoundError(f"File not found: {filename}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageError(f"{filename} is not valid JSON (possibly mid-write): {e}") from e


def latest_file(kind: FileKind, data_dir: Optional[str] = None) -> Optional[StoredFile]:
    files = list_files(kind, data_dir)
    return files[0] if files else None


# ============ ARTIFACT SHAPES ============

def _metadata(**extra: Any) -> Dict[str, Any]:
    return {"createdAt": datetime.now(timezone.utc).isoformat(), **extra}


def save_email_dump(
    emails: Sequence[EmailRecord],
    kind: FileKind = FileKind.EMAILS,
    data_dir: Optional[str] = None,
    **metadata: Any
) -> StoredFile:
    """Persist fetched emails as {"metadata": ..., "emails": [...]}."""
    payload = {
        "metadata": _metadata(count=len(emails), **metadata),
        "emails": [email.to_json_dict() for email in emails],
    }
    return save_json(kind, payload, data_dir)


def split_records(records: Iterable) -> Tuple[List[TransactionRecord], List[StatementRecord]]:
    transactions, statements = [], []
    for record in records:
        if isinstance(record, StatementRecord):
            statements.append(record)
        else:
            transactions.append(record)
    return transactions, statements


def save_transaction_batch(
    records: Sequence,
    processed_count: int,
    balance: Optional[BalanceEstimate] = None,
    data_dir: Optional[str] = None,
    **metadata: Any
) -> StoredFile:
    """Persist normalized Gemini output."""
    transactions, statements = split_records(records)
    payload = {
        "metadata": _metadata(
            processedEmails=processed_count,
            transactionCount=len(transactions),
            statementCount=len(statements),
            **metadata
        ),
        "balance": balance.to_json_dict() if balance else None,
        "transactions": [t.to_json_dict() for t in transactions],
        "statements": [s.to_json_dict() for s in statements],
    }
    return save_json(FileKind.GEMINI_TRANSACTIONS, payload, data_dir)


# ============ TRANSACTIONS HUB ============

def _transaction_key(txn: TransactionRecord) -> Tuple:
    return (txn.email_id, txn.utr_number, round(txn.amount, 2), txn.txn_date)


def build_transactions_hub(data_dir: Optional[str] = None) -> StoredFile:
    """
    Aggregate every gemini_transactions file into one hub file.

    Transactions are deduplicated on (emailId, utrNumber, amount,
    txnDate), statements on (emailId, pdfFilename). Files that fail to
    load are skipped and listed in the metadata.
    """
    seen_txns: Dict[Tuple, TransactionRecord] = {}
    seen_statements: Dict[Tuple, StatementRecord] = {}
    source_files, skipped = [], []

    # Oldest first so later files win on duplicates
    for stored in reversed(list_files(FileKind.GEMINI_TRANSACTIONS, data_dir)):
        try:
            data = read_file(stored.filename, data_dir)
            txns = [TransactionRecord.model_validate(t) for t in data.get("transactions", [])]
            statements = [StatementRecord.model_validate(s) for s in data.get("statements", [])]
        except (StorageError, ValueError) as e:
            logger.warning("⚠️ Skipping %s: %s", stored.filename, e)
            skipped.append(stored.filename)
            continue

        for txn in txns:
            seen_txns[_transaction_key(txn)] = txn
        for statement in statements:
            seen_statements[(statement.email_id, statement.pdf_filename)] = statement
        source_files.append(stored.filename)

    transactions = sorted(seen_txns.values(), key=lambda t: t.txn_date or "", reverse=True)
    statements = list(seen_statements.values())

    total_credit = sum(t.amount for t in transactions if t.credit_or_debit.value == "credit")
    total_debit = sum(t.amount for t in transactions if t.credit_or_debit.value == "debit")
    balance = reconcile_balance(records=transactions)

    payload = {
        "metadata": _metadata(
            sourceFiles=source_files,
            skippedFiles=skipped,
            transactionCount=len(transactions),
            statementCount=len(statements),
        ),
        "summary": {
            "totalCredit": round(total_credit, 2),
            "totalDebit": round(total_debit, 2),
            "net": round(total_credit - total_debit, 2),
        },
        "balance": balance.to_json_dict(),
        "transactions": [t.to_json_dict() for t in transactions],
        "statements": [s.to_json_dict() for s in statements],
    }
    return save_json(FileKind.TRANSACTIONS_HUB, payload, data_dir)
