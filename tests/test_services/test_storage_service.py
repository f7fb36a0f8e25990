"""Tests for timestamped JSON storage and the transactions hub."""

import os

import pytest

from finmail.exceptions import StorageError, StoredFileNotFoundError
from finmail.models.stored_file import FileKind
from finmail.models.transaction import CreditDebit, StatementRecord, TransactionRecord
from finmail.services import storage_service
from finmail.services.storage_service import (
    build_transactions_hub,
    latest_file,
    list_files,
    parse_filename,
    read_file,
    save_email_dump,
    save_json,
    save_transaction_batch,
)


def test_filename_shape(data_dir):
    stored = save_json(FileKind.EMAILS, {"hello": "world"})
    assert parse_filename(stored.filename) == (FileKind.EMAILS, stored.timestamp)
    assert stored.kind == FileKind.EMAILS
    assert read_file(stored.filename) == {"hello": "world"}


def test_writes_never_overwrite(data_dir):
    first = save_json(FileKind.EMAILS, {"n": 1})
    second = save_json(FileKind.EMAILS, {"n": 2})
    assert first.filename != second.filename
    assert read_file(first.filename) == {"n": 1}


def test_list_files_newest_first_and_filtered(data_dir):
    save_json(FileKind.EMAILS, {})
    save_json(FileKind.GEMINI_TRANSACTIONS, {})
    newest = save_json(FileKind.EMAILS, {})
    with open(os.path.join(data_dir, "notes.txt"), "w") as f:
        f.write("ignored")

    assert len(list_files()) == 3
    emails = list_files(FileKind.EMAILS)
    assert [f.filename for f in emails][0] == newest.filename
    assert len(emails) == 2
    assert latest_file(FileKind.EMAILS).filename == newest.filename
    assert latest_file(FileKind.TRANSACTIONS_HUB) is None


def test_list_missing_directory(tmp_path):
    assert list_files(data_dir=str(tmp_path / "nope")) == []


def test_read_rejects_unknown_names(data_dir):
    with pytest.raises(StoredFileNotFoundError):
        read_file("../secrets.json")
    with pytest.raises(StoredFileNotFoundError):
        read_file("emails_20240101T000000000000Z.json")


def test_read_partial_file(data_dir):
    stored = save_json(FileKind.EMAILS, {})
    with open(os.path.join(data_dir, stored.filename), "w") as f:
        f.write('{"emails": [')
    with pytest.raises(StorageError):
        read_file(stored.filename)


def test_email_dump_uses_camel_case(data_dir, make_email):
    stored = save_email_dump([make_email(pdfs=("a.pdf",))], source="bank_statement")
    data = read_file(stored.filename)

    assert data["metadata"]["count"] == 1
    assert data["metadata"]["source"] == "bank_statement"
    email = data["emails"][0]
    assert email["fromAddress"] == "HDFC Bank <alerts@hdfcbank.net>"
    assert email["pdfAttachments"][0]["attachmentRef"] == "att-a.pdf"


def _txn(email_id, amount, direction, date="2024-01-05", balance=None):
    return TransactionRecord(
        email_id=email_id, txn_date=date, utr_number=f"UTR{email_id}",
        credit_or_debit=direction, amount=amount, available_balance=balance,
    )


def test_transaction_batch_shape(data_dir):
    records = [_txn("a", 100, CreditDebit.DEBIT), StatementRecord(email_id="s", pdf_filename="x.pdf")]
    stored = save_transaction_batch(records, processed_count=2)
    data = read_file(stored.filename)

    assert stored.kind == FileKind.GEMINI_TRANSACTIONS
    assert data["metadata"]["processedEmails"] == 2
    assert data["transactions"][0]["type"] == "transaction"
    assert data["transactions"][0]["creditOrDebit"] == "debit"
    assert data["statements"][0]["pdfFilename"] == "x.pdf"
    assert data["balance"] is None


def test_hub_deduplicates_and_totals(data_dir):
    save_transaction_batch([_txn("a", 100, CreditDebit.DEBIT), _txn("b", 500, CreditDebit.CREDIT)], 2)
    save_transaction_batch([
        _txn("a", 100, CreditDebit.DEBIT),
        _txn("c", 50, CreditDebit.DEBIT, date="2024-01-07", balance=1350),
    ], 2)

    hub = build_transactions_hub()
    data = read_file(hub.filename)

    assert hub.kind == FileKind.TRANSACTIONS_HUB
    assert data["metadata"]["transactionCount"] == 3
    assert len(data["metadata"]["sourceFiles"]) == 2
    assert data["summary"] == {"totalCredit": 500.0, "totalDebit": 150.0, "net": 350.0}
    assert data["balance"]["amount"] == 1350.0
    assert data["transactions"][0]["emailId"] == "c"


def test_hub_skips_broken_files(data_dir):
    good = save_transaction_batch([_txn("a", 10, CreditDebit.CREDIT)], 1)
    bad = save_json(FileKind.GEMINI_TRANSACTIONS, {"transactions": [{"amount": 5}]})

    data = read_file(build_transactions_hub().filename)
    assert data["metadata"]["sourceFiles"] == [good.filename]
    assert data["metadata"]["skippedFiles"] == [bad.filename]


def test_hub_with_no_batches(data_dir):
    data = read_file(build_transactions_hub().filename)
    assert data["transactions"] == []
    assert data["balance"]["source"] == "derived"


def test_uses_configured_directory(data_dir):
    save_json(FileKind.EMAILS, {})
    assert os.listdir(data_dir)
    assert storage_service.config.DATA_DIR == data_dir
