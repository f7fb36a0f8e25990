"""Shared fixtures."""

import pytest

from finmail import config
from finmail.models.email import EmailRecord, PdfAttachment
from finmail.models.profile import BankAccount, Identifiers, UserProfile


@pytest.fixture
def make_email():
    def _make(
        id="msg1",
        snippet="Rs. 500.00 debited from A/c XX1234 to Amazon",
        subject="Transaction alert",
        from_address="HDFC Bank <alerts@hdfcbank.net>",
        date_header="Mon, 1 Jan 2024 10:00:00 +0530",
        full_body=None,
        pdfs=(),
        source="transaction_alert",
    ):
        return EmailRecord(
            id=id,
            from_address=from_address,
            subject=subject,
            date_header=date_header,
            snippet=snippet,
            full_body=full_body,
            pdf_attachments=[
                PdfAttachment(filename=name, size_bytes=1024, attachment_ref=f"att-{name}")
                for name in pdfs
            ],
            source=source,
        )
    return _make


@pytest.fixture
def profile():
    return UserProfile(
        user_id="0f1e2d3c4b5a69788796a5b4c3d2e1f0",
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        bank_accounts=[BankAccount(account_number="50100012341234", bank_name="HDFC Bank", account_type="savings")],
        identifiers=Identifiers(pan_number="ABCDE1234F", date_of_birth="1990-07-15", phone_number="+91 98765 43210"),
    )


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    directory = tmp_path / "data"
    monkeypatch.setattr(config, "DATA_DIR", str(directory))
    monkeypatch.setattr(config, "PROFILES_DIR", str(directory / "profiles"))
    return str(directory)
