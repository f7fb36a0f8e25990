"""
Email models for messages fetched from Gmail.

An EmailRecord is built once per listing result and lives only for the
duration of one request. Derived fields (account mapping, heuristic
details) are attached on a copy, never by mutating the original.
"""

from typing import List, Optional

from pydantic import Field

from finmail.models.base import CamelModel


class PdfAttachment(CamelModel):
    """PDF attachment metadata; bytes are fetched separately by reference."""
    filename: str
    size_bytes: int = 0
    attachment_ref: str


class HeuristicFields(CamelModel):
    """Best-effort regex guesses pulled from an email snippet."""
    transaction_type: Optional[str] = None  # debit, credit, unknown
    amount: Optional[float] = None
    merchant: Optional[str] = None
    utr_number: Optional[str] = None
    statement_type: Optional[str] = None
    statement_period: Optional[str] = None
    password_hint: Optional[str] = None

    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())


class EmailRecord(CamelModel):
    """One fetched Gmail message."""
    id: str
    from_address: str = ""
    subject: str = ""
    date_header: str = ""  # literal Date header, may not parse
    snippet: Optional[str] = None
    full_body: Optional[str] = None
    pdf_attachments: List[PdfAttachment] = Field(default_factory=list)

    # ============ DERIVED (attach-only) ============
    source: Optional[str] = None  # search tag that produced this email
    account_mapping: Optional[dict] = None
    extracted_details: Optional[HeuristicFields] = None

    @property
    def sender_domain(self) -> str:
        """Domain part of the From address, lowercased ('' if absent)."""
        address = self.from_address
        if "<" in address and ">" in address:
            address = address[address.index("<") + 1:address.index(">")]
        if "@" not in address:
            return ""
        return address.rsplit("@", 1)[1].strip().lower()

    @property
    def text(self) -> str:
        """Snippet and body joined, for pattern scans."""
        return "\n".join(part for part in (self.snippet, self.full_body) if part)

    def __repr__(self):
        return f"<EmailRecord(id={self.id}, from={self.from_address}, subject={self.subject[:30]})>"
