"""
StoredFile model - one persisted JSON artifact.

The filename embeds a sortable UTC timestamp; the data directory
listing is the only index.
"""

import enum
from typing import Optional

from finmail.models.base import CamelModel


class FileKind(str, enum.Enum):
    """Kinds of JSON artifacts, doubling as filename prefixes."""
    EMAILS = "emails"
    ENHANCED_EMAILS = "enhanced_emails"
    GEMINI_TRANSACTIONS = "gemini_transactions"
    TRANSACTIONS_HUB = "transactions_hub"


class StoredFile(CamelModel):
    filename: str
    kind: FileKind
    timestamp: str  # embedded in filename, e.g. 20240105T103000123456Z
    size_bytes: Optional[int] = None
