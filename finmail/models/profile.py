"""
UserProfile model - identity plus account inventory.

Used to scope searches, map emails to accounts and derive PDF
passwords. One JSON file per profile; last writer wins on update.
"""

from typing import List, Optional

from pydantic import Field

from finmail.models.base import CamelModel


class BankAccount(CamelModel):
    account_number: str
    bank_name: str
    account_type: Optional[str] = None  # savings, current, ...


class CreditCard(CamelModel):
    card_number: str
    provider: str
    card_type: Optional[str] = None


class Identifiers(CamelModel):
    """Password-derivation inputs. All optional."""
    pan_number: Optional[str] = None
    date_of_birth: Optional[str] = None  # ISO YYYY-MM-DD preferred
    phone_number: Optional[str] = None


class UserProfile(CamelModel):
    """A user's identity and registered accounts."""
    user_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    bank_accounts: List[BankAccount] = Field(default_factory=list)
    credit_cards: List[CreditCard] = Field(default_factory=list)
    identifiers: Identifiers = Field(default_factory=Identifiers)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<UserProfile(user_id={self.user_id}, name={self.full_name})>"
