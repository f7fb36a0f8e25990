"""
Bank-specific PDF password rules.

Only one bank is recognized today. The rule text is embedded in the
Gemini prompt and the same rule is re-applied deterministically after
parsing, when the model left a "missing info" placeholder behind.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from finmail.models.profile import UserProfile

MOBILE_PLACEHOLDER = "{MOBILE}"
DOB_PLACEHOLDER = "{DOB}"

DOB_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d%m%Y", "%d.%m.%Y")


def parse_dob(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    for fmt in DOB_FORMATS:
        try:
            return datetime.strptime(raw.strip(), fmt)
        except ValueError:
            continue
    return None


def missing_placeholder(*missing: str) -> str:
    """'{DOB} needed', '{MOBILE} and {DOB} needed'."""
    return f"{' and '.join(missing)} needed"


def mobile_last5_dob_ddmmyy(profile: Optional[UserProfile]) -> str:
    """Last five digits of the mobile number followed by DOB as DDMMYY."""
    identifiers = profile.identifiers if profile else None
    digits = re.sub(r'\D', '', (identifiers.phone_number if identifiers else None) or "")
    dob = parse_dob(identifiers.date_of_birth if identifiers else None)

    missing = []
    if len(digits) < 5:
        missing.append(MOBILE_PLACEHOLDER)
    if dob is None:
        missing.append(DOB_PLACEHOLDER)
    if missing:
        return missing_placeholder(*missing)

    return digits[-5:] + dob.strftime("%d%m%y")


@dataclass(frozen=True)
class PasswordRule:
    bank_name: str
    domains: Tuple[str, ...]
    description: str
    derive: Callable[[Optional[UserProfile]], str]

    def matches(self, sender_domain: str) -> bool:
        domain = (sender_domain or "").lower()
        return any(domain == d or domain.endswith("." + d) for d in self.domains)


PASSWORD_RULES = [
    PasswordRule(
        bank_name="Kotak Mahindra Bank",
        domains=("kotak.com", "kotak.bank.in"),
        description="last five digits of mobile + DOB in DDMMYY format",
        derive=mobile_last5_dob_ddmmyy,
    ),
]


def find_rule(sender_domain: str) -> Optional[PasswordRule]:
    for rule in PASSWORD_RULES:
        if rule.matches(sender_domain):
            return rule
    return None
