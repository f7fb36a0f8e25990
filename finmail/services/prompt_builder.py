"""
Batch Prompt Builder for Gemini transaction extraction.

Packs up to BATCH_SIZE emails plus the user's identifiers into one
instruction block. Password derivation is described as literal rule
text; the model does the reasoning, we re-check the result afterwards.
"""

from typing import List, Optional

from langchain_core.prompts import PromptTemplate

from finmail.models.email import EmailRecord
from finmail.models.profile import UserProfile
from finmail.services.email_extractor import header_date_iso
from finmail.services.password_rules import (
    DOB_PLACEHOLDER,
    MOBILE_PLACEHOLDER,
    PASSWORD_RULES,
)
from finmail.services.text_cleaner import clean_body

BATCH_SIZE = 10
MAX_BODY_CHARS = 3000

TRANSACTION_FIELDS = [
    "email_id", "txn_date", "utr_number", "credit_debit", "rcvd_from_paid_to",
    "narration", "txn_amount", "available_balance", "source",
    "pdf_attached", "pdf_password_protected", "pdf_password",
]
STATEMENT_FIELDS = [
    "email_id", "statement_type", "statement_date", "pdf_filename",
    "pdf_password_protected", "pdf_password", "source",
]

EXTRACTION_PROMPT = PromptTemplate.from_template(
    """You are an expert at reading Indian bank and credit card emails.
Below are {email_count} emails belonging to {full_name}.
Extract every transaction or statement they describe.

USER PROFILE:
{profile_block}

PDF PASSWORD RULES:
{rules_block}
- If the email says the PDF is password protected and you cannot derive the
  password, set pdf_password to a placeholder naming what is missing,
  e.g. "{dob_placeholder} needed".

EMAILS:
{emails_block}

OUTPUT FORMAT:
Return ONLY a JSON array. One element per transaction or statement.
Transaction objects use exactly these fields:
{transaction_fields}
Statement objects use exactly these fields:
{statement_fields}
Rules:
- txn_date and statement_date are ISO dates (YYYY-MM-DD).
- credit_debit is "credit" or "debit".
- rcvd_from_paid_to is the sender for a credit and the recipient for a debit.
- txn_amount and available_balance are plain numbers without currency or commas.
- statement_type is one of "monthly", "quarterly", "annual".
- Copy email_id and source exactly from the email they came from.
- Use null for anything the email does not state.

Example:
[{{"email_id": "abc123", "txn_date": "2024-01-05", "utr_number": "412345678901",
"credit_debit": "debit", "rcvd_from_paid_to": "Amazon", "narration": "UPI payment",
"txn_amount": 499.0, "available_balance": 10250.5, "source": "transaction_alert",
"pdf_attached": false, "pdf_password_protected": false, "pdf_password": null}}]
"""
)


def _profile_block(profile: Optional[UserProfile]) -> str:
    if profile is None:
        return "- (no profile supplied)"

    ids = profile.identifiers
    lines = [
        f"- Name: {profile.full_name}",
        f"- PAN: {ids.pan_number or 'not provided'}",
        f"- Date of birth: {ids.date_of_birth or 'not provided'}",
        f"- Mobile: {ids.phone_number or 'not provided'}",
    ]
    for account in profile.bank_accounts:
        lines.append(f"- Bank account: {account.bank_name} ending {account.account_number[-4:]}")
    for card in profile.credit_cards:
        lines.append(f"- Credit card: {card.provider} ending {card.card_number[-4:]}")
    return "\n".join(lines)


def _rules_block() -> str:
    lines = [
        f"- {rule.bank_name} ({', '.join(rule.domains)}): password is the "
        f"{rule.description}. Missing mobile -> \"{MOBILE_PLACEHOLDER} needed\", "
        f"missing DOB -> \"{DOB_PLACEHOLDER} needed\"."
        for rule in PASSWORD_RULES
    ]
    lines.append("- PAN-based passwords: the PAN in uppercase unless the email says otherwise.")
    return "\n".join(lines)


def _email_block(index: int, email: EmailRecord) -> str:
    body = clean_body(email.full_body, MAX_BODY_CHARS) if email.full_body else ""
    content = body or email.snippet or "(no content)"
    attachments = ", ".join(a.filename for a in email.pdf_attachments) or "none"

    return "\n".join([
        f"--- EMAIL {index} ---",
        f"email_id: {email.id}",
        f"source: {email.source or 'unknown'}",
        f"from: {email.from_address}",
        f"subject: {email.subject}",
        f"date: {email.date_header} ({header_date_iso(email.date_header) or 'unparsed'})",
        f"pdf_attachments: {attachments}",
        "content:",
        content,
    ])


def build_prompt(emails: List[EmailRecord], profile: Optional[UserProfile]) -> str:
    """
    Build one natural-language extraction prompt for a batch.

    Args:
        emails: Ordered batch, at most BATCH_SIZE emails
        profile: User profile whose identifiers drive password derivation

    Returns:
        Prompt text for the text-generation service
    """
    if len(emails) > BATCH_SIZE:
        raise ValueError(f"Batch of {len(emails)} emails exceeds limit of {BATCH_SIZE}")

    return EXTRACTION_PROMPT.format(
        email_count=len(emails),
        full_name=profile.full_name if profile else "the user",
        profile_block=_profile_block(profile),
        rules_block=_rules_block(),
        dob_placeholder=DOB_PLACEHOLDER,
        emails_block="\n\n".join(_email_block(i + 1, e) for i, e in enumerate(emails)),
        transaction_fields=", ".join(TRANSACTION_FIELDS),
        statement_fields=", ".join(STATEMENT_FIELDS),
    )
