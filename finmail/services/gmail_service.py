"""
Gmail API access for finmail.

There is no process-wide token store: the route layer builds a
GmailSession from the caller's OAuth token bundle for every request
and passes it into these helpers.
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from finmail import config
from finmail.exceptions import GmailAuthError, GmailFetchError
from finmail.models.email import EmailRecord, PdfAttachment
from finmail.services.email_extractor import extract_headers
from finmail.services.text_cleaner import html_to_text

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]


@dataclass
class GmailSession:
    """An authenticated Gmail API handle owned by the caller."""
    credentials: Credentials
    service: Any
    refreshed: bool = False  # access token was renewed while opening

    @property
    def token_json(self) -> str:
        """Current token bundle, refreshed tokens included."""
        return self.credentials.to_json()


def credentials_from_token(token: Union[str, Dict[str, Any]]) -> Credentials:
    """Build Credentials from a token bundle (JSON string or dict)."""
    if isinstance(token, str):
        try:
            token = json.loads(token)
        except json.JSONDecodeError as e:
            raise GmailAuthError("Invalid token format. Please login again.") from e

    info = dict(token)
    info.setdefault("client_id", config.GOOGLE_CLIENT_ID)
    info.setdefault("client_secret", config.GOOGLE_CLIENT_SECRET)
    info.setdefault("token_uri", "https://oauth2.googleapis.com/token")
    # Raw OAuth responses carry access_token instead of token
    if "token" not in info and "access_token" in info:
        info["token"] = info["access_token"]

    try:
        return Credentials.from_authorized_user_info(info, SCOPES)
    except ValueError as e:
        raise GmailAuthError(f"Token bundle is incomplete: {e}") from e


def open_session(token: Union[str, Dict[str, Any]], service=None) -> GmailSession:
    """
    Create an authenticated GmailSession.

    Refreshes an expired access token when a refresh token is present.

    Args:
        token: OAuth token bundle as stored in the client's cookie
        service: Pre-built Gmail service (tests inject a fake)

    Returns:
        GmailSession for the current request
    """
    creds = credentials_from_token(token)
    refreshed = False

    if service is None:
        if not creds.valid:
            if creds.expired and creds.refresh_token:
                try:
                    creds.refresh(Request())
                    refreshed = True
                except Exception as e:
                    raise GmailAuthError(f"Token refresh failed: {e}") from e
            elif not creds.token:
                raise GmailAuthError("Token bundle has no access token.")
        service = build("gmail", "v1", credentials=creds, cache_discovery=False)

    return GmailSession(credentials=creds, service=service, refreshed=refreshed)


# ============ LISTING ============

def list_message_ids(session: GmailSession, query: str, max_results: int) -> List[str]:
    """Return ids of messages matching a Gmail search expression."""
    try:
        result = session.service.users().messages().list(
            userId="me",
            q=query,
            maxResults=max_results
        ).execute()
    except HttpError as e:
        raise GmailFetchError(f"Gmail search failed: {e}") from e

    return [m["id"] for m in result.get("messages", []) or []]


# ============ MESSAGE PARSING ============

def _decode(data: str) -> str:
    if not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="ignore")


def extract_body(payload: Dict[str, Any]) -> str:
    """
    Decode a message body, preferring text/plain over text/html.

    Handles multipart and simple messages; HTML is flattened to text.
    """
    plain_parts: List[str] = []
    html_parts: List[str] = []

    def walk(part: Dict[str, Any]):
        for child in part.get("parts", []) or []:
            walk(child)
        if part.get("filename"):
            return
        mime_type = part.get("mimeType", "")
        data = (part.get("body") or {}).get("data", "")
        if not data:
            return
        if mime_type == "text/plain":
            plain_parts.append(_decode(data))
        elif mime_type == "text/html":
            html_parts.append(_decode(data))

    walk(payload)

    if plain_parts:
        return "\n".join(plain_parts).strip()
    if html_parts:
        return html_to_text("\n".join(html_parts))
    return ""


def extract_pdf_attachments(payload: Dict[str, Any]) -> List[PdfAttachment]:
    """Collect PDF attachment metadata in message order."""
    attachments: List[PdfAttachment] = []

    def walk(part: Dict[str, Any]):
        filename = part.get("filename") or ""
        body = part.get("body") or {}
        is_pdf = (
            part.get("mimeType") == "application/pdf"
            or filename.lower().endswith(".pdf")
        )
        if filename and is_pdf and body.get("attachmentId"):
            attachments.append(PdfAttachment(
                filename=filename,
                size_bytes=int(body.get("size", 0) or 0),
                attachment_ref=body["attachmentId"],
            ))
        for child in part.get("parts", []) or []:
            walk(child)

    walk(payload)
    return attachments


def message_to_record(
    message: Dict[str, Any],
    source: Optional[str] = None,
    include_body: bool = False
) -> EmailRecord:
    """Convert a Gmail API message resource into an EmailRecord."""
    payload = message.get("payload") or {}
    headers = extract_headers(payload.get("headers", []))

    return EmailRecord(
        id=message["id"],
        from_address=headers["from"] or "",
        subject=headers["subject"] or "",
        date_header=headers["date"] or "",
        snippet=message.get("snippet"),
        full_body=extract_body(payload) if include_body else None,
        pdf_attachments=extract_pdf_attachments(payload),
        source=source,
    )


# ============ FETCHING ============

def get_message(session: GmailSession, message_id: str) -> Dict[str, Any]:
    """Fetch the raw full-format message resource."""
    try:
        return session.service.users().messages().get(
            userId="me",
            id=message_id,
            format="full"
        ).execute()
    except HttpError as e:
        raise GmailFetchError(f"Failed to fetch message {message_id}: {e}") from e


def fetch_emails(
    session: GmailSession,
    source: str,
    max_results: int = config.DEFAULT_MAX_RESULTS,
    include_body: bool = False,
    query: Optional[str] = None
) -> List[EmailRecord]:
    """
    Search Gmail and fetch every matching message.

    Args:
        session: Authenticated GmailSession
        source: Search tag from config.SEARCH_QUERIES, stamped on each record
        max_results: Result cap passed to Gmail
        include_body: Decode and keep the full body text
        query: Override the search expression for this source

    Returns:
        EmailRecords in Gmail's listing order (newest first)
    """
    search = query or config.SEARCH_QUERIES.get(source)
    if not search:
        raise GmailFetchError(f"Unknown search source: {source}")

    message_ids = list_message_ids(session, search, max_results)
    logger.info("📬 Found %d emails for %s", len(message_ids), source)

    emails = []
    for message_id in message_ids:
        message = get_message(session, message_id)
        emails.append(message_to_record(message, source=source, include_body=include_body))

    return emails


def get_attachment(session: GmailSession, message_id: str, attachment_ref: str) -> bytes:
    """Download raw attachment bytes."""
    try:
        result = session.service.users().messages().attachments().get(
            userId="me",
            messageId=message_id,
            id=attachment_ref
        ).execute()
    except HttpError as e:
        raise GmailFetchError(f"Failed to fetch attachment for {message_id}: {e}") from e

    data = result.get("data", "")
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
