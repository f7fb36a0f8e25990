"""
Email fetch endpoints.

- /emails/fetch: raw search results, dumped to disk and optionally
  forwarded to the n8n webhook
- /emails/enhanced: full bodies + heuristic fields + PDF metadata
- /emails/{id}/attachments/{ref}: raw PDF bytes
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from finmail import config
from finmail.api.v1.deps import get_gmail_session
from finmail.exceptions import GmailFetchError, ProfileNotFoundError, WebhookError
from finmail.services import gmail_service, profile_service, storage_service, webhook_service
from finmail.services.email_extractor import attach_extracted_details
from finmail.models.stored_file import FileKind
from finmail.services.gmail_service import GmailSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emails", tags=["Emails"])


def _check_source(source: str) -> str:
    if source not in config.SEARCH_QUERIES:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown source '{source}'. Use one of: {', '.join(config.SEARCH_QUERIES)}"
        )
    return source


@router.get("/fetch")
def fetch_emails(
    source: str = Query("bank_statement"),
    max_results: int = Query(5, ge=1, le=100),
    forward: bool = Query(True, description="Send to N8N_WEBHOOK_URL when configured"),
    session: GmailSession = Depends(get_gmail_session)
):
    """
    Search Gmail and store the raw results.

    Returns:
        dict: Count, stored filename and whether the webhook was called
    """
    _check_source(source)

    try:
        emails = gmail_service.fetch_emails(session, source, max_results=max_results)
    except GmailFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    stored = storage_service.save_email_dump(emails, source=source)

    forwarded = False
    if forward:
        try:
            forwarded = webhook_service.forward_emails(emails)
        except WebhookError as e:
            raise HTTPException(status_code=502, detail=str(e))

    return {
        "count": len(emails),
        "stored_file": stored.filename,
        "forwarded": forwarded,
        "emails": [e.to_json_dict() for e in emails],
    }


@router.get("/enhanced")
def fetch_enhanced_emails(
    source: str = Query("bank_statement"),
    max_results: int = Query(10, ge=1, le=100),
    user_id: Optional[str] = Query(None, description="Map emails onto this profile's accounts"),
    session: GmailSession = Depends(get_gmail_session)
):
    """
    Fetch full emails and attach heuristic fields and account mapping.
    """
    _check_source(source)

    profile = None
    if user_id:
        try:
            profile = profile_service.get_profile(user_id)
        except ProfileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    try:
        emails = gmail_service.fetch_emails(session, source, max_results=max_results, include_body=True)
    except GmailFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    enriched = [attach_extracted_details(email, profile) for email in emails]
    stored = storage_service.save_email_dump(
        enriched, kind=FileKind.ENHANCED_EMAILS, source=source, userId=user_id
    )

    return {
        "count": len(enriched),
        "with_pdf": sum(1 for e in enriched if e.pdf_attachments),
        "stored_file": stored.filename,
        "emails": [e.to_json_dict() for e in enriched],
    }


@router.get("/{message_id}/attachments/{attachment_ref}")
def download_attachment(
    message_id: str,
    attachment_ref: str,
    filename: str = Query("statement.pdf"),
    session: GmailSession = Depends(get_gmail_session)
):
    """Stream one PDF attachment back to the caller."""
    try:
        data = gmail_service.get_attachment(session, message_id, attachment_ref)
    except GmailFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
