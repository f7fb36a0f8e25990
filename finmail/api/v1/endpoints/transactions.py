"""
Transaction extraction endpoints.

POST /transactions/process runs the LangGraph pipeline for one user:
fetch → heuristics → Gemini batches → balance → gemini_transactions file.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from finmail import config
from finmail.api.v1.deps import get_gmail_session
from finmail.exceptions import GeminiError, GmailFetchError, ProfileNotFoundError, StorageError
from finmail.models.stored_file import FileKind
from finmail.models.transaction import StatementRecord, TransactionRecord
from finmail.services import gmail_service, profile_service, storage_service
from finmail.services.balance_service import reconcile_balance
from finmail.services.gemini_extractor import GeminiClient
from finmail.services.gmail_service import GmailSession
from finmail.services.langgraph_pipeline import pipeline_result_to_json, run_transaction_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


class ProcessRequest(BaseModel):
    user_id: str
    sources: list[str] = Field(default_factory=lambda: ["bank_statement"])
    max_results: int = Field(20, ge=1, le=200)


@router.post("/process")
def process_transactions(body: ProcessRequest, session: GmailSession = Depends(get_gmail_session)):
    """
    Extract transactions and statements for a user with Gemini.

    Partial success is normal: the response reports how many emails
    were fetched, how many were processed and how many records came out.
    """
    # Validate everything before any external call
    unknown = [s for s in body.sources if s not in config.SEARCH_QUERIES]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown sources: {', '.join(unknown)}")

    try:
        profile = profile_service.get_profile(body.user_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        generate = GeminiClient()
    except GeminiError as e:
        raise HTTPException(status_code=500, detail=str(e))

    emails = []
    seen = set()
    try:
        for source in body.sources:
            for email in gmail_service.fetch_emails(session, source, body.max_results, include_body=True):
                if email.id not in seen:
                    seen.add(email.id)
                    emails.append(email)
    except GmailFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    logger.info("🔄 Processing %d emails for %s", len(emails), profile.user_id)

    state = run_transaction_pipeline(
        emails,
        profile,
        generate=generate,
        source=",".join(body.sources),
    )
    return pipeline_result_to_json(state)


@router.post("/hub")
def build_hub():
    """Aggregate every stored gemini_transactions file into a hub file."""
    try:
        stored = storage_service.build_transactions_hub()
        return {"stored_file": stored.filename, **storage_service.read_file(stored.filename)}
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/hub")
def get_hub():
    """Latest transactions hub aggregate."""
    latest = storage_service.latest_file(FileKind.TRANSACTIONS_HUB)
    if latest is None:
        raise HTTPException(status_code=404, detail="No transactions hub yet. POST /transactions/hub first.")
    try:
        return {"stored_file": latest.filename, **storage_service.read_file(latest.filename)}
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/balance")
def get_balance(filename: Optional[str] = Query(None, description="Defaults to the latest batch file")):
    """Reconcile the latest balance from a stored gemini_transactions file."""
    if filename is None:
        latest = storage_service.latest_file(FileKind.GEMINI_TRANSACTIONS)
        if latest is None:
            raise HTTPException(status_code=404, detail="No processed transactions yet.")
        filename = latest.filename

    try:
        data = storage_service.read_file(filename)
    except StorageError as e:
        raise HTTPException(status_code=404, detail=str(e))

    records = [TransactionRecord.model_validate(t) for t in data.get("transactions", [])]
    records += [StatementRecord.model_validate(s) for s in data.get("statements", [])]
    return {"stored_file": filename, **reconcile_balance(records=records).to_json_dict()}
