"""
LangGraph transaction pipeline.

Implements the per-request flow:
1. Extract Fields → heuristic details + account mapping per email
2. Gemini Batches → batched extraction with retry/backoff
3. Reconcile Balance → latest balance from records or email text
4. Persist → gemini_transactions JSON file
"""

import time
from typing import Any, Callable, Dict, List, Optional, TypedDict

from langgraph.graph import END, START, StateGraph

from finmail.models.email import EmailRecord
from finmail.models.profile import UserProfile
from finmail.models.transaction import BalanceEstimate
from finmail.services.balance_service import reconcile_balance
from finmail.services.email_extractor import attach_extracted_details
from finmail.services.email_pipeline import (
    GenerateFn,
    RetryPolicy,
    collect_records,
    process_batches,
)
from finmail.services.storage_service import save_transaction_batch


class PipelineState(TypedDict):
    """State that flows through the LangGraph pipeline."""
    # Input
    emails: List[EmailRecord]
    profile: Optional[UserProfile]
    source: Optional[str]

    # Processing outputs
    enriched_emails: List[EmailRecord]
    records: List[Any]
    processed_count: int
    batches: List[Dict[str, Any]]
    balance: Optional[BalanceEstimate]
    stored_file: Optional[str]

    # Status
    status: str
    error_message: Optional[str]

    # Config
    generate: Optional[GenerateFn]
    policy: Optional[RetryPolicy]
    sleep: Callable[[float], None]
    persist: bool
    data_dir: Optional[str]


# ============ NODE FUNCTIONS ============

def extract_fields_node(state: PipelineState) -> dict:
    """Node 1: Heuristic fields + account mapping (ALWAYS runs)."""
    profile = state.get("profile")
    enriched = [attach_extracted_details(email, profile) for email in state["emails"]]
    return {"enriched_emails": enriched, "status": "extracted"}


def gemini_batches_node(state: PipelineState) -> dict:
    """Node 2: Batched Gemini extraction. Never fails the run."""
    emails = state.get("enriched_emails", [])
    if not emails:
        return {"records": [], "processed_count": 0, "batches": [], "status": "empty"}

    outcomes = process_batches(
        emails,
        state.get("profile"),
        generate=state.get("generate"),
        policy=state.get("policy"),
        sleep=state.get("sleep") or time.sleep,
    )

    records, processed = collect_records(outcomes)

    return {
        "records": records,
        "processed_count": processed,
        "batches": [
            {
                "index": o.index,
                "state": o.state.value,
                "attempts": o.attempts,
                "emails": o.email_count,
                "records": len(o.records),
                "error": o.error,
            }
            for o in outcomes
        ],
        "status": "processed",
    }


def reconcile_balance_node(state: PipelineState) -> dict:
    """Node 3: Latest balance, records first then email text."""
    balance = reconcile_balance(state.get("enriched_emails", []), state.get("records", []))
    return {"balance": balance}


def persist_node(state: PipelineState) -> dict:
    """Node 4: Write the gemini_transactions file."""
    if not state.get("persist", True):
        return {"status": "ready"}

    profile = state.get("profile")
    stored = save_transaction_batch(
        state.get("records", []),
        state.get("processed_count", 0),
        balance=state.get("balance"),
        data_dir=state.get("data_dir"),
        userId=profile.user_id if profile else None,
        source=state.get("source"),
        fetchedEmails=len(state.get("emails", [])),
    )
    return {"stored_file": stored.filename, "status": "saved"}


# ============ BUILD PIPELINE ============

def build_pipeline():
    """Build and compile the LangGraph pipeline."""
    workflow = StateGraph(PipelineState)

    workflow.add_node("extract_fields", extract_fields_node)
    workflow.add_node("gemini_batches", gemini_batches_node)
    workflow.add_node("reconcile_balance", reconcile_balance_node)
    workflow.add_node("persist", persist_node)

    # Linear flow
    workflow.add_edge(START, "extract_fields")
    workflow.add_edge("extract_fields", "gemini_batches")
    workflow.add_edge("gemini_batches", "reconcile_balance")
    workflow.add_edge("reconcile_balance", "persist")
    workflow.add_edge("persist", END)

    return workflow.compile()


# Compiled pipeline instance
pipeline = build_pipeline()


def run_transaction_pipeline(
    emails: List[EmailRecord],
    profile: Optional[UserProfile],
    generate: Optional[GenerateFn] = None,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    source: Optional[str] = None,
    persist: bool = True,
    data_dir: Optional[str] = None
) -> Dict[str, Any]:
    """
    Run the full LangGraph transaction pipeline.

    Returns the final state with records, balance and stored filename.
    """
    initial_state: PipelineState = {
        "emails": emails,
        "profile": profile,
        "source": source,
        "enriched_emails": [],
        "records": [],
        "processed_count": 0,
        "batches": [],
        "balance": None,
        "stored_file": None,
        "status": "pending",
        "error_message": None,
        "generate": generate,
        "policy": policy,
        "sleep": sleep,
        "persist": persist,
        "data_dir": data_dir,
    }

    return pipeline.invoke(initial_state)


def pipeline_result_to_json(state: Dict[str, Any]) -> Dict[str, Any]:
    """Convert pipeline state to JSON for API response."""
    records = state.get("records", [])
    balance = state.get("balance")
    return {
        "status": state.get("status"),
        "fetched_emails": len(state.get("emails", [])),
        "processed_emails": state.get("processed_count", 0),
        "extracted_records": len(records),
        "batches": state.get("batches", []),
        "balance": balance.to_json_dict() if balance else None,
        "stored_file": state.get("stored_file"),
        "records": [r.to_json_dict() for r in records],
    }
