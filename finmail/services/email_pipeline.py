"""
Batched Gemini extraction loop.

Each batch moves through:
    pending -> in_flight -> succeeded | retrying | abandoned

Rate limits and service outages back off linearly and retry up to
MAX_RETRIES; any other failure abandons the batch. A failed batch never
stops the run: the caller always gets whatever records were collected.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from finmail import config
from finmail.models.email import EmailRecord
from finmail.models.profile import UserProfile
from finmail.services.gemini_extractor import ErrorClass, GenerateFn, GeminiClient, classify_error
from finmail.services.prompt_builder import BATCH_SIZE, build_prompt
from finmail.services.response_parser import Record, parse_ai_response

logger = logging.getLogger(__name__)


class BatchState(str, enum.Enum):
    """Lifecycle of one batch."""
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    ABANDONED = "abandoned"


@dataclass
class RetryPolicy:
    """Linear backoff schedules for the two transient error classes."""
    max_retries: int = config.MAX_RETRIES
    rate_limit_base_delay: float = config.RATE_LIMIT_BASE_DELAY
    rate_limit_max_delay: float = config.RATE_LIMIT_MAX_DELAY
    unavailable_base_delay: float = config.UNAVAILABLE_BASE_DELAY
    unavailable_max_delay: float = config.UNAVAILABLE_MAX_DELAY
    inter_batch_delay: float = config.INTER_BATCH_DELAY

    def backoff(self, error_class: ErrorClass, retry_count: int) -> float:
        """Delay before retry number retry_count (1-based)."""
        if error_class == ErrorClass.RATE_LIMITED:
            return min(retry_count * self.rate_limit_base_delay, self.rate_limit_max_delay)
        return min(retry_count * self.unavailable_base_delay, self.unavailable_max_delay)


@dataclass
class BatchOutcome:
    """Terminal result of one batch."""
    index: int
    email_ids: List[str]
    state: BatchState = BatchState.PENDING
    attempts: int = 0
    records: List[Record] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def email_count(self) -> int:
        return len(self.email_ids)


def chunk(emails: List[EmailRecord], size: int = BATCH_SIZE) -> List[List[EmailRecord]]:
    return [emails[i:i + size] for i in range(0, len(emails), size)]


def process_batch(
    index: int,
    batch: List[EmailRecord],
    profile: Optional[UserProfile],
    generate: GenerateFn,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep
) -> BatchOutcome:
    """
    Drive one batch to a terminal state.

    Only the response of the successful attempt is parsed, so failed
    attempts can never contribute records.
    """
    outcome = BatchOutcome(index=index, email_ids=[e.id for e in batch])
    prompt = build_prompt(batch, profile)
    retry_count = 0

    while True:
        outcome.state = BatchState.IN_FLIGHT
        outcome.attempts += 1
        try:
            response = generate(prompt)
        except Exception as e:
            error_class = classify_error(e)
            outcome.error = f"{error_class.value}: {e}"

            if error_class == ErrorClass.FATAL:
                outcome.state = BatchState.ABANDONED
                logger.error("❌ Batch %d abandoned: %s", index, e)
                return outcome

            if retry_count >= policy.max_retries:
                outcome.state = BatchState.ABANDONED
                logger.error("❌ Batch %d abandoned after %d retries: %s", index, retry_count, e)
                return outcome

            retry_count += 1
            delay = policy.backoff(error_class, retry_count)
            outcome.state = BatchState.RETRYING
            logger.warning(
                "⏳ Batch %d %s, retry %d/%d in %.0fs",
                index, error_class.value, retry_count, policy.max_retries, delay
            )
            sleep(delay)
            continue

        outcome.records = parse_ai_response(response, batch, profile)
        outcome.state = BatchState.SUCCEEDED
        outcome.error = None
        logger.info("✅ Batch %d: %d records from %d emails", index, len(outcome.records), len(batch))
        return outcome


def process_batches(
    emails: List[EmailRecord],
    profile: Optional[UserProfile],
    generate: Optional[GenerateFn] = None,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep
) -> List[BatchOutcome]:
    """Run every batch in order and return their terminal outcomes."""
    if generate is None:
        generate = GeminiClient()
    policy = policy or RetryPolicy()

    batches = chunk(emails)
    logger.info("🤖 Processing %d emails in %d batches", len(emails), len(batches))

    outcomes = []
    for index, batch in enumerate(batches):
        outcome = process_batch(index, batch, profile, generate, policy, sleep)
        outcomes.append(outcome)
        if outcome.state == BatchState.SUCCEEDED and index < len(batches) - 1:
            sleep(policy.inter_batch_delay)

    return outcomes


def run_batch_pipeline(
    emails: List[EmailRecord],
    profile: Optional[UserProfile],
    generate: Optional[GenerateFn] = None,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep
) -> Tuple[List[Record], int]:
    """
    Extract records from all emails in batches of BATCH_SIZE.

    Args:
        emails: Emails to process, in order
        profile: User profile for prompt identifiers and passwords
        generate: Text-generation function (defaults to GeminiClient)
        policy: Retry/backoff settings
        sleep: Injected sleep, for tests

    Returns:
        Tuple of (records, processed_count) where processed_count is the
        number of emails in batches that succeeded
    """
    return collect_records(process_batches(emails, profile, generate, policy, sleep))


def collect_records(outcomes: List[BatchOutcome]) -> Tuple[List[Record], int]:
    """Records and email count from succeeded batches only."""
    records: List[Record] = []
    processed_count = 0
    for outcome in outcomes:
        if outcome.state == BatchState.SUCCEEDED:
            records.extend(outcome.records)
            processed_count += outcome.email_count
    return records, processed_count
