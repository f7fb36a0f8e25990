"""Tests for the batched extraction loop with retry and backoff."""

from finmail.exceptions import RateLimitError, ServiceUnavailableError
from finmail.services.email_pipeline import (
    BatchState,
    RetryPolicy,
    chunk,
    process_batch,
    process_batches,
    run_batch_pipeline,
)
from finmail.services.gemini_extractor import ErrorClass

RESPONSE = 'Here is the result: [{"email_id": "msg1", "txn_date": "2024-01-05", "txn_amount": 500}] Thanks.'


class FakeGenerate:
    """Replays a script of exceptions and responses."""

    def __init__(self, *script):
        self.script = list(script)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, BaseException):
            raise step
        return step


def test_chunk_sizes(make_email):
    emails = [make_email(id=str(i)) for i in range(23)]
    assert [len(b) for b in chunk(emails)] == [10, 10, 3]
    assert chunk([]) == []


def test_backoff_is_linear_and_capped():
    policy = RetryPolicy()
    assert policy.backoff(ErrorClass.RATE_LIMITED, 1) == 10
    assert policy.backoff(ErrorClass.RATE_LIMITED, 3) == 30
    assert policy.backoff(ErrorClass.RATE_LIMITED, 9) == 60
    assert policy.backoff(ErrorClass.UNAVAILABLE, 2) == 10
    assert policy.backoff(ErrorClass.UNAVAILABLE, 7) == 30


def test_rate_limit_then_success_without_duplicates(make_email, profile):
    generate = FakeGenerate(RateLimitError("429"), RateLimitError("429"), RESPONSE)
    sleeps = []

    outcome = process_batch(0, [make_email()], profile, generate, RetryPolicy(), sleeps.append)

    assert outcome.state == BatchState.SUCCEEDED
    assert outcome.attempts == 3
    assert len(outcome.records) == 1
    assert sleeps == [10, 20]
    assert generate.prompts[0] == generate.prompts[2]


def test_unavailable_backoff(make_email):
    generate = FakeGenerate(ServiceUnavailableError("503"), RESPONSE)
    sleeps = []
    outcome = process_batch(0, [make_email()], None, generate, RetryPolicy(), sleeps.append)
    assert outcome.state == BatchState.SUCCEEDED
    assert sleeps == [5]


def test_retries_exhausted(make_email):
    generate = FakeGenerate(RateLimitError("quota exceeded"))
    sleeps = []
    outcome = process_batch(0, [make_email()], None, generate, RetryPolicy(), sleeps.append)

    assert outcome.state == BatchState.ABANDONED
    assert outcome.attempts == 4
    assert sleeps == [10, 20, 30]
    assert outcome.records == []


def test_fatal_error_abandons_immediately(make_email):
    generate = FakeGenerate(ValueError("invalid api key"))
    sleeps = []
    outcome = process_batch(0, [make_email()], None, generate, RetryPolicy(), sleeps.append)

    assert outcome.state == BatchState.ABANDONED
    assert outcome.attempts == 1
    assert sleeps == []


def test_failed_batch_does_not_stop_run(make_email):
    emails = [make_email(id=f"msg{i}") for i in range(12)]
    generate = FakeGenerate(ValueError("boom"), RESPONSE)
    sleeps = []

    records, processed = run_batch_pipeline(emails, None, generate, RetryPolicy(), sleeps.append)

    assert processed == 2
    assert len(records) == 1
    assert sleeps == []


def test_inter_batch_delay_between_successes(make_email):
    emails = [make_email(id=f"msg{i}") for i in range(25)]
    sleeps = []
    outcomes = process_batches(emails, None, FakeGenerate(RESPONSE), RetryPolicy(), sleeps.append)

    assert [o.state for o in outcomes] == [BatchState.SUCCEEDED] * 3
    assert sleeps == [2, 2]


def test_empty_input(make_email):
    records, processed = run_batch_pipeline([], None, FakeGenerate(RESPONSE), RetryPolicy(), lambda s: None)
    assert records == []
    assert processed == 0
