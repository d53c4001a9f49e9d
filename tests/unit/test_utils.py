"""Unit tests for retry, events, log redaction and date helpers"""

from datetime import date, datetime, timedelta, timezone

import pytest

from tropipay_wallet.domain.exceptions import NetworkError, ValidationError
from tropipay_wallet.infrastructure.observability.logging import REDACTED, redact
from tropipay_wallet.utils.date_utils import expires_at, parse_datetime, to_iso_date
from tropipay_wallet.utils.events import EventEmitter
from tropipay_wallet.utils.retry import retry_async


async def test_retry_until_success():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise NetworkError("connection reset")
        return "ok"

    assert await retry_async(flaky, max_attempts=3, backoff_base=0) == "ok"
    assert len(attempts) == 3


async def test_retry_gives_up_after_max_attempts():
    attempts = []

    async def always_down():
        attempts.append(1)
        raise NetworkError("down")

    with pytest.raises(NetworkError):
        await retry_async(always_down, max_attempts=2, backoff_base=0)
    assert len(attempts) == 2


async def test_retry_skips_non_retryable_errors():
    attempts = []

    async def invalid():
        attempts.append(1)
        raise ValidationError("bad input")

    with pytest.raises(ValidationError):
        await retry_async(invalid, backoff_base=0)
    assert len(attempts) == 1


def test_event_emitter_isolates_failing_listeners():
    events = EventEmitter()
    received = []

    def broken(payload):
        raise RuntimeError("listener bug")

    events.on("transfer_completed", broken)
    events.on("transfer_completed", received.append)

    assert events.emit("transfer_completed", {"id": "TRF-1"}) == 2
    assert received == [{"id": "TRF-1"}]

    events.off("transfer_completed", broken)
    assert events.listener_count("transfer_completed") == 1
    assert events.emit("unknown") == 0


def test_redact_masks_credentials_and_codes():
    payload = {
        "client_id": "visible",
        "client_secret": "hidden",
        "headers": {"Authorization": "Bearer abc", "X-DEVICE-ID": "device"},
        "transfer": [{"amount": 1000, "smsCode": "123456", "googleAuthCode": "654321"}],
        "access_token": "abc",
    }

    redacted = redact(payload)

    assert redacted["client_id"] == "visible"
    assert redacted["client_secret"] == REDACTED
    assert redacted["access_token"] == REDACTED
    assert redacted["headers"] == {"Authorization": REDACTED, "X-DEVICE-ID": "device"}
    assert redacted["transfer"] == [{"amount": 1000, "smsCode": REDACTED, "googleAuthCode": REDACTED}]
    # Input is left untouched
    assert payload["client_secret"] == "hidden"


def test_date_helpers():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    assert expires_at(3600, now=now) == now + timedelta(hours=1)
    assert parse_datetime("2026-10-01T10:00:00Z") == datetime(2026, 10, 1, 10, tzinfo=timezone.utc)
    assert parse_datetime("yesterday") is None
    assert to_iso_date(datetime(2026, 3, 4, 15, 30)) == "2026-03-04"
    assert to_iso_date(date(2026, 3, 4)) == "2026-03-04"
    assert to_iso_date(None) is None
