"""Unit tests for payment status parsing and the transition table."""

from datetime import date

import pytest

from app.core.errors import IllegalTransition
from app.models.enums import PaymentStatus
from app.services.payment_service import billing_period, check_transition


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("paid", PaymentStatus.PAID),
        ("PAID", PaymentStatus.PAID),
        (" Processing ", PaymentStatus.PROCESSING),
        ("unpaid", PaymentStatus.UNPAID),
        (0, PaymentStatus.UNPAID),
        (1, PaymentStatus.PROCESSING),
        (2, PaymentStatus.PAID),
        ("2", PaymentStatus.PAID),
        (PaymentStatus.PROCESSING, PaymentStatus.PROCESSING),
    ],
)
def test_parse_accepts_names_and_legacy_codes(raw, expected):
    assert PaymentStatus.parse(raw) is expected


@pytest.mark.parametrize("raw", ["settled", 3, -1, "", True])
def test_parse_rejects_unknown(raw):
    with pytest.raises(ValueError):
        PaymentStatus.parse(raw)


def test_legacy_code_round_trips():
    for status in PaymentStatus:
        assert PaymentStatus.parse(status.legacy_code) is status


@pytest.mark.parametrize(
    "current,requested",
    [
        (PaymentStatus.UNPAID, PaymentStatus.PROCESSING),
        (PaymentStatus.PROCESSING, PaymentStatus.PAID),
        (PaymentStatus.UNPAID, PaymentStatus.PAID),
    ],
)
def test_allowed_transitions(current, requested):
    assert check_transition(current, requested) is True


@pytest.mark.parametrize(
    "current,requested",
    [
        (PaymentStatus.PAID, PaymentStatus.UNPAID),
        (PaymentStatus.PAID, PaymentStatus.PROCESSING),
        (PaymentStatus.PROCESSING, PaymentStatus.UNPAID),
    ],
)
def test_illegal_transitions(current, requested):
    with pytest.raises(IllegalTransition):
        check_transition(current, requested)


def test_same_status_is_a_no_op():
    for status in PaymentStatus:
        assert check_transition(status, status) is False


def test_billing_period_is_calendar_month():
    assert billing_period(date(2025, 3, 31)) == "2025-03"
    assert billing_period(date(2025, 12, 1)) == "2025-12"
