from datetime import datetime, timedelta, timezone

import pytest
import uuid_utils

from src.platform.exception.exceptions import DomainError
from src.service.booking.domain.entity.booking_entity import (
    ALLOWED_TRANSITIONS,
    Booking,
    BookingSeat,
    CancellationWindowClosedError,
    PaymentMethod,
    PaymentStatus,
)


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_booking(status: PaymentStatus = PaymentStatus.PENDING) -> Booking:
    booking = Booking.create(
        id=uuid_utils.uuid7(),
        user_id=1,
        showtime_id=1,
        seats=[BookingSeat('A', 1, 250), BookingSeat('A', 2, 300)],
        payment_method=PaymentMethod.UPI,
        now=NOW,
    )
    booking.payment_status = status
    return booking


@pytest.mark.unit
class TestBookingCreate:
    def test_total_is_sum_of_seat_prices(self):
        booking = make_booking()

        assert booking.total_amount == 550
        assert booking.seat_count == 2
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.booking_date == NOW
        assert booking.updated_at == NOW

    def test_requires_seats(self):
        with pytest.raises(DomainError):
            Booking.create(
                id=uuid_utils.uuid7(),
                user_id=1,
                showtime_id=1,
                seats=[],
                payment_method=PaymentMethod.UPI,
                now=NOW,
            )

    def test_rejects_duplicate_seats(self):
        with pytest.raises(DomainError):
            Booking.create(
                id=uuid_utils.uuid7(),
                user_id=1,
                showtime_id=1,
                seats=[BookingSeat('A', 1, 250), BookingSeat('A', 1, 250)],
                payment_method=PaymentMethod.UPI,
                now=NOW,
            )

    @pytest.mark.parametrize(
        'status', [PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.REFUNDED]
    )
    def test_only_pending_or_paid_on_create(self, status):
        with pytest.raises(DomainError):
            Booking.create(
                id=uuid_utils.uuid7(),
                user_id=1,
                showtime_id=1,
                seats=[BookingSeat('A', 1, 250)],
                payment_method=PaymentMethod.UPI,
                now=NOW,
                payment_status=status,
            )


@pytest.mark.unit
class TestBookingTransitions:
    def test_pending_to_paid(self):
        later = NOW + timedelta(minutes=3)

        paid = make_booking().mark_as_paid(now=later)

        assert paid.payment_status == PaymentStatus.PAID
        assert paid.updated_at == later
        assert paid.booking_date == NOW

    def test_transition_returns_new_instance(self):
        booking = make_booking()

        booking.mark_as_paid(now=NOW)

        assert booking.payment_status == PaymentStatus.PENDING

    @pytest.mark.parametrize('status', [PaymentStatus.CANCELLED, PaymentStatus.REFUNDED])
    def test_terminal_statuses_are_final(self, status):
        booking = make_booking(status)

        with pytest.raises(DomainError):
            booking.mark_as_paid(now=NOW)
        with pytest.raises(DomainError):
            booking.mark_as_failed(now=NOW)

    def test_refund_requires_paid(self):
        with pytest.raises(DomainError):
            make_booking().mark_as_refunded(now=NOW)

    def test_transition_table_has_no_way_back_to_pending(self):
        assert all(PaymentStatus.PENDING not in targets for targets in ALLOWED_TRANSITIONS.values())

    @pytest.mark.parametrize(
        'current, new, returned',
        [
            (PaymentStatus.PENDING, PaymentStatus.PAID, 0),
            (PaymentStatus.PENDING, PaymentStatus.FAILED, 2),
            (PaymentStatus.PENDING, PaymentStatus.CANCELLED, 2),
            (PaymentStatus.PAID, PaymentStatus.CANCELLED, 2),
            (PaymentStatus.PAID, PaymentStatus.REFUNDED, 2),
            (PaymentStatus.FAILED, PaymentStatus.CANCELLED, 0),
        ],
    )
    def test_seats_returned_by(self, current, new, returned):
        assert make_booking(current).seats_returned_by(new) == returned


@pytest.mark.unit
class TestBookingCancel:
    def test_cancel_before_cutoff(self):
        cancelled = make_booking(PaymentStatus.PAID).cancel(
            showtime_start=NOW + timedelta(hours=5), now=NOW, cutoff_hours=2
        )

        assert cancelled.payment_status == PaymentStatus.CANCELLED
        assert cancelled.cancelled_at == NOW

    def test_cancel_inside_cutoff(self):
        with pytest.raises(CancellationWindowClosedError) as exc_info:
            make_booking(PaymentStatus.PAID).cancel(
                showtime_start=NOW + timedelta(hours=1), now=NOW, cutoff_hours=2
            )

        assert exc_info.value.hours_until_showtime == pytest.approx(1)

    def test_cancel_exactly_at_cutoff_is_allowed(self):
        cancelled = make_booking().cancel(
            showtime_start=NOW + timedelta(hours=2), now=NOW, cutoff_hours=2
        )

        assert cancelled.payment_status == PaymentStatus.CANCELLED

    def test_cancel_twice(self):
        with pytest.raises(DomainError):
            make_booking(PaymentStatus.CANCELLED).cancel(
                showtime_start=NOW + timedelta(hours=30), now=NOW, cutoff_hours=2
            )
