"""
Unit tests for AvailabilityReconciler

Booked (persisted) beats locked (advisory) beats available. Lock store outages
fail open: booked state still shows, locks are ignored and flagged unknown.
"""

from datetime import timedelta

import pytest

from src.platform.exception.exceptions import NotFoundError
from src.service.booking.app.dto import SeatState, UnavailableReason
from src.service.booking.domain.entity.booking_entity import PaymentMethod, PaymentStatus
from test.service.booking.unit.helpers import BookingSystem, make_showtime, requested, seats
from test.service.seat_lock.unit.helpers import UnavailableLockStore


@pytest.fixture
def system(clock) -> BookingSystem:
    return BookingSystem(
        make_showtime(
            start_time=clock.now + timedelta(hours=30), capacity=4, seat_layout={'A': 4}
        ),
        clock=clock,
    )


def states(seat_map) -> dict[str, SeatState]:
    return {status.seat.label: status.state for status in seat_map.seats}


@pytest.mark.unit
class TestSeatMap:
    @pytest.mark.asyncio
    async def test_booked_locked_available(self, system):
        # Given: A-1 paid by user 1, A-2 held by user 2
        await system.create_booking.execute(
            showtime_id=1,
            seats=requested('A-1'),
            user_id=1,
            payment_method=PaymentMethod.UPI,
            payment_status=PaymentStatus.PAID,
        )
        await system.seat_lock_manager.acquire(showtime_id=1, seats=seats('A-2'), user_id=2)

        # When
        seat_map = await system.reconciler.get_seat_map(showtime_id=1)

        # Then
        assert states(seat_map) == {
            'A-1': SeatState.BOOKED,
            'A-2': SeatState.LOCKED,
            'A-3': SeatState.AVAILABLE,
            'A-4': SeatState.AVAILABLE,
        }
        assert seat_map.available_seats == 3
        assert seat_map.lock_state_known is True

    @pytest.mark.asyncio
    async def test_booked_wins_over_lock(self, system):
        # Given: pending booking keeps its lock
        await system.create_booking.execute(
            showtime_id=1, seats=requested('A-1'), user_id=1, payment_method=PaymentMethod.UPI
        )

        seat_map = await system.reconciler.get_seat_map(showtime_id=1)

        assert states(seat_map)['A-1'] == SeatState.BOOKED
        assert seat_map.count(SeatState.LOCKED) == 0

    @pytest.mark.asyncio
    async def test_viewer_sees_own_holds(self, system):
        await system.seat_lock_manager.acquire(showtime_id=1, seats=seats('A-3'), user_id=5)

        seat_map = await system.reconciler.get_seat_map(showtime_id=1, viewer_id=5)

        held = [s for s in seat_map.seats if s.held_by_viewer]
        assert [s.seat.label for s in held] == ['A-3']

    @pytest.mark.asyncio
    async def test_lock_store_down_fails_open(self, clock):
        # Given
        system = BookingSystem(
            make_showtime(
                start_time=clock.now + timedelta(hours=30), capacity=4, seat_layout={'A': 4}
            ),
            clock=clock,
            lock_store=UnavailableLockStore(),
        )
        await system.create_booking.execute(
            showtime_id=1, seats=requested('A-1'), user_id=1, payment_method=PaymentMethod.UPI
        )

        # When
        seat_map = await system.reconciler.get_seat_map(showtime_id=1)

        # Then
        assert seat_map.lock_state_known is False
        assert states(seat_map)['A-1'] == SeatState.BOOKED
        assert seat_map.count(SeatState.AVAILABLE) == 3

    @pytest.mark.asyncio
    async def test_showtime_without_layout_lists_booked_and_locked_seats(self, clock):
        # Given: no published seat plan, A-1 paid by user 1, B-2 held by user 2
        system = BookingSystem(
            make_showtime(start_time=clock.now + timedelta(hours=30), seat_layout={}),
            clock=clock,
        )
        await system.create_booking.execute(
            showtime_id=1,
            seats=requested('A-1'),
            user_id=1,
            payment_method=PaymentMethod.UPI,
            payment_status=PaymentStatus.PAID,
        )
        await system.seat_lock_manager.acquire(showtime_id=1, seats=seats('B-2'), user_id=2)

        # When
        seat_map = await system.reconciler.get_seat_map(showtime_id=1)

        # Then
        assert [status.seat.label for status in seat_map.seats] == ['A-1', 'B-2']
        assert states(seat_map) == {'A-1': SeatState.BOOKED, 'B-2': SeatState.LOCKED}

    @pytest.mark.asyncio
    async def test_locks_outside_layout_are_not_listed(self, system):
        await system.seat_lock_manager.acquire(showtime_id=1, seats=seats('A-9'), user_id=2)

        seat_map = await system.reconciler.get_seat_map(showtime_id=1)

        assert 'A-9' not in states(seat_map)
        assert len(seat_map.seats) == 4

    @pytest.mark.asyncio
    async def test_unknown_showtime(self, system):
        with pytest.raises(NotFoundError):
            await system.reconciler.get_seat_map(showtime_id=404)


@pytest.mark.unit
class TestCheckRequestedSeats:
    @pytest.mark.asyncio
    async def test_reports_each_unavailable_seat(self, system):
        # Given
        await system.create_booking.execute(
            showtime_id=1,
            seats=requested('A-1'),
            user_id=1,
            payment_method=PaymentMethod.UPI,
            payment_status=PaymentStatus.PAID,
        )
        await system.seat_lock_manager.acquire(showtime_id=1, seats=seats('A-2'), user_id=2)

        # When
        result = await system.reconciler.check_requested_seats(
            showtime_id=1, seats=seats('A-1', 'A-2', 'A-3'), user_id=3
        )

        # Then
        assert result.available is False
        assert [(u.seat.label, u.reason) for u in result.unavailable_seats] == [
            ('A-1', UnavailableReason.BOOKED),
            ('A-2', UnavailableReason.LOCKED),
        ]

    @pytest.mark.asyncio
    async def test_own_lock_counts_as_available(self, system):
        await system.seat_lock_manager.acquire(showtime_id=1, seats=seats('A-2'), user_id=2)

        result = await system.reconciler.check_requested_seats(
            showtime_id=1, seats=seats('A-2'), user_id=2
        )

        assert result.available is True
