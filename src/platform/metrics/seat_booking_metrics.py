from prometheus_client import Counter, Histogram


class SeatBookingMetrics:
    """
    Seat contention and booking lifecycle metrics

    Labels are kept to low-cardinality values; showtime ids are deliberately not
    used as labels.
    """

    def __init__(self) -> None:
        # ========== Seat Lock ==========
        self.seat_lock_acquire_requests = Counter(
            'seat_lock_acquire_requests_total',
            'Seat lock acquire requests',
            ['result'],  # result: success/contested/bypassed
        )

        self.seat_lock_seats = Counter(
            'seat_lock_seats_total',
            'Seats touched by lock operations',
            ['operation'],  # operation: acquired/refreshed/released/compensated
        )

        self.lock_store_failures = Counter(
            'lock_store_failures_total',
            'Lock store calls that failed and were degraded',
            ['operation'],
        )

        self.seat_lock_acquire_duration = Histogram(
            'seat_lock_acquire_duration_seconds',
            'Seat lock acquire latency',
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
        )

        # ========== Booking ==========
        self.booking_creations = Counter(
            'booking_creations_total',
            'Booking creation attempts',
            ['result'],  # result: created/<rejection code>
        )

        self.booking_transitions = Counter(
            'booking_transitions_total',
            'Booking payment status transitions',
            ['from_status', 'to_status'],
        )

        self.side_effect_failures = Counter(
            'booking_side_effect_failures_total',
            'Notification or broadcast deliveries that failed',
            ['channel'],  # channel: notification/broadcast
        )

    def record_acquire(self, *, result: str, duration: float) -> None:
        self.seat_lock_acquire_requests.labels(result=result).inc()
        self.seat_lock_acquire_duration.observe(duration)

    def record_seats(self, *, operation: str, count: int) -> None:
        if count:
            self.seat_lock_seats.labels(operation=operation).inc(count)

    def record_lock_store_failure(self, *, operation: str) -> None:
        self.lock_store_failures.labels(operation=operation).inc()

    def record_booking_creation(self, *, result: str) -> None:
        self.booking_creations.labels(result=result).inc()

    def record_transition(self, *, from_status: str, to_status: str) -> None:
        self.booking_transitions.labels(from_status=from_status, to_status=to_status).inc()

    def record_side_effect_failure(self, *, channel: str) -> None:
        self.side_effect_failures.labels(channel=channel).inc()


# Prometheus collectors register globally, so one instance per process
metrics = SeatBookingMetrics()
