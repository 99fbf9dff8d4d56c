"""Cancellation refund tiers, keyed on hours left before the showtime starts"""

# (minimum hours before showtime, refund percentage), checked top-down
REFUND_TIERS: tuple[tuple[float, int], ...] = (
    (24, 100),
    (12, 75),
    (2, 50),
)


def refund_percentage(*, hours_until_showtime: float) -> int:
    for min_hours, percentage in REFUND_TIERS:
        if hours_until_showtime >= min_hours:
            return percentage
    return 0


def calculate_refund_amount(*, total_amount: int, hours_until_showtime: float) -> int:
    # Rounded down to the currency unit
    return total_amount * refund_percentage(hours_until_showtime=hours_until_showtime) // 100
