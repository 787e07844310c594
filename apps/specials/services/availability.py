"""Derived availability: how many claims a special has left."""


class Unbounded:
    """Sentinel for specials without a capacity limit."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNBOUNDED'

    def __bool__(self):
        return True


UNBOUNDED = Unbounded()


def claims_left(max_claims_total, active_claim_count):
    """
    Remaining capacity for a special.

    Args:
        max_claims_total: Capacity, or None when unbounded
        active_claim_count: Number of claimed/redeemed ledger rows

    Returns:
        UNBOUNDED, or a non-negative int
    """
    if max_claims_total is None:
        return UNBOUNDED
    return max(0, max_claims_total - active_claim_count)


def is_sold_out(max_claims_total, active_claim_count):
    if max_claims_total is None:
        return False
    return active_claim_count >= max_claims_total


def claims_left_for_display(value):
    """JSON-friendly rendering: unbounded becomes null."""
    return None if value is UNBOUNDED else value
