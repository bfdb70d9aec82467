"""Endpoint lifecycle classification."""

LOOKBACK_DAYS = 60
ACTIVE_THRESHOLD = 5

DEAD = "dead"
RISKY = "risky"
ACTIVE = "active"

STATUSES: tuple[str, ...] = (DEAD, RISKY, ACTIVE)

# Default list order: dead first, then risky, then active.
STATUS_PRIORITY: dict[str, int] = {DEAD: 0, RISKY: 1, ACTIVE: 2}


def classify(call_count: int) -> str:
    """
    Classify an endpoint by its call count in the lookback window.

    0 → "dead"
    1..4 → "risky"
    5+ → "active"
    """
    if call_count <= 0:
        return DEAD
    if call_count < ACTIVE_THRESHOLD:
        return RISKY
    return ACTIVE
