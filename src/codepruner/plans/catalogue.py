"""Plan definitions.

Each plan fixes how long raw usage events are retained and how many
distinct route patterns a project may track.

Enforcement philosophy:
- Unknown plan name → free limits
- max_distinct_routes of None → unbounded
- Plans are looked up per decision, so an upgrade applies to the next request
"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_PLAN = "free"


@dataclass(frozen=True)
class Plan:
    """Limits the pipeline reads from a tenant's plan."""
    name: str
    retention_days: int
    max_distinct_routes: Optional[int] = None

    @property
    def is_route_limited(self) -> bool:
        return self.max_distinct_routes is not None


# ── Plans ──
PLANS: dict[str, Plan] = {
    "free": Plan(name="free", retention_days=30, max_distinct_routes=50),
    "pro": Plan(name="pro", retention_days=90, max_distinct_routes=None),
}


def resolve_plan(name: Optional[str]) -> Plan:
    """Return the plan for ``name``, falling back to the free plan."""
    return PLANS.get(name or DEFAULT_PLAN, PLANS[DEFAULT_PLAN])
