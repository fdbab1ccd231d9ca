"""
EndpointWeightAdjustor: scheduled job that rescores every enabled endpoint.

Endpoints are compared only with peers of the same network family; the
staleness check uses the highest block reported within that family.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from ..scheduler.entities import Context, EndpointWindow, JobKind, JobScope, utcnow
from ..scheduler.persistence import PersistenceAdapter
from .scoring import compute_score, compute_weight


logger = logging.getLogger(__name__)

HISTORY_WINDOW = timedelta(days=100)


@dataclass(frozen=True)
class WeightChange:
    """Outcome of scoring one endpoint."""

    endpoint_id: int
    endpoint_name: str
    network_family: str
    score: Decimal
    previous_weight: int
    weight: int


def group_by_family(windows: list[EndpointWindow]) -> dict[str, list[EndpointWindow]]:
    """Group endpoints by network family, keeping store order within groups."""
    groups: dict[str, list[EndpointWindow]] = {}
    for item in windows:
        groups.setdefault(item.endpoint.network_family, []).append(item)
    return groups


class EndpointWeightAdjustor:
    """
    Generic job recomputing endpoint weights from request history.

    Reads all windows and writes all updates on one store session.
    """

    kind = JobKind.GENERIC

    def __init__(
        self,
        persistence: PersistenceAdapter,
        window: timedelta = HISTORY_WINDOW,
        clock: Callable[[], datetime] = utcnow,
        name: str = "RPC Weight Algorithm",
    ):
        self.persistence = persistence
        self.window = window
        self.clock = clock
        self.name = name

    def execute(self, context: Context, scope: Optional[JobScope] = None) -> None:
        changes = self.adjust()
        changed = sum(1 for c in changes if c.weight != c.previous_weight)
        logger.info(f"[{context}] Rescored {len(changes)} endpoints, {changed} weights changed")

    def adjust(self) -> list[WeightChange]:
        """Score every enabled endpoint and persist weight and score."""
        since = self.clock() - self.window
        changes = []

        with self.persistence.session() as conn:
            windows = self.persistence.load_endpoint_windows(since, conn=conn)

            for family, members in group_by_family(windows).items():
                max_block = max(m.endpoint.latest_block_number for m in members)

                for member in members:
                    endpoint = member.endpoint
                    score = compute_score(
                        member.window.successful_requests,
                        member.window.total_requests,
                    )
                    weight = compute_weight(
                        score=score,
                        current_weight=endpoint.weight,
                        previous_score=endpoint.last_score,
                        latest_block_number=endpoint.latest_block_number,
                        group_max_block=max_block,
                    )
                    self.persistence.update_endpoint_weight(endpoint.id, weight, score, conn=conn)

                    if weight != endpoint.weight:
                        logger.debug(
                            f"{family}/{endpoint.name}: score={score}, "
                            f"weight {endpoint.weight} -> {weight}"
                        )
                    changes.append(
                        WeightChange(
                            endpoint_id=endpoint.id,
                            endpoint_name=endpoint.name,
                            network_family=family,
                            score=score,
                            previous_weight=endpoint.weight,
                            weight=weight,
                        )
                    )

        return changes
