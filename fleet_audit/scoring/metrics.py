"""
Repository metrics — alert counts and mean time to resolve.
"""

from __future__ import annotations

from typing import Iterable

from ..models import Alert, RepositoryMetrics


def compute_repository_metrics(*collections: Iterable[Alert]) -> RepositoryMetrics:
    """
    Derive counts and MTTR from a repository's alert collections.

    An alert counts as open when its state is open or it has no resolution
    timestamp. MTTR averages (resolved - created) in days over alerts that
    carry a resolution timestamp, and is 0 when none do.
    """
    alerts = [a for collection in collections for a in collection]
    total = len(alerts)
    open_count = sum(1 for a in alerts if a.is_open)

    durations = [d for d in (a.resolution_days for a in alerts) if d is not None]
    mttr = sum(durations) / len(durations) if durations else 0.0

    return RepositoryMetrics(
        total_alerts=total,
        open_alerts=open_count,
        closed_alerts=total - open_count,
        mean_time_to_resolve_days=mttr,
    )
