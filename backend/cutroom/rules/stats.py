"""
Aggregate project statistics for the admin overview.
"""

from dataclasses import asdict, dataclass
from typing import Iterable

from .constants import PRIORITY_URGENT, STATUS_NEW, TERMINAL_STATUSES


@dataclass(frozen=True)
class ProjectStats:
    total_projects: int
    active_projects: int
    new_requests: int
    urgent_attention: int

    def to_dict(self) -> dict:
        return asdict(self)


def compute_stats(projects: Iterable) -> ProjectStats:
    """
    Count projects for the admin dashboard.

    "Active" means not in a terminal status. Urgent projects only need
    attention while they are active.
    """
    total = active = new = urgent = 0
    for project in projects:
        total += 1
        if project.status == STATUS_NEW:
            new += 1
        if project.status in TERMINAL_STATUSES:
            continue
        active += 1
        if project.priority == PRIORITY_URGENT:
            urgent += 1

    return ProjectStats(
        total_projects=total,
        active_projects=active,
        new_requests=new,
        urgent_attention=urgent,
    )
