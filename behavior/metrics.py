"""
Engagement metrics roll-up over historical sessions.
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from .models import ActionType, EngagementMetrics, Session, utc_now

TOP_N = 5


def compute_engagement_metrics(
    sessions: Iterable[Session],
    now: Optional[datetime] = None,
) -> EngagementMetrics:
    """
    Summarize sessions into engagement metrics.

    Open sessions are measured up to `now`. Conversion rate is the share of
    sessions containing at least one form_submit.

    Args:
        sessions: Archived sessions plus the current one, if any
        now: Reference time for open sessions

    Returns:
        EngagementMetrics (all zero for no sessions)
    """
    sessions = list(sessions)
    if not sessions:
        return EngagementMetrics()

    now = now or utc_now()
    total = len(sessions)

    page_counts: Counter = Counter()
    service_counts: Counter = Counter()
    hour_counts: Counter = Counter()
    conversions = 0

    for session in sessions:
        for action in session.actions:
            hour_counts[action.timestamp.hour] += 1
            if action.type == ActionType.PAGE_VIEW:
                page_counts[action.page] += 1
            elif action.type == ActionType.SERVICE_VIEW:
                service = action.details.get("serviceName")
                if service:
                    service_counts[service] += 1
        if any(a.type == ActionType.FORM_SUBMIT for a in session.actions):
            conversions += 1

    return EngagementMetrics(
        total_sessions=total,
        avg_session_duration=sum(s.duration_seconds(now) for s in sessions) / total,
        avg_actions_per_session=sum(len(s.actions) for s in sessions) / total,
        top_pages=[{"page": p, "visits": c} for p, c in page_counts.most_common(TOP_N)],
        top_services=[{"service": s, "views": c} for s, c in service_counts.most_common(TOP_N)],
        peak_hours=[{"hour": h, "activity": c} for h, c in hour_counts.most_common(TOP_N)],
        conversion_rate=conversions / total * 100,
    )
