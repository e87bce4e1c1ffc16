"""
Multi-touch attribution for lead touchpoints.

Position-based model with time decay: first and last touches get fixed
shares, interior touches split the remainder with later ones discounted,
each share is weighted by touchpoint quality and the result is
renormalized so a lead's touchpoints sum to 100%.
"""

import logging
from typing import Iterable, List

from .models import AttributionModel, Touchpoint, round_half_up

logger = logging.getLogger(__name__)

FIRST_TOUCH_SHARE = 30.0
LAST_TOUCH_SHARE = 30.0
INTERIOR_SHARE = 40.0
INTERIOR_DECAY = 0.3

TOUCHPOINT_QUALITY = {
    "demo_request": 1.5,
    "whatsapp_contact": 1.4,
    "form_submit": 1.3,
    "content_download": 1.2,
    "email_click": 1.1,
    "blog_read": 1.05,
    "email_open": 1.0,
    "social_engagement": 0.9,
    "website_visit": 0.8,
}
DEFAULT_TOUCHPOINT_QUALITY = 1.0

TOUCHPOINT_BASE_ROI = {
    "demo_request": 450,
    "whatsapp_contact": 380,
    "form_submit": 320,
    "content_download": 250,
    "email_click": 180,
    "blog_read": 150,
    "email_open": 120,
    "social_engagement": 100,
    "website_visit": 80,
}
DEFAULT_BASE_ROI = 100

CONTRIBUTION_LABELS = [
    (30, "Major Impact"),
    (20, "Significant"),
    (10, "Moderate"),
    (5, "Minor"),
]
MINIMAL_CONTRIBUTION = "Minimal"


def position_weights(count: int) -> List[float]:
    """
    Raw position shares for `count` time-ordered touchpoints.

    With two touchpoints there is no interior, so the interior share goes
    to the last touch (30/70).
    """
    if count <= 0:
        return []
    if count == 1:
        return [100.0]
    if count == 2:
        return [FIRST_TOUCH_SHARE, LAST_TOUCH_SHARE + INTERIOR_SHARE]

    interior = INTERIOR_SHARE / (count - 2)
    weights = [FIRST_TOUCH_SHARE]
    for index in range(1, count - 1):
        weights.append(interior * (1 - (index / count) * INTERIOR_DECAY))
    weights.append(LAST_TOUCH_SHARE)
    return weights


def contribution_label(share: float) -> str:
    for threshold, label in CONTRIBUTION_LABELS:
        if share >= threshold:
            return label
    return MINIMAL_CONTRIBUTION


def calculate_attribution(touchpoints: Iterable[Touchpoint]) -> List[AttributionModel]:
    """
    Distribute conversion credit across a lead's touchpoints.

    Args:
        touchpoints: The lead's touchpoints in any order

    Returns:
        One AttributionModel per touchpoint in time order, attribution
        values summing to 100 (empty list for no touchpoints)
    """
    ordered = sorted(touchpoints, key=lambda tp: tp.timestamp)
    if not ordered:
        return []

    raw = [
        weight * TOUCHPOINT_QUALITY.get(tp.type, DEFAULT_TOUCHPOINT_QUALITY)
        for weight, tp in zip(position_weights(len(ordered)), ordered)
    ]
    total = sum(raw)

    models = []
    for tp, value in zip(ordered, raw):
        share = value / total * 100
        base_roi = TOUCHPOINT_BASE_ROI.get(tp.type, DEFAULT_BASE_ROI)
        models.append(AttributionModel(
            touchpoint_id=tp.id,
            touchpoint_type=tp.type,
            timestamp=tp.timestamp,
            attribution_value=round(share, 2),
            contribution=contribution_label(share),
            roi=round_half_up(base_roi * share / 100),
        ))

    logger.debug(f"Attributed {len(models)} touchpoints")
    return models
