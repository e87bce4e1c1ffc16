"""
Lead Scoring CLI.

Usage:
    python -m lead_scoring.cli --file data/sample_leads.json
    python -m lead_scoring.cli --file data/sample_leads.json --now 2025-10-25T12:00:00Z --attribution
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from behavior.models import parse_timestamp
from config.settings import get_settings
from .attribution import calculate_attribution
from .models import Lead
from .scoring_model import PredictiveLeadScorer

logger = logging.getLogger(__name__)


def load_leads(path: str) -> List[Lead]:
    """Load a JSON array of lead records."""
    with open(Path(path), "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must contain a JSON array of leads")
    return [Lead.from_dict(record) for record in records]


def build_report(
    leads: List[Lead],
    scorer: PredictiveLeadScorer,
    now: Optional[Union[str, datetime]] = None,
    include_attribution: bool = False,
) -> Dict[str, Any]:
    """Score leads and assemble the JSON report."""
    reference = parse_timestamp(now) if now else None
    scores = scorer.batch_score(leads, now=reference)
    scores.sort(key=lambda s: s.conversion_probability, reverse=True)

    report: Dict[str, Any] = {
        "scores": [score.to_dict() for score in scores],
        "insights": scorer.summarize(scores).to_dict(),
    }
    if include_attribution:
        report["attribution"] = {
            lead.id: [model.to_dict() for model in calculate_attribution(lead.touchpoints)]
            for lead in leads
        }
    return report


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Predictive lead scoring")
    parser.add_argument("--file", required=True, help="Path to a JSON file of leads")
    parser.add_argument("--now", help="Reference time for urgency (ISO-8601, defaults to now)")
    parser.add_argument("--attribution", action="store_true", help="Include multi-touch attribution")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings = get_settings()
    scorer = PredictiveLeadScorer(
        hot_threshold=settings.lead_score_threshold_hot,
        warm_threshold=settings.lead_score_threshold_warm,
        urgency_window_hours=settings.urgency_window_hours,
    )

    try:
        reference = parse_timestamp(args.now) if args.now else None
    except ValueError as e:
        logger.error(f"Invalid --now value {args.now!r}: {e}")
        sys.exit(1)

    try:
        leads = load_leads(args.file)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Could not load leads from {args.file}: {e}")
        sys.exit(1)

    report = build_report(leads, scorer, now=reference, include_attribution=args.attribution)
    json.dump(report, sys.stdout, indent=2)
    sys.stdout.write("\n")
    logger.info(f"Scored {len(leads)} leads")


if __name__ == "__main__":
    main()
