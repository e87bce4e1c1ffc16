"""Tests for multi-touch attribution."""

import random
from datetime import datetime, timezone

import pytest

from lead_scoring.attribution import calculate_attribution, contribution_label, position_weights
from lead_scoring.models import Lead, Touchpoint


def touch(tp_id, tp_type, timestamp):
    return Touchpoint.from_dict({"id": tp_id, "type": tp_type, "timestamp": timestamp})


class TestPositionWeights:
    def test_small_counts(self):
        assert position_weights(0) == []
        assert position_weights(1) == [100]
        assert position_weights(2) == [30, 70]

    def test_interior_decay(self):
        weights = position_weights(4)
        assert weights[0] == 30
        assert weights[-1] == 30
        assert weights[1] == pytest.approx(18.5)
        assert weights[2] == pytest.approx(17.0)

    def test_later_interior_touches_get_less(self):
        weights = position_weights(7)[1:-1]
        assert weights == sorted(weights, reverse=True)


class TestContributionLabel:
    @pytest.mark.parametrize("share,label", [
        (81.4, "Major Impact"),
        (30, "Major Impact"),
        (20, "Significant"),
        (18.6, "Moderate"),
        (5, "Minor"),
        (4.99, "Minimal"),
    ])
    def test_labels(self, share, label):
        assert contribution_label(share) == label


class TestCalculateAttribution:
    def test_empty(self):
        assert calculate_attribution([]) == []

    @pytest.mark.parametrize("tp_type,roi", [
        ("demo_request", 450),
        ("website_visit", 80),
        ("carrier_pigeon", 100),
    ])
    def test_single_touch_gets_everything(self, tp_type, roi):
        [model] = calculate_attribution([touch("1", tp_type, "2025-10-20T10:00:00Z")])
        assert model.attribution_value == 100
        assert model.contribution == "Major Impact"
        assert model.roi == roi

    def test_two_touches(self):
        models = calculate_attribution([
            touch("2", "demo_request", "2025-10-21T10:00:00Z"),
            touch("1", "website_visit", "2025-10-20T10:00:00Z"),
        ])
        assert [m.touchpoint_id for m in models] == ["1", "2"]
        assert models[0].attribution_value == pytest.approx(18.6)
        assert models[1].attribution_value == pytest.approx(81.4)
        assert models[0].contribution == "Moderate"
        assert models[0].roi == 15
        assert models[1].roi == 366

    def test_sample_leads_sum_to_100(self, sample_leads):
        for record in sample_leads:
            lead = Lead.from_dict(record)
            models = calculate_attribution(lead.touchpoints)
            assert len(models) == len(lead.touchpoints)
            assert sum(m.attribution_value for m in models) == pytest.approx(100, abs=0.05)
            for model in models:
                assert 0 <= model.attribution_value <= 100

    def test_input_order_does_not_matter(self, enterprise_fintech_lead):
        touchpoints = Lead.from_dict(enterprise_fintech_lead).touchpoints
        shuffled = list(touchpoints)
        random.Random(7).shuffle(shuffled)
        expected = [m.to_dict() for m in calculate_attribution(touchpoints)]
        assert [m.to_dict() for m in calculate_attribution(shuffled)] == expected

    def test_output_in_time_order(self, enterprise_fintech_lead):
        models = calculate_attribution(Lead.from_dict(enterprise_fintech_lead).touchpoints)
        timestamps = [m.timestamp for m in models]
        assert timestamps == sorted(timestamps)

    def test_naive_and_aware_timestamps_mix(self):
        touchpoints = [
            Touchpoint(id="late", type="demo_request", timestamp=datetime(2025, 10, 22, 9, 0)),
            touch("early", "website_visit", "2025-10-20T09:00:00+02:00"),
            Touchpoint(id="middle", type="email_open", timestamp=datetime(2025, 10, 21, tzinfo=timezone.utc)),
        ]
        models = calculate_attribution(touchpoints)
        assert [m.touchpoint_id for m in models] == ["early", "middle", "late"]
        assert sum(m.attribution_value for m in models) == pytest.approx(100, abs=0.05)
