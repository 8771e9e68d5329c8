import pytest

from routing.models import Coordinate
from traffic.classifier import TrafficDensity, classifier_for, classify, classify_by_duration_ratio
from traffic.hotspots import RouteStep, find_congestion_hotspots


@pytest.mark.parametrize("normal,traffic,expected", [
    (600, 600, TrafficDensity.LOW),
    (600, 659, TrafficDensity.LOW),     # 9.8%
    (600, 660, TrafficDensity.MEDIUM),  # exactly 10%
    (600, 779, TrafficDensity.MEDIUM),
    (600, 780, TrafficDensity.HIGH),    # exactly 30%
    (600, 400, TrafficDensity.LOW),     # faster than normal
])
def test_classify_by_delay_percentage(normal, traffic, expected):
    assert classify(normal, traffic) == expected


def test_classify_handles_zero_normal_duration():
    # normal is floored to 1 second
    assert classify(0, 0) == TrafficDensity.LOW
    assert classify(0, 5) == TrafficDensity.HIGH


def test_classify_is_monotone_in_traffic_duration():
    tiers = [classify(600, traffic) for traffic in range(300, 1200, 7)]
    assert tiers == sorted(tiers)


def test_density_ordering_uses_rank_not_string_value():
    assert TrafficDensity.LOW < TrafficDensity.MEDIUM < TrafficDensity.HIGH
    assert max([TrafficDensity.MEDIUM, TrafficDensity.HIGH, TrafficDensity.LOW]) == TrafficDensity.HIGH


def test_duration_ratio_formula():
    assert classify_by_duration_ratio(600, 720) == TrafficDensity.LOW      # 1.2
    assert classify_by_duration_ratio(600, 900) == TrafficDensity.MEDIUM   # 1.5
    assert classify_by_duration_ratio(600, 901) == TrafficDensity.HIGH


def test_classifier_lookup():
    assert classifier_for("delay_percentage") is classify
    assert classifier_for("duration_ratio") is classify_by_duration_ratio
    with pytest.raises(ValueError):
        classifier_for("vibes")


def test_congestion_hotspots_severity_tiers():
    here = Coordinate(12.9716, 77.5946)
    steps = [
        RouteStep(start=here, normal_duration_s=100, traffic_duration_s=300),   # 200s: ignored
        RouteStep(start=here, normal_duration_s=100, traffic_duration_s=500),   # 400s: low
        RouteStep(start=here, normal_duration_s=100, traffic_duration_s=800),   # 700s: medium
        RouteStep(start=here, normal_duration_s=100, traffic_duration_s=1100),  # 1000s: high
    ]

    hotspots = find_congestion_hotspots(steps)

    assert [h.step_index for h in hotspots] == [1, 2, 3]
    assert [h.severity for h in hotspots] == [TrafficDensity.LOW, TrafficDensity.MEDIUM, TrafficDensity.HIGH]
    assert hotspots[2].description == "Heavy traffic delay: 17 minutes"


def test_delay_must_exceed_minimum():
    here = Coordinate(0.0, 0.0)
    assert find_congestion_hotspots([RouteStep(here, 100, 400)]) == []
