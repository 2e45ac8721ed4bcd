"""Tests for the minimum-spacing enforcer."""

from __future__ import annotations

import pytest

from domain.geometry.value_objects import Point


@pytest.mark.parametrize(
    "radius, factor, expected",
    [
        (10.0, 1.0, 20.0),
        (10.0, 0.5, 10.0),
        (10.0, 0.1, 6.0),  # factor clamped to 0.3
        (10.0, 5.0, 50.0),  # factor clamped to 2.5
    ],
)
def test_min_center_spacing(radius, factor, expected):
    from domain.siting.spacing import min_center_spacing

    assert min_center_spacing(radius, factor) == pytest.approx(expected)


def test_spacing_threshold_subtracts_small_tolerance():
    from domain.siting.spacing import spacing_threshold

    assert spacing_threshold(10.0, 20.0) == pytest.approx(19.8)
    # Tolerance is capped at 5 % of the spacing
    assert spacing_threshold(100.0, 4.0) == pytest.approx(3.8)


@pytest.mark.parametrize(
    "percent, expected",
    [(100.0, 1.0), (50.0, 0.5), (10.0, 0.3), (200.0, 1.5)],
)
def test_spacing_multiplier_from_percent(percent, expected):
    from domain.siting.spacing import spacing_multiplier_from_percent

    assert spacing_multiplier_from_percent(percent) == pytest.approx(expected)


def test_is_spacing_allowed():
    from domain.siting.spacing import is_spacing_allowed

    placed = [Point(x=0, y=0), Point(x=20, y=0)]
    assert is_spacing_allowed(Point(x=10, y=0), placed, 10.0) is True
    assert is_spacing_allowed(Point(x=10, y=0), placed, 10.5) is False
    assert is_spacing_allowed(Point(x=10, y=0), [], 1e9) is True


def test_filter_by_spacing_keeps_order():
    from domain.siting.spacing import filter_by_spacing

    points = [Point(x=x, y=0) for x in (0, 1, 5, 5.5, 10)]
    kept = filter_by_spacing(points, 4.0)
    assert [p.x for p in kept] == [0, 5, 10]


def test_filter_by_spacing_logs_drops(caplog):
    import logging

    from domain.siting.spacing import filter_by_spacing

    caplog.set_level(logging.DEBUG, logger="domain.siting.spacing")
    filter_by_spacing([Point(x=0, y=0), Point(x=0.5, y=0)], 1.0)
    assert any("dropped 1 of 2" in r.getMessage() for r in caplog.records)
