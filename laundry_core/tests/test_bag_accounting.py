# laundry_core/tests/test_bag_accounting.py
import pytest

from laundry_core.workflows.bag_accounting import (
    default_partial_count,
    delivery_percentage,
    normalize_bags,
    plan_release,
    released_union,
    remaining_bags,
)


def test_remaining_and_percentage():
    assert remaining_bags(5, {2, 4}) == [1, 3, 5]
    assert remaining_bags(0, []) == []
    assert delivery_percentage(2, 3) == 67
    assert delivery_percentage(1, 2) == 50
    assert delivery_percentage(1, 8) == 13
    assert delivery_percentage(3, 0) == 0


def test_default_partial_count_rounds_up():
    assert default_partial_count(1) == 1
    assert default_partial_count(5) == 3
    assert default_partial_count(6) == 3


def test_normalize_bags():
    assert normalize_bags([3, "1", 3], 4) == [1, 3]
    with pytest.raises(ValueError, match="out of range"):
        normalize_bags([5], 4)
    with pytest.raises(ValueError, match="out of range"):
        normalize_bags([0], 4)
    with pytest.raises(ValueError, match="Invalid bag number"):
        normalize_bags([True], 4)
    with pytest.raises(ValueError, match="Invalid bag number"):
        normalize_bags(["two"], 4)


def test_released_union_across_deliveries():
    assert released_union([[1, 2], [4], []]) == {1, 2, 4}


def test_partial_then_complete():
    first = plan_release(4, set(), bags=[1, 2])
    assert first.bags == [1, 2]
    assert first.remaining == [3, 4]
    assert first.percentage == 50
    assert first.is_complete is False

    second = plan_release(4, set(first.released), complete=True)
    assert second.bags == [3, 4]
    assert second.remaining == []
    assert second.percentage == 100
    assert second.is_complete is True


def test_count_takes_lowest_remaining_bags():
    plan = plan_release(5, {1, 3}, count=2)
    assert plan.bags == [2, 4]
    assert plan.remaining == [5]
    assert plan.percentage == 80


def test_explicit_bags_covering_everything_completes():
    plan = plan_release(3, set(), bags=[3, 2, 1])
    assert plan.is_complete is True
    assert plan.percentage == 100


def test_overlapping_release_rejected():
    with pytest.raises(ValueError, match="already released"):
        plan_release(4, {1, 2}, bags=[2, 3])


def test_release_errors():
    with pytest.raises(ValueError, match="no bags"):
        plan_release(0, set(), complete=True)
    with pytest.raises(ValueError, match="already been released"):
        plan_release(2, {1, 2}, complete=True)
    with pytest.raises(ValueError, match="Provide bags"):
        plan_release(2, set())
    with pytest.raises(ValueError, match="At least one bag"):
        plan_release(2, set(), bags=[])
    with pytest.raises(ValueError, match="Only 1 bag"):
        plan_release(3, {1, 2}, count=2)
