import pytest

from ifire.models import Region
from ifire.region_merger import merge_by_policy, merge_connected_regions, merge_regions


def cell(gx, gy, size=60):
    return Region(x=gx * size, y=gy * size, width=size, height=size, grid_x=gx, grid_y=gy)


def test_empty_input_gives_no_box():
    assert merge_regions([]) == []
    assert merge_connected_regions([], 10) == []


def test_envelope_of_scattered_regions():
    merged = merge_regions([cell(1, 1), cell(7, 2), cell(3, 8)])
    assert len(merged) == 1
    box = merged[0]
    assert (box.x, box.y, box.width, box.height) == (60, 60, 420, 480)


def test_envelope_is_idempotent():
    once = merge_regions([cell(0, 0), cell(2, 3)])
    twice = merge_regions(once + once)
    assert twice == once


def test_single_region_is_returned_as_its_own_envelope():
    merged = merge_regions([cell(4, 4)])
    assert (merged[0].x, merged[0].y, merged[0].width, merged[0].height) == (240, 240, 60, 60)


def test_connected_policy_splits_disjoint_clusters():
    regions = [cell(0, 0), cell(1, 0), cell(0, 1), cell(1, 1), cell(8, 8)]
    merged = merge_connected_regions(regions, 10)

    assert [(r.x, r.y, r.width, r.height) for r in merged] == [
        (0, 0, 120, 120),
        (480, 480, 60, 60),
    ]


def test_connected_policy_joins_diagonal_neighbours():
    merged = merge_connected_regions([cell(2, 2), cell(3, 3)], 10)
    assert len(merged) == 1
    assert (merged[0].x, merged[0].y, merged[0].width, merged[0].height) == (120, 120, 120, 120)


def test_connected_policy_needs_grid_coordinates():
    with pytest.raises(ValueError):
        merge_connected_regions([Region(x=0, y=0, width=10, height=10)], 10)


def test_merge_by_policy():
    regions = [cell(0, 0), cell(9, 9)]
    assert len(merge_by_policy(regions, "envelope", 10)) == 1
    assert len(merge_by_policy(regions, "connected", 10)) == 2
    with pytest.raises(ValueError):
        merge_by_policy(regions, "kmeans", 10)
