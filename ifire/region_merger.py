"""
Reduce flagged grid regions to bounding rectangles.

Two policies are available:

* ``envelope``: one rectangle enclosing every flagged region of a class.
  Disjoint patches are reported as a single, possibly oversized, box.
* ``connected``: one rectangle per 8-connected cluster of flagged cells.
"""
from typing import List, Sequence

import numpy as np
from scipy import ndimage

from ifire.models import Region


def merge_regions(regions: Sequence[Region]) -> List[Region]:
    """
    Merge regions into their common bounding envelope.

    Args:
        regions: Flagged regions of one class

    Returns:
        Empty list for empty input, otherwise exactly one Region
    """
    if not regions:
        return []

    min_x = min(r.x for r in regions)
    min_y = min(r.y for r in regions)
    max_x = max(r.right for r in regions)
    max_y = max(r.bottom for r in regions)

    return [Region(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)]


def merge_connected_regions(regions: Sequence[Region], grid_size: int) -> List[Region]:
    """
    Merge regions per connected cluster of grid cells.

    Regions must carry their grid coordinates. Diagonal neighbours belong to
    the same cluster.

    Args:
        regions: Flagged regions of one class
        grid_size: Number of cells per side of the grid they came from

    Returns:
        One Region per cluster, largest area first
    """
    if not regions:
        return []

    grid = np.zeros((grid_size, grid_size), dtype=np.uint8)
    for region in regions:
        if not (0 <= region.grid_x < grid_size and 0 <= region.grid_y < grid_size):
            raise ValueError(f"Region lacks valid grid coordinates: {region}")
        grid[region.grid_y, region.grid_x] = 1

    labels, num_labels = ndimage.label(grid, structure=np.ones((3, 3), dtype=np.uint8))

    clusters: List[List[Region]] = [[] for _ in range(num_labels)]
    for region in regions:
        clusters[labels[region.grid_y, region.grid_x] - 1].append(region)

    merged = [merge_regions(cluster)[0] for cluster in clusters]
    # sorted() is stable, so equal areas keep row-major order
    return sorted(merged, key=lambda r: r.width * r.height, reverse=True)


def merge_by_policy(regions: Sequence[Region], policy: str, grid_size: int) -> List[Region]:
    if policy == "envelope":
        return merge_regions(regions)
    if policy == "connected":
        return merge_connected_regions(regions, grid_size)
    raise ValueError(f"Unknown merge policy: {policy!r}")
