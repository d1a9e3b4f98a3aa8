"""Grid statistics over the working image and flagged-region extraction."""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from ifire.models import GridCell, Region


@dataclass
class GridStats:
    """Per-cell tallies; arrays are indexed [grid_y, grid_x]."""
    grid_size: int
    fire_counts: np.ndarray
    smoke_counts: np.ndarray
    total_counts: np.ndarray

    def cells(self) -> List[GridCell]:
        """Cells that received at least one pixel, row-major."""
        result: List[GridCell] = []
        for gy in range(self.grid_size):
            for gx in range(self.grid_size):
                total = int(self.total_counts[gy, gx])
                if total == 0:
                    continue
                result.append(GridCell(
                    grid_x=gx,
                    grid_y=gy,
                    fire_count=int(self.fire_counts[gy, gx]),
                    smoke_count=int(self.smoke_counts[gy, gx]),
                    total_count=total,
                ))
        return result


def cell_indices(width: int, height: int, grid_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """Map every pixel column/row of a width x height image to its cell index.

    Cells are ``width / grid_size`` wide (fractional); indices are clamped
    to ``grid_size - 1``.
    """
    cell_width = width / grid_size
    cell_height = height / grid_size
    gx = np.minimum(np.floor(np.arange(width) / cell_width).astype(np.intp), grid_size - 1)
    gy = np.minimum(np.floor(np.arange(height) / cell_height).astype(np.intp), grid_size - 1)
    return gx, gy


def aggregate(fire: np.ndarray, smoke: np.ndarray, grid_size: int) -> GridStats:
    """
    Tally fire, smoke and total pixel counts per grid cell.

    Args:
        fire: Boolean HxW fire mask of the working image
        smoke: Boolean HxW smoke mask of the working image
        grid_size: Number of cells per side

    Returns:
        GridStats for the image
    """
    if fire.shape != smoke.shape:
        raise ValueError(f"Mask shapes differ: {fire.shape} vs {smoke.shape}")
    height, width = fire.shape
    gx, gy = cell_indices(width, height, grid_size)

    # Flat cell id per pixel, row-major like the masks.
    cell_ids = (gy[:, None] * grid_size + gx[None, :]).ravel()
    n_cells = grid_size * grid_size

    total = np.bincount(cell_ids, minlength=n_cells)
    fire_counts = np.bincount(cell_ids, weights=fire.ravel().astype(np.float64), minlength=n_cells)
    smoke_counts = np.bincount(cell_ids, weights=smoke.ravel().astype(np.float64), minlength=n_cells)

    shape = (grid_size, grid_size)
    return GridStats(
        grid_size=grid_size,
        fire_counts=np.rint(fire_counts).astype(np.int64).reshape(shape),
        smoke_counts=np.rint(smoke_counts).astype(np.int64).reshape(shape),
        total_counts=total.astype(np.int64).reshape(shape),
    )


def flagged_regions(
    stats: GridStats,
    image_width: int,
    image_height: int,
    fire_ratio: float = 0.15,
    smoke_ratio: float = 0.20,
) -> Tuple[List[Region], List[Region]]:
    """
    Flag cells whose fire or smoke ratio exceeds its threshold.

    Statistics come from the working image, but the returned rectangles are
    laid out on the original image using a cell size of
    ``image_width // grid_size`` by ``image_height // grid_size``.

    Args:
        stats: Grid tallies
        image_width: Original image width
        image_height: Original image height
        fire_ratio: Strict lower bound on fire_count / total
        smoke_ratio: Strict lower bound on smoke_count / total

    Returns:
        Tuple of (fire_regions, smoke_regions), row-major
    """
    cell_w = image_width // stats.grid_size
    cell_h = image_height // stats.grid_size

    fire_regions: List[Region] = []
    smoke_regions: List[Region] = []
    for cell in stats.cells():
        region = Region(
            x=cell.grid_x * cell_w,
            y=cell.grid_y * cell_h,
            width=cell_w,
            height=cell_h,
            grid_x=cell.grid_x,
            grid_y=cell.grid_y,
        )
        if cell.fire_ratio > fire_ratio:
            fire_regions.append(region)
        if cell.smoke_ratio > smoke_ratio:
            smoke_regions.append(region)
    return fire_regions, smoke_regions
