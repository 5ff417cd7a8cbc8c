"""Convert solve results into RGB colors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from matplotlib import colormaps

from .solver import NO_ROOT, SolveResult

RGB = tuple[int, int, int]

DEFAULT_PALETTE: tuple[RGB, ...] = (
    (230, 57, 70),
    (42, 157, 143),
    (69, 123, 230),
    (244, 196, 48),
    (155, 89, 182),
    (241, 130, 55),
)

SENTINEL_COLOR: RGB = (0, 0, 0)


def palette_from_colormap(name: str, size: int) -> tuple[RGB, ...]:
    """Sample ``size`` evenly spaced colors from a matplotlib colormap."""

    if size < 1:
        raise ValueError("A palette needs at least one color.")
    cmap = colormaps[name]
    # Stay off the end of cyclic maps so the first and last roots differ.
    samples = cmap(np.linspace(0.0, 1.0, size, endpoint=False) + 0.5 / size)
    rgb = np.uint8(np.clip(np.rint(samples[:, :3] * 255), 0, 255))
    return tuple(tuple(int(c) for c in row) for row in rgb)


def hex_to_rgb(hex_color: str) -> RGB:
    hex_color = hex_color.lstrip("#")
    if len(hex_color) != 6:
        raise ValueError("Colors must be in the form #RRGGBB.")
    try:
        return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError("Colors must contain only hexadecimal digits.") from exc


@dataclass(frozen=True)
class ConvergenceColorMapper:
    """Map a root index and iteration count to an RGB triple.

    The hue comes from ``palette[root_index % len(palette)]``; brightness is
    scaled by ``iterations_used ** -gamma`` so points that converge quickly
    are bright and slow ones fade toward black.
    """

    palette: tuple[RGB, ...] = DEFAULT_PALETTE
    gamma: float = 0.5
    sentinel_color: RGB = SENTINEL_COLOR
    mark_unconverged: bool = False
    root_count: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.palette:
            raise ValueError("A palette needs at least one color.")
        if self.gamma < 0:
            raise ValueError("gamma must be nonnegative.")

    def intensity(self, iterations_used: int) -> float:
        return float(iterations_used) ** -self.gamma

    def map(self, result: SolveResult) -> RGB:
        if result.root_index == NO_ROOT or (self.mark_unconverged and not result.converged):
            return self.sentinel_color
        assert result.root_index >= 0
        assert self.root_count is None or result.root_index < self.root_count
        assert result.iterations_used >= 1
        base = self.palette[result.root_index % len(self.palette)]
        factor = self.intensity(result.iterations_used)
        return tuple(min(255, max(0, int(round(channel * factor)))) for channel in base)

    def map_array(
        self,
        root_indices: np.ndarray,
        iterations: np.ndarray,
        converged: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Vectorized :meth:`map` over index/iteration maps, returning ``uint8`` RGB."""

        root_indices = np.asarray(root_indices)
        iterations = np.maximum(np.asarray(iterations, dtype=np.float64), 1.0)
        palette = np.array(self.palette, dtype=np.float64)
        safe_indices = np.where(root_indices >= 0, root_indices, 0) % len(self.palette)
        factor = iterations ** -self.gamma
        rgb = np.clip(np.rint(palette[safe_indices] * factor[..., np.newaxis]), 0, 255)

        sentinel = root_indices == NO_ROOT
        if self.mark_unconverged and converged is not None:
            sentinel = np.logical_or(sentinel, ~np.asarray(converged, dtype=bool))
        rgb[sentinel] = np.array(self.sentinel_color, dtype=np.float64)
        return rgb.astype(np.uint8)
