"""Map pixels to the complex plane and drive the per-pixel solve."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .colors import RGB, ConvergenceColorMapper
from .errors import ConfigurationError
from .functions import AnalyticFunction, RootSet
from .sinks import PixelSink
from .solver import NO_ROOT, NewtonSolver, SolveResult, SolverConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderParameters:
    """Window of the complex plane to render and the raster it is sampled on."""

    x_res: int
    y_res: int
    x_center: float
    y_center: float
    x_width: float
    y_width: float


@dataclass(frozen=True)
class SamplingMetadata:
    """Affine pixel-to-plane mapping: ``sample = (x_min, y_min) + step * (x, y)``."""

    x_min: float
    y_min: float
    x_step: float
    y_step: float
    x_res: int
    y_res: int

    def __post_init__(self) -> None:
        if self.x_res < 1 or self.y_res < 1:
            raise ConfigurationError("The raster needs at least one pixel along each axis.")
        for value in (self.x_min, self.y_min, self.x_step, self.y_step):
            if not math.isfinite(value):
                raise ConfigurationError("Sampling origin and step must be finite.")
        if self.x_step <= 0 or self.y_step <= 0:
            raise ConfigurationError("Sampling steps must be positive.")

    @classmethod
    def from_origin(cls, origin: complex, step: float, x_res: int, y_res: int) -> "SamplingMetadata":
        return cls(
            x_min=float(origin.real),
            y_min=float(origin.imag),
            x_step=float(step),
            y_step=float(step),
            x_res=int(x_res),
            y_res=int(y_res),
        )

    def sample_point(self, x: int, y: int) -> complex:
        return complex(self.x_min + x * self.x_step, self.y_min + y * self.y_step)

    def grid(self) -> np.ndarray:
        """All sample points as a ``(y_res, x_res)`` complex128 array."""

        xs = self.x_min + np.arange(self.x_res, dtype=np.float64) * self.x_step
        ys = self.y_min + np.arange(self.y_res, dtype=np.float64) * self.y_step
        X, Y = np.meshgrid(xs, ys)
        return X + 1j * Y


def compute_metadata(params: RenderParameters) -> SamplingMetadata:
    """Sampling grid for ``params``, with samples taken at pixel centres."""

    if params.x_res < 1 or params.y_res < 1:
        raise ConfigurationError("The raster needs at least one pixel along each axis.")
    if params.x_width <= 0 or params.y_width <= 0:
        raise ConfigurationError("The window must have a positive width and height.")

    x_step = np.float64(params.x_width) / np.float64(params.x_res)
    y_step = np.float64(params.y_width) / np.float64(params.y_res)
    x_min = np.float64(params.x_center) - np.float64(params.x_width) / 2.0 + x_step / 2.0
    y_min = np.float64(params.y_center) - np.float64(params.y_width) / 2.0 + y_step / 2.0

    return SamplingMetadata(
        x_min=float(x_min),
        y_min=float(y_min),
        x_step=float(x_step),
        y_step=float(y_step),
        x_res=int(params.x_res),
        y_res=int(params.y_res),
    )


class FractalSampler:
    """Solve and color every pixel of a raster.

    The sampler only reads its function, roots and configuration, so any
    number of pixels may be processed concurrently.
    """

    def __init__(
        self,
        function: AnalyticFunction,
        roots: RootSet,
        config: SolverConfig,
        metadata: SamplingMetadata,
        mapper: Optional[ConvergenceColorMapper] = None,
    ):
        self.solver = NewtonSolver(function, roots, config)
        self.metadata = metadata
        self.mapper = mapper if mapper is not None else ConvergenceColorMapper(root_count=len(roots))

    def sample_point(self, x: int, y: int) -> complex:
        return self.metadata.sample_point(x, y)

    def solve_pixel(self, x: int, y: int) -> SolveResult:
        return self.solver.solve(self.sample_point(x, y))

    def render_pixel(self, x: int, y: int) -> RGB:
        return self.mapper.map(self.solve_pixel(x, y))

    def pixels(self):
        for y in range(self.metadata.y_res):
            for x in range(self.metadata.x_res):
                yield x, y

    def render(self, sink: PixelSink) -> None:
        """Write the color of every pixel into ``sink``, once each."""

        logger.debug("Rendering %dx%d pixels", self.metadata.x_res, self.metadata.y_res)
        for x, y in self.pixels():
            sink.set_pixel(x, y, self.render_pixel(x, y))

    def solve_grid(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Root index, iteration count and convergence flag for every pixel."""

        shape = (self.metadata.y_res, self.metadata.x_res)
        root_indices = np.empty(shape, dtype=np.int32)
        iterations = np.empty(shape, dtype=np.int32)
        converged = np.empty(shape, dtype=bool)
        for x, y in self.pixels():
            result = self.solve_pixel(x, y)
            root_indices[y, x] = result.root_index
            iterations[y, x] = result.iterations_used
            converged[y, x] = result.converged
        logger.debug(
            "Solved %d pixels: %d did not converge, %d hit a singularity",
            root_indices.size,
            int(np.count_nonzero(~converged)),
            int(np.count_nonzero(root_indices == NO_ROOT)),
        )
        return root_indices, iterations, converged
