"""Public API for Newton fractal rendering."""

from .colors import ConvergenceColorMapper, DEFAULT_PALETTE, SENTINEL_COLOR, hex_to_rgb, palette_from_colormap
from .errors import ConfigurationError
from .functions import (
    CUBIC_UNITY,
    CUBIC_UNITY_ROOTS,
    AnalyticFunction,
    ComplexFunction,
    Polynomial,
    RootSet,
)
from .renderer import RenderResult, render_frame
from .sampler import FractalSampler, RenderParameters, SamplingMetadata, compute_metadata
from .sinks import ArraySink, ImageSink, PixelSink
from .solver import NO_ROOT, NewtonSolver, RootClassifier, SolveResult, SolverConfig

__all__ = [
    "AnalyticFunction",
    "ArraySink",
    "CUBIC_UNITY",
    "CUBIC_UNITY_ROOTS",
    "ComplexFunction",
    "ConfigurationError",
    "ConvergenceColorMapper",
    "DEFAULT_PALETTE",
    "FractalSampler",
    "ImageSink",
    "NO_ROOT",
    "NewtonSolver",
    "PixelSink",
    "Polynomial",
    "RenderParameters",
    "RenderResult",
    "RootClassifier",
    "RootSet",
    "SENTINEL_COLOR",
    "SamplingMetadata",
    "SolveResult",
    "SolverConfig",
    "compute_metadata",
    "hex_to_rgb",
    "palette_from_colormap",
    "render_frame",
]
