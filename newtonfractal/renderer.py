"""Vectorized Newton fractal rendering with TensorFlow."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import tensorflow as tf

from .functions import AnalyticFunction, RootSet
from .sampler import SamplingMetadata
from .solver import NO_ROOT, SolverConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    """Container for the numerical results of a Newton fractal render."""

    root_indices: np.ndarray
    iterations: np.ndarray
    converged: np.ndarray
    metadata: SamplingMetadata


def _is_finite(zs: tf.Tensor) -> tf.Tensor:
    return tf.logical_and(tf.math.is_finite(tf.math.real(zs)), tf.math.is_finite(tf.math.imag(zs)))


def _first_true(mask: tf.Tensor) -> tf.Tensor:
    """Index of the first true entry along the last axis (0 when there is none)."""

    return tf.argmax(tf.cast(mask, tf.int32), axis=-1, output_type=tf.int32)


def _nearest_root(zs: tf.Tensor, roots: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
    """Nearest root index and its distance.

    Ties go to the lowest index. Values with no finite distance to any root,
    non-finite ones included, get NO_ROOT.
    """

    distances = tf.abs(zs[..., tf.newaxis] - roots)
    best = tf.reduce_min(distances, axis=-1)
    index = _first_true(tf.equal(distances, best[..., tf.newaxis]))
    finite = tf.logical_and(_is_finite(zs), tf.math.is_finite(best))
    index = tf.where(finite, index, tf.constant(NO_ROOT, dtype=tf.int32))
    return index, best


@functools.lru_cache(maxsize=16)
def _newton_program(function: AnalyticFunction, use_exact_stop: bool) -> Callable:
    """Compiled iteration loop for one function and stopping discipline.

    Programs are cached so repeated renders of the same function (GIF frames,
    for instance) reuse the traced graph; ``function`` must be hashable.
    """

    def newton_step(zs: tf.Tensor) -> tf.Tensor:
        return zs - function.evaluate(zs) / function.derivative(zs)

    @tf.function
    def run_fixed(zs: tf.Tensor, roots: tf.Tensor, max_iterations: tf.Tensor, tolerance: tf.Tensor):
        i = tf.constant(0, dtype=tf.int32)

        def cond(i, zs):
            return tf.less(i, max_iterations)

        def body(i, zs):
            return i + 1, newton_step(zs)

        _, zs = tf.while_loop(cond, body, (i, zs))
        index, distance = _nearest_root(zs, roots)
        ns = tf.fill(tf.shape(index), max_iterations)
        converged = tf.logical_and(tf.not_equal(index, NO_ROOT), distance <= tolerance)
        return index, ns, converged

    @tf.function
    def run_exact(zs: tf.Tensor, roots: tf.Tensor, max_iterations: tf.Tensor, tolerance: tf.Tensor):
        i = tf.constant(0, dtype=tf.int32)
        ns = tf.zeros(tf.shape(zs), dtype=tf.int32)
        index = tf.fill(tf.shape(zs), tf.constant(NO_ROOT, dtype=tf.int32))
        converged = tf.zeros(tf.shape(zs), dtype=tf.bool)
        active = tf.ones(tf.shape(zs), dtype=tf.bool)

        def cond(i, zs, ns, index, converged, active):
            return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

        def body(i, zs, ns, index, converged, active):
            zs = tf.where(active, newton_step(zs), zs)
            ns = ns + tf.cast(active, tf.int32)

            distances = tf.abs(zs[..., tf.newaxis] - roots)
            within = distances <= tolerance
            hit = tf.logical_and(active, tf.reduce_any(within, axis=-1))
            index = tf.where(hit, _first_true(within), index)
            converged = tf.logical_or(converged, hit)

            # Non-finite iterates, and finite ones too far out to measure, stop
            # here and keep the NO_ROOT index.
            measurable = tf.logical_and(_is_finite(zs), tf.math.is_finite(tf.reduce_min(distances, axis=-1)))
            diverged = tf.logical_and(active, tf.logical_not(measurable))
            active = tf.logical_and(active, tf.logical_not(tf.logical_or(hit, diverged)))
            return i + 1, zs, ns, index, converged, active

        _, zs, ns, index, converged, active = tf.while_loop(
            cond, body, (i, zs, ns, index, converged, active)
        )

        fallback, _ = _nearest_root(zs, roots)
        index = tf.where(active, fallback, index)
        return index, ns, converged

    return run_exact if use_exact_stop else run_fixed


def render_frame(
    function: AnalyticFunction,
    roots: RootSet,
    config: SolverConfig,
    metadata: SamplingMetadata,
    *,
    device: Optional[str] = None,
) -> RenderResult:
    """Solve every pixel of ``metadata``'s raster at once.

    ``function`` must be expressible with TensorFlow operations (a
    :class:`~newtonfractal.functions.Polynomial` is).
    """

    logger.debug(
        "Rendering %dx%d frame on %s (exact stop: %s)",
        metadata.x_res,
        metadata.y_res,
        device or "/CPU:0",
        config.use_exact_stop,
    )
    program = _newton_program(function, config.use_exact_stop)
    grid = metadata.grid()

    with tf.device(device if device is not None else "/CPU:0"):
        zs = tf.convert_to_tensor(grid, dtype=tf.complex128)
        roots_tf = tf.convert_to_tensor(roots.as_array(), dtype=tf.complex128)
        max_iterations = tf.constant(config.max_iterations, dtype=tf.int32)
        tolerance = tf.constant(config.tolerance_radius, dtype=tf.float64)

        index, ns, converged = program(zs, roots_tf, max_iterations, tolerance)

    return RenderResult(
        root_indices=index.numpy(),
        iterations=ns.numpy(),
        converged=converged.numpy(),
        metadata=metadata,
    )
