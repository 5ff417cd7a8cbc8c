import numpy as np

from newtonfractal import (
    CUBIC_UNITY,
    CUBIC_UNITY_ROOTS,
    NO_ROOT,
    FractalSampler,
    Polynomial,
    RenderParameters,
    RootSet,
    SamplingMetadata,
    SolverConfig,
    compute_metadata,
    render_frame,
)
from newtonfractal.renderer import _newton_program


def off_centre_metadata() -> SamplingMetadata:
    return compute_metadata(RenderParameters(x_res=7, y_res=5, x_center=0.05, y_center=0.03, x_width=3.0, y_width=2.4))


def test_exact_render_matches_per_pixel_solver() -> None:
    metadata = off_centre_metadata()
    config = SolverConfig(tolerance_radius=1e-6, max_iterations=50)

    result = render_frame(CUBIC_UNITY, CUBIC_UNITY_ROOTS, config, metadata)
    expected_indices, expected_iterations, expected_converged = FractalSampler(
        CUBIC_UNITY, CUBIC_UNITY_ROOTS, config, metadata
    ).solve_grid()

    assert result.root_indices.shape == (5, 7)
    np.testing.assert_array_equal(result.root_indices, expected_indices)
    np.testing.assert_array_equal(result.iterations, expected_iterations)
    np.testing.assert_array_equal(result.converged, expected_converged)
    assert result.metadata == metadata


def test_fixed_render_matches_per_pixel_solver() -> None:
    metadata = off_centre_metadata()
    config = SolverConfig(tolerance_radius=1e-6, max_iterations=25, use_exact_stop=False)

    result = render_frame(CUBIC_UNITY, CUBIC_UNITY_ROOTS, config, metadata)
    expected_indices, _, expected_converged = FractalSampler(
        CUBIC_UNITY, CUBIC_UNITY_ROOTS, config, metadata
    ).solve_grid()

    np.testing.assert_array_equal(result.root_indices, expected_indices)
    np.testing.assert_array_equal(result.converged, expected_converged)
    assert np.all(result.iterations == 25)


def test_critical_point_renders_as_no_root() -> None:
    metadata = SamplingMetadata.from_origin(-1 - 1j, 1.0, 3, 3)

    exact = render_frame(CUBIC_UNITY, CUBIC_UNITY_ROOTS, SolverConfig(max_iterations=50), metadata)
    fixed = render_frame(
        CUBIC_UNITY, CUBIC_UNITY_ROOTS, SolverConfig(max_iterations=50, use_exact_stop=False), metadata
    )

    assert exact.root_indices[1, 1] == NO_ROOT
    assert exact.iterations[1, 1] == 1
    assert not exact.converged[1, 1]
    assert exact.root_indices[1, 2] == 0
    assert exact.iterations[1, 2] == 1
    assert fixed.root_indices[1, 1] == NO_ROOT


def test_fallback_and_ties_match_per_pixel_solver() -> None:
    # Starting at 0, Newton's method on z^3 - 2z + 2 cycles between 0 and 1,
    # which are equidistant from both roots at odd steps.
    cycling = Polynomial((1, 0, -2, 2))
    roots = RootSet((3, -1))
    metadata = SamplingMetadata.from_origin(0j, 1.0, 1, 1)

    for max_iterations in (3, 4):
        config = SolverConfig(tolerance_radius=0.1, max_iterations=max_iterations)
        result = render_frame(cycling, roots, config, metadata)
        solved = FractalSampler(cycling, roots, config, metadata).solve_pixel(0, 0)

        assert result.root_indices[0, 0] == solved.root_index
        assert result.iterations[0, 0] == solved.iterations_used == max_iterations
        assert not result.converged[0, 0]


def test_out_of_range_iterates_match_per_pixel_solver() -> None:
    # One Newton step on z - c from 0 lands on c, whose distance to any root overflows.
    escape = Polynomial((1, -complex(1.5e308, 1.5e308)))
    roots = RootSet((0, 1))
    metadata = SamplingMetadata.from_origin(0j, 1.0, 1, 1)

    for config in (SolverConfig(max_iterations=1, use_exact_stop=False), SolverConfig(max_iterations=5)):
        result = render_frame(escape, roots, config, metadata)
        solved = FractalSampler(escape, roots, config, metadata).solve_pixel(0, 0)

        assert solved.root_index == NO_ROOT
        assert result.root_indices[0, 0] == NO_ROOT
        assert result.iterations[0, 0] == solved.iterations_used
        assert not result.converged[0, 0]


def test_repeated_renders_reuse_the_traced_program() -> None:
    quartic = Polynomial((1, 0, 0, 0, -1))
    roots = quartic.roots()
    metadata = SamplingMetadata.from_origin(-1 - 1j, 0.5, 4, 4)

    render_frame(quartic, roots, SolverConfig(max_iterations=2, use_exact_stop=False), metadata)
    program = _newton_program(quartic, False)
    traces = program.experimental_get_tracing_count()
    for n in (3, 4, 5):
        render_frame(quartic, roots, SolverConfig(max_iterations=n, use_exact_stop=False), metadata)

    assert _newton_program(Polynomial((1, 0, 0, 0, -1)), False) is program
    assert program.experimental_get_tracing_count() == traces
