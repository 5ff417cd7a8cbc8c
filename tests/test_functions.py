import numpy as np
import pytest

from newtonfractal import CUBIC_UNITY, CUBIC_UNITY_ROOTS, ComplexFunction, ConfigurationError, Polynomial, RootSet


def test_polynomial_evaluates_value_and_derivative() -> None:
    p = Polynomial((1, 0, 0, -1))

    assert p.evaluate(2) == 7
    assert p.derivative(2) == 12
    assert p.evaluate(1j) == -1 - 1j
    assert p.degree == 3


def test_polynomial_drops_leading_zeros() -> None:
    p = Polynomial((0, 0, 1, -1))

    assert p.degree == 1
    assert p.coefficients == (1 + 0j, -1 + 0j)
    assert p.derivative(5) == 1


def test_constant_polynomial_has_zero_derivative_and_no_roots() -> None:
    p = Polynomial((4,))

    assert p.derivative(3 + 1j) == 0
    with pytest.raises(ConfigurationError):
        p.roots()


def test_polynomial_works_on_arrays() -> None:
    zs = np.array([0, 1, 2, 1j], dtype=np.complex128)

    np.testing.assert_allclose(CUBIC_UNITY.evaluate(zs), zs ** 3 - 1)
    np.testing.assert_allclose(CUBIC_UNITY.derivative(zs), 3 * zs ** 2)


def test_polynomial_roots_match_known_roots() -> None:
    computed = sorted(Polynomial((1, 0, -1)).roots(), key=lambda r: r.real)

    assert computed[0] == pytest.approx(-1)
    assert computed[1] == pytest.approx(1)


def test_cubic_roots_are_roots() -> None:
    assert len(CUBIC_UNITY_ROOTS) == 3
    assert CUBIC_UNITY_ROOTS[0] == 1
    for root in CUBIC_UNITY_ROOTS:
        assert abs(CUBIC_UNITY.evaluate(root)) < 1e-12


def test_complex_function_wraps_callables() -> None:
    fn = ComplexFunction(lambda z: z * z + 1, lambda z: 2 * z)

    assert fn.evaluate(1j) == 0
    assert fn.derivative(1j) == 2j


def test_root_set_rejects_empty() -> None:
    with pytest.raises(ConfigurationError):
        RootSet(())


def test_root_set_rejects_non_finite_roots() -> None:
    with pytest.raises(ConfigurationError):
        RootSet((1, complex(float("nan"), 0)))


def test_root_set_keeps_order() -> None:
    roots = RootSet((2, -1j, 3))

    assert list(roots) == [2 + 0j, -1j, 3 + 0j]
    assert roots.as_array().dtype == np.complex128


def test_polynomial_str() -> None:
    assert str(CUBIC_UNITY) == "z**3 - 1"
    assert str(Polynomial((-2, 0.5, 0))) == "-2*z**2 + 0.5*z"
    assert str(Polynomial((0,))) == "0"
