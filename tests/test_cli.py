import PIL.Image
import pytest

import newton


def test_image_mode_writes_requested_size(tmp_path) -> None:
    output = tmp_path / "basins.png"

    written = newton.main(["--x-res", "8", "--y-res", "6", "--max-iterations", "20", "--output", str(output)])

    assert written == output.resolve()
    with PIL.Image.open(output) as image:
        assert image.size == (8, 6)
        assert image.mode == "RGB"


def test_pixel_and_tensor_engines_agree(tmp_path) -> None:
    common = ["--x-res", "9", "--y-res", "7", "--x-center", "0.11", "--y-center", "0.07", "--max-iterations", "30"]

    newton.main([*common, "--engine", "pixel", "--output", str(tmp_path / "pixel.png")])
    newton.main([*common, "--engine", "tensor", "--output", str(tmp_path / "tensor.png")])

    with PIL.Image.open(tmp_path / "pixel.png") as a, PIL.Image.open(tmp_path / "tensor.png") as b:
        assert list(a.getdata()) == list(b.getdata())


def test_gif_mode_writes_animation(tmp_path) -> None:
    output = tmp_path / "progress"

    written = newton.main([
        "--x-res", "6", "--y-res", "6", "--max-iterations", "3", "--mode", "gif",
        "--colormap", "twilight", "--output", str(output),
    ])

    assert written.suffix == ".gif"
    assert written.exists()


def test_explicit_roots_and_fixed_iterations(tmp_path) -> None:
    output = tmp_path / "quadratic.png"

    newton.main([
        "--coefficients", "1,0,-1", "--roots=1,-1", "--fixed-iterations", "--max-iterations", "12",
        "--x-res", "5", "--y-res", "5", "--engine", "pixel", "--output", str(output),
    ])

    assert output.exists()


def test_complex_list_parses_complex_values() -> None:
    assert newton.complex_list("1, -0.5+0.866j,2j") == (1 + 0j, -0.5 + 0.866j, 2j)


@pytest.mark.parametrize(
    "argv",
    [
        ["--max-iterations", "0"],
        ["--tolerance", "-1"],
        ["--roots=", "--coefficients", "5"],
        ["--colormap", "no-such-colormap"],
        ["--sentinel-color", "#12"],
        ["--x-res", "0"],
        ["--output", "out.jpg"],
    ],
)
def test_invalid_configuration_fails_before_rendering(argv, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit):
        newton.main(argv)

    assert not any(tmp_path.iterdir())


def test_unrelated_key_errors_are_not_reported_as_colormaps(tmp_path, monkeypatch) -> None:
    def broken_metadata(params):
        raise KeyError("x_res")

    monkeypatch.setattr(newton, "compute_metadata", broken_metadata)

    with pytest.raises(KeyError, match="x_res"):
        newton.main(["--output", str(tmp_path / "out.png")])
