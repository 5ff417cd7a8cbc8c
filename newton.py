import logging
import os
import sys
import warnings
from argparse import ArgumentParser, ArgumentTypeError
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

import PIL.Image
import imageio

from newtonfractal import (
    ArraySink,
    ConvergenceColorMapper,
    DEFAULT_PALETTE,
    FractalSampler,
    Polynomial,
    RenderParameters,
    RootSet,
    SamplingMetadata,
    SolverConfig,
    compute_metadata,
    hex_to_rgb,
    palette_from_colormap,
    render_frame,
)

log("TensorFlow version: %s" % tf.__version__)

# The tensor engine runs on the first GPU when one is visible and falls back
# to the CPU otherwise.
gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        log(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")


def complex_list(value: str) -> tuple[complex, ...]:
    """Parse a comma separated list such as ``1,0,0,-1`` or ``1,-0.5+0.866j``."""

    try:
        return tuple(complex(item.strip().replace(" ", "")) for item in value.split(",") if item.strip())
    except ValueError as exc:
        raise ArgumentTypeError(f"invalid complex list: {value!r}") from exc


def build_parser():
    parser = ArgumentParser(description="Render the basins of attraction of Newton's method.")

    parser.add_argument('--coefficients', type=complex_list,
                        dest='coefficients', help='comma separated polynomial coefficients, highest degree first',
                        metavar='COEFFICIENTS', default=(1, 0, 0, -1))

    parser.add_argument('--roots', type=complex_list,
                        dest='roots', help='comma separated roots to classify against (use --roots=...); '
                                           'computed from the coefficients when omitted',
                        metavar='ROOTS', default=None)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='maximum number of Newton steps per pixel',
                        metavar='MAX_ITERATIONS', default=50)

    parser.add_argument('--tolerance', type=float,
                        dest='tolerance', help='distance to a root at which a pixel counts as converged',
                        metavar='TOLERANCE', default=1e-6)

    parser.add_argument('--fixed-iterations', action='store_true',
                        help='always take exactly MAX_ITERATIONS steps, then classify by nearest root')

    parser.add_argument('--x-res', type=int,
                        dest='x_res', help='resolution of samples along the x-axis',
                        metavar='X_RES', default=512)

    parser.add_argument('--y-res', type=int,
                        dest='y_res', help='resolution of samples along the y-axis',
                        metavar='Y_RES', default=512)

    parser.add_argument('--x-center', type=float,
                        dest='x_center', help='real part of the window centre',
                        metavar='X_CENTER', default=0.0)

    parser.add_argument('--x-width', type=float,
                        dest='x_width', help='width of the window in the complex plane',
                        metavar='X_WIDTH', default=4.0)

    parser.add_argument('--y-center', type=float,
                        dest='y_center', help='imaginary part of the window centre',
                        metavar='Y_CENTER', default=0.0)

    parser.add_argument('--y-width', type=float,
                        dest='y_width', help='height of the window in the complex plane',
                        metavar='Y_WIDTH', default=4.0)

    parser.add_argument('--engine', choices=['pixel', 'tensor'], default='tensor',
                        help='"pixel" solves one pixel at a time; "tensor" solves the whole raster with TensorFlow.')

    parser.add_argument('--mode', choices=['image', 'gif'], default='image',
                        help='"image" writes one picture; "gif" animates the fixed-iteration progression 1..MAX_ITERATIONS.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination file. Defaults to newton.FORMAT or newton.gif.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for image output. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap to draw root colors from (e.g. "twilight", "tab10")',
                        metavar='COLORMAP', default=None)

    parser.add_argument('--gamma', type=float, default=0.5,
                        help='Brightness falls off as iterations ** -gamma.')
    parser.add_argument('--mark-unconverged', action='store_true',
                        help='Paint pixels that never came within tolerance of a root with the sentinel color.')
    parser.add_argument('--sentinel-color', type=str, default='#000000',
                        help='Hex color for pixels whose iteration blew up (and, with --mark-unconverged, never converged).')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_output_path(opt, parser: ArgumentParser) -> Path:
    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    expected_suffix = ".gif" if opt.mode == "gif" else f".{image_format}"

    if not opt.output:
        return Path(f"newton{expected_suffix}").expanduser().resolve()

    output_path = Path(opt.output).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")
    if output_path.suffix:
        if output_path.suffix.lower() != expected_suffix:
            parser.error(f"--output extension {output_path.suffix} does not match the {opt.mode} output ({expected_suffix}).")
    else:
        output_path = output_path.with_suffix(expected_suffix)
    return output_path.resolve()


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def render_rgb(
    engine: str,
    polynomial: Polynomial,
    roots: RootSet,
    config: SolverConfig,
    metadata: SamplingMetadata,
    mapper: ConvergenceColorMapper,
) -> np.ndarray:
    """Render one frame as a ``(y_res, x_res, 3)`` ``uint8`` array with the imaginary axis pointing up."""

    if engine == "pixel":
        sink = ArraySink(metadata.x_res, metadata.y_res)
        FractalSampler(polynomial, roots, config, metadata, mapper).render(sink)
        rgb = sink.array
    else:
        result = render_frame(polynomial, roots, config, metadata, device=DEVICE)
        rgb = mapper.map_array(result.root_indices, result.iterations, result.converged)
    # Row 0 holds the smallest imaginary part.
    return np.ascontiguousarray(np.flipud(rgb))


def resolve_palette(opt, parser: ArgumentParser, size: int):
    if not opt.colormap:
        return DEFAULT_PALETTE
    try:
        return palette_from_colormap(opt.colormap, size)
    except KeyError:
        parser.error(f"Unknown colormap {opt.colormap!r}.")


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    if VERBOSE:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s - %(levelname)s - %(message)s")

    output_path = resolve_output_path(opt, parser)
    image_format = (opt.format or "png").lower().lstrip(".") or "png"

    try:
        polynomial = Polynomial(opt.coefficients)
        roots = RootSet(opt.roots) if opt.roots else polynomial.roots()
        config = SolverConfig(
            tolerance_radius=opt.tolerance,
            max_iterations=opt.max_iterations,
            use_exact_stop=not opt.fixed_iterations,
        )
        metadata = compute_metadata(RenderParameters(
            x_res=opt.x_res,
            y_res=opt.y_res,
            x_center=opt.x_center,
            y_center=opt.y_center,
            x_width=opt.x_width,
            y_width=opt.y_width,
        ))
        mapper = ConvergenceColorMapper(
            palette=resolve_palette(opt, parser, len(roots)),
            gamma=opt.gamma,
            sentinel_color=hex_to_rgb(opt.sentinel_color),
            mark_unconverged=bool(opt.mark_unconverged),
            root_count=len(roots),
        )
    except ValueError as exc:
        parser.error(str(exc))

    log("f(z) = %s" % polynomial)
    log("roots: %s" % ", ".join(f"{r:.6g}" for r in roots))

    if opt.mode == "image":
        rgb = render_rgb(opt.engine, polynomial, roots, config, metadata, mapper)
        write_single_image(PIL.Image.fromarray(rgb), output_path, image_format)
    else:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        writer = imageio.get_writer(str(output_path), mode='I', duration=0.1, loop=0)
        try:
            for n in range(1, opt.max_iterations + 1):
                print("frame {0} out of {1}".format(n, opt.max_iterations), end='\r')
                frame_config = SolverConfig(
                    tolerance_radius=config.tolerance_radius,
                    max_iterations=n,
                    use_exact_stop=False,
                )
                writer.append_data(render_rgb(opt.engine, polynomial, roots, frame_config, metadata, mapper))
        finally:
            writer.close()

    log("wrote %s" % output_path)
    return output_path


if __name__ == '__main__':
    main()
