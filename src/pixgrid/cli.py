import argparse
import sys
from pathlib import Path

from pixgrid.datastream import Datastream
from pixgrid.encoding import COLOR_MODES, COLOR_TYPES, FILTERS
from pixgrid.errors import PixgridError
from pixgrid.grid import PixelGrid


def _encode(args) -> None:
    with Path(args.input).open("rb") as f:
        if args.rgba:
            grid = PixelGrid.from_rgba_stream(args.width, args.height, f)
        else:
            grid = PixelGrid.from_rgb_stream(args.width, args.height, f)
    grid.save(args.output, color_mode=args.color_mode, filter=args.filter, compression=args.compression)


def _decode(args) -> None:
    grid = PixelGrid.load(args.input)
    data = grid.to_rgb_stream() if args.rgb else grid.to_rgba_stream()
    Path(args.output).write_bytes(data)


def _info(args) -> None:
    ds = Datastream.load(args.input)
    grid = PixelGrid.from_datastream(ds)
    header = ds.header_chunk
    print(f"size: {header.width}x{header.height}")
    print(f"color mode: {COLOR_MODES.get(header.color_type, header.color_type)}")
    print(f"data chunks: {len(ds.data_chunks)}")
    print(f"colours: {len(grid.palette())}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert between raw pixel streams and PNG")
    sub = parser.add_subparsers(dest="command", required=True)

    encode = sub.add_parser("encode", help="Encode a raw RGB/RGBA byte stream as PNG")
    encode.add_argument("input", help="Path to raw pixel stream")
    encode.add_argument("-W", "--width", type=int, required=True, help="Image width in pixels")
    encode.add_argument("-H", "--height", type=int, required=True, help="Image height in pixels")
    encode.add_argument("-o", "--output", required=True, help="Path to output PNG")
    encode.add_argument("--rgba", action="store_true", default=False, help="Input has 4 bytes per pixel")
    encode.add_argument(
        "-m",
        "--color-mode",
        default="auto",
        choices=["auto", *COLOR_TYPES],
        help="Output color mode (default: auto, picks the smallest lossless mode)",
    )
    encode.add_argument("-f", "--filter", default="none", choices=list(FILTERS), help="Scanline filter")
    encode.add_argument("-c", "--compression", type=int, default=-1, help="zlib level, -1 to 9 (default: -1)")
    encode.set_defaults(func=_encode)

    decode = sub.add_parser("decode", help="Decode a PNG into a raw RGBA (or RGB) byte stream")
    decode.add_argument("input", help="Path to PNG")
    decode.add_argument("-o", "--output", required=True, help="Path to raw output")
    decode.add_argument("--rgb", action="store_true", default=False, help="Drop the alpha channel")
    decode.set_defaults(func=_decode)

    info = sub.add_parser("info", help="Describe a PNG")
    info.add_argument("input", help="Path to PNG")
    info.set_defaults(func=_info)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"File not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    try:
        args.func(args)
    except (PixgridError, OSError) as e:
        print(f"{args.command} failed: {e}", file=sys.stderr)
        sys.exit(1)
