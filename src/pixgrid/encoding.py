import zlib
from dataclasses import dataclass, fields

import numpy as np

from pixgrid.errors import EncodingError
from pixgrid.palette import Palette
from pixgrid.pixel import unpack_channels

COLOR_TYPES = {
    "grayscale": 0,
    "truecolor": 2,
    "indexed": 3,
    "grayscale_alpha": 4,
    "truecolor_alpha": 6,
}
COLOR_MODES = {value: key for key, value in COLOR_TYPES.items()}

# Bytes per pixel at bit depth 8
BYTES_PER_PIXEL = {0: 1, 2: 3, 3: 1, 4: 2, 6: 4}

FILTERS = {"none": 0, "sub": 1, "up": 2, "average": 3, "paeth": 4}


@dataclass
class EncodeOptions:
    color_mode: str = "auto"
    filter: str = "none"
    compression: int = zlib.Z_DEFAULT_COMPRESSION

    def __post_init__(self):
        if self.color_mode != "auto" and self.color_mode not in COLOR_TYPES:
            raise EncodingError(f"Unknown color mode: {self.color_mode!r}")
        if self.filter not in FILTERS:
            raise EncodingError(f"Unknown filter: {self.filter!r}")
        if not -1 <= self.compression <= 9:
            raise EncodingError(f"Compression level must be in [-1, 9], got {self.compression}")

    @classmethod
    def from_mapping(cls, mapping=None) -> "EncodeOptions":
        if mapping is None:
            return cls()
        if isinstance(mapping, cls):
            return mapping
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - known
        if unknown:
            raise EncodingError(f"Unknown encode options: {', '.join(sorted(unknown))}")
        return cls(**mapping)


@dataclass
class EncodedImage:
    header: dict[str, int]
    pixelstream: bytes
    palette_chunk: bytes | None = None
    transparency_chunk: bytes | None = None


def choose_color_mode(palette: Palette, requested: str = "auto") -> str:
    """Resolve "auto" and reject modes that cannot represent every colour in the palette."""
    if requested == "auto":
        if palette.indexable:
            return "indexed"
        return "truecolor" if palette.opaque else "truecolor_alpha"

    if requested == "indexed" and not palette.indexable:
        raise EncodingError(f"Cannot encode {len(palette)} colours as indexed, the maximum is 256")
    if requested in ("truecolor", "grayscale") and not palette.opaque:
        raise EncodingError(f"Cannot encode translucent pixels as {requested}")
    if requested in ("grayscale", "grayscale_alpha") and not palette.grayscale:
        raise EncodingError(f"Cannot encode coloured pixels as {requested}")
    return requested


def _raw_scanlines(grid, color_mode: str, palette: Palette) -> np.ndarray:
    """Unfiltered scanline bytes, shape (height, width * bytes_per_pixel)."""
    width, height = grid.size()
    if color_mode == "indexed":
        samples = palette.indices(grid.pixels)
    else:
        rgba = unpack_channels(grid.pixels)
        if color_mode == "truecolor_alpha":
            samples = rgba
        elif color_mode == "truecolor":
            samples = rgba[:, :3]
        elif color_mode == "grayscale_alpha":
            samples = rgba[:, [0, 3]]
        else:
            samples = rgba[:, :1]
    bpp = BYTES_PER_PIXEL[COLOR_TYPES[color_mode]]
    return np.ascontiguousarray(samples).reshape(height, width * bpp)


def paeth_predictor(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Paeth predictor over int16 arrays of left, up and upper-left bytes."""
    p = a + b - c
    pa = np.abs(p - a)
    pb = np.abs(p - b)
    pc = np.abs(p - c)
    return np.where((pa <= pb) & (pa <= pc), a, np.where(pb <= pc, b, c))


def filter_scanlines(rows: np.ndarray, bpp: int, filter_type: int) -> np.ndarray:
    """Apply one filter type to every row. Rows reference the unfiltered previous row."""
    x = rows.astype(np.int16)
    left = np.zeros_like(x)
    left[:, bpp:] = x[:, :-bpp]
    up = np.zeros_like(x)
    up[1:] = x[:-1]

    if filter_type == 0:
        out = x
    elif filter_type == 1:
        out = x - left
    elif filter_type == 2:
        out = x - up
    elif filter_type == 3:
        out = x - (left + up) // 2
    elif filter_type == 4:
        upleft = np.zeros_like(x)
        upleft[1:] = left[:-1]
        out = x - paeth_predictor(left, up, upleft)
    else:
        raise EncodingError(f"Unknown filter type: {filter_type}")
    return (out % 256).astype(np.uint8)


def encode(grid, options: EncodeOptions | None = None) -> EncodedImage:
    """Turn a grid into header metadata, optional palette tables and a compressed pixel payload."""
    options = EncodeOptions.from_mapping(options)
    width, height = grid.size()
    palette = grid.palette()
    color_mode = choose_color_mode(palette, options.color_mode)
    color_type = COLOR_TYPES[color_mode]
    bpp = BYTES_PER_PIXEL[color_type]
    filter_type = FILTERS[options.filter]

    rows = _raw_scanlines(grid, color_mode, palette)
    filtered = filter_scanlines(rows, bpp, filter_type)
    prefixed = np.concatenate([np.full((height, 1), filter_type, dtype=np.uint8), filtered], axis=1)
    pixelstream = zlib.compress(prefixed.tobytes(), options.compression)

    palette_chunk = None
    transparency_chunk = None
    if color_mode == "indexed":
        palette_chunk = palette.to_plte_bytes()
        transparency_chunk = palette.to_trns_bytes() or None

    header = {
        "width": width,
        "height": height,
        "bit_depth": 8,
        "color_type": color_type,
        "compression": 0,
        "filtering": 0,
        "interlace": 0,
    }
    return EncodedImage(
        header=header,
        pixelstream=pixelstream,
        palette_chunk=palette_chunk,
        transparency_chunk=transparency_chunk,
    )
