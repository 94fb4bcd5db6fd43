import zlib
from dataclasses import dataclass

import numpy as np

from pixgrid.datastream import Datastream
from pixgrid.encoding import BYTES_PER_PIXEL, COLOR_MODES
from pixgrid.errors import DecodingError
from pixgrid.pixel import pack_channels


@dataclass
class DecodedImage:
    width: int
    height: int
    pixels: np.ndarray  # flat uint32, packed 0xRRGGBBAA


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _unfilter_average(line: list[int], prev: list[int], bpp: int) -> list[int]:
    row = [0] * len(line)
    for i, value in enumerate(line):
        left = row[i - bpp] if i >= bpp else 0
        row[i] = (value + ((left + prev[i]) >> 1)) & 0xFF
    return row


def _unfilter_paeth(line: list[int], prev: list[int], bpp: int) -> list[int]:
    row = [0] * len(line)
    for i, value in enumerate(line):
        if i >= bpp:
            left, upleft = row[i - bpp], prev[i - bpp]
        else:
            left, upleft = 0, 0
        row[i] = (value + _paeth(left, prev[i], upleft)) & 0xFF
    return row


def unfilter_scanlines(data: bytes, height: int, row_bytes: int, bpp: int) -> np.ndarray:
    """Undo per-row filtering. Returns uint8 array of shape (height, row_bytes)."""
    expected = height * (row_bytes + 1)
    if len(data) != expected:
        raise DecodingError(f"Pixel payload has {len(data)} bytes, expected {expected}")

    raw = np.frombuffer(data, dtype=np.uint8).reshape(height, row_bytes + 1)
    out = np.zeros((height, row_bytes), dtype=np.uint8)
    prev = np.zeros(row_bytes, dtype=np.uint8)
    for y in range(height):
        filter_type = int(raw[y, 0])
        line = raw[y, 1:]
        if filter_type == 0:
            row = line
        elif filter_type == 1:
            # Sub is a running sum over each channel
            row = (line.astype(np.int64).reshape(-1, bpp).cumsum(axis=0) % 256).reshape(-1)
        elif filter_type == 2:
            row = (line.astype(np.uint16) + prev) % 256
        elif filter_type == 3:
            row = _unfilter_average(line.tolist(), prev.tolist(), bpp)
        elif filter_type == 4:
            row = _unfilter_paeth(line.tolist(), prev.tolist(), bpp)
        else:
            raise DecodingError(f"Unknown filter type {filter_type} on scanline {y}")
        out[y] = row
        prev = out[y]
    return out


def _palette_table(ds: Datastream) -> np.ndarray:
    """(n, 4) RGBA lookup table from PLTE and optional tRNS."""
    if ds.palette_chunk is None:
        raise DecodingError("Indexed image has no PLTE chunk")
    plte = ds.palette_chunk.content
    if len(plte) % 3:
        raise DecodingError(f"PLTE chunk length {len(plte)} is not a multiple of 3")
    rgb = np.frombuffer(plte, dtype=np.uint8).reshape(-1, 3)
    alpha = np.full(len(rgb), 255, dtype=np.uint8)
    if ds.transparency_chunk is not None:
        trns = np.frombuffer(ds.transparency_chunk.content, dtype=np.uint8)
        if len(trns) > len(rgb):
            raise DecodingError(f"tRNS chunk has {len(trns)} entries for {len(rgb)} palette colours")
        alpha[: len(trns)] = trns
    return np.column_stack([rgb, alpha])


def _samples_to_rgba(samples: np.ndarray, color_type: int, ds: Datastream) -> np.ndarray:
    """Expand (n, bpp) samples into (n, 4) RGBA."""
    n = len(samples)
    opaque = np.full((n, 1), 255, dtype=np.uint8)

    if color_type == 6:
        return samples
    if color_type == 4:
        gray, alpha = samples[:, :1], samples[:, 1:]
        return np.hstack([gray, gray, gray, alpha])
    if color_type == 3:
        table = _palette_table(ds)
        indices = samples[:, 0]
        if n and int(indices.max()) >= len(table):
            raise DecodingError(f"Palette index {int(indices.max())} out of range for {len(table)} colours")
        return table[indices]

    if color_type == 2:
        rgba = np.hstack([samples, opaque])
    else:
        rgba = np.hstack([samples, samples, samples, opaque])

    # Colour-keyed transparency for grayscale and truecolor, one 16-bit sample per channel
    if ds.transparency_chunk is not None:
        content = ds.transparency_chunk.content
        if len(content) != 2 * samples.shape[1]:
            raise DecodingError(f"tRNS chunk has {len(content)} bytes for color type {color_type}")
        key = np.frombuffer(content, dtype=">u2")
        matches = np.all(samples.astype(np.uint16) == key, axis=1)
        rgba[matches, 3] = 0
    return rgba


def decode(ds: Datastream) -> DecodedImage:
    header = ds.header_chunk
    if header.bit_depth != 8:
        raise DecodingError(f"Unsupported bit depth: {header.bit_depth}")
    if header.color_type not in COLOR_MODES:
        raise DecodingError(f"Unsupported color type: {header.color_type}")
    if header.compression != 0 or header.filtering != 0:
        raise DecodingError(f"Unsupported compression/filter method: {header.compression}/{header.filtering}")
    if header.interlace != 0:
        raise DecodingError("Interlaced images are not supported")

    try:
        data = zlib.decompress(ds.imagedata())
    except zlib.error as e:
        raise DecodingError(f"Corrupt pixel payload: {e}") from e

    width, height = header.width, header.height
    bpp = BYTES_PER_PIXEL[header.color_type]
    rows = unfilter_scanlines(data, height, width * bpp, bpp)
    samples = rows.reshape(width * height, bpp)
    rgba = _samples_to_rgba(samples, header.color_type, ds)
    return DecodedImage(width=width, height=height, pixels=pack_channels(rgba))
