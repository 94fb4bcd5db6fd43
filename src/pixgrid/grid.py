import io
from collections.abc import Sequence
from dataclasses import asdict
from numbers import Integral
from pathlib import Path

import numpy as np

from pixgrid.datastream import Chunk, Datastream, EndChunk, HeaderChunk
from pixgrid.decoding import decode
from pixgrid.encoding import EncodeOptions, encode
from pixgrid.errors import IndexOutOfBounds, InvalidInitializer, StreamLengthMismatch
from pixgrid.palette import Palette
from pixgrid.pixel import PACKED_MAX, TRANSPARENT, Pixel, unpack_channels


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _packed(pixel) -> int:
    if isinstance(pixel, Pixel):
        return pixel.to_int()
    if _is_int(pixel) and 0 <= pixel <= PACKED_MAX:
        return int(pixel)
    raise TypeError(f"Cannot use {pixel!r} as a pixel")


def _pack_sequence(initial) -> np.ndarray:
    if isinstance(initial, np.ndarray) and np.issubdtype(initial.dtype, np.integer):
        if initial.size and (initial.min() < 0 or initial.max() > PACKED_MAX):
            raise InvalidInitializer("Packed pixel values must be in [0, 2**32)")
        return initial.astype(np.uint32)
    try:
        values = [_packed(pixel) for pixel in initial]
    except TypeError as e:
        raise InvalidInitializer(str(e)) from e
    return np.array(values, dtype=np.uint32)


class PixelGrid:
    """A width x height matrix of RGBA pixels.

    Pixels are stored row-major as packed 0xRRGGBBAA uint32 values in a flat
    buffer of exactly width * height entries; the pixel at (x, y) lives at
    offset y * width + x. Reads return Pixel values, never views into the buffer.
    """

    def __init__(self, width: int, height: int, initial=TRANSPARENT):
        for name, value in (("width", width), ("height", height)):
            if not _is_int(value) or value < 0:
                raise InvalidInitializer(f"{name} must be a non-negative integer, got {value!r}")
        self._width = int(width)
        self._height = int(height)
        count = self._width * self._height

        if isinstance(initial, Pixel):
            self._pixels = np.full(count, initial.to_int(), dtype=np.uint32)
        elif isinstance(initial, (Sequence, np.ndarray)) and not isinstance(initial, (str, bytes, bytearray)):
            if isinstance(initial, np.ndarray) and initial.ndim != 1:
                raise InvalidInitializer(f"Expected a flat array of pixels, got shape {initial.shape}")
            if len(initial) != count:
                raise InvalidInitializer(
                    f"Expected {count} pixels for a {width}x{height} grid, got {len(initial)}",
                    expected=count,
                    actual=len(initial),
                )
            self._pixels = _pack_sequence(initial)
        else:
            raise InvalidInitializer(f"Cannot use this value as initial pixels: {initial!r}")

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixels(self) -> np.ndarray:
        """Read-only copy of the packed buffer."""
        snapshot = self._pixels.copy()
        snapshot.flags.writeable = False
        return snapshot

    def size(self) -> tuple[int, int]:
        return (self._width, self._height)

    def _offset(self, x: int, y: int) -> int:
        if not (_is_int(x) and _is_int(y)):
            raise TypeError(f"Coordinates must be integers, got ({x!r}, {y!r})")
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexOutOfBounds(x, y, self._width, self._height)
        return y * self._width + x

    def get(self, x: int, y: int) -> Pixel:
        return Pixel.from_int(int(self._pixels[self._offset(x, y)]))

    def set(self, x: int, y: int, pixel: Pixel) -> None:
        offset = self._offset(x, y)
        self._pixels[offset] = _packed(pixel)

    def __getitem__(self, coords: tuple[int, int]) -> Pixel:
        x, y = coords
        return self.get(x, y)

    def __setitem__(self, coords: tuple[int, int], pixel: Pixel) -> None:
        x, y = coords
        self.set(x, y, pixel)

    def scanline(self, y: int) -> list[Pixel]:
        if not _is_int(y):
            raise TypeError(f"Row index must be an integer, got {y!r}")
        if not 0 <= y < self._height:
            raise IndexOutOfBounds(0, y, self._width, self._height)
        start = y * self._width
        return [Pixel.from_int(value) for value in self._pixels[start : start + self._width].tolist()]

    def each_scanline(self):
        """Yield every row top to bottom, each a list of width Pixels left to right."""
        for y in range(self._height):
            yield self.scanline(y)

    def palette(self) -> Palette:
        return Palette.from_grid(self)

    def copy(self) -> "PixelGrid":
        return PixelGrid(self._width, self._height, self._pixels)

    def __eq__(self, other):
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return (
            self._width == other._width
            and self._height == other._height
            and np.array_equal(self._pixels, other._pixels)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelGrid({self._width}x{self._height})"

    def to_rgb_stream(self) -> bytes:
        return unpack_channels(self._pixels)[:, :3].tobytes()

    def to_rgba_stream(self) -> bytes:
        return unpack_channels(self._pixels).tobytes()

    def export(self, options: EncodeOptions | dict | None = None, **kwargs) -> Datastream:
        """Encode this grid and frame the result as a datastream ending in IEND.

        Options come from an EncodeOptions, a mapping, keywords, or a mix; keywords win.
        """
        if isinstance(options, EncodeOptions):
            options = asdict(options)
        options = {**(options or {}), **kwargs}
        data = encode(self, EncodeOptions.from_mapping(options))
        ds = Datastream(header_chunk=HeaderChunk(**data.header))
        if data.palette_chunk is not None:
            ds.palette_chunk = Chunk(b"PLTE", data.palette_chunk)
        if data.transparency_chunk is not None:
            ds.transparency_chunk = Chunk(b"tRNS", data.transparency_chunk)
        ds.data_chunks = Datastream.idat_chunks(data.pixelstream)
        ds.end_chunk = EndChunk()
        return ds

    to_datastream = export

    def to_bytes(self, **options) -> bytes:
        return self.export(**options).to_bytes()

    def save(self, path: str | Path, **options) -> None:
        self.export(**options).save(path)

    @classmethod
    def _from_stream(cls, width: int, height: int, stream, group_size: int, make_pixel) -> "PixelGrid":
        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(stream)
        pixels = []
        while True:
            data = stream.read(group_size)
            if not data or len(data) < group_size:
                break
            pixels.append(make_pixel(data))
        try:
            return cls(width, height, pixels)
        except InvalidInitializer as e:
            if e.expected is None:
                raise
            raise StreamLengthMismatch(
                f"Stream held {e.actual} pixels of {group_size} bytes, expected {e.expected} "
                f"for a {width}x{height} grid",
                expected=e.expected,
                actual=e.actual,
            ) from e

    @classmethod
    def from_rgb_stream(cls, width: int, height: int, stream) -> "PixelGrid":
        """Read 3-byte RGB groups until the stream runs out; alpha is opaque."""
        return cls._from_stream(width, height, stream, 3, Pixel.from_rgb_bytes)

    @classmethod
    def from_rgba_stream(cls, width: int, height: int, stream) -> "PixelGrid":
        return cls._from_stream(width, height, stream, 4, Pixel.from_rgba_bytes)

    @classmethod
    def from_datastream(cls, ds: Datastream) -> "PixelGrid":
        decoded = decode(ds)
        return cls(decoded.width, decoded.height, decoded.pixels)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PixelGrid":
        return cls.from_datastream(Datastream.from_bytes(data))

    @classmethod
    def load(cls, path: str | Path) -> "PixelGrid":
        return cls.from_datastream(Datastream.load(path))
