import io

import pytest

from pixgrid.errors import InvalidInitializer, StreamLengthMismatch
from pixgrid.grid import PixelGrid
from pixgrid.pixel import Pixel


def test_rgb_stream_scenario():
    grid = PixelGrid.from_rgb_stream(2, 1, io.BytesIO(bytes([0, 0, 0, 255, 255, 255])))
    assert grid.get(0, 0) == Pixel(0, 0, 0, 255)
    assert grid.get(1, 0) == Pixel(255, 255, 255, 255)


def test_rgb_stream_roundtrip():
    width, height = 4, 3
    data = bytes(range(3 * width * height))
    grid = PixelGrid.from_rgb_stream(width, height, io.BytesIO(data))
    for y in range(height):
        for x in range(width):
            i = 3 * (y * width + x)
            assert grid.get(x, y) == Pixel(data[i], data[i + 1], data[i + 2], 255)
    assert grid.to_rgb_stream() == data


def test_rgba_stream_roundtrip():
    width, height = 3, 3
    data = bytes((i * 7) % 256 for i in range(4 * width * height))
    grid = PixelGrid.from_rgba_stream(width, height, io.BytesIO(data))
    for y in range(height):
        for x in range(width):
            i = 4 * (y * width + x)
            assert grid.get(x, y).a == data[i + 3]
    assert grid.to_rgba_stream() == data


def test_accepts_bytes_directly():
    grid = PixelGrid.from_rgba_stream(1, 1, b"\x01\x02\x03\x04")
    assert grid[0, 0] == Pixel(1, 2, 3, 4)


def test_trailing_partial_group_is_dropped():
    grid = PixelGrid.from_rgb_stream(1, 1, io.BytesIO(b"\x01\x02\x03\x04\x05"))
    assert grid[0, 0] == Pixel(1, 2, 3)
    grid = PixelGrid.from_rgba_stream(1, 1, io.BytesIO(b"\x01\x02\x03\x04\x05\x06\x07"))
    assert grid[0, 0] == Pixel(1, 2, 3, 4)


def test_short_stream():
    with pytest.raises(StreamLengthMismatch, match="held 1 pixels.*expected 2") as excinfo:
        PixelGrid.from_rgb_stream(2, 1, io.BytesIO(b"\x00\x00\x00"))
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 1


def test_long_stream():
    with pytest.raises(StreamLengthMismatch):
        PixelGrid.from_rgba_stream(1, 1, io.BytesIO(bytes(8)))


def test_mismatch_is_invalid_initializer():
    with pytest.raises(InvalidInitializer):
        PixelGrid.from_rgb_stream(2, 2, io.BytesIO(bytes(3)))


def test_empty_stream():
    assert PixelGrid.from_rgb_stream(0, 0, io.BytesIO(b"")).size() == (0, 0)


def test_reads_from_file(tmp_path):
    path = tmp_path / "pixels.rgb"
    path.write_bytes(bytes([10, 20, 30] * 6))
    with path.open("rb") as f:
        grid = PixelGrid.from_rgb_stream(3, 2, f)
    assert grid == PixelGrid(3, 2, Pixel(10, 20, 30))
