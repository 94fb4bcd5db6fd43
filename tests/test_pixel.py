import numpy as np
import pytest

from pixgrid.pixel import BLACK, TRANSPARENT, WHITE, Pixel, pack_channels, unpack_channels


def test_packed_layout_is_rgba_big_endian():
    assert Pixel(0x12, 0x34, 0x56, 0x78).to_int() == 0x12345678
    assert int(Pixel(255, 0, 0)) == 0xFF0000FF


def test_from_int_roundtrip():
    for value in (0, 0xFFFFFFFF, 0x01020304, 0xDEADBEEF):
        assert Pixel.from_int(value).to_int() == value


def test_from_int_out_of_range():
    with pytest.raises(ValueError, match="out of range"):
        Pixel.from_int(1 << 32)
    with pytest.raises(ValueError):
        Pixel.from_int(-1)


def test_from_int_rejects_non_integers():
    with pytest.raises(TypeError):
        Pixel.from_int(3.7)
    with pytest.raises(TypeError):
        Pixel.from_int(True)
    assert Pixel.from_int(np.uint32(0xFF)) == Pixel(0, 0, 0, 255)


def test_channel_validation():
    with pytest.raises(ValueError, match="Channel r"):
        Pixel(256, 0, 0)
    with pytest.raises(ValueError, match="Channel a"):
        Pixel(0, 0, 0, -1)
    with pytest.raises(ValueError):
        Pixel(1.5, 0, 0)


def test_numpy_channels_are_normalised():
    pixel = Pixel(np.uint8(200), np.uint8(100), np.uint8(50), np.uint8(255))
    assert type(pixel.r) is int
    assert pixel.to_int() == 0xC86432FF


def test_rgb_bytes_force_opaque():
    assert Pixel.from_rgb_bytes(b"\x01\x02\x03") == Pixel(1, 2, 3, 255)
    assert Pixel(1, 2, 3, 4).to_rgb_bytes() == b"\x01\x02\x03"


def test_rgba_bytes_keep_alpha():
    assert Pixel.from_rgba_bytes(b"\x01\x02\x03\x04") == Pixel(1, 2, 3, 4)
    assert Pixel(1, 2, 3, 4).to_rgba_bytes() == b"\x01\x02\x03\x04"


def test_wrong_byte_group_length():
    with pytest.raises(ValueError, match="Expected 3 bytes"):
        Pixel.from_rgb_bytes(b"\x00\x00")
    with pytest.raises(ValueError, match="Expected 4 bytes"):
        Pixel.from_rgba_bytes(b"\x00\x00\x00")


def test_predicates():
    assert BLACK.opaque and BLACK.grayscale
    assert TRANSPARENT.fully_transparent and not TRANSPARENT.opaque
    assert not Pixel(1, 2, 3).grayscale
    assert WHITE == Pixel(255, 255, 255, 255)


def test_value_semantics():
    assert Pixel(1, 2, 3) == Pixel(1, 2, 3, 255)
    assert hash(Pixel(1, 2, 3)) == hash(Pixel(1, 2, 3, 255))
    assert Pixel(1, 2, 3) != Pixel(1, 2, 3, 254)


def test_pack_unpack_channels():
    packed = np.array([0x11223344, 0xFF000080], dtype=np.uint32)
    channels = unpack_channels(packed)
    assert channels.dtype == np.uint8
    np.testing.assert_array_equal(channels, [[0x11, 0x22, 0x33, 0x44], [0xFF, 0, 0, 0x80]])
    np.testing.assert_array_equal(pack_channels(channels), packed)
