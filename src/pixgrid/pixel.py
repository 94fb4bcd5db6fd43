import struct
from dataclasses import dataclass
from numbers import Integral

import numpy as np

# Packed layout: 0xRRGGBBAA, one unsigned 32-bit integer per pixel
CHANNEL_BITS = 8
CHANNEL_MAX = (1 << CHANNEL_BITS) - 1
PACKED_MAX = (1 << 32) - 1

_SHIFTS = np.array([24, 16, 8, 0], dtype=np.uint32)


@dataclass(frozen=True)
class Pixel:
    """A single RGBA colour. Converts losslessly to and from the packed integer form."""

    r: int
    g: int
    b: int
    a: int = CHANNEL_MAX

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not isinstance(value, Integral) or isinstance(value, bool) or not 0 <= value <= CHANNEL_MAX:
                raise ValueError(f"Channel {name} must be an integer in [0, {CHANNEL_MAX}], got {value!r}")
            # numpy integers would overflow in the packing shifts
            object.__setattr__(self, name, int(value))

    @classmethod
    def from_int(cls, value: int) -> "Pixel":
        if not isinstance(value, Integral) or isinstance(value, bool):
            raise TypeError(f"Packed pixel value must be an integer, got {value!r}")
        value = int(value)
        if not 0 <= value <= PACKED_MAX:
            raise ValueError(f"Packed pixel value out of range: {value:#x}")
        return cls((value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    @classmethod
    def from_rgb_bytes(cls, data: bytes) -> "Pixel":
        if len(data) != 3:
            raise ValueError(f"Expected 3 bytes for an RGB pixel, got {len(data)}")
        r, g, b = struct.unpack("BBB", data)
        return cls(r, g, b)

    @classmethod
    def from_rgba_bytes(cls, data: bytes) -> "Pixel":
        if len(data) != 4:
            raise ValueError(f"Expected 4 bytes for an RGBA pixel, got {len(data)}")
        return cls(*struct.unpack("BBBB", data))

    def to_int(self) -> int:
        return (self.r << 24) | (self.g << 16) | (self.b << 8) | self.a

    def __int__(self) -> int:
        return self.to_int()

    def to_rgb_bytes(self) -> bytes:
        return struct.pack("BBB", self.r, self.g, self.b)

    def to_rgba_bytes(self) -> bytes:
        return struct.pack("BBBB", self.r, self.g, self.b, self.a)

    @property
    def opaque(self) -> bool:
        return self.a == CHANNEL_MAX

    @property
    def fully_transparent(self) -> bool:
        return self.a == 0

    @property
    def grayscale(self) -> bool:
        return self.r == self.g == self.b

    def __repr__(self) -> str:
        return f"Pixel({self.r}, {self.g}, {self.b}, {self.a})"


def unpack_channels(packed: np.ndarray) -> np.ndarray:
    """Split packed values into an (..., 4) uint8 array of R, G, B, A."""
    packed = np.asarray(packed, dtype=np.uint32)
    return ((packed[..., np.newaxis] >> _SHIFTS) & CHANNEL_MAX).astype(np.uint8)


def pack_channels(channels: np.ndarray) -> np.ndarray:
    """Inverse of unpack_channels: (..., 4) channel values to packed uint32."""
    channels = np.asarray(channels).astype(np.uint32)
    return (channels << _SHIFTS).sum(axis=-1, dtype=np.uint32)


TRANSPARENT = Pixel(0, 0, 0, 0)
BLACK = Pixel(0, 0, 0)
WHITE = Pixel(255, 255, 255)
