import numpy as np

from pixgrid.errors import EncodingError
from pixgrid.pixel import Pixel

MAX_INDEXED_COLOURS = 256


class Palette:
    """The distinct colours of a grid, sorted by packed value.

    Built on demand from a grid's current contents; a grid never stores one.
    """

    def __init__(self, values):
        self._values = np.unique(np.asarray(values, dtype=np.uint32))
        self._values.flags.writeable = False

    @classmethod
    def from_grid(cls, grid) -> "Palette":
        return cls(grid.pixels)

    @property
    def values(self) -> np.ndarray:
        """Read-only sorted array of packed values."""
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        for value in self._values:
            yield Pixel.from_int(int(value))

    def __contains__(self, pixel) -> bool:
        value = int(pixel)
        i = np.searchsorted(self._values, value)
        return bool(i < len(self._values) and self._values[i] == value)

    def __eq__(self, other):
        if not isinstance(other, Palette):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Palette({len(self)} colours)"

    @property
    def indexable(self) -> bool:
        return len(self._values) <= MAX_INDEXED_COLOURS

    @property
    def opaque(self) -> bool:
        return bool(np.all(self._values & 0xFF == 0xFF))

    @property
    def grayscale(self) -> bool:
        r = self._values >> 24
        g = (self._values >> 16) & 0xFF
        b = (self._values >> 8) & 0xFF
        return bool(np.all((r == g) & (g == b)))

    def index(self, pixel) -> int:
        value = int(pixel)
        i = int(np.searchsorted(self._values, value))
        if i >= len(self._values) or self._values[i] != value:
            raise KeyError(f"{Pixel.from_int(value)!r} is not in the palette")
        return i

    def indices(self, values: np.ndarray) -> np.ndarray:
        """Map an array of packed values to palette indices as uint8."""
        if not self.indexable:
            raise EncodingError(f"Cannot index {len(self)} colours, the maximum is {MAX_INDEXED_COLOURS}")
        return np.searchsorted(self._values, values).astype(np.uint8)

    def to_plte_bytes(self) -> bytes:
        """RGB triples in palette order."""
        if not self.indexable:
            raise EncodingError(f"Cannot index {len(self)} colours, the maximum is {MAX_INDEXED_COLOURS}")
        rgb = np.stack(
            [(self._values >> 24) & 0xFF, (self._values >> 16) & 0xFF, (self._values >> 8) & 0xFF], axis=1
        )
        return rgb.astype(np.uint8).tobytes()

    def to_trns_bytes(self) -> bytes:
        """Alpha per entry, trailing opaque entries trimmed."""
        if not self.indexable:
            raise EncodingError(f"Cannot index {len(self)} colours, the maximum is {MAX_INDEXED_COLOURS}")
        alpha = (self._values & 0xFF).astype(np.uint8).tobytes()
        return alpha.rstrip(b"\xff")
