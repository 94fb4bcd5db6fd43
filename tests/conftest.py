import pytest

from pixgrid.grid import PixelGrid
from pixgrid.pixel import Pixel

RED = Pixel(255, 0, 0)
GREEN = Pixel(0, 255, 0)
BLUE = Pixel(0, 0, 255)


def make_gradient(width=5, height=3, alpha=255):
    """Grid where every pixel is distinct: r tracks x, g tracks y."""
    pixels = [Pixel(x * 40 % 256, y * 60 % 256, (x + y) * 7 % 256, alpha) for y in range(height) for x in range(width)]
    return PixelGrid(width, height, pixels)


@pytest.fixture
def gradient():
    return make_gradient()


@pytest.fixture
def translucent():
    grid = make_gradient(4, 4)
    grid[1, 1] = Pixel(10, 20, 30, 0)
    grid[2, 3] = Pixel(200, 100, 50, 128)
    return grid
