class PixgridError(Exception):
    """Base class for every error raised by pixgrid."""


class InvalidInitializer(PixgridError, ValueError):
    """The initial value given to a grid does not describe width * height pixels."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class StreamLengthMismatch(InvalidInitializer):
    """A raw byte stream held a different number of pixels than width * height."""


class IndexOutOfBounds(PixgridError, IndexError):
    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(f"Coordinate ({x}, {y}) is outside the {width}x{height} grid")
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class EncodingError(PixgridError, ValueError):
    pass


class DecodingError(PixgridError, ValueError):
    pass


class DatastreamError(PixgridError, ValueError):
    pass
