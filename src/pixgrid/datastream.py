"""PNG chunk framing: signature, length/type/content/CRC chunks, IEND trailer."""

import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path

from pixgrid.errors import DatastreamError

SIGNATURE = b"\x89PNG\r\n\x1a\n"
DEFAULT_DATA_CHUNK_SIZE = 1 << 16

_HEADER_FORMAT = ">IIBBBBB"


def _crc(chunk_type: bytes, content: bytes) -> int:
    return zlib.crc32(content, zlib.crc32(chunk_type)) & 0xFFFFFFFF


@dataclass
class Chunk:
    type: bytes
    content: bytes = b""

    def to_bytes(self) -> bytes:
        return (
            struct.pack(">I", len(self.content))
            + self.type
            + self.content
            + struct.pack(">I", _crc(self.type, self.content))
        )


@dataclass
class HeaderChunk:
    width: int
    height: int
    bit_depth: int = 8
    color_type: int = 6
    compression: int = 0
    filtering: int = 0
    interlace: int = 0

    type = b"IHDR"

    @property
    def content(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.width,
            self.height,
            self.bit_depth,
            self.color_type,
            self.compression,
            self.filtering,
            self.interlace,
        )

    @classmethod
    def from_content(cls, content: bytes) -> "HeaderChunk":
        if len(content) != struct.calcsize(_HEADER_FORMAT):
            raise DatastreamError(f"IHDR chunk has {len(content)} bytes, expected 13")
        return cls(*struct.unpack(_HEADER_FORMAT, content))

    def to_bytes(self) -> bytes:
        return Chunk(self.type, self.content).to_bytes()


class EndChunk(Chunk):
    """The fixed trailer marker closing every datastream."""

    def __init__(self):
        super().__init__(b"IEND", b"")


@dataclass
class Datastream:
    header_chunk: HeaderChunk
    palette_chunk: Chunk | None = None
    transparency_chunk: Chunk | None = None
    data_chunks: list[Chunk] = field(default_factory=list)
    other_chunks: list[Chunk] = field(default_factory=list)
    end_chunk: Chunk = field(default_factory=EndChunk)

    @staticmethod
    def idat_chunks(pixelstream: bytes, chunk_size: int = DEFAULT_DATA_CHUNK_SIZE) -> list[Chunk]:
        """Split a compressed payload into IDAT chunks of at most chunk_size bytes."""
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        chunks = [Chunk(b"IDAT", pixelstream[i : i + chunk_size]) for i in range(0, len(pixelstream), chunk_size)]
        return chunks or [Chunk(b"IDAT", b"")]

    def chunks(self):
        """Yield chunks in file order."""
        yield self.header_chunk
        yield from self.other_chunks
        if self.palette_chunk is not None:
            yield self.palette_chunk
        if self.transparency_chunk is not None:
            yield self.transparency_chunk
        yield from self.data_chunks
        yield self.end_chunk

    def imagedata(self) -> bytes:
        return b"".join(chunk.content for chunk in self.data_chunks)

    def to_bytes(self) -> bytes:
        return SIGNATURE + b"".join(chunk.to_bytes() for chunk in self.chunks())

    def save(self, path: str | Path) -> None:
        Path(path).write_bytes(self.to_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "Datastream":
        if data[: len(SIGNATURE)] != SIGNATURE:
            raise DatastreamError(f"Not a PNG datastream: {data[:len(SIGNATURE)]!r}")

        header = None
        palette = None
        transparency = None
        data_chunks: list[Chunk] = []
        other_chunks: list[Chunk] = []
        end = None

        offset = len(SIGNATURE)
        while offset < len(data):
            if offset + 8 > len(data):
                raise DatastreamError(f"Truncated chunk header at offset {offset}")
            length, chunk_type = struct.unpack(">I4s", data[offset : offset + 8])
            content_end = offset + 8 + length
            if content_end + 4 > len(data):
                raise DatastreamError(f"Truncated {chunk_type!r} chunk at offset {offset}")
            content = data[offset + 8 : content_end]
            (crc,) = struct.unpack(">I", data[content_end : content_end + 4])
            if crc != _crc(chunk_type, content):
                raise DatastreamError(f"CRC mismatch in {chunk_type!r} chunk at offset {offset}")
            offset = content_end + 4

            if chunk_type == b"IHDR":
                header = HeaderChunk.from_content(content)
            elif chunk_type == b"PLTE":
                palette = Chunk(chunk_type, content)
            elif chunk_type == b"tRNS":
                transparency = Chunk(chunk_type, content)
            elif chunk_type == b"IDAT":
                data_chunks.append(Chunk(chunk_type, content))
            elif chunk_type == b"IEND":
                end = EndChunk()
                break
            else:
                other_chunks.append(Chunk(chunk_type, content))

        if header is None:
            raise DatastreamError("Datastream has no IHDR chunk")
        if end is None:
            raise DatastreamError("Datastream has no IEND chunk")
        return cls(
            header_chunk=header,
            palette_chunk=palette,
            transparency_chunk=transparency,
            data_chunks=data_chunks,
            other_chunks=other_chunks,
            end_chunk=end,
        )

    @classmethod
    def load(cls, path: str | Path) -> "Datastream":
        return cls.from_bytes(Path(path).read_bytes())
