"""RIFF/WAVE chunk utilities.

This module locates chunks inside an in-memory RIFF/WAVE buffer and slices
out the PCM payload of the ``data`` chunk. Two lookup strategies exist:

- A structural walk that follows each chunk's declared size (the default).
- A naive byte scan for the 4-byte id, kept for parity with files handled
  by the original conversion tool.

It also builds WAVE files around already-encoded sample data.
"""

import logging
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from wav2ulaw.types import ScanMode

log = logging.getLogger(__name__)

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

# Audio format codes
WAVE_FORMAT_PCM = 1
WAVE_FORMAT_MULAW = 7

# RIFF tag + size + WAVE tag
RIFF_HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8

NOT_FOUND = -1


class RiffError(Exception):
    """Error reading or writing RIFF files."""


class ChunkNotFoundError(RiffError):
    """The requested chunk id is not present in the searched region."""

    def __init__(self, chunk_id: bytes) -> None:
        self.chunk_id = chunk_id
        super().__init__(f"{chunk_id.decode('ascii', 'replace')} chunk not found in WAV data")


class TruncatedPayloadError(RiffError):
    """A chunk declares more payload bytes than the buffer holds."""

    def __init__(self, chunk_id: bytes, declared: int, available: int) -> None:
        self.chunk_id = chunk_id
        self.declared = declared
        self.available = available
        super().__init__(
            f"{chunk_id.decode('ascii', 'replace')} chunk declares {declared} bytes "
            f"but only {available} are present"
        )


@dataclass(frozen=True)
class Chunk:
    """A chunk record produced by the structural walk."""

    tag: bytes
    """The 4-byte chunk identifier."""

    offset: int
    """Offset of the first byte of the chunk id."""

    size: int
    """Payload length as declared in the chunk header."""

    @property
    def payload_offset(self) -> int:
        """Offset of the first payload byte."""
        return self.offset + CHUNK_HEADER_SIZE

    @property
    def payload_end(self) -> int:
        """Offset one past the last declared payload byte."""
        return self.payload_offset + self.size


@dataclass(frozen=True)
class WaveFormat:
    """Audio format fields from a ``fmt `` chunk."""

    audio_format: int
    num_channels: int
    sample_rate: int
    bits_per_sample: int

    @property
    def is_pcm16(self) -> bool:
        return self.audio_format == WAVE_FORMAT_PCM and self.bits_per_sample == 16


def _check_chunk_id(chunk_id: bytes) -> None:
    if len(chunk_id) != 4:
        raise ValueError(f"Chunk id must be exactly 4 bytes, got {chunk_id!r}")


def find_chunk(buffer: bytes, chunk_id: bytes) -> int:
    """Find a chunk id by scanning the buffer byte by byte.

    The scan starts after the 12-byte RIFF/WAVE header and stops four bytes
    before the end of the buffer, so the final 4-byte window is never
    examined. Chunk sizes are ignored: a sample that happens to contain the
    id bytes ahead of the real chunk is reported as a match.

    Args:
        buffer: The complete WAV file contents.
        chunk_id: The FourCC identifier to search for.

    Returns:
        Offset of the first byte of the first match, or ``NOT_FOUND`` (-1).

    Raises:
        ValueError: If chunk_id is not 4 bytes long.
    """
    _check_chunk_id(chunk_id)

    for i in range(RIFF_HEADER_SIZE, len(buffer) - 4):
        if buffer[i : i + 4] == chunk_id:
            return i

    return NOT_FOUND


def iter_chunks(buffer: bytes) -> Iterator[Chunk]:
    """Walk the chunks of a RIFF/WAVE buffer using their declared sizes.

    Iteration starts after the 12-byte header and ends when fewer than eight
    bytes remain. A chunk whose payload runs past the end of the buffer is
    still yielded, and iteration stops after it.

    Args:
        buffer: The complete WAV file contents.

    Yields:
        One ``Chunk`` per chunk header found.
    """
    offset = RIFF_HEADER_SIZE
    while offset + CHUNK_HEADER_SIZE <= len(buffer):
        tag = bytes(buffer[offset : offset + 4])
        size = struct.unpack_from("<I", buffer, offset + 4)[0]
        chunk = Chunk(tag=tag, offset=offset, size=size)
        yield chunk

        if chunk.payload_end > len(buffer):
            return

        # Skip to next chunk (with word alignment padding)
        offset = chunk.payload_end + (size % 2)


def locate_chunk(
    buffer: bytes,
    chunk_id: bytes,
    mode: ScanMode = ScanMode.structural,
) -> int:
    """Find the offset of a chunk id using the requested strategy.

    Args:
        buffer: The complete WAV file contents.
        chunk_id: The FourCC identifier to search for.
        mode: Structural walk or byte scan.

    Returns:
        Offset of the chunk id, or ``NOT_FOUND`` (-1).
    """
    _check_chunk_id(chunk_id)

    if mode == ScanMode.scan:
        return find_chunk(buffer, chunk_id)

    for chunk in iter_chunks(buffer):
        if chunk.tag == chunk_id:
            return chunk.offset

    return NOT_FOUND


def read_chunk_payload(
    buffer: bytes,
    chunk_id: bytes,
    mode: ScanMode = ScanMode.structural,
) -> bytes:
    """Return the declared payload of a chunk.

    Args:
        buffer: The complete WAV file contents.
        chunk_id: The FourCC identifier of the chunk.
        mode: Structural walk or byte scan.

    Returns:
        The payload bytes, ``size`` bytes starting eight bytes after the id.

    Raises:
        ChunkNotFoundError: If the chunk cannot be located.
        TruncatedPayloadError: If the size field or payload is cut short.
    """
    offset = locate_chunk(buffer, chunk_id, mode)
    if offset == NOT_FOUND:
        raise ChunkNotFoundError(chunk_id)

    size_offset = offset + 4
    if size_offset + 4 > len(buffer):
        raise TruncatedPayloadError(chunk_id, 4, max(len(buffer) - size_offset, 0))

    size = struct.unpack_from("<I", buffer, size_offset)[0]
    start = offset + CHUNK_HEADER_SIZE
    end = start + size
    if end > len(buffer):
        raise TruncatedPayloadError(chunk_id, size, len(buffer) - start)

    log.debug("%s chunk at offset %d, payload %d bytes", chunk_id.decode("ascii"), offset, size)
    return bytes(buffer[start:end])


def extract_data_chunk(buffer: bytes, mode: ScanMode = ScanMode.structural) -> bytes:
    """Extract the raw PCM payload of the ``data`` chunk.

    Args:
        buffer: The complete WAV file contents.
        mode: Structural walk or byte scan.

    Returns:
        The payload bytes of the data chunk.

    Raises:
        ChunkNotFoundError: If there is no data chunk.
        TruncatedPayloadError: If the declared size exceeds the buffer.
    """
    return read_chunk_payload(buffer, DATA_ID, mode)


def parse_fmt_chunk(payload: bytes) -> WaveFormat:
    """Parse the fixed part of a ``fmt `` chunk payload.

    Raises:
        RiffError: If the payload is shorter than 16 bytes.
    """
    if len(payload) < 16:
        raise RiffError("fmt chunk too small")

    audio_format, num_channels, sample_rate = struct.unpack_from("<HHI", payload, 0)
    bits_per_sample = struct.unpack_from("<H", payload, 14)[0]

    return WaveFormat(
        audio_format=audio_format,
        num_channels=num_channels,
        sample_rate=sample_rate,
        bits_per_sample=bits_per_sample,
    )


def read_wave_format(buffer: bytes) -> WaveFormat | None:
    """Read the format of a WAV buffer, or None if it has no usable fmt chunk."""
    try:
        payload = read_chunk_payload(buffer, FMT_ID)
        return parse_fmt_chunk(payload)
    except RiffError as e:
        log.debug("No usable fmt chunk: %s", e)
        return None


def read_wav_bytes(file_path: Path | str) -> bytes:
    """Read a whole WAV file into memory.

    Raises:
        RiffError: If the file cannot be opened.
    """
    file_path = Path(file_path)

    try:
        return file_path.read_bytes()
    except FileNotFoundError as e:
        raise RiffError(f"File not found: {file_path}") from e
    except OSError as e:
        raise RiffError(f"Cannot open file: {file_path}") from e


def build_wav(
    samples: bytes,
    sample_rate: int,
    audio_format: int = WAVE_FORMAT_PCM,
    num_channels: int = 1,
    bits_per_sample: int = 16,
    extra_chunks: Iterable[tuple[bytes, bytes]] = (),
) -> bytes:
    """Build a complete WAV file around already-encoded sample data.

    Args:
        samples: Raw sample data, already in the target encoding.
        sample_rate: The sample rate in Hz.
        audio_format: WAVE format code (1 for PCM, 7 for μ-law).
        num_channels: Number of interleaved channels.
        bits_per_sample: Bits per sample.
        extra_chunks: (id, payload) pairs written before the data chunk.

    Returns:
        The complete WAV file as bytes.
    """
    bytes_per_sample = bits_per_sample // 8
    byte_rate = sample_rate * num_channels * bytes_per_sample
    block_align = num_channels * bytes_per_sample

    fmt_chunk = struct.pack(
        "<HHIIHH",
        audio_format,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
    )

    body = bytearray()
    body.extend(WAVE_ID)

    for chunk_id, payload in [(FMT_ID, fmt_chunk), *extra_chunks, (DATA_ID, samples)]:
        _check_chunk_id(chunk_id)
        body.extend(chunk_id)
        body.extend(struct.pack("<I", len(payload)))
        body.extend(payload)
        if len(payload) % 2:
            body.extend(b"\x00")

    wav = bytearray()
    wav.extend(RIFF_ID)
    wav.extend(struct.pack("<I", len(body)))
    wav.extend(body)

    return bytes(wav)
