"""RIFF/WAVE container module.

Layout of the files this package reads::

    +----------------------------------------+
    | RIFF header: "RIFF", size, "WAVE"      |  12 bytes
    +----------------------------------------+
    | fmt  chunk (audio format)              |
    +----------------------------------------+
    | ... other chunks (LIST, fact, ...)     |
    +----------------------------------------+
    | data chunk                             |
    |   - 16-bit signed little-endian PCM    |
    +----------------------------------------+

Each chunk is a 4-byte id, a 4-byte little-endian payload size, then the
payload, padded to an even length.
"""

from wav2ulaw.format.riff import (
    NOT_FOUND,
    Chunk,
    ChunkNotFoundError,
    RiffError,
    TruncatedPayloadError,
    WaveFormat,
    build_wav,
    extract_data_chunk,
    find_chunk,
    iter_chunks,
    locate_chunk,
    parse_fmt_chunk,
    read_wave_format,
)

__all__ = [
    "NOT_FOUND",
    "Chunk",
    "WaveFormat",
    "RiffError",
    "ChunkNotFoundError",
    "TruncatedPayloadError",
    "find_chunk",
    "iter_chunks",
    "locate_chunk",
    "extract_data_chunk",
    "parse_fmt_chunk",
    "read_wave_format",
    "build_wav",
]
