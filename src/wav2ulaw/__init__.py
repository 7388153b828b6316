"""wav2ulaw - 16-bit PCM WAV to G.711 μ-law conversion.

This package extracts the PCM payload of a RIFF/WAVE file and encodes it
as 8-bit μ-law, the companding used by telephony systems.

Example Usage
-------------
>>> from wav2ulaw import convert_wav_file
>>> result, output_path = convert_wav_file("greeting.wav")
>>> print(f"Wrote {result.num_samples} samples to {output_path}")

Working on buffers already in memory:

>>> from wav2ulaw import decode_pcm16le, encode, extract_data_chunk
>>> pcm = decode_pcm16le(extract_data_chunk(wav_bytes))
>>> ulaw = encode(pcm)
"""

from wav2ulaw.codec import decode_pcm16le, encode, linear_to_ulaw
from wav2ulaw.convert import (
    ConversionResult,
    TraceWriter,
    convert_wav_bytes,
    convert_wav_file,
)
from wav2ulaw.format import (
    NOT_FOUND,
    Chunk,
    ChunkNotFoundError,
    RiffError,
    TruncatedPayloadError,
    WaveFormat,
    extract_data_chunk,
    find_chunk,
    iter_chunks,
    locate_chunk,
)
from wav2ulaw.types import ConversionOptions, OutputContainer, ScanMode

__all__ = [
    # Types
    "ScanMode",
    "OutputContainer",
    "ConversionOptions",
    "Chunk",
    "WaveFormat",
    # Errors
    "RiffError",
    "ChunkNotFoundError",
    "TruncatedPayloadError",
    # Chunk lookup
    "NOT_FOUND",
    "find_chunk",
    "iter_chunks",
    "locate_chunk",
    "extract_data_chunk",
    # Codec
    "decode_pcm16le",
    "encode",
    "linear_to_ulaw",
    # Pipeline
    "ConversionResult",
    "TraceWriter",
    "convert_wav_bytes",
    "convert_wav_file",
]
