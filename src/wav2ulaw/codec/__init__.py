"""Sample codecs: 16-bit PCM decoding and G.711 μ-law encoding."""

from wav2ulaw.codec.pcm import decode_pcm16le
from wav2ulaw.codec.ulaw import encode, linear_to_ulaw, segment_of

__all__ = [
    "decode_pcm16le",
    "encode",
    "linear_to_ulaw",
    "segment_of",
]
