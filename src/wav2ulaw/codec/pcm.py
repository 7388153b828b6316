"""16-bit linear PCM decoding."""

import logging

import numpy as np

from wav2ulaw.types import PcmSamples

log = logging.getLogger(__name__)


def decode_pcm16le(data: bytes) -> PcmSamples:
    """Decode little-endian signed 16-bit PCM bytes to samples.

    A dangling final byte (odd payload length) is dropped.

    Args:
        data: Raw PCM payload, e.g. the contents of a ``data`` chunk.

    Returns:
        Native-endian int16 array with one entry per byte pair.

    Example:
        >>> decode_pcm16le(b"\\x01\\x00\\xff\\xff").tolist()
        [1, -1]
    """
    usable = len(data) - (len(data) % 2)
    if usable != len(data):
        log.debug("Dropping dangling byte from %d-byte PCM payload", len(data))

    samples = np.frombuffer(data[:usable], dtype="<i2")
    return samples.astype(np.int16)
