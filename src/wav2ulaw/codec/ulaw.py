"""G.711 μ-law companding.

Maps 16-bit signed linear PCM samples to 8-bit μ-law codes. Each code
depends only on its own sample, so a whole signal is encoded by indexing a
precomputed 65536-entry table built from ``linear_to_ulaw``.

Code layout (before the final inversion)::

    bit   7     6 5 4      3 2 1 0
        +------+---------+----------+
        | sign | segment | mantissa |
        +------+---------+----------+

The transmitted byte is the bitwise complement of this code.
"""

from collections.abc import Callable
from functools import lru_cache
from typing import TypeAlias

import numpy as np
from numpy.typing import ArrayLike, NDArray

SIGN_BIT = 0x80
CLIP = 32635
BIAS = 132
QUANT_MASK = 0x0F
SEG_SHIFT = 4

INT16_MIN = -32768
INT16_MAX = 32767

SampleObserver: TypeAlias = Callable[[int, int, int], None]
"""Called as ``observer(index, sample, code)`` for every encoded sample."""


def segment_of(magnitude: int) -> int:
    """Classify a biased, clipped magnitude into one of 8 segments.

    Equivalent to the position of the highest set bit of ``magnitude >> 7``,
    found with two halving steps and a final bit test.

    Args:
        magnitude: Sample magnitude after clipping to ``CLIP`` and adding ``BIAS``.

    Returns:
        Segment number in the range 0-7.
    """
    seg = 0
    val = magnitude >> 7

    if val & 0xF0:
        val >>= 4
        seg += 4
    if val & 0x0C:
        val >>= 2
        seg += 2
    if val & 0x02:
        seg += 1

    return seg


def linear_to_ulaw(sample: int, legacy_segment0: bool = False) -> int:
    """Encode a single 16-bit signed PCM sample as a μ-law byte.

    Args:
        sample: Linear sample in the range [-32768, 32767].
        legacy_segment0: Quantize segment 0 with a 4-bit shift instead of 3,
            reproducing the bytes written by the original conversion tool.
            This is not standard G.711: 0 encodes to 0xF7 instead of 0xFF.

    Returns:
        The μ-law byte (0-255).

    Example:
        >>> hex(linear_to_ulaw(0))
        '0xff'
        >>> hex(linear_to_ulaw(-32635))
        '0x0'
    """
    sign = SIGN_BIT if sample < 0 else 0

    # -32768 has no int16 counterpart; Python ints hold it fine
    magnitude = -sample if sign else sample
    magnitude = min(magnitude, CLIP) + BIAS

    seg = segment_of(magnitude)
    if seg == 0 and legacy_segment0:
        mantissa = (magnitude >> 4) & QUANT_MASK
    else:
        mantissa = (magnitude >> (seg + 3)) & QUANT_MASK

    code = (seg << SEG_SHIFT) | mantissa | sign
    return ~code & 0xFF


@lru_cache(maxsize=None)
def encode_table(legacy_segment0: bool = False) -> NDArray[np.uint8]:
    """Return the read-only μ-law code for every int16, indexed by ``sample + 32768``."""
    table = np.array(
        [linear_to_ulaw(sample, legacy_segment0) for sample in range(INT16_MIN, INT16_MAX + 1)],
        dtype=np.uint8,
    )
    table.flags.writeable = False
    return table


def encode(
    samples: ArrayLike,
    observer: SampleObserver | None = None,
    legacy_segment0: bool = False,
) -> bytes:
    """Encode a sequence of 16-bit PCM samples as μ-law bytes.

    Args:
        samples: Integer samples, e.g. an int16 array or a list of ints.
            Multi-dimensional arrays are flattened in C order.
        observer: Optional callback receiving ``(index, sample, code)`` for
            every sample, after encoding. It cannot alter the result.
        legacy_segment0: See ``linear_to_ulaw``.

    Returns:
        One μ-law byte per input sample, in input order.

    Raises:
        ValueError: If samples are not integers or fall outside the int16 range.
    """
    pcm = np.asarray(samples)
    if pcm.size == 0:
        return b""

    if pcm.dtype != np.int16:
        if not np.issubdtype(pcm.dtype, np.integer):
            raise ValueError(f"PCM samples must be integers, got dtype {pcm.dtype}")
        if pcm.min() < INT16_MIN or pcm.max() > INT16_MAX:
            raise ValueError(
                f"PCM samples must lie in [{INT16_MIN}, {INT16_MAX}], "
                f"got [{pcm.min()}, {pcm.max()}]"
            )

    pcm = pcm.astype(np.int16).ravel()
    codes = encode_table(legacy_segment0)[pcm.astype(np.int32) - INT16_MIN]

    if observer is not None:
        for index, (sample, code) in enumerate(zip(pcm.tolist(), codes.tolist())):
            observer(index, sample, code)

    return codes.tobytes()
