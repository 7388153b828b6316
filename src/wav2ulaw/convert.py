"""WAV to μ-law conversion pipeline.

Ties the RIFF utilities and the codec together: read a WAV file, slice the
``data`` chunk, decode 16-bit PCM, encode μ-law and write the result either
as headerless bytes or wrapped in a μ-law WAVE file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import TextIO

from wav2ulaw.codec.pcm import decode_pcm16le
from wav2ulaw.codec.ulaw import SampleObserver, encode
from wav2ulaw.format.riff import (
    WAVE_FORMAT_MULAW,
    RiffError,
    WaveFormat,
    build_wav,
    extract_data_chunk,
    read_wav_bytes,
    read_wave_format,
)
from wav2ulaw.types import ConversionOptions, OutputContainer

log = logging.getLogger(__name__)

# Used for WAV output when the input has no fmt chunk
DEFAULT_SAMPLE_RATE = 8000
DEFAULT_NUM_CHANNELS = 1

ULAW_SUFFIX = ".ulaw"


@dataclass
class ConversionResult:
    """The outcome of converting one WAV buffer."""

    ulaw: bytes
    """Encoded μ-law samples, one byte per PCM sample."""

    wave_format: WaveFormat | None
    """Format of the input, if it carried a readable fmt chunk."""

    pcm_bytes: int
    """Length of the data chunk payload."""

    @property
    def num_samples(self) -> int:
        return len(self.ulaw)

    @property
    def warnings(self) -> list[str]:
        """Problems worth reporting that did not stop the conversion."""
        warnings: list[str] = []
        if self.wave_format is None:
            warnings.append("No fmt chunk found, assuming 16-bit PCM")
        elif not self.wave_format.is_pcm16:
            warnings.append(
                f"Input is not 16-bit PCM (format {self.wave_format.audio_format}, "
                f"{self.wave_format.bits_per_sample}-bit), converting as 16-bit PCM anyway"
            )
        if self.pcm_bytes % 2:
            warnings.append("data chunk has an odd length, dropped the final byte")
        return warnings

    def to_bytes(self, container: OutputContainer = OutputContainer.raw) -> bytes:
        """Serialize the μ-law samples as headerless bytes or a WAV file."""
        if container == OutputContainer.raw:
            return self.ulaw

        sample_rate = DEFAULT_SAMPLE_RATE
        num_channels = DEFAULT_NUM_CHANNELS
        if self.wave_format is not None:
            sample_rate = self.wave_format.sample_rate or DEFAULT_SAMPLE_RATE
            num_channels = self.wave_format.num_channels or DEFAULT_NUM_CHANNELS

        return build_wav(
            self.ulaw,
            sample_rate=sample_rate,
            audio_format=WAVE_FORMAT_MULAW,
            num_channels=num_channels,
            bits_per_sample=8,
        )


class TraceWriter:
    """Sample observer that appends one line per encoded sample to a file.

    Lines have the form ``<index>, pcm:<sample>, ulaw:<code>``.

    Example:
        >>> with TraceWriter("ulaw_trace.txt") as trace:
        ...     convert_wav_bytes(data, observer=trace)
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._file: TextIO | None = None

    def __enter__(self) -> "TraceWriter":
        try:
            self._file = open(self.path, "a", encoding="utf-8")
        except OSError as e:
            raise RiffError(f"Cannot open trace file: {self.path}") from e
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __call__(self, index: int, sample: int, code: int) -> None:
        if self._file is None:
            raise RuntimeError("TraceWriter used outside of a with block")
        self._file.write(f"{index}, pcm:{sample}, ulaw:{code}\n")


def convert_wav_bytes(
    buffer: bytes,
    options: ConversionOptions | None = None,
    observer: SampleObserver | None = None,
) -> ConversionResult:
    """Convert an in-memory WAV file to μ-law.

    Args:
        buffer: The complete WAV file contents.
        options: Chunk lookup and encoder settings.
        observer: Optional per-sample callback, see ``wav2ulaw.codec.ulaw.encode``.

    Returns:
        ConversionResult holding the encoded samples.

    Raises:
        ChunkNotFoundError: If the buffer has no data chunk.
        TruncatedPayloadError: If the data chunk is cut short.
    """
    options = options or ConversionOptions()
    payload = extract_data_chunk(buffer, options.scan_mode)
    return _convert_payload(buffer, payload, options, observer)


def _convert_payload(
    buffer: bytes,
    payload: bytes,
    options: ConversionOptions,
    observer: SampleObserver | None,
) -> ConversionResult:
    samples = decode_pcm16le(payload)
    ulaw = encode(samples, observer=observer, legacy_segment0=options.legacy_segment0)

    result = ConversionResult(
        ulaw=ulaw,
        wave_format=read_wave_format(buffer),
        pcm_bytes=len(payload),
    )
    for warning in result.warnings:
        log.warning(warning)

    log.info("Encoded %d samples", result.num_samples)
    return result


def default_output_path(source: Path | str, container: OutputContainer) -> Path:
    """Output path next to the source: ``<source>.ulaw``, or ``<stem>.ulaw.wav``."""
    source = Path(source)
    if container == OutputContainer.wav:
        return source.with_name(f"{source.stem}{ULAW_SUFFIX}.wav")
    return source.with_name(f"{source.name}{ULAW_SUFFIX}")


def convert_wav_file(
    source: Path | str,
    output: Path | str | None = None,
    options: ConversionOptions | None = None,
    trace: Path | str | None = None,
    dry_run: bool = False,
) -> tuple[ConversionResult, Path]:
    """Convert a WAV file to a μ-law file.

    Args:
        source: Path of the WAV file to read.
        output: Destination path (default: next to the source, see
            ``default_output_path``).
        options: Chunk lookup, encoder and container settings.
        trace: Optional file receiving one line per encoded sample. It is
            not touched when the data chunk cannot be extracted.
        dry_run: Convert in memory without writing the output file.

    Returns:
        Tuple of (result, output_path).

    Raises:
        RiffError: If the input cannot be read or has no usable data chunk,
            or the output or trace file cannot be written.
    """
    options = options or ConversionOptions()
    source = Path(source)
    output_path = Path(output) if output is not None else default_output_path(source, options.container)

    buffer = read_wav_bytes(source)
    log.debug("Read %d bytes from %s", len(buffer), source)

    # The trace file is only opened once the data chunk is known to be usable
    payload = extract_data_chunk(buffer, options.scan_mode)

    if trace is not None:
        with TraceWriter(trace) as writer:
            result = _convert_payload(buffer, payload, options, writer)
    else:
        result = _convert_payload(buffer, payload, options, None)

    if dry_run:
        return result, output_path

    try:
        output_path.write_bytes(result.to_bytes(options.container))
    except OSError as e:
        raise RiffError(f"Cannot write output file: {output_path}") from e

    log.info("Wrote %s", output_path)
    return result, output_path
