"""Unit tests for the conversion pipeline."""

import logging
import struct
from pathlib import Path

import numpy as np
import pytest

from wav2ulaw.convert import (
    ConversionResult,
    TraceWriter,
    convert_wav_bytes,
    convert_wav_file,
    default_output_path,
)
from wav2ulaw.format.riff import (
    DATA_ID,
    FMT_ID,
    WAVE_FORMAT_MULAW,
    ChunkNotFoundError,
    RiffError,
    TruncatedPayloadError,
    build_wav,
    extract_data_chunk,
    read_wave_format,
)
from wav2ulaw.types import ConversionOptions, OutputContainer, ScanMode

MINIMAL_WAV = (
    b"RIFF" + struct.pack("<I", 28) + b"WAVE" + DATA_ID + struct.pack("<I", 4) + b"\x00\x00\x00\x00"
)


def pcm_wav(samples: list[int], sample_rate: int = 8000, num_channels: int = 1) -> bytes:
    pcm = np.array(samples, dtype="<i2").tobytes()
    return build_wav(pcm, sample_rate=sample_rate, num_channels=num_channels)


class TestConvertWavBytes:
    """Tests for in-memory conversion."""

    def test_minimal_buffer(self) -> None:
        """Test the 24-byte minimal WAVE buffer encodes two silent samples."""
        result = convert_wav_bytes(MINIMAL_WAV)

        assert result.ulaw == bytes([0xFF, 0xFF])
        assert result.num_samples == 2
        assert result.pcm_bytes == 4

    def test_minimal_buffer_scan_mode(self) -> None:
        """Test the byte scan reaches the same result on the minimal buffer."""
        result = convert_wav_bytes(MINIMAL_WAV, ConversionOptions(scan_mode=ScanMode.scan))

        assert result.ulaw == bytes([0xFF, 0xFF])

    def test_known_samples(self) -> None:
        """Test a PCM WAV encodes to the reference μ-law bytes."""
        result = convert_wav_bytes(pcm_wav([0, -1, 1000, -1000, 32767, -32768]))

        assert result.ulaw == bytes([0xFF, 0x7F, 0xCE, 0x4E, 0x80, 0x00])
        assert result.wave_format is not None
        assert result.warnings == []

    def test_legacy_segment0(self) -> None:
        """Test the legacy quantization option reaches the encoder."""
        options = ConversionOptions(legacy_segment0=True)

        result = convert_wav_bytes(MINIMAL_WAV, options)

        assert result.ulaw == bytes([0xF7, 0xF7])

    def test_ten_byte_buffer(self) -> None:
        """Test a buffer shorter than the header raises ChunkNotFoundError."""
        with pytest.raises(ChunkNotFoundError):
            convert_wav_bytes(b"RIFF\x00\x00\x00\x00WA")

    def test_truncated_data(self) -> None:
        """Test a data chunk declaring too many bytes raises."""
        buffer = MINIMAL_WAV[:16] + struct.pack("<I", 400) + MINIMAL_WAV[20:]

        with pytest.raises(TruncatedPayloadError):
            convert_wav_bytes(buffer)

    def test_odd_payload_drops_last_byte(self) -> None:
        """Test an odd-length data chunk converts all complete samples."""
        buffer = build_wav(b"\x00\x00\xe8\x03\x7f", sample_rate=8000)

        result = convert_wav_bytes(buffer)

        assert result.ulaw == bytes([0xFF, 0xCE])
        assert any("odd length" in w for w in result.warnings)

    def test_observer(self) -> None:
        """Test the observer receives every encoded sample."""
        seen: list[tuple[int, int, int]] = []

        convert_wav_bytes(pcm_wav([5, -5]), observer=lambda *args: seen.append(args))

        assert [s[:2] for s in seen] == [(0, 5), (1, -5)]

    def test_missing_fmt_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test a buffer without fmt chunk is converted with a warning."""
        with caplog.at_level(logging.WARNING, logger="wav2ulaw"):
            result = convert_wav_bytes(MINIMAL_WAV)

        assert result.wave_format is None
        assert "No fmt chunk found" in caplog.text

    def test_non_pcm16_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test a non-PCM fmt chunk is reported but still converted."""
        buffer = build_wav(
            b"\x00\x00\x00\x00",
            sample_rate=8000,
            audio_format=WAVE_FORMAT_MULAW,
            bits_per_sample=8,
        )

        with caplog.at_level(logging.WARNING, logger="wav2ulaw"):
            result = convert_wav_bytes(buffer)

        assert result.ulaw == bytes([0xFF, 0xFF])
        assert "not 16-bit PCM" in caplog.text


class TestConversionResult:
    """Tests for result serialization."""

    def test_raw_container(self) -> None:
        result = convert_wav_bytes(pcm_wav([0, 1000]))

        assert result.to_bytes(OutputContainer.raw) == bytes([0xFF, 0xCE])

    def test_wav_container_keeps_format(self) -> None:
        """Test WAV output carries the input rate and channel count."""
        result = convert_wav_bytes(pcm_wav([0, 1000, -1000, 0], sample_rate=16000, num_channels=2))

        wav = result.to_bytes(OutputContainer.wav)
        wave_format = read_wave_format(wav)

        assert wave_format is not None
        assert wave_format.audio_format == WAVE_FORMAT_MULAW
        assert wave_format.sample_rate == 16000
        assert wave_format.num_channels == 2
        assert wave_format.bits_per_sample == 8
        assert extract_data_chunk(wav) == bytes([0xFF, 0xCE, 0x4E, 0xFF])

    def test_wav_container_defaults(self) -> None:
        """Test WAV output falls back to 8 kHz mono without a fmt chunk."""
        result = ConversionResult(ulaw=b"\xff", wave_format=None, pcm_bytes=2)

        wave_format = read_wave_format(result.to_bytes(OutputContainer.wav))

        assert wave_format is not None
        assert wave_format.sample_rate == 8000
        assert wave_format.num_channels == 1


class TestTraceWriter:
    """Tests for the per-sample trace file."""

    def test_writes_one_line_per_sample(self, tmp_path: Path) -> None:
        trace_path = tmp_path / "trace.txt"

        with TraceWriter(trace_path) as trace:
            convert_wav_bytes(pcm_wav([0, -1, 1000]), observer=trace)

        assert trace_path.read_text().splitlines() == [
            "0, pcm:0, ulaw:255",
            "1, pcm:-1, ulaw:127",
            "2, pcm:1000, ulaw:206",
        ]

    def test_appends(self, tmp_path: Path) -> None:
        """Test existing trace content is kept."""
        trace_path = tmp_path / "trace.txt"
        trace_path.write_text("previous\n")

        with TraceWriter(trace_path) as trace:
            trace(0, 0, 255)

        assert trace_path.read_text() == "previous\n0, pcm:0, ulaw:255\n"

    def test_outside_with_block(self, tmp_path: Path) -> None:
        trace = TraceWriter(tmp_path / "trace.txt")

        with pytest.raises(RuntimeError):
            trace(0, 0, 255)

    def test_unwritable_path(self, tmp_path: Path) -> None:
        """Test a trace path in a missing directory raises RiffError."""
        with pytest.raises(RiffError, match="trace file"):
            with TraceWriter(tmp_path / "missing" / "trace.txt"):
                pass


class TestConvertWavFile:
    """Tests for file conversion."""

    def test_default_output_next_to_source(self, tmp_path: Path) -> None:
        """Test the output defaults to <source>.ulaw."""
        source = tmp_path / "voice.wav"
        source.write_bytes(pcm_wav([0, 1000]))

        result, output_path = convert_wav_file(source)

        assert output_path == tmp_path / "voice.wav.ulaw"
        assert output_path.read_bytes() == bytes([0xFF, 0xCE])
        assert result.num_samples == 2

    def test_explicit_output(self, tmp_path: Path) -> None:
        source = tmp_path / "voice.wav"
        source.write_bytes(MINIMAL_WAV)
        output = tmp_path / "out.raw"

        _, output_path = convert_wav_file(source, output=output)

        assert output_path == output
        assert output.read_bytes() == bytes([0xFF, 0xFF])

    def test_wav_container(self, tmp_path: Path) -> None:
        """Test WAV output is written with a μ-law fmt chunk."""
        source = tmp_path / "voice.wav"
        source.write_bytes(pcm_wav([0, -1]))

        _, output_path = convert_wav_file(
            source, options=ConversionOptions(container=OutputContainer.wav)
        )

        assert output_path == tmp_path / "voice.ulaw.wav"
        wav = output_path.read_bytes()
        assert wav[:4] == b"RIFF"
        assert extract_data_chunk(wav) == bytes([0xFF, 0x7F])

    def test_dry_run_writes_nothing(self, tmp_path: Path) -> None:
        source = tmp_path / "voice.wav"
        source.write_bytes(MINIMAL_WAV)

        result, output_path = convert_wav_file(source, dry_run=True)

        assert result.num_samples == 2
        assert not output_path.exists()

    def test_trace(self, tmp_path: Path) -> None:
        """Test the trace file receives every sample."""
        source = tmp_path / "voice.wav"
        source.write_bytes(MINIMAL_WAV)
        trace_path = tmp_path / "ulaw_trace.txt"

        convert_wav_file(source, trace=trace_path)

        assert len(trace_path.read_text().splitlines()) == 2

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(RiffError, match="File not found"):
            convert_wav_file(tmp_path / "missing.wav")

    def test_no_data_chunk_writes_nothing(self, tmp_path: Path) -> None:
        """Test no output file is created when conversion fails."""
        source = tmp_path / "bad.wav"
        source.write_bytes(b"RIFF" + struct.pack("<I", 4) + b"WAVE" + FMT_ID)

        with pytest.raises(ChunkNotFoundError):
            convert_wav_file(source)

        assert not (tmp_path / "bad.wav.ulaw").exists()

    def test_no_data_chunk_leaves_trace_untouched(self, tmp_path: Path) -> None:
        """Test the trace file is not created when no data chunk is found."""
        source = tmp_path / "bad.wav"
        source.write_bytes(b"RIFF" + struct.pack("<I", 4) + b"WAVE")
        trace_path = tmp_path / "ulaw_trace.txt"

        with pytest.raises(ChunkNotFoundError):
            convert_wav_file(source, trace=trace_path)

        assert not trace_path.exists()

    def test_truncated_data_keeps_existing_trace(self, tmp_path: Path) -> None:
        """Test a failed conversion does not append to an existing trace."""
        source = tmp_path / "short.wav"
        source.write_bytes(MINIMAL_WAV[:16] + struct.pack("<I", 400) + MINIMAL_WAV[20:])
        trace_path = tmp_path / "ulaw_trace.txt"
        trace_path.write_text("previous\n")

        with pytest.raises(TruncatedPayloadError):
            convert_wav_file(source, trace=trace_path)

        assert trace_path.read_text() == "previous\n"

    def test_unwritable_output(self, tmp_path: Path) -> None:
        source = tmp_path / "voice.wav"
        source.write_bytes(MINIMAL_WAV)

        with pytest.raises(RiffError, match="Cannot write"):
            convert_wav_file(source, output=tmp_path / "missing" / "out.ulaw")


class TestDefaultOutputPath:
    """Tests for output naming."""

    def test_raw(self) -> None:
        assert default_output_path(Path("a/b.wav"), OutputContainer.raw) == Path("a/b.wav.ulaw")

    def test_wav(self) -> None:
        assert default_output_path(Path("a/b.wav"), OutputContainer.wav) == Path("a/b.ulaw.wav")
