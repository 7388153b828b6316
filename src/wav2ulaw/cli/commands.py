import json
import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from cyclopts.config import Env
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from wav2ulaw.cli.validators import validate_chunk_id
from wav2ulaw.convert import convert_wav_file
from wav2ulaw.format.riff import (
    NOT_FOUND,
    ChunkNotFoundError,
    RiffError,
    iter_chunks,
    locate_chunk,
    read_wav_bytes,
    read_wave_format,
)
from wav2ulaw.types import ConversionOptions, OutputContainer, ScanMode

app = App(
    name="wav2ulaw",
    help="Convert 16-bit PCM WAV files to G.711 μ-law",
    config=Env("WAV2ULAW_", command=False),
)
console = Console()


def configure_logging(verbose: bool = False) -> None:
    """Route log records through the shared rich console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(message, style="bold red")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(message, style="bold green")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(message, style="bold yellow")


def format_chunk_id(tag: bytes) -> str:
    return tag.decode("ascii", "replace")


@app.command
def convert(
    source: Path,
    output: Path | None = None,
    container: OutputContainer = OutputContainer.raw,
    scan_mode: ScanMode = ScanMode.structural,
    legacy_segment0: bool = False,
    trace: Path | None = None,
    dry_run: bool = False,
    verbose: bool = False,
) -> int:
    """
    Convert a 16-bit PCM WAV file to 8-bit μ-law.

    Parameters
    ----------
    source: Path
        The WAV file to convert
    output: Path | None
        Output path (default: <source>.ulaw, or <stem>.ulaw.wav with --container wav)
    container: OutputContainer
        Write headerless μ-law bytes (raw) or a μ-law WAV file (wav)
    scan_mode: ScanMode
        How to find the data chunk: follow chunk sizes (structural) or
        search for the 'data' bytes (scan)
    legacy_segment0: bool
        Quantize the quietest segment like the original conversion tool
        (not standard G.711)
    trace: Path | None
        Append one line per encoded sample to this file
    dry_run: bool
        Convert without writing the output file (default: False)
    verbose: bool
        Show debug logging (default: False)
    """
    configure_logging(verbose)

    if not source.exists():
        print_error(f"Error: Source file not found: {escape(str(source))}")
        return 1

    options = ConversionOptions(
        scan_mode=scan_mode,
        container=container,
        legacy_segment0=legacy_segment0,
    )

    try:
        result, output_path = convert_wav_file(
            source,
            output=output,
            options=options,
            trace=trace,
            dry_run=dry_run,
        )
    except ChunkNotFoundError as e:
        print_error(f"Error: {escape(str(e))}")
        console.print("  Suggestion: Use 'wav2ulaw chunks' to list the chunks of the file:")
        console.print(f"    wav2ulaw chunks {escape(str(source))}")
        return 1
    except RiffError as e:
        print_error(f"Error: {escape(str(e))}")
        return 1

    if dry_run:
        console.print("[bold]Dry Run - No files written[/bold]")
        console.print(f"  Source: {escape(str(source))}")
        console.print(f"  Samples: {result.num_samples}")
        console.print(f"  Container: {container.value}")
        console.print(f"  Output: {escape(str(output_path))}")
        return 0

    print_success(f"Converted {escape(str(source))} -> {escape(str(output_path))}")
    console.print(f"  Samples: {result.num_samples}")
    if trace is not None:
        console.print(f"  Trace: {escape(str(trace))}")

    return 0


@app.command
def chunks(
    file: Path,
    find: Annotated[str | None, Parameter(validator=validate_chunk_id)] = None,
    scan_mode: ScanMode = ScanMode.structural,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
    verbose: bool = False,
) -> int:
    """
    List the chunks of a WAV file.

    Walks the chunk headers following their declared sizes. With --find,
    also reports where a given chunk id is located.

    Parameters
    ----------
    file: Path
        The WAV file to inspect
    find: str | None
        A 4-character chunk id to locate, e.g. 'data'
    scan_mode: ScanMode
        Lookup strategy used by --find (default: structural)
    output_json: bool
        Output results as JSON (default: False)
    verbose: bool
        Show debug logging (default: False)
    """
    configure_logging(verbose)

    if not file.exists():
        print_error(f"Error: File not found: {escape(str(file))}")
        return 1

    try:
        buffer = read_wav_bytes(file)
    except RiffError as e:
        print_error(f"Error: {escape(str(e))}")
        return 1

    chunk_list = list(iter_chunks(buffer))
    wave_format = read_wave_format(buffer)

    results: dict[str, object] = {
        "file": str(file),
        "size": len(buffer),
        "chunks": [
            {
                "id": format_chunk_id(chunk.tag),
                "offset": chunk.offset,
                "size": chunk.size,
                "truncated": chunk.payload_end > len(buffer),
            }
            for chunk in chunk_list
        ],
        "format": None,
    }
    if wave_format is not None:
        results["format"] = {
            "audio_format": wave_format.audio_format,
            "channels": wave_format.num_channels,
            "sample_rate": wave_format.sample_rate,
            "bits_per_sample": wave_format.bits_per_sample,
        }

    found_offset = None
    if find is not None:
        found_offset = locate_chunk(buffer, find.encode("ascii"), scan_mode)
        results["find"] = {
            "id": find,
            "scan_mode": scan_mode.value,
            "offset": found_offset,
        }

    exit_code = 1 if found_offset == NOT_FOUND else 0

    if output_json:
        # Printed verbatim so the output stays valid JSON
        console.print(json.dumps(results, indent=2), markup=False, highlight=False, soft_wrap=True)
        return exit_code

    console.print(f"[bold]Chunks: {escape(str(file))}[/bold]")
    console.print(f"  File size: {len(buffer):,} bytes")
    if wave_format is not None:
        console.print(
            f"  Format: {wave_format.audio_format}, {wave_format.num_channels} ch, "
            f"{wave_format.sample_rate} Hz, {wave_format.bits_per_sample}-bit"
        )

    if not chunk_list:
        print_warning("No chunks found.")
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", justify="left")
        table.add_column("Offset", justify="right")
        table.add_column("Size", justify="right")
        table.add_column("Status", justify="left")

        for chunk in chunk_list:
            truncated = chunk.payload_end > len(buffer)
            status = "[yellow]truncated[/yellow]" if truncated else "[green]ok[/green]"
            table.add_row(
                escape(repr(format_chunk_id(chunk.tag))),
                str(chunk.offset),
                str(chunk.size),
                status,
            )

        console.print(table)

    if find is not None:
        label = escape(repr(find))
        if found_offset == NOT_FOUND:
            print_error(f"Chunk {label} not found ({scan_mode.value})")
        else:
            print_success(f"Chunk {label} at offset {found_offset} ({scan_mode.value})")

    return exit_code


if __name__ == "__main__":
    sys.exit(app())
