"""Click CLI — the command-line entry point for modes-decode.

Commands:
  modes decode HEX...          Decode messages given on the command line
  modes decode --file FILE     Decode one message per line from a file
  modes config                 Show or update ~/.modes-decode/config.yaml
"""

from __future__ import annotations

import logging
import re
import time

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import load_config, save_config
from .decoder import Decoder, MessageKind, ModeSMessage
from .errors import DecodeError

console = Console()

# dump1090 raw format: *<hex>;
_DUMP1090_PATTERN = re.compile(r"^\*([0-9A-Za-z]+);$")


def _clean_line(line: str) -> str | None:
    """Strip whitespace, comments and dump1090 framing from an input line."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    m = _DUMP1090_PATTERN.match(line)
    if m:
        return m.group(1)
    return line


def _config_section(cfg: dict, name: str) -> dict:
    """Return cfg[name], replacing a scalar or missing value with an empty section."""
    section = cfg.get(name)
    if not isinstance(section, dict):
        section = cfg[name] = {}
    return section


@click.group()
@click.version_option(version="0.1.0", prog_name="modes-decode")
@click.option("-v", "--verbose", is_flag=True, help="Log decoder debug output")
def cli(verbose: bool):
    """Mode S / ADS-B extended squitter decoder — callsigns and CPR positions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@cli.command()
@click.argument("messages", nargs=-1)
@click.option("--file", "file_", type=click.File("r"), default=None,
              help="Read one hex message per line ('-' for stdin)")
@click.option("--ref-lat", type=float, default=None, help="Receiver latitude for local CPR decode")
@click.option("--ref-lon", type=float, default=None, help="Receiver longitude for local CPR decode")
@click.option("--require-payload", is_flag=True, help="Treat header-only messages as errors")
def decode(messages: tuple[str, ...], file_, ref_lat: float | None, ref_lon: float | None,
           require_payload: bool):
    """Decode 28-character hex messages and print a table.

    \b
    Examples:
      modes decode 8D4840D6202CC371C32CE0576098
      modes decode --file data/frames.txt --ref-lat 52.0 --ref-lon 4.0
    """
    lines = list(messages)
    if file_ is not None:
        lines.extend(file_.read().splitlines())
    if not lines:
        raise click.UsageError("Provide HEX messages or --file")

    cfg = load_config()
    if ref_lat is not None:
        _config_section(cfg, "receiver")["lat"] = ref_lat
    if ref_lon is not None:
        _config_section(cfg, "receiver")["lon"] = ref_lon
    decoder = Decoder.from_config(cfg)

    table = Table(title="Messages")
    table.add_column("ICAO", style="cyan")
    table.add_column("TC", justify="right")
    table.add_column("Callsign")
    table.add_column("Category")
    table.add_column("Alt (ft)", justify="right")
    table.add_column("Position")

    t0 = time.time()
    decoded = 0
    positions = 0
    failures: list[tuple[int, DecodeError]] = []
    for i, line in enumerate(lines):
        hex_str = _clean_line(line)
        if hex_str is None:
            continue
        try:
            # Synthetic timestamps, 1ms apart
            msg = decoder.decode(hex_str, timestamp=t0 + i * 0.001,
                                 require_payload=require_payload)
        except DecodeError as e:
            failures.append((i + 1, e))
            continue
        decoded += 1
        if msg.position is not None:
            positions += 1
        table.add_row(*_message_row(msg))

    console.print(table)

    for line_no, err in failures:
        console.print(f"  [red]Line {line_no}:[/] {type(err).__name__}: {escape(str(err))}")

    console.print("\n[bold]Summary:[/]")
    console.print(f"  Decoded:          {decoded}")
    console.print(f"  Failed:           {len(failures)}")
    console.print(f"  Position decodes: {positions}")
    console.print(f"  Aircraft tracked: {len(decoder.tracks)}")


def _message_row(msg: ModeSMessage) -> list[str]:
    if msg.position is not None:
        where = f"{msg.position[0]:.4f}, {msg.position[1]:.4f}"
    elif msg.position_error is not None:
        where = f"[yellow]{type(msg.position_error).__name__}[/]"
    elif msg.kind is MessageKind.HEADER_ONLY:
        where = f"[dim]DF{msg.df} header only[/]"
    else:
        where = "-"
    return [
        msg.icao,
        str(msg.type_code),
        msg.callsign.strip() if msg.callsign is not None else "-",
        msg.wake_category or "-",
        str(msg.altitude_ft) if msg.altitude_ft is not None else "-",
        where,
    ]


@cli.command("config")
@click.option("--name", type=str, default=None, help="Receiver name")
@click.option("--ref-lat", type=float, default=None, help="Receiver latitude")
@click.option("--ref-lon", type=float, default=None, help="Receiver longitude")
@click.option("--pair-window", type=float, default=None, help="Max seconds between even/odd CPR frames")
@click.option("--reference-max-age", type=float, default=None,
              help="Max age in seconds of a position used for local CPR decode")
def config_cmd(name: str | None, ref_lat: float | None, ref_lon: float | None,
               pair_window: float | None, reference_max_age: float | None):
    """Show the configuration, updating any values given as options."""
    cfg = load_config()
    updates = {
        ("receiver", "name"): name,
        ("receiver", "lat"): ref_lat,
        ("receiver", "lon"): ref_lon,
        ("cpr", "pair_window"): pair_window,
        ("cpr", "reference_max_age"): reference_max_age,
    }
    changed = False
    for (section, key), val in updates.items():
        if val is not None:
            _config_section(cfg, section)[key] = val
            changed = True

    if changed:
        path = save_config(cfg)
        console.print(f"[bold]Config saved:[/] {path}")

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for section, values in cfg.items():
        if isinstance(values, dict):
            for key, val in values.items():
                table.add_row(f"{section}.{key}", "-" if val is None else str(val))
        else:
            table.add_row(section, "-" if values is None else str(values))
    console.print(table)
