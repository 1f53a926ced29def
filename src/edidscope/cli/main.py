"""edidscope CLI - decode EDID dumps and check their conformance."""

from __future__ import annotations

import json
from pathlib import Path

import click

from edidscope.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.pass_context
def cli(ctx: click.Context, debug: bool, json_output: bool) -> None:
    """edidscope - EDID decoder and conformance checker."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["json_output"] = json_output
    setup_logging(level="DEBUG" if debug else "INFO", json_output=json_output)


@cli.command()
@click.argument("input_path", type=click.Path(dir_okay=False, allow_dash=True), default="-")
@click.argument("raw_output", type=click.Path(dir_okay=False), required=False)
@click.option("--html-report", type=click.Path(dir_okay=False), default=None,
              help="Also write a standalone HTML conformance report")
@click.option("--no-breakdown", is_flag=True, help="Omit the hex breakdown of the base block")
@click.option("--year", type=int, default=None,
              help="Current year for the manufacture date check (default: this year)")
@click.option("--couple-serial-rule", is_flag=True,
              help="Only flag serial number plus serial string when a CEA block is present")
@click.pass_context
def decode(
    ctx: click.Context,
    input_path: str,
    raw_output: str | None,
    html_report: str | None,
    no_breakdown: bool,
    year: int | None,
    couple_serial_rule: bool,
) -> None:
    """Decode INPUT_PATH (stdin when omitted or '-') and report conformance.

    The extracted EDID bytes are copied to RAW_OUTPUT when given. Exits 0
    when the EDID conforms, 1 otherwise or on any input failure.
    """
    from edidscope.compliance.report import generate_report
    from edidscope.core.extract import extract_edid
    from edidscope.edid.decoder import decode_edid
    from edidscope.exceptions import EdidScopeError
    from edidscope.models.configuration import DecodeOptions

    try:
        raw = _read_input(input_path)
        edid = extract_edid(raw)
        if raw_output:
            Path(raw_output).write_bytes(edid)

        option_values: dict[str, object] = {
            "include_breakdown": not no_breakdown,
            "couple_serial_rule_to_cea": couple_serial_rule,
        }
        if year is not None:
            option_values["current_year"] = year
        result = decode_edid(edid, DecodeOptions(**option_values))
    except (OSError, EdidScopeError) as e:
        logger.error("decode_failed", input=input_path, error=str(e))
        click.echo(f"edid extract failed: {e}", err=True)
        ctx.exit(1)
        return

    if ctx.obj.get("json_output"):
        payload = {"conformant": result.conformant, **result.model_dump(mode="json")}
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(result.text, nl=False)

    if html_report:
        try:
            Path(html_report).write_text(generate_report(result, source=input_path), encoding="utf-8")
        except OSError as e:
            click.echo(f"Cannot write HTML report: {e}", err=True)
            ctx.exit(1)
            return
        logger.info("html_report_written", path=html_report)

    ctx.exit(0 if result.conformant else 1)


def _read_input(input_path: str) -> bytes:
    if input_path == "-":
        return click.get_binary_stream("stdin").read()
    return Path(input_path).read_bytes()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address (0.0.0.0 for network access)")
@click.option("--port", type=int, default=8000, help="HTTP port")
def serve(host: str, port: int) -> None:
    """Start the HTTP decode API."""
    import uvicorn
    from edidscope.api.app import create_app

    app = create_app()
    uvicorn.run(app, host=host, port=port)
