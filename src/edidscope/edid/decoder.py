"""Top-level EDID decode: base block, then each extension block in order.

The verdict is evaluated only after the last block has been decoded.
"""

from __future__ import annotations

from edidscope.compliance.engine import evaluate
from edidscope.core.context import DecodeContext
from edidscope.edid.base_block import decode_base_block, format_breakdown, manufacturer_name
from edidscope.edid.cea import parse_cea
from edidscope.edid.displayid import parse_displayid
from edidscope.edid.types import (
    EDID_PAGE_SIZE,
    EXTENSION_NAMES,
    OFFSET_EXTENSION_COUNT,
    OFFSET_VENDOR,
    ExtensionTag,
)
from edidscope.exceptions import EdidInputError
from edidscope.models.configuration import DecodeOptions
from edidscope.models.result import DecodeResult
from edidscope.utils.logging import get_logger

logger = get_logger(__name__)


def decode_edid(data: bytes, options: DecodeOptions | None = None) -> DecodeResult:
    """Decode an EDID byte buffer and evaluate its conformance.

    Args:
        data: Base block followed by any extension blocks.
        options: Decode options; defaults are used when omitted.

    Returns:
        The report lines, the verdict and the final conformance state.

    Raises:
        EdidInputError: If ``data`` is shorter than one 128-byte block.
    """
    if len(data) < EDID_PAGE_SIZE:
        raise EdidInputError(
            f"EDID data is {len(data)} bytes, at least {EDID_PAGE_SIZE} are required",
            offset=len(data),
        )

    data = bytes(data)
    options = options or DecodeOptions()
    ctx = DecodeContext(options=options)
    state = ctx.state
    base = data[:EDID_PAGE_SIZE]

    if options.include_breakdown:
        ctx.emit_all(format_breakdown(base))

    decode_base_block(ctx, base)

    declared = base[OFFSET_EXTENSION_COUNT]
    available, trailing = divmod(len(data) - EDID_PAGE_SIZE, EDID_PAGE_SIZE)
    if trailing:
        state.warning_trailing_bytes = True
        logger.warning("partial_block_ignored", trailing_bytes=trailing)
    if declared != available:
        state.warning_extension_count_mismatch = True
        ctx.emit(f"Extension count {declared} does not match the {available} extension blocks present")
        logger.warning("extension_count_mismatch", declared=declared, available=available)

    nonconformant = 0
    for index in range(1, min(declared, available) + 1):
        block = data[index * EDID_PAGE_SIZE:(index + 1) * EDID_PAGE_SIZE]
        logger.debug("extension_block", index=index, tag=block[0])
        if decode_extension(ctx, block):
            nonconformant += 1
    state.nonconformant_extensions = nonconformant

    report = evaluate(state, options)
    ctx.emit_all(report.lines)

    return DecodeResult(
        lines=ctx.lines,
        report=report,
        state=state,
        block_count=1 + min(declared, available),
        declared_extensions=declared,
        manufacturer=manufacturer_name(base[OFFSET_VENDOR:OFFSET_VENDOR + 2]),
        monitor_name=ctx.names.name,
    )


def decode_extension(ctx: DecodeContext, block: bytes) -> bool:
    """Decode one extension block. Returns True if it is non-conformant."""
    tag = block[0]
    ctx.emit()
    ctx.emit(EXTENSION_NAMES.get(tag, "Unknown extension block"))

    nonconformant = False
    if tag == ExtensionTag.CEA:
        ctx.emit(f"Extension version: {block[1]}")
        nonconformant = parse_cea(ctx, block)
    elif tag == ExtensionTag.DISPLAYID:
        ctx.emit(f"Extension version: {block[1]}")
        nonconformant = parse_displayid(ctx, block)

    ctx.emit()
    return nonconformant
