"""
Writer — receipt JSON and directive rendering.

Filesystem layout:
    <OUT_DIR>/vendor_build_receipt.json
    <OUT_DIR>/logs/<component>.<stage>.stdout|stderr
"""
import json
from pathlib import Path
from typing import IO, Iterable

from vendor_build.core.directives import LinkDirective
from vendor_build.io.schema import BuildReceipt

RECEIPT_FILENAME = "vendor_build_receipt.json"


def write_receipt(receipt: BuildReceipt, output_dir: Path) -> Path:
    """
    Write the receipt into *output_dir* (created if needed).
    Returns the receipt path.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / RECEIPT_FILENAME
    path.write_text(
        json.dumps(
            receipt.model_dump(mode="json"),
            indent=2,
            sort_keys=True,
        )
        + "\n"
    )
    return path


def render_directives(directives: Iterable[LinkDirective], fmt: str = "cargo") -> str:
    """Render directives as outer-build lines or as a JSON array."""
    directives = list(directives)
    if fmt == "json":
        return json.dumps(
            [
                {"kind": d.kind.value, "link_kind": d.link_kind.value, "value": d.value}
                for d in directives
            ],
            indent=2,
        ) + "\n"
    if fmt != "cargo":
        raise ValueError(f"Unknown directive format: {fmt}")
    return "".join(d.render() + "\n" for d in directives)


def emit_directives(
    directives: Iterable[LinkDirective],
    stream: IO[str],
    fmt: str = "cargo",
) -> None:
    stream.write(render_directives(directives, fmt))
    stream.flush()
