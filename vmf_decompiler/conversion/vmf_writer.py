"""
VMF keyed-block writer.

Writes Hammer's nested ``class { "key" "value" }`` text format.  Values are
formatted by type:

- numbers: shortest form, integral floats without a fraction, no ``-0``
- 3-tuples: ``x y z``
- ``put("plane", p1, p2, p3)``: ``(x y z) (x y z) (x y z)``
- booleans: ``1`` / ``0``
"""

from __future__ import annotations
import io
import logging
import math
from typing import TYPE_CHECKING, List, TextIO

if TYPE_CHECKING:
    from .texture_source import Texture

logger = logging.getLogger(__name__)

INDENT = "\t"


def format_number(value: float) -> str:
    """Format a number the way Hammer writes it."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return str(value)
    rounded = round(value)
    if abs(value - rounded) < 1e-9:
        return str(int(rounded))
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_vector(v) -> str:
    return " ".join(format_number(c) for c in v)


def format_value(value) -> str:
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    if isinstance(value, (tuple, list)) and all(isinstance(c, (int, float)) for c in value):
        return format_vector(value)
    return str(value)


class VmfWriter:
    """Streams nested VMF blocks to a text file.

    Usage:
        writer.start("solid")
        writer.put("id", 1)
        writer.end("solid")
    """

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._stack: List[str] = []

    @classmethod
    def to_string(cls) -> "VmfWriter":
        """Writer backed by an in-memory buffer (see ``getvalue``)."""
        return cls(io.StringIO())

    def getvalue(self) -> str:
        return self.stream.getvalue()

    @property
    def depth(self) -> int:
        return len(self._stack)

    def start(self, tag: str) -> None:
        indent = INDENT * len(self._stack)
        self.stream.write(f"{indent}{tag}\n{indent}{{\n")
        self._stack.append(tag)

    def end(self, tag: str) -> None:
        if not self._stack or self._stack[-1] != tag:
            open_tag = self._stack[-1] if self._stack else None
            raise ValueError(f"Can't close block '{tag}', open block is '{open_tag}'")
        self._stack.pop()
        indent = INDENT * len(self._stack)
        self.stream.write(f"{indent}}}\n")

    def put(self, key: str, *values) -> None:
        """Write a key with one value, or with several plane points."""
        if not values:
            raise ValueError(f"No value for key '{key}'")
        if len(values) == 1:
            text = format_value(values[0])
        else:
            text = " ".join(f"({format_vector(v)})" for v in values)
        text = text.replace('"', "'")
        self.stream.write(f'{INDENT * len(self._stack)}"{key}" "{text}"\n')

    def put_texture(self, texture: "Texture") -> None:
        self.put("material", texture.material)
        self.put("uaxis", texture.uaxis.format())
        self.put("vaxis", texture.vaxis.format())
        self.put("rotation", 0)
        self.put("lightmapscale", texture.lightmap_scale)

    def close(self) -> None:
        if self._stack:
            logger.warning("Closing writer with unterminated blocks: %s", ", ".join(self._stack))
        self.stream.flush()
