"""
Core data structures for brush validation.

Defines the fundamental types used throughout the decompiler:
- Severity: Issue severity levels (DEBUG, WARN) and their log levels
- SideFailure: Why a single brush side could not be turned into a face
- BrushOutcome: Terminal state of one brush reconstruction
- WindingResult / BrushResult: Tagged results returned instead of raising
- DecompileStats: Counters reported at the end of a run
- DecompileError: Base exception for unrecoverable problems
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from vmf_decompiler.geometry.winding import Winding


class Severity(Enum):
    """Issue severity levels.

    - DEBUG: Expected loss of detail, only shown when debugging a map
    - WARN: An element was skipped and geometry is missing from the output

    The value is the logging level the issue is reported at.
    """
    DEBUG = logging.DEBUG
    WARN = logging.WARNING

    @property
    def log_level(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.name


class SideFailure(Enum):
    """Reasons a brush side is skipped during winding reconstruction."""
    EMPTY_POLYGON = "empty_polygon"
    DEGENERATE_POLYGON = "degenerate_polygon"
    OVERSIZED_POLYGON = "oversized_polygon"
    INVALID_PLANE_POINTS = "invalid_plane_points"
    DUPLICATE_PLANE_POINT = "duplicate_plane_point"

    def __str__(self) -> str:
        return self.value


class BrushOutcome(Enum):
    """Terminal states of a brush reconstruction."""
    EMITTED = "emitted"
    INVALID = "invalid"              # no valid sides at all
    UNCOMPILABLE = "uncompilable"    # fewer than three valid sides

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Exceptions
# =============================================================================

class DecompileError(Exception):
    """Base class for errors that abort a decompilation run."""


class BspFormatError(DecompileError):
    """Raised when the BSP container is truncated, corrupt or unsupported."""


class ConfigError(DecompileError):
    """Raised when a configuration file or value is invalid."""


# =============================================================================
# Tagged results
# =============================================================================

@dataclass
class WindingResult:
    """Outcome of reconstructing one side's polygon.

    Exactly one of ``winding`` and ``failure`` is set.

    Attributes:
        winding: The finished polygon when reconstruction succeeded
        failure: The reason the side was skipped
        detail: Optional human-readable detail for the log line
    """
    winding: Optional["Winding"] = None
    failure: Optional[SideFailure] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, winding: "Winding") -> "WindingResult":
        return cls(winding=winding)

    @classmethod
    def fail(cls, failure: SideFailure, detail: Optional[str] = None) -> "WindingResult":
        return cls(failure=failure, detail=detail)


@dataclass
class BrushResult:
    """Outcome of reconstructing one brush.

    Attributes:
        brush_index: Index into the BSP brush table
        outcome: Terminal state (EMITTED, INVALID, UNCOMPILABLE)
        brush_id: Solid ID assigned in the output, None unless emitted
        side_ids: Side IDs assigned in the output, in emission order
        skipped_sides: Brush side index -> failure for every rejected side
    """
    brush_index: int
    outcome: BrushOutcome
    brush_id: Optional[int] = None
    side_ids: List[int] = field(default_factory=list)
    skipped_sides: Dict[int, SideFailure] = field(default_factory=dict)

    @property
    def emitted(self) -> bool:
        return self.outcome == BrushOutcome.EMITTED


@dataclass
class DecompileStats:
    """Counters collected while writing brushes."""
    brushes_emitted: int = 0
    brushes_invalid: int = 0
    brushes_uncompilable: int = 0
    sides_emitted: int = 0
    side_failures: Counter = field(default_factory=Counter)

    def record_brush(self, result: BrushResult) -> None:
        if result.outcome == BrushOutcome.EMITTED:
            self.brushes_emitted += 1
            self.sides_emitted += len(result.side_ids)
        elif result.outcome == BrushOutcome.INVALID:
            self.brushes_invalid += 1
        else:
            self.brushes_uncompilable += 1
        self.side_failures.update(result.skipped_sides.values())

    @property
    def brushes_skipped(self) -> int:
        return self.brushes_invalid + self.brushes_uncompilable

    def summary(self) -> str:
        parts = [
            f"{self.brushes_emitted} brushes",
            f"{self.sides_emitted} sides",
            f"{self.brushes_invalid} invalid",
            f"{self.brushes_uncompilable} uncompilable",
        ]
        if self.side_failures:
            failures = ", ".join(
                f"{failure}={count}"
                for failure, count in sorted(self.side_failures.items(), key=lambda kv: kv[0].value)
            )
            parts.append(f"skipped sides: {failures}")
        return "; ".join(parts)
