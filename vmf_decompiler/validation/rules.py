"""
Rule definitions for skipped brush sides and brushes.

Each rule has:
- Code: Unique identifier (e.g., "SIDE-001")
- Severity: DEBUG or WARN, which picks the log level
- Message template: Human-readable description
- Remediation: What a mapper can do about it, shown in debug mode

Rules are organized by category:
- SIDE: Per-side winding failures
- BRUSH: Per-brush insufficiency
- MODEL: Brush model lookups
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .core import BrushOutcome, Severity, SideFailure


@dataclass(frozen=True)
class ValidationRule:
    """Definition of a validation rule.

    Attributes:
        code: Unique rule code (e.g., "SIDE-001")
        severity: Default severity for this rule
        message_template: Template for log message (use {placeholders})
        remediation_template: Template for suggested fix
    """
    code: str
    severity: Severity
    message_template: str
    remediation_template: Optional[str] = None

    def format_message(self, **kwargs) -> str:
        """Format the message template with provided values."""
        return self.message_template.format(**kwargs)

    def format_remediation(self, **kwargs) -> Optional[str]:
        if self.remediation_template:
            return self.remediation_template.format(**kwargs)
        return None

    def log(self, logger: logging.Logger, escalate: bool = False, **kwargs) -> None:
        """Report the rule on ``logger``.

        With ``escalate`` the message is raised to at least WARNING and
        carries the remediation hint.
        """
        level = self.severity.log_level
        message = f"{self.code}: {self.format_message(**kwargs)}"
        if escalate:
            level = max(level, logging.WARNING)
            remediation = self.format_remediation(**kwargs)
            if remediation:
                message = f"{message} ({remediation})"
        logger.log(level, message)


# =============================================================================
# SIDE RULES
# =============================================================================

SIDE_001 = ValidationRule(
    code="SIDE-001",
    severity=Severity.DEBUG,
    message_template="Skipped side {side} of brush {brush}: no vertices",
    remediation_template="Side was clipped away entirely by the other planes",
)

SIDE_002 = ValidationRule(
    code="SIDE-002",
    severity=Severity.DEBUG,
    message_template="Skipped side {side} of brush {brush}: less than 3 vertices",
)

SIDE_003 = ValidationRule(
    code="SIDE-003",
    severity=Severity.DEBUG,
    message_template="Skipped side {side} of brush {brush}: too big",
    remediation_template="Raise max_coord if the map legitimately exceeds the default extent",
)

SIDE_004 = ValidationRule(
    code="SIDE-004",
    severity=Severity.DEBUG,
    message_template="Skipped side {side} of brush {brush}: invalid plane",
)

SIDE_005 = ValidationRule(
    code="SIDE-005",
    severity=Severity.DEBUG,
    message_template="Skipped side {side} of brush {brush}: duplicate plane point {detail}",
)

# =============================================================================
# BRUSH RULES
# =============================================================================

BRUSH_001 = ValidationRule(
    code="BRUSH-001",
    severity=Severity.WARN,
    message_template="Skipped empty brush {brush}",
)

BRUSH_002 = ValidationRule(
    code="BRUSH-002",
    severity=Severity.WARN,
    message_template="Skipped brush {brush} with less than 3 sides",
    remediation_template="Brushes with fewer than three sides can't be compiled and may crash older Hammer builds",
)

# =============================================================================
# MODEL RULES
# =============================================================================

MODEL_001 = ValidationRule(
    code="MODEL-001",
    severity=Severity.WARN,
    message_template="Invalid model index {model}",
)


SIDE_RULES: Dict[SideFailure, ValidationRule] = {
    SideFailure.EMPTY_POLYGON: SIDE_001,
    SideFailure.DEGENERATE_POLYGON: SIDE_002,
    SideFailure.OVERSIZED_POLYGON: SIDE_003,
    SideFailure.INVALID_PLANE_POINTS: SIDE_004,
    SideFailure.DUPLICATE_PLANE_POINT: SIDE_005,
}

BRUSH_RULES: Dict[BrushOutcome, ValidationRule] = {
    BrushOutcome.INVALID: BRUSH_001,
    BrushOutcome.UNCOMPILABLE: BRUSH_002,
}


def side_rule(failure: SideFailure) -> ValidationRule:
    return SIDE_RULES[failure]


def brush_rule(outcome: BrushOutcome) -> ValidationRule:
    """Rule for a skipped brush. EMITTED has no rule."""
    return BRUSH_RULES[outcome]
