"""
Validation package for the brush decompiler.

Public API:
    - SideFailure, BrushOutcome: Tags for skipped sides and brush states
    - WindingResult, BrushResult: Tagged results returned by reconstruction
    - DecompileStats: Counters for the run summary
    - DecompileError, BspFormatError, ConfigError: Fatal errors
    - ValidationRule and the SIDE/BRUSH/MODEL rule tables
"""

from .core import (
    Severity,
    SideFailure,
    BrushOutcome,
    WindingResult,
    BrushResult,
    DecompileStats,
    DecompileError,
    BspFormatError,
    ConfigError,
)
from .rules import ValidationRule, side_rule, brush_rule, MODEL_001

__all__ = [
    # Core types
    'Severity',
    'SideFailure',
    'BrushOutcome',
    'WindingResult',
    'BrushResult',
    'DecompileStats',
    # Errors
    'DecompileError',
    'BspFormatError',
    'ConfigError',
    # Rules
    'ValidationRule',
    'side_rule',
    'brush_rule',
    'MODEL_001',
]
