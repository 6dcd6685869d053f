"""
Decompiler configuration.

Holds the empirically tuned geometry tolerances and the output policy flags.
Configs can be saved to / loaded from JSON files."""

from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple

from vmf_decompiler.validation.core import ConfigError

logger = logging.getLogger(__name__)


# =============================================================================
# Named Constants
# =============================================================================

# Geometry tolerances
DEFAULT_VERTEX_MERGE_EPSILON = 0.1   # Vertices closer than this are clip duplicates
DEFAULT_CLIP_EPSILON = 0.01          # Points this close to a clip plane count as "on"
DEFAULT_SEED_EXTENT = 65536.0        # Half-size of the initial polygon on a side plane
DEFAULT_MAX_COORD = 32768.0          # Sides reaching this coordinate are rejected

DEFAULT_PROTECTOR_MATERIALS = ("tools/toolsinvisible",)
DEFAULT_PROTECTOR_VISGROUP = "VMEX protector brushes"


@dataclass
class DecompileConfig:
    # Geometry
    vertex_merge_epsilon: float = DEFAULT_VERTEX_MERGE_EPSILON
    clip_epsilon: float = DEFAULT_CLIP_EPSILON
    seed_extent: float = DEFAULT_SEED_EXTENT
    max_coord: float = DEFAULT_MAX_COORD

    # Brush policy: reserve these brushes for entity reconstruction
    write_details: bool = True
    write_areaportals: bool = False

    # Texturing
    face_texture: str = ""           # Non-empty = force this material on every side
    fix_tool_textures: bool = True

    # Protection heuristic
    protector_materials: Tuple[str, ...] = field(default=DEFAULT_PROTECTOR_MATERIALS)
    protector_visgroup: str = DEFAULT_PROTECTOR_VISGROUP

    # Emit debug sub-blocks and log skipped sides as warnings
    debug: bool = False

    def validate(self) -> None:
        """Raise ConfigError if any value is out of range."""
        errors = []
        if self.vertex_merge_epsilon < 0:
            errors.append("vertex_merge_epsilon must be >= 0")
        if self.clip_epsilon < 0:
            errors.append("clip_epsilon must be >= 0")
        if self.max_coord <= 0:
            errors.append("max_coord must be positive")
        if self.seed_extent <= self.max_coord:
            errors.append("seed_extent must be larger than max_coord")
        if errors:
            raise ConfigError(f"Invalid settings: {'; '.join(errors)}")

    def is_debug(self) -> bool:
        return self.debug

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['protector_materials'] = list(self.protector_materials)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecompileConfig":
        """Build a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        values = {k: v for k, v in data.items() if k in known}
        if 'protector_materials' in values:
            values['protector_materials'] = tuple(
                str(m).lower() for m in values['protector_materials']
            )
        try:
            config = cls(**values)
        except TypeError as e:
            raise ConfigError(f"Invalid config: {e}") from e
        config.validate()
        return config


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def save_config(config: DecompileConfig, file_path: Path) -> Path:
    """
    Save a config as JSON.

    Args:
        config: The DecompileConfig to save
        file_path: Destination file

    Returns:
        Path to the saved file
    """
    file_path = Path(file_path)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
    return file_path


def load_config(file_path: Path) -> DecompileConfig:
    """
    Load a config from a JSON file.

    Raises:
        ConfigError: If the file is missing, not valid JSON or has bad values
    """
    file_path = Path(file_path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {file_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {file_path} must contain a JSON object")

    logger.debug("Loaded config from %s", file_path)
    return DecompileConfig.from_dict(data)


__all__ = [
    'DecompileConfig',
    'save_config',
    'load_config',
]
