"""
Texture resolution for reconstructed brush sides.

Turns a side's texinfo into a VMF material + texture axes, optionally moving
the axes along with a transformed brush, and repairs tool materials whose
names were lost during compilation.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from vmf_decompiler.bsp.structs import BspData, Contents, SurfFlags
from vmf_decompiler.geometry.transform import Transform
from vmf_decompiler.geometry.vector_math import EPSILON, Vec3, dot, length, scale
from .vmf_writer import format_number, format_vector

logger = logging.getLogger(__name__)


# =============================================================================
# Named Constants
# =============================================================================

DEFAULT_MATERIAL = "tools/toolsnodraw"
DEFAULT_TEXTURE_SCALE = 0.25
DEFAULT_LIGHTMAP_SCALE = 16

# Surface flag -> tool material, checked in order
TOOL_MATERIALS_BY_FLAG = (
    (SurfFlags.SKY2D, "tools/toolsskybox2d"),
    (SurfFlags.SKY, "tools/toolsskybox"),
    (SurfFlags.HINT, "tools/toolshint"),
    (SurfFlags.SKIP, "tools/toolsskip"),
    (SurfFlags.TRIGGER, "tools/toolstrigger"),
)


@dataclass
class TextureAxis:
    """One VMF texture axis: ``[x y z shift] scale``."""
    axis: Vec3
    shift: float = 0.0
    scale: float = DEFAULT_TEXTURE_SCALE

    def format(self) -> str:
        return f"[{format_vector(self.axis)} {format_number(self.shift)}] {format_number(self.scale)}"

    @classmethod
    def from_texinfo_vec(cls, vec) -> Optional["TextureAxis"]:
        """Convert a texinfo vector ``(x, y, z, offset)``; None if it has no length."""
        xyz = (vec[0], vec[1], vec[2])
        ln = length(xyz)
        if ln < EPSILON:
            return None
        return cls(axis=scale(xyz, 1.0 / ln), shift=float(vec[3]), scale=1.0 / ln)

    def transformed(self, transform: Transform) -> "TextureAxis":
        axis = transform.rotate_vector(self.axis)
        # Keep texture coordinates fixed on the moved surface
        shift = self.shift - dot(transform.origin, axis) / self.scale
        return TextureAxis(axis=axis, shift=shift, scale=self.scale)


@dataclass
class Texture:
    material: str
    uaxis: TextureAxis
    vaxis: TextureAxis
    lightmap_scale: int = DEFAULT_LIGHTMAP_SCALE
    texinfo_index: int = -1


def default_axes(normal: Vec3):
    """Face-aligned default axes for a side without texinfo."""
    ax, ay, az = (abs(c) for c in normal)
    if az >= ax and az >= ay:
        return (1.0, 0.0, 0.0), (0.0, -1.0, 0.0)
    if ax >= ay:
        return (0.0, 1.0, 0.0), (0.0, 0.0, -1.0)
    return (1.0, 0.0, 0.0), (0.0, 0.0, -1.0)


class TextureSource:
    """Resolves texinfo references into VMF textures."""

    def __init__(self, bsp: BspData):
        self.bsp = bsp
        # material (lower case) -> side IDs, consumed by env_cubemap reconstruction
        self.brush_side_ids: Dict[str, List[int]] = defaultdict(list)

    def get_texture(self, texinfo_index: int, transform: Optional[Transform],
                    normal: Vec3) -> Texture:
        """Build the texture for one side.

        Args:
            texinfo_index: Index into the texinfo table, -1 for none
            transform: Transform applied to the brush, if any
            normal: The side's outward normal (already transformed)
        """
        material = self.bsp.texture_name(texinfo_index)
        uaxis = vaxis = None
        lightmap_scale = DEFAULT_LIGHTMAP_SCALE

        if material is not None:
            texinfo = self.bsp.texinfos[texinfo_index]
            uaxis = TextureAxis.from_texinfo_vec(texinfo.texture_vecs[0])
            vaxis = TextureAxis.from_texinfo_vec(texinfo.texture_vecs[1])
            lm_len = length(texinfo.lightmap_vecs[0][:3])
            if lm_len > EPSILON:
                lightmap_scale = max(1, int(round(1.0 / lm_len)))
        else:
            material = DEFAULT_MATERIAL

        if uaxis is None or vaxis is None:
            u, v = default_axes(normal)
            uaxis, vaxis = TextureAxis(u), TextureAxis(v)
        elif transform is not None:
            uaxis = uaxis.transformed(transform)
            vaxis = vaxis.transformed(transform)

        return Texture(material=material, uaxis=uaxis, vaxis=vaxis,
                       lightmap_scale=lightmap_scale, texinfo_index=texinfo_index)

    def fix_tool_textures(self, texture: Texture, brush_index: int,
                          side_index: int) -> Optional[str]:
        """Replace materials of tool brushes with the matching tool material.

        Returns:
            The original material name if it was replaced, otherwise None
        """
        brush = self.bsp.brushes[brush_index]
        side = self.bsp.brush_sides[side_index]
        flags = SurfFlags.NONE
        if 0 <= side.texinfo < len(self.bsp.texinfos):
            flags = self.bsp.texinfos[side.texinfo].flags

        replacement = None
        for flag, tool_material in TOOL_MATERIALS_BY_FLAG:
            if flags & flag:
                replacement = tool_material
                break

        if replacement is None:
            if brush.is_areaportal():
                replacement = "tools/toolsareaportal"
            elif brush.contents & Contents.PLAYERCLIP and brush.contents & Contents.MONSTERCLIP:
                replacement = "tools/toolsclip"
            elif brush.contents & Contents.PLAYERCLIP:
                replacement = "tools/toolsplayerclip"
            elif brush.contents & Contents.MONSTERCLIP:
                replacement = "tools/toolsnpcclip"
            elif brush.is_ladder() and not brush.is_solid():
                replacement = "tools/toolsinvisibleladder"
            elif flags & SurfFlags.NODRAW and not texture.material.lower().startswith("tools/"):
                replacement = DEFAULT_MATERIAL

        if replacement is None or replacement == texture.material.lower():
            return None

        original = texture.material
        texture.material = replacement
        logger.debug("Fixed tool texture on side %d of brush %d: %s -> %s",
                     side_index, brush_index, original, replacement)
        return original

    def add_brush_side_id(self, material: str, side_id: int) -> None:
        self.brush_side_ids[material.lower()].append(side_id)
