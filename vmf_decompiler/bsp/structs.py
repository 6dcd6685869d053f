"""
Read-only BSP data structures.

Mirrors the lumps of a compiled Source map that brush reconstruction needs.
All tables are flat lists indexed the same way as in the file; tree nodes
reference their children by index (negative child ``c`` means leaf ``-1 - c``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from typing import List, Optional, Tuple

from vmf_decompiler.geometry.vector_math import Vec3


class Contents(IntFlag):
    """Brush content flags (bspflags.h)."""
    EMPTY = 0
    SOLID = 0x1
    WINDOW = 0x2
    AUX = 0x4
    GRATE = 0x8
    SLIME = 0x10
    WATER = 0x20
    BLOCKLOS = 0x40
    OPAQUE = 0x80
    TESTFOGVOLUME = 0x100
    MOVEABLE = 0x4000
    AREAPORTAL = 0x8000
    PLAYERCLIP = 0x10000
    MONSTERCLIP = 0x20000
    ORIGIN = 0x1000000
    MONSTER = 0x2000000
    DEBRIS = 0x4000000
    DETAIL = 0x8000000
    TRANSLUCENT = 0x10000000
    LADDER = 0x20000000
    HITBOX = 0x40000000


class SurfFlags(IntFlag):
    """Texinfo surface flags."""
    NONE = 0
    LIGHT = 0x1
    SKY2D = 0x2
    SKY = 0x4
    WARP = 0x8
    TRANS = 0x10
    NOPORTAL = 0x20
    TRIGGER = 0x40
    NODRAW = 0x80
    HINT = 0x100
    SKIP = 0x200
    NOLIGHT = 0x400
    BUMPLIGHT = 0x800
    NOSHADOWS = 0x1000
    NODECALS = 0x2000
    NOCHOP = 0x4000
    HITBOX = 0x8000


@dataclass(frozen=True)
class Plane:
    normal: Vec3
    dist: float
    type: int = 0


@dataclass(frozen=True)
class Brush:
    first_side: int
    num_sides: int
    contents: Contents = Contents.SOLID

    def side_indices(self) -> range:
        return range(self.first_side, self.first_side + self.num_sides)

    def is_solid(self) -> bool:
        return bool(self.contents & Contents.SOLID)

    def is_detail(self) -> bool:
        return bool(self.contents & Contents.DETAIL)

    def is_areaportal(self) -> bool:
        return bool(self.contents & Contents.AREAPORTAL)

    def is_ladder(self) -> bool:
        return bool(self.contents & Contents.LADDER)


@dataclass(frozen=True)
class BrushSide:
    plane_num: int
    texinfo: int = -1
    dispinfo: int = -1
    bevel: bool = False


@dataclass(frozen=True)
class Node:
    plane_num: int
    children: Tuple[int, int]


@dataclass(frozen=True)
class Leaf:
    contents: Contents = Contents.EMPTY
    first_leaf_brush: int = 0
    num_leaf_brushes: int = 0


@dataclass(frozen=True)
class Model:
    mins: Vec3 = (0.0, 0.0, 0.0)
    maxs: Vec3 = (0.0, 0.0, 0.0)
    origin: Vec3 = (0.0, 0.0, 0.0)
    head_node: int = 0
    first_face: int = 0
    num_faces: int = 0


@dataclass(frozen=True)
class TexInfo:
    texture_vecs: Tuple[Tuple[float, float, float, float], Tuple[float, float, float, float]]
    lightmap_vecs: Tuple[Tuple[float, float, float, float], Tuple[float, float, float, float]]
    flags: SurfFlags = SurfFlags.NONE
    texdata: int = -1


@dataclass(frozen=True)
class TexData:
    name_id: int
    reflectivity: Vec3 = (0.0, 0.0, 0.0)
    width: int = 0
    height: int = 0


@dataclass
class BspData:
    """All lumps used by brush reconstruction, already materialized."""
    version: int = 20
    map_revision: int = 0
    planes: List[Plane] = field(default_factory=list)
    brushes: List[Brush] = field(default_factory=list)
    brush_sides: List[BrushSide] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    leaves: List[Leaf] = field(default_factory=list)
    leaf_brushes: List[int] = field(default_factory=list)
    models: List[Model] = field(default_factory=list)
    texinfos: List[TexInfo] = field(default_factory=list)
    texdatas: List[TexData] = field(default_factory=list)
    texnames: List[str] = field(default_factory=list)

    def side_plane(self, side_index: int) -> Plane:
        return self.planes[self.brush_sides[side_index].plane_num]

    def texture_name(self, texinfo_index: int) -> Optional[str]:
        """Material name for a texinfo index, or None if it can't be resolved."""
        if texinfo_index < 0 or texinfo_index >= len(self.texinfos):
            return None
        texdata_index = self.texinfos[texinfo_index].texdata
        if texdata_index < 0 or texdata_index >= len(self.texdatas):
            return None
        name_id = self.texdatas[texdata_index].name_id
        if name_id < 0 or name_id >= len(self.texnames):
            return None
        return self.texnames[name_id]
