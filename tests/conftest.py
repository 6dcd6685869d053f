"""
Shared fixtures: synthetic BSP data and binary BSP files.
"""

import struct
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from vmf_decompiler.bsp import reader
from vmf_decompiler.bsp.structs import (
    Brush,
    BrushSide,
    BspData,
    Contents,
    Leaf,
    Model,
    Node,
    Plane,
    SurfFlags,
    TexData,
    TexInfo,
)
from vmf_decompiler.config import DecompileConfig
from vmf_decompiler.conversion.brush_source import BrushSource
from vmf_decompiler.conversion.id_allocator import IdAllocator
from vmf_decompiler.conversion.protection import BspProtection
from vmf_decompiler.conversion.texture_source import TextureSource
from vmf_decompiler.conversion.vmf_writer import VmfWriter


def box_planes(mins, maxs) -> List[Tuple[Tuple[float, float, float], float]]:
    """Outward (normal, dist) pairs of an axis-aligned box: +x -x +y -y +z -z."""
    return [
        ((1.0, 0.0, 0.0), float(maxs[0])),
        ((-1.0, 0.0, 0.0), -float(mins[0])),
        ((0.0, 1.0, 0.0), float(maxs[1])),
        ((0.0, -1.0, 0.0), -float(mins[1])),
        ((0.0, 0.0, 1.0), float(maxs[2])),
        ((0.0, 0.0, -1.0), -float(mins[2])),
    ]


class BspBuilder:
    """Assembles a BspData one brush at a time."""

    def __init__(self):
        self.bsp = BspData(map_revision=7)

    def add_texture(self, name: str, flags: SurfFlags = SurfFlags.NONE) -> int:
        """Add a material and a texinfo using it; returns the texinfo index."""
        self.bsp.texnames.append(name)
        self.bsp.texdatas.append(TexData(name_id=len(self.bsp.texnames) - 1))
        self.bsp.texinfos.append(TexInfo(
            texture_vecs=((4.0, 0.0, 0.0, 0.0), (0.0, -4.0, 0.0, 0.0)),
            lightmap_vecs=((1.0 / 16, 0.0, 0.0, 0.0), (0.0, -1.0 / 16, 0.0, 0.0)),
            flags=flags,
            texdata=len(self.bsp.texdatas) - 1,
        ))
        return len(self.bsp.texinfos) - 1

    def add_brush(self, planes: Iterable, contents: Contents = Contents.SOLID,
                  texinfo: int = -1, bevels: Sequence[int] = ()) -> int:
        """Add a brush from (normal, dist) pairs; ``bevels`` are side positions to flag."""
        first_side = len(self.bsp.brush_sides)
        count = 0
        for position, (normal, dist) in enumerate(planes):
            self.bsp.planes.append(Plane(normal=tuple(normal), dist=dist))
            self.bsp.brush_sides.append(BrushSide(
                plane_num=len(self.bsp.planes) - 1,
                texinfo=texinfo,
                bevel=position in bevels,
            ))
            count += 1
        self.bsp.brushes.append(Brush(first_side=first_side, num_sides=count, contents=contents))
        return len(self.bsp.brushes) - 1

    def add_box(self, mins, maxs, contents: Contents = Contents.SOLID,
                texinfo: int = -1, bevels: Sequence[int] = ()) -> int:
        return self.add_brush(box_planes(mins, maxs), contents, texinfo, bevels)

    def finish(self, model_brushes: Optional[List[List[int]]] = None) -> BspData:
        """Build one node per model whose first leaf holds the model's brushes.

        ``model_brushes[0]`` is the world; defaults to every brush in the world.
        """
        if model_brushes is None:
            model_brushes = [list(range(len(self.bsp.brushes)))]

        for brushes in model_brushes:
            filled = len(self.bsp.leaves)
            self.bsp.leaves.append(Leaf(
                contents=Contents.SOLID,
                first_leaf_brush=len(self.bsp.leaf_brushes),
                num_leaf_brushes=len(brushes),
            ))
            self.bsp.leaf_brushes.extend(brushes)
            self.bsp.leaves.append(Leaf())

            head_node = len(self.bsp.nodes)
            self.bsp.nodes.append(Node(plane_num=0, children=(-1 - filled, -2 - filled)))
            self.bsp.models.append(Model(head_node=head_node))

        return self.bsp


@pytest.fixture
def builder():
    return BspBuilder()


@pytest.fixture
def config():
    return DecompileConfig()


@pytest.fixture
def make_brush_source(config):
    """Factory for a BrushSource writing to an in-memory VMF."""
    def make(bsp: BspData, cfg: Optional[DecompileConfig] = None) -> BrushSource:
        cfg = cfg or config
        return BrushSource(bsp, VmfWriter.to_string(), cfg, IdAllocator(),
                           TextureSource(bsp), BspProtection(bsp, cfg))
    return make


# ---------------------------------------------------------------
# Binary BSP files
# ---------------------------------------------------------------

HEADER_SIZE = (reader.HEADER_STRUCT.size + reader.HEADER_LUMPS * reader.LUMP_STRUCT.size
               + reader.REVISION_STRUCT.size)


def pack_bsp(lumps: Dict[int, bytes], version: int = 20, revision: int = 3,
             lump_versions: Optional[Dict[int, int]] = None,
             fourccs: Optional[Dict[int, bytes]] = None, ident: bytes = b"VBSP",
             l4d2_layout: bool = False) -> bytes:
    """Lay out a BSP file: header, lump directory, then the lump payloads.

    With ``l4d2_layout`` the directory entries are written as
    (version, offset, length, fourCC).
    """
    lump_versions = lump_versions or {}
    fourccs = fourccs or {}

    directory = b""
    payload = b""
    for index in range(reader.HEADER_LUMPS):
        data = lumps.get(index, b"")
        entry = [HEADER_SIZE + len(payload), len(data), lump_versions.get(index, 0)]
        if l4d2_layout:
            entry = [entry[2], entry[0], entry[1]]
        directory += reader.LUMP_STRUCT.pack(*entry, fourccs.get(index, b"\x00\x00\x00\x00"))
        payload += data

    return (reader.HEADER_STRUCT.pack(ident, version) + directory
            + reader.REVISION_STRUCT.pack(revision) + payload)


def box_map_lumps(mins=(0, 0, 0), maxs=(64, 64, 64)) -> Dict[int, bytes]:
    """Lumps of a map holding a single textured box brush in the world."""
    planes = b"".join(
        reader.PLANE_STRUCT.pack(*normal, dist, 0) for normal, dist in box_planes(mins, maxs)
    )
    sides = b"".join(reader.BRUSHSIDE_STRUCT.pack(i, 0, -1, 0, 0) for i in range(6))
    texinfo = reader.TEXINFO_STRUCT.pack(
        4.0, 0.0, 0.0, 0.0, 0.0, -4.0, 0.0, 0.0,
        1.0 / 16, 0.0, 0.0, 0.0, 0.0, -1.0 / 16, 0.0, 0.0,
        0, 0,
    )
    texdata = reader.TEXDATA_STRUCT.pack(0.5, 0.5, 0.5, 0, 128, 128, 128, 128)
    names = b"dev/dev_measuregeneric01\x00"
    node = reader.NODE_STRUCT.pack(0, -1, -2, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)
    leaves = (reader.LEAF_STRUCT_V1.pack(1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0)
              + reader.LEAF_STRUCT_V1.pack(0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0))
    model = reader.MODEL_STRUCT.pack(*mins, *maxs, 0.0, 0.0, 0.0, 0, 0, 0)

    return {
        reader.LUMP_PLANES: planes,
        reader.LUMP_TEXDATA: texdata,
        reader.LUMP_NODES: node,
        reader.LUMP_TEXINFO: texinfo,
        reader.LUMP_LEAFS: leaves,
        reader.LUMP_MODELS: model,
        reader.LUMP_LEAFBRUSHES: struct.pack("<H", 0),
        reader.LUMP_BRUSHES: reader.BRUSH_STRUCT.pack(0, 6, int(Contents.SOLID)),
        reader.LUMP_BRUSHSIDES: sides,
        reader.LUMP_TEXDATA_STRING_DATA: names,
        reader.LUMP_TEXDATA_STRING_TABLE: struct.pack("<i", 0),
    }


@pytest.fixture
def box_bsp_file(tmp_path):
    path = tmp_path / "box.bsp"
    path.write_bytes(pack_bsp(box_map_lumps(), lump_versions={reader.LUMP_LEAFS: 1}))
    return path
