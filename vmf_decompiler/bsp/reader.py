"""
Source engine BSP ("VBSP") lump reader.

Reads the lumps needed for brush reconstruction from an uncompressed
version 19-21 map into a BspData snapshot, including the Left 4 Dead 2
variant of the v21 lump directory.  LZMA compressed lumps are not
supported and are reported as a BspFormatError, as are truncated files.
"""

from __future__ import annotations
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, TypeVar

from vmf_decompiler.validation.core import BspFormatError
from .structs import (
    BspData, Brush, BrushSide, Contents, Leaf, Model, Node, Plane,
    SurfFlags, TexData, TexInfo,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# =============================================================================
# Format constants
# =============================================================================

VBSP_IDENT = b"VBSP"
SUPPORTED_VERSIONS = (19, 20, 21)
HEADER_LUMPS = 64

LUMP_PLANES = 1
LUMP_TEXDATA = 2
LUMP_NODES = 5
LUMP_TEXINFO = 6
LUMP_LEAFS = 10
LUMP_MODELS = 14
LUMP_LEAFBRUSHES = 17
LUMP_BRUSHES = 18
LUMP_BRUSHSIDES = 19
LUMP_TEXDATA_STRING_DATA = 43
LUMP_TEXDATA_STRING_TABLE = 44

HEADER_STRUCT = struct.Struct("<4si")
LUMP_STRUCT = struct.Struct("<iii4s")
REVISION_STRUCT = struct.Struct("<i")

PLANE_STRUCT = struct.Struct("<3ffi")
TEXDATA_STRUCT = struct.Struct("<3fiiiii")
NODE_STRUCT = struct.Struct("<iii3h3hHHhh")
TEXINFO_STRUCT = struct.Struct("<8f8fii")
LEAF_STRUCT_V0 = struct.Struct("<ihh3h3hHHHHh24sh")   # with ambient lighting
LEAF_STRUCT_V1 = struct.Struct("<ihh3h3hHHHHhh")
MODEL_STRUCT = struct.Struct("<3f3f3fiii")
LEAFBRUSH_STRUCT = struct.Struct("<H")
BRUSH_STRUCT = struct.Struct("<iii")
BRUSHSIDE_STRUCT = struct.Struct("<HhhBB")
STRING_TABLE_STRUCT = struct.Struct("<i")


@dataclass(frozen=True)
class LumpInfo:
    offset: int
    length: int
    version: int
    fourcc: bytes

    @property
    def compressed(self) -> bool:
        return self.fourcc != b"\x00\x00\x00\x00"


class BspReader:
    """Parses a Source BSP file held in memory.

    Usage:
        bsp = BspReader(data).read()
    """

    def __init__(self, data: bytes):
        self.data = data
        self.version = 0
        self.lumps: Dict[int, LumpInfo] = {}
        self.l4d2_layout = False

    def read(self) -> BspData:
        self._read_header()

        bsp = BspData(version=self.version)
        bsp.map_revision = self.map_revision
        bsp.planes = self._read_lump(LUMP_PLANES, PLANE_STRUCT, self._make_plane)
        bsp.texdatas = self._read_lump(LUMP_TEXDATA, TEXDATA_STRUCT, self._make_texdata)
        bsp.nodes = self._read_lump(LUMP_NODES, NODE_STRUCT, self._make_node)
        bsp.texinfos = self._read_lump(LUMP_TEXINFO, TEXINFO_STRUCT, self._make_texinfo)
        bsp.leaves = self._read_leaves()
        bsp.models = self._read_lump(LUMP_MODELS, MODEL_STRUCT, self._make_model)
        bsp.leaf_brushes = self._read_lump(LUMP_LEAFBRUSHES, LEAFBRUSH_STRUCT, lambda v: v[0])
        bsp.brushes = self._read_lump(LUMP_BRUSHES, BRUSH_STRUCT, self._make_brush)
        bsp.brush_sides = self._read_lump(LUMP_BRUSHSIDES, BRUSHSIDE_STRUCT, self._make_brush_side)
        bsp.texnames = self._read_texnames()

        logger.info(
            "Read BSP v%d: %d brushes, %d brush sides, %d models, %d nodes, %d leaves",
            bsp.version, len(bsp.brushes), len(bsp.brush_sides), len(bsp.models),
            len(bsp.nodes), len(bsp.leaves),
        )
        return bsp

    # ---------------------------------------------------------------
    # Header / lump access
    # ---------------------------------------------------------------

    def _read_header(self) -> None:
        header_size = HEADER_STRUCT.size + HEADER_LUMPS * LUMP_STRUCT.size + REVISION_STRUCT.size
        if len(self.data) < header_size:
            raise BspFormatError(f"File too small for a BSP header ({len(self.data)} bytes)")

        ident, version = HEADER_STRUCT.unpack_from(self.data, 0)
        if ident != VBSP_IDENT:
            raise BspFormatError(f"Not a Source BSP file (ident {ident!r})")
        if version not in SUPPORTED_VERSIONS:
            raise BspFormatError(f"Unsupported BSP version {version}")
        self.version = version

        offset = HEADER_STRUCT.size
        entries = []
        for _ in range(HEADER_LUMPS):
            entries.append(LUMP_STRUCT.unpack_from(self.data, offset))
            offset += LUMP_STRUCT.size
        (self.map_revision,) = REVISION_STRUCT.unpack_from(self.data, offset)

        directory = [LumpInfo(*entry) for entry in entries]

        # Left 4 Dead 2 writes v21 lump entries as (version, offset, length, fourCC)
        if version == 21 and not self._directory_fits(directory, header_size):
            swapped = [LumpInfo(off, length, ver, fourcc) for ver, off, length, fourcc in entries]
            if self._directory_fits(swapped, header_size):
                logger.debug("Using Left 4 Dead 2 lump directory layout")
                self.l4d2_layout = True
                directory = swapped

        self.lumps = dict(enumerate(directory))

    def _directory_fits(self, directory: List[LumpInfo], header_size: int) -> bool:
        """True if every non-empty lump lies between the header and the end of the file."""
        return all(
            lump.length == 0 or header_size <= lump.offset <= len(self.data) - lump.length
            for lump in directory
        )

    def _lump_bytes(self, index: int) -> bytes:
        lump = self.lumps[index]
        if lump.compressed:
            raise BspFormatError(f"Lump {index} is compressed, decompress the map first")
        if lump.offset < 0 or lump.length < 0 or lump.offset + lump.length > len(self.data):
            raise BspFormatError(
                f"Lump {index} out of bounds (offset {lump.offset}, length {lump.length}, "
                f"file size {len(self.data)})"
            )
        return self.data[lump.offset:lump.offset + lump.length]

    def _read_lump(self, index: int, record: struct.Struct,
                   make: Callable[[tuple], T]) -> List[T]:
        raw = self._lump_bytes(index)
        if len(raw) % record.size != 0:
            raise BspFormatError(
                f"Lump {index} length {len(raw)} is not a multiple of {record.size}"
            )
        return [make(values) for values in record.iter_unpack(raw)]

    def _read_leaves(self) -> List[Leaf]:
        lump = self.lumps[LUMP_LEAFS]
        record = LEAF_STRUCT_V0 if lump.version == 0 and self.version <= 19 else LEAF_STRUCT_V1
        raw_len = lump.length
        if raw_len % record.size != 0:
            # Some v20 maps still carry the old leaf layout
            record = LEAF_STRUCT_V1 if record is LEAF_STRUCT_V0 else LEAF_STRUCT_V0
        return self._read_lump(LUMP_LEAFS, record, self._make_leaf)

    def _read_texnames(self) -> List[str]:
        string_data = self._lump_bytes(LUMP_TEXDATA_STRING_DATA)
        offsets = self._read_lump(LUMP_TEXDATA_STRING_TABLE, STRING_TABLE_STRUCT, lambda v: v[0])
        names = []
        for offset in offsets:
            if offset < 0 or offset >= len(string_data):
                raise BspFormatError(f"Texture name offset {offset} out of bounds")
            end = string_data.find(b"\x00", offset)
            if end == -1:
                end = len(string_data)
            names.append(string_data[offset:end].decode("ascii", errors="replace"))
        return names

    # ---------------------------------------------------------------
    # Record constructors
    # ---------------------------------------------------------------

    @staticmethod
    def _make_plane(v: tuple) -> Plane:
        return Plane(normal=(v[0], v[1], v[2]), dist=v[3], type=v[4])

    @staticmethod
    def _make_texdata(v: tuple) -> TexData:
        return TexData(name_id=v[3], reflectivity=(v[0], v[1], v[2]), width=v[4], height=v[5])

    @staticmethod
    def _make_node(v: tuple) -> Node:
        return Node(plane_num=v[0], children=(v[1], v[2]))

    @staticmethod
    def _make_texinfo(v: tuple) -> TexInfo:
        return TexInfo(
            texture_vecs=(tuple(v[0:4]), tuple(v[4:8])),
            lightmap_vecs=(tuple(v[8:12]), tuple(v[12:16])),
            flags=SurfFlags(v[16] & 0xFFFF),
            texdata=v[17],
        )

    @staticmethod
    def _make_leaf(v: tuple) -> Leaf:
        return Leaf(contents=Contents(v[0] & 0x7FFFFFFF), first_leaf_brush=v[11],
                    num_leaf_brushes=v[12])

    @staticmethod
    def _make_model(v: tuple) -> Model:
        return Model(mins=tuple(v[0:3]), maxs=tuple(v[3:6]), origin=tuple(v[6:9]),
                     head_node=v[9], first_face=v[10], num_faces=v[11])

    @staticmethod
    def _make_brush(v: tuple) -> Brush:
        return Brush(first_side=v[0], num_sides=v[1], contents=Contents(v[2] & 0x7FFFFFFF))

    @staticmethod
    def _make_brush_side(v: tuple) -> BrushSide:
        return BrushSide(plane_num=v[0], texinfo=v[1], dispinfo=v[2], bevel=bool(v[3]))


def read_bsp(path) -> BspData:
    """Read a BSP file from disk.

    Raises:
        BspFormatError: If the file isn't a readable Source BSP
    """
    path = Path(path)
    logger.info("Loading %s", path)
    return BspReader(path.read_bytes()).read()
