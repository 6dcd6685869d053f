"""
Source BSP reading.

Public API:
    - read_bsp(), BspReader: Parse the lumps needed for brush reconstruction
    - BspData and the lump record types
    - TreeLimit, TreeRange: Brush index range below a BSP node
"""

from .reader import BspReader, read_bsp
from .structs import (
    BspData,
    Brush,
    BrushSide,
    Contents,
    Leaf,
    Model,
    Node,
    Plane,
    SurfFlags,
    TexData,
    TexInfo,
)
from .tree_limit import TreeLimit, TreeRange

__all__ = [
    # Reading
    'BspReader',
    'read_bsp',
    # Lump records
    'BspData',
    'Brush',
    'BrushSide',
    'Contents',
    'Leaf',
    'Model',
    'Node',
    'Plane',
    'SurfFlags',
    'TexData',
    'TexInfo',
    # Tree walking
    'TreeLimit',
    'TreeRange',
]
