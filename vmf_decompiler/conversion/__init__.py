"""
BSP -> VMF conversion.

Public API:
    - BrushSource: Rebuilds brushes as VMF solids
    - IdAllocator: Run-wide solid / side / entity ID counters
    - VmfWriter: Keyvalue block writer
    - TextureSource, BspProtection, VisgroupRegistry: Collaborators of BrushSource
"""

from .brush_source import BrushModelRange, BrushSource
from .id_allocator import IdAllocator
from .protection import BspProtection
from .texture_source import Texture, TextureAxis, TextureSource
from .visgroups import VisgroupRegistry
from .vmf_writer import VmfWriter

__all__ = [
    'BrushModelRange',
    'BrushSource',
    'IdAllocator',
    'BspProtection',
    'Texture',
    'TextureAxis',
    'TextureSource',
    'VisgroupRegistry',
    'VmfWriter',
]
