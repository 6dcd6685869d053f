"""
VMF brush decompiler.

Rebuilds the brushes of a compiled Source engine map (.bsp) and writes them
as a Hammer map (.vmf).

Public API:
    - decompile_file(): BSP file in, VMF file out
    - BspDecompiler: Decompile already loaded BspData into a stream
    - DecompileConfig, load_config(), save_config(): Settings
    - read_bsp(): Parse a BSP file
"""

__version__ = "0.1.0"

from .config import DecompileConfig, load_config, save_config
from .bsp import BspData, read_bsp
from .pipeline import BspDecompiler, DecompileResult, decompile_file
from .validation import BspFormatError, ConfigError, DecompileError

__all__ = [
    'DecompileConfig',
    'load_config',
    'save_config',
    'BspData',
    'read_bsp',
    'BspDecompiler',
    'DecompileResult',
    'decompile_file',
    'DecompileError',
    'BspFormatError',
    'ConfigError',
]
