"""
Decompilation pipeline.
"""

from .decompiler import BspDecompiler, DecompileResult, PipelineStage, decompile_file

__all__ = [
    'BspDecompiler',
    'DecompileResult',
    'PipelineStage',
    'decompile_file',
]
