"""
Detection of map protection artifacts.

Protection tools add "protector" brushes that only exist to break
decompiled output.  They are still written, but tagged so they can be found
and deleted in the editor.
"""

from __future__ import annotations
import logging

from vmf_decompiler.bsp.structs import Brush, BspData
from vmf_decompiler.config import DecompileConfig

logger = logging.getLogger(__name__)


class BspProtection:
    """Heuristic protector brush classifier.

    A brush counts as a protector when every one of its non-bevel sides
    uses one of the configured protector materials.
    """

    def __init__(self, bsp: BspData, config: DecompileConfig):
        self.bsp = bsp
        self.protector_materials = {m.lower() for m in config.protector_materials}

    def is_protected_brush(self, brush: Brush) -> bool:
        if not self.protector_materials:
            return False

        matched = False
        for side_index in brush.side_indices():
            side = self.bsp.brush_sides[side_index]
            if side.bevel:
                continue
            material = self.bsp.texture_name(side.texinfo)
            if material is None or material.lower() not in self.protector_materials:
                return False
            matched = True
        return matched
