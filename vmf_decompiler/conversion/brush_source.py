"""
Brush reconstruction: BSP brushes -> VMF solids.

Rebuilds brushes from the brush and brush side lumps.  Every non-bevel side
gets its polygon reconstructed from the brush's planes; sides that fail are
dropped, and brushes left with fewer than three sides are skipped entirely.
Surviving brushes receive run-wide unique solid and side IDs.

Ownership of brushes by models is recovered by walking the BSP tree from
each model's head node (see ``TreeLimit``).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from vmf_decompiler.bsp.structs import BspData
from vmf_decompiler.bsp.tree_limit import TreeLimit
from vmf_decompiler.config import DecompileConfig
from vmf_decompiler.geometry.transform import Transform
from vmf_decompiler.geometry.vector_math import plane_normal
from vmf_decompiler.geometry.winding import Winding, build_side_winding
from vmf_decompiler.validation.core import BrushOutcome, BrushResult, DecompileStats
from vmf_decompiler.validation.rules import MODEL_001, brush_rule, side_rule
from .id_allocator import IdAllocator
from .protection import BspProtection
from .texture_source import TextureSource
from .visgroups import VisgroupRegistry
from .vmf_writer import VmfWriter

logger = logging.getLogger(__name__)

# Fewer valid sides than this can't form a closed solid safe for Hammer
MIN_BRUSH_SIDES = 3


@dataclass(frozen=True)
class BrushModelRange:
    """Contiguous brush range owned by one model."""
    first_brush: int
    num_brushes: int

    def brush_indices(self) -> range:
        return range(self.first_brush, self.first_brush + self.num_brushes)


@dataclass
class EvaluatedBrush:
    """A brush whose sides were rebuilt but not yet written."""
    result: BrushResult
    sides: Dict[int, Winding]

    @property
    def emitted(self) -> bool:
        return self.result.outcome is BrushOutcome.EMITTED


class BrushSource:
    """Writes world and model brushes as VMF solids.

    Collaborators are passed in explicitly; the same ``IdAllocator`` must be
    shared with every other module writing to the same VMF.
    """

    def __init__(self, bsp: BspData, writer: VmfWriter, config: DecompileConfig,
                 ids: IdAllocator, texsrc: TextureSource, bspprot: BspProtection,
                 visgroups: Optional[VisgroupRegistry] = None,
                 stats: Optional[DecompileStats] = None):
        self.bsp = bsp
        self.writer = writer
        self.config = config
        self.ids = ids
        self.texsrc = texsrc
        self.bspprot = bspprot
        self.visgroups = visgroups if visgroups is not None else VisgroupRegistry()
        self.stats = stats if stats is not None else DecompileStats()

        self.models: List[BrushModelRange] = []
        self.world_brushes = 0

        # Brush / brush side index -> written ID, for modules referencing sides
        self.brush_index_to_id: Dict[int, int] = {}
        self.brush_side_to_id: Dict[int, int] = {}

        self._assign_brushes()

    def _assign_brushes(self) -> None:
        """Walk the BSP tree to find the brush range of the world and each model."""
        tree = TreeLimit(self.bsp)

        self.world_brushes = tree.compute_range(0).end if self.bsp.nodes else 0
        logger.debug("Walked worldspawn tree")

        for model in self.bsp.models:
            found = tree.compute_range(model.head_node)
            self.models.append(BrushModelRange(found.first, found.count))

        logger.debug("Largest worldbrush: %d", self.world_brushes)

    # ---------------------------------------------------------------
    # Public entry points
    # ---------------------------------------------------------------

    def world_entity_class(self, brush_index: int) -> Optional[str]:
        """Classname of the entity a world brush is moved into, if any.

        Depending on the settings, detail brushes go to ``func_detail`` and
        areaportal brushes to ``func_areaportal`` instead of the world.
        """
        brush = self.bsp.brushes[brush_index]

        if self.config.write_details and brush.is_solid() and brush.is_detail():
            return "func_detail"

        if self.config.write_areaportals and brush.is_areaportal():
            return "func_areaportal"

        return None

    def reconstruct_world(self) -> int:
        """Write all world brushes not claimed by an entity.

        Returns:
            Number of brushes written
        """
        logger.info("Writing brushes and planes")

        written = 0
        for brush_index in range(self.world_brushes):
            if self.world_entity_class(brush_index) is not None:
                continue

            if self.reconstruct_brush(brush_index).emitted:
                written += 1

        logger.info("Wrote %d of %d world brushes", written, self.world_brushes)
        return written

    def reconstruct_model(self, model_index: int,
                          transform: Optional[Transform] = None) -> bool:
        """Write every brush of a brush model.

        Returns:
            False if the model index is invalid
        """
        if model_index < 0 or model_index >= len(self.models):
            MODEL_001.log(logger, self.config.is_debug(), model=model_index)
            return False

        bmodel = self.models[model_index]
        self.reconstruct_range(bmodel.first_brush, bmodel.num_brushes, transform)
        return True

    def reconstruct_range(self, first_brush: int, num_brushes: int,
                          transform: Optional[Transform] = None) -> List[BrushResult]:
        return [
            self.reconstruct_brush(brush_index, transform)
            for brush_index in range(first_brush, first_brush + num_brushes)
        ]

    def reconstruct_brush(self, brush_index: int,
                          transform: Optional[Transform] = None) -> BrushResult:
        """Reconstruct one brush and write it if at least three sides survive.

        Args:
            brush_index: Index into the brush lump
            transform: Optional rotation + translation for relocated brushes

        Returns:
            BrushResult describing what happened to the brush
        """
        evaluated = self.evaluate_brush(brush_index, transform)
        if evaluated.emitted:
            self.emit_brush(evaluated, transform)
        return evaluated.result

    def evaluate_brush(self, brush_index: int,
                       transform: Optional[Transform] = None) -> EvaluatedBrush:
        """Rebuild the side polygons of a brush without writing anything.

        Skipped sides are logged here. A brush left with too few sides is
        logged and counted as skipped; callers only need to emit the rest.
        """
        brush = self.bsp.brushes[brush_index]

        side_indices = [i for i in brush.side_indices() if not self.bsp.brush_sides[i].bevel]
        planes = {i: self.bsp.side_plane(i) for i in side_indices}
        escalate = self.config.is_debug()

        valid_sides: Dict[int, Winding] = {}
        result = BrushResult(brush_index=brush_index, outcome=BrushOutcome.EMITTED)
        for side_index in side_indices:
            clip_planes = [planes[other] for other in side_indices if other != side_index]
            winding = build_side_winding(planes[side_index], clip_planes, self.config, transform)
            if winding.ok:
                valid_sides[side_index] = winding.winding
                continue

            result.skipped_sides[side_index] = winding.failure
            side_rule(winding.failure).log(
                logger, escalate, side=side_index - brush.first_side,
                brush=brush_index, detail=winding.detail or "",
            )

        if len(valid_sides) < MIN_BRUSH_SIDES:
            result.outcome = BrushOutcome.INVALID if not valid_sides else BrushOutcome.UNCOMPILABLE
            brush_rule(result.outcome).log(logger, escalate, brush=brush_index)
            self.stats.record_brush(result)

        return EvaluatedBrush(result, valid_sides)

    def emit_brush(self, evaluated: EvaluatedBrush,
                   transform: Optional[Transform] = None) -> BrushResult:
        """Allocate IDs for an evaluated brush and write it as a solid."""
        result = evaluated.result
        if not evaluated.emitted:
            raise ValueError(f"Brush {result.brush_index} has too few sides to be written")

        brush_index = result.brush_index
        brush = self.bsp.brushes[brush_index]

        brush_id = self.ids.next_brush_id()
        self.brush_index_to_id[brush_index] = brush_id
        result.brush_id = brush_id

        self.writer.start("solid")
        self.writer.put("id", brush_id)

        if self.config.is_debug():
            self.writer.start("decompile_debug")
            self.writer.put("brush_index", brush_index)
            self.writer.put("brush_contents", str(brush.contents))
            self.writer.end("decompile_debug")

        for side_index in sorted(evaluated.sides):
            result.side_ids.append(
                self._write_side(side_index, brush_index, evaluated.sides[side_index], transform)
            )

        # Protector detail brushes are written by entity reconstruction
        if not brush.is_detail() and self.bspprot.is_protected_brush(brush):
            self.visgroups.write_meta(self.writer, self.config.protector_visgroup)

        self.writer.end("solid")

        self.stats.record_brush(result)
        return result

    # ---------------------------------------------------------------
    # Sides
    # ---------------------------------------------------------------

    def _write_side(self, side_index: int, brush_index: int, winding: Winding,
                    transform: Optional[Transform]) -> int:
        side = self.bsp.brush_sides[side_index]

        p1, p2, p3 = winding.build_plane()

        # The plane normal from the BSP is invalid once the brush was
        # transformed, so always derive it from the points
        normal = plane_normal(p1, p2, p3)

        texture = self.texsrc.get_texture(side.texinfo, transform, normal)
        original_material = None

        if self.config.face_texture:
            texture.material = self.config.face_texture
        elif self.config.fix_tool_textures:
            original_material = self.texsrc.fix_tool_textures(texture, brush_index, side_index)

        side_id = self.ids.next_side_id()

        # Cubemap side lists reference sides by material
        if self.bsp.texture_name(side.texinfo) is not None:
            self.texsrc.add_brush_side_id(texture.material, side_id)

        self.brush_side_to_id[side_index] = side_id

        self.writer.start("side")
        self.writer.put("id", side_id)

        if self.config.is_debug():
            self.writer.start("decompile_debug")
            self.writer.put("brushside_index", side_index)
            self.writer.put("normal", normal)
            self.writer.put("winding", str(winding))
            if original_material is not None:
                self.writer.put("original_material", original_material)
            if 0 <= side.texinfo < len(self.bsp.texinfos):
                self.writer.put("texinfo_index", side.texinfo)
                self.writer.put("texinfo_flags", str(self.bsp.texinfos[side.texinfo].flags))
            self.writer.end("decompile_debug")

        self.writer.put("plane", p1, p2, p3)
        self.writer.put_texture(texture)
        self.writer.put("smoothing_groups", 0)

        self.writer.end("side")
        return side_id
