"""
BSP -> VMF decompilation pipeline.

Reads a compiled map, rebuilds the world brushes plus the brushes of detail
and brush model entities, and writes a VMF.  Entity reconstruction proper
(keyvalues, point entities) is not done here; detail, areaportal and model
brushes are wrapped in placeholder ``func_detail`` / ``func_areaportal`` /
``func_brush`` entities so no geometry is lost.  Placeholders whose brushes
are all skipped are not written.
"""

import io
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from vmf_decompiler.bsp.reader import read_bsp
from vmf_decompiler.bsp.structs import BspData
from vmf_decompiler.config import DecompileConfig
from vmf_decompiler.conversion.brush_source import BrushSource
from vmf_decompiler.conversion.id_allocator import IdAllocator
from vmf_decompiler.conversion.protection import BspProtection
from vmf_decompiler.conversion.texture_source import TextureSource
from vmf_decompiler.conversion.visgroups import VisgroupRegistry
from vmf_decompiler.conversion.vmf_writer import VmfWriter
from vmf_decompiler.validation.core import DecompileStats

logger = logging.getLogger(__name__)

EDITOR_VERSION = 400
FORMAT_VERSION = 100


class PipelineStage(Enum):
    READ_BSP = "read_bsp"
    WRITE_WORLD = "write_world"
    WRITE_DETAILS = "write_details"
    WRITE_AREAPORTALS = "write_areaportals"
    WRITE_MODELS = "write_models"
    WRITE_VMF = "write_vmf"
    COMPLETE = "complete"


@dataclass
class DecompileResult:
    stats: DecompileStats
    stages_completed: List[PipelineStage] = field(default_factory=list)
    output_file: Optional[str] = None
    elapsed_time: float = 0.0


class BspDecompiler:
    """Runs one decompilation.  Every run gets fresh ID counters."""

    def __init__(self, bsp: BspData, config: Optional[DecompileConfig] = None):
        self.bsp = bsp
        self.config = config or DecompileConfig()
        self.config.validate()

        self.ids = IdAllocator()
        self.bspprot = BspProtection(bsp, self.config)
        self._reset_run_state()

    def _reset_run_state(self) -> None:
        self.ids.reset()
        self.stats = DecompileStats()
        self.visgroups = VisgroupRegistry()
        self.texsrc = TextureSource(self.bsp)

    def run(self, stream: TextIO) -> DecompileResult:
        """Decompile into ``stream``."""
        start_time = time.time()
        self._reset_run_state()
        result = DecompileResult(stats=self.stats)

        # Body is buffered so the visgroups used by it can be written first
        body = VmfWriter(io.StringIO())
        brushsrc = BrushSource(self.bsp, body, self.config, self.ids, self.texsrc,
                               self.bspprot, self.visgroups, self.stats)

        self._write_world(body, brushsrc)
        result.stages_completed.append(PipelineStage.WRITE_WORLD)

        if self.config.write_details:
            self._write_world_entities(body, brushsrc, "func_detail")
            result.stages_completed.append(PipelineStage.WRITE_DETAILS)

        if self.config.write_areaportals:
            self._write_world_entities(body, brushsrc, "func_areaportal")
            result.stages_completed.append(PipelineStage.WRITE_AREAPORTALS)

        self._write_models(body, brushsrc)
        result.stages_completed.append(PipelineStage.WRITE_MODELS)

        writer = VmfWriter(stream)
        self._write_version_info(writer)
        self.visgroups.write_visgroups(writer)
        stream.write(body.getvalue())
        writer.close()
        result.stages_completed.append(PipelineStage.WRITE_VMF)

        result.elapsed_time = time.time() - start_time
        logger.info("Brush reconstruction: %s", self.stats.summary())
        if self.stats.brushes_skipped:
            logger.warning("%d brushes could not be reconstructed", self.stats.brushes_skipped)
        result.stages_completed.append(PipelineStage.COMPLETE)
        return result

    # -- stages --

    def _write_version_info(self, writer: VmfWriter) -> None:
        writer.start("versioninfo")
        writer.put("editorversion", EDITOR_VERSION)
        writer.put("editorbuild", 0)
        writer.put("mapversion", self.bsp.map_revision)
        writer.put("formatversion", FORMAT_VERSION)
        writer.put("prefab", 0)
        writer.end("versioninfo")

    def _write_world(self, writer: VmfWriter, brushsrc: BrushSource) -> None:
        writer.start("world")
        writer.put("id", self.ids.next_entity_id())
        writer.put("mapversion", self.bsp.map_revision)
        writer.put("classname", "worldspawn")
        brushsrc.reconstruct_world()
        writer.end("world")

    def _write_world_entities(self, writer: VmfWriter, brushsrc: BrushSource,
                              classname: str) -> int:
        """Write each world brush claimed by ``classname`` as its own entity."""
        count = 0
        for brush_index in range(brushsrc.world_brushes):
            if brushsrc.world_entity_class(brush_index) != classname:
                continue
            if self._write_brush_entity(writer, brushsrc, [brush_index], classname):
                count += 1

        logger.info("Wrote %d %s brushes", count, classname)
        return count

    def _write_models(self, writer: VmfWriter, brushsrc: BrushSource) -> None:
        """Write brush models 1..n as func_brush placeholders."""
        count = 0
        for model_index in range(1, len(brushsrc.models)):
            bmodel = brushsrc.models[model_index]
            if bmodel.num_brushes == 0:
                logger.debug("Model %d owns no brushes", model_index)
                continue

            if self._write_brush_entity(writer, brushsrc, bmodel.brush_indices(), "func_brush",
                                        targetname=f"model_{model_index}"):
                count += 1

        logger.info("Wrote %d brush models", count)

    def _write_brush_entity(self, writer: VmfWriter, brushsrc: BrushSource,
                            brush_indices: Iterable[int], classname: str, **keyvalues) -> int:
        """Write a placeholder entity holding the given brushes.

        The brushes are rebuilt first; when none of them survives, no entity
        is written and no entity ID is spent.

        Returns:
            Number of brushes written
        """
        evaluated = [brushsrc.evaluate_brush(brush_index) for brush_index in brush_indices]
        emitted = [brush for brush in evaluated if brush.emitted]
        if not emitted:
            logger.debug("Skipping empty %s", classname)
            return 0

        writer.start("entity")
        writer.put("id", self.ids.next_entity_id())
        writer.put("classname", classname)
        for key, value in keyvalues.items():
            writer.put(key, value)
        for brush in emitted:
            brushsrc.emit_brush(brush)
        writer.end("entity")
        return len(emitted)


def decompile_file(bsp_path, vmf_path, config: Optional[DecompileConfig] = None) -> DecompileResult:
    """Decompile ``bsp_path`` into ``vmf_path``.

    Raises:
        BspFormatError: If the BSP can't be read
    """
    bsp = read_bsp(bsp_path)
    vmf_path = Path(vmf_path)
    with open(vmf_path, 'w', encoding='utf-8') as f:
        result = BspDecompiler(bsp, config).run(f)
    result.stages_completed.insert(0, PipelineStage.READ_BSP)
    result.output_file = str(vmf_path)
    size = vmf_path.stat().st_size
    logger.info("VMF written: %s (%d bytes)", vmf_path, size)
    return result
