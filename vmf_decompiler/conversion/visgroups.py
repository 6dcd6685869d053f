"""
Visgroup bookkeeping for metadata tags on written solids.
"""

from __future__ import annotations
from typing import Dict

from .vmf_writer import VmfWriter

VISGROUP_COLOR = (255, 128, 0)


class VisgroupRegistry:
    """Hands out visgroup IDs by name and writes the matching blocks."""

    def __init__(self):
        self._ids: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def visgroup_id(self, name: str) -> int:
        if name not in self._ids:
            self._ids[name] = len(self._ids) + 1
        return self._ids[name]

    def write_meta(self, writer: VmfWriter, name: str) -> None:
        """Write the ``editor`` block assigning the open solid to a visgroup."""
        writer.start("editor")
        writer.put("color", VISGROUP_COLOR)
        writer.put("visgroupid", self.visgroup_id(name))
        writer.put("visgroupshown", 1)
        writer.put("visgroupautoshown", 1)
        writer.end("editor")

    def write_visgroups(self, writer: VmfWriter) -> None:
        writer.start("visgroups")
        for name, visgroup_id in self._ids.items():
            writer.start("visgroup")
            writer.put("name", name)
            writer.put("visgroupid", visgroup_id)
            writer.put("color", VISGROUP_COLOR)
            writer.end("visgroup")
        writer.end("visgroups")
