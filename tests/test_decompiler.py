import io

import pytest

from vmf_decompiler.bsp.structs import Contents
from vmf_decompiler.config import DecompileConfig
from vmf_decompiler.pipeline.decompiler import BspDecompiler, PipelineStage, decompile_file
from vmf_decompiler.validation.core import ConfigError


@pytest.fixture
def small_map(builder):
    """World box, world detail box, one brush model and one invalid brush."""
    builder.add_box((0, 0, 0), (512, 512, 16))
    builder.add_box((0, 0, 16), (64, 64, 80), contents=Contents.SOLID | Contents.DETAIL)
    builder.add_box((0, 0, 0), (64, 64, 64), bevels=(0, 2, 4))
    builder.add_box((-32, -32, 0), (32, 32, 8))
    return builder.finish([[0, 1, 2], [3]])


def run(bsp, config=None):
    stream = io.StringIO()
    result = BspDecompiler(bsp, config).run(stream)
    return stream.getvalue(), result


def test_writes_world_details_and_models(small_map):
    text, result = run(small_map)

    assert text.startswith("versioninfo\n{\n")
    assert '"classname" "worldspawn"' in text
    assert '"classname" "func_detail"' in text
    assert '"classname" "func_brush"' in text
    assert '"targetname" "model_1"' in text
    assert '"mapversion" "7"' in text
    assert text.count("\tsolid\n") == 3

    assert result.stats.brushes_emitted == 3
    assert result.stats.brushes_invalid == 1
    assert result.stats.sides_emitted == 18
    assert result.stages_completed == [
        PipelineStage.WRITE_WORLD,
        PipelineStage.WRITE_DETAILS,
        PipelineStage.WRITE_MODELS,
        PipelineStage.WRITE_VMF,
        PipelineStage.COMPLETE,
    ]


def test_details_stay_in_world_when_disabled(small_map):
    text, result = run(small_map, DecompileConfig(write_details=False))

    assert '"func_detail"' not in text
    assert PipelineStage.WRITE_DETAILS not in result.stages_completed
    assert result.stats.brushes_emitted == 3


def test_runs_are_identical(small_map):
    decompiler = BspDecompiler(small_map)
    first, second = io.StringIO(), io.StringIO()
    decompiler.run(first)
    decompiler.run(second)

    assert first.getvalue() == second.getvalue()


def test_solid_ids_are_unique_across_entities(small_map):
    text, _ = run(small_map)
    lines = text.splitlines()
    solid_ids = [lines[i + 2].strip() for i, line in enumerate(lines) if line.strip() == "solid"]

    assert solid_ids == ['"id" "1"', '"id" "2"', '"id" "3"']


def test_protector_visgroup_is_declared(builder):
    texinfo = builder.add_texture("tools/toolsinvisible")
    builder.add_box((0, 0, 0), (64, 64, 64), texinfo=texinfo)
    text, _ = run(builder.finish())

    assert '"name" "VMEX protector brushes"' in text
    assert text.index("visgroups") < text.index("world\n")


def test_invalid_config_is_rejected(small_map):
    with pytest.raises(ConfigError):
        BspDecompiler(small_map, DecompileConfig(seed_extent=10.0))


def test_decompile_file(box_bsp_file, tmp_path):
    output = tmp_path / "box.vmf"
    result = decompile_file(box_bsp_file, output)

    assert result.output_file == str(output)
    assert result.stages_completed[0] is PipelineStage.READ_BSP
    assert result.stats.brushes_emitted == 1
    text = output.read_text(encoding="utf-8")
    assert text.count('"material" "dev/dev_measuregeneric01"') == 6


def entity_ids(text):
    lines = text.splitlines()
    return [lines[i + 2].strip() for i, line in enumerate(lines) if line in ("world", "entity")]


class TestPlaceholderEntities:
    def test_skipped_detail_brush_writes_no_func_detail(self, builder):
        builder.add_box((0, 0, 0), (512, 512, 16))
        # Only the bevel-free sides are unbounded, so the brush is dropped
        builder.add_box((0, 0, 16), (64, 64, 80), contents=Contents.SOLID | Contents.DETAIL,
                        bevels=(0, 2, 4))
        builder.add_box((0, 0, 16), (32, 32, 48), contents=Contents.SOLID | Contents.DETAIL)
        text, result = run(builder.finish())

        assert text.count('"classname" "func_detail"') == 1
        assert entity_ids(text) == ['"id" "1"', '"id" "2"']
        assert result.stats.brushes_invalid == 1

    def test_model_without_emitted_brushes_writes_no_func_brush(self, builder):
        builder.add_box((0, 0, 0), (512, 512, 16))
        builder.add_box((0, 0, 0), (64, 64, 64), bevels=(0, 2, 4))
        builder.add_box((0, 0, 0), (16, 16, 16))
        text, _ = run(builder.finish([[0], [1], [2]]))

        assert text.count('"classname" "func_brush"') == 1
        assert '"targetname" "model_1"' not in text
        assert '"targetname" "model_2"' in text
        assert entity_ids(text) == ['"id" "1"', '"id" "2"']

    def test_areaportals_become_func_areaportal(self, builder):
        builder.add_box((0, 0, 0), (512, 512, 16))
        builder.add_box((0, 0, 16), (8, 128, 144), contents=Contents.AREAPORTAL)
        text, result = run(builder.finish(), DecompileConfig(write_areaportals=True))

        assert text.count('"classname" "func_areaportal"') == 1
        assert text.count("\tsolid\n") == 2
        assert text.index("func_areaportal") > text.index("world\n")
        assert PipelineStage.WRITE_AREAPORTALS in result.stages_completed

    def test_areaportals_stay_in_world_by_default(self, builder):
        builder.add_box((0, 0, 0), (512, 512, 16))
        builder.add_box((0, 0, 16), (8, 128, 144), contents=Contents.AREAPORTAL)
        text, result = run(builder.finish())

        assert '"func_areaportal"' not in text
        assert text.count("\tsolid\n") == 2
        assert PipelineStage.WRITE_AREAPORTALS not in result.stages_completed


def test_skipped_brushes_are_reported(small_map, caplog):
    with caplog.at_level("WARNING"):
        run(small_map)

    assert "1 brushes could not be reconstructed" in caplog.text
