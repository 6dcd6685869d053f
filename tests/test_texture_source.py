import pytest

from vmf_decompiler.bsp.structs import Contents, SurfFlags
from vmf_decompiler.conversion.texture_source import (
    DEFAULT_MATERIAL,
    TextureAxis,
    TextureSource,
    default_axes,
)
from vmf_decompiler.geometry.transform import Transform


def test_texture_from_texinfo(builder):
    texinfo = builder.add_texture("brick/brickwall001")
    bsp = builder.finish()

    texture = TextureSource(bsp).get_texture(texinfo, None, (0.0, 0.0, 1.0))

    assert texture.material == "brick/brickwall001"
    assert texture.uaxis.format() == "[1 0 0 0] 0.25"
    assert texture.vaxis.format() == "[0 -1 0 0] 0.25"
    assert texture.lightmap_scale == 16


def test_missing_texinfo_uses_default_material_and_axes(builder):
    bsp = builder.finish()
    texture = TextureSource(bsp).get_texture(-1, None, (1.0, 0.0, 0.0))

    assert texture.material == DEFAULT_MATERIAL
    assert texture.uaxis.axis == (0.0, 1.0, 0.0)
    assert texture.vaxis.axis == (0.0, 0.0, -1.0)


def test_default_axes_follow_dominant_normal_axis():
    assert default_axes((0.0, 0.0, -1.0)) == ((1.0, 0.0, 0.0), (0.0, -1.0, 0.0))
    assert default_axes((0.0, 1.0, 0.0)) == ((1.0, 0.0, 0.0), (0.0, 0.0, -1.0))


def test_zero_length_texinfo_vector():
    assert TextureAxis.from_texinfo_vec((0.0, 0.0, 0.0, 5.0)) is None


def test_translated_axis_keeps_texture_in_place():
    axis = TextureAxis(axis=(1.0, 0.0, 0.0), shift=0.0, scale=0.25)
    moved = axis.transformed(Transform(origin=(100.0, 0.0, 0.0)))
    assert moved.axis == (1.0, 0.0, 0.0)
    assert moved.shift == pytest.approx(-400.0)


def test_rotated_axis():
    axis = TextureAxis(axis=(1.0, 0.0, 0.0))
    moved = axis.transformed(Transform(angles=(0.0, 90.0, 0.0)))
    assert moved.axis == pytest.approx((0.0, 1.0, 0.0))
    assert moved.shift == pytest.approx(0.0)


class TestFixToolTextures:
    def fix(self, builder, material="brick/brickwall001", flags=SurfFlags.NONE,
            contents=Contents.SOLID):
        texinfo = builder.add_texture(material, flags)
        builder.add_box((0, 0, 0), (64, 64, 64), contents=contents, texinfo=texinfo)
        bsp = builder.finish()
        texsrc = TextureSource(bsp)
        texture = texsrc.get_texture(texinfo, None, (0.0, 0.0, 1.0))
        original = texsrc.fix_tool_textures(texture, 0, 0)
        return texture.material, original

    def test_regular_brush_is_untouched(self, builder):
        assert self.fix(builder) == ("brick/brickwall001", None)

    def test_sky_flag(self, builder):
        assert self.fix(builder, flags=SurfFlags.SKY) == ("tools/toolsskybox", "brick/brickwall001")

    def test_hint_flag(self, builder):
        assert self.fix(builder, flags=SurfFlags.HINT)[0] == "tools/toolshint"

    def test_player_clip(self, builder):
        assert self.fix(builder, contents=Contents.PLAYERCLIP)[0] == "tools/toolsplayerclip"

    def test_npc_clip(self, builder):
        assert self.fix(builder, contents=Contents.MONSTERCLIP)[0] == "tools/toolsnpcclip"

    def test_full_clip(self, builder):
        contents = Contents.PLAYERCLIP | Contents.MONSTERCLIP
        assert self.fix(builder, contents=contents)[0] == "tools/toolsclip"

    def test_areaportal(self, builder):
        assert self.fix(builder, contents=Contents.AREAPORTAL)[0] == "tools/toolsareaportal"

    def test_invisible_ladder(self, builder):
        assert self.fix(builder, contents=Contents.LADDER)[0] == "tools/toolsinvisibleladder"

    def test_nodraw_flag(self, builder):
        assert self.fix(builder, flags=SurfFlags.NODRAW)[0] == DEFAULT_MATERIAL

    def test_tool_material_already_correct(self, builder):
        result = self.fix(builder, material="TOOLS/TOOLSSKYBOX", flags=SurfFlags.SKY)
        assert result == ("TOOLS/TOOLSSKYBOX", None)


def test_brush_side_ids_are_case_insensitive(builder):
    texsrc = TextureSource(builder.finish())
    texsrc.add_brush_side_id("Brick/Wall", 3)
    texsrc.add_brush_side_id("brick/wall", 4)
    assert texsrc.brush_side_ids["brick/wall"] == [3, 4]
