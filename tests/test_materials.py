import pytest

from voxelstructure.model.materials import (
    COLOR_PALETTE, DEFAULT_MATERIAL, MATERIALS, Material,
    adjust_color_brightness, create_custom_material, get_material_by_name,
)


def test_presets():
    assert set(MATERIALS) == {"STEEL", "CONCRETE", "WOOD", "ALUMINUM"}
    assert DEFAULT_MATERIAL is MATERIALS["STEEL"]
    assert MATERIALS["CONCRETE"].density == 2400.0
    assert MATERIALS["WOOD"].strength == 40.0


@pytest.mark.parametrize("name, expected", [
    ("steel", "Steel"),
    ("Wood", "Wood"),
    (" aluminum ", "Aluminum"),
    ("unobtainium", "Steel"),
])
def test_get_material_by_name(name, expected):
    assert get_material_by_name(name).name == expected


@pytest.mark.parametrize("color, percent, expected", [
    ("#ef4444", -30, "#a30000"),
    ("#808080", 10, "#9a9a9a"),
    ("#ffffff", 10, "#ffffff"),
    ("#000000", -10, "#000000"),
    ("3b82f6", 0, "#3b82f6"),
])
def test_adjust_color_brightness(color, percent, expected):
    assert adjust_color_brightness(color, percent) == expected


def test_adjust_color_brightness_rejects_malformed():
    with pytest.raises(ValueError):
        adjust_color_brightness("#fff", 10)


def test_custom_material():
    material = create_custom_material("#EF4444")
    assert material.name == "Custom"
    assert material.color == "#ef4444"
    assert material.emissive == "#a30000"
    assert (material.density, material.strength, material.weight_factor) == (1000.0, 50.0, 1.0)


def test_material_dict_round_trip():
    assert Material.from_dict(MATERIALS["WOOD"].to_dict()) == MATERIALS["WOOD"]


def test_palette():
    assert len(COLOR_PALETTE) == 27
    assert all(c.startswith("#") and len(c) == 7 for c in COLOR_PALETTE)
