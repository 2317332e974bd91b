"""Tests for the map spec sanitizer — every field falls back on its own."""

from __future__ import annotations

import pytest

from questmap.engine.procedural import default_palette, fallback_path, generate_procedural_map
from questmap.engine.sanitizer import sanitize_map_spec
from questmap.models.map_spec import MapNode, MapPoint, MapSpecification


FALLBACK = fallback_path("wellness_generic", 9)


def _valid_candidate(count: int = 4) -> dict:
    return generate_procedural_map("jungle_garden", count).model_dump(by_alias=True)


class TestNodeCount:
    @pytest.mark.parametrize(
        "candidate",
        [
            {},
            None,
            "not a spec",
            {"nodes": []},
            {"nodes": [{}]},
            {"nodes": [{"x": 0.1, "y": 0.2}] * 50},
            {"nodes": "nope"},
        ],
    )
    @pytest.mark.parametrize("expected", range(2, 13))
    def test_always_exactly_expected(self, candidate, expected):
        result = sanitize_map_spec(candidate, expected, FALLBACK)
        assert len(result.spec.nodes) == expected
        assert [n.index for n in result.spec.nodes] == list(range(expected))
        assert result.spec.meta.checklist_count == expected

    def test_expected_count_is_clamped(self):
        assert len(sanitize_map_spec({}, 1, FALLBACK).spec.nodes) == 2
        assert len(sanitize_map_spec({}, 40, FALLBACK).spec.nodes) == 12

    def test_mismatch_warns(self):
        result = sanitize_map_spec({"nodes": [{}] * 7}, 3, FALLBACK)
        assert any("Node count normalized" in w for w in result.warnings)

    def test_candidate_nodes_kept_by_position(self):
        candidate = {"nodes": [{"id": "a", "x": 0.2, "y": 0.3, "label": "First", "stageType": "diet"}]}
        spec = sanitize_map_spec(candidate, 3, FALLBACK).spec
        assert (spec.nodes[0].id, spec.nodes[0].x, spec.nodes[0].y) == ("a", 0.2, 0.3)
        assert spec.nodes[0].label == "First"
        assert spec.nodes[0].stage_type == "diet"
        assert [n.id for n in spec.nodes[1:]] == ["n2", "n3"]
        assert [n.label for n in spec.nodes[1:]] == ["Stage 2", "Stage 3"]

    def test_synthesized_nodes_spread_along_path(self):
        spec = sanitize_map_spec({}, 3, FALLBACK).spec
        assert (spec.nodes[0].x, spec.nodes[0].y) == (FALLBACK[0].x, FALLBACK[0].y)
        assert (spec.nodes[-1].x, spec.nodes[-1].y) == (FALLBACK[-1].x, FALLBACK[-1].y)


class TestCoordinates:
    def test_out_of_range_points_are_clamped(self):
        candidate = {
            "path": [{"x": -5, "y": 99}, {"x": 2, "y": -1}],
            "nodes": [{"x": -5, "y": 99}, {"x": 0.5, "y": 1.5}],
            "character": {"x": 7, "y": -7},
            "decor": [{"assetId": "rock", "x": -1, "y": 3}],
        }
        spec = sanitize_map_spec(candidate, 2, FALLBACK).spec
        points = spec.path + spec.nodes + [spec.character] + spec.decor
        for p in points:
            assert 0.0 <= p.x <= 1.0
            assert 0.0 <= p.y <= 1.0
        assert (spec.path[0].x, spec.path[0].y) == (0.0, 1.0)

    def test_nan_goes_to_center_and_missing_takes_fallback(self):
        candidate = {"path": [{"x": float("nan"), "y": "oops"}, {"y": 0.4}]}
        spec = sanitize_map_spec(candidate, 2, FALLBACK).spec
        assert (spec.path[0].x, spec.path[0].y) == (0.5, 0.5)
        assert spec.path[1].x == FALLBACK[1].x
        assert spec.path[1].y == 0.4

    def test_short_path_replaced_by_fallback(self):
        result = sanitize_map_spec({"path": [{"x": 0.1, "y": 0.1}]}, 3, FALLBACK)
        assert result.spec.path == FALLBACK
        assert any("fewer than 2 points" in w for w in result.warnings)

    def test_degenerate_fallback_path_is_replaced(self):
        result = sanitize_map_spec({}, 3, [MapPoint(x=0.5, y=0.5)])
        assert len(result.spec.path) >= 2


class TestFields:
    def test_invalid_theme(self):
        result = sanitize_map_spec({"themeId": "lava_world"}, 3, FALLBACK)
        assert result.spec.theme_id == "wellness_generic"
        assert any("themeId" in w for w in result.warnings)

    def test_palette_colors_validated_independently(self):
        palette = default_palette("city_vitamins").model_dump()
        palette["accent"] = "blue"
        palette["sky"] = "#12345"
        candidate = {"themeId": "city_vitamins", "palette": palette}
        result = sanitize_map_spec(candidate, 3, FALLBACK)
        defaults = default_palette("city_vitamins")
        assert result.spec.palette.primary == palette["primary"]
        assert result.spec.palette.accent == defaults.accent
        assert result.spec.palette.sky == defaults.sky
        assert len([w for w in result.warnings if "Palette" in w]) == 2

    def test_trailing_newline_color_is_replaced_not_fatal(self):
        candidate = _valid_candidate(4)
        candidate["palette"]["accent"] = "#ABCDEF\n"
        result = sanitize_map_spec(candidate, 4, FALLBACK)
        assert result.spec.theme_id == "jungle_garden"
        assert result.spec.palette.accent == default_palette("jungle_garden").accent
        assert result.spec.path == [MapPoint.model_validate(p) for p in candidate["path"]]
        assert result.warnings == ["Palette color 'accent' invalid; theme default used."]

    def test_decor_filtered_and_capped(self):
        decor = [{"assetId": f"tree_{i}", "x": 0.1, "y": 0.2, "scale": 9, "layer": "sky"} for i in range(50)]
        decor += [{"x": 0.1}, "rock", None]
        result = sanitize_map_spec({"decor": decor}, 3, FALLBACK)
        assert len(result.spec.decor) == 40
        assert result.spec.decor[0].scale == 2.0
        assert result.spec.decor[0].layer == "mid"
        assert any("Decor trimmed" in w for w in result.warnings)

    def test_character_defaults_to_first_node(self):
        candidate = {"nodes": [{"x": 0.3, "y": 0.7}, {"x": 0.6, "y": 0.2}], "character": "hero"}
        spec = sanitize_map_spec(candidate, 2, FALLBACK).spec
        assert (spec.character.x, spec.character.y) == (0.3, 0.7)
        assert spec.character.skin == "explorer_default"

    def test_background_image_and_parallax(self):
        layers = [{"assetId": f"layer_{i}", "speed": 99, "opacity": 0} for i in range(10)] + [{"speed": 1}]
        ok = sanitize_map_spec(
            {"background": {"imageUrl": "/maps/map-dentistry-3-abc.png", "parallaxLayers": layers}},
            3,
            FALLBACK,
        ).spec
        assert ok.background.image_url == "/maps/map-dentistry-3-abc.png"
        assert len(ok.background.parallax_layers) == 8
        assert ok.background.parallax_layers[0].speed == 1.5
        assert ok.background.parallax_layers[0].opacity == 0.1

        rejected = sanitize_map_spec({"background": {"imageUrl": "javascript:alert(1)"}}, 3, FALLBACK).spec
        assert rejected.background.image_url is None

    def test_style_tier_and_meta(self):
        spec = sanitize_map_spec({"styleTier": "legendary", "meta": {"source": "ai", "seed": "x"}}, 3, FALLBACK).spec
        assert spec.style_tier == "template"
        assert spec.meta.source == "ai"
        assert isinstance(spec.meta.seed, int)

    def test_long_strings_truncated(self):
        candidate = {"nodes": [{"label": "L" * 200, "id": "n"}], "character": {"skin": "s" * 100}}
        spec = sanitize_map_spec(candidate, 2, FALLBACK).spec
        assert len(spec.nodes[0].label) == 60
        assert len(spec.character.skin) == 32


class TestTotality:
    @pytest.mark.parametrize(
        "candidate",
        [
            {"path": "abc", "nodes": 5, "palette": 5, "decor": [1, None, "x"], "character": []},
            {"path": [None, 1, "a"], "background": "x", "meta": []},
            [1, 2, 3],
            42,
        ],
    )
    def test_never_raises(self, candidate):
        result = sanitize_map_spec(candidate, 4, FALLBACK)
        assert isinstance(result.spec, MapSpecification)
        assert not result.ok

    def test_huge_integers_only_affect_their_field(self):
        candidate = _valid_candidate(4)
        candidate["meta"]["source"] = "ai"
        candidate["meta"]["seed"] = 10**400
        candidate["nodes"][1]["x"] = 10**400
        result = sanitize_map_spec(candidate, 4, FALLBACK)
        assert result.spec.theme_id == "jungle_garden"
        assert result.spec.meta.source == "ai"
        assert result.spec.meta.seed != 10**400
        assert 0.0 <= result.spec.nodes[1].x <= 1.0
        assert result.spec.nodes[2] == MapNode.model_validate(candidate["nodes"][2])

    def test_valid_spec_passes_clean(self):
        result = sanitize_map_spec(_valid_candidate(4), 4, FALLBACK)
        assert result.ok
        assert result.warnings == []
        assert result.spec.theme_id == "jungle_garden"

    def test_accepts_model_instances(self):
        spec = generate_procedural_map("desert_pyramids", 5)
        result = sanitize_map_spec(spec, 5, FALLBACK)
        assert result.ok
        assert result.spec.path == spec.path
