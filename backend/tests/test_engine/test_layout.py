"""Tests for layout extraction from generated artwork."""

from __future__ import annotations

import asyncio
import io
import json

import pytest
from PIL import Image

from questmap.engine.layout import (
    LayoutExtractor,
    build_layout_prompt,
    order_along_path,
    parse_layout_response,
    prepare_image_for_vision,
)
from questmap.llm.errors import EmptyPayloadError, MalformedPayloadError
from questmap.models.map_spec import MapPoint
from tests.conftest import FakeVisionAnalyzer, layout_json, make_png


class TestParseLayout:
    def test_valid_response(self):
        result = parse_layout_response(layout_json(4), 4)
        assert len(result.path) == 20
        assert len(result.nodes) == 4
        assert result.nodes[0].y > result.nodes[-1].y

    def test_fenced_response(self):
        result = parse_layout_response("Here you go:\n```json\n" + layout_json(3) + "\n```", 3)
        assert len(result.nodes) == 3

    def test_wrong_node_count_rejected(self):
        with pytest.raises(MalformedPayloadError):
            parse_layout_response(layout_json(4), 5)

    def test_non_numeric_points_discarded(self):
        data = json.loads(layout_json(3))
        data["nodes"][1]["x"] = "left-ish"
        with pytest.raises(MalformedPayloadError):
            parse_layout_response(json.dumps(data), 3)

        data = json.loads(layout_json(3))
        data["path"] = [{"x": "a", "y": 1}, {"x": 0.5, "y": 0.5}]
        with pytest.raises(MalformedPayloadError):
            parse_layout_response(json.dumps(data), 3)

    def test_missing_arrays_rejected(self):
        with pytest.raises(MalformedPayloadError):
            parse_layout_response('{"path": []}', 3)
        with pytest.raises(EmptyPayloadError):
            parse_layout_response("   ", 3)

    def test_nodes_sorted_by_index_and_clamped(self):
        text = json.dumps({
            "path": [{"x": 0.5, "y": 0.9}, {"x": 0.5, "y": 0.1}],
            "nodes": [
                {"index": 1, "x": 0.5, "y": 0.1},
                {"index": 0, "x": 1.7, "y": 0.9},
            ],
        })
        result = parse_layout_response(text, 2)
        assert (result.nodes[0].x, result.nodes[0].y) == (1.0, 0.9)
        assert result.nodes[1].y == 0.1


class TestOrderAlongPath:
    PATH = [MapPoint(x=0.5, y=0.9), MapPoint(x=0.5, y=0.1)]

    def test_in_order_untouched(self):
        nodes = [MapPoint(x=0.5, y=0.8), MapPoint(x=0.5, y=0.5), MapPoint(x=0.5, y=0.2)]
        ordered, moved = order_along_path(self.PATH, nodes)
        assert not moved
        assert ordered == nodes

    def test_out_of_order_sorted_by_path_distance(self):
        nodes = [MapPoint(x=0.5, y=0.8), MapPoint(x=0.5, y=0.2), MapPoint(x=0.5, y=0.5)]
        ordered, moved = order_along_path(self.PATH, nodes)
        assert moved
        assert [n.y for n in ordered] == [0.8, 0.5, 0.2]


class TestPrepareImage:
    def test_downscales_and_reencodes(self):
        data, media_type = prepare_image_for_vision(make_png(2048, 3072), max_side=512)
        assert media_type == "image/jpeg"
        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            assert max(img.size) == 512

    def test_small_images_not_upscaled(self):
        data, _ = prepare_image_for_vision(make_png(64, 96), max_side=1024)
        with Image.open(io.BytesIO(data)) as img:
            assert img.size == (64, 96)

    def test_garbage_bytes_rejected(self):
        with pytest.raises(MalformedPayloadError):
            prepare_image_for_vision(b"not an image")


class TestLayoutExtractor:
    def test_prompt_names_items_and_count(self, dental_items):
        prompt = build_layout_prompt(dental_items, 3)
        assert "EXACTLY 3 checkpoints" in prompt
        assert "0. Brush teeth" in prompt
        assert "index 2" in prompt

    def test_extract(self, dental_items, ai_settings):
        analyzer = FakeVisionAnalyzer()
        result = asyncio.run(LayoutExtractor(analyzer, ai_settings).extract(make_png(), dental_items, 3))
        assert len(result.nodes) == 3
        assert result.warnings == []
        assert analyzer.calls[0][2] == "image/jpeg"

    def test_extract_reorders_with_warning(self, dental_items, ai_settings):
        text = json.dumps({
            "path": [{"x": 0.5, "y": 0.9}, {"x": 0.5, "y": 0.5}, {"x": 0.5, "y": 0.1}],
            "nodes": [
                {"index": 0, "x": 0.5, "y": 0.85},
                {"index": 1, "x": 0.5, "y": 0.15},
                {"index": 2, "x": 0.5, "y": 0.5},
            ],
        })
        extractor = LayoutExtractor(FakeVisionAnalyzer([text]), ai_settings)
        result = asyncio.run(extractor.extract(make_png(), dental_items, 3))
        assert [n.y for n in result.nodes] == [0.85, 0.5, 0.15]
        assert any("re-ordered" in w for w in result.warnings)
