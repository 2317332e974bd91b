"""Tests for theme classification (keyword rules + model path with fallback)."""

from __future__ import annotations

import asyncio
import json

import pytest

from questmap.engine.themes import (
    GENERAL_WELLNESS,
    THEME_KEYS,
    ThemeClassifier,
    build_theme_prompt,
    classify_by_keywords,
    parse_theme_response,
    slugify_theme,
    to_map_theme,
)
from questmap.llm.errors import MalformedPayloadError
from questmap.models.checklist import ChecklistItem, ThemeProfile
from tests.conftest import FakeTextCompleter


def _items(*titles: str) -> list[ChecklistItem]:
    return [ChecklistItem(title=t) for t in titles]


class TestKeywordClassifier:
    def test_dentistry(self, dental_items):
        profile = classify_by_keywords(dental_items)
        assert profile.theme_key == "dentistry"
        assert "dental" in profile.theme_keywords
        assert profile.specific_elements

    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Wisdom tooth extraction aftercare", "dentistry"),
            ("See the chiropractor about back pain", "chiropractic"),
            ("Chest X-ray on Monday", "chest_radiology"),
            ("Book CT scan", "radiology"),
            ("Check blood pressure", "cardiology"),
            ("Knee physiotherapy", "orthopedics"),
            ("Pick up prescription", "medication"),
            ("Go to the gym", "fitness"),
            ("Plan a healthy diet", "nutrition"),
            ("Sleep eight hours", GENERAL_WELLNESS),
        ],
    )
    def test_rules(self, title, expected):
        assert classify_by_keywords(_items(title)).theme_key == expected

    def test_first_rule_wins(self):
        # dentistry is checked before medication
        profile = classify_by_keywords(_items("Take antibiotic after tooth extraction"))
        assert profile.theme_key == "dentistry"

    def test_whole_words_only(self):
        # "gum" inside "legume", "ct" inside "act" must not match
        assert classify_by_keywords(_items("Eat legumes", "Act calm")).theme_key == GENERAL_WELLNESS

    def test_enrichers_apply_on_top(self):
        profile = classify_by_keywords(_items("Floss", "Drink water", "Vitamin D supplement"))
        assert profile.theme_key == "dentistry"
        assert "hydration" in profile.theme_keywords
        assert "supplements" in profile.theme_keywords

    def test_raw_context_counts(self):
        profile = classify_by_keywords(_items("Rest"), raw_context="Follow-up after my cardiology visit")
        assert profile.theme_key == "cardiology"

    def test_deterministic(self, recovery_items):
        assert classify_by_keywords(recovery_items) == classify_by_keywords(recovery_items)


class TestHelpers:
    def test_slugify(self):
        assert slugify_theme("Chest Radiology") == "chest_radiology"
        assert slugify_theme("  --  ") == GENERAL_WELLNESS
        assert len(slugify_theme("x" * 80)) == 50

    def test_to_map_theme(self):
        assert to_map_theme(ThemeProfile(theme_key="nutrition")) == "jungle_garden"
        assert to_map_theme(ThemeProfile(theme_key="cardiology")) == "city_vitamins"
        assert to_map_theme(ThemeProfile(theme_key="dentistry")) == "desert_pyramids"
        assert to_map_theme(ThemeProfile(theme_key="dermatology")) == "wellness_generic"

    def test_prompt_lists_rules_and_context(self, dental_items):
        prompt = build_theme_prompt(dental_items, "wisdom tooth removed yesterday")
        assert "DENTISTRY" in prompt
        assert "wisdom tooth removed yesterday" in prompt
        assert "1. Brush teeth - Twice a day, soft brush" in prompt
        assert "|".join(THEME_KEYS) in prompt
        assert "chest x-ray" in prompt

    def test_parse_response_caps_lists(self):
        text = "```json\n" + json.dumps({
            "theme_key": "Dentistry",
            "specialty": "Dentistry",
            "theme_keywords": [f"k{i}" for i in range(20)],
            "specific_elements": [f"e{i}" for i in range(20)],
        }) + "\n```"
        profile = parse_theme_response(text)
        assert profile.theme_key == "dentistry"
        assert len(profile.theme_keywords) == 10
        assert len(profile.specific_elements) == 12

    def test_parse_response_requires_key_or_specialty(self):
        with pytest.raises(MalformedPayloadError):
            parse_theme_response('{"theme_keywords": ["a"]}')


class TestThemeClassifier:
    def test_model_answer_used(self, dental_items):
        completer = FakeTextCompleter(json.dumps({
            "theme_key": "orthopedics",
            "specialty": "Orthopedics",
            "theme_keywords": ["bones"],
            "specific_elements": ["bone ridges"],
        }))
        classifier = ThemeClassifier(completer, enabled=True)
        profile = asyncio.run(classifier.classify(dental_items))
        assert profile.theme_key == "orthopedics"
        assert completer.calls[0][1] == "theme"

    @pytest.mark.parametrize(
        "response",
        ["", "no json here", "[1, 2]", '{"theme_keywords": []}', RuntimeError("503")],
    )
    def test_any_failure_falls_back_to_keywords(self, dental_items, response):
        classifier = ThemeClassifier(FakeTextCompleter(response), enabled=True)
        profile = asyncio.run(classifier.classify(dental_items))
        assert profile == classify_by_keywords(dental_items)

    def test_disabled_never_calls_model(self, dental_items):
        completer = FakeTextCompleter(RuntimeError("should not be called"))
        profile = asyncio.run(ThemeClassifier(completer, enabled=False).classify(dental_items))
        assert completer.calls == []
        assert profile.theme_key == "dentistry"

    def test_timeout_falls_back(self, dental_items, ai_settings):
        class SlowCompleter:
            async def complete(self, prompt: str, task: str = "theme") -> str:
                await asyncio.sleep(5)
                return "{}"

        ai_settings.ai_call_timeout_seconds = 0.01
        classifier = ThemeClassifier(SlowCompleter(), cfg=ai_settings, enabled=True)
        profile = asyncio.run(classifier.classify(dental_items))
        assert profile.theme_key == "dentistry"
