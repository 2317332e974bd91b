"""Theme classifier — one specialty ThemeProfile per consultation.

Two producers share a single priority-ordered rule table:

- ``classify_by_keywords``: pure, deterministic, network-free. First matching
  rule wins; unmatched text resolves to ``general_wellness``.
- ``ThemeClassifier.classify``: asks a text model first (when enabled), and
  falls back to the keyword classifier on *any* failure.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from questmap.config import Settings, settings
from questmap.llm.errors import MalformedPayloadError, ServiceNotConfiguredError
from questmap.llm.parsing import extract_json_object
from questmap.llm.ports import TextCompleter
from questmap.llm.prompts import get_prompt_template
from questmap.models.checklist import ChecklistItem, ThemeProfile
from questmap.models.map_spec import ThemeId

logger = logging.getLogger(__name__)

GENERAL_WELLNESS = "general_wellness"
MAX_THEME_KEYWORDS = 10
MAX_SPECIFIC_ELEMENTS = 12


@dataclass(frozen=True)
class ThemeRule:
    key: str
    specialty: str
    terms: tuple[str, ...]  # regex fragments, matched as whole words
    keywords: tuple[str, ...]
    elements: tuple[str, ...]

    @property
    def pattern(self) -> re.Pattern[str]:
        return re.compile(r"\b(" + "|".join(self.terms) + r")\b", re.IGNORECASE)


THEME_RULES: tuple[ThemeRule, ...] = (
    ThemeRule(
        key="dentistry",
        specialty="dentistry",
        terms=(
            "wisdom tooth", "wisdom teeth", "tooth removal", "tooth extraction", "extraction",
            "dentist", "dental", "teeth", "tooth", "oral", "gum", "toothpaste", "floss",
            "flossing", "molar", "canine", "incisor", "root canal", "cavity", "filling",
            "braces", "orthodontist", "oral surgery", "toothache",
        ),
        keywords=("dental", "oral care", "teeth", "tooth"),
        elements=(
            "giant tooth statues", "toothbrush towers", "toothpaste streams", "floss bridges",
            "smiling molar landmarks", "dental tools", "pearly white teeth structures",
        ),
    ),
    ThemeRule(
        key="chiropractic",
        specialty="chiropractic",
        terms=("chiropractor", "chiropractic", "spine", "spinal", "vertebra", "posture", "back pain", "back"),
        keywords=("spine", "bones", "posture"),
        elements=(
            "vertebra-shaped arches", "spine totems", "bone pillars", "posture clinic huts",
            "rib-cage rock formations",
        ),
    ),
    ThemeRule(
        key="chest_radiology",
        specialty="chest radiology",
        terms=(r"chest x.?ray", r"x.?ray chest", r"pulmonary x.?ray", r"lung x.?ray"),
        keywords=("chest xray", "lungs", "radiology"),
        elements=(
            "lung-shaped cliffs", "x-ray panel signposts", "radiology scanner stations",
            "thorax icon carvings", "transparent rib-cage monuments",
        ),
    ),
    ThemeRule(
        key="radiology",
        specialty="radiology",
        terms=("radiology", r"x.?ray", "ct", "mri", "ultrasound", "imaging"),
        keywords=("medical imaging", "radiology"),
        elements=("imaging crystal towers", "scan chamber ruins", "x-ray murals", "medical lens beacons"),
    ),
    ThemeRule(
        key="cardiology",
        specialty="cardiology",
        terms=("cardiology", "heart", "bp", "blood pressure", "pulse"),
        keywords=("heart health", "circulation"),
        elements=("heart-shaped groves", "artery river channels", "pulse beacon towers", "stethoscope stone arches"),
    ),
    ThemeRule(
        key="orthopedics",
        specialty="orthopedics",
        terms=("orthopedic", "orthopaedic", "bone", "joint", "knee", "hip", "fracture"),
        keywords=("bones", "joints"),
        elements=("bone ridge formations", "joint-ring arches", "cast workshop huts", "skeletal guardian statues"),
    ),
    ThemeRule(
        key="medication",
        specialty="medication",
        terms=("medication", "pill", "tablet", "capsule", "antibiotic", "prescription", "medicine", "pharmacy"),
        keywords=("pharmacy", "medicine"),
        elements=("pill-shaped trees", "capsule stones", "pharmacy stalls", "bottle shrines"),
    ),
    ThemeRule(
        key="fitness",
        specialty="fitness",
        terms=("exercise", "workout", "run", "walk", "cardio", "fitness", "gym"),
        keywords=("exercise", "movement"),
        elements=("running lane markings", "fitness camp outposts", "training totems", "agility arches"),
    ),
    ThemeRule(
        key="nutrition",
        specialty="nutrition",
        terms=("nutrition", "diet", "vegetable", "fruit", "healthy food", "salad"),
        keywords=("healthy food", "nutrition"),
        elements=("fruit orchards", "vegetable terraces", "nutrition stands", "farmstone windmills"),
    ),
)

# Applied on top of whichever primary rule matched (or none).
_ENRICHERS: tuple[tuple[re.Pattern[str], str, tuple[str, ...]], ...] = (
    (re.compile(r"\b(hydration|water|drink)\b", re.IGNORECASE), "hydration",
     ("hydration springs", "water refill shrines")),
    (re.compile(r"\b(vitamin|supplement|mineral)\b", re.IGNORECASE), "supplements",
     ("vitamin crystal gardens", "supplement kiosks")),
)

THEME_KEYS: tuple[str, ...] = tuple(rule.key for rule in THEME_RULES) + (GENERAL_WELLNESS,)

_MAP_THEME_BY_KEY: dict[str, ThemeId] = {
    "nutrition": "jungle_garden",
    "fitness": "jungle_garden",
    "medication": "city_vitamins",
    "cardiology": "city_vitamins",
    "radiology": "city_vitamins",
    "chest_radiology": "city_vitamins",
    "dentistry": "desert_pyramids",
    "chiropractic": "desert_pyramids",
    "orthopedics": "desert_pyramids",
}


def slugify_theme(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", value.lower().strip()).strip("_")[:50]
    return slug or GENERAL_WELLNESS


def checklist_text(items: Sequence[ChecklistItem]) -> str:
    return " ".join(f"{item.title} {item.description}" for item in items).lower()


def classify_by_keywords(items: Sequence[ChecklistItem], raw_context: str = "") -> ThemeProfile:
    """Deterministic rule-table classification. Identical text → identical profile."""
    text = checklist_text(items)
    if raw_context:
        text = f"{raw_context.lower()} {text}"

    specialty = "general wellness"
    keywords: list[str] = []
    elements: list[str] = []

    for rule in THEME_RULES:
        if rule.pattern.search(text):
            specialty = rule.specialty
            keywords.extend(rule.keywords)
            elements.extend(rule.elements)
            break

    for pattern, keyword, extra in _ENRICHERS:
        if pattern.search(text):
            keywords.append(keyword)
            elements.extend(extra)

    return ThemeProfile(
        theme_key=slugify_theme(specialty),
        specialty=specialty,
        theme_keywords=keywords,
        specific_elements=elements,
    )


def to_map_theme(profile: ThemeProfile) -> ThemeId:
    """Closest closed-enum map theme for a specialty profile."""
    return _MAP_THEME_BY_KEY.get(profile.theme_key, "wellness_generic")


def build_theme_prompt(items: Sequence[ChecklistItem], raw_context: str = "") -> str:
    rules = "\n".join(
        f"{i}. {rule.key.upper()}: if any of these appear → "
        + ", ".join(f'"{t.replace(".?", "-")}"' for t in rule.terms)
        for i, rule in enumerate(THEME_RULES, start=1)
    )
    listing = "\n".join(
        f"{i}. {item.title}" + (f" - {item.description}" if item.description else "")
        for i, item in enumerate(items, start=1)
    )
    return get_prompt_template("theme").format(
        rules=rules,
        fallback_rule=f"{len(THEME_RULES) + 1}. GENERAL_WELLNESS: only if none of the above match",
        theme_keys="|".join(THEME_KEYS),
        raw_context=raw_context or "(none)",
        checklist=listing or "(none)",
    )


def parse_theme_response(text: str) -> ThemeProfile:
    """Strict parse of the model's JSON. Raises on anything unusable."""
    data = extract_json_object(text)

    specialty = str(data.get("specialty") or "").strip()
    raw_key = str(data.get("theme_key") or "").strip()
    if not specialty and not raw_key:
        raise MalformedPayloadError("theme response has neither theme_key nor specialty")

    keywords = data.get("theme_keywords")
    elements = data.get("specific_elements")
    return ThemeProfile(
        theme_key=slugify_theme(raw_key or specialty),
        specialty=specialty or raw_key.replace("_", " "),
        theme_keywords=[str(v) for v in keywords if v][:MAX_THEME_KEYWORDS] if isinstance(keywords, list) else [],
        specific_elements=[str(v) for v in elements if v][:MAX_SPECIFIC_ELEMENTS] if isinstance(elements, list) else [],
    )


class ThemeClassifier:
    """LLM-first classifier that always returns a ThemeProfile."""

    def __init__(
        self,
        completer: TextCompleter | None = None,
        cfg: Settings | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.cfg = cfg or settings
        self.completer = completer
        self.enabled = self.cfg.ai_theme_detection_ready if enabled is None else enabled

    async def classify(self, items: Sequence[ChecklistItem], raw_context: str = "") -> ThemeProfile:
        try:
            if not self.enabled or self.completer is None:
                raise ServiceNotConfiguredError("AI theme detection disabled")
            prompt = build_theme_prompt(items, raw_context)
            call = self.completer.complete(prompt, task="theme")
            timeout = self.cfg.ai_call_timeout_seconds
            text = await (asyncio.wait_for(call, timeout) if timeout else call)
            profile = parse_theme_response(text)
            logger.info("Theme detected by model: %s (%s)", profile.theme_key, profile.specialty)
            return profile
        except ServiceNotConfiguredError:
            profile = classify_by_keywords(items, raw_context)
        except Exception as e:
            logger.warning("Theme detection fell back to keyword rules: %s", e)
            profile = classify_by_keywords(items, raw_context)

        logger.info("Theme detected by keywords: %s (%s)", profile.theme_key, profile.specialty)
        return profile
