"""
Keyword Registry — Versioned Detection Configuration

The registry defines:
  1. Which keyword classes exist (identity, priority, label)
  2. How each class is recognised (literal variations + regex patterns)
  3. How much a detection matters (weight, critical flag)
  4. Which cross-keyword context rules apply
  5. Which critical topic gets a structural placement check

Definitions are declarative data (pydantic models) validated once at
load time. Every pattern is compiled here, never per scan. A registry
instance is immutable: scanners, validators and sessions share it freely.

New critical terms are added by editing the definition (or pointing
KEYWORDGUARD_REGISTRY_PATH at a JSON file), not the detection logic.
"""

from __future__ import annotations

import functools
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from keywordguard.config import settings
from keywordguard.context_rules import ContextRule, CooccurrenceBoost, SuppressionRule
from keywordguard.normalizer import normalize_text

# --- Registry Version (stamped on every scan result) ---
REGISTRY_VERSION = "1.0.0"


class RegistryError(ValueError):
    """Raised when a registry definition fails load-time validation."""


# ============================================================
# DECLARATIVE DEFINITIONS (validated at load time)
# ============================================================

class KeywordDefinition(BaseModel):
    """One keyword class as written in a registry definition."""
    id: str = Field(..., min_length=1)
    label: Optional[str] = None
    priority: int = Field(1, ge=0)
    variations: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    weight: float = Field(..., ge=0.0, le=1.0)
    critical: bool = False
    context_required: bool = False
    companion: Optional[str] = None

    @field_validator("id", "companion")
    @classmethod
    def _canonical_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        if not value:
            raise ValueError("keyword id must not be blank")
        return value

    @field_validator("variations")
    @classmethod
    def _clean_variations(cls, values: list[str]) -> list[str]:
        cleaned = [normalize_text(v) for v in values]
        if any(not v for v in cleaned):
            raise ValueError("variations must not be blank")
        return cleaned

    @field_validator("patterns")
    @classmethod
    def _compilable_patterns(cls, values: list[str]) -> list[str]:
        for pattern in values:
            try:
                compiled = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                raise ValueError(f"invalid pattern {pattern!r}: {e}") from e
            if compiled.match("") is not None:
                raise ValueError(f"pattern {pattern!r} matches the empty string")
        return values

    @model_validator(mode="after")
    def _check_shape(self) -> "KeywordDefinition":
        if not self.variations and not self.patterns:
            raise ValueError(
                f"keyword '{self.id}' needs at least one variation or pattern"
            )
        if self.context_required and not self.companion:
            raise ValueError(
                f"keyword '{self.id}' requires context but names no companion"
            )
        if self.companion == self.id:
            raise ValueError(f"keyword '{self.id}' cannot be its own companion")
        return self


class BoostDefinition(BaseModel):
    """Co-occurrence boost: when `when` is found, scale `target`'s confidence."""
    when: str
    target: str
    factor: float = Field(1.5, ge=1.0)
    cap: float = Field(1.0, gt=0.0, le=1.0)

    @field_validator("when", "target")
    @classmethod
    def _canonical_id(cls, value: str) -> str:
        return value.strip().lower()


class PlacementDefinition(BaseModel):
    """The primary critical topic and the terms that count as placing it."""
    keyword: str
    terms: list[str] = Field(..., min_length=1)

    @field_validator("keyword")
    @classmethod
    def _canonical_id(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("terms")
    @classmethod
    def _clean_terms(cls, values: list[str]) -> list[str]:
        cleaned = [v.strip().lower() for v in values]
        if any(not v for v in cleaned):
            raise ValueError("placement terms must not be blank")
        return cleaned


class RegistryDefinition(BaseModel):
    """A complete registry definition."""
    version: str = REGISTRY_VERSION
    keywords: list[KeywordDefinition] = Field(..., min_length=1)
    suppression_factor: float = Field(0.1, ge=0.0, le=1.0)
    boosts: list[BoostDefinition] = Field(default_factory=list)
    placement: Optional[PlacementDefinition] = None

    @model_validator(mode="after")
    def _check_references(self) -> "RegistryDefinition":
        ids = [k.id for k in self.keywords]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate keyword ids: {', '.join(duplicates)}")

        known = set(ids)
        for k in self.keywords:
            if k.companion and k.companion not in known:
                raise ValueError(
                    f"keyword '{k.id}' names unknown companion '{k.companion}'"
                )
        for b in self.boosts:
            for ref in (b.when, b.target):
                if ref not in known:
                    raise ValueError(f"boost references unknown keyword '{ref}'")
        if self.placement:
            topic = next(
                (k for k in self.keywords if k.id == self.placement.keyword), None,
            )
            if topic is None:
                raise ValueError(
                    f"placement references unknown keyword '{self.placement.keyword}'"
                )
            if not topic.critical:
                raise ValueError(
                    f"placement keyword '{topic.id}' must be critical"
                )
        return self


# ============================================================
# COMPILED STRUCTURES
# ============================================================

@dataclass(frozen=True)
class KeywordClass:
    """A compiled keyword class. Immutable, shared across scans."""
    id: str
    label: str
    priority: int                       # Lower = more important
    variations: tuple[str, ...]         # Normalized literal phrases
    patterns: tuple[re.Pattern, ...]    # Compiled regexes
    weight: float                       # 0.0 to 1.0
    critical: bool = False
    context_required: bool = False
    companion: Optional[str] = None
    # Whole-word, case-insensitive regexes for each variation
    variation_patterns: tuple[re.Pattern, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class PlacementCheck:
    """Domain structural check for the primary critical topic."""
    keyword_id: str
    label: str
    terms: tuple[str, ...]


class KeywordRegistry:
    """
    Ordered, immutable collection of keyword classes plus the context
    rules and placement check that go with them.

    Iteration order is the definition order. Scan results, keyword
    comparisons and enhancer markers all follow it.
    """

    def __init__(
        self,
        classes: list[KeywordClass],
        rules: tuple[ContextRule, ...] = (),
        placement: Optional[PlacementCheck] = None,
        version: str = REGISTRY_VERSION,
    ):
        self._classes: Mapping[str, KeywordClass] = MappingProxyType(
            {c.id: c for c in classes}
        )
        self.rules = tuple(rules)
        self.placement = placement
        self.version = version

    def __iter__(self) -> Iterator[KeywordClass]:
        return iter(self._classes.values())

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, keyword_id: object) -> bool:
        return keyword_id in self._classes

    def get(self, keyword_id: str) -> Optional[KeywordClass]:
        return self._classes.get(keyword_id)

    @property
    def ids(self) -> list[str]:
        return list(self._classes)

    @property
    def critical_ids(self) -> list[str]:
        return [c.id for c in self if c.critical]

    def describe(self) -> list[dict]:
        """
        Return every keyword class as a plain dict.

        Used by the GET /registry endpoint to expose the detection surface.
        """
        return [
            {
                "id": c.id,
                "label": c.label,
                "priority": c.priority,
                "variations": list(c.variations),
                "patterns": [p.pattern for p in c.patterns],
                "weight": c.weight,
                "critical": c.critical,
                "context_required": c.context_required,
                "companion": c.companion,
            }
            for c in sorted(self, key=lambda c: c.priority)
        ]


# ============================================================
# BUILDING
# ============================================================

def _whole_word(variation: str) -> re.Pattern:
    # Lookarounds instead of \b so variations ending in symbols ("c++") still match
    return re.compile(rf"(?<!\w){re.escape(variation)}(?!\w)", re.IGNORECASE)


def _compile_class(definition: KeywordDefinition) -> KeywordClass:
    return KeywordClass(
        id=definition.id,
        label=definition.label or definition.id.title(),
        priority=definition.priority,
        variations=tuple(definition.variations),
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in definition.patterns),
        weight=definition.weight,
        critical=definition.critical,
        context_required=definition.context_required,
        companion=definition.companion,
        variation_patterns=tuple(_whole_word(v) for v in definition.variations),
    )


def build_registry(definition: RegistryDefinition | Mapping[str, Any]) -> KeywordRegistry:
    """
    Validate a definition and compile it into a KeywordRegistry.

    Raises:
        RegistryError: if the definition violates any load-time rule.
    """
    if not isinstance(definition, RegistryDefinition):
        try:
            definition = RegistryDefinition.model_validate(definition)
        except ValidationError as e:
            raise RegistryError(f"Invalid keyword registry: {e}") from e

    classes = [_compile_class(k) for k in definition.keywords]
    by_id = {c.id: c for c in classes}

    rules: list[ContextRule] = []
    for c in classes:
        if c.context_required:
            companion = by_id[c.companion]
            rules.append(SuppressionRule(
                keyword_id=c.id,
                companion_id=companion.id,
                factor=definition.suppression_factor,
                note=f"{c.label} found but no {companion.label} context",
            ))
    for b in definition.boosts:
        rules.append(CooccurrenceBoost(
            when_id=b.when, target_id=b.target, factor=b.factor, cap=b.cap,
        ))

    placement = None
    if definition.placement:
        topic = by_id[definition.placement.keyword]
        placement = PlacementCheck(
            keyword_id=topic.id,
            label=topic.label,
            terms=tuple(definition.placement.terms),
        )

    return KeywordRegistry(
        classes=classes,
        rules=tuple(rules),
        placement=placement,
        version=definition.version,
    )


def load_registry(path: str | Path) -> KeywordRegistry:
    """Load and validate a JSON registry definition from disk."""
    path = Path(path)
    if not path.exists():
        raise RegistryError(f"Registry file not found: {path}")
    try:
        definition = RegistryDefinition.model_validate_json(
            path.read_text(encoding="utf-8")
        )
    except ValidationError as e:
        raise RegistryError(f"Invalid keyword registry in {path}: {e}") from e
    return build_registry(definition)


# ============================================================
# BUILT-IN DEFINITION
# ============================================================

DEFAULT_DEFINITION: dict[str, Any] = {
    "version": REGISTRY_VERSION,
    "keywords": [
        {
            "id": "shopify",
            "label": "Shopify",
            "priority": 1,
            "variations": [
                "shopify",
                "shopify plus",
                "shopify themes",
                "shopify theme",
                "shopify development",
                "shopify developer",
                "shopify store",
                "shopify app",
                "shopify api",
                "shopify liquid",
                "shopify partner",
                "shopify expert",
                "shopify migrations",
                "shopify integration",
            ],
            "patterns": [
                r"shopify",
                r"liquid\s*(?:template|templating|language)?",
                r"theme\s*kit",
                r"polaris",
            ],
            "weight": 1.0,
            "critical": True,
        },
        {
            "id": "ecommerce",
            "label": "E-commerce",
            "priority": 2,
            "variations": [
                "e-commerce",
                "ecommerce",
                "e commerce",
                "online store",
                "online shop",
                "webshop",
                "web shop",
                "digital commerce",
                "online retail",
                "online marketplace",
            ],
            "patterns": [
                r"e[\s-]?commerce",
                r"online\s+(?:store|shop|retail)",
                r"web[\s-]?shop",
                r"digital\s+commerce",
            ],
            "weight": 0.5,
        },
        {
            "id": "liquid",
            "label": "Liquid",
            "priority": 2,
            "variations": ["liquid", "liquid template", "liquid templating", "liquid language"],
            "patterns": [r"liquid\s*(?:template|templating|language)?"],
            "weight": 0.8,
            "context_required": True,
            "companion": "shopify",
        },
        {
            "id": "migrations",
            "label": "Migrations",
            "priority": 3,
            "variations": [
                "migration",
                "migrations",
                "data migration",
                "platform migration",
                "shopify migration",
                "store migration",
            ],
            "patterns": [r"(?:data|platform|shopify|store)?\s*migrations?"],
            "weight": 0.3,
        },
    ],
    "suppression_factor": 0.1,
    "boosts": [
        {"when": "shopify", "target": "ecommerce", "factor": 1.5, "cap": 1.0},
    ],
    "placement": {"keyword": "shopify", "terms": ["shopify", "liquid"]},
}


DEFAULT_REGISTRY = build_registry(DEFAULT_DEFINITION)


@functools.lru_cache(maxsize=1)
def get_registry() -> KeywordRegistry:
    """The process-wide registry: KEYWORDGUARD_REGISTRY_PATH if set, else built-in."""
    if settings.REGISTRY_PATH:
        return load_registry(settings.REGISTRY_PATH)
    return DEFAULT_REGISTRY


def registry_to_json(definition: Mapping[str, Any] = DEFAULT_DEFINITION) -> str:
    """Serialize a definition (validated first) for use as a registry file."""
    validated = RegistryDefinition.model_validate(definition)
    return json.dumps(validated.model_dump(), indent=2)
