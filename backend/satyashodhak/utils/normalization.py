"""
Normalization helpers for verdicts, confidence scores and evidence sources.

Verdicts, confidence values and source lists arrive from the reasoning engine,
from client payloads and from stored rows in several loose shapes. These
helpers turn them into the canonical forms once, at the persistence boundary.
"""

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union


class Verdict(str, Enum):
    """Closed set of fact-check outcomes."""
    TRUE = "TRUE"
    FALSE = "FALSE"
    MISLEADING = "MISLEADING"
    PARTIALLY_TRUE = "PARTIALLY_TRUE"
    INCONCLUSIVE = "INCONCLUSIVE"


VERDICT_LABELS: Dict[str, str] = {
    Verdict.TRUE.value: "TRUE",
    Verdict.FALSE.value: "FALSE",
    Verdict.MISLEADING.value: "MISLEADING",
    Verdict.PARTIALLY_TRUE.value: "PARTIALLY TRUE",
    Verdict.INCONCLUSIVE.value: "INCONCLUSIVE",
}

UNKNOWN_VERDICT_LABEL = "Unknown"
SOURCE_FIELDS = ("title", "snippet", "url")


@dataclass(frozen=True)
class SourcesOk:
    """At least one usable source."""
    sources: List[Dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class SourcesEmpty:
    """Nothing usable was found."""


SourcesResult = Union[SourcesOk, SourcesEmpty]


def coerce_verdict(value: Any) -> str:
    """
    Canonicalize a verdict string without rejecting unknown values.

    "partially true", "Partially-True" and "PARTIALLY_TRUE" all become
    PARTIALLY_TRUE. Values outside the enumeration are kept as given so the
    display layer can show them as "Unknown".
    """
    if isinstance(value, Verdict):
        return value.value
    if not isinstance(value, str):
        return "" if value is None else str(value)
    candidate = value.strip().upper().replace("-", "_").replace(" ", "_")
    if candidate in VERDICT_LABELS:
        return candidate
    return value.strip()


def is_known_verdict(value: Any) -> bool:
    return isinstance(value, str) and value in VERDICT_LABELS


def verdict_label(value: Any) -> str:
    """Human readable verdict, "Unknown" for anything outside the enumeration."""
    verdict = coerce_verdict(value)
    if not is_known_verdict(verdict):
        return UNKNOWN_VERDICT_LABEL
    return VERDICT_LABELS[verdict]


def coerce_confidence(value: Any, default: int = 50) -> int:
    """
    Convert a confidence value to an integer percentage between 0 and 100.

    Args:
        value: Number or numeric string produced by the engine or a client
        default: Value used when the input is not numeric

    Returns:
        Clamped integer confidence
    """
    if isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip().rstrip("%")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return max(0, min(100, int(round(number))))


def _coerce_source(entry: Dict[str, Any]) -> Dict[str, str]:
    source = {}
    for key in SOURCE_FIELDS:
        value = entry.get(key)
        source[key] = "" if value is None else str(value)
    return source


def normalize_sources(raw: Any) -> SourcesResult:
    """
    Normalize a loosely-shaped source collection.

    Accepts a JSON string, a single source mapping, a mapping with a
    "sources" key, or a list of mappings. Entries that are not mappings, and
    mappings with no title, snippet or url, are dropped.

    Returns:
        SourcesOk with the cleaned list, or SourcesEmpty
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError):
            return SourcesEmpty()

    if isinstance(raw, dict):
        raw = raw["sources"] if "sources" in raw else [raw]

    if not isinstance(raw, (list, tuple)):
        return SourcesEmpty()

    sources = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        source = _coerce_source(entry)
        if any(source.values()):
            sources.append(source)

    if not sources:
        return SourcesEmpty()
    return SourcesOk(sources=sources)


def sources_or_empty_list(raw: Any) -> List[Dict[str, str]]:
    """Unwrap normalize_sources for read paths that tolerate an empty list."""
    result = normalize_sources(raw)
    if isinstance(result, SourcesOk):
        return list(result.sources)
    return []


def build_share_text(claim: str, verdict: Any, confidence: Any) -> str:
    """Text a user copies when sharing a verification result."""
    return (
        f'SatyaShodhak Verification: "{claim}" - Verdict: {verdict_label(verdict)} '
        f"({coerce_confidence(confidence)}% confidence)"
    )
