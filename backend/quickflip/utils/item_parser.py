"""
Parse the vision model's six-field reply into a ScannedItemAnalysis.

The reply is expected to look like::

    ITEM: Nike Air Max 90
    CATEGORY: Clothing, Shoes & Accessories > Men's Shoes > Athletic Shoes
    CONDITION: Good
    DESCRIPTION: ...
    VALUE: $60 - $90
    ATTRIBUTES: {"Brand": "Nike", "US Shoe Size": "10.5"}

Nothing upstream guarantees that shape, so parsing is lenient: unknown lines
are ignored, missing labels keep their defaults and are reported back.
"""

import json
import logging
import re
from typing import Dict, List, Optional, Tuple

from quickflip.models.analysis import BulkAnalysis, BulkItem, ParseResult, ScannedItemAnalysis

logger = logging.getLogger(__name__)

# label -> ScannedItemAnalysis field
FIELD_LABELS = {
    "ITEM": "item_name",
    "CATEGORY": "category",
    "CONDITION": "condition",
    "DESCRIPTION": "description",
    "VALUE": "estimated_value_range",
    "ATTRIBUTES": "attributes",
}

# label -> BulkItem field, read inside an ITEM_n block
BULK_FIELD_LABELS = {
    "NAME": "name",
    "CONDITION": "condition",
    "DESCRIPTION": "description",
    "VALUE": "estimated_value",
    "CATEGORY": "category",
    "LOCATION": "location",
}

_ITEM_HEADER_RE = re.compile(r"ITEM_\d+")
_PRICE_RE = re.compile(r"\$?\s*(\d{1,3}(?:,\d{3})+|\d+)(?:\.(\d+))?")


def _extract_value(line: str) -> str:
    _, _, value = line.partition(":")
    return value.strip().replace("**", "").strip()


def _match_label(line: str) -> Optional[str]:
    for label in FIELD_LABELS:
        if line.startswith(f"{label}:"):
            return label
    return None


def parse_attributes(raw: str) -> Dict[str, str]:
    """Read the inline ATTRIBUTES JSON object. Anything that isn't one yields {}."""
    if not raw:
        return {}
    match = re.search(r"\{.*\}", raw, re.DOTALL)
    if not match:
        return {}
    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError:
        logger.warning("ATTRIBUTES was not valid JSON: %r", raw[:200])
        return {}
    if not isinstance(parsed, dict):
        return {}
    return {str(key): value if isinstance(value, str) else json.dumps(value) for key, value in parsed.items()}


def parse_analysis_detailed(content: str) -> ParseResult:
    values: Dict[str, object] = {}
    for line in (content or "").splitlines():
        stripped = line.strip()
        label = _match_label(stripped)
        if label is None:
            continue
        raw = _extract_value(stripped)
        if label == "ATTRIBUTES":
            # ATTRIBUTES keeps its braces and quotes, so read it before stripping markdown.
            raw = stripped.partition(":")[2].strip()
            values[FIELD_LABELS[label]] = parse_attributes(raw)
        else:
            values[FIELD_LABELS[label]] = raw

    missing = [label for label, field in FIELD_LABELS.items() if field not in values]
    if missing:
        logger.info("Analysis reply is missing labels: %s", ", ".join(missing))

    if not values.get("item_name"):
        values.pop("item_name", None)

    return ParseResult(analysis=ScannedItemAnalysis(**values), missing_fields=missing)


def parse_analysis(content: str) -> ScannedItemAnalysis:
    return parse_analysis_detailed(content).analysis


def parse_price(text: str) -> Optional[float]:
    """First dollar amount in text, e.g. "$1,200" -> 1200.0."""
    amounts = _amounts(text)
    return amounts[0] if amounts else None


def parse_price_range(text: str) -> Optional[Tuple[float, float]]:
    """
    Low and high ends of an estimated value string such as "$20 - $35".
    A single amount gives a zero-width range; no amount gives None.
    """
    amounts = _amounts(text)
    if not amounts:
        return None
    low = amounts[0]
    high = amounts[1] if len(amounts) > 1 else low
    return (min(low, high), max(low, high))


def _amounts(text: str) -> List[float]:
    amounts = []
    for whole, fraction in _PRICE_RE.findall(text or ""):
        number = whole.replace(",", "")
        if fraction:
            number = f"{number}.{fraction}"
        amounts.append(float(number))
    return amounts


def parse_bulk_analysis(content: str) -> BulkAnalysis:
    """
    Read a multi-item reply: ITEM_n blocks of NAME/CONDITION/.../LOCATION lines,
    then a SUMMARY with TOTAL_COUNT, TOTAL_VALUE and SCENE_DESCRIPTION.
    Blocks without a NAME are dropped.
    """
    items: List[BulkItem] = []
    current: Optional[Dict[str, str]] = None
    summary: Dict[str, object] = {}

    def finish():
        if current and current.get("name"):
            items.append(BulkItem(**current))
        elif current is not None:
            logger.info("Dropping bulk item without a NAME: %r", current)

    for line in (content or "").splitlines():
        stripped = line.strip().replace("**", "").strip()
        if _ITEM_HEADER_RE.match(stripped):
            finish()
            current = {}
            continue
        label, sep, _ = stripped.partition(":")
        if not sep:
            continue
        value = _extract_value(stripped)
        if label == "SUMMARY":
            finish()
            current = None
        elif label == "TOTAL_COUNT":
            count = re.search(r"\d+", value)
            if count:
                summary["total_count"] = int(count.group())
        elif label == "TOTAL_VALUE":
            summary["total_value"] = value
        elif label == "SCENE_DESCRIPTION":
            summary["scene_description"] = value
        elif label in BULK_FIELD_LABELS and current is not None:
            current[BULK_FIELD_LABELS[label]] = value
    finish()

    summary.setdefault("total_count", len(items))
    return BulkAnalysis(items=items, **summary)
