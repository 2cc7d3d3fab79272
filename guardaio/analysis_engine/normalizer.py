"""
Result normalizer: untrusted backend response -> canonical AnalysisResult.

Sole boundary between the analysis backend and the rest of the core. Total:
any input (None, wrong types, out-of-range numbers) yields a valid result,
never an exception, so a malformed response can never crash the caller.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from guardaio.analysis_engine.models import AnalysisResult, ResultStatus
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

FALLBACK_FINDING = "No findings returned from analysis."
DEFAULT_STATUS = ResultStatus.WARNING
MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100

_VALID_STATUSES = {s.value: s for s in ResultStatus}


def _normalize_status(value: Any) -> ResultStatus:
    if isinstance(value, str) and value in _VALID_STATUSES:
        return _VALID_STATUSES[value]
    return DEFAULT_STATUS


def _normalize_confidence(value: Any) -> int:
    """Number -> clamp to [0, 100] -> round half up. Anything else counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return MIN_CONFIDENCE
    number = float(value)
    if math.isnan(number):
        return MIN_CONFIDENCE
    clamped = min(float(MAX_CONFIDENCE), max(float(MIN_CONFIDENCE), number))
    return int(math.floor(clamped + 0.5))


def _normalize_findings(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return [FALLBACK_FINDING]
    findings = [item for item in value if isinstance(item, str)]
    return findings or [FALLBACK_FINDING]


def _normalize_heatmap(value: Any) -> list[Any] | None:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def normalize(raw: Any) -> AnalysisResult:
    """
    Sanitize a raw backend response into an AnalysisResult.

    - status: kept only if exactly "safe", "warning" or "danger"; else "warning".
    - confidence: numeric value clamped to [0, 100] and rounded; non-numbers become 0.
    - findings: list of strings only; empty or missing -> single fallback message.
    - heatmapRegions: passed through when a list, otherwise omitted.
    """
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    result = AnalysisResult(
        status=_normalize_status(data.get("status")),
        confidence=_normalize_confidence(data.get("confidence")),
        findings=_normalize_findings(data.get("findings")),
        heatmap_regions=_normalize_heatmap(data.get("heatmapRegions")),
    )
    if not isinstance(raw, Mapping):
        logger.warning("normalizer_non_mapping_response", raw_type=type(raw).__name__)
    return result
