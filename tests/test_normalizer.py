"""
Tests for the result normalizer: any backend response becomes a valid AnalysisResult.
"""

from __future__ import annotations

import math

import pytest

from guardaio.analysis_engine.models import ResultStatus
from guardaio.analysis_engine.normalizer import FALLBACK_FINDING, normalize


def test_well_formed_response_kept():
    result = normalize({"status": "danger", "confidence": 91, "findings": ["Lip sync mismatch"]})
    assert result.status is ResultStatus.DANGER
    assert result.confidence == 91
    assert result.findings == ["Lip sync mismatch"]
    assert result.heatmap_regions is None


@pytest.mark.parametrize("raw", [None, "oops", 42, [], {"unexpected": True}])
def test_garbage_yields_default_result(raw):
    result = normalize(raw)
    assert result.status is ResultStatus.WARNING
    assert result.confidence == 0
    assert result.findings == [FALLBACK_FINDING]


@pytest.mark.parametrize("status", ["SAFE", "unknown", "", 1, None, " safe"])
def test_unknown_status_becomes_warning(status):
    assert normalize({"status": status}).status is ResultStatus.WARNING


@pytest.mark.parametrize(
    "confidence, expected",
    [
        (150, 100),
        (-5, 0),
        (72.5, 73),
        (72.4, 72),
        (0.5, 1),
        (99.99, 100),
        ("85", 0),
        (True, 0),
        (None, 0),
        (math.nan, 0),
        (math.inf, 100),
        (-math.inf, 0),
    ],
)
def test_confidence_clamped_and_rounded(confidence, expected):
    result = normalize({"status": "safe", "confidence": confidence})
    assert result.confidence == expected
    assert isinstance(result.confidence, int)


def test_findings_filtered_to_strings():
    result = normalize({"status": "safe", "confidence": 90, "findings": ["ok", 3, None, "fine"]})
    assert result.findings == ["ok", "fine"]


@pytest.mark.parametrize("findings", [[], [1, 2], "not a list", None, {"a": "b"}])
def test_missing_findings_fall_back(findings):
    assert normalize({"findings": findings}).findings == [FALLBACK_FINDING]


def test_heatmap_regions_passed_through():
    regions = [{"x": 10, "y": 20, "width": 5, "height": 5, "intensity": 0.8}]
    result = normalize({"status": "warning", "confidence": 60, "heatmapRegions": regions})
    assert result.heatmap_regions == regions
    assert result.to_dict()["heatmap_regions"] == regions


def test_heatmap_regions_non_list_dropped():
    result = normalize({"status": "warning", "heatmapRegions": "nope"})
    assert result.heatmap_regions is None
    assert "heatmap_regions" not in result.to_dict()
