"""Tests for warrant.integrity.sources."""

from __future__ import annotations

import pytest

from warrant.integrity.sources import (
    ISSUE_ALL_ANONYMOUS,
    ISSUE_MISSING_URLS,
    ISSUE_NO_PRIMARY,
    ISSUE_NO_SOURCES,
    ISSUE_SINGLE_SOURCE,
    SourceInput,
    assess_source_completeness,
)


class TestAssessSourceCompleteness:
    @pytest.mark.parametrize("sources", [None, []])
    def test_no_sources(self, sources):
        result = assess_source_completeness(sources)
        assert result.score == 0
        assert result.complete is False
        assert result.issues == [ISSUE_NO_SOURCES]

    def test_single_anonymous_source(self):
        result = assess_source_completeness(
            [SourceInput(source_type="INTERVIEW", quality="ANONYMOUS", is_anonymous=True)]
        )
        # presence 20 + anonymous partial 10
        assert result.score == 30
        assert result.complete is False
        assert result.issues == [ISSUE_NO_PRIMARY, ISSUE_ALL_ANONYMOUS, ISSUE_SINGLE_SOURCE]

    def test_well_sourced_article(self):
        result = assess_source_completeness(
            [
                {"source_type": "DOCUMENT", "quality": "PRIMARY", "url": "https://example.org/filing.pdf"},
                {"sourceType": "NEWS", "quality": "secondary", "url": "https://example.org/report"},
            ]
        )
        assert result.score == 100
        assert result.complete is True
        assert result.issues == []

    def test_named_source_missing_url(self):
        result = assess_source_completeness(
            [
                SourceInput(source_type="DOCUMENT", quality="PRIMARY", url="https://example.org/a"),
                SourceInput(source_type="DOCUMENT", quality="SECONDARY"),
            ]
        )
        # 20 + 30 + 15, same type twice
        assert result.score == 65
        assert result.complete is True
        assert result.issues == [ISSUE_MISSING_URLS]

    def test_anonymous_sources_do_not_need_urls(self):
        result = assess_source_completeness(
            [
                SourceInput(source_type="DOCUMENT", quality="PRIMARY", url="https://example.org/a"),
                SourceInput(source_type="INTERVIEW", quality="UNVERIFIABLE"),
            ]
        )
        assert result.score == 100

    @pytest.mark.parametrize(
        "existing",
        [
            [SourceInput(source_type="NEWS", quality="SECONDARY", url="https://example.org/a")],
            [SourceInput(source_type="INTERVIEW", quality="ANONYMOUS", is_anonymous=True)],
            [
                SourceInput(source_type="NEWS", quality="SECONDARY", url="https://example.org/a"),
                SourceInput(source_type="INTERVIEW", quality="UNVERIFIABLE"),
            ],
        ],
    )
    def test_adding_primary_source_raises_score(self, existing):
        primary = SourceInput(source_type="DOCUMENT", quality="PRIMARY", url="https://example.org/filing.pdf")
        before = assess_source_completeness(existing)
        after = assess_source_completeness([*existing, primary])
        assert ISSUE_NO_PRIMARY in before.issues
        assert ISSUE_NO_PRIMARY not in after.issues
        assert after.score > before.score

    def test_threshold_is_fifty(self):
        # 20 presence + 30 primary, no URL, one source
        result = assess_source_completeness([SourceInput(source_type="DOCUMENT", quality="PRIMARY")])
        assert result.score == 50
        assert result.complete is True

    def test_to_dict(self):
        data = assess_source_completeness([]).to_dict()
        assert data == {"score": 0, "complete": False, "issues": [ISSUE_NO_SOURCES]}


class TestSourceInput:
    def test_coerce_camel_case(self):
        src = SourceInput.coerce({"sourceType": "INTERVIEW", "quality": "primary", "isAnonymous": True})
        assert src.source_type == "INTERVIEW"
        assert src.quality == "PRIMARY"
        assert src.anonymous is True

    def test_quality_implies_anonymous(self):
        assert SourceInput(source_type="X", quality="UNVERIFIABLE").anonymous is True
        assert SourceInput(source_type="X", quality="SECONDARY").anonymous is False
