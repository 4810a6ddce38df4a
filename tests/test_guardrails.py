"""
Tests for the local input guardrails.
Run: python -m pytest tests/ -v
"""
import pytest
from factories import make_draft

from portfolio_tracker.errors import ValidationError
from portfolio_tracker.guardrails import (
    MAX_UPLOAD_BYTES,
    CertificateGuardrails,
    GuardrailLevel,
    IdentityGuardrails,
    PortfolioGuardrails,
)


def _codes(result):
    return [v.code for v in result.violations]


class TestIdentityGuardrails:
    def setup_method(self):
        self.guard = IdentityGuardrails()

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_blank_name_blocks(self, name):
        result = self.guard.check_name(name)
        assert result.blocked
        assert _codes(result) == ["G-01"]

    def test_real_name_passes(self):
        assert self.guard.check_name(" Kim ").passed


class TestPortfolioGuardrails:
    def setup_method(self):
        self.guard = PortfolioGuardrails()

    def test_valid_draft_passes(self):
        result = self.guard.check_draft(make_draft(), owner="Kim")
        assert result.passed
        assert not result.violations

    def test_missing_category_blocks(self):
        result = self.guard.check_draft(make_draft(category=""), owner="Kim")
        assert "G-02" in _codes(result)
        assert result.blocked

    def test_whitespace_title_blocks(self):
        result = self.guard.check_draft(make_draft(title="   "), owner="Kim")
        assert "G-03" in _codes(result)

    def test_whitespace_description_blocks(self):
        result = self.guard.check_draft(make_draft(description=" \n "), owner="Kim")
        assert "G-04" in _codes(result)

    def test_unknown_category_only_warns(self):
        result = self.guard.check_draft(make_draft(category="robotics-club"), owner="Kim")
        assert not result.blocked
        assert [w.code for w in result.warnings] == ["G-05"]

    def test_no_owner_blocks(self):
        result = self.guard.check_draft(make_draft(), owner=None)
        assert "G-06" in _codes(result)

    def test_upload_limit_is_inclusive(self):
        assert self.guard.check_upload_size(MAX_UPLOAD_BYTES).passed
        over = self.guard.check_upload_size(MAX_UPLOAD_BYTES + 1)
        assert over.blocked and _codes(over) == ["G-07"]


class TestCertificateGuardrails:
    def setup_method(self):
        self.guard = CertificateGuardrails()

    def test_catalog_name_passes(self):
        assert self.guard.check_toggle("ITQ", None).passed

    def test_unknown_certificate_blocks(self):
        assert "G-08" in _codes(self.guard.check_toggle("AWS-SAA", None))

    @pytest.mark.parametrize("value", ["2026-3-15", "15/03/2026", "2026-02-30", "soon"])
    def test_bad_dates_block(self, value):
        result = self.guard.check_toggle("ITQ", value)
        assert "G-09" in _codes(result)

    def test_iso_date_passes(self):
        assert self.guard.check_toggle("ITQ", "2026-03-15").passed


class TestGuardrailResult:
    def test_raise_if_blocked_carries_result(self):
        result = PortfolioGuardrails().check_draft(make_draft(title=""), owner="Kim")
        with pytest.raises(ValidationError) as excinfo:
            result.raise_if_blocked()
        assert excinfo.value.result is result
        assert "title" in excinfo.value.message

    def test_passed_result_does_not_raise(self):
        PortfolioGuardrails().check_draft(make_draft(), owner="Kim").raise_if_blocked()

    def test_summary_lists_codes(self):
        result = PortfolioGuardrails().check_draft(make_draft(category="x", title=""), owner="Kim")
        summary = result.summary()
        assert "[G-03]" in summary and "[G-05]" in summary

    def test_levels(self):
        result = PortfolioGuardrails().check_draft(make_draft(category="x"), owner="Kim")
        assert result.violations[0].level == GuardrailLevel.WARN
