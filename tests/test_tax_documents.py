"""Tests for typed tax documents built from extraction output."""

import logging
from decimal import Decimal

import pytest

from rac_benefits.config import ExtractionConfig
from rac_benefits.errors import PrecisionError, ValidationError
from rac_benefits.tax import DOCUMENT_TYPES, parse_document
from rac_benefits.tax.documents import W2, Form1098T


class TestParseDocument:
    """Tests for parse_document."""

    def test_w2(self):
        parsed = parse_document(
            {
                "document_type": "W2",
                "fields": {"wages": "40000.00", "federal_withholding": 3000, "payer": "Acme"},
                "confidence": 0.97,
            }
        )
        assert isinstance(parsed.document, W2)
        assert parsed.document.wages == Decimal("40000.00")
        assert parsed.document.withholding == Decimal("3000.00")
        assert parsed.document.payer == "Acme"
        assert parsed.low_confidence_fields == ()

    def test_all_types_registered(self):
        assert set(DOCUMENT_TYPES) == {"W2", "1099-NEC", "1099-INT", "1099-DIV", "1099-G", "1098-T"}

    def test_unknown_document_type(self):
        """Unrecognized types are rejected, not passed through."""
        with pytest.raises(ValidationError):
            parse_document({"document_type": "K-1", "fields": {}})

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            parse_document({"document_type": "W2", "fields": {"bonus": 5}})

    def test_missing_field_is_absent(self):
        parsed = parse_document({"document_type": "1099-INT", "fields": {}})
        assert parsed.document.interest_income is None
        assert parsed.document.amount("interest_income") == Decimal("0")

    def test_bad_amounts(self):
        with pytest.raises(ValidationError):
            parse_document({"document_type": "W2", "fields": {"wages": -1}})
        with pytest.raises(PrecisionError):
            parse_document({"document_type": "W2", "fields": {"wages": "1.234"}})

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            parse_document(["W2"])


class TestConfidence:
    """Low confidence flags a field without rejecting the document."""

    def test_document_level_confidence(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rac_benefits.tax.documents"):
            parsed = parse_document(
                {"document_type": "W2", "fields": {"wages": 100}, "confidence": 0.5}
            )
        assert parsed.low_confidence_fields == ("wages",)
        assert parsed.document.wages == Decimal("100.00")
        assert "low confidence" in caplog.text

    def test_per_field_confidence(self):
        parsed = parse_document(
            {
                "document_type": "W2",
                "fields": {"wages": 100, "federal_withholding": 10},
                "confidence": {"wages": 0.99, "federal_withholding": 0.6},
            }
        )
        assert parsed.low_confidence_fields == ("federal_withholding",)

    def test_threshold_from_config(self):
        extracted = {"document_type": "W2", "fields": {"wages": 100}, "confidence": 0.7}
        assert parse_document(extracted, ExtractionConfig(confidence_threshold=0.6)).low_confidence_fields == ()

    def test_invalid_threshold(self):
        with pytest.raises(ValidationError):
            ExtractionConfig(confidence_threshold=1.5)

    def test_non_numeric_threshold(self):
        with pytest.raises(ValidationError):
            ExtractionConfig(confidence_threshold="high")

    def test_non_numeric_confidence(self):
        with pytest.raises(ValidationError):
            parse_document({"document_type": "W2", "fields": {"wages": 100}, "confidence": "high"})
        with pytest.raises(ValidationError):
            parse_document(
                {"document_type": "W2", "fields": {"wages": 100}, "confidence": {"wages": [0.9]}}
            )


class TestForm1098T:
    def test_qualified_expenses_net_of_scholarships(self):
        form = Form1098T(qualified_tuition=5000, scholarships=1500)
        assert form.qualified_expenses == Decimal("3500.00")

    def test_scholarships_exceeding_tuition(self):
        assert Form1098T(qualified_tuition=1000, scholarships=2000).qualified_expenses == 0

    def test_credit_type(self):
        with pytest.raises(ValidationError):
            Form1098T(qualified_tuition=1000, credit_type="hope")
