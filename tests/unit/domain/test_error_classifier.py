"""Tests for ErrorClassifier - priority order, keywords and structured signals."""

import pytest

from src.domain.entities.workflow_state import ErrorCategory, Severity
from src.domain.ports.mutation import RawFailure
from src.domain.services.error_classifier import DEFAULT_MESSAGES, DELETE_RULES, GENERIC_KEY, ErrorClassifier


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


class TestKeywordClassification:
    """Free-text signals, matched case-insensitively."""

    @pytest.mark.parametrize(
        "raw",
        [
            "You still have merchandise in stock",
            "still have stock allocated",
            "Quantity must be zero before deletion",
        ],
    )
    def test_business_rule(self, classifier, raw):
        result = classifier.classify(raw)
        assert result.category == ErrorCategory.BUSINESS_RULE
        assert result.severity == Severity.ERROR
        assert result.message_key == "business.quantity_not_zero"

    @pytest.mark.parametrize("raw", ["Access Denied", "Only ADMIN users", "HTTP 403", "Forbidden"])
    def test_authorization(self, classifier, raw):
        result = classifier.classify(raw)
        assert result.category == ErrorCategory.AUTHORIZATION
        assert result.severity == Severity.WARNING

    @pytest.mark.parametrize("raw", ["Item not found", "ITEM NOT FOUND", "Supplier no longer exists"])
    def test_not_found(self, classifier, raw):
        result = classifier.classify(raw)
        assert result.category == ErrorCategory.NOT_FOUND
        assert result.severity == Severity.WARNING

    def test_dependent_records(self, classifier):
        result = classifier.classify("Cannot delete supplier with linked items")
        assert result.category == ErrorCategory.CONFLICT
        assert result.message_key == "conflict.dependent_records"

    def test_duplicate(self, classifier):
        result = classifier.classify("Supplier already exists")
        assert result.category == ErrorCategory.CONFLICT
        assert result.message_key == "conflict.duplicate"

    def test_business_rule_wins_over_authorization(self, classifier):
        """A message mentioning both admin and stock is a business-rule failure."""
        result = classifier.classify("admin: you still have stock")
        assert result.category == ErrorCategory.BUSINESS_RULE

    def test_authorization_wins_over_not_found(self, classifier):
        result = classifier.classify("Access denied or item not found")
        assert result.category == ErrorCategory.AUTHORIZATION

    def test_numbers_match_whole_words_only(self, classifier):
        assert classifier.classify("Error code 14035").category == ErrorCategory.GENERIC


class TestGenericFallback:
    """Empty or unmatched signals become the generic retry outcome."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "Network Error", "boom"])
    def test_generic(self, classifier, raw):
        result = classifier.classify(raw)
        assert result.category == ErrorCategory.GENERIC
        assert result.message_key == GENERIC_KEY
        assert result.severity == Severity.ERROR
        assert result.message == DEFAULT_MESSAGES[GENERIC_KEY]

    def test_empty_raw_failure(self, classifier):
        assert classifier.classify(RawFailure()).category == ErrorCategory.GENERIC


class TestStructuredSignals:
    """RawFailure status and code are matched in the same priority order."""

    def test_status_403(self, classifier):
        result = classifier.classify(RawFailure(status=403))
        assert result.category == ErrorCategory.AUTHORIZATION

    def test_status_404(self, classifier):
        assert classifier.classify(RawFailure(status=404)).category == ErrorCategory.NOT_FOUND

    def test_bare_409_is_concurrent_change(self, classifier):
        result = classifier.classify(RawFailure(status=409, code="CONFLICT"))
        assert result.category == ErrorCategory.CONFLICT
        assert result.message_key == "conflict.concurrent"

    def test_duplicate_code(self, classifier):
        result = classifier.classify(RawFailure(status=409, code="duplicate"))
        assert result.message_key == "conflict.duplicate"

    def test_text_outranks_later_status(self, classifier):
        """409 with a stock message is still the business rule."""
        result = classifier.classify(
            RawFailure(message="You still have merchandise in stock", status=409, code="CONFLICT")
        )
        assert result.category == ErrorCategory.BUSINESS_RULE

    def test_code_only(self, classifier):
        result = classifier.classify(RawFailure(code="linked_items"))
        assert result.message_key == "conflict.dependent_records"


class TestMessageCatalog:
    """Per-entity catalogs override default texts by key."""

    def test_override(self):
        classifier = ErrorClassifier({"target.not_found": "Gone!"})
        assert classifier.classify("not found").message == "Gone!"

    def test_unknown_key_falls_back_to_generic_text(self, classifier):
        assert classifier.message_for("no.such.key") == DEFAULT_MESSAGES[GENERIC_KEY]

    def test_for_category(self, classifier):
        result = classifier.for_category(ErrorCategory.AUTHORIZATION)
        assert result.message_key == "auth.admin_required"
        assert result.severity == Severity.WARNING

    def test_for_category_without_rule_is_generic(self, classifier):
        assert classifier.for_category(ErrorCategory.VALIDATION).category == ErrorCategory.GENERIC


class TestDeleteRules:
    """On delete flows a conflict is never reported as a duplicate name."""

    @pytest.fixture
    def delete_classifier(self) -> ErrorClassifier:
        return ErrorClassifier(rules=DELETE_RULES)

    def test_bare_409_is_dependent_records(self, delete_classifier):
        result = delete_classifier.classify(RawFailure(status=409, code="conflict"))
        assert result.message_key == "conflict.dependent_records"

    @pytest.mark.parametrize("rules", [DELETE_RULES, None])
    def test_data_conflict_is_dependent_records(self, rules):
        classifier = ErrorClassifier(rules=rules) if rules else ErrorClassifier()
        result = classifier.classify(RawFailure(message="Data conflict", status=409, code="conflict"))
        assert result.category == ErrorCategory.CONFLICT
        assert result.message_key == "conflict.dependent_records"
        assert result.message == DEFAULT_MESSAGES["conflict.dependent_records"]

    def test_concurrent_update(self, delete_classifier):
        result = delete_classifier.classify(
            RawFailure(message="Concurrent update detected", status=409, code="conflict")
        )
        assert result.message_key == "conflict.concurrent"

    def test_duplicate_text_still_recognized(self, delete_classifier):
        assert delete_classifier.classify("Supplier already exists").message_key == "conflict.duplicate"

    def test_business_rule_keeps_priority(self, delete_classifier):
        result = delete_classifier.classify(
            RawFailure(message="You still have merchandise in stock", status=409, code="conflict")
        )
        assert result.category == ErrorCategory.BUSINESS_RULE
