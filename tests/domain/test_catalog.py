"""Tests for the Status and EntityKind catalogs."""

import pytest

from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.exceptions import UnknownEntityKindError, UnknownStatusCodeError


class TestStatusCatalog:

    def test_catalog_has_exactly_the_pipeline_statuses(self):
        assert {s.code for s in Status} == {
            "new", "error",
            "importing", "imported", "consolidating", "consolidated",
            "processing", "enriched", "paired", "posting_ready", "posted",
            "manual_review", "unmatched",
            "auto_accepted", "pending_review", "confirmed", "rejected",
            "open", "in_progress", "resolved", "dismissed",
        }

    def test_codes_are_lowercase(self):
        for status in Status:
            assert status.code == status.code.lower()

    def test_str_renders_code(self):
        assert str(Status.POSTING_READY) == "posting_ready"
        assert f"{Status.MANUAL_REVIEW}" == "manual_review"

    def test_labels(self):
        assert Status.NEW.label == "New"
        assert Status.POSTING_READY.label == "Posting Ready"
        assert Status.AUTO_ACCEPTED.label == "Auto-Accepted"
        assert Status.IN_PROGRESS.label == "In Progress"

    def test_status_compares_equal_to_its_code(self):
        assert Status.ENRICHED == "enriched"

    @pytest.mark.parametrize("code", ["enriched", "ENRICHED", "Enriched"])
    def test_from_code_is_case_insensitive(self, code):
        assert Status.from_code(code) is Status.ENRICHED

    def test_from_code_unknown_raises(self):
        with pytest.raises(UnknownStatusCodeError) as exc_info:
            Status.from_code("in_review")
        assert exc_info.value.status_code == "in_review"
        assert exc_info.value.code == "UNKNOWN_STATUS_CODE"

    def test_from_code_none_raises(self):
        with pytest.raises(UnknownStatusCodeError, match="must not be null"):
            Status.from_code(None)

    def test_from_code_never_defaults(self):
        with pytest.raises(UnknownStatusCodeError):
            Status.from_code("")

    def test_choices_yields_code_label_pairs_in_order(self):
        choices = list(Status.choices())
        assert len(choices) == len(Status)
        assert choices[0] == ("new", "New")
        assert ("posting_ready", "Posting Ready") in choices


class TestEntityKindCatalog:

    def test_kinds_and_collections(self):
        assert {k.name: k.collection for k in EntityKind} == {
            "STATEMENT": "bank_statement",
            "BANK_TRX": "bank_total_trx",
            "SECU_TRX": "secu_total_trx",
            "ENRICHMENT": "trx_enrichment",
            "PAIR": "trx_pair",
            "EXCEPTION": "exception_queue",
        }

    def test_str_renders_name(self):
        assert str(EntityKind.BANK_TRX) == "BANK_TRX"

    @pytest.mark.parametrize("name", ["pair", "PAIR", "Pair"])
    def test_from_name_is_case_insensitive(self, name):
        assert EntityKind.from_name(name) is EntityKind.PAIR

    def test_from_name_unknown_raises(self):
        with pytest.raises(UnknownEntityKindError) as exc_info:
            EntityKind.from_name("POSTING_OPERATION")
        assert exc_info.value.code == "UNKNOWN_ENTITY_KIND"

    def test_from_name_none_raises(self):
        with pytest.raises(UnknownEntityKindError):
            EntityKind.from_name(None)
