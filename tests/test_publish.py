"""Tests for transactional bulk publishing (namebank/publish.py)."""
from __future__ import annotations

import pytest
from sqlalchemy import delete, func, select

from db.models import Language, Name, NameMeaning, NameVariant
from namebank.errors import ConfigurationError, TransactionFailure, UnsupportedLocale
from namebank.languages import LanguageDirectory
from namebank.publish import BulkPublisher, LocalizedValue, NameRow
from tests.conftest import make_row


def _counts(session):
    return (
        session.scalar(select(func.count()).select_from(Name)),
        session.scalar(select(func.count()).select_from(NameVariant)),
        session.scalar(select(func.count()).select_from(NameMeaning)),
    )


def test_republishing_reports_duplicates(session_factory, publisher):
    rows = [make_row([("en", "Maria"), ("ta", "மரியா")], key="mari_001")]
    with session_factory() as s:
        first = publisher.publish(s, rows)
    assert (first.inserted, first.duplicates) == (2, 0)
    assert first.duplicate_details() == []

    with session_factory() as s:
        second = publisher.publish(s, rows)
    assert (second.inserted, second.duplicates) == (0, 2)
    details = second.duplicate_details()
    assert [(d["kind"], d["locale"], d["value"]) for d in details] == [
        ("variant", "en", "Maria"),
        ("variant", "ta", "மரியா"),
    ]
    assert all(d["canonicalKey"] == "mari_001" and d["rowIndex"] == 0 for d in details)
    assert details[0]["nameId"] == first.rows[0].name_id

    with session_factory() as s:
        assert _counts(s) == (1, 2, 0)


def test_totals_and_row_detail(session_factory, publisher):
    rows = [
        make_row([("en", "Maria"), ("fr", "Marie")], meanings=[("en", "beloved")], key="maria"),
        make_row([("en", "Mark")], key="mark"),
    ]
    with session_factory() as s:
        result = publisher.publish(s, rows, source="seed.yaml")
    totals = result.totals.to_dict()
    assert totals == {
        "rows": 2,
        "namesEnsured": 2,
        "variantsInserted": 3,
        "variantsDuplicates": 0,
        "meaningsInserted": 1,
        "meaningsDuplicates": 0,
    }
    body = result.to_dict()
    assert body["source"] == "seed.yaml"
    assert body["dryRun"] is False
    assert [r["canonicalKey"] for r in body["rows"]] == ["maria", "mark"]
    assert body["rows"][0]["meanings"] == {"inserted": 1, "duplicates": []}


def test_rows_sharing_a_key_converge_on_one_name(session_factory, publisher):
    rows = [
        make_row([("en", "Maria")], key="maria"),
        make_row([("en", "Maria"), ("fr", "Marie")], key="maria"),
    ]
    with session_factory() as s:
        result = publisher.publish(s, rows)
    assert result.rows[0].name_id == result.rows[1].name_id
    assert result.rows[1].variants.inserted == 1
    assert result.rows[1].variants.duplicates == [LocalizedValue("en", "Maria")]
    with session_factory() as s:
        assert _counts(s) == (1, 2, 0)


def test_repeat_within_a_row_is_a_duplicate(session_factory, publisher):
    row = make_row([("en", "Maria"), ("en", "Maria")], key="maria")
    with session_factory() as s:
        result = publisher.publish(s, [row])
    assert result.rows[0].variants.inserted == 1
    assert result.rows[0].variants.duplicates == [LocalizedValue("en", "Maria")]


def test_derived_key_prefers_english(session_factory, publisher):
    with session_factory() as s:
        result = publisher.publish(s, [make_row([("ta", "மரியா"), ("en", "Maria Anne")])])
    assert result.rows[0].canonical_key == "maria_anne"


def test_meaning_and_variant_with_same_value_are_independent(session_factory, publisher):
    row = make_row([("en", "Joy")], meanings=[("en", "Joy")], key="joy")
    with session_factory() as s:
        result = publisher.publish(s, [row])
    assert result.totals.variants_inserted == 1
    assert result.totals.meanings_inserted == 1
    assert result.duplicates == 0


def test_dry_run_persists_nothing(session_factory, publisher):
    rows = [
        make_row([("en", "Maria"), ("ta", "மரியா")], meanings=[("en", "beloved")], key="maria"),
        make_row([("en", "Mark")], key="mark"),
    ]
    with session_factory() as s:
        dry = publisher.publish(s, rows, dry_run=True)
    assert dry.dry_run is True
    with session_factory() as s:
        assert _counts(s) == (0, 0, 0)

    with session_factory() as s:
        real = publisher.publish(s, rows)
    assert real.totals.to_dict() == dry.totals.to_dict()
    assert real.inserted == dry.inserted == 4


def test_dry_run_against_existing_data_reports_duplicates(session_factory, publisher):
    rows = [make_row([("en", "Maria")], key="maria")]
    with session_factory() as s:
        publisher.publish(s, rows)
    with session_factory() as s:
        dry = publisher.publish(s, rows + [make_row([("en", "Omar")], key="omar")], dry_run=True)
    assert (dry.inserted, dry.duplicates) == (1, 1)
    with session_factory() as s:
        assert _counts(s) == (1, 1, 0)


def test_failure_mid_batch_rolls_everything_back(session_factory, publisher):
    rows = [
        make_row([("en", "Maria")], key="maria"),
        NameRow(variants=[LocalizedValue("en", None)], canonical_key="broken"),
    ]
    with session_factory() as s:
        with pytest.raises(TransactionFailure) as info:
            publisher.publish(s, rows)
    assert info.value.row_index == 1
    with session_factory() as s:
        assert _counts(s) == (0, 0, 0)


def test_row_without_variants_is_rejected(session_factory, publisher):
    with session_factory() as s:
        with pytest.raises(ValueError):
            publisher.publish(s, [NameRow(variants=[], canonical_key="empty")])


def test_unsupported_locale_fails_whole_batch(session_factory, publisher):
    rows = [make_row([("en", "Maria")], key="maria"), make_row([("de", "Maria")], key="maria_de")]
    with session_factory() as s:
        with pytest.raises(UnsupportedLocale):
            publisher.publish(s, rows)
    with session_factory() as s:
        assert _counts(s) == (0, 0, 0)


def test_missing_language_row_is_a_configuration_error(session_factory):
    with session_factory() as s:
        s.execute(delete(Language).where(Language.code == "fr"))
        s.commit()
    publisher = BulkPublisher(LanguageDirectory())
    with session_factory() as s:
        with pytest.raises(ConfigurationError):
            publisher.publish(s, [make_row([("en", "Maria")], key="maria")])


def test_variant_and_meaning_batch_twice(session_factory, publisher):
    rows = [make_row([("en", "Maria")], meanings=[("en", "beloved")])]
    with session_factory() as s:
        first = publisher.publish(s, rows)
    with session_factory() as s:
        second = publisher.publish(s, rows)
    assert (first.to_dict()["inserted"], first.to_dict()["duplicates"]) == (2, 0)
    assert (second.to_dict()["inserted"], second.to_dict()["duplicates"]) == (0, 2)
    assert first.rows[0].canonical_key == second.rows[0].canonical_key == "maria"


def test_keyless_rows_in_separate_batches_stay_apart(session_factory, publisher, monkeypatch):
    import namebank.keys

    monkeypatch.setattr(namebank.keys.time, "time", lambda: 1000.0)
    with session_factory() as s:
        first = publisher.publish(s, [make_row([("en", "???")])])
    with session_factory() as s:
        second = publisher.publish(s, [make_row([("en", "!!!")])])
    assert first.rows[0].canonical_key != second.rows[0].canonical_key
    assert first.rows[0].name_id != second.rows[0].name_id
    with session_factory() as s:
        assert _counts(s) == (2, 2, 0)


def test_before_commit_hook_commits_with_the_batch(session_factory, publisher):
    from db.models import PublishAudit
    from namebank.audit import record_publish_audit

    with session_factory() as s:
        publisher.publish(s, [make_row([("en", "Maria")], key="maria")], before_commit=record_publish_audit)
    with session_factory() as s:
        assert _counts(s) == (1, 1, 0)
        assert s.scalar(select(func.count()).select_from(PublishAudit)) == 1


def test_before_commit_hook_skipped_on_dry_run(session_factory, publisher):
    calls = []
    with session_factory() as s:
        publisher.publish(
            s, [make_row([("en", "Maria")], key="maria")], dry_run=True,
            before_commit=lambda session, result: calls.append(result),
        )
    assert calls == []


def test_failing_before_commit_hook_rolls_back_the_batch(session_factory, publisher):
    from sqlalchemy.exc import OperationalError

    def _fail(session, result):
        raise OperationalError("INSERT INTO publish_audit", {}, Exception("disk I/O error"))

    with session_factory() as s:
        with pytest.raises(TransactionFailure) as info:
            publisher.publish(s, [make_row([("en", "Maria")], key="maria")], before_commit=_fail)
    assert info.value.row_index is None
    assert "before commit" in str(info.value)
    with session_factory() as s:
        assert _counts(s) == (0, 0, 0)
