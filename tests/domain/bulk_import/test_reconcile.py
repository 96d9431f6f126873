from __future__ import annotations

from quizbank.domain.bulk_import import ResolutionAction, natural_keys, reconcile
from tests.helpers.records import make_question, make_questions, make_term


def test_reconcile_partitions_every_record_exactly_once() -> None:
    incoming = make_questions(5)
    existing = {
        "T1A02": make_question("T1A02", question="Stored"),
        "T1A04": make_question("T1A04", question="Stored"),
        "T9Z99": make_question("T9Z99"),
    }

    result = reconcile(incoming, existing)

    assert [record.natural_key for record in result.new_records] == ["T1A01", "T1A03", "T1A05"]
    assert [conflict.natural_key for conflict in result.conflicts] == ["T1A02", "T1A04"]
    assert len(result.new_records) + len(result.conflicts) == len(incoming)


def test_reconcile_defaults_conflicts_to_keep() -> None:
    stored = make_term("Ohm", "Old definition")
    incoming = make_term("ohm", "New definition")

    result = reconcile([incoming], {stored.natural_key: stored})

    conflict = result.conflicts[0]
    assert conflict.resolution is ResolutionAction.KEEP
    assert conflict.existing is stored
    assert conflict.incoming is incoming


def test_reconcile_against_empty_snapshot_yields_only_new_records() -> None:
    incoming = make_questions(3)

    result = reconcile(incoming, {})

    assert result.new_records == incoming
    assert result.conflicts == []


def test_natural_keys_collects_distinct_keys() -> None:
    assert natural_keys([make_term("Ohm"), make_term("OHM"), make_term("Farad")]) == {
        "ohm",
        "farad",
    }
