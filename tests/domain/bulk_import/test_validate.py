from __future__ import annotations

from quizbank.domain.bulk_import import (
    GLOSSARY_TERM_SCHEMA,
    RawRow,
    ValidatedRow,
    ValidationError,
    question_schema,
    validate,
    validate_row,
)
from quizbank.domain.model import GlossaryTerm, Question, QuestionPool
from tests.helpers.records import make_link

TECHNICIAN = question_schema(QuestionPool.TECHNICIAN)
GENERAL = question_schema(QuestionPool.GENERAL)


def _question_row(position: int = 2, **overrides: object) -> RawRow:
    fields: dict[str, object] = {
        "id": "T1A99",
        "question": "Test?",
        "option_a": "A",
        "option_b": "B",
        "option_c": "C",
        "option_d": "D",
        "correct_answer": "A",
        "subelement": "T1",
        "question_group": "T1A",
    }
    fields.update(overrides)
    return RawRow(position, fields)


def test_validate_builds_typed_question_from_delimited_row() -> None:
    outcome = validate_row(_question_row(), TECHNICIAN)

    assert outcome == ValidatedRow(
        position=2,
        record=Question(
            id="T1A99",
            question="Test?",
            options=("A", "B", "C", "D"),
            correct_answer=0,
            subelement="T1",
            question_group="T1A",
        ),
    )


def test_validate_trims_values_and_uppercases_ids() -> None:
    row = _question_row(id="  t1a05 ", question="  Spaced?  ", correct_answer=" c ")

    outcome = validate_row(row, TECHNICIAN)

    assert isinstance(outcome, ValidatedRow)
    assert isinstance(outcome.record, Question)
    assert outcome.record.id == "T1A05"
    assert outcome.record.question == "Spaced?"
    assert outcome.record.correct_answer == 2


def test_validate_accepts_numeric_answers_and_option_lists() -> None:
    row = RawRow(
        1,
        {
            "id": "T1A01",
            "question": "Q?",
            "options": ["1", 2, "three", "4"],
            "correct_answer": 3,
            "subelement": "T1",
            "question_group": "T1A",
            "explanation": "Because.",
            "links": [{"url": "https://example.org", "siteName": "Example", "type": "article"}],
        },
    )

    outcome = validate_row(row, TECHNICIAN)

    assert isinstance(outcome, ValidatedRow)
    record = outcome.record
    assert isinstance(record, Question)
    assert record.options == ("1", "2", "three", "4")
    assert record.correct_answer == 3
    assert record.explanation == "Because."
    assert record.links == (
        make_link("https://example.org", siteName="Example", type="article"),
    )


def test_validate_collects_every_violation_of_a_row() -> None:
    row = _question_row(position=7, id="t1a02", question=" ", correct_answer="E", option_b="")

    outcome = validate_row(row, TECHNICIAN)

    assert outcome == ValidationError(
        position=7,
        natural_key="T1A02",
        messages=(
            "Missing question text",
            "All options must have text",
            "Invalid correct answer: 'E'",
        ),
    )


def test_validate_enforces_pool_prefix() -> None:
    outcome = validate_row(_question_row(id="T1A01"), GENERAL)

    assert isinstance(outcome, ValidationError)
    assert outcome.messages == ('ID must start with "G" for general questions',)


def test_validate_requires_exactly_four_options() -> None:
    row = RawRow(
        1,
        {
            "id": "T1A01",
            "question": "Q?",
            "options": ["a", "b", "c"],
            "correct_answer": "a",
            "subelement": "T1",
            "question_group": "T1A",
        },
    )

    outcome = validate_row(row, TECHNICIAN)

    assert isinstance(outcome, ValidationError)
    assert outcome.messages == ("Must have exactly 4 options",)


def test_validate_reports_missing_key_without_natural_key() -> None:
    outcome = validate_row(_question_row(id=""), TECHNICIAN)

    assert isinstance(outcome, ValidationError)
    assert outcome.natural_key is None
    assert outcome.messages == ("Missing ID",)


def test_validate_reports_invalid_links() -> None:
    row = _question_row(links=[{"title": "No url"}])

    outcome = validate_row(row, TECHNICIAN)

    assert isinstance(outcome, ValidationError)
    assert outcome.messages == ("Invalid link #1 (url): Field required",)


def test_validate_glossary_terms_partitions_rows() -> None:
    rows = [
        RawRow(2, {"term": " Ohm ", "definition": "Unit of resistance"}),
        RawRow(3, {"term": "Farad", "definition": ""}),
    ]

    result = validate(rows, GLOSSARY_TERM_SCHEMA)

    assert [row.record for row in result.valid] == [
        GlossaryTerm(term="Ohm", definition="Unit of resistance")
    ]
    assert result.errors == [
        ValidationError(position=3, natural_key="farad", messages=("Missing definition",))
    ]
