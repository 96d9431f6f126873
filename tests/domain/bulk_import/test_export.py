from __future__ import annotations

import json

from quizbank.domain.bulk_import import (
    GLOSSARY_TERM_SCHEMA,
    SourceFormat,
    export_records,
    parse,
    question_schema,
    validate,
)
from quizbank.domain.model import QuestionPool
from tests.helpers.records import make_link, make_question, make_term

TECHNICIAN = question_schema(QuestionPool.TECHNICIAN)


def test_export_delimited_writes_canonical_header_and_answer_letters() -> None:
    question = make_question(
        "T1A01",
        question='Which is "correct", really?',
        options=("a", "b", "c", "d"),
        correct_answer=2,
        links=(make_link(),),
    )

    payload = export_records([question], SourceFormat.DELIMITED, schema=TECHNICIAN)

    assert payload.decode("utf-8").splitlines() == [
        "id,question,option_a,option_b,option_c,option_d,correct_answer,subelement,"
        "question_group,explanation",
        'T1A01,"Which is ""correct"", really?",a,b,c,d,C,T1,T1A,',
    ]


def test_export_structured_omits_blank_optional_text_and_keeps_links() -> None:
    question = make_question("T1A01", correct_answer=1, links=(make_link(title="Antennas"),))

    document = json.loads(export_records([question], SourceFormat.STRUCTURED, schema=TECHNICIAN))

    assert document == [
        {
            "id": "T1A01",
            "question": question.question,
            "options": list(question.options),
            "correct_answer": 1,
            "subelement": "T1",
            "question_group": "T1A",
            "links": [
                {
                    "url": "https://example.org/antennas",
                    "title": "Antennas",
                    "description": "",
                    "image": "",
                    "siteName": "",
                }
            ],
        }
    ]


def test_exported_payloads_import_back_unchanged() -> None:
    questions = [
        make_question("T1A01", explanation="Line one,\nline two", correct_answer=3),
        make_question("T1A02", question="Plain?"),
    ]
    terms = [make_term("Ohm"), make_term("Émission", "Unité, « spéciale »")]

    csv_rows = parse(
        export_records(questions, SourceFormat.DELIMITED, schema=TECHNICIAN),
        SourceFormat.DELIMITED,
        schema=TECHNICIAN,
    )
    json_rows = parse(
        export_records(terms, SourceFormat.STRUCTURED, schema=GLOSSARY_TERM_SCHEMA),
        SourceFormat.STRUCTURED,
        schema=GLOSSARY_TERM_SCHEMA,
    )

    assert [row.record for row in validate(csv_rows.rows, TECHNICIAN).valid] == questions
    assert [row.record for row in validate(json_rows.rows, GLOSSARY_TERM_SCHEMA).valid] == terms
