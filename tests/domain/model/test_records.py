from __future__ import annotations

import pydantic
import pytest

from quizbank.domain.model import QuestionPool, ResourceLink, glossary_key
from tests.helpers.records import make_question, make_term


def test_resource_link_accepts_stored_aliases_and_blank_values() -> None:
    link = ResourceLink.model_validate(
        {
            "url": " https://example.org/video ",
            "title": None,
            "type": "video",
            "siteName": "Example",
            "unfurledAt": "2024-05-01T12:00:00Z",
            "thumbnail": "ignored",
        }
    )

    assert link.url == "https://example.org/video"
    assert link.title == ""
    assert link.site_name == "Example"
    assert link.to_payload() == {
        "url": "https://example.org/video",
        "title": "",
        "description": "",
        "image": "",
        "type": "video",
        "siteName": "Example",
        "unfurledAt": "2024-05-01T12:00:00Z",
    }


@pytest.mark.parametrize("payload", [{"url": "  "}, {"url": "https://x", "type": "podcast"}])
def test_resource_link_rejects_invalid_payloads(payload: dict[str, object]) -> None:
    with pytest.raises(pydantic.ValidationError):
        ResourceLink.model_validate(payload)


def test_question_pool_follows_id_prefix() -> None:
    assert make_question("T1A01").pool is QuestionPool.TECHNICIAN
    assert make_question("G2B03").pool is QuestionPool.GENERAL
    assert make_question("E9H01").pool is QuestionPool.EXTRA
    assert QuestionPool.for_question_id("X1A01") is None
    assert QuestionPool.GENERAL.prefix == "G"


def test_glossary_natural_key_is_trimmed_and_case_folded() -> None:
    assert glossary_key("  Straße ") == "strasse"
    assert make_term("OHM").natural_key == make_term("ohm").natural_key == "ohm"
