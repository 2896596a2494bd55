import pytest

from mealpick.core.text import clamp, clean_md, extract_json


def test_extract_json_plain_object():
    assert extract_json('{"choice": 2}') == {"choice": 2}


def test_extract_json_fenced_and_wrapped_in_prose():
    text = 'Sure! Here you go:\n```json\n{"choice": 1, "new_tags": ["a"]}\n```\nEnjoy.'
    assert extract_json(text) == {"choice": 1, "new_tags": ["a"]}


def test_extract_json_list():
    assert extract_json('Tags: ["Soup", "Easy"]', list) == ["Soup", "Easy"]


@pytest.mark.parametrize("text", ["", "no json here", '["a list"]', "{broken"])
def test_extract_json_rejects_bad_replies(text):
    with pytest.raises(ValueError):
        extract_json(text, dict)


def test_clamp():
    assert clamp("  short  ", 10) == "short"
    assert clamp("abcdefghij", 5) == "abcd…"
    assert clamp(None, 5) == ""


def test_clean_md():
    assert clean_md("## **Step one**") == "Step one"
    assert clean_md("- chop onions") == "chop onions"
