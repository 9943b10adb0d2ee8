"""Tests for best-effort decoding of completion responses."""

from app.core.structured_decoder import decode_object, find_json_object, strip_fences


def test_json_surrounded_by_prose():
    assert decode_object('Sure! {"skills": ["Python"]} Hope that helps') == {"skills": ["Python"]}


def test_markdown_fence():
    text = 'Here you go:\n```json\n{"skills": ["Go", "Rust"]}\n```'
    assert strip_fences(text) == '{"skills": ["Go", "Rust"]}'
    assert decode_object(text) == {"skills": ["Go", "Rust"]}


def test_braces_inside_strings_are_ignored():
    text = 'x {"description": "uses {curly} braces", "n": 1} y'
    assert find_json_object(text) == '{"description": "uses {curly} braces", "n": 1}'


def test_nested_objects():
    text = '{"experience": [{"title": "Engineer", "company": "Acme"}]}'
    assert decode_object(text)["experience"][0]["company"] == "Acme"


def test_malformed_json_falls_back_to_key_extraction():
    assert decode_object('{"skills": ["Python", "Go",]}', keys=["skills"]) == {"skills": ["Python", "Go"]}


def test_scalar_key_extraction():
    decoded = decode_object('{"score": 85, "recommendation": "Hire", }', keys=["score", "recommendation"])
    assert decoded == {"score": 85, "recommendation": "Hire"}


def test_nothing_to_decode():
    assert decode_object("") == {}
    assert decode_object(None) == {}
    assert decode_object("no json at all", keys=["skills"]) == {}
    assert decode_object("[1, 2, 3]") == {}
