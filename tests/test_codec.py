"""
Tests for the structured-text codec: JSON repair, key/value scan, breakdown.
"""

import json

import pytest

from query_llm.core.codec import StructuredTextCodec, unjson
from query_llm.utils.prompts import DEFAULT_TOPIC, PREDEFINED_KEYS


@pytest.fixture
def codec():
    return StructuredTextCodec(PREDEFINED_KEYS)


@pytest.fixture
def json_codec():
    return StructuredTextCodec(PREDEFINED_KEYS, json_mode=True)


class TestUnjson:

    def test_valid_json(self):
        assert unjson('{"answer": "Paris", "n": 2}') == {"answer": "Paris", "n": 2}

    def test_missing_closing_brace(self):
        original = {"thought": "look it up", "topic": "geography"}
        text = json.dumps(original)
        assert unjson(text[:-1]) == original

    def test_missing_closing_quote_and_brace(self):
        assert unjson('{"answer": "Paris is the capital') == {"answer": "Paris is the capital"}

    def test_irrecoverable_text(self):
        assert unjson('{"answer": "Par') == {"answer": "Par"}
        assert unjson("not json at all") == {}
        assert unjson('{"answer": [1, 2') == {}

    def test_non_object_json(self):
        assert unjson("[1, 2, 3]") == {}
        assert unjson('"just a string"') == {}

    def test_empty_text(self):
        assert unjson("") == {}


class TestPlainEncode:

    def test_fixed_key_order(self, codec):
        text = codec.encode({"topic": "geography", "thought": "search", "tool": "Google"})
        assert text == "tool: Google\nthought: search\ntopic: geography"

    def test_skips_empty_and_unknown_keys(self, codec):
        text = codec.encode({"thought": "", "keyphrases": None, "mood": "happy", "answer": "Paris"})
        assert text == "answer: Paris"

    def test_empty_fields(self, codec):
        assert codec.encode({}) == ""


class TestDeconstruct:

    def test_full_block(self, codec):
        text = (
            "tool: Google\n"
            "thought: This is about geography\n"
            "keyphrases: capital of France\n"
            "observation: Paris is the capital of France\n"
            "topic: geography"
        )
        assert codec.decode(text) == {
            "tool": "Google",
            "thought": "This is about geography",
            "keyphrases": "capital of France",
            "observation": "Paris is the capital of France",
            "topic": "geography",
        }

    def test_anchor_takes_rest_of_text(self, codec):
        text = "thought: hmm\ntopic: history\nof the Roman empire"
        assert codec.decode(text)["topic"] == "history\nof the Roman empire"

    def test_last_anchor_wins(self, codec):
        text = "topic: first\nthought: again\ntopic: second"
        parts = codec.decode(text)
        assert parts["topic"] == "second"
        assert parts["thought"] == "again"

    def test_marker_inside_value_is_not_a_key(self, codec):
        text = "tool: Google\nthought: pick the tool: a hammer\nkeyphrases: hammer\ntopic: tools"
        parts = codec.decode(text)
        assert parts["tool"] == "Google"
        assert parts["thought"] == "pick the tool: a hammer"
        assert parts["keyphrases"] == "hammer"

    def test_only_first_line_of_non_anchor_value(self, codec):
        text = "thought: line one\nline two\ntopic: t"
        assert codec.decode(text)["thought"] == "line one"

    def test_empty_value(self, codec):
        text = "thought: ok\nkeyphrases: \nobservation: seen\ntopic: t"
        parts = codec.decode(text)
        assert parts["keyphrases"] == ""
        assert parts["observation"] == "seen"

    def test_without_anchor(self, codec):
        parts = codec.decode("thought: maybe\nkeyphrases: a b c")
        assert parts == {"thought": "maybe", "keyphrases": "a b c"}

    def test_garbage(self, codec):
        assert codec.decode("I have no idea what you mean.") == {}

    @pytest.mark.parametrize("fields", [
        {"tool": "Google", "thought": "t", "keyphrases": "k", "observation": "o", "topic": "geo"},
        {"inquiry": "What is 2+2?", "observation": "4"},
        {"answer": "Paris", "topic": "geography"},
        {"thought": "x: y", "topic": "z"},
    ])
    def test_round_trip(self, codec, fields):
        assert codec.decode(codec.encode(fields)) == fields

    def test_round_trip_drops_empty(self, codec):
        fields = {"tool": "Google", "thought": "", "keyphrases": "k", "topic": "t"}
        assert codec.decode(codec.encode(fields)) == {"tool": "Google", "keyphrases": "k", "topic": "t"}


class TestJsonMode:

    def test_encode_is_json(self, json_codec):
        text = json_codec.encode({"inquiry": "Why?", "observation": ""})
        assert json.loads(text) == {"inquiry": "Why?", "observation": ""}

    def test_decode_exact(self, json_codec):
        payload = {"tool": "Google", "thought": "t", "keyphrases": "k", "observation": "o", "topic": "geo"}
        assert json_codec.decode(json.dumps(payload)) == payload

    def test_decode_truncated(self, json_codec):
        payload = {"answer": "Paris"}
        assert json_codec.decode(json.dumps(payload)[:-1]) == payload

    def test_decode_stringifies_values(self, json_codec):
        assert json_codec.decode('{"answer": 42, "ok": true, "none": null}') == {
            "answer": "42", "ok": "True", "none": "",
        }

    def test_decode_failure_is_empty(self, json_codec):
        assert json_codec.decode("{{{") == {}


class TestBreakdown:

    def test_plain_with_hint(self, codec):
        hint = "tool: Google\nthought: "
        completion = "Look up France.\nkeyphrases: capital of France\nobservation: Paris\ntopic: geography"
        parts = codec.breakdown(hint, completion)
        assert parts["tool"] == "Google"
        assert parts["thought"] == "Look up France."
        assert parts["keyphrases"] == "capital of France"
        assert parts["topic"] == "geography"

    def test_default_topic(self, codec):
        parts = codec.breakdown("tool: Google\nthought: ", "Just thinking.\nkeyphrases: stuff")
        assert parts["topic"] == DEFAULT_TOPIC
        assert parts["thought"] == "Just thinking."
        assert parts["keyphrases"] == "stuff"

    def test_default_topic_when_empty(self, codec):
        parts = codec.breakdown("", "thought: x\ntopic: ")
        assert parts["topic"] == DEFAULT_TOPIC

    def test_json_first(self, codec):
        parts = codec.breakdown("", '{"answer": "Paris", "topic": "geo"}')
        assert parts == {"answer": "Paris", "topic": "geo"}

    def test_truncated_json_gets_topic(self, codec):
        parts = codec.breakdown("", '{"answer": "Paris is lovely')
        assert parts["answer"] == "Paris is lovely"
        assert parts["topic"] == DEFAULT_TOPIC

    def test_broken_json_falls_back_to_text(self, codec):
        parts = codec.breakdown("", "{ oops\nthought: fine\ntopic: misc")
        assert parts["thought"] == "fine"
        assert parts["topic"] == "misc"


class TestStructure:

    def test_plain(self, codec):
        text = codec.structure("Format:", {"tool": "Google", "topic": "geo"})
        assert text == "Format:\n\ntool: Google\ntopic: geo\n"

    def test_json(self, json_codec):
        text = json_codec.structure("Format:", {"tool": "Google"})
        assert text.startswith("Format: (JSON with this schema)\n")
        assert json.loads(text.split("\n", 1)[1]) == {"tool": "Google"}


def test_empty_key_list_rejected():
    with pytest.raises(ValueError):
        StructuredTextCodec([])
