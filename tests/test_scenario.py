"""
Tests for the story file helpers and the scenario runner.
"""

from pathlib import Path

import run_test_scenarios
from query_llm.llms.errors import HttpStatusError
from query_llm.utils.scenario import NORMAL, Span, find_spans, highlight, parse_story, regexify, strip_comment

STORIES = Path(__file__).parent / "scenarios"


class TestParseStory:

    def test_strip_comment(self):
        assert strip_comment("  User: Hi   # greeting ") == "User: Hi"
        assert strip_comment("# only a comment") == ""

    def test_roles_and_content(self):
        lines = [
            "# header",
            "",
            "Story: Capitals",
            "User: What is the capital of France?",
            "Assistant: /Paris/",
            "just some prose without a role marker",
            "Pipeline.Reason.Topic: /geography/",
        ]

        assert list(parse_story(lines)) == [
            ("Story", "Capitals"),
            ("User", "What is the capital of France?"),
            ("Assistant", "/Paris/"),
            ("Pipeline.Reason.Topic", "/geography/"),
        ]

    def test_content_keeps_later_colons(self):
        assert list(parse_story(["User: Translate: bonjour"])) == [("User", "Translate: bonjour")]

    def test_bundled_story(self):
        lines = (STORIES / "capitals.txt").read_text(encoding="utf-8").split("\n")
        roles = [role for role, _ in parse_story(lines)]

        assert roles.count("Story") == 2
        assert roles.count("User") == 4
        assert roles.count("Assistant") == 4


class TestRegexify:

    def test_single_pattern(self):
        (regex,) = regexify("/paris/")
        assert regex.search("The capital is PARIS.")

    def test_many_patterns(self):
        regexes = regexify("/Romeo/ /Juliet/")
        assert [r.pattern for r in regexes] == ["Romeo", "Juliet"]

    def test_escaped_slash(self):
        (regex,) = regexify(r"/a\/b/")
        assert regex.search("a/b")

    def test_plain_text(self):
        (regex,) = regexify("Berlin")
        assert regex.pattern == "Berlin"

    def test_unterminated_pattern_falls_back_to_text(self):
        (regex,) = regexify("/Paris")
        assert regex.pattern == "/Paris"


class TestSpans:

    def test_find_spans(self):
        spans = find_spans("Paris is in France", regexify("/france/ /paris/ /berlin/"))
        assert spans == [Span(index=12, length=6), Span(index=0, length=5)]

    def test_find_spans_on_missing_text(self):
        assert find_spans(None, regexify("/x/")) == []

    def test_highlight(self):
        text = highlight("Paris is in France", [Span(12, 6), Span(0, 5)], color="<")
        assert text == f"<Paris{NORMAL} is in <France{NORMAL}"


class TestRunStories:

    def test_transport_error_ends_the_run(self, config, monkeypatch, capsys):
        async def unreachable(self, story_file):
            raise HttpStatusError(500, "Internal Server Error", "boom")

        monkeypatch.setattr(run_test_scenarios, "get_config", lambda: config)
        monkeypatch.setattr(run_test_scenarios.StoryRunner, "run", unreachable)

        assert run_test_scenarios.run_stories([str(STORIES / "capitals.txt")]) == 1
        assert "ERROR: " in capsys.readouterr().out
