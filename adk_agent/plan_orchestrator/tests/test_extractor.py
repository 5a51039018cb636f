"""
Tests for JSON extraction from raw model text.

Covers each recovery strategy in order: direct parse, code fences,
balanced span in surrounding prose, textual repairs, and truncation.
"""

from app.llm.extractor import (
    apply_repairs,
    close_truncated,
    extract,
    find_balanced_span,
    strip_code_fences,
)


class TestExtractStrategies:
    """extract() tries the cheapest strategy first."""

    def test_direct_json(self):
        result = extract('{"a": 1}')
        assert result.ok
        assert result.value == {"a": 1}
        assert result.strategy == "direct"

    def test_fenced_json(self):
        result = extract('```json\n{"focus": ["Push"]}\n```')
        assert result.ok
        assert result.value == {"focus": ["Push"]}
        assert result.strategy == "fenced"

    def test_json_inside_prose(self):
        text = 'Here is your plan:\n{"days": {"monday": 1}}\nLet me know if you need changes!'
        result = extract(text)
        assert result.ok
        assert result.value == {"days": {"monday": 1}}
        assert result.strategy == "balanced"

    def test_top_level_array(self):
        result = extract('Meals: [{"name": "Breakfast"}]')
        assert result.ok
        assert result.value == [{"name": "Breakfast"}]

    def test_trailing_commas_and_single_quotes(self):
        result = extract("{'sets': 3, 'reps': '8-10',}")
        assert result.ok
        assert result.value == {"sets": 3, "reps": "8-10"}
        assert result.strategy == "repaired"

    def test_python_literals_and_bare_keys(self):
        result = extract("{is_rest_day: True, rationale: None}")
        assert result.ok
        assert result.value == {"is_rest_day": True, "rationale": None}

    def test_comments_removed(self):
        text = '{\n  "sets": 3, // working sets\n  /* rest */ "rir": 2\n}'
        result = extract(text)
        assert result.ok
        assert result.value == {"sets": 3, "rir": 2}

    def test_truncated_object_closed(self):
        result = extract('{"focus": ["Legs"], "blocks": [{"name": "Main", "items": [')
        assert result.ok
        assert result.value["focus"] == ["Legs"]
        assert result.value["blocks"][0]["name"] == "Main"
        assert result.strategy == "truncation_repair"

    def test_truncated_mid_string(self):
        result = extract('{"notes": "Keep the tempo slow')
        assert result.ok
        assert result.value == {"notes": "Keep the tempo slow"}


class TestExtractFailures:

    def test_empty_text(self):
        assert not extract("").ok
        assert not extract("   ").ok

    def test_non_string(self):
        assert not extract(None).ok

    def test_no_json_at_all(self):
        result = extract("Sorry, I cannot help with that.")
        assert not result.ok
        assert result.value is None
        assert result.error


class TestHelpers:

    def test_strip_code_fences_without_language(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_balanced_span_ignores_braces_in_strings(self):
        text = 'note {"text": "use {curly} braces", "n": 1} tail'
        assert find_balanced_span(text) == '{"text": "use {curly} braces", "n": 1}'

    def test_repairs_leave_string_contents_alone(self):
        repaired = apply_repairs('{"url": "http://example.com", "x": 1,}')
        assert '"http://example.com"' in repaired
        assert repaired.endswith("}")

    def test_close_truncated_returns_none_when_balanced(self):
        assert close_truncated('{"a": 1}') is None

    def test_close_truncated_drops_dangling_key(self):
        assert close_truncated('{"a": 1, "b"') == '{"a": 1}'
