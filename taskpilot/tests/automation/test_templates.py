"""Tests for template interpolation"""

from automation.rules import interpolate, format_value


class TestInterpolate:
    """Tests for {{path}} substitution"""

    def test_substitutes_paths(self):
        """Test substitutes paths"""
        context = {"task": {"title": "Plant tomatoes", "priority": "high"}}
        result = interpolate("{{task.title}} ({{ task.priority }})", context)
        assert result == "Plant tomatoes (high)"

    def test_repeated_tokens(self):
        """Test repeated tokens"""
        assert interpolate("{{n}} and {{n}}", {"n": 2}) == "2 and 2"

    def test_no_tokens_is_identity(self):
        """Test no tokens is identity"""
        text = "Nothing to see { here } {single}"
        assert interpolate(text, {"here": "x"}) == text

    def test_unresolved_tokens_are_left_verbatim(self):
        """Test unresolved tokens are left verbatim"""
        assert interpolate("{{missing.path}}", {}) == "{{missing.path}}"
        assert interpolate("Due {{task.due}}", {"task": {}}) == "Due {{task.due}}"

    def test_mixed_resolved_and_unresolved(self):
        """Test mixed resolved and unresolved"""
        result = interpolate("{{a}}-{{b}}", {"a": 1})
        assert result == "1-{{b}}"

    def test_scalar_formatting(self):
        """Test scalar formatting"""
        assert interpolate("{{done}}/{{archived}}/{{due}}", {"done": True, "archived": False, "due": None}) == "true/false/null"

    def test_non_string_templates(self):
        """Test non string templates"""
        assert interpolate(None, {}) == ""
        assert interpolate(42, {}) == "42"


class TestFormatValue:
    """Tests for value formatting"""

    def test_values(self):
        """Test values"""
        assert format_value(3) == "3"
        assert format_value(1.5) == "1.5"
        assert format_value("x") == "x"
        assert format_value(True) == "true"
        assert format_value(None) == "null"
