"""Tests for the template renderer."""

from prompt_server.core.models import MessageTemplate, PromptDefinition, TextBlock
from prompt_server.core.renderer import render_definition, render_messages, stringify


def _text(text: str, role: str = "user") -> MessageTemplate:
    return MessageTemplate.model_validate({"role": role, "content": {"type": "text", "text": text}})


class TestStringify:
    def test_none(self):
        assert stringify(None) == ""

    def test_bool(self):
        assert stringify(True) == "true"
        assert stringify(False) == "false"

    def test_integral_float(self):
        assert stringify(3.0) == "3"
        assert stringify(2.5) == "2.5"

    def test_int(self):
        assert stringify(42) == "42"

    def test_structures_as_compact_json(self):
        assert stringify({"a": 1}) == '{"a":1}'
        assert stringify([1, "x"]) == '[1,"x"]'


class TestRenderMessages:
    def test_substitutes_placeholder(self):
        rendered = render_messages([_text("Hello, {{name}}!")], {"name": "World"})
        assert rendered[0].content.text == "Hello, World!"

    def test_replaces_every_occurrence(self):
        rendered = render_messages([_text("{{x}} and {{x}}")], {"x": "y"})
        assert rendered[0].content.text == "y and y"

    def test_leaves_unknown_placeholders(self):
        rendered = render_messages([_text("{{a}} {{b}}")], {"a": "1"})
        assert rendered[0].content.text == "1 {{b}}"

    def test_substituted_values_are_not_rescanned(self):
        rendered = render_messages([_text("{{a}} {{b}}")], {"a": "{{b}}", "b": "x"})
        assert rendered[0].content.text == "{{b}} x"

    def test_result_independent_of_key_order(self):
        message = _text("{{a}}-{{b}}")
        first = render_messages([message], {"a": "{{b}}", "b": "{{a}}"})
        second = render_messages([message], {"b": "{{a}}", "a": "{{b}}"})
        assert first[0].content.text == second[0].content.text == "{{b}}-{{a}}"

    def test_none_value_renders_empty(self):
        rendered = render_messages([_text("[{{v}}]")], {"v": None})
        assert rendered[0].content.text == "[]"

    def test_templates_are_not_modified(self):
        message = _text("Hi {{name}}")
        render_messages([message], {"name": "Ada"})
        assert message.content.text == "Hi {{name}}"

    def test_preserves_role_and_order(self):
        messages = [_text("one", "assistant"), _text("two", "user")]
        rendered = render_messages(messages, {})
        assert [m.role.value for m in rendered] == ["assistant", "user"]
        assert [m.content.text for m in rendered] == ["one", "two"]

    def test_non_text_content_untouched(self):
        image = MessageTemplate.model_validate(
            {"content": {"type": "image/png", "text": "{{name}}"}}
        )
        rendered = render_messages([image], {"name": "x"})
        assert rendered[0].content.text == "{{name}}"

    def test_message_without_content(self):
        rendered = render_messages([MessageTemplate(role="user")], {"a": "b"})
        assert rendered[0].content is None

    def test_no_args(self):
        rendered = render_messages([_text("{{a}}")], None)
        assert rendered[0].content.text == "{{a}}"


class TestRenderDefinition:
    def _greet(self) -> PromptDefinition:
        return PromptDefinition.model_validate(
            {
                "name": "greet",
                "arguments": [{"name": "name", "required": True}],
                "messages": [{"role": "user", "content": {"text": "Hello, {{name}}!"}}],
            }
        )

    def test_renders_given_argument(self):
        rendered = render_definition(self._greet(), {"name": "Ada"})
        assert rendered[0].content.text == "Hello, Ada!"

    def test_missing_declared_argument_renders_empty(self):
        rendered = render_definition(self._greet(), {})
        assert rendered[0].content.text == "Hello, !"

    def test_extra_arguments_are_harmless(self):
        rendered = render_definition(self._greet(), {"name": "Ada", "unused": 1})
        assert isinstance(rendered[0].content, TextBlock)
        assert rendered[0].content.text == "Hello, Ada!"
