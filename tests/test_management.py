"""Tests for the management tools."""

import json
import shutil

import pytest

from prompt_server.protocol.management import (
    ADD_PROMPT,
    GET_PROMPT_GENERATE_RULE,
    GET_PROMPT_NAMES,
    RELOAD_PROMPTS,
    ManagementTools,
)

from conftest import write_prompt

NEW_YAML = "name: farewell\nmessages:\n  - content:\n      text: Bye.\n"


@pytest.fixture
def management(registry) -> ManagementTools:
    return ManagementTools(registry)


def _error_code(result) -> str:
    assert result.isError
    return result.structuredContent["error"]["code"]


class TestDeclarations:
    def test_four_tools(self, management):
        names = [tool.name for tool in management.tools()]
        assert names == [RELOAD_PROMPTS, ADD_PROMPT, GET_PROMPT_GENERATE_RULE, GET_PROMPT_NAMES]
        assert management.names == frozenset(names)

    def test_add_prompt_schema(self, management):
        tool = next(t for t in management.tools() if t.name == ADD_PROMPT)
        assert tool.inputSchema["required"] == ["category", "filename", "content"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, management):
        with pytest.raises(KeyError):
            await management.call("nope", {})


class TestReloadPrompts:
    @pytest.mark.asyncio
    async def test_reload(self, management, prompts_dir):
        write_prompt(prompts_dir, "misc/farewell.yaml", NEW_YAML)
        result = await management.call(RELOAD_PROMPTS, {})
        assert not result.isError
        assert result.content[0].text == "Successfully reloaded 4 prompts."
        assert result.structuredContent == {"count": 4}

    @pytest.mark.asyncio
    async def test_reload_failure(self, management, prompts_dir, registry):
        shutil.rmtree(prompts_dir)
        result = await management.call(RELOAD_PROMPTS, None)
        assert _error_code(result) == "reload_failed"
        assert len(registry) == 3


class TestAddPrompt:
    @pytest.mark.asyncio
    async def test_add(self, management, registry, prompts_dir):
        result = await management.call(
            ADD_PROMPT, {"category": "misc", "filename": "farewell.yaml", "content": NEW_YAML}
        )
        assert not result.isError
        assert result.structuredContent == {"name": "farewell", "count": 4}
        assert registry.lookup("farewell") is not None
        assert (prompts_dir / "misc" / "farewell.yaml").exists()

    @pytest.mark.asyncio
    async def test_yaml_content_alias(self, management, registry):
        result = await management.call(
            ADD_PROMPT, {"category": "misc", "filename": "farewell.yaml", "yaml_content": NEW_YAML}
        )
        assert not result.isError
        assert registry.lookup("farewell") is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arguments",
        [
            {},
            {"category": "misc", "filename": "x.yaml"},
            {"category": "", "filename": "x.yaml", "content": NEW_YAML},
            {"category": "misc", "filename": 3, "content": NEW_YAML},
        ],
    )
    async def test_missing_arguments(self, management, arguments):
        result = await management.call(ADD_PROMPT, arguments)
        assert _error_code(result) == "missing_arguments"

    @pytest.mark.asyncio
    async def test_invalid_yaml(self, management, prompts_dir):
        result = await management.call(
            ADD_PROMPT, {"category": "misc", "filename": "bad.yaml", "content": "name: [oops"}
        )
        assert _error_code(result) == "invalid_prompt"
        assert not (prompts_dir / "misc" / "bad.yaml").exists()

    @pytest.mark.asyncio
    async def test_existing_file(self, management):
        result = await management.call(
            ADD_PROMPT, {"category": "writing", "filename": "greet.yaml", "content": NEW_YAML}
        )
        assert _error_code(result) == "prompt_exists"

    @pytest.mark.asyncio
    async def test_unsafe_path(self, management):
        result = await management.call(
            ADD_PROMPT, {"category": "../escape", "filename": "x.yaml", "content": NEW_YAML}
        )
        assert _error_code(result) == "invalid_path"


class TestInfoTools:
    @pytest.mark.asyncio
    async def test_generate_rule(self, management):
        result = await management.call(GET_PROMPT_GENERATE_RULE, {})
        assert result.content[0].text.startswith("Write prompts as YAML")

    @pytest.mark.asyncio
    async def test_generate_rule_missing(self, management, rule_file):
        rule_file.unlink()
        result = await management.call(GET_PROMPT_GENERATE_RULE, {})
        assert _error_code(result) == "file_read_error"

    @pytest.mark.asyncio
    async def test_prompt_names(self, management):
        result = await management.call(GET_PROMPT_NAMES, {})
        assert json.loads(result.content[0].text) == ["code_review", "greet", "summarize"]
        assert result.structuredContent == {"names": ["code_review", "greet", "summarize"]}
