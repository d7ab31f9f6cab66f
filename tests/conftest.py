"""Test fixtures — on-disk prompt catalog under tmp_path and wired-up servers."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from prompt_server.config import Settings
from prompt_server.core.registry import PromptRegistry
from prompt_server.protocol.adapter import adapt

GREET_YAML = """\
name: greet
description: Greet someone by name.
arguments:
  - name: name
    description: Who to greet
    required: true
messages:
  - role: user
    content:
      type: text
      text: "Hello, {{name}}!"
"""

REVIEW_YAML = """\
name: code_review
description: Review code.
arguments:
  - name: language
    required: true
  - name: code
    required: true
messages:
  - role: system
    content:
      type: text
      text: You review {{language}}.
  - role: user
    content:
      type: text
      text: "Review this {{language}}:"
  - role: assistant
    content:
      type: text
      text: Sure, paste it.
  - role: user
    content:
      type: text
      text: "{{code}}"
"""

SUMMARY_JSON = """\
{
  "name": "summarize",
  "description": "Summarize text.",
  "arguments": [
    {"name": "text", "required": true},
    {"name": "sentences", "type": "number"}
  ],
  "messages": [
    {"role": "user", "content": {"type": "text", "text": "In {{sentences}} sentences: {{text}}"}}
  ]
}
"""

RULE_TEXT = "Write prompts as YAML with name, arguments and messages.\n"


def write_prompt(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def prompts_dir(tmp_path: Path) -> Path:
    """A prompt directory with three valid documents in two categories."""
    root = tmp_path / "prompts"
    write_prompt(root, "writing/greet.yaml", GREET_YAML)
    write_prompt(root, "code/review.yml", REVIEW_YAML)
    write_prompt(root, "writing/summarize.json", SUMMARY_JSON)
    return root


@pytest.fixture
def rule_file(tmp_path: Path) -> Path:
    path = tmp_path / "generate_rule.txt"
    path.write_text(RULE_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def settings(prompts_dir: Path, rule_file: Path) -> Settings:
    return Settings(prompts_dir=str(prompts_dir), generate_rule_path=str(rule_file))


@pytest.fixture
def registry(prompts_dir: Path, rule_file: Path) -> PromptRegistry:
    """Loaded registry with protocol bindings."""
    registry: PromptRegistry = PromptRegistry(prompts_dir, rule_file, adapter=adapt)
    registry.load_and_register()
    return registry


@pytest.fixture
def prompt_server(registry, settings):
    from prompt_server.protocol.server import PromptServer

    return PromptServer(registry, settings)


@pytest.fixture
def app(prompt_server):
    """FastAPI test app bound to the fixture registry."""
    from prompt_server.main import create_app

    return create_app(prompt_server)


@pytest.fixture
def client(app) -> TestClient:
    """HTTP test client."""
    return TestClient(app)
