from __future__ import annotations

import copy
import importlib.util
from pathlib import Path

import pytest

CLIENT_PATH = Path(__file__).resolve().parent.parent / "test.py"


@pytest.fixture
def client_module():
    # Loaded by path: the module name "test" belongs to the standard library.
    spec = importlib.util.spec_from_file_location("aether_cli_client", CLIENT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _drive(monkeypatch, module, lines: list[str]) -> list[tuple[str, dict]]:
    inputs = iter(lines)
    posted: list[tuple[str, dict]] = []

    def fake_post(path, payload, timeout=120):
        posted.append((path, copy.deepcopy(payload)))
        if path == "/chat":
            return {"response": "hi"}, None
        return {"answer": "42", "requiresSummary": False}, None

    monkeypatch.setattr("builtins.input", lambda prompt="": next(inputs))
    monkeypatch.setattr(module, "post", fake_post)
    module.main()
    return posted


def test_clear_keeps_the_loaded_document(monkeypatch, tmp_path, client_module, capsys) -> None:
    document = tmp_path / "notes.txt"
    document.write_text("The answer is 42.", encoding="utf-8")

    posted = _drive(monkeypatch, client_module, ["2", str(document), "/clear", "What is the answer?", "/quit"])

    assert posted == [("/study", {"query": "What is the answer?", "document": "The answer is 42."})]


def test_clear_forgets_chat_history(monkeypatch, client_module, capsys) -> None:
    posted = _drive(monkeypatch, client_module, ["1", "hello", "/clear", "again", "/quit"])

    assert posted[1][1]["chatHistory"] == []
    assert client_module.CHAT_HISTORY == [
        {"role": "user", "content": "again"},
        {"role": "assistant", "content": "hi"},
    ]
