import asyncio
import logging

from chat_relay.prompt import PromptLoader, read_system_prompt


def test_read_system_prompt_returns_file_text(tmp_path) -> None:
    path = tmp_path / "prompt.txt"
    path.write_text("Be brief.\nBe kind.\n", encoding="utf-8")

    assert read_system_prompt(str(path), "fallback") == "Be brief.\nBe kind.\n"


def test_read_system_prompt_falls_back_and_logs(tmp_path, caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="chat_relay.prompt"):
        prompt = read_system_prompt(str(tmp_path / "missing.txt"), "fallback")

    assert prompt == "fallback"
    assert "missing.txt" in caplog.text


def test_read_system_prompt_directory_falls_back(tmp_path) -> None:
    assert read_system_prompt(str(tmp_path), "fallback") == "fallback"


def test_loader_without_cache_rereads(tmp_path) -> None:
    path = tmp_path / "prompt.txt"
    path.write_text("first", encoding="utf-8")
    loader = PromptLoader(str(path), "fallback")

    assert asyncio.run(loader.load()) == "first"
    path.write_text("second", encoding="utf-8")
    assert asyncio.run(loader.load()) == "second"


def test_loader_cache_does_not_keep_fallback(tmp_path) -> None:
    path = tmp_path / "prompt.txt"
    loader = PromptLoader(str(path), "fallback", cache=True)

    assert asyncio.run(loader.load()) == "fallback"
    path.write_text("written later", encoding="utf-8")
    assert asyncio.run(loader.load()) == "written later"
    path.write_text("ignored", encoding="utf-8")
    assert asyncio.run(loader.load()) == "written later"
