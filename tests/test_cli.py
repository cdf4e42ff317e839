"""Tests for the terminal CLI."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from shogi_engine import cli


def _feed(monkeypatch: pytest.MonkeyPatch, answers: list[str]) -> None:
    it: Iterator[str] = iter(answers)

    def fake_input(prompt: str = "") -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)


class TestCli:
    def test_resign_ends_game(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        _feed(monkeypatch, ["abc", "99", "r"])
        cli.main(["--strength", "beginner"])
        out = capsys.readouterr().out
        assert "Enter a number." in out
        assert "Invalid: choose 0-29" in out
        assert "投了で後手の勝ち" in out
        assert "Engine wins!" in out

    def test_engine_replies(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        _feed(monkeypatch, ["0"])
        cli.main(["--strength", "beginner"])
        out = capsys.readouterr().out
        assert "Engine plays:" in out
        assert "Game aborted." in out

    def test_invalid_position(self, capsys: pytest.CaptureFixture[str]) -> None:
        cli.main(["--position", "garbage"])
        assert "Invalid position" in capsys.readouterr().out

    def test_unknown_strength(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["--strength", "grandmaster"])
