"""Tests for random player."""

from __future__ import annotations

import random

import pytest

from shogi_engine.engine.random_player import random_move
from shogi_engine.errors import GameOverError
from shogi_engine.game.moves import apply_move, is_in_check
from shogi_engine.game.state import ShogiState


def test_returns_legal_move() -> None:
    state = ShogiState()
    move = random_move(state)
    assert move in state.legal_moves()


def test_seeded_rng_is_reproducible() -> None:
    state = ShogiState()
    assert random_move(state, random.Random(7)) == random_move(state, random.Random(7))


def test_terminal_state_raises() -> None:
    with pytest.raises(GameOverError):
        random_move(ShogiState().resign())


def test_random_game_keeps_invariants() -> None:
    """Random vs random: every move is legal and never leaves the mover in check."""
    rng = random.Random(2024)
    state = ShogiState()
    for _ in range(80):
        if state.is_terminal:
            break
        move = random_move(state, rng)
        after = apply_move(state.board, state.player, move)
        assert not is_in_check(after, state.player)
        state = state.apply_move(move)
        assert len(state.history) == state.move_count + 1
    assert state.move_count > 0
