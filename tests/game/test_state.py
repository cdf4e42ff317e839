"""Tests for ShogiState."""

from __future__ import annotations

import pytest

from shogi_engine.errors import GameOverError, IllegalMoveError, ShogiError
from shogi_engine.game.board import Board
from shogi_engine.game.moves import ACTION_SPACE, BoardMove, DropMove, encode_move
from shogi_engine.game.notation import STARTING_POSITION
from shogi_engine.game.protocol import GameState
from shogi_engine.game.result import ResultKind
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import COLS, GamePhase, PieceType, Player


def _idx(row: int, col: int) -> int:
    return row * COLS + col


class TestProtocolCompliance:
    def test_implements_game_state(self) -> None:
        assert isinstance(ShogiState(), GameState)

    def test_action_space_size(self) -> None:
        assert ShogiState().action_space_size == ACTION_SPACE


class TestInitialState:
    def test_sente_starts(self) -> None:
        state = ShogiState()
        assert state.current_player == 0
        assert state.player == Player.SENTE

    def test_not_terminal(self) -> None:
        state = ShogiState()
        assert not state.is_terminal
        assert state.winner is None
        assert state.result.kind == ResultKind.ONGOING

    def test_has_30_legal_moves(self) -> None:
        state = ShogiState()
        assert len(state.legal_moves()) == 30
        assert len(state.board_moves()) == 30
        assert state.drops() == []

    def test_history_seeded(self) -> None:
        state = ShogiState()
        assert state.history == (STARTING_POSITION,)
        assert state.check_history == (False,)
        assert state.position_key == STARTING_POSITION

    def test_phase(self) -> None:
        assert ShogiState().phase == GamePhase.OPENING

    def test_from_position(self) -> None:
        state = ShogiState.from_position(STARTING_POSITION)
        assert state.board == Board()
        assert state.move_count == 0


class TestApplyMove:
    def test_player_alternates(self) -> None:
        state = ShogiState()
        new_state = state.apply_move(state.legal_moves()[0])
        assert new_state.current_player == 1

    def test_immutability(self) -> None:
        state = ShogiState()
        new_state = state.apply_move(state.legal_moves()[0])
        assert state.current_player == 0
        assert state.move_count == 0
        assert new_state.move_count == 1

    def test_history_grows_with_moves(self) -> None:
        state = ShogiState()
        for _ in range(6):
            state = state.apply_move(state.legal_moves()[0])
            assert len(state.history) == state.move_count + 1
            assert len(state.check_history) == len(state.history)
            assert len(state.moves) == state.move_count

    def test_last_move(self) -> None:
        state = ShogiState()
        assert state.last_move is None
        move = BoardMove(_idx(6, 2), _idx(5, 2), PieceType.PAWN)
        assert state.apply_move(move).last_move == move

    def test_illegal_move_rejected(self) -> None:
        state = ShogiState()
        with pytest.raises(IllegalMoveError):
            state.apply_move(BoardMove(_idx(8, 4), _idx(6, 4), PieceType.KING))

    def test_drop_without_reserve_rejected(self) -> None:
        with pytest.raises(IllegalMoveError):
            ShogiState().apply_move(DropMove(40, PieceType.PAWN))

    def test_apply_action(self) -> None:
        state = ShogiState()
        move = BoardMove(_idx(6, 2), _idx(5, 2), PieceType.PAWN)
        assert state.apply_action(encode_move(move)) == state.apply_move(move)

    def test_legal_actions_match_moves(self) -> None:
        state = ShogiState()
        assert state.legal_actions() == [encode_move(m) for m in state.legal_moves()]

    def test_inconsistent_history_rejected(self) -> None:
        with pytest.raises(ShogiError):
            ShogiState(history=("a", "b"))


class TestResignation:
    def test_resign(self) -> None:
        state = ShogiState().resign()
        assert state.is_terminal
        assert state.result.kind == ResultKind.RESIGNATION
        assert state.winner == Player.GOTE.value
        assert state.legal_moves() == []

    def test_no_moves_after_resignation(self) -> None:
        state = ShogiState()
        move = state.legal_moves()[0]
        resigned = state.resign()
        with pytest.raises(GameOverError):
            resigned.apply_move(move)
        with pytest.raises(GameOverError):
            resigned.resign()


class TestCheckmateByMove:
    def test_gold_drop_ends_game(self) -> None:
        board = Board.from_pieces(
            [
                (8, 4, PieceType.KING, Player.SENTE),
                (0, 8, PieceType.KING, Player.GOTE),
                (0, 7, PieceType.KNIGHT, Player.GOTE),
                (2, 8, PieceType.GOLD, Player.SENTE),
            ],
            sente_hand=[PieceType.GOLD],
        )
        state = ShogiState(board=board).apply_move(DropMove(_idx(1, 8), PieceType.GOLD))
        assert state.is_check
        assert state.result.kind == ResultKind.CHECKMATE
        assert state.winner == Player.SENTE.value
        with pytest.raises(GameOverError):
            state.apply_move(BoardMove(_idx(0, 8), _idx(1, 7), PieceType.KING))


class TestTensorPlanes:
    def test_shape(self) -> None:
        assert ShogiState().to_tensor_planes().shape == (43, 9, 9)

    def test_sente_king_plane(self) -> None:
        planes = ShogiState().to_tensor_planes()
        assert planes[PieceType.KING.value, 8, 4] == 1.0
        assert planes[14 + PieceType.KING.value, 0, 4] == 1.0

    def test_turn_indicator(self) -> None:
        state = ShogiState()
        assert state.to_tensor_planes()[42].sum() == 81
        gote_state = state.apply_move(state.legal_moves()[0])
        assert gote_state.to_tensor_planes()[42].sum() == 0

    def test_hand_planes(self) -> None:
        board = Board.from_pieces(
            [(8, 4, PieceType.KING, Player.SENTE), (0, 4, PieceType.KING, Player.GOTE)],
            sente_hand=[PieceType.PAWN, PieceType.PAWN],
        )
        planes = ShogiState(board=board).to_tensor_planes()
        assert planes[28, 0, 0] == 2.0
