"""Tests for terminal detection: 千日手, perpetual check and the judge order."""

from __future__ import annotations

from shogi_engine.game.board import Board
from shogi_engine.game.moves import BoardMove
from shogi_engine.game.result import (
    ONGOING,
    GameResult,
    ResultKind,
    judge,
    perpetual_checker,
    repetition_span,
)
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import COLS, PieceType, Player


def _idx(row: int, col: int) -> int:
    return row * COLS + col


def _play(state: ShogiState, moves: list[BoardMove]) -> ShogiState:
    for move in moves:
        state = state.apply_move(move)
    return state


# 5九玉→4八玉、5一玉→6二玉、4八玉→5九玉、6二玉→5一玉 の4手1周
_KING_SHUFFLE = [
    BoardMove(_idx(8, 4), _idx(7, 5), PieceType.KING),
    BoardMove(_idx(0, 4), _idx(1, 3), PieceType.KING),
    BoardMove(_idx(7, 5), _idx(8, 4), PieceType.KING),
    BoardMove(_idx(1, 3), _idx(0, 4), PieceType.KING),
]

# 先手の飛車が9筋と8筋で王手を繰り返し、後手玉は9一と8一を往復する
_PERPETUAL_CHECK = [
    BoardMove(_idx(4, 1), _idx(4, 0), PieceType.ROOK),
    BoardMove(_idx(0, 0), _idx(0, 1), PieceType.KING),
    BoardMove(_idx(4, 0), _idx(4, 1), PieceType.ROOK),
    BoardMove(_idx(0, 1), _idx(0, 0), PieceType.KING),
]


def _perpetual_start() -> ShogiState:
    board = Board.from_pieces(
        [
            (8, 8, PieceType.KING, Player.SENTE),
            (0, 0, PieceType.KING, Player.GOTE),
            (4, 1, PieceType.ROOK, Player.SENTE),
        ]
    )
    return ShogiState(board=board)


class TestRepetitionSpan:
    def test_fourth_occurrence(self) -> None:
        history = ["a", "b", "a", "b", "a", "b", "a"]
        assert repetition_span(history) == 0

    def test_only_last_four_count(self) -> None:
        history = ["a", "b", "a", "b", "a", "b", "a", "b", "a"]
        assert repetition_span(history) == 2

    def test_three_occurrences_is_not_repetition(self) -> None:
        assert repetition_span(["a", "b", "a", "b", "a"]) is None


class TestPerpetualChecker:
    def test_side_to_move_always_in_check(self) -> None:
        # 偶数手前の局面（現局面と同じ手番）で毎回王手されている
        checks = [True, False, True, False, True]
        assert perpetual_checker(checks, 0) == 0

    def test_opponent_always_in_check(self) -> None:
        checks = [False, True, False, True, False]
        assert perpetual_checker(checks, 0) == 1

    def test_no_perpetual(self) -> None:
        checks = [True, False, False, True, False]
        assert perpetual_checker(checks, 0) is None


class TestJudge:
    def test_no_moves_in_check_is_mate(self) -> None:
        result = judge(Player.SENTE, True, False, ["x"], [True])
        assert result == GameResult(ResultKind.CHECKMATE, Player.GOTE)

    def test_no_moves_without_check_is_stalemate(self) -> None:
        result = judge(Player.GOTE, False, False, ["x"], [False])
        assert result == GameResult(ResultKind.STALEMATE, Player.SENTE)

    def test_ongoing(self) -> None:
        assert judge(Player.SENTE, False, True, ["x"], [False]) == ONGOING

    def test_mate_takes_precedence_over_repetition(self) -> None:
        history = ["a", "b", "a", "b", "a", "b", "a"]
        result = judge(Player.SENTE, True, False, history, [False] * 7)
        assert result.kind == ResultKind.CHECKMATE

    def test_describe(self) -> None:
        assert ONGOING.describe() == "対局中"
        assert GameResult(ResultKind.REPETITION).describe() == "千日手（引き分け）"
        assert GameResult(ResultKind.CHECKMATE, Player.SENTE).describe() == "詰みで先手の勝ち"


class TestFourfoldRepetition:
    def test_king_shuffle_draw(self) -> None:
        state = _play(ShogiState(), _KING_SHUFFLE * 3)
        assert state.move_count == 12
        assert state.result.kind == ResultKind.REPETITION
        assert state.result.is_draw
        assert state.winner is None
        assert state.is_terminal
        assert state.legal_moves() == []

    def test_third_occurrence_continues(self) -> None:
        state = _play(ShogiState(), (_KING_SHUFFLE * 3)[:11])
        assert not state.is_terminal

    def test_perpetual_check_loses(self) -> None:
        state = _play(_perpetual_start(), _PERPETUAL_CHECK * 3)
        assert state.result.kind == ResultKind.REPETITION
        assert state.winner == Player.GOTE.value
        assert state.result.describe() == "連続王手の千日手で後手の勝ち"

    def test_checks_recorded_in_history(self) -> None:
        state = _play(_perpetual_start(), _PERPETUAL_CHECK)
        assert state.check_history == (False, True, False, True, False)
