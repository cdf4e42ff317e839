"""Tests for check, checkmate and stalemate detection."""

from __future__ import annotations

from shogi_engine.game.board import Board
from shogi_engine.game.result import ResultKind
from shogi_engine.game.rules import checking_pieces, has_legal_move, is_checkmate, is_in_check, is_stalemate
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import COLS, PieceType, Player

# 1一玉・2一桂の後手に、1二金（2三金が支える）で詰み
_MATE_PIECES = [
    (8, 4, PieceType.KING, Player.SENTE),
    (0, 8, PieceType.KING, Player.GOTE),
    (0, 7, PieceType.KNIGHT, Player.GOTE),
    (1, 8, PieceType.GOLD, Player.SENTE),
    (2, 8, PieceType.GOLD, Player.SENTE),
]

# 9一飛が一段目を通して1一玉に王手。玉の逃げ道は自分の歩で塞がっている
_BACK_RANK_PIECES = [
    (8, 4, PieceType.KING, Player.SENTE),
    (0, 8, PieceType.KING, Player.GOTE),
    (1, 7, PieceType.PAWN, Player.GOTE),
    (1, 8, PieceType.PAWN, Player.GOTE),
    (0, 0, PieceType.ROOK, Player.SENTE),
]


class TestCheck:
    def test_initial_position_not_in_check(self) -> None:
        board = Board()
        assert not is_in_check(board, Player.SENTE)
        assert not is_in_check(board, Player.GOTE)

    def test_missing_king_is_not_in_check(self) -> None:
        board = Board.from_pieces([(4, 4, PieceType.ROOK, Player.GOTE)])
        assert not is_in_check(board, Player.SENTE)

    def test_checking_pieces(self) -> None:
        board = Board.from_pieces(_MATE_PIECES)
        assert checking_pieces(board, Player.GOTE) == [1 * COLS + 8]
        assert checking_pieces(board, Player.SENTE) == []


class TestCheckmate:
    def test_constructed_mate(self) -> None:
        board = Board.from_pieces(_MATE_PIECES)
        assert is_in_check(board, Player.GOTE)
        assert is_checkmate(board, Player.GOTE)
        assert not has_legal_move(board, Player.GOTE)

    def test_removing_supporter_lifts_mate(self) -> None:
        """2三の金を取り除くと玉が1二の金を取れる。"""
        board = Board.from_pieces([p for p in _MATE_PIECES if (p[0], p[1]) != (2, 8)])
        assert is_in_check(board, Player.GOTE)
        assert not is_checkmate(board, Player.GOTE)

    def test_not_in_check_is_not_mate(self) -> None:
        assert not is_checkmate(Board(), Player.SENTE)

    def test_drop_interposition_escapes(self) -> None:
        board = Board.from_pieces(_BACK_RANK_PIECES)
        assert is_checkmate(board, Player.GOTE)

        with_gold = Board.from_pieces(_BACK_RANK_PIECES, gote_hand=[PieceType.GOLD])
        assert not is_checkmate(with_gold, Player.GOTE)
        assert is_checkmate(with_gold, Player.GOTE, include_drops=False)

    def test_checkmated_state_is_terminal(self) -> None:
        state = ShogiState(board=Board.from_pieces(_MATE_PIECES), _current_player=Player.GOTE)
        assert state.result.kind == ResultKind.CHECKMATE
        assert state.winner == Player.SENTE.value
        assert state.legal_moves() == []


class TestStalemate:
    def _stalemate_state(self) -> ShogiState:
        # 9一の後手玉: 8一は銀、9二・8二は金が押さえる。王手はかかっていない
        board = Board.from_pieces(
            [
                (8, 8, PieceType.KING, Player.SENTE),
                (0, 0, PieceType.KING, Player.GOTE),
                (2, 0, PieceType.GOLD, Player.SENTE),
                (1, 2, PieceType.SILVER, Player.SENTE),
            ]
        )
        return ShogiState(board=board, _current_player=Player.GOTE)

    def test_stalemate_detected(self) -> None:
        state = self._stalemate_state()
        assert not state.is_check
        assert is_stalemate(state)

    def test_stalemate_loses(self) -> None:
        state = self._stalemate_state()
        assert state.result.kind == ResultKind.STALEMATE
        assert state.winner == Player.SENTE.value

    def test_initial_position_not_stalemate(self) -> None:
        assert not is_stalemate(ShogiState())

    def test_checkmate_is_not_stalemate(self) -> None:
        state = ShogiState(board=Board.from_pieces(_MATE_PIECES), _current_player=Player.GOTE)
        assert not is_stalemate(state)
