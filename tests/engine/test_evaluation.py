"""Tests for the static evaluator."""

from __future__ import annotations

from shogi_engine.engine.evaluation import (
    CHECK_PENALTY,
    HAND_PIECE_VALUES,
    MISSING_KING_SCORE,
    PIECE_VALUES,
    evaluate_king_safety,
    evaluate_position,
    evaluation_text,
    material_balance,
    nyugyoku_points,
    position_bonus,
    quick_evaluate,
)
from shogi_engine.game.board import Board
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import PieceType, Player

_KINGS = [(8, 4, PieceType.KING, Player.SENTE), (0, 4, PieceType.KING, Player.GOTE)]


class TestSymmetry:
    def test_initial_position_is_zero(self) -> None:
        """初期局面は先後対称なので評価値は0。"""
        breakdown = evaluate_position(Board())
        assert breakdown.material == 0
        assert breakdown.position == 0
        assert breakdown.score == 0

    def test_accepts_state(self) -> None:
        assert evaluate_position(ShogiState()).score == evaluate_position(Board()).score

    def test_position_bonus_mirrored(self) -> None:
        for pt in PieceType:
            assert position_bonus(pt, 3, 4, Player.SENTE) == position_bonus(pt, 5, 4, Player.GOTE)


class TestMaterial:
    def test_kings_only(self) -> None:
        assert material_balance(Board.from_pieces(_KINGS)) == 0

    def test_hand_piece_value(self) -> None:
        board = Board.from_pieces(_KINGS, sente_hand=[PieceType.ROOK])
        assert quick_evaluate(board) == HAND_PIECE_VALUES[PieceType.ROOK]

    def test_gote_material_is_negative(self) -> None:
        board = Board.from_pieces([*_KINGS, (3, 3, PieceType.DRAGON, Player.GOTE)])
        assert material_balance(board) == -PIECE_VALUES[PieceType.DRAGON]

    def test_extra_piece_favours_owner(self) -> None:
        board = Board().set_piece(1, 1, None)  # 後手の飛車を取り除く
        assert evaluate_position(board).score > 500


class TestKingSafety:
    def test_initial_king(self) -> None:
        safety = evaluate_king_safety(Board(), Player.SENTE)
        assert safety.position == 80
        assert safety.defenders == 50  # 左右の金
        assert safety.escape_routes == 30
        assert safety.attackers == 0

    def test_open_file_to_rook(self) -> None:
        board = Board.from_pieces([*_KINGS, (3, 4, PieceType.ROOK, Player.GOTE)])
        assert evaluate_king_safety(board, Player.SENTE).attackers == -40

    def test_blocked_file(self) -> None:
        board = Board.from_pieces(
            [*_KINGS, (3, 4, PieceType.ROOK, Player.GOTE), (6, 4, PieceType.PAWN, Player.SENTE)]
        )
        assert evaluate_king_safety(board, Player.SENTE).attackers == 0

    def test_missing_king(self) -> None:
        safety = evaluate_king_safety(Board.empty(), Player.SENTE)
        assert safety.missing
        assert safety.score == MISSING_KING_SCORE


class TestOtherTerms:
    def test_check_penalty(self) -> None:
        board = Board.from_pieces([*_KINGS, (4, 4, PieceType.ROOK, Player.SENTE)])
        assert evaluate_position(board).check == CHECK_PENALTY

    def test_nyugyoku_points(self) -> None:
        board = Board.from_pieces(
            [*_KINGS, (1, 1, PieceType.ROOK, Player.SENTE), (2, 0, PieceType.PAWN, Player.SENTE)],
            sente_hand=[PieceType.GOLD],
        )
        assert nyugyoku_points(board, Player.SENTE) == 7
        assert evaluate_position(board).entering_points == (7, 0)

    def test_evaluation_text(self) -> None:
        assert evaluation_text(0) == "互角"
        assert evaluation_text(150) == "先手やや有利"
        assert evaluation_text(1500) == "先手優勢"
        assert evaluation_text(-500) == "後手有利"
