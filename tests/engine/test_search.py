"""Tests for the alpha-beta search engine.

本将棋は合法手が多いので、探索のテストは駒の少ない局面で行う。
"""

from __future__ import annotations

import random
import threading

import pytest

from shogi_engine.engine.config import DEFAULT_SEARCH_CONFIG, SearchConfig, Strength
from shogi_engine.engine.evaluation import evaluate_position
from shogi_engine.engine.search import Searcher, choose_move, minimax_move, search
from shogi_engine.errors import GameOverError, SearchCancelled
from shogi_engine.game.board import Board
from shogi_engine.game.moves import BoardMove, DropMove
from shogi_engine.game.result import ResultKind
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import COLS, PieceType, Player


def _idx(row: int, col: int) -> int:
    return row * COLS + col


def _make_state(
    pieces: list[tuple[int, int, PieceType, Player]],
    sente_hand: tuple[PieceType, ...] = (),
    player: Player = Player.SENTE,
) -> ShogiState:
    return ShogiState(board=Board.from_pieces(pieces, sente_hand=sente_hand), _current_player=player)


def _hanging_gold() -> ShogiState:
    """5五の飛車で9五の金をただで取れる局面。"""
    return _make_state(
        [
            (8, 8, PieceType.KING, Player.SENTE),
            (0, 8, PieceType.KING, Player.GOTE),
            (4, 4, PieceType.ROOK, Player.SENTE),
            (4, 0, PieceType.GOLD, Player.GOTE),
        ]
    )


def _mate_in_one() -> ShogiState:
    """持ち駒の金を1二か2二に打てば詰み。"""
    return _make_state(
        [
            (8, 4, PieceType.KING, Player.SENTE),
            (0, 8, PieceType.KING, Player.GOTE),
            (0, 7, PieceType.KNIGHT, Player.GOTE),
            (2, 8, PieceType.GOLD, Player.SENTE),
        ],
        sente_hand=(PieceType.GOLD,),
    )


def _defended_pawn() -> ShogiState:
    return _make_state(
        [
            (8, 8, PieceType.KING, Player.SENTE),
            (0, 8, PieceType.KING, Player.GOTE),
            (4, 4, PieceType.ROOK, Player.SENTE),
            (4, 0, PieceType.PAWN, Player.GOTE),
            (3, 0, PieceType.GOLD, Player.GOTE),
        ]
    )


_TAKE_GOLD = BoardMove(_idx(4, 4), _idx(4, 0), PieceType.ROOK, PieceType.GOLD)
_TAKE_PAWN = BoardMove(_idx(4, 4), _idx(4, 0), PieceType.ROOK, PieceType.PAWN)


class TestSearch:
    @pytest.mark.parametrize("depth", [1, 2])
    def test_captures_hanging_piece(self, depth: int) -> None:
        result = search(_hanging_gold(), DEFAULT_SEARCH_CONFIG.with_depth(depth))
        assert result.move == _TAKE_GOLD
        assert result.score > 0
        assert result.nodes > 0

    def test_finds_mate_in_one(self) -> None:
        state = _mate_in_one()
        result = search(state, DEFAULT_SEARCH_CONFIG.with_depth(2))
        assert isinstance(result.move, DropMove)
        assert result.score >= DEFAULT_SEARCH_CONFIG.mate_score
        assert state.apply_move(result.move).result.kind == ResultKind.CHECKMATE

    def test_score_is_from_sente_view(self) -> None:
        """後手番で後手が駒得できる局面は負の評価値になる。"""
        state = _make_state(
            [
                (8, 0, PieceType.KING, Player.SENTE),
                (0, 0, PieceType.KING, Player.GOTE),
                (4, 4, PieceType.ROOK, Player.GOTE),
                (4, 8, PieceType.GOLD, Player.SENTE),
            ],
            player=Player.GOTE,
        )
        result = search(state, DEFAULT_SEARCH_CONFIG.with_depth(1))
        assert result.move == BoardMove(_idx(4, 4), _idx(4, 8), PieceType.ROOK, PieceType.GOLD)
        assert result.score < 0

    def test_deterministic(self) -> None:
        config = DEFAULT_SEARCH_CONFIG.with_depth(2)
        first = search(_hanging_gold(), config)
        second = search(_hanging_gold(), config)
        assert first == second

    def test_terminal_state_has_no_move(self) -> None:
        state = _mate_in_one()
        mated = state.apply_move(DropMove(_idx(1, 8), PieceType.GOLD))
        result = search(mated, DEFAULT_SEARCH_CONFIG.with_depth(2))
        assert result.move is None
        with pytest.raises(GameOverError):
            minimax_move(mated)

    def test_initial_position_depth_1(self) -> None:
        state = ShogiState()
        move = minimax_move(state, depth=1)
        assert move in state.legal_moves()

    def test_cancellation(self) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(SearchCancelled):
            search(_hanging_gold(), DEFAULT_SEARCH_CONFIG.with_depth(2), cancel)

    def test_unset_token_does_not_cancel(self) -> None:
        result = search(_hanging_gold(), DEFAULT_SEARCH_CONFIG.with_depth(1), threading.Event())
        assert result.move == _TAKE_GOLD


class TestSearcher:
    def test_captures_ordered_first(self) -> None:
        state = _hanging_gold()
        ordered = Searcher().order_moves(state.legal_moves())
        assert ordered[0] == _TAKE_GOLD

    def test_quiescence_not_below_stand_pat(self) -> None:
        board = _hanging_gold().board
        searcher = Searcher()
        score = searcher.quiescence(board, Player.SENTE, float("-inf"), float("inf"), 0)
        assert score >= evaluate_position(board).score
        assert searcher.nodes > 1

    def test_quiescence_depth_zero_is_static(self) -> None:
        board = _hanging_gold().board
        searcher = Searcher(SearchConfig(quiescence_depth=0))
        score = searcher.quiescence(board, Player.SENTE, float("-inf"), float("inf"), 0)
        assert score == evaluate_position(board).score
        assert searcher.nodes == 1

    def test_defended_pawn_is_not_taken_at_depth_one(self) -> None:
        """9四の金に守られた9五の歩を飛車で取ると、取り返されて損をする。"""
        state = _defended_pawn()
        result = search(state, DEFAULT_SEARCH_CONFIG.with_depth(1))
        assert result.move is not None
        assert result.move != _TAKE_PAWN

    def test_quiescence_sees_recapture(self) -> None:
        child = _defended_pawn().apply_move(_TAKE_PAWN).board
        static = evaluate_position(child).score * Player.GOTE.sign
        score = Searcher().quiescence(child, Player.GOTE, float("-inf"), float("inf"), 0)
        assert score > static + 500

    def test_delta_pruning_skips_hopeless_captures(self) -> None:
        board = _hanging_gold().board
        stand_pat = evaluate_position(board).score
        alpha, beta = stand_pat + 5000, stand_pat + 5001

        pruned = Searcher(SearchConfig(delta_margin=200))
        assert pruned.quiescence(board, Player.SENTE, alpha, beta, 0) == alpha
        assert pruned.nodes == 1

        unpruned = Searcher(SearchConfig(delta_margin=10**6))
        unpruned.quiescence(board, Player.SENTE, alpha, beta, 0)
        assert unpruned.nodes > 1


class TestChooseMove:
    def test_beginner_takes_top_ranked_move(self) -> None:
        result = choose_move(_hanging_gold(), Strength.BEGINNER)
        assert result.move == _TAKE_GOLD
        assert result.nodes == 0
        assert result.thinking[0].startswith("初級")

    def test_beginner_with_rng_picks_from_top_three(self) -> None:
        state = _hanging_gold()
        result = choose_move(state, Strength.BEGINNER, rng=random.Random(3))
        assert result.move in state.legal_moves()

    def test_intermediate_searches(self) -> None:
        result = choose_move(_hanging_gold(), Strength.INTERMEDIATE)
        assert result.move == _TAKE_GOLD
        assert result.nodes > 0
        assert any("2手先" in line for line in result.thinking)

    def test_no_moves_raises(self) -> None:
        mated = _mate_in_one().apply_move(DropMove(_idx(1, 8), PieceType.GOLD))
        with pytest.raises(GameOverError):
            choose_move(mated, Strength.BEGINNER)


class TestConfig:
    def test_invalid_depth(self) -> None:
        with pytest.raises(ValueError):
            SearchConfig(depth=0)

    def test_invalid_quiescence_depth(self) -> None:
        with pytest.raises(ValueError):
            SearchConfig(quiescence_depth=-1)

    def test_with_depth_copies(self) -> None:
        config = DEFAULT_SEARCH_CONFIG.with_depth(4)
        assert config.depth == 4
        assert DEFAULT_SEARCH_CONFIG.depth == 2

    def test_strength_depths(self) -> None:
        assert Strength.BEGINNER.depth is None
        assert [s.depth for s in (Strength.INTERMEDIATE, Strength.ADVANCED, Strength.EXPERT)] == [2, 3, 4]
        assert Strength.EXPERT.label == "最強"
