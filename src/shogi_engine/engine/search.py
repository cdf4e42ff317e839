"""Negamax search with alpha-beta pruning and quiescence for 本将棋.

ネガマックス法 + αβ枝刈り + 静止探索。

評価関数（evaluation.evaluate_position）は常に先手視点なので、
探索内部では Player.sign を掛けて「手番側から見た評価値」に変換する。
探索結果の SearchResult.score は先手視点に戻して返す。

決定性: 手の並び替えは安定ソートで、乱数は使わない。
同じ局面・同じ設定なら、選ぶ手も訪問ノード数も毎回同じになる。
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field

from shogi_engine.engine.config import DEFAULT_SEARCH_CONFIG, SearchConfig, Strength
from shogi_engine.engine.evaluation import PIECE_VALUES, evaluate_position, evaluation_text
from shogi_engine.engine.ranking import describe_moves, top_moves
from shogi_engine.errors import GameOverError, SearchCancelled
from shogi_engine.game.board import Board
from shogi_engine.game.display import move_to_text
from shogi_engine.game.moves import Move, apply_move, legal_board_moves
from shogi_engine.game.result import ResultKind
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import Player

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """Best move, its score (sente's point of view) and the number of visited nodes."""

    move: Move | None
    score: int
    nodes: int


@dataclass(frozen=True)
class ThinkResult:
    """エンジンが選んだ手と、思考過程の説明。"""

    move: Move
    thinking: list[str] = field(default_factory=list)
    evaluation: int = 0
    nodes: int = 0


class Searcher:
    """Runs one search and counts the nodes it visits.

    1回の探索ごとに作る。ノード数とキャンセルトークンを保持する。
    """

    def __init__(self, config: SearchConfig = DEFAULT_SEARCH_CONFIG, cancel: threading.Event | None = None) -> None:
        self.config = config
        self.cancel = cancel
        self.nodes = 0

    def _visit(self) -> None:
        self.nodes += 1
        if self.cancel is not None and self.cancel.is_set():
            raise SearchCancelled(f"Search cancelled after {self.nodes} nodes")

    # ------------------------------------------------------------------
    # Move ordering
    # ------------------------------------------------------------------

    def order_key(self, move: Move) -> int:
        """MVV-LVA: 価値の高い駒を価値の低い駒で取る手を先に読む。成る手にも加点。"""
        score = 0
        if move.captured is not None:
            score += PIECE_VALUES[move.captured] * self.config.capture_weight - PIECE_VALUES[move.piece_type]
        if move.promote:
            score += self.config.promotion_bonus
        return score

    def order_moves(self, moves: list[Move]) -> list[Move]:
        # sorted は安定ソートなので同点の手は生成順のまま
        return sorted(moves, key=self.order_key, reverse=True)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def negamax(self, state: ShogiState, depth: int, alpha: float, beta: float) -> tuple[Move | None, float]:
        """Negamax search with alpha-beta pruning.

        ネガマックス法とは:
        ミニマックス法の変形で、常に「現在のプレイヤーにとっての評価値」を
        返すようにする。相手番の評価値は符号を反転させることで統一できる。

        alpha: 現在のプレイヤーが保証できる最低スコア
        beta:  相手のプレイヤーが保証できる最低スコア（現在プレイヤーにとっての上限）

        Returns (best_move, score) from the current player's perspective.
        best_move is None at leaves and terminal states.
        """
        self._visit()

        # 探索深さ0に達したら静止探索へ（駒の取り合いが終わるまで読む）
        if depth == 0:
            return None, self.quiescence(state.board, state.player, alpha, beta, 0)

        result = state.result
        if result.is_terminal:
            return None, self._terminal_score(state, depth)

        moves = self.order_moves(state.legal_moves())
        best_move: Move | None = moves[0]
        best_score = float("-inf")

        for move in moves:
            child = state.successor(move)
            # 相手番の評価値を符号反転して自分の視点に変換（ネガマックスの核心）
            _, score = self.negamax(child, depth - 1, -beta, -alpha)
            score = -score

            if score > best_score:
                best_score = score
                best_move = move

            alpha = max(alpha, score)
            if alpha >= beta:
                break  # βカットオフ

        return best_move, best_score

    def _terminal_score(self, state: ShogiState, depth: int) -> float:
        """終局局面の評価値（手番側視点）。

        詰みは残り深さが大きいほど（＝早い詰みほど）絶対値が大きい。
        ステイルメイトと千日手の引き分けは0。
        """
        result = state.result
        if result.kind is ResultKind.STALEMATE or result.winner is None:
            return 0.0
        mate = self.config.mate_score + depth * self.config.mate_depth_bonus
        return float(mate) if result.winner == state.player else float(-mate)

    def quiescence(self, board: Board, player: Player, alpha: float, beta: float, qdepth: int) -> float:
        """Capture-only search extension.

        静止探索: 駒を取る手だけを読み続け、取り合いの途中で評価するのを防ぐ。
        - スタンドパット: 駒を取らずに止める選択肢として静的評価値を下限にする
        - デルタ枝刈り: 取る駒の価値 + 余裕幅を足しても alpha に届かない駒取りは読まない
        - 深さ制限: quiescence_depth に達したら静的評価値を返す
        """
        self._visit()

        stand_pat = float(evaluate_position(board).score * player.sign)
        if qdepth >= self.config.quiescence_depth:
            return stand_pat
        if stand_pat >= beta:
            return beta
        alpha = max(alpha, stand_pat)

        captures = legal_board_moves(board, player, captures_only=True)
        for move in sorted(captures, key=self.order_key, reverse=True):
            gain = PIECE_VALUES[move.captured] if move.captured is not None else 0
            if stand_pat + gain + self.config.delta_margin < alpha:
                continue
            child = apply_move(board, player, move)
            score = -self.quiescence(child, player.opponent, -beta, -alpha, qdepth + 1)
            if score >= beta:
                return beta
            alpha = max(alpha, score)

        return alpha


def search(
    state: ShogiState,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
    cancel: threading.Event | None = None,
) -> SearchResult:
    """Search the position and return the best move for the side to move.

    score は先手視点（正なら先手有利）。
    終局局面では move=None を返す。
    cancel がセットされると SearchCancelled を送出する。
    """
    searcher = Searcher(config, cancel)
    move, score = searcher.negamax(state, config.depth, float("-inf"), float("inf"))
    sente_score = int(score) * state.player.sign
    logger.debug(
        "search depth=%d nodes=%d score=%d move=%s",
        config.depth,
        searcher.nodes,
        sente_score,
        move_to_text(move) if move is not None else "-",
    )
    return SearchResult(move=move, score=sente_score, nodes=searcher.nodes)


def minimax_move(state: ShogiState, depth: int = 2) -> Move:
    """Return the best move for the current player using alpha-beta search.

    本将棋では組み合わせ爆発を避けるため depth=2〜3 程度に抑える。
    """
    result = search(state, DEFAULT_SEARCH_CONFIG.with_depth(depth))
    if result.move is None:
        raise GameOverError("No legal moves available")
    return result.move


def choose_move(
    state: ShogiState,
    strength: Strength = Strength.INTERMEDIATE,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
    cancel: threading.Event | None = None,
    rng: random.Random | None = None,
) -> ThinkResult:
    """Pick a move for the given strength tier.

    初級: ヒューリスティック上位の手（rng を渡すと上位3手からランダム）
    中級〜最強: 強さに応じた深さで αβ 探索
    """
    moves = state.legal_moves()
    if not moves:
        raise GameOverError("No legal moves available")

    thinking = [f"{strength.label}: {len(moves)}手の候補を検討中..."]

    depth = strength.depth
    if depth is None:
        ranked = top_moves(state, 10)
        candidates = ranked[:3]
        chosen = rng.choice(candidates) if rng is not None else candidates[0]
        evaluation = evaluate_position(state).score
        thinking.extend(describe_moves(ranked, 3))
        thinking.append(f"形勢: {evaluation_text(evaluation)}")
        thinking.append(f"{move_to_text(chosen.move)} を選択")
        return ThinkResult(move=chosen.move, thinking=thinking, evaluation=evaluation)

    thinking.append(f"{depth}手先まで読みます...")
    result = search(state, config.with_depth(depth), cancel)
    if result.move is None:
        raise GameOverError("No legal moves available")
    sign = "+" if result.score > 0 else ""
    thinking.append(f"{result.nodes}局面を評価しました")
    thinking.append(f"評価値: {sign}{result.score}（{evaluation_text(result.score)}）")
    thinking.append(f"{move_to_text(result.move)} を選択")
    return ThinkResult(move=result.move, thinking=thinking, evaluation=result.score, nodes=result.nodes)
