"""Heuristic move ranking.

ヒューリスティックによる候補手の順位付け。
探索を使わずに「良さそうな手」を並べる。初級の手選び、アドバイザへ渡す候補手一覧、
アドバイザが失敗したときのフォールバック手に使う。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from shogi_engine.engine.evaluation import PIECE_VALUES
from shogi_engine.game.display import move_to_text, piece_char
from shogi_engine.game.moves import BoardMove, DropMove, Move, apply_move, can_promote_move, is_in_check
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import BISHOP_LIKE, COLS, ROOK_LIKE, PieceType, in_promotion_zone

_MAJOR_BASES = (PieceType.ROOK, PieceType.BISHOP)


class Priority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, score: int) -> Priority:
        if score >= 2000:
            return cls.CRITICAL
        if score >= 500:
            return cls.HIGH
        if score >= 100:
            return cls.MEDIUM
        return cls.LOW


@dataclass(frozen=True)
class MoveScore:
    move: Move
    score: int
    features: tuple[str, ...]
    priority: Priority


def gives_check(state: ShogiState, move: Move) -> bool:
    """この手で相手玉に王手がかかるか。"""
    new_board = apply_move(state.board, state.player, move)
    return is_in_check(new_board, state.player.opponent)


def _moves_to_center(move: Move) -> bool:
    row, col = divmod(move.to_idx, COLS)
    return 3 <= row <= 5 and 3 <= col <= 5


def score_move(state: ShogiState, move: Move) -> MoveScore:
    """Score a single legal move.

    1. 王手がかかっていれば全ての手が王手回避（+5000）
    2. 駒取り（取る駒の価値×2、飛車系+500・角系+400）
    3. 王手（+300）
    4. 成り（+200、飛角の成りはさらに+150）
    5. 脅威（王手、または飛角を敵陣に打つ）（+100）
    6. 中央3×3への移動（+30）
    7. 駒打ち（+20、飛角はさらに+100）
    8. 成れるのに成らない手（-50）
    """
    player = state.player
    score = 0
    features: list[str] = []

    if state.is_check:
        score += 5000
        features.append("王手回避")

    if move.captured is not None:
        score += PIECE_VALUES[move.captured] * 2
        features.append(f"{piece_char(move.captured)}取り")
        if move.captured in ROOK_LIKE:
            score += 500
            features.append("飛車取り")
        elif move.captured in BISHOP_LIKE:
            score += 400
            features.append("角取り")

    checking = gives_check(state, move)
    if checking:
        score += 300
        features.append("王手")

    if move.promote:
        score += 200
        features.append("成り")
        if move.piece_type in _MAJOR_BASES:
            score += 150

    threatening = checking or (
        isinstance(move, DropMove)
        and move.piece_type in _MAJOR_BASES
        and in_promotion_zone(player, move.to_idx // COLS)
    )
    if threatening:
        score += 100
        features.append("脅威")

    if _moves_to_center(move):
        score += 30
        features.append("中央")

    if isinstance(move, DropMove):
        score += 20
        features.append("駒打ち")
        if move.piece_type in _MAJOR_BASES:
            score += 100

    if (
        isinstance(move, BoardMove)
        and not move.promote
        and can_promote_move(move.piece_type, player, move.from_idx // COLS, move.to_idx // COLS)
    ):
        score -= 50

    return MoveScore(move, score, tuple(features), Priority.from_score(score))


def rank_moves(state: ShogiState) -> list[MoveScore]:
    """全ての合法手を点数の高い順に並べる（同点は生成順のまま）。"""
    scored = [score_move(state, move) for move in state.legal_moves()]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def top_moves(state: ShogiState, n: int = 20) -> list[MoveScore]:
    return rank_moves(state)[:n]


def critical_moves(state: ShogiState) -> list[MoveScore]:
    """優先度が critical / high の手だけ。"""
    return [s for s in rank_moves(state) if s.priority in (Priority.CRITICAL, Priority.HIGH)]


def describe_moves(moves: list[MoveScore], max_count: int = 5) -> list[str]:
    """候補手を「1. ７六歩(77)（中央） [30点]」の形式で説明する。"""
    lines: list[str] = []
    for i, scored in enumerate(moves[:max_count], start=1):
        feature_text = f"（{'、'.join(scored.features)}）" if scored.features else ""
        lines.append(f"{i}. {move_to_text(scored.move)}{feature_text} [{scored.score}点]")
    return lines
