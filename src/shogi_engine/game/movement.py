"""Movement catalog and raw move generation.

駒の動きの定義表と、王手を考慮しない「到達可能マス」の生成。

動きは先手視点で一度だけ定義し、後手用は方向ベクトルを反転して作る。
(dr, dc) の dr=-1 が先手にとっての「前」（行インデックス減少方向）。
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from shogi_engine.game.board import Board
from shogi_engine.game.types import COLS, ROWS, PieceType, Player


class Reach(Enum):
    """1マスだけ動くか（STEP）、同じ方向に何マスでも動けるか（SLIDE）。"""

    STEP = "step"
    SLIDE = "slide"


class MovePattern(NamedTuple):
    dr: int
    dc: int
    reach: Reach


def _steps(*dirs: tuple[int, int]) -> list[MovePattern]:
    return [MovePattern(dr, dc, Reach.STEP) for dr, dc in dirs]


def _slides(*dirs: tuple[int, int]) -> list[MovePattern]:
    return [MovePattern(dr, dc, Reach.SLIDE) for dr, dc in dirs]


_ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))
_DIAGONAL = ((-1, -1), (-1, 1), (1, -1), (1, 1))

# 金: 前・斜め前・左右・後ろの6方向
_GOLD = _steps((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, 0))

# 先手視点の移動パターン表（14駒種）
SENTE_PATTERNS: dict[PieceType, list[MovePattern]] = {
    PieceType.PAWN: _steps((-1, 0)),                                     # 歩: 1マス前
    PieceType.LANCE: _slides((-1, 0)),                                   # 香: 前へ何マスでも
    PieceType.KNIGHT: _steps((-2, -1), (-2, 1)),                         # 桂: 2マス前+左右1
    PieceType.SILVER: _steps((-1, -1), (-1, 0), (-1, 1), (1, -1), (1, 1)),  # 銀: 前3方向+斜め後
    PieceType.GOLD: _GOLD,
    PieceType.BISHOP: _slides(*_DIAGONAL),                               # 角: 斜め4方向
    PieceType.ROOK: _slides(*_ORTHOGONAL),                               # 飛: 縦横4方向
    PieceType.KING: _steps(*_ORTHOGONAL, *_DIAGONAL),                    # 玉: 全8方向1マス
    # 成り駒（と・成香・成桂・成銀）は金と同じ動き
    PieceType.PRO_PAWN: _GOLD,
    PieceType.PRO_LANCE: _GOLD,
    PieceType.PRO_KNIGHT: _GOLD,
    PieceType.PRO_SILVER: _GOLD,
    PieceType.HORSE: _slides(*_DIAGONAL) + _steps(*_ORTHOGONAL),         # 馬: 角+縦横1マス
    PieceType.DRAGON: _slides(*_ORTHOGONAL) + _steps(*_DIAGONAL),        # 龍: 飛+斜め1マス
}


def _mirror(patterns: list[MovePattern]) -> list[MovePattern]:
    """後手用に方向を反転する（盤を180度回転させた動き）。"""
    return [MovePattern(-p.dr, -p.dc, p.reach) for p in patterns]


# (駒種, 手番) → パターン。呼び出しのたびに反転しないよう事前計算しておく
_PATTERNS: dict[tuple[PieceType, Player], list[MovePattern]] = {}
for _pt, _patterns in SENTE_PATTERNS.items():
    _PATTERNS[(_pt, Player.SENTE)] = _patterns
    _PATTERNS[(_pt, Player.GOTE)] = _mirror(_patterns)


def move_patterns(piece_type: PieceType, owner: Player) -> list[MovePattern]:
    """駒種と手番に応じた移動パターンを返す。"""
    return _PATTERNS[(piece_type, owner)]


def raw_moves(board: Board, from_idx: int, piece_type: PieceType, owner: Player) -> list[int]:
    """Return every square index the piece can geometrically reach.

    指定した駒が移動可能な全マスを返す（王手は無視）。
    自駒のあるマスには移動できず、敵駒のあるマスには移動できる（取れる）。
    飛び駒は敵駒を取ったところで止まり、自駒の手前で止まる。
    """
    row, col = divmod(from_idx, COLS)
    squares = board.squares
    targets: list[int] = []

    for dr, dc, reach in _PATTERNS[(piece_type, owner)]:
        nr, nc = row + dr, col + dc
        while 0 <= nr < ROWS and 0 <= nc < COLS:
            to_idx = nr * COLS + nc
            target = squares[to_idx]
            if target is not None and target.owner == owner:
                break
            targets.append(to_idx)
            if target is not None or reach is Reach.STEP:
                break
            nr, nc = nr + dr, nc + dc

    return targets


def attacks_square(board: Board, from_idx: int, piece_type: PieceType, owner: Player, target_idx: int) -> bool:
    """Check whether the piece on from_idx reaches target_idx.

    raw_moves(...) に target_idx が含まれるかと同値。
    王手判定では全ての敵駒について呼ばれるため、見つけた時点で打ち切る。
    """
    row, col = divmod(from_idx, COLS)
    target_row, target_col = divmod(target_idx, COLS)
    squares = board.squares

    for dr, dc, reach in _PATTERNS[(piece_type, owner)]:
        if reach is Reach.STEP:
            if row + dr == target_row and col + dc == target_col:
                return True
            continue
        nr, nc = row + dr, col + dc
        while 0 <= nr < ROWS and 0 <= nc < COLS:
            if nr == target_row and nc == target_col:
                return True
            if squares[nr * COLS + nc] is not None:
                break
            nr, nc = nr + dr, nc + dc

    return False


def is_square_attacked(board: Board, target_idx: int, by_player: Player) -> bool:
    """指定マスが by_player のいずれかの駒から利いているか。"""
    for idx, piece in board.pieces(by_player):
        if attacks_square(board, idx, piece.piece_type, by_player, target_idx):
            return True
    return False


def is_dead_square(piece_type: PieceType, row: int, owner: Player) -> bool:
    """Check whether an unpromoted piece on this row could never move again.

    行き所のない駒の判定（歩・香は最奥段、桂は奥2段）。
    先手の最奥段は row 0、後手は row 8。
    """
    distance = row if owner == Player.SENTE else ROWS - 1 - row
    if piece_type in (PieceType.PAWN, PieceType.LANCE):
        return distance == 0
    if piece_type == PieceType.KNIGHT:
        return distance <= 1
    return False
