"""Static evaluation for 本将棋.

静的評価関数。駒の価値 + 位置評価 + 玉の安全度 + 駒の働き + 王手。
評価値は常に先手視点（正なら先手有利、負なら後手有利）。
探索側（negamax）は Player.sign を掛けて手番視点に変換して使う。
"""

from __future__ import annotations

from dataclasses import dataclass

from shogi_engine.game.board import Board
from shogi_engine.game.moves import is_in_check
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import (
    BISHOP_LIKE,
    COLS,
    GOLD_LIKE,
    MAJOR_PIECES,
    ROOK_LIKE,
    ROWS,
    PieceType,
    Player,
    in_promotion_zone,
)

# 駒の基本価値（玉は0: 玉の損失は詰みとして探索側で扱う）
PIECE_VALUES: dict[PieceType, int] = {
    PieceType.KING: 0,
    PieceType.ROOK: 1000,
    PieceType.BISHOP: 900,
    PieceType.GOLD: 500,
    PieceType.SILVER: 450,
    PieceType.KNIGHT: 350,
    PieceType.LANCE: 300,
    PieceType.PAWN: 100,
    PieceType.DRAGON: 1300,
    PieceType.HORSE: 1200,
    PieceType.PRO_SILVER: 500,
    PieceType.PRO_KNIGHT: 500,
    PieceType.PRO_LANCE: 500,
    PieceType.PRO_PAWN: 600,
}

# 持ち駒の価値（どこにでも打てる柔軟性の分だけ盤上より高い）
HAND_PIECE_VALUES: dict[PieceType, int] = {
    PieceType.ROOK: 1200,
    PieceType.BISHOP: 1100,
    PieceType.GOLD: 550,
    PieceType.SILVER: 500,
    PieceType.KNIGHT: 400,
    PieceType.LANCE: 350,
    PieceType.PAWN: 150,
}

CHECK_PENALTY = 150
MISSING_KING_SCORE = -100000

# ---------------------------------------------------------------------------
# Piece-square tables（先手視点。後手は段を反転して引く）
# ---------------------------------------------------------------------------

_PAWN_PST = (
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (50, 50, 50, 50, 50, 50, 50, 50, 50),
    (30, 30, 30, 30, 30, 30, 30, 30, 30),
    (20, 20, 20, 25, 25, 25, 20, 20, 20),
    (10, 10, 15, 20, 20, 20, 15, 10, 10),
    (5, 5, 5, 10, 10, 10, 5, 5, 5),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
)

_SILVER_PST = (
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (20, 20, 20, 20, 20, 20, 20, 20, 20),
    (15, 15, 15, 15, 15, 15, 15, 15, 15),
    (10, 15, 20, 25, 25, 25, 20, 15, 10),
    (5, 10, 15, 20, 20, 20, 15, 10, 5),
    (0, 5, 10, 15, 15, 15, 10, 5, 0),
    (0, 0, 5, 10, 10, 10, 5, 0, 0),
    (0, 0, 0, 5, 5, 5, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
)

# 金は守りに使うことが多いので自陣寄りが高い
_GOLD_PST = (
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (10, 10, 10, 10, 10, 10, 10, 10, 10),
    (5, 5, 5, 5, 5, 5, 5, 5, 5),
    (0, 5, 5, 10, 10, 10, 5, 5, 0),
    (0, 0, 5, 5, 5, 5, 5, 0, 0),
    (0, 5, 10, 10, 10, 10, 10, 5, 0),
    (5, 10, 15, 15, 15, 15, 15, 10, 5),
    (10, 15, 20, 20, 20, 20, 20, 15, 10),
    (5, 10, 10, 10, 10, 10, 10, 10, 5),
)

_ROOK_PST = (
    (20, 20, 20, 20, 20, 20, 20, 20, 20),
    (30, 30, 30, 30, 30, 30, 30, 30, 30),
    (20, 20, 20, 20, 20, 20, 20, 20, 20),
    (10, 10, 10, 10, 10, 10, 10, 10, 10),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0, 0, 0),
    (10, 10, 10, 10, 10, 10, 10, 10, 10),
    (5, 5, 5, 5, 5, 5, 5, 5, 5),
)

_BISHOP_PST = (
    (10, 5, 5, 5, 5, 5, 5, 5, 10),
    (5, 15, 10, 10, 10, 10, 10, 15, 5),
    (5, 10, 15, 15, 15, 15, 15, 10, 5),
    (5, 10, 15, 20, 20, 20, 15, 10, 5),
    (5, 10, 15, 20, 25, 20, 15, 10, 5),
    (5, 10, 15, 20, 20, 20, 15, 10, 5),
    (5, 10, 15, 15, 15, 15, 15, 10, 5),
    (5, 15, 10, 10, 10, 10, 10, 15, 5),
    (10, 5, 5, 5, 5, 5, 5, 5, 10),
)


def _scaled(table: tuple[tuple[int, ...], ...], factor: float) -> tuple[tuple[int, ...], ...]:
    return tuple(tuple(int(v * factor) for v in row) for row in table)


PIECE_SQUARE_TABLES: dict[PieceType, tuple[tuple[int, ...], ...]] = {
    PieceType.PAWN: _PAWN_PST,
    PieceType.PRO_PAWN: _PAWN_PST,
    PieceType.SILVER: _SILVER_PST,
    PieceType.PRO_SILVER: _SILVER_PST,
    PieceType.GOLD: _GOLD_PST,
    PieceType.PRO_KNIGHT: _GOLD_PST,
    PieceType.PRO_LANCE: _GOLD_PST,
    PieceType.ROOK: _ROOK_PST,
    PieceType.DRAGON: _ROOK_PST,
    PieceType.BISHOP: _BISHOP_PST,
    PieceType.HORSE: _BISHOP_PST,
    PieceType.KNIGHT: _scaled(_SILVER_PST, 0.8),
    PieceType.LANCE: _scaled(_PAWN_PST, 0.7),
}


def position_bonus(piece_type: PieceType, row: int, col: int, owner: Player) -> int:
    """駒の位置ボーナス（玉は0）。"""
    table = PIECE_SQUARE_TABLES.get(piece_type)
    if table is None:
        return 0
    r = row if owner == Player.SENTE else ROWS - 1 - row
    return table[r][col]


# ---------------------------------------------------------------------------
# King safety
# ---------------------------------------------------------------------------

_NEIGHBOURS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))


@dataclass(frozen=True)
class KingSafety:
    """Components of one side's king safety score."""

    position: int = 0
    defenders: int = 0
    attackers: int = 0
    escape_routes: int = 0
    missing: bool = False

    @property
    def score(self) -> int:
        if self.missing:
            return MISSING_KING_SCORE
        return self.position + self.defenders + self.attackers + self.escape_routes


def _clear_line(board: Board, from_idx: int, to_idx: int) -> bool:
    """2マスが同じ筋・段・斜めにあり、間に駒がなければ True。"""
    r1, c1 = divmod(from_idx, COLS)
    r2, c2 = divmod(to_idx, COLS)
    dr, dc = r2 - r1, c2 - c1
    if dr != 0 and dc != 0 and abs(dr) != abs(dc):
        return False
    step_r = (dr > 0) - (dr < 0)
    step_c = (dc > 0) - (dc < 0)
    r, c = r1 + step_r, c1 + step_c
    while (r, c) != (r2, c2):
        if board.squares[r * COLS + c] is not None:
            return False
        r, c = r + step_r, c + step_c
    return True


def evaluate_king_safety(board: Board, player: Player) -> KingSafety:
    """Score how well player's king is sheltered.

    玉の安全度:
    - 自陣3段にいれば +80、その先2段なら +40、それより前に出ていれば -50
    - 周囲8マスの味方の駒: 金・銀・成り小駒は +25、その他は +10
    - 周囲8マスの空きマス（逃げ道）: +10
    - 敵の飛車系が同じ筋・段に、角系が斜めに、間に駒なしで利いていれば -40 / -30
    """
    king_idx = board.find_king(player)
    if king_idx is None:
        return KingSafety(missing=True)

    king_row, king_col = divmod(king_idx, COLS)
    depth = ROWS - 1 - king_row if player == Player.SENTE else king_row
    if depth <= 2:
        position = 80
    elif depth <= 4:
        position = 40
    else:
        position = -50

    defenders = 0
    escape_routes = 0
    for dr, dc in _NEIGHBOURS:
        nr, nc = king_row + dr, king_col + dc
        if not (0 <= nr < ROWS and 0 <= nc < COLS):
            continue
        piece = board.squares[nr * COLS + nc]
        if piece is None:
            escape_routes += 10
        elif piece.owner == player:
            defenders += 25 if piece.piece_type in GOLD_LIKE else 10

    attackers = 0
    for idx, piece in board.pieces(player.opponent):
        pt = piece.piece_type
        if pt not in MAJOR_PIECES:
            continue
        row, col = divmod(idx, COLS)
        if pt in ROOK_LIKE and (row == king_row or col == king_col) and _clear_line(board, idx, king_idx):
            attackers -= 40
        if (
            pt in BISHOP_LIKE
            and abs(row - king_row) == abs(col - king_col)
            and _clear_line(board, idx, king_idx)
        ):
            attackers -= 30

    return KingSafety(position, defenders, attackers, escape_routes)


def evaluate_activity(board: Board, player: Player) -> int:
    """大駒は前に出ているほど、成り駒は1枚ごとに加点する。"""
    activity = 0
    for idx, piece in board.pieces(player):
        pt = piece.piece_type
        if pt in MAJOR_PIECES:
            row = idx // COLS
            advance = ROWS - 1 - row if player == Player.SENTE else row
            activity += advance * 3
        if pt.is_promoted:
            activity += 15
    return activity


# ---------------------------------------------------------------------------
# Entering king (入玉) points
# ---------------------------------------------------------------------------


def nyugyoku_points(board: Board, player: Player) -> int:
    """入玉宣言法の点数（敵陣3段の駒 + 持ち駒、大駒5点・小駒1点、玉は除く）。

    宣言勝ちの判定は行わず、形勢の参考情報として表示するだけ。
    """
    points = 0
    for idx, piece in board.pieces(player):
        if piece.piece_type == PieceType.KING:
            continue
        if in_promotion_zone(player, idx // COLS):
            points += 5 if piece.piece_type in MAJOR_PIECES else 1
    for pt in board.hands[player.value]:
        points += 5 if pt in MAJOR_PIECES else 1
    return points


# ---------------------------------------------------------------------------
# Total evaluation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EvaluationBreakdown:
    """Score components, all from sente's point of view."""

    material: int
    position: int
    king_safety: tuple[KingSafety, KingSafety]
    activity: tuple[int, int]
    check: int
    entering_points: tuple[int, int] = (0, 0)

    @property
    def score(self) -> int:
        sente_safety, gote_safety = self.king_safety
        return (
            self.material
            + self.position
            + (sente_safety.score - gote_safety.score)
            + (self.activity[0] - self.activity[1])
            + self.check
        )


def _board_of(position: Board | ShogiState) -> Board:
    return position.board if isinstance(position, ShogiState) else position


def material_balance(board: Board) -> int:
    score = 0
    for piece in board.squares:
        if piece is not None:
            score += PIECE_VALUES[piece.piece_type] * piece.owner.sign
    for player in Player:
        for pt in board.hands[player.value]:
            score += HAND_PIECE_VALUES[pt] * player.sign
    return score


def evaluate_position(position: Board | ShogiState) -> EvaluationBreakdown:
    """Evaluate the position (positive favors sente).

    盤面を総合評価する。
    """
    board = _board_of(position)

    positional = 0
    for idx, piece in enumerate(board.squares):
        if piece is None:
            continue
        row, col = divmod(idx, COLS)
        positional += position_bonus(piece.piece_type, row, col, piece.owner) * piece.owner.sign

    check = 0
    if is_in_check(board, Player.SENTE):
        check -= CHECK_PENALTY
    if is_in_check(board, Player.GOTE):
        check += CHECK_PENALTY

    return EvaluationBreakdown(
        material=material_balance(board),
        position=positional,
        king_safety=(
            evaluate_king_safety(board, Player.SENTE),
            evaluate_king_safety(board, Player.GOTE),
        ),
        activity=(
            evaluate_activity(board, Player.SENTE),
            evaluate_activity(board, Player.GOTE),
        ),
        check=check,
        entering_points=(
            nyugyoku_points(board, Player.SENTE),
            nyugyoku_points(board, Player.GOTE),
        ),
    )


def quick_evaluate(position: Board | ShogiState) -> int:
    """駒の価値だけの高速評価。"""
    return material_balance(_board_of(position))


def evaluation_text(score: int) -> str:
    """形勢を日本語で表現する。"""
    if score > 1000:
        return "先手優勢"
    if score > 300:
        return "先手有利"
    if score > 100:
        return "先手やや有利"
    if score > -100:
        return "互角"
    if score > -300:
        return "後手やや有利"
    if score > -1000:
        return "後手有利"
    return "後手優勢"
