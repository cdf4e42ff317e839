"""Types and constants for 本将棋 (Shogi, 9x9).

本将棋（9×9盤）の基本型・定数定義。
駒は14種類（未成7種 + 成り6種 + 王将）。

座標は2系統ある:
- 内部表現: row 0〜8（上端=後手の後段）、col 0〜8（左端=9筋）
- 人間向け表記: 筋 file 1〜9（右から左）、段 rank 1〜9（上から下）
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, unique

ROWS = 9
COLS = 9
NUM_SQUARES = ROWS * COLS  # 81マス


@unique
class Player(IntEnum):
    """Player identifiers.

    先手（SENTE）は下側から上に向かって進む（row 8 → row 0）。
    後手（GOTE）は上側から下に向かって進む（row 0 → row 8）。
    """

    SENTE = 0  # 先手
    GOTE = 1   # 後手

    @property
    def opponent(self) -> Player:
        """相手プレイヤーを返す。"""
        return Player(1 - self.value)

    @property
    def sign(self) -> int:
        """評価値の符号（先手 +1、後手 -1）。"""
        return 1 if self == Player.SENTE else -1


@unique
class PieceType(IntEnum):
    """Piece types in 本将棋（14種類）.

    値は to_tensor_planes() でのチャンネルインデックスに対応する。
    0〜6: 未成駒、7: 王将、8〜13: 成り駒
    """

    PAWN = 0         # 歩
    LANCE = 1        # 香
    KNIGHT = 2       # 桂
    SILVER = 3       # 銀
    GOLD = 4         # 金
    BISHOP = 5       # 角
    ROOK = 6         # 飛
    KING = 7         # 玉/王
    PRO_PAWN = 8     # と（成り歩）
    PRO_LANCE = 9    # 成香
    PRO_KNIGHT = 10  # 成桂
    PRO_SILVER = 11  # 成銀
    HORSE = 12       # 馬（成り角）
    DRAGON = 13      # 龍（成り飛）

    @property
    def is_promoted(self) -> bool:
        """成り駒なら True。"""
        return self in UNPROMOTION_MAP

    @property
    def can_promote(self) -> bool:
        """まだ成れる駒種なら True（金・玉・成り駒は False）。"""
        return self in PROMOTION_MAP

    @property
    def base(self) -> PieceType:
        """成り前の駒種（持ち駒に戻すときの駒種）。"""
        return UNPROMOTION_MAP.get(self, self)


@unique
class GamePhase(Enum):
    """対局の進行段階（手数で判定する）。"""

    OPENING = "opening"        # 序盤
    MIDDLEGAME = "middlegame"  # 中盤
    ENDGAME = "endgame"        # 終盤


# 成り変換テーブル: 未成駒 → 成り駒
PROMOTION_MAP: dict[PieceType, PieceType] = {
    PieceType.PAWN: PieceType.PRO_PAWN,
    PieceType.LANCE: PieceType.PRO_LANCE,
    PieceType.KNIGHT: PieceType.PRO_KNIGHT,
    PieceType.SILVER: PieceType.PRO_SILVER,
    PieceType.BISHOP: PieceType.HORSE,
    PieceType.ROOK: PieceType.DRAGON,
}

# 逆変換: 成り駒 → 元の駒種（取られた駒を持ち駒に戻す際に使用）
UNPROMOTION_MAP: dict[PieceType, PieceType] = {v: k for k, v in PROMOTION_MAP.items()}

# 持ち駒として使える駒種（未成の非玉駒、7種）
HAND_PIECE_TYPES = [
    PieceType.PAWN, PieceType.LANCE, PieceType.KNIGHT,
    PieceType.SILVER, PieceType.GOLD, PieceType.BISHOP, PieceType.ROOK,
]

# 金と同じ動きをする駒（玉の守り駒として評価が高い）
GOLD_LIKE: frozenset[PieceType] = frozenset({
    PieceType.GOLD,
    PieceType.SILVER,
    PieceType.PRO_PAWN,
    PieceType.PRO_LANCE,
    PieceType.PRO_KNIGHT,
    PieceType.PRO_SILVER,
})

# 飛車系・角行系（大駒）
ROOK_LIKE: frozenset[PieceType] = frozenset({PieceType.ROOK, PieceType.DRAGON})
BISHOP_LIKE: frozenset[PieceType] = frozenset({PieceType.BISHOP, PieceType.HORSE})
MAJOR_PIECES: frozenset[PieceType] = ROOK_LIKE | BISHOP_LIKE


@dataclass(frozen=True, order=True)
class Position:
    """A square in human-facing coordinates.

    人間向けの座標（筋 file 1〜9、段 rank 1〜9）。
    例: 先手の初期位置の玉は Position(5, 9)（5九玉）。

    内部インデックスとの対応:
        row = rank - 1
        col = 9 - file
    """

    file: int
    rank: int

    def __post_init__(self) -> None:
        if not (1 <= self.file <= 9 and 1 <= self.rank <= 9):
            msg = f"Position out of range: file={self.file}, rank={self.rank}"
            raise ValueError(msg)

    @property
    def row(self) -> int:
        return self.rank - 1

    @property
    def col(self) -> int:
        return COLS - self.file

    @property
    def index(self) -> int:
        """squares タプル上のインデックス（row * 9 + col）。"""
        return self.row * COLS + self.col

    @classmethod
    def from_row_col(cls, row: int, col: int) -> Position:
        return cls(file=COLS - col, rank=row + 1)

    @classmethod
    def from_index(cls, idx: int) -> Position:
        return cls.from_row_col(idx // COLS, idx % COLS)

    def __str__(self) -> str:
        return f"{self.file}{self.rank}"


def determine_game_phase(move_count: int) -> GamePhase:
    """手数から序盤・中盤・終盤を判定する。"""
    if move_count < 30:
        return GamePhase.OPENING
    if move_count < 80:
        return GamePhase.MIDDLEGAME
    return GamePhase.ENDGAME


def in_promotion_zone(player: Player, row: int) -> bool:
    """Check if a row is in the promotion zone (enemy's 3 ranks)."""
    if player == Player.SENTE:
        return row <= 2
    return row >= 6
