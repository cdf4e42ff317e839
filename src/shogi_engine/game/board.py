"""Board representation for 本将棋 (9x9).

9×9盤の盤面データ構造。
イミュータブルなデータクラスで、変更メソッドは新しいオブジェクトを返す。
探索中に局面を共有しても安全なように、盤面は決して書き換えない。
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from shogi_engine.errors import EmptyHandError, ShogiError
from shogi_engine.game.types import (
    COLS,
    HAND_PIECE_TYPES,
    NUM_SQUARES,
    ROWS,
    PieceType,
    Player,
)


@dataclass(frozen=True)
class Piece:
    """A piece on the board.

    盤面上の駒。種類と所有者を持つ。成りフラグは駒種から導出するので
    「成りフラグと駒種が食い違う」状態は表現できない。
    """

    piece_type: PieceType
    owner: Player

    @property
    def promoted(self) -> bool:
        return self.piece_type.is_promoted


@dataclass(frozen=True)
class Board:
    """Immutable board state for 9x9 本将棋.

    9×9 = 81マスの盤面を表すイミュータブルなデータ構造。

    squares: 81要素のタプル（行優先）。squares[row * COLS + col] でアクセス。
    hands: 2要素のタプル。hands[0]=先手の持ち駒、hands[1]=後手の持ち駒。
           持ち駒は駒種のソート済みタプル（同じ持ち駒なら必ず同じタプルになる）。
    """

    squares: tuple[Piece | None, ...] = field(
        default_factory=lambda: Board._initial_squares()
    )
    hands: tuple[tuple[PieceType, ...], tuple[PieceType, ...]] = ((), ())

    def __post_init__(self) -> None:
        if len(self.squares) != NUM_SQUARES:
            msg = f"Board needs {NUM_SQUARES} squares, got {len(self.squares)}"
            raise ShogiError(msg)
        kings = [p.owner for p in self.squares if p is not None and p.piece_type == PieceType.KING]
        for player in Player:
            if kings.count(player) > 1:
                msg = f"{player.name} has {kings.count(player)} kings on the board"
                raise ShogiError(msg)

    @staticmethod
    def _initial_squares() -> tuple[Piece | None, ...]:
        """Return the standard starting position (平手).

        本将棋の標準初期配置（平手）を返す。

        Row 0 = 後手の後段（上端）、Row 8 = 先手の後段（下端）。
        将棋盤の「9筋」表記と異なり、プログラムでは列0が左（9筋）になる点に注意。
        """
        squares: list[Piece | None] = [None] * NUM_SQUARES

        back_rank = [
            PieceType.LANCE, PieceType.KNIGHT, PieceType.SILVER,
            PieceType.GOLD, PieceType.KING, PieceType.GOLD,
            PieceType.SILVER, PieceType.KNIGHT, PieceType.LANCE,
        ]
        for c, pt in enumerate(back_rank):
            squares[0 * COLS + c] = Piece(pt, Player.GOTE)
            squares[8 * COLS + c] = Piece(pt, Player.SENTE)

        # 後手: 8二飛・2二角 / 先手: 8八角・2八飛
        squares[1 * COLS + 1] = Piece(PieceType.ROOK, Player.GOTE)
        squares[1 * COLS + 7] = Piece(PieceType.BISHOP, Player.GOTE)
        squares[7 * COLS + 1] = Piece(PieceType.BISHOP, Player.SENTE)
        squares[7 * COLS + 7] = Piece(PieceType.ROOK, Player.SENTE)

        for c in range(COLS):
            squares[2 * COLS + c] = Piece(PieceType.PAWN, Player.GOTE)
            squares[6 * COLS + c] = Piece(PieceType.PAWN, Player.SENTE)

        return tuple(squares)

    @classmethod
    def empty(cls) -> Board:
        """駒が1枚もない盤面（詰将棋や局面の組み立てに使う）。"""
        return cls(squares=(None,) * NUM_SQUARES, hands=((), ()))

    @classmethod
    def from_pieces(
        cls,
        pieces: Iterable[tuple[int, int, PieceType, Player]],
        sente_hand: Iterable[PieceType] = (),
        gote_hand: Iterable[PieceType] = (),
    ) -> Board:
        """Build a board from (row, col, piece_type, owner) tuples."""
        squares: list[Piece | None] = [None] * NUM_SQUARES
        for row, col, pt, owner in pieces:
            squares[row * COLS + col] = Piece(pt, owner)
        return cls(
            squares=tuple(squares),
            hands=(tuple(sorted(sente_hand)), tuple(sorted(gote_hand))),
        )

    def piece_at(self, row: int, col: int) -> Piece | None:
        """マス(row, col)の駒を返す。駒がなければ None。"""
        return self.squares[row * COLS + col]

    def set_piece(self, row: int, col: int, piece: Piece | None) -> Board:
        """マス(row, col)の駒を変更した新しい Board を返す。"""
        idx = row * COLS + col
        squares = list(self.squares)
        squares[idx] = piece
        return Board(squares=tuple(squares), hands=self.hands)

    def pieces(self, player: Player) -> Iterator[tuple[int, Piece]]:
        """プレイヤーの盤上の駒を (インデックス, 駒) で列挙する。"""
        for idx, piece in enumerate(self.squares):
            if piece is not None and piece.owner == player:
                yield idx, piece

    def hand_count(self, player: Player, piece_type: PieceType) -> int:
        """持ち駒の枚数を返す。"""
        return self.hands[player.value].count(piece_type)

    def add_to_hand(self, player: Player, piece_type: PieceType) -> Board:
        """Add piece to hand, reverting promoted pieces to base form.

        取った駒を持ち駒に追加する。成り駒は元の駒種に戻す。
        例: 龍（成り飛）を取ったら、飛車として持ち駒に加える。
        """
        base_type = piece_type.base
        if base_type == PieceType.KING:
            raise ShogiError("King cannot be captured into a hand")
        hands = list(self.hands)
        hand = list(hands[player.value])
        hand.append(base_type)
        hand.sort()  # 一意な順序を保つ
        hands[player.value] = tuple(hand)
        return Board(squares=self.squares, hands=(hands[0], hands[1]))

    def remove_from_hand(self, player: Player, piece_type: PieceType) -> Board:
        """持ち駒から1枚取り除いた新しい Board を返す。

        持っていない駒を取り除こうとするのは呼び出し側のバグなので
        EmptyHandError を送出する。
        """
        if piece_type not in HAND_PIECE_TYPES:
            msg = f"{piece_type.name} is not a hand piece type"
            raise EmptyHandError(msg)
        hands = list(self.hands)
        hand = list(hands[player.value])
        if piece_type not in hand:
            msg = f"Cannot remove {piece_type.name} from {player.name} hand: none available"
            raise EmptyHandError(msg)
        hand.remove(piece_type)
        hands[player.value] = tuple(hand)
        return Board(squares=self.squares, hands=(hands[0], hands[1]))

    def find_king(self, player: Player) -> int | None:
        """プレイヤーの王将のマスインデックスを返す。王将がなければ None。

        チェック判定や終局判定に使用する。
        """
        for idx, piece in enumerate(self.squares):
            if (
                piece is not None
                and piece.piece_type == PieceType.KING
                and piece.owner == player
            ):
                return idx
        return None

    def count_pawns_in_column(self, player: Player, col: int) -> int:
        """Count unpromoted pawns of player in a column (for 二歩 check).

        指定列にあるプレイヤーの未成歩の枚数を返す。
        と金（成り歩）は数えない。
        """
        count = 0
        for r in range(ROWS):
            p = self.piece_at(r, col)
            if p is not None and p.owner == player and p.piece_type == PieceType.PAWN:
                count += 1
        return count
