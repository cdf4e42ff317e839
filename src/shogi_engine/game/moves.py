"""Legal move generation for 本将棋.

合法手生成。盤上の駒を動かす手（BoardMove）と持ち駒を打つ手（DropMove）を扱う。

処理の流れ:
  1. movement.raw_moves で到達可能マスを列挙（王手は無視）
  2. 成り・不成の候補を展開（成りが強制される手は成りのみ）
  3. 仮に指してみて自玉に王手がかかっていないものだけを残す
  4. 持ち駒は 二歩・行き所のない駒・打ち歩詰め・王手放置 を除外する

Move encoding (from×to approach, ニューラルネット・Web API 用):
  Board moves (no promotion):   from_idx * 81 + to_idx          (range 0..6560)
  Board moves (with promotion): 6561 + from_idx * 81 + to_idx   (range 6561..13121)
  Drop moves:                   13122 + piece_type_idx * 81 + to_idx (range 13122..13688)
    piece_type_idx: 0=Pawn..6=Rook (7 droppable types)

  Total action space: 13122 + 567 = 13689
"""

from __future__ import annotations

from dataclasses import dataclass

from shogi_engine.errors import IllegalMoveError, PromotionError
from shogi_engine.game.board import Board, Piece
from shogi_engine.game.movement import (
    is_dead_square,
    is_square_attacked,
    raw_moves,
)
from shogi_engine.game.types import (
    COLS,
    HAND_PIECE_TYPES,
    NUM_SQUARES,
    PROMOTION_MAP,
    PieceType,
    Player,
    Position,
    in_promotion_zone,
)

ACTION_SPACE = 13689

_PROMO_MOVE_BASE = NUM_SQUARES * NUM_SQUARES  # 6561
_DROP_MOVE_BASE = 2 * NUM_SQUARES * NUM_SQUARES  # 13122


@dataclass(frozen=True)
class BoardMove:
    """A board-to-board relocation.

    盤上の駒を動かす手。captured は取る駒の駒種（取らない手は None）。
    """

    from_idx: int
    to_idx: int
    piece_type: PieceType
    captured: PieceType | None = None
    promote: bool = False

    @property
    def origin(self) -> Position:
        return Position.from_index(self.from_idx)

    @property
    def destination(self) -> Position:
        return Position.from_index(self.to_idx)

    @property
    def is_capture(self) -> bool:
        return self.captured is not None


@dataclass(frozen=True)
class DropMove:
    """A placement from the reserve.

    持ち駒を打つ手。打った駒は常に未成。
    """

    to_idx: int
    piece_type: PieceType

    # BoardMove と同じように扱えるようにするための属性
    captured = None
    promote = False

    @property
    def destination(self) -> Position:
        return Position.from_index(self.to_idx)

    @property
    def is_capture(self) -> bool:
        return False


Move = BoardMove | DropMove


# ---------------------------------------------------------------------------
# Action encoding
# ---------------------------------------------------------------------------


def encode_board_move(from_idx: int, to_idx: int, promote: bool = False) -> int:
    if promote:
        return _PROMO_MOVE_BASE + from_idx * NUM_SQUARES + to_idx
    return from_idx * NUM_SQUARES + to_idx


def encode_drop_move(piece_type: PieceType, to_idx: int) -> int:
    pt_index = HAND_PIECE_TYPES.index(piece_type)
    return _DROP_MOVE_BASE + pt_index * NUM_SQUARES + to_idx


def encode_move(move: Move) -> int:
    """Move を行動インデックス（0〜13688）に変換する。"""
    if isinstance(move, DropMove):
        return encode_drop_move(move.piece_type, move.to_idx)
    return encode_board_move(move.from_idx, move.to_idx, move.promote)


def decode_move(board: Board, action: int) -> Move:
    """Turn an action index back into a Move on the given board.

    行動インデックスを Move に戻す。駒種・取る駒は盤面から補う。
    範囲外や空きマスからの移動は IllegalMoveError。
    合法手かどうかの判定はしない（呼び出し側が合法手集合と照合する）。
    """
    if not 0 <= action < ACTION_SPACE:
        msg = f"Action index out of range: {action}"
        raise IllegalMoveError(msg)

    if action >= _DROP_MOVE_BASE:
        pt_index, to_idx = divmod(action - _DROP_MOVE_BASE, NUM_SQUARES)
        return DropMove(to_idx=to_idx, piece_type=HAND_PIECE_TYPES[pt_index])

    promote = action >= _PROMO_MOVE_BASE
    adjusted = action - _PROMO_MOVE_BASE if promote else action
    from_idx, to_idx = divmod(adjusted, NUM_SQUARES)
    piece = board.squares[from_idx]
    if piece is None:
        msg = f"No piece on {Position.from_index(from_idx)}"
        raise IllegalMoveError(msg)
    target = board.squares[to_idx]
    return BoardMove(
        from_idx=from_idx,
        to_idx=to_idx,
        piece_type=piece.piece_type,
        captured=target.piece_type if target is not None else None,
        promote=promote,
    )


# ---------------------------------------------------------------------------
# Promotion resolver
# ---------------------------------------------------------------------------


def can_promote_move(piece_type: PieceType, player: Player, from_row: int, to_row: int) -> bool:
    """Promotion is possible when entering, moving inside, or leaving the zone.

    敵陣3段に入る・敵陣内で動く・敵陣から出る手で、成れる駒種なら成れる。
    """
    if not piece_type.can_promote:
        return False
    return in_promotion_zone(player, from_row) or in_promotion_zone(player, to_row)


def must_promote(piece_type: PieceType, player: Player, to_row: int) -> bool:
    """Check if promotion is mandatory (piece has no further moves)."""
    return is_dead_square(piece_type, to_row, player)


def promotion_options(piece_type: PieceType, player: Player, from_row: int, to_row: int) -> tuple[bool, ...]:
    """成り・不成の候補を返す（成りが先）。

    成れない手 → (False,)、任意 → (True, False)、強制 → (True,)
    """
    if not can_promote_move(piece_type, player, from_row, to_row):
        return (False,)
    if must_promote(piece_type, player, to_row):
        return (True,)
    return (True, False)


# ---------------------------------------------------------------------------
# Applying moves
# ---------------------------------------------------------------------------


def apply_move(board: Board, player: Player, move: Move) -> Board:
    """手を適用した新しい Board を返す（持ち駒の増減も含む）。"""
    if isinstance(move, DropMove):
        return _apply_drop(board, player, move)
    return _apply_board_move(board, player, move)


def _apply_board_move(board: Board, player: Player, move: BoardMove) -> Board:
    """Apply a board move (with or without promotion)."""
    piece = board.squares[move.from_idx]
    if piece is None or piece.owner != player:
        msg = f"{player.name} has no piece on {move.origin}"
        raise IllegalMoveError(msg)

    new_type = piece.piece_type
    if move.promote:
        if not new_type.can_promote:
            msg = f"{new_type.name} cannot promote"
            raise PromotionError(msg)
        new_type = PROMOTION_MAP[new_type]

    # Capture
    target = board.squares[move.to_idx]
    new_board = board
    if target is not None:
        if target.owner == player:
            msg = f"{move.destination} is occupied by {player.name}'s own piece"
            raise IllegalMoveError(msg)
        new_board = new_board.add_to_hand(player, target.piece_type)

    squares = list(new_board.squares)
    squares[move.from_idx] = None
    squares[move.to_idx] = Piece(new_type, player)
    return Board(squares=tuple(squares), hands=new_board.hands)


def _apply_drop(board: Board, player: Player, move: DropMove) -> Board:
    """Apply a drop move."""
    if board.squares[move.to_idx] is not None:
        msg = f"Cannot drop on occupied square {move.destination}"
        raise IllegalMoveError(msg)
    new_board = board.remove_from_hand(player, move.piece_type)
    squares = list(new_board.squares)
    squares[move.to_idx] = Piece(move.piece_type, player)
    return Board(squares=tuple(squares), hands=new_board.hands)


def _relocated(board: Board, from_idx: int, to_idx: int) -> Board:
    """王手判定専用の軽量コピー（持ち駒・成りは王の安全に影響しないので省略）。"""
    squares = list(board.squares)
    squares[to_idx] = squares[from_idx]
    squares[from_idx] = None
    return Board(squares=tuple(squares), hands=board.hands)


def _dropped(board: Board, to_idx: int, piece: Piece) -> Board:
    squares = list(board.squares)
    squares[to_idx] = piece
    return Board(squares=tuple(squares), hands=board.hands)


# ---------------------------------------------------------------------------
# Check and checkmate
# ---------------------------------------------------------------------------


def is_in_check(board: Board, player: Player) -> bool:
    """Check if player's king is under attack.

    玉がない盤面（テスト用の局面など）では False を返す。
    """
    king_idx = board.find_king(player)
    if king_idx is None:
        return False
    return is_square_attacked(board, king_idx, player.opponent)


def is_checkmate(board: Board, player: Player, include_drops: bool = True) -> bool:
    """Return True when player is in check and has no escape.

    詰み判定。王手されていなければ False。
    逃げ方（玉が逃げる・取る・合駒）が1つでも見つかった時点で False を返す。

    include_drops=False のときは持ち駒による合駒を考えない。
    打ち歩詰めの判定から呼ばれる場合の合駒判定では、打ち歩詰めの再チェックをしない
    （相互再帰を止めるため）。
    """
    if not is_in_check(board, player):
        return False

    # 1. 駒を動かして王手を回避できるか
    for from_idx, piece in board.pieces(player):
        for to_idx in raw_moves(board, from_idx, piece.piece_type, player):
            if not is_in_check(_relocated(board, from_idx, to_idx), player):
                return False

    # 2. 持ち駒を打って王手を回避できるか
    if include_drops:
        for pt in _hand_types(board, player):
            for to_idx in range(NUM_SQUARES):
                drop = DropMove(to_idx=to_idx, piece_type=pt)
                if is_legal_drop(board, drop, player, check_drop_mate=False):
                    return False

    return True


# ---------------------------------------------------------------------------
# Legality
# ---------------------------------------------------------------------------


def is_legal_board_move(board: Board, move: BoardMove, player: Player) -> bool:
    """駒を動かす手が合法かチェック（自玉を王手に晒さない）。

    成りの可否・行き所のない駒の判定も含めて確認する。
    """
    piece = board.squares[move.from_idx]
    if piece is None or piece.owner != player or piece.piece_type != move.piece_type:
        return False
    if move.to_idx not in raw_moves(board, move.from_idx, piece.piece_type, player):
        return False
    from_row, to_row = move.from_idx // COLS, move.to_idx // COLS
    if move.promote not in promotion_options(piece.piece_type, player, from_row, to_row):
        return False
    return not is_in_check(_relocated(board, move.from_idx, move.to_idx), player)


def is_legal_drop(board: Board, move: DropMove, player: Player, check_drop_mate: bool = True) -> bool:
    """Check a drop against the reserve and placement rules.

    駒を打つ手が合法かチェック。判定順:
      (a) 持ち駒を持っているか
      (b) 打つマスが空いているか
      (c) 行き所のない駒にならないか（打つ駒は常に未成）
      (d) 二歩にならないか
      (e) 打ち歩詰めにならないか（check_drop_mate=True のとき）
      (f) 自玉に王手がかかったままにならないか
    """
    pt = move.piece_type
    if board.hand_count(player, pt) <= 0:
        return False
    if board.squares[move.to_idx] is not None:
        return False

    row, col = divmod(move.to_idx, COLS)
    if is_dead_square(pt, row, player):
        return False
    if pt == PieceType.PAWN and board.count_pawns_in_column(player, col) > 0:
        return False

    new_board = _dropped(board, move.to_idx, Piece(pt, player))

    # 歩による王手は隣接した王手なので合駒では防げない。よって合駒を除いた詰み判定で十分
    if (
        check_drop_mate
        and pt == PieceType.PAWN
        and is_checkmate(new_board, player.opponent, include_drops=False)
    ):
        return False

    return not is_in_check(new_board, player)


def is_legal_move(board: Board, move: Move, player: Player) -> bool:
    if isinstance(move, DropMove):
        return is_legal_drop(board, move, player)
    return is_legal_board_move(board, move, player)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def legal_moves(board: Board, player: Player) -> list[Move]:
    """Generate all legal moves (board moves first, then drops)."""
    moves: list[Move] = []
    moves.extend(legal_board_moves(board, player))
    moves.extend(legal_drops(board, player))
    return moves


def legal_board_moves(board: Board, player: Player, captures_only: bool = False) -> list[BoardMove]:
    """盤上の駒を動かす合法手を全て生成する。

    captures_only=True なら駒を取る手だけ（静止探索用）。
    """
    moves: list[BoardMove] = []
    for from_idx, piece in board.pieces(player):
        pt = piece.piece_type
        from_row = from_idx // COLS
        for to_idx in raw_moves(board, from_idx, pt, player):
            target = board.squares[to_idx]
            if captures_only and target is None:
                continue
            if is_in_check(_relocated(board, from_idx, to_idx), player):
                continue
            captured = target.piece_type if target is not None else None
            for promote in promotion_options(pt, player, from_row, to_idx // COLS):
                moves.append(BoardMove(from_idx, to_idx, pt, captured, promote))
    return moves


def legal_moves_from(board: Board, player: Player, from_idx: int) -> list[BoardMove]:
    """指定マスの駒の合法手（UI のハイライト表示用）。"""
    return [m for m in legal_board_moves(board, player) if m.from_idx == from_idx]


def legal_drops(board: Board, player: Player) -> list[DropMove]:
    """Generate drop moves with nifu (二歩), dead-piece and 打ち歩詰め restrictions."""
    drops: list[DropMove] = []
    for pt in _hand_types(board, player):
        for to_idx in range(NUM_SQUARES):
            drop = DropMove(to_idx=to_idx, piece_type=pt)
            if is_legal_drop(board, drop, player):
                drops.append(drop)
    return drops


def _hand_types(board: Board, player: Player) -> list[PieceType]:
    """持ち駒の駒種（重複なし、HAND_PIECE_TYPES の順）。"""
    hand = board.hands[player.value]
    return [pt for pt in HAND_PIECE_TYPES if pt in hand]
