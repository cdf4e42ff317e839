"""Canonical position encoding (SFEN style).

局面の正規化文字列。千日手判定はこの文字列の一致で行う。

形式: "<盤面> <手番> <持ち駒>"
  盤面: 一段目（row 0）から九段目まで "/" 区切り。空きマスは連続数、
        先手は大文字・後手は小文字、成り駒は "+" を前置する。
  手番: "b"（先手）または "w"（後手）
  持ち駒: 先手→後手、飛角金銀桂香歩の順。2枚以上なら枚数を前置。両者なしなら "-"

例（平手初期局面）:
  lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL b -
"""

from __future__ import annotations

from shogi_engine.errors import ShogiError
from shogi_engine.game.board import Board, Piece
from shogi_engine.game.types import (
    COLS,
    HAND_PIECE_TYPES,
    PROMOTION_MAP,
    ROWS,
    PieceType,
    Player,
)

_LETTERS: dict[PieceType, str] = {
    PieceType.PAWN: "P",
    PieceType.LANCE: "L",
    PieceType.KNIGHT: "N",
    PieceType.SILVER: "S",
    PieceType.GOLD: "G",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.KING: "K",
}
_FROM_LETTER: dict[str, PieceType] = {v: k for k, v in _LETTERS.items()}

# 持ち駒の表記順（価値の高い順）
_HAND_ORDER = tuple(reversed(HAND_PIECE_TYPES))

_SIDE_TOKENS = {Player.SENTE: "b", Player.GOTE: "w"}
_FROM_SIDE = {v: k for k, v in _SIDE_TOKENS.items()}

STARTING_POSITION = "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL b -"


def _piece_token(piece: Piece) -> str:
    pt = piece.piece_type
    token = "+" + _LETTERS[pt.base] if pt.is_promoted else _LETTERS[pt]
    return token if piece.owner == Player.SENTE else token.lower()


def encode_board(board: Board) -> str:
    ranks: list[str] = []
    for r in range(ROWS):
        parts: list[str] = []
        empties = 0
        for c in range(COLS):
            piece = board.squares[r * COLS + c]
            if piece is None:
                empties += 1
                continue
            if empties:
                parts.append(str(empties))
                empties = 0
            parts.append(_piece_token(piece))
        if empties:
            parts.append(str(empties))
        ranks.append("".join(parts))
    return "/".join(ranks)


def encode_hands(board: Board) -> str:
    parts: list[str] = []
    for player in Player:
        for pt in _HAND_ORDER:
            count = board.hand_count(player, pt)
            if count == 0:
                continue
            letter = _LETTERS[pt] if player == Player.SENTE else _LETTERS[pt].lower()
            parts.append(f"{count}{letter}" if count > 1 else letter)
    return "".join(parts) or "-"


def encode_position(board: Board, player: Player) -> str:
    """Return the canonical string for board + hands + side to move.

    同じ盤面・持ち駒・手番からは必ず同じ文字列が得られる
    （持ち駒はソート済みタプルなので並び順の揺れもない）。
    """
    return f"{encode_board(board)} {_SIDE_TOKENS[player]} {encode_hands(board)}"


def decode_position(sfen: str) -> tuple[Board, Player]:
    """Parse a canonical string back into (Board, side to move).

    末尾に手数が付いた通常の SFEN も受け付ける（手数は無視する）。
    不正な文字列は ShogiError。正規形でない文字列（持ち駒の順序違い、
    "1P" のような明示的な1枚、"45" のような空きマスの分割）も拒否するので、
    受け付けた文字列は encode_position で必ず同じ文字列に戻る。
    """
    fields = sfen.split()
    if len(fields) not in (3, 4):
        msg = f"Expected '<board> <side> <hands>', got {sfen!r}"
        raise ShogiError(msg)
    board_part, side_part, hand_part = fields[:3]

    if side_part not in _FROM_SIDE:
        msg = f"Unknown side token: {side_part!r}"
        raise ShogiError(msg)

    squares = _decode_board(board_part)
    sente_hand, gote_hand = _decode_hands(hand_part)
    board = Board(
        squares=tuple(squares),
        hands=(tuple(sorted(sente_hand)), tuple(sorted(gote_hand))),
    )
    if encode_board(board) != board_part or encode_hands(board) != hand_part:
        msg = f"Position is not in canonical form: {sfen!r}"
        raise ShogiError(msg)
    return board, _FROM_SIDE[side_part]


def _decode_board(text: str) -> list[Piece | None]:
    ranks = text.split("/")
    if len(ranks) != ROWS:
        msg = f"Expected {ROWS} ranks, got {len(ranks)}"
        raise ShogiError(msg)

    squares: list[Piece | None] = []
    for rank in ranks:
        row: list[Piece | None] = []
        promoted = False
        for ch in rank:
            if ch == "+":
                promoted = True
                continue
            if ch.isdigit():
                if promoted:
                    raise ShogiError(f"'+' before digit in rank {rank!r}")
                row.extend([None] * int(ch))
                continue
            pt = _FROM_LETTER.get(ch.upper())
            if pt is None:
                raise ShogiError(f"Unknown piece letter {ch!r}")
            if promoted:
                if pt not in PROMOTION_MAP:
                    raise ShogiError(f"{pt.name} cannot be promoted")
                pt = PROMOTION_MAP[pt]
                promoted = False
            owner = Player.SENTE if ch.isupper() else Player.GOTE
            row.append(Piece(pt, owner))
        if len(row) != COLS:
            msg = f"Rank {rank!r} describes {len(row)} squares"
            raise ShogiError(msg)
        squares.extend(row)

    return squares


def _decode_hands(text: str) -> tuple[list[PieceType], list[PieceType]]:
    hands: tuple[list[PieceType], list[PieceType]] = ([], [])
    if text == "-":
        return hands

    count = ""
    for ch in text:
        if ch.isdigit():
            count += ch
            continue
        pt = _FROM_LETTER.get(ch.upper())
        if pt is None or pt == PieceType.KING:
            raise ShogiError(f"Invalid hand piece {ch!r}")
        owner = Player.SENTE if ch.isupper() else Player.GOTE
        hands[owner.value].extend([pt] * int(count or "1"))
        count = ""
    if count:
        raise ShogiError(f"Dangling count in hands {text!r}")
    return hands
