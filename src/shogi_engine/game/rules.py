"""Check, checkmate and stalemate detection.

王手・詰み・ステイルメイトの判定。

is_in_check / is_checkmate は打ち歩詰めの判定と相互に呼び合うため
moves モジュールに実装し、ここから公開する。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shogi_engine.game.board import Board
from shogi_engine.game.movement import attacks_square
from shogi_engine.game.moves import is_checkmate, is_in_check, legal_moves
from shogi_engine.game.types import Player

if TYPE_CHECKING:
    from shogi_engine.game.state import ShogiState

__all__ = [
    "checking_pieces",
    "has_legal_move",
    "is_checkmate",
    "is_in_check",
    "is_stalemate",
]


def checking_pieces(board: Board, player: Player) -> list[int]:
    """player の玉に王手をかけている相手の駒のマスインデックス。"""
    king_idx = board.find_king(player)
    if king_idx is None:
        return []
    enemy = player.opponent
    return [
        idx
        for idx, piece in board.pieces(enemy)
        if attacks_square(board, idx, piece.piece_type, enemy, king_idx)
    ]


def has_legal_move(board: Board, player: Player) -> bool:
    return len(legal_moves(board, player)) > 0


def is_stalemate(state: ShogiState) -> bool:
    """Side to move is not in check yet has no legal move at all.

    本将棋では合法手が完全に0になることは通常ないが、
    局面を組み立てた場合などに起こりうるので判定しておく。
    """
    player = state.player
    if is_in_check(state.board, player):
        return False
    return not has_legal_move(state.board, player)
