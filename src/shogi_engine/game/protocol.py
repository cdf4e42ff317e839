"""Read-only view of a game in progress.

対局状態を外から見るときのインタフェース。

ランダムプレイヤーやポリシー提案者のように、局面の中身を自分で解析しない
利用者はこのプロトコルだけに依存する。合法手の列挙・適用・終局判定は
すべて ShogiState 側の責務。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import torch

if TYPE_CHECKING:
    from shogi_engine.game.moves import Move
    from shogi_engine.game.result import GameResult
    from shogi_engine.game.types import Player


@runtime_checkable
class GameState(Protocol):
    """What a move chooser may ask of a position."""

    @property
    def player(self) -> Player:
        """手番のプレイヤー。"""
        ...

    @property
    def is_check(self) -> bool:
        ...

    @property
    def position_key(self) -> str:
        """千日手判定に使う局面文字列（手番・持ち駒込み）。"""
        ...

    @property
    def result(self) -> GameResult:
        ...

    @property
    def is_terminal(self) -> bool:
        ...

    def legal_moves(self) -> list[Move]:
        """完全合法手（盤上の手が先、打つ手が後）。"""
        ...

    def legal_actions(self) -> list[int]:
        """legal_moves() を行動インデックスに変換したもの。"""
        ...

    def apply_move(self, move: Move) -> GameState:
        """手を適用した新しい状態を返す。元の状態は変化しない。"""
        ...

    def to_tensor_planes(self) -> torch.Tensor:
        ...
