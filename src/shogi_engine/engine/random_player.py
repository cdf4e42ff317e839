"""Random player: selects a legal move uniformly at random.

ランダムプレイヤー: 合法手の中からランダムに手を選ぶ。

用途:
- ルール実装の動作確認（ランダム対局で合法手生成・終局判定を総当たりに近い形で試す）
- ベースラインとの対戦（ランダムに勝てないエンジンは弱すぎる）
"""

from __future__ import annotations

import random

from shogi_engine.errors import GameOverError
from shogi_engine.game.moves import Move
from shogi_engine.game.protocol import GameState


def random_move(state: GameState, rng: random.Random | None = None) -> Move:
    """Return a random legal move.

    合法手がない場合は GameOverError を送出する（終局局面では呼ばれないはず）。
    rng を渡すとシード付きで再現可能になる。
    """
    moves = state.legal_moves()
    if not moves:
        raise GameOverError("No legal moves available")
    return (rng or random).choice(moves)  # 一様ランダムサンプリング
