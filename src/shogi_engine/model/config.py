"""Policy network configuration.

方策ネットワークの設定。入力は ShogiState.to_tensor_planes()（43チャンネル 9×9）、
出力は全ての手の行動インデックス（13689）に対するロジット。
"""

from __future__ import annotations

from dataclasses import dataclass

from shogi_engine.game.moves import ACTION_SPACE
from shogi_engine.game.types import COLS, ROWS

STATE_PLANES = 43


@dataclass(frozen=True)
class PolicyConfig:
    """Configuration for PolicyNetwork.

    Attributes:
        board_h:      盤面の高さ（行数）
        board_w:      盤面の幅（列数）
        in_channels:  入力特徴プレーン数
        action_size:  行動空間のサイズ（encode_move の値域と一致させる）
        num_blocks:   残差ブロックの数
        channels:     畳み込み層のチャンネル数
    """

    board_h: int = ROWS
    board_w: int = COLS
    in_channels: int = STATE_PLANES
    action_size: int = ACTION_SPACE
    num_blocks: int = 2
    channels: int = 32

    def __post_init__(self) -> None:
        if self.action_size < ACTION_SPACE:
            msg = f"action_size must cover every encoded move ({ACTION_SPACE}), got {self.action_size}"
            raise ValueError(msg)


# 小さな既定構成（学習済み重みがなくても推論が軽い）
DEFAULT_POLICY_CONFIG = PolicyConfig()
