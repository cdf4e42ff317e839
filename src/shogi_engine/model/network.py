"""Convolutional policy network over the 13689-move action space."""

from __future__ import annotations

from pathlib import Path

import torch
from torch import Tensor, nn

from shogi_engine.model.config import DEFAULT_POLICY_CONFIG, PolicyConfig


def _conv_bn(in_ch: int, out_ch: int, kernel: int) -> nn.Sequential:
    """畳み込み + バッチ正規化（バイアスは BN が持つので畳み込み側は持たない）。"""
    return nn.Sequential(
        nn.Conv2d(in_ch, out_ch, kernel, padding=kernel // 2, bias=False),
        nn.BatchNorm2d(out_ch),
    )


class ResidualBlock(nn.Module):
    """Two 3×3 conv layers with a skip connection."""

    def __init__(self, channels: int) -> None:
        super().__init__()
        self.first = _conv_bn(channels, channels, 3)
        self.second = _conv_bn(channels, channels, 3)

    def forward(self, x: Tensor) -> Tensor:
        out = torch.relu(self.first(x))
        return torch.relu(self.second(out) + x)


class PolicyNetwork(nn.Module):
    """Maps state planes to one logit per encoded move.

    局面テンソル → 各手のロジット。
    価値ヘッドは持たない（手の候補の並び替えにだけ使う）。

    Input:  (batch, in_channels, board_h, board_w)
    Output: (batch, action_size), raw logits
    """

    def __init__(self, config: PolicyConfig = DEFAULT_POLICY_CONFIG) -> None:
        super().__init__()
        self.config = config
        self.stem = _conv_bn(config.in_channels, config.channels, 3)
        self.body = nn.Sequential(*[ResidualBlock(config.channels) for _ in range(config.num_blocks)])
        self.head = _conv_bn(config.channels, 2, 1)
        self.fc = nn.Linear(2 * config.board_h * config.board_w, config.action_size)

    def forward(self, x: Tensor) -> Tensor:
        x = torch.relu(self.stem(x))
        x = self.body(x)
        p = torch.relu(self.head(x))
        return self.fc(p.flatten(start_dim=1))

    @torch.no_grad()
    def legal_logits(self, planes: Tensor, actions: list[int]) -> Tensor:
        """1局面分のテンソルから、指定した行動インデックスのロジットだけを取り出す。"""
        self.eval()
        logits = self(planes.unsqueeze(0))[0]
        return logits[torch.tensor(actions, dtype=torch.long)]

    @classmethod
    def load(cls, path: str | Path, config: PolicyConfig = DEFAULT_POLICY_CONFIG) -> PolicyNetwork:
        """保存済みの重み（state_dict）を読み込む。"""
        net = cls(config)
        state_dict = torch.load(Path(path), map_location="cpu", weights_only=True)
        net.load_state_dict(state_dict)
        net.eval()
        return net

    def save(self, path: str | Path) -> None:
        torch.save(self.state_dict(), Path(path))
