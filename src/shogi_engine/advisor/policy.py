"""Advisor backed by the convolutional policy network.

方策ネットワークで候補手を選ぶアドバイザ。
候補手それぞれを行動インデックスに変換し、ロジットが最大の手を選ぶ。
学習済み重みがなければランダム初期化のネットワークを使う（torch.manual_seed で再現可能）。
"""

from __future__ import annotations

import logging
from pathlib import Path

from shogi_engine.advisor.base import AdvisorReply, AdvisorRequest
from shogi_engine.errors import AdvisorError
from shogi_engine.game.moves import encode_move
from shogi_engine.model.config import DEFAULT_POLICY_CONFIG, PolicyConfig
from shogi_engine.model.network import PolicyNetwork

logger = logging.getLogger(__name__)


class PolicyAdvisor:
    """Ranks the heuristic candidates by policy logits."""

    def __init__(self, network: PolicyNetwork | None = None, config: PolicyConfig = DEFAULT_POLICY_CONFIG) -> None:
        self.network = network if network is not None else PolicyNetwork(config)

    @classmethod
    def from_weights(cls, path: str | Path, config: PolicyConfig = DEFAULT_POLICY_CONFIG) -> PolicyAdvisor:
        """重みファイルから作る。読めなければ AdvisorError。"""
        try:
            network = PolicyNetwork.load(path, config)
        except (OSError, RuntimeError) as exc:
            raise AdvisorError(f"Cannot load policy weights from {path}: {exc}") from exc
        logger.info("Loaded policy weights from %s", path)
        return cls(network)

    def propose(self, request: AdvisorRequest) -> AdvisorReply:
        if not request.candidates:
            raise AdvisorError("No candidates to choose from")
        actions = [encode_move(c.move) for c in request.candidates]
        planes = request.state.to_tensor_planes()
        try:
            logits = self.network.legal_logits(planes, actions)
        except RuntimeError as exc:
            # 入力形状の不一致など
            raise AdvisorError(f"Policy network failed: {exc}") from exc
        best = int(logits.argmax().item())
        return AdvisorReply(
            index=best,
            reasoning=f"方策ネットワークの評価（logit {logits[best].item():.2f}）",
        )
