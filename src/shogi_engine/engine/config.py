"""Search configuration and strength tiers.

探索エンジンの設定。対局の強さ（Strength）ごとに探索深さを切り替える。
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for the alpha-beta search.

    Attributes:
        depth:             通常探索の深さ（手数）
        quiescence_depth:  静止探索で駒取りを読む最大の深さ
        delta_margin:      デルタ枝刈りの余裕幅（取る駒の価値にこの値を足しても
                           alpha に届かない駒取りは読まない）
        capture_weight:    手の並び替えで取られる駒の価値に掛ける重み（MVV-LVA）
        promotion_bonus:   手の並び替えで成る手に加える点数
        mate_score:        詰みの評価値（残り深さが大きい＝早い詰みほど絶対値が大きい）
        mate_depth_bonus:  残り深さ1あたりに詰みの評価値へ加える点数
    """

    depth: int = 2
    quiescence_depth: int = 6
    delta_margin: int = 200
    capture_weight: int = 10
    promotion_bonus: int = 300
    mate_score: int = 100000
    mate_depth_bonus: int = 1000

    def __post_init__(self) -> None:
        if self.depth < 1:
            msg = f"Search depth must be at least 1, got {self.depth}"
            raise ValueError(msg)
        if self.quiescence_depth < 0:
            msg = f"Quiescence depth must not be negative, got {self.quiescence_depth}"
            raise ValueError(msg)

    def with_depth(self, depth: int) -> SearchConfig:
        return replace(self, depth=depth)


@unique
class Strength(Enum):
    """対局の強さ。初級はヒューリスティック、それ以外は探索深さが変わる。"""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def depth(self) -> int | None:
        """探索深さ（初級は探索しないので None）。"""
        return _DEPTHS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_DEPTHS: dict[Strength, int | None] = {
    Strength.BEGINNER: None,
    Strength.INTERMEDIATE: 2,
    Strength.ADVANCED: 3,
    Strength.EXPERT: 4,
}

_LABELS: dict[Strength, str] = {
    Strength.BEGINNER: "初級",
    Strength.INTERMEDIATE: "中級",
    Strength.ADVANCED: "上級",
    Strength.EXPERT: "最強",
}

DEFAULT_SEARCH_CONFIG = SearchConfig()
