"""Advisor session context.

アドバイザ（外部の手提案者）に渡す対局ごとの文脈。
採用戦法・現在の方針・直近の指し手の記録を持つ。

グローバル変数にはせず、呼び出し側が明示的に持ち回す。
新しい対局を始めるときは reset() で必ず初期化する。
探索エンジン・ルールエンジンはこのオブジェクトを一切参照しない。
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

MAX_RECENT_MOVES = 15
_REASONING_LIMIT = 100


@dataclass(frozen=True)
class RecentMove:
    move_number: int
    move: str
    reasoning: str


@dataclass
class AdvisorSession:
    """Mutable per-game context consumed only by advisors."""

    opening_name: str | None = None
    plan: str = ""
    threats: list[str] = field(default_factory=list)
    recent_moves: deque[RecentMove] = field(default_factory=lambda: deque(maxlen=MAX_RECENT_MOVES))

    def record(self, move_number: int, move: str, reasoning: str) -> None:
        """指した手を記録する（古いものから捨てて最大15手）。"""
        self.recent_moves.append(RecentMove(move_number, move, reasoning[:_REASONING_LIMIT]))

    def reset(self) -> None:
        """新しい対局の開始時に呼ぶ。"""
        self.opening_name = None
        self.plan = ""
        self.threats.clear()
        self.recent_moves.clear()

    def to_text(self, last: int = 5) -> str:
        """プロンプト用の文脈説明。"""
        lines: list[str] = []
        if self.opening_name:
            lines.append(f"採用戦法: {self.opening_name}")
        if self.plan:
            lines.append(f"現在の方針: {self.plan}")
        if self.threats:
            lines.append(f"警戒: {'、'.join(self.threats)}")
        recent = list(self.recent_moves)[-last:]
        if recent:
            lines.append(f"【過去の判断（直近{len(recent)}手）】")
            lines.extend(f"{m.move_number}手目: {m.move} - {m.reasoning}" for m in recent)
        return "\n".join(lines) if lines else "戦略コンテキストなし"
