"""Game result evaluation: checkmate, stalemate and 千日手.

終局判定。手を指すたびに以下の順で判定する（終局状態は以後変化しない）:
  1. 手番側が詰み → 相手の勝ち
  2. 手番側がステイルメイト（王手なし・合法手なし） → 相手の勝ち
  3. 同一局面4回目かつ連続王手の千日手 → 王手をかけ続けた側の負け
  4. 同一局面4回目 → 引き分け
  5. 対局続行
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, unique

from shogi_engine.game.types import Player

REPETITION_LIMIT = 4  # 同一局面が4回現れたら千日手


@unique
class ResultKind(Enum):
    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    REPETITION = "repetition"
    RESIGNATION = "resignation"


@dataclass(frozen=True)
class GameResult:
    """Terminal classification of a game.

    winner は勝者。対局中と千日手の引き分けでは None。
    """

    kind: ResultKind = ResultKind.ONGOING
    winner: Player | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind is not ResultKind.ONGOING

    @property
    def is_draw(self) -> bool:
        return self.kind is ResultKind.REPETITION and self.winner is None

    def describe(self) -> str:
        """結果を日本語で説明する。"""
        if self.kind is ResultKind.ONGOING:
            return "対局中"
        if self.is_draw:
            return "千日手（引き分け）"
        name = "先手" if self.winner == Player.SENTE else "後手"
        reason = {
            ResultKind.CHECKMATE: "詰み",
            ResultKind.STALEMATE: "手詰まり",
            ResultKind.REPETITION: "連続王手の千日手",
            ResultKind.RESIGNATION: "投了",
        }[self.kind]
        return f"{reason}で{name}の勝ち"


ONGOING = GameResult()


def repetition_span(history: Sequence[str]) -> int | None:
    """Index where the current position first appeared among its last 4 occurrences.

    現局面（history の末尾）が4回目の出現なら、4回のうち最初の出現位置を返す。
    まだ4回に達していなければ None。
    """
    current = history[-1]
    occurrences = [i for i, pos in enumerate(history) if pos == current]
    if len(occurrences) < REPETITION_LIMIT:
        return None
    return occurrences[-REPETITION_LIMIT]


def perpetual_checker(check_history: Sequence[bool], start: int) -> int | None:
    """Return which side gave check on every one of its turns since start.

    start 以降の局面のうち、手番側が王手されている局面を調べる。
    戻り値は「王手をかけ続けた側」の手番パリティ:
      0 → 現局面の手番側の相手（現局面で手番側が毎回王手されていた）
      1 → 現局面の手番側（相手が毎回王手されていた）
      None → どちらも王手をかけ続けてはいない
    """
    last = len(check_history) - 1
    span = range(start, last + 1)
    # 現局面と同じ手番の局面（偶数手前）で毎回手番側が王手されている
    if all(check_history[i] for i in span if (last - i) % 2 == 0):
        return 0
    # 相手番の局面（奇数手前）で毎回相手が王手されている
    if all(check_history[i] for i in span if (last - i) % 2 == 1):
        return 1
    return None


def judge(
    player: Player,
    in_check: bool,
    has_legal_moves: bool,
    history: Sequence[str],
    check_history: Sequence[bool],
) -> GameResult:
    """Classify the position whose side to move is player.

    history / check_history は初期局面から現局面までの
    正規化文字列と「手番側が王手されていたか」のフラグ（同じ長さ）。
    """
    if not has_legal_moves:
        # 王手されていれば詰み、そうでなければステイルメイト。どちらも手番側の負け
        kind = ResultKind.CHECKMATE if in_check else ResultKind.STALEMATE
        return GameResult(kind, player.opponent)

    start = repetition_span(history)
    if start is None:
        return ONGOING

    checker = perpetual_checker(check_history, start)
    if checker == 0:
        # 王手をかけ続けた相手の負け
        return GameResult(ResultKind.REPETITION, player)
    if checker == 1:
        return GameResult(ResultKind.REPETITION, player.opponent)
    return GameResult(ResultKind.REPETITION, None)
