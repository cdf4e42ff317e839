"""Exceptions raised by the shogi engine.

エンジンが送出する例外。

契約違反（呼び出し側のバグ）は ShogiError のサブクラスとして即座に送出する。
合法手がない・打てない・アドバイザが応答しない等の「ゲーム上ありうる結果」は
例外ではなく空リスト・bool・フォールバック手で表現する。
"""

from __future__ import annotations


class ShogiError(ValueError):
    """Base class for contract violations in the rules engine."""


class EmptyHandError(ShogiError):
    """持ち駒にない駒を取り除こうとした。"""


class IllegalMoveError(ShogiError):
    """合法手集合に含まれない手を適用しようとした。"""


class PromotionError(ShogiError):
    """成れない駒を成らせようとした。"""


class GameOverError(ShogiError):
    """終局後の局面に手を適用しようとした。"""


class SearchCancelled(Exception):  # noqa: N818
    """探索がキャンセルトークンによって中断された。"""


class AdvisorError(Exception):
    """Advisor collaborator failed (unavailable, timed out, malformed reply).

    アドバイザ（外部の手提案者）の失敗。呼び出し側はフォールバック手で続行する。
    """
