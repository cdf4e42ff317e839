"""Advisor protocol and the re-validating consultation loop.

アドバイザ（言語モデルや方策ネットワークなど、外部の手提案者）との境界。

アドバイザには人間向けの局面説明と順位付きの候補手一覧を渡し、
候補手の番号か手そのものを返してもらう。返ってきた手は必ず合法手集合と照合し、
失敗（例外・タイムアウト・範囲外の番号・非合法手）ならヒューリスティック1位の手で続行する。
アドバイザの失敗は対局を止めない。ログに警告を残すだけ。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from shogi_engine.advisor.session import AdvisorSession
from shogi_engine.engine.ranking import MoveScore, describe_moves, top_moves
from shogi_engine.errors import AdvisorError, GameOverError
from shogi_engine.game.display import describe_position, format_moves, move_to_text
from shogi_engine.game.moves import Move
from shogi_engine.game.state import ShogiState

logger = logging.getLogger(__name__)

FALLBACK_REASON = "アドバイザが利用できないため、評価値上位の手を選択"


@dataclass(frozen=True)
class AdvisorRequest:
    """Everything an advisor may look at. The state is read-only."""

    state: ShogiState
    position_text: str
    candidates: list[MoveScore]
    candidate_lines: list[str]
    history_lines: list[str]
    context_text: str


@dataclass(frozen=True)
class AdvisorReply:
    """Advisor's answer: an index into the candidate list, or a move.

    index は候補手一覧の 0 始まりの番号。index と move の両方があれば index を優先する。
    """

    index: int | None = None
    move: Move | None = None
    reasoning: str = ""
    plan: str | None = None
    opening_name: str | None = None
    threats: list[str] = field(default_factory=list)


@runtime_checkable
class Advisor(Protocol):
    def propose(self, request: AdvisorRequest) -> AdvisorReply:
        """候補手から1手を選ぶ。失敗時は AdvisorError などを送出してよい。"""
        ...


@dataclass(frozen=True)
class AdvisorDecision:
    move: Move
    reasoning: str
    used_fallback: bool
    candidates: list[MoveScore]


def build_request(state: ShogiState, session: AdvisorSession, max_candidates: int = 10) -> AdvisorRequest:
    candidates = top_moves(state, max_candidates)
    return AdvisorRequest(
        state=state,
        position_text=describe_position(
            state.board, state.player, state.move_count, state.phase, state.is_check
        ),
        candidates=candidates,
        candidate_lines=describe_moves(candidates, max_count=len(candidates)),
        history_lines=format_moves(state.moves)[-20:],
        context_text=session.to_text(),
    )


def _resolve(reply: AdvisorReply, request: AdvisorRequest) -> Move:
    """返答を合法手に解決する。解決できなければ AdvisorError。"""
    if reply.index is not None:
        if not 0 <= reply.index < len(request.candidates):
            msg = f"Candidate index {reply.index} out of range (0-{len(request.candidates) - 1})"
            raise AdvisorError(msg)
        return request.candidates[reply.index].move
    if reply.move is not None:
        if reply.move not in request.state.legal_moves():
            msg = f"Advisor proposed an illegal move: {reply.move}"
            raise AdvisorError(msg)
        return reply.move
    raise AdvisorError("Advisor reply contained neither an index nor a move")


def _ask(advisor: Advisor, request: AdvisorRequest, timeout: float | None) -> AdvisorReply:
    if timeout is None:
        return advisor.propose(request)
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        return executor.submit(advisor.propose, request).result(timeout=timeout)
    finally:
        # 応答しないアドバイザを待たずに戻る
        executor.shutdown(wait=False, cancel_futures=True)


def consult_advisor(
    state: ShogiState,
    advisor: Advisor | None,
    session: AdvisorSession,
    max_candidates: int = 10,
    timeout: float | None = None,
) -> AdvisorDecision:
    """Ask the advisor for a move, re-validate it, and fall back when needed.

    advisor が None（未設定）の場合も含め、失敗時はヒューリスティック1位の手を返す。
    選んだ手はセッションの直近手ログに記録する。
    """
    request = build_request(state, session, max_candidates)
    if not request.candidates:
        raise GameOverError("No legal moves available")
    fallback = request.candidates[0].move

    move = fallback
    reasoning = FALLBACK_REASON
    used_fallback = True
    if advisor is not None:
        try:
            reply = _ask(advisor, request, timeout)
            move = _resolve(reply, request)
        except Exception as exc:  # noqa: BLE001  外部の提案者はどんな失敗をしてもよい
            logger.warning("Advisor failed, using fallback %s: %s", move_to_text(fallback), exc)
        else:
            used_fallback = False
            reasoning = reply.reasoning or "アドバイザの選択"
            if reply.plan:
                session.plan = reply.plan
            if reply.opening_name and session.opening_name is None:
                session.opening_name = reply.opening_name
            if reply.threats:
                session.threats = list(reply.threats)

    session.record(state.move_count + 1, move_to_text(move), reasoning)
    return AdvisorDecision(
        move=move,
        reasoning=reasoning,
        used_fallback=used_fallback,
        candidates=request.candidates,
    )
