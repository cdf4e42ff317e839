"""FastAPI web application for playing shogi against the engine.

FastAPI を使った将棋エンジン Web API。
UI（外部の描画・入力担当）は、ここで返した合法手の中からしか手を指せない。

エンドポイント:
  POST /api/new-game  新規対局を開始（ゲームIDを返す）
  GET  /api/state/{id}  現在の局面情報を取得
  GET  /api/legal-moves/{id}  合法手（盤上の手・打つ手）の一覧
  POST /api/move  プレイヤーが手を指す（エンジンが応答して次局面を返す）
  POST /api/engine-move/{id}  手番側のエンジンが1手指す（エンジン同士の観戦用）
  POST /api/resign/{id}  手番側が投了する
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from shogi_engine.advisor.base import consult_advisor
from shogi_engine.advisor.policy import PolicyAdvisor
from shogi_engine.advisor.session import AdvisorSession
from shogi_engine.engine.config import Strength
from shogi_engine.engine.evaluation import evaluate_position, evaluation_text
from shogi_engine.engine.random_player import random_move
from shogi_engine.engine.search import choose_move
from shogi_engine.errors import ShogiError
from shogi_engine.game.display import format_board, move_to_text
from shogi_engine.game.moves import DropMove, Move, encode_move
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import Player

logger = logging.getLogger(__name__)

app = FastAPI(title="Shogi Engine")

# 対局情報のインメモリストレージ（サーバ再起動で消える簡易実装）
_games: dict[str, dict[str, Any]] = {}

EngineFn = Callable[[ShogiState, AdvisorSession], Move]


class NewGameRequest(BaseModel):
    """新規対局リクエストのスキーマ。"""

    engine: str = "search"  # 後手のエンジン種別: "search", "policy", "random"
    strength: Strength = Strength.INTERMEDIATE  # "search" の強さ
    sente_type: str = "human"  # 先手の種別: "human" or エンジン種別（エンジン同士の観戦モード）
    position: str | None = None  # 開始局面（正規化文字列）。省略時は平手


class MoveRequest(BaseModel):
    """指し手リクエストのスキーマ。"""

    game_id: str  # 対局ID（/api/new-game で取得）
    move: int  # 手の行動インデックス（/api/legal-moves の action）


def _get_engine_fn(engine: str, strength: Strength) -> EngineFn:
    """Get the engine move function based on type."""
    if engine == "random":
        return lambda state, session: random_move(state)
    if engine == "search":
        return lambda state, session: choose_move(state, strength).move
    if engine == "policy":
        advisor = PolicyAdvisor()

        def policy_move(state: ShogiState, session: AdvisorSession) -> Move:
            return consult_advisor(state, advisor, session).move

        return policy_move
    msg = f"Unknown engine type: {engine}"
    raise ValueError(msg)


def _move_to_dict(move: Move) -> dict[str, Any]:
    if isinstance(move, DropMove):
        origin = None
    else:
        origin = str(move.origin)
    return {
        "action": encode_move(move),
        "type": "drop" if isinstance(move, DropMove) else "board",
        "from": origin,
        "to": str(move.destination),
        "piece": move.piece_type.name,
        "promote": move.promote,
        "text": move_to_text(move),
    }


def _state_to_dict(state: ShogiState) -> dict[str, Any]:
    """Convert game state to JSON-serializable dict.

    局面情報を JSON 形式（辞書）に変換する。
    """
    board = state.board
    squares: list[dict[str, Any] | None] = []
    for piece in board.squares:
        if piece is None:
            squares.append(None)
        else:
            squares.append(
                {
                    "type": piece.piece_type.value,  # 駒種インデックス
                    "owner": piece.owner.value,  # 所有者（0=先手, 1=後手）
                    "name": piece.piece_type.name,
                    "promoted": piece.promoted,
                }
            )
    evaluation = evaluate_position(state)
    return {
        "position": state.position_key,  # 正規化文字列
        "current_player": state.current_player,  # 手番（0=先手, 1=後手）
        "move_count": state.move_count,
        "phase": state.phase.value,
        "is_check": state.is_check,
        "is_terminal": state.is_terminal,
        "result": state.result.kind.value,
        "result_text": state.result.describe(),
        "winner": state.winner,  # 勝者（None=対局中・引き分け）
        "legal_moves": state.legal_actions(),
        "squares": squares,  # 81要素
        "hands": [
            [pt.name for pt in board.hands[Player.SENTE.value]],
            [pt.name for pt in board.hands[Player.GOTE.value]],
        ],
        "evaluation": evaluation.score,
        "evaluation_text": evaluation_text(evaluation.score),
        "entering_points": list(evaluation.entering_points),  # 入玉宣言法の点数（参考）
        "board_display": format_board(board),
        "last_move": _move_to_dict(state.last_move) if state.last_move is not None else None,
    }


def _get_game(game_id: str) -> dict[str, Any]:
    game = _games.get(game_id)
    if game is None:
        raise HTTPException(404, "Game not found")
    return game


def _engine_reply(game: dict[str, Any]) -> Move:
    state: ShogiState = game["state"]
    fn: EngineFn | None = game["sente_fn"] if state.player == Player.SENTE else game["gote_fn"]
    if fn is None:
        raise HTTPException(400, "Current player is human, use /api/move instead")
    move = fn(state, game["session"])
    game["state"] = state.apply_move(move)
    return move


def _log_if_over(game_id: str, state: ShogiState) -> None:
    if state.is_terminal:
        logger.info("Game %s finished after %d moves: %s", game_id, state.move_count, state.result.describe())


@app.post("/api/new-game")
async def new_game(req: NewGameRequest) -> dict[str, Any]:
    """新規対局を開始する。"""
    game_id = str(uuid.uuid4())[:8]  # 短いIDを生成

    try:
        state = ShogiState.from_position(req.position) if req.position else ShogiState()
        sente_fn = None if req.sente_type == "human" else _get_engine_fn(req.sente_type, req.strength)
        gote_fn = _get_engine_fn(req.engine, req.strength)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc

    # セッション（アドバイザ用の文脈）は対局ごとに新しく作る
    _games[game_id] = {
        "state": state,
        "sente_fn": sente_fn,  # None = 人間
        "gote_fn": gote_fn,
        "session": AdvisorSession(),
    }
    logger.info("New game %s: engine=%s strength=%s", game_id, req.engine, req.strength.value)

    return {"game_id": game_id, "state": _state_to_dict(state)}


@app.get("/api/state/{game_id}")
async def get_state(game_id: str) -> dict[str, Any]:
    """現在の局面情報を取得する（ページ再読み込み時などに使用）。"""
    return _state_to_dict(_get_game(game_id)["state"])


@app.get("/api/legal-moves/{game_id}")
async def get_legal_moves(game_id: str) -> dict[str, Any]:
    """盤上の手と打つ手の合法手一覧。UI はこの action だけを /api/move に送る。"""
    state: ShogiState = _get_game(game_id)["state"]
    return {
        "board_moves": [_move_to_dict(m) for m in state.board_moves()],
        "drops": [_move_to_dict(m) for m in state.drops()],
    }


@app.post("/api/move")
async def make_move(req: MoveRequest) -> dict[str, Any]:
    """プレイヤーの手を受け取り、エンジンが応答して次の局面を返す。"""
    game = _get_game(req.game_id)
    state: ShogiState = game["state"]

    if state.is_terminal:
        raise HTTPException(400, "Game is already over")
    if req.move not in state.legal_actions():
        raise HTTPException(400, f"Illegal move: {req.move}")

    try:
        state = state.apply_action(req.move)
    except ShogiError as exc:
        raise HTTPException(400, str(exc)) from exc
    game["state"] = state

    # ゲームが終わっていなければエンジンが応答
    engine_move = None
    if not state.is_terminal:
        engine_move = _engine_reply(game)
    _log_if_over(req.game_id, game["state"])

    return {
        "state": _state_to_dict(game["state"]),
        "player_move": req.move,
        "engine_move": _move_to_dict(engine_move) if engine_move is not None else None,
    }


@app.post("/api/engine-move/{game_id}")
async def engine_move(game_id: str) -> dict[str, Any]:
    """手番側のエンジンが1手指す（エンジン同士の観戦モード）。"""
    game = _get_game(game_id)
    state: ShogiState = game["state"]
    if state.is_terminal:
        raise HTTPException(400, "Game is already over")

    moved_by = state.current_player
    move = _engine_reply(game)
    _log_if_over(game_id, game["state"])
    return {
        "state": _state_to_dict(game["state"]),
        "move": _move_to_dict(move),
        "moved_by": moved_by,
    }


@app.post("/api/resign/{game_id}")
async def resign(game_id: str) -> dict[str, Any]:
    """手番側が投了する。"""
    game = _get_game(game_id)
    state: ShogiState = game["state"]
    if state.is_terminal:
        raise HTTPException(400, "Game is already over")
    game["state"] = state.resign()
    _log_if_over(game_id, game["state"])
    return _state_to_dict(game["state"])


def main() -> None:
    """Run the web server.

    `shogi-web` または `python -m shogi_engine.web.app` で起動する。
    """
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
