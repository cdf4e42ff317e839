"""CLI entry point for shogi-engine: Human vs engine.

コマンドラインで動く本将棋対局プログラム。
プレイヤー（先手）対エンジン（後手）で対局できる。

起動方法: `shogi-cli --strength advanced`
"""

from __future__ import annotations

import argparse
import logging

from shogi_engine.engine.config import Strength
from shogi_engine.engine.search import choose_move
from shogi_engine.errors import ShogiError
from shogi_engine.game.display import format_board, move_to_text
from shogi_engine.game.state import ShogiState
from shogi_engine.game.types import Player


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Play shogi against the search engine")
    ap.add_argument(
        "--strength",
        choices=[s.value for s in Strength],
        default=Strength.INTERMEDIATE.value,
        help="engine strength tier",
    )
    ap.add_argument("--position", type=str, default=None, help="start from a canonical position string")
    ap.add_argument("--verbose", action="store_true", help="show the engine's thinking and debug logs")
    return ap.parse_args(argv)


def _read_move(state: ShogiState) -> ShogiState | None:
    """合法手一覧を表示して番号入力を受け付ける。中断されたら None。"""
    moves = state.legal_moves()
    print("Legal moves:")
    for i, m in enumerate(moves):
        print(f"  {i}: {move_to_text(m)}")
    print()

    # 入力検証ループ（正しい番号が入力されるまで繰り返す）
    while True:
        try:
            choice = input("Your move (number, r=resign): ").strip()
            if choice == "r":
                return state.resign()
            idx = int(choice)
            if 0 <= idx < len(moves):
                return state.apply_move(moves[idx])
            print(f"Invalid: choose 0-{len(moves) - 1}")
        except ValueError:
            print("Enter a number.")
        except (EOFError, KeyboardInterrupt):
            print("\nGame aborted.")
            return None


def main(argv: list[str] | None = None) -> None:
    """Run a Human (SENTE) vs engine (GOTE) game.

    人間（先手）対エンジン（後手）の対局を実行する。

    ゲームの流れ:
    1. 盤面を表示
    2. 合法手一覧を表示して番号入力を求める
    3. エンジンが応答する
    4. 終局まで繰り返す
    """
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    strength = Strength(args.strength)

    try:
        state = ShogiState.from_position(args.position) if args.position else ShogiState()
    except ShogiError as exc:
        print(f"Invalid position: {exc}")
        return

    print("=== 本将棋 ===")
    print(f"You are SENTE (▲). Engine is GOTE (△, marked v), strength: {strength.label}")
    print()

    while not state.is_terminal:
        print(format_board(state.board))
        if state.is_check:
            print("王手！")
        print()

        if state.player == Player.SENTE:
            next_state = _read_move(state)
            if next_state is None:
                return
            state = next_state
        else:
            result = choose_move(state, strength)
            if args.verbose:
                for line in result.thinking:
                    print(f"  {line}")
            print(f"Engine plays: {move_to_text(result.move)}")
            state = state.apply_move(result.move)

        print()

    # 終局: 結果を表示
    print(format_board(state.board))
    print()
    print(state.result.describe())
    winner = state.winner
    if winner == Player.SENTE:
        print("You win!")
    elif winner == Player.GOTE:
        print("Engine wins!")
    else:
        print("Draw!")


if __name__ == "__main__":
    main()
