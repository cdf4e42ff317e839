"""GameState implementation for 本将棋.

本将棋の対局状態（ゲームツリーのノード）。
盤面・手番に加えて、棋譜・局面履歴（千日手判定用）・王手履歴を持つ。
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import cached_property

import torch

from shogi_engine.errors import GameOverError, IllegalMoveError, ShogiError
from shogi_engine.game.board import Board
from shogi_engine.game.moves import (
    ACTION_SPACE,
    BoardMove,
    DropMove,
    Move,
    decode_move,
    encode_move,
    is_in_check,
)
from shogi_engine.game.moves import apply_move as _apply_move
from shogi_engine.game.moves import legal_board_moves as _legal_board_moves
from shogi_engine.game.moves import legal_drops as _legal_drops
from shogi_engine.game.notation import decode_position, encode_position
from shogi_engine.game.result import GameResult, ResultKind, judge
from shogi_engine.game.types import (
    COLS,
    HAND_PIECE_TYPES,
    ROWS,
    GamePhase,
    Player,
    determine_game_phase,
)


@dataclass(frozen=True)
class ShogiState:
    """Immutable game state for 本将棋 (9x9).

    本将棋の対局状態。GameState プロトコルを実装する。

    history[i] は i 手目を指した後の局面の正規化文字列（history[0] は開始局面）、
    check_history[i] はその局面で手番側が王手されていたか。
    どちらも常に長さ move_count + 1 を保つ。

    合法手・王手・終局判定は必要になった時点で一度だけ計算してキャッシュする
    （探索では静止探索の葉で合法手全体を求めずに済む）。
    """

    board: Board = field(default_factory=Board)
    _current_player: Player = Player.SENTE
    _move_count: int = 0
    moves: tuple[Move, ...] = ()
    history: tuple[str, ...] = ()
    check_history: tuple[bool, ...] = ()
    resigned: Player | None = None

    def __post_init__(self) -> None:
        # 開始局面から作る場合は履歴を自動で埋める
        if not self.history:
            object.__setattr__(
                self, "history", (encode_position(self.board, self._current_player),)
            )
        if not self.check_history:
            object.__setattr__(
                self, "check_history", (is_in_check(self.board, self._current_player),)
            )
        if len(self.history) != self._move_count + 1 or len(self.check_history) != len(self.history):
            msg = (
                f"History length {len(self.history)} does not match "
                f"move count {self._move_count}"
            )
            raise ShogiError(msg)

    @classmethod
    def from_position(cls, sfen: str) -> ShogiState:
        """正規化文字列から対局を始める（手数は0から数え直す）。"""
        board, player = decode_position(sfen)
        return cls(board=board, _current_player=player)

    # ------------------------------------------------------------------
    # Basic properties
    # ------------------------------------------------------------------

    @property
    def action_space_size(self) -> int:
        """行動空間のサイズ（本将棋は 13689 手）。"""
        return ACTION_SPACE

    @property
    def current_player(self) -> int:
        """現在の手番プレイヤー（0=先手, 1=後手）。"""
        return self._current_player.value

    @property
    def player(self) -> Player:
        return self._current_player

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def phase(self) -> GamePhase:
        return determine_game_phase(self._move_count)

    @property
    def position_key(self) -> str:
        """現局面の正規化文字列。"""
        return self.history[-1]

    @property
    def is_check(self) -> bool:
        """手番側が王手されていれば True。"""
        return self.check_history[-1]

    @property
    def last_move(self) -> Move | None:
        return self.moves[-1] if self.moves else None

    # ------------------------------------------------------------------
    # Legal moves
    # ------------------------------------------------------------------

    @cached_property
    def _board_moves(self) -> tuple[BoardMove, ...]:
        return tuple(_legal_board_moves(self.board, self._current_player))

    @cached_property
    def _drops(self) -> tuple[DropMove, ...]:
        return tuple(_legal_drops(self.board, self._current_player))

    def board_moves(self) -> list[BoardMove]:
        """盤上の駒を動かす合法手。終局後は空。"""
        if self.is_terminal:
            return []
        return list(self._board_moves)

    def drops(self) -> list[DropMove]:
        """持ち駒を打つ合法手。終局後は空。"""
        if self.is_terminal:
            return []
        return list(self._drops)

    def legal_moves(self) -> list[Move]:
        """合法手のリストを返す（盤上の手 → 打つ手の順）。

        千日手などで終局した局面では空リストを返す。
        """
        if self.is_terminal:
            return []
        return [*self._board_moves, *self._drops]

    def legal_actions(self) -> list[int]:
        """合法手を行動インデックスで返す（ニューラルネット・Web API 用）。"""
        return [encode_move(m) for m in self.legal_moves()]

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    @cached_property
    def result(self) -> GameResult:
        if self.resigned is not None:
            return GameResult(ResultKind.RESIGNATION, self.resigned.opponent)
        has_moves = len(self._board_moves) > 0 or len(self._drops) > 0
        return judge(
            self._current_player,
            self.is_check,
            has_moves,
            self.history,
            self.check_history,
        )

    @property
    def is_terminal(self) -> bool:
        """ゲームが終局ならば True。"""
        return self.result.is_terminal

    @property
    def winner(self) -> int | None:
        """勝者を返す。対局中・引き分けは None。"""
        winner = self.result.winner
        return winner.value if winner is not None else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def apply_move(self, move: Move) -> ShogiState:
        """Apply a move from the legal set and return the next state.

        合法手集合に含まれない手は IllegalMoveError、終局後は GameOverError。
        """
        if self.is_terminal:
            msg = f"Game is over: {self.result.describe()}"
            raise GameOverError(msg)
        if move not in self.legal_moves():
            msg = f"Illegal move for {self._current_player.name}: {move}"
            raise IllegalMoveError(msg)
        return self.successor(move)

    def successor(self, move: Move) -> ShogiState:
        """legal_moves() から取り出した手を検証なしで適用する（探索用）。"""
        new_board = _apply_move(self.board, self._current_player, move)
        next_player = self._current_player.opponent  # 手番交代
        return ShogiState(
            board=new_board,
            _current_player=next_player,
            _move_count=self._move_count + 1,
            moves=(*self.moves, move),
            history=(*self.history, encode_position(new_board, next_player)),
            check_history=(*self.check_history, is_in_check(new_board, next_player)),
        )

    def apply_action(self, action: int) -> ShogiState:
        """行動インデックスで指す（Web API 用）。"""
        return self.apply_move(decode_move(self.board, action))

    def resign(self) -> ShogiState:
        """手番側が投了した状態を返す。"""
        if self.is_terminal:
            msg = f"Game is over: {self.result.describe()}"
            raise GameOverError(msg)
        return replace(self, resigned=self._current_player)

    # ------------------------------------------------------------------
    # Neural network input
    # ------------------------------------------------------------------

    def to_tensor_planes(self) -> torch.Tensor:
        """Convert to tensor planes for neural network input.

        局面をニューラルネットワーク入力用テンソルに変換する（43チャンネル）。

        Planes（チャンネル）の構成:
        ch.0-13:  現プレイヤーの駒（14駒種）
        ch.14-27: 相手プレイヤーの駒（14駒種）
        ch.28-34: 現プレイヤーの持ち駒数（7種）
        ch.35-41: 相手プレイヤーの持ち駒数（7種）
        ch.42:    手番インジケータ（先手番なら全1）
        """
        planes = torch.zeros(43, ROWS, COLS)
        cp = self._current_player

        for idx, piece in enumerate(self.board.squares):
            if piece is None:
                continue
            r, c = divmod(idx, COLS)
            offset = 0 if piece.owner == cp else 14
            planes[offset + piece.piece_type.value, r, c] = 1.0

        for i, pt in enumerate(HAND_PIECE_TYPES):
            planes[28 + i, :, :] = float(self.board.hand_count(cp, pt))
            planes[35 + i, :, :] = float(self.board.hand_count(cp.opponent, pt))

        if cp == Player.SENTE:
            planes[42, :, :] = 1.0

        return planes
