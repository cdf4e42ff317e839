"""Terminal display and Japanese move text for 本将棋."""

from __future__ import annotations

from collections.abc import Sequence

from shogi_engine.game.board import Board
from shogi_engine.game.moves import DropMove, Move
from shogi_engine.game.types import COLS, ROWS, GamePhase, PieceType, Player, Position

# Display characters for pieces
_PIECE_CHARS: dict[PieceType, str] = {
    PieceType.PAWN: "歩",
    PieceType.LANCE: "香",
    PieceType.KNIGHT: "桂",
    PieceType.SILVER: "銀",
    PieceType.GOLD: "金",
    PieceType.BISHOP: "角",
    PieceType.ROOK: "飛",
    PieceType.KING: "玉",
    PieceType.PRO_PAWN: "と",
    PieceType.PRO_LANCE: "杏",
    PieceType.PRO_KNIGHT: "圭",
    PieceType.PRO_SILVER: "全",
    PieceType.HORSE: "馬",
    PieceType.DRAGON: "龍",
}

_RANK_KANJI = ["一", "二", "三", "四", "五", "六", "七", "八", "九"]
_FILE_WIDE = ["１", "２", "３", "４", "５", "６", "７", "８", "９"]

# 持ち駒の表示順（飛角金銀桂香歩）
_HAND_ORDER = (
    PieceType.ROOK, PieceType.BISHOP, PieceType.GOLD, PieceType.SILVER,
    PieceType.KNIGHT, PieceType.LANCE, PieceType.PAWN,
)

_PHASE_NAMES = {
    GamePhase.OPENING: "序盤",
    GamePhase.MIDDLEGAME: "中盤",
    GamePhase.ENDGAME: "終盤",
}

PLAYER_MARKS = {Player.SENTE: "▲", Player.GOTE: "△"}
PLAYER_NAMES = {Player.SENTE: "先手", Player.GOTE: "後手"}


def piece_char(piece_type: PieceType) -> str:
    return _PIECE_CHARS[piece_type]


def format_board(board: Board) -> str:
    """Format the board for terminal display."""
    lines: list[str] = []

    # Gote's hand
    lines.append(f"後手持駒: {format_hand(board, Player.GOTE)}")
    lines.append("  ９ ８ ７ ６ ５ ４ ３ ２ １")
    lines.append("+--+--+--+--+--+--+--+--+--+")

    for r in range(ROWS):
        row_str = "|"
        for c in range(COLS):
            piece = board.piece_at(r, c)
            if piece is None:
                row_str += "  |"
            elif piece.owner == Player.GOTE:
                row_str += f"v{_PIECE_CHARS[piece.piece_type]}|"
            else:
                row_str += f" {_PIECE_CHARS[piece.piece_type]}|"
        lines.append(f"{row_str} {_RANK_KANJI[r]}")
        lines.append("+--+--+--+--+--+--+--+--+--+")

    # Sente's hand
    lines.append(f"先手持駒: {format_hand(board, Player.SENTE)}")

    return "\n".join(lines)


def format_hand(board: Board, player: Player) -> str:
    """持ち駒を「飛 角 歩3」のように表示する。なければ「なし」。"""
    pieces: list[str] = []
    for pt in _HAND_ORDER:
        count = board.hand_count(player, pt)
        if count == 0:
            continue
        char = _PIECE_CHARS[pt]
        pieces.append(char if count == 1 else f"{char}{count}")
    return " ".join(pieces) if pieces else "なし"


def square_text(pos: Position) -> str:
    """マスを「７六」のような棋譜表記にする。"""
    return f"{_FILE_WIDE[pos.file - 1]}{_RANK_KANJI[pos.rank - 1]}"


def move_to_text(move: Move) -> str:
    """Japanese move notation such as ７六歩(77) or ５五角打.

    成る手は「成」を付ける（例: ２三歩成(24)）。
    """
    dest = square_text(move.destination)
    char = _PIECE_CHARS[move.piece_type]
    if isinstance(move, DropMove):
        return f"{dest}{char}打"
    promote = "成" if move.promote else ""
    return f"{dest}{char}{promote}({move.origin})"


def format_moves(moves: Sequence[Move], start: int = 0) -> list[str]:
    """棋譜の行リスト（「1手目 ▲７六歩(77)」形式）。start は最初の手の通し番号-1。"""
    lines: list[str] = []
    for i, move in enumerate(moves, start=start):
        mark = PLAYER_MARKS[Player(i % 2)]
        lines.append(f"{i + 1}手目 {mark}{move_to_text(move)}")
    return lines


def describe_position(
    board: Board,
    player: Player,
    move_count: int,
    phase: GamePhase,
    in_check: bool,
) -> str:
    """Human-readable summary of a position for the advisor collaborator.

    アドバイザに渡す局面説明（手数・局面・手番・盤面・持ち駒）。
    """
    lines = [
        "【ゲーム情報】",
        f"手数: {move_count}手目",
        f"局面: {_PHASE_NAMES[phase]}",
        f"手番: {PLAYER_NAMES[player]}（{PLAYER_MARKS[player]}）",
    ]
    if in_check:
        lines.append("※王手がかかっています")
    lines.append("")
    lines.append("【現在の盤面】")
    lines.append(format_board(board))
    return "\n".join(lines)
