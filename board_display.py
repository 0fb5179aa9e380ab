import chess
from colored import back, fore

from common import COLOR_SCHEMES, COLOR_SCHEME_DEFAULT, PIECE_STYLE_DEFAULT

DISPLAY = {
    'solid': {'R': '♜', 'N': '♞', 'B': '♝', 'Q': '♛', 'K': '♚', 'P': '♟',},
    'outline': {'R': '♖', 'N': '♘', 'B': '♗', 'Q': '♕', 'K': '♔', 'P': '♙',}
}
SQUARE_COL = {0: 'light', 1: 'dark'}
PIECE_COL = {chess.WHITE: 'white', chess.BLACK: 'black'}


def render(board: chess.Board,
           scheme: str = COLOR_SCHEME_DEFAULT,
           style: str = PIECE_STYLE_DEFAULT) -> str:
    # scheme 'none' draws plain glyphs without ANSI escapes
    res = []
    colors = COLOR_SCHEMES[scheme] if scheme != 'none' else None
    for rank in range(7, -1, -1):
        row = []
        for file in range(8):
            sq_col = int(not((rank + file) % 2))
            piece = board.piece_at(chess.square(file, rank))
            glyph = DISPLAY[style][piece.symbol().upper()] if piece else ' '
            if colors:
                row.append(
                    f"{back(colors[SQUARE_COL[sq_col]])}"
                    f"{fore(colors[PIECE_COL[piece.color if piece else chess.BLACK]])}"
                    f"{glyph:1s}")
            else:
                row.append(f"{glyph:1s}")
        if colors:
            row.append(f"{back('black')}{fore('white')}")
        res.append(" ".join(row))
    return "\n".join(res)
