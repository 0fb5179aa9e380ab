import logging

import chess

GLOBAL_LOGGING_LEVEL = logging.INFO
SIDES = (chess.WHITE, chess.BLACK)
SIDE_REPR = {chess.WHITE: 'white', chess.BLACK: 'black'}

# Print running totals after this many completed games
REPORT_EVERY = 100_000

# The d, e and f files, excluding both back ranks. At least one of the
# mover's bishops has to be in here for the bishops to flank two pawns.
BISHOP_BAND = 0x0038383838383800

# Ranks 2 through 7, scanned low to high
RANK_MASKS = (
    0x000000000000FF00,
    0x0000000000FF0000,
    0x00000000FF000000,
    0x000000FF00000000,
    0x0000FF0000000000,
    0x00FF000000000000,
)

# Board FEN run that is bishop, pawn, pawn, bishop for the side to move:
# the mover's bishops wrap the opponent's pawns. Upper case is white.
FLANKS = dict()

for side in SIDES:
    bishop = chess.piece_symbol(chess.BISHOP)
    pawn = chess.piece_symbol(chess.PAWN)
    if side == chess.WHITE:
        bishop = bishop.upper()
    else:
        pawn = pawn.upper()
    FLANKS[side] = f"{bishop}{pawn}{pawn}{bishop}"


COLOR_SCHEMES = {
    # black & white: piece colors
    # dark & light: square colors
    'black_white': (black_white := {
        'black': 'black',
        'white': 'white',
        'dark': 'black',
        'light': 'white',
    }),
    'bw': black_white,
    'green_gold': {
        'black': 'dark_green',
        'white': 'gold_1',
        'dark': 'dark_olive_green_1b',
        'light': 'tan',
    },
    'blue_purple': {
        'black': 'purple_1a',
        'white': 'gold_3a',
        'dark': 'dark_blue',
        'light': 'sky_blue_1',
    },
}
COLOR_SCHEME_DEFAULT = 'blue_purple'
PIECE_STYLE_DEFAULT = 'solid'
