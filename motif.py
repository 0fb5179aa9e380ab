from enum import Enum

import chess

from common import BISHOP_BAND, FLANKS, RANK_MASKS


class Outcome(Enum):
    SKIP = 0
    PASSED = 1
    CONFIRMED = 2


def flanking_rank(board: chess.Board):
    """
    Return the first non-back rank mask holding two or more of the mover's
    bishops and two or more of the opponent's pawns, or None.
    """
    bishops = board.pieces_mask(chess.BISHOP, board.turn)
    pawns = board.pieces_mask(chess.PAWN, not board.turn)
    for rank_mask in RANK_MASKS:
        if (chess.popcount(bishops & rank_mask) >= 2 and
                chess.popcount(pawns & rank_mask) >= 2):
            return rank_mask
    return None


def detect(board: chess.Board) -> Outcome:
    """
    Look for the side to move's bishops wrapping two enemy pawns on one
    rank, i.e. B p p B for white to move, b P P b for black to move.

    The two bitboard checks are cheap and throw out nearly every position;
    only the survivors get their board FEN rendered and searched. The FEN
    puts a '/' between ranks and a digit for every run of empty squares,
    so a four-letter substring match is four adjacent squares of one rank.

    Never modifies the board.
    """
    if not board.pieces_mask(chess.BISHOP, board.turn) & BISHOP_BAND:
        return Outcome.SKIP

    if flanking_rank(board) is None:
        return Outcome.SKIP

    if FLANKS[board.turn] in board.board_fen():
        return Outcome.CONFIRMED
    return Outcome.PASSED
