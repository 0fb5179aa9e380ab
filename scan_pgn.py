#!/usr/bin/env python3

import argparse
import logging
import sys
import time
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from box import Box
import chess
import zstandard

import board_display
from common import (
    COLOR_SCHEMES, COLOR_SCHEME_DEFAULT, GLOBAL_LOGGING_LEVEL,
    PIECE_STYLE_DEFAULT, REPORT_EVERY, SIDE_REPR)
from motif import Outcome, detect
from pgn_stream import Event, ScanFault, iter_events, open_archive

logger = logging.getLogger(__name__)

# enter_variation() answers: True means don't descend into the side-line
SKIP = True


class IllegalMoveFault(ScanFault):
    def __init__(self, san: str, board: chess.Board, game_num: int):
        self.san = san
        self.fen = board.fen()
        self.game_num = game_num
        super().__init__(
            f"game {game_num}: {san!r} is not a legal move in {self.fen}")


class GameStats:
    """
    Running totals for one archive file. Every counter only goes up, and
    motifs <= passed <= halfmoves holds after each half-move.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.games = 0
        self.halfmoves = 0
        self.motifs = 0
        self.passed = 0
        self.clock = clock
        self.started = clock()

    def elapsed_ms(self) -> int:
        return int((self.clock() - self.started) * 1000)

    def snapshot(self) -> Box:
        return Box(games=self.games,
                   halfmoves=self.halfmoves,
                   motifs=self.motifs,
                   passed=self.passed,
                   elapsed_ms=self.elapsed_ms(),
                   frozen_box=True)

    def __repr__(self):
        return (f"GameStats(games={self.games}, halfmoves={self.halfmoves}, "
                f"motifs={self.motifs}, passed={self.passed})")


def percent(part: int, whole: int) -> float:
    return part / whole * 100.0 if whole else 0.0


def format_progress(snap: Box) -> str:
    return (f"{snap.games} games, {snap.motifs} flanking bishops, "
            f"{snap.halfmoves} positions, {snap.passed} passed, "
            f"{percent(snap.motifs, snap.halfmoves):.5f}% positions "
            f"{percent(snap.motifs, snap.games):.5f}% games\n"
            f"Took {snap.elapsed_ms} ms.")


def format_summary(path: str, stats: GameStats) -> str:
    return f"{path}: {stats!r}"


class FlankCounter:
    """
    Follows the mainline of each game on a python-chess board and asks the
    detector about every position just before a move is played on it.
    """

    def __init__(self, stats: GameStats,
                 report_every: int = REPORT_EVERY,
                 show: bool = False,
                 colors: str = COLOR_SCHEME_DEFAULT,
                 piece_style: str = PIECE_STYLE_DEFAULT):
        self.stats = stats
        self.report_every = report_every
        self.show = show
        self.colors = colors
        self.piece_style = piece_style
        self.board = chess.Board()
        self.tags: Dict[str, str] = dict()

    def begin_game(self, tags: Optional[Dict[str, str]] = None):
        self.board = chess.Board()
        self.tags = tags or dict()

    def enter_variation(self) -> bool:
        # Side-lines are never played out, only the mainline counts
        return SKIP

    def on_halfmove(self, san: str):
        self.stats.halfmoves += 1

        outcome = detect(self.board)
        if outcome is not Outcome.SKIP:
            self.stats.passed += 1
        if outcome is Outcome.CONFIRMED:
            self.stats.motifs += 1
            self.found()

        try:
            move = self.board.parse_san(san)
        except ValueError as ee:
            # Archives are expected to hold legal games only
            raise IllegalMoveFault(san, self.board, self.stats.games + 1) from ee
        self.board.push(move)

    def found(self):
        logger.debug("Flanking bishops for %s in game %d (%s): %s",
                     SIDE_REPR[self.board.turn], self.stats.games + 1,
                     self.tags.get('Site', '?'), self.board.fen())
        if self.show:
            print(board_display.render(self.board, self.colors, self.piece_style),
                  "\n")

    def end_game(self):
        self.stats.games += 1
        if self.stats.games % self.report_every == 0:
            print(format_progress(self.stats.snapshot()))

    def consume(self, events: Iterable[Tuple[Event, object]],
                limit: int = 0):
        """
        Fold over an event sequence. Whatever sits between a declined
        VARIATION_START and its matching VARIATION_END is dropped, however
        deeply the side-lines nest.
        """
        depth = 0
        for event, payload in events:
            if depth:
                if event is Event.VARIATION_START:
                    depth += 1
                elif event is Event.VARIATION_END:
                    depth -= 1
                continue

            if event is Event.HALFMOVE:
                self.on_halfmove(payload)
            elif event is Event.VARIATION_START:
                if self.enter_variation() is SKIP:
                    depth = 1
            elif event is Event.GAME_START:
                self.begin_game(payload)
            elif event is Event.GAME_END:
                self.end_game()
                if limit and self.stats.games >= limit:
                    break


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        sys.stderr.write('error: %s\n' % message)
        self.print_help(sys.stderr)
        self.exit(2)


def get_args(argv: List[str]) -> Tuple[argparse.Namespace, ArgumentParser]:
    parser = ArgumentParser(
        prog='scan-pgn',
        description='Count flanking bishops, i.e. two bishops wrapping two '
                    'enemy pawns on one rank, across PGN archives '
                    '(plain or .zst).')
    parser.add_argument('paths', metavar='PATH', nargs='*',
                        help="PGN archive(s) to scan in order; '-' is stdin")
    parser.add_argument('--every', '-e', dest='report_every',
                        type=int, action='store', default=REPORT_EVERY,
                        help="Print running totals after this many games")
    parser.add_argument('--limit', '-l', dest='pgn_limit',
                        type=int, action='store', default=0,
                        help="Stop reading each file after this many games")
    parser.add_argument('--show', '-s', dest='show_board',
                        action='store_true', default=False,
                        help="Display the board of every confirmed find")
    parser.add_argument('--colors', '-c', dest='colors',
                        type=str, action='store', default=COLOR_SCHEME_DEFAULT,
                        choices=sorted(COLOR_SCHEMES) + ['none'],
                        help="Pick a color scheme for ANSI console")
    parser.add_argument('--style', '-y', dest='piece_style',
                        type=str, action='store', default=PIECE_STYLE_DEFAULT,
                        choices=sorted(board_display.DISPLAY),
                        help="Choose Unicode piece style: solid or outline")
    parser.add_argument('--verbose', '-v', dest='verbose',
                        action='store_true', default=False,
                        help="Log every find with its game and FEN")

    args = parser.parse_args(argv)
    if args.report_every < 1:
        parser.error("--every must be at least 1")
    return args, parser


def scan_file(path: str, args: argparse.Namespace) -> GameStats:
    stats = GameStats()
    counter = FlankCounter(stats,
                           report_every=args.report_every,
                           show=args.show_board,
                           colors=args.colors,
                           piece_style=args.piece_style)
    with open_archive(path) as stream:
        counter.consume(iter_events(stream), limit=args.pgn_limit)
    return stats


def main(argv: List[str]) -> int:
    args, _ = get_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else GLOBAL_LOGGING_LEVEL,
        format="%(levelname)s %(name)s: %(message)s")

    start_time = time.time()
    for path in args.paths:
        try:
            stats = scan_file(path, args)
        except (OSError, zstandard.ZstdError, ScanFault) as ee:
            logger.error("%s: %s: %s", path, type(ee).__name__, ee)
            return 1
        print(format_summary(path, stats))

    print(f"Took {int((time.time() - start_time) * 1000)} ms.")
    return 0


def cli():
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    cli()
