import io
import os
import tempfile
from unittest import TestCase

from parsita import Success
import zstandard

from pgn_parser import SAN, VARIATION, movetext, tag_pair
from pgn_stream import (
    Event, PGNStreamSlicer, PGNSyntaxFault, game_events, iter_events,
    open_archive)

TWO_GAMES = """[Event "Rated Blitz game"]
[Site "https://lichess.org/aaaaaaaa"]
[White "Lasker \\"Em\\" Emanuel"]
[Result "1-0"]

1. e4 { [%clk 0:03:00] } 1... e5 $1 2. Nf3 Nc6 3. Bb5 a6
4. O-O 1-0

[Event "Rated Bullet game"]
[Site "https://lichess.org/bbbbbbbb"]

*
"""


def sans(events):
    return [payload for event, payload in events if event is Event.HALFMOVE]


class TestGrammar(TestCase):
    def parse(self, text):
        result = movetext.parse(text)
        self.assertIsInstance(result, Success, text)
        return result.unwrap()

    def test_tag_pair(self):
        result = tag_pair.parse('[Site "https://lichess.org/aaaaaaaa"]')
        self.assertEqual(result.unwrap(),
                         ('Site', 'https://lichess.org/aaaaaaaa'))

    def test_tag_pair_with_escaped_quotes(self):
        result = tag_pair.parse('[White "Lasker \\"Em\\" Emanuel"]')
        self.assertEqual(result.unwrap(), ('White', 'Lasker "Em" Emanuel'))

    def test_empty_game(self):
        parsed = self.parse("*")
        self.assertEqual(parsed['tokens'], [])
        self.assertEqual(parsed['outcome'], '*')

    def test_moves_comments_and_nags(self):
        parsed = self.parse(
            "1. e4 {best by test} e5 $2 2. Nf3 ; to the end of the line\n"
            "2... Nc6 3. Bb5!? a6?! 1/2-1/2")
        self.assertEqual(parsed['tokens'], [
            (SAN, 'e4'), (SAN, 'e5'), (SAN, 'Nf3'), (SAN, 'Nc6'),
            (SAN, 'Bb5'), (SAN, 'a6')])
        self.assertEqual(parsed['outcome'], '1/2-1/2')

    def test_castling_promotion_and_checks(self):
        parsed = self.parse("1. O-O-O+ 0-0 2. e8=Q exd1=N# 3. R1e2 Qh4xe1?? --!")
        self.assertEqual([tok[1] for tok in parsed['tokens']], [
            'O-O-O+', '0-0', 'e8=Q', 'exd1=N#', 'R1e2', 'Qh4xe1', '--'])
        self.assertIsNone(parsed['outcome'])

    def test_nested_variations(self):
        parsed = self.parse(
            "1. e4 (1. d4 d5 (1... Nf6 2. c4) 2. c4) 1... e5 0-1")
        self.assertEqual(parsed['tokens'], [
            (SAN, 'e4'),
            (VARIATION, [
                (SAN, 'd4'), (SAN, 'd5'),
                (VARIATION, [(SAN, 'Nf6'), (SAN, 'c4')]),
                (SAN, 'c4')]),
            (SAN, 'e5')])
        self.assertEqual(parsed['outcome'], '0-1')

    def test_garbage_fails(self):
        self.assertNotIsInstance(movetext.parse("1. e4 e5 2. Zz9 *"), Success)
        self.assertNotIsInstance(movetext.parse("1. e4 (1. d4 *"), Success)


class TestStream(TestCase):
    def test_slicer_splits_games(self):
        games = list(PGNStreamSlicer(io.StringIO(TWO_GAMES)).next())
        self.assertEqual(len(games), 2)
        tags, moves = games[0]
        self.assertEqual(len(tags), 4)
        self.assertEqual(moves, [
            "1. e4 { [%clk 0:03:00] } 1... e5 $1 2. Nf3 Nc6 3. Bb5 a6",
            "4. O-O 1-0"])
        self.assertEqual(games[1], ([
            '[Event "Rated Bullet game"]',
            '[Site "https://lichess.org/bbbbbbbb"]'], ["*"]))

    def test_slicer_keeps_last_char_without_trailing_newline(self):
        games = list(PGNStreamSlicer(io.StringIO("1. e4 e5 *")).next())
        self.assertEqual(games, [([], ["1. e4 e5 *"])])

    def test_empty_stream(self):
        self.assertEqual(list(iter_events(io.StringIO(""))), [])

    def test_event_order(self):
        events = list(iter_events(io.StringIO(TWO_GAMES)))
        self.assertEqual(events[0][0], Event.GAME_START)
        self.assertEqual(events[0][1]['White'], 'Lasker "Em" Emanuel')
        self.assertEqual(sans(events[:12]),
                         ['e4', 'e5', 'Nf3', 'Nc6', 'Bb5', 'a6', 'O-O'])
        self.assertEqual(events[8], (Event.GAME_END, '1-0'))
        self.assertEqual(events[9:], [
            (Event.GAME_START, {'Event': 'Rated Bullet game',
                                'Site': 'https://lichess.org/bbbbbbbb'}),
            (Event.GAME_END, '*')])

    def test_variation_events_bracket_side_lines(self):
        events = list(game_events([], ["1. e4 (1. d4 (1. c4)) e5 *"]))
        self.assertEqual([event for event, _ in events], [
            Event.GAME_START,
            Event.HALFMOVE,
            Event.VARIATION_START,
            Event.HALFMOVE,
            Event.VARIATION_START,
            Event.HALFMOVE,
            Event.VARIATION_END,
            Event.VARIATION_END,
            Event.HALFMOVE,
            Event.GAME_END])

    def test_syntax_fault_names_game(self):
        stream = io.StringIO(TWO_GAMES + '\n[Event "x"]\n\n1. e4 (((\n')
        with self.assertRaises(PGNSyntaxFault) as ctx:
            list(iter_events(stream))
        self.assertEqual(ctx.exception.game_num, 3)


    def test_movetext_line_starting_with_bracket_is_out_of_layout(self):
        # export layout only: a wrapped comment may not start a line with [
        stream = io.StringIO('[Event "x"]\n\n1. e4 { long comment\n'
                             '[%clk 0:03:00] } e5 *\n')
        with self.assertRaises(PGNSyntaxFault):
            list(iter_events(stream))


class TestOpenArchive(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, data: bytes):
        path = os.path.join(self.tmp.name, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_plain_pgn(self):
        path = self.write('games.pgn', TWO_GAMES.encode('utf-8'))
        with open_archive(path) as stream:
            self.assertEqual(len(sans(iter_events(stream))), 7)

    def test_zstd_pgn(self):
        data = zstandard.ZstdCompressor().compress(TWO_GAMES.encode('utf-8'))
        path = self.write('games.pgn.zst', data)
        with open_archive(path) as stream:
            self.assertEqual(len(sans(iter_events(stream))), 7)

    def test_missing_file(self):
        with self.assertRaises(OSError):
            with open_archive(os.path.join(self.tmp.name, 'nope.pgn.zst')):
                pass

    def test_corrupt_zstd(self):
        path = self.write('bad.pgn.zst', b'this is not zstd at all')
        with self.assertRaises(zstandard.ZstdError):
            with open_archive(path) as stream:
                stream.read()

    def test_truncated_zstd(self):
        data = zstandard.ZstdCompressor().compress(
            (TWO_GAMES * 200).encode('utf-8'))
        path = self.write('cut.pgn.zst', data[:len(data) // 2])
        with self.assertRaises(zstandard.ZstdError):
            with open_archive(path) as stream:
                list(iter_events(stream))

    def test_concatenated_zstd_frames(self):
        cctx = zstandard.ZstdCompressor()
        data = (cctx.compress(TWO_GAMES.encode('utf-8')) +
                cctx.compress(TWO_GAMES.encode('utf-8')))
        path = self.write('two_frames.pgn.zst', data)
        with open_archive(path) as stream:
            self.assertEqual(len(sans(iter_events(stream))), 14)

    def test_empty_zstd_file(self):
        path = self.write('empty.pgn.zst', b'')
        with open_archive(path) as stream:
            self.assertEqual(list(iter_events(stream)), [])
