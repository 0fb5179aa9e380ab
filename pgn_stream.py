from contextlib import contextmanager
from enum import Enum
import io
import logging
import sys
from typing import Dict, Iterator, List, Optional, TextIO, Tuple

from parsita import Success
import zstandard

from pgn_parser import SAN, VARIATION, movetext, tag_pair

logger = logging.getLogger(__name__)

# Lichess monthly archives are compressed with long-distance matching
ZSTD_MAX_WINDOW = 2 ** 31


class ScanFault(Exception):
    pass


class PGNSyntaxFault(ScanFault):
    def __init__(self, game_num: int, text: str, detail):
        self.game_num = game_num
        self.text = text
        super().__init__(
            f"game {game_num}: unparseable PGN near {text[:80]!r}: {detail}")


# PGN file sections can be identified by the first character of the line,
# which lets us break a PGN file into its constituent parts

class PGNParts(Enum):
    ANNOTATION = 1
    MOVES = 2
    NEWLINE = 3


def line_type(line: str) -> Optional[PGNParts]:
    # Empty string w/o \n signals end-of-file & is treated same as annotation
    if not line or line[0] == '[':
        return PGNParts.ANNOTATION
    if not line.strip():
        return PGNParts.NEWLINE
    return PGNParts.MOVES


class Event(Enum):
    GAME_START = 1
    HALFMOVE = 2
    VARIATION_START = 3
    VARIATION_END = 4
    GAME_END = 5


class PGNStreamSlicer:
    def __init__(self, stream: TextIO):
        self.stream = stream

    def next(self) -> Iterator[Tuple[List[str], List[str]]]:
        # Saw off PGN hunks and yield (tag lines, movetext lines) to caller
        tags, moves = [], []
        prev_type = None
        while True:
            line = self.stream.readline()
            this_type = line_type(line)
            if (this_type == PGNParts.ANNOTATION and
                    prev_type == PGNParts.MOVES):
                yield tags, moves
                tags, moves = [], []
            if not line:
                break

            if this_type == PGNParts.ANNOTATION:
                tags.append(line.strip())
            elif this_type == PGNParts.MOVES:
                moves.append(line.rstrip('\r\n'))

            if this_type is not PGNParts.NEWLINE:
                prev_type = this_type

        if tags:
            # Trailing tag section with no movetext at all
            logger.warning("Dropping %d tag lines with no movetext", len(tags))


def parse_tags(tag_lines: List[str], game_num: int) -> Dict[str, str]:
    tags = dict()
    for line in tag_lines:
        result = tag_pair.parse(line)
        if not isinstance(result, Success):
            raise PGNSyntaxFault(game_num, line, result.failure())
        name, value = result.unwrap()
        tags[name] = value
    return tags


def walk_tokens(tokens):
    for kind, value in tokens:
        if kind == SAN:
            yield Event.HALFMOVE, value
        elif kind == VARIATION:
            yield Event.VARIATION_START, None
            yield from walk_tokens(value)
            yield Event.VARIATION_END, None


def game_events(tag_lines: List[str], move_lines: List[str], game_num: int = 0):
    """
    Yield the event sequence of one game: GAME_START with its tags, a
    HALFMOVE for every SAN token in encounter order, VARIATION_START and
    VARIATION_END around every side-line, then GAME_END with the outcome.
    """
    tags = parse_tags(tag_lines, game_num)
    text = "\n".join(move_lines)
    result = movetext.parse(text)
    if not isinstance(result, Success):
        raise PGNSyntaxFault(game_num, text, result.failure())
    parsed = result.unwrap()

    yield Event.GAME_START, tags
    yield from walk_tokens(parsed['tokens'])
    yield Event.GAME_END, parsed['outcome']


def iter_events(stream: TextIO):
    """Lazily turn a PGN text stream into one flat event sequence."""
    slicer = PGNStreamSlicer(stream)
    for game_num, (tag_lines, move_lines) in enumerate(slicer.next(), 1):
        yield from game_events(tag_lines, move_lines, game_num)


class ZstdFrameReader(io.RawIOBase):
    """
    Raw byte stream over one or more concatenated zstd frames. Running out
    of compressed input in the middle of a frame raises ZstdError instead
    of passing for a clean end of file.
    """

    def __init__(self, fh, dctx: zstandard.ZstdDecompressor,
                 chunk_size: int = 2 ** 17):
        self.fh = fh
        self.dctx = dctx
        self.dobj = dctx.decompressobj()
        self.chunk_size = chunk_size
        self.in_frame = False
        self.pending = b''
        self.offset = 0

    def readable(self):
        return True

    def readinto(self, b):
        while self.offset >= len(self.pending):
            chunk = self.fh.read(self.chunk_size)
            if not chunk:
                if self.in_frame:
                    raise zstandard.ZstdError(
                        "truncated archive: compressed data ends mid-frame")
                return 0
            self.pending = self.feed(chunk)
            self.offset = 0

        n = min(len(b), len(self.pending) - self.offset)
        b[:n] = self.pending[self.offset:self.offset + n]
        self.offset += n
        return n

    def feed(self, chunk: bytes) -> bytes:
        out = []
        while chunk:
            if self.dobj.eof:
                # next frame of a multi-frame archive
                self.dobj = self.dctx.decompressobj()
            out.append(self.dobj.decompress(chunk))
            self.in_frame = not self.dobj.eof
            chunk = self.dobj.unused_data if self.dobj.eof else b''
        return b''.join(out)


@contextmanager
def open_archive(path: str) -> Iterator[TextIO]:
    """
    Open a PGN archive for reading as text. Paths ending in .zst are
    decompressed on the fly, '-' is stdin, anything else is plain PGN.
    """
    if path == '-':
        yield sys.stdin
        return

    # "rb": PGNs are UTF-8 encoded, e.g. "Réti Opening"
    with open(path, 'rb') as fh:
        if path.endswith('.zst'):
            dctx = zstandard.ZstdDecompressor(max_window_size=ZSTD_MAX_WINDOW)
            reader = io.BufferedReader(ZstdFrameReader(fh, dctx))
            yield io.TextIOWrapper(reader, encoding='utf-8', errors='replace')
        else:
            yield io.TextIOWrapper(fh, encoding='utf-8', errors='replace')
