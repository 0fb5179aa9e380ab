from parsita import fwd, lit, opt, reg, rep

"""
PGN grammar-parser

Includes support for-
 - Tag pairs
 - Movetext: SAN moves, move numbers, NAGs and suffix annotations
 - Comments, both {brace} and ;rest-of-line
 - Recursive annotation variations, i.e. side-lines
"""

# movetext token kinds
SAN = 'san'
VARIATION = 'variation'


def format_tag(tag):
    return tag[0], tag[1].replace('\\"', '"').replace('\\\\', '\\')


def format_san(san):
    return SAN, san


def format_variation(tokens):
    return VARIATION, [tok for tok in tokens if tok is not None]


def format_movetext(parsed):
    return {
        'tokens': [tok for tok in parsed[0] if tok is not None],
        'outcome': parsed[1][0] if parsed[1] else None,
    }


def discard(_):
    return None


# tokens
quote = lit('"')
whitespace = reg(r'\s+')

# Tag pairs: [Site "https://lichess.org/abcdefgh"]
tag_name = reg(r'[A-Za-z0-9_]+')
tag_value = reg(r'(?:[^"\\]|\\.)*')
tag_pair = ("[" >> opt(whitespace) >> tag_name << whitespace &
            (quote >> tag_value << quote) << opt(whitespace) << "]"
            ) > format_tag

# Standard SAN, castling (both letter O and digit zero) and the null move,
# each optionally followed by a check mark. Trailing !/? suffixes are dropped
# so the token goes to the rules engine as bare SAN
san = (reg(r'(?:[NBRQK]?[a-h]?[1-8]?x?[a-h][1-8](?:=?[NBRQ])?'
           r'|O-O-O|O-O|0-0-0|0-0|--)[+#]?') << opt(reg(r'[!?]+'))) > format_san

move_number = reg(r'[0-9]+\.+') > discard
nag = reg(r'\$[0-9]+') > discard
brace_comment = reg(r'\{[^}]*\}') > discard
line_comment = reg(r';[^\n]*') > discard
comment = brace_comment | line_comment

outcome = lit('1-0', '0-1', '1/2-1/2', '*')

# Side-lines nest, so the variation parser is declared before it's defined
variation = fwd()
element = variation | comment | nag | move_number | san
token = element << opt(whitespace)
variation.define(
    ("(" >> opt(whitespace) >> rep(token) << ")") > format_variation)

movetext = (opt(whitespace) >> rep(token) &
            opt(outcome << opt(whitespace))) > format_movetext
