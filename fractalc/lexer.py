"""
fractalc - Lexer
Tokenizes a LaTeX-style formula such as "z^{2}+c" into a flat token stream.
"""

import re
from dataclasses import dataclass
from typing import List
from enum import Enum, auto

from .ast_nodes import UNARY_OPERATORS


class TokenType(Enum):
    # Literals
    NUMBER     = auto()   # 3  2.5  i  e  \pi
    IDENTIFIER = auto()   # z  c
    FUNCTION   = auto()   # sin  \Gamma  ...
    # Operators / punctuation
    OPERATOR   = auto()   # + - * / ^
    FRAC       = auto()   # \frac
    # Brackets
    LBRACE     = auto()   # {
    RBRACE     = auto()   # }
    LPAREN     = auto()   # (
    RPAREN     = auto()   # )
    # Sentinel
    EOF        = auto()


# Spellings accepted for each unary operator tag
FUNCTION_ALIASES = {name: name for name in UNARY_OPERATORS if name != 'neg'}
FUNCTION_ALIASES['log'] = 'ln'

# Longest first so "cosh" wins over "cos" inside a letter run
_FUNCTION_WORDS = sorted(FUNCTION_ALIASES, key=len, reverse=True)

_COMMAND_OPERATORS = {'cdot': '*', 'times': '*', 'div': '/'}
_LAYOUT_COMMANDS   = {'left', 'right'}


@dataclass
class Token:
    type: TokenType
    value: str
    pos: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, pos={self.pos})"


class LexerError(Exception):
    def __init__(self, message: str, pos: int):
        super().__init__(f"[LexerError] Col {pos}: {message}")
        self.pos = pos


# Token specification: ordered list of (name, regex) pairs
_TOKEN_SPEC = [
    ('COMMAND',  r'\\[A-Za-z]+'),
    ('NUMBER',   r'\d+(?:\.\d+)?|\.\d+'),
    ('WORD',     r'[A-Za-z]+'),
    ('OPERATOR', r'[+\-*/^]'),
    ('LBRACE',   r'\{'),
    ('RBRACE',   r'\}'),
    ('LPAREN',   r'\('),
    ('RPAREN',   r'\)'),
]

_MASTER_RE = re.compile(
    '|'.join(f'(?P<{name}>{regex})' for name, regex in _TOKEN_SPEC),
    re.ASCII
)

# Whitespace and LaTeX spacing commands (\, \; \: \! and "\ ")
_WHITESPACE_RE = re.compile(r'(?:\s|\\[,;:! ])+')


def tokenize(source: str) -> List[Token]:
    """
    Convert a formula string into a list of Tokens.
    Raises LexerError on unrecognized characters or commands.
    """
    tokens: List[Token] = []
    pos = 0
    length = len(source)

    while pos < length:
        m = _WHITESPACE_RE.match(source, pos)
        if m:
            pos = m.end()
            continue

        m = _MASTER_RE.match(source, pos)
        if not m:
            raise LexerError(f"Unexpected character: {source[pos]!r}", pos)

        kind = m.lastgroup
        raw = m.group(0)

        if kind == 'COMMAND':
            tok = _command_token(raw[1:], pos)
            if tok is not None:
                tokens.append(tok)
        elif kind == 'WORD':
            tokens.extend(_split_word(raw, pos))
        else:
            tokens.append(Token(TokenType[kind], raw, pos))
        pos = m.end()

    tokens.append(Token(TokenType.EOF, '', pos))
    return tokens


def _command_token(name: str, pos: int):
    if name == 'pi':
        return Token(TokenType.NUMBER, '\\pi', pos)
    if name == 'frac':
        return Token(TokenType.FRAC, '\\frac', pos)
    if name in _COMMAND_OPERATORS:
        return Token(TokenType.OPERATOR, _COMMAND_OPERATORS[name], pos)
    if name in _LAYOUT_COMMANDS:
        return None
    if name in FUNCTION_ALIASES:
        return Token(TokenType.FUNCTION, FUNCTION_ALIASES[name], pos)
    raise LexerError(f"Unknown command: \\{name}", pos)


def _split_word(word: str, pos: int) -> List[Token]:
    """
    Break a run of letters into function names, "pi" and single letters,
    so "zsin" reads as z followed by sin and "zc" as z times c.
    """
    tokens = []
    i = 0
    while i < len(word):
        if word.startswith('pi', i):
            tokens.append(Token(TokenType.NUMBER, '\\pi', pos + i))
            i += 2
            continue
        for name in _FUNCTION_WORDS:
            if word.startswith(name, i):
                tokens.append(Token(TokenType.FUNCTION, FUNCTION_ALIASES[name], pos + i))
                i += len(name)
                break
        else:
            letter = word[i]
            ttype = TokenType.NUMBER if letter in ('i', 'e') else TokenType.IDENTIFIER
            tokens.append(Token(ttype, letter, pos + i))
            i += 1
    return tokens
