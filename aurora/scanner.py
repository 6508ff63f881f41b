"""Scanner for the Aurora language.

The scanner walks the source text one character at a time and produces a
flat list of ``lark.Token`` objects terminated by an ``$END`` token. Unlike
the parser it does not stop at the first problem: every lexical error is
recorded together with its line and scanning resumes with the next
character. If anything went wrong a single ``LexicalError`` carrying the
whole batch is raised at the end.

Token types:

* ``IDENT`` - identifiers, including dotted paths such as ``a.b.c``
* ``STRING`` / ``NUMBER`` - literals (numbers carry a ``float`` value)
* ``OP`` - ``..  <  <=  >  >=  ==  +  -  *  /``
* keywords - the upper-cased keyword, e.g. ``IF`` or ``END``
* punctuation - ``LPAR RPAR LBRACE RBRACE COMMA SEMICOLON NEWLINE EQUAL``
"""

from __future__ import annotations

from typing import List, Optional

from lark import Token

from .errors import LexicalError
from .types import ErrorVal


KEYWORDS = {
    'true', 'false', 'if', 'then', 'else', 'end',
    'function', 'return', 'local', 'while', 'do',
}

PUNCTUATION = {
    '(': 'LPAR',
    ')': 'RPAR',
    '{': 'LBRACE',
    '}': 'RBRACE',
    ',': 'COMMA',
    ';': 'SEMICOLON',
    '\n': 'NEWLINE',
}

SINGLE_OPS = {'+', '-', '*', '/'}

# Characters that terminate an identifier.
STOP_CHARS = set(' \t\r\n(){},;=+-*/<>"')

ESCAPES = {'n': '\n', 't': '\t', '"': '"', '\\': '\\'}

END = '$END'


class Scanner:
    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.pos = 0
        self.line = 1
        self.errors: List[ErrorVal] = []

    def scan(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            token = self._scan_token()
            if token is None:
                continue
            tokens.append(token)
            if token.type == END:
                break
        if self.errors:
            raise LexicalError(self.errors)
        return tokens

    # ------------------------------- internals ---------------------------- #
    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= self.length:
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        if self.pos >= self.length:
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def _error(self, message: str, line: Optional[int] = None) -> None:
        self.errors.append(ErrorVal('Lexical', message, self.line if line is None else line))

    def _token(self, type_: str, value, line: int) -> Token:
        return Token(type_, value, line=line)

    def _scan_token(self) -> Optional[Token]:
        """Scan one token. Returns None for skipped input and after errors."""
        line = self.line
        if self.pos >= self.length:
            return self._token(END, '', line)
        ch = self._advance()
        if ch in ' \t\r':
            return None
        if ch == '-' and self._peek() == '-':
            while self._peek() not in ('\n', '\0'):
                self._advance()
            return None
        if ch == '\n':
            self.line += 1
            return self._token('NEWLINE', ch, line)
        if ch in PUNCTUATION:
            return self._token(PUNCTUATION[ch], ch, line)
        if ch in SINGLE_OPS:
            return self._token('OP', ch, line)
        if ch == '=':
            if self._peek() == '=':
                self._advance()
                return self._token('OP', '==', line)
            return self._token('EQUAL', ch, line)
        if ch in '<>':
            return self._scan_relational(ch, line)
        if ch == '.':
            return self._scan_concat(line)
        if ch == '"':
            return self._scan_string(line)
        if ch.isdigit():
            return self._scan_number(line)
        if ch.isalpha() or ch == '_':
            return self._scan_identifier(line)
        self._error(f"Unknown Character: {ch}", line)
        return None

    def _scan_relational(self, ch: str, line: int) -> Token:
        # one character of lookahead, left in place unless it is '='
        if self._peek() == '=':
            self._advance()
            return self._token('OP', ch + '=', line)
        return self._token('OP', ch, line)

    def _scan_concat(self, line: int) -> Optional[Token]:
        nxt = self._peek()
        if nxt == '.':
            self._advance()
            return self._token('OP', '..', line)
        if nxt == '\0':
            self._error("File cannot end with character '.'", line)
        else:
            self._error(f"Expected ellipse, found: {nxt}", line)
        return None

    def _scan_string(self, line: int) -> Optional[Token]:
        chars: List[str] = []
        while True:
            if self.pos >= self.length:
                self._error("Unterminated string literal", line)
                return None
            ch = self._peek()
            self._advance()
            if ch == '"':
                break
            if ch == '\n':
                self.line += 1
            if ch == '\\':
                esc = self._advance()
                if esc in ESCAPES:
                    chars.append(ESCAPES[esc])
                else:
                    self._error(f"Unknown escape sequence: \\{esc}", self.line)
                continue
            chars.append(ch)
        return self._token('STRING', ''.join(chars), line)

    def _scan_number(self, line: int) -> Optional[Token]:
        start = self.pos - 1
        had_decimal = False
        while True:
            ch = self._peek()
            if ch.isdigit():
                self._advance()
                continue
            if ch == '.' and not had_decimal and self._peek(1) != '.':
                had_decimal = True
                self._advance()
                continue
            break
        text = self.source[start:self.pos]
        try:
            value = float(text)
        except ValueError as e:
            self._error(f"Unable to parse number literal {text}: {e}", line)
            return None
        return self._token('NUMBER', value, line)

    def _scan_identifier(self, line: int) -> Token:
        start = self.pos - 1
        while True:
            ch = self._peek()
            if ch == '\0' or ch in STOP_CHARS:
                break
            if ch == '.' and self._peek(1) == '.':
                break
            self._advance()
        text = self.source[start:self.pos]
        if text in KEYWORDS:
            return self._token(text.upper(), text, line)
        return self._token('IDENT', text, line)


def scan(source: str) -> List[Token]:
    return Scanner(source).scan()


__all__ = ['Scanner', 'scan', 'KEYWORDS', 'END']
