import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Reserved(str, Enum):
    LEFT_PARENS = "("
    RIGHT_PARENS = ")"
    COMMA = ","
    GTE = ">="
    LTE = "<="
    NE = "!="
    EQ = "="
    GT = ">"
    LT = "<"
    SELECT = "SELECT"
    INSERT = "INSERT"
    INTO = "INTO"
    VALUES = "VALUES"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    FROM = "FROM"
    WHERE = "WHERE"
    SET = "SET"
    AS = "AS"
    AND = "AND"


class TokenKind(str, Enum):
    QUOTED = "QUOTED"
    RESERVED = "RESERVED"
    IDENTIFIER = "IDENTIFIER"
    NUMBER = "NUMBER"
    INVALID = "INVALID"
    END = "END"


# Symbols bucketed by length, longest first, so ">=" is never read as ">".
symbols: dict[int, dict[str, Reserved]] = {}
for _reserved in Reserved:
    if not _reserved.value.isalpha():
        symbols.setdefault(len(_reserved.value), {})[_reserved.value] = _reserved
symbol_lengths = sorted(symbols, reverse=True)

keywords = {r.value: r for r in Reserved if r.value.isalpha()}

word_regexp = re.compile(r"[A-Za-z0-9_*]+")
identifier_regexp = re.compile(r"\*|[A-Za-z_][A-Za-z0-9_]*")
number_regexp = re.compile(r"-?[0-9]+(?:\.[0-9]+)?(?![A-Za-z0-9_.*])")
invalid_regexp = re.compile(r"[^ ]+")


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str = ""
    length: int = 0
    reserved: Optional[Reserved] = None

    @property
    def upper(self) -> str:
        return self.text.upper()

    def is_(self, reserved: Reserved) -> bool:
        return self.reserved is reserved

    def is_identifier(self) -> bool:
        return self.kind is TokenKind.IDENTIFIER and self.text != "*"

    def is_identifier_or_asterisk(self) -> bool:
        return self.kind is TokenKind.IDENTIFIER


END = Token(TokenKind.END)


@dataclass
class Cursor:
    """Reads tokens out of ``sql`` starting at ``index``.

    ``peek`` never moves the cursor; ``pop`` moves past the peeked token and
    any spaces after it.
    """

    sql: str
    index: int = 0
    length: int = field(init=False)

    def __post_init__(self):
        self.length = len(self.sql)

    @property
    def exhausted(self) -> bool:
        return self.index >= self.length

    def peek(self) -> Token:
        if self.exhausted:
            return END
        if self.sql[self.index] == "'":
            return self.peek_quoted()
        return (
            self._peek_symbol()
            or self._peek_word()
            or self._peek_number()
            or self._peek_invalid()
        )

    def peek_name(self) -> Token:
        """Like ``peek``, but an identifier never takes a following ``(...)``.

        Used where a table name may sit right before a column list.
        """
        if self.exhausted:
            return END
        if self.sql[self.index] == "'":
            return self.peek_quoted()
        return self._peek_word(call=False) or self.peek()

    def pop(self, token: Optional[Token] = None) -> Token:
        if token is None:
            token = self.peek()
        self.index += token.length
        while self.index < self.length and self.sql[self.index] == " ":
            self.index += 1
        return token

    def peek_quoted(self) -> Token:
        if self.exhausted or self.sql[self.index] != "'":
            return Token(TokenKind.INVALID)
        for i in range(self.index + 1, self.length):
            if self.sql[i] == "'" and self.sql[i - 1] != "\\":
                text = self.sql[self.index + 1 : i].replace("\\'", "'")
                return Token(TokenKind.QUOTED, text, i + 1 - self.index)
        # Unterminated
        return Token(TokenKind.INVALID)

    def _peek_symbol(self) -> Optional[Token]:
        for size in symbol_lengths:
            chunk = self.sql[self.index : self.index + size]
            if (reserved := symbols[size].get(chunk)) is not None:
                return Token(TokenKind.RESERVED, chunk, size, reserved)
        return None

    def _peek_word(self, call: bool = True) -> Optional[Token]:
        match = word_regexp.match(self.sql, self.index)
        if match is None:
            return None
        word = match.group()
        if (reserved := keywords.get(word.upper())) is not None:
            return Token(TokenKind.RESERVED, word, len(word), reserved)
        if identifier_regexp.fullmatch(word) is None:
            return None
        end = match.end()
        # A function call such as version(a) is kept whole; its arguments
        # are not parsed.
        if call and end < self.length and self.sql[end] == "(":
            closing = self.sql.find(")", end + 1)
            if closing >= 0:
                end = closing + 1
        return Token(TokenKind.IDENTIFIER, self.sql[self.index : end], end - self.index)

    def _peek_number(self) -> Optional[Token]:
        match = number_regexp.match(self.sql, self.index)
        if match is None:
            return None
        return Token(TokenKind.NUMBER, match.group(), len(match.group()))

    def _peek_invalid(self) -> Token:
        match = invalid_regexp.match(self.sql, self.index)
        text = match.group() if match else ""
        return Token(TokenKind.INVALID, text, len(text))
