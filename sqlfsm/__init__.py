from .lexer import Cursor, Reserved, Token, TokenKind
from .parser import Parser, parse, parse_many
from .schemas import Condition, OperandKind, Operator, ParserError, Query, Step, Type

__version__ = "0.1.0"

__all__ = [
    "Condition",
    "Cursor",
    "OperandKind",
    "Operator",
    "Parser",
    "ParserError",
    "Query",
    "Reserved",
    "Step",
    "Token",
    "TokenKind",
    "Type",
    "parse",
    "parse_many",
]
