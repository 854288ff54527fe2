from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, TextIO


class Type(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT INTO"
    UPDATE = "UPDATE"
    DELETE = "DELETE FROM"
    UNKNOWN = "UNKNOWN"


class Step(int, Enum):
    TYPE = 0
    SELECT_FIELD = 1
    SELECT_COMMA = 2
    SELECT_FROM = 3
    SELECT_FROM_TABLE = 4
    INSERT_TABLE = 5
    INSERT_FIELDS_OPENING_PARENS = 6
    INSERT_FIELDS = 7
    INSERT_FIELDS_COMMA_OR_CLOSING_PARENS = 8
    INSERT_VALUES_RWORD = 9
    INSERT_VALUES_OPENING_PARENS = 10
    INSERT_VALUES = 11
    INSERT_VALUES_COMMA_OR_CLOSING_PARENS = 12
    INSERT_VALUES_COMMA_BEFORE_OPENING_PARENS = 13
    UPDATE_TABLE = 14
    UPDATE_SET = 15
    UPDATE_FIELD = 16
    UPDATE_EQUALS = 17
    UPDATE_VALUE = 18
    UPDATE_COMMA = 19
    DELETE_FROM_TABLE = 20
    WHERE = 21
    WHERE_FIELD = 22
    WHERE_OPERATOR = 23
    WHERE_VALUE = 24
    WHERE_AND = 25


class Operator(str, Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    UNKNOWN = "UNKNOWN"


class OperandKind(str, Enum):
    """What a condition operand holds: a column name or a literal."""

    FIELD = "FIELD"
    QUOTED = "QUOTED"
    NUMBER = "NUMBER"


@dataclass
class Condition:
    operand_1: str = field(default_factory=str)
    operand_1_kind: OperandKind = OperandKind.FIELD
    operator: Operator = Operator.UNKNOWN
    operand_2: str = field(default_factory=str)
    operand_2_kind: OperandKind = OperandKind.FIELD


@dataclass
class Query:
    qtype: Type = Type.UNKNOWN
    table: str = field(default_factory=str)
    fields: list[str] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)
    conditions: list[Condition] = field(default_factory=list)
    updates: dict[str, str] = field(default_factory=dict)
    inserts: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.qtype.value,
            "table": self.table,
            "fields": list(self.fields),
            "aliases": list(self.aliases),
            "conditions": [
                {
                    "operand_1": c.operand_1,
                    "operand_1_kind": c.operand_1_kind.value,
                    "operator": c.operator.value,
                    "operand_2": c.operand_2,
                    "operand_2_kind": c.operand_2_kind.value,
                }
                for c in self.conditions
            ],
            "updates": dict(self.updates),
            "inserts": [list(row) for row in self.inserts],
        }


class ParserError(Exception):
    """A failed parse, positioned at the character offset it was detected at.

    ``pos`` indexes the stripped input string; it equals the byte offset
    only for ASCII input.

    ``query`` holds whatever was built before the failure. ``parsed`` is set
    by :func:`sqlfsm.parse_many` to the queries that parsed before this one.
    """

    def __init__(self, message: str, pos: int = 0, query: Optional[Query] = None):
        super().__init__(message)
        self.message = message
        self.pos = pos
        self.query = query
        self.parsed: list[Query] = []

    def format_pos_error(self, sql: str) -> str:
        return f"{sql}\n{' ' * self.pos}^\n{self.message}"

    def print_pos_error(self, sql: str, file: Optional[TextIO] = None) -> None:
        print(self.format_pos_error(sql), file=file)
