import logging
from dataclasses import dataclass, field
from typing import Iterable, NoReturn

from .lexer import Cursor, Reserved, Token, TokenKind
from .schemas import (
    Condition,
    OperandKind,
    Operator,
    ParserError,
    Query,
    Step,
    Type,
)

logger = logging.getLogger(__name__)

operators = {
    Reserved.EQ: Operator.EQ,
    Reserved.NE: Operator.NE,
    Reserved.LT: Operator.LT,
    Reserved.LTE: Operator.LTE,
    Reserved.GT: Operator.GT,
    Reserved.GTE: Operator.GTE,
}


def parse(sql: str) -> Query:
    """Parse a single statement, raising ParserError on failure."""
    return Parser(sql).parse()


def parse_many(sqls: Iterable[str]) -> list[Query]:
    """Parse statements in order, stopping at the first one that fails.

    The raised error carries the queries parsed before it on ``parsed``.
    """
    queries: list[Query] = []
    for sql in sqls:
        try:
            queries.append(parse(sql))
        except ParserError as err:
            err.parsed = queries
            raise
    return queries


@dataclass
class Parser:
    sql: str
    query: Query = field(default_factory=Query)
    step: Step = Step.TYPE
    cursor: Cursor = field(init=False)
    update_field: str = field(default_factory=str, init=False)

    def __post_init__(self):
        self.sql = self.sql.strip()
        self.cursor = Cursor(self.sql)

    def parse(self) -> Query:
        while not self.cursor.exhausted:
            step = self.advance()
            if step is not self.step:
                logger.debug("%s -> %s at %d", self.step.name, step.name, self.cursor.index)
            self.step = step
        self.validate()
        return self.query

    def advance(self) -> Step:
        match self.step:
            case Step.TYPE:
                return self.parse_type()
            case Step.SELECT_FIELD:
                return self.parse_select_field()
            case Step.SELECT_COMMA:
                self.expect(Reserved.COMMA, "at SELECT: expected comma or FROM")
                return Step.SELECT_FIELD
            case Step.SELECT_FROM:
                self.expect(Reserved.FROM, "at SELECT: expected FROM")
                return Step.SELECT_FROM_TABLE
            case Step.SELECT_FROM_TABLE:
                self.parse_table("SELECT")
                return Step.WHERE
            case Step.INSERT_TABLE:
                self.parse_table("INSERT INTO")
                return Step.INSERT_FIELDS_OPENING_PARENS
            case Step.INSERT_FIELDS_OPENING_PARENS:
                self.expect(Reserved.LEFT_PARENS, "at INSERT INTO: expected opening parens")
                return Step.INSERT_FIELDS
            case Step.INSERT_FIELDS:
                identifier = self.cursor.peek()
                if not identifier.is_identifier():
                    self.fail("at INSERT INTO: expected at least one field to insert")
                self.query.fields.append(identifier.text)
                self.cursor.pop()
                return Step.INSERT_FIELDS_COMMA_OR_CLOSING_PARENS
            case Step.INSERT_FIELDS_COMMA_OR_CLOSING_PARENS:
                if self.expect_comma_or_closing_parens().is_(Reserved.COMMA):
                    return Step.INSERT_FIELDS
                return Step.INSERT_VALUES_RWORD
            case Step.INSERT_VALUES_RWORD:
                self.expect(Reserved.VALUES, "at INSERT INTO: expected 'VALUES'")
                return Step.INSERT_VALUES_OPENING_PARENS
            case Step.INSERT_VALUES_OPENING_PARENS:
                self.expect(Reserved.LEFT_PARENS, "at INSERT INTO: expected opening parens")
                self.query.inserts.append([])
                return Step.INSERT_VALUES
            case Step.INSERT_VALUES:
                value = self.expect_quoted("at INSERT INTO: expected quoted value")
                self.query.inserts[-1].append(value)
                return Step.INSERT_VALUES_COMMA_OR_CLOSING_PARENS
            case Step.INSERT_VALUES_COMMA_OR_CLOSING_PARENS:
                if self.expect_comma_or_closing_parens().is_(Reserved.COMMA):
                    return Step.INSERT_VALUES
                if len(self.query.inserts[-1]) < len(self.query.fields):
                    self.fail("at INSERT INTO: value count doesn't match field count")
                return Step.INSERT_VALUES_COMMA_BEFORE_OPENING_PARENS
            case Step.INSERT_VALUES_COMMA_BEFORE_OPENING_PARENS:
                self.expect(Reserved.COMMA, "at INSERT INTO: expected comma")
                return Step.INSERT_VALUES_OPENING_PARENS
            case Step.UPDATE_TABLE:
                self.parse_table("UPDATE")
                return Step.UPDATE_SET
            case Step.UPDATE_SET:
                self.expect(Reserved.SET, "at UPDATE: expected 'SET'")
                return Step.UPDATE_FIELD
            case Step.UPDATE_FIELD:
                identifier = self.cursor.peek()
                if not identifier.is_identifier():
                    self.fail("at UPDATE: expected at least one field to update")
                self.update_field = identifier.text
                self.cursor.pop()
                return Step.UPDATE_EQUALS
            case Step.UPDATE_EQUALS:
                self.expect(Reserved.EQ, "at UPDATE: expected '='")
                return Step.UPDATE_VALUE
            case Step.UPDATE_VALUE:
                value = self.expect_quoted("at UPDATE: expected quoted value")
                self.query.updates[self.update_field] = value
                self.update_field = ""
                if self.cursor.peek().is_(Reserved.WHERE):
                    return Step.WHERE
                return Step.UPDATE_COMMA
            case Step.UPDATE_COMMA:
                self.expect(Reserved.COMMA, "at UPDATE: expected ','")
                return Step.UPDATE_FIELD
            case Step.DELETE_FROM_TABLE:
                self.parse_table("DELETE FROM")
                return Step.WHERE
            case Step.WHERE:
                self.expect(Reserved.WHERE, "expected WHERE")
                return Step.WHERE_FIELD
            case Step.WHERE_FIELD:
                identifier = self.cursor.peek()
                if not identifier.is_identifier():
                    self.fail("at WHERE: expected field")
                self.query.conditions.append(Condition(operand_1=identifier.text))
                self.cursor.pop()
                return Step.WHERE_OPERATOR
            case Step.WHERE_OPERATOR:
                operator = operators.get(self.cursor.peek().reserved)
                if operator is None:
                    self.fail("at WHERE: unknown operator")
                self.query.conditions[-1].operator = operator
                self.cursor.pop()
                return Step.WHERE_VALUE
            case Step.WHERE_VALUE:
                self.parse_where_value()
                return Step.WHERE_AND
            case Step.WHERE_AND:
                self.expect(Reserved.AND, "expected AND")
                return Step.WHERE_FIELD

    def parse_type(self) -> Step:
        token = self.cursor.peek()
        match token.reserved:
            case Reserved.SELECT:
                self.query.qtype = Type.SELECT
                step = Step.SELECT_FIELD
            case Reserved.INSERT:
                self.cursor.pop()
                if not self.cursor.peek().is_(Reserved.INTO):
                    self.fail("at INSERT: expected INTO")
                self.query.qtype = Type.INSERT
                step = Step.INSERT_TABLE
            case Reserved.UPDATE:
                self.query.qtype = Type.UPDATE
                self.query.updates = {}
                step = Step.UPDATE_TABLE
            case Reserved.DELETE:
                self.cursor.pop()
                if not self.cursor.peek().is_(Reserved.FROM):
                    self.fail("at DELETE: expected FROM")
                self.query.qtype = Type.DELETE
                step = Step.DELETE_FROM_TABLE
            case _:
                self.fail("invalid query type")
        self.cursor.pop()
        return step

    def parse_select_field(self) -> Step:
        identifier = self.cursor.peek()
        if not identifier.is_identifier_or_asterisk():
            self.fail("at SELECT: expected field to SELECT")
        self.query.fields.append(identifier.text)
        self.cursor.pop()
        # Check if "AS" is used to create an alias for a field
        if self.cursor.peek().is_(Reserved.AS):
            self.cursor.pop()
            alias = self.cursor.peek()
            if not alias.is_identifier():
                self.fail(f"at AS: expected alias for {identifier.text}")
            self.query.aliases.append(alias.text)
            self.cursor.pop()
        else:
            self.query.aliases.append("")
        if self.cursor.peek().is_(Reserved.FROM):
            return Step.SELECT_FROM
        return Step.SELECT_COMMA

    def parse_table(self, clause: str) -> None:
        table_name = self.cursor.peek_name()
        quoted = table_name.kind is TokenKind.QUOTED and table_name.text
        if not (quoted or table_name.is_identifier()):
            self.fail(f"at {clause}: expected quoted table name")
        self.query.table = table_name.text
        self.cursor.pop(table_name)

    def parse_where_value(self) -> None:
        condition = self.query.conditions[-1]
        value = self.cursor.peek()
        match value.kind:
            case TokenKind.QUOTED:
                condition.operand_2_kind = OperandKind.QUOTED
            case TokenKind.NUMBER:
                condition.operand_2_kind = OperandKind.NUMBER
            case TokenKind.IDENTIFIER if value.is_identifier():
                condition.operand_2_kind = OperandKind.FIELD
            case _:
                self.fail("at WHERE: expected quoted value")
        condition.operand_2 = value.text
        self.cursor.pop()

    def expect(self, reserved: Reserved, message: str) -> Token:
        if not self.cursor.peek().is_(reserved):
            self.fail(message)
        return self.cursor.pop()

    def expect_quoted(self, message: str) -> str:
        value = self.cursor.peek()
        if value.kind is not TokenKind.QUOTED:
            self.fail(message)
        return self.cursor.pop().text

    def expect_comma_or_closing_parens(self) -> Token:
        token = self.cursor.peek()
        if not (token.is_(Reserved.COMMA) or token.is_(Reserved.RIGHT_PARENS)):
            self.fail("at INSERT INTO: expected comma or closing parens")
        return self.cursor.pop()

    def fail(self, message: str) -> NoReturn:
        logger.debug("parse failed at %d (%s): %s", self.cursor.index, self.step.name, message)
        raise ParserError(message, self.cursor.index, self.query)

    def validate(self) -> None:
        query = self.query
        if self.step is Step.WHERE_FIELD:
            if not query.conditions:
                self.fail("at WHERE: empty WHERE clause")
            # Input ended right after AND
            self.fail("at WHERE: expected field")
        if self.step is Step.SELECT_FIELD and query.fields:
            # Input ended right after a comma
            self.fail("at SELECT: expected field to SELECT")
        if query.qtype is Type.UNKNOWN:
            self.fail("query type cannot be empty")
        # SELECT may omit FROM entirely (e.g. SELECT version()), but not the
        # table after it.
        needs_table = (
            query.qtype is not Type.SELECT
            or not query.fields
            or self.step is Step.SELECT_FROM_TABLE
        )
        if needs_table and not query.table:
            self.fail("table name cannot be empty")
        if not query.conditions and query.qtype in (Type.UPDATE, Type.DELETE):
            self.fail("at WHERE: WHERE clause is mandatory for UPDATE & DELETE")
        for condition in query.conditions:
            if condition.operator is Operator.UNKNOWN:
                self.fail("at WHERE: condition without operator")
            if not condition.operand_1 and condition.operand_1_kind is OperandKind.FIELD:
                self.fail("at WHERE: condition with empty left side operand")
            if not condition.operand_2 and condition.operand_2_kind is OperandKind.FIELD:
                self.fail("at WHERE: condition with empty right side operand")
        if query.qtype is Type.INSERT:
            if not query.inserts:
                self.fail("at INSERT INTO: need at least one row to insert")
            for row in query.inserts:
                if len(row) != len(query.fields):
                    self.fail("at INSERT INTO: value count doesn't match field count")
        if query.qtype is Type.SELECT and len(query.fields) != len(query.aliases):
            self.fail("fields and aliases count mismatch")
