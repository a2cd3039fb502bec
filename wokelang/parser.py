"""Parser for the WokeLang language.

A recursive-descent parser over the lazy token stream produced by
`wokelang.lexer.tokenize`. Two entry points are provided:

* `parse_program` parses a whole source file: function definitions
  (`to name(params) -> Type { ... }`) mixed with top-level statements.
* `parse_expression` parses exactly one expression followed by the end of
  input. This backs the `eval` entry point of the embedding API.

The parser stops at the first error and raises `ParseError` with the line,
column and a short reason.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional, Union

from lark import Token

from .ast import (
    Program, FuncParam, FuncDecl, Block, LetStmt, Assign, IfStmt, WhileStmt,
    ReturnStmt, ExprStmt, Literal, Ident, BinaryOp, UnaryOp, Call, ArrayLit,
    Index, Conditional, Node,
)
from .errors import ParseError
from .lexer import tokenize, describe, TYPE_KEYWORDS
from .types import TypeSpec, INT_MIN, INT_MAX, UNIT


# Binary operator tiers, lowest precedence first
EQUALITY_OPS = ['EQEQ', 'NOTEQ']
COMPARISON_OPS = ['LESS', 'LESSEQ', 'MORE', 'MOREEQ']
ADDITIVE_OPS = ['PLUS', 'MINUS']
MULTIPLICATIVE_OPS = ['STAR', 'SLASH', 'PERCENT']
UNARY_OPS = ['MINUS', 'BANG']


class Parser:
    def __init__(self, tokens: Iterable[Token]):
        self.tokens = iter(tokens)
        self.lookahead: Deque[Token] = deque()
        self.eof: Optional[Token] = None

    def peek(self, offset: int = 0) -> Token:
        while len(self.lookahead) <= offset:
            if self.eof is not None:
                return self.eof
            token = next(self.tokens)
            if token.type == 'EOF':
                self.eof = token
            self.lookahead.append(token)
        return self.lookahead[offset]

    def advance(self) -> Token:
        token = self.peek()
        if token.type != 'EOF':
            self.lookahead.popleft()
        return token

    def error(self, token: Token, reason: str) -> ParseError:
        return ParseError(token.line, token.column, reason)

    def consume(self, expected: Union[str, List[str]], what: Optional[str] = None) -> Token:
        token = self.peek()
        if not self.match(expected):
            wanted = what or (expected if isinstance(expected, str) else ' or '.join(expected))
            raise self.error(token, f"expected {wanted}, found {describe(token)}")
        return self.advance()

    def match(self, expected: Union[str, List[str]]) -> bool:
        token = self.peek()
        if isinstance(expected, list):
            return token.type in expected
        return token.type == expected

    # Entry points

    def parse_program(self) -> Program:
        start = self.peek()
        body: List[Node] = []
        while not self.match('EOF'):
            if self.match('TO'):
                body.append(self.parse_func_decl())
            else:
                body.append(self.parse_statement())
        return Program(body, line=start.line, column=start.column)

    def parse_single_expression(self) -> Node:
        expr = self.parse_expression()
        if self.match('SEMICOLON'):
            self.advance()
        token = self.peek()
        if token.type != 'EOF':
            raise self.error(token, f"expected end of expression, found {describe(token)}")
        return expr

    # Items

    def parse_func_decl(self) -> FuncDecl:
        start = self.consume('TO')
        name_token = self.consume('NAME', 'function name')
        self.consume('LPAR', "'('")
        params: List[FuncParam] = []
        if not self.match('RPAR'):
            params = self.parse_param_list()
        self.consume('RPAR', "')'")
        return_type = None
        if self.match('ARROW'):
            self.advance()
            return_type = self.parse_type_spec()
        body = self.parse_block()
        return FuncDecl(str(name_token), params, return_type, body, line=start.line, column=start.column)

    def parse_param_list(self) -> List[FuncParam]:
        params: List[FuncParam] = []
        while True:
            name_token = self.consume('NAME', 'parameter name')
            name = str(name_token)
            if any(p.name == name for p in params):
                raise self.error(name_token, f"duplicate parameter {name}")
            self.consume('COLON', "':' after parameter name")
            params.append(FuncParam(name, self.parse_type_spec()))
            if not self.match('COMMA'):
                break
            self.advance()
        return params

    def parse_type_spec(self) -> TypeSpec:
        token = self.peek()
        if token.type not in TYPE_KEYWORDS:
            raise self.error(token, f"expected a type name, found {describe(token)}")
        self.advance()
        return TypeSpec(TYPE_KEYWORDS[token.type])

    # Statements

    def parse_statement(self) -> Node:
        token = self.peek()
        if token.type == 'LET':
            return self.parse_let_stmt()
        if token.type == 'GIVE':
            return self.parse_return_stmt()
        if token.type == 'IF':
            return self.parse_if_stmt()
        if token.type == 'WHILE':
            return self.parse_while_stmt()
        if token.type == 'LBRACE':
            return self.parse_block()
        if token.type == 'TO':
            raise self.error(token, "function definitions are only allowed at the top level")
        if token.type == 'NAME' and self.peek(1).type == 'EQUAL':
            return self.parse_assign()
        expr = self.parse_expression()
        self.consume('SEMICOLON', "';' after expression")
        return ExprStmt(expr, line=token.line, column=token.column)

    def parse_let_stmt(self) -> LetStmt:
        start = self.consume('LET')
        name_token = self.consume('NAME', 'variable name')
        type_spec = None
        if self.match('COLON'):
            self.advance()
            type_spec = self.parse_type_spec()
        self.consume('EQUAL', "'='")
        expr = self.parse_expression()
        self.consume('SEMICOLON', "';' after let binding")
        return LetStmt(str(name_token), type_spec, expr, line=start.line, column=start.column)

    def parse_assign(self) -> Assign:
        name_token = self.consume('NAME')
        self.consume('EQUAL')
        value = self.parse_expression()
        self.consume('SEMICOLON', "';' after assignment")
        return Assign(str(name_token), value, line=name_token.line, column=name_token.column)

    def parse_return_stmt(self) -> ReturnStmt:
        start = self.consume('GIVE')
        self.consume('BACK', "'back' after 'give'")
        if self.match('SEMICOLON'):
            self.advance()
            return ReturnStmt(None, line=start.line, column=start.column)
        value = self.parse_expression()
        self.consume('SEMICOLON', "';' after give back")
        return ReturnStmt(value, line=start.line, column=start.column)

    def parse_block(self) -> Block:
        start = self.consume('LBRACE', "'{'")
        statements: List[Node] = []
        while not self.match('RBRACE'):
            if self.match('EOF'):
                raise self.error(self.peek(), "unterminated block, expected '}'")
            statements.append(self.parse_statement())
        self.consume('RBRACE')
        return Block(statements, line=start.line, column=start.column)

    def parse_condition(self) -> Node:
        self.consume('LPAR', "'(' before condition")
        condition = self.parse_expression()
        self.consume('RPAR', "')' after condition")
        return condition

    def parse_if_stmt(self) -> IfStmt:
        start = self.consume('IF')
        condition = self.parse_condition()
        then_block = self.parse_block()
        else_block = None
        if self.match('ELSE'):
            self.advance()
            if self.match('IF'):
                nested = self.parse_if_stmt()
                else_block = Block([nested], line=nested.line, column=nested.column)
            else:
                else_block = self.parse_block()
        return IfStmt(condition, then_block, else_block, line=start.line, column=start.column)

    def parse_while_stmt(self) -> WhileStmt:
        start = self.consume('WHILE')
        condition = self.parse_condition()
        body = self.parse_block()
        return WhileStmt(condition, body, line=start.line, column=start.column)

    # Expressions, lowest precedence first

    def parse_expression(self) -> Node:
        return self.parse_logic_or()

    def parse_binary(self, ops: List[str], operand) -> Node:
        node = operand()
        while self.match(ops):
            op_token = self.advance()
            right = operand()
            node = BinaryOp(str(op_token), node, right, line=op_token.line, column=op_token.column)
        return node

    def parse_logic_or(self) -> Node:
        return self.parse_binary(['OR'], self.parse_logic_and)

    def parse_logic_and(self) -> Node:
        return self.parse_binary(['AND'], self.parse_equality)

    def parse_equality(self) -> Node:
        return self.parse_binary(EQUALITY_OPS, self.parse_comparison)

    def parse_comparison(self) -> Node:
        return self.parse_binary(COMPARISON_OPS, self.parse_term)

    def parse_term(self) -> Node:
        return self.parse_binary(ADDITIVE_OPS, self.parse_factor)

    def parse_factor(self) -> Node:
        return self.parse_binary(MULTIPLICATIVE_OPS, self.parse_unary)

    def parse_unary(self) -> Node:
        if self.match(UNARY_OPS):
            op_token = self.advance()
            operand = self.parse_unary()
            return UnaryOp(str(op_token), operand, line=op_token.line, column=op_token.column)
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        node = self.parse_primary()
        while True:
            if self.match('LSQB'):
                bracket = self.advance()
                index_expr = self.parse_expression()
                self.consume('RSQB', "']'")
                node = Index(node, index_expr, line=bracket.line, column=bracket.column)
                continue
            if self.match('LPAR'):
                paren = self.peek()
                if not isinstance(node, Ident):
                    raise self.error(paren, "only named functions can be called")
                self.advance()
                args: List[Node] = []
                if not self.match('RPAR'):
                    args.append(self.parse_expression())
                    while self.match('COMMA'):
                        self.advance()
                        args.append(self.parse_expression())
                self.consume('RPAR', "')' after arguments")
                node = Call(node.name, args, line=node.line, column=node.column)
                continue
            break
        return node

    def parse_primary(self) -> Node:
        token = self.peek()
        pos = dict(line=token.line, column=token.column)
        if token.type == 'INT':
            self.advance()
            # int() refuses very long digit strings, so reject those by length first
            if len(token.value.lstrip('0')) > len(str(INT_MAX)):
                raise self.error(token, f"integer literal {token.value[:20]}... out of range")
            value = int(token.value.lstrip('0') or '0')
            if value < INT_MIN or value > INT_MAX:
                raise self.error(token, f"integer literal {token.value} out of range")
            return Literal(value, 'Int', **pos)
        if token.type == 'FLOAT':
            self.advance()
            return Literal(float(token.value), 'Float', **pos)
        if token.type == 'STRING':
            self.advance()
            return Literal(str(token), 'String', **pos)
        if token.type in ('TRUE', 'FALSE'):
            self.advance()
            return Literal(token.type == 'TRUE', 'Bool', **pos)
        if token.type == 'NAME':
            self.advance()
            return Ident(str(token), **pos)
        if token.type == 'LSQB':
            self.advance()
            elements: List[Node] = []
            while not self.match('RSQB'):
                elements.append(self.parse_expression())
                if not self.match('COMMA'):
                    break
                self.advance()
            self.consume('RSQB', "']' after array elements")
            return ArrayLit(elements, **pos)
        if token.type == 'LPAR':
            self.advance()
            if self.match('RPAR'):
                self.advance()
                return Literal(UNIT, 'Unit', **pos)
            expr = self.parse_expression()
            self.consume('RPAR', "')'")
            return expr
        if token.type == 'IF':
            return self.parse_conditional()
        raise self.error(token, f"expected an expression, found {describe(token)}")

    def parse_conditional(self) -> Conditional:
        start = self.consume('IF')
        condition = self.parse_condition()
        self.consume('LBRACE', "'{'")
        then_expr = self.parse_expression()
        self.consume('RBRACE', "'}'")
        self.consume('ELSE', "'else' in conditional expression")
        self.consume('LBRACE', "'{'")
        else_expr = self.parse_expression()
        self.consume('RBRACE', "'}'")
        return Conditional(condition, then_expr, else_expr, line=start.line, column=start.column)


def _run(source: str, entry) -> Node:
    try:
        return entry(Parser(tokenize(source)))
    except RecursionError:
        raise ParseError(1, 1, "program is nested too deeply") from None


def parse_program(source: str) -> Program:
    """Parse WokeLang source code into a Program AST."""
    return _run(source, Parser.parse_program)


def parse_expression(source: str) -> Node:
    """Parse a single WokeLang expression followed by end of input."""
    return _run(source, Parser.parse_single_expression)
