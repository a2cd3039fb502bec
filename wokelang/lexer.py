"""Lexer for the WokeLang language.

The terminal set is written as a Lark grammar and scanned with Lark's basic
lexer. Lark takes care of the two classic lexing chores: keywords win over
identifiers when the whole word matches (`to` is TO, `total` is NAME) and
longer operators win over their prefixes (`==` before `=`, `->` before `-`).
This module adds what Lark does not know about: escape processing in string
literals, WokeLang error messages, and the trailing EOF token.

`tokenize` is a generator, so the parser pulls tokens one at a time and a
lexical error surfaces only when the parser reaches it.
"""

from __future__ import annotations

from typing import Iterator

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters

from .errors import ParseError


WOKE_TERMINALS = r"""
    start: _token*

    _token: NAME | INT | FLOAT | STRING
          | TO | GIVE | BACK | IF | ELSE | WHILE | TRUE | FALSE | LET
          | STRING_TYPE | INT_TYPE | FLOAT_TYPE | BOOL_TYPE | ARRAY_TYPE | UNIT_TYPE
          | LPAR | RPAR | LBRACE | RBRACE | LSQB | RSQB | COMMA | SEMICOLON | COLON
          | PLUS | MINUS | STAR | SLASH | PERCENT
          | EQUAL | EQEQ | NOTEQ | LESS | LESSEQ | MORE | MOREEQ
          | AND | OR | BANG | ARROW

    // Keywords
    TO: "to"
    GIVE: "give"
    BACK: "back"
    IF: "if"
    ELSE: "else"
    WHILE: "while"
    TRUE: "true"
    FALSE: "false"
    LET: "let"
    STRING_TYPE: "String"
    INT_TYPE: "Int"
    FLOAT_TYPE: "Float"
    BOOL_TYPE: "Bool"
    ARRAY_TYPE: "Array"
    UNIT_TYPE: "Unit"

    // Literals
    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    FLOAT.2: /[0-9]+\.[0-9]+([eE][+-]?[0-9]+)?/
    INT: /[0-9]+/
    STRING: /"(\\.|[^"\\])*"/

    // Punctuation
    LPAR: "("
    RPAR: ")"
    LBRACE: "{"
    RBRACE: "}"
    LSQB: "["
    RSQB: "]"
    COMMA: ","
    SEMICOLON: ";"
    COLON: ":"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    EQUAL: "="
    EQEQ: "=="
    NOTEQ: "!="
    LESS: "<"
    LESSEQ: "<="
    MORE: ">"
    MOREEQ: ">="
    AND: "&&"
    OR: "||"
    BANG: "!"
    ARROW: "->"

    COMMENT: /\/\/[^\n]*/
    WS: /[ \t\r\n\f]+/
    %ignore COMMENT
    %ignore WS
"""


WOKE_LEXER = Lark(
    WOKE_TERMINALS,
    parser=None,
    lexer='basic',
)

KEYWORDS = {
    'TO', 'GIVE', 'BACK', 'IF', 'ELSE', 'WHILE', 'TRUE', 'FALSE', 'LET',
    'STRING_TYPE', 'INT_TYPE', 'FLOAT_TYPE', 'BOOL_TYPE', 'ARRAY_TYPE', 'UNIT_TYPE',
}

# Type keyword terminal -> annotation name
TYPE_KEYWORDS = {
    'STRING_TYPE': 'String',
    'INT_TYPE': 'Int',
    'FLOAT_TYPE': 'Float',
    'BOOL_TYPE': 'Bool',
    'ARRAY_TYPE': 'Array',
    'UNIT_TYPE': 'Unit',
}

ESCAPES = {
    'n': '\n',
    't': '\t',
    '\\': '\\',
    '"': '"',
    'r': '\r',
    '0': '\0',
}


def unescape_string(token: Token) -> str:
    """Strip the quotes from a STRING token and resolve its escapes."""
    raw = token.value[1:-1]
    out = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == '\\':
            esc = raw[i + 1]
            if esc not in ESCAPES:
                raise ParseError(token.line, token.column, f"invalid escape sequence '\\{esc}' in string literal")
            out.append(ESCAPES[esc])
            i += 2
            continue
        out.append(c)
        i += 1
    return ''.join(out)


def tokenize(source: str) -> Iterator[Token]:
    """Lazily convert source text into tokens, ending with an EOF token.

    Raises ParseError (when the offending token is reached) for characters
    that start no token, unterminated strings and bad escapes.
    """
    line, column = 1, 1
    try:
        for token in WOKE_LEXER.lex(source):
            if token.type == 'STRING':
                token = Token.new_borrow_pos('STRING', unescape_string(token), token)
            yield token
            line, column = token.end_line, token.end_column
    except UnexpectedCharacters as e:
        if e.char == '"':
            raise ParseError(e.line, e.column, "unterminated string literal") from None
        raise ParseError(e.line, e.column, f"unexpected character {e.char!r}") from None
    yield Token('EOF', '', line=line, column=column)


def describe(token: Token) -> str:
    """Human readable name of a token for error messages."""
    if token.type == 'EOF':
        return 'end of input'
    if token.type == 'STRING':
        return 'string literal'
    return repr(str(token.value))
