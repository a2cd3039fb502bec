"""Abstract Syntax Tree (AST) definitions for WokeLang.

The AST classes defined in this module represent the syntactic structure
of parsed WokeLang programs and expressions. Every node records the line and
column where it starts so that runtime errors can point back at the source.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Any

from .types import TypeSpec


@dataclass
class Node:
    """Base class for all AST nodes."""
    line: int = field(default=0, kw_only=True, compare=False)
    column: int = field(default=0, kw_only=True, compare=False)


@dataclass
class Program(Node):
    body: List[Node]

    @property
    def functions(self) -> List['FuncDecl']:
        return [item for item in self.body if isinstance(item, FuncDecl)]

    @property
    def statements(self) -> List[Node]:
        return [item for item in self.body if not isinstance(item, FuncDecl)]


@dataclass
class FuncParam:
    name: str
    type_spec: TypeSpec


@dataclass
class FuncDecl(Node):
    name: str
    params: List[FuncParam]
    return_type: Optional[TypeSpec]
    body: 'Block'


# Statements

@dataclass
class Block(Node):
    statements: List[Node]


@dataclass
class LetStmt(Node):
    name: str
    type_spec: Optional[TypeSpec]
    expr: Node


@dataclass
class Assign(Node):
    name: str
    value: Node


@dataclass
class IfStmt(Node):
    condition: Node
    then_block: Block
    else_block: Optional[Block]


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Block


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class ExprStmt(Node):
    expr: Node


# Expressions

@dataclass
class Literal(Node):
    value: Any
    literal_type: str  # 'Int', 'Float', 'String', 'Bool', 'Unit'


@dataclass
class Ident(Node):
    name: str


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class Call(Node):
    name: str
    args: List[Node]


@dataclass
class ArrayLit(Node):
    elements: List[Node]


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class Conditional(Node):
    condition: Node
    then_expr: Node
    else_expr: Node
