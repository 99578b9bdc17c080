"""
fractalc - Parse Tree Definitions
Immutable typed parse tree for a single complex-valued iteration formula.
"""

from dataclasses import dataclass, field
from typing import Union


BINARY_OPERATORS = frozenset({'+', '-', '*', '/', '^'})

# Every tag names exactly one runtime routine: c<tag>
UNARY_OPERATORS = frozenset({
    'neg', 'sqrt', 'exp', 'ln', 'abs', 'arg',
    'floor', 'round', 'ceil', 'Re', 'Im',
    'sin', 'cos', 'tan', 'cot', 'sec', 'csc',
    'sinh', 'cosh', 'tanh', 'coth', 'sech', 'csch',
    'arcsin', 'arccos', 'arctan', 'arccot', 'arcsec', 'arccsc',
    'Gamma',
})

RESERVED_NUMBERS = frozenset({'i', 'e', '\\pi'})
FREE_VARIABLES   = frozenset({'z', 'c'})


@dataclass(frozen=True)
class ASTNode:
    """Base class for all parse tree nodes."""


@dataclass(frozen=True)
class NumberNode(ASTNode):
    """A real literal lexeme ("3", "0.25") or one of i, e, \\pi."""
    value: str = "0"
    pos: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class VariableNode(ASTNode):
    """A free variable exposed by the kernel (z or c)."""
    name: str = ""
    pos: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class UnaryOpNode(ASTNode):
    """A named complex function applied to one operand."""
    op: str = ""
    operand: ASTNode = None
    pos: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOpNode(ASTNode):
    """left <op> right, with op one of + - * / ^."""
    left: ASTNode = None
    op: str = ""
    right: ASTNode = None
    pos: int = field(default=0, compare=False, repr=False)


ParseNode = Union[NumberNode, VariableNode, UnaryOpNode, BinaryOpNode]
