"""
fractalc - Semantic Analyzer
Validates a parse tree against the contract the code generator relies on:
  - Binary operators are one of + - * / ^
  - Unary operators name a routine in the complex runtime
  - Number lexemes are a non-negative literal or one of i, e, \\pi
  - The only free variables are z and c
"""

import re
from .ast_nodes import (
    NumberNode, VariableNode, UnaryOpNode, BinaryOpNode, ASTNode,
    BINARY_OPERATORS, UNARY_OPERATORS, RESERVED_NUMBERS, FREE_VARIABLES,
)

_LITERAL_RE = re.compile(r'(?:\d+(?:\.\d*)?|\.\d+)\Z')


class SemanticError(Exception):
    def __init__(self, message: str, pos: int):
        super().__init__(f"[SemanticError] Col {pos}: {message}")
        self.pos = pos


class SemanticAnalyzer:

    def analyze(self, tree: ASTNode) -> None:
        self._visit(tree)

    # ------------------------------------------------------------------ visitor

    def _visit(self, node: ASTNode) -> None:
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, self._visit_unknown)
        visitor(node)

    def _visit_unknown(self, node) -> None:
        raise SemanticError(
            f"Unexpected node type {type(node).__name__}",
            getattr(node, 'pos', 0)
        )

    def _visit_NumberNode(self, node: NumberNode) -> None:
        if not isinstance(node.value, str):
            raise SemanticError(f"Invalid number literal {node.value!r}", node.pos)
        if node.value in RESERVED_NUMBERS:
            return
        if not _LITERAL_RE.match(node.value):
            raise SemanticError(f"Invalid number literal {node.value!r}", node.pos)

    def _visit_VariableNode(self, node: VariableNode) -> None:
        if not isinstance(node.name, str) or node.name not in FREE_VARIABLES:
            raise SemanticError(
                f"Unknown variable '{node.name}'. "
                f"Valid: {', '.join(sorted(FREE_VARIABLES))}",
                node.pos
            )

    def _visit_UnaryOpNode(self, node: UnaryOpNode) -> None:
        if node.op not in UNARY_OPERATORS:
            raise SemanticError(f"Unknown function '{node.op}'", node.pos)
        self._visit(node.operand)

    def _visit_BinaryOpNode(self, node: BinaryOpNode) -> None:
        if node.op not in BINARY_OPERATORS:
            raise SemanticError(
                f"Invalid operator '{node.op}'. "
                f"Valid: {' '.join(sorted(BINARY_OPERATORS))}",
                node.pos
            )
        self._visit(node.left)
        self._visit(node.right)
