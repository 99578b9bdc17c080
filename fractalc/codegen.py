"""
fractalc - Expression Decomposer
Lowers a parse tree into one inline GLSL expression over vec2 complex values.

    z^{2}+c    ->  cpow(z,vec2(2.0,0.0))+c
    \\sin(z)*c  ->  cm(csin(z),c)
"""

from .ast_nodes import (
    NumberNode, VariableNode, UnaryOpNode, BinaryOpNode, ASTNode,
    UNARY_OPERATORS,
)

# Prefix naming the complex-function runtime: sin -> csin
COMPLEX_PREFIX = "c"

# Binary operators lowered to runtime helper calls
HELPER_CALLS = {
    '*': 'cm',
    '/': 'cd',
    '^': 'cpow',
}

# Component-wise on vec2, so emitted as plain infix
INFIX_OPERATORS = ('+', '-')

SYMBOL_LITERALS = {
    'i':   "vec2(0.0,1.0)",
    'e':   "vec2(e,0.0)",
    '\\pi': "vec2(pi,0.0)",
}


class UnsupportedNodeError(Exception):
    def __init__(self, message: str, pos: int = 0):
        super().__init__(f"[UnsupportedNodeError] Col {pos}: {message}")
        self.pos = pos


class Decomposer:

    def generate(self, tree: ASTNode) -> str:
        """Return the GLSL expression computing the value of tree."""
        return self._emit_expr(tree)

    # ------------------------------------------------------------------ expressions

    def _emit_expr(self, node: ASTNode) -> str:
        if isinstance(node, NumberNode):
            return self._emit_number(node)

        if isinstance(node, VariableNode):
            if not isinstance(node.name, str):
                raise UnsupportedNodeError(f"Malformed variable name: {node.name!r}", node.pos)
            return node.name

        if isinstance(node, BinaryOpNode):
            return self._emit_binary(node)

        if isinstance(node, UnaryOpNode):
            if node.op not in UNARY_OPERATORS:
                raise UnsupportedNodeError(f"Unsupported function: {node.op!r}", node.pos)
            return f"{COMPLEX_PREFIX}{node.op}({self._emit_expr(node.operand)})"

        raise UnsupportedNodeError(
            f"Unknown parse node type: {type(node).__name__}",
            getattr(node, 'pos', 0)
        )

    def _emit_number(self, node: NumberNode) -> str:
        v = node.value
        if not isinstance(v, str):
            raise UnsupportedNodeError(f"Malformed number lexeme: {v!r}", node.pos)
        if v in SYMBOL_LITERALS:
            return SYMBOL_LITERALS[v]
        if '.' in v:
            return f"vec2({v},0.0)"
        return f"vec2({v}.0,0.0)"

    def _emit_binary(self, node: BinaryOpNode) -> str:
        op = node.op
        if op in INFIX_OPERATORS:
            left  = self._emit_expr(node.left)
            right = self._emit_expr(node.right)
            # a-(b+c) must not flatten to a-b+c
            if op == '-' and isinstance(node.right, BinaryOpNode) and node.right.op in INFIX_OPERATORS:
                right = f"({right})"
            return f"{left}{op}{right}"

        helper = HELPER_CALLS.get(op)
        if helper is None:
            raise UnsupportedNodeError(f"Unsupported binary operator: {op!r}", node.pos)
        return f"{helper}({self._emit_expr(node.left)},{self._emit_expr(node.right)})"


def decompose(tree: ASTNode) -> str:
    return Decomposer().generate(tree)
