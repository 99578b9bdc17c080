"""
fractalc - Recursive Descent Parser
Converts a token stream into a parse tree for one complex-valued formula.

Precedence, loosest first:
    additive        a + b   a - b
    multiplicative  a * b   a / b   a b   (juxtaposition)
    unary           -a   +a
    power           a ^ b   (right-associative)
    primary         number, variable, (a), {a}, \\frac{a}{b}, f(a)
"""

from typing import List
from .lexer import Token, TokenType
from .ast_nodes import (
    NumberNode, VariableNode, UnaryOpNode, BinaryOpNode, ASTNode
)


class ParseError(Exception):
    def __init__(self, message: str, pos: int):
        super().__init__(f"[ParseError] Col {pos}: {message}")
        self.pos = pos


# Tokens that may begin an implicit multiplication operand
_PRIMARY_START = {
    TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.FUNCTION,
    TokenType.LPAREN, TokenType.LBRACE, TokenType.FRAC,
}


class Parser:
    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._pos = 0

    # ------------------------------------------------------------------ helpers

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, ttype: TokenType) -> Token:
        tok = self._peek()
        if tok.type != ttype:
            raise ParseError(
                f"Expected {ttype.name} but got {tok.type.name} ({tok.value!r})",
                tok.pos
            )
        return self._advance()

    def _match(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _match_operator(self, *ops: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.OPERATOR and tok.value in ops

    # ------------------------------------------------------------------ public

    def parse(self) -> ASTNode:
        if self._match(TokenType.EOF):
            raise ParseError("Empty formula", self._peek().pos)
        node = self._parse_expression()
        if not self._match(TokenType.EOF):
            tok = self._peek()
            raise ParseError(f"Unexpected trailing token {tok.value!r}", tok.pos)
        return node

    # ------------------------------------------------------------------ expressions

    def _parse_expression(self) -> ASTNode:
        return self._parse_additive()

    def _parse_additive(self) -> ASTNode:
        left = self._parse_multiplicative()

        while self._match_operator('+', '-'):
            op_tok = self._advance()
            right = self._parse_multiplicative()
            left = BinaryOpNode(left=left, op=op_tok.value, right=right, pos=op_tok.pos)

        return left

    def _parse_multiplicative(self) -> ASTNode:
        left = self._parse_unary()

        while True:
            if self._match_operator('*', '/'):
                op_tok = self._advance()
                right = self._parse_unary()
                left = BinaryOpNode(left=left, op=op_tok.value, right=right, pos=op_tok.pos)
            elif self._peek().type in _PRIMARY_START:
                # 2z, z(z+1), \pi c
                pos = self._peek().pos
                right = self._parse_power()
                left = BinaryOpNode(left=left, op='*', right=right, pos=pos)
            else:
                break

        return left

    def _parse_unary(self) -> ASTNode:
        if self._match_operator('-'):
            op_tok = self._advance()
            operand = self._parse_unary()
            return UnaryOpNode(op='neg', operand=operand, pos=op_tok.pos)
        if self._match_operator('+'):
            self._advance()
            return self._parse_unary()
        return self._parse_power()

    def _parse_power(self) -> ASTNode:
        base = self._parse_primary()
        if self._match_operator('^'):
            op_tok = self._advance()
            exponent = self._parse_unary()
            return BinaryOpNode(left=base, op='^', right=exponent, pos=op_tok.pos)
        return base

    def _parse_primary(self) -> ASTNode:
        tok = self._peek()

        if tok.type == TokenType.NUMBER:
            self._advance()
            return NumberNode(value=tok.value, pos=tok.pos)

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return VariableNode(name=tok.value, pos=tok.pos)

        if tok.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return expr

        if tok.type == TokenType.LBRACE:
            return self._parse_group()

        if tok.type == TokenType.FRAC:
            self._advance()
            numerator = self._parse_group()
            denominator = self._parse_group()
            return BinaryOpNode(left=numerator, op='/', right=denominator, pos=tok.pos)

        if tok.type == TokenType.FUNCTION:
            self._advance()
            if self._match(TokenType.LPAREN, TokenType.LBRACE):
                argument = self._parse_primary()
            else:
                # \sin z^2 reads as \sin(z^2)
                argument = self._parse_power()
            return UnaryOpNode(op=tok.value, operand=argument, pos=tok.pos)

        raise ParseError(
            f"Unexpected token {tok.type.name} ({tok.value!r}) in expression",
            tok.pos
        )

    def _parse_group(self) -> ASTNode:
        """A braced {expression}, or a bare primary as in \\frac{1}z."""
        if not self._match(TokenType.LBRACE):
            return self._parse_primary()
        self._advance()
        expr = self._parse_expression()
        self._expect(TokenType.RBRACE)
        return expr
