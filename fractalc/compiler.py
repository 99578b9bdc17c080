"""
fractalc - Compiler Orchestrator
Runs all compiler phases in sequence and returns the shader sources.
"""

import json
import sys
from typing import Optional

from .ast_nodes import ASTNode
from .lexer import tokenize, LexerError
from .parser import Parser, ParseError
from .semantic import SemanticAnalyzer, SemanticError
from .codegen import decompose
from .assembler import KernelProgram, assemble, vertex_program
from .settings import Settings


class CompilationError(Exception):
    """Unified wrapper for errors in the formula text."""
    pass


def _logger(debug: bool):
    def log(msg):
        if debug:
            print(f"[fractalc] {msg}", file=sys.stderr)
    return log


def parse_formula(source: str, debug: bool = False) -> ASTNode:
    """
    Run lexical, syntactic and semantic analysis on a formula string.

    Raises CompilationError on any front-end failure.
    """
    log = _logger(debug)

    # ── Phase 1: Lexical Analysis ─────────────────────────────────────────────
    log("Phase 1: Lexical analysis")
    try:
        tokens = tokenize(source)
    except LexerError as e:
        raise CompilationError(str(e)) from e

    log(f"  {len(tokens)-1} tokens produced")

    # ── Phase 2: Parsing ──────────────────────────────────────────────────────
    log("Phase 2: Parsing")
    try:
        tree = Parser(tokens).parse()
    except ParseError as e:
        raise CompilationError(str(e)) from e

    # ── Phase 3: Semantic Analysis ────────────────────────────────────────────
    log("Phase 3: Semantic analysis")
    try:
        SemanticAnalyzer().analyze(tree)
    except SemanticError as e:
        raise CompilationError(str(e)) from e

    return tree


def compile_tree(tree: ASTNode, settings: Settings, debug: bool = False) -> KernelProgram:
    """
    Decompose a parse tree and assemble the fragment and vertex programs.

    UnsupportedNodeError and UnknownColoringModeError propagate unchanged.
    """
    log = _logger(debug)

    # ── Phase 4: Expression Decomposition ─────────────────────────────────────
    log("Phase 4: Expression decomposition")
    expression = decompose(tree)
    log(f"  f(z, c) = {expression}")

    # ── Phase 5: Kernel Assembly ──────────────────────────────────────────────
    log(f"Phase 5: Kernel assembly (coloring={settings.coloring!r}, "
        f"iterations={settings.iterations}, julia={settings.julia}, smooth={settings.smooth})")
    fragment = assemble(expression, settings, settings.julia)

    log("  Compilation successful")
    return KernelProgram(fragment=fragment, vertex=vertex_program())


def compile_source(
    source: str,
    settings: Optional[Settings] = None,
    emit_ast: bool = False,
    debug: bool = False,
):
    """
    Compile a formula to GLSL shader sources.

    Parameters
    ----------
    source     : formula text, e.g. "z^{2}+c"
    settings   : render settings (defaults to Settings())
    emit_ast   : if True, return a JSON representation of the parse tree instead
    debug      : print each phase summary to stderr

    Returns
    -------
    KernelProgram (or JSON parse tree string if emit_ast=True)

    Raises
    ------
    CompilationError on a malformed formula
    UnknownColoringModeError when settings.coloring is not a known mode
    """
    if settings is None:
        settings = Settings()

    tree = parse_formula(source, debug=debug)
    if emit_ast:
        return _ast_to_json(tree)
    return compile_tree(tree, settings, debug=debug)


def compile_file(
    input_path: str,
    output_path: str,
    settings: Optional[Settings] = None,
    vertex_path: Optional[str] = None,
    emit_ast: bool = False,
    debug: bool = False,
) -> None:
    """Read a formula file and write the fragment shader (and vertex shader) source."""
    with open(input_path, "r", encoding="utf-8") as f:
        source = f.read().strip()

    write_outputs(
        compile_source(source, settings=settings, emit_ast=emit_ast, debug=debug),
        output_path,
        vertex_path,
    )


def write_outputs(result, output_path: str, vertex_path: Optional[str] = None) -> None:
    if isinstance(result, str):
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(result)
        return

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(result.fragment)
    if vertex_path:
        with open(vertex_path, "w", encoding="utf-8") as f:
            f.write(result.vertex)


# ── AST serialization (for --emit-ast) ────────────────────────────────────────

def _ast_to_json(node) -> str:
    return json.dumps(_node_to_dict(node), indent=2)


def _node_to_dict(node):
    if node is None:
        return None
    if not hasattr(node, '__dataclass_fields__'):
        return node  # primitive
    d = {"_type": type(node).__name__}
    for field_name in node.__dataclass_fields__:
        val = getattr(node, field_name)
        d[field_name] = _node_to_dict(val)
    return d
