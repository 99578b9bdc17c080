"""
fractalc - compiles complex iteration formulas into WebGL escape-time fractal shaders.
"""

from .ast_nodes import NumberNode, VariableNode, UnaryOpNode, BinaryOpNode, ParseNode
from .codegen import decompose, UnsupportedNodeError
from .coloring import COLORING_MODES, UnknownColoringModeError
from .assembler import KernelProgram, assemble, vertex_program
from .settings import Settings, SettingsError
from .compiler import compile_source, compile_tree, compile_file, parse_formula, CompilationError

__version__ = "0.1.0"
