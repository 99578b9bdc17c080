"""
fractalc - Test Suite
Tests for Lexer, Parser, Semantic Analyzer, Decomposer, Runtime, Assembler,
Reference Evaluator, Settings, Compiler and CLI.
"""

import sys
import os
import io
import json
import math
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from fractalc.lexer import tokenize, TokenType, LexerError
from fractalc.parser import Parser, ParseError
from fractalc.semantic import SemanticAnalyzer, SemanticError
from fractalc.codegen import decompose, UnsupportedNodeError
from fractalc.ast_nodes import (
    NumberNode, VariableNode, UnaryOpNode, BinaryOpNode, UNARY_OPERATORS,
)
from fractalc.runtime import (
    runtime_library, lanczos_table_block, constants_block, LANCZOS_COEFFICIENTS,
)
from fractalc.coloring import COLORING_MODES, UnknownColoringModeError, coloring_body, is_domain
from fractalc.assembler import (
    assemble, vertex_program, header_block, iteration_function_block, coloring_block,
    seed_block, escape_test_block, loop_block, smoothing_block, output_block,
)
from fractalc.settings import Settings, SettingsError
from fractalc.compiler import compile_source, compile_file, parse_formula, CompilationError
from fractalc import reference
from fractalc.reference import escape_time, color, evaluate, vec2
from fractalc.preview import pixel_grid, render, save_image
from fractalc.cli import main


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def token_types(source: str):
    return [t.type for t in tokenize(source) if t.type != TokenType.EOF]


def token_values(source: str):
    return [t.value for t in tokenize(source) if t.type != TokenType.EOF]


def parse_(source: str):
    return Parser(tokenize(source.strip())).parse()


Z = VariableNode(name="z")
C = VariableNode(name="c")


def num(value):
    return NumberNode(value=value)


def binop(left, op, right):
    return BinaryOpNode(left=left, op=op, right=right)


def unop(op, operand):
    return UnaryOpNode(op=op, operand=operand)


MANDELBROT = "z^{2}+c"


# ═══════════════════════════════════════════════════════════════════════════════
# Lexer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestLexer(unittest.TestCase):

    def test_mandelbrot(self):
        self.assertEqual(token_types(MANDELBROT), [
            TokenType.IDENTIFIER, TokenType.OPERATOR, TokenType.LBRACE,
            TokenType.NUMBER, TokenType.RBRACE, TokenType.OPERATOR,
            TokenType.IDENTIFIER,
        ])

    def test_number_integer(self):
        toks = tokenize("42")
        self.assertEqual(toks[0].type, TokenType.NUMBER)
        self.assertEqual(toks[0].value, "42")

    def test_number_float(self):
        self.assertEqual(token_values("3.14"), ["3.14"])
        self.assertEqual(token_values(".5"), [".5"])

    def test_reserved_numbers(self):
        toks = [t for t in tokenize("i e \\pi") if t.type != TokenType.EOF]
        self.assertTrue(all(t.type == TokenType.NUMBER for t in toks))
        self.assertEqual([t.value for t in toks], ["i", "e", "\\pi"])

    def test_bare_pi(self):
        self.assertEqual(token_values("pi"), ["\\pi"])

    def test_command_function(self):
        toks = tokenize("\\sin(z)")
        self.assertEqual(toks[0].type, TokenType.FUNCTION)
        self.assertEqual(toks[0].value, "sin")

    def test_bare_function(self):
        toks = tokenize("Gamma(z)")
        self.assertEqual(toks[0].type, TokenType.FUNCTION)
        self.assertEqual(toks[0].value, "Gamma")

    def test_longest_function_wins(self):
        self.assertEqual(token_values("cosh"), ["cosh"])
        self.assertEqual(token_values("arcsin"), ["arcsin"])

    def test_log_alias(self):
        self.assertEqual(token_values("\\log z"), ["ln", "z"])

    def test_letter_run_split(self):
        self.assertEqual(token_values("zc"), ["z", "c"])
        self.assertEqual(token_values("zsin(z)"), ["z", "sin", "(", "z", ")"])

    def test_cdot_is_multiplication(self):
        toks = tokenize("z\\cdot c")
        self.assertEqual(toks[1].type, TokenType.OPERATOR)
        self.assertEqual(toks[1].value, "*")

    def test_layout_commands_skipped(self):
        self.assertEqual(token_values("\\left(z\\right)"), ["(", "z", ")"])
        self.assertEqual(token_values("z\\,c"), ["z", "c"])

    def test_frac(self):
        self.assertIn(TokenType.FRAC, token_types("\\frac{1}{z}"))

    def test_position_tracking(self):
        toks = tokenize("z + c")
        self.assertEqual(toks[0].pos, 0)
        self.assertEqual(toks[2].pos, 4)

    def test_invalid_character(self):
        with self.assertRaises(LexerError):
            tokenize("z # c")

    def test_unknown_command(self):
        with self.assertRaises(LexerError):
            tokenize("\\foo z")


# ═══════════════════════════════════════════════════════════════════════════════
# Parser Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestParser(unittest.TestCase):

    def test_mandelbrot(self):
        self.assertEqual(parse_(MANDELBROT), binop(binop(Z, "^", num("2")), "+", C))

    def test_positions_ignored_in_equality(self):
        self.assertEqual(parse_("z + c"), parse_("z+c"))

    def test_implicit_multiplication(self):
        self.assertEqual(parse_("2z"), binop(num("2"), "*", Z))
        self.assertEqual(parse_("z(z+c)"), binop(Z, "*", binop(Z, "+", C)))

    def test_implicit_multiplication_binds_power(self):
        self.assertEqual(parse_("2z^2"), binop(num("2"), "*", binop(Z, "^", num("2"))))

    def test_left_associative_subtraction(self):
        self.assertEqual(parse_("z-c-1"), binop(binop(Z, "-", C), "-", num("1")))

    def test_power_right_associative(self):
        self.assertEqual(parse_("z^2^3"), binop(Z, "^", binop(num("2"), "^", num("3"))))

    def test_negation(self):
        self.assertEqual(parse_("-z^2"), unop("neg", binop(Z, "^", num("2"))))

    def test_negative_exponent(self):
        self.assertEqual(parse_("z^-1"), binop(Z, "^", unop("neg", num("1"))))

    def test_unary_plus(self):
        self.assertEqual(parse_("+z"), Z)

    def test_frac(self):
        self.assertEqual(parse_("\\frac{1}{z}"), binop(num("1"), "/", Z))

    def test_function_call(self):
        self.assertEqual(parse_("\\sin(z)+c"), binop(unop("sin", Z), "+", C))

    def test_function_without_parens(self):
        self.assertEqual(parse_("\\sin z^2"), unop("sin", binop(Z, "^", num("2"))))

    def test_function_result_raised(self):
        self.assertEqual(parse_("\\sin(z)^2"), binop(unop("sin", Z), "^", num("2")))

    def test_reserved_symbols(self):
        self.assertEqual(parse_("\\pi i"), binop(num("\\pi"), "*", num("i")))

    def test_braces_group(self):
        self.assertEqual(parse_("{z+c}^{2}"), binop(binop(Z, "+", C), "^", num("2")))

    def test_missing_operand(self):
        with self.assertRaises(ParseError):
            parse_("z+")

    def test_unclosed_paren(self):
        with self.assertRaises(ParseError):
            parse_("(z+c")

    def test_trailing_token(self):
        with self.assertRaises(ParseError):
            parse_("z)")

    def test_empty_formula(self):
        with self.assertRaises(ParseError):
            parse_("")


# ═══════════════════════════════════════════════════════════════════════════════
# Semantic Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestSemantic(unittest.TestCase):

    def test_valid_formula(self):
        SemanticAnalyzer().analyze(parse_("\\Gamma(z)+\\pi i c^{2.5}"))

    def test_unknown_variable(self):
        with self.assertRaises(SemanticError):
            SemanticAnalyzer().analyze(parse_("x+c"))

    def test_invalid_binary_operator(self):
        with self.assertRaises(SemanticError):
            SemanticAnalyzer().analyze(binop(Z, "%", C))

    def test_invalid_function(self):
        with self.assertRaises(SemanticError):
            SemanticAnalyzer().analyze(unop("foo", Z))

    def test_invalid_number_lexeme(self):
        for lexeme in ("abc", "-1", "1e5", ""):
            with self.assertRaises(SemanticError):
                SemanticAnalyzer().analyze(num(lexeme))

    def test_foreign_node(self):
        with self.assertRaises(SemanticError):
            SemanticAnalyzer().analyze("z")

    def test_non_string_fields(self):
        with self.assertRaises(SemanticError):
            SemanticAnalyzer().analyze(NumberNode(value=3))
        with self.assertRaises(SemanticError):
            SemanticAnalyzer().analyze(VariableNode(name=None))


# ═══════════════════════════════════════════════════════════════════════════════
# Decomposer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestDecompose(unittest.TestCase):

    def test_integer_literal_gets_decimal_point(self):
        self.assertEqual(decompose(num("3")), "vec2(3.0,0.0)")

    def test_decimal_literal_verbatim(self):
        self.assertEqual(decompose(num("3.5")), "vec2(3.5,0.0)")

    def test_imaginary_unit(self):
        self.assertEqual(decompose(num("i")), "vec2(0.0,1.0)")

    def test_euler_constant(self):
        self.assertEqual(decompose(num("e")), "vec2(e,0.0)")

    def test_pi_constant(self):
        self.assertEqual(decompose(num("\\pi")), "vec2(pi,0.0)")

    def test_variable(self):
        self.assertEqual(decompose(Z), "z")

    def test_addition_is_infix(self):
        a, b = binop(Z, "*", Z), num("1")
        self.assertEqual(decompose(binop(a, "+", b)), f"{decompose(a)}+{decompose(b)}")

    def test_subtraction_is_infix(self):
        self.assertEqual(decompose(binop(Z, "-", C)), "z-c")

    def test_subtraction_keeps_grouping(self):
        self.assertEqual(decompose(binop(Z, "-", binop(C, "+", num("1")))),
                         "z-(c+vec2(1.0,0.0))")
        self.assertEqual(decompose(binop(binop(Z, "-", C), "-", num("1"))),
                         "z-c-vec2(1.0,0.0)")

    def test_multiplication_order(self):
        self.assertEqual(decompose(binop(C, "*", Z)), "cm(c,z)")
        self.assertEqual(decompose(binop(Z, "*", C)), "cm(z,c)")

    def test_division(self):
        self.assertEqual(decompose(binop(Z, "/", C)), "cd(z,c)")

    def test_power(self):
        self.assertEqual(decompose(binop(Z, "^", num("2"))), "cpow(z,vec2(2.0,0.0))")

    def test_unary_prefix(self):
        self.assertEqual(decompose(unop("sin", Z)), "csin(z)")
        self.assertEqual(decompose(unop("Gamma", binop(Z, "*", C))), "cGamma(cm(z,c))")
        self.assertEqual(decompose(unop("neg", Z)), "cneg(z)")

    def test_mandelbrot(self):
        self.assertEqual(decompose(parse_(MANDELBROT)), "cpow(z,vec2(2.0,0.0))+c")

    def test_nested(self):
        out = decompose(parse_("\\frac{z^{3}}{1+z}+\\sin(c)"))
        self.assertEqual(out, "cd(cpow(z,vec2(3.0,0.0)),vec2(1.0,0.0)+z)+csin(c)")

    def test_every_function_has_runtime_routine(self):
        library = runtime_library()
        for tag in UNARY_OPERATORS:
            call = decompose(unop(tag, Z))
            self.assertEqual(call, f"c{tag}(z)")
            self.assertIn(f"vec2 c{tag}(vec2 z)", library)

    def test_unknown_binary_operator(self):
        with self.assertRaises(UnsupportedNodeError):
            decompose(binop(Z, "%", C))

    def test_unknown_function(self):
        with self.assertRaises(UnsupportedNodeError):
            decompose(unop("foo", Z))

    def test_foreign_node(self):
        with self.assertRaises(UnsupportedNodeError):
            decompose("z")
        with self.assertRaises(UnsupportedNodeError):
            decompose(binop(Z, "+", None))

    def test_malformed_number_lexeme(self):
        for value in (3, 2.5, None):
            with self.assertRaises(UnsupportedNodeError):
                decompose(NumberNode(value=value))

    def test_malformed_variable_name(self):
        with self.assertRaises(UnsupportedNodeError):
            decompose(binop(VariableNode(name=None), "+", C))


# ═══════════════════════════════════════════════════════════════════════════════
# Runtime / Coloring Table Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestRuntime(unittest.TestCase):

    def test_helpers_declared(self):
        library = runtime_library()
        for signature in ("vec2 cm(vec2 z1, vec2 z2)", "vec2 cd(vec2 z1, vec2 z2)",
                          "vec2 cpow(vec2 z1, vec2 z2)", "float cosh(float x)"):
            self.assertIn(signature, library)

    def test_zero_base_cases_present(self):
        library = runtime_library()
        self.assertIn("float nan = 0.0/0.0;", library)
        self.assertIn("float infinity = 1.0/0.0;", library)

    def test_gamma_snap_threshold(self):
        self.assertIn("const float epsilon = 1e-07;", runtime_library())

    def test_lanczos_table(self):
        lines = lanczos_table_block().splitlines()
        self.assertEqual(len(lines), 9)
        self.assertEqual(lines[0], "p[0] = 0.99999999999980993;")
        self.assertEqual(lines[8], f"p[8] = {LANCZOS_COEFFICIENTS[8]};")
        self.assertIn("float p[9];", runtime_library())

    def test_constants(self):
        block = constants_block()
        self.assertIn("const float e = 2.718281828459045;", block)
        self.assertIn("const float pi = 3.141592653589793;", block)

    def test_coloring_table_closed(self):
        self.assertEqual(set(COLORING_MODES),
                         {"hue", "grayscale", "grayscaleInv", "bw", "bwInv", "domain"})

    def test_unknown_coloring(self):
        with self.assertRaises(UnknownColoringModeError):
            coloring_body("rainbow")

    def test_is_domain(self):
        self.assertTrue(is_domain("domain"))
        self.assertFalse(is_domain("hue"))


# ═══════════════════════════════════════════════════════════════════════════════
# Assembler Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestAssembler(unittest.TestCase):

    EXPR = "cpow(z,vec2(2.0,0.0))+c"

    def test_iteration_count_baked_in(self):
        self.assertIn("const int iterations = 500;", header_block(Settings(iterations=500)))
        self.assertIn("const int iterations = 37;", assemble(self.EXPR, Settings(iterations=37)))

    def test_iteration_function(self):
        self.assertEqual(
            iteration_function_block(self.EXPR),
            "vec2 f(vec2 z, vec2 c) {\n    return cpow(z,vec2(2.0,0.0))+c;\n}",
        )

    def test_escape_test(self):
        self.assertEqual(
            escape_test_block(Settings(breakout=10000)),
            "if (z.x*z.x + z.y*z.y > 10000.00) {\n"
            "    iter = float(i);\n"
            "    break;\n"
            "}",
        )

    def test_escape_test_omitted_for_domain(self):
        settings = Settings(coloring="domain")
        self.assertEqual(escape_test_block(settings), "")
        self.assertNotIn("break", loop_block(settings))

    def test_loop_tests_before_step(self):
        loop = loop_block(Settings())
        self.assertTrue(loop.startswith("for (int i = 0; i < iterations; i++) {"))
        self.assertLess(loop.index("break;"), loop.index("z = f(z, c);"))

    def test_seed(self):
        self.assertEqual(seed_block(True), "vec2 z = c;")
        self.assertEqual(seed_block(False), "vec2 z = vec2(0.0,0.0);")

    def test_seed_follows_settings(self):
        self.assertIn("vec2 z = c;", assemble(self.EXPR, Settings(julia=True)))
        self.assertIn("vec2 z = vec2(0.0,0.0);", assemble(self.EXPR, Settings(julia=False)))

    def test_seed_flag_overrides_settings(self):
        self.assertIn("vec2 z = c;", assemble(self.EXPR, Settings(julia=False), True))

    def test_smoothing(self):
        self.assertEqual(smoothing_block(False), "")
        block = smoothing_block(True)
        self.assertTrue(block.startswith("if (iter != floatIter) {"))
        self.assertIn("float nu = log(log_zn / log(2.0)) / log(2.0);", block)
        self.assertIn("iter = iter + 1.0 - nu;", block)

    def test_smoothing_only_when_enabled(self):
        self.assertIn("log_zn", assemble(self.EXPR, Settings(smooth=True)))
        self.assertNotIn("log_zn", assemble(self.EXPR, Settings(smooth=False)))

    def test_coloring_block_escape_mode(self):
        block = coloring_block(Settings(coloring="bw", bias=2, hue_shift=30))
        self.assertTrue(block.startswith("vec3 color(float x) {"))
        self.assertIn("float shift = 30.00;", block)
        self.assertIn("x = pow(x,pow(1.1,2.00));", block)
        self.assertIn("if (x >= 1.0) {\n        return vec3(0.0);", block)

    def test_coloring_block_domain_mode(self):
        block = coloring_block(Settings(coloring="domain", bias=2))
        self.assertTrue(block.startswith("vec3 color(vec2 x) {"))
        self.assertNotIn("pow(1.1", block)

    def test_output(self):
        self.assertEqual(output_block(Settings()),
                         "gl_FragColor = vec4(color(iter/floatIter), 1.0);")
        self.assertEqual(output_block(Settings(coloring="domain")),
                         "gl_FragColor = vec4(color(z), 1.0);")

    def test_unknown_coloring_mode(self):
        with self.assertRaises(UnknownColoringModeError):
            assemble(self.EXPR, Settings(coloring="not-a-real-mode"))

    def test_deterministic(self):
        settings = Settings(iterations=123, coloring="hue", smooth=True, bias=1.5)
        self.assertEqual(assemble(self.EXPR, settings), assemble(self.EXPR, settings))

    def test_program_layout(self):
        program = assemble(self.EXPR, Settings())
        self.assertTrue(program.startswith("precision highp float;"))
        order = ["vec3 hsltorgb(", "vec2 cpow(", "vec2 f(vec2 z, vec2 c)",
                 "vec3 color(", "void main() {", "p[0] =", "for (int i = 0; i < iterations",
                 "gl_FragColor"]
        positions = [program.index(marker) for marker in order]
        self.assertEqual(positions, sorted(positions))

    def test_balanced(self):
        for coloring in COLORING_MODES:
            program = assemble(self.EXPR, Settings(coloring=coloring, smooth=True))
            self.assertEqual(program.count("{"), program.count("}"))
            self.assertEqual(program.count("("), program.count(")"))

    def test_vertex_program(self):
        vertex = vertex_program()
        self.assertIn("attribute vec4 a_position;", vertex)
        self.assertIn("uniform float u_aspect;", vertex)
        self.assertIn("uv = vec2(gl_Position.x * u_aspect,gl_Position.y);", vertex)


# ═══════════════════════════════════════════════════════════════════════════════
# Reference Evaluator Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestReference(unittest.TestCase):

    def assertComplexAlmostEqual(self, actual, expected, places=9):
        actual = complex(actual)
        self.assertAlmostEqual(actual.real, expected.real, places=places)
        self.assertAlmostEqual(actual.imag, expected.imag, places=places)

    def test_zero_base_zero_exponent_is_nan(self):
        r = complex(reference.cpow(vec2(0.0, 0.0), vec2(0.0, 1.0)))
        self.assertTrue(math.isnan(r.real) and math.isnan(r.imag))

    def test_zero_base_negative_exponent_is_infinite(self):
        r = complex(reference.cpow(vec2(0.0, 0.0), vec2(-1.0, 0.0)))
        self.assertTrue(math.isinf(r.real) and math.isinf(r.imag))

    def test_zero_base_positive_exponent_is_zero(self):
        self.assertEqual(complex(reference.cpow(vec2(0.0, 0.0), vec2(2.0, 3.0))), 0j)

    def test_power(self):
        self.assertComplexAlmostEqual(reference.cpow(1j, 2.0), -1 + 0j)
        self.assertComplexAlmostEqual(reference.cpow(2.0, 0.5), complex(math.sqrt(2.0), 0.0))

    def test_multiply_divide(self):
        self.assertComplexAlmostEqual(reference.cm(1 + 2j, 3 + 4j), -5 + 10j)
        self.assertComplexAlmostEqual(reference.cd(1 + 2j, 3 + 4j), 0.44 + 0.08j)

    def test_elementary_functions(self):
        z = 0.3 + 0.2j
        self.assertComplexAlmostEqual(reference.cexp(z), complex(np.exp(z)))
        self.assertComplexAlmostEqual(reference.cln(z), complex(np.log(z)))
        self.assertComplexAlmostEqual(reference.csqrt(z), complex(np.sqrt(z)))
        self.assertComplexAlmostEqual(reference.csin(z), complex(np.sin(z)))
        self.assertComplexAlmostEqual(reference.ccos(z), complex(np.cos(z)))
        self.assertComplexAlmostEqual(reference.ctanh(z), complex(np.tanh(z)))
        self.assertComplexAlmostEqual(reference.carcsin(z), complex(np.arcsin(z)))
        self.assertComplexAlmostEqual(reference.carctan(z), complex(np.arctan(z)))

    def test_gamma_integer(self):
        g = complex(reference.cGamma(5.0))
        self.assertAlmostEqual(g.real, 24.0, places=8)
        self.assertEqual(g.imag, 0.0)

    def test_gamma_half(self):
        self.assertAlmostEqual(complex(reference.cGamma(0.5)).real, math.sqrt(math.pi), places=9)

    def test_gamma_reflection(self):
        self.assertAlmostEqual(complex(reference.cGamma(-0.5)).real,
                               -2.0 * math.sqrt(math.pi), places=8)

    def test_every_function_mirrored(self):
        self.assertEqual(set(reference.FUNCTIONS), set(UNARY_OPERATORS))

    def test_evaluate(self):
        tree = parse_(MANDELBROT)
        self.assertComplexAlmostEqual(evaluate(tree, 1 + 1j, 0.5), 0.5 + 2j)

    def test_evaluate_constants(self):
        self.assertComplexAlmostEqual(evaluate(parse_("e^{\\pi i}"), 0, 0), -1 + 0j)

    def test_escape_step_recorded(self):
        settings = Settings(iterations=500, breakout=10000)
        it, _ = escape_time(parse_(MANDELBROT), settings, 0.5)
        self.assertEqual(float(it), 7.0)

    def test_no_escape_keeps_full_count(self):
        settings = Settings(iterations=500, breakout=10000, smooth=True)
        it, _ = escape_time(parse_(MANDELBROT), settings, 0.0)
        self.assertEqual(float(it), 500.0)
        self.assertEqual(float(it) / settings.iterations, 1.0)

    def test_smoothing_applies_on_escape(self):
        settings = Settings(iterations=500, breakout=10000, smooth=True)
        it, _ = escape_time(parse_(MANDELBROT), settings, 0.5)
        self.assertNotEqual(float(it), 7.0)
        self.assertLess(float(it), 8.0)

    def test_domain_mode_runs_all_iterations(self):
        settings = Settings(iterations=20, coloring="domain")
        it, _ = escape_time(parse_(MANDELBROT), settings, 0.5)
        self.assertEqual(float(it), 20.0)

    def test_julia_seed(self):
        tree = parse_("z^{2}")
        it, _ = escape_time(tree, Settings(julia=True), 2.0)
        self.assertEqual(float(it), 3.0)
        it, _ = escape_time(tree, Settings(julia=False), 2.0)
        self.assertEqual(float(it), 500.0)

    def test_seed_flag_overrides_settings(self):
        it, _ = escape_time(parse_("z^{2}"), Settings(julia=False), 2.0, julia=True)
        self.assertEqual(float(it), 3.0)

    def test_vectorized(self):
        it, z = escape_time(parse_(MANDELBROT), Settings(), np.array([0.0, 0.5, 1.0]))
        self.assertEqual(it.tolist(), [500.0, 7.0, 5.0])
        self.assertEqual(z.shape, (3,))

    def test_bw_threshold(self):
        settings = Settings(coloring="bw")
        self.assertEqual(color(settings, 1.0).tolist(), [0.0, 0.0, 0.0])
        self.assertEqual(color(settings, 0.999).tolist(), [1.0, 1.0, 1.0])

    def test_bw_inverse(self):
        settings = Settings(coloring="bwInv")
        self.assertEqual(color(settings, 1.0).tolist(), [1.0, 1.0, 1.0])
        self.assertEqual(color(settings, 0.5).tolist(), [0.0, 0.0, 0.0])

    def test_grayscale(self):
        np.testing.assert_allclose(color(Settings(coloring="grayscale"), 0.25), [0.75] * 3)
        np.testing.assert_allclose(color(Settings(coloring="grayscaleInv"), 0.25), [0.25] * 3)
        np.testing.assert_allclose(color(Settings(coloring="grayscale"), 2.0), [0.0] * 3)

    def test_bias_curve(self):
        settings = Settings(coloring="grayscaleInv", bias=10)
        self.assertAlmostEqual(float(color(settings, 0.5)[0]), 0.5 ** (1.1 ** 10), places=12)

    def test_hue(self):
        settings = Settings(coloring="hue")
        np.testing.assert_allclose(color(settings, 0.5), [0.0, 1.0, 1.0])
        self.assertEqual(color(settings, 1.0).tolist(), [0.0, 0.0, 0.0])
        self.assertEqual(color(settings, 0.0).tolist(), [0.0, 0.0, 0.0])

    def test_hue_shift(self):
        np.testing.assert_allclose(color(Settings(coloring="hue", hue_shift=180), 0.5),
                                   [1.0, 0.0, 0.0], atol=1e-12)

    def test_domain(self):
        settings = Settings(coloring="domain")
        np.testing.assert_allclose(color(settings, 1j), [0.5, 1.0, 0.0])
        np.testing.assert_allclose(color(settings, 0j), [1.0, 0.0, 0.0])

    def test_unknown_coloring(self):
        with self.assertRaises(UnknownColoringModeError):
            color(Settings(coloring="nope"), 0.5)
        with self.assertRaises(UnknownColoringModeError):
            escape_time(parse_(MANDELBROT), Settings(coloring="nope"), 0.5)


# ═══════════════════════════════════════════════════════════════════════════════
# Preview Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestPreview(unittest.TestCase):

    def test_pixel_grid(self):
        grid = pixel_grid(2, 2)
        self.assertEqual(grid.shape, (2, 2))
        self.assertEqual(complex(grid[0, 0]), -0.5 + 0.5j)
        self.assertEqual(complex(grid[1, 1]), 0.5 - 0.5j)

    def test_pixel_grid_zoom_and_center(self):
        grid = pixel_grid(2, 2, center=(1.0, 1.0), zoom=2.0)
        self.assertEqual(complex(grid[0, 0]), 0.75 + 1.25j)

    def test_pixel_grid_aspect(self):
        grid = pixel_grid(4, 2)
        self.assertEqual(grid.shape, (2, 4))
        self.assertAlmostEqual(grid[0, 0].real, -1.5)

    def test_render(self):
        image = render(parse_(MANDELBROT), Settings(iterations=20), 8, 6)
        self.assertEqual(image.shape, (6, 8, 3))
        self.assertTrue(np.all((image >= 0.0) & (image <= 1.0)))

    def test_save_image(self):
        image = render(parse_(MANDELBROT), Settings(iterations=10, coloring="grayscale"), 8, 6)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "preview.png")
            save_image(image, path)
            self.assertGreater(os.path.getsize(path), 0)


# ═══════════════════════════════════════════════════════════════════════════════
# Settings Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestSettings(unittest.TestCase):

    def test_defaults(self):
        s = Settings()
        self.assertEqual((s.iterations, s.breakout, s.coloring), (500, 10000.0, "hue"))
        self.assertFalse(s.julia)
        self.assertFalse(s.smooth)

    def test_invalid_iterations(self):
        for value in (0, -5, 2.5, True):
            with self.assertRaises(SettingsError):
                Settings(iterations=value)

    def test_invalid_breakout(self):
        with self.assertRaises(SettingsError):
            Settings(breakout=0)

    def test_non_finite_numbers(self):
        for kwargs in ({"breakout": float("inf")}, {"breakout": float("nan")},
                       {"bias": float("nan")}, {"hue_shift": float("nan")},
                       {"hue_shift": float("-inf")}):
            with self.assertRaises(SettingsError):
                Settings(**kwargs)

    def test_flags_must_be_boolean(self):
        with self.assertRaises(SettingsError):
            Settings(julia="yes")

    def test_from_dict_flags(self):
        s = Settings.from_dict({"julia": 0, "smooth": True})
        self.assertIs(s.julia, False)
        self.assertIs(s.smooth, True)
        for value in ("false", "0", 2, None):
            with self.assertRaises(SettingsError):
                Settings.from_dict({"julia": value})
        with self.assertRaises(SettingsError):
            Settings.from_dict({"smooth": "0"})

    def test_values_written_with_two_decimals(self):
        self.assertIn("> 0.00)", escape_test_block(Settings(breakout=0.001)))
        self.assertIn("float shift = 12.35;", coloring_block(Settings(hue_shift=12.345678)))

    def test_from_dict_aliases(self):
        s = Settings.from_dict({"hueShift": 45, "iterations": 100.0, "julia": 1})
        self.assertEqual(s.hue_shift, 45)
        self.assertEqual(s.iterations, 100)
        self.assertIs(s.julia, True)

    def test_from_dict_unknown_key(self):
        with self.assertRaises(SettingsError):
            Settings.from_dict({"zoom": 2})

    def test_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "settings.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"coloring": "bw", "smooth": True}, f)
            s = Settings.load(path)
        self.assertEqual(s.coloring, "bw")
        self.assertTrue(s.smooth)

    def test_load_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "settings.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{not json")
            with self.assertRaises(SettingsError):
                Settings.load(path)

    def test_replace(self):
        s = Settings().replace(iterations=42)
        self.assertEqual(s.iterations, 42)
        with self.assertRaises(SettingsError):
            Settings().replace(iterations=0)


# ═══════════════════════════════════════════════════════════════════════════════
# Compiler / Integration Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestCompiler(unittest.TestCase):

    def test_compile_source(self):
        program = compile_source(MANDELBROT)
        self.assertIn("return cpow(z,vec2(2.0,0.0))+c;", program.fragment)
        self.assertEqual(program.vertex, vertex_program())

    def test_compile_with_settings(self):
        program = compile_source(MANDELBROT, Settings(julia=True, coloring="domain"))
        self.assertIn("vec2 z = c;", program.fragment)
        self.assertIn("color(z)", program.fragment)

    def test_formulas_compile(self):
        for formula in ("\\sin(z)+c", "\\Gamma(z)+c", "\\frac{z^{3}}{1+z}+c",
                        "e^{z}+c", "z^{2}+\\pi i c", "\\arctan(z)-c", "-z^{2}+c"):
            program = compile_source(formula)
            self.assertIn("vec2 f(vec2 z, vec2 c)", program.fragment)

    def test_emit_ast(self):
        parsed = json.loads(compile_source(MANDELBROT, emit_ast=True))
        self.assertEqual(parsed["_type"], "BinaryOpNode")
        self.assertEqual(parsed["op"], "+")
        self.assertEqual(parsed["right"], {"_type": "VariableNode", "name": "c", "pos": 6})

    def test_formula_errors_wrapped(self):
        for formula in ("z # c", "z+", "x+c"):
            with self.assertRaises(CompilationError):
                compile_source(formula)

    def test_unknown_coloring_propagates(self):
        with self.assertRaises(UnknownColoringModeError):
            compile_source(MANDELBROT, Settings(coloring="not-a-real-mode"))

    def test_parse_formula(self):
        self.assertEqual(parse_formula(MANDELBROT), parse_(MANDELBROT))

    def test_debug_log(self):
        err = io.StringIO()
        with redirect_stderr(err):
            compile_source(MANDELBROT, debug=True)
        self.assertIn("[fractalc] Phase 4: Expression decomposition", err.getvalue())
        self.assertIn("f(z, c) = cpow(z,vec2(2.0,0.0))+c", err.getvalue())

    def test_compile_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = os.path.join(tmp, "formula.tex")
            frag = os.path.join(tmp, "out.frag")
            vert = os.path.join(tmp, "out.vert")
            with open(src, "w", encoding="utf-8") as f:
                f.write(MANDELBROT + "\n")
            compile_file(src, frag, Settings(iterations=64), vertex_path=vert)
            with open(frag, encoding="utf-8") as f:
                self.assertIn("const int iterations = 64;", f.read())
            with open(vert, encoding="utf-8") as f:
                self.assertEqual(f.read(), vertex_program())


# ═══════════════════════════════════════════════════════════════════════════════
# CLI Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestCLI(unittest.TestCase):

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            main(argv)
        return out.getvalue(), err.getvalue()

    def test_writes_shaders(self):
        with tempfile.TemporaryDirectory() as tmp:
            frag = os.path.join(tmp, "mandel.frag")
            self._run([MANDELBROT, "-o", frag, "--iterations", "77", "--smooth"])
            with open(frag, encoding="utf-8") as f:
                text = f.read()
            self.assertIn("const int iterations = 77;", text)
            self.assertIn("log_zn", text)
            self.assertTrue(os.path.exists(os.path.join(tmp, "mandel.vert")))

    def test_settings_file_and_override(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = os.path.join(tmp, "s.json")
            frag = os.path.join(tmp, "out.frag")
            with open(cfg, "w", encoding="utf-8") as f:
                json.dump({"coloring": "bw", "iterations": 10}, f)
            self._run([MANDELBROT, "-o", frag, "--settings", cfg, "--iterations", "20"])
            with open(frag, encoding="utf-8") as f:
                text = f.read()
            self.assertIn("const int iterations = 20;", text)
            self.assertIn("if (x >= 1.0) {", text)

    def test_emit_ast(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "tree.json")
            self._run([MANDELBROT, "--emit-ast", "-o", path])
            with open(path, encoding="utf-8") as f:
                self.assertEqual(json.load(f)["_type"], "BinaryOpNode")

    def test_preview(self):
        with tempfile.TemporaryDirectory() as tmp:
            png = os.path.join(tmp, "p.png")
            out, _ = self._run([MANDELBROT, "-o", os.path.join(tmp, "f.frag"),
                                "--preview", png, "--size", "8x6", "--iterations", "10"])
            self.assertTrue(os.path.exists(png))
            self.assertIn("Preview 8x6", out)

    def test_bad_formula_exits(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SystemExit) as ctx:
                self._run(["z+", "-o", os.path.join(tmp, "f.frag")])
            self.assertEqual(ctx.exception.code, 1)

    def test_unknown_coloring_exits(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SystemExit) as ctx:
                self._run([MANDELBROT, "-o", os.path.join(tmp, "f.frag"), "--coloring", "plaid"])
            self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
