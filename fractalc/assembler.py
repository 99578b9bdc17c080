"""
fractalc - Kernel Assembler
Splices a decomposed expression and the render settings into a complete
GLSL ES fragment program. Each conditionally included piece is built by its
own function so it can be inspected on its own.
"""

import textwrap
from dataclasses import dataclass
from typing import Optional

from .coloring import HSL_TO_RGB, coloring_body, is_domain
from .runtime import constants_block, lanczos_table_block, runtime_library
from .settings import Settings

INDENT = "    "


@dataclass(frozen=True)
class KernelProgram:
    """Fragment and vertex source for one compilation."""
    fragment: str
    vertex: str


def _real(value: float) -> str:
    return f"{value:.2f}"


def _indent(text: str) -> str:
    return textwrap.indent(text, INDENT)


# ------------------------------------------------------------------ blocks

def header_block(settings: Settings) -> str:
    return "\n".join([
        "precision highp float;",
        "uniform vec3 u_transform;",
        "",
        "varying vec2 uv;",
        "",
        f"const int iterations = {settings.iterations};",
        constants_block(),
    ])


def iteration_function_block(expression: str) -> str:
    return "\n".join([
        "vec2 f(vec2 z, vec2 c) {",
        f"{INDENT}return {expression};",
        "}",
    ])


def coloring_block(settings: Settings) -> str:
    body = coloring_body(settings.coloring)
    domain = is_domain(settings.coloring)
    lines = [
        f"vec3 color({'vec2' if domain else 'float'} x) {{",
        f"{INDENT}float shift = {_real(settings.hue_shift)};",
    ]
    if not domain:
        lines.append(f"{INDENT}x = pow(x,pow(1.1,{_real(settings.bias)}));")
    lines.append(_indent(body))
    lines.append("}")
    return "\n".join(lines)


def seed_block(julia: bool) -> str:
    return f"vec2 z = {'c' if julia else 'vec2(0.0,0.0)'};"


def escape_test_block(settings: Settings) -> str:
    """Empty for domain coloring, which always runs every iteration."""
    if is_domain(settings.coloring):
        return ""
    return "\n".join([
        f"if (z.x*z.x + z.y*z.y > {_real(settings.breakout)}) {{",
        f"{INDENT}iter = float(i);",
        f"{INDENT}break;",
        "}",
    ])


def loop_block(settings: Settings) -> str:
    lines = ["for (int i = 0; i < iterations; i++) {"]
    escape = escape_test_block(settings)
    if escape:
        lines.append(_indent(escape))
    lines.append(f"{INDENT}z = f(z, c);")
    lines.append("}")
    return "\n".join(lines)


def smoothing_block(smooth: bool) -> str:
    """Continuous iteration count, applied only when the point escaped."""
    if not smooth:
        return ""
    return "\n".join([
        "if (iter != floatIter) {",
        f"{INDENT}float log_zn = log(z.x*z.x+z.y*z.y)/2.0;",
        f"{INDENT}float nu = log(log_zn / log(2.0)) / log(2.0);",
        f"{INDENT}iter = iter + 1.0 - nu;",
        "}",
    ])


def output_block(settings: Settings) -> str:
    value = "z" if is_domain(settings.coloring) else "iter/floatIter"
    return f"gl_FragColor = vec4(color({value}), 1.0);"


def main_block(settings: Settings, julia: bool) -> str:
    steps = [
        lanczos_table_block(),
        "\n".join([
            "vec2 c = uv/u_transform.z + u_transform.xy;",
            seed_block(julia),
            "float floatIter = float(iterations);",
            "float iter = floatIter;",
        ]),
        loop_block(settings),
        smoothing_block(settings.smooth),
        output_block(settings),
    ]
    body = "\n\n".join(_indent(step) for step in steps if step)
    return f"void main() {{\n{body}\n}}"


# ------------------------------------------------------------------ programs

def assemble(expression: str, settings: Settings, julia: Optional[bool] = None) -> str:
    """
    Return the complete fragment program for the decomposed expression.

    julia overrides settings.julia as the seed choice (z0 = c instead of 0).
    Raises UnknownColoringModeError before producing any text when
    settings.coloring is not a known mode.
    """
    coloring_body(settings.coloring)
    if julia is None:
        julia = settings.julia

    sections = [
        header_block(settings),
        HSL_TO_RGB,
        runtime_library(),
        iteration_function_block(expression),
        coloring_block(settings),
        main_block(settings, julia),
    ]
    return "\n\n".join(sections) + "\n"


def vertex_program() -> str:
    return "\n".join([
        "attribute vec4 a_position;",
        "uniform float u_aspect;",
        "",
        "varying vec2 uv;",
        "",
        "void main() {",
        f"{INDENT}gl_Position = a_position;",
        f"{INDENT}uv = vec2(gl_Position.x * u_aspect,gl_Position.y);",
        "}",
    ]) + "\n"
