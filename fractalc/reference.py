"""
fractalc - CPU Reference Evaluator
numpy mirror of the generated fragment program. Every routine follows the
GLSL runtime formula component by component on complex128 arrays, so the
zero-base cases of cpow, the Gamma snap and the loop bookkeeping behave the
way the shader does.
"""

import functools
from typing import Optional, Tuple

import numpy as np

from .ast_nodes import NumberNode, VariableNode, UnaryOpNode, BinaryOpNode, ASTNode
from .codegen import UnsupportedNodeError
from .coloring import DOMAIN_MODE, coloring_body, is_domain
from .runtime import (
    E_LITERAL, PI_LITERAL, LANCZOS_COEFFICIENTS, LANCZOS_G_OFFSET, GAMMA_SNAP_EPSILON,
)
from .settings import Settings

E  = float(E_LITERAL)
PI = float(PI_LITERAL)
_P = [float(c) for c in LANCZOS_COEFFICIENTS]
_G = float(LANCZOS_G_OFFSET)
_EPSILON = float(GAMMA_SNAP_EPSILON)
_LN2 = np.log(2.0)


def _quiet(func):
    """Evaluate with IEEE overflow/invalid/divide-by-zero left silent, as on the GPU."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with np.errstate(all="ignore"):
            return func(*args, **kwargs)
    return wrapper


def vec2(x, y) -> np.ndarray:
    """Build complex values from separate components without mixing them."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    out = np.empty(np.broadcast(x, y).shape, dtype=np.complex128)
    out.real = x
    out.imag = y
    return out


def _complex(z) -> np.ndarray:
    return np.asarray(z, dtype=np.complex128)


def _scale(k: float, z) -> np.ndarray:
    z = _complex(z)
    return vec2(k * z.real, k * z.imag)


ONE  = vec2(1.0, 0.0)
UNIT = vec2(0.0, 1.0)


# ------------------------------------------------------------------ algebraic

@_quiet
def cm(z1, z2):
    z1, z2 = _complex(z1), _complex(z2)
    return vec2(z1.real*z2.real - z1.imag*z2.imag, z1.imag*z2.real + z1.real*z2.imag)


@_quiet
def cd(z1, z2):
    z1, z2 = _complex(z1), _complex(z2)
    d = z2.real*z2.real + z2.imag*z2.imag
    return vec2((z1.real*z2.real + z1.imag*z2.imag) / d,
                (-z1.real*z2.imag + z1.imag*z2.real) / d)


def cs(z):
    z = _complex(z)
    return vec2(z.real*z.real - z.imag*z.imag, 2.0*z.real*z.imag)


def cneg(z):
    return -_complex(z)


@_quiet
def cpow2(z, n: float):
    z = _complex(z)
    angle = n * np.arctan2(z.imag, z.real)
    r = np.hypot(z.real, z.imag) ** n
    return vec2(r*np.cos(angle), r*np.sin(angle))


@_quiet
def cln(z):
    z = _complex(z)
    return vec2(np.log(np.hypot(z.real, z.imag)), np.arctan2(z.imag, z.real))


def cabs(z):
    z = _complex(z)
    return vec2(np.hypot(z.real, z.imag), 0.0)


def carg(z):
    z = _complex(z)
    return vec2(np.arctan2(z.imag, z.real), 0.0)


@_quiet
def cexp(z):
    z = _complex(z)
    r = np.exp(z.real)
    return vec2(r*np.cos(z.imag), r*np.sin(z.imag))


@_quiet
def cpow(z1, z2):
    """Principal z1^z2; a zero base gives NaN, infinity or 0 by the sign of Re z2."""
    z1, z2 = np.broadcast_arrays(_complex(z1), _complex(z2))
    general = cexp(cm(z2, cln(z1)))
    zero_base = z1 == 0
    special = np.where(z2.real == 0, np.nan, np.where(z2.real < 0, np.inf, 0.0))
    return vec2(np.where(zero_base, special, general.real),
                np.where(zero_base, special, general.imag))


@_quiet
def csqrt(z):
    z = _complex(z)
    angle = 0.5 * np.arctan2(z.imag, z.real)
    r = (z.real*z.real + z.imag*z.imag) ** 0.25
    return vec2(r*np.cos(angle), r*np.sin(angle))


# ------------------------------------------------------------------ rounding / projection

def cfloor(z):
    z = _complex(z)
    return vec2(np.floor(z.real), np.floor(z.imag))


def cround(z):
    z = _complex(z)
    return vec2(np.floor(z.real + 0.5), np.floor(z.imag + 0.5))


def cceil(z):
    z = _complex(z)
    return vec2(np.ceil(z.real), np.ceil(z.imag))


def cRe(z):
    return vec2(_complex(z).real, 0.0)


def cIm(z):
    return vec2(_complex(z).imag, 0.0)


# ------------------------------------------------------------------ trigonometric

def _cosh(x):
    return (np.exp(x) + np.exp(-x)) / 2.0


def _sinh(x):
    return (np.exp(x) - np.exp(-x)) / 2.0


@_quiet
def csin(z):
    z = _complex(z)
    return vec2(np.sin(z.real)*_cosh(z.imag), np.cos(z.real)*_sinh(z.imag))


@_quiet
def ccos(z):
    z = _complex(z)
    return vec2(np.cos(z.real)*_cosh(z.imag), -np.sin(z.real)*_sinh(z.imag))


def ctan(z):
    return cd(csin(z), ccos(z))


def ccot(z):
    return cd(ccos(z), csin(z))


def csec(z):
    return cd(ONE, ccos(z))


def ccsc(z):
    return cd(ONE, csin(z))


@_quiet
def csinh(z):
    z = _complex(z)
    return vec2(_sinh(z.real)*np.cos(z.imag), _cosh(z.real)*np.sin(z.imag))


@_quiet
def ccosh(z):
    z = _complex(z)
    return vec2(_cosh(z.real)*np.cos(z.imag), _sinh(z.real)*np.sin(z.imag))


def ctanh(z):
    return cd(csinh(z), ccosh(z))


def ccoth(z):
    return cd(ccosh(z), csinh(z))


def csech(z):
    return cd(ONE, ccosh(z))


def ccsch(z):
    return cd(ONE, csinh(z))


def _sqrt_one_minus_square(z):
    w = ONE - cs(z)
    return cm(cpow2(cabs(w), 0.5), cexp(cm(vec2(0.0, 0.5), carg(w))))


def carcsin(z):
    z = _complex(z)
    return cm(cd(ONE, UNIT), cln(cm(z, UNIT) + _sqrt_one_minus_square(z)))


def carccos(z):
    z = _complex(z)
    return cm(cd(ONE, UNIT), cln(z + cm(UNIT, _sqrt_one_minus_square(z))))


def carctan(z):
    z = _complex(z)
    return cm(cd(ONE, vec2(0.0, 2.0)), cln(cd(UNIT - z, UNIT + z)))


def carccot(z):
    z = _complex(z)
    return cm(cd(ONE, vec2(0.0, 2.0)), cln(cd(z + UNIT, z - UNIT)))


def carcsec(z):
    return carccos(cd(ONE, z))


def carccsc(z):
    return carcsin(cd(ONE, z))


# ------------------------------------------------------------------ gamma

@_quiet
def _gamma_lanczos(z):
    z = _complex(z) - ONE
    x = vec2(_P[0], 0.0)
    for i in range(1, len(_P)):
        x = x + cd(vec2(_P[i], 0.0), z + vec2(float(i), 0.0))
    t = z + vec2(_G, 0.0)
    y = _scale(np.sqrt(2.0*PI), cm(cm(cpow(t, z + vec2(0.5, 0.0)), cexp(-t)), x))
    return vec2(y.real, np.where(np.abs(y.imag) <= _EPSILON, 0.0, y.imag))


@_quiet
def cGamma(z):
    z = _complex(z)
    reflected = cd(vec2(PI, 0.0), cm(csin(_scale(PI, z)), _gamma_lanczos(ONE - z)))
    return np.where(z.real < 0.5, reflected, _gamma_lanczos(z))


FUNCTIONS = {
    'neg': cneg, 'sqrt': csqrt, 'exp': cexp, 'ln': cln, 'abs': cabs, 'arg': carg,
    'floor': cfloor, 'round': cround, 'ceil': cceil, 'Re': cRe, 'Im': cIm,
    'sin': csin, 'cos': ccos, 'tan': ctan, 'cot': ccot, 'sec': csec, 'csc': ccsc,
    'sinh': csinh, 'cosh': ccosh, 'tanh': ctanh, 'coth': ccoth, 'sech': csech, 'csch': ccsch,
    'arcsin': carcsin, 'arccos': carccos, 'arctan': carctan,
    'arccot': carccot, 'arcsec': carcsec, 'arccsc': carccsc,
    'Gamma': cGamma,
}

BINARY_FUNCTIONS = {
    '+': lambda a, b: a + b,
    '-': lambda a, b: a - b,
    '*': cm,
    '/': cd,
    '^': cpow,
}

_SYMBOLS = {
    'i':   (0.0, 1.0),
    'e':   (E, 0.0),
    '\\pi': (PI, 0.0),
}


# ------------------------------------------------------------------ interpreter

@_quiet
def evaluate(tree: ASTNode, z, c) -> np.ndarray:
    """Value of f(z, c) for the parse tree, element-wise over z and c."""
    env = {'z': _complex(z), 'c': _complex(c)}
    return _eval(tree, env)


def _eval(node: ASTNode, env: dict) -> np.ndarray:
    if isinstance(node, NumberNode):
        if node.value in _SYMBOLS:
            return vec2(*_SYMBOLS[node.value])
        return vec2(float(node.value), 0.0)

    if isinstance(node, VariableNode):
        if node.name not in env:
            raise UnsupportedNodeError(f"Unknown variable: {node.name!r}", node.pos)
        return env[node.name]

    if isinstance(node, BinaryOpNode):
        fn = BINARY_FUNCTIONS.get(node.op)
        if fn is None:
            raise UnsupportedNodeError(f"Unsupported binary operator: {node.op!r}", node.pos)
        return fn(_eval(node.left, env), _eval(node.right, env))

    if isinstance(node, UnaryOpNode):
        fn = FUNCTIONS.get(node.op)
        if fn is None:
            raise UnsupportedNodeError(f"Unsupported function: {node.op!r}", node.pos)
        return fn(_eval(node.operand, env))

    raise UnsupportedNodeError(
        f"Unknown parse node type: {type(node).__name__}",
        getattr(node, 'pos', 0)
    )


def _literal(value: float) -> float:
    """The value as the shader sees it after two-decimal formatting."""
    return float(f"{value:.2f}")


@_quiet
def escape_time(
    tree: ASTNode,
    settings: Settings,
    c,
    julia: Optional[bool] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run the fragment program's main loop for every seed in c.

    Returns (iter, z): the recorded iteration count (fractional when smoothing
    applies) and the final iterate. Points that never escape keep
    iter == settings.iterations.
    """
    coloring_body(settings.coloring)
    if julia is None:
        julia = settings.julia

    c = _complex(c)
    z = c.copy() if julia else np.zeros_like(c)
    total = settings.iterations
    breakout = _literal(settings.breakout)
    domain = is_domain(settings.coloring)

    it = np.full(c.shape, float(total))
    active = np.ones(c.shape, dtype=bool)
    for i in range(total):
        if not domain:
            escaped = active & (z.real*z.real + z.imag*z.imag > breakout)
            it[escaped] = i
            active &= ~escaped
            if not active.any():
                break
        step = np.broadcast_to(_eval(tree, {'z': z, 'c': c}), c.shape)
        z = np.where(active, step, z)

    if settings.smooth:
        log_zn = np.log(z.real*z.real + z.imag*z.imag) / 2.0
        nu = np.log(log_zn / _LN2) / _LN2
        it = np.where(it != float(total), it + 1.0 - nu, it)

    return it, z


# ------------------------------------------------------------------ coloring

@_quiet
def hsl_to_rgb(hue, saturation, lightness) -> np.ndarray:
    hue, saturation, lightness = np.broadcast_arrays(
        np.asarray(hue, dtype=np.float64),
        np.asarray(saturation, dtype=np.float64),
        np.asarray(lightness, dtype=np.float64),
    )
    chroma = (1.0 - np.abs(2.0*lightness - 1.0)) * saturation
    h1 = hue / 60.0
    x = chroma * (1.0 - np.abs(np.mod(h1, 2.0) - 1.0))
    zero = np.zeros_like(chroma)
    sextant = [h1 < 1.0, h1 < 2.0, h1 < 3.0, h1 < 4.0, h1 < 5.0, h1 < 6.0]
    r = np.select(sextant, [chroma, x, zero, zero, x, chroma], 0.0)
    g = np.select(sextant, [x, chroma, chroma, x, zero, zero], 0.0)
    b = np.select(sextant, [zero, zero, x, chroma, chroma, x], 0.0)
    m = lightness - chroma/2.0
    return np.stack([r + m, g + m, b + m], axis=-1)


def _gray(level) -> np.ndarray:
    return np.stack([level, level, level], axis=-1)


def _hue(x, shift):
    rgb = hsl_to_rgb(np.mod(360.0*x + shift, 360.0), 1.0, 0.5)
    outside = np.asarray((x >= 1.0) | (x <= 0.0))
    return np.where(outside[..., None], 0.0, rgb)


def _domain(z, shift):
    z = _complex(z)
    angle = np.where(z == 0, shift, 180.0/PI * np.arctan2(z.imag, z.real) + shift)
    angle = np.mod(angle, 360.0)
    angle = np.where((angle >= 360.0) | (angle <= 0.0), shift, angle)
    return hsl_to_rgb(angle, 1.0, 0.5)


_COLOR_MIRRORS = {
    "hue":          _hue,
    "grayscale":    lambda x, shift: _gray(1.0 - np.clip(x, 0.0, 1.0)),
    "grayscaleInv": lambda x, shift: _gray(np.clip(x, 0.0, 1.0)),
    "bw":           lambda x, shift: _gray(np.where(x >= 1.0, 0.0, 1.0)),
    "bwInv":        lambda x, shift: _gray(np.where(x >= 1.0, 1.0, 0.0)),
    DOMAIN_MODE:    _domain,
}


@_quiet
def color(settings: Settings, value) -> np.ndarray:
    """
    RGB in the last axis for the value passed to color(): the normalized
    iteration fraction, or the final iterate in domain mode.
    """
    coloring_body(settings.coloring)
    shift = _literal(settings.hue_shift)
    if is_domain(settings.coloring):
        return _domain(value, shift)
    x = np.asarray(value, dtype=np.float64)
    x = x ** (1.1 ** _literal(settings.bias))
    return _COLOR_MIRRORS[settings.coloring](x, shift)
