"""
fractalc - Complex Arithmetic Runtime
GLSL library emitted into every fragment program. A complex number is a vec2
(x = real part, y = imaginary part); addition and subtraction are the native
component-wise vec2 operators, everything else is a function named c<name>.

The text is fixed: it does not depend on settings or on the formula.
"""

E_LITERAL  = "2.718281828459045"
PI_LITERAL = "3.141592653589793"

# Lanczos approximation, g = 7, n = 9
LANCZOS_COEFFICIENTS = (
    "0.99999999999980993",
    "676.5203681218851",
    "-1259.1392167224028",
    "771.32342877765313",
    "-176.61502916214059",
    "12.507343278686905",
    "-0.13857109526572012",
    "9.9843695780195716e-6",
    "1.5056327351493116e-7",
)
LANCZOS_G_OFFSET = "7.5"

# |Im Gamma(z)| at or below this is reported as exactly 0
GAMMA_SNAP_EPSILON = "1e-07"


def constants_block() -> str:
    return "\n".join([
        f"const float e = {E_LITERAL};",
        f"const float pi = {PI_LITERAL};",
    ])


def lanczos_table_block() -> str:
    """Statements filling p[] at the top of main(); GLSL ES 1.00 has no const arrays."""
    return "\n".join(
        f"p[{i}] = {coeff};" for i, coeff in enumerate(LANCZOS_COEFFICIENTS)
    )


_REAL_HYPERBOLIC = """\
float cosh(float x) {
    return (exp(x) + exp(-x))/2.0;
}

float sinh(float x) {
    return (exp(x) - exp(-x))/2.0;
}"""

_ALGEBRAIC = """\
vec2 cm(vec2 z1, vec2 z2) {
    return vec2(z1.x*z2.x-z1.y*z2.y,z1.y*z2.x+z1.x*z2.y);
}

vec2 cd(vec2 z1, vec2 z2) {
    return vec2(z1.x*z2.x+z1.y*z2.y,-z1.x*z2.y+z1.y*z2.x)/(z2.x*z2.x + z2.y*z2.y);
}

vec2 cs(vec2 z) {
    return vec2(z.x*z.x-z.y*z.y,2.0*z.x*z.y);
}

vec2 cneg(vec2 z) {
    return -z;
}

vec2 cpow1(float n, vec2 z) {
    float angle = z.y*log(n);
    return pow(n,z.x)*vec2(cos(angle),sin(angle));
}

vec2 cpow2(vec2 z, float n) {
    float angle = n*atan(z.y,z.x);
    return pow(length(z),n)*vec2(cos(angle),sin(angle));
}

vec2 cln(vec2 z) {
    return vec2(log(length(z)),atan(z.y,z.x));
}

vec2 cabs(vec2 z) {
    return vec2(length(z),0.0);
}

vec2 carg(vec2 z) {
    return vec2(atan(z.y,z.x),0.0);
}

vec2 cexp(vec2 z) {
    return exp(z.x)*vec2(cos(z.y),sin(z.y));
}

vec2 cpow(vec2 z1, vec2 z2) {
    if (z1 == vec2(0.0,0.0)) {
        if (z2.x == 0.0) {
            float nan = 0.0/0.0;
            return vec2(nan, nan);
        }
        if (z2.x < 0.0) {
            float infinity = 1.0/0.0;
            return vec2(infinity, infinity);
        }
        return vec2(0.0, 0.0);
    }
    return cexp(cm(z2,cln(z1)));
}

vec2 csqrt(vec2 z) {
    float angle = 0.5*atan(z.y,z.x);
    return pow(z.x*z.x+z.y*z.y,0.25)*vec2(cos(angle),sin(angle));
}"""

_ROUNDING = """\
vec2 cfloor(vec2 z) {
    return floor(z);
}

vec2 cround(vec2 z) {
    return floor(z+vec2(0.5));
}

vec2 cceil(vec2 z) {
    return ceil(z);
}

vec2 cRe(vec2 z) {
    return vec2(z.x, 0.0);
}

vec2 cIm(vec2 z) {
    return vec2(z.y, 0.0);
}"""

_TRIGONOMETRIC = """\
vec2 csin(vec2 z) {
    return vec2(sin(z.x)*cosh(z.y),cos(z.x)*sinh(z.y));
}

vec2 ccos(vec2 z) {
    return vec2(cos(z.x)*cosh(z.y),-sin(z.x)*sinh(z.y));
}

vec2 ctan(vec2 z) {
    return cd(csin(z),ccos(z));
}

vec2 ccot(vec2 z) {
    return cd(ccos(z),csin(z));
}

vec2 csec(vec2 z) {
    return cd(vec2(1.0,0.0), ccos(z));
}

vec2 ccsc(vec2 z) {
    return cd(vec2(1.0,0.0), csin(z));
}

vec2 csinh(vec2 z) {
    return vec2(sinh(z.x)*cos(z.y),cosh(z.x)*sin(z.y));
}

vec2 ccosh(vec2 z) {
    return vec2(cosh(z.x)*cos(z.y),sinh(z.x)*sin(z.y));
}

vec2 ctanh(vec2 z) {
    return cd(csinh(z),ccosh(z));
}

vec2 ccoth(vec2 z) {
    return cd(ccosh(z),csinh(z));
}

vec2 csech(vec2 z) {
    return cd(vec2(1.0,0.0), ccosh(z));
}

vec2 ccsch(vec2 z) {
    return cd(vec2(1.0,0.0), csinh(z));
}"""

# sqrt(1-z^2) is built as |1-z^2|^0.5 * exp(i/2 arg(1-z^2))
_INVERSE_TRIGONOMETRIC = """\
vec2 carcsin(vec2 z) {
    return cm(cd(vec2(1.0,0.0),vec2(0.0,1.0)),cln(cm(z,vec2(0.0,1.0))+cm(cpow2(cabs(vec2(1.0,0.0)-cs(z)),0.5),cexp(cm(vec2(0.0,0.5),carg(vec2(1.0,0.0)-cs(z)))))));
}

vec2 carccos(vec2 z) {
    return cm(cd(vec2(1.0,0.0),vec2(0.0,1.0)),cln(z+cm(vec2(0.0,1.0),cm(cpow2(cabs(vec2(1.0,0.0)-cs(z)),0.5),cexp(cm(vec2(0.0,0.5),carg(vec2(1.0,0.0)-cs(z))))))));
}

vec2 carctan(vec2 z) {
    return cm(cd(vec2(1.0,0.0),vec2(0.0,2.0)),cln(cd(vec2(0.0,1.0)-z,vec2(0.0,1.0)+z)));
}

vec2 carccot(vec2 z) {
    return cm(cd(vec2(1.0,0.0),vec2(0.0,2.0)),cln(cd(z+vec2(0.0,1.0),z-vec2(0.0,1.0))));
}

vec2 carcsec(vec2 z) {
    return carccos(cd(vec2(1.0,0.0),z));
}

vec2 carccsc(vec2 z) {
    return carcsin(cd(vec2(1.0,0.0),z));
}"""

_GAMMA = f"""\
float p[{len(LANCZOS_COEFFICIENTS)}];
const float epsilon = {GAMMA_SNAP_EPSILON};

vec2 cGamma2(vec2 z) {{
    z = z - vec2(1.0,0.0);
    vec2 x = vec2(p[0],0.0);
    for (int i = 1; i < {len(LANCZOS_COEFFICIENTS)}; i++) {{
        x += cd(vec2(p[i],0.0),z + vec2(float(i),0.0));
    }}
    vec2 t = z + vec2({LANCZOS_G_OFFSET},0.0);
    vec2 y = sqrt(2.0*pi) * cm(cm(cpow(t,z+vec2(0.5,0.0)), cexp(-t)), x);
    if (abs(y.y) <= epsilon) {{
        y = vec2(y.x,0.0);
    }}
    return y;
}}

vec2 cGamma(vec2 z) {{
    if (z.x < 0.5) {{
        return cd(vec2(pi,0.0), cm(csin(pi*z), cGamma2(vec2(1.0,0.0) - z)));
    }}
    return cGamma2(z);
}}"""

RUNTIME_SECTIONS = (
    _REAL_HYPERBOLIC,
    _ALGEBRAIC,
    _ROUNDING,
    _TRIGONOMETRIC,
    _INVERSE_TRIGONOMETRIC,
    _GAMMA,
)


def runtime_library() -> str:
    return "\n\n".join(RUNTIME_SECTIONS)
