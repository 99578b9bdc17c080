"""
fractalc - Coloring Modes
Pre-authored GLSL bodies for color(x). Every mode returns an RGB vec3.
Escape-time modes receive x as the normalized iteration fraction (float);
the domain mode receives the final iterate (vec2) and colors by its angle.
Bodies may read `shift` (hue shift in degrees) and `pi`.
"""

DOMAIN_MODE = "domain"

COLORING_MODES = {
    "hue": """\
if (x >= 1.0 || x <= 0.0) {
    return vec3(0.0);
}
float angle = mod(360.0 * x + shift, 360.0);
vec3 hsl = vec3(angle, 1.0, 0.5);
return hsltorgb(hsl);""",

    "grayscale": """\
x = clamp(x,0.0,1.0);
return vec3(1.0-x);""",

    "grayscaleInv": """\
x = clamp(x,0.0,1.0);
return vec3(x);""",

    "bw": """\
if (x >= 1.0) {
    return vec3(0.0);
}
return vec3(1.0);""",

    "bwInv": """\
if (x >= 1.0) {
    return vec3(1.0);
}
return vec3(0.0);""",

    DOMAIN_MODE: """\
float angle;
if (x == vec2(0.0)) {
    angle = shift;
} else {
    angle = 180.0/pi * atan(x.y,x.x) + shift;
}
angle = mod(angle,360.0);
if (angle >= 360.0 || angle <= 0.0) {
    angle = shift;
}
vec3 hsl = vec3(angle, 1.0, 0.5);
return hsltorgb(hsl);""",
}

# hue in degrees, saturation and lightness in [0,1]
HSL_TO_RGB = """\
vec3 hsltorgb(vec3 colorHSL) {
    float chroma = (1.0-abs(2.0*colorHSL.z-1.0)) * colorHSL.y;
    float h1 = colorHSL.x/60.0;
    float x = chroma * (1.0 - abs(mod(h1,2.0)-1.0));
    vec3 col = vec3(0.0,0.0,0.0);
    if (h1 < 1.0) {
        col = vec3(chroma,x,0.0);
    } else if (h1 < 2.0) {
        col = vec3(x,chroma,0.0);
    } else if (h1 < 3.0) {
        col = vec3(0.0,chroma,x);
    } else if (h1 < 4.0) {
        col = vec3(0.0,x,chroma);
    } else if (h1 < 5.0) {
        col = vec3(x,0.0,chroma);
    } else if (h1 < 6.0) {
        col = vec3(chroma,0.0,x);
    }
    vec3 m = vec3(colorHSL.z-chroma/2.0);
    return vec3(col+m);
}"""


class UnknownColoringModeError(Exception):
    def __init__(self, mode):
        super().__init__(
            f"[UnknownColoringModeError] Unknown coloring mode {mode!r}. "
            f"Valid: {', '.join(sorted(COLORING_MODES))}"
        )
        self.mode = mode


def coloring_body(mode: str) -> str:
    try:
        return COLORING_MODES[mode]
    except (KeyError, TypeError):
        raise UnknownColoringModeError(mode) from None


def is_domain(mode: str) -> bool:
    return mode == DOMAIN_MODE
