"""
fractalc - Render Settings
Immutable settings record read by the kernel assembler. One value is passed
into each compilation; nothing here is process-wide state.
"""

import json
import math
import numbers
from dataclasses import dataclass, fields, replace


class SettingsError(Exception):
    def __init__(self, message: str):
        super().__init__(f"[SettingsError] {message}")


# Spellings used by saved settings and share links
_KEY_ALIASES = {
    "hueShift": "hue_shift",
}


def _flag(name: str, value) -> bool:
    """Saved settings store flags as true/false or as 1/0."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise SettingsError(f"{name} must be true/false or 1/0, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """
    Render settings for one compilation.

    breakout, bias and hue_shift are written into the program rounded to two
    decimals, so breakout=0.001 becomes 0.00 and every nonzero iterate escapes.
    """
    iterations: int = 500
    breakout: float = 10000.0     # escape radius squared
    coloring: str = "hue"
    bias: float = 0.0
    hue_shift: float = 0.0        # degrees
    julia: bool = False           # seed z with c instead of 0
    smooth: bool = False          # continuous iteration count

    def __post_init__(self):
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
            raise SettingsError(f"iterations must be an integer, got {self.iterations!r}")
        if self.iterations < 1:
            raise SettingsError(f"iterations must be positive, got {self.iterations}")
        if isinstance(self.breakout, bool) or not isinstance(self.breakout, numbers.Real):
            raise SettingsError(f"breakout must be a number, got {self.breakout!r}")
        if not math.isfinite(self.breakout) or not self.breakout > 0:
            raise SettingsError(f"breakout must be a positive finite number, got {self.breakout}")
        for name in ("bias", "hue_shift"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise SettingsError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise SettingsError(f"{name} must be finite, got {value}")
        for name in ("julia", "smooth"):
            if not isinstance(getattr(self, name), bool):
                raise SettingsError(f"{name} must be a boolean, got {getattr(self, name)!r}")

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                raise SettingsError(
                    f"Unknown setting '{key}'. Valid: {', '.join(sorted(known))}"
                )
            kwargs[name] = value
        iterations = kwargs.get("iterations")
        if isinstance(iterations, float) and iterations.is_integer():
            kwargs["iterations"] = int(iterations)
        for name in ("julia", "smooth"):
            if name in kwargs:
                kwargs[name] = _flag(name, kwargs[name])
        return cls(**kwargs)

    @classmethod
    def load(cls, path: str) -> "Settings":
        """Read settings from a JSON object file."""
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SettingsError(f"{path}: {e}") from e
        if not isinstance(data, dict):
            raise SettingsError(f"{path}: expected a JSON object")
        return cls.from_dict(data)

    def replace(self, **changes) -> "Settings":
        return replace(self, **changes)
