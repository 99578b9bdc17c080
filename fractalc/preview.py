"""
fractalc - CPU Preview Renderer
Renders a formula through the reference evaluator on the same pixel
mapping the vertex and fragment programs use, and saves it as an image.
"""

from typing import Tuple

import numpy as np
import imageio

from .ast_nodes import ASTNode
from .coloring import is_domain
from .reference import color, escape_time, vec2
from .settings import Settings


def pixel_grid(
    width: int,
    height: int,
    center: Tuple[float, float] = (0.0, 0.0),
    zoom: float = 1.0,
) -> np.ndarray:
    """
    Complex seed c for every pixel centre, row 0 at the top.

    uv = (x_clip * aspect, y_clip) as in the vertex program, then
    c = uv / zoom + center as in the fragment program.
    """
    aspect = width / height
    clip_x = (np.arange(width) + 0.5) / width * 2.0 - 1.0
    clip_y = 1.0 - (np.arange(height) + 0.5) / height * 2.0
    xx, yy = np.meshgrid(clip_x * aspect, clip_y)
    return vec2(xx / zoom + center[0], yy / zoom + center[1])


def render(
    tree: ASTNode,
    settings: Settings,
    width: int,
    height: int,
    center: Tuple[float, float] = (0.0, 0.0),
    zoom: float = 1.0,
) -> np.ndarray:
    """Return an (H, W, 3) RGB image with values in [0, 1]."""
    c = pixel_grid(width, height, center, zoom)
    it, z = escape_time(tree, settings, c)
    value = z if is_domain(settings.coloring) else it / float(settings.iterations)
    rgb = color(settings, value)
    return np.clip(np.nan_to_num(rgb, nan=0.0), 0.0, 1.0)


def save_image(image: np.ndarray, path: str) -> None:
    """Save an RGB array in [0, 1] to path (.png, .jpg, ...)."""
    image = (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    imageio.imwrite(path, image)
