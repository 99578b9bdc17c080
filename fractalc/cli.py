"""
fractalc - Command Line Interface

Usage:
    fractalc "z^{2}+c" -o fractal.frag [--vertex-output fractal.vert]
             [--settings settings.json] [--iterations N] [--coloring hue] ...
    fractalc -f formula.tex -o fractal.frag
    fractalc "z^{2}+c" --preview fractal.png --size 640x480
    python -m fractalc "z^{2}+c" --emit-ast
"""

import sys
import argparse
import os


def _size(text):
    try:
        width, height = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}")
    if width < 1 or height < 1:
        raise argparse.ArgumentTypeError(f"size must be positive, got {text!r}")
    return width, height


def _point(text):
    try:
        x, y = (float(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {text!r}")
    return x, y


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fractalc",
        description="Compile a complex iteration formula into WebGL fractal shaders",
    )
    parser.add_argument("formula", nargs="?", help='Formula in LaTeX notation, e.g. "z^{2}+c"')
    parser.add_argument("-f", "--file", help="Read the formula from a file instead")
    parser.add_argument("-o", "--output", help="Path for the generated fragment shader")
    parser.add_argument(
        "--vertex-output",
        dest="vertex_output",
        help="Path for the generated vertex shader",
    )
    parser.add_argument("--settings", help="JSON file with render settings")

    group = parser.add_argument_group("render settings (override --settings)")
    group.add_argument("--iterations", type=int)
    group.add_argument("--breakout", type=float, help="Escape radius squared")
    group.add_argument("--coloring", help="hue, grayscale, grayscaleInv, bw, bwInv or domain")
    group.add_argument("--bias", type=float)
    group.add_argument("--hue-shift", type=float, dest="hue_shift", help="Degrees")
    group.add_argument("--julia", action="store_true", default=None, help="Seed z with c")
    group.add_argument("--smooth", action="store_true", default=None, help="Smooth coloring")

    parser.add_argument(
        "--emit-ast",
        action="store_true",
        dest="emit_ast",
        help="Emit the parse tree as JSON instead of shader code",
    )
    parser.add_argument("--preview", help="Render a CPU preview image to this path")
    parser.add_argument("--size", type=_size, default=(640, 480), help="Preview WIDTHxHEIGHT")
    parser.add_argument("--center", type=_point, default=(0.0, 0.0), help="Preview center X,Y")
    parser.add_argument("--zoom", type=float, default=1.0, help="Preview zoom factor")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print compilation phase info to stderr",
    )
    return parser


def _settings_from_args(args):
    from .settings import Settings

    settings = Settings.load(args.settings) if args.settings else Settings()
    overrides = {
        name: getattr(args, name)
        for name in ("iterations", "breakout", "coloring", "bias", "hue_shift", "julia", "smooth")
        if getattr(args, name) is not None
    }
    return settings.replace(**overrides)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.formula is None) == (args.file is None):
        parser.error("give exactly one of FORMULA or --file")

    from .compiler import parse_formula, compile_tree, write_outputs, _ast_to_json, CompilationError
    from .codegen import UnsupportedNodeError
    from .coloring import UnknownColoringModeError
    from .settings import SettingsError

    try:
        if args.file:
            with open(args.file, "r", encoding="utf-8") as f:
                source = f.read().strip()
        else:
            source = args.formula

        settings = _settings_from_args(args)
        tree = parse_formula(source, debug=args.debug)

        if args.emit_ast:
            result = _ast_to_json(tree)
            default_output = "fractal.ast.json"
        else:
            result = compile_tree(tree, settings, debug=args.debug)
            default_output = "fractal.frag"

        if args.file and not args.output:
            base = os.path.splitext(args.file)[0]
            default_output = base + (".ast.json" if args.emit_ast else ".frag")
        output_path = args.output or default_output

        vertex_path = args.vertex_output
        if not args.emit_ast and vertex_path is None:
            vertex_path = os.path.splitext(output_path)[0] + ".vert"

        write_outputs(result, output_path, None if args.emit_ast else vertex_path)
        print(f"[fractalc] Compiled {source!r} → {output_path!r}")

        if args.preview:
            from .preview import render, save_image

            width, height = args.size
            image = render(tree, settings, width, height, center=args.center, zoom=args.zoom)
            save_image(image, args.preview)
            print(f"[fractalc] Preview {width}x{height} → {args.preview!r}")
    except FileNotFoundError as e:
        print(f"[fractalc] Error: File not found: {e.filename!r}", file=sys.stderr)
        sys.exit(1)
    except (CompilationError, SettingsError, UnknownColoringModeError, UnsupportedNodeError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
