"""
main.py
Command-line front end for the die-line engine.

Run: cartoniq --help   (or python -m cartoniq.main --help)
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import load_settings
from .costing import FINISHES, MATERIALS, calculate_cost, quote_scenarios
from .dieline import generate_dieline, generate_two_piece, get_dieline_data
from .drawing import DrawingMode
from .errors import CartonIQError
from .inks import format_cmyk, ink_coverage, validate_color_for_print
from .models import Archetype, BoxDimensions, GenerationOptions
from .svg_export import export_to_svg, to_svg
from .templates import BOX_TEMPLATES, get_template

EPILOG = """
Examples:
  # Gift box die-line with print marks
  cartoniq generate gift 120 120 40 -o gift.svg

  # Die-cutting tool drawing only, no artwork or colour information
  cartoniq generate tray-base 80 80 35 --die-only -o tray.svg

  # Tray and telescopic lid as two files (set_base.svg, set_lid.svg)
  cartoniq two-piece 200 160 50 -o set

  # Cost for a run of 1500 boxes
  cartoniq cost 120 120 40 --quantity 1500 --material coated-350 --finish gold-foil
"""


def _add_dimensions(parser: argparse.ArgumentParser):
    parser.add_argument("length", type=float, help="Box length in mm")
    parser.add_argument("width", type=float, help="Box width in mm")
    parser.add_argument("height", type=float, help="Box height in mm")


def _add_generation_options(parser: argparse.ArgumentParser):
    parser.add_argument("--bleed", type=float, help="Bleed in mm (default from settings)")
    parser.add_argument("--no-glue-tabs", action="store_true", help="Leave glue tabs off")
    parser.add_argument("--board-thickness", type=float, help="Board thickness in mm")
    parser.add_argument("--die-only", action="store_true",
                        help="Cut and fold layers only, no artwork, marks or colour data")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cartoniq",
        description="Generate chocolate box die-lines, previews and cost estimates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("--config", help="JSON settings file (default: $CARTONIQ_CONFIG)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (-v info, -vv debug)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generate", help="Generate a die-line SVG")
    p.add_argument("archetype", help=", ".join(a.value for a in Archetype))
    _add_dimensions(p)
    _add_generation_options(p)
    p.add_argument("-o", "--output", default="carton_dieline.svg", help="Output SVG file")
    p.add_argument("--json", action="store_true", help="Print die-line data as JSON")

    p = sub.add_parser("two-piece", help="Generate a tray base and its lid")
    _add_dimensions(p)
    _add_generation_options(p)
    p.add_argument("--lid-height", type=float, help="Lid wall height in mm")
    p.add_argument("-o", "--output", default="two_piece", help="Output file prefix")

    p = sub.add_parser("cost", help="Estimate production cost")
    _add_dimensions(p)
    p.add_argument("--quantity", type=int, default=1, help="Number of boxes")
    p.add_argument("--material", default="kraft-300", help=", ".join(MATERIALS))
    p.add_argument("--finish", default="none", help=", ".join(FINISHES))
    p.add_argument("--scenarios", action="store_true", help="Compare 500 / 1000 / 5000 runs")
    p.add_argument("--json", action="store_true", help="Print the estimate as JSON")

    p = sub.add_parser("color", help="Convert a hex colour to CMYK and check ink coverage")
    p.add_argument("hex", help="Colour such as #8B7355")

    p = sub.add_parser("template", help="Generate the die-line of a named preset")
    p.add_argument("template_id", nargs="?", help=", ".join(t.id for t in BOX_TEMPLATES))
    p.add_argument("-o", "--output", help="Output SVG file (default: <template>.svg)")
    p.add_argument("--die-only", action="store_true", help="Cut and fold layers only")
    p.add_argument("--list", action="store_true", help="List the presets")

    p = sub.add_parser("preview", help="Render a PNG preview with matplotlib")
    p.add_argument("archetype")
    _add_dimensions(p)
    _add_generation_options(p)
    p.add_argument("-o", "--output", required=True, help="Output image file")
    p.add_argument("--fold", type=float,
                   help="Render the folded box at this progress (0..1) instead of the flat pattern")
    return parser


def _options(args: argparse.Namespace, **extra) -> GenerationOptions:
    return GenerationOptions(
        bleed=args.bleed,
        include_glue_tabs=not args.no_glue_tabs,
        board_thickness=args.board_thickness,
        **extra,
    )


def _mode(args: argparse.Namespace) -> DrawingMode:
    return DrawingMode.DIE_ONLY if args.die_only else DrawingMode.FULL


def _dimensions(args: argparse.Namespace) -> BoxDimensions:
    return BoxDimensions(args.length, args.width, args.height)


# ========== COMMANDS ==========

def _cmd_generate(args, settings) -> int:
    result = generate_dieline(args.archetype, _dimensions(args), _options(args), settings)
    export_to_svg(result, args.output, _mode(args), settings)
    if args.json:
        print(json.dumps(get_dieline_data(result), indent=2, ensure_ascii=False))
    else:
        print(f"{result.archetype.value}: flat {result.flat_width:g} x {result.flat_height:g} mm, "
              f"{len(result.fold_lines)} folds")
        print(f"Board used: {result.cut_area_mm2:.0f} mm² of {result.flat_area_mm2:.0f} mm² sheet")
        print(f"Saved to: {args.output}")
    return 0


def _cmd_two_piece(args, settings) -> int:
    options = _options(args, lid_height=args.lid_height)
    pieces = generate_two_piece(_dimensions(args), options, settings)
    mode = _mode(args)
    for name, result in (('base', pieces.base), ('lid', pieces.lid)):
        filename = f"{args.output}_{name}.svg"
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(to_svg(result, mode, settings))
        print(f"{name:4s} {result.dimensions.label()} mm -> {filename}")
    print(f"Total flat area: {pieces.total_flat_area_mm2:.0f} mm²")
    return 0


def _cmd_cost(args, settings) -> int:
    dims = (args.length, args.width, args.height)
    waste_factor = settings.geometry.waste_factor
    if args.scenarios:
        scenarios = quote_scenarios(dims, args.material, args.finish, waste_factor=waste_factor)
        for s in scenarios:
            e = s.estimate
            print(f"{e.quantity:6d} pcs  unit {e.unit_cost:.2f} {e.currency}  "
                  f"total {e.total_cost:.2f} {e.currency}  saving {s.savings_percent:.0f}%")
        return 0

    estimate = calculate_cost(dims, args.material, args.finish, args.quantity, waste_factor)
    if args.json:
        print(json.dumps({
            'material': estimate.material.id,
            'finish': estimate.finish.id,
            'quantity': estimate.quantity,
            'area_m2': estimate.area_m2,
            'discount': estimate.discount,
            'unit_cost': estimate.unit_cost,
            'total_cost': estimate.total_cost,
            'currency': estimate.currency,
        }, indent=2))
    else:
        print(f"Material: {estimate.material.name}, finish: {estimate.finish.name}")
        print(f"Board area: {estimate.area_m2:.4f} m² per box")
        print(f"Unit cost: {estimate.unit_cost:.2f} {estimate.currency} "
              f"(discount {estimate.discount:.0%})")
        print(f"Total for {estimate.quantity}: {estimate.total_cost:.2f} {estimate.currency}")
    return 0


def _cmd_color(args, settings) -> int:
    profile = settings.print_profile
    check = validate_color_for_print(args.hex, profile.max_ink_coverage,
                                     profile.warn_ink_coverage, profile.min_ink_coverage)
    print(f"{args.hex.upper()} = {format_cmyk(check.cmyk)}, coverage {ink_coverage(check.cmyk):g}%")
    for message in check.errors:
        print(f"ERROR: {message}")
    for message in check.warnings:
        print(f"WARNING: {message}")
    return 0


def _cmd_template(args, settings) -> int:
    if args.list or not args.template_id:
        for t in BOX_TEMPLATES:
            print(f"{t.id:20s} {t.archetype.value:9s} {t.dimensions.label():>12s}  {t.name}")
        return 0

    template = get_template(args.template_id)
    options = GenerationOptions(board_thickness=template.board_thickness, title=template.name)
    result = generate_dieline(template.archetype, template.dimensions, options, settings)
    output = args.output or f"{template.id}.svg"
    export_to_svg(result, output, DrawingMode.DIE_ONLY if args.die_only else DrawingMode.FULL,
                  settings)
    print(f"{template.name}: flat {result.flat_width:g} x {result.flat_height:g} mm")
    print(f"Saved to: {output}")
    return 0


def _cmd_preview(args, settings) -> int:
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    from .preview import plot_dieline, plot_folded_box

    result = generate_dieline(args.archetype, _dimensions(args), _options(args), settings)
    if args.fold is None:
        fig = plot_dieline(result, save_path=args.output)
    else:
        fig = plot_folded_box(result.layout, args.fold, save_path=args.output)
    plt.close(fig)
    print(f"Preview saved to: {args.output}")
    return 0


COMMANDS = {
    'generate': _cmd_generate,
    'two-piece': _cmd_two_piece,
    'cost': _cmd_cost,
    'color': _cmd_color,
    'template': _cmd_template,
    'preview': _cmd_preview,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings(args.config)
        return COMMANDS[args.command](args, settings)
    except CartonIQError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
