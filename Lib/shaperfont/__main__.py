import argparse
import logging
import sys

from fontTools import configLogger
from fontTools.misc.cliTools import makeOutputFileName

from shaperfont import ShaperFontCompiler

logger = logging.getLogger("shaperfont")


def parseAxis(value):
    """Parse a TAG:MIN:DEFAULT:MAX command line argument."""
    parts = value.split(":")
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(
            f"expected TAG:MIN:DEFAULT:MAX, found {value!r}"
        )
    tag, *numbers = parts
    try:
        minValue, defaultValue, maxValue = (float(v) for v in numbers)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid axis {value!r}: {e}") from e
    return {
        "tag": tag,
        "minValue": minValue,
        "defaultValue": defaultValue,
        "maxValue": maxValue,
    }


def readGlyphOrder(value):
    """Read a glyph order from a file with one name per line ('#' starts a
    comment line), or from a comma-separated list of names.
    """
    if "," not in value:
        try:
            with open(value, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except FileNotFoundError:
            pass
        else:
            return [
                line.strip()
                for line in lines
                if line.strip() and not line.lstrip().startswith("#")
            ]
    return [name.strip() for name in value.split(",") if name.strip()]


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="shaperfont",
        description="Compile a feature file into a minimal font for shaping",
    )
    parser.add_argument("input", metavar="FEA", help="feature file")
    parser.add_argument(
        "--glyph-order",
        "-g",
        required=True,
        metavar="GLYPHS",
        help="file with one glyph name per line, or comma-separated glyph names",
    )
    parser.add_argument(
        "--units-per-em", "-u", type=int, default=1000, metavar="UPEM"
    )
    parser.add_argument(
        "--axis",
        "-a",
        dest="axes",
        action="append",
        type=parseAxis,
        default=[],
        metavar="TAG:MIN:DEFAULT:MAX",
        help="design axis; can be repeated",
    )
    parser.add_argument("--output", "-o", metavar="OUTPUT", help="output file name")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true")
    verbosity.add_argument("--quiet", "-q", action="store_true")
    options = parser.parse_args(args)

    level = "DEBUG" if options.verbose else "ERROR" if options.quiet else "INFO"
    configLogger(level=level)

    with open(options.input, encoding="utf-8-sig") as f:
        featureSource = f.read()
    glyphOrder = readGlyphOrder(options.glyph_order)

    compiler = ShaperFontCompiler(
        unitsPerEm=options.units_per_em, sourceName=options.input
    )
    result = compiler.compile(glyphOrder, featureSource, options.axes)

    for message in result.messages:
        print(f"{options.input}: {message}", file=sys.stderr)
    if result.fontData is None:
        return 1

    output = options.output or makeOutputFileName(
        options.input, outputDir=None, extension=".ttf"
    )
    with open(output, "wb") as f:
        f.write(result.fontData)
    for marker in result.insertMarkers:
        logger.info("Insertion marker: %s at lookup %d", marker.tag, marker.lookupId)
    logger.info("Written on %s", output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
