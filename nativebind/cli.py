# MIT License
# Copyright 2019-2023 BeamNG GmbH
#
# Permission is hereby granted, free of charge, to any person obtaining a copy of
# this software and associated documentation files (the "Software"), to deal in
# the Software without restriction, including without limitation the rights to
# use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies
# of the Software, and to permit persons to whom the Software is furnished to do
# so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Command line entry point

    nativebind bindings.json [--output-dir DIR] [--no-clear] [-v]
"""

import argparse
import dataclasses
import logging
import sys

from .config import load_config
from .constants import LOGGER_NAME
from .errors import GenerationError
from .generator import generate

logger = logging.getLogger(LOGGER_NAME)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="nativebind",
        description="Generate C# P/Invoke bindings for native libraries from their headers",
    )
    parser.add_argument("config", help="JSON config document describing the libraries to bind")
    parser.add_argument(
        "--output-dir",
        "-o",
        help="Directory to write the generated sources to (overrides output_dir of the config)",
    )
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Fail instead of clearing a non-empty output directory",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug output")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = load_config(args.config)
        if args.output_dir:
            config = dataclasses.replace(config, output_dir=args.output_dir)
        if args.no_clear:
            options = dataclasses.replace(config.options, force_clear_output_directory=False)
            config = dataclasses.replace(config, options=options)
        report = generate(config, logger=logger)
    except GenerationError as e:
        logger.error("%s", e)
        return 1

    if report.orphans:
        logger.info("%d declarations had no binding generated", len(report.orphans))
    return 0


if __name__ == "__main__":
    sys.exit(main())
