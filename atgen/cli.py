#!/usr/bin/env python3
"""
atgen command line

Usage:
    atgen                          # probe the SDK found via AT_DIR, print deps.jl
    atgen -o deps/deps.jl          # write the module to a read-only file
    atgen --scan-header            # no C compiler: read atcore.h instead
    atgen --header /opt/andor/include/atcore.h --library /opt/andor/lib/libatcore.so
    atgen -I /opt/andor/extra --cflags="-DAT_EXP_API=1"
"""

import argparse
import logging
import shlex
import sys
from typing import List, Optional

from atgen import __version__
from atgen._logging import configure_logging, get_logger
from atgen.config import SdkConfig
from atgen.emitter import emit, generate, write_module
from atgen.types import AtgenError, BuildEnvironmentError, OutputError

logger = get_logger("cli")


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate Julia definitions of Andor SDK types and constants',
        prog='atgen'
    )
    parser.add_argument(
        '--sdk-dir',
        default=None,
        help='SDK root directory (default: $AT_DIR or /usr/local/andor)'
    )
    parser.add_argument(
        '--header',
        default=None,
        help='Path to atcore.h (default: searched under the SDK root)'
    )
    parser.add_argument(
        '--library',
        default=None,
        help='Path to the SDK shared library (default: searched under the SDK root)'
    )
    parser.add_argument(
        '-o', '--output',
        default=None,
        help='Write the module to this file instead of standard output'
    )
    parser.add_argument(
        '--scan-header',
        action='store_true',
        help='Read constants from the header instead of compiling a probe'
    )
    parser.add_argument(
        '-I', '--include-dir',
        dest='include_dirs',
        action='append',
        default=[],
        metavar='DIR',
        help='Extra include directory for the compiled probe (repeatable)'
    )
    parser.add_argument(
        '--cflags',
        default='',
        help='Extra compiler flags for the compiled probe, as one shell-quoted string'
    )
    parser.add_argument(
        '--platform',
        default=None,
        help='Target platform in sys.platform spelling (default: this machine)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print progress and compiler output on standard error'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_argument_parser().parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = SdkConfig.from_environment(
            sdk_dir=args.sdk_dir,
            header=args.header,
            library=args.library,
            platform=args.platform,
            include_dirs=args.include_dirs,
            extra_compile_args=shlex.split(args.cflags),
        )
        text = generate(config, scan_header=args.scan_header)
        logger.debug(f"Rendered {len(text.splitlines())} lines")
        if args.output is None:
            emit(text, sys.stdout)
        else:
            write_module(text, args.output)
        return 0

    except BuildEnvironmentError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except OutputError as e:
        print(f"Output error: {e.message}", file=sys.stderr)
        return 1
    except AtgenError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
