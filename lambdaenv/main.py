"""Runs lambdaenv programs from a file or a string, or in command-line mode. Also uses the error handling context
manager. Called from the lambdaenv console script and from `python -m lambdaenv`.
"""

import argparse
import os
import sys

from lambdaenv.lang.error import ErrorHandler
from lambdaenv.lang.session import Session
from lambdaenv.lang.shell import Shell
from lambdaenv.pure.evaluation import Evaluator
from lambdaenv.pure.syntax import Parser


def get_parser():
    parser = argparse.ArgumentParser(prog="lambdaenv", description="Untyped lambda calculus interpreter with closures.")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("-e", "--expr", help="program text to run instead of a file")
    parser.add_argument("-q", "--quiet", action="store_true", help="only print the result, not the tokens and ast")
    parser.add_argument("--trace", action="store_true", help="print every application step during evaluation")
    parser.add_argument("--no-color", action="store_true", help="disable colored diagnostics")
    parser.add_argument("--max-depth", type=int, default=None,
                        help=f"parser/evaluator nesting limit (defaults: {Parser.MAX_DEPTH}/{Evaluator.MAX_DEPTH})")
    return parser


def main(argv=None):
    """Runs lambdaenv interpreter."""
    args = get_parser().parse_args(argv)

    if args.no_color:
        os.environ["NO_COLOR"] = "1"  # honored by termcolor

    if args.max_depth is not None:
        if args.max_depth < 1:
            get_parser().error("--max-depth must be positive")
        # every level of nesting costs up to two Python frames
        sys.setrecursionlimit(max(sys.getrecursionlimit(), 2 * args.max_depth + 200))

    with ErrorHandler(trace=args.trace) as error_handler:
        if args.expr is not None:
            sess = Session(error_handler, Session.EXPR_FILE, cmd_line=False, max_depth=args.max_depth)
            sess.add(args.expr)
        elif args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False, max_depth=args.max_depth)
        else:
            sess = Session(error_handler, Session.SH_FILE, cmd_line=True, max_depth=args.max_depth)
            Shell(sess, verbose=not args.quiet).cmdloop()
            return

        sess.run()
        for result in sess.results:
            print(result.report(verbose=not args.quiet))


if __name__ == "__main__":
    main()
