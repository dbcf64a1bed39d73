"""CLI entry point for the Lox interpreter.

Usage:
    python -m lox [-v|-vv|-vvv] [--debug-file PATH] [script]
    python -m lox --print-ast <script>

Options:
  -v            Increase debug verbosity (can be repeated)
  --debug-file  Where debug traces go (default: debug.txt)
  --print-ast   Parse the script and print its AST instead of running it

Without a script an interactive prompt is started. Each line is run as a
separate program against the same interpreter, so definitions carry over
from one line to the next. End the session with EOF (Ctrl-D).

Debug information is written to the debug file when verbosity is greater
than zero.

Exit status: 64 for usage errors, 65 for syntax or static errors, 70 for
runtime errors.
"""

import argparse
import sys
from pathlib import Path

from .ast_printer import AstPrinter
from .errors import LoxSyntaxError
from .interpreter import Interpreter, RunStatus, run_source
from .parser import parse_program

EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70


def run_prompt(interpreter: Interpreter) -> None:
    while True:
        try:
            line = input('> ')
        except EOFError:
            print()
            break
        run_source(line, interpreter)


def print_ast(source: str) -> int:
    try:
        statements = parse_program(source)
    except LoxSyntaxError as e:
        print(e.err.report(), file=sys.stderr)
        return EX_DATAERR
    printer = AstPrinter()
    for stmt in statements:
        print(printer.print(stmt))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Lox language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--debug-file', default='debug.txt', help='file that receives debug traces')
    parser.add_argument('--print-ast', action='store_true', help='print the parsed AST instead of running')
    parser.add_argument('program', nargs='?', help='Lox script (.lox) to execute')
    args = parser.parse_args(argv)

    if args.program is None:
        if args.print_ast:
            parser.error('--print-ast needs a script')
        interpreter = Interpreter(debug_level=args.v, debug_file=args.debug_file)
        try:
            run_prompt(interpreter)
        finally:
            interpreter.close()
        return 0

    program_file = Path(args.program)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        return EX_USAGE
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()

    if args.print_ast:
        return print_ast(source)

    interpreter = Interpreter(debug_level=args.v, debug_file=args.debug_file)
    try:
        status = run_source(source, interpreter)
    finally:
        interpreter.close()
    if status is RunStatus.STATIC_ERROR:
        return EX_DATAERR
    if status is RunStatus.RUNTIME_ERROR:
        return EX_SOFTWARE
    return 0


if __name__ == '__main__':
    sys.exit(main())
