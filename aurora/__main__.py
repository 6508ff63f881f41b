"""CLI entry point for the Aurora interpreter.

Usage:
    python -m aurora [-v|-q] [--assets DIR] <program_file>
    python -m aurora [-v|-q] --emit-ast <program_file>
    python -m aurora [-v|-q] --ast <ast_json_file>
    python -m aurora [-v|-q]

Options:
  -v, --verbose  Write scanner/parser/call diagnostics to stderr
  -q, --quiet    Do not print the banner before running a file
  --assets DIR   Directory `require` loads modules from (default: assets)
  --emit-ast     Parse the given file and emit an AST JSON file next to it
  --ast          Execute a previously emitted AST JSON file

Without a program file an interactive console is started. Every line is
run against the same interpreter; `quit()` leaves the console.
"""

import argparse
import json
import sys
from pathlib import Path

from .ast_json import ast_to_obj, ast_from_obj
from .config import Config, LogLevel
from .errors import AuroraError
from .interpreter import Interpreter
from .parser import parse_program

PROMPT = 'aurora> '


def report(error: AuroraError) -> None:
    for err in getattr(error, 'errors', [error.err]):
        print(err, file=sys.stderr)


def create_config(args: argparse.Namespace) -> Config:
    if args.verbose:
        level = LogLevel.VERBOSE
    elif args.quiet:
        level = LogLevel.QUIET
    else:
        level = LogLevel.NORMAL
    return Config(log_level=level, asset_root=args.assets)


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def run_console(config: Config) -> None:
    interpreter = Interpreter(config)

    def std_quit(args, interp):
        raise SystemExit(0)

    interpreter.register_native('quit', std_quit, arity=0)
    try:
        while True:
            try:
                line = input(PROMPT)
            except EOFError:
                print()
                break
            try:
                interpreter.execute_source(line)
            except AuroraError as e:
                report(e)
    finally:
        interpreter.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='aurora', description="Lua-like scripting language interpreter")
    level = parser.add_mutually_exclusive_group()
    level.add_argument('-v', '--verbose', action='store_true', help='sets the log level to verbose')
    level.add_argument('-q', '--quiet', action='store_true', help='sets the log level to quiet')
    parser.add_argument('--assets', default='assets', metavar='DIR', help='directory modules are loaded from')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='SOURCE_FILE', help='emit AST JSON for the given source file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='source file to execute')
    args = parser.parse_args(argv)
    config = create_config(args)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(program_file)
        try:
            ast_program = parse_program(source)
        except AuroraError as e:
            report(e)
            sys.exit(1)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(ast_program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        data = json.loads(read_source(ast_path))
        interpreter = Interpreter(config)
        try:
            interpreter.run(ast_from_obj(data))
        except AuroraError as e:
            report(e)
            sys.exit(1)
        finally:
            interpreter.close()
        return

    if not args.program:
        run_console(config)
        return

    program_file = Path(args.program)
    source = read_source(program_file)
    if not config.quiet:
        print(f"Running Lua Src file: {program_file}\n")
    interpreter = Interpreter(config)
    try:
        interpreter.execute_source(source)
    except AuroraError as e:
        report(e)
        sys.exit(1)
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
