"""CLI entry point for the vsyc interpreter.

Usage:
    python -m vsyc [-v|-vv|-vvv] <program.vscc>
    python -m vsyc [-v...] --native-cmd "node -p" <program.vscc>
    python -m vsyc --emit-tokens <program.vscc>

Options:
  -v              Increase debug verbosity (can be repeated)
  --debug-file    Write debug output to this file instead of stdout
  --native-cmd    Command that runs @execjs snippets (disabled by default)
  --emit-tokens   Tokenize the given file and write a token JSON file
"""

import argparse
import json
import sys
from pathlib import Path

from .host import SOURCE_EXTENSION, SubprocessNative
from .interpreter import Interpreter
from .node_json import nodes_to_obj
from .tokenizer import tokenize


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='vsyc', description="vsyc language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--debug-file', metavar='FILE', help='write debug output to FILE')
    parser.add_argument('--native-cmd', metavar='CMD', help='command used to run @execjs snippets')
    parser.add_argument('--emit-tokens', action='store_true', help='write the token JSON instead of running')
    parser.add_argument('program', help=f'program file ({SOURCE_EXTENSION}) to execute')
    args = parser.parse_args(argv)

    program_file = Path(args.program)
    if program_file.suffix != SOURCE_EXTENSION:
        print(f"Error: file must be a {SOURCE_EXTENSION} file", file=sys.stderr)
        sys.exit(1)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)

    if args.emit_tokens:
        source = program_file.read_text(encoding='utf-8')
        obj = nodes_to_obj(tokenize(source))
        out_path = program_file.with_name(program_file.name + '.tokens.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(obj, out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    native = SubprocessNative(args.native_cmd) if args.native_cmd else None
    interpreter = Interpreter(invoke_native=native, debug_level=args.v, debug_file=args.debug_file)
    try:
        interpreter.run_file(str(program_file))
    except Exception as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
