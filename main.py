"""
Cell Language - Main Entry Point
Runs scripts, single expressions, or an interactive session
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from actors import evaluate_many
from error_handling import CellError, CellParseError, CellRuntimeError
from expressions import render
from interpreter import (
  BOOTSTRAP_CATALOG, DEFAULT_MAX_DEPTH, CellInterpreter, create_interpreter, create_debug_interpreter
)
from parsing import create_parser, create_debug_parser, pretty_print_tree, strip_comment


VERSION = "Cell v0.1.0"
PROMPT = "cell> "
REPL_COMMANDS = [":parse", ":reduce", ":env", ":help", ":quit"]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Cell - Peano naturals, bindings and structural recursion',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.cell                 # Evaluate each line of a script
  %(prog)s -e "Add['2, '3]"            # Evaluate one expression
  %(prog)s --reduce -e "Bind[x, x]['1]" # Reduce instead of evaluate
  %(prog)s --parse script.cell         # Show parse trees
  %(prog)s --workers 4 script.cell     # Evaluate lines concurrently
  %(prog)s -i                          # Interactive mode
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Cell script file to execute (one expression per line)'
  )

  parser.add_argument(
      '-e', '--expr',
      help='Evaluate a single expression'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--reduce',
      action='store_true',
      help='Use primitive-only reduction instead of full evaluation'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse only and show the expression trees (scripts, -e and the REPL)'
  )

  parser.add_argument(
      '--workers',
      type=int,
      default=1,
      help='Evaluate script lines concurrently with this many actors'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=DEFAULT_MAX_DEPTH,
      help=f'Maximum application nesting depth (default: {DEFAULT_MAX_DEPTH})'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Print a trace of every evaluation step'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def mode_name(reduce_mode: bool) -> str:
  return "reduce" if reduce_mode else "evaluate"


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a Cell script file and show the expression trees"""
  parser = create_debug_parser() if debug else create_parser()
  try:
    expressions = parser.parse_file(script_path)
  except CellParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)

  print(f"Parsed {len(expressions)} expressions:")
  print("=" * 50)
  for line_num, expr in expressions:
    print(f"\nLine {line_num}:")
    print(pretty_print_tree(expr), end='')


def run_script_file(script_path: str, interpreter: CellInterpreter, reduce_mode: bool = False,
                    workers: int = 1) -> None:
  """Run a Cell script, printing one result per expression"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      content = f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    print("  Hint: Check the file path and make sure the file exists")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print("  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)

  if workers > 1:
    sources = script_lines(content)
    outcomes = evaluate_many(interpreter, sources, workers=workers, mode=mode_name(reduce_mode))
    failed = False
    for outcome in outcomes:
      if outcome['error'] is not None:
        print(f"Error in '{outcome['source']}': {outcome['error']}")
        failed = True
      else:
        print(f"=> {outcome['result']}")
    if failed:
      sys.exit(1)
    return

  try:
    expressions = interpreter.parser.parse_string(content, script_path)
  except CellParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)

  for line_num, expr in expressions:
    try:
      result = interpreter.reduce(expr) if reduce_mode else interpreter.evaluate(expr)
    except CellRuntimeError as e:
      print(f"Runtime error at {script_path}:{line_num}: {e.message}")
      sys.exit(1)
    print(f"=> {render(result)}")


def script_lines(content: str) -> List[str]:
  """Non-empty script lines with '#' comments removed"""
  lines = []
  for line in content.split('\n'):
    line = strip_comment(line).strip()
    if line:
      lines.append(line)
  return lines


def run_expression(text: str, interpreter: CellInterpreter, reduce_mode: bool = False,
                   parse_only: bool = False) -> None:
  """Evaluate (or only parse) one expression given on the command line"""
  try:
    if parse_only:
      print(pretty_print_tree(interpreter.parse(text)), end='')
    else:
      print(interpreter.run(text, mode_name(reduce_mode)))
  except CellParseError as e:
    print(e)
    sys.exit(1)
  except CellError as e:
    print(f"Error: {e.message}")
    sys.exit(1)


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.cell_history")
  try:
    readline.read_history_file(history_file)
  except (FileNotFoundError, PermissionError, OSError):
    pass  # First run, nothing to load

  readline.set_history_length(1000)

  completions = list(BOOTSTRAP_CATALOG) + REPL_COMMANDS

  def completer(text, state):
    options = [name for name in completions if name.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.set_completer_delims(" ,[]")
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def print_help() -> None:
  print("REPL Commands:")
  print("  :parse <expr>     - Show the parsed expression tree")
  print("  :reduce <expr>    - Reduce instead of evaluate")
  print("  :env              - Show the root environment")
  print("  :help             - Show this help")
  print("  :quit             - Exit REPL")
  print()
  print("Language:")
  print("  '3                             - Natural number literal")
  print("  Add['2, '3]                    - Application")
  print("  Bind[x, Add[x, '1]]['4]        - Binding form applied to '4")
  print("  Recurse[k, Succ[Self], Zero]['3] - Structural recursion")
  print("  Evaluate[e], Reduce[e]         - Force either semantics")


def handle_line(code: str, interpreter: CellInterpreter, reduce_mode: bool = False,
                parse_only: bool = False) -> Optional[str]:
  """Run one REPL line and return what should be printed"""
  if code.startswith(":parse "):
    return pretty_print_tree(interpreter.parse(code[len(":parse "):])).rstrip('\n')

  if code.startswith(":reduce "):
    return f"=> {interpreter.run(code[len(':reduce '):], 'reduce')}"

  if code == ":env":
    lines = ["Root environment:"]
    for name in interpreter.global_env.local_names():
      lines.append(f"  {name} = {render(interpreter.global_env.lookup(name))}")
    return "\n".join(lines)

  if code == ":help":
    print_help()
    return None

  if parse_only:
    return pretty_print_tree(interpreter.parse(code)).rstrip('\n')

  return f"=> {interpreter.run(code, mode_name(reduce_mode))}"


def run_interactive_mode(interpreter: CellInterpreter, reduce_mode: bool = False,
                         parse_only: bool = False) -> None:
  """Run Cell in interactive mode"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if interpreter.debug:
    print("Debug mode enabled")
  if parse_only:
    print("Parse-only mode: lines are shown as expression trees")
  print()

  setup_readline()

  while True:
    try:
      code = input(PROMPT).strip()
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if not code:
      continue
    if code == ":quit":
      break

    try:
      output = handle_line(code, interpreter, reduce_mode, parse_only)
    except CellParseError as e:
      print(e)
      continue
    except CellError as e:
      print(f"Error: {e.message}")
      continue

    if output is not None:
      print(output)


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Cell"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.max_depth < 1:
    arg_parser.error("--max-depth must be at least 1")
  if args.workers < 1:
    arg_parser.error("--workers must be at least 1")

  if args.debug:
    interpreter = create_debug_interpreter(max_depth=args.max_depth)
  else:
    interpreter = create_interpreter(max_depth=args.max_depth)

  if args.interactive:
    run_interactive_mode(interpreter, args.reduce, args.parse)
  elif args.expr is not None:
    run_expression(args.expr, interpreter, args.reduce, args.parse)
  elif args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)
    if args.parse:
      parse_file(args.script, args.debug)
    else:
      run_script_file(args.script, interpreter, args.reduce, args.workers)
  else:
    run_interactive_mode(interpreter, args.reduce, args.parse)


if __name__ == "__main__":
  main()
