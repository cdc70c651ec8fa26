from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from implements.analysis import analyze
from implements.config import BuildContext, parse_tie_break
from implements.errors import ConfigurationError, UsageError
from implements.report import format_report


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="implements",
		description="List the interfaces Go types implement, or the types implementing interfaces.",
		add_help=False,
	)
	parser.add_argument("-h", "-help", "--help", action="help", help="Show this help message and exit")
	parser.add_argument(
		"-interfaces",
		"--interfaces",
		default="std",
		help="Comma-separated list of packages to scan for interfaces. Defaults to std.",
	)
	parser.add_argument(
		"-types",
		"--types",
		default="",
		help="Comma-separated list of packages whose types to check for implemented interfaces.",
	)
	parser.add_argument(
		"-reverse",
		"--reverse",
		action="store_true",
		help="Print 'implemented by' as opposed to 'implements' relations.",
	)
	parser.add_argument("-json", "--json", action="store_true", help="Print the report as JSON")
	parser.add_argument("-tags", "--tags", default="", help="Comma-separated list of extra build tags")
	parser.add_argument(
		"-tie-break",
		"--tie-break",
		default="prefer-non-main",
		help="Package choice when a directory holds several: prefer-non-main, first or strict",
	)
	parser.add_argument("-index", "--index", default=None, help="Directory for the parsed declaration index")
	parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
	return parser


def cmd_report(args: argparse.Namespace) -> int:
	context = BuildContext.from_env(
		build_tags=[t.strip() for t in args.tags.split(",") if t.strip()],
		tie_break=parse_tie_break(args.tie_break),
		index_dir=args.index,
	)
	report = analyze(context, types=args.types, interfaces=args.interfaces, reverse=args.reverse)
	for line in report.errors:
		print(line, file=sys.stderr)
	if args.json:
		print(report.model_dump_json(indent=2))
	else:
		sys.stdout.write(format_report(report))
	return 0


def cmd_serve(argv: List[str]) -> int:
	parser = argparse.ArgumentParser(prog="implements serve")
	parser.add_argument("--host", default="127.0.0.1")
	parser.add_argument("--port", type=int, default=8000)
	parser.add_argument("--reload", action="store_true")
	args = parser.parse_args(argv)
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
	return 0


def main(argv: Optional[List[str]] = None) -> int:
	argv = sys.argv[1:] if argv is None else argv
	if argv and argv[0] == "serve":
		return cmd_serve(argv[1:])

	parser = build_parser()
	args = parser.parse_args(argv)
	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
		stream=sys.stderr,
	)
	try:
		if not args.types.strip():
			raise UsageError("-types is required")
		return cmd_report(args)
	except (UsageError, ConfigurationError) as e:
		parser.print_usage(sys.stderr)
		print(f"implements: {e}", file=sys.stderr)
		return 1


if __name__ == "__main__":
	sys.exit(main())
