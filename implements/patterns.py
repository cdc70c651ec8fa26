from __future__ import annotations

import logging
import os
import re
from typing import Callable, Iterator, List, Optional, Tuple

from .config import BuildContext
from .locate import is_go_source


logger = logging.getLogger(__name__)

SKIP_DIRS = {"testdata", "vendor"}


def split_patterns(value: str) -> List[str]:
	return [p.strip() for p in value.split(",") if p.strip()]


def match_pattern(pattern: str) -> Callable[[str], bool]:
	"""Go's pattern matching: ``...`` matches any string, ``x/...`` also matches x."""
	expr = re.escape(pattern).replace(r"\.\.\.", ".*")
	if expr.endswith("/.*"):
		expr = expr[: -len("/.*")] + "(/.*)?"
	regex = re.compile(f"^{expr}$")
	return lambda path: bool(regex.match(path))


def walk_packages(root_dir: str, prefix: str = "") -> Iterator[str]:
	"""Import paths of directories under root_dir holding Go files."""
	if not os.path.isdir(root_dir):
		return
	for dirpath, dirnames, filenames in os.walk(root_dir):
		dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS and not d.startswith(("_", ".")))
		if not any(is_go_source(f) for f in filenames):
			continue
		rel = os.path.relpath(dirpath, root_dir)
		if rel == ".":
			if prefix:
				yield prefix
			continue
		rel = rel.replace(os.sep, "/")
		yield f"{prefix}/{rel}" if prefix else rel


def std_packages(context: BuildContext) -> List[str]:
	if not context.goroot:
		logger.warning("GOROOT is not set; 'std' matches no packages")
		return []
	src = os.path.join(context.goroot, "src")
	packages = [p for p in walk_packages(src) if p != "cmd" and not p.startswith("cmd/")]
	# Vendored dependencies of the standard library belong to std.
	packages.extend(walk_packages(os.path.join(src, "vendor"), "vendor"))
	return packages


def cmd_packages(context: BuildContext) -> List[str]:
	if not context.goroot:
		return []
	return list(walk_packages(os.path.join(context.goroot, "src", "cmd"), "cmd"))


def _roots(context: BuildContext) -> List[Tuple[str, str]]:
	roots: List[Tuple[str, str]] = []
	if context.goroot:
		roots.append((os.path.join(context.goroot, "src"), ""))
	if context.module_root and context.module_path:
		roots.append((context.module_root, context.module_path))
	for gopath in context.gopath:
		roots.append((os.path.join(gopath, "src"), ""))
	return roots


def _walk_for_prefix(root_dir: str, root_path: str, literal: str) -> Iterator[str]:
	# Only descend into the part of the tree the literal prefix can match.
	base = literal.rsplit("/", 1)[0] if "/" in literal else ""
	if not root_path:
		start = os.path.join(root_dir, base.replace("/", os.sep)) if base else root_dir
		yield from walk_packages(start, base)
		return
	if base == root_path or base.startswith(root_path + "/"):
		sub = base[len(root_path) + 1:]
		start = os.path.join(root_dir, sub.replace("/", os.sep)) if sub else root_dir
		yield from walk_packages(start, base)
	elif root_path.startswith(base):
		yield from walk_packages(root_dir, root_path)


def _relative(context: BuildContext, pattern: str, cwd: str) -> Optional[str]:
	if not context.module_root or not context.module_path:
		return None
	target = os.path.normpath(os.path.join(cwd, pattern))
	rel = os.path.relpath(target, context.module_root)
	if rel == os.curdir:
		return context.module_path
	if rel.startswith(os.pardir):
		return None
	return context.module_path + "/" + rel.replace(os.sep, "/")


def expand_patterns(context: BuildContext, value: str, cwd: Optional[str] = None) -> List[str]:
	"""Turn a comma separated pattern list into import paths, without duplicates."""
	cwd = cwd or os.getcwd()
	out: List[str] = []
	seen = set()

	def add(paths) -> None:
		for p in paths:
			if p not in seen:
				seen.add(p)
				out.append(p)

	for pattern in split_patterns(value):
		if pattern == "std":
			add(std_packages(context))
			continue
		if pattern == "cmd":
			add(cmd_packages(context))
			continue
		if pattern == "all":
			add(std_packages(context))
			pattern = "..."
		if pattern.startswith(("./", "../")) or pattern in (".", ".."):
			head, wildcard, tail = pattern.partition("...")
			resolved = _relative(context, head or ".", cwd)
			if resolved is None:
				logger.warning("%s is outside the main module", pattern)
				add([pattern])
				continue
			if wildcard:
				resolved += ("/" if head.endswith("/") else "") + wildcard + tail
			pattern = resolved
		if "..." not in pattern:
			add([pattern])
			continue
		match = match_pattern(pattern)
		literal = pattern.split("...", 1)[0]
		matched = False
		for root_dir, root_path in _roots(context):
			for path in _walk_for_prefix(root_dir, root_path, literal):
				if match(path):
					matched = True
					add([path])
		if not matched:
			logger.warning("pattern %s matched no packages", pattern)
	return out
