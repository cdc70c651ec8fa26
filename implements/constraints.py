"""Go build constraint evaluation.

Supports ``//go:build`` expressions and the legacy ``// +build`` lines, as
well as the ``_GOOS``/``_GOARCH`` file name suffixes.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Set

from .config import BuildContext


KNOWN_OS = {
	"aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
	"js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris", "wasip1",
	"windows", "zos",
}

KNOWN_ARCH = {
	"386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be", "loong64",
	"mips", "mipsle", "mips64", "mips64le", "mips64p32", "mips64p32le", "ppc",
	"ppc64", "ppc64le", "riscv", "riscv64", "s390", "s390x", "sparc", "sparc64",
	"wasm",
}

UNIX_OS = {
	"aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
	"linux", "netbsd", "openbsd", "solaris",
}

_IMPLIED_OS = {"android": "linux", "ios": "darwin", "illumos": "solaris"}

_RELEASE_TAG = re.compile(r"^go1\.\d+$")
_TOKEN = re.compile(r"\s*(\(|\)|!|&&|\|\||[A-Za-z0-9_.]+)")


class ConstraintSyntaxError(ValueError):
	pass


def context_tags(context: BuildContext) -> Set[str]:
	tags = {context.goos, context.goarch, "gc"}
	implied = _IMPLIED_OS.get(context.goos)
	if implied:
		tags.add(implied)
	if context.goos in UNIX_OS:
		tags.add("unix")
	if context.cgo_enabled:
		tags.add("cgo")
	tags.update(context.build_tags)
	return tags


def make_matcher(context: BuildContext) -> Callable[[str], bool]:
	tags = context_tags(context)

	def match(tag: str) -> bool:
		return tag in tags or bool(_RELEASE_TAG.match(tag))

	return match


def _tokenize(expr: str) -> List[str]:
	tokens: List[str] = []
	pos = 0
	expr = expr.rstrip()
	while pos < len(expr):
		m = _TOKEN.match(expr, pos)
		if not m:
			raise ConstraintSyntaxError(f"unexpected character in {expr!r} at {pos}")
		tokens.append(m.group(1))
		pos = m.end()
	return tokens


class _ExprParser:
	# expr := and ('||' and)*; and := unary ('&&' unary)*; unary := '!' unary | atom

	def __init__(self, tokens: List[str], match: Callable[[str], bool]):
		self.tokens = tokens
		self.pos = 0
		self.match = match

	def peek(self) -> Optional[str]:
		return self.tokens[self.pos] if self.pos < len(self.tokens) else None

	def take(self) -> str:
		tok = self.peek()
		if tok is None:
			raise ConstraintSyntaxError("unexpected end of expression")
		self.pos += 1
		return tok

	def parse(self) -> bool:
		value = self.or_expr()
		if self.peek() is not None:
			raise ConstraintSyntaxError(f"unexpected token {self.peek()!r}")
		return value

	def or_expr(self) -> bool:
		value = self.and_expr()
		while self.peek() == "||":
			self.take()
			rhs = self.and_expr()
			value = value or rhs
		return value

	def and_expr(self) -> bool:
		value = self.unary()
		while self.peek() == "&&":
			self.take()
			rhs = self.unary()
			value = value and rhs
		return value

	def unary(self) -> bool:
		tok = self.take()
		if tok == "!":
			return not self.unary()
		if tok == "(":
			value = self.or_expr()
			if self.take() != ")":
				raise ConstraintSyntaxError("missing )")
			return value
		if tok in (")", "&&", "||"):
			raise ConstraintSyntaxError(f"unexpected token {tok!r}")
		return self.match(tok)


def eval_go_build(expr: str, match: Callable[[str], bool]) -> bool:
	return _ExprParser(_tokenize(expr), match).parse()


def eval_plus_build(lines: Iterable[str], match: Callable[[str], bool]) -> bool:
	"""Evaluate legacy +build lines: space is OR, comma is AND, lines are ANDed."""
	for line in lines:
		ok = False
		for option in line.split():
			if all(_plus_term(term, match) for term in option.split(",")):
				ok = True
				break
		if not ok:
			return False
	return True


def _plus_term(term: str, match: Callable[[str], bool]) -> bool:
	if term.startswith("!"):
		return not match(term[1:])
	return match(term)


def header_constraints(text: str) -> tuple:
	"""Collect the //go:build expression and +build lines before the package clause."""
	go_build: Optional[str] = None
	plus: List[str] = []
	in_block = False
	for raw in text.splitlines():
		line = raw.strip()
		if in_block:
			if "*/" in line:
				in_block = False
			continue
		if not line:
			continue
		if line.startswith("/*"):
			in_block = "*/" not in line
			continue
		if not line.startswith("//"):
			break
		body = line[2:]
		if body.startswith("go:build"):
			go_build = body[len("go:build"):].strip()
		elif body.strip().startswith("+build"):
			plus.append(body.strip()[len("+build"):].strip())
	return go_build, plus


def source_matches(text: str, match: Callable[[str], bool]) -> bool:
	go_build, plus = header_constraints(text)
	if go_build is not None:
		return eval_go_build(go_build, match)
	if plus:
		return eval_plus_build(plus, match)
	return True


def filename_matches(name: str, match: Callable[[str], bool]) -> bool:
	"""Apply the *_GOOS, *_GOARCH and *_GOOS_GOARCH file name conventions."""
	stem = name[:-3] if name.endswith(".go") else name
	parts = stem.split("_")
	if len(parts) < 2:
		return True
	last = parts[-1]
	if len(parts) >= 3 and parts[-2] in KNOWN_OS and last in KNOWN_ARCH:
		return match(parts[-2]) and match(last)
	if last in KNOWN_OS or last in KNOWN_ARCH:
		return match(last)
	return True
