from __future__ import annotations

import os
import shutil
import subprocess
import sys
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel

from .errors import ConfigurationError


class TieBreak(str, Enum):
	"""How to pick a package when one directory declares several."""

	PREFER_NON_MAIN = "prefer-non-main"
	FIRST = "first"
	STRICT = "strict"


_GOOS_BY_PLATFORM = {
	"linux": "linux",
	"darwin": "darwin",
	"win32": "windows",
	"cygwin": "windows",
	"freebsd": "freebsd",
	"openbsd": "openbsd",
	"netbsd": "netbsd",
}

_GOARCH_BY_MACHINE = {
	"x86_64": "amd64",
	"amd64": "amd64",
	"aarch64": "arm64",
	"arm64": "arm64",
	"i386": "386",
	"i686": "386",
	"armv7l": "arm",
	"ppc64le": "ppc64le",
	"s390x": "s390x",
	"riscv64": "riscv64",
}


def parse_tie_break(value: str) -> TieBreak:
	try:
		return TieBreak(value)
	except ValueError:
		choices = ", ".join(t.value for t in TieBreak)
		raise ConfigurationError(f"unknown tie-break policy {value!r} (want one of {choices})") from None


def _host_goos() -> str:
	for prefix, goos in _GOOS_BY_PLATFORM.items():
		if sys.platform.startswith(prefix):
			return goos
	return "linux"


def _host_goarch() -> str:
	machine = os.uname().machine if hasattr(os, "uname") else "x86_64"
	return _GOARCH_BY_MACHINE.get(machine.lower(), "amd64")


def _go_env(var: str) -> Optional[str]:
	go = shutil.which("go")
	if go is None:
		return None
	try:
		out = subprocess.run([go, "env", var], capture_output=True, text=True, timeout=10, check=True)
	except (OSError, subprocess.SubprocessError):
		return None
	value = out.stdout.strip()
	return value or None


def read_module_path(gomod: str) -> Optional[str]:
	"""Return the module path declared by a go.mod file."""
	with open(gomod, "r", encoding="utf-8") as fh:
		for line in fh:
			line = line.split("//", 1)[0].strip()
			if line.startswith("module"):
				rest = line[len("module"):].strip()
				if rest:
					return rest.strip('"')
	return None


def find_main_module(start: str) -> Tuple[Optional[str], Optional[str]]:
	"""Walk up from start looking for go.mod; return (root, module path)."""
	cur = os.path.abspath(start)
	while True:
		gomod = os.path.join(cur, "go.mod")
		if os.path.isfile(gomod):
			return cur, read_module_path(gomod)
		parent = os.path.dirname(cur)
		if parent == cur:
			return None, None
		cur = parent


class BuildContext(BaseModel):
	"""Where and how Go packages are looked up."""

	goroot: Optional[str] = None
	gopath: List[str] = []
	goos: str = "linux"
	goarch: str = "amd64"
	cgo_enabled: bool = False
	build_tags: List[str] = []
	module_root: Optional[str] = None
	module_path: Optional[str] = None
	tie_break: TieBreak = TieBreak.PREFER_NON_MAIN
	index_dir: Optional[str] = None

	@classmethod
	def from_env(cls, cwd: Optional[str] = None, **overrides) -> "BuildContext":
		env = os.environ
		goroot = env.get("GOROOT") or _go_env("GOROOT")
		gopath_value = env.get("GOPATH") or os.path.join(os.path.expanduser("~"), "go")
		gopath = [p for p in gopath_value.split(os.pathsep) if p]
		module_root, module_path = find_main_module(cwd or os.getcwd())
		values = dict(
			goroot=goroot,
			gopath=gopath,
			goos=env.get("GOOS") or _host_goos(),
			goarch=env.get("GOARCH") or _host_goarch(),
			cgo_enabled=env.get("CGO_ENABLED", "0") == "1",
			module_root=module_root,
			module_path=module_path,
		)
		values.update({k: v for k, v in overrides.items() if v is not None})
		return cls(**values)
