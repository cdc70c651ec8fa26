from __future__ import annotations

import logging
import os
from typing import Dict, List, Tuple

from pydantic import BaseModel

from .config import BuildContext
from .constraints import ConstraintSyntaxError, filename_matches, make_matcher, source_matches
from .errors import PackageNotFound


logger = logging.getLogger(__name__)


class PackageLocation(BaseModel):
	path: str
	dir: str
	goroot: bool = False
	files: List[str] = []


def is_go_source(filename: str) -> bool:
	return (
		filename.endswith(".go")
		and not filename.endswith("_test.go")
		and not filename.startswith(("_", "."))
	)


def candidate_dirs(context: BuildContext, path: str) -> List[Tuple[str, bool, str]]:
	"""Directories that may hold the package, in lookup order.

	Each entry also carries the package's canonical import path: packages
	vendored into GOROOT are known as ``vendor/<path>``.
	"""
	dirs: List[Tuple[str, bool, str]] = []
	rel = path.replace("/", os.sep)
	if context.goroot:
		dirs.append((os.path.join(context.goroot, "src", rel), True, path))
		if not path.startswith("vendor/"):
			dirs.append((os.path.join(context.goroot, "src", "vendor", rel), True, "vendor/" + path))
	if context.module_root and context.module_path:
		mod = context.module_path
		if path == mod:
			dirs.append((context.module_root, False, path))
		elif path.startswith(mod + "/"):
			dirs.append((os.path.join(context.module_root, path[len(mod) + 1:].replace("/", os.sep)), False, path))
		else:
			dirs.append((os.path.join(context.module_root, "vendor", rel), False, path))
	for root in context.gopath:
		dirs.append((os.path.join(root, "src", rel), False, path))
	return dirs


def select_files(context: BuildContext, directory: str) -> List[str]:
	"""Buildable Go files of a directory, sorted by name."""
	match = make_matcher(context)
	selected: List[str] = []
	for name in sorted(os.listdir(directory)):
		full = os.path.join(directory, name)
		if not is_go_source(name) or not os.path.isfile(full):
			continue
		if not filename_matches(name, match):
			continue
		with open(full, "r", encoding="utf-8", errors="replace") as fh:
			text = fh.read()
		try:
			if not source_matches(text, match):
				continue
		except ConstraintSyntaxError as e:
			logger.warning("ignoring %s: bad build constraint: %s", full, e)
			continue
		selected.append(name)
	return selected


def locate_package(context: BuildContext, path: str) -> PackageLocation:
	if not path or path.startswith("/") or path.startswith("."):
		raise PackageNotFound(path, "invalid import path")
	searched: List[str] = []
	for directory, goroot, canonical in candidate_dirs(context, path):
		searched.append(directory)
		if not os.path.isdir(directory):
			continue
		files = select_files(context, directory)
		if not files:
			raise PackageNotFound(path, f"no buildable Go source files in {directory}")
		return PackageLocation(path=canonical, dir=directory, goroot=goroot, files=files)
	where = ", ".join(searched) if searched else "no GOROOT, module or GOPATH configured"
	raise PackageNotFound(path, f"cannot find package {path!r} in any of: {where}")


def fingerprint(location: PackageLocation) -> Dict[str, List[int]]:
	"""Size and modification time of each selected file."""
	prints: Dict[str, List[int]] = {}
	for name in location.files:
		st = os.stat(os.path.join(location.dir, name))
		prints[name] = [st.st_size, st.st_mtime_ns]
	return prints
