from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from .checker import Checker
from .config import BuildContext
from .errors import PackageNotFound, ResolutionError, TypeResolutionError
from .extract import TypeEntry, extract
from .go_parse import parse_package
from .index import IndexStore
from .locate import locate_package
from .typesys import UNSAFE_POINTER, Alias, Named, Value


logger = logging.getLogger(__name__)


class PackageDescriptor:
	"""A fully resolved package.

	There is exactly one descriptor per import path and resolver; named types
	found in its scope are compared by identity everywhere downstream.
	"""

	def __init__(self, path: str, name: str, complete: bool = False):
		self.path = path
		self.name = name
		self.complete = complete
		self.scope: Dict[str, Union[Named, Alias, Value]] = {}

	def __repr__(self) -> str:
		return f"PackageDescriptor({self.path!r}, complete={self.complete})"


def _unsafe_package() -> PackageDescriptor:
	pkg = PackageDescriptor("unsafe", "unsafe", complete=True)
	alias = Alias(pkg, "Pointer")
	alias.target = UNSAFE_POINTER
	pkg.scope["Pointer"] = alias
	for fn in ("Sizeof", "Offsetof", "Alignof", "Add", "Slice", "SliceData", "String", "StringData"):
		pkg.scope[fn] = Value(pkg, fn, "func")
	return pkg


class Resolver:
	"""Resolve import paths to package descriptors through one shared cache.

	The resolver hands itself to the checker as the importer, so every
	transitive import is served by the same cache. Each path is attempted at
	most once per resolver; a failure is remembered and raised again.
	"""

	def __init__(self, context: BuildContext, index: Optional[IndexStore] = None):
		self.context = context
		if index is None and context.index_dir:
			index = IndexStore(context.index_dir)
		self.index = index
		self._packages: Dict[str, PackageDescriptor] = {"unsafe": _unsafe_package()}
		self._failures: Dict[str, ResolutionError] = {}
		self._types: Dict[str, List[TypeEntry]] = {}

	def resolve(self, path: str) -> PackageDescriptor:
		pkg = self._packages.get(path)
		if pkg is not None:
			if not pkg.complete:
				raise TypeResolutionError(path, "import cycle not allowed")
			logger.debug("cache hit for %s", path)
			return pkg
		failure = self._failures.get(path)
		if failure is not None:
			raise failure
		try:
			pkg = self._load(path)
		except ResolutionError as e:
			self._failures[path] = e
			raise
		except OSError as e:
			err = PackageNotFound(path, str(e))
			self._failures[path] = err
			raise err from e
		# Another spelling of a canonical path shares its descriptor.
		self._packages[path] = pkg
		return pkg

	def types(self, path: str) -> List[TypeEntry]:
		"""Resolve path and return its named types, classified once per resolver."""
		pkg = self.resolve(path)
		entries = self._types.get(pkg.path)
		if entries is None:
			entries = self._types[pkg.path] = extract(pkg)
		return entries

	def _load(self, path: str) -> PackageDescriptor:
		location = locate_package(self.context, path)
		if location.path != path:
			logger.debug("%s resolves to %s", path, location.path)
			return self.resolve(location.path)

		source = self.index.load(location) if self.index is not None else None
		if source is not None:
			logger.debug("using index entry for %s", path)
		else:
			source = parse_package(location, self.context.tie_break)
			if self.index is not None:
				try:
					self.index.store(source)
				except OSError as e:
					logger.warning("could not write index entry for %s: %s", path, e)

		pkg = PackageDescriptor(path, source.name)
		self._packages[path] = pkg
		try:
			Checker(source, pkg, self).check()
		except Exception:
			del self._packages[path]
			raise
		pkg.complete = True
		logger.debug("resolved %s (%d declarations)", path, len(pkg.scope))
		return pkg
