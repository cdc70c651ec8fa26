from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from .config import BuildContext
from .errors import ResolutionError, UsageError
from .extract import TypeEntry
from .model import Report
from .patterns import expand_patterns
from .report import build_report
from .resolver import Resolver


logger = logging.getLogger(__name__)


def format_error(err: ResolutionError) -> str:
	return f"Couldn't import {err.path}: {err.reason}"


def collect_types(resolver: Resolver, paths: Iterable[str]) -> Tuple[List[TypeEntry], List[ResolutionError]]:
	"""Resolve each path and extract its named types; failures are collected."""
	entries: List[TypeEntry] = []
	errors: List[ResolutionError] = []
	seen = set()
	for path in paths:
		try:
			pkg = resolver.resolve(path)
		except ResolutionError as e:
			logger.debug("resolution of %s failed: %s", path, e.reason)
			errors.append(e)
			continue
		if pkg.path in seen:
			continue
		seen.add(pkg.path)
		entries.extend(resolver.types(pkg.path))
	return entries, errors


def analyze(
	context: BuildContext,
	types: str,
	interfaces: str = "std",
	reverse: bool = False,
	resolver: Optional[Resolver] = None,
) -> Report:
	if not types or not types.strip():
		raise UsageError("-types is required")
	resolver = resolver or Resolver(context)
	universe, universe_errors = collect_types(resolver, expand_patterns(context, interfaces))
	subjects, subject_errors = collect_types(resolver, expand_patterns(context, types))
	logger.debug("%d types in universe, %d subjects", len(universe), len(subjects))
	errors = [format_error(e) for e in universe_errors + subject_errors]
	return build_report(universe, subjects, reverse=reverse, errors=errors)
