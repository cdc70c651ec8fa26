from __future__ import annotations

from typing import Optional, Tuple

from .extract import TypeEntry
from .typesys import Method, MethodSet, identical


def missing_method(candidate: MethodSet, required: MethodSet) -> Optional[Method]:
	"""Return the first required method the candidate lacks, or None."""
	for key, want in required.items():
		have = candidate.get(key)
		if have is None or not identical(have.signature, want.signature):
			return want
	return None


def satisfies(candidate: MethodSet, required: MethodSet) -> bool:
	return missing_method(candidate, required) is None


def is_reportable(iface: TypeEntry) -> bool:
	# Every type satisfies an empty interface; constraint interfaces are not
	# decidable from method sets.
	return iface.is_interface and bool(iface.methods) and not iface.constraint


def same_declaration(subject: TypeEntry, iface: TypeEntry) -> bool:
	return subject.package is iface.package and subject.name == iface.name


def implements(subject: TypeEntry, iface: TypeEntry) -> Tuple[bool, bool]:
	"""Check the value and the pointer variant of subject against iface.

	Interfaces have no pointer variant, so the second flag is always False
	for them.
	"""
	if not is_reportable(iface) or same_declaration(subject, iface):
		return False, False
	value_ok = satisfies(subject.methods, iface.methods)
	pointer_ok = False
	if subject.pointer_methods is not None:
		pointer_ok = satisfies(subject.pointer_methods, iface.methods)
	return value_ok, pointer_ok
