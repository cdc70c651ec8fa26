from __future__ import annotations

from typing import List, Optional

from .extract import TypeEntry
from .matcher import implements, is_reportable
from .model import Direction, ImplementedByGroup, ImplementsGroup, Report


def list_implemented_interfaces(universe: List[TypeEntry], subjects: List[TypeEntry]) -> List[ImplementsGroup]:
	interfaces = [e for e in universe if is_reportable(e)]
	groups: List[ImplementsGroup] = []
	for subject in subjects:
		value: List[str] = []
		pointer: List[str] = []
		for iface in interfaces:
			value_ok, pointer_ok = implements(subject, iface)
			if value_ok:
				value.append(iface.qualified_name)
			if pointer_ok:
				pointer.append(iface.qualified_name)
		if value:
			groups.append(ImplementsGroup(subject=subject.qualified_name, interfaces=value))
		if pointer:
			groups.append(ImplementsGroup(subject=subject.qualified_name, pointer=True, interfaces=pointer))
	return groups


def list_implementers(universe: List[TypeEntry], subjects: List[TypeEntry]) -> List[ImplementedByGroup]:
	groups: List[ImplementedByGroup] = []
	for iface in universe:
		if not is_reportable(iface):
			continue
		implementers: List[str] = []
		for subject in subjects:
			value_ok, pointer_ok = implements(subject, iface)
			if value_ok:
				implementers.append(subject.qualified_name)
			if pointer_ok:
				implementers.append("*" + subject.qualified_name)
		if implementers:
			groups.append(ImplementedByGroup(interface=iface.qualified_name, implementers=implementers))
	return groups


def build_report(
	universe: List[TypeEntry],
	subjects: List[TypeEntry],
	reverse: bool = False,
	errors: Optional[List[str]] = None,
) -> Report:
	if reverse:
		return Report(
			direction=Direction.IMPLEMENTED_BY,
			implemented_by=list_implementers(universe, subjects),
			errors=list(errors or []),
		)
	return Report(
		direction=Direction.IMPLEMENTS,
		implements=list_implemented_interfaces(universe, subjects),
		errors=list(errors or []),
	)


def format_report(report: Report) -> str:
	lines: List[str] = []
	if report.direction is Direction.IMPLEMENTED_BY:
		for group in report.implemented_by:
			lines.append(f"{group.interface} is implemented by...")
			lines.extend(f"\t{name}" for name in group.implementers)
	else:
		for group in report.implements:
			star = "*" if group.pointer else ""
			lines.append(f"{star}{group.subject} implements...")
			lines.extend(f"\t{name}" for name in group.interfaces)
	return "\n".join(lines) + ("\n" if lines else "")
