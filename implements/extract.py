from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from .typesys import Interface, MethodSet, Named, interface_method_set, is_constraint, method_set, underlying

if TYPE_CHECKING:
	from .resolver import PackageDescriptor


class Kind(str, Enum):
	INTERFACE = "interface"
	CONCRETE = "concrete"


@dataclass(frozen=True)
class TypeEntry:
	"""A named type classified once, with the method sets matching needs.

	For interfaces ``methods`` is the required set. For concrete types it is
	the value method set and ``pointer_methods`` is the method set of ``*T``.
	"""

	named: Named
	kind: Kind
	methods: MethodSet = field(compare=False)
	pointer_methods: Optional[MethodSet] = field(default=None, compare=False)
	constraint: bool = field(default=False, compare=False)

	@property
	def package(self) -> "PackageDescriptor":
		return self.named.package

	@property
	def name(self) -> str:
		return self.named.name

	@property
	def qualified_name(self) -> str:
		return self.named.qualified_name

	@property
	def is_interface(self) -> bool:
		return self.kind is Kind.INTERFACE


def classify(named: Named) -> TypeEntry:
	u = underlying(named)
	if isinstance(u, Interface):
		return TypeEntry(
			named=named,
			kind=Kind.INTERFACE,
			methods=dict(interface_method_set(u)),
			constraint=is_constraint(u),
		)
	return TypeEntry(
		named=named,
		kind=Kind.CONCRETE,
		methods=method_set(named),
		pointer_methods=method_set(named, pointer=True),
	)


def extract(pkg: "PackageDescriptor") -> List[TypeEntry]:
	"""Named types of a package in scope order; values and aliases are skipped.

	Every call classifies afresh; ``Resolver.types`` keeps one list per package.
	"""
	return [classify(obj) for obj in pkg.scope.values() if isinstance(obj, Named)]
