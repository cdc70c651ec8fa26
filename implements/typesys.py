"""Semantic Go types.

Named types are compared by object identity; every other type is compared
structurally, following the Go type identity rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
	from .resolver import PackageDescriptor


class Type:
	def __str__(self) -> str:
		return type_string(self)


class Basic(Type):
	def __init__(self, name: str):
		self.name = name


class TypeParam(Type):
	def __init__(self, name: str):
		self.name = name


@dataclass(eq=False)
class Pointer(Type):
	elem: Type


@dataclass(eq=False)
class Slice(Type):
	elem: Type


@dataclass(eq=False)
class Array(Type):
	"""``length`` is None when the length expression could not be evaluated."""

	length: Optional[int]
	elem: Type
	text: str = ""


@dataclass(eq=False)
class Map(Type):
	key: Type
	elem: Type


@dataclass(eq=False)
class Chan(Type):
	dir: str
	elem: Type


@dataclass(eq=False)
class Signature(Type):
	params: Tuple[Type, ...] = ()
	results: Tuple[Type, ...] = ()
	variadic: bool = False


@dataclass(eq=False)
class Field:
	name: str
	type: Type
	embedded: bool = False
	tag: str = ""
	pkg: Optional[str] = None

	@property
	def key(self) -> Tuple[Optional[str], str]:
		return method_key(self.pkg, self.name)


@dataclass(eq=False)
class Struct(Type):
	fields: Tuple[Field, ...] = ()


@dataclass(eq=False)
class Method:
	"""A method or interface method: a name plus its signature.

	``pkg`` is the declaring package path; it only matters for unexported
	names, which are distinct across packages.
	"""

	name: str
	signature: Signature
	pkg: Optional[str] = None
	pointer_receiver: bool = False

	@property
	def key(self) -> Tuple[Optional[str], str]:
		return method_key(self.pkg, self.name)


@dataclass(eq=False)
class Union(Type):
	terms: Tuple[Type, ...]


@dataclass(eq=False)
class Tilde(Type):
	elem: Type


@dataclass(eq=False)
class Interface(Type):
	methods: Tuple[Method, ...] = ()
	embeds: Tuple[Type, ...] = ()
	_method_set: Optional["MethodSet"] = field(default=None, repr=False)
	_constraint: Optional[bool] = field(default=None, repr=False)


@dataclass(eq=False)
class Instance(Type):
	"""A generic named type applied to type arguments; never substituted."""

	origin: "Named"
	args: Tuple[Type, ...]


class Named(Type):
	"""A declared type name; the unit of type identity."""

	def __init__(self, package: Optional["PackageDescriptor"], name: str):
		self.package = package
		self.name = name
		self.type_params: Tuple[TypeParam, ...] = ()
		self.rhs: Optional[Type] = None
		self.underlying: Optional[Type] = None
		self.methods: Dict[str, Method] = {}

	@property
	def path(self) -> Optional[str]:
		return self.package.path if self.package is not None else None

	@property
	def qualified_name(self) -> str:
		if self.package is None:
			return self.name
		return f"{self.package.path}.{self.name}"

	def __repr__(self) -> str:
		return f"Named({self.qualified_name})"


class Alias:
	"""``type A = B``: another name for an existing type."""

	def __init__(self, package: Optional["PackageDescriptor"], name: str):
		self.package = package
		self.name = name
		self.target: Optional[Type] = None


class Value:
	"""A const, var or func binding. Values are never types.

	Integer constants carry their value once evaluated; it stays None for
	anything else.
	"""

	def __init__(self, package: Optional["PackageDescriptor"], name: str, kind: str):
		self.package = package
		self.name = name
		self.kind = kind
		self.const_value: Optional[int] = None
		self.evaluated = False


MethodSet = Dict[Tuple[Optional[str], str], Method]


def method_key(pkg: Optional[str], name: str) -> Tuple[Optional[str], str]:
	if is_exported(name):
		return (None, name)
	return (pkg, name)


def is_exported(name: str) -> bool:
	return bool(name) and name[0].isupper()


# Universe scope

BASIC_NAMES = (
	"bool", "string", "int", "int8", "int16", "int32", "int64",
	"uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
	"float32", "float64", "complex64", "complex128",
)

UNIVERSE: Dict[str, Type] = {name: Basic(name) for name in BASIC_NAMES}
UNIVERSE["byte"] = UNIVERSE["uint8"]
UNIVERSE["rune"] = UNIVERSE["int32"]
UNIVERSE["any"] = Interface()

_error = Named(None, "error")
_error.underlying = _error.rhs = Interface(methods=(Method("Error", Signature(results=(UNIVERSE["string"],))),))
UNIVERSE["error"] = _error

_comparable = Named(None, "comparable")
_comparable.underlying = _comparable.rhs = Interface(embeds=(Tilde(Basic("comparable")),))
UNIVERSE["comparable"] = _comparable

UNSAFE_POINTER = Basic("unsafe.Pointer")


# Identity

def identical(a: Type, b: Type) -> bool:
	if a is b:
		return True
	if isinstance(a, Named) or isinstance(b, Named) or isinstance(a, TypeParam):
		return False
	if type(a) is not type(b):
		return False
	if isinstance(a, Basic):
		return a.name == b.name
	if isinstance(a, (Pointer, Slice)):
		return identical(a.elem, b.elem)
	if isinstance(a, Array):
		if a.length is None or b.length is None:
			same = a.length is None and b.length is None and a.text == b.text
		else:
			same = a.length == b.length
		return same and identical(a.elem, b.elem)
	if isinstance(a, Map):
		return identical(a.key, b.key) and identical(a.elem, b.elem)
	if isinstance(a, Chan):
		return a.dir == b.dir and identical(a.elem, b.elem)
	if isinstance(a, Signature):
		return a.variadic == b.variadic and _identical_list(a.params, b.params) and _identical_list(a.results, b.results)
	if isinstance(a, Struct):
		if len(a.fields) != len(b.fields):
			return False
		for fa, fb in zip(a.fields, b.fields):
			if fa.key != fb.key or fa.embedded != fb.embedded or fa.tag != fb.tag:
				return False
			if not identical(fa.type, fb.type):
				return False
		return True
	if isinstance(a, Instance):
		return a.origin is b.origin and _identical_list(a.args, b.args)
	if isinstance(a, Interface):
		ma, mb = interface_method_set(a), interface_method_set(b)
		if ma.keys() != mb.keys() or is_constraint(a) or is_constraint(b):
			return False
		return all(identical(ma[k].signature, mb[k].signature) for k in ma)
	if isinstance(a, Tilde):
		return identical(a.elem, b.elem)
	if isinstance(a, Union):
		return _identical_list(a.terms, b.terms)
	return False


def _identical_list(xs: Tuple[Type, ...], ys: Tuple[Type, ...]) -> bool:
	return len(xs) == len(ys) and all(identical(x, y) for x, y in zip(xs, ys))


def underlying(t: Type) -> Type:
	if isinstance(t, Named):
		return t.underlying if t.underlying is not None else t
	if isinstance(t, Instance):
		return underlying(t.origin)
	return t


# Method sets

def interface_method_set(iface: Interface, _seen: Optional[set] = None) -> MethodSet:
	"""Explicit methods plus those of embedded interfaces."""
	if iface._method_set is not None:
		return iface._method_set
	seen = _seen if _seen is not None else set()
	seen.add(id(iface))
	methods: MethodSet = {}
	constraint = False
	for m in iface.methods:
		methods[m.key] = m
	for embed in iface.embeds:
		u = underlying(embed)
		if isinstance(u, Interface):
			if id(u) in seen:
				continue
			for key, m in interface_method_set(u, seen).items():
				methods.setdefault(key, m)
			constraint = constraint or is_constraint(u)
		else:
			constraint = True
	iface._method_set = methods
	iface._constraint = constraint
	return methods


def is_constraint(iface: Interface) -> bool:
	"""True if the interface restricts its type set beyond methods."""
	if iface._constraint is None:
		interface_method_set(iface)
	return bool(iface._constraint)


def method_set(t: Type, pointer: bool = False) -> MethodSet:
	"""Method set of t, or of *t when pointer is set.

	Promoted methods of embedded struct fields are folded in by depth. A name
	found more than once at the shallowest depth is ambiguous and dropped,
	whatever the receiver kinds, so the set of *t always contains the set of t.
	"""
	u = underlying(t)
	if isinstance(u, Interface):
		return dict(interface_method_set(u)) if not pointer else {}

	result: MethodSet = {}
	base = t.origin if isinstance(t, Instance) else t
	blocked = set(_field_keys(u))
	if isinstance(base, Named):
		for m in base.methods.values():
			blocked.add(m.key)
			if pointer or not m.pointer_receiver:
				result[m.key] = m

	level: List[Tuple[Type, bool]] = _embedded(u, pointer)
	visited = set()
	while level:
		# key -> [(method, reachable)]; a field is recorded as (None, False)
		found: Dict[Tuple[Optional[str], str], List[Tuple[Optional[Method], bool]]] = {}
		next_level: List[Tuple[Type, bool]] = []
		seen_here = set()
		for embedded, via_pointer in level:
			origin = embedded.origin if isinstance(embedded, Instance) else embedded
			if id(origin) in visited:
				continue
			seen_here.add(id(origin))
			eu = underlying(embedded)
			if isinstance(eu, Interface):
				for key, m in interface_method_set(eu).items():
					found.setdefault(key, []).append((m, True))
				continue
			if isinstance(origin, Named):
				for m in origin.methods.values():
					found.setdefault(m.key, []).append((m, via_pointer or not m.pointer_receiver))
			for key in _field_keys(eu):
				found.setdefault(key, []).append((None, False))
			next_level.extend(_embedded(eu, via_pointer))
		for key, candidates in found.items():
			if key in blocked or len(candidates) != 1:
				continue
			m, reachable = candidates[0]
			if m is not None and reachable:
				result[key] = m
		blocked.update(found)
		visited.update(seen_here)
		level = next_level
	return result


def _embedded(u: Type, pointer: bool) -> List[Tuple[Type, bool]]:
	if not isinstance(u, Struct):
		return []
	out: List[Tuple[Type, bool]] = []
	for f in u.fields:
		if not f.embedded:
			continue
		if isinstance(f.type, Pointer):
			out.append((f.type.elem, True))
		else:
			out.append((f.type, pointer))
	return out


def _field_keys(u: Type) -> List[Tuple[Optional[str], str]]:
	if not isinstance(u, Struct):
		return []
	return [f.key for f in u.fields if f.name]


# Formatting

def type_string(t: Type) -> str:
	if isinstance(t, Named):
		return t.qualified_name
	if isinstance(t, (Basic, TypeParam)):
		return t.name
	if isinstance(t, Pointer):
		return "*" + type_string(t.elem)
	if isinstance(t, Slice):
		return "[]" + type_string(t.elem)
	if isinstance(t, Array):
		length = t.length if t.length is not None else t.text
		return f"[{length}]{type_string(t.elem)}"
	if isinstance(t, Map):
		return f"map[{type_string(t.key)}]{type_string(t.elem)}"
	if isinstance(t, Chan):
		prefix = {"send": "chan<- ", "recv": "<-chan "}.get(t.dir, "chan ")
		return prefix + type_string(t.elem)
	if isinstance(t, Signature):
		return "func" + signature_string(t)
	if isinstance(t, Struct):
		return "struct{" + "; ".join(
			type_string(f.type) if f.embedded else f"{f.name} {type_string(f.type)}" for f in t.fields
		) + "}"
	if isinstance(t, Interface):
		return "interface{" + "; ".join(
			m.name + signature_string(m.signature) for m in interface_method_set(t).values()
		) + "}"
	if isinstance(t, Instance):
		return f"{type_string(t.origin)}[{', '.join(type_string(a) for a in t.args)}]"
	if isinstance(t, Tilde):
		return "~" + type_string(t.elem)
	if isinstance(t, Union):
		return " | ".join(type_string(x) for x in t.terms)
	return repr(t)


def signature_string(sig: Signature) -> str:
	params = [type_string(p) for p in sig.params]
	if sig.variadic and params:
		params[-1] = "..." + params[-1][2:]
	out = f"({', '.join(params)})"
	if len(sig.results) == 1:
		out += " " + type_string(sig.results[0])
	elif sig.results:
		out += f" ({', '.join(type_string(r) for r in sig.results)})"
	return out
