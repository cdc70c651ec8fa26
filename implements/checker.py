"""Declaration-level type resolution of one parsed package.

Function bodies are never looked at: only type declarations and method
signatures are resolved, which is all that interface satisfaction needs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Tuple, Union as TUnion

from .errors import ResolutionError, TypeResolutionError
from .model import ConstExpr, PackageSource, Param, SourceFile, TypeDecl, TypeExpr, ValueDecl
from .typesys import (
	UNIVERSE,
	Alias,
	Array,
	Basic,
	Chan,
	Field,
	Instance,
	Interface,
	Map,
	Method,
	Named,
	Pointer,
	Signature,
	Slice,
	Struct,
	Tilde,
	Type,
	TypeParam,
	Union,
	Value,
)

if TYPE_CHECKING:
	from .resolver import PackageDescriptor


CGO_PSEUDO_PACKAGE = "C"
TypeParams = Dict[str, TypeParam]


class Importer(Protocol):
	def resolve(self, path: str) -> "PackageDescriptor":
		...


class _FileScope:
	def __init__(self) -> None:
		self.imports: Dict[str, Optional["PackageDescriptor"]] = {}
		self.dot_imports: List["PackageDescriptor"] = []


class Checker:
	"""Fill a descriptor's scope from parsed declarations.

	Imports go back through the importer, which is the resolver that owns the
	package cache, so every transitive import yields the cached descriptor.
	"""

	def __init__(self, source: PackageSource, descriptor: "PackageDescriptor", importer: Importer):
		self.source = source
		self.descriptor = descriptor
		self.importer = importer
		self._files: Dict[str, _FileScope] = {}
		self._decls: Dict[str, Tuple[TypeDecl, str]] = {}
		self._resolving_aliases: List[Alias] = []
		self._consts: Dict[str, Tuple[ValueDecl, str]] = {}
		self._evaluating: List[str] = []

	@property
	def path(self) -> str:
		return self.descriptor.path

	def error(self, reason: str) -> TypeResolutionError:
		return TypeResolutionError(self.path, reason)

	def check(self) -> None:
		for source_file in self.source.files:
			self._import(source_file)
		for source_file in self.source.files:
			self._declare(source_file)
		self._resolve_types()
		for source_file in self.source.files:
			self._resolve_methods(source_file)
		# Importers read constant values without going through this checker.
		for name in self._consts:
			self._const_value(self.descriptor.scope[name])

	def _import(self, source_file: SourceFile) -> None:
		scope = _FileScope()
		for spec in source_file.imports:
			if spec.path == CGO_PSEUDO_PACKAGE:
				scope.imports[spec.alias or CGO_PSEUDO_PACKAGE] = None
				continue
			try:
				pkg = self.importer.resolve(spec.path)
			except ResolutionError as e:
				raise self.error(f"could not import {spec.path} ({e.reason})") from e
			if spec.alias == "_":
				continue
			if spec.alias == ".":
				scope.dot_imports.append(pkg)
			else:
				scope.imports[spec.alias or pkg.name] = pkg
		self._files[source_file.name] = scope

	def _declare(self, source_file: SourceFile) -> None:
		scope = self.descriptor.scope
		for decl in source_file.types:
			if decl.name in scope:
				raise self.error(f"{decl.name} redeclared in this block")
			obj = Alias(self.descriptor, decl.name) if decl.alias else Named(self.descriptor, decl.name)
			scope[decl.name] = obj
			self._decls[decl.name] = (decl, source_file.name)
		for value in source_file.values:
			if value.name == "init" and value.kind == "func":
				continue
			if value.name in scope:
				continue
			scope[value.name] = Value(self.descriptor, value.name, value.kind)
			if value.kind == "const":
				self._consts[value.name] = (value, source_file.name)

	def _resolve_types(self) -> None:
		scope = self.descriptor.scope
		for name, (decl, filename) in self._decls.items():
			obj = scope[name]
			if isinstance(obj, Alias):
				self._alias_target(obj)
				continue
			obj.type_params = tuple(TypeParam(p) for p in decl.type_params)
			tparams = {p.name: p for p in obj.type_params}
			obj.rhs = self._type(decl.type, filename, tparams)
		for name in self._decls:
			obj = scope[name]
			if isinstance(obj, Named):
				obj.underlying = self._underlying_of(obj)

	def _alias_target(self, alias: Alias) -> Type:
		if alias.target is not None:
			return alias.target
		if any(a is alias for a in self._resolving_aliases):
			raise self.error(f"invalid recursive type alias {alias.name}")
		decl, filename = self._decls[alias.name]
		self._resolving_aliases.append(alias)
		try:
			alias.target = self._type(decl.type, filename, {p: TypeParam(p) for p in decl.type_params})
		finally:
			self._resolving_aliases.pop()
		return alias.target

	def _underlying_of(self, named: Named) -> Type:
		seen: List[Named] = []
		t: Optional[Type] = named
		while True:
			if isinstance(t, Instance):
				t = t.origin
			if not isinstance(t, Named):
				return t
			if t.underlying is not None:
				return t.underlying
			if any(s is t for s in seen):
				raise self.error(f"invalid recursive type {named.name}")
			seen.append(t)
			t = t.rhs

	def _resolve_methods(self, source_file: SourceFile) -> None:
		for decl in source_file.methods:
			obj = self.descriptor.scope.get(decl.receiver)
			if isinstance(obj, Alias):
				obj = self._alias_target(obj)
			if not isinstance(obj, Named) or obj.package is not self.descriptor:
				raise self.error(f"undefined receiver type {decl.receiver} for method {decl.name}")
			if decl.name in obj.methods:
				raise self.error(f"method {decl.receiver}.{decl.name} already declared")
			tparams: TypeParams = {}
			for i, pname in enumerate(decl.receiver_params):
				if i < len(obj.type_params):
					tparams[pname] = obj.type_params[i]
				else:
					tparams[pname] = TypeParam(pname)
			sig = self._signature(decl.params, decl.results, decl.variadic, source_file.name, tparams)
			obj.methods[decl.name] = Method(decl.name, sig, pkg=self.path, pointer_receiver=decl.pointer)

	def _lookup(self, name: str, filename: str, tparams: TypeParams) -> Type:
		if name in tparams:
			return tparams[name]
		for pkg in self._files[filename].dot_imports:
			obj = pkg.scope.get(name)
			if obj is not None:
				return self._as_type(obj, name)
		obj = self.descriptor.scope.get(name)
		if obj is not None:
			return self._as_type(obj, name)
		if name in UNIVERSE:
			return UNIVERSE[name]
		raise self.error(f"undeclared name: {name}")

	def _lookup_qualified(self, package: str, name: str, filename: str) -> Type:
		imports = self._files[filename].imports
		if package not in imports:
			raise self.error(f"undeclared name: {package}")
		pkg = imports[package]
		if pkg is None:
			return Basic(f"{CGO_PSEUDO_PACKAGE}.{name}")
		obj = pkg.scope.get(name)
		if obj is None:
			raise self.error(f"undeclared name: {package}.{name}")
		return self._as_type(obj, f"{package}.{name}")

	def _as_type(self, obj: TUnion[Named, Alias, Value], name: str) -> Type:
		if isinstance(obj, Named):
			return obj
		if isinstance(obj, Alias):
			if obj.package is self.descriptor:
				return self._alias_target(obj)
			return obj.target
		raise self.error(f"{name} is not a type")

	def _const_value(self, obj: Value) -> Optional[int]:
		if obj.evaluated:
			return obj.const_value
		decl, filename = self._consts[obj.name]
		if obj.name in self._evaluating:
			raise self.error(f"initialization cycle: {obj.name} refers to itself")
		self._evaluating.append(obj.name)
		try:
			obj.const_value = self._eval(decl.value, filename, decl.iota) if decl.value is not None else None
		finally:
			self._evaluating.pop()
		obj.evaluated = True
		return obj.const_value

	def _const_named(self, name: str, filename: str, iota: Optional[int]) -> Optional[int]:
		for pkg in self._files[filename].dot_imports:
			obj = pkg.scope.get(name)
			if obj is not None:
				return obj.const_value if isinstance(obj, Value) else None
		obj = self.descriptor.scope.get(name)
		if obj is None:
			return iota if name == "iota" else None
		if isinstance(obj, Value) and obj.kind == "const" and obj.package is self.descriptor:
			return self._const_value(obj)
		return None

	def _eval(self, expr: ConstExpr, filename: str, iota: Optional[int] = None) -> Optional[int]:
		"""Integer value of a constant expression, or None when it is not one."""
		kind = expr.kind
		if kind == "int":
			return expr.value
		if kind == "name":
			return self._const_named(expr.name, filename, iota)
		if kind == "qualified":
			pkg = self._files[filename].imports.get(expr.package)
			if pkg is None:
				return None
			obj = pkg.scope.get(expr.name)
			return obj.const_value if isinstance(obj, Value) else None
		if kind == "unary":
			operand = self._eval(expr.left, filename, iota)
			if operand is None:
				return None
			return {"+": operand, "-": -operand, "^": ~operand}.get(expr.op)
		if kind == "binary":
			left = self._eval(expr.left, filename, iota)
			right = self._eval(expr.right, filename, iota)
			if left is None or right is None:
				return None
			return _binary(expr.op, left, right)
		return None

	def _signature(
		self,
		params: List[Param],
		results: List[Param],
		variadic: bool,
		filename: str,
		tparams: TypeParams,
	) -> Signature:
		ptypes = [self._type(p.type, filename, tparams) for p in params]
		if variadic and ptypes:
			ptypes[-1] = Slice(ptypes[-1])
		return Signature(
			params=tuple(ptypes),
			results=tuple(self._type(r.type, filename, tparams) for r in results),
			variadic=variadic,
		)

	def _type(self, expr: TypeExpr, filename: str, tparams: TypeParams) -> Type:
		kind = expr.kind
		if kind == "name":
			return self._lookup(expr.name, filename, tparams)
		if kind == "qualified":
			return self._lookup_qualified(expr.package, expr.name, filename)
		if kind == "generic":
			origin = self._type(expr.elem, filename, tparams)
			args = tuple(self._type(a, filename, tparams) for a in expr.args)
			if isinstance(origin, Named):
				return Instance(origin, args)
			return origin
		if kind == "pointer":
			return Pointer(self._type(expr.elem, filename, tparams))
		if kind == "slice":
			return Slice(self._type(expr.elem, filename, tparams))
		if kind == "array":
			length = expr.length
			return Array(
				self._eval(length, filename) if length is not None else None,
				self._type(expr.elem, filename, tparams),
				text=length.text if length is not None else "",
			)
		if kind == "map":
			return Map(self._type(expr.key, filename, tparams), self._type(expr.elem, filename, tparams))
		if kind == "chan":
			return Chan(expr.dir or "both", self._type(expr.elem, filename, tparams))
		if kind == "func":
			return self._signature(expr.params, expr.results, expr.variadic, filename, tparams)
		if kind == "struct":
			return Struct(tuple(
				Field(
					name=f.name if f.name is not None else _embedded_name(f.type),
					type=self._type(f.type, filename, tparams),
					embedded=f.embedded,
					tag=f.tag,
					pkg=self.path,
				)
				for f in expr.fields
			))
		if kind == "interface":
			methods = tuple(
				Method(m.name, self._signature(m.params, m.results, m.variadic, filename, tparams), pkg=self.path)
				for m in expr.methods
			)
			embeds = tuple(self._type(e, filename, tparams) for e in expr.embeds)
			return Interface(methods=methods, embeds=embeds)
		if kind == "union":
			return Union(tuple(self._type(a, filename, tparams) for a in expr.args))
		if kind == "tilde":
			return Tilde(self._type(expr.elem, filename, tparams))
		raise self.error(f"unsupported type expression {kind}")


def _binary(op: str, a: int, b: int) -> Optional[int]:
	if op == "+":
		return a + b
	if op == "-":
		return a - b
	if op == "*":
		return a * b
	if op in ("/", "%"):
		if b == 0:
			return None
		# Go truncates toward zero.
		q = abs(a) // abs(b)
		if (a < 0) != (b < 0):
			q = -q
		return q if op == "/" else a - b * q
	if op in ("<<", ">>"):
		if b < 0 or b > 1024:
			return None
		return a << b if op == "<<" else a >> b
	if op == "&":
		return a & b
	if op == "|":
		return a | b
	if op == "^":
		return a ^ b
	if op == "&^":
		return a & ~b
	return None


def _embedded_name(expr: TypeExpr) -> str:
	while expr.kind in ("pointer", "generic"):
		expr = expr.elem
	return expr.name or ""
