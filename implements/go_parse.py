from __future__ import annotations

import logging
import os
import threading
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_language

from .config import TieBreak
from .errors import PackageNotFound, TypeResolutionError
from .locate import PackageLocation, fingerprint
from .model import (
	ConstExpr,
	FieldExpr,
	ImportSpec,
	MethodDecl,
	MethodSpec,
	PackageSource,
	Param,
	SourceFile,
	TypeDecl,
	TypeExpr,
	ValueDecl,
)


logger = logging.getLogger(__name__)

_local = threading.local()


class GoSyntaxError(ValueError):
	def __init__(self, filename: str, line: int, column: int):
		super().__init__(f"{filename}:{line}:{column}: syntax error")
		self.filename = filename
		self.line = line
		self.column = column


def get_parser() -> Parser:
	"""The calling thread's Go parser; parsers are not shared between threads."""
	parser = getattr(_local, "parser", None)
	if parser is None:
		parser = _local.parser = Parser(get_language("go"))
	return parser


def _text(node: Node) -> str:
	return node.text.decode("utf-8")


def _named(node: Node) -> List[Node]:
	return [c for c in node.named_children if c.type != "comment"]


def _find_error(node: Node) -> Optional[Node]:
	if node.type == "ERROR" or node.is_missing:
		return node
	for child in node.children:
		if child.has_error or child.is_missing:
			found = _find_error(child)
			if found is not None:
				return found
	return None


def _specs(node: Node, kinds: Tuple[str, ...]) -> Iterator[Node]:
	# Grouped declarations wrap their specs in *_list nodes.
	for child in _named(node):
		if child.type in kinds:
			yield child
		elif child.type.endswith("_list"):
			yield from _specs(child, kinds)


def _unquote(literal: str) -> str:
	if len(literal) >= 2 and literal[0] in "\"`" and literal[-1] == literal[0]:
		return literal[1:-1]
	return literal


def _params(node: Optional[Node]) -> Tuple[List[Param], bool]:
	params: List[Param] = []
	variadic = False
	if node is None:
		return params, variadic
	for child in _named(node):
		if child.type == "parameter_declaration":
			typ = type_expr(child.child_by_field_name("type"))
			names = child.children_by_field_name("name")
			if names:
				params.extend(Param(name=_text(n), type=typ) for n in names)
			else:
				params.append(Param(type=typ))
		elif child.type == "variadic_parameter_declaration":
			typ = type_expr(child.child_by_field_name("type"))
			name = child.child_by_field_name("name")
			params.append(Param(name=_text(name) if name is not None else None, type=typ))
			variadic = True
	return params, variadic


def _results(node: Optional[Node]) -> List[Param]:
	if node is None:
		return []
	if node.type == "parameter_list":
		return _params(node)[0]
	return [Param(type=type_expr(node))]


def _type_args(node: Node) -> List[TypeExpr]:
	args: List[TypeExpr] = []
	for child in _named(node):
		args.append(_elem_expr(child) if child.type in ("type_elem", "constraint_elem") else type_expr(child))
	return args


def _elem_expr(node: Node) -> TypeExpr:
	terms = [type_expr(c) for c in _named(node)]
	if len(terms) == 1:
		return terms[0]
	return TypeExpr(kind="union", args=terms)


def _struct_fields(node: Node) -> List[FieldExpr]:
	fields: List[FieldExpr] = []
	body = next((c for c in _named(node) if c.type == "field_declaration_list"), None)
	if body is None:
		return fields
	for decl in _named(body):
		if decl.type != "field_declaration":
			continue
		typ = type_expr(decl.child_by_field_name("type"))
		tag_node = decl.child_by_field_name("tag")
		tag = _unquote(_text(tag_node)) if tag_node is not None else ""
		names = decl.children_by_field_name("name")
		if names:
			fields.extend(FieldExpr(name=_text(n), type=typ, tag=tag) for n in names)
			continue
		if any(c.type == "*" for c in decl.children):
			typ = TypeExpr(kind="pointer", elem=typ)
		fields.append(FieldExpr(type=typ, embedded=True, tag=tag))
	return fields


def _interface_elems(node: Node) -> Iterator[Node]:
	for child in _named(node):
		if child.type == "method_spec_list":
			yield from _interface_elems(child)
		else:
			yield child


def _interface(node: Node) -> TypeExpr:
	methods: List[MethodSpec] = []
	embeds: List[TypeExpr] = []
	for child in _interface_elems(node):
		if child.type in ("method_elem", "method_spec"):
			params, variadic = _params(child.child_by_field_name("parameters"))
			methods.append(
				MethodSpec(
					name=_text(child.child_by_field_name("name")),
					params=params,
					results=_results(child.child_by_field_name("result")),
					variadic=variadic,
				)
			)
		elif child.type in ("type_elem", "constraint_elem"):
			embeds.append(_elem_expr(child))
		elif child.type == "interface_type_name":
			embeds.append(type_expr(_named(child)[0]))
		else:
			embeds.append(type_expr(child))
	return TypeExpr(kind="interface", methods=methods, embeds=embeds)


def _channel_dir(node: Node) -> str:
	tokens = [c.type for c in node.children if not c.is_named]
	if tokens and tokens[0] == "<-":
		return "recv"
	if "<-" in tokens:
		return "send"
	return "both"


def _int_literal(text: str) -> Optional[int]:
	digits = text.replace("_", "")
	try:
		if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
			return int(digits, 8)
		return int(digits, 0)
	except ValueError:
		return None


def const_expr(node: Node) -> ConstExpr:
	"""Convert a tree-sitter expression node into a ConstExpr."""
	kind = node.type
	text = _text(node)
	if kind == "int_literal":
		value = _int_literal(text)
		if value is not None:
			return ConstExpr(kind="int", text=text, value=value)
	elif kind in ("identifier", "iota"):
		return ConstExpr(kind="name", text=text, name=text)
	elif kind == "selector_expression":
		operand = node.child_by_field_name("operand")
		if operand is not None and operand.type == "identifier":
			return ConstExpr(
				kind="qualified",
				text=text,
				package=_text(operand),
				name=_text(node.child_by_field_name("field")),
			)
	elif kind == "parenthesized_expression":
		inner = _named(node)
		if len(inner) == 1:
			return const_expr(inner[0])
	elif kind == "unary_expression":
		return ConstExpr(
			kind="unary",
			text=text,
			op=_text(node.child_by_field_name("operator")),
			left=const_expr(node.child_by_field_name("operand")),
		)
	elif kind == "binary_expression":
		return ConstExpr(
			kind="binary",
			text=text,
			op=_text(node.child_by_field_name("operator")),
			left=const_expr(node.child_by_field_name("left")),
			right=const_expr(node.child_by_field_name("right")),
		)
	return ConstExpr(kind="opaque", text=text)


def type_expr(node: Optional[Node]) -> TypeExpr:
	"""Convert a tree-sitter type node into a TypeExpr."""
	if node is None:
		raise ValueError("missing type")
	kind = node.type
	if kind == "type_identifier":
		return TypeExpr(kind="name", name=_text(node))
	if kind == "qualified_type":
		return TypeExpr(
			kind="qualified",
			package=_text(node.child_by_field_name("package")),
			name=_text(node.child_by_field_name("name")),
		)
	if kind == "generic_type":
		base = type_expr(node.child_by_field_name("type"))
		args_node = node.child_by_field_name("type_arguments")
		args = _type_args(args_node) if args_node is not None else []
		return TypeExpr(kind="generic", elem=base, args=args)
	if kind == "pointer_type":
		return TypeExpr(kind="pointer", elem=type_expr(_named(node)[0]))
	if kind == "slice_type":
		return TypeExpr(kind="slice", elem=type_expr(node.child_by_field_name("element")))
	if kind in ("array_type", "implicit_length_array_type"):
		length = node.child_by_field_name("length")
		return TypeExpr(
			kind="array",
			length=const_expr(length) if length is not None else None,
			elem=type_expr(node.child_by_field_name("element")),
		)
	if kind == "map_type":
		return TypeExpr(
			kind="map",
			key=type_expr(node.child_by_field_name("key")),
			elem=type_expr(node.child_by_field_name("value")),
		)
	if kind == "channel_type":
		return TypeExpr(kind="chan", dir=_channel_dir(node), elem=type_expr(node.child_by_field_name("value")))
	if kind == "function_type":
		params, variadic = _params(node.child_by_field_name("parameters"))
		return TypeExpr(
			kind="func",
			params=params,
			results=_results(node.child_by_field_name("result")),
			variadic=variadic,
		)
	if kind == "struct_type":
		return TypeExpr(kind="struct", fields=_struct_fields(node))
	if kind == "interface_type":
		return _interface(node)
	if kind == "parenthesized_type":
		return type_expr(_named(node)[0])
	if kind in ("negated_type", "constraint_term"):
		inner = _named(node)[0]
		if kind == "constraint_term" and not any(c.type == "~" for c in node.children):
			return type_expr(inner)
		return TypeExpr(kind="tilde", elem=type_expr(inner))
	if kind in ("type_elem", "constraint_elem"):
		return _elem_expr(node)
	raise ValueError(f"unsupported type syntax {kind!r} at line {node.start_point[0] + 1}")


def _type_param_names(node: Optional[Node]) -> List[str]:
	names: List[str] = []
	if node is None:
		return names
	for decl in _named(node):
		if decl.type == "type_parameter_declaration":
			names.extend(_text(n) for n in decl.children_by_field_name("name"))
	return names


def _type_decls(node: Node) -> List[TypeDecl]:
	decls: List[TypeDecl] = []
	for spec in _specs(node, ("type_spec", "type_alias")):
		name = _text(spec.child_by_field_name("name"))
		if name == "_":
			continue
		decls.append(
			TypeDecl(
				name=name,
				alias=spec.type == "type_alias",
				type_params=_type_param_names(spec.child_by_field_name("type_parameters")),
				type=type_expr(spec.child_by_field_name("type")),
			)
		)
	return decls


def _receiver(node: Node) -> Tuple[str, bool, List[str]]:
	decl = next(c for c in _named(node) if c.type == "parameter_declaration")
	typ = decl.child_by_field_name("type")
	pointer = False
	while typ.type in ("pointer_type", "parenthesized_type"):
		pointer = pointer or typ.type == "pointer_type"
		typ = _named(typ)[0]
	params: List[str] = []
	if typ.type == "generic_type":
		args = typ.child_by_field_name("type_arguments")
		if args is not None:
			params = [_text(a) for a in _named(args)]
		typ = typ.child_by_field_name("type")
	return _text(typ), pointer, params


def _method_decl(node: Node) -> Optional[MethodDecl]:
	name = _text(node.child_by_field_name("name"))
	if name == "_":
		return None
	receiver, pointer, receiver_params = _receiver(node.child_by_field_name("receiver"))
	params, variadic = _params(node.child_by_field_name("parameters"))
	return MethodDecl(
		receiver=receiver,
		pointer=pointer,
		receiver_params=receiver_params,
		name=name,
		params=params,
		results=_results(node.child_by_field_name("result")),
		variadic=variadic,
	)


def _const_decls(node: Node) -> List[ValueDecl]:
	"""Constants of one declaration; a spec without values repeats the previous list."""
	decls: List[ValueDecl] = []
	previous: List[ConstExpr] = []
	for iota, spec in enumerate(_specs(node, ("const_spec",))):
		value_nodes = spec.children_by_field_name("value")
		if value_nodes:
			previous = []
			for v in value_nodes:
				exprs = _named(v) if v.type == "expression_list" else [v]
				previous.extend(const_expr(e) for e in exprs)
		for i, n in enumerate(spec.children_by_field_name("name")):
			if _text(n) == "_":
				continue
			decls.append(
				ValueDecl(
					name=_text(n),
					kind="const",
					value=previous[i] if i < len(previous) else None,
					iota=iota,
				)
			)
	return decls


def parse_go_file(name: str, text: str) -> SourceFile:
	"""Extract the top-level declarations of one Go file."""
	tree = get_parser().parse(text.encode("utf-8"))
	root = tree.root_node
	if root.has_error:
		bad = _find_error(root) or root
		raise GoSyntaxError(name, bad.start_point[0] + 1, bad.start_point[1] + 1)

	package = ""
	imports: List[ImportSpec] = []
	types: List[TypeDecl] = []
	methods: List[MethodDecl] = []
	values: List[ValueDecl] = []

	for node in _named(root):
		if node.type == "package_clause":
			package = _text(_named(node)[0])
		elif node.type == "import_declaration":
			for spec in _specs(node, ("import_spec",)):
				alias = spec.child_by_field_name("name")
				imports.append(
					ImportSpec(
						path=_unquote(_text(spec.child_by_field_name("path"))),
						alias=_text(alias) if alias is not None else None,
					)
				)
		elif node.type == "type_declaration":
			types.extend(_type_decls(node))
		elif node.type == "method_declaration":
			method = _method_decl(node)
			if method is not None:
				methods.append(method)
		elif node.type == "function_declaration":
			values.append(ValueDecl(name=_text(node.child_by_field_name("name")), kind="func"))
		elif node.type == "const_declaration":
			values.extend(_const_decls(node))
		elif node.type == "var_declaration":
			for spec in _specs(node, ("var_spec",)):
				for n in spec.children_by_field_name("name"):
					if _text(n) != "_":
						values.append(ValueDecl(name=_text(n), kind="var"))

	return SourceFile(name=name, package=package, imports=imports, types=types, methods=methods, values=values)


def choose_package(location: PackageLocation, groups: Dict[str, List[SourceFile]], tie_break: TieBreak) -> str:
	"""Pick one package when a directory declares several."""
	if not groups:
		raise PackageNotFound(location.path, f"no buildable Go source files in {location.dir}")
	names = list(groups)
	if len(names) == 1:
		return names[0]
	if tie_break == TieBreak.STRICT:
		found = ", ".join(f"{n} ({groups[n][0].name})" for n in names)
		raise TypeResolutionError(location.path, f"found packages {found} in {location.dir}")
	if tie_break == TieBreak.FIRST:
		return names[0]
	for name in sorted(names):
		if name != "main":
			return name
	return names[0]


def parse_package(location: PackageLocation, tie_break: TieBreak = TieBreak.PREFER_NON_MAIN) -> PackageSource:
	groups: Dict[str, List[SourceFile]] = {}
	for name in location.files:
		with open(os.path.join(location.dir, name), "r", encoding="utf-8", errors="replace") as fh:
			text = fh.read()
		try:
			source_file = parse_go_file(name, text)
		except ValueError as e:
			raise TypeResolutionError(location.path, f"could not parse: {e}") from e
		groups.setdefault(source_file.package, []).append(source_file)

	groups.pop("documentation", None)
	for pkg in [n for n in groups if n.endswith("_test")]:
		del groups[pkg]

	chosen = choose_package(location, groups, tie_break)
	logger.debug("parsed %s (%d files) as package %s", location.path, len(groups[chosen]), chosen)
	return PackageSource(
		path=location.path,
		name=chosen,
		dir=location.dir,
		goroot=location.goroot,
		files=groups[chosen],
		fingerprint=fingerprint(location),
	)
