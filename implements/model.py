from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel


TypeExprKind = Literal[
	"name",
	"qualified",
	"generic",
	"pointer",
	"slice",
	"array",
	"map",
	"chan",
	"func",
	"struct",
	"interface",
	"union",
	"tilde",
]


class Param(BaseModel):
	name: Optional[str] = None
	type: "TypeExpr"


class FieldExpr(BaseModel):
	name: Optional[str] = None
	type: "TypeExpr"
	embedded: bool = False
	tag: str = ""


class ConstExpr(BaseModel):
	"""A constant expression as written; only integer arithmetic is evaluated."""

	kind: Literal["int", "name", "qualified", "unary", "binary", "opaque"]
	text: str = ""
	value: Optional[int] = None
	name: Optional[str] = None
	package: Optional[str] = None
	op: Optional[str] = None
	left: Optional["ConstExpr"] = None
	right: Optional["ConstExpr"] = None


class MethodSpec(BaseModel):
	name: str
	params: List[Param] = []
	results: List[Param] = []
	variadic: bool = False


class TypeExpr(BaseModel):
	"""A type as written in source, before any name is resolved."""

	kind: TypeExprKind
	name: Optional[str] = None
	package: Optional[str] = None
	length: Optional[ConstExpr] = None
	dir: Optional[Literal["both", "send", "recv"]] = None
	elem: Optional["TypeExpr"] = None
	key: Optional["TypeExpr"] = None
	args: List["TypeExpr"] = []
	params: List[Param] = []
	results: List[Param] = []
	variadic: bool = False
	fields: List[FieldExpr] = []
	methods: List[MethodSpec] = []
	embeds: List["TypeExpr"] = []


class ImportSpec(BaseModel):
	path: str
	alias: Optional[str] = None


class TypeDecl(BaseModel):
	name: str
	alias: bool = False
	type_params: List[str] = []
	type: TypeExpr


class MethodDecl(BaseModel):
	receiver: str
	pointer: bool = False
	receiver_params: List[str] = []
	name: str
	params: List[Param] = []
	results: List[Param] = []
	variadic: bool = False


class ValueDecl(BaseModel):
	name: str
	kind: Literal["const", "var", "func"]
	value: Optional[ConstExpr] = None
	iota: int = 0


class SourceFile(BaseModel):
	name: str
	package: str
	imports: List[ImportSpec] = []
	types: List[TypeDecl] = []
	methods: List[MethodDecl] = []
	values: List[ValueDecl] = []


class PackageSource(BaseModel):
	"""Parsed declarations of one package; this is what the index stores."""

	path: str
	name: str
	dir: str
	goroot: bool = False
	files: List[SourceFile] = []
	fingerprint: Dict[str, List[int]] = {}


ConstExpr.model_rebuild()
Param.model_rebuild()
FieldExpr.model_rebuild()
MethodSpec.model_rebuild()
TypeExpr.model_rebuild()


class Direction(str, Enum):
	IMPLEMENTS = "implements"
	IMPLEMENTED_BY = "implemented-by"


class ImplementsGroup(BaseModel):
	subject: str
	pointer: bool = False
	interfaces: List[str] = []


class ImplementedByGroup(BaseModel):
	interface: str
	implementers: List[str] = []


class Report(BaseModel):
	direction: Direction
	implements: List[ImplementsGroup] = []
	implemented_by: List[ImplementedByGroup] = []
	errors: List[str] = []
