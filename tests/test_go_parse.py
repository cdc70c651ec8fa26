import threading
from textwrap import dedent

import pytest

from implements.config import TieBreak
from implements.errors import TypeResolutionError
from implements.go_parse import GoSyntaxError, get_parser, parse_go_file, parse_package
from implements.locate import locate_package


def test_parse_declarations():
	code = dedent(
		"""
		package store

		import (
			"io"
			cfg "example.com/config"
			_ "embed"
		)

		const Version = "1"

		var (
			Default *Store
			count, total int
		)

		type Store struct {
			io.Reader
			*Cache
			name string `json:"name"`
		}

		type Getter interface {
			io.Closer
			Get(key string, opts ...cfg.Option) ([]byte, error)
		}

		type ID = string

		func (s Store) Name() string { return s.name }

		func (s *Store) Get(key string, opts ...cfg.Option) ([]byte, error) { return nil, nil }

		func New() *Store { return nil }
		"""
	)
	f = parse_go_file("store.go", code)
	assert f.package == "store"
	assert [(i.path, i.alias) for i in f.imports] == [("io", None), ("example.com/config", "cfg"), ("embed", "_")]
	assert [(v.name, v.kind) for v in f.values] == [
		("Version", "const"),
		("Default", "var"),
		("count", "var"),
		("total", "var"),
		("New", "func"),
	]

	store, getter, ident = f.types
	assert store.name == "Store" and store.type.kind == "struct"
	embedded = [fl for fl in store.type.fields if fl.embedded]
	assert [fl.type.kind for fl in embedded] == ["qualified", "pointer"]
	named = [fl for fl in store.type.fields if not fl.embedded]
	assert named[0].name == "name" and named[0].tag == 'json:"name"'

	assert getter.type.kind == "interface"
	assert [m.name for m in getter.type.methods] == ["Get"]
	get = getter.type.methods[0]
	assert get.variadic
	assert get.params[-1].type.kind == "qualified"
	assert [r.type.kind for r in get.results] == ["slice", "name"]
	assert getter.type.embeds[0].package == "io" and getter.type.embeds[0].name == "Closer"

	assert ident.alias and ident.type.name == "string"

	assert [(m.receiver, m.name, m.pointer) for m in f.methods] == [
		("Store", "Name", False),
		("Store", "Get", True),
	]


def test_parse_generic_receiver():
	code = dedent(
		"""
		package list

		type List[T any] struct {
			items []T
		}

		func (l *List[T]) Len() int { return len(l.items) }
		"""
	)
	f = parse_go_file("list.go", code)
	assert f.types[0].type_params == ["T"]
	method = f.methods[0]
	assert method.receiver == "List"
	assert method.pointer
	assert method.receiver_params == ["T"]


def test_parse_channel_and_func_types():
	code = dedent(
		"""
		package pipe

		type Source func() <-chan int

		type Sink chan<- string

		type Table map[string][4]float64
		"""
	)
	f = parse_go_file("pipe.go", code)
	source, sink, table = f.types
	assert source.type.kind == "func"
	assert source.type.results[0].type.dir == "recv"
	assert sink.type.dir == "send"
	assert table.type.kind == "map"
	assert table.type.elem.kind == "array"
	assert table.type.elem.length.kind == "int" and table.type.elem.length.value == 4


def test_parse_constants():
	code = dedent(
		"""
		package flags

		import "example.com/sizes"

		const Mode = 0755

		const (
			Read = 1 << iota
			Write
			_
			Exec
		)

		const Total, Half = sizes.Size * 2, -(sizes.Size / 2)

		const Name = "flags"
		"""
	)
	f = parse_go_file("flags.go", code)
	consts = {v.name: v for v in f.values}
	assert list(consts) == ["Mode", "Read", "Write", "Exec", "Total", "Half", "Name"]
	assert consts["Mode"].value.value == 0o755
	# An omitted value list repeats the previous one with the next iota.
	assert consts["Write"].value.text == "1 << iota" and consts["Write"].iota == 1
	assert consts["Exec"].iota == 3
	total = consts["Total"].value
	assert total.kind == "binary" and total.op == "*"
	assert (total.left.package, total.left.name) == ("sizes", "Size")
	assert consts["Half"].value.kind == "unary"
	assert consts["Name"].value.kind == "opaque"


def test_parser_per_thread():
	parsers = []
	worker = threading.Thread(target=lambda: parsers.append(get_parser()))
	worker.start()
	worker.join()
	assert get_parser() is get_parser()
	assert parsers[0] is not get_parser()


def test_syntax_error():
	with pytest.raises(GoSyntaxError):
		parse_go_file("bad.go", "package bad\n\ntype T struct {\n")


def test_multi_package_directory(context, make_package):
	make_package(
		"example.com/multi",
		{
			"a.go": "package main\n\ntype Main struct{}\n",
			"b.go": "package multi\n\ntype Lib struct{}\n",
			"doc.go": "package documentation\n",
		},
	)
	location = locate_package(context, "example.com/multi")

	source = parse_package(location, TieBreak.PREFER_NON_MAIN)
	assert source.name == "multi"
	assert [f.name for f in source.files] == ["b.go"]

	assert parse_package(location, TieBreak.FIRST).name == "main"

	with pytest.raises(TypeResolutionError):
		parse_package(location, TieBreak.STRICT)


def test_parse_package_wraps_syntax_errors(context, make_package):
	make_package("example.com/broken", {"broken.go": "package broken\n\nfunc (\n"})
	location = locate_package(context, "example.com/broken")
	with pytest.raises(TypeResolutionError) as exc:
		parse_package(location)
	assert "could not parse" in exc.value.reason
