from __future__ import annotations

from pathlib import Path
from textwrap import dedent
from typing import Callable, Dict

import pytest

from implements.config import BuildContext


IO_SRC = """
	package io

	type Reader interface {
		Read(p []byte) (n int, err error)
	}

	type Writer interface {
		Write(p []byte) (n int, err error)
	}

	type Closer interface {
		Close() error
	}

	type ReadWriter interface {
		Reader
		Writer
	}

	type ReaderFrom interface {
		ReadFrom(r Reader) (n int64, err error)
	}

	const SeekStart = 0

	var EOF error
"""

FMT_SRC = """
	package fmt

	type Stringer interface {
		String() string
	}

	type Any interface{}

	func Println(a ...interface{}) (n int, err error) {
		return 0, nil
	}
"""

SHAPES_SRC = """
	package shapes

	type Fooer interface {
		Foo()
	}

	type Empty interface{}

	type Bar struct{}

	func (Bar) Foo() {}

	type Baz struct{}

	func (b *Baz) Foo() {}
"""


def write_package(root: Path, path: str, files: Dict[str, str]) -> Path:
	directory = root / "src" / path
	directory.mkdir(parents=True, exist_ok=True)
	for name, text in files.items():
		(directory / name).write_text(dedent(text))
	return directory


@pytest.fixture
def goroot(tmp_path: Path) -> Path:
	root = tmp_path / "goroot"
	write_package(root, "io", {"io.go": IO_SRC})
	write_package(root, "fmt", {"print.go": FMT_SRC})
	write_package(root, "cmd/vet", {"main.go": "package main\n"})
	return root


@pytest.fixture
def gopath(tmp_path: Path) -> Path:
	root = tmp_path / "gopath"
	(root / "src").mkdir(parents=True)
	write_package(root, "example.com/shapes", {"shapes.go": SHAPES_SRC})
	return root


@pytest.fixture
def context(goroot: Path, gopath: Path) -> BuildContext:
	return BuildContext(goroot=str(goroot), gopath=[str(gopath)], goos="linux", goarch="amd64")


@pytest.fixture
def make_package(gopath: Path) -> Callable[[str, Dict[str, str]], Path]:
	def make(path: str, files: Dict[str, str]) -> Path:
		return write_package(gopath, path, files)

	return make
