import pytest

from implements.config import BuildContext
from implements.constraints import (
	ConstraintSyntaxError,
	eval_go_build,
	eval_plus_build,
	filename_matches,
	make_matcher,
	source_matches,
)


@pytest.fixture
def match():
	return make_matcher(BuildContext(goos="linux", goarch="amd64", build_tags=["integration"]))


def test_go_build_expressions(match):
	assert eval_go_build("linux", match)
	assert eval_go_build("linux && amd64", match)
	assert eval_go_build("unix && !windows", match)
	assert eval_go_build("(darwin || linux) && go1.21", match)
	assert eval_go_build("integration", match)
	assert not eval_go_build("cgo", match)
	assert not eval_go_build("windows || (linux && arm64)", match)


def test_go_build_syntax_error(match):
	with pytest.raises(ConstraintSyntaxError):
		eval_go_build("linux &&", match)
	with pytest.raises(ConstraintSyntaxError):
		eval_go_build("(linux", match)


def test_plus_build_lines(match):
	assert eval_plus_build(["linux darwin"], match)
	assert eval_plus_build(["linux,amd64"], match)
	assert not eval_plus_build(["linux,!amd64"], match)
	assert not eval_plus_build(["linux", "windows"], match)
	assert eval_plus_build(["!ignore"], match)


def test_source_header(match):
	assert not source_matches("//go:build ignore\n\npackage x\n", match)
	assert source_matches("// Copyright\n\n//go:build linux\n\npackage x\n", match)
	assert not source_matches("// +build windows\n\npackage x\n", match)
	# Constraints after the package clause do not count.
	assert source_matches("package x\n\n//go:build windows\n", match)
	# go:build wins over +build.
	assert source_matches("//go:build linux\n// +build windows\n\npackage x\n", match)


def test_filename_suffixes(match):
	assert filename_matches("file.go", match)
	assert filename_matches("file_linux.go", match)
	assert filename_matches("file_linux_amd64.go", match)
	assert filename_matches("zsys_amd64.go", match)
	assert not filename_matches("file_windows.go", match)
	assert not filename_matches("file_linux_arm64.go", match)
	assert filename_matches("new_reader.go", match)


def test_implied_tags():
	match = make_matcher(BuildContext(goos="android", goarch="arm64", cgo_enabled=True))
	assert match("linux")
	assert match("unix")
	assert match("cgo")
	assert not match("windows")
