from implements.config import BuildContext
from implements.patterns import expand_patterns, match_pattern, split_patterns


def test_split_patterns():
	assert split_patterns(" io, fmt ,,net/... ") == ["io", "fmt", "net/..."]


def test_match_pattern():
	match = match_pattern("net/...")
	assert match("net")
	assert match("net/http")
	assert not match("network")
	assert match_pattern("...")("anything/at/all")
	assert match_pattern("example.com/.../util")("example.com/a/b/util")
	assert not match_pattern("io")("io/fs")


def test_std_excludes_cmd(context):
	assert expand_patterns(context, "std") == ["fmt", "io"]
	assert expand_patterns(context, "cmd") == ["cmd/vet"]


def test_wildcards_and_literals(context, make_package):
	make_package("example.com/shapes/circle", {"circle.go": "package circle\n"})
	make_package("example.com/shapes/testdata/skip", {"skip.go": "package skip\n"})
	paths = expand_patterns(context, "example.com/shapes/...,io,example.com/shapes")
	assert paths == ["example.com/shapes", "example.com/shapes/circle", "io"]
	assert expand_patterns(context, "example.com/missing") == ["example.com/missing"]


def test_relative_patterns_in_module(tmp_path):
	root = tmp_path / "mod"
	(root / "api").mkdir(parents=True)
	(root / "go.mod").write_text("module example.org/mod\n\ngo 1.21\n")
	(root / "mod.go").write_text("package mod\n")
	(root / "api" / "api.go").write_text("package api\n")
	context = BuildContext(module_root=str(root), module_path="example.org/mod")

	assert expand_patterns(context, "./...", cwd=str(root)) == ["example.org/mod", "example.org/mod/api"]
	assert expand_patterns(context, "./api", cwd=str(root)) == ["example.org/mod/api"]
	assert expand_patterns(context, ".", cwd=str(root / "api")) == ["example.org/mod/api"]


def test_std_without_goroot():
	assert expand_patterns(BuildContext(), "std") == []


def test_std_includes_goroot_vendor(context, goroot):
	vendored = goroot / "src" / "vendor" / "golang.org" / "x" / "text" / "width"
	vendored.mkdir(parents=True)
	(vendored / "width.go").write_text("package width\n")
	assert expand_patterns(context, "std") == ["fmt", "io", "vendor/golang.org/x/text/width"]
