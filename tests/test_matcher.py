import pytest

from implements.matcher import implements, is_reportable, missing_method, same_declaration, satisfies
from implements.resolver import Resolver


EMBED_SRC = """
	package embed

	import "io"

	type File struct{}

	func (f *File) Read(p []byte) (n int, err error) { return 0, nil }

	func (f File) Close() error { return nil }

	type Wrapper struct {
		File
	}

	type PtrWrapper struct {
		*File
	}

	type RW struct {
		io.Reader
	}

	type A struct{}

	func (A) Close() error { return nil }

	type B struct{}

	func (*B) Close() error { return nil }

	type AB struct {
		A
		B
	}

	type Shadow struct {
		A
	}

	func (s *Shadow) Close() error { return nil }
"""

LOOKALIKE_SRC = """
	package lookalike

	type Reader interface {
		Read(p []byte) (n int, err error)
	}

	type Fake struct{}

	func (f *Fake) ReadFrom(r Reader) (int64, error) { return 0, nil }

	type Real struct{}

	func (r Real) Read(buf []byte) (int, error) { return 0, nil }

	type Wrong struct{}

	func (w Wrong) Read(p []byte) (int64, error) { return 0, nil }
"""

COPIER_SRC = """
	package copier

	import "io"

	type Copier struct{}

	func (c *Copier) ReadFrom(r io.Reader) (int64, error) { return 0, nil }
"""

HIDDEN_SRC = """
	package hidden

	type secret interface {
		hide()
	}

	type Thing struct{}

	func (Thing) hide() {}
"""

OTHER_SRC = """
	package other

	type Other struct{}

	func (Other) hide() {}
"""

GENERIC_SRC = """
	package generic

	type Number interface {
		~int | ~float64
		String() string
	}

	type Lener interface {
		Len() int
	}

	type MyInt int

	func (MyInt) String() string { return "" }

	type List[T any] struct {
		items []T
	}

	func (l *List[T]) Len() int { return len(l.items) }
"""


FIELDS_SRC = """
	package fields

	type closer interface {
		close()
	}

	type inner struct{}

	func (inner) close() {}

	type Plain struct {
		inner
	}

	type Outer struct {
		inner
		close int
	}
"""

SIZES_SRC = """
	package sizes

	const Size = 4

	const (
		KB = 1 << (10 * (iota + 1))
		MB
	)

	type Summer interface {
		Sum() [Size]byte
	}

	type Block interface {
		Block() [2 * Size]byte
	}
"""

HASH_SRC = """
	package hash

	import "example.com/sizes"

	type H struct{}

	func (H) Sum() [4]byte { return [4]byte{} }

	func (H) Block() [sizes.Size + 4]byte { return [8]byte{} }

	type Short struct{}

	func (Short) Sum() [sizes.Size - 1]byte { return [3]byte{} }
"""

@pytest.fixture
def resolver(context, make_package):
	make_package("example.com/embed", {"embed.go": EMBED_SRC})
	make_package("example.com/lookalike", {"lookalike.go": LOOKALIKE_SRC})
	make_package("example.com/copier", {"copier.go": COPIER_SRC})
	make_package("example.com/hidden", {"hidden.go": HIDDEN_SRC})
	make_package("example.com/other", {"other.go": OTHER_SRC})
	make_package("example.com/generic", {"generic.go": GENERIC_SRC})
	make_package("example.com/fields", {"fields.go": FIELDS_SRC})
	make_package("example.com/sizes", {"sizes.go": SIZES_SRC})
	make_package("example.com/hash", {"hash.go": HASH_SRC})
	return Resolver(context)


def entries(resolver, *paths):
	return {e.qualified_name: e for path in paths for e in resolver.types(path)}


def test_value_receiver_satisfies_both_variants(resolver):
	e = entries(resolver, "example.com/shapes")
	assert implements(e["example.com/shapes.Bar"], e["example.com/shapes.Fooer"]) == (True, True)


def test_pointer_receiver_satisfies_pointer_only(resolver):
	e = entries(resolver, "example.com/shapes")
	assert implements(e["example.com/shapes.Baz"], e["example.com/shapes.Fooer"]) == (False, True)


def test_empty_interface_is_never_matched(resolver):
	e = entries(resolver, "example.com/shapes")
	empty = e["example.com/shapes.Empty"]
	assert not is_reportable(empty)
	for name in ("Bar", "Baz", "Fooer"):
		assert implements(e[f"example.com/shapes.{name}"], empty) == (False, False)


def test_interface_never_implements_itself(resolver):
	e = entries(resolver, "example.com/shapes")
	fooer = e["example.com/shapes.Fooer"]
	assert same_declaration(fooer, fooer)
	assert implements(fooer, fooer) == (False, False)


def test_interface_satisfies_narrower_interface(resolver):
	e = entries(resolver, "io")
	rw = e["io.ReadWriter"]
	assert implements(rw, e["io.Reader"]) == (True, False)
	assert implements(rw, e["io.Writer"]) == (True, False)
	assert implements(e["io.Reader"], rw) == (False, False)


def test_named_type_identity_across_packages(resolver):
	e = entries(resolver, "io", "example.com/copier", "example.com/lookalike")
	reader_from = e["io.ReaderFrom"]
	assert implements(e["example.com/copier.Copier"], reader_from) == (False, True)
	# Same text, different declaration: not identical.
	assert implements(e["example.com/lookalike.Fake"], reader_from) == (False, False)
	# Parameter names do not matter.
	assert implements(e["example.com/lookalike.Real"], e["io.Reader"]) == (True, True)
	assert implements(e["example.com/lookalike.Real"], e["example.com/lookalike.Reader"]) == (True, True)


def test_signature_mismatch_reports_missing_method(resolver):
	e = entries(resolver, "io", "example.com/lookalike")
	wrong = e["example.com/lookalike.Wrong"]
	missing = missing_method(wrong.methods, e["io.Reader"].methods)
	assert missing is not None and missing.name == "Read"
	assert not satisfies(wrong.pointer_methods, e["io.Reader"].methods)


def test_unexported_methods_are_package_scoped(resolver):
	e = entries(resolver, "example.com/hidden", "example.com/other")
	secret = e["example.com/hidden.secret"]
	assert implements(e["example.com/hidden.Thing"], secret) == (True, True)
	assert implements(e["example.com/other.Other"], secret) == (False, False)


def test_promoted_methods(resolver):
	e = entries(resolver, "io", "example.com/embed")
	reader, closer = e["io.Reader"], e["io.Closer"]

	wrapper = e["example.com/embed.Wrapper"]
	assert implements(wrapper, closer) == (True, True)
	assert implements(wrapper, reader) == (False, True)

	ptr_wrapper = e["example.com/embed.PtrWrapper"]
	assert implements(ptr_wrapper, reader) == (True, True)
	assert implements(ptr_wrapper, closer) == (True, True)

	assert implements(e["example.com/embed.RW"], reader) == (True, True)


def test_ambiguous_and_shadowed_methods(resolver):
	e = entries(resolver, "io", "example.com/embed")
	closer = e["io.Closer"]
	assert implements(e["example.com/embed.AB"], closer) == (False, False)
	# A pointer method on the outer type hides the promoted value method.
	assert implements(e["example.com/embed.Shadow"], closer) == (False, True)


def test_unexported_field_hides_promoted_method(resolver):
	e = entries(resolver, "example.com/fields")
	closer = e["example.com/fields.closer"]
	assert implements(e["example.com/fields.Plain"], closer) == (True, True)
	# Outer.close is a field at depth zero, so inner.close is not promoted.
	assert implements(e["example.com/fields.Outer"], closer) == (False, False)
	assert e["example.com/fields.Outer"].pointer_methods == {}


def test_array_lengths_compare_by_value(resolver):
	e = entries(resolver, "example.com/sizes", "example.com/hash")
	h = e["example.com/hash.H"]
	assert implements(h, e["example.com/sizes.Summer"]) == (True, True)
	assert implements(h, e["example.com/sizes.Block"]) == (True, True)
	assert implements(e["example.com/hash.Short"], e["example.com/sizes.Summer"]) == (False, False)

	sizes = resolver.resolve("example.com/sizes")
	assert sizes.scope["KB"].const_value == 1 << 10
	assert sizes.scope["MB"].const_value == 1 << 20


def test_constraint_interfaces_are_not_matched(resolver):
	e = entries(resolver, "example.com/generic")
	number = e["example.com/generic.Number"]
	assert not is_reportable(number)
	assert implements(e["example.com/generic.MyInt"], number) == (False, False)
	assert implements(e["example.com/generic.List"], e["example.com/generic.Lener"]) == (False, True)


def test_pointer_variant_is_superset(resolver):
	e = entries(
		resolver,
		"io",
		"example.com/shapes",
		"example.com/embed",
		"example.com/lookalike",
		"example.com/copier",
	)
	ifaces = [x for x in e.values() if x.is_interface]
	for subject in e.values():
		for iface in ifaces:
			value_ok, pointer_ok = implements(subject, iface)
			if value_ok and not subject.is_interface:
				assert pointer_ok, (subject.qualified_name, iface.qualified_name)
