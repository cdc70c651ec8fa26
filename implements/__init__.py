"""Find which Go types implement which interfaces, from declarations alone.

Modules:
- config.py: Build context (GOROOT, GOPATH, main module, build tags).
- constraints.py: Build constraint evaluation for file selection.
- errors.py: Error kinds for usage, configuration and package resolution.
- locate.py: Import path to package directory and buildable files.
- go_parse.py: tree-sitter parsing of Go declarations.
- model.py: Declaration and report data structures.
- typesys.py: Semantic types, type identity and method sets.
- checker.py: Declaration-level type resolution of a parsed package.
- index.py: On-disk index of parsed declarations.
- resolver.py: Import resolution through one shared package cache.
- extract.py: Named types of a package, classified as interface or concrete.
- matcher.py: Interface satisfaction.
- report.py: Forward and reverse relation reports.
- patterns.py: Package pattern expansion (std, cmd, ...).
- analysis.py: End-to-end analysis used by the CLI and the HTTP API.
"""

__all__ = [
	"analysis",
	"checker",
	"config",
	"constraints",
	"errors",
	"extract",
	"go_parse",
	"index",
	"locate",
	"matcher",
	"model",
	"patterns",
	"report",
	"resolver",
	"typesys",
]
