from __future__ import annotations


class ImplementsError(Exception):
	"""Base class for every error raised by the implements package."""


class UsageError(ImplementsError):
	"""Required input was omitted or malformed."""


class ConfigurationError(ImplementsError):
	"""A build context setting has an invalid value."""


class ResolutionError(ImplementsError):
	"""A package could not be turned into a descriptor.

	Resolution errors are collected per import path and reported after all
	resolvable packages have been processed.
	"""

	def __init__(self, path: str, reason: str):
		super().__init__(f"{path}: {reason}")
		self.path = path
		self.reason = reason


class PackageNotFound(ResolutionError):
	"""The import path does not resolve to a directory with Go files."""


class TypeResolutionError(ResolutionError):
	"""The package was found but its declarations could not be resolved."""
