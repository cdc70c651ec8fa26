from __future__ import annotations

import hashlib
import logging
import os
from typing import Optional

from pydantic import ValidationError

from .locate import PackageLocation, fingerprint
from .model import PackageSource


logger = logging.getLogger(__name__)

INDEX_VERSION = "2"


class IndexStore:
	"""Parsed package declarations kept on disk between runs.

	An entry is trusted only while the package's file set, sizes and
	modification times are unchanged.
	"""

	def __init__(self, directory: str):
		self.directory = directory

	def _entry_path(self, import_path: str) -> str:
		digest = hashlib.sha1(f"{INDEX_VERSION}:{import_path}".encode("utf-8")).hexdigest()
		return os.path.join(self.directory, digest[:2], digest + ".json")

	def load(self, location: PackageLocation) -> Optional[PackageSource]:
		entry = self._entry_path(location.path)
		if not os.path.isfile(entry):
			return None
		try:
			with open(entry, "r", encoding="utf-8") as fh:
				source = PackageSource.model_validate_json(fh.read())
		except (OSError, ValidationError) as e:
			logger.warning("discarding unreadable index entry %s: %s", entry, e)
			return None
		if source.path != location.path or source.dir != location.dir:
			return None
		if source.fingerprint != fingerprint(location):
			logger.debug("index entry for %s is stale", location.path)
			return None
		return source

	def store(self, source: PackageSource) -> None:
		entry = self._entry_path(source.path)
		os.makedirs(os.path.dirname(entry), exist_ok=True)
		tmp = entry + ".tmp"
		with open(tmp, "w", encoding="utf-8") as fh:
			fh.write(source.model_dump_json())
		os.replace(tmp, entry)
