# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import errno
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class PassError(Exception):
	"""
	A structured, serializable error raised while building or signing a pass.

	`reason_code` is stable and machine-readable; `message` is for humans.
	"""

	reason_code: str
	message: str
	path: str | None = None
	key: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"kind": type(self).__name__,
			"reason_code": self.reason_code,
			"message": self.message,
			"path": self.path,
			"key": self.key,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.key:
			parts.append(f"key={self.key}")
		if self.path:
			parts.append(f"path={self.path}")
		return " ".join(parts)


@dataclass(frozen=True)
class ConstructionError(PassError):
	"""Template metadata or constructor inputs are unusable; no Pass is produced."""


@dataclass(frozen=True)
class StateError(PassError):
	"""Category-specific data is missing when `generate()` runs."""


@dataclass(frozen=True)
class DuplicateKeyError(PassError):
	"""A field key already exists in one of the pass' field slots."""


@dataclass(frozen=True)
class BarcodeFormatError(PassError):
	pass


@dataclass(frozen=True)
class InvalidCredential(PassError):
	"""Certificate or key material cannot be used for signing."""


@dataclass(frozen=True)
class ModelNotFound(PassError):
	pass


def translate_io_error(err: OSError) -> Exception:
	"""
	Map a collaborator I/O failure to the error the caller should see.

	Missing files and directories become `ModelNotFound` carrying the offending
	path; every other `OSError` is returned unchanged.
	"""
	if err.errno != errno.ENOENT or err.filename is None:
		return err
	path = str(err.filename)
	if Path(path).suffix:
		return ModelNotFound("MODELF_FILE_NOT_FOUND", f"file '{Path(path).name}' not found", path=path)
	return ModelNotFound("MODEL_NOT_FOUND", f"model '{Path(path).name}' not found", path=path)
