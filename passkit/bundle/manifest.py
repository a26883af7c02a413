# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pass manifest.

`manifest.json` maps every archived path to the lowercase hex digest of its
exact bytes. The verifier recomputes digests by path, so keys must match the
archive entry names byte for byte.

The digest algorithm is a contract with the consuming verifier (sha1 for the
current pass format) and is passed in rather than pinned here.
"""

from __future__ import annotations

import hashlib
import io
import json
import zipfile
from dataclasses import dataclass, field
from typing import Any, Mapping

from passkit.model import MANIFEST_FILE, RESERVED_FILES, SIGNATURE_FILE


def check_digest_algorithm(algorithm: str) -> None:
	"""Raise ValueError unless `algorithm` is a fixed-size hashlib digest."""
	try:
		size = hashlib.new(algorithm).digest_size
	except (TypeError, ValueError) as err:
		raise ValueError(f"unsupported digest algorithm '{algorithm}'") from err
	# Variable-length (shake) digests have no fixed hex form.
	if size == 0:
		raise ValueError(f"unsupported digest algorithm '{algorithm}'")


def digest_hex(data: bytes, algorithm: str = "sha1") -> str:
	"""Return the hex digest of `data` using a hashlib algorithm name."""
	return hashlib.new(algorithm, data).hexdigest()


def canonical_json_bytes(obj: Any) -> bytes:
	"""
	Render JSON deterministically.

	Rules:
	- UTF-8
	- no insignificant whitespace
	- stable key ordering
	"""
	return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def build_manifest(files: Mapping[str, bytes], algorithm: str = "sha1") -> dict[str, str]:
	check_digest_algorithm(algorithm)
	manifest: dict[str, str] = {}
	for path, data in files.items():
		if path in RESERVED_FILES:
			raise ValueError(f"'{path}' is generated and cannot be part of the bundle")
		manifest[path] = digest_hex(data, algorithm)
	return manifest


def manifest_bytes(manifest: Mapping[str, str]) -> bytes:
	return canonical_json_bytes(dict(manifest))


@dataclass
class ManifestCheck:
	"""Result of checking an archive's entries against its manifest."""

	missing: list[str] = field(default_factory=list)
	unexpected: list[str] = field(default_factory=list)
	mismatched: list[str] = field(default_factory=list)
	has_signature: bool = False

	@property
	def ok(self) -> bool:
		return not (self.missing or self.unexpected or self.mismatched)

	def to_dict(self) -> dict[str, Any]:
		return {
			"ok": self.ok,
			"missing": list(self.missing),
			"unexpected": list(self.unexpected),
			"mismatched": list(self.mismatched),
			"has_signature": self.has_signature,
		}


def verify_archive(data: bytes, algorithm: str = "sha1") -> ManifestCheck:
	"""
	Recompute every entry digest of a finished archive and compare with its manifest.

	Raises ValueError when the archive is unreadable, lacks a manifest, or
	`algorithm` is not a usable digest.
	"""
	check_digest_algorithm(algorithm)
	try:
		zf = zipfile.ZipFile(io.BytesIO(data))
	except zipfile.BadZipFile as err:
		raise ValueError("pass archive is not a valid zip container") from err
	with zf:
		names = zf.namelist()
		if MANIFEST_FILE not in names:
			raise ValueError("pass archive has no manifest.json")
		try:
			manifest = json.loads(zf.read(MANIFEST_FILE).decode("utf-8"))
		except (UnicodeDecodeError, json.JSONDecodeError) as err:
			raise ValueError("manifest.json is not valid JSON") from err
		if not isinstance(manifest, dict):
			raise ValueError("manifest.json must be a JSON object")

		check = ManifestCheck(has_signature=SIGNATURE_FILE in names)
		entries = [n for n in names if n not in RESERVED_FILES and not n.endswith("/")]
		for name in sorted(entries):
			expected = manifest.get(name)
			if expected is None:
				check.unexpected.append(name)
			elif digest_hex(zf.read(name), algorithm) != expected:
				check.mismatched.append(name)
		check.missing = sorted(set(manifest) - set(entries))
		return check
