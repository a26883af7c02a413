# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import zipfile
from dataclasses import dataclass

from passkit.bundle.manifest import check_digest_algorithm
from passkit.errors import ConstructionError

SIGNATURE_HASHES = ("sha224", "sha256", "sha384", "sha512")

_COMPRESSION = {
	"stored": zipfile.ZIP_STORED,
	"deflated": zipfile.ZIP_DEFLATED,
}


@dataclass(frozen=True)
class PassConfig:
	"""
	Generation options for one pass.

	- `digest_algorithm`: hashlib name used for manifest entries. The pass format
	  verifies sha1 today; any fixed-size hashlib algorithm is accepted.
	- `signature_hash`: digest used inside the PKCS#7 signer info.
	- `compression`: "stored" or "deflated" archive entries.
	"""

	digest_algorithm: str = "sha1"
	signature_hash: str = "sha256"
	compression: str = "stored"

	def __post_init__(self) -> None:
		try:
			check_digest_algorithm(self.digest_algorithm)
		except ValueError as err:
			raise ConstructionError("CONFIG_INVALID", str(err)) from err
		if self.signature_hash not in SIGNATURE_HASHES:
			raise ConstructionError("CONFIG_INVALID", f"unsupported signature hash '{self.signature_hash}'")
		if self.compression not in _COMPRESSION:
			raise ConstructionError("CONFIG_INVALID", f"unsupported compression '{self.compression}'")

	@property
	def zip_compression(self) -> int:
		return _COMPRESSION[self.compression]
