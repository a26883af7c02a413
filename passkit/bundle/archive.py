# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import io
import zipfile
from typing import Mapping

from passkit.model import MANIFEST_FILE, SIGNATURE_FILE


def _zipinfo(name: str, compress_type: int) -> zipfile.ZipInfo:
	"""
	Create a ZipInfo with deterministic metadata.

	- fixed timestamp (Zip's earliest representable time)
	- no extra fields
	"""
	zi = zipfile.ZipInfo(filename=name)
	zi.date_time = (1980, 1, 1, 0, 0, 0)
	zi.compress_type = compress_type
	zi.external_attr = 0o644 << 16
	return zi


def write_archive(
	files: Mapping[str, bytes],
	*,
	manifest: bytes,
	signature: bytes,
	compression: int = zipfile.ZIP_STORED,
) -> io.BytesIO:
	"""
	Write the pass container and return it as a readable stream.

	Bundle files go first in sorted order, then `manifest.json`, then
	`signature`. Content integrity is carried by the manifest and signature,
	not by the container.
	"""
	out = io.BytesIO()
	with zipfile.ZipFile(out, mode="w") as zf:
		for name in sorted(files):
			zf.writestr(_zipinfo(name, compression), files[name])
		zf.writestr(_zipinfo(MANIFEST_FILE, compression), manifest)
		zf.writestr(_zipinfo(SIGNATURE_FILE, compression), signature)
	out.seek(0)
	return out
