# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import hashlib
import io
import json
import zipfile

import pytest

from passkit.bundle.archive import write_archive
from passkit.bundle.manifest import build_manifest, canonical_json_bytes, manifest_bytes, verify_archive


def _archive(files: dict[str, bytes], manifest: dict[str, str]) -> bytes:
	return write_archive(files, manifest=manifest_bytes(manifest), signature=b"sig").getvalue()


def test_manifest_lists_every_file_with_hex_digest() -> None:
	files = {"pass.json": b"{}", "icon.png": b"icon", "fr.lproj/pass.strings": b'"a" = "b";'}
	manifest = build_manifest(files)
	assert set(manifest) == set(files)
	assert manifest["icon.png"] == hashlib.sha1(b"icon").hexdigest()
	assert all(v == v.lower() and len(v) == 40 for v in manifest.values())


def test_manifest_digest_is_configurable() -> None:
	manifest = build_manifest({"icon.png": b"icon"}, "sha256")
	assert manifest["icon.png"] == hashlib.sha256(b"icon").hexdigest()


@pytest.mark.parametrize("name", ["manifest.json", "signature"])
def test_manifest_rejects_generated_names(name: str) -> None:
	with pytest.raises(ValueError, match="generated"):
		build_manifest({"pass.json": b"{}", name: b"x"})


def test_manifest_bytes_are_canonical() -> None:
	assert manifest_bytes({"b": "2", "a": "1"}) == b'{"a":"1","b":"2"}'
	assert canonical_json_bytes({"k": "é"}) == '{"k":"é"}'.encode("utf-8")


def test_verify_accepts_matching_archive() -> None:
	files = {"pass.json": b"{}", "icon.png": b"icon"}
	check = verify_archive(_archive(files, build_manifest(files)))
	assert check.ok
	assert check.has_signature
	assert check.to_dict()["ok"] is True


def test_verify_reports_mismatch_missing_and_unexpected() -> None:
	files = {"pass.json": b"{}", "icon.png": b"icon", "logo.png": b"logo"}
	manifest = build_manifest(files)
	manifest["strip.png"] = "00"
	files["icon.png"] = b"tampered"
	files["extra.png"] = b"extra"
	manifest.pop("logo.png")

	check = verify_archive(_archive(files, manifest))
	assert not check.ok
	assert check.mismatched == ["icon.png"]
	assert check.missing == ["strip.png"]
	assert check.unexpected == ["extra.png", "logo.png"]


def test_verify_rejects_unreadable_archives() -> None:
	with pytest.raises(ValueError, match="zip"):
		verify_archive(b"not a zip")

	buf = io.BytesIO()
	with zipfile.ZipFile(buf, "w") as zf:
		zf.writestr("pass.json", b"{}")
	with pytest.raises(ValueError, match="no manifest"):
		verify_archive(buf.getvalue())

	buf = io.BytesIO()
	with zipfile.ZipFile(buf, "w") as zf:
		zf.writestr("manifest.json", json.dumps(["a"]))
	with pytest.raises(ValueError, match="JSON object"):
		verify_archive(buf.getvalue())
