# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import io
import json
import logging
import sys
import zipfile
from pathlib import Path

from passkit.bundle.manifest import ManifestCheck, verify_archive
from passkit.errors import PassError, translate_io_error
from passkit.logging_utils import configure_logging
from passkit.model import SIGNATURE_FILE
from passkit.signing.signature import embedded_certificates


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="passkit", description="Pass bundle tooling")
	p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
	sub = p.add_subparsers(dest="cmd", required=True)

	verify = sub.add_parser("verify", help="Check a .pkpass archive against its manifest.json")
	verify.add_argument("archive", type=Path, help="Path to the .pkpass file")
	verify.add_argument("--digest", default="sha1", help="Manifest digest algorithm (default: sha1)")
	verify.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")
	return p


def _signer_subjects(data: bytes) -> list[str]:
	with zipfile.ZipFile(io.BytesIO(data)) as zf:
		signature = zf.read(SIGNATURE_FILE)
	return [c.subject.rfc4514_string() for c in embedded_certificates(signature)]


def _report_human(path: Path, check: ManifestCheck, subjects: list[str]) -> None:
	stream = sys.stdout if check.ok else sys.stderr
	print(f"verify: {path} ok={check.ok} signature={check.has_signature}", file=stream)
	for name in check.mismatched:
		print(f"  - digest mismatch: {name}", file=stream)
	for name in check.missing:
		print(f"  - listed in manifest but missing: {name}", file=stream)
	for name in check.unexpected:
		print(f"  - not listed in manifest: {name}", file=stream)
	for subject in subjects:
		print(f"  certificate: {subject}", file=stream)


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

	if args.cmd == "verify":
		try:
			data = args.archive.read_bytes()
		except OSError as err:
			translated = translate_io_error(err)
			print(str(translated), file=sys.stderr)
			return 2
		try:
			check = verify_archive(data, args.digest)
			subjects = _signer_subjects(data) if check.has_signature else []
		except (ValueError, PassError) as err:
			print(f"verify: {err}", file=sys.stderr)
			return 2
		if args.json:
			obj = check.to_dict()
			obj["certificates"] = subjects
			print(json.dumps(obj, sort_keys=True, separators=(",", ":")))
		else:
			_report_human(args.archive, check, subjects)
		return 0 if check.ok else 1

	raise AssertionError("unreachable")
