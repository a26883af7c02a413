# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Detached PKCS#7 signature over `manifest.json`.

Pinned policy:
- the signature covers the *exact bytes* archived as `manifest.json`,
- output is DER signed-data without embedded content (detached), in binary
  mode so no line-ending canonicalization touches the manifest,
- the signer certificate and the WWDR certificate travel inside the envelope.

Signing uses `cryptography` and never shells out to external tools.
"""

from __future__ import annotations

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import pkcs7

from passkit.errors import InvalidCredential
from passkit.signing.identity import SigningIdentity, unlocked_key

_HASHES = {
	"sha224": hashes.SHA224,
	"sha256": hashes.SHA256,
	"sha384": hashes.SHA384,
	"sha512": hashes.SHA512,
}


def sign_manifest(manifest: bytes, identity: SigningIdentity, *, hash_name: str = "sha256") -> bytes:
	"""
	Sign manifest bytes and return the DER-encoded detached signature.

	Raises InvalidCredential when the identity cannot produce a signature.
	"""
	hash_cls = _HASHES.get(hash_name)
	if hash_cls is None:
		raise ValueError(f"unsupported signature hash '{hash_name}'")
	failure: Exception
	with unlocked_key(identity) as key:
		try:
			builder = (
				pkcs7.PKCS7SignatureBuilder()
				.set_data(manifest)
				.add_signer(identity.signer_cert, key, hash_cls())
				.add_certificate(identity.wwdr)
			)
			return builder.sign(
				serialization.Encoding.DER,
				[pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary],
			)
		except (TypeError, ValueError) as err:
			failure = err
	# Frozen errors cannot be raised through the generator-based key scope.
	raise InvalidCredential("INVALID_CERTS", f"signing failed: {failure}") from failure


def embedded_certificates(signature: bytes) -> list[x509.Certificate]:
	"""Return the certificates carried by a DER PKCS#7 signature."""
	try:
		return pkcs7.load_der_pkcs7_certificates(signature)
	except ValueError as err:
		raise ValueError("signature is not a DER PKCS#7 structure") from err
