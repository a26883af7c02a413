# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Signing identity for pass signatures.

An identity is the WWDR (issuing) certificate, the pass signer certificate and
the signer private key. The key may be given as PEM bytes, optionally
encrypted; in that case it stays encrypted here and is only decrypted, with
`passphrase`, inside a signing call (`unlocked_key`).
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from passkit.errors import InvalidCredential

SignerKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]


def _load_certificate(name: str, data: bytes) -> x509.Certificate:
	try:
		return x509.load_pem_x509_certificate(data)
	except ValueError as err:
		raise InvalidCredential("INVALID_CERTS", f"'{name}' is not a valid PEM certificate", key=name) from err


@dataclass(frozen=True)
class SigningIdentity:
	wwdr: x509.Certificate
	signer_cert: x509.Certificate
	signer_key: bytes | SignerKey = field(repr=False)
	passphrase: str | bytes | None = field(default=None, repr=False)

	def __post_init__(self) -> None:
		for name in ("wwdr", "signer_cert"):
			if not isinstance(getattr(self, name), x509.Certificate):
				raise InvalidCredential("INVALID_CERTS", f"'{name}' must be an x509 certificate", key=name)
		if not isinstance(self.signer_key, (bytes, rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
			raise InvalidCredential("INVALID_CERTS", "'signer_key' must be PEM bytes or an RSA/EC private key", key="signer_key")

	@classmethod
	def from_pem(
		cls,
		*,
		wwdr: bytes,
		signer_cert: bytes,
		signer_key: bytes,
		passphrase: str | bytes | None = None,
	) -> "SigningIdentity":
		"""Decode PEM certificate bytes; the key bytes are kept as given."""
		return cls(
			wwdr=_load_certificate("wwdr", wwdr),
			signer_cert=_load_certificate("signer_cert", signer_cert),
			signer_key=bytes(signer_key),
			passphrase=passphrase,
		)

	def _decrypt_key(self) -> SignerKey:
		if not isinstance(self.signer_key, bytes):
			return self.signer_key
		password = self.passphrase.encode("utf-8") if isinstance(self.passphrase, str) else self.passphrase
		try:
			key = serialization.load_pem_private_key(self.signer_key, password=password)
		except TypeError as err:
			# Encrypted key without passphrase, or passphrase for a plain key.
			raise InvalidCredential("INVALID_CERTS", f"signer key passphrase mismatch: {err}", key="signer_key") from err
		except ValueError as err:
			raise InvalidCredential("INVALID_CERTS", "signer key cannot be decoded or passphrase is wrong", key="signer_key") from err
		if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
			raise InvalidCredential("INVALID_CERTS", "signer key must be an RSA or EC private key", key="signer_key")
		return key


@contextmanager
def unlocked_key(identity: SigningIdentity) -> Iterator[SignerKey]:
	"""
	Yield the usable signer key and drop the reference on exit.

	The key must match the signer certificate's public key.
	"""
	key = identity._decrypt_key()
	try:
		spki = serialization.PublicFormat.SubjectPublicKeyInfo
		ours = key.public_key().public_bytes(serialization.Encoding.DER, spki)
		theirs = identity.signer_cert.public_key().public_bytes(serialization.Encoding.DER, spki)
		if ours != theirs:
			raise InvalidCredential("INVALID_CERTS", "signer key does not match signer certificate", key="signer_key")
		yield key
	finally:
		del key
