# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import datetime as _dt
import json
from dataclasses import dataclass
from typing import Any, Callable

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from passkit.model import PartitionedBundle
from passkit.signing.identity import SigningIdentity

PASSPHRASE = "correct horse"

ICON = b"\x89PNG\r\n\x1a\n icon"


@dataclass(frozen=True)
class CertMaterial:
	"""PEM material for a test CA (standing in for WWDR) and a pass signer."""

	wwdr_pem: bytes
	signer_cert_pem: bytes
	signer_key_pem: bytes
	signer_key_encrypted_pem: bytes
	other_key_pem: bytes

	def identity(self, *, encrypted: bool = False) -> SigningIdentity:
		if encrypted:
			return SigningIdentity.from_pem(
				wwdr=self.wwdr_pem,
				signer_cert=self.signer_cert_pem,
				signer_key=self.signer_key_encrypted_pem,
				passphrase=PASSPHRASE,
			)
		return SigningIdentity.from_pem(
			wwdr=self.wwdr_pem,
			signer_cert=self.signer_cert_pem,
			signer_key=self.signer_key_pem,
		)


def _name(cn: str) -> x509.Name:
	return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn), x509.NameAttribute(NameOID.ORGANIZATION_NAME, "passkit tests")])


def _key_pem(key: rsa.RSAPrivateKey, password: bytes | None = None) -> bytes:
	enc: serialization.KeySerializationEncryption = serialization.NoEncryption()
	if password is not None:
		enc = serialization.BestAvailableEncryption(password)
	return key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, enc)


@pytest.fixture(scope="session")
def certs() -> CertMaterial:
	now = _dt.datetime.now(_dt.timezone.utc)
	ca_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
	ca_cert = (
		x509.CertificateBuilder()
		.subject_name(_name("Test WWDR CA"))
		.issuer_name(_name("Test WWDR CA"))
		.public_key(ca_key.public_key())
		.serial_number(x509.random_serial_number())
		.not_valid_before(now - _dt.timedelta(days=1))
		.not_valid_after(now + _dt.timedelta(days=30))
		.add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
		.add_extension(
			x509.KeyUsage(
				digital_signature=True,
				content_commitment=False,
				key_encipherment=False,
				data_encipherment=False,
				key_agreement=False,
				key_cert_sign=True,
				crl_sign=True,
				encipher_only=False,
				decipher_only=False,
			),
			critical=True,
		)
		.sign(ca_key, hashes.SHA256())
	)
	signer_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
	signer_cert = (
		x509.CertificateBuilder()
		.subject_name(_name("Pass Type ID: pass.com.example.test"))
		.issuer_name(ca_cert.subject)
		.public_key(signer_key.public_key())
		.serial_number(x509.random_serial_number())
		.not_valid_before(now - _dt.timedelta(days=1))
		.not_valid_after(now + _dt.timedelta(days=30))
		.add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
		.sign(ca_key, hashes.SHA256())
	)
	other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
	return CertMaterial(
		wwdr_pem=ca_cert.public_bytes(serialization.Encoding.PEM),
		signer_cert_pem=signer_cert.public_bytes(serialization.Encoding.PEM),
		signer_key_pem=_key_pem(signer_key),
		signer_key_encrypted_pem=_key_pem(signer_key, PASSPHRASE.encode("utf-8")),
		other_key_pem=_key_pem(other_key),
	)


@pytest.fixture(scope="session")
def identity(certs: CertMaterial) -> SigningIdentity:
	return certs.identity()


def _pass_json(category: str = "storeCard", section: dict[str, Any] | None = None, **top: Any) -> bytes:
	obj: dict[str, Any] = {
		"formatVersion": 1,
		"passTypeIdentifier": "pass.com.example.test",
		"teamIdentifier": "ABCDE12345",
		"serialNumber": "template-serial",
		"organizationName": "Example",
		"description": "Test pass",
	}
	obj.update(top)
	obj[category] = section if section is not None else {}
	return json.dumps(obj).encode("utf-8")


@pytest.fixture
def pass_json() -> Callable[..., bytes]:
	"""Build pass.json bytes: pass_json("boardingPass", {"transitType": ...}, voided=True)."""
	return _pass_json


@pytest.fixture
def make_model() -> Callable[..., PartitionedBundle]:
	def _make(
		metadata: bytes | None = None,
		*,
		extra: dict[str, bytes] | None = None,
		l10n: dict[str, dict[str, bytes]] | None = None,
	) -> PartitionedBundle:
		bundle = {"pass.json": metadata if metadata is not None else _pass_json(), "icon.png": ICON}
		bundle.update(extra or {})
		return PartitionedBundle(bundle=bundle, l10n_bundle=l10n or {})

	return _make
