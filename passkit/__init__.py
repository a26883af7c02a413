# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
passkit: signed, localizable pass bundles.

Layout:
  model, props, fields: template metadata and the builder's editable state
  bundle: localization, personalization, manifest, archive, generation pipeline
  signing: signing identity and the detached PKCS#7 signature
  pkpass: the `Pass` builder; factory: `create_pass`
"""

from passkit.config import PassConfig
from passkit.errors import (
	BarcodeFormatError,
	ConstructionError,
	DuplicateKeyError,
	InvalidCredential,
	ModelNotFound,
	PassError,
	StateError,
)
from passkit.factory import create_pass
from passkit.model import PartitionedBundle, PassCategory
from passkit.pkpass import Pass
from passkit.signing.identity import SigningIdentity

__all__ = [
	"BarcodeFormatError",
	"ConstructionError",
	"DuplicateKeyError",
	"InvalidCredential",
	"ModelNotFound",
	"PartitionedBundle",
	"Pass",
	"PassCategory",
	"PassConfig",
	"PassError",
	"SigningIdentity",
	"StateError",
	"create_pass",
]
