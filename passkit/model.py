# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bundle and metadata model.

A template reaches the builder already split in two partitions:
- `bundle`: root files (`pass.json`, images, `personalization.json`, ...),
- `l10n_bundle`: language folder (`fr.lproj`) -> file name -> bytes.

Pinned names:
- `pass.json` is the primary metadata file,
- `manifest.json` and `signature` are generated and never accepted as input,
- every template must carry at least one file whose name starts with `icon`.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from passkit.errors import ConstructionError

PASS_FILE = "pass.json"
MANIFEST_FILE = "manifest.json"
SIGNATURE_FILE = "signature"
STRINGS_FILE = "pass.strings"
PERSONALIZATION_FILE = "personalization.json"
PERSONALIZATION_LOGO_PREFIX = "personalizationLogo"
L10N_SUFFIX = ".lproj"

RESERVED_FILES = frozenset({MANIFEST_FILE, SIGNATURE_FILE})

FIELD_SLOTS = (
	"primaryFields",
	"secondaryFields",
	"auxiliaryFields",
	"backFields",
	"headerFields",
)


class PassCategory(str, enum.Enum):
	BOARDING_PASS = "boardingPass"
	COUPON = "coupon"
	EVENT_TICKET = "eventTicket"
	GENERIC = "generic"
	STORE_CARD = "storeCard"

	@property
	def requires_transit_type(self) -> bool:
		return self is PassCategory.BOARDING_PASS


def l10n_folder_name(lang: str) -> str:
	"""Return the folder name for a language code (`fr` -> `fr.lproj`)."""
	return lang if lang.endswith(L10N_SUFFIX) else f"{lang}{L10N_SUFFIX}"


@dataclass(frozen=True)
class PartitionedBundle:
	"""
	Template contents handed over by the model loader.

	Both partitions are copied on construction; callers keep ownership of the
	mappings they passed in.
	"""

	bundle: Mapping[str, bytes]
	l10n_bundle: Mapping[str, Mapping[str, bytes]] = field(default_factory=dict)

	def __post_init__(self) -> None:
		if not isinstance(self.bundle, Mapping) or not isinstance(self.l10n_bundle, Mapping):
			raise ConstructionError("MODEL_NOT_VALID", "model partitions must be mappings")
		root: dict[str, bytes] = {}
		for name, data in self.bundle.items():
			if name in RESERVED_FILES:
				continue
			if not isinstance(data, (bytes, bytearray)):
				raise ConstructionError("MODEL_NOT_VALID", "bundle file content must be bytes", path=str(name))
			root[str(name).replace("\\", "/")] = bytes(data)
		l10n: dict[str, dict[str, bytes]] = {}
		for folder, files in self.l10n_bundle.items():
			if not isinstance(files, Mapping):
				raise ConstructionError("MODEL_NOT_VALID", "localization folder must map file names to bytes", path=str(folder))
			lang_folder = l10n_folder_name(str(folder))
			contents: dict[str, bytes] = {}
			for file_name, data in files.items():
				if not isinstance(data, (bytes, bytearray)):
					raise ConstructionError(
						"MODEL_NOT_VALID", "localization file content must be bytes", path=f"{lang_folder}/{file_name}"
					)
				contents[str(file_name)] = bytes(data)
			l10n[lang_folder] = contents

		if PASS_FILE not in root or not any(n.startswith("icon") for n in root):
			raise ConstructionError("MODEL_UNINITIALIZED", "model must contain pass.json and an icon file")
		object.__setattr__(self, "bundle", root)
		object.__setattr__(self, "l10n_bundle", l10n)


@dataclass(frozen=True)
class CategoryPayload:
	"""Category-specific content of pass.json (fields and transit subtype)."""

	category: PassCategory
	fields: dict[str, list[Any]]
	transit_type: str | None = None


def parse_metadata(data: bytes) -> dict[str, Any]:
	try:
		obj = json.loads(data.decode("utf-8"))
	except (UnicodeDecodeError, json.JSONDecodeError) as err:
		raise ConstructionError("PASSFILE_VALIDATION_FAILED", "pass.json is not valid JSON", path=PASS_FILE) from err
	if not isinstance(obj, dict):
		raise ConstructionError("PASSFILE_VALIDATION_FAILED", "pass.json must be a JSON object", path=PASS_FILE)
	return obj


def detect_category(metadata: Mapping[str, Any]) -> PassCategory:
	"""
	Return the single category key present in `metadata`.

	Exactly one of the closed set must be present.
	"""
	found = [c for c in PassCategory if c.value in metadata]
	if not found:
		raise ConstructionError("NO_PASS_TYPE", "pass.json declares no pass category", path=PASS_FILE)
	if len(found) > 1:
		names = ", ".join(c.value for c in found)
		raise ConstructionError("NO_PASS_TYPE", f"pass.json declares more than one category ({names})", path=PASS_FILE)
	return found[0]


def category_payload(metadata: Mapping[str, Any], category: PassCategory) -> CategoryPayload:
	raw = metadata.get(category.value)
	if raw is None:
		raw = {}
	if not isinstance(raw, Mapping):
		raise ConstructionError("PASSFILE_VALIDATION_FAILED", f"'{category.value}' must be a JSON object", key=category.value)
	fields: dict[str, list[Any]] = {}
	for slot in FIELD_SLOTS:
		items = raw.get(slot) or []
		fields[slot] = list(items) if isinstance(items, list) else []
	transit = raw.get("transitType")
	return CategoryPayload(
		category=category,
		fields=fields,
		transit_type=transit if isinstance(transit, str) and transit else None,
	)
