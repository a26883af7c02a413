# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
The pass builder.

A `Pass` is built from a template (`PartitionedBundle`) and a signing identity,
optionally with overrides. Builder methods adjust properties, fields and
translations; `generate()` then runs the generation pipeline and returns the
signed archive as a readable stream.

`generate()` never mutates the instance: every call recomputes metadata,
manifest and signature from the current builder state.

Not internally synchronized. Builder calls and `generate()` must come from a
single owner.
"""

from __future__ import annotations

import copy
import io
import json
import logging
from types import MappingProxyType
from typing import Any, Mapping

from passkit.bundle.l10n import LocalizationMerger
from passkit.bundle.pipeline import GenerationContext, run_pipeline
from passkit.config import PassConfig
from passkit.errors import BarcodeFormatError, ConstructionError, StateError
from passkit.fields import FieldCollection, FieldSlot
from passkit.model import (
	PASS_FILE,
	PartitionedBundle,
	PassCategory,
	category_payload,
	detect_category,
	parse_metadata,
)
from passkit.props import (
	barcodes_from_message,
	drop_invalid_colors,
	merge_props,
	validate_overrides,
	validate_template_props,
	w3c_date,
)
from passkit.schemas import (
	BARCODE,
	BEACON,
	LOCATION,
	NFC,
	TRANSIT_TYPE,
	filter_valid,
	is_valid,
	with_barcode_defaults,
)
from passkit.signing.identity import SigningIdentity

logger = logging.getLogger(__name__)

UNSUPPORTED_SINGLE_BARCODE = "PKBarcodeFormatCode128"


class Pass:
	def __init__(
		self,
		model: PartitionedBundle,
		identity: SigningIdentity,
		*,
		overrides: Mapping[str, Any] | None = None,
		config: PassConfig | None = None,
	) -> None:
		if not isinstance(model, PartitionedBundle):
			raise ConstructionError("REQUIR_VALID_FAILED", "model must be a PartitionedBundle")
		if not isinstance(identity, SigningIdentity):
			raise ConstructionError("REQUIR_VALID_FAILED", "identity must be a SigningIdentity")
		if config is None:
			config = PassConfig()
		elif not isinstance(config, PassConfig):
			raise ConstructionError("REQUIR_VALID_FAILED", "config must be a PassConfig")

		self._identity = identity
		self._config = config
		self._bundle: dict[str, bytes] = dict(model.bundle)
		self._l10n_bundle: dict[str, dict[str, bytes]] = {k: dict(v) for k, v in model.l10n_bundle.items()}

		metadata = parse_metadata(self._bundle[PASS_FILE])
		self._category = detect_category(metadata)
		payload = category_payload(metadata, self._category)

		valid_overrides = validate_overrides(overrides)
		self._props: dict[str, Any] = merge_props(validate_template_props(metadata, self._category), valid_overrides)
		self._section: dict[str, Any] = {
			k: copy.deepcopy(v) for k, v in (metadata.get(self._category.value) or {}).items()
		}

		self._transit_type: str | None = None
		if payload.transit_type is not None:
			self.transit_type = payload.transit_type

		self.fields = FieldCollection()
		self.fields.load(payload.fields)
		self._localizer = LocalizationMerger()

	def __repr__(self) -> str:
		return f"Pass(category={self._category.value!r}, files={len(self._bundle)}, fields={len(self.fields)})"

	@property
	def category(self) -> PassCategory:
		return self._category

	@property
	def primary_fields(self) -> FieldSlot:
		return self.fields.slot("primaryFields")

	@property
	def secondary_fields(self) -> FieldSlot:
		return self.fields.slot("secondaryFields")

	@property
	def auxiliary_fields(self) -> FieldSlot:
		return self.fields.slot("auxiliaryFields")

	@property
	def back_fields(self) -> FieldSlot:
		return self.fields.slot("backFields")

	@property
	def header_fields(self) -> FieldSlot:
		return self.fields.slot("headerFields")

	@property
	def props(self) -> Mapping[str, Any]:
		"""Read-only snapshot of overrides, template and builder properties."""
		return MappingProxyType(copy.deepcopy(self._props))

	@property
	def transit_type(self) -> str | None:
		return self._transit_type

	@transit_type.setter
	def transit_type(self, value: str | None) -> None:
		if value is None:
			self._transit_type = None
			return
		if not is_valid(value, TRANSIT_TYPE):
			logger.warning("ignoring invalid transit type %r", value)
			return
		self._transit_type = value

	def localize(self, lang: str, translations: Mapping[str, Any] | None = None) -> "Pass":
		"""
		Stage translations for `lang` (an ISO language code such as "fr").

		Keys are the placeholders used in pass.json, values the translated
		strings. A later call for the same language replaces the earlier one.
		"""
		if not isinstance(lang, str) or not lang:
			logger.warning("localize: language code must be a non-empty string, got %r", lang)
			return self
		if translations is not None and not isinstance(translations, Mapping):
			logger.warning("localize: translations for %s must be a mapping", lang)
			return self
		self._localizer.stage(lang, translations)
		return self

	def expiration(self, date: Any) -> "Pass":
		return self._set_date("expirationDate", date)

	def relevant_date(self, date: Any) -> "Pass":
		return self._set_date("relevantDate", date)

	def void(self) -> "Pass":
		self._props["voided"] = True
		return self

	def beacons(self, items: list[Mapping[str, Any]] | None) -> "Pass":
		return self._set_array("beacons", items, BEACON)

	def locations(self, items: list[Mapping[str, Any]] | None) -> "Pass":
		return self._set_array("locations", items, LOCATION)

	def barcodes(self, value: str | list[Mapping[str, Any]] | None) -> "Pass":
		"""
		Set the barcodes.

		A string is used as the message of one barcode per supported format;
		a list is filtered through the barcode schema; None clears.
		"""
		if value is None:
			self._props.pop("barcodes", None)
			return self
		if isinstance(value, str):
			generated = barcodes_from_message(value)
			if not generated:
				logger.debug("barcodes: no barcode generated from message %r", value)
				return self
			self._props["barcodes"] = generated
			return self
		if not isinstance(value, (list, tuple)):
			logger.warning("barcodes: expected a message string or a list, got %s", type(value).__name__)
			return self
		res = filter_valid(value, BARCODE)
		if res.rejected:
			logger.warning("barcodes: dropped %d invalid barcode(s)", res.rejected)
		if res.accepted:
			self._props["barcodes"] = [with_barcode_defaults(b) for b in res.accepted]
		return self

	def barcode(self, chosen_format: str | None) -> "Pass":
		"""
		Choose which of the current barcodes fills the legacy `barcode` key.

		Code128 cannot be used there and raises BarcodeFormatError.
		"""
		if chosen_format is None:
			self._props.pop("barcode", None)
			return self
		if not isinstance(chosen_format, str) or not chosen_format:
			logger.debug("barcode: format must be a non-empty string, got %r", chosen_format)
			return self
		wanted = chosen_format.lower()
		if "code128" in wanted:
			raise BarcodeFormatError(
				"BRC_BW_FORMAT_UNSUPPORTED",
				f"{UNSUPPORTED_SINGLE_BARCODE} is not supported for the single barcode field",
				key="barcode",
			)
		barcodes = self._props.get("barcodes") or []
		if not barcodes:
			logger.debug("barcode: no barcodes set to choose from")
			return self
		for b in barcodes:
			if wanted in str(b.get("format", "")).lower():
				self._props["barcode"] = copy.deepcopy(b)
				return self
		logger.debug("barcode: no barcode with format %s", chosen_format)
		return self

	def nfc(self, payload: Mapping[str, Any] | None) -> "Pass":
		if payload is None:
			self._props.pop("nfc", None)
			return self
		if not isinstance(payload, Mapping) or not is_valid(dict(payload), NFC):
			logger.warning("nfc: ignoring invalid payload")
			return self
		self._props["nfc"] = copy.deepcopy(dict(payload))
		return self

	def generate(self) -> io.BytesIO:
		"""Build, sign and archive the pass; returns a stream positioned at 0."""
		ctx = GenerationContext(
			bundle=dict(self._bundle),
			l10n_bundle=self._l10n_bundle,
			localizer=self._localizer,
			identity=self._identity,
			config=self._config,
			render_metadata=self._render_metadata,
		)
		return run_pipeline(ctx)

	def _set_date(self, key: str, date: Any) -> "Pass":
		if date is None:
			self._props.pop(key, None)
			return self
		parsed = w3c_date(date)
		if parsed is None:
			logger.warning("%s: expected a datetime, got %r", key, date)
			return self
		self._props[key] = parsed
		return self

	def _set_array(self, key: str, items: Any, shape: Mapping[str, Any]) -> "Pass":
		if items is None:
			self._props.pop(key, None)
			return self
		if not isinstance(items, (list, tuple)):
			logger.warning("%s: expected a list, got %s", key, type(items).__name__)
			return self
		res = filter_valid(items, shape)
		if res.rejected:
			logger.warning("%s: dropped %d invalid item(s)", key, res.rejected)
		if res.accepted:
			self._props[key] = res.accepted
		return self

	def _render_metadata(self) -> tuple[bytes, dict[str, Any]]:
		props = copy.deepcopy(self._props)
		drop_invalid_colors(props)

		section = copy.deepcopy(self._section)
		section.update(self.fields.as_dict())
		if self._category.requires_transit_type and not self._transit_type:
			raise StateError(
				"TRSTYPE_REQUIRED",
				"boarding passes require a transit type, set in the template or through transit_type",
				key="transitType",
			)
		if self._transit_type:
			section["transitType"] = self._transit_type
		else:
			section.pop("transitType", None)

		pass_file = dict(props)
		pass_file[self._category.value] = section
		data = json.dumps(pass_file, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
		return data, props
