# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
JSON schemas for the pass metadata keys the builder understands.

Validation is exposed two ways:
- `is_valid(value, shape)` answers yes/no for a single value,
- `filter_valid(items, shape)` keeps the accepted subset of an array and counts
  what was rejected, so callers can log drops instead of failing.

Shapes mirror the published pass format; keys not listed here are passed
through opaquely by the property overlay.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from jsonschema import Draft202012Validator

BARCODE_FORMATS = (
	"PKBarcodeFormatQR",
	"PKBarcodeFormatPDF417",
	"PKBarcodeFormatAztec",
	"PKBarcodeFormatCode128",
)

TRANSIT_TYPES = (
	"PKTransitTypeAir",
	"PKTransitTypeBoat",
	"PKTransitTypeBus",
	"PKTransitTypeGeneric",
	"PKTransitTypeTrain",
)

PERSONALIZATION_FIELDS = (
	"PKPassPersonalizationFieldName",
	"PKPassPersonalizationFieldPostalCode",
	"PKPassPersonalizationFieldEmailAddress",
	"PKPassPersonalizationFieldPhoneNumber",
)

DEFAULT_MESSAGE_ENCODING = "iso-8859-1"

_SEMANTICS = {"type": "object"}

BARCODE: dict[str, Any] = {
	"type": "object",
	"properties": {
		"altText": {"type": "string"},
		"messageEncoding": {"type": "string"},
		"format": {"enum": list(BARCODE_FORMATS)},
		"message": {"type": "string"},
	},
	"required": ["format", "message"],
}

BEACON: dict[str, Any] = {
	"type": "object",
	"properties": {
		"major": {"type": "integer", "minimum": 0, "maximum": 65535},
		"minor": {"type": "integer", "minimum": 0, "maximum": 65535},
		"proximityUUID": {"type": "string", "minLength": 1},
		"relevantText": {"type": "string"},
	},
	"required": ["proximityUUID"],
}

LOCATION: dict[str, Any] = {
	"type": "object",
	"properties": {
		"altitude": {"type": "number"},
		"latitude": {"type": "number"},
		"longitude": {"type": "number"},
		"relevantText": {"type": "string"},
	},
	"required": ["latitude", "longitude"],
}

NFC: dict[str, Any] = {
	"type": "object",
	"properties": {
		"message": {"type": "string", "minLength": 1, "maxLength": 64},
		"encryptionPublicKey": {"type": "string"},
		"requiresAuthentication": {"type": "boolean"},
	},
	"required": ["message"],
}

FIELD: dict[str, Any] = {
	"type": "object",
	"properties": {
		"key": {"type": "string", "minLength": 1},
		"value": {"type": ["string", "number"]},
		"label": {"type": "string"},
		"attributedValue": {"type": ["string", "number"]},
		"changeMessage": {"type": "string"},
		"dataDetectorTypes": {
			"type": "array",
			"items": {
				"enum": [
					"PKDataDetectorTypePhoneNumber",
					"PKDataDetectorTypeLink",
					"PKDataDetectorTypeAddress",
					"PKDataDetectorTypeCalendarEvent",
				]
			},
		},
		"dateStyle": {"type": "string"},
		"timeStyle": {"type": "string"},
		"ignoresTimeZone": {"type": "boolean"},
		"isRelative": {"type": "boolean"},
		"textAlignment": {
			"enum": [
				"PKTextAlignmentLeft",
				"PKTextAlignmentCenter",
				"PKTextAlignmentRight",
				"PKTextAlignmentNatural",
			]
		},
		"currencyCode": {"type": "string"},
		"numberStyle": {"type": "string"},
		"semantics": _SEMANTICS,
	},
	"required": ["key", "value"],
}

PERSONALIZATION: dict[str, Any] = {
	"type": "object",
	"properties": {
		"description": {"type": "string"},
		"requiredPersonalizationFields": {
			"type": "array",
			"minItems": 1,
			"items": {"enum": list(PERSONALIZATION_FIELDS)},
		},
		"termsAndConditions": {"type": "string"},
	},
	"required": ["description", "requiredPersonalizationFields"],
}

TRANSIT_TYPE: dict[str, Any] = {"enum": list(TRANSIT_TYPES)}

# Keys a caller may override at construction time, with the shape each value
# must satisfy. Array-valued keys are filtered element-wise.
OVERRIDES: dict[str, dict[str, Any]] = {
	"serialNumber": {"type": "string"},
	"description": {"type": "string"},
	"organizationName": {"type": "string"},
	"logoText": {"type": "string"},
	"userInfo": {"type": "object"},
	"webServiceURL": {"type": "string", "pattern": "^https://"},
	"authenticationToken": {"type": "string", "minLength": 16},
	"sharingProhibited": {"type": "boolean"},
	"backgroundColor": {"type": "string"},
	"foregroundColor": {"type": "string"},
	"labelColor": {"type": "string"},
	"groupingIdentifier": {"type": "string"},
	"suppressStripShine": {"type": "boolean"},
	"maxDistance": {"type": "number", "minimum": 0},
	"semantics": _SEMANTICS,
	"expirationDate": {"type": "string"},
	"relevantDate": {"type": "string"},
	"voided": {"type": "boolean"},
	"beacons": BEACON,
	"locations": LOCATION,
	"barcodes": BARCODE,
	"barcode": BARCODE,
	"nfc": NFC,
}

# Keys read from the template's pass.json that are schema-checked before they
# reach the merged properties.
TEMPLATE_PROPS: dict[str, dict[str, Any]] = {
	"barcodes": BARCODE,
	"barcode": BARCODE,
	"beacons": BEACON,
	"locations": LOCATION,
	"nfc": NFC,
}

_VALIDATORS: dict[int, Draft202012Validator] = {}


def _validator(shape: Mapping[str, Any]) -> Draft202012Validator:
	cached = _VALIDATORS.get(id(shape))
	if cached is None:
		cached = Draft202012Validator(shape)
		_VALIDATORS[id(shape)] = cached
	return cached


def is_valid(value: Any, shape: Mapping[str, Any]) -> bool:
	return _validator(shape).is_valid(value)


def validation_errors(value: Any, shape: Mapping[str, Any]) -> list[str]:
	"""Return human-readable messages for every schema violation of `value`."""
	errors = sorted(_validator(shape).iter_errors(value), key=lambda e: list(e.path))
	return [error.message for error in errors]


@dataclass(frozen=True)
class FilterResult:
	"""Accepted array elements plus the number that were dropped."""

	accepted: list[Any]
	rejected: int


def filter_valid(items: Iterable[Any], shape: Mapping[str, Any]) -> FilterResult:
	"""
	Keep elements that are non-empty mappings and satisfy `shape`.

	Accepted elements are deep-copied so later edits never reach the caller's
	objects.
	"""
	accepted: list[Any] = []
	rejected = 0
	for item in items:
		if isinstance(item, Mapping) and len(item) and is_valid(dict(item), shape):
			accepted.append(copy.deepcopy(dict(item)))
		else:
			rejected += 1
	return FilterResult(accepted=accepted, rejected=rejected)


def with_barcode_defaults(barcode: Mapping[str, Any]) -> dict[str, Any]:
	out = dict(barcode)
	out.setdefault("messageEncoding", DEFAULT_MESSAGE_ENCODING)
	return out
