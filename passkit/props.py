# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Top-level pass properties: template values merged with caller overrides.

Rules:
- the category key (`boardingPass`, `coupon`, ...) and its nested content never
  enter the generic merge; fields and transit subtype are handled separately,
- known keys are schema-checked: arrays are filtered element-wise, scalar and
  object values failing validation are dropped,
- unknown keys pass through unchanged,
- overrides are applied last and win over template values.

Nothing here raises for bad values; drops are logged.
"""

from __future__ import annotations

import copy
import datetime as _dt
import logging
import re
from typing import Any, Mapping

from passkit.errors import ConstructionError
from passkit.model import PassCategory
from passkit.schemas import (
	BARCODE,
	BARCODE_FORMATS,
	OVERRIDES,
	TEMPLATE_PROPS,
	filter_valid,
	is_valid,
	with_barcode_defaults,
)

logger = logging.getLogger(__name__)

COLOR_KEYS = ("backgroundColor", "foregroundColor", "labelColor")

ARRAY_KEYS = frozenset({"barcodes", "beacons", "locations"})

_RGB = re.compile(r"^\s*rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)\s*$")


def _check_value(key: str, value: Any, shape: Mapping[str, Any], origin: str) -> tuple[bool, Any]:
	"""
	Validate one property value; arrays are filtered rather than rejected.

	Returns (keep, value).
	"""
	if key in ARRAY_KEYS:
		if not isinstance(value, list):
			logger.warning("%s: dropping '%s', expected an array", origin, key)
			return False, None
		res = filter_valid(value, shape)
		if res.rejected:
			logger.warning("%s: dropped %d invalid element(s) of '%s'", origin, res.rejected, key)
		accepted = res.accepted
		if key == "barcodes":
			accepted = [with_barcode_defaults(b) for b in accepted]
		return True, accepted
	if isinstance(value, Mapping):
		value = dict(value)
	if not is_valid(value, shape):
		logger.warning("%s: dropping invalid value for '%s'", origin, key)
		return False, None
	if key == "barcode":
		value = with_barcode_defaults(value)
	return True, copy.deepcopy(value)


def validate_template_props(metadata: Mapping[str, Any], category: PassCategory) -> dict[str, Any]:
	"""Return the template's top-level properties, category payload excluded."""
	out: dict[str, Any] = {}
	for key, value in metadata.items():
		if key == category.value:
			continue
		shape = TEMPLATE_PROPS.get(key)
		if shape is None:
			out[key] = copy.deepcopy(value)
			continue
		keep, checked = _check_value(key, value, shape, "template")
		if keep:
			out[key] = checked
	return out


def validate_overrides(overrides: Any) -> dict[str, Any]:
	"""
	Keep whitelisted override keys whose values pass their schema.

	A non-mapping `overrides` is a construction error; everything else drops.
	"""
	if overrides is None:
		return {}
	if not isinstance(overrides, Mapping):
		raise ConstructionError("OVV_KEYS_BADFORMAT", "overrides must be a mapping of pass keys to values")
	out: dict[str, Any] = {}
	for key, value in overrides.items():
		shape = OVERRIDES.get(key)
		if shape is None:
			logger.warning("overrides: dropping unsupported key '%s'", key)
			continue
		keep, checked = _check_value(key, value, shape, "overrides")
		if keep:
			out[key] = checked
	return out


def merge_props(template: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
	merged = dict(template)
	merged.update(overrides)
	return merged


def is_valid_rgb(value: Any) -> bool:
	if not isinstance(value, str):
		return False
	m = _RGB.match(value)
	if m is None:
		return False
	return all(0 <= int(g) <= 255 for g in m.groups())


def drop_invalid_colors(props: dict[str, Any]) -> None:
	for key in COLOR_KEYS:
		if key in props and not is_valid_rgb(props[key]):
			logger.warning("dropping '%s': %r is not an rgb(r, g, b) color", key, props[key])
			del props[key]


def w3c_date(value: Any) -> str | None:
	"""
	Format a datetime as a W3C date string (`YYYY-MM-DDTHH:MM:SS+HH:MM`).

	Naive datetimes are read as local time. Non-datetime values return None.
	"""
	if not isinstance(value, _dt.datetime):
		return None
	if value.tzinfo is None:
		value = value.astimezone()
	return value.replace(microsecond=0).isoformat()


def barcodes_from_message(message: str) -> list[dict[str, Any]]:
	"""Build one barcode per supported format, all carrying `message`."""
	if not isinstance(message, str) or not message:
		return []
	out = []
	for fmt in BARCODE_FORMATS:
		barcode = with_barcode_defaults({"format": fmt, "message": message})
		if is_valid(barcode, BARCODE):
			out.append(barcode)
	return out
