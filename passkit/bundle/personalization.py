# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Personalization pruning.

Reward-enrollment personalization is only available to NFC passes. A pass
without an NFC payload must never carry `personalization.json` or any
`personalizationLogo*` image, and neither may a pass whose personalization
descriptor is empty, unparsable, invalid, or missing its logo.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from passkit.model import PERSONALIZATION_FILE, PERSONALIZATION_LOGO_PREFIX
from passkit.schemas import PERSONALIZATION, validation_errors

logger = logging.getLogger(__name__)


def personalization_files(names: list[str]) -> list[str]:
	return [n for n in names if n == PERSONALIZATION_FILE or n.startswith(PERSONALIZATION_LOGO_PREFIX)]


def personalization_problem(bundle: Mapping[str, bytes], props: Mapping[str, Any]) -> str | None:
	"""Return why personalization must be removed, or None when it may stay."""
	if not props.get("nfc"):
		return "pass has no nfc payload"
	if not any(n.startswith(PERSONALIZATION_LOGO_PREFIX) for n in bundle):
		return "no personalizationLogo file"
	data = bundle[PERSONALIZATION_FILE]
	if not data:
		return "personalization.json is empty"
	try:
		obj = json.loads(data.decode("utf-8"))
	except (UnicodeDecodeError, json.JSONDecodeError) as err:
		return f"personalization.json is not valid JSON ({err})"
	errors = validation_errors(obj, PERSONALIZATION)
	if errors:
		return "personalization.json is invalid: " + "; ".join(errors)
	return None


def prune_personalization(bundle: dict[str, bytes], props: Mapping[str, Any]) -> list[str]:
	"""
	Delete personalization files from `bundle` when they are not allowed.

	Returns the removed file names (sorted).
	"""
	if PERSONALIZATION_FILE not in bundle:
		return []
	problem = personalization_problem(bundle, props)
	if problem is None:
		return []
	removed = sorted(personalization_files(list(bundle)))
	for name in removed:
		del bundle[name]
	logger.info("removed personalization files %s: %s", removed, problem)
	return removed
