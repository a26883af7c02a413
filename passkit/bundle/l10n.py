# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Localization string tables.

Translations are staged per language and rendered at generation time into
`pass.strings`, one `"placeholder" = "translation";` entry per line, UTF-8.
Rendered entries are appended after whatever `pass.strings` the template
already carries for that language, so template entries come first.

Every file of a language folder is then flattened into the final bundle as
`<lang>.lproj/<file>` with forward slashes, whatever the host platform.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from passkit.model import L10N_SUFFIX, STRINGS_FILE, l10n_folder_name

logger = logging.getLogger(__name__)

_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"\\": "\\", '"': '"', "n": "\n", "r": "\r", "t": "\t"}

_TOKEN = re.compile(
	r'/\*.*?\*/|//[^\n]*|"((?:[^"\\]|\\.)*)"\s*=\s*"((?:[^"\\]|\\.)*)"\s*;',
	re.S,
)
_UNESCAPE = re.compile(r"\\(.)", re.S)


def _escape(text: str) -> str:
	return "".join(_ESCAPES.get(ch, ch) for ch in text)


def _unescape(text: str) -> str:
	return _UNESCAPE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(1)), text)


def render_strings(translations: Mapping[str, str]) -> bytes:
	"""Render translations as string-table bytes; empty input gives b""."""
	lines = [f'"{_escape(k)}" = "{_escape(v)}";' for k, v in translations.items()]
	return "\n".join(lines).encode("utf-8")


def parse_strings(data: bytes) -> dict[str, str]:
	"""
	Parse string-table bytes back into a mapping.

	Comments are ignored; later duplicates win, as on device.
	"""
	out: dict[str, str] = {}
	for m in _TOKEN.finditer(data.decode("utf-8-sig")):
		if m.group(1) is None:
			continue
		out[_unescape(m.group(1))] = _unescape(m.group(2))
	return out


def merge_strings(existing: bytes, rendered: bytes) -> bytes:
	if not rendered:
		return existing
	if existing and not existing.endswith(b"\n"):
		existing += b"\n"
	return existing + rendered


def language_code(lang: str) -> str:
	"""Return the bare language code (`fr.lproj` -> `fr`)."""
	return lang[: -len(L10N_SUFFIX)] if lang.endswith(L10N_SUFFIX) else lang


def flatten_folder(folder: str, files: Mapping[str, bytes]) -> dict[str, bytes]:
	out: dict[str, bytes] = {}
	for name, data in files.items():
		path = f"{folder}/{name}".replace("\\", "/")
		out[path] = data
	return out


class LocalizationMerger:
	"""
	Staged translations for one pass.

	`stage` replaces any earlier mapping for the language; `fr` and `fr.lproj`
	name the same language. An empty mapping is legal: it stages nothing new
	but keeps template string tables intact.
	"""

	def __init__(self) -> None:
		self._staged: dict[str, dict[str, str]] = {}

	def __contains__(self, lang: object) -> bool:
		return isinstance(lang, str) and language_code(lang) in self._staged

	@property
	def languages(self) -> list[str]:
		return list(self._staged)

	def stage(self, lang: str, translations: Mapping[str, Any] | None = None) -> None:
		self._staged[language_code(lang)] = {str(k): str(v) for k, v in (translations or {}).items()}

	def translations(self, lang: str) -> dict[str, str]:
		return dict(self._staged.get(language_code(lang), {}))

	def merge(self, template: Mapping[str, Mapping[str, bytes]]) -> dict[str, bytes]:
		"""
		Return the flattened localization files for the final bundle.

		Staged languages are processed last-staged first, then template
		folders without staged translations. `template` is not modified.
		"""
		out: dict[str, bytes] = {}
		done: set[str] = set()
		for lang in reversed(list(self._staged)):
			folder = l10n_folder_name(lang)
			files = dict(template.get(folder, {}))
			rendered = render_strings(self._staged[lang])
			if rendered:
				files[STRINGS_FILE] = merge_strings(files.get(STRINGS_FILE, b""), rendered)
			done.add(folder)
			if not files:
				logger.debug("skipping empty localization folder %s", folder)
				continue
			out.update(flatten_folder(folder, files))
		for folder, files in template.items():
			if folder in done or not files:
				continue
			out.update(flatten_folder(folder, files))
		return out
