# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Display fields of a pass.

A pass has five field slots. Field keys must be unique across all of them, so
the slots of one pass share a single key registry owned by `FieldCollection`.
Inserting a duplicate key raises `DuplicateKeyError` and leaves every slot
unchanged; fields that fail schema validation are dropped and logged.

Not internally synchronized: one owner mutates a pass at a time.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, Iterator, Mapping

from passkit.errors import DuplicateKeyError
from passkit.model import FIELD_SLOTS
from passkit.schemas import FIELD, is_valid

logger = logging.getLogger(__name__)


class FieldSlot:
	"""An ordered list of fields backed by the owning collection's key registry."""

	def __init__(self, name: str, owner: "FieldCollection") -> None:
		self.name = name
		self._owner = owner
		self._items: list[dict[str, Any]] = []

	def __iter__(self) -> Iterator[dict[str, Any]]:
		return iter(self.to_list())

	def __len__(self) -> int:
		return len(self._items)

	def __getitem__(self, index: int) -> dict[str, Any]:
		# Copies: a key edited in place would bypass the shared registry.
		return copy.deepcopy(self._items[index])

	def __repr__(self) -> str:
		return f"FieldSlot({self.name!r}, {self._items!r})"

	def keys(self) -> list[str]:
		return [f["key"] for f in self._items]

	def append(self, *fields: Mapping[str, Any]) -> int:
		"""Append fields in order; returns the new slot length."""
		accepted = self._owner._admit(self.name, fields)
		self._items.extend(accepted)
		return len(self._items)

	def extend(self, fields: Iterable[Mapping[str, Any]]) -> int:
		return self.append(*fields)

	def insert(self, index: int, *fields: Mapping[str, Any]) -> int:
		accepted = self._owner._admit(self.name, fields)
		self._items[index:index] = accepted
		return len(self._items)

	def pop(self, index: int = -1) -> dict[str, Any]:
		field = self._items.pop(index)
		self._owner._release(field["key"])
		return field

	def clear(self) -> None:
		for field in self._items:
			self._owner._release(field["key"])
		self._items.clear()

	def to_list(self) -> list[dict[str, Any]]:
		return copy.deepcopy(self._items)

	def _take(self, key: str) -> dict[str, Any] | None:
		for i, field in enumerate(self._items):
			if field["key"] == key:
				return self.pop(i)
		return None


class FieldCollection:
	"""The five field slots of one pass plus their shared key registry."""

	def __init__(self) -> None:
		self._keys: set[str] = set()
		self._slots: dict[str, FieldSlot] = {name: FieldSlot(name, self) for name in FIELD_SLOTS}

	def __len__(self) -> int:
		return len(self._keys)

	def __contains__(self, key: object) -> bool:
		return key in self._keys

	def slot(self, name: str) -> FieldSlot:
		try:
			return self._slots[name]
		except KeyError:
			raise ValueError(f"unknown field slot '{name}'") from None

	def insert(self, slot: str, field: Mapping[str, Any]) -> int:
		return self.slot(slot).append(field)

	def remove(self, key: str) -> dict[str, Any] | None:
		"""Remove the field with `key` from whichever slot holds it."""
		if key not in self._keys:
			return None
		for s in self._slots.values():
			field = s._take(key)
			if field is not None:
				return field
		return None

	def load(self, fields: Mapping[str, Iterable[Any]]) -> None:
		"""Load template fields slot by slot (invalid ones are dropped)."""
		for name in FIELD_SLOTS:
			self.slot(name).extend(fields.get(name) or [])

	def as_dict(self) -> dict[str, list[dict[str, Any]]]:
		return {name: s.to_list() for name, s in self._slots.items()}

	def _admit(self, slot: str, fields: Iterable[Any]) -> list[dict[str, Any]]:
		accepted: list[dict[str, Any]] = []
		batch: set[str] = set()
		for field in fields:
			if not isinstance(field, Mapping) or not is_valid(dict(field), FIELD):
				logger.warning("dropping invalid field in %s: %r", slot, field)
				continue
			key = field["key"]
			if key in self._keys or key in batch:
				raise DuplicateKeyError("DUPLICATE_FIELD_KEY", "field key already used in this pass", key=key)
			batch.add(key)
			accepted.append(copy.deepcopy(dict(field)))
		self._keys.update(batch)
		return accepted

	def _release(self, key: str) -> None:
		self._keys.discard(key)
