# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

__all__ = [
	"identity",
	"signature",
]
