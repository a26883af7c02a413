# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bundle assembly for one pass.

The generation pipeline (`pipeline`) takes the template files, prunes
personalization, merges localization string tables, digests the final file
set into `manifest.json`, signs it and writes the archive.
"""

from __future__ import annotations

__all__ = [
	"archive",
	"l10n",
	"manifest",
	"personalization",
	"pipeline",
]
