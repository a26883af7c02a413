# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pass generation pipeline.

Stages run in a fixed order, every time, each reading what the previous one
produced:

  metadata -> personalization -> localization -> manifest -> signature -> archive

Personalization pruning needs the final properties, so it follows metadata.
The manifest digests the fully merged file set, so it follows every mutation,
and the signature covers exactly the manifest bytes that get archived.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, NamedTuple

from passkit.bundle.archive import write_archive
from passkit.bundle.l10n import LocalizationMerger
from passkit.bundle.manifest import build_manifest, manifest_bytes
from passkit.bundle.personalization import prune_personalization
from passkit.config import PassConfig
from passkit.errors import StateError
from passkit.model import PASS_FILE
from passkit.signing.identity import SigningIdentity
from passkit.signing.signature import sign_manifest

logger = logging.getLogger(__name__)


@dataclass
class GenerationContext:
	"""Working state of one `generate` call; owned by that call only."""

	bundle: dict[str, bytes]
	l10n_bundle: Mapping[str, Mapping[str, bytes]]
	localizer: LocalizationMerger
	identity: SigningIdentity
	config: PassConfig
	render_metadata: Callable[[], tuple[bytes, dict[str, Any]]]
	props: dict[str, Any] = field(default_factory=dict)
	files: dict[str, bytes] = field(default_factory=dict)
	removed: list[str] = field(default_factory=list)
	manifest: dict[str, str] = field(default_factory=dict)
	manifest_bytes: bytes = b""
	signature: bytes = b""
	archive: io.BytesIO | None = None


class Stage(NamedTuple):
	name: str
	run: Callable[[GenerationContext], None]


def _metadata(ctx: GenerationContext) -> None:
	data, props = ctx.render_metadata()
	ctx.bundle[PASS_FILE] = data
	ctx.props = props


def _personalization(ctx: GenerationContext) -> None:
	ctx.removed = prune_personalization(ctx.bundle, ctx.props)


def _localization(ctx: GenerationContext) -> None:
	l10n_files = ctx.localizer.merge(ctx.l10n_bundle)
	clash = sorted(set(l10n_files) & set(ctx.bundle))
	if clash:
		raise StateError("BUNDLE_PATH_COLLISION", "localization file collides with a root bundle file", path=clash[0])
	ctx.files = {**ctx.bundle, **l10n_files}


def _manifest(ctx: GenerationContext) -> None:
	ctx.manifest = build_manifest(ctx.files, ctx.config.digest_algorithm)
	ctx.manifest_bytes = manifest_bytes(ctx.manifest)


def _signature(ctx: GenerationContext) -> None:
	ctx.signature = sign_manifest(ctx.manifest_bytes, ctx.identity, hash_name=ctx.config.signature_hash)


def _archive(ctx: GenerationContext) -> None:
	ctx.archive = write_archive(
		ctx.files,
		manifest=ctx.manifest_bytes,
		signature=ctx.signature,
		compression=ctx.config.zip_compression,
	)


GENERATION_STAGES: tuple[Stage, ...] = (
	Stage("metadata", _metadata),
	Stage("personalization", _personalization),
	Stage("localization", _localization),
	Stage("manifest", _manifest),
	Stage("signature", _signature),
	Stage("archive", _archive),
)


def run_pipeline(ctx: GenerationContext, stages: tuple[Stage, ...] = GENERATION_STAGES) -> io.BytesIO:
	for stage in stages:
		logger.debug("generation stage: %s", stage.name)
		stage.run(ctx)
	if ctx.archive is None:
		raise StateError("ARCHIVE_NOT_WRITTEN", "generation finished without an archive stage")
	logger.debug("generated pass: %d files, %d signature bytes", len(ctx.files), len(ctx.signature))
	return ctx.archive
