# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pass construction from independent inputs.

The template and the signing identity come from separate collaborators. They
are acquired concurrently, and both must succeed before a `Pass` is built: the
first failure aborts the whole operation and no pass is produced.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Mapping, Union

from passkit.config import PassConfig
from passkit.errors import ConstructionError, translate_io_error
from passkit.model import PartitionedBundle
from passkit.pkpass import Pass
from passkit.signing.identity import SigningIdentity

logger = logging.getLogger(__name__)

ModelSource = Union[PartitionedBundle, Callable[[], PartitionedBundle]]
IdentitySource = Union[SigningIdentity, Callable[[], SigningIdentity]]


def _resolve(source: Any) -> Any:
	return source() if callable(source) else source


def create_pass(
	model: ModelSource,
	identity: IdentitySource,
	*,
	overrides: Mapping[str, Any] | None = None,
	config: PassConfig | None = None,
) -> Pass:
	"""
	Acquire model and identity, then build the pass.

	`model` and `identity` are either ready values or zero-argument loaders.
	Loaders run concurrently; a missing-path `OSError` from either is reported
	as `ModelNotFound`, any other error propagates unchanged.
	"""
	if model is None or identity is None:
		raise ConstructionError("REQUIR_VALID_FAILED", "create_pass requires a model and a signing identity")

	pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="passkit-load")
	try:
		futures = [pool.submit(_resolve, model), pool.submit(_resolve, identity)]
		done, _ = wait(futures, return_when=FIRST_EXCEPTION)
		for fut in futures:
			if fut in done and fut.exception() is not None:
				err = fut.exception()
				logger.debug("pass inputs failed to load: %s", err)
				if isinstance(err, OSError):
					translated = translate_io_error(err)
					if translated is not err:
						raise translated from err
				raise err
		loaded_model, loaded_identity = (f.result() for f in futures)
	finally:
		# A still-running loader is left to finish on its own.
		pool.shutdown(wait=False, cancel_futures=True)

	return Pass(loaded_model, loaded_identity, overrides=overrides, config=config)
