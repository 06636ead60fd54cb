#!/usr/bin/env python3
"""Resolve the release title and notes from their configured values.

A configured value is one of:
  - `npm:<provider>`: look up a registered text provider and call its
    `releaseTitle` / `releaseNotes` with the full release context
  - a plain template string, interpolated against the context
  - a callable taking the context and returning the text
Anything else falls back to the raw `version` / `changelog` context fields.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from utils.interpolation import interpolate

logger = logging.getLogger(__name__)

PROVIDER_PREFIX = "npm:"

# identifier -> zero-arg loader returning an object with releaseTitle/releaseNotes
_PROVIDERS: Dict[str, Callable[[], Any]] = {}

_FALLBACK_FIELDS = {"releaseTitle": "version", "releaseNotes": "changelog"}
_SNAKE_NAMES = {"releaseTitle": "release_title", "releaseNotes": "release_notes"}


class ExternalModuleError(Exception):
    def __init__(self, module: str):
        super().__init__(f"{module} not found")
        self.module = module
        self.code = "MODULE_NOT_FOUND"


def register_text_provider(name: str, loader: Callable[[], Any]) -> None:
    _PROVIDERS[name] = loader


def unregister_text_provider(name: str) -> None:
    _PROVIDERS.pop(name, None)


def _provider_handler(module: str, field: str) -> Callable[..., Any]:
    loader = _PROVIDERS.get(module)
    if loader is None:
        raise ExternalModuleError(module)
    try:
        provider = loader()
    except Exception as e:
        logger.error(f"Text provider {module} failed to load: {e}")
        raise ExternalModuleError(module) from e
    handler = getattr(provider, field, None) or getattr(provider, _SNAKE_NAMES[field], None)
    if handler is None and isinstance(provider, Mapping):
        handler = provider.get(field) or provider.get(_SNAKE_NAMES[field])
    if not callable(handler):
        raise ExternalModuleError(module)
    return handler


def resolve_release_text(value: Optional[Any], field: str, context: Mapping[str, Any]) -> str:
    """Resolve `releaseTitle` or `releaseNotes` to its final text.

    Raises:
        ExternalModuleError: if an `npm:` provider is unknown, fails to load,
            or does not expose a callable for `field`
    """
    if isinstance(value, str):
        if value.startswith(PROVIDER_PREFIX):
            module = value[len(PROVIDER_PREFIX):]
            return _provider_handler(module, field)(context)
        return interpolate(value, context)
    if callable(value):
        return value(context)
    raw = context.get(_FALLBACK_FIELDS[field])
    return "" if raw is None else str(raw)


def resolve_release_title(value: Optional[Any], context: Mapping[str, Any]) -> str:
    return resolve_release_text(value, "releaseTitle", context)


def resolve_release_notes(value: Optional[Any], context: Mapping[str, Any]) -> str:
    return resolve_release_text(value, "releaseNotes", context)
