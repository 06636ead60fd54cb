#!/usr/bin/env python3
"""Host collaborator contract for the release plugin.

The release orchestration tool owns the shared release context, the log sink,
the dry-run flag and the lifecycle order (`release()` once per run, then
`after_release()` once all plugins have released). The plugin depends only on
the protocols below; `LocalHost` is a standalone implementation used by the
command-line runner and the tests.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


class ReleaseLog(Protocol):
    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def verbose(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...


class ReleaseHost(Protocol):
    log: ReleaseLog
    is_dry_run: bool

    def get_context(self, key: Optional[str] = None) -> Any: ...

    def set_context(self, key: str, value: Any) -> None: ...

    def exec(self, command: str) -> str: ...


class LoggingReleaseLog:
    """ReleaseLog backed by a stdlib logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("gitea_release")

    def error(self, message: str) -> None:
        self.logger.error(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def verbose(self, message: str) -> None:
        self.logger.debug(message)

    def warn(self, message: str) -> None:
        self.logger.warning(message)


def _lookup(data: Dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


@dataclass
class LocalHost:
    """In-process host: a dict context, a logging sink and a dry-run flag."""

    context: Dict[str, Any] = field(default_factory=dict)
    log: ReleaseLog = field(default_factory=LoggingReleaseLog)
    is_dry_run: bool = False

    def get_context(self, key: Optional[str] = None) -> Any:
        if key is None:
            return self.context
        return _lookup(self.context, key)

    def set_context(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self.context
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    def exec(self, command: str) -> str:
        self.log.verbose(f"$ {command}")
        if self.is_dry_run:
            return ""
        result = subprocess.run(command, shell=True, check=True, capture_output=True, text=True)
        return result.stdout.strip()
