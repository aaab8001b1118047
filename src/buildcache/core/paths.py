"""Cache path resolution."""

import re
from collections.abc import Collection

from ..ports import LoggerPort
from .errors import ConfigError
from .models import CachePaths

DEFAULT_BRANCH = "master"
PATH_NAMES = ("path", "fallback_path", "flush_path")

_DOUBLE_SLASH = re.compile(r"/{2,}")


def _default_path(*parts: str) -> str:
    path = "/" + "/".join(parts) + "/"
    return _DOUBLE_SLASH.sub("/", path)


def resolve_paths(
    path: str,
    fallback_path: str,
    flush_path: str,
    owner: str,
    repo: str,
    branch: str = DEFAULT_BRANCH,
    logger: LoggerPort | None = None,
    required: Collection[str] = PATH_NAMES,
) -> CachePaths:
    """Resolve the primary path, fallback path and flush prefix.

    Explicit values are used verbatim. Missing ones default to
    ``/<owner>/<repo>/<branch>/``, ``/<owner>/<repo>/master/`` and
    ``/<owner>/<repo>/``.

    Args:
        required: Names of the paths the caller will use. A missing path
            outside this set is left empty when owner or repo is unknown.

    Raises:
        ConfigError: If a required path needs defaulting but owner or repo
            is empty.
    """
    branch = branch or DEFAULT_BRANCH
    identity = bool(owner and repo)

    def can_default(name: str) -> bool:
        if not identity:
            if name in required:
                raise ConfigError(
                    f"No {name} specified and repository owner/name are missing; "
                    f"cannot create default {name}"
                )
            return False
        if logger is not None:
            logger.info(f"No {name} specified. Creating default")
        return True

    if not path and can_default("path"):
        path = _default_path(owner, repo, branch)

    if not fallback_path and can_default("fallback_path"):
        fallback_path = _default_path(owner, repo, DEFAULT_BRANCH)

    if not flush_path and can_default("flush_path"):
        flush_path = _default_path(owner, repo)

    return CachePaths(path=path, fallback_path=fallback_path, flush_path=flush_path)
