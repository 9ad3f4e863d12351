"""
Source resolution for loaded configuration scripts.

A resolver turns a source reference (usually a path) into script text. The
registry core never touches the filesystem directly: existence checks for
``if_exists`` and reads both go through the resolver, so embedding
applications can supply their own.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from errors import ErrorCode, SourceNotFoundError

logger = logging.getLogger(__name__)

SourceRef = Union[str, Path]

DEFAULT_SUFFIX = ".conf"


class SourceResolver:
    """
    Interface for locating and reading configuration sources.

    ``locate`` turns a reference into a canonical key (relative references
    may depend on the source that is currently loading), ``exists`` answers
    the existence question and ``read`` returns the text.
    """

    def locate(self, source: SourceRef, relative_to: Optional[str] = None) -> str:
        raise NotImplementedError

    def exists(self, source: str) -> bool:
        raise NotImplementedError

    def read(self, source: str) -> str:
        raise NotImplementedError


class FileSourceResolver(SourceResolver):
    """
    Resolve sources on the local filesystem.

    Relative references are resolved against the directory of the source
    that loads them, or against ``base_dir`` at the top level.
    """

    def __init__(self, base_dir: Optional[SourceRef] = None, encoding: str = "utf-8"):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.encoding = encoding

    def locate(self, source: SourceRef, relative_to: Optional[str] = None) -> str:
        path = Path(source).expanduser()
        if not path.is_absolute():
            anchor = Path(relative_to).parent if relative_to else self.base_dir
            path = anchor / path
        return str(path)

    def exists(self, source: str) -> bool:
        return Path(source).is_file()

    def read(self, source: str) -> str:
        path = Path(source)
        if not path.is_file():
            raise SourceNotFoundError(
                f"Configuration source not found: {path}",
                details={"source": str(path)}
            )
        try:
            with open(path, "r", encoding=self.encoding) as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceNotFoundError(
                f"Error reading configuration source {path}: {e}",
                ErrorCode.SOURCE_READ_ERROR,
                {"source": str(path)}
            ) from e


class DictSourceResolver(SourceResolver):
    """
    Resolve sources from an in-memory mapping of name to script text.

    Useful for embedding configuration in an application and in tests.
    """

    def __init__(self, sources: Optional[Dict[str, str]] = None):
        self.sources: Dict[str, str] = dict(sources or {})

    def add(self, name: str, text: str) -> None:
        self.sources[name] = text

    def locate(self, source: SourceRef, relative_to: Optional[str] = None) -> str:
        return str(source)

    def exists(self, source: str) -> bool:
        return source in self.sources

    def read(self, source: str) -> str:
        try:
            return self.sources[source]
        except KeyError:
            raise SourceNotFoundError(
                f"Configuration source not found: {source}",
                details={"source": source}
            ) from None


def candidate_sources(
    name: str,
    environment: Optional[str] = None,
    suffix: str = DEFAULT_SUFFIX
) -> List[Tuple[str, bool]]:
    """
    Build the ordered list of candidate sources for a configuration.

    The base source is required; the per-environment source and the local
    override are applied only when they exist.

    Args:
        name: Configuration name
        environment: Deployment environment (e.g. "production")
        suffix: File suffix for sources

    Returns:
        List of ``(source, if_exists)`` pairs in application order
    """
    candidates = [(f"{name}{suffix}", False)]
    if environment:
        candidates.append((f"{environment}/{name}{suffix}", True))
    candidates.append((f"{name}.local{suffix}", True))
    return candidates


def load_sources(namespace, sources: List[Tuple[SourceRef, bool]]) -> List[str]:
    """
    Apply several sources to ``namespace`` in order.

    Later sources override settings made by earlier ones.

    Args:
        namespace: Namespace receiving the statements
        sources: ``(source, if_exists)`` pairs

    Returns:
        The sources that were applied (skipped ones are left out)
    """
    applied = []
    for source, if_exists in sources:
        if namespace.load(source, if_exists=if_exists):
            applied.append(str(source))
    logger.debug(f"Applied {len(applied)} of {len(sources)} sources to '{namespace.path}'")
    return applied
