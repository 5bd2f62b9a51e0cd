"""
Canonical snapshot loaders.

A snapshot is a YAML or JSON mapping using the canonical field names of
``RestApiSpec``, ``AsyncApiSpec`` or ``ProtoFile``.  Parsing raw OpenAPI,
AsyncAPI or ``.proto`` text is the job of an upstream parser; these loaders
only read and validate its output.

Each format has one loader class, registered by its ``api_format``.  Loaded
snapshots are cached per file version (path, mtime, size), so a snapshot
rewritten between two comparisons in the same process is read again.

Usage::

    from pathlib import Path
    from apidelta.loader import load_snapshot
    from apidelta.types import ApiFormat

    old = load_snapshot(Path("snapshots/orders-1.4.0.yaml"), ApiFormat.ASYNCAPI)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import ClassVar, Generic, TypeVar, Union

import yaml
from pydantic import BaseModel

from apidelta.canonical.asyncapi import AsyncApiSpec
from apidelta.canonical.proto import ProtoFile
from apidelta.canonical.rest import RestApiSpec
from apidelta.types import ApiFormat

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_CacheKey = tuple[str, int, int]


class BaseSnapshotLoader(Generic[T]):
    """Reads and validates canonical snapshots of one API format.

    Subclasses set ``api_format`` and ``model_class``; defining a subclass
    registers it for ``for_format``.
    """

    api_format: ClassVar[ApiFormat]
    model_class: ClassVar[type[BaseModel]]

    _registry: ClassVar[dict[ApiFormat, type[BaseSnapshotLoader]]] = {}
    _cache: ClassVar[dict[_CacheKey, BaseModel]]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._cache = {}
        BaseSnapshotLoader._registry[cls.api_format] = cls

    @classmethod
    def for_format(cls, api_format: ApiFormat) -> type[BaseSnapshotLoader]:
        return cls._registry[api_format]

    @classmethod
    def clear_cache(cls) -> None:
        cls._cache.clear()

    def load(self, path: Union[Path, str]) -> T:
        """Load a snapshot file; ``.json`` files are read as JSON, others as YAML.

        Raises:
            FileNotFoundError: If the file does not exist.
            TypeError: If the document root is not a mapping.
            yaml.YAMLError: If a YAML file is malformed.
            json.JSONDecodeError: If a ``.json`` file is malformed.
            pydantic.ValidationError: If the mapping does not match the model.
        """
        path = Path(path)
        try:
            stat = path.stat()
        except FileNotFoundError:
            raise FileNotFoundError(f"Snapshot file not found: {path}") from None

        key = (str(path.resolve()), stat.st_mtime_ns, stat.st_size)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("%s snapshot cache hit: %s", self.api_format.value, path)
            return cached  # type: ignore[return-value]

        snapshot = self.parse(
            path.read_text(encoding="utf-8"),
            source=str(path),
            as_json=path.suffix.lower() == ".json",
        )
        self._cache[key] = snapshot
        logger.debug(
            "Loaded %s snapshot %s: %s", self.api_format.value, path, self.describe(snapshot)
        )
        return snapshot

    def load_from_string(self, text: str) -> T:
        """Validate a snapshot held in memory (YAML, which also accepts JSON)."""
        return self.parse(text, source="<string>")

    def parse(self, text: str, source: str, as_json: bool = False) -> T:
        raw = json.loads(text) if as_json else yaml.safe_load(text)
        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected mapping at root of {source}, got {type(raw).__name__}"
            )
        return self.model_class.model_validate(raw)  # type: ignore[return-value]

    def describe(self, snapshot: T) -> str:
        return type(snapshot).__name__


class RestSnapshotLoader(BaseSnapshotLoader[RestApiSpec]):
    api_format = ApiFormat.REST
    model_class = RestApiSpec

    def describe(self, snapshot: RestApiSpec) -> str:
        return f"{len(snapshot.endpoints)} endpoint(s), {len(snapshot.schemas)} schema(s)"


class AsyncApiSnapshotLoader(BaseSnapshotLoader[AsyncApiSpec]):
    api_format = ApiFormat.ASYNCAPI
    model_class = AsyncApiSpec

    def describe(self, snapshot: AsyncApiSpec) -> str:
        return (
            f"AsyncAPI {snapshot.asyncapi_version}, "
            f"{len(snapshot.channels)} channel(s)"
        )


class ProtoSnapshotLoader(BaseSnapshotLoader[ProtoFile]):
    api_format = ApiFormat.GRPC
    model_class = ProtoFile

    def describe(self, snapshot: ProtoFile) -> str:
        return (
            f"package {snapshot.package or '<none>'}, "
            f"{len(snapshot.messages)} message(s), {len(snapshot.services)} service(s)"
        )


def load_snapshot(path: Union[Path, str], api_format: ApiFormat) -> BaseModel:
    """Load a canonical snapshot of the given format."""
    return BaseSnapshotLoader.for_format(api_format)().load(path)
