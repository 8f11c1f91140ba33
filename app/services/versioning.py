"""
API Versioning Service

Version tags, handler resolution and API document partitioning.

Every exposed operation declares the versions it belongs to. At startup the
declarations are grouped by operation key (HTTP method + path template) into
an immutable VersionTable; request handling only performs lookups in it.

Resolution Rules:
=================
- No version requested: use the default version (1.0).
- Version requested: the unique candidate declaring exactly that version.
- A candidate declaring no versions is version-neutral. It answers every
  version that no explicit candidate claims.
- Two candidates claiming the same version is a registration error, raised
  when the table is built and never at request time.

Document Partitions:
====================
One API document is generated per known version. An operation belongs to a
document when it declares that document's version, or when it declares no
version at all.
"""

import logging
import re
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

H = TypeVar("H", bound=Hashable)

_VERSION_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?$")


# =============================================================================
# Errors
# =============================================================================
class VersioningError(Exception):
    """Base class for API versioning errors."""


class InvalidApiVersion(VersioningError, ValueError):
    """A version designation that is not of the form "<major>.<minor>"."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"'{raw}' is not a valid API version")


class NoMatchingVersion(VersioningError):
    """No registered handler answers the requested version."""

    def __init__(self, requested: "ApiVersion", supported: Iterable["ApiVersion"] = ()) -> None:
        self.requested = requested
        self.supported = tuple(sorted(supported))
        super().__init__(f"API version {requested} is not supported")


class AmbiguousVersionRegistration(VersioningError):
    """Two handlers for the same operation claim the same version."""

    def __init__(self, key: Hashable, version: "ApiVersion | None") -> None:
        self.key = key
        self.version = version
        claimed = "no explicit version" if version is None else f"version {version}"
        super().__init__(f"More than one handler registered for {key} with {claimed}")


# =============================================================================
# Version Tag
# =============================================================================
@dataclass(frozen=True, order=True)
class ApiVersion:
    """
    An API version tag, ordered by (major, minor).

    Example:
        >>> ApiVersion.parse("2.0")
        ApiVersion(major=2, minor=0)
        >>> str(ApiVersion(1))
        '1.0'
    """

    major: int
    minor: int = 0

    @classmethod
    def parse(cls, text: "str | ApiVersion") -> "ApiVersion":
        """
        Parse "<major>.<minor>" (or a bare "<major>", meaning minor 0).

        Raises:
            InvalidApiVersion: If the text is not a version tag
        """
        if isinstance(text, ApiVersion):
            return text
        match = _VERSION_PATTERN.match(str(text).strip())
        if match is None:
            raise InvalidApiVersion(str(text))
        return cls(int(match.group(1)), int(match.group(2) or 0))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


DEFAULT_API_VERSION = ApiVersion(1, 0)


def version_set(*versions: "str | ApiVersion") -> frozenset[ApiVersion]:
    """Build a version set from tags or their text form."""
    return frozenset(ApiVersion.parse(v) for v in versions)


def parse_requested_version(raw: str | None) -> ApiVersion | None:
    """
    Parse the version a request designates.

    Returns None when the request does not designate one.

    Raises:
        InvalidApiVersion: If a designation is present but unparsable
    """
    if raw is None or not raw.strip():
        return None
    return ApiVersion.parse(raw)


@dataclass(frozen=True)
class VersionedOperation(Generic[H]):
    """An exposed operation with the versions it declares."""

    key: Hashable
    versions: frozenset[ApiVersion]
    handler: H

    @property
    def is_version_neutral(self) -> bool:
        return not self.versions


# =============================================================================
# Handler Resolution
# =============================================================================
@dataclass(frozen=True)
class HandlerGroup(Generic[H]):
    """
    All handlers registered for one operation key.

    Build with HandlerGroup.build(), which rejects ambiguous registrations.
    """

    by_version: Mapping[ApiVersion, H]
    neutral: H | None
    has_neutral: bool
    default_version: ApiVersion = DEFAULT_API_VERSION

    @classmethod
    def build(
        cls,
        candidates: Iterable[tuple[Iterable["str | ApiVersion"], H]],
        default_version: ApiVersion = DEFAULT_API_VERSION,
        key: Hashable = None,
    ) -> "HandlerGroup[H]":
        """
        Validate and index a set of (version-set, handler) candidates.

        Raises:
            AmbiguousVersionRegistration: If two candidates claim the same
                version, or more than one candidate is version-neutral
        """
        by_version: dict[ApiVersion, H] = {}
        neutral: H | None = None
        has_neutral = False

        for versions, handler in candidates:
            declared = version_set(*versions)
            if not declared:
                if has_neutral:
                    raise AmbiguousVersionRegistration(key, None)
                neutral, has_neutral = handler, True
                continue
            for version in declared:
                if version in by_version:
                    raise AmbiguousVersionRegistration(key, version)
                by_version[version] = handler

        return cls(
            by_version=MappingProxyType(by_version),
            neutral=neutral,
            has_neutral=has_neutral,
            default_version=default_version,
        )

    @property
    def declared_versions(self) -> frozenset[ApiVersion]:
        return frozenset(self.by_version)

    def resolve(self, requested: ApiVersion | None) -> H:
        """
        Select the handler for a requested version.

        Raises:
            NoMatchingVersion: If no candidate answers the version
        """
        version = self.default_version if requested is None else requested
        if version in self.by_version:
            return self.by_version[version]
        if self.has_neutral:
            return self.neutral
        raise NoMatchingVersion(version, self.declared_versions)


def resolve_handler(
    requested: "str | ApiVersion | None",
    candidates: Iterable[tuple[Iterable["str | ApiVersion"], H]],
    default_version: ApiVersion = DEFAULT_API_VERSION,
) -> H:
    """
    Pick the handler that serves a requested version.

    Example:
        >>> candidates = [({"1.0"}, "H1"), ({"2.0"}, "H2")]
        >>> resolve_handler(None, candidates)
        'H1'
        >>> resolve_handler("2.0", candidates)
        'H2'

    Raises:
        AmbiguousVersionRegistration: If the candidates overlap
        NoMatchingVersion: If no candidate answers the version
    """
    version = None if requested is None else ApiVersion.parse(requested)
    return HandlerGroup.build(candidates, default_version).resolve(version)


class VersionTable(Generic[H]):
    """
    Immutable version dispatch table for a whole application.

    Built once from every registered operation; afterwards it is only read,
    so concurrent requests can share it without locking.
    """

    def __init__(
        self,
        groups: Mapping[Hashable, HandlerGroup[H]],
        default_version: ApiVersion,
    ) -> None:
        self._groups = MappingProxyType(dict(groups))
        self.default_version = default_version

        supported = {default_version}
        for group in self._groups.values():
            supported.update(group.declared_versions)
        self.supported_versions: frozenset[ApiVersion] = frozenset(supported)

    @classmethod
    def build(
        cls,
        operations: Iterable[VersionedOperation[H]],
        default_version: ApiVersion = DEFAULT_API_VERSION,
    ) -> "VersionTable[H]":
        """
        Group operations by key and validate every group.

        Raises:
            AmbiguousVersionRegistration: On overlapping registrations
        """
        grouped: dict[Hashable, list[tuple[frozenset[ApiVersion], H]]] = {}
        for operation in operations:
            grouped.setdefault(operation.key, []).append(
                (operation.versions, operation.handler)
            )

        groups = {
            key: HandlerGroup.build(candidates, default_version, key=key)
            for key, candidates in grouped.items()
        }
        table = cls(groups, default_version)
        logger.info(
            f"Version table built: {len(groups)} operations, "
            f"versions {', '.join(str(v) for v in sorted(table.supported_versions))}"
        )
        return table

    def __contains__(self, key: Hashable) -> bool:
        return key in self._groups

    def resolve(self, key: Hashable, requested: ApiVersion | None) -> H:
        """
        Select the handler registered under key for a requested version.

        Raises:
            NoMatchingVersion: If the version is unknown to the application
                or not answered by this operation
            KeyError: If nothing is registered under key
        """
        version = self.default_version if requested is None else requested
        if version not in self.supported_versions:
            raise NoMatchingVersion(version, self.supported_versions)
        return self._groups[key].resolve(version)

    def versions_for(self, key: Hashable) -> frozenset[ApiVersion]:
        """Every version the operation under key answers."""
        group = self._groups[key]
        if group.has_neutral:
            return self.supported_versions
        return group.declared_versions


# =============================================================================
# Document Partitions
# =============================================================================
def partition_for_document(
    document_version: ApiVersion,
    operations: Iterable[VersionedOperation[H]],
) -> frozenset[H]:
    """Operations that belong to the API document of one version."""
    return frozenset(
        operation.handler
        for operation in operations
        if operation.is_version_neutral or document_version in operation.versions
    )


def build_document_partitions(
    document_versions: Iterable[ApiVersion],
    operations: Iterable[VersionedOperation[H]],
) -> Mapping[ApiVersion, frozenset[H]]:
    """
    Compute every document partition up front.

    Returns a read-only mapping from document version to its operations.
    """
    operations = list(operations)
    return MappingProxyType(
        {
            version: partition_for_document(version, operations)
            for version in document_versions
        }
    )
