# =============================================================================
# Address Resolver
# =============================================================================
# Target = ById(tab_id) | ByPosition(window_index, tab_index)
#
# ById always re-derives coordinates from a snapshot fetched for this request,
# so tabs opened, closed, reordered or moved since the caller last listed do
# not matter. ByPosition is the deprecated path: coordinates pass straight
# through and stale ones fail (or hit the wrong tab) inside the bridge.

from dataclasses import dataclass
from typing import Callable, Union

from loguru import logger

from .directory import LocatedTab, PositionalAddress, Snapshot, TabDirectory
from .errors import Result


@dataclass(frozen=True)
class ById:
    tab_id: int


@dataclass(frozen=True)
class ByPosition:
    window_index: int
    tab_index: int


Target = Union[ById, ByPosition]


@dataclass(frozen=True)
class ResolvedAddress:
    """Where to send a mutation.

    ``located`` is set only for identity targets; positional targets are
    never checked against a snapshot.
    """
    address: PositionalAddress
    located: LocatedTab | None = None

    @property
    def verified(self) -> bool:
        return self.located is not None


def resolve_against(target: Target, directory: TabDirectory | None = None) -> Result[ResolvedAddress]:
    """Resolve a target using an already-fetched directory.

    Positional targets never consult the directory, so it may be omitted.
    """
    if isinstance(target, ByPosition):
        return Result.ok(ResolvedAddress(
            address=PositionalAddress(target.window_index, target.tab_index)
        ))

    found = directory.lookup_by_id(target.tab_id)
    if found.is_err():
        return found
    return Result.ok(ResolvedAddress(address=found.value.address, located=found.value))


class AddressResolver:
    """Resolve targets, fetching a fresh snapshot for every identity lookup.

    Args:
        fetch_snapshot: Callable returning ``Result[Snapshot]`` straight from
            the bridge. It is called once per identity resolution and its
            result is never reused.
    """

    def __init__(self, fetch_snapshot: Callable[[], Result[Snapshot]]):
        self._fetch_snapshot = fetch_snapshot

    def resolve(self, target: Target) -> Result[ResolvedAddress]:
        if isinstance(target, ByPosition):
            logger.debug(
                "Positional target passed through unverified",
                operation="resolve",
                status="legacy",
                window_index=target.window_index,
                tab_index=target.tab_index
            )
            return resolve_against(target)

        fetched = self._fetch_snapshot()
        if fetched.is_err():
            return fetched

        resolved = resolve_against(target, TabDirectory(fetched.value))
        if resolved.is_ok():
            logger.debug(
                "Tab id resolved",
                operation="resolve",
                status="success",
                tab_id=target.tab_id,
                address=str(resolved.value.address)
            )
        return resolved
