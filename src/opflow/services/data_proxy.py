"""CRUD data-access capabilities invoked from a command's execute hook.

Implementations live outside opflow. They signal recoverable failures
(not found, conflict, backend unavailable) by raising ServiceException so
the pipeline reports them as failure results.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
K = TypeVar("K")


@runtime_checkable
class SupportsGetAll(Protocol[T]):
    def get_all(self) -> Sequence[T]: ...


@runtime_checkable
class SupportsGetById(Protocol[T, K]):
    def get_by_id(self, id: K) -> T: ...


@runtime_checkable
class SupportsInsert(Protocol[T]):
    def insert(self, entity: T) -> T: ...


@runtime_checkable
class SupportsUpdate(Protocol[T]):
    def update(self, entity: T) -> T: ...


@runtime_checkable
class SupportsDelete(Protocol[K]):
    def delete(self, id: K) -> None: ...


@runtime_checkable
class SupportsCRUD(
    SupportsGetAll[T],
    SupportsGetById[T, K],
    SupportsInsert[T],
    SupportsUpdate[T],
    SupportsDelete[K],
    Protocol[T, K],
):
    """Full synchronous data proxy."""


@runtime_checkable
class AsyncSupportsCRUD(Protocol[T, K]):
    """Full asynchronous data proxy, for use with ``Command.execute_async``."""

    async def get_all(self) -> Sequence[T]: ...

    async def get_by_id(self, id: K) -> T: ...

    async def insert(self, entity: T) -> T: ...

    async def update(self, entity: T) -> T: ...

    async def delete(self, id: K) -> None: ...
