"""Keyed document store contract plus an in-process implementation.

Documents live at slash-separated paths (``users/{id}``,
``users/{id}/collections/{name}``); the collection of a document is its path
without the final segment. Updates accept plain values or the atomic field
operations defined here, and every update is applied to one document as a
single step so concurrent writers never lose each other's set members.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence


class DocumentStoreError(Exception):
	"""Base class for document store failures."""


class DocumentNotFound(DocumentStoreError):
	def __init__(self, path: str) -> None:
		super().__init__(f"document not found: {path}")
		self.path = path


@dataclass(frozen=True)
class ArrayUnion:
	"""Append each value not already present, preserving order."""

	values: tuple[Any, ...]

	def __init__(self, *values: Any) -> None:
		object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class ArrayRemove:
	"""Drop every occurrence of each value."""

	values: tuple[Any, ...]

	def __init__(self, *values: Any) -> None:
		object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class Increment:
	amount: int | float = 1


class _DeleteField:
	_instance: Optional["_DeleteField"] = None

	def __new__(cls) -> "_DeleteField":
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


@dataclass(frozen=True)
class Filter:
	field: str
	op: str
	value: Any

	def __post_init__(self) -> None:
		if self.op not in ("==", "array_contains"):
			raise ValueError(f"unsupported filter operator: {self.op}")

	def matches(self, data: Mapping[str, Any]) -> bool:
		if self.field not in data:
			return False
		current = data[self.field]
		if self.op == "==":
			return current == self.value
		return isinstance(current, list) and self.value in current


@dataclass
class DocumentSnapshot:
	path: str
	data: dict[str, Any] = field(default_factory=dict)

	@property
	def id(self) -> str:
		return self.path.rsplit("/", 1)[-1]


def split_path(path: str) -> tuple[str, str]:
	"""Return ``(collection, doc_id)`` for a document path."""
	parts = [part for part in path.strip("/").split("/") if part]
	if len(parts) < 2 or len(parts) % 2 != 0:
		raise ValueError(f"invalid document path: {path!r}")
	return "/".join(parts[:-1]), parts[-1]


def apply_changes(data: Mapping[str, Any], changes: Mapping[str, Any]) -> dict[str, Any]:
	"""Return a copy of ``data`` with field operations applied."""
	result = copy.deepcopy(dict(data))
	for key, change in changes.items():
		if change is DELETE_FIELD:
			result.pop(key, None)
		elif isinstance(change, ArrayUnion):
			current = list(result.get(key) or [])
			for value in change.values:
				if value not in current:
					current.append(value)
			result[key] = current
		elif isinstance(change, ArrayRemove):
			result[key] = [value for value in (result.get(key) or []) if value not in change.values]
		elif isinstance(change, Increment):
			result[key] = (result.get(key) or 0) + change.amount
		else:
			result[key] = copy.deepcopy(change)
	return result


def new_document_id() -> str:
	return uuid.uuid4().hex[:20]


class DocumentStore(Protocol):
	async def get(self, path: str) -> Optional[dict[str, Any]]:
		...

	async def set(self, path: str, data: Mapping[str, Any]) -> None:
		...

	async def update(self, path: str, changes: Mapping[str, Any]) -> None:
		...

	async def delete(self, path: str) -> None:
		...

	async def add(self, collection: str, data: Mapping[str, Any]) -> str:
		...

	async def query(
		self,
		collection: str,
		*,
		where: Sequence[Filter] = (),
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
	) -> list[DocumentSnapshot]:
		...

	async def close(self) -> None:
		...


def _sort_key(field_name: str):
	def key(snapshot: DocumentSnapshot) -> tuple[int, Any]:
		value = snapshot.data.get(field_name)
		return (value is None, value if value is not None else 0)

	return key


class InMemoryDocumentStore(DocumentStore):
	"""Dictionary-backed store used for local runs and tests.

	Each operation completes without suspending, so on a single event loop
	every call is atomic.
	"""

	def __init__(self, documents: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
		self.documents: dict[str, dict[str, Any]] = {}
		for path, data in (documents or {}).items():
			split_path(path)
			self.documents[path.strip("/")] = copy.deepcopy(dict(data))

	async def get(self, path: str) -> Optional[dict[str, Any]]:
		split_path(path)
		data = self.documents.get(path.strip("/"))
		return copy.deepcopy(data) if data is not None else None

	async def set(self, path: str, data: Mapping[str, Any]) -> None:
		split_path(path)
		self.documents[path.strip("/")] = copy.deepcopy(dict(data))

	async def update(self, path: str, changes: Mapping[str, Any]) -> None:
		split_path(path)
		key = path.strip("/")
		if key not in self.documents:
			raise DocumentNotFound(key)
		self.documents[key] = apply_changes(self.documents[key], changes)

	async def delete(self, path: str) -> None:
		split_path(path)
		self.documents.pop(path.strip("/"), None)

	async def add(self, collection: str, data: Mapping[str, Any]) -> str:
		doc_id = new_document_id()
		await self.set(f"{collection.strip('/')}/{doc_id}", data)
		return doc_id

	async def query(
		self,
		collection: str,
		*,
		where: Sequence[Filter] = (),
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
	) -> list[DocumentSnapshot]:
		prefix = collection.strip("/")
		results: list[DocumentSnapshot] = []
		for path, data in self.documents.items():
			parent, _ = split_path(path)
			if parent != prefix:
				continue
			if all(condition.matches(data) for condition in where):
				results.append(DocumentSnapshot(path=path, data=copy.deepcopy(data)))
		if order_by:
			results.sort(key=_sort_key(order_by), reverse=descending)
		if limit is not None:
			results = results[:limit]
		return results

	async def close(self) -> None:
		return None

	def paths(self) -> Iterable[str]:
		return list(self.documents)
