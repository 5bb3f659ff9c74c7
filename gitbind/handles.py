# handles.py -- Host-side handles for store objects
# Copyright (C) 2010 Google, Inc.
# Copyright (C) 2026 The gitbind authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitbind is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Handles wrapping the object store's records.

A handle is either OWNED or BORROWED. Calling ``Commit(repo)`` (or any other
variant class) allocates a fresh record that belongs to the handle: when the
last reference to the handle goes away, the record is freed. Handles
returned by :meth:`gitbind.repo.Repository.lookup` borrow a record from the
repository's object cache and never free it; the cache keeps it alive until
the repository is released.

Every handle holds a strong reference to its repository, so a repository
stays open for as long as any object derived from it is reachable. A tag
additionally holds its target, and a tree entry its tree:

    TreeEntry -> Tree -> Repository
    Tag -> target handle -> Repository
"""

__all__ = [
    "Blob",
    "Commit",
    "Object",
    "Ownership",
    "Tag",
]

import enum
import sys
import weakref
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

from .errors import InvalidFormat, StoreError, TypeMismatch, translate_error
from .objects import RawBlob, RawCommit, RawObject, RawTag, Signature
from .oid import Oid, parse_oid

if TYPE_CHECKING:
    from .repo import Repository

T = TypeVar("T")
O = TypeVar("O", bound="Object")


class Ownership(enum.Enum):
    """Who is responsible for freeing a handle's record."""

    OWNED = "owned"
    """The handle allocated the record and frees it when collected."""

    BORROWED = "borrowed"
    """The repository's object cache owns the record."""


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _call(func: Callable[..., T], *args: Any, value: object = None) -> T:
    """Run a store operation, translating its failures."""
    try:
        return func(*args)
    except StoreError as e:
        raise translate_error(e, value) from e


def _check_str(what: str, value: object) -> str:
    if not isinstance(value, str):
        raise InvalidFormat(
            f"{what} must be str, not {type(value).__name__:.200}", value
        )
    return value


def _signature_to_tuple(sig: Signature | None) -> tuple[str, str, int] | None:
    if sig is None:
        return None
    return (_decode(sig.name), _decode(sig.email), sig.time)


def _tuple_to_signature(
    what: str, value: object, previous: Signature | None
) -> Signature:
    if (
        not isinstance(value, tuple)
        or len(value) != 3
        or not isinstance(value[0], str)
        or not isinstance(value[1], str)
        or not isinstance(value[2], int)
        or isinstance(value[2], bool)
    ):
        raise InvalidFormat(f"{what} must be a (name, email, time) tuple", value)
    name, email, time = value
    offset = previous.offset if previous is not None else 0
    return Signature(_encode(name), _encode(email), time, offset)


class Object:
    """Base class for commit, tree, blob and tag handles.

    Not instantiated directly; call one of the variant classes with a
    repository to allocate a new object of that type.

    Changing a borrowed object gives the handle its own copy of the
    record, so the handle becomes OWNED and later lookups of the original
    id still see the stored contents.

    Written objects compare and hash by type and id; unwritten ones by
    identity. Writing an object changes both, so do not use a handle as a
    dict key or set member across a ``write()``.
    """

    type_num: ClassVar[int]

    _repo: "Repository"
    _record: RawObject
    _ownership: Ownership
    _finalizer: weakref.finalize | None

    def __init__(self, repo: "Repository") -> None:
        """Allocate a new, empty object in a repository.

        Args:
          repo: The repository the object will be written to
        Raises:
          TypeMismatch: if repo is not a Repository
          OutOfMemory: if the store cannot allocate the object
        """
        # Import here to avoid circular dependency
        from .repo import Repository

        if type(self) is Object:
            raise TypeMismatch("Object cannot be instantiated directly")
        if not isinstance(repo, Repository):
            raise TypeMismatch(
                f"repo must be Repository, not {type(repo).__name__:.200}"
            )
        record = _call(repo._native.object_new, self.type_num)
        self._bind(repo, record, Ownership.OWNED)

    @classmethod
    def _from_record(
        cls: type[O], repo: "Repository", record: RawObject, ownership: Ownership
    ) -> O:
        """Wrap an existing record without allocating."""
        obj = cls.__new__(cls)
        obj._bind(repo, record, ownership)
        return obj

    def _bind(
        self, repo: "Repository", record: RawObject, ownership: Ownership
    ) -> None:
        if record.type_num != self.type_num:
            raise TypeMismatch("Invalid object type.")
        self._repo = repo
        self._record = record
        self._ownership = ownership
        if ownership is Ownership.OWNED:
            self._finalizer = weakref.finalize(
                self, repo._native.object_free, record
            )
        else:
            self._finalizer = None

    def _live(self) -> RawObject:
        _call(self._record.check_live, value=self.id)
        return self._record

    def _modify(self) -> RawObject:
        """Return the record, ready to be changed.

        A borrowed record belongs to the object cache, where every lookup of
        its id finds it, so it is never changed in place: the handle takes a
        private copy first and owns that copy from then on.
        """
        record = self._live()
        if self._ownership is Ownership.BORROWED:
            record = _call(self._repo._native.object_copy, record, value=self.id)
            self._bind(self._repo, record, Ownership.OWNED)
        return record

    @property
    def repo(self) -> "Repository":
        """The repository this object belongs to."""
        return self._repo

    @property
    def ownership(self) -> Ownership:
        return self._ownership

    @property
    def owns_native(self) -> bool:
        """Whether this handle frees its record when collected."""
        return self._ownership is Ownership.OWNED

    @property
    def type(self) -> int:
        """Type number of the object (one of the GIT_OBJ_* constants)."""
        return self._record.type_num

    @property
    def oid(self) -> Oid | None:
        """Object id, or None if the object has never been written."""
        if self._record.id is None:
            return None
        return Oid(self._record.id)

    @property
    def id(self) -> str | None:
        """Hex SHA of the object, or None if it has never been written."""
        if self._record.id is None:
            return None
        return self._record.id.hex()

    def read_raw(self) -> bytes | None:
        """Read the stored contents of this object.

        Returns: The raw payload, or None for an object that has not been
          written yet
        """
        id = self._live().id
        if id is None:
            return None
        type_num, data = _call(self._repo._native.read, id, value=id.hex())
        return data

    def write(self) -> None:
        """Write the object to the repository.

        Afterwards ``id`` returns the object's hex SHA.
        """
        record = self._live()
        if self._ownership is Ownership.BORROWED:
            # Never modified in place, so already in the object database.
            return
        _call(self._repo._native.object_write, record, value=self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Object):
            return NotImplemented
        if self._record.id is None or other._record.id is None:
            return self is other
        return self.type == other.type and self._record.id == other._record.id

    def __hash__(self) -> int:
        if self._record.id is None:
            return id(self)
        return hash((self.type, self._record.id))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id or 'new'}>"


class Commit(Object):
    """A commit."""

    type_num = RawCommit.type_num
    _record: RawCommit

    def _commit(self, modify: bool = False) -> RawCommit:
        if modify:
            self._modify()
        else:
            self._live()
        return self._record

    @property
    def message(self) -> str:
        """The commit message."""
        return _decode(self._commit().message)

    @message.setter
    def message(self, value: str) -> None:
        data = _encode(_check_str("message", value))
        record = self._commit(modify=True)
        record.message = data
        record.touch()

    @property
    def message_short(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]

    @property
    def commit_time(self) -> int | None:
        """Committer timestamp, or None if no committer is set."""
        committer = self._commit().committer
        return committer.time if committer is not None else None

    @property
    def author(self) -> tuple[str, str, int] | None:
        """(name, email, time) of the author."""
        return _signature_to_tuple(self._commit().author)

    @author.setter
    def author(self, value: tuple[str, str, int]) -> None:
        sig = _tuple_to_signature("author", value, self._commit().author)
        record = self._commit(modify=True)
        record.author = sig
        record.touch()

    @property
    def committer(self) -> tuple[str, str, int] | None:
        """(name, email, time) of the committer."""
        return _signature_to_tuple(self._commit().committer)

    @committer.setter
    def committer(self, value: tuple[str, str, int]) -> None:
        sig = _tuple_to_signature("committer", value, self._commit().committer)
        record = self._commit(modify=True)
        record.committer = sig
        record.touch()

    @property
    def tree(self) -> str | None:
        """Hex SHA of the commit's tree."""
        tree = self._commit().tree
        return tree.hex() if tree is not None else None

    @tree.setter
    def tree(self, value: str) -> None:
        raw = parse_oid(value).raw
        record = self._commit(modify=True)
        record.tree = raw
        record.touch()

    @property
    def parents(self) -> list[str]:
        """Hex SHAs of the parent commits."""
        return [p.hex() for p in self._commit().parents]

    @parents.setter
    def parents(self, value: list[str]) -> None:
        if isinstance(value, str) or not hasattr(value, "__iter__"):
            raise InvalidFormat("parents must be a list of hex SHAs", value)
        raws = [parse_oid(p).raw for p in value]
        record = self._commit(modify=True)
        record.parents = raws
        record.touch()


class Blob(Object):
    """A blob of file contents."""

    type_num = RawBlob.type_num
    _record: RawBlob

    @property
    def data(self) -> bytes:
        """The blob contents."""
        self._live()
        return self._record.data

    @data.setter
    def data(self, value: bytes) -> None:
        if not isinstance(value, bytes):
            raise InvalidFormat(
                f"data must be bytes, not {type(value).__name__:.200}", value
            )
        record = self._modify()
        record.data = value
        record.touch()


class Tag(Object):
    """An annotated tag.

    The tagged object is resolved when the tag is wrapped and kept alive for
    as long as the tag is.
    """

    type_num = RawTag.type_num
    _record: RawTag
    _target: Object | None = None

    @classmethod
    @override
    def _from_record(
        cls,
        repo: "Repository",
        record: RawObject,
        ownership: Ownership,
        target: Object | None = None,
    ) -> "Tag":
        tag = super()._from_record(repo, record, ownership)
        tag._target = target
        return tag

    def _tag(self, modify: bool = False) -> RawTag:
        if modify:
            self._modify()
        else:
            self._live()
        return self._record

    @property
    def target(self) -> Object | None:
        """The tagged object, or None if not set yet."""
        return self._target

    @target.setter
    def target(self, value: Object) -> None:
        if not isinstance(value, Object):
            raise TypeMismatch(
                f"target must be Object, not {type(value).__name__:.200}"
            )
        record = self._tag(modify=True)
        self._target = value
        record.target_id = value._record.id
        record.target_type = value.type
        record.touch()

    @property
    def target_type(self) -> int | None:
        """Type number of the tagged object, or None if not set."""
        if self._target is None:
            return None
        return self._tag().target_type

    @property
    def name(self) -> str | None:
        """The tag name."""
        name = self._tag().name
        return _decode(name) if name is not None else None

    @name.setter
    def name(self, value: str) -> None:
        data = _encode(_check_str("name", value))
        record = self._tag(modify=True)
        record.name = data
        record.touch()

    @property
    def tagger(self) -> tuple[str, str, int] | None:
        """(name, email, time) of the tagger, or None."""
        return _signature_to_tuple(self._tag().tagger)

    @tagger.setter
    def tagger(self, value: tuple[str, str, int]) -> None:
        sig = _tuple_to_signature("tagger", value, self._tag().tagger)
        record = self._tag(modify=True)
        record.tagger = sig
        record.touch()

    @property
    def message(self) -> str | None:
        """The tag message."""
        message = self._tag().message
        return _decode(message) if message is not None else None

    @message.setter
    def message(self, value: str) -> None:
        data = _encode(_check_str("message", value))
        record = self._tag(modify=True)
        record.message = data
        record.touch()

    @override
    def write(self) -> None:
        record = self._tag()
        target = self._target
        if target is not None and (
            record.target_id != target._record.id
            or record.target_type != target.type
        ):
            # The target has been written since it was assigned.
            record = self._tag(modify=True)
            record.target_id = target._record.id
            record.target_type = target.type
            record.touch()
        super().write()
