# tree.py -- Tree handles and tree entry views
# Copyright (C) 2007 James Westby <jw+debian@jameswestby.net>
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

"""Tree handles.

A :class:`Tree` behaves like a sequence of :class:`TreeEntry` views that can
also be indexed by entry name. A TreeEntry does not copy anything: it reads
and writes the slot in its tree's record, and keeps the tree alive for as
long as the entry is referenced.
"""

__all__ = [
    "Tree",
    "TreeEntry",
]

import sys
from collections.abc import Iterator, Mapping
from types import MappingProxyType

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

from .errors import GitError, IndexOutOfRange, InvalidFormat, NotFound
from .handles import Object, _call, _check_str, _decode, _encode
from .objects import RawObject, RawTree, RawTreeEntry
from .oid import Oid, parse_oid


def _check_entry_name(name: object) -> bytes:
    name = _check_str("name", name)
    if not name or "/" in name or "\0" in name:
        raise InvalidFormat(f"Invalid tree entry name: {name!r}", name)
    return _encode(name)


def _check_attributes(attributes: object) -> int:
    if not isinstance(attributes, int) or isinstance(attributes, bool):
        raise InvalidFormat(
            f"attributes must be int, not {type(attributes).__name__:.200}",
            attributes,
        )
    if attributes < 0:
        raise InvalidFormat(f"Invalid attributes: {attributes!r}", attributes)
    return attributes


class TreeEntry:
    """A view onto one entry of a tree.

    Entries are obtained by indexing or iterating a Tree, never constructed
    directly.
    """

    __slots__ = ("_entry", "_tree")

    def __init__(self, tree: "Tree", entry: RawTreeEntry) -> None:
        self._tree = tree
        self._entry = entry

    def _current(self) -> RawTreeEntry:
        entry = self._tree._moved.get(self._entry, self._entry)
        self._entry = entry
        return entry

    def _slot(self, modify: bool = False) -> RawTreeEntry:
        self._tree._tree(modify)
        entry = self._current()
        if not entry.attached:
            raise GitError("Tree entry is no longer part of its tree.")
        return entry

    @property
    def tree(self) -> "Tree":
        """The tree this entry belongs to."""
        return self._tree

    @property
    def name(self) -> str:
        return _decode(self._slot().name)

    @name.setter
    def name(self, value: str) -> None:
        name = _check_entry_name(value)
        slot = self._slot()
        other = self._tree._record.entry_byname(name)
        if other is not None and other is not slot:
            raise GitError(f"Tree already has an entry named {value!r}.")
        slot = self._slot(modify=True)
        self._tree._record.touch()
        slot.name = name

    @property
    def attributes(self) -> int:
        """The file mode of the entry."""
        return self._slot().mode

    @attributes.setter
    def attributes(self, value: int) -> None:
        mode = _check_attributes(value)
        slot = self._slot(modify=True)
        self._tree._record.touch()
        slot.mode = mode

    @property
    def oid(self) -> Oid:
        return Oid(self._slot().id)

    @property
    def id(self) -> str:
        """Hex SHA of the object the entry points at."""
        return self._slot().id.hex()

    @id.setter
    def id(self, value: str) -> None:
        raw = parse_oid(value).raw
        slot = self._slot(modify=True)
        self._tree._record.touch()
        slot.id = raw

    def resolve(self) -> Object:
        """Look up the object this entry points at.

        Raises:
          NotFound: if the repository does not contain the object
        """
        return self._tree.repo.lookup(self.id)

    to_object = resolve

    def __repr__(self) -> str:
        entry = self._current()
        if not entry.attached:
            return f"<{self.__class__.__name__} (detached)>"
        return (
            f"<{self.__class__.__name__} {entry.mode:06o} "
            f"{_decode(entry.name)!r} {entry.id.hex()}>"
        )


class Tree(Object):
    """A tree: a table of named entries pointing at blobs and other trees.

    Supports ``len()``, ``in`` by name, iteration, and indexing by name or
    by position. Entries are kept in insertion order until the tree is
    written, at which point they are sorted the way git sorts them.
    """

    type_num = RawTree.type_num
    _record: RawTree

    # Slots of a borrowed record mapped to their counterparts in the
    # handle's own copy, once it has one.
    _moved: Mapping[RawTreeEntry, RawTreeEntry] = MappingProxyType({})

    @override
    def _modify(self) -> RawObject:
        original = self._tree()
        record = super()._modify()
        if record is not original:
            self._moved = dict(zip(original.entries, self._record.entries))
        return record

    def _tree(self, modify: bool = False) -> RawTree:
        if modify:
            self._modify()
        else:
            self._live()
        return self._record

    def _entry(self, key: int | str) -> RawTreeEntry:
        record = self._tree()
        if isinstance(key, str):
            entry = record.entry_byname(_encode(key))
            if entry is None:
                raise NotFound(key)
            return entry
        if isinstance(key, int):
            index = key
            if index < 0:
                index += len(record.entries)
            entry = record.entry_byindex(index)
            if entry is None:
                raise IndexOutOfRange(key)
            return entry
        raise InvalidFormat("Expected int or str for tree index.", key)

    def __len__(self) -> int:
        return len(self._tree().entries)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self._tree().entry_byname(_encode(name)) is not None

    def __getitem__(self, key: int | str) -> TreeEntry:
        return TreeEntry(self, self._entry(key))

    def __delitem__(self, key: int | str) -> None:
        entry = self._entry(key)
        record = self._tree(modify=True)
        _call(record.remove_entry, self._moved.get(entry, entry))

    def __setitem__(self, key: int | str, value: object) -> None:
        raise GitError("Cannot set TreeEntry directly; use add_entry.")

    def __iter__(self) -> Iterator[TreeEntry]:
        for entry in self._tree().iter_entries():
            yield TreeEntry(self, entry)

    def add_entry(self, hex: str, name: str, attributes: int) -> TreeEntry:
        """Add an entry to the tree.

        An existing entry with the same name is updated in place.

        Args:
          hex: Hex SHA of the object the entry points at
          name: Entry name, without any slashes
          attributes: File mode, e.g. 0o100644
        Returns: The new or updated entry
        """
        raw = parse_oid(hex).raw
        encoded = _check_entry_name(name)
        mode = _check_attributes(attributes)
        record = self._tree(modify=True)
        entry = _call(record.add_entry, raw, encoded, mode, value=hex)
        return TreeEntry(self, entry)
