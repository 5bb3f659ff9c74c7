# objects.py -- Store-level records for git objects
# Copyright (C) 2007 James Westby <jw+debian@jameswestby.net>
# Copyright (C) 2008-2013 Jelmer Vernooij <jelmer@jelmer.uk>
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

"""Records for the four git object types, as owned by the object store.

These are the store's own data structures. They hold bytes rather than
text, know how to serialize themselves into git's canonical format and how
to parse it back, and carry the bookkeeping the store needs: the object id
(``None`` until written), whether the record was modified since it was last
written, and whether it has been freed.

Callers outside the store should go through :mod:`gitbind.handles`.
"""

__all__ = [
    "OBJECT_CLASSES",
    "RawBlob",
    "RawCommit",
    "RawObject",
    "RawTag",
    "RawTree",
    "RawTreeEntry",
    "Signature",
    "format_timezone",
    "object_class",
    "parse_timezone",
]

import stat
from collections.abc import Iterator
from typing import NamedTuple

from .errors import ErrorCode, StoreError
from .oid import RAWSZ

# Header fields for commits
_TREE_HEADER = b"tree"
_PARENT_HEADER = b"parent"
_AUTHOR_HEADER = b"author"
_COMMITTER_HEADER = b"committer"
_ENCODING_HEADER = b"encoding"

# Header fields for tags
_OBJECT_HEADER = b"object"
_TYPE_HEADER = b"type"
_TAG_HEADER = b"tag"
_TAGGER_HEADER = b"tagger"


def _corrupt(message: str) -> StoreError:
    return StoreError(ErrorCode.EOBJCORRUPTED, message)


def parse_timezone(text: bytes) -> int:
    """Parse a timezone text fragment (e.g. b'+0100').

    Args:
      text: Text to parse.
    Returns: Offset from UTC in seconds
    """
    if text[:1] not in (b"+", b"-") or not text[1:].isdigit():
        raise _corrupt(f"Invalid timezone: {text!r}")
    offset = int(text)
    signum = -1 if offset < 0 else 1
    offset = abs(offset)
    hours = int(offset / 100)
    minutes = offset % 100
    return signum * (hours * 3600 + minutes * 60)


def format_timezone(offset: int) -> bytes:
    """Format a timezone for git serialization.

    Args:
      offset: Timezone offset as seconds difference to UTC
    """
    if offset % 60 != 0:
        raise ValueError("Unable to handle non-minute offset.")
    sign = "-" if offset < 0 else "+"
    offset = abs(offset)
    return (f"{sign}{offset // 3600:02d}{(offset // 60) % 60:02d}").encode("ascii")


class Signature(NamedTuple):
    """Who did something, and when."""

    name: bytes
    email: bytes
    time: int
    offset: int = 0

    def serialize(self) -> bytes:
        return (
            self.name
            + b" <"
            + self.email
            + b"> "
            + str(self.time).encode("ascii")
            + b" "
            + format_timezone(self.offset)
        )

    @classmethod
    def parse(cls, value: bytes) -> "Signature":
        try:
            sep = value.index(b"> ")
            start = value.index(b" <")
        except ValueError as exc:
            raise _corrupt(f"Invalid identity: {value!r}") from exc
        name = value[:start]
        email = value[start + 2 : sep]
        try:
            timetext, timezonetext = value[sep + 2 :].rsplit(b" ", 1)
            time = int(timetext)
        except ValueError as exc:
            raise _corrupt(f"Invalid identity time: {value!r}") from exc
        return cls(name, email, time, parse_timezone(timezonetext))


class RawObject:
    """Base class for store records.

    Attributes:
      id: 20 byte object id, or None if the record was never written
      modified: True if the record changed since it was last written
      freed: True once the store has released the record
    """

    type_name: bytes
    type_num: int

    def __init__(self) -> None:
        self.id: bytes | None = None
        self.modified = True
        self.freed = False

    def check_live(self) -> None:
        """Raise if the record has been released by the store."""
        if self.freed:
            raise StoreError(
                ErrorCode.ERROR,
                f"{self.type_name.decode('ascii')} object has been freed",
            )

    def touch(self) -> None:
        """Record that the contents changed."""
        self.check_live()
        self.modified = True

    def serialize(self) -> bytes:
        raise NotImplementedError(self.serialize)

    def deserialize(self, data: bytes) -> None:
        raise NotImplementedError(self.deserialize)

    def copy(self) -> "RawObject":
        """Create an unshared record with the same contents and id."""
        self.check_live()
        ret = RawObject.from_raw_string(self.type_num, self.serialize(), self.id)
        ret.modified = self.modified
        return ret

    def release(self) -> None:
        """Drop contents; called by the store when freeing the record."""
        self.freed = True

    @classmethod
    def from_raw_string(
        cls, type_num: int, data: bytes, id: bytes | None
    ) -> "RawObject":
        """Create a written record of the indicated type from its payload.

        Args:
          type_num: The numeric type of the object.
          data: The raw uncompressed contents.
          id: The id the payload was stored under.
        """
        obj = object_class(type_num)()
        obj.deserialize(data)
        obj.id = id
        obj.modified = False
        return obj

    def __repr__(self) -> str:
        state = "freed" if self.freed else (self.id.hex() if self.id else "new")
        return f"<{self.__class__.__name__} {state}>"


class RawBlob(RawObject):
    """A blob record."""

    type_name = b"blob"
    type_num = 3

    def __init__(self) -> None:
        super().__init__()
        self.data = b""

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data

    def release(self) -> None:
        super().release()
        self.data = b""


class RawCommit(RawObject):
    """A commit record."""

    type_name = b"commit"
    type_num = 1

    def __init__(self) -> None:
        super().__init__()
        self.tree: bytes | None = None
        self.parents: list[bytes] = []
        self.author: Signature | None = None
        self.committer: Signature | None = None
        self.encoding: bytes | None = None
        self.extra: list[tuple[bytes, bytes]] = []
        self.message = b""

    def serialize(self) -> bytes:
        if self.tree is None:
            raise StoreError(ErrorCode.EMISSINGOBJDATA, "commit has no tree")
        if self.author is None or self.committer is None:
            raise StoreError(
                ErrorCode.EMISSINGOBJDATA, "commit needs an author and a committer"
            )
        chunks = [_TREE_HEADER + b" " + self.tree.hex().encode("ascii") + b"\n"]
        for p in self.parents:
            chunks.append(_PARENT_HEADER + b" " + p.hex().encode("ascii") + b"\n")
        chunks.append(_AUTHOR_HEADER + b" " + self.author.serialize() + b"\n")
        chunks.append(_COMMITTER_HEADER + b" " + self.committer.serialize() + b"\n")
        if self.encoding:
            chunks.append(_ENCODING_HEADER + b" " + self.encoding + b"\n")
        for k, v in self.extra:
            chunks.append(k + b" " + v.replace(b"\n", b"\n ") + b"\n")
        chunks.append(b"\n")  # There must be a new line after the headers
        chunks.append(self.message)
        return b"".join(chunks)

    def deserialize(self, data: bytes) -> None:
        self.tree = None
        self.parents = []
        self.extra = []
        self.author = self.committer = None
        self.encoding = None
        headers, self.message = _split_headers(data)
        for field, value in headers:
            if field == _TREE_HEADER:
                self.tree = _parse_hex_field(value)
            elif field == _PARENT_HEADER:
                self.parents.append(_parse_hex_field(value))
            elif field == _AUTHOR_HEADER:
                self.author = Signature.parse(value)
            elif field == _COMMITTER_HEADER:
                self.committer = Signature.parse(value)
            elif field == _ENCODING_HEADER:
                self.encoding = value
            else:
                self.extra.append((field, value))
        if self.tree is None:
            raise _corrupt("commit without tree header")
        if self.author is None or self.committer is None:
            raise _corrupt("commit without author or committer")

    def release(self) -> None:
        super().release()
        self.parents = []
        self.extra = []
        self.message = b""


class RawTreeEntry:
    """One slot in a tree's entry table.

    The slot belongs to exactly one RawTree; ``attached`` turns False when
    the tree drops it.
    """

    __slots__ = ("attached", "id", "mode", "name")

    def __init__(self, name: bytes, mode: int, id: bytes) -> None:
        self.name = name
        self.mode = mode
        self.id = id
        self.attached = True

    def sort_key(self) -> bytes:
        if stat.S_ISDIR(self.mode):
            return self.name + b"/"
        return self.name

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.mode:06o} {self.name!r} "
            f"{self.id.hex()}>"
        )


class RawTree(RawObject):
    """A tree record: an ordered table of entries."""

    type_name = b"tree"
    type_num = 2

    def __init__(self) -> None:
        super().__init__()
        self.entries: list[RawTreeEntry] = []

    def entry_byname(self, name: bytes) -> RawTreeEntry | None:
        self.check_live()
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def entry_byindex(self, index: int) -> RawTreeEntry | None:
        self.check_live()
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def add_entry(self, id: bytes, name: bytes, mode: int) -> RawTreeEntry:
        """Add an entry, replacing the one with the same name if any."""
        if len(id) != RAWSZ:
            raise StoreError(ErrorCode.ENOTOID, f"invalid object id {id!r}")
        self.touch()
        entry = self.entry_byname(name)
        if entry is not None:
            entry.id = id
            entry.mode = mode
            return entry
        entry = RawTreeEntry(name, mode, id)
        self.entries.append(entry)
        return entry

    def remove_entry(self, entry: RawTreeEntry) -> None:
        self.touch()
        self.entries.remove(entry)
        entry.attached = False

    def copy(self) -> "RawTree":
        # Entries keep their order, which may not be the canonical one yet.
        self.check_live()
        ret = RawTree()
        ret.entries = [RawTreeEntry(e.name, e.mode, e.id) for e in self.entries]
        ret.id = self.id
        ret.modified = self.modified
        return ret

    def sort_entries(self) -> None:
        self.entries.sort(key=RawTreeEntry.sort_key)

    def iter_entries(self) -> Iterator[RawTreeEntry]:
        self.check_live()
        return iter(list(self.entries))

    def serialize(self) -> bytes:
        return b"".join(
            f"{entry.mode:04o}".encode("ascii") + b" " + entry.name + b"\0" + entry.id
            for entry in sorted(self.entries, key=RawTreeEntry.sort_key)
        )

    def deserialize(self, data: bytes) -> None:
        entries = []
        count = 0
        length = len(data)
        while count < length:
            try:
                mode_end = data.index(b" ", count)
                mode = int(data[count:mode_end], 8)
                name_end = data.index(b"\0", mode_end)
            except ValueError as exc:
                raise _corrupt("invalid tree entry") from exc
            name = data[mode_end + 1 : name_end]
            count = name_end + 1 + RAWSZ
            if count > length:
                raise _corrupt("tree entry object id is truncated")
            entries.append(RawTreeEntry(name, mode, data[name_end + 1 : count]))
        self.entries = entries

    def release(self) -> None:
        super().release()
        for entry in self.entries:
            entry.attached = False
        self.entries = []


class RawTag(RawObject):
    """An annotated tag record."""

    type_name = b"tag"
    type_num = 4

    def __init__(self) -> None:
        super().__init__()
        self.target_id: bytes | None = None
        self.target_type: int | None = None
        self.name: bytes | None = None
        self.tagger: Signature | None = None
        self.message: bytes | None = None

    def serialize(self) -> bytes:
        if self.target_id is None or self.target_type is None:
            raise StoreError(
                ErrorCode.EMISSINGOBJDATA, "tag target has not been written"
            )
        if self.name is None:
            raise StoreError(ErrorCode.EMISSINGOBJDATA, "tag has no name")
        chunks = [
            _OBJECT_HEADER + b" " + self.target_id.hex().encode("ascii") + b"\n",
            _TYPE_HEADER + b" " + object_class(self.target_type).type_name + b"\n",
            _TAG_HEADER + b" " + self.name + b"\n",
        ]
        if self.tagger is not None:
            chunks.append(_TAGGER_HEADER + b" " + self.tagger.serialize() + b"\n")
        chunks.append(b"\n")  # To close headers
        if self.message:
            chunks.append(self.message)
        return b"".join(chunks)

    def deserialize(self, data: bytes) -> None:
        self.target_id = self.target_type = None
        self.name = None
        self.tagger = None
        headers, self.message = _split_headers(data)
        for field, value in headers:
            if field == _OBJECT_HEADER:
                self.target_id = _parse_hex_field(value)
            elif field == _TYPE_HEADER:
                try:
                    self.target_type = object_class(value).type_num
                except StoreError as exc:
                    raise _corrupt(f"tag points at unknown type {value!r}") from exc
            elif field == _TAG_HEADER:
                self.name = value
            elif field == _TAGGER_HEADER:
                self.tagger = Signature.parse(value)
        if self.target_id is None or self.target_type is None:
            raise _corrupt("tag without object or type header")

    def release(self) -> None:
        super().release()
        self.message = None


def _split_headers(data: bytes) -> tuple[list[tuple[bytes, bytes]], bytes]:
    """Split a commit or tag payload into header fields and message."""
    headers: list[tuple[bytes, bytes]] = []
    pos = 0
    length = len(data)
    while pos < length:
        end = data.find(b"\n", pos)
        if end == -1:
            end = length
        line = data[pos:end]
        pos = end + 1
        if line == b"":
            # Empty line indicates end of headers
            return headers, data[pos:]
        if line.startswith(b" "):
            if not headers:
                raise _corrupt("continuation line before any header")
            field, value = headers[-1]
            headers[-1] = (field, value + b"\n" + line[1:])
            continue
        field, sep, value = line.partition(b" ")
        if not sep:
            raise _corrupt(f"malformed header line {line!r}")
        headers.append((field, value))
    return headers, b""


def _parse_hex_field(value: bytes) -> bytes:
    try:
        raw = bytes.fromhex(value.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise _corrupt(f"invalid object id in header: {value!r}") from exc
    if len(raw) != RAWSZ:
        raise _corrupt(f"invalid object id in header: {value!r}")
    return raw


OBJECT_CLASSES: tuple[type[RawObject], ...] = (
    RawCommit,
    RawTree,
    RawBlob,
    RawTag,
)

_TYPE_MAP: dict[bytes | int, type[RawObject]] = {}

for cls in OBJECT_CLASSES:
    _TYPE_MAP[cls.type_name] = cls
    _TYPE_MAP[cls.type_num] = cls


def object_class(type: bytes | int) -> type[RawObject]:
    """Get the record class corresponding to the given type.

    Args:
      type: Either a type name string or a numeric type.
    Returns: The RawObject subclass corresponding to the given type.
    Raises:
      StoreError: EINVALIDTYPE if the type is unknown
    """
    try:
        return _TYPE_MAP[type]
    except KeyError as exc:
        raise StoreError(
            ErrorCode.EINVALIDTYPE, f"unknown object type {type!r}"
        ) from exc
