# object_store.py -- Object store for git objects
# Copyright (C) 2008-2013 Jelmer Vernooij <jelmer@jelmer.uk>
#                         and others
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

"""The object store underneath the binding layer.

This is the storage side of gitbind: loose object files on disk, an object
cache that owns every record handed out by :meth:`NativeRepository.lookup`,
and allocation, writing and freeing of fresh records. Everything here
reports failure by raising :class:`gitbind.errors.StoreError`; the binding
layer in :mod:`gitbind.repo` and :mod:`gitbind.handles` translates those.
"""

__all__ = [
    "CONTROLDIR",
    "EMPTY_TREE_ID",
    "OBJECTDIR",
    "REFSDIR",
    "LooseObjectDatabase",
    "NativeRepository",
    "ObjectCache",
]

import os
import zlib
from hashlib import sha1

from .config import ConfigFile
from .errors import ErrorCode, StoreError
from .file import FileLocked, LockedFile
from .log_utils import getLogger
from .objects import RawCommit, RawObject, RawTag, RawTree, object_class

logger = getLogger(__name__)

CONTROLDIR = ".git"
OBJECTDIR = "objects"
REFSDIR = "refs"

# Id of the tree with no entries; the same in every SHA-1 repository.
EMPTY_TREE_ID = bytes.fromhex("4b825dc642cb6eb9a060e54bf8d69288fbee4904")


def _os_error(e: OSError) -> StoreError:
    return StoreError(
        ErrorCode.EOSERR,
        e.strerror or str(e),
        errno=e.errno,
        filename=os.fsdecode(e.filename) if e.filename is not None else None,
    )


class LooseObjectDatabase:
    """Zlib compressed object files under ``objects/xx/yyyy...``."""

    def __init__(
        self, path: str, *, compression_level: int = -1, fsync: bool = False
    ) -> None:
        """Open a loose object database.

        Args:
          path: Path of the objects directory
          compression_level: zlib compression level for written objects
          fsync: whether to fsync object files before renaming them into place
        """
        self.path = path
        self.compression_level = compression_level
        self.fsync = fsync

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"

    def _get_shafile_path(self, id: bytes) -> str:
        hex = id.hex()
        return os.path.join(self.path, hex[:2], hex[2:])

    def exists(self, id: bytes) -> bool:
        return os.path.isfile(self._get_shafile_path(id))

    def read(self, id: bytes) -> tuple[int, bytes]:
        """Read and inflate a loose object.

        Args:
          id: 20 byte object id
        Returns: tuple with numeric type and object contents
        Raises:
          StoreError: ENOTFOUND if there is no such object, EOSERR on I/O
            failure, EZLIB or EOBJCORRUPTED if the file is damaged
        """
        path = self._get_shafile_path(id)
        try:
            with open(path, "rb") as f:
                compressed = f.read()
        except FileNotFoundError as exc:
            raise StoreError(
                ErrorCode.ENOTFOUND, f"object {id.hex()} not found"
            ) from exc
        except OSError as exc:
            raise _os_error(exc) from exc
        try:
            text = zlib.decompress(compressed)
        except zlib.error as exc:
            raise StoreError(ErrorCode.EZLIB, f"{path}: {exc}") from exc
        header, sep, payload = text.partition(b"\0")
        type_name, _, size = header.partition(b" ")
        if not sep or not size.isdigit() or int(size) != len(payload):
            raise StoreError(ErrorCode.EOBJCORRUPTED, f"{path}: invalid object header")
        try:
            type_num = object_class(type_name).type_num
        except StoreError as exc:
            raise StoreError(ErrorCode.EOBJCORRUPTED, f"{path}: {exc.message}") from exc
        return type_num, payload

    def write(self, type_num: int, data: bytes) -> bytes:
        """Store an object payload, returning its id.

        Writing an object that is already present is a no-op.
        """
        type_name = object_class(type_num).type_name
        text = type_name + b" " + str(len(data)).encode("ascii") + b"\0" + data
        id = sha1(text).digest()
        path = self._get_shafile_path(id)
        if os.path.exists(path):
            return id
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with LockedFile(path, mask=0o444, fsync=self.fsync) as f:
                f.write(zlib.compress(text, self.compression_level))
        except FileLocked as exc:
            raise StoreError(
                ErrorCode.EOSERR, "object file is locked", filename=exc.lockpath
            ) from exc
        except OSError as exc:
            raise _os_error(exc) from exc
        logger.debug("wrote loose object %s (%d bytes)", id.hex(), len(data))
        return id


class ObjectCache:
    """Records handed out by lookup, keyed by id.

    The cache owns its records: they stay alive and valid until the cache
    is cleared, however many handles point at them.
    """

    def __init__(self) -> None:
        self._records: dict[bytes, RawObject] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, id: bytes) -> bool:
        return id in self._records

    def get(self, id: bytes) -> RawObject | None:
        return self._records.get(id)

    def insert(self, record: RawObject) -> None:
        assert record.id is not None
        self._records[record.id] = record

    def clear(self) -> None:
        """Release every cached record."""
        for record in self._records.values():
            record.release()
        self._records.clear()


class NativeRepository:
    """An open connection to a repository's object store."""

    def __init__(self, controldir: str, config: ConfigFile) -> None:
        self.controldir = controldir
        self.config = config
        self.odb = LooseObjectDatabase(
            os.path.join(controldir, OBJECTDIR),
            compression_level=config.get_int(
                "core", "loosecompression", config.get_int("core", "compression", -1)
            ),
            fsync=config.get_boolean("core", "fsyncobjectfiles", False),
        )
        self.cache = ObjectCache()
        self.closed = False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.controldir!r})>"

    @classmethod
    def open(cls, path: str) -> "NativeRepository":
        """Open the repository at path.

        Args:
          path: A bare repository, or a directory containing ``.git``
        Raises:
          StoreError: ENOTAREPO if there is no usable repository there
        """
        hidden_path = os.path.join(path, CONTROLDIR)
        if os.path.isdir(os.path.join(hidden_path, OBJECTDIR)):
            controldir = hidden_path
        elif os.path.isdir(os.path.join(path, OBJECTDIR)) and os.path.isdir(
            os.path.join(path, REFSDIR)
        ):
            controldir = path
        else:
            raise StoreError(
                ErrorCode.ENOTAREPO, f"No git repository was found at {path}"
            )
        config_path = os.path.join(controldir, "config")
        try:
            config = ConfigFile.from_path(config_path)
        except FileNotFoundError:
            config = ConfigFile()
        except (OSError, ValueError) as exc:
            raise StoreError(
                ErrorCode.ENOTAREPO, f"unreadable config file: {exc}"
            ) from exc
        try:
            version = config.get_int("core", "repositoryformatversion", 0)
        except ValueError as exc:
            raise StoreError(
                ErrorCode.ENOTAREPO, "invalid core.repositoryformatversion"
            ) from exc
        if version not in (0, 1):
            raise StoreError(
                ErrorCode.ENOTAREPO, f"unsupported repository format version {version}"
            )
        logger.debug("opened repository at %s", controldir)
        return cls(controldir, config)

    @classmethod
    def init_bare(cls, path: str) -> "NativeRepository":
        """Create a new bare repository at path and open it."""
        try:
            for d in (
                OBJECTDIR,
                os.path.join(REFSDIR, "heads"),
                os.path.join(REFSDIR, "tags"),
            ):
                os.makedirs(os.path.join(path, d), exist_ok=True)
            with LockedFile(os.path.join(path, "HEAD")) as f:
                f.write(b"ref: refs/heads/master\n")
            config = ConfigFile()
            config.set("core", "repositoryformatversion", 0)
            config.set("core", "filemode", True)
            config.set("core", "bare", True)
            config.write_to_path(os.path.join(path, "config"))
        except OSError as exc:
            raise _os_error(exc) from exc
        return cls.open(path)

    def _check_open(self) -> None:
        if self.closed:
            raise StoreError(ErrorCode.ERROR, "repository has been closed")

    def exists(self, id: bytes) -> bool:
        self._check_open()
        return id in self.cache or self.odb.exists(id)

    def read(self, id: bytes) -> tuple[int, bytes]:
        self._check_open()
        return self.odb.read(id)

    def lookup(self, id: bytes) -> RawObject:
        """Look up a record by id, through the object cache.

        The returned record is owned by the cache and must not be freed by
        the caller.
        """
        self._check_open()
        record = self.cache.get(id)
        if record is not None:
            logger.debug("object cache hit for %s", id.hex())
            return record
        type_num, data = self.odb.read(id)
        try:
            record = RawObject.from_raw_string(type_num, data, id)
        except StoreError as exc:
            logger.debug("failed to parse object %s: %s", id.hex(), exc)
            raise
        self.cache.insert(record)
        logger.debug("object cache miss for %s, loaded %r", id.hex(), record)
        return record

    def object_new(self, type_num: int) -> RawObject:
        """Allocate an empty record; the caller owns it."""
        self._check_open()
        cls = object_class(type_num)
        try:
            return cls()
        except MemoryError as exc:
            raise StoreError(ErrorCode.ENOMEM) from exc

    def object_copy(self, record: RawObject) -> RawObject:
        """Copy a record, typically a cached one about to be modified.

        The caller owns the copy.
        """
        self._check_open()
        ret = record.copy()
        logger.debug("copied %r", record)
        return ret

    def object_free(self, record: RawObject) -> None:
        """Release a record that was allocated with object_new."""
        if record.freed:
            return
        record.release()
        logger.debug("freed %s record", record.type_name.decode("ascii"))

    def object_write(self, record: RawObject) -> bytes:
        """Serialize a record into the object database.

        Returns: The record's id, which is also stored on the record
        """
        self._check_open()
        record.check_live()
        if record.id is not None and self.cache.get(record.id) is record:
            # Cached records are what lookup returns for their id.
            if record.modified:
                raise StoreError(
                    ErrorCode.ERROR, f"cached object {record.id.hex()} was modified"
                )
            return record.id
        if isinstance(record, RawCommit) and record.tree is None:
            self.odb.write(RawTree.type_num, b"")
            record.tree = EMPTY_TREE_ID
            logger.debug("commit has no tree; using the empty tree")
        if isinstance(record, RawTree):
            record.sort_entries()
        data = record.serialize()
        record.id = self.odb.write(record.type_num, data)
        record.modified = False
        return record.id

    def tag_target(self, tag: RawTag) -> RawObject | None:
        """Return the record a tag points at, or None if it has no target."""
        tag.check_live()
        if tag.target_id is None:
            return None
        return self.lookup(tag.target_id)

    def close(self) -> None:
        """Release the object cache; further calls fail."""
        if self.closed:
            return
        logger.debug(
            "closing repository at %s, releasing %d cached objects",
            self.controldir,
            len(self.cache),
        )
        self.cache.clear()
        self.closed = True
