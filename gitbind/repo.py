# repo.py -- For dealing with git repositories.
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

"""Repository access.

:class:`Repository` is the entry point: open one on a path, then look up,
create and write objects through it.
"""

__all__ = [
    "Repository",
]

import os
import weakref
from types import TracebackType

from .config import ConfigFile
from .errors import InvalidFormat, StoreError, translate_error
from .handles import Object
from .log_utils import getLogger
from .object_store import NativeRepository
from .oid import parse_oid
from .wrapper import ObjectWrapper

logger = getLogger(__name__)


def _check_path(path: object) -> str:
    if not isinstance(path, (str, os.PathLike)):
        raise InvalidFormat(f"path must be str, not {type(path).__name__:.200}", path)
    return os.fsdecode(os.fspath(path))


class Repository:
    """A git repository.

    Objects returned by :meth:`lookup` are borrowed from the repository's
    object cache. The cache is released when the repository is closed, or
    when it and every object derived from it have been garbage collected;
    handles still referring to a closed repository raise GitError when used.

    A Repository is not thread-safe. Use one per thread, or serialize access
    to it.
    """

    def __init__(
        self, path: str | os.PathLike[str], *, wrapper: ObjectWrapper | None = None
    ) -> None:
        """Open a repository.

        Args:
          path: Path to a bare repository or to a directory containing ``.git``
          wrapper: Handle factory to use; defaults to the standard one
        Raises:
          InvalidFormat: if path is not a string
          OpenFailed: if there is no usable repository at path
        """
        path = _check_path(path)
        try:
            native = NativeRepository.open(path)
        except StoreError as e:
            raise translate_error(e, path) from e
        self._init(path, native, wrapper)

    def _init(
        self, path: str, native: NativeRepository, wrapper: ObjectWrapper | None
    ) -> None:
        self.path = path
        self._native = native
        self._wrapper = wrapper if wrapper is not None else ObjectWrapper()
        self._finalizer = weakref.finalize(self, native.close)

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> "Repository":
        """Open the repository at path."""
        return cls(path)

    @classmethod
    def init_bare(cls, path: str | os.PathLike[str]) -> "Repository":
        """Create a new bare repository.

        Args:
          path: Directory to create the repository in
        Returns: The opened repository
        """
        path = _check_path(path)
        try:
            native = NativeRepository.init_bare(path)
        except StoreError as e:
            raise translate_error(e, path) from e
        logger.info("initialized empty repository in %s", path)
        ret = cls.__new__(cls)
        ret._init(path, native, None)
        return ret

    @property
    def controldir(self) -> str:
        """Path of the directory holding the objects directory."""
        return self._native.controldir

    @property
    def closed(self) -> bool:
        return self._native.closed

    def get_config(self) -> ConfigFile:
        """Retrieve the repository's config file."""
        return self._native.config

    def contains(self, hex: str) -> bool:
        """Check whether an object exists in the repository.

        Args:
          hex: Hex SHA of the object
        Raises:
          InvalidFormat: if hex is not a valid hex SHA
        """
        raw = parse_oid(hex).raw
        try:
            return self._native.exists(raw)
        except StoreError as e:
            raise translate_error(e, hex) from e

    def __contains__(self, hex: str) -> bool:
        return self.contains(hex)

    def read_raw(self, hex: str) -> tuple[int, bytes]:
        """Read an object's type and payload straight from the object database.

        Args:
          hex: Hex SHA of the object
        Returns: tuple with type number and raw contents
        Raises:
          NotFound: if the object does not exist
        """
        raw = parse_oid(hex).raw
        try:
            return self._native.read(raw)
        except StoreError as e:
            raise translate_error(e, hex) from e

    def lookup(self, hex: str) -> Object:
        """Look up an object and wrap it in a handle of the right class.

        Args:
          hex: Hex SHA of the object
        Returns: A BORROWED Commit, Tree, Blob or Tag
        Raises:
          InvalidFormat: if hex is not a valid hex SHA
          NotFound: if the object does not exist
          Corrupted: if the object cannot be parsed
        """
        raw = parse_oid(hex).raw
        try:
            record = self._native.lookup(raw)
        except StoreError as e:
            raise translate_error(e, hex) from e
        return self._wrapper.wrap(record, self)

    def __getitem__(self, hex: str) -> Object:
        return self.lookup(hex)

    def create(self, type_num: int) -> Object:
        """Create a new, unwritten object of the given type.

        Args:
          type_num: One of the GIT_OBJ_* constants
        Raises:
          TypeMismatch: if type_num is not a known object type
        """
        return self._wrapper.allocate(self, type_num)

    def close(self) -> None:
        """Release the object cache.

        Handles borrowed from this repository stop working.
        """
        self._finalizer()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} at {self.path!r}>"
