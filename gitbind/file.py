# file.py -- Lock file protocol for replacing repository files
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

"""Writing files in a repository control directory.

New contents go to ``<name>.lock``, which is created exclusively and renamed
over ``<name>`` once complete. Readers see either the old file or the new
one, and two writers racing for the same file cannot both win. Loose objects
and the config file of a new repository are written this way.
"""

__all__ = [
    "FileLocked",
    "LockedFile",
]

import os
from types import TracebackType
from typing import IO

from .log_utils import getLogger

logger = getLogger(__name__)


class FileLocked(Exception):
    """Another writer holds the lock file."""

    def __init__(self, path: str, lockpath: str) -> None:
        """Initialize FileLocked.

        Args:
          path: The file that was to be replaced
          lockpath: The lock file that already exists
        """
        self.path = path
        self.lockpath = lockpath
        super().__init__(f"{lockpath} already exists")


class LockedFile:
    """A lock file that replaces its target when the ``with`` block ends.

    Leaving the block normally renames the lock file into place; leaving it
    with an exception removes the lock file and keeps the target as it was.
    """

    def __init__(
        self, path: str | os.PathLike[str], mask: int = 0o644, fsync: bool = False
    ) -> None:
        """Take the lock for path.

        Args:
          path: File to replace; it need not exist yet
          mask: Permission bits of the new file
          fsync: Whether to flush the new contents to disk before the rename
        Raises:
          FileLocked: if the lock file already exists
        """
        self.path = os.fspath(path)
        self.lockpath = self.path + ".lock"
        self._fsync = fsync
        flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
        try:
            fd = os.open(self.lockpath, flags, mask)
        except FileExistsError as exc:
            raise FileLocked(self.path, self.lockpath) from exc
        self._file: IO[bytes] | None = os.fdopen(fd, "wb")

    @property
    def done(self) -> bool:
        """Whether the lock has been committed or aborted."""
        return self._file is None

    def _take_file(self) -> IO[bytes]:
        if self._file is None:
            raise ValueError(f"lock on {self.path} has already been released")
        f, self._file = self._file, None
        return f

    def write(self, data: bytes) -> int:
        if self._file is None:
            raise ValueError(f"lock on {self.path} has already been released")
        return self._file.write(data)

    def commit(self) -> None:
        """Rename the lock file over the target.

        Raises:
          OSError: if the rename fails; the lock file is removed first
        """
        f = self._take_file()
        with f:
            f.flush()
            if self._fsync:
                os.fsync(f.fileno())
        try:
            os.replace(self.lockpath, self.path)
        except OSError:
            logger.warning("could not rename %s into place, removing it", self.lockpath)
            os.remove(self.lockpath)
            raise

    def abort(self) -> None:
        """Remove the lock file, leaving the target untouched."""
        if self.done:
            return
        self._take_file().close()
        try:
            os.remove(self.lockpath)
        except FileNotFoundError:
            pass

    def __enter__(self) -> "LockedFile":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.abort()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"
