# errors.py -- errors for gitbind
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

"""Exception classes and store error translation.

The object store reports failures as :class:`StoreError` instances carrying a
numeric :class:`ErrorCode`. The binding layer never lets those escape; it
converts them with :func:`translate_error` into one of the host exceptions
defined here, attaching the hex SHA or other value the caller passed in.
"""

__all__ = [
    "CycleDetected",
    "Corrupted",
    "ErrorCode",
    "GitError",
    "GitOSError",
    "IndexOutOfRange",
    "InvalidFormat",
    "NotFound",
    "OpenFailed",
    "OutOfMemory",
    "StoreError",
    "TypeMismatch",
    "translate_error",
]

import enum


class ErrorCode(enum.IntEnum):
    """Result codes reported by the object store."""

    OK = 0
    ERROR = -1
    ENOTOID = -2
    ENOTFOUND = -3
    ENOMEM = -4
    EOSERR = -5
    EOBJTYPE = -6
    EOBJCORRUPTED = -7
    ENOTAREPO = -8
    EINVALIDTYPE = -9
    EMISSINGOBJDATA = -10
    EZLIB = -13


class StoreError(Exception):
    """Failure reported by the object store."""

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        errno: int | None = None,
        filename: str | None = None,
    ) -> None:
        """Initialize a StoreError.

        Args:
          code: The store result code
          message: Human readable description
          errno: Platform error number, for EOSERR
          filename: File the failure relates to, if any
        """
        self.code = ErrorCode(code)
        self.message = message if message is not None else self.code.name
        self.errno = errno
        self.filename = filename
        super().__init__(self.code, self.message)

    def __str__(self) -> str:
        return f"{self.message} ({self.code.name})"


class GitError(Exception):
    """Base class for all errors raised by gitbind."""


class InvalidFormat(GitError, ValueError):
    """A hex SHA or other argument was malformed or of the wrong kind."""

    def __init__(self, message: str, value: object = None) -> None:
        """Initialize an InvalidFormat exception.

        Args:
          message: Description of the problem
          value: The offending input
        """
        self.value = value
        super().__init__(message)


class NotFound(GitError, KeyError):
    """The requested object or name does not exist."""


class IndexOutOfRange(GitError, IndexError):
    """A positional index fell outside the valid range."""


class TypeMismatch(GitError, TypeError):
    """An object of the wrong variant was supplied or found."""


class Corrupted(GitError):
    """Object data failed to parse as its claimed type."""


class CycleDetected(Corrupted):
    """Tag target resolution looped or went too deep."""

    def __init__(self, chain: list[str]) -> None:
        """Initialize a CycleDetected exception.

        Args:
          chain: Hex SHAs visited before giving up, outermost first
        """
        self.chain = chain
        super().__init__(f"Tag target chain too deep or cyclic: {' -> '.join(chain)}")


class OutOfMemory(GitError, MemoryError):
    """The store could not allocate memory for an object."""


class GitOSError(GitError, OSError):
    """An operating system level I/O failure inside the store."""


class OpenFailed(GitError):
    """No usable repository was found at a path."""

    def __init__(self, path: str, reason: str | None = None) -> None:
        """Initialize an OpenFailed exception.

        Args:
          path: Path that was opened
          reason: Optional extra detail
        """
        self.path = path
        message = f"Failed to open repo directory at {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


def _describe_invalid_hex(value: object) -> InvalidFormat:
    if not isinstance(value, str):
        return InvalidFormat(
            f"Hex SHA must be str, not {type(value).__name__:.200}", value
        )
    return InvalidFormat(f"Invalid hex SHA: {value!r}", value)


def translate_error(err: StoreError, value: object = None) -> GitError:
    """Convert a store failure into the exception to raise to the caller.

    Args:
      err: The failure reported by the store
      value: Context for the failure, usually the hex SHA that was asked for
    Returns: A GitError subclass instance; the caller raises it
    """
    code = err.code
    if code == ErrorCode.ENOMEM:
        return OutOfMemory()
    if code == ErrorCode.EOSERR:
        return GitOSError(err.errno or 0, err.message, err.filename)
    if code in (ErrorCode.EOBJTYPE, ErrorCode.EINVALIDTYPE):
        return TypeMismatch("Invalid object type.")
    if code == ErrorCode.ENOTOID:
        return _describe_invalid_hex(value)
    if code == ErrorCode.ENOTFOUND:
        return NotFound(value)
    if code in (ErrorCode.EOBJCORRUPTED, ErrorCode.EZLIB):
        return Corrupted(f"Corrupted object: {value!s}")
    if code == ErrorCode.ENOTAREPO:
        return OpenFailed(str(value), err.message)
    return GitError(err.message)
