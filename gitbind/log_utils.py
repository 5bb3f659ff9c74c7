# log_utils.py -- Logging setup for the gitbind logger hierarchy
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


"""Logging setup for gitbind.

Every module logs to a child of the ``gitbind`` logger, obtained through
:func:`getLogger`. As a library gitbind prints nothing by default: the
``gitbind`` logger carries a null handler until an application calls
:func:`default_logging_config`, which attaches a single stderr handler, or
a trace handler when ``GIT_TRACE`` is set.
"""

__all__ = [
    "default_logging_config",
    "getLogger",
    "remove_null_handler",
]

import logging
import os
import sys

getLogger = logging.getLogger

_LOGGER = getLogger("gitbind")
_NULL_HANDLER = logging.NullHandler()
_LOGGER.addHandler(_NULL_HANDLER)

_HANDLER_NAME = "gitbind-default"
_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def _trace_destination(value: str) -> int | str | None:
    """Interpret a GIT_TRACE value.

    Returns: None when tracing is off, a file descriptor (2 meaning
      stderr), or an absolute path
    """
    value = value.strip()
    if value.lower() in ("", "0", "false"):
        return None
    if value.lower() in ("1", "2", "true"):
        return 2
    if len(value) == 1 and value in "3456789":
        return int(value)
    if os.path.isabs(value):
        return value
    return None


def _trace_handler(destination: int | str) -> logging.Handler:
    if destination == 2:
        return logging.StreamHandler(sys.stderr)
    if isinstance(destination, int):
        return logging.StreamHandler(os.fdopen(destination, "w", buffering=1))
    if os.path.isdir(destination):
        destination = os.path.join(destination, f"trace.{os.getpid()}")
    return logging.FileHandler(destination, mode="a")


def default_logging_config(level: int = logging.INFO) -> None:
    """Send gitbind's log records to stderr, or wherever GIT_TRACE says.

    GIT_TRACE is read the way git reads it: "1", "2" or "true" trace to
    stderr, a digit from 3 to 9 to that file descriptor, and an absolute
    path to that file, or to a per-process file when it is a directory.
    Tracing logs at DEBUG; otherwise records at level and above are shown.

    Calling this again replaces the handler it installed before. Other
    loggers, including the root logger, are left alone.
    """
    remove_null_handler()
    for old in list(_LOGGER.handlers):
        if old.get_name() == _HANDLER_NAME:
            _LOGGER.removeHandler(old)
            old.close()
    destination = _trace_destination(os.environ.get("GIT_TRACE", ""))
    failure: OSError | None = None
    handler: logging.Handler
    if destination is None:
        handler = logging.StreamHandler(sys.stderr)
    else:
        level = logging.DEBUG
        try:
            handler = _trace_handler(destination)
        except OSError as e:
            handler = logging.StreamHandler(sys.stderr)
            failure = e
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT))
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(level)
    if failure is not None:
        _LOGGER.warning(
            "could not open GIT_TRACE destination %s: %s", destination, failure
        )


def remove_null_handler() -> None:
    """Remove the null handler from the gitbind logger.

    Applications attaching their own handlers can call this to skip it.
    """
    _LOGGER.removeHandler(_NULL_HANDLER)
