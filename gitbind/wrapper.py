# wrapper.py -- Creating handles for store records
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

"""Turning store records into handles.

:class:`ObjectWrapper` maps a record's type number to the handle class for
it. The mapping is fixed when the wrapper is built and cannot be changed
afterwards.

Wrapping a tag also wraps the object it points at. Tags may point at other
tags, so this recurses; a chain that revisits a tag, or that is longer than
``max_tag_depth``, raises :class:`gitbind.errors.CycleDetected`.
"""

__all__ = [
    "DEFAULT_REGISTRY",
    "MAX_TAG_DEPTH",
    "ObjectWrapper",
]

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from .errors import CycleDetected, StoreError, TypeMismatch, translate_error
from .handles import Blob, Commit, Object, Ownership, Tag
from .log_utils import getLogger
from .objects import RawObject, RawTag
from .tree import Tree

if TYPE_CHECKING:
    from .repo import Repository

logger = getLogger(__name__)

MAX_TAG_DEPTH = 64

DEFAULT_REGISTRY: Mapping[int, type[Object]] = MappingProxyType(
    {cls.type_num: cls for cls in (Commit, Tree, Blob, Tag)}
)


class ObjectWrapper:
    """Creates handles of the right class for store records."""

    def __init__(
        self,
        registry: Mapping[int, type[Object]] = DEFAULT_REGISTRY,
        max_tag_depth: int = MAX_TAG_DEPTH,
    ) -> None:
        """Create a wrapper.

        Args:
          registry: Mapping from type number to handle class; copied
          max_tag_depth: Longest tag chain to follow before giving up
        """
        self._registry = MappingProxyType(dict(registry))
        self.max_tag_depth = max_tag_depth

    @property
    def registry(self) -> Mapping[int, type[Object]]:
        return self._registry

    def handle_class(self, type_num: int) -> type[Object]:
        """Return the handle class for a type number.

        Raises:
          TypeMismatch: if no class is registered for the type
        """
        try:
            return self._registry[type_num]
        except (KeyError, TypeError) as exc:
            raise TypeMismatch("Invalid object type.") from exc

    def allocate(self, repo: "Repository", type_num: int) -> Object:
        """Create a new, OWNED object of the given type in repo."""
        return self.handle_class(type_num)(repo)

    def wrap(
        self,
        record: RawObject,
        repo: "Repository",
        ownership: Ownership = Ownership.BORROWED,
    ) -> Object:
        """Create a handle for a record.

        Args:
          record: The record to wrap
          repo: Repository the record belongs to
          ownership: Whether the handle frees the record when collected
        Raises:
          TypeMismatch: if the record's type has no registered class
          NotFound: if a tag's target is missing from the repository
          CycleDetected: if a chain of tags loops or is too deep
        """
        return self._wrap(record, repo, ownership, [])

    def _wrap(
        self,
        record: RawObject,
        repo: "Repository",
        ownership: Ownership,
        chain: list[str],
    ) -> Object:
        cls = self.handle_class(record.type_num)
        if isinstance(record, RawTag) and issubclass(cls, Tag):
            target = self._resolve_target(record, repo, chain)
            return cls._from_record(repo, record, ownership, target=target)
        return cls._from_record(repo, record, ownership)

    def _resolve_target(
        self, tag: RawTag, repo: "Repository", chain: list[str]
    ) -> Object | None:
        label = tag.id.hex() if tag.id is not None else "(new tag)"
        if (tag.id is not None and label in chain) or len(chain) >= self.max_tag_depth:
            logger.warning("giving up on tag chain %s", " -> ".join(chain + [label]))
            raise CycleDetected(chain + [label])
        target_hex = tag.target_id.hex() if tag.target_id is not None else None
        try:
            target = repo._native.tag_target(tag)
        except StoreError as e:
            raise translate_error(e, target_hex) from e
        if target is None:
            return None
        return self._wrap(target, repo, Ownership.BORROWED, chain + [label])
