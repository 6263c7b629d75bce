# pool.py -- Resolve the LFS object stores shared through fork pools
# Copyright (C) 2026 The lfsgate Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# lfsgate is dual-licensed under the Apache License, Version 2.0 and the GNU
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

"""Fork pools.

A fork may share a deduplicated pool of LFS objects with the repository it
was forked from, in which case objects recorded for the parent count as
present for the fork as well.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from dulwich.object_store import DiskObjectStore

from .errors import LFSIntegrityError
from .log_utils import getLogger

__all__ = [
    "AlternatesForkNetwork",
    "DictForkNetwork",
    "ForkNetwork",
    "ObjectStore",
    "PoolResolutionError",
    "PoolResolver",
]

logger = getLogger(__name__)


class PoolResolutionError(LFSIntegrityError):
    """The pool owner of a repository could not be determined."""


@dataclass(frozen=True)
class ObjectStore:
    """A scope in which LFS objects can be recorded as present."""

    owner: str


class ForkNetwork:
    """Relationships between forks and the repositories owning their pool."""

    def pool_parent_of(self, identity: str) -> Optional[str]:
        """Find the repository whose pool a repository shares.

        Args:
          identity: Repository identity
        Returns:
          Identity of the pool parent, or None if the repository is not a
          fork sharing a pool
        """
        raise NotImplementedError(self.pool_parent_of)


class DictForkNetwork(ForkNetwork):
    """Fork network defined by a mapping from fork to parent."""

    def __init__(self, parents: Optional[Mapping[str, str]] = None) -> None:
        self._parents = dict(parents or {})

    def add_fork(self, child: str, parent: str) -> None:
        self._parents[child] = parent

    def pool_parent_of(self, identity: str) -> Optional[str]:
        return self._parents.get(identity)


class AlternatesForkNetwork(ForkNetwork):
    """Fork network for repositories on disk.

    A repository that borrows objects from another through
    ``objects/info/alternates`` shares that repository's pool. Identities are
    control directory paths.
    """

    def pool_parent_of(self, identity: str) -> Optional[str]:
        object_store = DiskObjectStore(os.path.join(identity, "objects"))
        for alternate in object_store.alternates:
            path = getattr(alternate, "path", None)
            if path is None:
                continue
            return os.path.dirname(os.path.normpath(os.path.abspath(path)))
        return None


class PoolResolver:
    """Determine which object stores count for a repository."""

    def __init__(self, fork_network: ForkNetwork, transitive: bool = False) -> None:
        """Initialize PoolResolver.

        Args:
          fork_network: Fork relationships to consult
          transitive: Whether to follow chains of forks to the root pool
            owner, rather than accepting only a parent that owns its pool
        """
        self.fork_network = fork_network
        self.transitive = transitive

    def _pool_root(self, identity: str, parent: str) -> str:
        seen = {identity, parent}
        while True:
            grandparent = self.fork_network.pool_parent_of(parent)
            if grandparent is None:
                return parent
            if grandparent in seen:
                raise PoolResolutionError(f"fork cycle involving {parent}")
            seen.add(grandparent)
            parent = grandparent

    def stores(self, repo) -> list[ObjectStore]:
        """List the object stores to consult for a repository.

        Args:
          repo: Repository handle with an ``identity`` attribute
        Returns:
          List of stores, starting with the repository's own
        """
        identity = repo.identity
        ret = [ObjectStore(identity)]
        parent = self.fork_network.pool_parent_of(identity)
        if parent is None or parent == identity:
            return ret
        if self.transitive:
            parent = self._pool_root(identity, parent)
        elif self.fork_network.pool_parent_of(parent) is not None:
            logger.debug(
                "%s is not the pool owner for %s; not using its objects",
                parent,
                identity,
            )
            return ret
        ret.append(ObjectStore(parent))
        return ret
