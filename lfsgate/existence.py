# existence.py -- Check which LFS objects are present in object stores
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

"""Presence of LFS objects in object stores."""

import os
from collections.abc import Iterable, Sequence
from collections.abc import Set as AbstractSet

from dulwich.lfs import LFSStore

from .errors import LFSIntegrityError
from .log_utils import getLogger
from .pool import ObjectStore

__all__ = [
    "DiskPresenceIndex",
    "ExistenceChecker",
    "MemoryPresenceIndex",
    "PresenceIndex",
    "StoreUnavailable",
]

logger = getLogger(__name__)


class StoreUnavailable(LFSIntegrityError):
    """An object store could not be queried."""

    def __init__(self, store: ObjectStore, reason: str) -> None:
        self.store = store
        self.reason = reason
        super().__init__(f"LFS object store for {store.owner} unavailable: {reason}")


class PresenceIndex:
    """Records of which LFS objects are present in which stores."""

    def exists_batch(self, store: ObjectStore, oids: AbstractSet[str]) -> set[str]:
        """Look up a batch of objects in a store.

        Args:
          store: Store to look in
          oids: Object ids to look up
        Returns:
          The subset of oids present in store
        Raises:
          StoreUnavailable: if the store can not be queried
        """
        raise NotImplementedError(self.exists_batch)


class MemoryPresenceIndex(PresenceIndex):
    """Presence index that keeps its records in memory."""

    def __init__(self) -> None:
        self._records: dict[str, set[str]] = {}

    def add(self, owner: str, oid: str) -> None:
        self._records.setdefault(owner, set()).add(oid)

    def exists_batch(self, store: ObjectStore, oids: AbstractSet[str]) -> set[str]:
        return self._records.get(store.owner, set()) & set(oids)


class DiskPresenceIndex(PresenceIndex):
    """Presence index backed by the LFS store in a repository's control directory."""

    def exists_batch(self, store: ObjectStore, oids: AbstractSet[str]) -> set[str]:
        if not os.path.isdir(store.owner):
            raise StoreUnavailable(store, "no such repository")
        lfs_store = LFSStore.from_controldir(store.owner)
        found = set()
        for oid in oids:
            try:
                f = lfs_store.open_object(oid)
            except KeyError:
                continue
            f.close()
            found.add(oid)
        return found


class ExistenceChecker:
    """Determine which LFS objects are missing from every store of a pool."""

    def __init__(self, presence_index: PresenceIndex) -> None:
        self.presence_index = presence_index

    def _find_present(
        self, stores: Sequence[ObjectStore], oids: frozenset[str]
    ) -> set[str]:
        present: set[str] = set()
        for store in stores:
            present |= self.presence_index.exists_batch(store, oids)
            if present >= oids:
                break
        return present

    def missing(self, oids: Iterable[str], stores: Sequence[ObjectStore]) -> set[str]:
        """Find the objects that are not present in any store.

        Args:
          oids: Object ids to check; may contain duplicates
          stores: Stores to consult
        Returns:
          Set of oids not present in any of the stores
        """
        wanted = frozenset(oids)
        if not wanted:
            return set()
        present = self._find_present(stores, wanted)
        missing = set(wanted - present)
        logger.debug(
            "%d of %d LFS objects missing from %d stores",
            len(missing),
            len(wanted),
            len(stores),
        )
        return missing
