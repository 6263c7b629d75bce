# integrity.py -- Detect pushes referencing missing LFS objects
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

"""LFS integrity check for pushes.

A push that adds LFS pointers must only be accepted once the objects they
point to have been uploaded. The check avoids reading the repository at all
when LFS is disabled or a ref is being deleted, and avoids querying object
stores when the pushed changes contain no pointers.

Typical use::

    gate = IntegrityGate.from_config(repo.get_config_stack())
    reader = GitRepositoryReader(repo)
    if gate.has_missing_objects(reader, oldrev, newrev):
        reject()
"""

from typing import TYPE_CHECKING, Optional

from .existence import DiskPresenceIndex, ExistenceChecker
from .log_utils import getLogger
from .pool import AlternatesForkNetwork, PoolResolver
from .scanner import GitRepositoryReader, PointerScanner, Revision, RevisionRange

if TYPE_CHECKING:
    from dulwich.config import Config

__all__ = [
    "ConfigFeatureToggle",
    "FeatureToggle",
    "IntegrityGate",
    "StaticFeatureToggle",
]

logger = getLogger(__name__)

CONFIG_SECTION = (b"lfs",)


class FeatureToggle:
    """Decides whether LFS is enabled for a repository."""

    def enabled_for(self, repo: GitRepositoryReader) -> bool:
        raise NotImplementedError(self.enabled_for)


class StaticFeatureToggle(FeatureToggle):
    """Feature toggle with the same answer for every repository."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled

    def enabled_for(self, repo: GitRepositoryReader) -> bool:
        return self.enabled


class ConfigFeatureToggle(FeatureToggle):
    """Feature toggle reading ``lfs.enabled`` from git configuration."""

    def __init__(self, config: "Config") -> None:
        self.config = config

    def enabled_for(self, repo: GitRepositoryReader) -> bool:
        return bool(self.config.get_boolean(CONFIG_SECTION, b"enabled", False))


def _get_int(config: "Config", name: bytes, default: int) -> int:
    try:
        value = config.get(CONFIG_SECTION, name)
    except KeyError:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"lfs.{name.decode()} is not an integer: {value!r}") from exc


class IntegrityGate:
    """Decide whether a push references LFS objects that were never uploaded."""

    def __init__(
        self,
        feature_toggle: FeatureToggle,
        pool_resolver: PoolResolver,
        checker: ExistenceChecker,
        scanner: Optional[PointerScanner] = None,
    ) -> None:
        """Initialize IntegrityGate.

        Args:
          feature_toggle: Decides whether the check applies to a repository
          pool_resolver: Finds the object stores to consult
          checker: Finds objects missing from those stores
          scanner: Finds pointers in pushed changes
        """
        self.feature_toggle = feature_toggle
        self.pool_resolver = pool_resolver
        self.checker = checker
        if scanner is None:
            scanner = PointerScanner()
        self.scanner = scanner

    @classmethod
    def from_config(cls, config: "Config") -> "IntegrityGate":
        """Create a gate for repositories on disk.

        Args:
          config: Configuration to read the ``lfs`` section from
        Returns:
          IntegrityGate instance
        """
        presence_index = DiskPresenceIndex()
        concurrency = _get_int(config, b"checkConcurrency", 1)
        checker: ExistenceChecker
        if concurrency > 1:
            from .greenthreads import GreenThreadsExistenceChecker

            checker = GreenThreadsExistenceChecker(presence_index, concurrency)
        else:
            checker = ExistenceChecker(presence_index)
        transitive = config.get_boolean(CONFIG_SECTION, b"transitivePools", False)
        resolver = PoolResolver(AlternatesForkNetwork(), transitive=bool(transitive))
        return cls(ConfigFeatureToggle(config), resolver, checker)

    def missing_objects(
        self,
        repo: GitRepositoryReader,
        oldrev: Optional[Revision],
        newrev: Optional[Revision],
    ) -> set[str]:
        """Find the LFS objects referenced by a push but not uploaded.

        Args:
          repo: Repository being pushed to
          oldrev: Previous value of the ref, or the empty tree id for a new ref
          newrev: New value of the ref, or None if the ref is being deleted
        Returns:
          Set of missing oids; empty if the check does not apply
        """
        if not self.feature_toggle.enabled_for(repo):
            logger.debug("LFS disabled for %s, skipping integrity check", repo.identity)
            return set()
        revs = RevisionRange.from_revs(oldrev, newrev)
        if revs.is_deletion:
            logger.debug("ref deleted in %s, skipping integrity check", repo.identity)
            return set()
        oids = [pointer.oid for pointer in self.scanner.scan(repo, revs.oldrev, revs.newrev)]
        if not oids:
            return set()
        stores = self.pool_resolver.stores(repo)
        missing = self.checker.missing(oids, stores)
        if missing:
            logger.info(
                "%d LFS objects missing for push to %s", len(missing), repo.identity
            )
        return missing

    def has_missing_objects(
        self,
        repo: GitRepositoryReader,
        oldrev: Optional[Revision],
        newrev: Optional[Revision],
    ) -> bool:
        """Check whether a push references LFS objects that were not uploaded.

        Returns:
          True if the push should be rejected
        """
        return bool(self.missing_objects(repo, oldrev, newrev))
