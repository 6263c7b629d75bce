# greenthreads.py -- Query LFS object stores with gevent
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

"""Utility module for querying LFS object stores with gevent."""

from collections.abc import Sequence

import gevent
from gevent import pool

from .existence import ExistenceChecker, PresenceIndex
from .pool import ObjectStore


class GreenThreadsExistenceChecker(ExistenceChecker):
    """Determine which LFS objects are missing from every store of a pool.

    Same implementation as existence.ExistenceChecker
    except we use gevent to query the stores concurrently.
    """

    def __init__(self, presence_index: PresenceIndex, concurrency: int = 2) -> None:
        """Initialize GreenThreadsExistenceChecker.

        Args:
          presence_index: Index to query
          concurrency: Number of concurrent green threads
        """
        super().__init__(presence_index)
        self.concurrency = concurrency

    def _find_present(
        self, stores: Sequence[ObjectStore], oids: frozenset[str]
    ) -> set[str]:
        p = pool.Pool(size=self.concurrency)
        jobs = [p.spawn(self.presence_index.exists_batch, s, oids) for s in stores]
        gevent.joinall(jobs, raise_error=True)
        present: set[str] = set()
        for job in jobs:
            present |= job.value
        return present
