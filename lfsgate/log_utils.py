# log_utils.py -- Logging setup for lfsgate
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

"""Logging utilities for lfsgate.

lfsgate mostly runs inside git hooks and servers that set up their own
logging, so the package logger carries a handler that discards records until
the embedding application (or the command line) configures output with
default_logging_config.

Modules only need getLogger, which is exported here for convenience.
"""

import logging
import os
import sys
from typing import Optional, Union

getLogger = logging.getLogger

TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

_NULL_HANDLER = logging.NullHandler()
_LFSGATE_LOGGER = getLogger("lfsgate")
_LFSGATE_LOGGER.addHandler(_NULL_HANDLER)


def get_trace_target(environ: Optional[dict[str, str]] = None) -> Optional[Union[str, int]]:
    """Get the trace target from the GIT_TRACE environment variable.

    Returns:
        - None if tracing is disabled
        - 2 for stderr output (values "1", "2", "true")
        - int (3-9) for a file descriptor
        - str for an absolute file or directory path
    """
    if environ is None:
        environ = dict(os.environ)
    value = environ.get("GIT_TRACE", "")
    if not value or value.lower() in ("0", "false"):
        return None
    if value.lower() in ("1", "2", "true"):
        return 2
    if value.isdigit() and 3 <= int(value) <= 9:
        return int(value)
    if os.path.isabs(value):
        return value
    return None


def _configure_trace(target: Union[str, int]) -> bool:
    if target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=TRACE_FORMAT)
        return True
    try:
        if isinstance(target, int):
            stream = os.fdopen(target, "w", buffering=1)
            logging.basicConfig(level=logging.DEBUG, stream=stream, format=TRACE_FORMAT)
            return True
        if os.path.isdir(target):
            target = os.path.join(target, f"trace.{os.getpid()}")
        logging.basicConfig(
            level=logging.DEBUG, filename=target, filemode="a", format=TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open GIT_TRACE target {target}: {e}\n")
        return False
    return True


def default_logging_config(level: int = logging.INFO) -> None:
    """Set up logging for command line use.

    GIT_TRACE, when set, selects debug output to stderr, a file descriptor
    or a file; otherwise messages of at least level go to stderr.
    """
    remove_null_handler()
    target = get_trace_target()
    if target is not None and _configure_trace(target):
        return
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")


def remove_null_handler() -> None:
    """Remove the null handler from the lfsgate logger."""
    _LFSGATE_LOGGER.removeHandler(_NULL_HANDLER)
