# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-probe execution: the probe engine and the reachability check."""

from .engine import ProbeEngine
from .reachability import NETWORK_PREFIX, check_reachability

__all__ = ["NETWORK_PREFIX", "ProbeEngine", "check_reachability"]
