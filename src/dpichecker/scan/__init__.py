# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Suite orchestration: reachability gate plus concurrent probe fan-out."""

from .orchestrator import ProbeOrchestrator
from .session import RunSession

__all__ = ["ProbeOrchestrator", "RunSession"]
