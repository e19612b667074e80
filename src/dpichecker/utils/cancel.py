# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Cancellation tokens for probe tasks.

A token is bound to the asyncio tasks doing its work and may have child tokens.
Cancelling a token cancels its bound tasks and every child exactly once; later
calls are no-ops. Tasks that already finished are not touched, so cancelling a
completed probe has no observable effect.
"""

from __future__ import annotations

import asyncio


class CancelToken:
    def __init__(self, parent: CancelToken | None = None):
        self.reason: str | None = None
        self._tasks: set[asyncio.Task] = set()
        self._children: list[CancelToken] = []
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self.cancel(parent.reason or "cancelled")

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

    def child(self) -> CancelToken:
        return CancelToken(self)

    def bind(self, task: asyncio.Task) -> None:
        """Attach a task; it is cancelled right away when the token already fired."""
        if task.done():
            return
        if self.cancelled:
            task.cancel()
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self, reason: str = "cancelled") -> bool:
        """Cancel bound tasks and children. Returns False when already cancelled."""
        if self.cancelled:
            return False
        self.reason = reason
        for task in list(self._tasks):
            task.cancel()
        for child in self._children:
            child.cancel(reason)
        return True


__all__ = ["CancelToken"]
