# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

from dpichecker.utils.cancel import CancelToken


def test_cancel_is_idempotent_and_reaches_children():
    parent = CancelToken()
    child = parent.child()

    assert parent.cancel("stopped") is True
    assert parent.cancel("again") is False
    assert child.cancelled is True
    assert child.reason == "stopped"


def test_child_of_cancelled_parent_starts_cancelled():
    parent = CancelToken()
    parent.cancel("stopped")
    assert parent.child().cancelled is True


def test_cancel_stops_bound_tasks_only_while_running():
    async def scenario():
        token = CancelToken()
        finished = asyncio.create_task(asyncio.sleep(0))
        await finished
        token.bind(finished)

        pending = asyncio.create_task(asyncio.sleep(5))
        token.bind(pending)
        await asyncio.sleep(0)
        token.cancel()
        await asyncio.gather(pending, return_exceptions=True)
        return finished, pending

    finished, pending = asyncio.run(scenario())
    assert finished.cancelled() is False
    assert pending.cancelled() is True


def test_binding_after_cancel_cancels_immediately():
    async def scenario():
        token = CancelToken()
        token.cancel()
        task = asyncio.create_task(asyncio.sleep(5))
        token.bind(task)
        await asyncio.gather(task, return_exceptions=True)
        return task

    assert asyncio.run(scenario()).cancelled() is True
