import asyncio

import pytest
from fastapi import HTTPException, WebSocketDisconnect

from shoal.app import server
from shoal.app.server import SimulationController
from shoal.sim.core.config import PopulationConfig, SimulationConfig


def _controller() -> SimulationController:
    return SimulationController(SimulationConfig(population=PopulationConfig(fish_count=10)))


def test_snapshot_queue_ack_cleanup() -> None:
    controller = _controller()

    async def exercise() -> None:
        controller.tick = 1
        await controller._broadcast_snapshot()
        controller.tick = 2
        await controller._broadcast_snapshot()
        async with controller._queue_lock:
            queued_ticks = [item.tick for item in controller._snapshot_queue]
        assert queued_ticks == [1, 2]
        await controller.acknowledge(1)
        async with controller._queue_lock:
            remaining_ticks = [item.tick for item in controller._snapshot_queue]
        assert remaining_ticks == [2]

    asyncio.run(exercise())


def test_collaborator_calls_apply_between_frames() -> None:
    controller = _controller()

    async def exercise() -> None:
        await controller.advance()
        assert controller.tick == 1
        bounds = await controller.resize(400.0, 200.0)
        assert bounds == {"min_x": -200.0, "min_y": -100.0, "max_x": 200.0, "max_y": 100.0}
        placed = await controller.click(200.0, 100.0)
        assert placed == {"id": 0, "x": 0.0, "y": 0.0}
        assert await controller.click(-10.0, 5.0) is None
        params = await controller.update_parameters({"max_force": 0.5, "separation_radius": 500.0})
        assert params["max_force"] == 0.5
        assert params["separation_radius"] == 100.0
        assert await controller.set_fish_count(300) == 300
        await controller.advance()
        assert len(controller.world.fish) == 300
        await controller.clear_obstacles()
        assert controller.world.obstacles == []

    asyncio.run(exercise())


def test_reset_clears_tick_and_queue() -> None:
    controller = _controller()

    async def exercise() -> None:
        await controller.advance()
        await controller.advance()
        controller.tick = 5
        await controller._broadcast_snapshot()
        await controller.reset()
        assert controller.tick == 0
        async with controller._queue_lock:
            assert [item.tick for item in controller._snapshot_queue] == [0]

    asyncio.run(exercise())


class _ScriptedSocket:
    def __init__(self, messages, fail_sends: bool = False) -> None:
        self._messages = list(messages)
        self._fail_sends = fail_sends
        self.sent: list[str] = []

    async def accept(self) -> None:
        return None

    async def send_text(self, text: str) -> None:
        if self._fail_sends:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.sent.append(text)

    async def receive_text(self) -> str:
        if not self._messages:
            raise WebSocketDisconnect()
        return self._messages.pop(0)


def test_malformed_socket_messages_are_ignored() -> None:
    controller = _controller()

    async def exercise() -> None:
        await controller.resize(400.0, 200.0)
        for message in [
            "not json",
            "[1, 2, 3]",
            '"click"',
            '{"type": "click", "x": "abc", "y": 1}',
            '{"type": "click", "x": null, "y": 1}',
            '{"type": "ack", "tick": "soon"}',
        ]:
            await controller.handle_message(message)
        assert controller.world.obstacles == []
        await controller.handle_message('{"type": "click", "x": 200, "y": 100}')
        assert len(controller.world.obstacles) == 1

    asyncio.run(exercise())


def test_socket_client_is_unregistered_after_bad_click() -> None:
    socket = _ScriptedSocket(['{"type": "click", "x": "abc", "y": 1}', "[]"])

    async def exercise() -> None:
        await server.websocket_endpoint(socket)  # type: ignore[arg-type]

    asyncio.run(exercise())

    assert socket not in server.controller.clients
    assert socket not in server.controller._client_last_sent
    assert server.controller.world.obstacles == []


def test_broadcast_drops_clients_whose_socket_is_closed() -> None:
    controller = _controller()
    closed = _ScriptedSocket([], fail_sends=True)
    healthy = _ScriptedSocket([])
    controller.clients.update({closed, healthy})  # type: ignore[arg-type]

    asyncio.run(controller._broadcast_snapshot())

    assert closed not in controller.clients
    assert healthy in controller.clients
    assert len(healthy.sent) == 1


def test_bad_http_payloads_are_rejected_with_400() -> None:
    async def call(route, payload):
        with pytest.raises(HTTPException) as excinfo:
            await route(payload)
        assert excinfo.value.status_code == 400

    async def exercise() -> None:
        await call(server.set_population, {"count": "many"})
        await call(server.set_population, {"count": None})
        await call(server.set_viewport, {"width": 800})
        await call(server.pointer_click, {"x": "left", "y": 3})
        await call(server.set_params, {"gravity": 9.8})

    asyncio.run(exercise())
