import asyncio

import pytest

from parley.core.connections.client import Initiator
from parley.core.controlplane import ControlPlane
from parley.core.models.config import ClientConfig
from parley.core.models.endpoint import Endpoint
from parley.core.responder import DEFAULT_ACKNOWLEDGEMENT, EchoReply, Responder
from parley.infra.line_framer import LineFramer
from tests.helpers import make_server_config, wait_until


async def start(config) -> tuple[ControlPlane, asyncio.Event, asyncio.Task]:
    cp = ControlPlane(config, LineFramer(), loop=asyncio.get_running_loop())
    stop_event = asyncio.Event()
    task = asyncio.create_task(cp.start(stop_event))
    await wait_until(lambda: cp.listener.running)
    return cp, stop_event, task


async def exchange(port: int, message: str) -> str:
    config = ClientConfig(endpoint=Endpoint("127.0.0.1", port), read_timeout=2.0)
    async with Initiator(config, LineFramer()) as client:
        return await client.request(message)


@pytest.mark.it
@pytest.mark.asyncio
async def test_single_shot_stops_after_exchange():
    cp, _, task = await start(make_server_config())
    _, port = cp.listener.listen

    assert await exchange(port, "Request to transfer money") == DEFAULT_ACKNOWLEDGEMENT

    await asyncio.wait_for(task, 3)
    assert not cp.listener.running
    assert cp.listener.state.accepted == 1

    with pytest.raises(ConnectionRefusedError):
        await exchange(port, "again")


@pytest.mark.it
@pytest.mark.asyncio
async def test_stop_before_any_client():
    cp, stop_event, task = await start(make_server_config())

    stop_event.set()
    await asyncio.wait_for(task, 3)

    assert not cp.listener.running
    assert cp.listener.state.accepted == 0


@pytest.mark.it
@pytest.mark.asyncio
async def test_stop_during_exchange():
    gate = asyncio.Event()

    async def app(receive, send):
        await receive()
        await gate.wait()

    cp, stop_event, task = await start(make_server_config(app=app))
    _, port = cp.listener.listen

    _, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(b"hello\n")
    await writer.drain()
    await wait_until(lambda: cp.listener.state.accepted == 1)

    stop_event.set()
    await asyncio.wait_for(task, 3)
    assert not cp.listener.state.sessions

    writer.close()
    await writer.wait_closed()


@pytest.mark.it
@pytest.mark.asyncio
async def test_serve_mode_until_stopped():
    config = make_server_config(app=Responder(EchoReply("echo: ")), single_shot=False)
    cp, stop_event, task = await start(config)
    _, port = cp.listener.listen

    assert await exchange(port, "one") == "echo: one"
    assert await exchange(port, "two") == "echo: two"
    assert not task.done()

    stop_event.set()
    await asyncio.wait_for(task, 3)
    assert cp.listener.state.accepted == 2
