import asyncio
import logging

import pytest

from fakes import FakeLink, settle
from resbridge.app import BridgeService
from resbridge.errors import EnumerationFailure, WriteFailure
from resbridge.transport import LinkState, PortInfo, SerialLink


def run(coro):
    return asyncio.run(coro)


def test_update_with_resistance():
    link = FakeLink()
    response = run(BridgeService(link).handle_update({"resistance": 73}))
    assert response.status_code == 200
    assert response.body == {"success": True, "resistance": 73, "tokens": None, "command": "R:73"}
    assert link.written == [b"R:73\n"]


def test_update_with_tokens_echoes_tokens():
    link = FakeLink()
    response = run(BridgeService(link).handle_update({"tokens": 500}))
    assert response.status_code == 200
    assert response.body["resistance"] == 50
    assert response.body["tokens"] == 500
    assert response.body["command"] == "R:50"


def test_update_uses_configured_tag():
    link = FakeLink()
    run(BridgeService(link, tag="FAN").handle_update({"resistance": 5}))
    assert link.written == [b"FAN:5\n"]


@pytest.mark.parametrize("body", [{}, {"tokens": "many"}, {"resistance": None}, [], "R:50", None])
def test_update_without_usable_value_is_400(body):
    link = FakeLink()
    response = run(BridgeService(link).handle_update(body))
    assert response.status_code == 400
    assert response.body["success"] is False
    assert response.body["error"]
    assert link.written == []


def test_update_while_disconnected_is_503_without_write(caplog):
    caplog.set_level(logging.INFO, logger="resbridge")
    link = FakeLink(connected=False)
    response = run(BridgeService(link).handle_update({"resistance": 40}))
    assert response.status_code == 503
    assert response.body["success"] is False
    assert response.body["error"] == "Arduino not connected"
    assert link.written == []
    assert "Sent to Arduino" not in caplog.text


def test_update_while_connecting_is_503():
    link = FakeLink(connected=False)
    link.state = LinkState.CONNECTING
    response = run(BridgeService(link).handle_update({"resistance": 40}))
    assert response.status_code == 503


def test_update_write_failure_is_500():
    link = FakeLink()
    link.write_error = WriteFailure("Input/output error")
    response = run(BridgeService(link).handle_update({"resistance": 40}))
    assert response.status_code == 500
    assert response.body["success"] is False
    assert "Input/output error" in response.body["error"]
    assert link.state is LinkState.CONNECTED


def test_status_reports_link_state():
    link = FakeLink(connected=False)
    service = BridgeService(link)
    body = service.handle_status().body
    assert body["success"] is True
    assert body["server"] == "running"
    assert body["arduino"] == "disconnected"
    assert body["port"] == "/dev/ttyFAKE"
    assert body["timestamp"]
    link.state = LinkState.CONNECTING
    assert service.handle_status().body["arduino"] == "disconnected"
    link.state = LinkState.CONNECTED
    assert service.handle_status().body["arduino"] == "connected"


def test_status_is_stable_without_link_events():
    service = BridgeService(FakeLink())
    bodies = [service.handle_status().body for _ in range(5)]
    assert {(b["arduino"], b["port"], b["server"]) for b in bodies} == {("connected", "/dev/ttyFAKE", "running")}


@pytest.mark.parametrize("value", list(range(0, 101)))
def test_test_accepts_whole_range(value):
    link = FakeLink()
    response = run(BridgeService(link).handle_test(str(value)))
    assert response.status_code == 200
    assert response.body == {"success": True, "command": f"R:{value}"}
    assert link.written == [f"R:{value}\n".encode()]


@pytest.mark.parametrize("raw", ["-1", "101", "2.5", "ten", ""])
def test_test_rejects_out_of_range_or_non_integer(raw):
    link = FakeLink()
    response = run(BridgeService(link).handle_test(raw))
    assert response.status_code == 400
    assert link.written == []


def test_test_validates_before_link_state():
    response = run(BridgeService(FakeLink(connected=False)).handle_test("500"))
    assert response.status_code == 400


def test_test_while_disconnected_is_503():
    response = run(BridgeService(FakeLink(connected=False)).handle_test("50"))
    assert response.status_code == 503


def test_test_write_failure_is_500():
    link = FakeLink()
    link.write_error = WriteFailure("device gone")
    response = run(BridgeService(link).handle_test("50"))
    assert response.status_code == 500


def test_ping_sends_literal_line():
    link = FakeLink()
    response = run(BridgeService(link).handle_ping())
    assert response.status_code == 200
    assert response.body == {"success": True, "message": "Ping sent"}
    assert link.written == [b"PING\n"]


def test_ping_while_disconnected_is_503():
    response = run(BridgeService(FakeLink(connected=False)).handle_ping())
    assert response.status_code == 503


def test_ping_write_failure_is_500():
    link = FakeLink()
    link.write_error = WriteFailure("device gone")
    response = run(BridgeService(link).handle_ping())
    assert response.status_code == 500
    assert response.body["success"] is False


def test_list_ports():
    async def lister():
        return [PortInfo("/dev/ttyACM0", "Arduino (www.arduino.cc)", "7553"), PortInfo("/dev/ttyS0")]

    response = run(BridgeService(FakeLink(connected=False), port_lister=lister).handle_list_ports())
    assert response.status_code == 200
    assert response.body["ports"] == [
        {"path": "/dev/ttyACM0", "manufacturer": "Arduino (www.arduino.cc)", "serialNumber": "7553"},
        {"path": "/dev/ttyS0", "manufacturer": None, "serialNumber": None},
    ]


def test_list_ports_failure_is_500():
    async def lister():
        raise EnumerationFailure("udev unavailable")

    response = run(BridgeService(FakeLink(), port_lister=lister).handle_list_ports())
    assert response.status_code == 500
    assert response.body == {"success": False, "error": "udev unavailable"}


def test_round_trip_through_reconnect(opener):
    async def scenario():
        link = SerialLink("/dev/ttyFAKE", reconnect_delay=0.02, opener=opener)
        service = BridgeService(link)
        await link.start()
        await settle()
        assert service.handle_status().body["arduino"] == "connected"

        response = await service.handle_update({"resistance": 73})
        assert response.status_code == 200
        assert response.body["success"] is True
        assert response.body["resistance"] == 73
        assert response.body["command"] == "R:73"
        assert bytes(opener.writer.buffer) == b"R:73\n"

        opener.reader.feed_eof()
        await settle()
        assert service.handle_status().body["arduino"] == "disconnected"
        assert (await service.handle_update({"resistance": 10})).status_code == 503

        await asyncio.sleep(0.1)
        await settle()
        assert service.handle_status().body["arduino"] == "connected"
        assert (await service.handle_update({"tokens": 100})).body["command"] == "R:10"
        assert bytes(opener.writer.buffer) == b"R:10\n"
        await link.close()

    run(scenario())


@pytest.mark.parametrize("tokens", [float("nan"), float("inf"), "500", True])
def test_update_echoes_only_usable_tokens(tokens):
    link = FakeLink()
    response = run(BridgeService(link).handle_update({"resistance": 50, "tokens": tokens}))
    assert response.status_code == 200
    assert response.body["tokens"] is None
    assert link.written == [b"R:50\n"]
