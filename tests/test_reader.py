# -*- coding: latin-1 -*-
from __future__ import absolute_import, division

import rcs620s
import rcs620s.clf
import rcs620s.reader

import pytest
from mock import call
import errno
import threading

from base_clf import HEX, RSP, ACK, CARD_RSP, FakeSerial

import logging
logging.basicConfig(level=logging.WARN)
logging_level = logging.getLogger().getEffectiveLevel()
logging.getLogger("rcs620s").setLevel(logging_level)

IDM = '01 2E 4C D5 8A 1B 3C 4D'
PMM = '10 0B 4B 42 84 85 D0 FF'


@pytest.fixture()
def device():
    return FakeSerial()


@pytest.fixture()
def serial(mocker, device):
    mocker.patch('rcs620s.clf.chipset.time.sleep')
    return mocker.patch('rcs620s.clf.transport.serial.Serial',
                        return_value=device)


@pytest.fixture()
def reader(request, serial, mocker):
    reader = rcs620s.Reader('/dev/ttyFAKE0', on_ready=mocker.Mock(),
                            timeout=200)
    request.addfinalizer(reader.close)
    return reader


class TestReader(object):
    def test_open_and_ready(self, reader, serial):
        serial.assert_called_once_with('/dev/ttyFAKE0', 115200, timeout=0.05)
        assert reader.wait_ready(1.0) is True
        assert reader.is_ready is True
        assert reader.on_ready.mock_calls == [call(reader)]
        assert str(reader) == "RC-S620S on /dev/ttyFAKE0 at 115200 baud"

    def test_default_path_and_baudrate(self, serial):
        reader = rcs620s.Reader()
        try:
            serial.assert_called_once_with(
                rcs620s.reader.DEFAULT_PATH, 115200, timeout=0.05)
            assert reader.timeout == 1000
        finally:
            reader.close()

    def test_set_on_ready_when_ready(self, reader, mocker):
        on_ready = mocker.Mock()
        reader.on_ready = on_ready
        assert reader.on_ready is on_ready
        assert on_ready.mock_calls == [call(reader)]

    def test_set_timeout(self, reader):
        reader.timeout = 500
        assert reader.timeout == 500
        assert reader.chipset.timeout == 500
        assert reader.queue.timeout == 0.5

    def test_close(self, reader, device):
        reader.close()
        assert reader.is_ready is False
        assert reader.transport.closed.is_set()
        assert device.is_open is False

    def test_queue_stop_ends_pending_poll(self, reader, device):
        reader.timeout = 60000
        device.responses = [None]
        stopper = threading.Timer(0.05, reader.queue.stop)
        stopper.start()
        with pytest.raises(rcs620s.clf.CommandError) as excinfo:
            reader.poll(0x0003)
        assert str(excinfo.value) == \
            "in-list-passive-target-failed: no-ack: timeout"
        assert reader.device.busy is False
        stopper.join()

    def test_close_timeout(self, reader, mocker):
        mocker.patch.object(reader.transport.closed, 'wait',
                            return_value=False)
        with pytest.raises(rcs620s.clf.TimeoutError):
            reader.close(0.1)
        mocker.stopall()

    def test_context_manager(self, serial, device):
        with rcs620s.Reader('/dev/ttyFAKE0') as reader:
            assert reader.is_ready
        assert device.is_open is False

    def test_open_with_search_path(self, serial, mocker):
        find = mocker.patch('rcs620s.clf.transport.TTY.find',
                            return_value=(['/dev/ttyAMA1'], True))
        reader = rcs620s.Reader('tty:AMA')
        try:
            assert find.mock_calls == [call('tty:AMA')]
            serial.assert_called_once_with('/dev/ttyAMA1', 115200,
                                           timeout=0.05)
        finally:
            reader.close()

    def test_open_with_search_path_no_ports(self, serial, mocker):
        mocker.patch('rcs620s.clf.transport.TTY.find',
                     return_value=([], True))
        with pytest.raises(IOError) as excinfo:
            rcs620s.Reader('tty:AMA')
        assert excinfo.value.errno == errno.ENODEV
        assert serial.mock_calls == []

    def test_read_balance(self, reader, device):
        block = '00000000 00000000 000000 E803 000000'
        device.responses = [
            ACK() + RSP('33'),
            ACK() + RSP('33'),
            ACK() + RSP('33'),
            ACK() + RSP('4B 01 01 12 01' + IDM + PMM + '0003'),
            ACK() + CARD_RSP('03' + IDM + '01 0000'),
            ACK() + CARD_RSP('07' + IDM + '0000 01' + block),
        ]
        reader.init_device()
        card = reader.poll(rcs620s.SYSTEM_CODE["SUICA"])
        assert card.idm == HEX(IDM)
        properties = rcs620s.SERVICES["SUICA"]["PROPERTIES"]
        assert reader.read_service(card.idm, properties) == {"balance": 1000}
        assert device.commands[3] == HEX('D4 4A 01 01 00 0003 00 0F')
        assert len(device.commands) == 6
        assert device.cancels == 0

    def test_poll_without_card(self, reader, device):
        device.responses = [ACK() + RSP('4B 00')]
        assert reader.poll(0xFE00) is None

    def test_poll_without_answer(self, reader, device):
        device.responses = [None]
        with pytest.raises(rcs620s.clf.CommandError) as excinfo:
            reader.poll(0x0003)
        assert str(excinfo.value) == \
            "in-list-passive-target-failed: no-ack: timeout"
        assert device.cancels == 1
        assert reader.device.busy is False
