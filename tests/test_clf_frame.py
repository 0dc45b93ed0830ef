# -*- coding: latin-1 -*-
from __future__ import absolute_import, division

import rcs620s.clf.frame as frame

import pytest

from base_clf import HEX, STD_FRAME, EXT_FRAME, ACK, NAK


@pytest.mark.parametrize("data", [
    b'', b'\x00', b'\xff', b'\x01\x02\x03', bytearray(range(256)),
    HEX('D4 32 02 00 00 00'), 1000 * b'\xAA',
])
def test_checksum(data):
    dcs = frame.checksum(data)
    assert 0 <= dcs <= 255
    assert (sum(bytearray(data)) + dcs) & 0xFF == 0


@pytest.mark.parametrize("data, dcs", [
    ('D4 32 02 00 00 00', 0xF8),
    ('D4 4A 01 01 00 00 03 00 0F', 0xCE),
    ('', 0x00),
])
def test_checksum_values(data, dcs):
    assert frame.checksum(HEX(data)) == dcs


def test_is_ack():
    assert frame.is_ack(ACK()) is True
    assert frame.is_ack(bytes(ACK())) is True
    assert frame.is_ack(NAK()) is False
    assert frame.is_ack(ACK()[0:5]) is False
    assert frame.is_ack(ACK() + b'\x00') is False


class TestEncode:
    def test_encode_normal(self):
        f = frame.encode_normal(HEX('D4 32 02 00 00 00'))
        assert f.header == HEX('0000FF 06 FA')
        assert f.payload == HEX('D4 32 02 00 00 00')
        assert f.trailer == HEX('F8 00')
        assert bytes(f) == STD_FRAME(HEX('D4 32 02 00 00 00'))
        assert f.extended is False

    def test_encode_extended(self):
        payload = bytes(bytearray(x & 0xFF for x in range(300)))
        f = frame.encode_extended(payload)
        assert f.header == HEX('0000FF FFFF 012C D3')
        assert f.payload == payload
        assert f.trailer == bytearray([frame.checksum(payload), 0])
        assert bytes(f) == EXT_FRAME(bytearray(payload))
        assert f.extended is True

    def test_encode_threshold(self):
        assert frame.encode(bytearray(255)).extended is False
        assert frame.encode(bytearray(255)).header == HEX('0000FF FF01')
        assert frame.encode(bytearray(256)).extended is True
        assert frame.encode(bytearray(256)).header == HEX('0000FFFFFF 0100 FF')

    def test_frame_is_written_in_three_parts(self):
        header, payload, trailer = frame.encode(b'\xD4\x02')
        assert header == HEX('0000FF 02 FE')
        assert payload == b'\xD4\x02'
        assert trailer == HEX('2A 00')

    def test_encode_normal_rejects_long_payload(self):
        with pytest.raises(AssertionError):
            frame.encode_normal(bytearray(256))


class TestDecode:
    @pytest.mark.parametrize("payload", [
        HEX('D5'), HEX('D5 33'), HEX('D5 4B 00'), bytearray(255),
        bytearray(range(255)),
    ])
    def test_decode_normal_frame(self, payload):
        data = bytes(frame.encode(payload))
        assert frame.decode(data) == payload
        header = frame.decode_header(data[0:5])
        assert header == (False, len(payload), True)
        assert (sum(payload) + data[-2]) & 0xFF == 0

    def test_decode_extended_frame(self):
        payload = bytearray(x & 0xFF for x in range(260))
        data = bytes(frame.encode(payload))
        assert frame.decode(data) == payload
        assert frame.decode_header(data[0:5]) == (True, None, False)
        assert frame.decode_header(data[0:8]) == (True, 260, True)

    @pytest.mark.parametrize("data", [
        '0000FF 02 FD D533 F8 00',
        '0000FF 02 FE D533 F7 00',
        '0000FF 02 FE D533 F8 01',
        '0000FF 03 FD D533 F8 00',
        '0000FE 02 FE D533 F8 00',
        '0000FFFFFF 0104 FA' + 260 * '00' + '0000',
        '0000FF00FF00',
    ])
    def test_decode_malformed_frame(self, data):
        assert frame.decode(HEX(data)) is None

    def test_decode_header_length_checksum(self):
        assert frame.decode_header(HEX('0000FF 05 FB')).valid is True
        assert frame.decode_header(HEX('0000FF 05 FA')).valid is False
        assert frame.decode_header(HEX('0000FFFFFF 0105 FA')).valid is True
        assert frame.decode_header(HEX('0000FFFFFF 0105 FB')).valid is False
