# -*- coding: latin-1 -*-
# -----------------------------------------------------------------------------
# Copyright 2017 Stephen Tiedemann <stephen.tiedemann@gmail.com>
#
# Licensed under the EUPL, Version 1.1 or - as soon they
# will be approved by the European Commission - subsequent
# versions of the EUPL (the "Licence");
# You may not use this work except in compliance with the
# Licence.
# You may obtain a copy of the Licence at:
#
# https://joinup.ec.europa.eu/software/page/eupl
#
# Unless required by applicable law or agreed to in
# writing, software distributed under the Licence is
# distributed on an "AS IS" basis,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either
# express or implied.
# See the Licence for the specific language governing
# permissions and limitations under the Licence.
# -----------------------------------------------------------------------------
#
# Frame codec for host to reader communication.
#
from collections import namedtuple
from struct import pack

import logging
log = logging.getLogger(__name__)

SOF = bytes(bytearray.fromhex('0000FF'))
ACK = bytes(bytearray.fromhex('0000FF00FF00'))
EXT = bytes(bytearray.fromhex('FFFF'))

MAX_NORMAL_PAYLOAD = 255


def checksum(data):
    """Return the 8-bit two's complement of the sum of *data* bytes, so
    that ``(sum(data) + checksum(data)) & 0xFF`` is always zero.

    """
    return -sum(bytearray(data)) & 0xFF


def is_ack(data):
    return bytes(data) == ACK


class Frame(namedtuple('Frame', 'header payload trailer')):
    """An encoded frame. The *header* holds the start of frame and the
    length fields, the *trailer* is the data checksum followed by the
    postamble. Frames are sent as three separate writes in that order.

    """
    __slots__ = ()

    def __bytes__(self):
        return self.header + self.payload + self.trailer

    @property
    def extended(self):
        return self.header[3:5] == EXT


def _trailer(payload):
    return bytes(bytearray([checksum(payload), 0]))


def encode_normal(payload):
    payload = bytes(payload)
    assert len(payload) <= MAX_NORMAL_PAYLOAD
    head = SOF + bytes(bytearray([len(payload), checksum([len(payload)])]))
    return Frame(head, payload, _trailer(payload))


def encode_extended(payload):
    payload = bytes(payload)
    assert len(payload) <= 0xFFFF
    size = pack(">H", len(payload))
    head = SOF + EXT + size + bytes(bytearray([checksum(size)]))
    return Frame(head, payload, _trailer(payload))


def encode(payload):
    """Encode *payload* into a normal frame, or into an extended frame if
    it is longer than 255 bytes.

    """
    if len(payload) > MAX_NORMAL_PAYLOAD:
        return encode_extended(payload)
    return encode_normal(payload)


class Header(namedtuple('Header', 'extended length valid')):
    __slots__ = ()


def decode_header(data):
    """Decode a 5 byte normal frame header or an 8 byte extended frame
    header. For an extended header with only the first 5 bytes
    available the length is not yet known and returned as None.

    """
    data = bytearray(data)
    if data[3:5] == EXT:
        if len(data) < 8:
            return Header(True, None, False)
        length = data[5] << 8 | data[6]
        return Header(True, length, checksum(data[5:8]) == 0)
    return Header(False, data[3], checksum(data[3:5]) == 0)


def decode(frame):
    """Return the payload of a complete *frame* or None if the frame is
    malformed or any of its checksums is wrong.

    """
    frame = bytearray(frame)
    if not frame.startswith(SOF) or len(frame) < 7:
        return None
    header = decode_header(frame[0:8])
    if not header.valid:
        log.debug("frame length checksum error")
        return None
    offset = 8 if header.extended else 5
    if len(frame) != offset + header.length + 2:
        log.debug("frame length value mismatch")
        return None
    payload = frame[offset:offset+header.length]
    if frame[-2] != checksum(payload) or frame[-1] != 0:
        log.debug("frame data checksum error")
        return None
    return bytes(payload)
