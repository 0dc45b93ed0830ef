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
"""Command transactions with the RC-S620S. The reader uses the PN53x
host frame structure: each command frame is acknowledged with an ACK
frame and followed by a response frame. Card commands are tunneled
through the CommunicateThruEX command.

"""
from . import Error, ProtocolError, CheckError, CommandError
from . import frame
from .readq import accepts

import time
from binascii import hexlify
from struct import pack

import logging
log = logging.getLogger(__name__)


class Chipset(object):
    CMD = {
        0x32: "RFConfiguration",
        0x4A: "InListPassiveTarget",
        0xA0: "CommunicateThruEX",
    }

    SOF = frame.SOF
    ACK = frame.ACK
    MAX_RESPONSE_LEN = 265

    def __init__(self, transport, queue, timeout=1000, logger=log):
        self.transport = transport
        self.queue = queue
        self.timeout = timeout
        self.log = logger

    def _abort(self, error_class, stage, cause=None):
        self.log.debug("{0} ({1})".format(stage, cause))
        self.cancel()
        return error_class(stage, cause)

    def command(self, data, check=None):
        """Send the command frame payload *data* and return the payload of
        the response frame. The response is accepted only if it passes
        *check*, which may be a hex string that must match the
        response exactly or a function that returns True for an
        acceptable response. Command frames with more than 255 byte
        payload are sent as extended frames.

        Whenever the exchange fails after the command was sent the
        reader is returned to idle state with a cancel (ACK) frame
        before the exception is raised.

        **Exceptions**

        * :exc:`~rcs620s.clf.ProtocolError` with stage ``no-ack``,
          ``no-valid-message``, ``response-checksum-error`` or
          ``response-too-long``.

        * :exc:`~rcs620s.clf.CheckError` if the response failed
          *check*.

        * :exc:`~exceptions.IOError` if writing to the transport failed.

        """
        data = bytes(bytearray(data))
        if len(data) >= 2 and data[0] == 0xD4:
            self.log.debug("{0} {1}".format(
                self.CMD.get(data[1], "0x{0:02X}".format(data[1])),
                hexlify(data[2:]).decode()))

        self.transport.flush()
        self.queue.flush()

        encoded = frame.encode(data)
        if encoded.extended:
            self.log.debug("send {0} byte command as extended frame"
                           .format(len(data)))
        for part in encoded:
            self.transport.write(part)
            self.transport.drain()

        try:
            self.queue.read(len(self.ACK), frame.is_ack)
        except Error as error:
            raise self._abort(ProtocolError, "no-ack", error) from error

        try:
            head = self.queue.read(5, lambda b: b.startswith(self.SOF))
        except Error as error:
            raise self._abort(ProtocolError, "no-valid-message", error) \
                from error

        header = frame.decode_header(head)
        if header.extended:
            self.log.debug("response is an extended frame")
            try:
                header = frame.decode_header(head + self.queue.read(3))
            except Error as error:
                raise self._abort(
                    ProtocolError, "response-checksum-error", error) \
                    from error

        if not header.valid:
            self.log.error("frame length checksum error")
            raise self._abort(ProtocolError, "response-checksum-error")

        if header.length > self.MAX_RESPONSE_LEN:
            self.log.error("response length {0} exceeds maximum"
                           .format(header.length))
            raise self._abort(ProtocolError, "response-too-long")

        try:
            body = self.queue.read(header.length)
            dcs = frame.checksum(body)
            self.queue.read(2, lambda b: b[0] == dcs and b[1] == 0)
        except Error as error:
            raise self._abort(
                ProtocolError, "response-checksum-error", error) from error

        if not accepts(check, body):
            self.log.debug("response {0} failed check"
                           .format(hexlify(body).decode()))
            raise self._abort(CheckError, "check-failed")

        return body

    def cancel(self):
        """Send a cancel (ACK) frame and discard any pending input. This is
        best effort, transport errors are only logged.

        """
        try:
            self.transport.write(self.ACK)
            self.transport.drain()
            time.sleep(0.010)
            self.transport.flush()
        except IOError as error:
            self.log.warning("failed to send cancel frame: {0}".format(error))
        self.queue.flush()

    def card_command(self, data, check=None):
        """Send the card command *data* with CommunicateThruEX and return
        the card response without its length byte. The optional
        *check* is applied to the card response and a rejection is
        handled like any other failed response check.

        """
        timeout = min(0xFFFF, 2 * int(self.timeout))
        data = bytes(bytearray(data))
        cmd = b"\xD4\xA0" + pack("<H", timeout) \
            + bytes(bytearray([len(data) + 1])) + data

        def envelope(rsp):
            return (len(rsp) >= 4 and rsp.startswith(b"\xD5\xA1\x00")
                    and len(rsp) == rsp[3] + 3 and accepts(check, rsp[4:]))

        try:
            rsp = self.command(cmd, envelope)
        except Error as error:
            raise CommandError("ex-command-failed", error) from error
        return rsp[4:]
