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
"""FeliCa service and block access through the RC-S620S. Data blocks
are read without encryption, one block per Read Without Encryption
command, after the service was verified to exist with Request Service.

"""
from .clf import Error, CommandError, BlockReadError

from collections import namedtuple
from binascii import hexlify
from struct import pack

import logging
log = logging.getLogger(__name__)

BLOCK_SIZE = 16

SYSTEM_CODE = {
    "SUICA": 0x0003,
    "COMMON": 0xFE00,
    "SETAMARU": 0x802B,
    "IRUCA": 0x80DE,
}


def read_number(data, offset, length, byteorder="little"):
    """Return the unsigned integer stored in *length* bytes of *data*
    starting at *offset*.

    """
    return int.from_bytes(bytes(data[offset:offset+length]), byteorder)


def raw_blocks(blocks):
    return list(blocks)


class ServiceDescriptor(namedtuple('ServiceDescriptor',
                                   'service_code block_count shaper')):
    """Describes a card service by its 16-bit *service_code*, the number
    of blocks to read and a *shaper* function that turns the list of
    16 byte blocks into the service value. Without a shaper the list
    of blocks is the value.

    """
    __slots__ = ()

    def __new__(cls, service_code, block_count, shaper=None):
        return super(ServiceDescriptor, cls).__new__(
            cls, service_code, block_count, shaper or raw_blocks)

    def __str__(self):
        return "Service Code {0:04X}h ({1} blocks)".format(
            self.service_code, self.block_count)


def suica_properties(blocks):
    return {"balance": read_number(blocks[0], 11, 2)}


SERVICES = {
    "SUICA": {
        "PROPERTIES": ServiceDescriptor(0x008B, 1, suica_properties),
        "USAGE_HISTORY": ServiceDescriptor(0x090F, 20),
        "TICKET_HISTORY": ServiceDescriptor(0x108F, 3),
        "SF_TICKET_HISTORY": ServiceDescriptor(0x10CB, 3),
        "FARE_HISTORY": ServiceDescriptor(0x814B, 36),
    },
}


class ServiceReader(object):
    """Reads services of the card currently present at the reader
    *device*. The card is addressed by its IDm in every command.

    """
    def __init__(self, device):
        self.device = device

    @property
    def chipset(self):
        return self.device.chipset

    def request_service(self, idm, service_code):
        """Verify that the service *service_code* exists on the card
        *idm*. Raises :exc:`~rcs620s.clf.CommandError` with stage
        ``request-service-failed`` if it does not or the card did not
        answer.

        """
        idm = bytes(idm)
        sc = pack("<H", service_code)
        log.debug("request service {0:04X}h".format(service_code))

        def check(rsp):
            return (len(rsp) == 12 and rsp.startswith(b"\x03" + idm)
                    and rsp[10:12] != b"\xFF\xFF")

        try:
            self.chipset.card_command(b"\x02" + idm + b"\x01" + sc, check)
        except Error as error:
            raise CommandError("request-service-failed", error) from error

    def read_block(self, idm, service_code, block_number):
        """Read block *block_number* of service *service_code* and return
        the 16 data bytes.

        """
        assert 0 <= block_number < 256
        idm = bytes(idm)
        command = b"\x06" + idm + b"\x01" + pack("<H", service_code) \
            + b"\x01\x80" + bytes(bytearray([block_number]))

        def check(rsp):
            return len(rsp) == 28 and rsp.startswith(b"\x07" + idm)

        try:
            rsp = self.chipset.card_command(command, check)
        except Error as error:
            raise BlockReadError(block_number, error) from error
        log.debug("block {0} data {1}".format(
            block_number, hexlify(rsp[12:28]).decode()))
        return rsp[12:28]

    def read_blocks(self, idm, service_code, start, count):
        """Read *count* blocks starting at block *start*, one after the
        other, and return the concatenated data. The first failure
        stops reading and raises :exc:`~rcs620s.clf.BlockReadError`
        that tells the failed block number. Raises
        :exc:`~rcs620s.clf.BusyError` if polling or another block read
        is in progress.

        """
        with self.device.exclusive():
            data = bytearray()
            for block_number in range(start, start + count):
                try:
                    data += self.read_block(idm, service_code, block_number)
                except BlockReadError as error:
                    log.warning("reading block {0} failed: {1}"
                                .format(block_number, error.cause))
                    raise
            return bytes(data)

    def read_service(self, idm, service):
        """Read all blocks of the :class:`ServiceDescriptor` *service* and
        return the value produced by its shaper.

        """
        self.request_service(idm, service.service_code)
        data = self.read_blocks(idm, service.service_code, 0,
                                service.block_count)
        blocks = [data[i:i+BLOCK_SIZE]
                  for i in range(0, len(data), BLOCK_SIZE)]
        return service.shaper(blocks)
