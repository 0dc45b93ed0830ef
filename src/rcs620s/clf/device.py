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
"""Reader bring-up and card polling for the RC-S620S.

"""
from . import Error, CommandError, BusyError

import threading
import contextlib
from collections import namedtuple
from binascii import hexlify
from struct import pack

import logging
log = logging.getLogger(__name__)


class CardIdentity(namedtuple('CardIdentity', 'idm pmm')):
    """The Manufacture ID (IDm) and Manufacture Parameter (PMm) of a card
    found by :meth:`Device.poll`. Both are 8 byte strings.

    """
    __slots__ = ()

    def __str__(self):
        return "IDm={0} PMm={1}".format(
            hexlify(self.idm).decode(), hexlify(self.pmm).decode())


class Device(object):
    INIT_SEQUENCE = (
        # open device (SAM configuration off)
        ("open-device-failed", "D4 32 02 00 00 00"),
        # RFConfiguration max retries
        ("rf-configuration-1-failed", "D4 32 05 00 00 00"),
        # RFConfiguration additional wait time 24 ms
        ("rf-configuration-2-failed", "D4 32 81 B7"),
    )
    TARGET_FOUND = bytes(bytearray.fromhex("D54B01011201"))
    TARGET_NONE = bytes(bytearray.fromhex("D54B00"))

    def __init__(self, chipset, logger=log):
        self.chipset = chipset
        self.log = logger
        self._busy = threading.Lock()

    @property
    def busy(self):
        return self._busy.locked()

    @contextlib.contextmanager
    def exclusive(self):
        """Hold the busy flag for the duration of a polling or block read
        operation. Raises :exc:`~rcs620s.clf.BusyError` immediately if
        another such operation is in progress.

        """
        if not self._busy.acquire(False):
            raise BusyError()
        try:
            yield
        finally:
            self._busy.release()

    def init_device(self):
        """Send the three setup commands. The first command that fails
        raises :exc:`~rcs620s.clf.CommandError` with a stage naming
        the failed step.

        """
        for stage, command in self.INIT_SEQUENCE:
            try:
                self.chipset.command(bytearray.fromhex(command), "d533")
            except Error as error:
                self.log.error("device initialization failed at {0}"
                               .format(stage))
                raise CommandError(stage, error) from error
        self.log.debug("device initialized")

    def poll(self, system_code):
        """Search for a FeliCa card with the 16-bit *system_code*. Returns
        a :class:`CardIdentity` or None if no card answered. Raises
        :exc:`~rcs620s.clf.BusyError` without any reader communication
        if another polling or block read is in progress.

        """
        with self.exclusive():
            command = bytearray.fromhex("D4 4A 01 01 00") \
                + pack(">H", system_code) + b"\x00\x0F"

            def check(rsp):
                return (rsp.startswith(self.TARGET_FOUND) or
                        rsp.startswith(self.TARGET_NONE))

            try:
                rsp = self.chipset.command(command, check)
            except Error as error:
                raise CommandError("in-list-passive-target-failed", error) \
                    from error

        if rsp.startswith(self.TARGET_FOUND):
            identity = CardIdentity(rsp[6:14], rsp[14:22])
            self.log.debug("found card {0}".format(identity))
            return identity
