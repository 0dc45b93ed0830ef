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
from .clf import TimeoutError
from .clf import transport, readq, chipset, device
from . import felica

import os
import errno
import threading

import logging
log = logging.getLogger(__name__)

DEFAULT_PATH = "COM1" if os.name == "nt" else "/dev/ttyAMA0"
DEFAULT_BAUDRATE = 115200
DEFAULT_TIMEOUT = 1000


class Reader(object):
    """This class is the main interface for working with an RC-S620S
    reader module connected to a serial port. An instance holds the
    open serial port, the pending read queue and the busy flag of
    one connection.

    The *path* is either a serial device name, like ``/dev/ttyAMA0`` or
    ``COM3``, or a search path like ``tty:AMA0``, ``tty:USB`` or
    ``com:3`` that selects the first matching serial port. The
    *on_ready* function is called with the reader instance when the
    serial port is open. The *timeout* is the response timeout in
    milliseconds, it is doubled (up to 65535) for card commands.

    A reader is used like this::

        with rcs620s.Reader("tty:AMA0") as reader:
            reader.init_device()
            card = reader.poll(rcs620s.SYSTEM_CODE["SUICA"])
            if card:
                properties = rcs620s.SERVICES["SUICA"]["PROPERTIES"]
                print(reader.read_service(card.idm, properties))

    """
    def __init__(self, path=None, baudrate=None, on_ready=None,
                 timeout=None):
        self._timeout = DEFAULT_TIMEOUT if timeout is None else timeout
        self._ready = threading.Event()
        self._on_ready = on_ready
        self.queue = readq.ReadQueue(self._timeout / 1E3)
        self.transport = transport.TTY(receiver=self.queue.feed,
                                       on_open=self._opened)
        self.chipset = chipset.Chipset(self.transport, self.queue,
                                       self._timeout, logger=chipset.log)
        self.device = device.Device(self.chipset, logger=device.log)
        self.services = felica.ServiceReader(self.device)
        self.open(path or DEFAULT_PATH, baudrate or DEFAULT_BAUDRATE)

    def __str__(self):
        return "RC-S620S on {0} at {1} baud".format(
            self.transport.port, self.transport.baudrate)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def open(self, path, baudrate):
        found = transport.TTY.find(path)
        if found is not None:
            ports, glob = found
            if not ports:
                log.error("no serial port available on path " + path)
                raise IOError(errno.ENODEV, os.strerror(errno.ENODEV))
            path = ports[0]
        log.info("using serial port {0}".format(path))
        self.queue.start()
        try:
            self.transport.open(path, baudrate)
        except IOError:
            self.queue.stop()
            raise

    def _opened(self):
        self._ready.set()
        if self._on_ready is not None:
            self._on_ready(self)

    def close(self, timeout=1.0):
        """Close the serial port and wait up to *timeout* seconds for the
        port to be released. Raises :exc:`~rcs620s.clf.TimeoutError` if
        it was not.

        """
        self._ready.clear()
        self.queue.stop()
        self.transport.close()
        if not self.transport.closed.wait(timeout):
            log.error("serial port did not close within {0}s"
                      .format(timeout))
            raise TimeoutError()

    @property
    def is_ready(self):
        return self._ready.is_set()

    @property
    def on_ready(self):
        return self._on_ready

    @on_ready.setter
    def on_ready(self, func):
        self._on_ready = func
        if func is not None and self.is_ready:
            func(self)

    def wait_ready(self, timeout=None):
        return self._ready.wait(timeout)

    @property
    def timeout(self):
        """Response timeout in milliseconds."""
        return self._timeout

    @timeout.setter
    def timeout(self, value):
        self._timeout = value
        self.chipset.timeout = value
        self.queue.timeout = value / 1E3

    def init_device(self):
        return self.device.init_device()

    def poll(self, system_code):
        return self.device.poll(system_code)

    def request_service(self, idm, service_code):
        return self.services.request_service(idm, service_code)

    def read_block(self, idm, service_code, block_number):
        return self.services.read_block(idm, service_code, block_number)

    def read_blocks(self, idm, service_code, start, count):
        return self.services.read_blocks(idm, service_code, start, count)

    def read_service(self, idm, service):
        return self.services.read_service(idm, service)
