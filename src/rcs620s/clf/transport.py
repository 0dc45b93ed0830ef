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
# Serial transport layer for host to reader communication.
#
import os
import re
import errno
import threading
from binascii import hexlify

try:
    import serial
    import serial.tools.list_ports
except ImportError:  # pragma: no cover
    raise ImportError("missing serial module, try 'pip install pyserial'")

try:
    import termios
except ImportError:  # pragma: no cover
    assert os.name != 'posix'

import logging
log = logging.getLogger(__name__)

PATH = re.compile(r'^([a-z]+)(?::|)([a-zA-Z0-9-]+|)$')


class TTY(object):
    """Serial port transport. Bytes received from the port are delivered
    by a receiver thread to the *receiver* callable, *on_open* and
    *on_close* are called when the port was opened and when the
    receiver thread has terminated after :meth:`close`.

    """
    TYPE = "TTY"

    @classmethod
    def find(cls, path):
        """Resolve a search *path* like ``tty:AMA0``, ``tty:USB`` or
        ``com:1`` into a list of serial device names. Returns the
        tuple (devices, glob) or None if *path* is not a tty or com
        search path.

        """
        if not (path.startswith("tty") or path.startswith("com")):
            return

        match = PATH.match(path)

        if match and match.group(1) == "tty":
            if re.match(r'^(S|ACM|AMA|USB)\d+$', match.group(2)):
                TTYS = re.compile(r'^tty{}$'.format(match.group(2)))
                glob = False
            elif re.match(r'^(S|ACM|AMA|USB)$', match.group(2)):
                TTYS = re.compile(r'^tty{}\d+$'.format(match.group(2)))
                glob = True
            elif re.match(r'^usbserial-\w+$', match.group(2)):
                TTYS = re.compile(r'^cu\.{}$'.format(match.group(2)))
                glob = False
            elif re.match(r'^.+$', match.group(2)):
                TTYS = re.compile(r'^{}$'.format(match.group(2)))
                glob = False
            else:
                TTYS = re.compile(r'^(ttyAMA\d+|ttyUSB\d+|cu\.usbserial.*)$')
                glob = True

            log.debug(TTYS.pattern)
            ttys = [fn for fn in os.listdir('/dev') if TTYS.match(fn)]
            ttys.sort(key=lambda item: (len(item), item))

            # Keep only nodes that are present and accessible. An
            # exactly designated device propagates the IOError.
            found = []
            for tty in ttys:
                try:
                    with open('/dev/%s' % tty) as node:
                        termios.tcgetattr(node)
                    found.append('/dev/%s' % tty)
                except termios.error:
                    pass
                except IOError as error:
                    log.debug(error)
                    if not glob:
                        raise error

            log.debug('avail: %s', ' '.join(found))
            return found, glob

        if match and match.group(1) == "com":
            if re.match(r'^COM\d+$', match.group(2)):
                return [match.group(2)], False
            if re.match(r'^\d+$', match.group(2)):
                return ["COM" + match.group(2)], False
            if re.match(r'^$', match.group(2)):
                ports = [p[0] for p in serial.tools.list_ports.comports()]
                log.debug('serial ports: %s', ' '.join(ports))
                return ports, True
            log.error("invalid port in 'com' path: %r", match.group(2))

    def __init__(self, receiver=None, on_open=None, on_close=None):
        self.tty = None
        self.receiver = receiver
        self.on_open = on_open
        self.on_close = on_close
        self.closed = threading.Event()
        self._thread = None
        self._running = False

    def open(self, port, baudrate=115200):
        self.close()
        try:
            self.tty = serial.Serial(port, baudrate, timeout=0.05)
        except serial.SerialException as error:
            log.debug(error)
            raise IOError(errno.ENODEV, os.strerror(errno.ENODEV))
        self.closed.clear()
        self._running = True
        self._thread = threading.Thread(
            target=self._receive, name="rcs620s-tty")
        self._thread.daemon = True
        self._thread.start()
        log.debug("opened %s at %d baud", port, baudrate)
        if self.on_open is not None:
            self.on_open()

    @property
    def port(self):
        return self.tty.port if self.tty else ''

    @property
    def baudrate(self):
        return self.tty.baudrate if self.tty else 0

    def _receive(self):
        try:
            while self._running:
                data = self.tty.read(max(1, self.tty.in_waiting))
                if data:
                    data = bytearray(data)
                    log.log(logging.DEBUG-1, "<<< %s", hexlify(data).decode())
                    if self.receiver is not None:
                        self.receiver(data)
        except serial.SerialException as error:
            log.error("serial port receive error: %s", error)
        finally:
            self.closed.set()
            if self.on_close is not None:
                self.on_close()

    def write(self, data):
        if self.tty is None:
            raise IOError(errno.ENODEV, os.strerror(errno.ENODEV))
        log.log(logging.DEBUG-1, ">>> %s", hexlify(data).decode())
        try:
            self.tty.write(bytes(data))
        except serial.SerialException as error:
            log.debug(error)
            raise IOError(errno.EIO, os.strerror(errno.EIO))

    def drain(self):
        """Wait until all written data has been transmitted."""
        if self.tty is not None:
            self.tty.flush()

    def flush(self):
        """Discard data received but not yet read from the port."""
        if self.tty is not None:
            self.tty.reset_input_buffer()

    def close(self):
        if self.tty is not None:
            self._running = False
            if self._thread not in (None, threading.current_thread()):
                self._thread.join()
                self._thread = None
            self.tty.reset_output_buffer()
            self.tty.close()
            self.tty = None
