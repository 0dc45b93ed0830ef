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
# Pending read queue that assembles bytes received from the reader
# into the responses expected by the transaction engine.
#
from . import TimeoutError, CheckError

import time
import threading
import collections
from binascii import hexlify
from concurrent.futures import Future

import logging
log = logging.getLogger(__name__)


def accepts(check, data):
    """Return whether *data* passes *check*. A *check* may be None to
    accept anything, a hex string that must be equal to the hex
    representation of *data*, or a function that returns True for
    acceptable data.

    """
    if check is None:
        return True
    if isinstance(check, str):
        return hexlify(bytes(data)).decode() == check.lower()
    return bool(check(bytes(data)))


class PendingRead(object):
    def __init__(self, length, check, deadline):
        if not (check is None or isinstance(check, str) or callable(check)):
            raise TypeError("check must be None, str or callable")
        self.bytes_needed = length
        self.data = bytearray()
        self.check = check
        self.deadline = deadline
        self.future = Future()

    def __repr__(self):
        return "PendingRead(needs={0}, have={1})".format(
            self.bytes_needed, len(self.data))


class ReadQueue(object):
    """A FIFO of pending reads that is serviced with the bytes fed from
    the transport. Only the request at the head of the queue consumes
    bytes, requests behind it wait until the head is satisfied or has
    timed out. The queue is serviced whenever bytes are fed or a read
    is enqueued, and every *tick* seconds by a background thread that
    enforces the request deadlines.

    """
    def __init__(self, timeout=1.0, tick=0.01):
        self.timeout = timeout
        self.tick = tick
        self.lock = threading.Condition()
        self._queue = collections.deque()
        self._buffer = bytearray()
        self._thread = None
        self._running = False
        self._stopped = False

    def __len__(self):
        with self.lock:
            return len(self._queue)

    @property
    def buffered(self):
        with self.lock:
            return len(self._buffer)

    def start(self):
        with self.lock:
            if self._thread is not None:
                return
            self._running = True
            self._stopped = False
            self._thread = threading.Thread(
                target=self._run, name="rcs620s-readq")
            self._thread.daemon = True
            self._thread.start()

    def stop(self):
        """Stop the ticker thread. Reads that are still pending, and reads
        enqueued until the next :meth:`start`, fail with
        :exc:`~rcs620s.clf.TimeoutError`.

        """
        with self.lock:
            thread, self._thread = self._thread, None
            self._running = False
            self._stopped = True
            self._expire_all()
            self.lock.notify_all()
        if thread is not None:
            thread.join()

    def _run(self):
        log.debug("read queue thread started")
        with self.lock:
            while self._running:
                self.lock.wait(self.tick)
                self._service()
        log.debug("read queue thread terminated")

    def enqueue(self, length, check=None, timeout=None):
        """Request *length* bytes that must pass *check* and arrive
        within *timeout* seconds (the queue default if None). Returns a
        :class:`~concurrent.futures.Future` that resolves with the bytes
        or fails with :exc:`~rcs620s.clf.CheckError` or
        :exc:`~rcs620s.clf.TimeoutError`.

        """
        timeout = self.timeout if timeout is None else timeout
        request = PendingRead(length, check, time.monotonic() + timeout)
        with self.lock:
            self._queue.append(request)
            if self._stopped:
                self._expire_all()
            else:
                self._service()
        return request.future

    def read(self, length, check=None, timeout=None):
        """Enqueue a read and wait for its result."""
        return self.enqueue(length, check, timeout).result()

    def feed(self, data):
        """Append received *data* to the accumulation buffer."""
        with self.lock:
            self._buffer.extend(data)
            self._service()

    def flush(self):
        """Discard all received bytes that were not yet consumed."""
        with self.lock:
            if self._buffer:
                log.debug("discard %d byte input: %s", len(self._buffer),
                          hexlify(self._buffer).decode())
            del self._buffer[:]

    def service(self):
        with self.lock:
            self._service()

    def _expire_all(self):
        while self._queue:
            request = self._queue.popleft()
            log.debug("%r cancelled by stop", request)
            request.future.set_exception(TimeoutError())

    def _service(self):
        while self._queue:
            request = self._queue[0]

            if time.monotonic() >= request.deadline:
                self._queue.popleft()
                log.debug("%r timed out", request)
                request.future.set_exception(TimeoutError())
                continue

            count = min(request.bytes_needed, len(self._buffer))
            if count > 0:
                request.data.extend(self._buffer[0:count])
                del self._buffer[0:count]
                request.bytes_needed -= count

            if request.bytes_needed > 0:
                break

            self._queue.popleft()
            try:
                passed = accepts(request.check, request.data)
            except Exception as error:
                log.debug("check raised %r", error)
                request.future.set_exception(CheckError(None, error))
                continue
            if passed:
                request.future.set_result(bytes(request.data))
            else:
                log.debug("check failed for %s with %r",
                          hexlify(request.data).decode(), request.check)
                request.future.set_exception(CheckError())
