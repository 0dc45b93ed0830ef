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
"""Host side protocol engine for the Sony RC-S620S contactless reader
module. The :mod:`~rcs620s.clf.frame` module encodes and decodes the
frames exchanged with the reader, the :mod:`~rcs620s.clf.readq` module
assembles arriving bytes into expected responses, the
:mod:`~rcs620s.clf.chipset` module runs command transactions and the
:mod:`~rcs620s.clf.device` module brings up the reader and polls for
cards.

"""
import logging
log = logging.getLogger(__name__)


###############################################################################
#
# Exceptions
#
###############################################################################
class Error(Exception):
    """Base class for exceptions specific to the reader module. Each
    exception carries a *stage* tag that names where the failure
    happened and, if available, the lower level *cause*.

    - TimeoutError
    - ProtocolError
    - CheckError
    - CommandError

      - BlockReadError

    - BusyError

    """
    stage = "error"

    def __init__(self, stage=None, cause=None):
        if stage is not None:
            self.stage = stage
        self.cause = cause
        super(Error, self).__init__(self.stage)

    def __str__(self):
        if self.cause is None:
            return self.stage
        return "{0}: {1}".format(self.stage, self.cause)

    def __repr__(self):
        return "{0}({1!r}, {2!r})".format(
            self.__class__.__name__, self.stage, self.cause)


class TimeoutError(Error):
    """An expected response did not arrive in time."""
    stage = "timeout"


class ProtocolError(Error):
    """The reader did not answer with a correctly framed response. The
    stage is one of ``no-ack``, ``no-valid-message``,
    ``response-checksum-error`` or ``response-too-long``.

    """


class CheckError(Error):
    """Response data was received but rejected by the caller supplied
    check.

    """
    stage = "check-failed"


class CommandError(Error):
    """A reader or card command failed. The cause is the lower level
    exception.

    """


class BlockReadError(CommandError):
    """Reading a card data block failed. The *block_number* attribute
    tells which one.

    """
    stage = "read-block-failed"

    def __init__(self, block_number, cause=None):
        super(BlockReadError, self).__init__(None, cause)
        self.block_number = block_number

    def __str__(self):
        s = "{0} (block {1})".format(self.stage, self.block_number)
        return s if self.cause is None else "{0}: {1}".format(s, self.cause)


class BusyError(Error):
    """Another polling or block read operation is in progress."""
    stage = "busy"
