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
import rcs620s
import rcs620s.reader

import sys
import time
import logging
import argparse
from binascii import hexlify

log = logging.getLogger("rcs620s.main")

description = """

Wait for a FeliCa card to be placed on the RC-S620S reader, print the
card IDm and the balance read from the card's properties service,
then exit. The reader is polled every --interval seconds until a card
is found or the program is interrupted with Ctrl-C.

"""


def read_balance(reader, system_code, interval):
    service = rcs620s.SERVICES["SUICA"]["PROPERTIES"]
    while True:
        try:
            card = reader.poll(system_code)
        except rcs620s.clf.BusyError:
            card = None
        except rcs620s.clf.Error as error:
            log.warning("poll failed: %s", error)
            card = None

        if card is not None:
            print("card IDm: %s" % hexlify(card.idm).decode())
            try:
                output = reader.read_service(card.idm, service)
            except rcs620s.clf.Error as error:
                log.warning("error reading service: %s", error)
            else:
                print("balance: %d" % output["balance"])
                return

        time.sleep(interval)


def main(args):
    logging.basicConfig()
    log_levels = (logging.WARN, logging.INFO, logging.DEBUG, logging.DEBUG-1)
    log_level = log_levels[min(args.verbose, len(log_levels) - 1)]
    logging.getLogger('rcs620s').setLevel(log_level)

    try:
        reader = rcs620s.Reader(args.device, args.baudrate,
                                timeout=args.timeout)
    except IOError as error:
        print("can not open %s: %s" % (args.device, error))
        return 1

    status = 0
    try:
        if not reader.wait_ready(1.0):
            print("the serial port did not become ready")
            status = 1
        else:
            reader.init_device()
            print("device is ready, place a card on the reader (^C to exit)")
            read_balance(reader, args.system_code, args.interval)
    except rcs620s.clf.Error as error:
        print("error: %s" % error)
        status = 1
    except KeyboardInterrupt:
        print("")

    try:
        reader.close()
    except rcs620s.clf.Error as error:
        print("error closing serial port: %s" % error)
        status = 1
    return status


def system_code(value):
    if value.upper() in rcs620s.SYSTEM_CODE:
        return rcs620s.SYSTEM_CODE[value.upper()]
    return int(value, 16)


def parser():
    argument_parser = argparse.ArgumentParser(
        prog="python -m rcs620s", description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter)
    argument_parser.add_argument(
        "-d", "--device", default=rcs620s.reader.DEFAULT_PATH,
        help="serial device or search path (default: %(default)s)")
    argument_parser.add_argument(
        "-b", "--baudrate", type=int,
        default=rcs620s.reader.DEFAULT_BAUDRATE,
        help="serial baud rate (default: %(default)s)")
    argument_parser.add_argument(
        "-t", "--timeout", type=int,
        default=rcs620s.reader.DEFAULT_TIMEOUT,
        help="response timeout in milliseconds (default: %(default)s)")
    argument_parser.add_argument(
        "-i", "--interval", type=float, default=0.3,
        help="polling interval in seconds (default: %(default)s)")
    argument_parser.add_argument(
        "-s", "--system-code", type=system_code, default="SUICA",
        help="system code name or hex value (default: %(default)s)")
    argument_parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="increase logging verbosity")
    return argument_parser


def run():
    sys.exit(main(parser().parse_args()))


if __name__ == '__main__':
    run()
