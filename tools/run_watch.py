# tools/run_watch.py
# Usage examples:
#   python3 -m tools.run_watch --config ./config.yaml
#   sudo python3 -m tools.run_watch --config ./config.yaml --proto icmp --address 10.0.0.5
#   python3 -m tools.run_watch --config ./config.yaml --fake

import argparse
import logging
import os
import queue
import signal
import sys
import threading

from alive.callbacks import LoggingCallbacks
from alive.config import DEFAULT_SOURCE, read_config
from alive.errors import WatcherError
from alive.prober.fake import FakeChannel, FakeReply, FakeTransport
from alive.prober.icmp import IcmpTransport
from alive.watch.watcher import Watcher, new_watcher

log = logging.getLogger("alive")


def _fake_transport():
    # every probe answered in 10ms
    return FakeTransport(channel=FakeChannel(default=FakeReply(delay=0.01)))


def init_watchers(conf, args, make_transport=IcmpTransport) -> list[Watcher]:
    if args.proto not in ("udp", "icmp"):
        raise WatcherError("wrong `proto`")

    log.info("init : hosts : %d", len(conf.hosts))
    log.info("packets listening on : %s", args.address)

    watchers = []
    for host in conf.hosts:
        settings = host.to_settings(privileged=args.proto == "icmp", source=args.address)
        w = new_watcher(host.addr, settings=settings, transport=make_transport())
        w.set_callbacks(LoggingCallbacks(w))
        watchers.append(w)

        log.info("init : %s", w.addr)
        log.info("\t   read-timeout : %ss", settings.read_deadline)
        log.info("\t   interval : %ss", settings.interval)
        log.info("\t   packet-size : %d", settings.size)
        log.info("\t   ttl : %d", settings.ttl)
    return watchers


def run(args) -> int:
    log.info("started : pid %d", os.getpid())
    app_errors: queue.Queue = queue.Queue()
    shutdown = threading.Event()
    received = []

    def _on_signal(signum, _frame):
        received.append(signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    make_transport = _fake_transport if args.fake else IcmpTransport
    conf = read_config(args.config)
    watchers = init_watchers(conf, args, make_transport=make_transport)

    def _serve(w: Watcher):
        try:
            w.run()
        except WatcherError as e:
            app_errors.put(e)

    for w in watchers:
        threading.Thread(target=_serve, args=(w,), name=f"watch-{w.addr}", daemon=True).start()

    try:
        while not shutdown.is_set():
            try:
                err = app_errors.get(timeout=0.5)
            except queue.Empty:
                continue
            log.error("error: %s", err)
            return 1
        log.info("%s : start shutdown", signal.Signals(received[0]).name)
        return 0
    finally:
        for w in watchers:
            log.info("stop : %s", w.addr)
            w.stop()
        log.info("completed")


def build_argparser():
    ap = argparse.ArgumentParser(description="ICMP host availability watcher")
    ap.add_argument("--config", default="./config.yaml", help="Path to the YAML host list")
    ap.add_argument("--address", default=DEFAULT_SOURCE, help="Listen (source) address")
    ap.add_argument("--proto", default="udp", choices=["udp", "icmp"],
                    help="'icmp' sends raw ICMP and requires super-user privileges")
    ap.add_argument("--fake", action="store_true", help="Use the in-memory transport (no sockets)")
    ap.add_argument("--debug", action="store_true", help="Log watcher internals")
    return ap


def main(argv=None) -> int:
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="WATCHER : %(asctime)s.%(msecs)03d %(filename)s:%(lineno)d: %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
        stream=sys.stdout,
    )
    try:
        return run(args)
    except (WatcherError, OSError) as e:
        log.error("error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
