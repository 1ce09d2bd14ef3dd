#!/usr/bin/env python3
"""
cli.py - watch a Bond bridge's push updates without Home Assistant

- binds the BPUP port and keeps the bridge pushing to us
- prints bridge online/offline transitions
- prints every device update (or only the ones passed with --device)
"""

from __future__ import annotations

import argparse
import logging
import threading
from typing import Any, Dict, List, Optional

import voluptuous as vol

from .bpup_const import BPUP_PORT
from .config import BridgeConfig
from .device_state import BondDeviceState
from .listener import BPUPListener
from .packet_codec import BPUPUpdate
from .router import DeviceConsumerRegistry, UpdateRouter
from .transport import BindError


class PrintingConsumer:
    def __init__(self, device_id: str) -> None:
        self.device_id = device_id

    def on_update(self, payload: Dict[str, Any]) -> None:
        state = BondDeviceState.from_payload(payload)
        print(f"[device {self.device_id}] {state.as_attributes()}")


def build_listener(config: BridgeConfig) -> BPUPListener:
    registry = DeviceConsumerRegistry()
    for device_id in config.device_ids:
        registry.register(device_id, PrintingConsumer(device_id))

    listener = BPUPListener(
        config.host,
        config.bond_id,
        UpdateRouter(registry),
        port=config.port,
    )
    listener.on_bridge_state(
        lambda online: print(f"[event] bridge: {'ONLINE' if online else 'OFFLINE'}")
    )
    if not config.device_ids:
        listener.on_update(_print_update)
    return listener


def _print_update(update: BPUPUpdate) -> None:
    print(f"[update] {update.topic} id={update.request_id} body={update.payload}")


def main(argv: Optional[List[str]] = None) -> int:

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    ap = argparse.ArgumentParser(description="Bond push update (BPUP) watcher")
    ap.add_argument("--host", required=True, help="bridge IP or host name")
    ap.add_argument("--bond-id", required=True, help="bridge id, e.g. ZZBL12345")
    ap.add_argument("--port", type=int, default=BPUP_PORT)
    ap.add_argument("--device", action="append", help="only print this device id (repeatable)")
    ap.add_argument("--debug", action="store_true", help="log every datagram")
    args = ap.parse_args(argv)

    if args.debug:
        logging.getLogger("bondhome").setLevel(logging.DEBUG)

    try:
        config = BridgeConfig.from_dict(
            {
                "bond_id": args.bond_id,
                "host": args.host,
                "port": args.port,
                "device_ids": args.device or [],
            }
        )
    except vol.Invalid as err:
        ap.error(str(err))

    listener = build_listener(config)
    try:
        listener.start()
    except BindError as err:
        print(f"cannot listen: {err}")
        return 1

    print("listening; Ctrl-C to quit")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        listener.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
