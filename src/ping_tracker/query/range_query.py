from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

import numpy as np

from ..storage.ping_store import DeviceNotFound, PingStore, StoreUnavailable
from ..utils.time_utils import TimeWindow

logger = logging.getLogger(__name__)

ALL_DEVICES = "all"


@dataclass
class QueryResult:
    """Either a flat ping list for one device or a device -> pings mapping.

    `bad_request` is set only when the lookup itself failed, not when the
    window simply matched nothing.
    """

    kind: str  # "device" | "all"
    pings: List[int] = field(default_factory=list)
    by_device: Dict[str, List[int]] = field(default_factory=dict)
    bad_request: bool = False

    def payload(self) -> List[int] | Dict[str, List[int]]:
        if self.kind == ALL_DEVICES:
            return self.by_device
        return self.pings


def filter_in_window(pings: Iterable[int], window: TimeWindow) -> List[int]:
    """Pings with window.start <= t < window.end, in no particular order."""
    arr = np.fromiter(pings, dtype=np.int64)
    if arr.size == 0:
        return []
    mask = (arr >= window.start) & (arr < window.end)
    return arr[mask].tolist()


def query_pings(store: PingStore, selector: str, window: TimeWindow) -> QueryResult:
    if selector == ALL_DEVICES:
        try:
            devices = store.all()
        except StoreUnavailable:
            logger.exception("Device scan failed")
            return QueryResult(kind="device", bad_request=True)
        by_device: Dict[str, List[int]] = {}
        for device in devices:
            matched = filter_in_window(device.pings, window)
            if matched:
                by_device[device.device_id] = matched
        return QueryResult(kind=ALL_DEVICES, by_device=by_device)

    try:
        device = store.by_id(selector)
    except DeviceNotFound:
        logger.warning("Query for unknown device %r", selector)
        return QueryResult(kind="device", bad_request=True)
    except StoreUnavailable:
        logger.exception("Lookup failed for device %r", selector)
        return QueryResult(kind="device", bad_request=True)
    return QueryResult(kind="device", pings=filter_in_window(device.pings, window))


def list_device_ids(store: PingStore) -> Tuple[List[str], bool]:
    """Known device ids in store order, plus a flag set when the scan failed."""
    try:
        return [d.device_id for d in store.all()], False
    except StoreUnavailable:
        logger.exception("Device scan failed")
        return [], True
