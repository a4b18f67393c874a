"""
Receipt Event Extraction

Finds and decodes a named event in a transaction receipt.

Two receipt shapes are accepted:

``LegacyReceipt``
    Carries a pre-decoded ``events`` list (each entry has ``topics`` and,
    usually, ``event``/``args``). Entries are matched on ``topics[0]``; when
    an interface is supplied the matched entry is re-decoded through it.

``ModernReceipt``
    Carries raw ``logs``. Every log is decoded through the interface and
    matched on the decoded event *name*. Logs of other contracts or events
    the interface does not describe are skipped.

In both shapes the first match in receipt order wins. A web3 ``TxReceipt``
(anything mapping-like with ``logs``) is treated as a modern receipt. A
mapping carrying both ``events`` and ``logs`` is read through its ``events``
when no interface is given.

Example::

    receipt = await w3.eth.wait_for_transaction_receipt(tx_hash)
    event = extract_event(receipt, "Deployment", get_deployer_abi())
    registry = event.args["deployed"]
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from eth_abi.codec import ABICodec
from eth_abi.exceptions import DecodingError
from eth_utils import event_abi_to_log_topic, hexstr_if_str, keccak, to_bytes, to_checksum_address
from eth_utils.abi import collapse_if_tuple
from web3._utils.abi import build_strict_registry
from web3._utils.events import get_event_data
from web3.exceptions import LogTopicError, MismatchedABI

from ..exceptions import EventNotFound, UndecodableLog
from .schemas import DecodedEvent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event interface
# ---------------------------------------------------------------------------

class EventInterface:
    """
    Event descriptors taken from an ABI list, decoded through web3.

    Only ``"type": "event"`` entries are used; functions are ignored, so a
    full contract ABI can be passed as-is.
    """

    def __init__(self, abi: Sequence[Mapping[str, Any]]):
        self._codec = ABICodec(build_strict_registry())
        self._by_name: Dict[str, Dict[str, Any]] = {}
        self._by_topic: Dict[bytes, Dict[str, Any]] = {}
        for entry in abi:
            if entry.get("type") != "event" or entry.get("anonymous"):
                continue
            event_abi = {**entry, "anonymous": False}
            self._by_name.setdefault(event_abi["name"], event_abi)
            self._by_topic[event_abi_to_log_topic(event_abi)] = event_abi

    @staticmethod
    def event_signature(entry: Mapping[str, Any]) -> str:
        """``Name(type1,type2,...)`` of an event ABI entry."""
        types = ",".join(collapse_if_tuple(i) for i in entry.get("inputs", []))
        return f"{entry['name']}({types})"

    def has_event(self, name: str) -> bool:
        return name in self._by_name

    def topic(self, name: str) -> bytes:
        """
        Return topic0 of event ``name``.

        Raises:
            KeyError: If the interface has no such event.
        """
        return event_abi_to_log_topic(self._by_name[name])

    def name_for_topic(self, topic: bytes) -> Optional[str]:
        entry = self._by_topic.get(topic)
        return entry["name"] if entry else None

    def decode_log(self, topics: Sequence[bytes], data: bytes) -> Optional[Tuple[str, Dict[str, Any]]]:
        """
        Decode a raw log with ``web3._utils.events.get_event_data``.

        Returns:
            ``(event_name, args)``, or ``None`` when topic0 is not an event of
            this interface. Addresses come back checksummed; indexed
            ``string``/``bytes`` values come back as their 32-byte hash.

        Raises:
            ValueError: If the topic count or data does not fit the event ABI.
        """
        if not topics:
            return None
        entry = self._by_topic.get(bytes(topics[0]))
        if entry is None:
            return None

        log_entry = {
            "topics": list(topics),
            "data": data,
            "logIndex": None,
            "transactionIndex": None,
            "transactionHash": None,
            "address": None,
            "blockHash": None,
            "blockNumber": None,
        }
        try:
            event_data = get_event_data(self._codec, entry, log_entry)
        except (DecodingError, LogTopicError, MismatchedABI, UnicodeDecodeError) as e:
            raise ValueError(f"{entry['name']}: {e}") from e

        args = event_data["args"]
        # Keep ABI argument order.
        return entry["name"], {i["name"]: args[i["name"]] for i in entry.get("inputs", [])}


# ---------------------------------------------------------------------------
# Receipt shapes
# ---------------------------------------------------------------------------

@dataclass
class LegacyReceipt:
    """Receipt with a pre-decoded ``events`` list."""
    events: List[Mapping[str, Any]] = field(default_factory=list)


@dataclass
class ModernReceipt:
    """Receipt with raw ``logs``."""
    logs: List[Mapping[str, Any]] = field(default_factory=list)


Receipt = Union[LegacyReceipt, ModernReceipt, Mapping[str, Any]]
InterfaceLike = Union[EventInterface, Sequence[Mapping[str, Any]]]


def _to_bytes(value: Union[bytes, str]) -> bytes:
    return bytes(hexstr_if_str(to_bytes, value))


def _field(log: Any, key: str, default: Any = None) -> Any:
    # web3 AttributeDicts and plain dicts are both Mappings
    if isinstance(log, Mapping):
        return log.get(key, default)
    return getattr(log, key, default)


def _topic_of(event: str) -> Optional[bytes]:
    """Interpret ``event`` as an explicit topic hash or event signature."""
    if event[:2] in ("0x", "0X") and len(event) == 66:
        return _to_bytes(event)
    if "(" in event:
        return keccak(text=event)
    return None


def _log_index(log: Any, position: int) -> int:
    index = _field(log, "logIndex")
    return int(index) if index is not None else position


def _decoded(name: str, args: Dict[str, Any], log: Any, position: int, topic: Optional[bytes]) -> DecodedEvent:
    address = _field(log, "address")
    return DecodedEvent(
        event=name,
        args=args,
        log_index=_log_index(log, position),
        address=to_checksum_address(address) if address else None,
        topic="0x" + topic.hex() if topic else None,
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _extract_legacy(receipt: LegacyReceipt, event: str, interface: Optional[EventInterface]) -> DecodedEvent:
    topic = _topic_of(event)
    if topic is None and interface is not None and interface.has_event(event):
        topic = interface.topic(event)

    for position, entry in enumerate(receipt.events):
        topics = [_to_bytes(t) for t in (_field(entry, "topics") or [])]
        if topic is not None:
            if not topics or topics[0] != topic:
                continue
        elif _field(entry, "event") != event:
            continue

        if interface is None:
            name = _field(entry, "event") or event
            args = dict(_field(entry, "args") or {})
            logger.debug("Matched %s at log %d (pre-decoded)", name, position)
            return _decoded(name, args, entry, position, topics[0] if topics else None)

        try:
            decoded = interface.decode_log(topics, _to_bytes(_field(entry, "data") or b""))
        except ValueError as e:
            raise UndecodableLog(event, _log_index(entry, position), str(e)) from e
        if decoded is None:
            raise UndecodableLog(event, _log_index(entry, position), "topic not described by interface")

        name, args = decoded
        logger.debug("Matched %s at log %d", name, position)
        return _decoded(name, args, entry, position, topics[0])

    raise EventNotFound(event, len(receipt.events))


def _extract_modern(receipt: ModernReceipt, event: str, interface: EventInterface) -> DecodedEvent:
    wanted_topic = _topic_of(event)
    wanted_name = interface.name_for_topic(wanted_topic) if wanted_topic is not None else event

    for position, log in enumerate(receipt.logs):
        topics = [_to_bytes(t) for t in (_field(log, "topics") or [])]
        try:
            decoded = interface.decode_log(topics, _to_bytes(_field(log, "data") or b""))
        except ValueError as e:
            if interface.name_for_topic(topics[0]) == wanted_name:
                raise UndecodableLog(wanted_name, _log_index(log, position), str(e)) from e
            continue
        if decoded is None:
            continue

        name, args = decoded
        if name == wanted_name:
            logger.debug("Matched %s at log %d", name, position)
            return _decoded(name, args, log, position, topics[0])

    raise EventNotFound(event, len(receipt.logs))


def extract_event(receipt: Receipt, event: str, interface: Optional[InterfaceLike] = None) -> DecodedEvent:
    """
    Return the first log in ``receipt`` matching ``event``, decoded.

    Args:
        receipt: ``LegacyReceipt``, ``ModernReceipt`` or a web3 receipt mapping.
        event: Event name (``"Deployment"``), full signature
            (``"Deployment(address,address,address,address,bytes)"``) or
            0x-prefixed topic hash.
        interface: ``EventInterface`` or ABI list describing the event.
            Required for raw logs.

    Returns:
        ``DecodedEvent`` with arguments keyed by ABI input name.

    Raises:
        EventNotFound: If no log matches.
        UndecodableLog: If a log matches by topic but its data does not decode.
        ValueError: If raw logs are given without an interface.
    """
    if interface is not None and not isinstance(interface, EventInterface):
        interface = EventInterface(interface)

    if not isinstance(receipt, (LegacyReceipt, ModernReceipt)):
        events = _field(receipt, "events")
        if events is not None and (_field(receipt, "logs") is None or interface is None):
            receipt = LegacyReceipt(events=list(events))
        else:
            receipt = ModernReceipt(logs=list(_field(receipt, "logs") or []))

    if isinstance(receipt, LegacyReceipt):
        return _extract_legacy(receipt, event, interface)

    if interface is None:
        raise ValueError("An interface is required to decode raw receipt logs")
    return _extract_modern(receipt, event, interface)
