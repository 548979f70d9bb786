"""
Event decoding for course contract logs.

Turns raw log entries (from a receipt or from eth_getLogs) into CourseEvent
records. Logs that do not match the course ABI are skipped, never fatal.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3
from web3.exceptions import LogTopicError, MismatchedABI, Web3Exception

from coursechain.utils.exceptions import InvalidAmountError

from .core_constants import COURSE_ABI, EVENT_SIGNATURES, EventKind
from .results import CourseEvent, TokenAmount


def to_hex_str(value: Any) -> str:
    """Render bytes or an already-hex string as 0x-prefixed hex."""
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return Web3.to_hex(value)


# Failures that mean "this log is not one of ours"
UNDECODABLE_LOG_ERRORS = (
    MismatchedABI,
    LogTopicError,
    DecodingError,
    Web3Exception,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
)


class EventDecoder:
    """
    Decodes CourseCreated / CoursePurchased logs.

    Decoding needs only the ABI and codec, so the decoder builds an offline
    contract object and never touches the network.
    """

    def __init__(self, contract_address: str) -> None:
        """
        Initialize event decoder.

        Args:
            contract_address: Course contract address; logs emitted by any
                other address are ignored
        """
        self.contract_address = to_checksum_address(contract_address)
        self._contract = Web3().eth.contract(
            address=self.contract_address, abi=COURSE_ABI
        )
        self._events = {
            kind: getattr(self._contract.events, kind.value)() for kind in EventKind
        }

    @staticmethod
    def topic_for(kind: EventKind) -> str:
        """Return topic0 (hex) for an event kind."""
        return Web3.to_hex(Web3.keccak(text=EVENT_SIGNATURES[kind]))

    def decode_log(
        self,
        log: Mapping[str, Any],
        kinds: Iterable[EventKind] | None = None,
    ) -> CourseEvent | None:
        """
        Decode a single log entry.

        Args:
            log: Raw log entry
            kinds: Event kinds to accept (default: all)

        Returns:
            CourseEvent, or None when the log is not a matching course event
        """
        address = log.get("address")
        if address and str(address).lower() != self.contract_address.lower():
            return None

        for kind in kinds or EventKind:
            try:
                decoded = self._events[kind].process_log(log)
            except UNDECODABLE_LOG_ERRORS:
                continue

            try:
                return self._to_course_event(kind, decoded)
            except (InvalidAmountError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed {kind} log: {e}")
                return None

        return None

    def decode_logs(
        self,
        logs: Iterable[Mapping[str, Any]],
        kinds: Iterable[EventKind] | None = None,
        max_course_id: int | None = None,
    ) -> list[CourseEvent]:
        """
        Decode a collection of logs, skipping anything unrecognised.

        Args:
            logs: Raw log entries
            kinds: Event kinds to accept (default: all)
            max_course_id: Course count observed by the caller; events
                referencing a higher id are dropped

        Returns:
            Decoded events in input order
        """
        kinds = tuple(kinds) if kinds else tuple(EventKind)
        events = []
        skipped = 0

        for log in logs:
            event = self.decode_log(log, kinds)
            if event is None:
                skipped += 1
                continue

            if max_course_id is not None and event.course_id > max_course_id:
                logger.warning(
                    f"Dropping {event.kind} for course {event.course_id}: "
                    f"above observed course count {max_course_id}"
                )
                continue

            events.append(event)

        if skipped:
            logger.debug(f"Skipped {skipped} non-matching log(s)")

        return events

    def decode_receipt(
        self,
        receipt: Mapping[str, Any],
        kinds: Iterable[EventKind] | None = None,
    ) -> list[CourseEvent]:
        """Decode the course events contained in a transaction receipt."""
        return self.decode_logs(receipt.get("logs") or [], kinds)

    @staticmethod
    def _to_course_event(kind: EventKind, decoded: Mapping[str, Any]) -> CourseEvent:
        args = decoded["args"]
        actor = args["author"] if kind is EventKind.COURSE_CREATED else args["buyer"]

        return CourseEvent(
            kind=kind,
            course_id=int(args["courseId"]),
            actor=to_checksum_address(actor),
            price=TokenAmount(int(args["price"])),
            tx_hash=to_hex_str(decoded["transactionHash"]),
            block_number=int(decoded["blockNumber"]),
            log_index=int(decoded.get("logIndex") or 0),
            title=args.get("title"),
        )
