#!/usr/bin/env python3
"""
Smoke check against a live node.

Runs create -> get -> purchase -> has_purchased -> buyers -> page against the
configured contract, also checking that the create/purchase events arrive.

Usage:
    RPC_URL=http://localhost:8545 PRIVATE_KEY=0x... python scripts/smoke_check.py
"""
import asyncio
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from coursechain.config.settings import settings
from coursechain.services.blockchain import CourseContractService, CourseEvent
from coursechain.utils.logging import setup_logging


class SmokeCheck:
    """Collects pass/fail results of each step."""

    def __init__(self) -> None:
        self.passed = 0
        self.failed = 0

    def record(self, name: str, ok: bool, error: str | None = None) -> bool:
        if ok:
            self.passed += 1
            logger.success(f"PASS {name}")
        else:
            self.failed += 1
            logger.error(f"FAIL {name}: {error}")
        return ok


async def run() -> int:
    if not settings.private_key:
        logger.error("PRIVATE_KEY is required for the smoke check")
        return 1

    service = CourseContractService(settings)
    check = SmokeCheck()
    events: list[CourseEvent] = []

    service.on_course_created(events.append)
    service.on_course_purchased(events.append)

    try:
        balance = await service.get_balance()
        if check.record("get balance", balance.success, balance.error):
            logger.info(f"  {balance.data.address}: {balance.data.balance.display}")

        count = await service.get_course_count()
        check.record("get course count", count.success, count.error)

        created = await service.create_course(
            f"Smoke test course {int(time.time())}",
            "Course created by the smoke check",
            "0.001",
        )
        if not check.record("create course", created.success, created.error):
            return 1
        course_id = created.course_id
        logger.info(f"  course id: {course_id}, tx: {created.tx_hash}")

        course = await service.get_course(course_id)
        if check.record("get course", course.success, course.error):
            record = course.data
            logger.info(
                f"  {record.title!r} by {record.author}, "
                f"price {record.price.display}, created {record.created_at_iso}"
            )

        missing = await service.get_course(course_id + 1_000_000)
        check.record(
            "unknown course is not found",
            not missing.success and missing.error_kind == "not_found",
            missing.error,
        )

        purchase = await service.purchase_course(course_id, "0.001")
        check.record("purchase course", purchase.success, purchase.error)

        purchased = await service.has_user_purchased_course(
            course_id, service.wallet_address
        )
        check.record(
            "has purchased",
            purchased.success and purchased.data is True,
            purchased.error or f"got {purchased.data}",
        )

        buyers = await service.get_course_buyers(course_id)
        check.record(
            "buyers include signer",
            buyers.success and service.wallet_address in buyers.data,
            buyers.error or f"got {buyers.data}",
        )

        page = await service.get_courses_page(1, 10)
        check.record("first page", page.success, page.error)

        # Give the listener a few poll intervals to pick up both events
        deadline = time.monotonic() + settings.event_poll_interval * 5
        while len(events) < 2 and time.monotonic() < deadline:
            await asyncio.sleep(settings.event_poll_interval)
        check.record(
            "events delivered",
            any(e.course_id == course_id for e in events),
            f"received {len(events)} event(s)",
        )
    finally:
        service.stop_listening()
        service.stop_listening()
        await service.close()

    logger.info(f"Smoke check finished: {check.passed} passed, {check.failed} failed")
    return 0 if check.failed == 0 else 1


if __name__ == "__main__":
    setup_logging(settings)
    sys.exit(asyncio.run(run()))
