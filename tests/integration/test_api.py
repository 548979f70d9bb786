"""Integration tests for the HTTP facade."""

import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from coursechain.api import create_app
from coursechain.services.blockchain.core_constants import EventKind
from coursechain.services.blockchain.results import (
    AccountBalance,
    CourseEvent,
    CoursePage,
    CourseRecord,
    ServiceResult,
    TokenAmount,
    TransactionOutcome,
    TxState,
)
from coursechain.utils.exceptions import (
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
)


CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
AUTHOR = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
BUYER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TX_HASH = "0x" + "ab" * 32


def make_course(course_id: int = 1) -> CourseRecord:
    return CourseRecord(
        course_id=course_id,
        title="Python",
        description="Async basics",
        author=AUTHOR,
        price=TokenAmount(10**17),
        created_at=1700000000,
    )


def confirmed(course_id: int | None = None) -> TransactionOutcome:
    return TransactionOutcome(
        success=True,
        state=TxState.CONFIRMED,
        tx_hash=TX_HASH,
        block_number=10,
        gas_used=90000,
        course_id=course_id,
    )


@pytest.fixture
def service():
    """CourseContractService mock returning canned results."""
    svc = MagicMock()
    svc.contract_address = CONTRACT
    svc.get_course_count = AsyncMock(return_value=ServiceResult.ok(15))
    svc.create_course = AsyncMock(return_value=confirmed(course_id=16))
    svc.purchase_course = AsyncMock(return_value=confirmed())
    svc.get_course = AsyncMock(return_value=ServiceResult.ok(make_course()))
    svc.get_course_buyers = AsyncMock(return_value=ServiceResult.ok([BUYER]))
    svc.get_user_purchased_courses = AsyncMock(return_value=ServiceResult.ok([1, 3]))
    svc.has_user_purchased_course = AsyncMock(return_value=ServiceResult.ok(True))
    svc.get_balance = AsyncMock(
        return_value=ServiceResult.ok(
            AccountBalance(address=AUTHOR, balance=TokenAmount(15 * 10**17))
        )
    )
    svc.get_courses_page = AsyncMock(
        return_value=ServiceResult.ok(
            CoursePage(
                courses=[make_course(11)],
                page=2,
                limit=10,
                total_courses=11,
                total_pages=2,
                has_next_page=False,
                has_prev_page=True,
            )
        )
    )
    svc.close = AsyncMock()
    return svc


@asynccontextmanager
async def api_client(service):
    async with test_utils.TestClient(test_utils.TestServer(create_app(service))) as client:
        yield client


class TestCourseRoutes:
    """Tests for course endpoints."""

    @pytest.mark.asyncio
    async def test_course_count(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/courses/count")

            assert resp.status == 200
            assert await resp.json() == {"success": True, "count": 15}

    @pytest.mark.asyncio
    async def test_create_course(self, service):
        async with api_client(service) as client:
            resp = await client.post(
                "/api/courses",
                json={"title": "Python", "description": "Async basics", "price": 0.1},
            )

            assert resp.status == 201
            body = await resp.json()
            assert body["success"] is True
            assert body["courseId"] == "16"
            assert body["txHash"] == TX_HASH
            assert body["gasUsed"] == "90000"
            service.create_course.assert_awaited_once_with(
                "Python", "Async basics", Decimal("0.1")
            )

    @pytest.mark.asyncio
    async def test_create_course_missing_fields(self, service):
        async with api_client(service) as client:
            resp = await client.post("/api/courses", json={"title": "Python"})

            assert resp.status == 400
            assert (await resp.json())["errorKind"] == "invalid_argument"
            service.create_course.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_course_invalid_json(self, service):
        async with api_client(service) as client:
            resp = await client.post("/api/courses", data="{not json")

            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_create_course_oversized_integer(self, service):
        """Integers past the int() digit limit are a bad request, not a 500."""
        body = '{"title": "Python", "description": "Async basics", "price": %s}' % (
            "9" * 5000
        )

        async with api_client(service) as client:
            resp = await client.post(
                "/api/courses", data=body, headers={"Content-Type": "application/json"}
            )

            assert resp.status == 400
            assert (await resp.json())["errorKind"] == "invalid_argument"
            service.create_course.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "state, kind, status",
        [
            (TxState.REJECTED, ErrorKind.INVALID_ARGUMENT, 400),
            (TxState.REVERTED, ErrorKind.REVERTED, 400),
            (TxState.NETWORK_FAILURE, ErrorKind.NETWORK_FAILURE, 503),
        ],
    )
    async def test_create_course_failures(self, service, state, kind, status):
        service.create_course.return_value = TransactionOutcome.failed(state, "failed", kind)

        async with api_client(service) as client:
            resp = await client.post(
                "/api/courses",
                json={"title": "Python", "description": "Async basics", "price": "1"},
            )

            assert resp.status == status
            body = await resp.json()
            assert body["success"] is False
            assert body["errorKind"] == kind.value

    @pytest.mark.asyncio
    async def test_get_course(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/courses/1")

            assert resp.status == 200
            body = await resp.json()
            assert body["course"]["title"] == "Python"
            assert body["course"]["price"] == "0.1"
            assert body["course"]["createdAt"] == "2023-11-14T22:13:20Z"
            service.get_course.assert_awaited_once_with("1")

    @pytest.mark.asyncio
    async def test_get_missing_course(self, service):
        service.get_course.return_value = ServiceResult.from_exception(
            NotFoundError("Course 99 not found")
        )

        async with api_client(service) as client:
            resp = await client.get("/api/courses/99")

            assert resp.status == 404
            assert (await resp.json())["error"] == "Course 99 not found"

    @pytest.mark.asyncio
    async def test_get_course_bad_id(self, service):
        service.get_course.return_value = ServiceResult.from_exception(
            InvalidArgumentError("Invalid course id: 'abc'")
        )

        async with api_client(service) as client:
            resp = await client.get("/api/courses/abc")

            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_purchase_course(self, service):
        async with api_client(service) as client:
            resp = await client.post("/api/courses/2/purchase", json={"payment": "0.1"})

            assert resp.status == 200
            assert (await resp.json())["txHash"] == TX_HASH
            service.purchase_course.assert_awaited_once_with("2", "0.1")

    @pytest.mark.asyncio
    async def test_purchase_without_payment(self, service):
        async with api_client(service) as client:
            resp = await client.post("/api/courses/2/purchase", json={})

            assert resp.status == 400
            service.purchase_course.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_course_buyers(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/courses/1/buyers")

            assert await resp.json() == {"success": True, "buyers": [BUYER], "count": 1}

    @pytest.mark.asyncio
    async def test_has_purchased(self, service):
        async with api_client(service) as client:
            resp = await client.get(f"/api/courses/1/purchased/{BUYER}")

            assert await resp.json() == {"success": True, "hasPurchased": True}
            service.has_user_purchased_course.assert_awaited_once_with("1", BUYER)

    @pytest.mark.asyncio
    async def test_course_page(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/courses?page=2&limit=10")

            body = await resp.json()
            assert resp.status == 200
            assert [c["id"] for c in body["courses"]] == [11]
            assert body["pagination"]["hasPrevPage"] is True
            service.get_courses_page.assert_awaited_once_with(2, 10)

    @pytest.mark.asyncio
    async def test_course_page_defaults(self, service):
        async with api_client(service) as client:
            await client.get("/api/courses")

            service.get_courses_page.assert_awaited_once_with(1, 10)

    @pytest.mark.asyncio
    async def test_course_page_non_numeric(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/courses?page=two")

            assert resp.status == 400
            service.get_courses_page.assert_not_awaited()


class TestAccountRoutes:
    """Tests for account endpoints."""

    @pytest.mark.asyncio
    async def test_user_courses(self, service):
        async with api_client(service) as client:
            resp = await client.get(f"/api/users/{BUYER}/courses")

            assert await resp.json() == {"success": True, "courseIds": [1, 3], "count": 2}

    @pytest.mark.asyncio
    async def test_user_courses_bad_address(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/users/0x1234/courses")

            assert resp.status == 400
            service.get_user_purchased_courses.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_signer_balance(self, service):
        async with api_client(service) as client:
            resp = await client.get("/api/balance")

            assert await resp.json() == {
                "success": True,
                "balance": "1.5",
                "balanceWei": "1500000000000000000",
                "address": AUTHOR,
            }
            service.get_balance.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_balance_of_address(self, service):
        async with api_client(service) as client:
            resp = await client.get(f"/api/balance/{BUYER}")

            assert resp.status == 200
            service.get_balance.assert_awaited_once_with(BUYER)

    @pytest.mark.asyncio
    async def test_balance_network_failure(self, service):
        service.get_balance.return_value = ServiceResult.from_exception(
            ConnectionError("node unreachable")
        )

        async with api_client(service) as client:
            resp = await client.get("/api/balance")

            assert resp.status == 503


class TestServiceRoutes:
    """Tests for health, docs and shutdown."""

    @pytest.mark.asyncio
    async def test_health(self, service):
        async with api_client(service) as client:
            resp = await client.get("/health")

            body = await resp.json()
            assert resp.status == 200
            assert body["status"] == "OK"
            assert body["contractAddress"] == CONTRACT
            assert body["courseCount"] == 15

    @pytest.mark.asyncio
    async def test_health_unreachable_node(self, service):
        service.get_course_count.return_value = ServiceResult.from_exception(
            ConnectionError("down")
        )

        async with api_client(service) as client:
            resp = await client.get("/health")

            assert resp.status == 503
            assert (await resp.json())["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_docs(self, service):
        async with api_client(service) as client:
            body = await (await client.get("/api/docs")).json()

            paths = {endpoint["path"] for endpoint in body["endpoints"]}
            assert "/api/courses" in paths
            assert "/ws" in paths

    @pytest.mark.asyncio
    async def test_shutdown_stops_listeners(self, service):
        async with api_client(service):
            pass

        service.stop_listening.assert_called_once()
        service.close.assert_awaited_once()


class TestWebSocket:
    """Tests for the WebSocket event feed."""

    @pytest.mark.asyncio
    async def test_subscribe_and_receive(self, service):
        created_subscription = MagicMock()
        purchased_subscription = MagicMock()
        service.on_course_created.return_value = created_subscription
        service.on_course_purchased.return_value = purchased_subscription

        async with api_client(service) as client:
            ws = await client.ws_connect("/ws")
            await ws.send_str("subscribe-events")
            assert (await ws.receive_json())["event"] == "subscribed"

            event = CourseEvent(
                kind=EventKind.COURSE_CREATED,
                course_id=16,
                actor=AUTHOR,
                price=TokenAmount(10**17),
                tx_hash=TX_HASH,
                block_number=10,
                title="Python",
            )
            forward = service.on_course_created.call_args.args[0]
            await forward(event)

            message = await ws.receive_json()
            assert message == {"event": "course-created", "data": event.to_dict()}

            await ws.close()
            for _ in range(100):
                if purchased_subscription.cancel.called:
                    break
                await asyncio.sleep(0.01)

        created_subscription.cancel.assert_called_once()
        purchased_subscription.cancel.assert_called_once()

    @pytest.mark.asyncio
    async def test_json_subscribe_message(self, service):
        async with api_client(service) as client:
            ws = await client.ws_connect("/ws")
            await ws.send_json({"event": "subscribe-events"})
            assert (await ws.receive_json())["event"] == "subscribed"

            # A second subscribe on the same socket does not register again
            await ws.send_str("subscribe-events")
            await ws.send_str("ping")
            assert (await ws.receive_json())["event"] == "error"
            await ws.close()

        service.on_course_created.assert_called_once()

    @pytest.mark.asyncio
    async def test_unknown_message(self, service):
        async with api_client(service) as client:
            ws = await client.ws_connect("/ws")
            await ws.send_str("hello")

            message = await ws.receive_json()
            assert message["event"] == "error"
            await ws.close()

        service.on_course_created.assert_not_called()
