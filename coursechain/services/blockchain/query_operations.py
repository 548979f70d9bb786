"""
Read-only query operations for the course contract.

This module handles:
- Course lookup
- Buyer / purchase membership queries
- Course count

All calls are eth_call round trips with no signer, so they can be issued
concurrently without any local locking. Nothing is cached: every read goes
to the node.
"""

import asyncio

from eth_utils import to_checksum_address
from loguru import logger
from web3.contract import AsyncContract
from web3.exceptions import ContractLogicError

from coursechain.config.constants import ZERO_ADDRESS
from coursechain.utils.exceptions import NotFoundError
from coursechain.utils.security import mask_address
from coursechain.utils.validation import normalize_address, validate_course_id

from .results import CourseRecord, ServiceResult, TokenAmount


class CourseQueryManager:
    """
    Executes non-mutating contract calls.

    Every public method returns a ServiceResult; lookups of a course that
    does not exist fail with ErrorKind.NOT_FOUND.
    """

    def __init__(self, contract: AsyncContract) -> None:
        """
        Initialize query manager.

        Args:
            contract: Course contract instance (no account attached)
        """
        self.contract = contract

    async def get_course(self, course_id: int | str) -> ServiceResult:
        """
        Get course details.

        Args:
            course_id: Course id

        Returns:
            ServiceResult with CourseRecord data
        """
        try:
            return ServiceResult.ok(await self.fetch_course(course_id))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Get course {course_id!r} failed: {e}")
            return ServiceResult.from_exception(e)

    async def fetch_course(self, course_id: int | str) -> CourseRecord:
        """
        Get course details, raising on failure.

        Raises:
            InvalidArgumentError: Malformed id
            NotFoundError: Course does not exist
        """
        course_id = validate_course_id(course_id)

        try:
            title, description, author, price, created_at = (
                await self.contract.functions.getCourse(course_id).call()
            )
        except ContractLogicError as e:
            raise NotFoundError(f"Course {course_id} not found") from e

        # An unpopulated slot decodes as zero values instead of reverting
        if author == ZERO_ADDRESS and created_at == 0:
            raise NotFoundError(f"Course {course_id} not found")

        return CourseRecord(
            course_id=course_id,
            title=title,
            description=description,
            author=to_checksum_address(author),
            price=TokenAmount(int(price)),
            created_at=int(created_at),
        )

    async def get_course_buyers(self, course_id: int | str) -> ServiceResult:
        """
        Get the accounts that purchased a course.

        Returns:
            ServiceResult with a list of checksum addresses
        """
        try:
            course_id = validate_course_id(course_id)
            try:
                buyers = await self.contract.functions.getCourseBuyers(course_id).call()
            except ContractLogicError as e:
                raise NotFoundError(f"Course {course_id} not found") from e
            return ServiceResult.ok([to_checksum_address(b) for b in buyers])
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Get buyers of course {course_id!r} failed: {e}")
            return ServiceResult.from_exception(e)

    async def get_user_purchased_courses(self, account: str) -> ServiceResult:
        """
        Get the ids of the courses an account purchased.

        Returns:
            ServiceResult with a list of int course ids
        """
        try:
            account = normalize_address(account)
            course_ids = await self.contract.functions.getUserPurchasedCourses(
                account
            ).call()
            return ServiceResult.ok([int(course_id) for course_id in course_ids])
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Get purchased courses of {mask_address(str(account))} failed: {e}"
            )
            return ServiceResult.from_exception(e)

    async def has_user_purchased_course(
        self, course_id: int | str, account: str
    ) -> ServiceResult:
        """
        Check whether an account purchased a course.

        Returns:
            ServiceResult with bool data
        """
        try:
            course_id = validate_course_id(course_id)
            account = normalize_address(account)
            try:
                purchased = await self.contract.functions.hasUserPurchasedCourse(
                    course_id, account
                ).call()
            except ContractLogicError as e:
                raise NotFoundError(f"Course {course_id} not found") from e
            return ServiceResult.ok(bool(purchased))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Purchase check for course {course_id!r} failed: {e}")
            return ServiceResult.from_exception(e)

    async def get_course_count(self) -> ServiceResult:
        """
        Get the total number of courses.

        Returns:
            ServiceResult with int data
        """
        try:
            return ServiceResult.ok(await self.fetch_course_count())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Get course count failed: {e}")
            return ServiceResult.from_exception(e)

    async def fetch_course_count(self) -> int:
        """Get the total number of courses, raising on failure."""
        return int(await self.contract.functions.getCourseCount().call())
