"""
Paginated course listing.

Fans out one getCourse call per id of the requested page and assembles the
page in id order.

The course count and the per-id reads are separate round trips, so they are
not observed atomically: a course that cannot be read when its id is fetched
is dropped from the page instead of failing the whole request. Callers may
therefore receive a shorter page than requested.
"""

import asyncio
import math

from loguru import logger

from coursechain.config.constants import MAX_PAGE_SIZE
from coursechain.utils.exceptions import InvalidArgumentError

from .query_operations import CourseQueryManager
from .results import CoursePage, ServiceResult


def page_bounds(page: int, limit: int, total: int) -> tuple[int, int]:
    """
    Compute the inclusive id range of a 1-based page.

    Returns:
        (start_id, end_id); the range is empty when start_id > end_id

    Examples:
        >>> page_bounds(2, 10, 15)
        (11, 15)
        >>> page_bounds(3, 10, 15)
        (21, 15)
    """
    start_id = (page - 1) * limit + 1
    end_id = min(start_id + limit - 1, total)
    return start_id, end_id


class CoursePaginator:
    """
    Aggregates concurrent course lookups into pages.
    """

    def __init__(
        self,
        query_manager: CourseQueryManager,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        """
        Initialize paginator.

        Args:
            query_manager: Read query facade used for count and lookups
            max_page_size: Upper bound for the page size
        """
        self.query_manager = query_manager
        self.max_page_size = max_page_size

    def _validate(self, page: object, limit: object) -> tuple[int, int]:
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise InvalidArgumentError("Page must be an integer greater than 0")
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 1 <= limit <= self.max_page_size
        ):
            raise InvalidArgumentError(
                f"Limit must be an integer between 1 and {self.max_page_size}"
            )
        return page, limit

    async def get_page(self, page: int = 1, limit: int = 10) -> ServiceResult:
        """
        Get one page of courses.

        Args:
            page: 1-based page number
            limit: Page size (1..max_page_size)

        Returns:
            ServiceResult with CoursePage data
        """
        try:
            page, limit = self._validate(page, limit)
        except InvalidArgumentError as e:
            return ServiceResult.from_exception(e)

        count_result = await self.query_manager.get_course_count()
        if not count_result.success:
            return count_result

        total = count_result.data
        start_id, end_id = page_bounds(page, limit, total)
        ids = list(range(start_id, end_id + 1))

        results = await asyncio.gather(
            *(self.query_manager.get_course(course_id) for course_id in ids)
        )

        courses = []
        missing = []
        for course_id, result in zip(ids, results):
            if result.success:
                courses.append(result.data)
            else:
                missing.append(course_id)

        if missing:
            logger.warning(
                f"Page {page} (limit {limit}): dropped {len(missing)} "
                f"unreadable course(s): {missing}"
            )

        return ServiceResult.ok(
            CoursePage(
                courses=courses,
                page=page,
                limit=limit,
                total_courses=total,
                total_pages=math.ceil(total / limit),
                has_next_page=page * limit < total,
                has_prev_page=page > 1,
                missing_ids=missing,
            )
        )
