"""
Services.

Contract client layer.
"""

from coursechain.services.blockchain import (
    CourseContractService,
    get_course_service,
    init_course_service,
)


__all__ = [
    "CourseContractService",
    "get_course_service",
    "init_course_service",
]
