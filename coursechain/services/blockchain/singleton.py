"""
Singleton pattern for CourseContractService.

Provides global access to a single CourseContractService instance.
"""

from typing import Any

from coursechain.config.settings import Settings


# Forward declaration to avoid circular import
_course_service: Any = None


def get_course_service():
    """
    Get the singleton course contract service instance.

    Returns:
        CourseContractService instance

    Raises:
        RuntimeError: If service not initialized
    """
    if _course_service is None:
        raise RuntimeError("CourseContractService not initialized")
    return _course_service


def init_course_service(settings: Settings, web3: Any = None):
    """
    Initialize the singleton course contract service instance.

    Args:
        settings: Application settings
        web3: Optional pre-built AsyncWeb3 instance

    Returns:
        The initialized CourseContractService
    """
    global _course_service
    # Import here to avoid circular dependency
    from coursechain.services.blockchain.service_facade import CourseContractService
    _course_service = CourseContractService(settings, web3=web3)
    return _course_service


def reset_course_service() -> None:
    """Forget the singleton instance (the caller closes it)."""
    global _course_service
    _course_service = None
