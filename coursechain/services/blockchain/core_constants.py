"""
Core blockchain constants.

This module contains:
- Course contract ABI
- Event names understood by the decoder
"""

from enum import StrEnum


class EventKind(StrEnum):
    """Course contract events the client decodes."""

    COURSE_CREATED = "CourseCreated"
    COURSE_PURCHASED = "CoursePurchased"


def _uint(name: str) -> dict:
    return {"internalType": "uint256", "name": name, "type": "uint256"}


def _address(name: str) -> dict:
    return {"internalType": "address", "name": name, "type": "address"}


def _string(name: str) -> dict:
    return {"internalType": "string", "name": name, "type": "string"}


# Course contract ABI
COURSE_ABI = [
    {
        "inputs": [
            _string("_title"),
            _string("_description"),
            _uint("_price"),
        ],
        "name": "createCourse",
        "outputs": [_uint("")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_uint("_courseId")],
        "name": "purchaseCourse",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [_uint("_courseId")],
        "name": "getCourse",
        "outputs": [
            _string("title"),
            _string("description"),
            _address("author"),
            _uint("price"),
            _uint("createdAt"),
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint("_courseId")],
        "name": "getCourseBuyers",
        "outputs": [
            {"internalType": "address[]", "name": "", "type": "address[]"}
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_address("_user")],
        "name": "getUserPurchasedCourses",
        "outputs": [
            {"internalType": "uint256[]", "name": "", "type": "uint256[]"}
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint("_courseId"), _address("_user")],
        "name": "hasUserPurchasedCourse",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getCourseCount",
        "outputs": [_uint("")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "courseCounter",
        "outputs": [_uint("")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, **_uint("courseId")},
            {"indexed": False, **_string("title")},
            {"indexed": True, **_address("author")},
            {"indexed": False, **_uint("price")},
        ],
        "name": EventKind.COURSE_CREATED.value,
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, **_uint("courseId")},
            {"indexed": True, **_address("buyer")},
            {"indexed": False, **_uint("price")},
        ],
        "name": EventKind.COURSE_PURCHASED.value,
        "type": "event",
    },
]

# Canonical event signatures (topic0 = keccak of these)
EVENT_SIGNATURES = {
    EventKind.COURSE_CREATED: "CourseCreated(uint256,string,address,uint256)",
    EventKind.COURSE_PURCHASED: "CoursePurchased(uint256,address,uint256)",
}
