"""
Application constants.

Centralized constants for the course contract client.
"""

# ========================================================================
# CHAIN UNIT CONSTANTS
# ========================================================================

# Native token precision (wei has 18 fractional decimal digits)
NATIVE_DECIMALS = 18

# Largest value a uint256 contract argument can hold
MAX_UINT256 = 2**256 - 1

# Zero address returned by the contract for unpopulated course slots
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Receipt polling (in seconds)
RECEIPT_POLL_INTERVAL = 1.0  # Delay between eth_getTransactionReceipt calls

# Event listener polling (in seconds)
EVENT_POLL_INTERVAL = 2.0  # Delay between eth_getLogs polls for new blocks
EVENT_POLL_ERROR_DELAY = 5.0  # Back-off after a failed poll
EVENT_MAX_BLOCK_RANGE = 2000  # Max blocks per eth_getLogs request (safe for public RPCs)

# ========================================================================
# PAGINATION CONSTANTS
# ========================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# ========================================================================
# API CONSTANTS
# ========================================================================

API_DEFAULT_PORT = 3000
API_SERVICE_NAME = "Course Contract API"
API_VERSION = "1.0.0"

# WebSocket protocol
WS_SUBSCRIBE_MESSAGE = "subscribe-events"
WS_EVENT_COURSE_CREATED = "course-created"
WS_EVENT_COURSE_PURCHASED = "course-purchased"
