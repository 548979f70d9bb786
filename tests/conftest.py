"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Well-known local development key (hardhat/anvil account #0), never funded on mainnet
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_SIGNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TEST_BUYER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

# Minimal environment so importing the settings module never fails
os.environ.setdefault("RPC_URL", "http://localhost:8545")
os.environ.setdefault("CONTRACT_ADDRESS", TEST_CONTRACT_ADDRESS)
os.environ.setdefault("LOG_FILE", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3
from web3.datastructures import AttributeDict

from coursechain.config.settings import Settings
from coursechain.services.blockchain.core_constants import EVENT_SIGNATURES, EventKind
from coursechain.services.blockchain.event_decoder import EventDecoder


def _topic_uint(value: int) -> HexBytes:
    return HexBytes(encode(["uint256"], [value]))


def _topic_address(address: str) -> HexBytes:
    return HexBytes(encode(["address"], [address]))


def _tx_hash(seed: int) -> HexBytes:
    return HexBytes(seed.to_bytes(32, "big"))


def build_log(
    topics: list[HexBytes],
    data: bytes,
    block_number: int = 1,
    log_index: int = 0,
    address: str = TEST_CONTRACT_ADDRESS,
    tx_seed: int = 1,
) -> AttributeDict:
    """Build a raw log entry shaped like the ones web3 returns."""
    return AttributeDict(
        {
            "address": address,
            "topics": topics,
            "data": HexBytes(data),
            "blockNumber": block_number,
            "blockHash": HexBytes(b"\x11" * 32),
            "transactionHash": _tx_hash(tx_seed),
            "transactionIndex": 0,
            "logIndex": log_index,
            "removed": False,
        }
    )


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a local node with a signing key configured."""
    return Settings(
        rpc_url="http://localhost:8545",
        private_key=TEST_PRIVATE_KEY,
        contract_address=TEST_CONTRACT_ADDRESS,
        deployment_file=tmp_path / "deployment.json",
        event_poll_interval=0.01,
        receipt_poll_interval=0.01,
        log_file=None,
        _env_file=None,
    )


@pytest.fixture
def decoder():
    """Event decoder bound to the test contract address."""
    return EventDecoder(TEST_CONTRACT_ADDRESS)


@pytest.fixture
def make_created_log():
    """Factory for ABI-encoded CourseCreated logs."""

    def factory(
        course_id: int,
        title: str = "Intro to Solidity",
        author: str = TEST_SIGNER_ADDRESS,
        price: int = 10**17,
        **kwargs,
    ) -> AttributeDict:
        topics = [
            HexBytes(Web3.keccak(text=EVENT_SIGNATURES[EventKind.COURSE_CREATED])),
            _topic_uint(course_id),
            _topic_address(author),
        ]
        data = encode(["string", "uint256"], [title, price])
        return build_log(topics, data, **kwargs)

    return factory


@pytest.fixture
def make_purchased_log():
    """Factory for ABI-encoded CoursePurchased logs."""

    def factory(
        course_id: int,
        buyer: str = TEST_BUYER_ADDRESS,
        price: int = 10**17,
        **kwargs,
    ) -> AttributeDict:
        topics = [
            HexBytes(Web3.keccak(text=EVENT_SIGNATURES[EventKind.COURSE_PURCHASED])),
            _topic_uint(course_id),
            _topic_address(buyer),
        ]
        data = encode(["uint256"], [price])
        return build_log(topics, data, **kwargs)

    return factory


@pytest.fixture
def foreign_log():
    """A Transfer log that is not a course event."""
    topics = [
        HexBytes(Web3.keccak(text="Transfer(address,address,uint256)")),
        _topic_address(TEST_SIGNER_ADDRESS),
        _topic_address(TEST_BUYER_ADDRESS),
    ]
    return build_log(topics, encode(["uint256"], [5]))


@pytest.fixture
def mock_contract():
    """
    Course contract mock.

    Each contract function returns a call object whose `call()` and
    `build_transaction()` are AsyncMocks the test can configure.
    """
    contract = MagicMock()
    for name in (
        "createCourse",
        "purchaseCourse",
        "getCourse",
        "getCourseBuyers",
        "getUserPurchasedCourses",
        "hasUserPurchasedCourse",
        "getCourseCount",
    ):
        call = MagicMock()
        call.call = AsyncMock()
        call.build_transaction = AsyncMock(
            return_value={
                "to": TEST_CONTRACT_ADDRESS,
                "value": 0,
                "gas": 300000,
                "maxFeePerGas": 2 * 10**9,
                "maxPriorityFeePerGas": 10**9,
                "nonce": 0,
                "chainId": 31337,
                "data": "0x",
            }
        )
        getattr(contract.functions, name).return_value = call
    return contract


@pytest.fixture
def mock_web3():
    """AsyncWeb3 mock with the eth methods the client awaits."""
    web3 = MagicMock()
    web3.eth.get_transaction_count = AsyncMock(return_value=7)
    web3.eth.send_raw_transaction = AsyncMock(return_value=HexBytes(b"\xab" * 32))
    web3.eth.get_transaction_receipt = AsyncMock()
    web3.eth.get_balance = AsyncMock(return_value=2 * 10**18)
    web3.eth.get_logs = AsyncMock(return_value=[])
    return web3
