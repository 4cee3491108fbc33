import pytest

from contract import ContractReader, ContractWriter
from session import MemoryStorage, SessionUser
from tests.fakes import CONTRACT_ADDRESS, WALLET, FakeExecutor, FakeNode


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def reader(node):
    return ContractReader(network="sepolia", contract_address=CONTRACT_ADDRESS, client=node)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def writer(executor):
    return ContractWriter(executor, contract_address=CONTRACT_ADDRESS)


@pytest.fixture
def user():
    return SessionUser(access_token="token-1", wallet_address=WALLET, network="sepolia")


@pytest.fixture
def storage():
    return MemoryStorage()
