"""
Pytest fixtures for the commerce agent tests.
"""
import pytest

from commerce_agent.core.charges import ChargeController
from tests.fakes import FakeGateway, FakeWallet


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def controller(gateway, wallet):
    return ChargeController(gateway, wallet)
