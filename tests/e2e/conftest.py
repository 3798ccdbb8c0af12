import os, sys, pytest
from pathlib import Path
from web3 import Web3

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "bots" / "tx_confirm"))

def pytest_addoption(parser):
    parser.addoption("--rpc", action="store", default=os.getenv("FORK_RPC_URL"))

@pytest.fixture(scope="session")
def rpc_url(pytestconfig):
    return pytestconfig.getoption("--rpc")

@pytest.fixture(scope="session")
def w3(rpc_url):
    if not rpc_url:
        pytest.skip("FORK_RPC_URL not set")
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    assert w3.is_connected(), "RPC connection failed"
    return w3

@pytest.fixture
def chain_client(w3, rpc_url):
    from chain_client import Web3ChainClient
    return Web3ChainClient(rpc_url, timeout_s=10)
