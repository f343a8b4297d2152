# ──────────────────────────────────────────────────────────────────────────
# tests/conftest.py
# --------------------------------------------------------------------------
"""
Global pytest fixtures & CLI options for slothunter tests.
The live-node integration test runs only when an endpoint is given, e.g.:

    pytest -m integration tests/test_integration.py \
           --node-endpoint wss://rpc.polkadot.io:443
"""
import pytest

from slothunter.configuration import configuration_from_dict

from doubles import raw_configuration

def pytest_addoption(parser: pytest.Parser) -> None:
    """Expose `--node-endpoint` and `--network` on the pytest command line."""
    parser.addoption(
        "--node-endpoint",
        action="store",
        default=None,
        help="Relay-chain websocket endpoint, e.g. `wss://rpc.polkadot.io:443`",
    )
    parser.addoption(
        "--network",
        action="store",
        default="polkadot",
        help="polkadot | kusama (token and ss58 format of the endpoint).",
    )


@pytest.fixture
def make_configuration():
    """Factory: `make_configuration(**bid_overrides)` → Configuration."""
    def _make(**bid_overrides):
        return configuration_from_dict(raw_configuration(**bid_overrides))
    return _make
