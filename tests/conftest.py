import pytest

from tradetrust_escrow.evm.signatures import sign_endorsement
from tradetrust_escrow.evm.verifies import EndorsementVerifier

from mocks import (
    MOCK_CHAIN_ID_MAINNET,
    MOCK_ESCROW_ADDRESS,
    MOCK_HOLDER_PRIVATE_KEY,
    create_mock_endorsement,
)


@pytest.fixture
def endorsement():
    return create_mock_endorsement()


@pytest.fixture
def verifier():
    """Fresh verifier for the mock escrow on mainnet."""
    return EndorsementVerifier(chain_id=MOCK_CHAIN_ID_MAINNET, verifying_contract=MOCK_ESCROW_ADDRESS)


@pytest.fixture
def sign():
    """Sign an endorsement for the mock escrow, as the holder unless another key is given."""
    def _sign(endorsement, private_key=MOCK_HOLDER_PRIVATE_KEY):
        return sign_endorsement(
            private_key=private_key,
            endorsement=endorsement,
            chain_id=MOCK_CHAIN_ID_MAINNET,
            verifying_contract=MOCK_ESCROW_ADDRESS,
        )
    return _sign
