"""
TradeTrust Contract ABI Module

Minimal ABI fragments for the contracts the client talks to: the TDocDeployer,
the TitleEscrowFactory, TitleEscrowSignable escrows and ERC-165.

Usage:
    from tradetrust_escrow.evm.abis import (
        get_deployer_abi,
        get_title_escrow_factory_abi,
    )

    deployer = w3.eth.contract(address=deployer_address, abi=get_deployer_abi())
    factory = w3.eth.contract(address=factory_address, abi=get_title_escrow_factory_abi())

The event entries double as interface descriptors for ``extract_event``.
"""

from typing import Dict, Any, List


_ENDORSEMENT_TUPLE: Dict[str, Any] = {
    "name": "endorsement",
    "type": "tuple",
    "components": [
        {"name": "beneficiary", "type": "address"},
        {"name": "holder", "type": "address"},
        {"name": "nominee", "type": "address"},
        {"name": "registry", "type": "address"},
        {"name": "tokenId", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
    ],
}


def get_deployer_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for TDocDeployer ``deploy(implementation, params)`` and its
    ``Deployment`` event.

    Returns:
        List[Dict[str, Any]]: ABI for deploy function and Deployment event.

    Example:
        contract = w3.eth.contract(address=deployer_address, abi=get_deployer_abi())
        tx = await contract.functions.deploy(implementation, params).build_transaction({...})
    """
    return [
        {
            "name": "deploy",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "implementation", "type": "address"},
                {"name": "params", "type": "bytes"},
            ],
            "outputs": [{"name": "", "type": "address"}],
        },
        {
            "name": "Deployment",
            "type": "event",
            "anonymous": False,
            "inputs": [
                {"name": "deployed", "type": "address", "indexed": True},
                {"name": "implementation", "type": "address", "indexed": True},
                {"name": "deployer", "type": "address", "indexed": True},
                {"name": "titleEscrowFactory", "type": "address", "indexed": False},
                {"name": "params", "type": "bytes", "indexed": False},
            ],
        },
    ]


def get_title_escrow_factory_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the TitleEscrowFactory.

    Covers ``create(tokenId)``, the ``getAddress(registry, tokenId)`` and
    ``implementation()`` views, and the ``TitleEscrowCreated`` event.

    Returns:
        List[Dict[str, Any]]: TitleEscrowFactory ABI fragment.
    """
    return [
        {
            "name": "create",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [{"name": "tokenId", "type": "uint256"}],
            "outputs": [{"name": "", "type": "address"}],
        },
        {
            "name": "getAddress",
            "type": "function",
            "stateMutability": "view",
            "inputs": [
                {"name": "tokenRegistry", "type": "address"},
                {"name": "tokenId", "type": "uint256"},
            ],
            "outputs": [{"name": "", "type": "address"}],
        },
        {
            "name": "implementation",
            "type": "function",
            "stateMutability": "view",
            "inputs": [],
            "outputs": [{"name": "", "type": "address"}],
        },
        {
            "name": "TitleEscrowCreated",
            "type": "event",
            "anonymous": False,
            "inputs": [
                {"name": "titleEscrow", "type": "address", "indexed": True},
                {"name": "tokenRegistry", "type": "address", "indexed": True},
                {"name": "tokenId", "type": "uint256", "indexed": True},
            ],
        },
    ]


def get_erc165_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ERC-165 ``supportsInterface(bytes4)``.

    Returns:
        List[Dict[str, Any]]: ABI for supportsInterface function.
    """
    return [
        {
            "name": "supportsInterface",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "interfaceId", "type": "bytes4"}],
            "outputs": [{"name": "", "type": "bool"}],
        }
    ]


def get_title_escrow_signable_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the signature-related surface of a TitleEscrow.

    Covers the ``nonces`` / ``cancelled`` / ``DOMAIN_SEPARATOR`` views, the
    state views needed to build an ``EscrowSnapshot``, and
    ``cancelBeneficiaryTransfer`` with its event.

    Returns:
        List[Dict[str, Any]]: TitleEscrowSignable ABI fragment.
    """
    state_views = [
        {
            "name": name,
            "type": "function",
            "stateMutability": "view",
            "inputs": [],
            "outputs": [{"name": "", "type": output_type}],
        }
        for name, output_type in (
            ("beneficiary", "address"),
            ("holder", "address"),
            ("nominee", "address"),
            ("registry", "address"),
            ("tokenId", "uint256"),
            ("DOMAIN_SEPARATOR", "bytes32"),
        )
    ]
    return state_views + [
        {
            "name": "nonces",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        },
        {
            "name": "cancelled",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "", "type": "bytes32"}],
            "outputs": [{"name": "", "type": "bool"}],
        },
        {
            "name": "cancelBeneficiaryTransfer",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [_ENDORSEMENT_TUPLE],
            "outputs": [],
        },
        {
            "name": "CancelBeneficiaryTransferEndorsement",
            "type": "event",
            "anonymous": False,
            "inputs": [
                {"name": "structHash", "type": "bytes32", "indexed": True},
                {"name": "holder", "type": "address", "indexed": True},
                {"name": "tokenId", "type": "uint256", "indexed": True},
            ],
        },
    ]
