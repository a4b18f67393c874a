"""
TradeTrust Title Escrow Client

Async orchestration over ``web3.AsyncWeb3`` for the on-chain side of the
title escrow workflow: deploying token registries through the TDocDeployer,
creating and locating title escrows, and reading or cancelling endorsements.

Every transaction is built, signed locally with the client's key, broadcast
and awaited; the receipt is then parsed with ``extract_event`` and, where the
result is deterministic, cross-checked with ``derive_clone_address``.

Dependencies:
    - web3.py: For blockchain RPC interaction
    - eth_account: For transaction signing
"""

import logging
from typing import Any, Dict, Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception
from web3.types import TxReceipt

from ..config import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION, EscrowSettings, get_settings
from ..logger import setup_logger
from ..exceptions import (
    BlockchainInteractionError,
    CallerNotEndorser,
    ConfigurationError,
    TransactionExecutionError,
)
from .abis import (
    get_deployer_abi,
    get_erc165_abi,
    get_title_escrow_factory_abi,
    get_title_escrow_signable_abi,
)
from .addresses import AddressLike, TokenIdLike, derive_clone_address, normalize_address, token_id_to_int
from .codecs import encode_init_params
from .constants import resolve_contract_address
from .interfaces import CONTRACT_INTERFACE_IDS
from .receipts import extract_event
from .schemas import EVMECDSASignature, Endorsement, EscrowSnapshot
from .signatures import hash_endorsement, sign_endorsement

logger = logging.getLogger(__name__)

#: Gas limit used when ``estimate_gas`` fails.
_FALLBACK_GAS: int = 500000


class TitleEscrowClient:
    """
    Async client for TradeTrust deployer, factory and escrow contracts.

    Args:
        w3: Connected ``AsyncWeb3`` instance.
        private_key: Hex private key of the account sending transactions.
        chain_id: Address-book network; read from the node when omitted.
        domain_name: EIP-712 domain name of the escrows.
        domain_version: EIP-712 domain version of the escrows.

    Example::

        w3 = AsyncWeb3(AsyncHTTPProvider("https://rpc.sepolia.org"))
        client = TitleEscrowClient(w3, private_key)
        registry = await client.deploy_token("Bills of Lading", "BOL")
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        private_key: str,
        chain_id: Optional[int] = None,
        domain_name: str = DEFAULT_DOMAIN_NAME,
        domain_version: str = DEFAULT_DOMAIN_VERSION,
    ):
        if not private_key:
            raise ConfigurationError("Private key is required for signing.")
        self.w3 = w3
        self.chain_id = chain_id
        self.domain_name = domain_name
        self.domain_version = domain_version
        self.account = Account.from_key(private_key)
        self.address: str = self.account.address

    @classmethod
    def from_settings(cls, settings: Optional[EscrowSettings] = None) -> "TitleEscrowClient":
        """
        Build a client from ``TRADETRUST_*`` environment settings.

        Also applies ``log_level`` to the package logger.

        Raises:
            ConfigurationError: If the RPC URL or private key is missing.
        """
        settings = settings or get_settings()
        if not settings.rpc_url:
            raise ConfigurationError("TRADETRUST_RPC_URL is not set")
        if not settings.private_key:
            raise ConfigurationError("TRADETRUST_PRIVATE_KEY is not set")
        setup_logger(settings.log_level)
        return cls(
            AsyncWeb3(AsyncHTTPProvider(settings.rpc_url)),
            settings.private_key,
            chain_id=settings.chain_id,
            domain_name=settings.domain_name,
            domain_version=settings.domain_version,
        )

    # ------------------------------------------------------------------
    # Chain context
    # ------------------------------------------------------------------

    async def get_chain_id(self) -> int:
        """Chain id of the connected network."""
        try:
            return int(await self.w3.eth.chain_id)
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Failed to read chain id: {e}") from e

    async def get_block_timestamp(self, block_identifier: Any = "latest") -> int:
        """Timestamp of ``block_identifier``; the ``current_time`` for deadline checks."""
        try:
            block = await self.w3.eth.get_block(block_identifier)
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Failed to read block {block_identifier}: {e}") from e
        return int(block["timestamp"])

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def _transact(self, tx_fn) -> TxReceipt:
        """
        Sign, broadcast and await a contract call.

        Raises:
            BlockchainInteractionError: If any RPC step fails.
            TransactionExecutionError: If the transaction reverted (status 0).
        """
        try:
            nonce = await self.w3.eth.get_transaction_count(self.address)
            chain_id = await self.w3.eth.chain_id
            tx_params: Dict[str, Any] = {
                "chainId": chain_id,
                "from": self.address,
                "nonce": nonce,
            }

            # Gas estimation with 10% buffer
            try:
                gas_estimate = await tx_fn.estimate_gas({"from": self.address})
                tx_params["gas"] = int(gas_estimate * 1.1)
            except Web3Exception:
                tx_params["gas"] = _FALLBACK_GAS

            # EIP-1559 fees, legacy gas price when the node has no fee history
            try:
                fee_history = await self.w3.eth.fee_history(1, "latest", [25.0])
                base_fee = fee_history["baseFeePerGas"][-1]
                priority_fee = fee_history["reward"][0][0]
                tx_params["maxPriorityFeePerGas"] = priority_fee
                tx_params["maxFeePerGas"] = (base_fee * 2) + priority_fee
            except (Web3Exception, KeyError, IndexError):
                tx_params["gasPrice"] = await self.w3.eth.gas_price

            transaction = await tx_fn.build_transaction(tx_params)
            signed_tx = self.account.sign_transaction(transaction)
            tx_hash = await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            tx_hex = tx_hash.hex()
            logger.info("Submitted transaction %s", tx_hex)

            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Transaction failed: {e}") from e

        if receipt["status"] == 0:
            raise TransactionExecutionError(f"Transaction reverted: {tx_hex}", tx_hash=tx_hex)
        return receipt

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    async def is_supported_title_escrow_factory(self, factory_address: AddressLike) -> bool:
        """
        Whether ``factory_address`` clones an implementation supporting the
        TitleEscrow ERC-165 interface.
        """
        factory = self.w3.eth.contract(
            address=normalize_address(factory_address), abi=get_title_escrow_factory_abi()
        )
        try:
            implementation = await factory.functions.implementation().call()
            impl_contract = self.w3.eth.contract(
                address=normalize_address(implementation), abi=get_erc165_abi()
            )
            return bool(
                await impl_contract.functions.supportsInterface(CONTRACT_INTERFACE_IDS["TitleEscrow"]).call()
            )
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Interface check failed for {factory_address}: {e}") from e

    async def get_title_escrow_address(
        self,
        factory_address: AddressLike,
        registry_address: AddressLike,
        token_id: TokenIdLike,
    ) -> str:
        """
        Read ``getAddress(registry, tokenId)`` from the factory.

        The on-chain answer is checked against ``derive_clone_address``.

        Raises:
            BlockchainInteractionError: If the call fails or the two disagree.
        """
        factory_address = normalize_address(factory_address)
        registry_address = normalize_address(registry_address)
        token_id = token_id_to_int(token_id)
        factory = self.w3.eth.contract(address=factory_address, abi=get_title_escrow_factory_abi())
        try:
            on_chain = normalize_address(await factory.functions.getAddress(registry_address, token_id).call())
            implementation = await factory.functions.implementation().call()
        except Web3Exception as e:
            raise BlockchainInteractionError(f"getAddress failed on {factory_address}: {e}") from e

        expected = derive_clone_address(factory_address, implementation, registry_address, token_id)
        if on_chain != expected:
            raise BlockchainInteractionError(
                f"Factory {factory_address} reports {on_chain}, derived address is {expected}"
            )
        return on_chain

    async def create_title_escrow(self, factory_address: AddressLike, token_id: TokenIdLike) -> str:
        """
        Call ``create(tokenId)`` on the factory and return the new escrow.

        The factory uses the caller as the token registry, so the sending
        account is the registry in the derived address. Deployed factories
        reject calls from EOAs.

        Raises:
            TransactionExecutionError: If the emitted escrow address differs
                from the derived one, or the transaction reverted.
        """
        factory_address = normalize_address(factory_address)
        token_id = token_id_to_int(token_id)
        factory = self.w3.eth.contract(address=factory_address, abi=get_title_escrow_factory_abi())

        receipt = await self._transact(factory.functions.create(token_id))
        event = extract_event(receipt, "TitleEscrowCreated", get_title_escrow_factory_abi())
        title_escrow = event.args["titleEscrow"]

        try:
            implementation = await factory.functions.implementation().call()
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Failed to read implementation of {factory_address}: {e}") from e

        expected = derive_clone_address(factory_address, implementation, self.address, token_id)
        if title_escrow != expected:
            tx_hash = receipt.get("transactionHash")
            raise TransactionExecutionError(
                f"Factory created {title_escrow}, expected {expected}",
                tx_hash=tx_hash.hex() if tx_hash is not None else None,
            )

        logger.info("Created title escrow %s for token %d", title_escrow, token_id)
        return title_escrow

    # ------------------------------------------------------------------
    # Deployer
    # ------------------------------------------------------------------

    async def deploy_token(
        self,
        name: str,
        symbol: str,
        admin: Optional[AddressLike] = None,
        deployer_address: Optional[AddressLike] = None,
        implementation: Optional[AddressLike] = None,
        factory_address: Optional[AddressLike] = None,
    ) -> str:
        """
        Deploy a token registry clone through the TDocDeployer.

        Addresses left as ``None`` are taken from the address book for the
        connected chain. The title escrow factory is checked for TitleEscrow
        interface support before anything is sent.

        Args:
            name: Registry token name.
            symbol: Registry token symbol.
            admin: Default admin of the new registry; the client's account if omitted.
            deployer_address: TDocDeployer contract.
            implementation: Token registry implementation to clone.
            factory_address: Title escrow factory the registry will use.

        Returns:
            Address of the deployed registry (``Deployment.deployed``).

        Raises:
            ConfigurationError: If an address cannot be resolved or the
                factory is not supported.
            TransactionExecutionError: If the deployment reverted.
            EventNotFound: If the receipt has no ``Deployment`` event.
        """
        chain_id = self.chain_id or await self.get_chain_id()
        factory = resolve_contract_address("TitleEscrowFactory", chain_id, factory_address)
        if not await self.is_supported_title_escrow_factory(factory):
            raise ConfigurationError(f"Title Escrow Factory {factory} is not supported.")

        deployer = resolve_contract_address("Deployer", chain_id, deployer_address)
        impl = resolve_contract_address("TokenImplementation", chain_id, implementation)
        params = encode_init_params(name, symbol, admin or self.address)

        contract = self.w3.eth.contract(address=deployer, abi=get_deployer_abi())
        receipt = await self._transact(contract.functions.deploy(impl, params))

        registry = extract_event(receipt, "Deployment", get_deployer_abi()).args["deployed"]
        logger.info("Deployed token registry %s (%s) via %s", registry, symbol, deployer)
        return registry

    # ------------------------------------------------------------------
    # Escrow state and endorsements
    # ------------------------------------------------------------------

    async def get_escrow_snapshot(self, escrow_address: AddressLike) -> EscrowSnapshot:
        """Read beneficiary, holder, nominee, registry and token id of an escrow."""
        escrow = self.w3.eth.contract(
            address=normalize_address(escrow_address), abi=get_title_escrow_signable_abi()
        )
        try:
            return EscrowSnapshot(
                beneficiary=await escrow.functions.beneficiary().call(),
                holder=await escrow.functions.holder().call(),
                nominee=await escrow.functions.nominee().call(),
                registry=await escrow.functions.registry().call(),
                token_id=await escrow.functions.tokenId().call(),
            )
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Failed to read escrow {escrow_address}: {e}") from e

    async def get_endorsement_nonce(self, escrow_address: AddressLike, holder: AddressLike) -> int:
        """Current ``nonces(holder)`` of an escrow."""
        escrow = self.w3.eth.contract(
            address=normalize_address(escrow_address), abi=get_title_escrow_signable_abi()
        )
        try:
            return int(await escrow.functions.nonces(normalize_address(holder)).call())
        except Web3Exception as e:
            raise BlockchainInteractionError(f"Failed to read nonce on {escrow_address}: {e}") from e

    async def sign_endorsement(self, escrow_address: AddressLike, endorsement: Endorsement) -> EVMECDSASignature:
        """
        Sign ``endorsement`` for ``escrow_address`` with the client's key.

        The chain id comes from the node so the signature binds to the
        connected network.
        """
        chain_id = await self.get_chain_id()
        return sign_endorsement(
            private_key=self.account.key,
            endorsement=endorsement,
            chain_id=chain_id,
            verifying_contract=escrow_address,
            domain_name=self.domain_name,
            domain_version=self.domain_version,
        )

    async def cancel_beneficiary_transfer(self, escrow_address: AddressLike, endorsement: Endorsement) -> bytes:
        """
        Cancel an endorsement on-chain.

        Returns:
            The cancelled struct hash.

        Raises:
            CallerNotEndorser: If the client's account is not the endorsement's holder.
            TransactionExecutionError: If the cancellation reverted.
        """
        if normalize_address(self.address) != endorsement.holder:
            raise CallerNotEndorser(
                f"{self.address} cannot cancel an endorsement signed by {endorsement.holder}"
            )

        escrow = self.w3.eth.contract(
            address=normalize_address(escrow_address), abi=get_title_escrow_signable_abi()
        )
        message = endorsement.to_message_dict()
        endorsement_tuple = tuple(message[k] for k in (
            "beneficiary", "holder", "nominee", "registry", "tokenId", "deadline", "nonce"
        ))
        receipt = await self._transact(escrow.functions.cancelBeneficiaryTransfer(endorsement_tuple))

        struct_hash = hash_endorsement(endorsement)
        event = extract_event(receipt, "CancelBeneficiaryTransferEndorsement", get_title_escrow_signable_abi())
        if bytes(event.args["structHash"]) != struct_hash:
            raise TransactionExecutionError(
                f"Escrow cancelled 0x{bytes(event.args['structHash']).hex()}, expected 0x{struct_hash.hex()}"
            )
        logger.info("Cancelled endorsement 0x%s on %s", struct_hash.hex(), escrow_address)
        return struct_hash
