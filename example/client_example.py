from tradetrust_escrow.evm import TitleEscrowClient, EndorsementVerifier, Endorsement, hash_endorsement
from tradetrust_escrow.evm.verifies import preflight_endorsement

escrow = "0xxxx"  # Replace with a deployed title escrow
nominee = "0xxxx"  # Next beneficiary to endorse

# Reads TRADETRUST_RPC_URL / TRADETRUST_PRIVATE_KEY from the environment or .env
client = TitleEscrowClient.from_settings()


async def main():
    snapshot = await client.get_escrow_snapshot(escrow)
    now = await client.get_block_timestamp()

    endorsement = Endorsement(
        beneficiary=snapshot.beneficiary,
        holder=snapshot.holder,
        nominee=nominee,
        registry=snapshot.registry,
        token_id=snapshot.token_id,
        deadline=now + 3600,
        nonce=await client.get_endorsement_nonce(escrow, snapshot.holder),
    )
    preflight_endorsement(endorsement, snapshot)

    signature = await client.sign_endorsement(escrow, endorsement)

    verifier = EndorsementVerifier(chain_id=await client.get_chain_id(), verifying_contract=escrow)
    assert verifier.verify(hash_endorsement(endorsement), snapshot.holder, signature)
    return signature


if __name__ == "__main__":
    import asyncio
    signature = asyncio.run(main())
    print("Signature:", signature.to_packed_hex())
