"""
Batch Sender Unit Tests
=======================
End-to-end flows of the public entry points against MockRpcClient.
"""

import httpx
import pytest
from solders.compute_budget import set_compute_unit_price
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.transaction import VersionedTransaction

from poolpilot.execution import (
    CompiledTransaction,
    LegacyTransaction,
    send_instructions_in_batches,
    send_prepared_transaction,
    simulate_instructions,
)
from poolpilot.execution.priority_fee import is_priority_fee_instruction
from poolpilot.shared.execution.errors import TransactionRejectedError
from poolpilot.shared.execution.submission_result import OutcomeStatus
from tests.mocks.mock_rpc import MockSimulation


@pytest.mark.unit
class TestSendInstructionsInBatches:

    @pytest.mark.asyncio
    async def test_dry_run_simulates_every_batch(self, payer, make_instructions, mock_rpc, fast_config):
        outcomes = await send_instructions_in_batches(
            mock_rpc, make_instructions(25), 10, payer, fast_config(dry_run=True),
        )

        assert [o.status for o in outcomes] == [OutcomeStatus.SIMULATED] * 3
        assert [o.batch_index for o in outcomes] == [1, 2, 3]
        assert len(mock_rpc.simulated) == 3
        assert mock_rpc.sent_payloads == []

    @pytest.mark.asyncio
    async def test_every_transaction_leads_with_fee(self, payer, make_instructions, mock_rpc, fast_config):
        await send_instructions_in_batches(
            mock_rpc, make_instructions(5), 2, payer,
            fast_config(dry_run=True, compute_unit_price_micro_lamports=77),
        )

        expected = bytes(set_compute_unit_price(77).data)
        for signed in mock_rpc.simulated:
            message = signed.message
            first = message.instructions[0]
            program_id = message.account_keys[first.program_id_index]
            assert is_priority_fee_instruction(program_id, bytes(first.data))
            assert bytes(first.data) == expected

    @pytest.mark.asyncio
    async def test_live_run_confirms_in_order(self, payer, make_instructions, mock_rpc, fast_config):
        mock_rpc.queue_send(None, httpx.ReadTimeout("timed out"), None)

        outcomes = await send_instructions_in_batches(
            mock_rpc, make_instructions(4), 2, payer, fast_config(dry_run=False),
        )

        assert [o.status for o in outcomes] == [OutcomeStatus.CONFIRMED] * 2
        assert [o.retries for o in outcomes] == [0, 1]

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, payer, make_instructions, mock_rpc, fast_config):
        mock_rpc.queue_simulation(MockSimulation(err="InstructionError"))

        with pytest.raises(TransactionRejectedError):
            await send_instructions_in_batches(
                mock_rpc, make_instructions(6), 2, payer, fast_config(dry_run=True),
            )

        assert len(mock_rpc.simulated) == 1

    @pytest.mark.asyncio
    async def test_empty_list_touches_nothing(self, payer, mock_rpc, fast_config):
        assert await send_instructions_in_batches(mock_rpc, [], 4, payer, fast_config()) == []
        assert mock_rpc.call_count == 0

    @pytest.mark.asyncio
    async def test_extra_signers_sign(self, payer, mock_rpc, fast_config):
        from solders.instruction import AccountMeta, Instruction
        from solders.pubkey import Pubkey

        position = Keypair()
        ix = Instruction(Pubkey.new_unique(), b"\x01", [AccountMeta(position.pubkey(), True, True)])

        outcomes = await send_instructions_in_batches(
            mock_rpc, [ix], 1, payer, fast_config(dry_run=True), extra_signers=[position],
        )

        assert outcomes[0].success


@pytest.mark.unit
class TestSimulateInstructions:

    @pytest.mark.asyncio
    async def test_single_simulation(self, payer, make_instructions, mock_rpc):
        outcome = await simulate_instructions(mock_rpc, make_instructions(2), [payer], payer.pubkey())

        assert outcome.status == OutcomeStatus.SIMULATED
        assert len(mock_rpc.simulated) == 1


@pytest.mark.unit
class TestSendPreparedTransaction:

    @pytest.mark.asyncio
    async def test_legacy_gets_fee_and_fresh_blockhash(self, payer, make_instructions, mock_rpc, fast_config):
        tx = LegacyTransaction(fee_payer=payer.pubkey()).add(*make_instructions(2))

        await send_prepared_transaction(
            mock_rpc, tx, [payer], fast_config(dry_run=False, compute_unit_price_micro_lamports=9),
        )

        assert tx.recent_blockhash == mock_rpc.blockhashes[0]
        assert bytes(tx.instructions[-1].data) == bytes(set_compute_unit_price(9).data)
        assert len(mock_rpc.sent_payloads) == 1

    @pytest.mark.asyncio
    async def test_compiled_without_fee_is_still_sent(self, payer, make_instructions, mock_rpc, fast_config):
        message = MessageV0.try_compile(payer.pubkey(), make_instructions(1), [], Hash.new_unique())
        tx = CompiledTransaction(VersionedTransaction(message, [payer]))

        outcome = await send_prepared_transaction(mock_rpc, tx, [payer], fast_config(dry_run=False))

        assert outcome.status == OutcomeStatus.CONFIRMED
        assert mock_rpc.blockhashes == []
