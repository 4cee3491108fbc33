"""State-changing calls against the price contract.

Every write is a single execution request to the hosted wallet service, which
signs and submits it and hands back the transaction hash together with a
refreshed access token. Persisting that token is the caller's job.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from config import settings_conf

from .codec import MAX_TEXT_BYTES, encode_byte_array, encode_felt, encode_wide, text_length
from .models import Call, ExecutionResult, NewStore

logger = logging.getLogger(__name__)


class WriteError(Exception):
    """Base exception for contract writes."""
    pass


class WriteValidationError(WriteError):
    """Raised when write arguments are rejected before submission."""
    pass


class SubmissionError(WriteError):
    """Raised when the execution service rejects or fails a submission."""
    pass


class CallExecutor(Protocol):
    def execute_calls(
        self,
        wallet_address: str,
        network: str,
        access_token: str,
        calls: List[Call]
    ) -> ExecutionResult:
        ...


class WriteSession(Protocol):
    """Whatever identifies the signer: a wallet, its network and access token."""
    wallet_address: str
    network: str
    access_token: str


PriceEncoder = Callable[[str, int], List[str]]


def encode_price_split(store_id: str, price_in_cents: int) -> List[str]:
    """Price as a 256-bit integer split into low and high words."""
    return [encode_felt(store_id), *encode_wide(price_in_cents)]


def encode_price_plain(store_id: str, price_in_cents: int) -> List[str]:
    """Price as a single plain number."""
    return [encode_felt(store_id), str(price_in_cents)]


# Tried in order until one submission succeeds
PRICE_ENCODERS: Tuple[PriceEncoder, ...] = (encode_price_split, encode_price_plain)


def validate_store_id(store_id: str) -> str:
    if not isinstance(store_id, str) or not store_id.strip().isdigit():
        raise WriteValidationError(f"Invalid store id: {store_id!r}")
    return store_id.strip()


def validate_text(field: str, value: str, required: bool = True) -> str:
    value = (value or '').strip()
    if required and not value:
        raise WriteValidationError(f"{field} is required")
    if text_length(value) > MAX_TEXT_BYTES:
        raise WriteValidationError(
            f"{field} is too long ({text_length(value)} bytes, max {MAX_TEXT_BYTES})"
        )
    return value


class ContractWriter:
    """Encodes write intents and submits them through the execution service."""

    def __init__(
        self,
        executor: CallExecutor,
        contract_address: Optional[str] = None,
        price_encoders: Sequence[PriceEncoder] = PRICE_ENCODERS
    ):
        self.executor = executor
        self.contract_address = contract_address or settings_conf['contract_address']
        self.price_encoders = tuple(price_encoders)

    async def submit(self, session: WriteSession, calls: List[Call]) -> ExecutionResult:
        """Submit one or more calls as a single transaction.

        Raises:
            SubmissionError: If the execution service fails
        """
        try:
            result = await asyncio.to_thread(
                self.executor.execute_calls,
                session.wallet_address,
                session.network,
                session.access_token,
                calls
            )
        except Exception as e:
            entrypoints = ', '.join(call.entrypoint for call in calls)
            raise SubmissionError(f"Failed to execute {entrypoints}: {e}") from e
        logger.info(
            f"Executed {', '.join(call.entrypoint for call in calls)} "
            f"for {session.wallet_address}: tx={result.tx_hash}"
        )
        return result

    def _call(self, entrypoint: str, calldata: List[str]) -> Call:
        return Call(contract_address=self.contract_address, entrypoint=entrypoint, calldata=calldata)

    async def give_thanks(self, session: WriteSession, store_id: str) -> ExecutionResult:
        store_id = validate_store_id(store_id)
        return await self.submit(session, [self._call('give_thanks', [encode_felt(store_id)])])

    async def submit_report(self, session: WriteSession, store_id: str, description: str) -> ExecutionResult:
        store_id = validate_store_id(store_id)
        description = validate_text('description', description)
        calldata = [encode_felt(store_id), *encode_byte_array(description)]
        return await self.submit(session, [self._call('submit_report', calldata)])

    async def update_price(self, session: WriteSession, store_id: str, price_in_cents: int) -> ExecutionResult:
        """Set a store's current price, falling back through the price encoders.

        Raises:
            WriteValidationError: If the id or price is invalid
            SubmissionError: If every encoding was rejected
        """
        store_id = validate_store_id(store_id)
        if isinstance(price_in_cents, bool) or not isinstance(price_in_cents, int) or price_in_cents < 0:
            raise WriteValidationError(f"Price must be a non-negative integer, got {price_in_cents!r}")

        last_error: Optional[Exception] = None
        for attempt, encode in enumerate(self.price_encoders, start=1):
            try:
                calldata = encode(store_id, price_in_cents)
                return await self.submit(session, [self._call('update_price', calldata)])
            except (ValueError, SubmissionError) as e:
                last_error = e
                logger.warning(
                    f"update_price attempt {attempt}/{len(self.price_encoders)} "
                    f"with {encode.__name__} failed: {e}"
                )
        raise SubmissionError(f"All price encodings failed: {last_error}") from last_error

    async def add_store(self, session: WriteSession, store: NewStore) -> ExecutionResult:
        fields = [
            validate_text('name', store.name),
            validate_text('address', store.address),
            validate_text('hours', store.hours, required=False),
            validate_text('URI', store.uri, required=False)
        ]
        calldata = [felt for field in fields for felt in encode_byte_array(field)]
        return await self.submit(session, [self._call('add_store', calldata)])

    async def touch_last_connected(self, session: WriteSession) -> Optional[ExecutionResult]:
        """Record the sign-in on chain. Best effort: failures are logged, never raised."""
        try:
            return await self.submit(session, [self._call('update_last_connected', [])])
        except Exception as e:
            logger.warning(f"Failed to update last connected for {session.wallet_address}: {e}")
            return None
