"""Read-only calls against the price contract."""
import asyncio
import logging
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from config import settings_conf
from rpc import get_client

from .codec import decode_bool, decode_string, decode_wide, encode_felt, get_selector_from_name
from .display import price_to_display
from .models import CurrentPrice, Price, PriceDisplay, Report, Store, StorePreview, StoreWithPrice
from .wire import DecodeError, FeltReader, as_reader

logger = logging.getLogger(__name__)

# A (store id, Price) pair is four felts: id, price low, price high, timestamp
CURRENT_PRICE_FELTS = 4


class ContractCaller(Protocol):
    def call_contract(
        self,
        contract_address: str,
        entry_point_selector: str,
        calldata: Optional[List[str]] = None
    ) -> List[str]:
        ...


def read_price(reader: FeltReader) -> Price:
    amount = decode_wide(reader.read_u256())
    return Price(price=str(amount), timestamp=reader.read_felt())


def read_store(reader: FeltReader) -> Store:
    return Store(
        id=str(reader.read_felt()),
        name=decode_string(reader.read_byte_array()),
        address=decode_string(reader.read_byte_array()),
        hours=decode_string(reader.read_byte_array()),
        uri=decode_string(reader.read_byte_array()),
        current_price=read_price(reader)
    )


def read_report(reader: FeltReader) -> Report:
    return Report(
        store_id=str(reader.read_felt()),
        description=decode_string(reader.read_byte_array()),
        submitted_at=reader.read_felt(),
        submitted_by=hex(reader.read_felt())
    )


def read_current_price(felts: Sequence[Any]) -> CurrentPrice:
    reader = FeltReader(felts)
    return CurrentPrice(store_id=str(reader.read_felt()), price=read_price(reader))


class ContractReader:
    """Typed read access to the price contract on one network."""

    def __init__(
        self,
        network: Optional[str] = None,
        contract_address: Optional[str] = None,
        client: Optional[ContractCaller] = None
    ):
        self.network = network or settings_conf['network']
        self.contract_address = contract_address or settings_conf['contract_address']
        self.client = client or get_client(self.network)

    async def _call(self, entrypoint: str, calldata: Optional[List[str]] = None) -> FeltReader:
        logger.debug(f"Calling {entrypoint} on {self.network} with {calldata}")
        felts = await asyncio.to_thread(
            self.client.call_contract,
            self.contract_address,
            get_selector_from_name(entrypoint),
            calldata or []
        )
        return as_reader(felts)

    async def list_stores(self) -> List[Store]:
        """All stores with their embedded current price."""
        reader = await self._call('get_all_stores')
        count = reader.read_felt()
        stores = []
        for index in range(count):
            try:
                stores.append(read_store(reader))
            except DecodeError as e:
                # Store records are variable width; nothing after a bad one can be located
                logger.warning(
                    f"Stopped decoding stores at item {index} of {count}: {e}"
                )
                break
        return stores

    async def list_current_prices(self) -> List[CurrentPrice]:
        """Current price of every store in one call, skipping malformed items."""
        reader = await self._call('get_all_current_prices')
        count = reader.read_felt()
        prices = []
        for index in range(count):
            try:
                item = reader.take(CURRENT_PRICE_FELTS)
            except DecodeError as e:
                logger.warning(f"Price list truncated at item {index} of {count}: {e}")
                break
            try:
                prices.append(read_current_price(item))
            except (DecodeError, ValueError) as e:
                logger.warning(f"Skipping malformed price item {index}: {item!r} ({e})")
        logger.info(f"Decoded {len(prices)} of {count} current prices")
        return prices

    async def get_store(self, store_id: str) -> Store:
        reader = await self._call('get_store', [encode_felt(store_id)])
        return read_store(reader)

    async def get_price_history(self, store_id: str) -> List[Price]:
        reader = await self._call('get_price_history', [encode_felt(store_id)])
        return reader.read_array(read_price)

    async def get_thanks_count(self, store_id: str) -> int:
        reader = await self._call('get_thanks_count', [encode_felt(store_id)])
        return decode_wide(reader.read_plain())

    async def get_reports(self, store_id: str) -> List[Report]:
        reader = await self._call('get_reports', [encode_felt(store_id)])
        return reader.read_array(read_report)

    async def has_user_thanked(self, store_id: str, wallet_address: str) -> bool:
        reader = await self._call(
            'has_user_thanked',
            [encode_felt(store_id), encode_felt(wallet_address)]
        )
        return decode_bool(reader.read_plain())

    async def is_admin(self, wallet_address: str) -> bool:
        """Whether the wallet administers the contract; any failure means no."""
        try:
            reader = await self._call('is_admin', [encode_felt(wallet_address)])
            return decode_bool(reader.read_plain())
        except Exception as e:
            logger.error(f"Error checking admin status for {wallet_address}: {e}")
            return False

    async def get_store_with_price(self, store_id: str) -> StoreWithPrice:
        store, thanks_count, reports = await asyncio.gather(
            self.get_store(store_id),
            self.get_thanks_count(store_id),
            self.get_reports(store_id)
        )
        return StoreWithPrice(
            **store.model_dump(),
            thanks_count=thanks_count,
            reports=reports
        )

    async def list_stores_with_prices(self) -> List[StoreWithPrice]:
        stores = await self.list_stores()
        return list(await asyncio.gather(
            *(self.get_store_with_price(store.id) for store in stores)
        ))

    async def list_stores_with_current_prices(self) -> List[Tuple[Store, PriceDisplay]]:
        stores = await self.list_stores()
        return [(store, price_to_display(store.current_price, store.id)) for store in stores]

    async def get_preview_stores(self, limit: int = 2) -> List[StorePreview]:
        """The cheapest stores for the public landing page. Never raises."""
        try:
            try:
                current_prices = await self.list_current_prices()
                priced = sorted(
                    (item for item in current_prices if item.price.price not in ('', '0')),
                    key=lambda item: int(item.price.price)
                )[:limit]
                if priced:
                    stores = {store.id: store for store in await self.list_stores()}
                    return [
                        StorePreview(
                            store=stores[item.store_id],
                            price=price_to_display(item.price, item.store_id)
                        )
                        for item in priced
                        if item.store_id in stores
                    ]
            except Exception as e:
                logger.warning(f"Could not get current prices for preview, using store list: {e}")

            pairs = await self.list_stores_with_current_prices()
            return [StorePreview(store=store, price=display) for store, display in pairs[:limit]]
        except Exception as e:
            logger.error(f"Error getting preview stores: {e}")
            return []
