from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Price(BaseModel):
    """A recorded price, amount in minor currency units."""
    price: str
    timestamp: int

    @field_validator('price')
    @classmethod
    def check_amount(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("price must be a non-negative integer string")
        return value


class Store(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    address: str
    hours: str
    uri: str = Field(alias="URI")
    current_price: Price


class NewStore(BaseModel):
    """Store fields an administrator submits; id and price are assigned on chain."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    address: str
    hours: str = ""
    uri: str = Field("", alias="URI")


class Report(BaseModel):
    store_id: str
    description: str
    submitted_at: int
    submitted_by: str


class PriceDisplay(BaseModel):
    store_id: str
    price_in_cents: int
    timestamp: int
    formatted_price: str
    relative_time: str = ""
    is_old: bool = False


class StoreWithPrice(Store):
    thanks_count: int
    reports: List[Report] = Field(default_factory=list)


class StorePreview(BaseModel):
    store: Store
    price: PriceDisplay


class CurrentPrice(BaseModel):
    store_id: str
    price: Price


class Call(BaseModel):
    """One contract invocation inside an execution request."""
    model_config = ConfigDict(populate_by_name=True)

    contract_address: str = Field(alias="contractAddress")
    entrypoint: str
    calldata: List[str] = Field(default_factory=list)


class ExecutionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(alias="txHash")
    access_token: Optional[str] = Field(None, alias="accessToken")
