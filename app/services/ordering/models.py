"""Order, cart and analytics models exchanged with the cashier model."""
import logging
from typing import List, Literal, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_MILK = "Whole Milk"
DEFAULT_ICE_LEVEL = "Regular"
DEFAULT_SWEETNESS = "Regular"


class CartItem(BaseModel):
    """Line in a live cart snapshot."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    size: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(ge=0)
    notes: Optional[str] = None


class OrderLine(BaseModel):
    """Drink or pastry line in a confirmed order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    size: Optional[Literal["Small", "Large"]] = None
    temperature: Optional[Literal["Hot", "Iced"]] = None
    milk: Optional[str] = None
    ice_level: Optional[str] = None
    sweetness: Optional[str] = None
    modifications: List[str] = []
    base_price: float = Field(default=0.0, ge=0)
    modifications_price: float = Field(default=0.0, ge=0)
    total_price: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1)

    @field_validator("size", "temperature", mode="before")
    @classmethod
    def _title_case_option(cls, value):
        # Accept "small", " ICED " etc.
        if isinstance(value, str):
            value = value.strip()
            return value.title() if value else None
        return value

    @field_validator("milk", "ice_level", "sweetness", mode="before")
    @classmethod
    def _none_when_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("modifications", mode="before")
    @classmethod
    def _unique_modifications(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        seen = []
        for mod in value:
            mod = str(mod).strip()
            if mod and mod not in seen:
                seen.append(mod)
        return seen

    @property
    def is_drink(self) -> bool:
        """Drinks come in a size or temperature; pastries have neither."""
        return self.size is not None or self.temperature is not None

    @model_validator(mode="after")
    def _apply_option_rules(self) -> "OrderLine":
        if not self.is_drink:
            # Pastries take no customisation
            self.milk = self.ice_level = self.sweetness = None
            return self
        if self.milk is None:
            self.milk = DEFAULT_MILK
        if self.sweetness is None:
            self.sweetness = DEFAULT_SWEETNESS
        if self.temperature == "Hot":
            self.ice_level = None
        elif self.temperature == "Iced" and self.ice_level is None:
            self.ice_level = DEFAULT_ICE_LEVEL
        return self

    @model_validator(mode="after")
    def _canonical_total(self) -> "OrderLine":
        expected = round(self.base_price + self.modifications_price, 2)
        if self.total_price is None:
            self.total_price = expected
        elif abs(self.total_price - expected) >= 0.005:
            logger.warning(
                f"[ORDER LINE] totalPrice {self.total_price} for '{self.name}' does not match "
                f"basePrice + modificationsPrice = {expected}; using {expected}"
            )
            self.total_price = expected
        return self


class OrderDraft(BaseModel):
    """Order confirmation produced by the cashier model."""

    confirmed: bool = Field(
        default=False,
        strict=True,
        validation_alias=AliasChoices("order_confirmed", "orderConfirmed", "confirmed"),
    )
    customer_name: str = Field(
        default="Guest",
        validation_alias=AliasChoices("customer_name", "customerName"),
    )
    items: List[OrderLine]

    @field_validator("customer_name", mode="before")
    @classmethod
    def _guest_when_blank(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Guest"
        return value.strip() if isinstance(value, str) else value


class AnalyticsEvent(BaseModel):
    """Analytics names reported by one cashier turn."""

    off_menu_requests: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("off_menu_requests", "offMenuRequests"),
    )
    upsell_attempts: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("upsell_attempts", "upsell_attempted", "upsellAttempts"),
    )
    upsell_successes: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("upsell_successes", "upsell_accepted", "upsellSuccesses"),
    )

    @field_validator("off_menu_requests", "upsell_attempts", "upsell_successes", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    def is_empty(self) -> bool:
        """Whether the event names no items at all."""
        return not (self.off_menu_requests or self.upsell_attempts or self.upsell_successes)


class AnalyticsState(BaseModel):
    """Cumulative analytics for one conversation."""

    off_menu_requests: Set[str] = set()
    upsell_attempts: Set[str] = set()
    upsell_successes: Set[str] = set()

    def as_lists(self) -> dict:
        """Sorted lists for JSON columns and API responses."""
        return {
            "off_menu_requests": sorted(self.off_menu_requests),
            "upsell_attempts": sorted(self.upsell_attempts),
            "upsell_successes": sorted(self.upsell_successes),
        }
