from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Request bodies use the storefront client's camelCase names. Quantity and the
# variation payload stay untyped so lenient parsing happens in the service.


def _as_text(value):
    # clients send numeric ids and positional variation keys as JSON numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class AddItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    product_id: Optional[str] = Field(None, alias="productId")
    vendor_id: Optional[str] = Field(None, alias="vendorId")
    vendor_slug: Optional[str] = Field(None, alias="vendorSlug")
    registry_id: Optional[str] = Field(None, alias="registryId")
    registry_item_id: Optional[str] = Field(None, alias="registryItemId")
    quantity: Any = 1
    variation_key: Optional[str] = Field(None, alias="variationKey")
    variation: Any = None
    guest_browser_id: Optional[str] = Field(None, alias="guestBrowserId")

    @field_validator(
        "product_id", "vendor_id", "registry_id", "registry_item_id", "variation_key", "guest_browser_id",
        mode="before",
    )
    @classmethod
    def _coerce_ids(cls, v):
        return _as_text(v)


class UpdateItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    cart_item_id: Optional[str] = Field(None, alias="cartItemId")
    quantity: Any = 1
    wrapping: Any = None
    gift_wrap_option_id: Optional[str] = Field(None, alias="giftWrapOptionId")

    @field_validator("cart_item_id", "gift_wrap_option_id", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _as_text(v)

    @property
    def gift_wrap_provided(self) -> bool:
        return "gift_wrap_option_id" in self.model_fields_set


class DeleteItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    cart_item_id: Optional[str] = Field(None, alias="cartItemId")
    cart_id: Optional[str] = Field(None, alias="cartId")

    @field_validator("cart_item_id", "cart_id", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _as_text(v)
