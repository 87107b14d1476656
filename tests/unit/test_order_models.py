"""Unit tests for order line option rules."""
from app.services.ordering.models import (
    DEFAULT_ICE_LEVEL,
    DEFAULT_MILK,
    DEFAULT_SWEETNESS,
    OrderDraft,
)


def _line(**fields):
    draft = OrderDraft.model_validate({"order_confirmed": True, "items": [fields]})
    return draft.items[0]


class TestOrderLineOptions:
    """Test milk, ice and sweetness defaults per item kind."""

    def test_pastry_has_no_options(self):
        """Test a pastry line carries no milk, ice or sweetness."""
        line = _line(name="Plain Croissant", basePrice=3.50)

        assert line.is_drink is False
        assert line.milk is None
        assert line.ice_level is None
        assert line.sweetness is None

    def test_pastry_options_are_dropped(self):
        """Test options reported for a pastry are cleared."""
        line = _line(name="Banana Bread", basePrice=3.00, milk="Oat Milk", sweetness="Extra Sugar")

        assert line.milk is None
        assert line.sweetness is None

    def test_hot_drink_has_no_ice_level(self):
        """Test a hot drink gets milk and sweetness defaults but no ice level."""
        line = _line(name="Latte", size="Small", temperature="Hot", basePrice=4.00)

        assert line.milk == DEFAULT_MILK
        assert line.sweetness == DEFAULT_SWEETNESS
        assert line.ice_level is None

    def test_hot_drink_ice_level_is_cleared(self):
        """Test an ice level reported for a hot drink is dropped."""
        line = _line(name="Latte", size="Small", temperature="hot", iceLevel="Less Ice", basePrice=4.00)

        assert line.ice_level is None

    def test_iced_drink_defaults(self):
        """Test an iced drink defaults to regular ice."""
        line = _line(name="Cold Brew", size="Large", temperature="Iced", basePrice=5.00)

        assert line.ice_level == DEFAULT_ICE_LEVEL
        assert line.milk == DEFAULT_MILK

    def test_iced_drink_keeps_choices(self):
        """Test explicit choices on an iced drink are kept."""
        line = _line(
            name="Latte", size="Large", temperature="Iced",
            milk="Oat Milk", iceLevel="Less Ice", sweetness="No Sugar", basePrice=5.00,
        )

        assert (line.milk, line.ice_level, line.sweetness) == ("Oat Milk", "Less Ice", "No Sugar")

    def test_stored_items_of_mixed_order(self):
        """Test the stored line dicts keep unset options as null."""
        draft = OrderDraft.model_validate({
            "order_confirmed": True,
            "items": [
                {"name": "Latte", "size": "Small", "temperature": "Hot", "basePrice": 4.0},
                {"name": "Plain Croissant", "basePrice": 3.5},
            ],
        })

        latte, croissant = [item.model_dump(by_alias=True) for item in draft.items]
        assert latte["iceLevel"] is None
        assert latte["milk"] == DEFAULT_MILK
        assert croissant["milk"] is None
        assert croissant["sweetness"] is None
