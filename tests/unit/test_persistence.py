"""Unit tests for persistence services (conversations and orders)."""
import pytest
from datetime import datetime, timedelta, timezone

from app.core.exceptions import InvalidStatusTransitionError
from app.db.models import utcnow
from app.services.ordering.models import AnalyticsEvent, OrderDraft
from app.services.ordering.pricing import calculate_pricing
from app.services.ordering.status import OrderStatus
from app.services.persistence.conversations import ConversationPersistenceService
from app.services.persistence.orders import OrderPersistenceService


class TestConversationPersistence:
    """Test conversation persistence service."""

    @pytest.mark.asyncio
    async def test_create_session(self, test_db):
        """Test creating a new conversation record."""
        service = ConversationPersistenceService(test_db)

        conversation = await service.create_session("browser-tab-1")

        assert conversation.id is not None
        assert conversation.session_id == "browser-tab-1"
        assert conversation.converted is False
        assert conversation.order_id is None
        assert conversation.started_at is not None
        assert conversation.off_menu_requests == []

    @pytest.mark.asyncio
    async def test_get_conversation(self, test_db):
        """Test retrieving a conversation by ID."""
        service = ConversationPersistenceService(test_db)
        created = await service.create_session()

        retrieved = await service.get_conversation(created.id)

        assert retrieved is not None
        assert retrieved.id == created.id

    @pytest.mark.asyncio
    async def test_get_conversation_missing(self, test_db):
        """Test an unknown ID returns None."""
        service = ConversationPersistenceService(test_db)
        assert await service.get_conversation("no-such-conversation") is None

    @pytest.mark.asyncio
    async def test_merge_analytics_deduplicates(self, test_db):
        """Test merged analytics are stored as deduplicated arrays."""
        service = ConversationPersistenceService(test_db)
        conversation = await service.create_session()

        await service.merge_analytics(
            conversation.id, AnalyticsEvent(off_menu_requests=["Matcha"], upsell_attempts=["Croissant"])
        )
        updated = await service.merge_analytics(
            conversation.id, AnalyticsEvent(off_menu_requests=["matcha", "Chai"])
        )

        assert updated.off_menu_requests == ["chai", "matcha"]
        assert updated.upsell_attempts == ["croissant"]
        assert updated.upsell_successes == []

    @pytest.mark.asyncio
    async def test_merge_analytics_missing_conversation(self, test_db):
        """Test merging into an unknown conversation returns None."""
        service = ConversationPersistenceService(test_db)
        result = await service.merge_analytics("missing", AnalyticsEvent(off_menu_requests=["Matcha"]))
        assert result is None

    @pytest.mark.asyncio
    async def test_mark_converted(self, test_db, latte_draft):
        """Test linking a conversation to its order."""
        conversations = ConversationPersistenceService(test_db)
        orders = OrderPersistenceService(test_db)
        conversation = await conversations.create_session()
        order, _ = await orders.insert_order(
            latte_draft, calculate_pricing(latte_draft.items), conversation_id=conversation.id
        )

        updated = await conversations.mark_converted(conversation.id, order.id)

        assert updated.converted is True
        assert updated.order_id == order.id

    @pytest.mark.asyncio
    async def test_list_sessions_time_range(self, test_db):
        """Test listing conversations filtered by start time."""
        service = ConversationPersistenceService(test_db)
        old = await service.create_session("old")
        old.started_at = utcnow() - timedelta(days=2)
        await test_db.commit()
        await service.create_session("new")

        all_sessions = await service.list_sessions()
        recent = await service.list_sessions(started_from=utcnow() - timedelta(days=1))

        assert [c.session_id for c in all_sessions] == ["new", "old"]
        assert [c.session_id for c in recent] == ["new"]


class TestOrderPersistence:
    """Test order persistence service."""

    @pytest.mark.asyncio
    async def test_insert_order(self, test_db, latte_draft):
        """Test inserting a priced order."""
        service = OrderPersistenceService(test_db)
        pricing = calculate_pricing(latte_draft.items, tax_rate=0.08875)

        order, created = await service.insert_order(latte_draft, pricing)

        assert created is True
        assert order.id is not None
        assert order.order_number >= 1
        assert order.customer_name == "Sam"
        assert order.status == "pending"
        assert order.subtotal == 5.50
        assert order.tax == 0.49
        assert order.total == 5.99
        assert order.items[0]["name"] == "Latte"
        assert order.items[0]["milk"] == "Oat Milk"
        assert order.items[0]["totalPrice"] == 5.50
        assert order.completed_at is None

    @pytest.mark.asyncio
    async def test_order_numbers_increase(self, test_db, latte_draft):
        """Test each order gets a higher ticket number."""
        service = OrderPersistenceService(test_db)
        pricing = calculate_pricing(latte_draft.items)

        first, _ = await service.insert_order(latte_draft, pricing)
        second, _ = await service.insert_order(latte_draft, pricing)

        assert second.order_number > first.order_number
        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_insert_order_once_per_conversation(self, test_db, latte_draft):
        """Test a second insert for the same conversation returns the first order."""
        service = OrderPersistenceService(test_db)
        pricing = calculate_pricing(latte_draft.items)

        first, first_created = await service.insert_order(latte_draft, pricing, conversation_id="conv-1")
        other = OrderDraft(confirmed=True, items=latte_draft.items * 2)
        second, second_created = await service.insert_order(
            other, calculate_pricing(other.items), conversation_id="conv-1"
        )

        assert first_created is True
        assert second_created is False
        assert second.id == first.id
        assert len(await service.list_orders()) == 1

    @pytest.mark.asyncio
    async def test_get_order(self, test_db, latte_draft):
        """Test retrieving an order by ID and by conversation."""
        service = OrderPersistenceService(test_db)
        order, _ = await service.insert_order(
            latte_draft, calculate_pricing(latte_draft.items), conversation_id="conv-2"
        )

        assert (await service.get_order(order.id)).id == order.id
        assert (await service.get_order_by_conversation("conv-2")).id == order.id
        assert await service.get_order("missing") is None

    @pytest.mark.asyncio
    async def test_update_status_forward(self, test_db, latte_draft):
        """Test moving an order through the queue."""
        service = OrderPersistenceService(test_db)
        order, _ = await service.insert_order(latte_draft, calculate_pricing(latte_draft.items))

        order = await service.update_status(order.id, OrderStatus.IN_PROGRESS)
        assert order.status == "in_progress"
        assert order.completed_at is None

        order = await service.update_status(order.id, OrderStatus.COMPLETED)
        assert order.status == "completed"
        assert order.completed_at is not None

    @pytest.mark.asyncio
    async def test_timestamps_are_utc(self, test_db, latte_draft):
        """Test stored timestamps are naive UTC wall-clock times."""
        service = OrderPersistenceService(test_db)
        order, _ = await service.insert_order(latte_draft, calculate_pricing(latte_draft.items))
        order = await service.update_status(order.id, OrderStatus.COMPLETED)

        now = datetime.now(timezone.utc).replace(tzinfo=None)
        for stamp in (order.created_at, order.completed_at):
            assert stamp.tzinfo is None
            assert abs(now - stamp) < timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_cancel_with_reason(self, test_db, latte_draft):
        """Test cancelling stores the reason."""
        service = OrderPersistenceService(test_db)
        order, _ = await service.insert_order(latte_draft, calculate_pricing(latte_draft.items))

        order = await service.update_status(order.id, "cancelled", reason="Out of oat milk")

        assert order.status == "cancelled"
        assert order.cancel_reason == "Out of oat milk"
        assert order.completed_at is not None

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, test_db, latte_draft):
        """Test a completed order cannot be reopened or cancelled."""
        service = OrderPersistenceService(test_db)
        order, _ = await service.insert_order(latte_draft, calculate_pricing(latte_draft.items))
        await service.update_status(order.id, OrderStatus.COMPLETED)

        with pytest.raises(InvalidStatusTransitionError):
            await service.update_status(order.id, OrderStatus.PENDING)
        with pytest.raises(InvalidStatusTransitionError):
            await service.update_status(order.id, OrderStatus.CANCELLED)

        assert (await service.get_order(order.id)).status == "completed"

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, test_db, latte_draft):
        """Test setting the current status again changes nothing."""
        service = OrderPersistenceService(test_db)
        order, _ = await service.insert_order(latte_draft, calculate_pricing(latte_draft.items))

        updated = await service.update_status(order.id, OrderStatus.PENDING)

        assert updated.status == "pending"

    @pytest.mark.asyncio
    async def test_update_status_missing(self, test_db):
        """Test updating an unknown order returns None."""
        service = OrderPersistenceService(test_db)
        assert await service.update_status("missing", OrderStatus.COMPLETED) is None

    @pytest.mark.asyncio
    async def test_list_orders_filters(self, test_db, latte_draft):
        """Test listing orders by status, newest first."""
        service = OrderPersistenceService(test_db)
        pricing = calculate_pricing(latte_draft.items)
        first, _ = await service.insert_order(latte_draft, pricing)
        second, _ = await service.insert_order(latte_draft, pricing)
        await service.update_status(first.id, OrderStatus.COMPLETED)

        all_orders = await service.list_orders()
        pending = await service.list_orders(status=OrderStatus.PENDING)
        completed = await service.list_orders(status="completed")

        assert [o.id for o in all_orders] == [second.id, first.id]
        assert [o.id for o in pending] == [second.id]
        assert [o.id for o in completed] == [first.id]

    @pytest.mark.asyncio
    async def test_list_orders_time_range(self, test_db, latte_draft):
        """Test listing orders created in a time range."""
        service = OrderPersistenceService(test_db)
        pricing = calculate_pricing(latte_draft.items)
        old, _ = await service.insert_order(latte_draft, pricing)
        old.created_at = utcnow() - timedelta(days=3)
        await test_db.commit()
        new, _ = await service.insert_order(latte_draft, pricing)

        recent = await service.list_orders(created_from=utcnow() - timedelta(days=1))
        older = await service.list_orders(created_to=utcnow() - timedelta(days=2))

        assert [o.id for o in recent] == [new.id]
        assert [o.id for o in older] == [old.id]
