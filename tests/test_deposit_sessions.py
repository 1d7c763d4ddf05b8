"""Tests for the deposit session store"""

from decimal import Decimal

from cart_service.database.deposit_sessions import DepositSessionDatabase, generate_session_id
from cart_service.models.checkout import DepositSession, DepositSessionItem
from tests.fakes import FakeClock


def _session(sessions, session_id="deposit_1"):
    return DepositSession(
        session_id=session_id,
        items=[DepositSessionItem(variant_id="gid://shopify/ProductVariant/1", quantity=1)],
        total_amount=Decimal("550.00"),
        deposit_amount=Decimal("165.00"),
        remaining_amount=Decimal("385.00"),
        draft_order_id="gid://shopify/DraftOrder/1",
        created_at=sessions.clock(),
        expires_at=sessions.expiry_from_now(),
    )


class TestDepositSessionDatabase:
    def test_session_id_format(self):
        session_id = generate_session_id(lambda: 1700000000000)
        prefix, ms, suffix = session_id.split("_")
        assert (prefix, ms, len(suffix)) == ("deposit", "1700000000000", 12)

    def test_create_and_get(self):
        sessions = DepositSessionDatabase(clock=FakeClock())
        sessions.create_session(_session(sessions))

        stored = sessions.get_session("deposit_1")

        assert stored.deposit_amount == Decimal("165.00")
        assert sessions.get_session("deposit_missing") is None

    def test_expired_session_dropped(self):
        clock = FakeClock()
        sessions = DepositSessionDatabase(ttl_seconds=60, clock=clock)
        sessions.create_session(_session(sessions))

        clock.advance(60_001)

        assert sessions.get_session("deposit_1") is None
        assert "deposit_1" not in sessions.sessions

    def test_create_sweeps_expired_sessions(self):
        clock = FakeClock()
        sessions = DepositSessionDatabase(ttl_seconds=60, clock=clock)
        sessions.create_session(_session(sessions, "deposit_old"))

        clock.advance(60_001)
        sessions.create_session(_session(sessions, "deposit_new"))

        assert set(sessions.sessions) == {"deposit_new"}

    def test_returned_session_is_a_copy(self):
        sessions = DepositSessionDatabase(clock=FakeClock())
        sessions.create_session(_session(sessions))

        sessions.get_session("deposit_1").items.clear()

        assert len(sessions.get_session("deposit_1").items) == 1
