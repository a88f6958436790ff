"""
Unit tests for decision sinks and the NATS publisher.
"""

import logging
from unittest.mock import AsyncMock, Mock, patch

import pytest

from impact_guard.engine import Decision, FeeTier
from impact_guard.events import DecisionLog, LoggingDecisionSink, NatsDecisionPublisher
from impact_guard.events.nats.client import NatsClient, NatsClientJS
from impact_guard.events.nats.json_helpers import dumps, loads

POOL_A = "0x" + "aa" * 32
POOL_B = "0x" + "bb" * 32


def make_decision(pool_id=POOL_A, tier=FeeTier.BASE, unexplained=10) -> Decision:
    fee = {FeeTier.BASE: 3000, FeeTier.ELEVATED: 10000}.get(tier)
    reason = "unexplained impact too high" if tier is FeeTier.REJECTED else None
    return Decision(
        pool_id=pool_id,
        tier=tier,
        fee=fee,
        impact_bps=unexplained,
        explained_bps=0,
        unexplained_bps=unexplained,
        reference_sqrt_prices=(2**96,),
        reason=reason,
    )


class TestDecisionLog:

    def test_newest_first(self):
        log = DecisionLog()
        first = make_decision(unexplained=1)
        second = make_decision(unexplained=2)
        log.emit(first)
        log.emit(second)
        assert log.recent() == [second, first]

    def test_bounded(self):
        log = DecisionLog(max_entries=3)
        for i in range(5):
            log.emit(make_decision(unexplained=i))
        assert len(log) == 3
        assert [d.unexplained_bps for d in log.recent()] == [4, 3, 2]

    def test_filters(self):
        log = DecisionLog()
        log.emit(make_decision(POOL_A))
        log.emit(make_decision(POOL_B, tier=FeeTier.REJECTED))
        log.emit(make_decision(POOL_A, tier=FeeTier.ELEVATED))

        assert len(log.recent(POOL_A)) == 2
        assert log.recent(limit=1)[0].tier is FeeTier.ELEVATED
        assert [d.pool_id for d in log.rejections()] == [POOL_B]
        assert log.rejections(POOL_A) == []

    def test_sized_from_config(self):
        log = DecisionLog.from_config(Mock(DECISION_LOG_SIZE=2))
        for i in range(3):
            log.emit(make_decision(unexplained=i))

        assert log.max_entries == 2
        assert [d.unexplained_bps for d in log.recent()] == [2, 1]


class TestLoggingDecisionSink:

    def test_allowed_trade_logs_info(self, caplog):
        caplog.set_level(logging.INFO)
        LoggingDecisionSink().emit(make_decision(tier=FeeTier.ELEVATED, unexplained=300))

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert "DynamicFeeApplied" in record.message
        assert "fee=10000" in record.message
        assert "unexplained=300bps" in record.message

    def test_rejection_logs_warning(self, caplog):
        caplog.set_level(logging.INFO)
        LoggingDecisionSink().emit(make_decision(tier=FeeTier.REJECTED, unexplained=1500))

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "CircuitBreakerHit" in record.message
        assert "unexplained=1500bps" in record.message


class TestDecisionSerialization:

    def test_to_dict_is_json_safe(self):
        decision = make_decision(tier=FeeTier.REJECTED)
        data = loads(dumps(decision.to_dict()))

        assert data["tier"] == "rejected"
        assert data["fee"] is None
        assert data["reference_sqrt_prices"] == [str(2**96)]
        assert data["reason"] == "unexplained impact too high"

    def test_override_fee_is_published(self):
        assert make_decision().to_dict()["override_fee"] == 3000 | 0x400000
        assert make_decision(tier=FeeTier.REJECTED).to_dict()["override_fee"] is None


class TestNatsClient:

    @pytest.mark.asyncio
    async def test_publish_without_connection_raises_error(self):
        with pytest.raises(ConnectionError):
            await NatsClient("nats://localhost:4222").apublish("test.subject", {"message": "test"})

    @pytest.mark.asyncio
    async def test_jetstream_publish_without_connection_raises_error(self):
        with pytest.raises(ConnectionError, match="JetStream not initialized"):
            await NatsClientJS("nats://localhost:4222").apublish("test.subject", {"message": "test"})

    def test_client_is_async_only(self):
        client = NatsClientJS()
        assert not client.is_connected
        for name in ("connect", "publish", "close"):
            assert not hasattr(client, name)

    @pytest.mark.asyncio
    async def test_ensure_stream_creates_missing_stream(self):
        client = NatsClientJS()
        client.js = Mock()
        client.js.add_stream = AsyncMock()
        client._stream_subjects = AsyncMock(return_value=None)

        await client.aensure_stream("STREAM", ["a.b"])
        client.js.add_stream.assert_awaited_once_with(name="STREAM", subjects=["a.b"])

    @pytest.mark.asyncio
    async def test_ensure_stream_adds_missing_subjects(self):
        client = NatsClientJS()
        client.js = Mock()
        client.js.add_stream = AsyncMock()
        client.js.update_stream = AsyncMock()
        client._stream_subjects = AsyncMock(return_value=["a.b"])

        await client.aensure_stream("STREAM", ["a.b"])
        client.js.update_stream.assert_not_called()

        await client.aensure_stream("STREAM", ["a.b", "c.d"])
        client.js.update_stream.assert_awaited_once_with(name="STREAM", subjects=["a.b", "c.d"])
        client.js.add_stream.assert_not_called()

    @pytest.mark.asyncio
    async def test_jetstream_publish_encodes_json(self):
        client = NatsClientJS()
        client.js = Mock()
        client.js.publish = AsyncMock()

        await client.apublish("test.subject", {"value": 1})
        client.js.publish.assert_awaited_once_with("test.subject", b'{"value":1}', headers=None)

    @pytest.mark.asyncio
    async def test_jetstream_publish_sets_message_id(self):
        client = NatsClientJS()
        client.js = Mock()
        client.js.publish = AsyncMock()

        await client.apublish("test.subject", {}, msg_id="abc")
        assert client.js.publish.await_args.kwargs["headers"] == {"Nats-Msg-Id": "abc"}


class TestNatsDecisionPublisher:
    """Buffered publishing of decisions."""

    def setup_method(self):
        self.client = Mock()
        self.client.apublish = AsyncMock()
        self.client.aconnect = AsyncMock()
        self.client.aclose = AsyncMock()
        self.client.aensure_stream = AsyncMock()
        self.publisher = NatsDecisionPublisher(
            stream_name="TEST_STREAM",
            fee_subject="test.fees.applied",
            circuit_breaker_subject="test.circuit_breaker.hit",
            client=self.client,
        )

    def test_emit_buffers(self):
        self.publisher.emit(make_decision())
        self.publisher.emit(make_decision())
        assert self.publisher.pending_count == 2
        self.client.apublish.assert_not_called()

    def test_subject_routing(self):
        assert self.publisher.subject_for(make_decision()) == "test.fees.applied"
        assert self.publisher.subject_for(make_decision(tier=FeeTier.ELEVATED)) == "test.fees.applied"
        assert self.publisher.subject_for(make_decision(tier=FeeTier.REJECTED)) == "test.circuit_breaker.hit"

    def test_build_message(self):
        message = self.publisher.build_message(make_decision(tier=FeeTier.REJECTED))
        assert message["type"] == "circuit_breaker_hit"
        assert message["data"]["pool_id"] == POOL_A

        assert self.publisher.build_message(make_decision())["type"] == "dynamic_fee_applied"

    @pytest.mark.asyncio
    async def test_aconnect_registers_stream(self):
        await self.publisher.aconnect()
        self.client.aensure_stream.assert_awaited_once_with(
            "TEST_STREAM", ["test.fees.applied", "test.circuit_breaker.hit"]
        )

    @pytest.mark.asyncio
    async def test_publish_pending(self):
        self.publisher.emit(make_decision())
        self.publisher.emit(make_decision(tier=FeeTier.REJECTED))

        assert await self.publisher.apublish_pending() == 2
        assert self.publisher.pending_count == 0

        subjects = [c.args[0] for c in self.client.apublish.await_args_list]
        assert subjects == ["test.fees.applied", "test.circuit_breaker.hit"]

    @pytest.mark.asyncio
    async def test_failed_publish_requeues(self):
        self.client.apublish.side_effect = [None, RuntimeError("nats down")]
        for i in range(3):
            self.publisher.emit(make_decision(unexplained=i))

        with pytest.raises(RuntimeError):
            await self.publisher.apublish_pending()

        assert self.publisher.pending_count == 2

        self.client.apublish.side_effect = None
        assert await self.publisher.apublish_pending() == 2

    @pytest.mark.asyncio
    async def test_disconnected_client_keeps_buffer(self, caplog):
        self.client.is_connected = False
        self.publisher.emit(make_decision())

        assert await self.publisher.apublish_pending() == 0
        assert self.publisher.pending_count == 1
        self.client.apublish.assert_not_called()
        assert "Not connected to NATS" in caplog.text

    def test_flushing_is_async_only(self):
        assert not hasattr(self.publisher, "publish_pending")

    @pytest.mark.asyncio
    async def test_nothing_pending(self):
        assert await self.publisher.apublish_pending() == 0

    def test_from_config(self):
        config_manager = Mock()
        config_manager.get_nats_publishing_config.return_value = {
            "enabled": True,
            "url": "nats://nats:4222",
            "stream_name": "S",
            "fee_subject": "p.fees.applied",
            "circuit_breaker_subject": "p.circuit_breaker.hit",
        }
        with patch("impact_guard.events.nats.publisher.NatsClientJS") as mock_client:
            publisher = NatsDecisionPublisher.from_config(config_manager)

        mock_client.assert_called_once_with("nats://nats:4222")
        assert publisher.subjects == ["p.fees.applied", "p.circuit_breaker.hit"]


class TestPublisherLifecycle:
    """Connect, flush and close on one event loop through the real clients."""

    @pytest.mark.asyncio
    async def test_connect_flush_close(self):
        js = Mock()
        js.stream_info = AsyncMock(return_value=Mock(config=Mock(subjects=["f.applied", "c.hit"])))
        js.publish = AsyncMock()
        nc = Mock(is_connected=True)
        nc.jetstream.return_value = js
        nc.drain = AsyncMock()

        publisher = NatsDecisionPublisher(
            url="nats://nats:4222",
            stream_name="S",
            fee_subject="f.applied",
            circuit_breaker_subject="c.hit",
        )
        with patch("impact_guard.events.nats.client.nats.connect", AsyncMock(return_value=nc)) as connect:
            await publisher.aconnect()
            publisher.emit(make_decision(tier=FeeTier.REJECTED))

            assert await publisher.apublish_pending() == 1
            await publisher.aclose()

        connect.assert_awaited_once_with(servers=["nats://nats:4222"], name="impact-guard")
        subject, payload = js.publish.await_args.args
        assert subject == "c.hit"
        assert loads(payload.decode())["type"] == "circuit_breaker_hit"
        assert js.publish.await_args.kwargs["headers"]["Nats-Msg-Id"].startswith(POOL_A)
        nc.drain.assert_awaited_once()
        assert not publisher.nats_client.is_connected
