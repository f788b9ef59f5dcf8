"""Unit tests for the httpx ledger/exchange clients."""

import json

import httpx
import pytest

from swapbot.client.exchange import HttpExchangeClient
from swapbot.client.interface import PairInfo
from swapbot.client.ledger import HttpLedgerClient
from swapbot.execution.errors import ApplicationRejected, RemoteCallFailed


class Recorder:
    def __init__(self, replies):
        self.replies = replies
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.requests.append((method, body, request.headers.get("X-Caller")))
        reply = self.replies[method]
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, Exception):
            raise reply
        return httpx.Response(200, json=reply)


async def _exchange(replies):
    recorder = Recorder(replies)
    client = HttpExchangeClient("http://exchange.test", caller="me", transport=httpx.MockTransport(recorder))
    await client.start()
    return client, recorder


class TestExchangeClient:
    @pytest.mark.asyncio
    async def test_swap_exact_in_sends_string_amounts(self):
        """Test swap arguments travel as strings."""
        client, recorder = await _exchange({"swapExactTokensForTokens": {"ok": "495"}})
        try:
            settled = await client.swap_exact_in(
                amount_in=2**100, min_out=495, path=["a", "b"], to="me", deadline=1700000030
            )
        finally:
            await client.stop()

        assert settled == 495
        method, body, caller = recorder.requests[0]
        assert method == "swapExactTokensForTokens"
        assert body == {
            "amountIn": str(2**100),
            "amountOutMin": "495",
            "path": ["a", "b"],
            "to": "me",
            "deadline": "1700000030",
        }
        assert caller == "me"

    @pytest.mark.asyncio
    async def test_get_pair(self):
        """Test pair decoding."""
        pair = {"token0": "a", "token1": "b", "reserve0": "10", "reserve1": "20"}
        client, _ = await _exchange({"getPair": {"ok": pair}})
        try:
            assert await client.get_pair("a", "b") == PairInfo("a", "b", 10, 20)
        finally:
            await client.stop()

    @pytest.mark.asyncio
    async def test_missing_pair_is_none(self):
        """Test a missing pair decodes to None."""
        client, _ = await _exchange({"getPair": {"ok": None}})
        try:
            assert await client.get_pair("a", "b") is None
        finally:
            await client.stop()

    @pytest.mark.asyncio
    async def test_garbled_pair_is_remote_failure(self):
        """Test a garbled pair raises RemoteCallFailed."""
        client, _ = await _exchange({"getPair": {"ok": {"token0": "a"}}})
        try:
            with pytest.raises(RemoteCallFailed):
                await client.get_pair("a", "b")
        finally:
            await client.stop()

    @pytest.mark.asyncio
    async def test_err_reply_is_application_rejection(self):
        """Test err replies raise ApplicationRejected."""
        client, _ = await _exchange({"swapTokensForExactTokens": {"err": "slippage exceeded"}})
        try:
            with pytest.raises(ApplicationRejected) as info:
                await client.swap_exact_out(amount_out=1, max_in=2, path=["a", "b"], to="me", deadline=1)
        finally:
            await client.stop()
        assert info.value.reason == "slippage exceeded"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            httpx.Response(503, text="unavailable"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json=["ok"]),
            httpx.ConnectError("refused"),
        ],
    )
    async def test_transport_problems_are_remote_failures(self, reply):
        """Test transport problems raise RemoteCallFailed."""
        client, _ = await _exchange({"deposit": reply})
        try:
            with pytest.raises(RemoteCallFailed):
                await client.deposit("a", 1)
        finally:
            await client.stop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["abc", None, "1.5", {"value": "1"}])
    async def test_garbled_amount_is_remote_failure(self, amount):
        """Test a garbled amount raises RemoteCallFailed."""
        client, _ = await _exchange({"swapExactTokensForTokens": {"ok": amount}})
        try:
            with pytest.raises(RemoteCallFailed) as info:
                await client.swap_exact_in(amount_in=1, min_out=1, path=["a", "b"], to="me", deadline=1)
        finally:
            await client.stop()
        assert info.value.method == "swapExactTokensForTokens"

    @pytest.mark.asyncio
    async def test_call_before_start(self):
        """Test calls before start fail."""
        client = HttpExchangeClient("http://exchange.test", caller="me")
        with pytest.raises(RuntimeError):
            await client.balance_of("a", "me")


class TestLedgerClient:
    @pytest.mark.asyncio
    async def test_decimals_cached_and_methods_mapped(self):
        """Test decimals caching and method names."""
        recorder = Recorder(
            {
                "decimals": {"ok": 8},
                "approve": {"ok": "1"},
                "transferFrom": {"ok": "2"},
                "balanceOf": {"ok": "123456789012345678901234567890"},
            }
        )
        client = HttpLedgerClient(
            "http://ledger.test", token="xtc", caller="me", transport=httpx.MockTransport(recorder)
        )
        await client.start()
        try:
            assert await client.decimals() == 8
            assert await client.decimals() == 8
            assert await client.approve("exchange", 5) == 1
            assert await client.transfer_from("owner", "to", 6) == 2
            assert await client.balance_of("me") == 123456789012345678901234567890
        finally:
            await client.stop()

        methods = [m for m, _, _ in recorder.requests]
        assert methods == ["decimals", "approve", "transferFrom", "balanceOf"]
        assert recorder.requests[1][1] == {"spender": "exchange", "value": "5"}
        assert recorder.requests[2][1] == {"from": "owner", "to": "to", "value": "6"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [{"ok": 300}, {"ok": None}, {"ok": "eight"}, {"ok": True}])
    async def test_invalid_decimals(self, reply):
        """Test invalid decimals raise RemoteCallFailed."""
        recorder = Recorder({"decimals": reply})
        client = HttpLedgerClient(
            "http://ledger.test", token="xtc", caller="me", transport=httpx.MockTransport(recorder)
        )
        await client.start()
        try:
            with pytest.raises(RemoteCallFailed):
                await client.decimals()
        finally:
            await client.stop()
