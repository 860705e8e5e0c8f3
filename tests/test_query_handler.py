"""
End-to-end tests for QueryHandler with a mocked HTTP client.
Question string in, ResponseEnvelope out; nothing ever raises past handle_query.
"""
from unittest.mock import patch

import httpx
import pytest

from defiquery.config import load_config
from defiquery.query import NO_POOLS_MESSAGE, QueryHandler, create_query_handler
from defiquery.toolkits.utils import GENERIC_ERROR_MESSAGE


@pytest.fixture
def handler(config, mock_httpx_client):
    return create_query_handler(config=config, client=mock_httpx_client)


class TestScenarios:

    @pytest.mark.asyncio
    async def test_top_pools_on_base(self, handler, mock_httpx_client, response_factory, pools_payload):
        mock_httpx_client.get.return_value = response_factory(200, pools_payload(8))

        envelope = await handler.handle_query("top 5 pools on base")

        assert envelope.success is True
        assert "Top 5 Pools on Base" in envelope.title
        assert len(envelope.data) == 5
        assert envelope.visualization == "table"
        mock_httpx_client.get.assert_awaited_once_with(
            "https://api.geckoterminal.com/api/v2/networks/base/pools", params={"page": 1}, timeout=30.0
        )

    @pytest.mark.asyncio
    async def test_trending_pools_without_network_uses_global_endpoint(self, handler, mock_httpx_client,
                                                                      response_factory, pools_payload):
        mock_httpx_client.get.return_value = response_factory(200, pools_payload(3))

        envelope = await handler.handle_query("trending pools")

        assert handler.classifier.classify("trending pools").network == "base"
        assert envelope.success is True
        assert envelope.title == "Trending Pools"
        mock_httpx_client.get.assert_awaited_once_with(
            "https://api.geckoterminal.com/api/v2/networks/trending_pools", params={}, timeout=30.0
        )

    @pytest.mark.asyncio
    async def test_unknown_token_fails_without_network_call(self, handler, mock_httpx_client):
        envelope = await handler.handle_query("price of weth")

        assert envelope.success is False
        assert "not recognized" in envelope.message
        assert envelope.data is None
        mock_httpx_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_rate_limit(self, handler, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(429, {"status": "429", "title": "Too Many Requests"})

        envelope = await handler.handle_query("top pools on base")

        assert envelope.success is False
        assert "Rate limit exceeded" in envelope.message
        assert "429" not in envelope.message
        assert "Too Many Requests" not in envelope.message
        assert envelope.error.error_type == "RateLimitedError"

    @pytest.mark.asyncio
    async def test_empty_pool_list(self, handler, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(200, {"data": []})

        envelope = await handler.handle_query("new pools on base")

        assert envelope.success is False
        assert envelope.message == NO_POOLS_MESSAGE
        assert envelope.data is None
        assert "data" not in envelope.to_dict()


class TestHandlerBehavior:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   ", None])
    async def test_blank_question(self, handler, mock_httpx_client, question):
        envelope = await handler.handle_query(question)

        assert envelope.success is False
        assert envelope.message == "Please enter a question."
        mock_httpx_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_question_too_long(self, handler, mock_httpx_client):
        envelope = await handler.handle_query("top pools " * 100)

        assert envelope.success is False
        assert "too long" in envelope.message
        mock_httpx_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unrecognized_question(self, handler, mock_httpx_client):
        envelope = await handler.handle_query("tell me a joke")

        assert envelope.success is False
        assert envelope.message.startswith("I couldn't understand that query.")
        mock_httpx_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, handler, mock_httpx_client):
        mock_httpx_client.get.side_effect = RuntimeError("internal stack detail")

        with patch("defiquery.query.handler.logger") as mock_logger:
            envelope = await handler.handle_query("top pools on base")

        assert envelope.success is False
        assert envelope.message == GENERIC_ERROR_MESSAGE
        assert "internal stack detail" not in envelope.message
        mock_logger.opt.return_value.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_domain_errors_logged_as_warning(self, handler):
        with patch("defiquery.query.handler.logger") as mock_logger:
            await handler.handle_query("pools trading pepe")

        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_repeated_question_served_from_cache(self, handler, mock_httpx_client,
                                                       response_factory, pools_payload):
        mock_httpx_client.get.return_value = response_factory(200, pools_payload(4))

        first = await handler.handle_query("top pools on base")
        second = await handler.handle_query("Top pools on Base  ")

        assert first.to_dict() == second.to_dict()
        assert mock_httpx_client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_pool_details_end_to_end(self, handler, mock_httpx_client, response_factory, pools_payload):
        pool = pools_payload(1)["data"][0]
        address = pool["attributes"]["address"]
        mock_httpx_client.get.return_value = response_factory(200, {"data": pool})

        envelope = await handler.handle_query(f"liquidity in pool {address}")

        assert envelope.success is True
        assert envelope.visualization == "card"
        assert envelope.highlight_field == "liquidity"
        assert envelope.data["dex"] == "aerodrome-base"
        mock_httpx_client.get.assert_awaited_once_with(
            f"https://api.geckoterminal.com/api/v2/networks/base/pools/{address}", params={}, timeout=30.0
        )

    @pytest.mark.asyncio
    async def test_chart_end_to_end(self, handler, mock_httpx_client, response_factory):
        address = "0x" + "ef" * 20
        mock_httpx_client.get.return_value = response_factory(
            200, {"data": {"id": "x", "type": "ohlcv", "attributes": {"ohlcv_list": [[1, 2, 3, 1, 2, 10]]}}}
        )

        envelope = await handler.handle_query(f"chart for {address} on ethereum")

        assert envelope.visualization == "chart"
        assert envelope.data["network"] == "ethereum"
        mock_httpx_client.get.assert_awaited_once_with(
            f"https://api.geckoterminal.com/api/v2/networks/eth/pools/{address}/ohlcv/hour",
            params={"aggregate": 1, "limit": 168, "currency": "usd"},
            timeout=30.0,
        )

    @pytest.mark.asyncio
    async def test_context_manager_leaves_injected_client_open(self, config, mock_httpx_client):
        async with create_query_handler(config=config, client=mock_httpx_client) as handler:
            assert isinstance(handler, QueryHandler)

        mock_httpx_client.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_real_injected_client_answers_with_configured_timeout(self, pools_payload):
        config = load_config(overrides={
            "transport": {"timeout_seconds": 3, "rate_limit": {"min_interval_seconds": 0}},
        })
        seen = []

        def respond(request):
            seen.append(request)
            return httpx.Response(200, json=pools_payload(3))

        client = httpx.AsyncClient(transport=httpx.MockTransport(respond))
        async with create_query_handler(config=config, client=client) as handler:
            envelope = await handler.handle_query("top pools on base")
        await client.aclose()

        assert envelope.success is True
        assert len(envelope.data) == 3
        assert str(seen[0].url) == "https://api.geckoterminal.com/api/v2/networks/base/pools?page=1"
        assert seen[0].extensions["timeout"]["read"] == 3.0
