from __future__ import annotations

"""Query Handler
===============

Pipeline entry point: question string in, ``ResponseEnvelope`` out.

    question → QueryClassifier → TypedQuery → QueryRouter → GeckoTerminalToolkit
             → CachedTransport → raw result → ResponseFormatter → ResponseEnvelope

``handle_query`` never raises. Every failure, whether an invalid question, an
unresolvable token, an upstream error or a bug, comes back as a
``success=False`` envelope with a short message.
"""

from typing import Optional

import httpx
from loguru import logger

from defiquery.config import DefiQueryConfig, load_config
from defiquery.exceptions import DefiQueryError, InvalidQuestionError
from defiquery.toolkits.data import GeckoTerminalToolkit
from defiquery.toolkits.utils import CachedTransport, ResponseBuilder
from defiquery.types import ResponseEnvelope
from .classifier import QueryClassifier
from .formatter import ResponseFormatter
from .router import QueryRouter

__all__ = ["QueryHandler", "create_query_handler"]


class QueryHandler:
    """Runs classify → route → format for one question at a time.

    Example:
        ```python
        async with create_query_handler() as handler:
            envelope = await handler.handle_query("top 5 pools on base")
            print(envelope.title, envelope.summary)
        ```
    """

    def __init__(
        self,
        classifier: QueryClassifier,
        router: QueryRouter,
        formatter: ResponseFormatter,
        transport: Optional[CachedTransport] = None,
        max_question_length: int = 500,
        builder: Optional[ResponseBuilder] = None,
    ):
        self.classifier = classifier
        self.router = router
        self.formatter = formatter
        self.transport = transport
        self.max_question_length = max_question_length
        self._builder = builder or ResponseBuilder()

    def _validate_question(self, question: Optional[str]) -> str:
        if not isinstance(question, str) or not question.strip():
            raise InvalidQuestionError("Please enter a question.")
        question = question.strip()
        if len(question) > self.max_question_length:
            raise InvalidQuestionError(
                f"Question is too long. Keep it under {self.max_question_length} characters.",
                context={"length": len(question), "max_length": self.max_question_length},
            )
        return question

    async def handle_query(self, question: str) -> ResponseEnvelope:
        """Answer ``question`` with an envelope; never raises.

        Args:
            question: Free-text question from the chat layer

        Returns:
            ResponseEnvelope, ``success=False`` on any failure
        """
        try:
            question = self._validate_question(question)
            query = self.classifier.classify(question)
            result = await self.router.route(query)
            return self.formatter.format(result, query)
        except DefiQueryError as e:
            logger.warning(f"Query {question!r} failed: [{e.error_code}] {e.message}")
            return self._builder.exception_response(e)
        except Exception as e:
            logger.opt(exception=e).error(f"Unexpected error handling query {question!r}: {e}")
            return self._builder.exception_response(e)

    async def aclose(self) -> None:
        if self.transport is not None:
            await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def create_query_handler(
    config: Optional[DefiQueryConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> QueryHandler:
    """Wire the full pipeline around a single transport instance.

    Args:
        config: Pipeline configuration, ``load_config()`` defaults when omitted
        client: Optional pre-built httpx client (tests inject a mock transport here)

    Returns:
        Ready-to-use QueryHandler
    """
    config = config or load_config()

    transport = CachedTransport.from_config(config.transport, client=client)
    toolkit = GeckoTerminalToolkit(transport)

    handler = QueryHandler(
        classifier=QueryClassifier.from_config(config),
        router=QueryRouter.from_config(toolkit, config),
        formatter=ResponseFormatter(
            networks=config.networks,
            digest_size=config.query.digest_size,
            chart_limit=config.query.chart_limit,
        ),
        transport=transport,
        max_question_length=config.query.max_question_length,
    )
    logger.info(f"Query handler ready (upstream={transport.base_url}, default_network={config.query.default_network})")
    return handler
