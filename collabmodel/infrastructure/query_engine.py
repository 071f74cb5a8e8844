import logging
from typing import Any, Dict, Protocol

import httpx

from collabmodel.core.config import Settings
from collabmodel.core.errors import QueryEngineError

logger = logging.getLogger(__name__)


class QueryEngine(Protocol):
    """Внешний движок проверки моделей"""

    async def run(self, request: Dict[str, Any]) -> Any:
        ...


class HttpQueryEngine:
    """Отправка запроса движку по HTTP, результат берется из поля result ответа"""

    def __init__(self, settings: Settings):
        self.url = settings.query_engine_url.rstrip("/") + "/queries"
        self.timeout = httpx.Timeout(settings.query_engine_timeout_seconds)

    async def run(self, request: Dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=request)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("Query engine timed out for query %s", request.get("query_id"))
            raise QueryEngineError("Query engine timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("Query engine request failed: %s", exc)
            raise QueryEngineError(f"Query engine request failed: {exc}") from exc
        except ValueError as exc:
            raise QueryEngineError("Query engine returned a malformed response") from exc

        if not isinstance(payload, dict):
            raise QueryEngineError("Query engine returned a malformed response")
        return payload.get("result")
