"""
JSON-RPC client.

Provides a minimal async JSON-RPC 2.0 client over httpx used to talk to
the L1 execution node and the trusted rollup node.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from dispute_monitor.utils.logging import get_logger

logger = get_logger(__name__)


class RpcError(RuntimeError):
	"""JSON-RPC transport, HTTP or protocol error."""

	def __init__(self, message: str, code: int | None = None) -> None:
		super().__init__(message)
		self.code = code


class JsonRpcClient:
	"""
	Async JSON-RPC 2.0 client.

	Parameters:
		url: Endpoint URL.
		timeout: Per-request timeout in seconds.
		client: Optional preconfigured httpx client (e.g. for tests).
	"""

	def __init__(self, url: str, timeout: float = 10.0,
	             client: httpx.AsyncClient | None = None) -> None:
		self.url = url
		self._client = client or httpx.AsyncClient(timeout=timeout)
		self._ids = itertools.count(1)

	async def call(self, method: str, params: list[Any] | None = None) -> Any:
		"""
		Invoke a JSON-RPC method and return its ``result``.

		Parameters:
			method: RPC method name.
			params: Positional parameters.

		Returns:
			The decoded ``result`` member of the response.

		Raises:
			RpcError: On transport failure, non-2xx status, malformed
				response or a JSON-RPC error object.
		"""
		payload = {
		    "jsonrpc": "2.0",
		    "id": next(self._ids),
		    "method": method,
		    "params": params or [],
		}
		try:
			resp = await self._client.post(self.url, json=payload)
			resp.raise_for_status()
			body = resp.json()
		except httpx.HTTPStatusError as exc:
			raise RpcError(
			    f"{method}: HTTP {exc.response.status_code}") from exc
		except httpx.HTTPError as exc:
			raise RpcError(f"{method}: {exc.__class__.__name__}: {exc}") from exc
		except ValueError as exc:
			raise RpcError(f"{method}: invalid JSON response") from exc

		if not isinstance(body, dict):
			raise RpcError(f"{method}: unexpected response shape")
		error = body.get("error")
		if error:
			code = error.get("code") if isinstance(error, dict) else None
			message = error.get("message") if isinstance(error,
			                                             dict) else str(error)
			raise RpcError(f"{method}: {message}", code=code)
		if "result" not in body:
			raise RpcError(f"{method}: response has no result")
		logger.debug("rpc %s ok", method)
		return body["result"]

	async def close(self) -> None:
		await self._client.aclose()

	async def __aenter__(self) -> JsonRpcClient:
		return self

	async def __aexit__(self, *exc_info: Any) -> None:
		await self.close()


__all__ = ["JsonRpcClient", "RpcError"]
