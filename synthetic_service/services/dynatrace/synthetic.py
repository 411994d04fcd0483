"""
Dynatrace Synthetic API 客户端

只封装按需执行 monitor 的接口：
POST {DT_TENANT}/api/v2/synthetic/monitors/execute
"""
from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from synthetic_service.services.dynatrace.errors import (
    DynatraceAPIError,
    DynatraceConfigError,
    DynatraceResponseError,
)
from synthetic_service.services.dynatrace.models import (
    MonitorExecutionRequest,
    MonitorExecutionResponse,
)

logger = logging.getLogger(__name__)


def mask_token(token: str) -> str:
    # 打码显示（前4后4）
    return f"{token[:4]}...{token[-4:]}" if len(token) > 8 else "***"


class SyntheticApiClient:
    """
    Dynatrace Synthetic API 客户端

    负责：
    - 解析租户地址并拼接 execute 接口路径（保留租户地址自带的路径前缀，如 /e/<env-id>）
    - 注入 Api-Token 认证头
    - 请求/响应日志与错误分类

    httpx.AsyncClient 由调用方传入（超时等配置也由调用方决定），这里不负责关闭。
    """

    EXECUTE_PATH = "/api/v2/synthetic/monitors/execute"

    def __init__(self, *, http_client: httpx.AsyncClient, tenant: str, api_token: str) -> None:
        self._client = http_client
        self._tenant = tenant
        self._api_token = api_token

    def execute_url(self) -> httpx.URL:
        """
        由 DT_TENANT 得到 execute 接口的完整地址；地址不可用时抛 DynatraceConfigError。
        """
        raw = (self._tenant or "").strip()
        try:
            base = httpx.URL(raw)
        except httpx.InvalidURL as exc:
            raise DynatraceConfigError(f"Failed to parse DT_TENANT {raw!r}: {exc}") from exc

        if base.scheme not in ("http", "https") or not base.host:
            raise DynatraceConfigError(
                f"DT_TENANT must be an absolute http(s) URL, got {raw!r}"
            )

        return base.copy_with(path=base.path.rstrip("/") + self.EXECUTE_PATH)

    async def execute_monitors(
        self, request: MonitorExecutionRequest
    ) -> MonitorExecutionResponse:
        url = self.execute_url()
        payload = request.model_dump(by_alias=True)
        headers = {
            "Authorization": f"Api-Token {self._api_token}",
            "Content-Type": "application/json",
        }
        if not self._api_token:
            logger.warning("DT_API_TOKEN is empty, request to %s will most likely be rejected", url)

        logger.info(
            "Dynatrace API Request: POST %s\n  Headers: %s\n  Body: %s",
            url,
            {"Authorization": f"Api-Token {mask_token(self._api_token)}"},
            payload,
        )

        try:
            http_request = self._client.build_request("POST", url, json=payload, headers=headers)
        except (httpx.InvalidURL, ValueError) as exc:
            # 例如 token 含非 ASCII 字符（UnicodeEncodeError），无法写入请求头
            logger.error("Failed to build Dynatrace request: POST %s -> %s", url, exc)
            raise DynatraceConfigError(f"Failed to build request to {url}: {exc}") from exc

        try:
            resp = await self._client.send(http_request)
        except httpx.HTTPError as exc:
            logger.error("HTTP error while calling Dynatrace: POST %s -> %s", url, exc)
            raise DynatraceAPIError(f"Request to {url} failed: {exc}") from exc

        logger.info("Dynatrace API Response: POST %s -> status=%s", url, resp.status_code)

        if resp.status_code != 200:
            logger.error(
                "Dynatrace API error: POST %s -> status=%s, body=%s",
                url,
                resp.status_code,
                resp.text[:200],
            )
            raise DynatraceAPIError(
                f"Dynatrace API returned status {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            # JSONDecodeError 或响应体不是合法 UTF-8
            logger.error("Dynatrace API non-JSON response: %s", resp.text[:200])
            raise DynatraceResponseError(
                f"Dynatrace API returned non-JSON response: {resp.text[:200]}"
            ) from exc

        try:
            return MonitorExecutionResponse.model_validate(data)
        except ValidationError as exc:
            logger.error("Unexpected Dynatrace API response structure: %s", data)
            raise DynatraceResponseError(
                f"Unexpected Dynatrace API response structure: {exc}"
            ) from exc
