# actionbuttons/engine/platform/rest.py

import json
import logging
import httpx
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict

from ...core.config import Settings, settings as default_settings
from ...services.exceptions import RemoteCallError

logger = logging.getLogger(__name__)

class RestResponse(BaseModel):
    status: int
    data: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)

class RestClient:
    """
    无状态的 REST 调用封装。
    - 仓库 API (默认 /qrs) 的路径会被加上会话的虚拟代理前缀。
    - 所有 HTTP 与网络错误统一转换为 RemoteCallError(status, data, message)。
    """
    def __init__(
        self,
        base_url: str = "",
        proxy_prefix: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or default_settings
        self.proxy_prefix = proxy_prefix
        self.http_client = http_client or httpx.AsyncClient(
            base_url=base_url, timeout=self.settings.REST_TIMEOUT_SECONDS
        )

    def _format_url(self, url: str) -> str:
        prefix = self.proxy_prefix.strip("/")
        if prefix and url.startswith(self.settings.QRS_PATH_PREFIX):
            return f"/{prefix}{url}"
        return url

    async def request(
        self,
        method: str = "GET",
        url: str = "",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None
    ) -> RestResponse:
        """核心的 HTTP 请求执行逻辑。"""
        formatted_url = self._format_url(url)
        kwargs: Dict[str, Any] = {"headers": headers or {}, "params": params or {}}
        if body is not None:
            if isinstance(body, (dict, list)):
                kwargs["json"] = body
            else:
                kwargs["content"] = str(body)

        try:
            response = await self.http_client.request(method.upper(), formatted_url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            data = self._decode(e.response)
            raise RemoteCallError(
                f"HTTP error {e.response.status_code} for {e.request.url}: {e.response.text}",
                status=e.response.status_code,
                data=data
            )
        except httpx.RequestError as e:
            raise RemoteCallError(f"Request failed for {e.request.url}: {e}")

        logger.debug(f"{method.upper()} {formatted_url} -> {response.status_code}")
        return RestResponse(
            status=response.status_code,
            data=self._decode(response),
            headers=dict(response.headers)
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        # 非 JSON 响应按文本返回
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            return response.text

    async def aclose(self):
        await self.http_client.aclose()
