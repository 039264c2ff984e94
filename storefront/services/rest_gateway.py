# storefront/services/rest_gateway.py
import json
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests
from requests import RequestException

from storefront.data.gateway import (
    Filters,
    Gateway,
    Row,
    embed_tree,
    parse_filter_key,
    parse_order,
    split_alias,
)
from storefront.domain.errors import RemoteOperationError
from storefront.utils.logging import get_logger
from storefront.utils.retry import http_retry
from storefront.utils.settings import HTTP_TIMEOUT_SECONDS, SUPABASE_ANON_KEY, SUPABASE_URL

logger = get_logger(__name__)


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def render_filters(filters: Filters) -> List[Tuple[str, str]]:
    """{"pack_id": None, "stock__gt": 0} -> [("pack_id", "is.null"), ("stock", "gt.0")]"""
    params = []
    for key, value in (filters or {}).items():
        column, op = parse_filter_key(key)
        if op == "eq" and value is None:
            op = "is"
        elif op == "neq" and value is None:
            params.append((column, "not.is.null"))
            continue
        if op == "in":
            rendered = "(" + ",".join(_literal(v) for v in value) + ")"
        else:
            rendered = _literal(value)
        params.append((column, f"{op}.{rendered}"))
    return params


def render_select(embed: Iterable[str]) -> str:
    """["pack_products.products", "creator:users"] -> "*,pack_products(*,products(*)),creator:users(*)" """

    def render(tree: Dict[str, dict]) -> str:
        parts = ["*"]
        for name, subtree in tree.items():
            alias, table = split_alias(name)
            head = f"{alias}:{table}" if alias != table else table
            parts.append(f"{head}({render(subtree)})")
        return ",".join(parts)

    return render(embed_tree(embed))


def _json_default(value):
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Not serializable: {type(value)!r}")


class RestGateway(Gateway):
    """
    PostgREST-style client for the hosted backend.

    Row level security is enforced server side by the bearer token, so each
    request scope gets its own gateway carrying the caller's access token.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = f"{(base_url or SUPABASE_URL).rstrip('/')}/rest/v1"
        self.api_key = api_key if api_key is not None else SUPABASE_ANON_KEY
        self.access_token = access_token
        self.timeout = timeout
        self.http = session or requests.Session()

    def _headers(self, write: bool = False) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Accept": "application/json",
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    def _decode(self, resp: requests.Response, action: str, table: str) -> List[Row]:
        if not resp.ok:
            try:
                detail = resp.json().get("message", resp.text)
            except ValueError:
                detail = resp.text
            logger.error(f"{action} on {table} failed with {resp.status_code}: {detail}")
            raise RemoteOperationError(f"{action} on {table} failed: {detail}", status_code=resp.status_code)
        if not resp.content:
            return []
        data = resp.json(parse_float=Decimal)
        return data if isinstance(data, list) else [data]

    def _send(self, method: str, table: str, params, body=None) -> requests.Response:
        url = f"{self.base_url}/{table}"
        logger.info(f"RestGateway {method} {url}")
        try:
            return self.http.request(
                method,
                url,
                params=params,
                data=json.dumps(body, default=_json_default) if body is not None else None,
                headers=self._headers(write=method != "GET"),
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.error(f"RestGateway {method} {url} transport error: {e}")
            raise RemoteOperationError(f"{method} {table} failed: {e}") from e

    @http_retry()
    def _get(self, table: str, params) -> requests.Response:
        url = f"{self.base_url}/{table}"
        logger.info(f"RestGateway GET {url}")
        return self.http.get(url, params=params, headers=self._headers(), timeout=self.timeout)

    # ------------------------------------------------------------- contract

    def select(
        self,
        table: str,
        filters: Filters = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        embed: Iterable[str] = (),
    ) -> List[Row]:
        params = [("select", render_select(embed))] + render_filters(filters)
        ordering = parse_order(order)
        if ordering:
            params.append(
                ("order", ",".join(f"{col}.{'desc' if desc else 'asc'}" for col, desc in ordering))
            )
        if limit is not None:
            params.append(("limit", str(limit)))

        try:
            resp = self._get(table, params)
        except RequestException as e:
            logger.error(f"RestGateway select {table} gave up: {e}")
            raise RemoteOperationError(f"select on {table} failed: {e}") from e
        return self._decode(resp, "select", table)

    def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        resp = self._send("POST", table, params=None, body=list(rows))
        return self._decode(resp, "insert", table)

    def update(self, table: str, patch: Row, filters: Filters) -> List[Row]:
        if not filters:
            raise RemoteOperationError(f"Refusing to update {table} without filters")
        resp = self._send("PATCH", table, params=render_filters(filters), body=patch)
        return self._decode(resp, "update", table)

    def delete(self, table: str, filters: Filters) -> List[Row]:
        if not filters:
            raise RemoteOperationError(f"Refusing to delete from {table} without filters")
        resp = self._send("DELETE", table, params=render_filters(filters))
        return self._decode(resp, "delete", table)
