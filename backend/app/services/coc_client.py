"""
Clash of Clans API Client

Thin synchronous wrapper around the public Clash of Clans REST API. The client
receives its configuration explicitly (base URL, bearer token, timeout) and
turns every non-2xx response into a tagged `CocApiError`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generator, Optional
from urllib.parse import unquote

import httpx
from fastapi import Depends

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"#[0-9A-Z]+")


class CocFaultKind(str, Enum):
    TRANSPORT = "transportFault"
    PRIVACY = "privacyFault"
    NOT_FOUND = "notFound"


class CocConfigError(RuntimeError):
    """Raised when the client cannot be built from the given configuration."""


class CocApiError(Exception):
    """
    Upstream failure.

    Attributes:
        kind: Fault category (transport, privacy, not found).
        status: Upstream HTTP status, 502 when the call never got a response.
        message: Human readable description including the upstream reason.
    """

    def __init__(self, kind: CocFaultKind, status: int, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.message = message

    @property
    def is_unavailable(self) -> bool:
        """True for private war logs and missing wars (403/404)."""
        return self.kind in (CocFaultKind.PRIVACY, CocFaultKind.NOT_FOUND)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "CocApiError":
        status = response.status_code
        if status == 403:
            kind = CocFaultKind.PRIVACY
        elif status == 404:
            kind = CocFaultKind.NOT_FOUND
        else:
            kind = CocFaultKind.TRANSPORT

        detail = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("reason") or detail

        message = f"CoC API {status} {response.reason_phrase}"
        if detail:
            message = f"{message} - {detail}"
        return cls(kind, status, message)


def hint_for_status(status: Optional[int]) -> Optional[str]:
    """Operator hint for the usual upstream auth/limit failures."""
    if status == 401:
        return "Invalid or expired token, generate a new one in the developer portal."
    if status == 403:
        return (
            "IP not allowed for this token or the war log is private. Add your "
            "public IP to the token allowlist and check the clan's war log privacy."
        )
    if status == 429:
        return "Rate limited, wait a little or reduce the refresh frequency."
    return None


# ---------------------- tags ----------------------


def normalize_tag(raw: Optional[str]) -> str:
    """URL-decode, trim, upper-case and make sure the tag starts with '#'."""
    if not raw:
        return ""
    tag = unquote(raw).strip().upper()
    if not tag:
        return ""
    return tag if tag.startswith("#") else f"#{tag}"


def is_valid_tag(tag: str) -> bool:
    return bool(_TAG_RE.fullmatch(tag))


def encode_tag(tag: str) -> str:
    """Path-safe tag ('#ABC' -> '%23ABC')."""
    return "%23" + tag.lstrip("#")


# ---------------------- client ----------------------


@dataclass(frozen=True)
class CocClientConfig:
    base_url: str
    token: Optional[str]
    timeout: float = 20.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "CocClientConfig":
        return cls(
            base_url=settings.COC_API_BASE,
            token=settings.COC_TOKEN,
            timeout=settings.COC_TIMEOUT,
        )


class CocClient:
    """
    Clash of Clans API client.

    One instance per request; close it (or use it as a context manager) when
    done. `transport` lets tests plug in an `httpx.MockTransport`.
    """

    def __init__(
        self,
        config: CocClientConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not config.token:
            raise CocConfigError("COC_TOKEN is not configured")
        self.config = config
        self._http = httpx.Client(
            base_url=config.base_url,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {config.token}",
            },
            timeout=config.timeout,
            transport=transport,
        )

    def __enter__(self) -> "CocClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a path relative to the API base and decode the JSON body.

        Raises:
            CocApiError: On network failure, non-2xx status or a body that is
                not JSON.
        """
        try:
            response = self._http.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("CoC API request failed for %s: %s", path, e)
            raise CocApiError(
                CocFaultKind.TRANSPORT, 502, f"CoC API unreachable - {e}"
            ) from e

        if response.is_error:
            err = CocApiError.from_response(response)
            logger.warning("CoC API %s for %s (%s)", err.status, path, err.kind.value)
            raise err

        try:
            return response.json()
        except ValueError as e:
            raise CocApiError(
                CocFaultKind.TRANSPORT, 502, "CoC API returned a non-JSON body"
            ) from e

    def clan(self, tag: str) -> Dict[str, Any]:
        return self.get_json(f"/clans/{encode_tag(tag)}")

    def current_war(self, tag: str) -> Dict[str, Any]:
        return self.get_json(f"/clans/{encode_tag(tag)}/currentwar")

    def war_log(self, tag: str, limit: int = 10) -> Dict[str, Any]:
        return self.get_json(f"/clans/{encode_tag(tag)}/warlog", {"limit": limit})

    def capital_raid_seasons(self, tag: str, limit: int = 10) -> Dict[str, Any]:
        return self.get_json(
            f"/clans/{encode_tag(tag)}/capitalraidseasons", {"limit": limit}
        )


def get_coc_client(
    settings: Settings = Depends(get_settings),
) -> Generator[CocClient, None, None]:
    """
    FastAPI dependency that yields a CoC client and guarantees cleanup.
    """
    try:
        client = CocClient(CocClientConfig.from_settings(settings))
    except CocConfigError as e:
        logger.error("CoC client configuration error: %s", e)
        raise
    try:
        yield client
    finally:
        client.close()
