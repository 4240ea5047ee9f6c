"""Shared httpx plumbing for the API tools."""

import typing as t

import httpx

from deanmachines.settings import get_settings


async def http_get(
    url: str,
    params: dict[str, t.Any] | None = None,
    client: httpx.AsyncClient | None = None,
) -> httpx.Response:
    """GET a url with the given client, or with a short-lived one.

    Tools accept an injected client so tests can pass one built on
    ``httpx.MockTransport``.
    """
    if client is not None:
        return await client.get(url, params=params)
    async with httpx.AsyncClient(timeout=get_settings().http_timeout) as http:
        return await http.get(url, params=params)
