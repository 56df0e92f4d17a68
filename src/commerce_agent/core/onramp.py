"""Funding (onramp) link construction. Pure: no network access."""

from __future__ import annotations

import json
import urllib.parse


def build_funding_link(base_url: str, app_id: str, address: str, blockchain: str) -> str:
    """Return an onramp URL that sends purchased crypto to *address* on *blockchain*.

    The ``addresses`` parameter is a compact JSON object
    ``{"<address>": ["<blockchain>"]}``, percent-encoded as a query value.
    """
    addresses = json.dumps({address: [blockchain]}, separators=(",", ":"))
    query = urllib.parse.urlencode({"appId": app_id, "addresses": addresses})
    return f"{base_url}?{query}"
