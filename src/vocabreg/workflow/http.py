"""HTTP client construction for providers.

Every provider request goes through :func:`http_client`, which applies
the configured timeout. Tests route all provider traffic to an
``httpx.MockTransport`` with :func:`set_transport`.
"""

from __future__ import annotations

from typing import Any

import httpx

from vocabreg.core.settings import get_settings

_transport: httpx.BaseTransport | None = None

# Extensions for the RDF serializations accepted by PoolParty exports
# and RDF4J uploads.
RDF_FORMAT_EXTENSIONS = {
    "rdf/xml": ".rdf",
    "turtle": ".ttl",
    "n-triples": ".nt",
    "n3": ".n3",
    "trig": ".trig",
    "trix": ".trix",
    "rdf/json": ".rj",
    "json-ld": ".jsonld",
}

RDF_CONTENT_TYPES = {
    ".rdf": "application/rdf+xml",
    ".owl": "application/rdf+xml",
    ".xml": "application/rdf+xml",
    ".ttl": "text/turtle",
    ".nt": "application/n-triples",
    ".n3": "text/n3",
    ".trig": "application/trig",
    ".trix": "application/trix",
    ".rj": "application/rdf+json",
    ".jsonld": "application/ld+json",
}


def set_transport(transport: httpx.BaseTransport | None) -> None:
    """Route provider requests through *transport* (None restores the network)."""
    global _transport
    _transport = transport


def http_client(**kwargs: Any) -> httpx.Client:
    kwargs.setdefault("timeout", get_settings().http_timeout)
    if _transport is not None:
        kwargs.setdefault("transport", _transport)
    return httpx.Client(**kwargs)


def join_url(prefix: str, *parts: str) -> str:
    """Join path segments onto *prefix* with exactly one slash between each."""
    url = prefix.rstrip("/")
    for part in parts:
        url = f"{url}/{str(part).strip('/')}"
    return url


def extension_for_format(rdf_format: str) -> str:
    return RDF_FORMAT_EXTENSIONS.get(rdf_format.lower(), ".rdf")
