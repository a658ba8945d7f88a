"""cfn_magic.aws_clients - Lazy, region-keyed boto3 client factory.

Handlers never build their own clients. The dispatcher owns one
ClientFactory and hands it to every resource it constructs, so tests can
swap in fakes without patching boto3.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple

import boto3
from botocore.config import Config

from .config import AWS_CLIENT_MAX_ATTEMPTS, DEFAULT_REGION

logger = logging.getLogger(__name__)

__all__ = ["ClientFactory", "ClientProvider"]

ClientProvider = Callable[..., Any]


class ClientFactory:
    """Create boto3 clients on first use and cache them per (service, region)."""

    def __init__(
        self,
        session: Optional[boto3.session.Session] = None,
        max_attempts: int = AWS_CLIENT_MAX_ATTEMPTS,
        default_region: str = DEFAULT_REGION,
    ) -> None:
        self._session = session
        self._config = Config(retries={"max_attempts": max_attempts, "mode": "standard"})
        self._default_region = default_region
        self._clients: Dict[Tuple[str, str], Any] = {}

    def __call__(self, service: str, region: Optional[str] = None) -> Any:
        region_name = region or self._default_region
        key = (service, region_name)
        client = self._clients.get(key)
        if client is None:
            logger.debug("Creating %s client in %s", service, region_name)
            session = self._session or boto3.session.Session()
            client = session.client(service, region_name=region_name, config=self._config)
            self._clients[key] = client
        return client
