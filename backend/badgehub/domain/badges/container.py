"""Explicitly constructed collaborators shared by the badge services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from redis.asyncio import Redis

from badgehub.domain.badges.models import IssuanceConfig
from badgehub.domain.badges.reconcile import ReconciliationLog
from badgehub.infra.chain import ChainClient, HttpChainClient, HttpTransactionSigner, TransactionSigner
from badgehub.infra.content_store import ContentStore, IpfsContentStore
from badgehub.infra.documents import DocumentStore, InMemoryDocumentStore
from badgehub.infra.postgres import PostgresDocumentStore
from badgehub.infra.redis import RedisProxy
from badgehub.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class BadgeServices:
    documents: DocumentStore
    content: ContentStore
    chain: ChainClient
    signer: TransactionSigner
    reconciliation: ReconciliationLog
    config: IssuanceConfig

    async def close(self) -> None:
        for name, resource in (
            ("documents", self.documents),
            ("content", self.content),
            ("chain", self.chain),
            ("signer", self.signer),
        ):
            try:
                await resource.close()
            except Exception:
                logger.warning("service_close_failed", extra={"service": name}, exc_info=True)


async def build_services(settings: Settings, redis: Optional[Redis | RedisProxy]) -> BadgeServices:
    """Connect every collaborator named in ``settings``."""
    timeout = httpx.Timeout(settings.http_timeout_seconds)
    if settings.document_backend == "memory":
        documents: DocumentStore = InMemoryDocumentStore()
    else:
        documents = await PostgresDocumentStore.connect(
            settings.postgres_url,
            min_size=settings.postgres_min_pool_size,
            max_size=settings.postgres_max_pool_size,
        )
    return BadgeServices(
        documents=documents,
        content=IpfsContentStore(
            http=httpx.AsyncClient(timeout=timeout),
            api_url=settings.ipfs_api_url,
            project_id=settings.ipfs_project_id,
            project_secret=settings.ipfs_project_secret,
        ),
        chain=HttpChainClient(http=httpx.AsyncClient(timeout=timeout), base_url=settings.chain_node_url),
        signer=HttpTransactionSigner(http=httpx.AsyncClient(timeout=timeout), url=settings.signer_url),
        reconciliation=ReconciliationLog(redis),
        config=IssuanceConfig.from_settings(settings),
    )
