from dependency_injector import containers, providers

from treasurywatch.config import Settings
from treasurywatch.domain.tokens import TokenRegistry
from treasurywatch.infra.blockchain.retry import RetryPolicy, exponential_backoff
from treasurywatch.infra.blockchain.rpc_client import NodeRPCClient
from treasurywatch.infra.http.bounded_client import BoundedClient
from treasurywatch.infra.price.exchange_rates import ExchangeRateClient
from treasurywatch.ingest.service import TreasuryService


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["treasurywatch.api.deps"])

    settings = providers.Singleton(Settings)

    http_client = providers.Singleton(
        BoundedClient,
        max_concurrency=settings.provided.max_concurrency,
        timeout=settings.provided.http_timeout,
    )

    retry_policy = providers.Singleton(
        RetryPolicy,
        max_retries=settings.provided.max_retries,
        backoff=providers.Callable(exponential_backoff, base=settings.provided.backoff_base),
    )

    # Credential arrives per request: rpc_client(api_key=...)
    rpc_client = providers.Factory(
        NodeRPCClient,
        rpc_url=settings.provided.rpc_url,
        http_client=http_client,
    )

    rate_client = providers.Singleton(
        ExchangeRateClient,
        http_client=http_client,
        base_url=settings.provided.price_api_url,
    )

    token_registry = providers.Singleton(TokenRegistry)

    treasury_service = providers.Singleton(
        TreasuryService,
        rpc_factory=rpc_client.provider,
        rate_client=rate_client,
        treasury_address=settings.provided.treasury_address,
        registry=token_registry,
        retry=retry_policy,
        max_blocks_per_request=settings.provided.max_blocks_per_request,
        block_probe_window=settings.provided.block_probe_window,
        max_concurrency=settings.provided.max_concurrency,
    )
