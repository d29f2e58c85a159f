from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Header

from treasurywatch.container import Container
from treasurywatch.ingest.service import TreasuryService


@inject
def get_service(
    service: TreasuryService = Depends(Provide[Container.treasury_service]),
) -> TreasuryService:
    return service


def api_key_header(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> str:
    """Credential for the node and quote service; validated by the service itself."""
    return x_api_key or ""
