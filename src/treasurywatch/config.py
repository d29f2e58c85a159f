from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    rpc_url: str = "http://archive.axiedao.org/temporary-hackathon-rpc"
    price_api_url: str = "https://api-gateway.skymavis.com/graphql/marketplace"
    treasury_address: str = "0x245db945c485b68fdc429e4f7085a1761aa4d45d"
    api_key: str = ""
    max_blocks_per_request: int = 2000
    max_retries: int = 5
    backoff_base: float = 2.0  # delay before retry n = base ** n seconds
    max_concurrency: int = 8
    http_timeout: float = 30.0
    block_probe_window: int = 4
    debug: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "TREASURY_"
