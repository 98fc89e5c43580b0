from functools import lru_cache
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from mongotail import TailerOptions


class Settings(BaseSettings):
    SERVER: Optional[str] = "mongodb://localhost:27017"
    COLLECTIONS: Annotated[List[str], NoDecode] = []
    INTERVAL: float = 0.5
    ON_MISSING: Literal["raise", "retry", "ignore"] = "raise"
    ON_SERVER_UNAVAILABLE: Literal["raise", "retry"] = "raise"
    SERVER_SELECTION_TIMEOUT_MS: int = 30000

    # event decoration
    TYPE: Optional[str] = None
    TAGS: Annotated[List[str], NoDecode] = []
    ADD_FIELD: Dict[str, str] = {}

    METRICS_PORT: Optional[int] = None

    @field_validator("COLLECTIONS", "TAGS", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("INTERVAL")
    @classmethod
    def _positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("interval must be > 0")
        return v

    def tailer_options(self) -> TailerOptions:
        return TailerOptions(
            collections=list(self.COLLECTIONS),
            server=self.SERVER,
            interval=self.INTERVAL,
            on_missing=self.ON_MISSING,
            on_server_unavailable=self.ON_SERVER_UNAVAILABLE,
            server_selection_timeout_ms=self.SERVER_SELECTION_TIMEOUT_MS,
        )

    class Config:
        env_prefix = "MONGOTAIL_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
