"""
Configuration management for LadderChain using pydantic-settings
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# camelCase option names used by the web UI and in exported payloads
_CAMEL_OPTION_NAMES = {
    "requireCompletedFlag": "require_completed_flag",
    "includeEmptyStimuli": "include_empty_stimuli",
    "includeIncompleteChains": "include_incomplete_chains",
    "mergeConsequencePath": "merge_consequence_path",
    "checkSuperSet": "check_super_set",
}


class ExtractOptions(BaseModel):
    """
    Filtering and rendering switches for chain extraction.

    A plain model rather than a settings class: extraction defaults must not
    depend on the process environment. Environment overrides are applied
    through LadderChainConfig.extract instead.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    require_completed_flag: bool = Field(
        default=True,
        description="Keep only chains whose nodes are all marked as completed by the interviewee"
    )
    include_empty_stimuli: bool = Field(
        default=False,
        description="Emit a group for stimuli without any surviving chain"
    )
    include_incomplete_chains: bool = Field(
        default=False,
        description="Keep chains that do not reach a value"
    )
    merge_consequence_path: bool = Field(
        default=False,
        description="Absorb shorter consequence paths into longer ones and render the full path"
    )
    check_super_set: bool = Field(
        default=True,
        description="Drop shallow chains that are covered by a deeper chain"
    )

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data: Any) -> Any:
        """Allow the camelCase option names used by the web UI."""
        if isinstance(data, dict):
            return {_CAMEL_OPTION_NAMES.get(key, key): value for key, value in data.items()}
        return data

    def to_camel_dict(self) -> Dict[str, bool]:
        """Options keyed by their camelCase names, as stored in exports."""
        snake_to_camel = {snake: camel for camel, snake in _CAMEL_OPTION_NAMES.items()}
        return {snake_to_camel[key]: value for key, value in self.model_dump().items()}


class ClientConfig(BaseSettings):
    """Interview backend connection settings"""

    api_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the interview backend"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Bearer token sent with every request"
    )
    timeout_seconds: int = Field(
        default=30,
        description="Timeout for backend requests in seconds",
        gt=0
    )

    model_config = SettingsConfigDict(env_prefix="LADDERCHAIN_")


class CacheConfig(BaseSettings):
    """Extraction result cache settings"""

    enabled: bool = Field(
        default=False,
        description="Memoize extraction results per graph object"
    )
    max_size: int = Field(
        default=128,
        description="Maximum number of cached extraction results (LRU eviction when exceeded)",
        gt=0
    )

    model_config = SettingsConfigDict(env_prefix="LADDERCHAIN_CACHE_")


class LadderChainConfig(BaseSettings):
    """
    Main configuration for a LadderChain instance.
    Uses pydantic-settings for automatic environment variable loading.

    Examples:
        LADDERCHAIN_API_URL=https://interviews.example.org
        LADDERCHAIN_API_KEY=...
        LADDERCHAIN_CACHE_ENABLED=true
        LADDERCHAIN_EXTRACT__MERGE_CONSEQUENCE_PATH=true
        LADDERCHAIN_LOG_LEVEL=INFO

    Note: extraction options are nested, so they use a double underscore
    after the section name (LADDERCHAIN_EXTRACT__<OPTION>).
    """

    extract: ExtractOptions = Field(default_factory=ExtractOptions)
    client: ClientConfig = Field(default_factory=ClientConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Log level used by the command line interface"
    )

    model_config = SettingsConfigDict(
        env_prefix="LADDERCHAIN_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    def to_dict(self) -> dict:
        """Convert config to dictionary"""
        return self.model_dump()

    def __repr__(self) -> str:
        """String representation (masks the API key)"""
        config_dict = self.model_dump()
        key = config_dict.get("client", {}).get("api_key")
        if key:
            config_dict["client"]["api_key"] = "..." + (key[-4:] if len(key) >= 4 else "***")
        return f"LadderChainConfig({config_dict})"
