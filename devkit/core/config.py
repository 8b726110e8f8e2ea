from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalise_base_url(url: str) -> str:
    """Strip trailing slashes so request paths can always start with '/'.

    ``https://airborne.example.com/`` and ``https://airborne.example.com``
    both end up as the latter.
    """
    return url.strip().rstrip("/")


class Settings(BaseSettings):
    """Devkit settings loaded from environment variables.

    Every field reads ``AIRBORNE_<FIELD>`` (case-insensitive), with a
    ``.env`` file in the working directory as fallback. ``ci`` is the
    exception: it follows the conventional ``CI`` variable set by most CI
    providers, which switches credential storage to a shared temp path.

    Project-specific values (organisation, namespace, index files) live in
    ``airborne-config.json`` instead; see ``devkit.project.config``.
    """

    model_config = SettingsConfigDict(
        env_prefix="AIRBORNE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Airborne API
    base_url: str = "http://localhost:8081"

    @field_validator("base_url", mode="before")
    @classmethod
    def normalise_base_url(cls, v: str) -> str:
        return _normalise_base_url(v)

    # Per-request timeout in seconds. Uploads of large bundles may need more.
    request_timeout: float = 60.0

    # Set by CI providers; stores credentials in /tmp instead of the project.
    ci: bool = Field(default=False, validation_alias=AliasChoices("CI", "AIRBORNE_CI"))

    # Ruby script run after writing an iOS release config, relative to the
    # project root unless absolute.
    ios_post_write_script: str = "node_modules/airborne-devkit/bundleRC.rb"

    # Console log rendering instead of JSON.
    debug: bool = False


def get_settings() -> Settings:
    return Settings()
