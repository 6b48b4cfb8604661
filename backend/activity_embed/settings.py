from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Bearer credentials are issued elsewhere; we only need to verify them
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Public origin of this service, used to build iframe URLs for embedders
	public_api_base: str = Field(default="http://localhost:8000", validation_alias="PUBLIC_API_BASE")
	# Seconds before the embed client gives up on fetching an activity
	embed_fetch_timeout: float = Field(default=30.0, validation_alias="EMBED_FETCH_TIMEOUT")
	# "trusted" inserts Text activity markup verbatim, "escape" renders it as plain text
	text_content_policy: Literal["trusted", "escape"] = Field(default="trusted", validation_alias="TEXT_CONTENT_POLICY")

	# Comma separated list; third-party pages fetch embed JSON cross-origin
	cors_allow_origins: str = Field(default="*", validation_alias="CORS_ALLOW_ORIGINS")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def trust_text_content(self) -> bool:
		return self.text_content_policy == "trusted"

	@property
	def cors_origins(self) -> list[str]:
		return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

settings = Settings()
