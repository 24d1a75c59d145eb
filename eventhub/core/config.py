"""
Configuration management for EventHub.
Uses Zero Python SDK for secure configuration, falling back to
environment variables when no Zero token is configured.
"""

import os
import asyncio
import concurrent.futures
from urllib.parse import quote_plus
from typing import Dict, Any, Optional
import logging
from zero_python_sdk import zero

logger = logging.getLogger(__name__)


class ZeroSecretsManager:
    """
    Zero secrets client using the official Zero Python SDK.
    """

    def __init__(self, zero_token: str, caller_name: str = "eventhub"):
        self.zero_token = zero_token
        self.caller_name = caller_name
        self._cache: Dict[str, Any] = {}
        self._secrets = None

    async def _fetch_secrets(self):
        """Fetch secrets from Zero if not already cached."""
        if self._secrets is None:
            try:
                loop = asyncio.get_running_loop()
                with concurrent.futures.ThreadPoolExecutor() as executor:
                    self._secrets = await loop.run_in_executor(
                        executor,
                        lambda: zero(
                            token=self.zero_token,
                            pick=["eventhub"],
                            caller_name=self.caller_name
                        ).fetch()
                    )
                logger.info("Successfully fetched secrets from Zero")
            except Exception as e:
                logger.error(f"Failed to fetch secrets from Zero: {e}")
                self._secrets = {}

    def _normalize_key(self, key: str) -> str:
        """Normalize a key to lowercase and replace underscores with hyphens."""
        return key.lower().replace("_", "-")

    async def get_secret(self, key: str) -> Optional[str]:
        """
        Get a secret value by key.

        Args:
            key: The secret key to retrieve

        Returns:
            Secret value or None if not found
        """
        key = self._normalize_key(key)
        if key in self._cache:
            return self._cache[key]

        await self._fetch_secrets()
        secret_value = self._secrets.get("eventhub", {}).get(key)

        if secret_value:
            self._cache[key] = secret_value

        return secret_value

    async def close(self):
        """Close method for compatibility."""
        pass


class EnvironmentSecretsManager:
    """
    Reads configuration straight from the process environment.
    Used for local development and tests, when ZERO_TOKEN is not set.
    """

    async def get_secret(self, key: str) -> Optional[str]:
        """Get a value from the environment, treating empty strings as unset."""
        return os.getenv(key) or None

    async def close(self):
        """Close method for compatibility."""
        pass


class EventHubConfig:
    """
    EventHub configuration manager.
    Values are read lazily so the environment can change before first use.
    """

    def __init__(self):
        self.zero_token = os.getenv("ZERO_TOKEN")
        if self.zero_token:
            self.secrets_manager = ZeroSecretsManager(self.zero_token)
        else:
            logger.info("ZERO_TOKEN not set, reading configuration from environment")
            self.secrets_manager = EnvironmentSecretsManager()

    async def get_database_url(self) -> str:
        """Get the database connection URL."""
        database_url = await self.secrets_manager.get_secret("DATABASE_URL")
        if database_url:
            return database_url

        host = await self.secrets_manager.get_secret("DB_HOST") or "localhost"
        port = await self.secrets_manager.get_secret("DB_PORT") or "5432"
        name = await self.secrets_manager.get_secret("DB_NAME") or "eventhub"
        user = await self.secrets_manager.get_secret("DB_USER") or "eventhub"
        password = await self.secrets_manager.get_secret("DB_PASSWORD") or "eventhub123"

        return f"postgresql://{user}:{quote_plus(password)}@{host}:{port}/{name}"

    async def get_database_config(self) -> Dict[str, int]:
        """Get connection pool configuration."""
        return {
            "pool_size": int(await self.secrets_manager.get_secret("DB_POOL_SIZE") or "10"),
            "max_overflow": int(await self.secrets_manager.get_secret("DB_MAX_OVERFLOW") or "20"),
            "pool_timeout": int(await self.secrets_manager.get_secret("DB_POOL_TIMEOUT") or "30"),
            "pool_recycle": int(await self.secrets_manager.get_secret("DB_POOL_RECYCLE") or "3600")
        }

    async def get_redis_url(self) -> str:
        """Get the Redis connection URL."""
        host = await self.secrets_manager.get_secret("REDIS_HOST") or "localhost"
        port = await self.secrets_manager.get_secret("REDIS_PORT") or "6379"
        password = await self.secrets_manager.get_secret("REDIS_PASSWORD")
        use_tls = await self.secrets_manager.get_secret("REDIS_USE_TLS") == "true"

        protocol = "rediss://" if use_tls else "redis://"

        if password:
            return f"{protocol}:{quote_plus(password)}@{host}:{port}"
        return f"{protocol}{host}:{port}"

    async def get_jwt_secret(self) -> str:
        """Get JWT secret key."""
        return await self.secrets_manager.get_secret("JWT_SECRET") or "your-secret-key-change-in-production"

    async def get_jwt_algorithm(self) -> str:
        """Get JWT algorithm."""
        return await self.secrets_manager.get_secret("JWT_ALGORITHM") or "HS256"

    async def get_jwt_expiry_days(self) -> int:
        """Get access token validity in days."""
        expiry = await self.secrets_manager.get_secret("JWT_EXPIRY_DAYS")
        return int(expiry) if expiry else 7

    async def get_cache_config(self) -> Dict[str, Any]:
        """Get cache configuration."""
        return {
            "enabled": await self.secrets_manager.get_secret("CACHE_ENABLED") == "true",
            "events_ttl": int(await self.secrets_manager.get_secret("CACHE_TTL_EVENTS") or "300"),
            "event_details_ttl": int(await self.secrets_manager.get_secret("CACHE_TTL_EVENT_DETAILS") or "600")
        }

    async def get_consistency_config(self) -> Dict[str, Any]:
        """Get attendance locking configuration."""
        return {
            "enable_distributed_locks": await self.secrets_manager.get_secret("ENABLE_DISTRIBUTED_LOCKS") == "true",
            "lock_timeout_seconds": int(await self.secrets_manager.get_secret("LOCK_TIMEOUT_SECONDS") or "30"),
            "lock_blocking_timeout_seconds": int(
                await self.secrets_manager.get_secret("LOCK_BLOCKING_TIMEOUT_SECONDS") or "10"
            )
        }

    async def get_log_level(self) -> str:
        """Get the root log level."""
        return (await self.secrets_manager.get_secret("LOG_LEVEL") or "INFO").upper()

    async def close(self):
        """Close the secrets manager."""
        await self.secrets_manager.close()


# Global config instance
config = EventHubConfig()
