"""FastAPI dependency injection functions."""

from functools import lru_cache

from fastapi import HTTPException, status

from protograph.config import Config, ConfigError, load_settings


@lru_cache
def get_settings() -> Config:
    """Get cached application settings.

    Raises:
        HTTPException: 500 if the configuration file is invalid.
    """
    try:
        return load_settings()
    except ConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Invalid configuration: {e}",
        ) from e
