"""
Application settings and configuration management.

This module handles environment variable loading and configuration validation
using Pydantic settings for type safety and validation.
"""

import logging
from typing import Optional
from pydantic import validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Media reconciliation settings with validation and environment variable support."""
    
    # Supabase Configuration
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    
    # Media Directory Configuration
    media_root: str = "./pub/media"
    catalog_media_dir: str = "catalog/product"
    cache_prefix: str = "/cache"
    unused_folder: str = "unused"
    
    # Media Gallery Table
    gallery_table: str = "catalog_product_entity_media_gallery"
    gallery_value_column: str = "value"
    page_size: int = 1000  # PostgREST default max rows
    
    # Logging
    log_level: str = "INFO"
    
    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        case_sensitive = False
    
    @validator("cache_prefix")
    def validate_cache_prefix(cls, v):
        """Normalize the cache prefix to a rooted path without a trailing slash."""
        v = "/" + v.strip("/")
        if v == "/":
            raise ValueError("Cache prefix must name a subdirectory")
        return v
    
    @validator("unused_folder")
    def validate_unused_folder(cls, v):
        """
        Validate the quarantine folder is a single directory name.
        
        Args:
            v: Folder name value
            
        Returns:
            str: Validated folder name
            
        Raises:
            ValueError: If the name is empty or contains path separators
        """
        if not v or v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError("Unused folder must be a single directory name")
        return v
    
    @validator("page_size")
    def validate_page_size(cls, v):
        """Validate page size is positive."""
        if v <= 0:
            raise ValueError("Page size must be greater than 0")
        return v
    
    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level is a standard logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


# Global settings instance
settings = Settings()
