"""
Media gallery store access.

Loads the set of media paths the catalog expects to find on disk and prunes
gallery rows that point at files which no longer exist.
"""

import logging
from typing import Iterable, List, Set

logger = logging.getLogger(__name__)

DEFAULT_GALLERY_TABLE = "catalog_product_entity_media_gallery"
DEFAULT_VALUE_COLUMN = "value"


class StoreError(RuntimeError):
    """Error raised when the media gallery table cannot be read or updated."""


class MediaGalleryStore:
    """Thin wrapper around the media gallery table in Supabase."""
    
    def __init__(
        self,
        client,
        table: str = DEFAULT_GALLERY_TABLE,
        column: str = DEFAULT_VALUE_COLUMN,
        page_size: int = 1000,
    ):
        """
        Initialize the store.
        
        Args:
            client: Supabase client (service-role)
            table: Media gallery table name
            column: Column holding the media path
            page_size: Number of rows fetched per request
        """
        if page_size <= 0:
            raise ValueError("page_size must be greater than 0")
        self.client = client
        self.table = table
        self.column = column
        self.page_size = page_size
    
    def fetch_values(self) -> List[str]:
        """
        Fetch every media path stored in the gallery table.
        
        PAGINATION LOGIC:
        - PostgREST caps each response, so rows are fetched page_size at a time
        - range() is inclusive on both ends: range(0, 999) = 1000 rows
        - A page shorter than page_size means we reached the end
        
        Returns:
            List of raw values (may contain duplicates)
            
        Raises:
            StoreError: If any page request fails
        """
        values: List[str] = []
        offset = 0
        while True:
            try:
                result = (
                    self.client.table(self.table)
                    .select(self.column)
                    .order(self.column)
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )
            except Exception as exc:
                raise StoreError(f"Failed to read {self.table}.{self.column}: {exc}") from exc
            
            rows = result.data or []
            for row in rows:
                value = row.get(self.column)
                # NULL can't name a file on disk
                if value is not None:
                    values.append(value)
            
            if len(rows) < self.page_size:
                break
            offset += self.page_size
        
        logger.debug(f"Fetched {len(values)} values from {self.table} in pages of {self.page_size}")
        return values
    
    def delete_values(self, values: Iterable[str]) -> int:
        """
        Delete every row whose value is in the given collection.
        
        The delete is sent as a single request so the store applies it
        all-or-nothing. PostgREST carries the in_() filter in the request URL,
        so a very large value list can exceed the server's URL length limit;
        the whole delete then fails with StoreError and no row is removed.
        
        Args:
            values: Media paths whose rows should be removed
            
        Returns:
            Number of rows the store reported as deleted
            
        Raises:
            StoreError: If the delete request fails
        """
        values = sorted(set(values))
        if not values:
            return 0
        
        try:
            result = (
                self.client.table(self.table)
                .delete()
                .in_(self.column, values)
                .execute()
            )
        except Exception as exc:
            raise StoreError(f"Failed to delete rows from {self.table}: {exc}") from exc
        
        deleted = len(result.data or [])
        logger.info(f"🗑️  Deleted {deleted} rows from {self.table} ({len(values)} missing paths)")
        return deleted


def load_reference_set(store: MediaGalleryStore) -> Set[str]:
    """Return the deduplicated set of media paths known to the gallery table."""
    references = set(store.fetch_values())
    logger.info(f"📊 Media gallery references {len(references)} distinct paths")
    return references
