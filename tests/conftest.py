"""
Pytest configuration and fixtures for the catalog media test suite.

This module provides a temporary media tree and mocked Supabase clients so
no test needs a real database.
"""

import os
import tempfile
from unittest.mock import Mock

import pytest

from catalog_media.services.media_gallery import MediaGalleryStore


@pytest.fixture
def temp_dir():
    """
    Create a temporary directory for test files.
    
    Returns:
        Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def media_root(temp_dir):
    """
    Create an empty media root with a catalog/product directory.
    
    Returns:
        Path to the media root
    """
    root = os.path.join(temp_dir, "pub", "media")
    os.makedirs(os.path.join(root, "catalog", "product"))
    return root


@pytest.fixture
def catalog_dir(media_root):
    """Path to the walked catalog/product directory."""
    return os.path.join(media_root, "catalog", "product")


@pytest.fixture
def add_media_file(catalog_dir):
    """
    Factory writing a file under catalog/product.
    
    Returns:
        Callable taking a gallery-style path ("/a/b/ab.jpg") and returning
        the absolute path of the created file
    """
    def _add(relative_path, content=b"\xff\xd8\xff\xe0 fake jpeg"):
        path = os.path.join(catalog_dir, relative_path.lstrip("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
        return path
    
    return _add


@pytest.fixture
def mock_supabase_client():
    """
    Mock Supabase client with the select and delete chains wired up.
    
    Set ``select_execute.side_effect`` to a list of responses for paging, or
    ``delete_execute.return_value`` for the delete result.
    
    Returns:
        Mock client
    """
    client = Mock()
    table = client.table.return_value
    
    client.select_execute = table.select.return_value.order.return_value.range.return_value.execute
    client.select_execute.return_value = Mock(data=[])
    
    client.delete_execute = table.delete.return_value.in_.return_value.execute
    client.delete_execute.return_value = Mock(data=[])
    return client


@pytest.fixture
def mock_gallery_store():
    """
    Mock media gallery store for reconciler tests.
    
    Returns:
        Mock store with delete_values returning 0
    """
    store = Mock(spec=MediaGalleryStore)
    store.delete_values.return_value = 0
    return store
