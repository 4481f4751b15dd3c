"""
Catalog media command line.

Usage:
    catalog-media [-r | -d] [-o] [-m] [-u] [--media-root PATH]

With no flags the command only prints the summary counts.

Exit codes:
    0 - reconciliation completed
    1 - media directory or gallery store unusable, or orphaned row prune failed
    2 - invalid arguments
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config.settings import settings
from .services.media_gallery import MediaGalleryStore, StoreError, load_reference_set
from .services.media_reconciler import (
    MediaDirectoryError,
    MediaReconciler,
    ReconcileOptions,
)
from .services.supabase_client import SupabaseClientError, get_service_role_client

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalog-media",
        description="Get information about catalog product media",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  %(prog)s                 print summary counts only
  %(prog)s -u -m           list unused and missing files
  %(prog)s -d -o           quarantine unused files and prune orphaned rows""",
    )

    file_actions = parser.add_mutually_exclusive_group()
    file_actions.add_argument('-r', '--remove-unused', action='store_true',
                              help='Remove unused product images')
    file_actions.add_argument('-d', '--move-unused', action='store_true',
                              help='Move unused image files to the unused folder')

    parser.add_argument('-o', '--remove-orphaned-rows', action='store_true',
                        help='Remove orphaned media gallery rows')
    parser.add_argument('-m', '--list-missing', action='store_true',
                        help='List missing media files')
    parser.add_argument('-u', '--list-unused', action='store_true',
                        help='List unused media files')

    parser.add_argument('--media-root', default=settings.media_root,
                        help=f'Media root directory (default: {settings.media_root})')
    parser.add_argument('--catalog-dir', default=settings.catalog_media_dir,
                        help=f'Directory under the media root to scan (default: {settings.catalog_media_dir})')
    parser.add_argument('--table', default=settings.gallery_table,
                        help=f'Media gallery table (default: {settings.gallery_table})')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run one reconciliation and print its report."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    options = ReconcileOptions(
        remove_unused=args.remove_unused,
        remove_orphaned_rows=args.remove_orphaned_rows,
        list_missing=args.list_missing,
        list_unused=args.list_unused,
        move_unused=args.move_unused,
    )

    try:
        store = MediaGalleryStore(
            get_service_role_client(),
            table=args.table,
            column=settings.gallery_value_column,
            page_size=settings.page_size,
        )
        reconciler = MediaReconciler(
            args.media_root,
            options,
            store=store,
            catalog_dir=args.catalog_dir,
            cache_prefix=settings.cache_prefix,
            unused_folder=settings.unused_folder,
        )
        reference_paths = load_reference_set(store)
        summary = reconciler.run(reference_paths)
    except (MediaDirectoryError, StoreError, SupabaseClientError) as e:
        logger.error(f"❌ Media reconciliation failed: {str(e)}")
        return 1

    for line in summary.summary_lines():
        print(line)
    if summary.errors:
        print(f"Failed file operations: {len(summary.errors)}.")
    if summary.walk_errors:
        print(f"Unreadable directories: {len(summary.walk_errors)}.")

    if summary.prune_error:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
