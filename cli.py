import argparse
import logging
import sys
from typing import List, Optional

from adapters.catalog_api import CatalogApiError
from adapters.session import AuthSession
from catalog_cache import EntityCache
from catalog_session import CatalogSession
from comparison import ComparisonView, spec_rows
from constants import ALL_BRANDS, DEFAULT_PAGE_SIZE
from filter_pipeline import CatalogFilters, available_brands
from models.catalog_item import CatalogItem
from models.query import RemoteQuery, SortDirection, SortKey

# --- Basic Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("CLI")

KINDS = ("cameras", "accessories")


def format_item(item: CatalogItem) -> str:
    rate = f"{item.base_daily_rate:,.0f}" if item.base_daily_rate is not None else "-"
    return f"{item.id:<38} {item.brand:<12} {item.model:<24} {item.serial_number or '-':<16} {rate:>12}"


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        value = 0
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse and compare items in the CamRent rental catalog."
    )
    parser.add_argument(
        "--token",
        help="Bearer token to use instead of the CAMRENT_ACCESS_TOKEN environment variable.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def add_sort_options(command):
        command.add_argument(
            "--sort",
            choices=[key.value for key in SortKey],
            default=SortKey.MODEL.value,
        )
        command.add_argument("--desc", action="store_true", help="Sort descending.")
        command.add_argument("--page", type=positive_int, default=1)
        command.add_argument("--page-size", type=positive_int, default=DEFAULT_PAGE_SIZE)

    list_cmd = commands.add_parser("list", help="List your own items, filtered locally.")
    list_cmd.add_argument("kind", choices=KINDS)
    list_cmd.add_argument("--search", default="")
    list_cmd.add_argument("--brand", default=ALL_BRANDS)
    add_sort_options(list_cmd)

    browse_cmd = commands.add_parser("browse", help="Browse the public listing.")
    browse_cmd.add_argument("kind", choices=KINDS)
    browse_cmd.add_argument("--brand")
    browse_cmd.add_argument("--model")
    add_sort_options(browse_cmd)

    compare_cmd = commands.add_parser("compare", help="Compare up to three items.")
    compare_cmd.add_argument("kind", choices=KINDS)
    compare_cmd.add_argument("ids", nargs="+")

    return parser


def _cache_for(session: CatalogSession, kind: str) -> EntityCache:
    return session.cameras if kind == "cameras" else session.accessories


def run_list(session: CatalogSession, args) -> int:
    cache = _cache_for(session, args.kind)
    cache.ensure_loaded()
    if cache.error:
        logger.error(cache.error)
        return 1

    filters = CatalogFilters(page_size=args.page_size)
    filters.set_search(args.search)
    filters.set_brand(args.brand)
    filters.set_sort(args.sort, SortDirection.DESC if args.desc else SortDirection.ASC)
    filters.set_page(args.page)
    page = filters.view(cache.items)

    logger.info(f"Brands: {', '.join(available_brands(cache.items)) or '(none)'}")
    for item in page.items:
        print(format_item(item))
    print(f"Page {page.page}/{page.total_pages} ({page.total_count} matching)")
    return 0


def run_browse(session: CatalogSession, args) -> int:
    api = session.camera_api if args.kind == "cameras" else session.accessory_api
    query = RemoteQuery(
        page=args.page,
        page_size=args.page_size,
        sort_key=SortKey(args.sort),
        sort_direction=SortDirection.DESC if args.desc else SortDirection.ASC,
        brand=args.brand,
        model=args.model,
    )
    paged = api.list_filtered(query)
    for raw in paged.items:
        try:
            print(format_item(api.item_model.model_validate(raw)))
        except ValueError as e:
            logger.warning(f"Skipping unreadable entry: {e}")
    print(f"Page {paged.page} ({paged.total} total)")
    return 0


def run_compare(session: CatalogSession, args) -> int:
    cache = _cache_for(session, args.kind)
    api = session.camera_api if args.kind == "cameras" else session.accessory_api
    for item_id in args.ids:
        if not session.selection.add(item_id) and item_id not in session.selection:
            logger.warning(
                f"Can compare at most {session.selection.capacity} items; ignoring {item_id}."
            )
    if session.auth.is_authenticated:
        cache.ensure_loaded()

    comparison = ComparisonView(session.selection, cache, api)
    items = comparison.items()
    if comparison.error:
        logger.error(comparison.error)
    if not items:
        logger.error("None of the selected items could be found.")
        return 1

    print(" | ".join(["", *(item.display_name for item in items)]))
    for label, values in spec_rows(items):
        print(" | ".join([label, *values]))
    return 0


COMMANDS = {"list": run_list, "browse": run_browse, "compare": run_compare}


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for the CLI tool."""
    args = build_parser().parse_args(argv)
    auth = AuthSession(args.token) if args.token else AuthSession.from_env()

    try:
        with CatalogSession(auth) as session:
            return COMMANDS[args.command](session, args)
    except CatalogApiError as e:
        logger.error(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("\nProcess interrupted by user. Exiting.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
