"""
Command-line interface for the gallery cache.
"""

import argparse
import json
import logging
import sys
import time
from dataclasses import replace

import urllib3

from gallery_cache.config import MANIFEST_VERSION, load_settings
from gallery_cache.errors import GalleryError, RemoteUnavailableError, ValidationError
from gallery_cache.security.tokens import OPERATIONS
from gallery_cache.service import GalleryService
from gallery_cache.utils.log import log, setup_logging

try:
    import colorlog  # noqa: F401
    _COLORLOG_AVAILABLE = True
except ImportError:
    _COLORLOG_AVAILABLE = False


def _field(raw: str) -> tuple[str, str]:
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    key, value = raw.split("=", 1)
    return key.strip(), value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gallery-cache",
        description="Discover, cache and sign access to a remote image gallery.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  gallery-cache scan\n"
            "  gallery-cache scan https://conceptfab.com/__metro/gallery/CUBE/ --depth 3\n"
            "  gallery-cache status --max-age 86400\n"
            "  gallery-cache snapshot\n"
            "  gallery-cache list klient1 --protect\n"
            "  gallery-cache sign file --field filePath=client/photo.jpg\n"
        ),
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--log-file", help="Write detailed logs to this file (always at DEBUG level)")
    parser.add_argument(
        "--no-verify-ssl", dest="verify_ssl", action="store_false", default=True,
        help="Disable TLS certificate verification",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Crawl the gallery and print the folder tree as JSON")
    scan.add_argument("url", nargs="?", help="Gallery URL (default: GALLERY_BASE_URL)")
    scan.add_argument("--depth", type=int, help="Maximum crawl depth")
    scan.add_argument("--workers", type=int, help="Parallel folder fetches (1 = sequential)")
    scan.add_argument("--group", help="Cache namespace (group id)")
    scan.add_argument("--no-cache", dest="use_cache", action="store_false", default=True,
                      help="Bypass the cache")
    scan.add_argument("--progress", action="store_true", help="Show a progress bar (needs tqdm)")

    status = sub.add_parser("status", help="Check whether the cache manifest is stale")
    status.add_argument("--max-age", type=float, help="Maximum manifest age in seconds")

    snap = sub.add_parser("snapshot", help="Crawl and write a fresh cache manifest")
    snap.add_argument("url", nargs="?", help="Gallery URL (default: GALLERY_BASE_URL)")
    snap.add_argument("--version", default=MANIFEST_VERSION, help="Manifest version string")

    sign = sub.add_parser("sign", help="Mint a signed proxy URL")
    sign.add_argument("operation", choices=sorted(OPERATIONS))
    sign.add_argument("--field", dest="fields", type=_field, action="append", default=[],
                      metavar="KEY=VALUE", help="Operation field (repeatable)")
    sign.add_argument("--ttl", type=int, help="Token lifetime in seconds")

    listing = sub.add_parser("list", help="Scan through the signed JSON listing endpoint")
    listing.add_argument("folder", nargs="?", default="", help="Folder path (default: root)")
    listing.add_argument("--protect", dest="protect_urls", action="store_true", default=None,
                         help="Sign every image URL (default: FILE_PROTECTION_ENABLED)")

    clear = sub.add_parser("clear-cache", help="Drop a cached gallery tree")
    clear.add_argument("folder", nargs="?", default="", help="Folder key (default: root)")
    clear.add_argument("--group", help="Cache namespace (group id)")

    return parser.parse_args(argv)


def _emit(data: dict) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def run(args: argparse.Namespace) -> int:
    settings = load_settings()
    overrides = {}
    if getattr(args, "depth", None) is not None:
        overrides["max_depth"] = args.depth
    if getattr(args, "workers", None) is not None:
        overrides["workers"] = args.workers
    if overrides:
        settings = replace(settings, **overrides)

    service = GalleryService.from_settings(
        settings,
        verify_ssl=args.verify_ssl,
        progress=getattr(args, "progress", False),
    )
    try:
        if args.command == "scan":
            result = service.scan(args.url, group_id=args.group, use_cache=args.use_cache)
            _emit(result.to_dict())
        elif args.command == "status":
            _emit(service.cache_status(args.max_age))
        elif args.command == "snapshot":
            manifest = service.snapshot(args.url, version=args.version)
            _emit(manifest.to_dict())
        elif args.command == "list":
            result = service.scan_listing(args.folder, protect_urls=args.protect_urls)
            _emit(result.to_dict())
        elif args.command == "sign":
            signed = service.signer.sign(args.operation, dict(args.fields), ttl=args.ttl)
            _emit(signed.to_dict())
        elif args.command == "clear-cache":
            if not service.cache.is_available():
                log.warning("[CACHE] No cache backend configured – nothing to clear")
            service.clear_cache(args.folder, group_id=args.group)
    except ValidationError as exc:
        log.error("[DENY] %s", exc.reason)
        _emit({"error": exc.reason})
        return 2
    except RemoteUnavailableError as exc:
        log.error("[ERR] %s", exc.reason)
        _emit({"error": exc.reason})
        return 1
    except GalleryError as exc:
        log.error("[ERR] %s", exc.reason)
        return 1
    except ValueError as exc:
        log.error("[ERR] %s", exc)
        return 2
    finally:
        service.close()
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_file=args.log_file)
    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    if not args.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (--no-verify-ssl)")

    if not _COLORLOG_AVAILABLE:
        log.debug("Tip: install colorlog for colored output   (pip install colorlog)")

    t0 = time.monotonic()
    code = run(args)
    log.debug("Total elapsed time: %.1f s", time.monotonic() - t0)
    sys.exit(code)


if __name__ == "__main__":
    main()
