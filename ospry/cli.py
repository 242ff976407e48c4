"""
Command Line Interface for the Ospry client.
"""

import argparse
import json
import logging
import os
from typing import List, Optional

import urllib3

from .client import Ospry
from .config import OspryConfig
from .errors import OspryError
from .format_options import FORMATS, FORMAT_ALIASES
from .timestamps import parse_iso8601


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('urllib3').setLevel(logging.WARNING)

    return logging.getLogger('ospry')


def get_config(args: argparse.Namespace) -> OspryConfig:
    """Get configuration from environment and CLI overrides."""
    config = OspryConfig.from_env()

    if getattr(args, 'key', None):
        config.api_key = args.key
    if getattr(args, 'server_url', None):
        config.server_url = args.server_url
    if getattr(args, 'insecure', False):
        config.verify_ssl = False

    return config


def get_client(args: argparse.Namespace, logger: logging.Logger, require_key: bool = True) -> Optional[Ospry]:
    """Build a client, or log the configuration errors and return None."""
    config = get_config(args)
    errors = config.validate(require_key=require_key)
    if errors:
        for error in errors:
            logger.error(error)
        return None

    if not config.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    return Ospry.from_config(config, logger=logger)


def format_options(args: argparse.Namespace) -> dict:
    """Collect format options given on the command line."""
    options = {}
    if args.format is not None:
        options['format'] = args.format
    if args.max_width is not None:
        options['max_width'] = args.max_width
    if args.max_height is not None:
        options['max_height'] = args.max_height
    if args.expire_seconds is not None:
        options['expire_after_seconds'] = args.expire_seconds
    if args.expire_at is not None:
        options['expire_at'] = parse_iso8601(args.expire_at)
    return options


def print_images(images) -> None:
    print(json.dumps([image.to_dict() for image in images], indent=4, sort_keys=True))


def cmd_format_url(args: argparse.Namespace) -> int:
    """Print a formatted (and possibly signed) url."""
    logger = setup_logging(args.verbose)
    try:
        options = format_options(args)
    except OspryError as e:
        logger.error(f"Invalid expiry: {e}")
        return 1
    signing = 'expire_after_seconds' in options or 'expire_at' in options

    client = get_client(args, logger, require_key=signing)
    if client is None:
        return 1

    try:
        print(client.format_url(args.url, options))
    except OspryError as e:
        logger.error(f"Could not format url: {e}")
        return 1
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    """Upload an image file."""
    logger = setup_logging(args.verbose)
    client = get_client(args, logger)
    if client is None:
        return 1

    filename = args.name or os.path.basename(args.file)
    try:
        with open(args.file, 'rb') as f:
            metadata = client.upload(filename, f, is_private=args.private)
    except FileNotFoundError:
        logger.error(f"File not found: {args.file}")
        return 1
    except OspryError as e:
        logger.error(f"Upload failed: {e}")
        return 1

    print_images([metadata])
    return 0


def cmd_download(args: argparse.Namespace) -> int:
    """Download an image to a file."""
    logger = setup_logging(args.verbose)
    try:
        options = format_options(args)
    except OspryError as e:
        logger.error(f"Invalid expiry: {e}")
        return 1
    signing = 'expire_after_seconds' in options or 'expire_at' in options

    client = get_client(args, logger, require_key=signing)
    if client is None:
        return 1

    try:
        with open(args.output, 'wb') as out:
            written = client.download(args.url, out=out, **options)
    except OspryError as e:
        logger.error(f"Download failed: {e}")
        return 1

    logger.info(f"Saved {written:,} bytes to {args.output}")
    return 0


def cmd_images(args: argparse.Namespace) -> int:
    """Run a metadata command (metadata, claim, private, public, delete)."""
    logger = setup_logging(args.verbose)
    client = get_client(args, logger)
    if client is None:
        return 1

    actions = {
        'metadata': client.get_metadata,
        'claim': client.claim,
        'private': client.make_private,
        'public': client.make_public,
        'delete': client.delete,
    }

    try:
        images = actions[args.command](args.ids)
    except OspryError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    if images is not None:
        print_images(images)
    return 0


def cmd_gallery(args: argparse.Namespace) -> int:
    """Run the example gallery application."""
    from .gallery import run_gallery

    logger = setup_logging(args.verbose)
    client = get_client(args, logger)
    if client is None:
        return 1

    try:
        run_gallery(client, host=args.host, port=args.port)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    return 0


def add_client_arguments(parser: argparse.ArgumentParser) -> None:
    """Add connection arguments to a parser."""
    group = parser.add_argument_group('Connection')
    group.add_argument('--key', help='Override OSPRY_SECRET')
    group.add_argument('--server-url', help='Override OSPRY_SERVER_URL')
    group.add_argument('--insecure', action='store_true', help='Do not verify TLS certificates')
    group.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')


def add_format_arguments(parser: argparse.ArgumentParser) -> None:
    """Add format option arguments to a parser."""
    formats = sorted(set(FORMATS) | set(FORMAT_ALIASES))
    group = parser.add_argument_group('Formatting')
    group.add_argument('--format', help=f"Image format ({', '.join(formats)}; '' removes it)")
    group.add_argument('--max-width', type=int, metavar='N', help='Maximum width in pixels (0 removes it)')
    group.add_argument('--max-height', type=int, metavar='N', help='Maximum height in pixels (0 removes it)')
    expiry = group.add_mutually_exclusive_group()
    expiry.add_argument('--expire-seconds', type=float, metavar='S',
                        help='Sign the url, valid for S seconds from now')
    expiry.add_argument('--expire-at', metavar='ISO',
                        help='Sign the url, valid until an ISO-8601 time')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='ospry',
        description='Client for the Ospry image hosting service',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ospry format-url https://ospry.io/i/abc.jpg --max-height 150
  python -m ospry format-url https://ospry.io/i/abc.jpg --expire-seconds 30
  python -m ospry upload cat.jpg --private
  python -m ospry private IMAGE_ID [IMAGE_ID ...]

The secret key is read from OSPRY_SECRET unless --key is given.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    fmt_parser = subparsers.add_parser('format-url', help='Print a formatted or signed image url')
    fmt_parser.add_argument('url', help='Image url')
    add_format_arguments(fmt_parser)
    add_client_arguments(fmt_parser)

    up_parser = subparsers.add_parser('upload', help='Upload an image')
    up_parser.add_argument('file', help='Image file to upload')
    up_parser.add_argument('--name', help='Filename to store (default: file basename)')
    up_parser.add_argument('--private', action='store_true', help='Upload as a private image')
    add_client_arguments(up_parser)

    down_parser = subparsers.add_parser('download', help='Download an image')
    down_parser.add_argument('url', help='Image url')
    down_parser.add_argument('output', help='Output file')
    add_format_arguments(down_parser)
    add_client_arguments(down_parser)

    for name, help_text in (
        ('metadata', 'Show image metadata'),
        ('claim', 'Claim images'),
        ('private', 'Make images private'),
        ('public', 'Make images public'),
        ('delete', 'Delete images'),
    ):
        ids_parser = subparsers.add_parser(name, help=help_text)
        ids_parser.add_argument('ids', nargs='+', metavar='ID', help='Image id(s)')
        add_client_arguments(ids_parser)

    gallery_parser = subparsers.add_parser('gallery', help='Run the example gallery app')
    gallery_parser.add_argument('--host', default='localhost', help='Bind host (default: localhost)')
    gallery_parser.add_argument('--port', type=int, default=3000, help='Bind port (default: 3000)')
    add_client_arguments(gallery_parser)

    return parser


COMMANDS = {
    'format-url': cmd_format_url,
    'upload': cmd_upload,
    'download': cmd_download,
    'metadata': cmd_images,
    'claim': cmd_images,
    'private': cmd_images,
    'public': cmd_images,
    'delete': cmd_images,
    'gallery': cmd_gallery,
}


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    return COMMANDS[parsed_args.command](parsed_args)
