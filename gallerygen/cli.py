"""
Command Line Interface for gallery image builds.
"""

import argparse
import json
import logging
from typing import List, Optional

import urllib3

from .build_progress import BuildProgress
from .catalog import load_catalog
from .content_client import ContentClient
from .image_sources import DEFAULT_SIZES, DIRECTIONS, FORWARD
from .local_client import LocalClient, LocalConfig
from .manifest import DEFAULT_MANIFEST_PATH, ImageManifest
from .manifest_builder import ManifestBuilder
from .prismic_config import PrismicConfig
from .reporter import Reporter
from .s3_client import S3Client
from .s3_config import S3Config
from .variant_generator import VariantGenerator


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('gallerygen')


def get_prismic_config(args: argparse.Namespace, logger: logging.Logger) -> PrismicConfig:
    """Resolve content API configuration, then apply CLI overrides."""
    config = PrismicConfig.resolve(getattr(args, 'project_dir', None) or '.', logger)

    if getattr(args, 'endpoint', None):
        config.api_endpoint = args.endpoint
    if getattr(args, 'access_token', None):
        config.access_token = args.access_token

    return config


def get_s3_config(args: argparse.Namespace) -> S3Config:
    """Get S3 configuration from environment and CLI overrides."""
    config = S3Config.from_env()

    if getattr(args, 's3_endpoint', None):
        config.endpoint = args.s3_endpoint
    if getattr(args, 's3_bucket', None):
        config.bucket = args.s3_bucket
    if getattr(args, 's3_prefix', None):
        config.prefix = args.s3_prefix
    if getattr(args, 's3_access_key', None):
        config.access_key = args.s3_access_key
    if getattr(args, 's3_secret_key', None):
        config.secret_key = args.s3_secret_key
    if getattr(args, 's3_public_url', None):
        config.public_base_url = args.s3_public_url

    return config


def get_local_config(args: argparse.Namespace) -> LocalConfig:
    """Get local configuration from CLI arguments."""
    defaults = LocalConfig()
    return LocalConfig(
        root_path=getattr(args, 'output_root', None) or defaults.root_path,
        url_prefix=getattr(args, 'url_prefix', None) or defaults.url_prefix,
    )


def get_storage_client(args: argparse.Namespace, logger: logging.Logger):
    """
    Get the derivative storage client selected by the arguments.

    Raises:
        ValueError: If the storage configuration is invalid
    """
    if getattr(args, 'storage', 'local') == 's3':
        config = get_s3_config(args)
        errors = config.validate()
        if errors:
            for error in errors:
                logger.error(error)
            raise ValueError("S3 configuration invalid")
        if not config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        return S3Client(config, logger)

    config = get_local_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        raise ValueError("Local configuration invalid")
    return LocalClient(config, logger)


def add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    """Add storage configuration arguments to a parser."""
    parser.add_argument('--storage', choices=['local', 's3'], default='local',
                        help='Where variant files are written (default: local)')

    local_group = parser.add_argument_group('Local Storage')
    local_group.add_argument('--output-root', metavar='PATH',
                             help='Output root for variant files (default: public/i)')
    local_group.add_argument('--url-prefix', metavar='PREFIX',
                             help='Public URL prefix of the output root (default: /i)')

    s3_group = parser.add_argument_group('S3 Storage')
    s3_group.add_argument('--s3-endpoint', help='Override S3_ENDPOINT')
    s3_group.add_argument('--s3-bucket', help='Override S3_BUCKET')
    s3_group.add_argument('--s3-prefix', help='Override S3_PREFIX')
    s3_group.add_argument('--s3-access-key', help='Override S3_ACCESS_KEY')
    s3_group.add_argument('--s3-secret-key', help='Override S3_SECRET_KEY')
    s3_group.add_argument('--s3-public-url', help='Override S3_PUBLIC_BASE_URL')


def cmd_build(args: argparse.Namespace) -> int:
    """Execute build command."""
    logger = setup_logging(args.verbose)

    prismic_config = get_prismic_config(args, logger)
    errors = prismic_config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    try:
        storage = get_storage_client(args, logger)
    except ValueError:
        return 1

    logger.info(f"Content API: {prismic_config.api_endpoint}")
    logger.info(f"Storage: {storage.describe()}")
    logger.info(f"Manifest: {args.manifest}")

    if args.limit:
        logger.info(f"Test mode: limiting to {args.limit} images")

    if args.show_files:
        logger.info("Show-files mode: will print each image")

    try:
        builder = ManifestBuilder(
            content_client=ContentClient(prismic_config, logger=logger),
            storage=storage,
            variant_generator=VariantGenerator(logger=logger),
            dry_run=args.dry_run,
            logger=logger
        )

        progress = None
        if not args.quiet:
            progress = BuildProgress(
                show_files=args.show_files,
                logger=logger
            )

        manifest = builder.build_and_save(
            args.manifest,
            progress=progress,
            limit=args.limit
        )

        if not args.quiet:
            print()
            reporter = Reporter()
            reporter.report_build(builder.stats, dry_run=args.dry_run)
            if not args.dry_run and not args.show_files:
                reporter.report_summary(manifest)

        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Build failed: {e}")
        return 1


def cmd_report(args: argparse.Namespace) -> int:
    """Execute report command."""
    logger = setup_logging(args.verbose)

    try:
        manifest = ImageManifest.load(args.manifest)
    except FileNotFoundError:
        logger.error(f"Manifest not found: {args.manifest}")
        return 1
    except ValueError as e:
        logger.error(f"Failed to load manifest: {e}")
        return 1

    reporter = Reporter()
    collections = args.collection or None

    if args.type == 'summary':
        reporter.report_summary(manifest)
    elif args.type == 'detailed':
        reporter.report_detailed(manifest, collections)
    elif args.type == 'images':
        reporter.report_images(manifest, collections, limit=args.limit)

    return 0


def cmd_sources(args: argparse.Namespace) -> int:
    """Execute sources command: resolve responsive sources for one image."""
    logger = setup_logging(args.verbose)

    try:
        catalog = load_catalog(args.manifest, logger)
    except FileNotFoundError:
        logger.error(f"Manifest not found: {args.manifest}")
        return 1
    except ValueError as e:
        logger.error(f"Failed to load manifest: {e}")
        return 1

    source = catalog.get_image_sources(
        args.collection,
        args.image,
        sizes=args.sizes,
        direction=args.direction,
        loop=args.loop,
        prefer_largest=args.largest,
    )
    if source is None:
        logger.error(f"No image {args.collection}/{args.image} in {args.manifest}")
        return 1

    if args.json:
        payload = {
            'src': source.src,
            'srcSet': source.src_set,
            'sizes': source.sizes,
            'hash': source.hash,
            'width': source.width,
            'height': source.height,
            'preload': source.preload.to_dict() if source.preload else None,
        }
        print(json.dumps(payload, indent=2))
    else:
        Reporter().report_sources(source)

    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='gallerygen',
        description='Responsive image variants and manifest for the photo gallery',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Workflow:
  1. Build:    python -m gallerygen build
  2. Report:   python -m gallerygen report
  3. Inspect:  python -m gallerygen sources <collection> <image>

Content API:
  Set PRISMIC_API_ENDPOINT or PRISMIC_REPOSITORY_NAME, or run from a project
  with slicemachine.config.json / sm.json.

Testing:
  Use --limit 3 to build only 3 images, --dry-run to write nothing.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Build command
    build_parser = subparsers.add_parser('build', help='Generate variants and write the manifest')
    build_parser.add_argument('-m', '--manifest', default=DEFAULT_MANIFEST_PATH,
                              help=f'Output manifest file (default: {DEFAULT_MANIFEST_PATH})')
    build_parser.add_argument('--project-dir', default='.',
                              help='Directory with slicemachine.config.json / sm.json')
    build_parser.add_argument('--endpoint', help='Override the Prismic API endpoint')
    build_parser.add_argument('--access-token', help='Override PRISMIC_ACCESS_TOKEN')
    build_parser.add_argument('-n', '--dry-run', action='store_true',
                              help='Resolve references only, write nothing')
    build_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    build_parser.add_argument('--show-files', action='store_true',
                              help='Print each image as it is built')
    build_parser.add_argument('--limit', type=int, metavar='N',
                              help='Limit to N images (for testing)')
    build_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_storage_arguments(build_parser)

    # Report command
    report_parser = subparsers.add_parser('report', help='Generate reports from manifest')
    report_parser.add_argument('-m', '--manifest', default=DEFAULT_MANIFEST_PATH, help='Input manifest file')
    report_parser.add_argument('-t', '--type', choices=['summary', 'detailed', 'images'],
                               default='summary', help='Report type')
    report_parser.add_argument('--collection', action='append', help='Collection(s) to include')
    report_parser.add_argument('--limit', type=int, default=100, help='Maximum images to list')
    report_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    # Sources command
    sources_parser = subparsers.add_parser('sources', help='Resolve responsive sources for an image')
    sources_parser.add_argument('collection', help='Collection slug')
    sources_parser.add_argument('image', help='Image slug')
    sources_parser.add_argument('-m', '--manifest', default=DEFAULT_MANIFEST_PATH, help='Input manifest file')
    sources_parser.add_argument('--sizes', default=DEFAULT_SIZES, help='sizes attribute (default: 100vw)')
    sources_parser.add_argument('--direction', choices=DIRECTIONS, default=FORWARD,
                                help='Neighbour to preload')
    sources_parser.add_argument('--loop', action='store_true', help='Wrap around collection ends')
    sources_parser.add_argument('--largest', action='store_true', help='Use the largest variant as src')
    sources_parser.add_argument('--json', action='store_true', help='Print JSON')
    sources_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'build':
        return cmd_build(parsed_args)
    elif parsed_args.command == 'report':
        return cmd_report(parsed_args)
    elif parsed_args.command == 'sources':
        return cmd_sources(parsed_args)

    return 1
