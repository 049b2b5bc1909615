"""
Command-line interface for the file browser.
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .lister import list_normalized, normalize_path
from .models import FilesystemError, ServerConfig

logger = logging.getLogger(__name__)


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False):
    """Configure root logging. Verbose mode includes HTTP access lines."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Build the server configuration from parsed 'serve' arguments."""
    return ServerConfig(
        base_path=str(Path(args.directory).resolve()),
        port=args.port,
        download_port=args.download_port,
        domain=args.domain.rstrip('/'),
        host=args.host,
        shutdown_grace=args.grace,
    )


def serve_cmd(config: ServerConfig):
    """Start the browse and download servers."""
    from .web_server import run_servers

    if not Path(config.base_path).is_dir():
        print(f"❌ Directory not found: {config.base_path}")
        sys.exit(1)

    logger.info(
        f"Params: port={config.port} download_port={config.download_port} "
        f"path={config.base_path} domain={config.domain} "
        f"url={config.base_url} download_url={config.download_url}"
    )

    try:
        run_servers(config)
    except KeyboardInterrupt:
        pass
    except OSError as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)


def list_cmd(directory: str, path: str = '/'):
    """Print the listing of one directory."""
    root = str(Path(directory).resolve())
    normalized = normalize_path(path)

    try:
        entries = list_normalized(root, normalized)
    except FilesystemError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    print(f"\n📁 {normalized}")
    print("-" * 40)
    for entry in entries:
        if entry.is_dir:
            print(f"{entry.name}/")
        else:
            print(f"{entry.name:<40} {entry.size_label}")
    print("-" * 40)
    print(f"{len(entries)} entries")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="File Browser - browse and download files over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve a directory (browse on 7005, download on 7006)
  file-browser serve /srv/files --domain http://files.example.com

  # Print a listing without starting a server
  file-browser list /srv/files /photos/
"""
    )

    parser.add_argument(
        '--version', action='version', version=f'file-browser {__version__}'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Start the browse and download servers')
    serve_parser.add_argument('directory', help='Base directory to serve')
    serve_parser.add_argument(
        '--port', '-p', type=int, default=7005,
        help='Browse port (default: 7005)'
    )
    serve_parser.add_argument(
        '--download-port', '-d', type=int, default=7006,
        help='Download port (default: 7006)'
    )
    serve_parser.add_argument(
        '--domain', default='http://127.0.0.1',
        help='Public domain used to build links (default: http://127.0.0.1)'
    )
    serve_parser.add_argument(
        '--host', default='0.0.0.0',
        help='Host to bind to (default: 0.0.0.0)'
    )
    serve_parser.add_argument(
        '--grace', type=float, default=5.0,
        help='Seconds to let in-flight requests finish on shutdown (default: 5)'
    )

    # List command
    list_parser = subparsers.add_parser('list', help='Print a directory listing')
    list_parser.add_argument('directory', help='Base directory')
    list_parser.add_argument('path', nargs='?', default='/', help='Path relative to base (default: /)')

    return parser


def main(argv=None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.verbose)

    if args.command == 'serve':
        serve_cmd(build_config(args))
    elif args.command == 'list':
        list_cmd(args.directory, args.path)


if __name__ == '__main__':
    main()
