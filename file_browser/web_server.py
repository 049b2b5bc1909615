"""
Web servers for browsing and downloading files.

Two servers share one ServerConfig: the browse server renders directory
listings on ``config.port`` and the download server returns file contents on
``config.download_port``.
"""

import errno
import html
import logging
import os
import signal
import sys
import threading
import time
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import List, Optional

from .lister import list_normalized, normalize_path
from .models import Entry, FilesystemError, ServerConfig

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = ('SIGHUP', 'SIGINT', 'SIGTERM', 'SIGQUIT')

ERROR_MESSAGES = {
    403: "Permission denied",
    404: "Directory not found",
    500: "Cannot read directory",
}


def is_within_root(root: str, relative_path: str) -> bool:
    """Check that root + relative_path does not climb above root."""
    base = Path(os.path.abspath(root))
    target = Path(os.path.abspath(root + '/' + relative_path.lstrip('/')))
    try:
        target.relative_to(base)
    except ValueError:
        return False
    return True


def status_for_error(error: FilesystemError) -> int:
    """Map a filesystem error to an HTTP status code."""
    if error.errno in (errno.ENOENT, errno.ENOTDIR):
        return 404
    if error.errno in (errno.EACCES, errno.EPERM):
        return 403
    return 500


def quote_path(path: str) -> str:
    return urllib.parse.quote(path, safe='/')


def render_listing(path: str, entries: List[Entry], config: ServerConfig) -> str:
    """
    Render a directory listing as an HTML page.

    Args:
        path: Normalized request path, ending with '/'
        entries: Ordered listing for that path
        config: Provides the browse and download base URLs

    Returns:
        Complete HTML document
    """
    back = f"{config.base_url}?path={quote_path(path + '..')}"

    rows = []
    for entry in entries:
        if entry.is_dir:
            href = f"{config.base_url}?path={quote_path(path + entry.name + '/')}"
            rows.append(
                f'<li class="dir"><a href="{html.escape(href)}">{html.escape(entry.name)}/</a></li>'
            )
        else:
            href = f"{config.download_url}{quote_path(path + entry.name)}"
            rows.append(
                f'<li class="file"><a href="{html.escape(href)}">{html.escape(entry.name)}</a>'
                f' <span class="size">{entry.size_label}</span></li>'
            )

    return LISTING_TEMPLATE.format(
        title=html.escape(path),
        back=html.escape(back),
        rows='\n'.join(rows),
    )


def render_error_page(status: int, path: str, message: str) -> str:
    """Render an error page for a failed listing."""
    return ERROR_TEMPLATE.format(
        status=status,
        title=html.escape(path),
        message=html.escape(message),
    )


class FileBrowserHTTPServer(ThreadingHTTPServer):
    """
    Threaded HTTP server that tracks in-flight requests.

    Worker threads are daemons so that shutdown can give up on slow requests
    once the grace period has passed.
    """

    daemon_threads = True
    block_on_close = False

    def __init__(self, server_address, handler_class, config: ServerConfig):
        super().__init__(server_address, handler_class)
        self.config = config
        self._active = 0
        self._idle = threading.Condition()

    @property
    def port(self) -> int:
        return self.server_address[1]

    @property
    def active_requests(self) -> int:
        with self._idle:
            return self._active

    def process_request(self, request, client_address):
        with self._idle:
            self._active += 1
        try:
            super().process_request(request, client_address)
        except Exception:
            self._request_done()
            raise

    def process_request_thread(self, request, client_address):
        try:
            super().process_request_thread(request, client_address)
        finally:
            self._request_done()

    def _request_done(self):
        with self._idle:
            self._active -= 1
            self._idle.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until no request is in flight. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._active == 0, timeout)

    def handle_error(self, request, client_address):
        """Handle errors - suppress broken pipe and connection reset."""
        exc_type, _, _ = sys.exc_info()
        if exc_type in (BrokenPipeError, ConnectionResetError):
            # Client disconnected - silently ignore
            return
        logger.exception(f"Error handling request from {client_address[0]}")


class BaseHandler(BaseHTTPRequestHandler):
    """Shared response helpers."""

    server: FileBrowserHTTPServer

    @property
    def config(self) -> ServerConfig:
        return self.server.config

    def send_html(self, body: str, status: int = 200):
        content = body.encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'text/html; charset=utf-8')
        self.send_header('Content-Length', str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    def log_message(self, format, *args):
        """Route access lines to the logger instead of stderr."""
        logger.debug(f"{self.address_string()} - {format % args}")


class BrowseHandler(BaseHandler):
    """Renders directory listings: GET /?path=<relative path>."""

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path not in ('/', '/index.html'):
            self.send_error(404, "Not found")
            return

        query = urllib.parse.parse_qs(parsed.query)
        path = normalize_path(query.get('path', [''])[0])

        if not is_within_root(self.config.base_path, path):
            logger.warning(f"Refused path outside base: {path}")
            self.send_html(render_error_page(403, path, "Access denied"), 403)
            return

        try:
            entries = list_normalized(self.config.base_path, path)
        except FilesystemError as e:
            status = status_for_error(e)
            logger.warning(f"Listing failed for {path}: {e}")
            self.send_html(render_error_page(status, path, ERROR_MESSAGES[status]), status)
            return

        self.send_html(render_listing(path, entries, self.config))


class DownloadHandler(BaseHandler):
    """Returns file contents: GET /<relative path>."""

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        relative = urllib.parse.unquote(parsed.path)
        root = self.config.base_path

        if not is_within_root(root, relative):
            logger.warning(f"Refused download outside base: {relative}")
            self.send_error(403, "Access denied")
            return

        full_path = Path(root + '/' + relative.lstrip('/'))
        if not full_path.is_file():
            self.send_error(404, "File not found")
            return

        try:
            with open(full_path, 'rb') as f:
                content = f.read()
        except OSError as e:
            logger.warning(f"Download failed for {relative}: {e}")
            self.send_error(403 if isinstance(e, PermissionError) else 500, "Cannot read file")
            return

        try:
            self.send_response(200)
            self.send_header('Content-Type', 'application/octet-stream')
            self.send_header('Content-Length', str(len(content)))
            self.send_header(
                'Content-Disposition',
                f"attachment; filename*=UTF-8''{urllib.parse.quote(full_path.name)}",
            )
            self.end_headers()
            self.wfile.write(content)
        except (BrokenPipeError, ConnectionResetError):
            # Client went away mid-transfer
            pass


def make_servers(config: ServerConfig) -> List[FileBrowserHTTPServer]:
    """Bind the browse and download servers. Nothing is served yet."""
    browse = FileBrowserHTTPServer((config.host, config.port), BrowseHandler, config)
    try:
        download = FileBrowserHTTPServer(
            (config.host, config.download_port), DownloadHandler, config
        )
    except OSError:
        browse.server_close()
        raise
    return [browse, download]


def shutdown_servers(servers: List[FileBrowserHTTPServer], grace: float) -> bool:
    """
    Stop accepting requests, then wait up to grace seconds for in-flight ones.

    Returns:
        True if every server drained within the grace period
    """
    for server in servers:
        server.shutdown()

    deadline = time.monotonic() + grace
    drained = True
    for server in servers:
        remaining = max(0.0, deadline - time.monotonic())
        if not server.wait_idle(remaining):
            logger.warning(
                f"{server.active_requests} request(s) still running on port {server.port}, closing anyway"
            )
            drained = False
        server.server_close()
    return drained


def install_signal_handlers(stop: threading.Event) -> dict:
    """Set stop on any shutdown signal. Returns the previous handlers."""
    previous = {}
    if threading.current_thread() is not threading.main_thread():
        return previous

    def handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}")
        stop.set()

    for name in SHUTDOWN_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        previous[signum] = signal.signal(signum, handler)
    return previous


def run_servers(config: ServerConfig, stop: Optional[threading.Event] = None):
    """
    Run both servers until a shutdown signal arrives or stop is set.

    Args:
        config: Server settings
        stop: Optional event to stop the servers from another thread
    """
    stop = stop or threading.Event()
    servers = make_servers(config)

    threads = []
    for server in servers:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        threads.append(thread)

    logger.info(f"Serving {config.base_path}")
    logger.info(f"Browse:   {config.base_url} (listening on {config.host}:{servers[0].port})")
    logger.info(f"Download: {config.download_url} (listening on {config.host}:{servers[1].port})")

    previous = install_signal_handlers(stop)
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)

        logger.info("Shutdown Server ...")
        shutdown_servers(servers, config.shutdown_grace)
        for thread in threads:
            thread.join()
        logger.info("Server exiting")


LISTING_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, sans-serif; margin: 2em; }}
        ul {{ list-style: none; padding: 0; }}
        li {{ padding: 0.2em 0; }}
        .dir a {{ font-weight: bold; }}
        .size {{ color: #888; font-size: 0.9em; }}
    </style>
</head>
<body>
    <h1>{title}</h1>
    <p><a href="{back}">../</a></p>
    <ul>
{rows}
    </ul>
</body>
</html>'''


ERROR_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{status} - {title}</title>
</head>
<body>
    <h1>{status}</h1>
    <p>{message}</p>
</body>
</html>'''
