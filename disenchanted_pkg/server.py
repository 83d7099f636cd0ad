"""
Local HTTP serving for `disenchanted dev` and `disenchanted preview`.
"""

import functools
import logging
import os
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

logger = logging.getLogger('Disenchanted.server')


class QuietHandler(SimpleHTTPRequestHandler):
    """Static file handler that logs requests at DEBUG and disables caching."""

    def end_headers(self):
        self.send_header('Cache-Control', 'no-store, max-age=0')
        super().end_headers()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(directory, host='127.0.0.1', port=8000):
    handler = functools.partial(QuietHandler, directory=directory)
    return ThreadingHTTPServer((host, port), handler)


def serve(directory, host='127.0.0.1', port=8000):
    """Serve directory until interrupted."""
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Output directory not found: {directory} (run 'disenchanted build' first)")

    server = make_server(directory, host, port)
    logger.info(f"Serving {directory} at http://{host}:{server.server_address[1]}/")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Serving stopped")
    finally:
        server.server_close()


def snapshot(paths):
    """Map every file under paths to its modification time."""
    state = {}
    for base in paths:
        if not base or not os.path.exists(base):
            continue
        if os.path.isfile(base):
            state[base] = os.path.getmtime(base)
            continue
        for root, dirnames, filenames in os.walk(base):
            dirnames[:] = [d for d in dirnames if not d.startswith('.')]
            for filename in filenames:
                path = os.path.join(root, filename)
                try:
                    state[path] = os.path.getmtime(path)
                except OSError:
                    # Removed between listing and stat.
                    continue
    return state


class ChangeWatcher(threading.Thread):
    """Polls watched paths and calls rebuild() whenever something changed."""

    def __init__(self, paths, rebuild, interval=1.0):
        super().__init__(daemon=True)
        self.paths = [p for p in paths if p]
        self.rebuild = rebuild
        self.interval = interval
        self._stop_event = threading.Event()
        self._state = snapshot(self.paths)

    def check(self):
        """Rebuild once if the watched files changed since the last check. Returns True if rebuilt."""
        current = snapshot(self.paths)
        if current == self._state:
            return False
        self._state = current
        logger.info("Rebuilding after content change...")
        try:
            self.rebuild()
        except Exception as e:
            # Keep serving the last good build.
            logger.error(f"Rebuild failed: {e}")
        return True

    def run(self):
        while not self._stop_event.wait(self.interval):
            self.check()

    def stop(self):
        self._stop_event.set()
