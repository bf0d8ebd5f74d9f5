"""
Listener HTTP Server for episodes.

Exposes a MirrorListener's tables over HTTP for dashboards, scrapers and
quick inspection.

Endpoints:
    GET /health                     - Basic health check (200 OK if running)
    GET /status                     - JSON tables and listener counters
    GET /timeline?width=800&margin=40&marks=1
                                    - JSON timeline geometry
    GET /metrics                    - Prometheus-compatible metrics

Usage:
    from episodes.output.listener_server import ListenerServer

    server = ListenerServer(port=8080)
    server.set_listener(mirror)
    server.start()
"""

import json
import logging
import threading
import time
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qs, urlparse

from ..timeline.layout import DEFAULT_MARGIN_PX, layout_episodes

logger = logging.getLogger(__name__)

DEFAULT_TIMELINE_WIDTH = 800


class ListenerRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for listener endpoints."""

    # Class-level reference to status callback
    get_status: Optional[Callable[[], Dict[str, Any]]] = None
    listener = None

    def log_message(self, format, *args):
        """Suppress default HTTP logging."""
        pass

    def do_GET(self):
        """Handle GET requests."""
        parsed = urlparse(self.path)
        query = parse_qs(parsed.query)

        if parsed.path == '/health':
            self._handle_health()
        elif parsed.path == '/status':
            self._handle_status()
        elif parsed.path == '/timeline':
            self._handle_timeline(query)
        elif parsed.path == '/metrics':
            self._handle_metrics()
        else:
            self.send_error(404, "Not Found")

    def _send_json(self, data: Any, status: int = 200):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(data, indent=2).encode())

    def _handle_health(self):
        """Basic health check - returns 200 if server is running."""
        self.send_response(200)
        self.send_header('Content-Type', 'text/plain')
        self.end_headers()
        self.wfile.write(b'OK\n')

    def _handle_status(self):
        """Return JSON tables and counters."""
        if self.get_status:
            try:
                self._send_json(self.get_status())
            except Exception as e:
                self._send_json({'error': str(e)}, status=500)
        else:
            self._send_json({'error': 'No listener connected'}, status=503)

    def _handle_timeline(self, query: Dict[str, list]):
        """Return timeline bars for the mirrored tables."""
        if self.listener is None:
            self._send_json({'error': 'No listener connected'}, status=503)
            return
        try:
            width = float(query.get('width', [DEFAULT_TIMELINE_WIDTH])[0])
            margin = int(query.get('margin', [DEFAULT_MARGIN_PX])[0])
            include_marks = query.get('marks', ['1'])[0] not in ('0', 'false', 'no')
        except ValueError as e:
            self._send_json({'error': f'Bad query: {e}'}, status=400)
            return

        bars = layout_episodes(self.listener.snapshot(), width, margin, include_marks)
        self._send_json({
            'width': width,
            'margin': margin,
            'bars': [bar.to_dict() for bar in bars],
        })

    def _handle_metrics(self):
        """Return Prometheus-compatible metrics."""
        if self.get_status:
            try:
                status = self.get_status()
                metrics = self._format_prometheus_metrics(status)
                self.send_response(200)
                self.send_header('Content-Type', 'text/plain; version=0.0.4')
                self.end_headers()
                self.wfile.write(metrics.encode())
            except Exception as e:
                self.send_response(500)
                self.send_header('Content-Type', 'text/plain')
                self.end_headers()
                self.wfile.write(f'# Error: {e}\n'.encode())
        else:
            self.send_response(503)
            self.send_header('Content-Type', 'text/plain')
            self.end_headers()
            self.wfile.write(b'# No listener connected\n')

    def _format_prometheus_metrics(self, status: Dict[str, Any]) -> str:
        """Format status as Prometheus metrics."""
        lines = [
            '# HELP episodes_marks Number of mirrored marks',
            '# TYPE episodes_marks gauge',
            f'episodes_marks {len(status.get("marks", {}))}',
            '',
            '# HELP episodes_episodes Number of mirrored episodes',
            '# TYPE episodes_episodes gauge',
            f'episodes_episodes {len(status.get("measures", {}))}',
            '',
            '# HELP episodes_messages_applied_total Protocol messages applied',
            '# TYPE episodes_messages_applied_total counter',
            f'episodes_messages_applied_total {status.get("messages_applied", 0)}',
            '',
            '# HELP episodes_errors_total Protocol messages dropped as malformed',
            '# TYPE episodes_errors_total counter',
            f'episodes_errors_total {status.get("errors", 0)}',
            '',
            '# HELP episodes_done_total Done messages received',
            '# TYPE episodes_done_total counter',
            f'episodes_done_total {status.get("done_count", 0)}',
        ]

        measures = status.get('measures', {})
        if measures:
            lines.extend([
                '',
                '# HELP episodes_episode_duration_ms Episode duration in milliseconds',
                '# TYPE episodes_episode_duration_ms gauge',
            ])
            for name, duration in measures.items():
                safe_name = name.replace('\\', '\\\\').replace('"', '\\"')
                lines.append(f'episodes_episode_duration_ms{{episode="{safe_name}"}} {duration}')

        lines.append('')
        return '\n'.join(lines)


class ListenerServer:
    """
    HTTP server for a mirror listener.

    Runs in a background thread; each request reads a snapshot copy of the
    mirror's tables.
    """

    def __init__(self, port: int = 8080, bind_address: str = '0.0.0.0'):
        """
        Initialize the listener server.

        Args:
            port: HTTP port to listen on
            bind_address: Address to bind to (default: all interfaces)
        """
        self.port = port
        self.bind_address = bind_address
        self.server: Optional[HTTPServer] = None
        self.thread: Optional[threading.Thread] = None
        self.listener = None
        self._running = False

    def set_listener(self, listener):
        """
        Connect to a MirrorListener for status reporting.

        Args:
            listener: MirrorListener instance
        """
        self.listener = listener
        ListenerRequestHandler.listener = listener
        ListenerRequestHandler.get_status = self._get_status

    def _get_status(self) -> Dict[str, Any]:
        """Get current tables and counters from the listener."""
        if not self.listener:
            return {'error': 'No listener connected'}

        data = self.listener.snapshot()
        status = {
            'timestamp': time.time(),
            'marks': data.marks,
            'starts': data.starts,
            'measures': data.measures,
        }
        status.update(self.listener.stats)
        return status

    def start(self):
        """Start the server in a background thread."""
        if self._running:
            logger.warning("Listener server already running")
            return

        try:
            self.server = HTTPServer(
                (self.bind_address, self.port),
                ListenerRequestHandler
            )
            # Set timeout so handle_request doesn't block forever
            self.server.timeout = 1.0
            self._running = True

            self.thread = threading.Thread(
                target=self._serve,
                name="ListenerServer",
                daemon=True
            )
            self.thread.start()

            logger.info(f"Listener server started on http://{self.bind_address}:{self.port}")
            logger.info("  GET /health   - Health check")
            logger.info("  GET /status   - JSON tables")
            logger.info("  GET /timeline - Timeline geometry")
            logger.info("  GET /metrics  - Prometheus metrics")

        except OSError as e:
            logger.error(f"Failed to start listener server: {e}")
            self._running = False

    def _serve(self):
        """Server loop (runs in background thread)."""
        while self._running:
            try:
                self.server.handle_request()
            except Exception as e:
                if self._running:
                    logger.debug(f"Request handling error: {e}")

    def stop(self):
        """Stop the server."""
        self._running = False
        if self.thread:
            self.thread.join(timeout=2.0)
        if self.server:
            self.server.server_close()
            self.server = None
        logger.info("Listener server stopped")
