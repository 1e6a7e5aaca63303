"""Plain-text HTTP status server for the Nexus node.

Every GET, whatever the path, is answered with a report made of the node
binary version, the 'systemctl status' output for the node unit and the
tail of its journal. Requests are handled on their own threads, so a slow
status query for one client does not hold up the next.
"""

import logging
import time
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional

from .. import __version__
from ..utils.constants import BIND_RETRY_DELAY, DEFAULT_STATUS_LOG_LINES
from .nexus_client import NexusClient
from .service_manager import ServiceManager

logger = logging.getLogger(__name__)


class StatusReporter:
    """Builds the status report body from read-only queries."""

    def __init__(
        self,
        service_manager: ServiceManager,
        nexus_client: NexusClient,
        service_name: str,
        log_lines: int = DEFAULT_STATUS_LOG_LINES
    ):
        self.service_manager = service_manager
        self.nexus_client = nexus_client
        self.service_name = service_name
        self.log_lines = log_lines

    def build_report(self) -> str:
        """Build the report text.

        Returns:
            Report with version, service status and recent log sections
        """
        timestamp = datetime.now().astimezone().strftime("%a %b %d %H:%M:%S %Z %Y")
        lines = [
            "=== Nexus Network Status ===",
            f"Timestamp: {timestamp}",
            "",
        ]

        version = self.nexus_client.version()
        if version is None:
            lines.append(f"Nexus Binary: Not found at {self.nexus_client.binary}")
        else:
            lines.append(f"Nexus Version: {version}")
        lines.append("")

        lines.append("=== Service Status ===")
        ok, status_text = self.service_manager.get_status_text(self.service_name)
        if status_text.strip():
            lines.append(status_text.rstrip("\n"))
        if not ok:
            lines.append("Service not running")
        lines.append("")

        lines.append("=== Recent Logs ===")
        ok, log_text = self.service_manager.get_service_logs(self.service_name, self.log_lines)
        if ok and log_text.strip():
            lines.append(log_text.rstrip("\n"))
        else:
            lines.append("No logs available")

        return "\n".join(lines) + "\n"


class StatusRequestHandler(BaseHTTPRequestHandler):
    """Answers every request with the current status report."""

    server_version = f"nexus-logserver/{__version__}"
    protocol_version = "HTTP/1.1"
    timeout = 30

    def _send(self, body: bytes, include_body: bool = True):
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        if include_body:
            self.wfile.write(body)
        self.close_connection = True

    def do_GET(self):
        report = self.server.reporter.build_report()
        self._send(report.encode("utf-8"))

    def do_HEAD(self):
        report = self.server.reporter.build_report()
        self._send(report.encode("utf-8"), include_body=False)

    def log_message(self, format, *args):
        logger.info(f"{self.address_string()} - {format % args}")


class StatusHTTPServer(ThreadingHTTPServer):
    """Threading HTTP server carrying the reporter its handlers use."""

    daemon_threads = True

    def __init__(self, server_address, reporter: StatusReporter):
        self.reporter = reporter
        super().__init__(server_address, StatusRequestHandler)


class LogServer:
    """Binds the status server, retrying forever with a fixed delay."""

    def __init__(
        self,
        reporter: StatusReporter,
        port: int,
        host: str = "0.0.0.0",
        retry_delay: float = BIND_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize the log server.

        Args:
            reporter: Builds the response body for each request
            port: TCP port to listen on
            host: Address to bind
            retry_delay: Seconds to wait after a failed bind
            sleep: Sleep function, replaceable in tests
        """
        self.reporter = reporter
        self.port = port
        self.host = host
        self.retry_delay = retry_delay
        self._sleep = sleep
        self.httpd: Optional[StatusHTTPServer] = None

    def bind(self, max_attempts: Optional[int] = None) -> StatusHTTPServer:
        """Create the listening server.

        Args:
            max_attempts: Give up after this many failed binds (None retries forever)

        Returns:
            Bound server

        Raises:
            OSError: The last bind error once max_attempts is exhausted
        """
        attempts = 0
        while True:
            try:
                self.httpd = StatusHTTPServer((self.host, self.port), self.reporter)
                return self.httpd
            except OSError as e:
                attempts += 1
                logger.error(f"Failed to bind to port {self.port}. Port may be in use: {e}")
                if max_attempts is not None and attempts >= max_attempts:
                    raise
                self._sleep(self.retry_delay)

    def serve_forever(self, max_attempts: Optional[int] = None):
        """Bind and serve until shutdown() is called or the process is stopped."""
        httpd = self.bind(max_attempts)
        logger.info(f"Starting Nexus Logserver on port {httpd.server_address[1]}")
        try:
            httpd.serve_forever()
        finally:
            httpd.server_close()
            logger.info("Logserver stopped")

    def shutdown(self):
        """Stop a running serve_forever() from another thread."""
        if self.httpd is not None:
            self.httpd.shutdown()
