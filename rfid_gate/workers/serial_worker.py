# =======================================================================================
# rfid_gate/workers/serial_worker.py - Background Serial Worker (one per reader)
# =======================================================================================
import logging
import threading
from typing import Callable, Optional
import serial
from ..models.schemas import ChannelSpec
from ..services.dispatcher import ChannelDispatcher, ChannelSink
from ..utils.exceptions import ChannelWriteError, PortOpenError

logger = logging.getLogger(__name__)


class SerialWorker(ChannelSink):
    """Reads newline-delimited scans from one reader port and writes its responses."""

    def __init__(
        self,
        spec: ChannelSpec,
        baud: int = 9600,
        timeout: float = 1,
        reconnect_delay: float = 3,
        serial_factory: Callable[..., "serial.Serial"] = serial.Serial,
    ):
        self.spec = spec
        self.baud = baud
        self.timeout = timeout
        self.reconnect_delay = reconnect_delay
        self._serial_factory = serial_factory
        self._port: Optional["serial.Serial"] = None
        self._write_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.dispatcher: Optional[ChannelDispatcher] = None

    @property
    def connected(self) -> bool:
        return self._port is not None

    def attach(self, dispatcher: ChannelDispatcher) -> None:
        self.dispatcher = dispatcher

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Start the read loop in a background thread."""
        if self.dispatcher is None:
            raise RuntimeError(f"No dispatcher attached to {self.spec.name}")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, name=f"serial-{self.spec.name}", daemon=True)
        self._thread.start()
        logger.info("[serial] Worker started for %s (%s)", self.spec.name, self.spec.port)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout if timeout is not None else self.timeout + 1)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self._handle_serial_connection()
            except PortOpenError as e:
                logger.error("[serial] %s - retrying in %ss", e, self.reconnect_delay)
            except (serial.SerialException, OSError) as e:
                logger.error("[serial] Connection error on %s: %s - retrying in %ss",
                             self.spec.name, e, self.reconnect_delay)
            finally:
                self._port = None
            self._stop.wait(self.reconnect_delay)

    def open_port(self) -> "serial.Serial":
        logger.info("[serial] Opening %s @ %s for %s", self.spec.port, self.baud, self.spec.name)
        try:
            return self._serial_factory(self.spec.port, self.baud, timeout=self.timeout)
        except (serial.SerialException, OSError, ValueError) as e:
            raise PortOpenError(f"Failed to open {self.spec.port} for {self.spec.name}: {e}") from e

    def _handle_serial_connection(self) -> None:
        with self.open_port() as ser:
            self._port = ser
            logger.info("[serial] Port open for %s", self.spec.name)
            while not self._stop.is_set():
                line = ser.readline().decode(errors="ignore").strip()
                if not line:
                    continue
                logger.debug("[serial] Received %r on %s", line, self.spec.name)
                self.dispatcher.on_scan(line)

    # ------------------------------------------------------------------
    # ChannelSink
    # ------------------------------------------------------------------
    def write_line(self, text: str) -> None:
        port = self._port
        if port is None:
            raise ChannelWriteError(f"Port {self.spec.port} for {self.spec.name} is not open")
        with self._write_lock:
            try:
                port.write(f"{text}\n".encode("ascii", errors="replace"))
            except (serial.SerialException, OSError) as e:
                raise ChannelWriteError(f"Write to {self.spec.port} failed: {e}") from e
