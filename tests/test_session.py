import io
import signal
import threading
import unittest
from unittest import mock

from serialtool.errors import ReadError, WriteError
from serialtool.session import (
    DuplexSession,
    SessionState,
    install_signal_handlers,
    restore_signal_handlers,
)


class LoopbackTransport:
    """Echo every written byte back on the next read."""

    def __init__(self) -> None:
        self.pending = bytearray()
        self.written = []
        self.is_open = True

    def read(self, max_len: int) -> bytes:
        data = bytes(self.pending[:max_len])
        del self.pending[:max_len]
        return data

    def write(self, data: bytes) -> int:
        self.written.append(data)
        self.pending.extend(data)
        return len(data)

    def close(self) -> None:
        self.is_open = False


class ScriptedConsole:
    """Replay a fixed list of poll results, then report end of input."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.timeouts = []

    def readline(self, timeout: float):
        self.timeouts.append(timeout)
        if not self.results:
            return ""
        return self.results.pop(0)


@mock.patch("serialtool.session.time.sleep")
class DuplexSessionTests(unittest.TestCase):
    def make_session(self, transport, console, **kwargs) -> DuplexSession:
        self.output = io.StringIO()
        return DuplexSession(transport, console, output=self.output, **kwargs)

    def test_hex_command_is_echoed_back_as_text(self, _sleep) -> None:
        transport = LoopbackTransport()
        session = self.make_session(transport, ScriptedConsole(":hex 41\n", None, ":quit\n"))

        session.run()

        self.assertEqual(transport.written, [b"A"])
        text = self.output.getvalue()
        self.assertIn("Sent 1 bytes (hex)", text)
        self.assertIn("Received (1 bytes): 'A'", text)
        self.assertLess(text.index("Sent 1 bytes"), text.index("Received (1 bytes)"))
        self.assertIs(session.state, SessionState.TERMINATED)

    def test_text_line_reports_sent_count(self, _sleep) -> None:
        transport = LoopbackTransport()
        session = self.make_session(transport, ScriptedConsole("hello\n", ":quit\n"))

        session.run()

        self.assertEqual(transport.written, [b"hello"])
        self.assertIn("Sent 5 bytes: 'hello'", self.output.getvalue())

    def test_binary_echo_is_rendered_as_hex_dump(self, _sleep) -> None:
        transport = LoopbackTransport()
        session = self.make_session(
            transport, ScriptedConsole(":hex 00 01 FF\n", None, ":quit\n")
        )

        session.run()

        self.assertIn("Received (3 bytes):\n00 01 FF \n", self.output.getvalue())

    def test_quit_ignores_pending_device_data(self, _sleep) -> None:
        transport = LoopbackTransport()
        transport.pending.extend(b"unread data")
        session = self.make_session(transport, ScriptedConsole(":quit\n"), read_size=2)

        self.assertFalse(session.poll_once())

        self.assertIs(session.state, SessionState.TERMINATED)
        self.assertEqual(bytes(transport.pending), b"read data")
        self.assertFalse(session.poll_once())

    def test_end_of_input_terminates(self, _sleep) -> None:
        session = self.make_session(LoopbackTransport(), ScriptedConsole(None, None))

        session.run()

        self.assertIs(session.state, SessionState.TERMINATED)
        self.assertEqual(len(session.console.timeouts), 3)

    def test_shutdown_flag_stops_before_polling(self, _sleep) -> None:
        shutdown = threading.Event()
        shutdown.set()
        console = ScriptedConsole("hello\n")
        transport = LoopbackTransport()
        session = self.make_session(transport, console, shutdown=shutdown)

        session.run()

        self.assertEqual(console.timeouts, [])
        self.assertEqual(transport.written, [])
        self.assertIn("Shutting down...", self.output.getvalue())

    def test_empty_lines_are_ignored(self, _sleep) -> None:
        transport = LoopbackTransport()
        session = self.make_session(transport, ScriptedConsole("\n", "\r\n", ":quit\n"))

        session.run()

        self.assertEqual(transport.written, [])
        self.assertNotIn("Sent", self.output.getvalue())

    def test_invalid_hex_sends_nothing(self, _sleep) -> None:
        transport = LoopbackTransport()
        session = self.make_session(transport, ScriptedConsole(":hex zz\n", ":quit\n"))

        session.run()

        self.assertEqual(transport.written, [])
        self.assertIn("No valid hex data to send", self.output.getvalue())

    def test_idle_iteration_sleeps(self, mock_sleep) -> None:
        session = self.make_session(
            LoopbackTransport(), ScriptedConsole(None), idle_sleep=0.02
        )

        self.assertTrue(session.poll_once())

        mock_sleep.assert_called_once_with(0.02)

    def test_read_error_is_reported_and_loop_continues(self, _sleep) -> None:
        transport = LoopbackTransport()
        transport.read = mock.Mock(
            side_effect=[ReadError("COM3", "device disconnected"), b"", b""]
        )
        session = self.make_session(transport, ScriptedConsole(None, "hi\n", ":quit\n"))

        session.run()

        text = self.output.getvalue()
        self.assertIn("Read error: device disconnected", text)
        self.assertIn("Sent 2 bytes: 'hi'", text)

    def test_write_error_is_reported_and_loop_continues(self, _sleep) -> None:
        transport = LoopbackTransport()
        transport.write = mock.Mock(
            side_effect=[WriteError("COM3", "write timed out"), 3]
        )
        session = self.make_session(
            transport, ScriptedConsole("one\n", "two\n", ":quit\n")
        )

        session.run()

        text = self.output.getvalue()
        self.assertIn("Write error: write timed out", text)
        self.assertIn("Sent 3 bytes: 'two'", text)
        self.assertEqual(transport.write.call_count, 2)

    def test_partial_write_reports_accepted_count(self, _sleep) -> None:
        transport = LoopbackTransport()
        transport.write = mock.Mock(return_value=2)
        session = self.make_session(transport, ScriptedConsole("hello\n", ":quit\n"))

        session.run()

        self.assertIn("Sent 2 bytes: 'hello'", self.output.getvalue())


class SignalHandlerTests(unittest.TestCase):
    def test_interrupt_sets_shutdown_flag_and_restores(self) -> None:
        original = signal.getsignal(signal.SIGINT)
        shutdown = threading.Event()
        previous = install_signal_handlers(shutdown)
        try:
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)
            self.assertTrue(shutdown.is_set())
        finally:
            restore_signal_handlers(previous)
        self.assertIs(signal.getsignal(signal.SIGINT), original)

    @unittest.skipUnless(hasattr(signal, "SIGTERM"), "SIGTERM not available")
    def test_termination_request_sets_shutdown_flag_and_restores(self) -> None:
        original = signal.getsignal(signal.SIGTERM)
        shutdown = threading.Event()
        previous = install_signal_handlers(shutdown)
        try:
            self.assertIn(signal.SIGTERM, previous)
            handler = signal.getsignal(signal.SIGTERM)
            handler(signal.SIGTERM, None)
            self.assertTrue(shutdown.is_set())
        finally:
            restore_signal_handlers(previous)
        self.assertEqual(signal.getsignal(signal.SIGTERM), original)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
