"""
Unit tests for the virtual journal and its socket client.
"""

import socket
from datetime import datetime
from unittest.mock import Mock, patch

from pos_register.services.journal_client import JournalClientConfig, JournalSocketClient
from pos_register.services.journal_service import JournalReplicator, truncate

FIXED_NOW = datetime(2026, 3, 14, 9, 26, 53)


def remote_config(**overrides):
    values = dict(server_host='journal.local', server_port=9090, connect_timeout=0.5,
                  retry_attempts=3, retry_delay=2.0, enabled=True)
    values.update(overrides)
    return JournalClientConfig(**values)


def read_lines(path):
    return path.read_text(encoding='utf-8').splitlines()


class TestJournalSocketClient:
    """Tests for connection retries and sending."""

    @patch('pos_register.services.journal_client.socket.create_connection')
    def test_retries_then_gives_up(self, mock_connect):
        """Three refused attempts, two sleeps between them, then local-only."""
        mock_connect.side_effect = ConnectionRefusedError('refused')
        sleep = Mock()
        client = JournalSocketClient(remote_config(), sleep=sleep)

        assert client.connect() is False

        assert mock_connect.call_count == 3
        mock_connect.assert_called_with(('journal.local', 9090), timeout=0.5)
        assert sleep.call_count == 2
        sleep.assert_called_with(2.0)
        assert client.attempts == 3
        assert not client.is_connected()

    @patch('pos_register.services.journal_client.socket.create_connection')
    def test_connects_on_second_attempt(self, mock_connect):
        sock = Mock()
        mock_connect.side_effect = [socket.timeout('timed out'), sock]
        sleep = Mock()
        client = JournalSocketClient(remote_config(), sleep=sleep)

        assert client.connect() is True

        assert client.attempts == 2
        assert sleep.call_count == 1
        sock.settimeout.assert_called_once_with(300.0)
        assert client.is_connected()

    @patch('pos_register.services.journal_client.socket.create_connection')
    def test_disabled_never_connects(self, mock_connect):
        client = JournalSocketClient(remote_config(enabled=False))

        assert client.connect() is False
        mock_connect.assert_not_called()

    @patch('pos_register.services.journal_client.socket.create_connection')
    def test_send_failure_drops_connection(self, mock_connect):
        sock = Mock()
        sock.sendall.side_effect = BrokenPipeError('broken pipe')
        mock_connect.return_value = sock
        client = JournalSocketClient(remote_config())
        client.connect()

        assert client.send_line('hello') is False

        assert not client.is_connected()
        sock.close.assert_called_once()
        assert client.send_line('again') is False
        assert sock.sendall.call_count == 1

    @patch('pos_register.services.journal_client.socket.create_connection')
    def test_send_line_is_newline_terminated_utf8(self, mock_connect):
        sock = Mock()
        mock_connect.return_value = sock
        client = JournalSocketClient(remote_config())
        client.connect()

        assert client.send_line('CAFÉ $3.00') is True

        sock.sendall.assert_called_once_with('CAFÉ $3.00\n'.encode('utf-8'))


class TestJournalReplicator:
    """Tests for local journaling and mirroring."""

    def test_local_only_writes_every_event(self, journal_path):
        journal = JournalReplicator(str(journal_path), clock=lambda: FIXED_NOW)
        journal.log_transaction_start(7)
        journal.log_item('SKU1', 'Test Product', '10.00')
        journal.log_subtotal('20.00')
        journal.log_tax('1.40')
        journal.log_total('21.40')
        journal.log_payment('CASH', '25.00', '3.60')
        journal.log_transaction_complete(7)
        journal.close()

        text = journal_path.read_text(encoding='utf-8')
        assert 'TRANSACTION #7 - 2026-03-14 09:26:53' in text
        assert 'SKU1' in text and 'Test Product' in text
        assert 'SUBTOTAL: $20.00' in text
        assert 'TAX (7%): $1.40' in text
        assert 'TOTAL: $21.40' in text
        assert 'PAYMENT TYPE: CASH' in text
        assert 'AMOUNT TENDERED: $25.00' in text
        assert 'CHANGE: $3.60' in text
        assert 'TRANSACTION #7 COMPLETED' in text

    def test_zero_discount_and_zero_change_are_omitted(self, journal_path):
        journal = JournalReplicator(str(journal_path))
        journal.log_discount('0.00', ['nothing'])
        journal.log_payment('CREDIT', '21.40', '0.00')
        journal.close()

        text = journal_path.read_text(encoding='utf-8')
        assert 'DISCOUNT' not in text
        assert 'CHANGE' not in text
        assert 'PAYMENT TYPE: CREDIT' in text

    def test_discount_lists_applied_labels(self, journal_path):
        journal = JournalReplicator(str(journal_path))
        journal.log_discount('2.25', ['10% off orders over $20'])
        journal.close()

        lines = read_lines(journal_path)
        assert lines[0].endswith('DISCOUNT: -$2.25')
        assert lines[1].strip() == '10% off orders over $20'

    def test_void_and_suspend_lines(self, journal_path):
        journal = JournalReplicator(str(journal_path), clock=lambda: FIXED_NOW)
        journal.log_void_item('SKU2', 'Soda', 2)
        journal.log_quantity_change('SKU1', 'Test Product', 1, 4)
        journal.log_suspend_transaction(3)
        journal.log_resume_transaction(3)
        journal.log_void_transaction(3, 'Customer left')

        text = journal_path.read_text(encoding='utf-8')
        assert '*** VOID ITEM: SKU2 Soda QTY: 2 ***' in text
        assert '*** QTY CHANGE: SKU1 Test Product FROM 1 TO 4 ***' in text
        assert '*** TRANSACTION #3 SUSPENDED ***' in text
        assert '*** TRANSACTION #3 RESUMED ***' in text
        assert '*** REASON: Customer left ***' in text
        journal.close()

    def test_mirrors_lines_when_connected(self, journal_path):
        client = Mock()
        client.config = remote_config()
        client.is_connected.return_value = True
        journal = JournalReplicator(str(journal_path), client=client)

        journal.log_void_item('SKU2', 'Soda', 1)

        client.connect.assert_not_called()
        client.send_line.assert_called_once_with('*** VOID ITEM: SKU2 Soda QTY: 1 ***')
        journal.close()
        client.disconnect.assert_called_once()

    @patch('pos_register.services.journal_client.socket.create_connection')
    def test_unreachable_server_keeps_local_log(self, mock_connect, journal_path):
        """Connection failure at startup leaves the local journal complete."""
        mock_connect.side_effect = OSError('no route to host')
        sleep = Mock()
        client = JournalSocketClient(remote_config(), sleep=sleep)
        journal = JournalReplicator(str(journal_path), client=client)

        journal.log_transaction_start(1)
        journal.log_item('SKU1', 'Test Product', '10.00')
        journal.log_transaction_complete(1)
        journal.close()

        assert mock_connect.call_count == 3
        assert sleep.call_count == 2
        assert not journal.is_connected()
        text = journal_path.read_text(encoding='utf-8')
        assert 'TRANSACTION #1 -' in text
        assert 'TRANSACTION #1 COMPLETED' in text

    def test_unwritable_path_does_not_raise(self, tmp_path):
        journal = JournalReplicator(str(tmp_path / 'missing' / 'journal.txt'))
        journal.log_transaction_start(1)
        journal.close()


def test_truncate_long_names():
    assert truncate('Extra Large Family Size Potato Chips') == 'Extra Large Family Size Pot...'
    assert truncate('Soda') == 'Soda'
