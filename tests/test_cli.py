"""Test Flask CLI commands."""
from datetime import datetime, timedelta

from qr_attendance.models.session_ticket import SessionTicket


def test_init_db(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['init-db', '--drop'])

    assert result.exit_code == 0
    assert 'Dropped all tables.' in result.output
    assert 'Created all tables.' in result.output


def test_database_commands_are_not_duplicated(app):
    assert 'init-db' in app.cli.commands
    assert 'create-db' not in app.cli.commands
    assert 'drop-db' not in app.cli.commands


def test_deactivate_expired_tickets(app, make_ticket):
    expired = make_ticket(start_offset=timedelta(days=-1))
    current = make_ticket()

    result = app.test_cli_runner().invoke(args=['deactivate-expired-tickets'])

    assert result.exit_code == 0
    assert 'Deactivated 1 expired tickets.' in result.output
    assert SessionTicket.get_by_id(expired.id).is_active is False
    assert SessionTicket.get_by_id(current.id).is_active is True
    assert current.expires_at > datetime.utcnow()
