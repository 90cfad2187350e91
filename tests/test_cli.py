# Overview: Smoke tests for the flask CLI command groups.

from cashdesk.services import drawer_service, transfer_service


def test_drawers_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    created = runner.invoke(args=["drawers", "create", "--tenant", "acme", "--owner", "alice", "--name", "Front till"])
    assert created.exit_code == 0
    assert "PASS Created drawer" in created.output

    listed = runner.invoke(args=["drawers", "list", "--tenant", "acme"])
    assert listed.exit_code == 0
    assert "owner=alice" in listed.output
    assert "0.00" in listed.output


def test_drawers_list_empty_tenant(app, db_session):
    result = app.test_cli_runner().invoke(args=["drawers", "list", "--tenant", "nobody"])
    assert result.exit_code == 0
    assert "No drawers found" in result.output


def test_transfers_list_shows_reference_and_amount(app, db_session, alice, alice_drawer, bob_drawer):
    transfer_service.create_drawer_transfer(
        alice, from_drawer_id=alice_drawer.id, to_drawer_id=bob_drawer.id, amount_cents=12345,
    )

    result = app.test_cli_runner().invoke(args=["transfers", "list", "--tenant", "acme", "--status", "PENDING"])

    assert result.exit_code == 0
    assert "CT-000001" in result.output
    assert "123.45" in result.output


def test_reset_db_requires_confirmation(app, db_session, alice):
    drawer_service.create_drawer(alice)
    result = app.test_cli_runner().invoke(args=["system", "reset-db"])
    assert result.exit_code == 1
    assert "Refusing" in result.output
