"""Tests for the first-admin bootstrap command."""

from carelog.bootstrap import create_admin, main
from carelog.models.patient import Profile


def test_create_admin_is_idempotent(db):
    first = create_admin("Ana Souza", "ana@example.org")
    again = create_admin("Ana Souza", "ana@example.org")
    assert first.id == again.id
    assert db.query(Profile).filter(Profile.role == "admin").count() == 1


def test_main_prints_profile_id(db, capsys):
    main(["Ana Souza", "ana@example.org"])
    out = capsys.readouterr().out
    profile = db.query(Profile).one()
    assert str(profile.id) in out
