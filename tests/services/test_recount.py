"""Tests for counter reconciliation."""

from devlink.models import Follow
from devlink.scripts.recount import main, recount_all


def test_drifted_counters_are_fixed(db_session, developer, client_account):
    db_session.add(Follow(follower_id=client_account.id, following_id=developer.id))
    developer.followers_count = 5
    client_account.followers_count = 2
    db_session.commit()

    report = recount_all(db_session)

    assert report["followers_count"] == 2
    db_session.refresh(developer)
    db_session.refresh(client_account)
    assert developer.followers_count == 1
    assert client_account.followers_count == 0


def test_dry_run_reports_without_writing(db_session, developer):
    developer.endorsements_count = 3
    db_session.commit()

    report = recount_all(db_session, dry_run=True)

    assert report["endorsements_count"] == 1
    db_session.refresh(developer)
    assert developer.endorsements_count == 3


def test_main_uses_session_factory(mocker, db_session, capsys):
    mocker.patch("devlink.scripts.recount.SessionLocal", return_value=db_session)

    main(["--dry-run"])

    assert "followers_count: 0 row(s) drifted" in capsys.readouterr().out
