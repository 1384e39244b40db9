import hashlib
import logging
from datetime import timedelta

import pytest

from bounce import db
from bounce.errors import (
    ImplausibleScoreError,
    InvalidLevelError,
    InvalidNameError,
    InvalidScoreError,
    MissingFieldsError,
    RateLimitedError,
    UnauthorizedError,
)
from bounce.models import HighScore, submit_window_for
from bounce.services.leaderboard.submissions import (
    ScoreSubmission,
    SubmissionGuard,
    parse_submission,
    plausible_ceiling,
)

SECRET = 'guard-secret'


def payload(**overrides):
    data = {'name': 'TestPlayer', 'score': 1000, 'level': 5, 'secret': SECRET}
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not ...}


@pytest.fixture()
def guard(flask_app, clock):
    return SubmissionGuard(db.session, secret=SECRET, cooldown_sec=30, clock=clock)


# ---- boundary parsing ----

@pytest.mark.parametrize('missing', ['score', 'level', 'secret'])
def test_missing_required_field(missing):
    with pytest.raises(MissingFieldsError) as info:
        parse_submission(payload(**{missing: ...}), '1.2.3.4')
    assert info.value.kind == 'missing-fields'
    assert info.value.status == 400


def test_empty_secret_counts_as_missing():
    with pytest.raises(MissingFieldsError):
        parse_submission(payload(secret=''), '1.2.3.4')


def test_non_object_body_is_missing_fields():
    with pytest.raises(MissingFieldsError):
        parse_submission(['score', 1000], '1.2.3.4')


def test_missing_fields_checked_before_name():
    with pytest.raises(MissingFieldsError):
        parse_submission(payload(name=42, secret=...), '1.2.3.4')


@pytest.mark.parametrize('name', [42, '   ', 'x' * 21])
def test_invalid_names(name):
    with pytest.raises(InvalidNameError):
        parse_submission(payload(name=name), '1.2.3.4')


def test_name_checked_before_score():
    with pytest.raises(InvalidNameError):
        parse_submission(payload(name='', score=-1), '1.2.3.4')


def test_name_is_trimmed_and_sanitized():
    submission = parse_submission(payload(name='  <b>"Ace"</b> '), '1.2.3.4')
    assert submission.display_name == 'bAce/b'


def test_name_defaults_to_anonymous():
    assert parse_submission(payload(name=...), '1.2.3.4').display_name == 'Anonymous'
    assert parse_submission(payload(name="<>''"), '1.2.3.4').display_name == 'Anonymous'


@pytest.mark.parametrize('score', [-1, 1000000, 10.5, '1000', True, [1]])
def test_invalid_scores(score):
    with pytest.raises(InvalidScoreError):
        parse_submission(payload(score=score), '1.2.3.4')


@pytest.mark.parametrize('level', [0, 101, 2.5, '5', False])
def test_invalid_levels(level):
    with pytest.raises(InvalidLevelError):
        parse_submission(payload(level=level), '1.2.3.4')


def test_integral_floats_are_accepted():
    submission = parse_submission(payload(score=1000.0, level=5.0), '1.2.3.4')
    assert submission.score == 1000
    assert submission.level_reached == 5


def test_parse_builds_typed_submission():
    submission = parse_submission(payload(), '1.2.3.4')
    assert submission == ScoreSubmission(
        display_name='TestPlayer', score=1000, level_reached=5,
        source_token=SECRET, client_identity='1.2.3.4',
    )


# ---- guard ----

def test_accepts_and_ranks(guard):
    record, rank = guard.submit(parse_submission(payload(), '1.2.3.4'))
    assert rank == 1
    assert record.id is not None
    assert record.name == 'TestPlayer'
    assert HighScore.query.count() == 1


def test_identity_is_hashed_before_storage(guard):
    record, _ = guard.submit(parse_submission(payload(), '1.2.3.4'))
    assert record.identity_hash == hashlib.sha256(b'1.2.3.4').hexdigest()
    assert '1.2.3.4' not in record.identity_hash


def test_wrong_secret_is_unauthorized_and_logged(guard, caplog):
    with caplog.at_level(logging.WARNING):
        with pytest.raises(UnauthorizedError) as info:
            guard.submit(parse_submission(payload(secret='nope'), '1.2.3.4'))
    assert info.value.status == 401
    assert 'submit-unauthorized' in caplog.text
    assert hashlib.sha256(b'1.2.3.4').hexdigest() in caplog.text
    assert HighScore.query.count() == 0


def test_unconfigured_secret_rejects_everything(flask_app, clock):
    guard = SubmissionGuard(db.session, secret='', clock=clock)
    with pytest.raises(UnauthorizedError):
        guard.submit(parse_submission(payload(), '1.2.3.4'))


def test_plausibility_bound_is_inclusive(guard, clock):
    ceiling = plausible_ceiling(5)
    assert ceiling == 12500
    guard.submit(parse_submission(payload(score=ceiling), '1.1.1.1'))
    with pytest.raises(ImplausibleScoreError):
        guard.submit(parse_submission(payload(score=ceiling + 1), '2.2.2.2'))


def test_implausible_score_is_logged(guard, caplog):
    with caplog.at_level(logging.WARNING):
        with pytest.raises(ImplausibleScoreError):
            guard.submit(parse_submission(payload(score=999999, level=1), '1.2.3.4'))
    assert 'submit-implausible' in caplog.text


def test_duplicate_within_window_is_rate_limited(guard, clock):
    guard.submit(parse_submission(payload(), '1.2.3.4'))
    clock.advance(10)
    with pytest.raises(RateLimitedError) as info:
        guard.submit(parse_submission(payload(score=2000), '1.2.3.4'))
    assert info.value.status == 429
    assert info.value.retry_after == 20
    assert HighScore.query.count() == 1


def test_other_identities_are_not_blocked(guard):
    guard.submit(parse_submission(payload(), '1.2.3.4'))
    guard.submit(parse_submission(payload(), '5.6.7.8'))
    assert HighScore.query.count() == 2


def test_window_expiry_readmits_identity(guard, clock):
    guard.submit(parse_submission(payload(), '1.2.3.4'))
    clock.advance(31)
    _, rank = guard.submit(parse_submission(payload(score=3000), '1.2.3.4'))
    assert rank == 1
    assert HighScore.query.count() == 2


def test_storage_uniqueness_closes_the_race(guard, clock):
    # A concurrent insert that the pre-check could not see yet: same identity
    # and window, timestamp outside the look-back range.
    db.session.add(HighScore(
        name='Racer', score=10, level_reached=1,
        created_at=clock() - timedelta(days=1),
        identity_hash=hashlib.sha256(b'1.2.3.4').hexdigest(),
        submit_window=submit_window_for(clock(), 30),
    ))
    db.session.commit()
    with pytest.raises(RateLimitedError):
        guard.submit(parse_submission(payload(), '1.2.3.4'))
    assert HighScore.query.count() == 1


def test_check_constraints_map_back_to_validation_kinds(guard):
    bad_score = ScoreSubmission('Cheater', -5, 5, SECRET, '1.1.1.1')
    with pytest.raises(InvalidScoreError):
        guard.submit(bad_score)

    bad_level = ScoreSubmission('Cheater', 100, 0, SECRET, '2.2.2.2')
    with pytest.raises(InvalidLevelError):
        guard.submit(bad_level)
    assert HighScore.query.count() == 0
