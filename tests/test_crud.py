"""
Tests for the credential store and its uniqueness guarantees.
"""

import threading

import pytest

from moviebuzz import accounts, crud
from moviebuzz.core import errors
from moviebuzz.database import SessionLocal
from moviebuzz.models import User


class TestCreateUser:

    def test_username_is_case_folded(self, db_session):
        user = crud.create_user(db_session, 'Alice', 'secret1', identifier='a@x.com', identifier_kind='email')
        assert user.username == 'alice'
        assert crud.get_user_by_username(db_session, 'ALICE').id == user.id

    def test_password_is_hashed(self, db_session):
        user = crud.create_user(db_session, 'alice', 'secret1')
        assert user.password != 'secret1'
        assert crud.authenticate_user(db_session, 'alice', 'secret1').id == user.id

    def test_duplicate_username_conflicts(self, db_session):
        crud.create_user(db_session, 'alice', 'secret1', identifier='a@x.com')
        with pytest.raises(errors.Conflict) as exc:
            crud.create_user(db_session, 'ALICE', 'secret2', identifier='b@x.com')
        assert exc.value.extra['field'] == 'username'
        assert db_session.query(User).count() == 1

    def test_duplicate_identifier_conflicts(self, db_session):
        crud.create_user(db_session, 'alice', 'secret1', identifier='a@x.com')
        with pytest.raises(errors.Conflict) as exc:
            crud.create_user(db_session, 'bob', 'secret2', identifier='a@x.com')
        assert exc.value.extra['field'] == 'identifier'

    def test_users_without_identifier_coexist(self, db_session):
        crud.create_user(db_session, 'admin1', 'secret1', is_admin=True)
        crud.create_user(db_session, 'admin2', 'secret1', is_admin=True)
        assert db_session.query(User).count() == 2

    def test_lookups_return_none_when_missing(self, db_session):
        assert crud.get_user_by_username(db_session, 'ghost') is None
        assert crud.get_user_by_identifier(db_session, 'ghost@x.com') is None
        assert crud.get_user_by_id(db_session, 999) is None
        assert crud.get_any_admin(db_session) is None

    def test_authenticate_unknown_user(self, db_session):
        assert crud.authenticate_user(db_session, 'ghost', 'secret1') is None


class TestConcurrentRegistration:

    def test_parallel_registrations_yield_one_user(self, db_session):
        barrier = threading.Barrier(2)
        outcomes = []

        def attempt(identifier):
            db = SessionLocal()
            try:
                barrier.wait()
                accounts.register(db, 'racer', 'secret123', identifier)
                outcomes.append('ok')
            except errors.Conflict:
                outcomes.append('conflict')
            finally:
                db.close()

        threads = [threading.Thread(target=attempt, args=(f'racer{i}@x.com',)) for i in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ['conflict', 'ok']
        assert db_session.query(User).filter(User.username == 'racer').count() == 1


class TestBootstrapAdmin:

    def test_first_admin_is_created(self, db_session):
        user = crud.create_bootstrap_admin(db_session, 'root', 'secret123')
        assert user.is_admin and user.is_verified
        assert crud.get_any_admin(db_session).id == user.id

    def test_second_bootstrap_is_refused(self, db_session):
        crud.create_bootstrap_admin(db_session, 'root', 'secret123')
        with pytest.raises(errors.SetupAlreadyDone):
            crud.create_bootstrap_admin(db_session, 'root2', 'secret123')

    def test_race_past_the_admin_check_is_refused_by_the_store(self, db_session, monkeypatch):
        crud.create_bootstrap_admin(db_session, 'root', 'secret123')
        # Second caller read "no admin" before the first one committed.
        monkeypatch.setattr(crud, 'get_any_admin', lambda db: None)

        with pytest.raises(errors.SetupAlreadyDone):
            crud.create_bootstrap_admin(db_session, 'root2', 'secret123')
        assert db_session.query(User).filter(User.is_admin.is_(True)).count() == 1

    def test_refused_once_any_admin_exists(self, db_session):
        crud.create_user(db_session, 'legacy', 'secret123', is_admin=True, is_verified=True)
        with pytest.raises(errors.SetupAlreadyDone):
            crud.create_bootstrap_admin(db_session, 'root', 'secret123')
