import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from tiffin.core.exceptions import ConflictError, OperationError, ValidationError
from tiffin.services.base import BaseService, transient_read

from tests.conftest import USER, FailingNotifier


class FlakyReader(BaseService):
    def __init__(self, db_session, clock, notifier, failures):
        super().__init__(db_session, clock, notifier)
        self.failures = failures
        self.calls = 0

    @transient_read
    def read(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))
        return "ok"


@pytest.fixture
def service(db_session, clock, notifier):
    return BaseService(db_session, clock, notifier)


class TestTransaction:
    def test_notifications_sent_after_commit(self, service, notifier):
        with service.transaction():
            service._notify(USER, "Hello", "world")
            assert notifier.sent == []
        assert notifier.sent == [(USER, "Hello", "world")]

    def test_notifications_dropped_on_rollback(self, service, notifier):
        with pytest.raises(ValidationError):
            with service.transaction():
                service._notify(USER, "Hello", "world")
                raise ValidationError("bad input")
        assert notifier.sent == []

    def test_integrity_error_maps_to_supplied_conflict(self, service):
        with pytest.raises(ConflictError, match="taken"):
            with service.transaction(conflict=ConflictError("taken")):
                raise IntegrityError("INSERT", {}, Exception("unique"))

    def test_integrity_error_without_conflict_is_operation_error(self, service):
        with pytest.raises(OperationError):
            with service.transaction():
                raise IntegrityError("INSERT", {}, Exception("check"))

    def test_storage_error_is_operation_error(self, service):
        with pytest.raises(OperationError):
            with service.transaction():
                raise OperationalError("UPDATE", {}, Exception("lock timeout"))

    def test_failing_notifier_is_swallowed(self, db_session, clock):
        service = BaseService(db_session, clock, FailingNotifier())
        with service.transaction():
            service._notify(USER, "Hello", "world")


class TestTransientRead:
    def test_retries_operational_errors(self, db_session, clock, notifier):
        reader = FlakyReader(db_session, clock, notifier, failures=2)
        assert reader.read() == "ok"
        assert reader.calls == 3

    def test_gives_up_after_configured_attempts(self, db_session, clock, notifier):
        reader = FlakyReader(db_session, clock, notifier, failures=10)
        with pytest.raises(OperationalError):
            reader.read()
        assert reader.calls == 3
