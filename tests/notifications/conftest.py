import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def notifications_bed():
    from notifications.domain import notifications

    bed = DomainFixture(notifications)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(notifications_bed):
    from notifications.domain import notifications

    with notifications_bed.domain_context():
        yield
        notifications.providers["default"]._data_reset()
        notifications.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _channels():
    from notifications.channel import reset_channels

    reset_channels()
    yield
    reset_channels()
