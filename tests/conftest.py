import pytest

from promize import QueueScheduler, set_default_scheduler


@pytest.fixture(autouse=True)
def scheduler():
    scheduler = QueueScheduler()
    previous = set_default_scheduler(scheduler)
    yield scheduler
    set_default_scheduler(previous)
