from datetime import datetime

import pytest

from school_timetable.api import APIClient, TimetableProvider
from school_timetable.config import DEFAULT_SCHOOL_CONFIG
from school_timetable.dashboard import NO_SCHEDULE, build_view
from school_timetable.errors import DataUnavailable, ScheduleConflictError
from school_timetable.models import ViewpointQuery

MONDAY = datetime(2024, 5, 6, 7, 30)


class FakeClient:
    def __init__(self, payloads):
        self.payloads = payloads
        self.calls = []

    def get(self, endpoint, params=None):
        self.calls.append(endpoint)
        payload = self.payloads[endpoint]
        if isinstance(payload, Exception):
            raise payload
        return payload


def payloads(timetable):
    return {
        "/subjects": [{"id": 1, "name": "Mathematics", "department": "Sciences"}],
        "/teachers": [{"id": 1, "name": "Mr. Phiri", "subjects": ["Mathematics"], "max_periods": 4}],
        "/classes": [{"id": "9A", "name": "Grade 9A", "students": 30}],
        "/classrooms": [],
        "/timetable": timetable,
    }


def test_unavailable_source_gives_empty_view():
    client = FakeClient(payloads(DataUnavailable("Failed to fetch /timetable")))
    provider = TimetableProvider(client, DEFAULT_SCHOOL_CONFIG)
    view = build_view(provider, ViewpointQuery("student", "9A", MONDAY), DEFAULT_SCHOOL_CONFIG)
    assert not view.available
    assert view.message == NO_SCHEDULE
    assert view.today == [] and view.upcoming == []
    assert view.grid.is_empty()


def test_view_is_rederived_from_each_fetch():
    data = payloads([{"data": {"Monday": {"1": {"9A": {"subject_id": 1, "teacher_id": 1}}}}}])
    client = FakeClient(data)
    provider = TimetableProvider(client, DEFAULT_SCHOOL_CONFIG)
    query = ViewpointQuery("teacher", "1", MONDAY)
    first = build_view(provider, query, DEFAULT_SCHOOL_CONFIG)
    assert first.utilization.percentage == 25
    assert first.next_class.minutes_until == 30

    data["/timetable"] = {
        "Monday": {
            "1": {"9A": {"subject_id": 1, "teacher_id": 1}},
            "2": {"9A": {"subject_id": 1, "teacher_id": 1}},
        }
    }
    second = build_view(provider, query, DEFAULT_SCHOOL_CONFIG)
    assert second.utilization.percentage == 50
    assert client.calls.count("/timetable") == 2


def test_empty_published_timetable():
    provider = TimetableProvider(FakeClient(payloads([])), DEFAULT_SCHOOL_CONFIG)
    view = build_view(provider, ViewpointQuery("student", "9A", MONDAY), DEFAULT_SCHOOL_CONFIG)
    assert view.available
    assert view.today == []


def test_conflicts_propagate_from_view():
    grid = {
        "Monday": {
            "1": {
                "9A": {"subject_id": 1, "teacher_id": 1},
                "9B": {"subject_id": 1, "teacher_id": 1},
            }
        }
    }
    provider = TimetableProvider(FakeClient(payloads(grid)), DEFAULT_SCHOOL_CONFIG)
    with pytest.raises(ScheduleConflictError):
        build_view(provider, ViewpointQuery("teacher", "1", MONDAY), DEFAULT_SCHOOL_CONFIG)


def test_offline_client_without_fixture(tmp_path):
    client = APIClient("http://localhost", offline=True, json_dir=tmp_path)
    with pytest.raises(DataUnavailable):
        client.get("/timetable")


def test_malformed_catalog_is_unavailable():
    data = payloads({})
    data["/subjects"] = [{"name": "no id"}]
    provider = TimetableProvider(FakeClient(data), DEFAULT_SCHOOL_CONFIG)
    with pytest.raises(DataUnavailable):
        provider.fetch_catalog()
