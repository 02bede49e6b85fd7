import pytest

from unitrack.core.config import Config, Thresholds
from unitrack.core.storage import load_subjects, load_timetable
from unitrack.web.server import create_app


@pytest.fixture
def client():
    app = create_app(Config(thresholds=Thresholds(default=75)))
    app.config['TESTING'] = True
    return app.test_client()


def test_health(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_attendance_without_data(client):
    response = client.get('/api/attendance')

    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_attendance(client, write_data, subjects):
    write_data(subjects=subjects)

    data = client.get('/api/attendance').get_json()

    assert data['success'] is True
    assert data['summary']['overall_percentage'] == 84
    assert data['priority'][0]['key'] == 'CS102'
    assert len(data['subjects']) == 4


def test_today(client, write_data, subjects, timetable):
    write_data(subjects=subjects, timetable=timetable)

    data = client.get('/api/today?date=2026-10-19').get_json()

    assert data['date'] == '2026-10-19'
    assert [v['verdict'] for v in data['verdicts']] == ['skip', 'attend']


def test_today_bad_date(client):
    response = client.get('/api/today?date=tomorrow')

    assert response.status_code == 400
    assert 'YYYY-MM-DD' in response.get_json()['error']


def test_week(client, write_data, subjects, timetable):
    write_data(subjects=subjects, timetable=timetable)

    week = client.get('/api/week').get_json()['week']

    assert week['0'] == ['safe', 'low']
    assert week['5'] == []


def test_put_timetable(client):
    response = client.put('/api/timetable', json={'0': ['CS101'], '2': ['CS103']})

    assert response.status_code == 200
    assert response.get_json()['timetable'] == {'0': ['CS101'], '2': ['CS103']}
    assert load_timetable() == {0: ['CS101'], 2: ['CS103']}


def test_put_invalid_timetable(client):
    response = client.put('/api/timetable', json={'7': ['CS101']})

    assert response.status_code == 400


def test_vacation_impact(client, write_data, subjects, timetable):
    write_data(subjects=subjects, timetable=timetable)

    data = client.post('/api/vacation/impact', json={
        'start': '2026-10-19',
        'end': '2026-10-23',
        'holidays': ['2026-10-21'],
    }).get_json()

    assert data['success'] is True
    assert data['totalDays'] == 5
    assert data['activeDays'] == 4
    assert data['totalClasses'] == 7
    assert [d['isHoliday'] for d in data['days']] == [False, False, True, False, False]
    assert data['impacts'][0]['code'] == 'CS102'


def test_vacation_impact_requires_range(client):
    assert client.post('/api/vacation/impact', json={'start': '2026-10-19'}).status_code == 400
    assert client.post('/api/vacation/impact', json={
        'start': '2026-10-23', 'end': '2026-10-19',
    }).status_code == 400


def test_vacation_suggest(client, write_data, subjects, timetable):
    write_data(subjects=subjects, timetable=timetable)

    windows = client.get('/api/vacation/suggest?weeks=2&sizes=3,5').get_json()['windows']

    assert 0 < len(windows) <= 3
    assert all(w['duration'] in (3, 5) for w in windows)


def test_vacation_suggest_bad_sizes(client):
    assert client.get('/api/vacation/suggest?sizes=three').status_code == 400


def test_config(client):
    data = client.get('/api/config').get_json()

    assert data['thresholds']['default'] == 75
    assert data['planner']['windowSizes'] == [3, 5, 7]


def test_put_attendance(client, subjects):
    response = client.put('/api/attendance', json={'subjects': [s.to_dict() for s in subjects]})

    assert response.status_code == 200
    data = response.get_json()
    assert data['summary']['overall_percentage'] == 84
    assert data['lastFetched'] is not None
    assert load_subjects() == subjects


def test_put_malformed_attendance(client):
    response = client.put('/api/attendance', json={'subjects': [{'code': 'CS101', 'attended': 'many'}]})

    assert response.status_code == 400
    assert load_subjects() == []


def test_routes_read_config_from_app():
    app = create_app(Config(thresholds=Thresholds(default=75)))
    app.config['UNITRACK_CONFIG'] = Config(thresholds=Thresholds(default=80, custom={'CS101': 60}))

    data = app.test_client().get('/api/config').get_json()

    assert data['thresholds']['default'] == 80
    assert data['thresholds']['custom'] == {'CS101': 60}
