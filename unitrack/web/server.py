"""
UniTrack Web Server

Flask API server for the dashboard and vacation planner.
"""

import logging
from datetime import datetime, date
from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from ..core.config import Config, load_config
from ..core.calculator import AttendanceCalculator
from ..core.models import dump_timetable, parse_timetable
from ..core.planner import calculate_vacation_impact, find_best_windows, get_vacation_days
from ..core.storage import (
    load_attendance, load_holidays, load_timetable, parse_date, parse_subjects, save_subjects, save_timetable,
)

logger = logging.getLogger(__name__)


def _error(message: str, status: int = 400):
    return jsonify({'success': False, 'error': message}), status


def _config() -> Config:
    return current_app.config['UNITRACK_CONFIG']


def _thresholds():
    thresholds = _config().thresholds
    return thresholds.default, thresholds.custom


def create_app(config: Config = None) -> Flask:
    """
    Create Flask application.

    Args:
        config: UniTrack configuration (loads default if None)

    Returns:
        Flask app instance
    """
    if config is None:
        config = load_config()

    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Routes look the config up per request
    app.config['UNITRACK_CONFIG'] = config

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        logger.info("Rejected request to %s: %s", request.path, e)
        return _error(str(e))

    @app.route('/api/health')
    def health():
        """Health check endpoint."""
        config = _config()
        return jsonify({
            'status': 'ok',
            'timestamp': datetime.now().isoformat(),
            'institution': config.institution.name,
        })

    @app.route('/api/attendance', methods=['GET', 'PUT'])
    def attendance():
        """Get cached attendance data with analysis, or replace it (PUT)."""
        config = _config()
        if request.method == 'PUT':
            body = request.get_json(silent=True)
            if body is None:
                return _error('Expected a JSON subjects list.')
            save_subjects(parse_subjects(body))

        data = load_attendance()
        subjects = data['subjects']
        if not subjects:
            return _error('No attendance data available.', 404)

        calc = AttendanceCalculator(config.thresholds)
        analysis = calc.analyze_all(subjects)
        priority = calc.get_priority_subjects(analysis)

        return jsonify({
            'success': True,
            'institution': config.institution.name,
            'studentName': config.student_name,
            'rollNumber': config.roll_number,
            'threshold': config.thresholds.default,
            'lastFetched': data['timestamp'],
            'summary': analysis['summary'],
            'subjects': analysis['subjects'],
            'priority': priority,
        })

    @app.route('/api/today')
    def get_today():
        """Verdicts for the classes scheduled on ?date= (default today)."""
        config = _config()
        raw = request.args.get('date')
        on_date = parse_date(raw) if raw else date.today()

        calc = AttendanceCalculator(config.thresholds)
        verdicts = calc.day_verdicts(load_timetable(), load_attendance()['subjects'], on_date)

        return jsonify({
            'success': True,
            'date': on_date.isoformat(),
            'verdicts': verdicts,
        })

    @app.route('/api/week')
    def get_week():
        """Status of every scheduled slot in the week."""
        config = _config()
        calc = AttendanceCalculator(config.thresholds)
        overview = calc.week_overview(load_timetable(), load_attendance()['subjects'])

        return jsonify({
            'success': True,
            'week': {str(day): statuses for day, statuses in overview.items()},
        })

    @app.route('/api/timetable', methods=['GET', 'PUT'])
    def timetable():
        """Read or replace the weekly timetable."""
        if request.method == 'PUT':
            body = request.get_json(silent=True)
            if not isinstance(body, dict):
                return _error('Expected a JSON object keyed by day (0-5).')
            save_timetable(parse_timetable(body))

        return jsonify({'success': True, 'timetable': dump_timetable(load_timetable())})

    @app.route('/api/vacation/impact', methods=['POST'])
    def vacation_impact():
        """Impact of missing every class between start and end."""
        body = request.get_json(silent=True) or {}
        if 'start' not in body or 'end' not in body:
            return _error("Both 'start' and 'end' are required.")

        start = parse_date(body['start'])
        end = parse_date(body['end'])
        if end < start:
            return _error("'end' must not be before 'start'.")

        days = get_vacation_days(start, end, load_holidays(body.get('holidays', [])))
        global_threshold, overrides = _thresholds()
        result = calculate_vacation_impact(
            days, load_timetable(), load_attendance()['subjects'], global_threshold, overrides
        )

        return jsonify({
            'success': True,
            'days': [d.to_dict() for d in days],
            **result.to_dict(),
        })

    @app.route('/api/vacation/suggest')
    def vacation_suggest():
        """Best upcoming vacation windows."""
        config = _config()
        planner = config.planner
        weeks = request.args.get('weeks', type=int) or planner.weeks_ahead
        sizes = request.args.get('sizes')
        window_sizes = [int(s) for s in sizes.split(',') if s.strip()] if sizes else planner.window_sizes

        global_threshold, overrides = _thresholds()
        windows = find_best_windows(
            load_timetable(), load_attendance()['subjects'], global_threshold, overrides,
            window_sizes=window_sizes, weeks_ahead=weeks, limit=planner.suggestions,
        )

        return jsonify({
            'success': True,
            'windows': [w.to_dict() for w in windows],
        })

    @app.route('/api/config')
    def get_config():
        """Get public configuration."""
        config = _config()
        return jsonify({
            'institution': {
                'name': config.institution.name,
                'shortName': config.institution.short_name,
                'color': config.institution.color,
            },
            'thresholds': {
                'default': config.thresholds.default,
                'safeBuffer': config.thresholds.safe_buffer,
                'custom': config.thresholds.custom,
            },
            'planner': {
                'windowSizes': config.planner.window_sizes,
                'weeksAhead': config.planner.weeks_ahead,
            },
            'student': {
                'name': config.student_name,
                'rollNumber': config.roll_number,
            }
        })

    return app
