import logging
import os
import re
from dataclasses import replace
from datetime import datetime, timezone
from functools import wraps

import jwt
from flask import Blueprint, Flask, current_app, g, jsonify, request, session
from flask_cors import CORS
from flask_wtf.csrf import CSRFProtect, generate_csrf
from werkzeug.security import check_password_hash, generate_password_hash

from config import config
from models import PRIORITY_LABELS, PRIORITY_VALUES
from sorting import group_tasks_by_priority, move_task, sort_tasks
from store import NotFoundError, StoreError, TaskStore
from streaks import InvalidTimezone, calculate_streak, record_completion, reset_if_day_elapsed, streak_summary
from timezones import format_instant
from validations import (
    parse_bool,
    parse_create_link,
    parse_create_subtask,
    parse_create_task,
    parse_reorder,
    parse_update_link,
    parse_update_settings,
    parse_update_subtask,
    parse_update_task,
)

csrf = CSRFProtect()
bp = Blueprint('streakz', __name__)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
UNSAFE_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')


def create_app(config_name=None, store=None):
    app = Flask(__name__)

    # Load configuration based on environment
    env = config_name or os.getenv('FLASK_ENV', 'development')
    app.config.from_object(config.get(env, config['default']))

    # Verify secret key is set
    if not app.config.get('SECRET_KEY'):
        raise ValueError("FLASK_SECRET_KEY must be set in environment variables for security")

    _configure_logging(app)

    # CSRF is checked in _csrf_for_session_requests so bearer-token clients skip it
    app.config['WTF_CSRF_CHECK_DEFAULT'] = False
    csrf.init_app(app)

    CORS(app, resources={
        r"/*": {
            "origins": app.config['CORS_ORIGINS'] or False,
            "methods": ["GET", "POST", "PATCH", "DELETE"],
            "allow_headers": ["Content-Type", "X-CSRFToken", "Authorization"],
            "supports_credentials": True
        }
    })

    if store is None:
        store = TaskStore.from_config(app.config['SUPABASE_URL'], app.config['SUPABASE_KEY'])
    app.extensions['task_store'] = store

    app.register_blueprint(bp)
    _register_error_handlers(app)
    app.logger.info('Streakz started env=%s default_tz=%s', env, app.config['DEFAULT_TIMEZONE'])
    return app


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    app.logger.setLevel(level)


def _register_error_handlers(app):
    @app.errorhandler(NotFoundError)
    def not_found_error(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(InvalidTimezone)
    def invalid_timezone(e):
        return jsonify({'error': 'Invalid timezone', 'timezone': e.name}), 400

    @app.errorhandler(StoreError)
    def store_error(e):
        app.logger.error('Store error on %s %s: %s', request.method, request.path, e)
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_server_error(e):
        return jsonify({'error': 'Internal server error'}), 500


def get_store():
    return current_app.extensions['task_store']


def utcnow():
    return datetime.now(timezone.utc)


def _bearer_token():
    header = request.headers.get('Authorization') or ''
    if header.startswith('Bearer '):
        return header[7:].strip()
    return None


def _validation_failed(errors):
    return jsonify({'error': 'Validation failed', 'details': errors}), 400


def _user_settings(user_id):
    return get_store().get_settings(user_id, current_app.config['DEFAULT_TIMEZONE'])


@bp.before_app_request
def _csrf_for_session_requests():
    if request.method not in UNSAFE_METHODS or _bearer_token():
        return
    if current_app.config.get('WTF_CSRF_ENABLED', True):
        csrf.protect()


# Session or JWT token
def login_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        if token:
            try:
                data = jwt.decode(token, current_app.secret_key, algorithms=['HS256'])
                g.user_id = data['user_id']
            except jwt.ExpiredSignatureError:
                return jsonify({'error': 'Token has expired'}), 401
            except (jwt.InvalidTokenError, KeyError):
                return jsonify({'error': 'Token is invalid'}), 401
        elif 'user_id' in session:
            g.user_id = session['user_id']
        else:
            return jsonify({'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated


@bp.route('/healthz')
def healthz():
    return jsonify({'ok': True, 'time': format_instant(utcnow())}), 200


# -------------------------
# Auth routes
# -------------------------
@bp.route('/api/csrf')
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})


@bp.route('/register', methods=['POST'])
def register():
    body = request.get_json(silent=True) or {}
    name = (body.get('name') or '').strip()
    email = (body.get('email') or '').strip()
    password = body.get('password') or ''

    errors = []
    if not name or not email or not password:
        errors.append('All fields are required!')
    elif not re.match(EMAIL_PATTERN, email):
        errors.append('Please enter a valid email address (e.g., user@example.com)')
    else:
        if len(password) < 8:
            errors.append('Password must be at least 8 characters long')
        if not re.search(r'[A-Z]', password):
            errors.append('Password must contain at least one uppercase letter')
        if not re.search(r'[a-z]', password):
            errors.append('Password must contain at least one lowercase letter')
        if not re.search(r'[0-9]', password):
            errors.append('Password must contain at least one number')
    if errors:
        return _validation_failed(errors)

    store = get_store()
    if store.find_user_by_email(email):
        return jsonify({'error': 'Email already exists!'}), 409
    user = store.create_user(name, email, generate_password_hash(password))
    session.permanent = True
    session['user_id'] = user['id']
    session['username'] = user['username']
    current_app.logger.info('Registered user %s', user['id'])
    return jsonify({'id': user['id'], 'username': user['username']}), 201


@bp.route('/login', methods=['POST'])
def login():
    body = request.get_json(silent=True) or {}
    email = (body.get('email') or '').strip()
    password = body.get('password') or ''
    user = get_store().find_user_by_email(email) if email else None
    if not user or not check_password_hash(user.get('password_hash', ''), password):
        return jsonify({'error': 'Invalid email or password!'}), 401
    session.permanent = True
    session['user_id'] = user['id']
    session['username'] = user['username']
    return jsonify({'id': user['id'], 'username': user['username']})


@bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'success': True})


@bp.route('/api/token', methods=['POST'])
@login_required
def issue_token():
    expires = utcnow() + current_app.config['JWT_EXPIRES']
    token = jwt.encode({'user_id': g.user_id, 'exp': expires}, current_app.secret_key, algorithm='HS256')
    return jsonify({'token': token, 'expires_at': format_instant(expires)})


# -------------------------
# Tasks
# -------------------------
def _with_daily_reset(task, settings, now):
    fresh = reset_if_day_elapsed(task, settings.timezone, now)
    if fresh != task:
        current_app.logger.debug('Daily reset for task %s', task.id)
        get_store().save_task(fresh)
    return fresh


def _visible_tasks(settings, is_daily=None):
    now = utcnow()
    tasks = [_with_daily_reset(t, settings, now)
             for t in get_store().list_tasks(g.user_id, is_daily=is_daily)]
    show_completed = parse_bool(request.args.get('completed'), default=settings.show_completed)
    if not show_completed:
        tasks = [t for t in tasks if not t.is_completed]
    return tasks


@bp.route('/api/tasks', methods=['GET'])
@login_required
def list_tasks():
    settings = _user_settings(g.user_id)
    daily = request.args.get('daily')
    is_daily = None if daily is None else daily == 'true'
    tasks = sort_tasks(_visible_tasks(settings, is_daily), settings.sort_mode)
    return jsonify([t.to_row() for t in tasks])


@bp.route('/api/tasks/matrix', methods=['GET'])
@login_required
def priority_matrix():
    settings = _user_settings(g.user_id)
    groups = group_tasks_by_priority(sort_tasks(_visible_tasks(settings), 'manualOnly'))
    return jsonify([
        {'priority': p, 'label': PRIORITY_LABELS[p], 'tasks': [t.to_row() for t in groups[p]]}
        for p in PRIORITY_VALUES
    ])


@bp.route('/api/tasks', methods=['POST'])
@login_required
def create_task():
    payload, errors = parse_create_task(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    task = get_store().create_task(g.user_id, payload)
    return jsonify(task.to_row()), 201


@bp.route('/api/tasks/<task_id>', methods=['GET'])
@login_required
def get_task(task_id):
    settings = _user_settings(g.user_id)
    task = get_store().get_task(g.user_id, task_id)
    return jsonify(_with_daily_reset(task, settings, utcnow()).to_row())


@bp.route('/api/tasks/<task_id>', methods=['PATCH'])
@login_required
def update_task(task_id):
    payload, errors = parse_update_task(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    task = get_store().update_task(g.user_id, task_id, payload)
    return jsonify(task.to_row())


@bp.route('/api/tasks/<task_id>', methods=['DELETE'])
@login_required
def delete_task(task_id):
    get_store().delete_task(g.user_id, task_id)
    return jsonify({'success': True})


@bp.route('/api/tasks/<task_id>/complete', methods=['POST'])
@login_required
def complete_task(task_id):
    store = get_store()
    settings = _user_settings(g.user_id)
    task = store.get_task(g.user_id, task_id)
    now = utcnow()
    if task.is_daily:
        updated = record_completion(task, settings.timezone, now)
    else:
        updated = replace(task, completed_at=format_instant(now))
    saved = store.save_task(updated)
    streak = calculate_streak(saved, settings.timezone, now) if saved.is_daily else None
    if streak:
        current_app.logger.info('Task %s streak now %s', saved.id, streak)
    return jsonify({'task': saved.to_row(), 'streak': streak})


@bp.route('/api/tasks/<task_id>/reopen', methods=['POST'])
@login_required
def reopen_task(task_id):
    store = get_store()
    task = store.get_task(g.user_id, task_id)
    saved = store.save_task(replace(task, completed_at=None))
    return jsonify(saved.to_row())


@bp.route('/api/tasks/reorder', methods=['POST'])
@login_required
def reorder_tasks():
    payload, errors = parse_reorder(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    store = get_store()
    tasks = sort_tasks(store.list_tasks(g.user_id), 'manualOnly')
    if not any(t.id == payload['task_id'] for t in tasks):
        raise NotFoundError('Task not found')
    moved = move_task(tasks, payload['task_id'], payload['index'])
    store.reorder(g.user_id, moved)
    return jsonify([t.to_row() for t in moved])


# -------------------------
# Subtasks
# -------------------------
@bp.route('/api/subtasks', methods=['POST'])
@login_required
def create_subtask():
    payload, errors = parse_create_subtask(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    subtask = get_store().create_subtask(g.user_id, payload)
    return jsonify(subtask.to_row()), 201


@bp.route('/api/subtasks/<subtask_id>', methods=['PATCH'])
@login_required
def update_subtask(subtask_id):
    payload, errors = parse_update_subtask(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    subtask = get_store().update_subtask(g.user_id, subtask_id, payload)
    return jsonify(subtask.to_row())


@bp.route('/api/subtasks/<subtask_id>', methods=['DELETE'])
@login_required
def delete_subtask(subtask_id):
    get_store().delete_subtask(g.user_id, subtask_id)
    return jsonify({'success': True})


# -------------------------
# Links
# -------------------------
@bp.route('/api/links', methods=['POST'])
@login_required
def create_link():
    payload, errors = parse_create_link(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    link = get_store().create_link(g.user_id, payload)
    return jsonify(link.to_row()), 201


@bp.route('/api/links/<link_id>', methods=['PATCH'])
@login_required
def update_link(link_id):
    payload, errors = parse_update_link(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    link = get_store().update_link(g.user_id, link_id, payload)
    return jsonify(link.to_row())


@bp.route('/api/links/<link_id>', methods=['DELETE'])
@login_required
def delete_link(link_id):
    get_store().delete_link(g.user_id, link_id)
    return jsonify({'success': True})


# -------------------------
# Settings & streaks
# -------------------------
@bp.route('/api/settings', methods=['GET'])
@login_required
def get_settings():
    return jsonify(_user_settings(g.user_id).to_row())


@bp.route('/api/settings', methods=['PATCH'])
@login_required
def update_settings():
    payload, errors = parse_update_settings(request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    settings = get_store().update_settings(g.user_id, payload, current_app.config['DEFAULT_TIMEZONE'])
    return jsonify(settings.to_row())


@bp.route('/api/streaks', methods=['GET'])
@login_required
def streaks_overview():
    settings = _user_settings(g.user_id)
    tasks = get_store().list_tasks(g.user_id)
    return jsonify(streak_summary(tasks, settings.timezone, utcnow()))


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    create_app().run(host='0.0.0.0', port=port)
