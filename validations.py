"""
Request body checks for the JSON API.

Each ``parse_*`` function takes the decoded request body and returns
``(payload, errors)``. ``payload`` only carries fields that were present and
valid; callers reject the request when ``errors`` is non-empty.
"""
import uuid
from urllib.parse import urlparse

from models import PRIORITY_VALUES, SORT_MODES, DEFAULT_PRIORITY
from timezones import format_instant, is_valid_timezone, parse_day, parse_instant

TITLE_MAX = 255
LABEL_MAX = 100

BODY_NOT_OBJECT = 'Request body must be a JSON object'


def _object(body):
    """Missing bodies read as ``{}``; anything but a JSON object gives None."""
    if body is None:
        return {}
    return body if isinstance(body, dict) else None


def parse_bool(val, default=None):
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    s = str(val).strip().lower()
    if s in ('true', '1', 'yes', 'y'):
        return True
    if s in ('false', '0', 'no', 'n'):
        return False
    return default


def _parse_int(val, default=None):
    if isinstance(val, bool):
        return default
    try:
        if val is None or str(val).strip() == '':
            return default
        return int(str(val).strip())
    except (TypeError, ValueError):
        return default


def _text(body, key, errors, max_len, required=False, label=None):
    label = label or key.capitalize()
    raw = body.get(key)
    if raw is None:
        if required:
            errors.append(f'{label} is required')
        return None
    if not isinstance(raw, str):
        errors.append(f'{label} must be a string')
        return None
    value = raw.strip()
    if not value:
        errors.append(f'{label} is required')
        return None
    if len(value) > max_len:
        errors.append(f'{label} too long')
        return None
    return value


def _uuid(body, key, errors):
    raw = body.get(key)
    try:
        return str(uuid.UUID(str(raw)))
    except (TypeError, ValueError, AttributeError):
        errors.append(f'{key} must be a UUID')
        return None


def _url(raw, errors):
    if not isinstance(raw, str):
        errors.append('Invalid URL')
        return None
    parsed = urlparse(raw.strip())
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        errors.append('Invalid URL')
        return None
    return raw.strip()


def _bool_field(body, key, payload, errors):
    if key not in body:
        return
    b = parse_bool(body.get(key))
    if b is None:
        errors.append(f'{key} must be a boolean')
    else:
        payload[key] = b


def _int_field(body, key, payload, errors):
    if key not in body:
        return
    n = _parse_int(body.get(key))
    if n is None:
        errors.append(f"{key} must be an integer")
    else:
        payload[key] = n


def _priority_field(body, payload, errors):
    if 'priority' not in body:
        return
    p = body.get('priority')
    if p not in PRIORITY_VALUES:
        errors.append(f"Priority must be one of {list(PRIORITY_VALUES)}")
    else:
        payload['priority'] = p


def _parse_completion(raw, errors):
    if not isinstance(raw, dict):
        errors.append('completion must be an object')
        return None
    done = _parse_int(raw.get('completedCount'))
    total = _parse_int(raw.get('total'))
    if done is None or total is None or done < 0 or total < 0:
        errors.append('completion needs non-negative completedCount and total')
        return None
    return {'completedCount': done, 'total': total}


def _parse_daily_meta(raw, errors):
    if raw is None:
        return None
    if not isinstance(raw, dict):
        errors.append('daily_meta must be an object')
        return None
    out = {}
    streak = _parse_int(raw.get('currentStreak'))
    if streak is None or streak < 0:
        errors.append('daily_meta.currentStreak must be a non-negative integer')
        return None
    out['currentStreak'] = streak
    last = raw.get('lastCompletedDate')
    if last is not None:
        try:
            parse_day(str(last))
        except ValueError:
            errors.append('daily_meta.lastCompletedDate must be YYYY-MM-DD')
            return None
        out['lastCompletedDate'] = str(last).strip()
    if raw.get('bestStreak') is not None:
        best = _parse_int(raw.get('bestStreak'))
        if best is None or best < 0:
            errors.append('daily_meta.bestStreak must be a non-negative integer')
            return None
        if best < streak:
            errors.append('daily_meta.bestStreak cannot be less than currentStreak')
            return None
        out['bestStreak'] = best
    return out


def parse_create_task(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {
        'title': _text(body, 'title', errors, TITLE_MAX, required=True),
        'description': None,
        'is_daily': False,
        'priority': DEFAULT_PRIORITY,
        'order_index': 0,
    }
    if isinstance(body.get('description'), str):
        payload['description'] = body['description'].strip()
    _bool_field(body, 'is_daily', payload, errors)
    _priority_field(body, payload, errors)
    _int_field(body, 'order_index', payload, errors)
    return payload, errors


def parse_update_task(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {}
    if 'title' in body:
        title = _text(body, 'title', errors, TITLE_MAX, required=True)
        if title is not None:
            payload['title'] = title
    if 'description' in body:
        desc = body.get('description')
        payload['description'] = desc.strip() if isinstance(desc, str) else None
    _bool_field(body, 'is_daily', payload, errors)
    _priority_field(body, payload, errors)
    _int_field(body, 'order_index', payload, errors)
    if 'completed_at' in body:
        raw = body.get('completed_at')
        if raw is None:
            payload['completed_at'] = None
        else:
            try:
                payload['completed_at'] = format_instant(parse_instant(raw))
            except (TypeError, ValueError):
                errors.append('completed_at must be an ISO-8601 timestamp')
    if 'completion' in body:
        completion = _parse_completion(body.get('completion'), errors)
        if completion is not None:
            payload['completion'] = completion
    if 'daily_meta' in body:
        before = len(errors)
        meta = _parse_daily_meta(body.get('daily_meta'), errors)
        if len(errors) == before:
            payload['daily_meta'] = meta
    return payload, errors


def parse_create_subtask(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {
        'task_id': _uuid(body, 'task_id', errors),
        'title': _text(body, 'title', errors, TITLE_MAX, required=True),
    }
    return payload, errors


def parse_update_subtask(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {}
    if 'title' in body:
        title = _text(body, 'title', errors, TITLE_MAX, required=True)
        if title is not None:
            payload['title'] = title
    _bool_field(body, 'done', payload, errors)
    return payload, errors


def parse_create_link(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {
        'task_id': _uuid(body, 'task_id', errors),
        'label': _text(body, 'label', errors, LABEL_MAX, required=True),
        'url': _url(body.get('url'), errors),
    }
    return payload, errors


def parse_update_link(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {}
    if 'label' in body:
        label = _text(body, 'label', errors, LABEL_MAX, required=True)
        if label is not None:
            payload['label'] = label
    if 'url' in body:
        url = _url(body.get('url'), errors)
        if url is not None:
            payload['url'] = url
    return payload, errors


def parse_update_settings(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    payload = {}
    if 'timezone' in body:
        tz = body.get('timezone')
        if not is_valid_timezone(tz):
            errors.append(f'Invalid timezone: {tz}')
        else:
            payload['timezone'] = tz
    if 'sort_mode' in body:
        mode = body.get('sort_mode')
        if mode not in SORT_MODES:
            errors.append(f"sort_mode must be one of {list(SORT_MODES)}")
        else:
            payload['sort_mode'] = mode
    _bool_field(body, 'show_completed', payload, errors)
    return payload, errors


def parse_reorder(body):
    errors = []
    body = _object(body)
    if body is None:
        return {}, [BODY_NOT_OBJECT]
    task_id = body.get('task_id')
    if not task_id:
        errors.append('task_id is required')
    index = _parse_int(body.get('index'))
    if index is None or index < 0:
        errors.append('index must be a non-negative integer')
    return {'task_id': task_id, 'index': index}, errors
