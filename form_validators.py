"""
Field validators used by the model helpers.

Each validator is a plain function returning a ValidationError when the value
is rejected and None otherwise. `validate` folds the results into the
{field: [messages]} mapping that the templates render next to each input.
"""
import re
from collections import namedtuple

ValidationError = namedtuple('ValidationError', ['field', 'message'])

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def validate(*results):
    errors = {}
    for result in results:
        if result is not None:
            errors.setdefault(result.field, []).append(result.message)
    return errors


def _label(name):
    return name.replace('_', ' ').capitalize()


def string_is_present(name, value):
    if not value or not str(value).strip():
        return ValidationError(name, f"{_label(name)} can not be blank.")
    return None


def email_like(name, value):
    if not value or not EMAIL_RE.match(value):
        return ValidationError(name, f"{_label(name)} does not match an email format.")
    return None


def length_in_range(name, value, low, high, message=None):
    if value is None or not low <= len(value) <= high:
        return ValidationError(name, message or f"{_label(name)} must be between {low} and {high} characters.")
    return None


def strings_match(name, value, other, message=None):
    if value != other:
        return ValidationError(name, message or f"{_label(name)} does not match.")
    return None


def column_available(db, name, table, column, value, exclude_id=None):
    """Rejects `value` when another row of `table` already uses it in `column`."""
    if not value:
        return None
    query = f'SELECT 1 FROM {table} WHERE {column} = ?'
    params = [value]
    if exclude_id is not None:
        query += ' AND id != ?'
        params.append(exclude_id)
    if db.execute(query, params).fetchone():
        return ValidationError(name, f"The {column} {value} is not available")
    return None
