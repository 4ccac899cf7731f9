"""
Custom Django model fields for the hotel ledger.

ActivityIdListField keeps the activity ids chosen at booking time as a JSON
array in a plain text column. Rows written by older schema versions may hold
anything in that column, so decoding never raises.
"""

import json

from django.db import models


def decode_activity_ids(value):
    """Decode a stored activity list, falling back to [] on bad content."""
    if not value:
        return []
    if isinstance(value, list):
        return value
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return []
    return decoded if isinstance(decoded, list) else []


class ActivityIdListField(models.TextField):
    """
    TextField that stores a list of activity ids as JSON and hands back a
    Python list when loading.
    """

    description = "List of activity ids stored as JSON text"

    def from_db_value(self, value, expression, connection):
        return decode_activity_ids(value)

    def to_python(self, value):
        return decode_activity_ids(value)

    def get_prep_value(self, value):
        """Serialize before saving to database."""
        if value is None:
            return '[]'
        if isinstance(value, str):
            return json.dumps(decode_activity_ids(value))
        return json.dumps(list(value))

    def value_to_string(self, obj):
        return self.get_prep_value(self.value_from_object(obj))
