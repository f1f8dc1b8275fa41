from __future__ import annotations

from typing import Any, Optional

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms.fields import Field

from .errors import ValidationFailed
from .utils import parse_datetime, to_snake


class IsoDateTimeField(Field):
    """Datetime field fed with ISO-8601 strings from JSON bodies."""

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        try:
            self.data = parse_datetime(valuelist[0])
        except (TypeError, ValueError):
            self.data = None
            raise ValueError(self.gettext("Not a valid datetime value."))

    def _value(self):
        return self.data.isoformat() if self.data else ""


def _scalar(value: Any) -> Any:
    if isinstance(value, bool) or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class JsonForm(FlaskForm):
    """FlaskForm populated from a camelCase JSON body.

    ``null`` values are treated as absent so ``Optional()`` short-circuits.
    With ``partial=True`` only the keys present in the body are validated,
    which is what PUT/PATCH updates need.
    """

    class Meta:
        csrf = False

    def __init__(self, payload: Optional[dict] = None, partial: bool = False, **kwargs):
        if payload is None:
            payload = request.get_json(silent=True)
            if payload is None:
                payload = {}
        if not isinstance(payload, dict):
            raise ValidationFailed("Request body must be a JSON object")
        self.partial = partial
        self.payload = {
            to_snake(key): _scalar(value)
            for key, value in payload.items()
            if value is not None
        }
        self.cleared = {to_snake(key) for key, value in payload.items() if value is None}
        super().__init__(formdata=MultiDict(self.payload), **kwargs)

    def validate(self, extra_validators=None):
        if not self.partial:
            return super().validate(extra_validators)
        success = True
        for name, field in self._fields.items():
            if name in self.cleared and field.flags.required:
                field.errors = [field.gettext("This field is required.")]
                success = False
                continue
            if name not in self.payload:
                continue
            inline = getattr(self.__class__, f"validate_{name}", None)
            if not field.validate(self, [inline] if inline is not None else ()):
                success = False
        return success

    def validated(self) -> "JsonForm":
        if not self.validate():
            raise ValidationFailed("Invalid request", errors=self.errors)
        return self

    def changes(self) -> dict[str, Any]:
        """Field values the client actually sent, ``null`` meaning cleared."""
        out = {name: None for name in self.cleared if name in self._fields}
        out.update(
            {name: field.data for name, field in self._fields.items() if name in self.payload}
        )
        return out
