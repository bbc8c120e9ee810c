from __future__ import annotations

import re
from typing import Any, Mapping

from track_browser.core.exceptions import ConfigError, DataError

from ..flow_node import Behavior, Datum, FlowNode


class RegexExtractTransform(FlowNode):
    """
    Extracts capture groups of a regular expression into new fields.

    Params:
    - field: the field to match against
    - regex: pattern with one capture group per output field
    - as: output field name or list of names
    - skipInvalidInput: pass non-matching records through untouched instead of failing
    """

    type_name = "regexExtract"

    def __init__(self, params: Mapping[str, Any]):
        super().__init__()
        self.field = params.get("field")
        if not self.field:
            raise ConfigError("regexExtract needs a 'field'", config=dict(params))

        try:
            self.regex = re.compile(params.get("regex", ""))
        except re.error as e:
            raise ConfigError(f"regexExtract has an invalid pattern: {e}", config=dict(params)) from e

        as_fields = params.get("as")
        self.as_fields = [as_fields] if isinstance(as_fields, str) else list(as_fields or [])

        if self.regex.groups != len(self.as_fields) or not self.as_fields:
            raise ConfigError(
                f"regexExtract pattern has {self.regex.groups} capture groups "
                f"but {len(self.as_fields)} 'as' fields",
                config=dict(params),
            )

        self.skip_invalid_input = bool(params.get("skipInvalidInput", False))

    @property
    def behavior(self) -> Behavior:
        return Behavior.MODIFIES

    def handle(self, datum: Datum) -> None:
        value = datum.get(self.field)
        match = self.regex.search(value) if isinstance(value, str) else None

        if match is None:
            if self.skip_invalid_input:
                self._propagate(datum)
                return
            raise DataError(
                f"regexExtract: '{value}' in field '{self.field}' does not match /{self.regex.pattern}/"
            )

        for as_field, group in zip(self.as_fields, match.groups()):
            datum[as_field] = group
        self._propagate(datum)
