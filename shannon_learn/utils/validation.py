"""
Schema validation utilities for ShannonLearn.

JSON Schema (Draft 7) validation of lessons handed in by the lesson source and
attempts handed to persistence, with readable error messages and an optional
repair pass for the common problems seen in model-generated payloads:
- Unknown keys where the schema forbids them
- Numbers delivered as strings
"""

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError

from ..config import config


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data (may be modified if repair was attempted)
        repairs: List of repairs applied
    """

    def __init__(
        self,
        valid: bool,
        errors: list[str],
        data: Any = None,
        repairs: Optional[list[str]] = None,
    ):
        self.valid = valid
        self.errors = errors
        self.data = data
        self.repairs = repairs or []

    def __bool__(self) -> bool:
        return self.valid

    def __str__(self) -> str:
        if self.valid:
            msg = "Validation passed"
            if self.repairs:
                msg += f" (with {len(self.repairs)} repair(s))"
            return msg
        return f"Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator with auto-repair.

    Usage:
        validator = SchemaValidator("path/to/schema.json")
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    def __init__(self, schema_path: Path | str):
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: dict, auto_repair: bool = False) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate
            auto_repair: If True, attempt to fix common validation errors

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(error) for error in self.validator.iter_errors(data)]

        if errors:
            if auto_repair:
                repaired_data, repairs = self._attempt_repair(data)
                result = self.validate(repaired_data, auto_repair=False)
                result.repairs = repairs
                return result
            return ValidationResult(valid=False, errors=errors, data=data)

        return ValidationResult(valid=True, errors=[], data=data)

    def _format_error(self, error: ValidationError) -> str:
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        schema_path = "/".join(str(p) for p in error.schema_path)
        return f"At '{path}': {error.message} [validator={error.validator}, schema_path=/{schema_path}]"

    def _attempt_repair(self, data: dict) -> tuple[dict, list[str]]:
        repaired = deepcopy(data)
        repairs: list[str] = []
        self._repair_node(repaired, self.schema, repairs, "root")
        return repaired, repairs

    def _repair_node(self, obj: Any, schema: dict, repairs: list[str], path: str):
        """Walk obj alongside schema, dropping unknown keys and coercing numbers."""
        if not isinstance(schema, dict):
            return

        if isinstance(obj, dict) and "properties" in schema:
            properties = schema["properties"]
            if schema.get("additionalProperties") is False:
                for key in [k for k in obj if k not in properties]:
                    obj.pop(key)
                    repairs.append(f"Removed unknown key '{key}' at {path}")

            for key, subschema in properties.items():
                if key not in obj:
                    continue
                coerced = self._coerce(obj[key], subschema)
                if coerced is not obj[key]:
                    repairs.append(f"Coerced {path}.{key}: {obj[key]!r} -> {coerced!r}")
                    obj[key] = coerced
                self._repair_node(obj[key], subschema, repairs, f"{path}.{key}")

        if isinstance(obj, list) and isinstance(schema.get("items"), dict):
            for i, item in enumerate(obj):
                self._repair_node(item, schema["items"], repairs, f"{path}[{i}]")

    @staticmethod
    def _coerce(value: Any, schema: dict) -> Any:
        if not isinstance(value, str):
            return value
        expected = schema.get("type")
        try:
            if expected == "integer":
                return int(float(value))
            if expected == "number":
                return float(value)
        except ValueError:
            return value
        return value


class LessonValidator(SchemaValidator):
    """Validator for lessons in the lesson-source wire format."""

    def __init__(self, schema_path: Path | str | None = None):
        super().__init__(schema_path or config.paths.lesson_schema)


class AttemptValidator(SchemaValidator):
    """Validator for persisted attempt records."""

    def __init__(self, schema_path: Path | str | None = None):
        super().__init__(schema_path or config.paths.attempt_schema)


def validate_lesson(data: dict, auto_repair: bool = False) -> ValidationResult:
    """Validate a lesson payload against lesson.schema.json."""
    return LessonValidator().validate(data, auto_repair=auto_repair)


def validate_attempt(data: dict, auto_repair: bool = False) -> ValidationResult:
    """Validate an attempt record against attempt.schema.json."""
    return AttemptValidator().validate(data, auto_repair=auto_repair)
