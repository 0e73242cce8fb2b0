# genscript/schema.py
# JSON-schema check for serialised parse results (`--emit-ast` output).

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Union

import jsonschema

from .nodes import ParseResult

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "parse-result.schema.json"


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_parse_result(doc: Union[ParseResult, Dict[str, Any]]) -> None:
    """Raise jsonschema.ValidationError if `doc` does not match the parse-result shape."""
    if isinstance(doc, ParseResult):
        doc = doc.to_dict()
    jsonschema.validate(instance=doc, schema=load_schema())
