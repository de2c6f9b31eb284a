"""
Helpers for building partial UPDATE statements from typed update models.
"""
import json
from typing import Any, Dict, Iterable, Tuple

from pydantic import BaseModel


def update_values(body: BaseModel, nullable: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Fields the client actually sent.

    Only fields declared on the model can appear, so column names are safe
    to interpolate. Explicit nulls are dropped unless the column is nullable.
    """
    nullable = set(nullable)
    return {
        column: value
        for column, value in body.model_dump(exclude_unset=True).items()
        if value is not None or column in nullable
    }


def build_update(values: Dict[str, Any], jsonb_fields: Iterable[str] = ()) -> Tuple[str, Dict[str, Any]]:
    """SET clause and bind params, always touching ``updated_at``"""
    jsonb_fields = set(jsonb_fields)
    assignments = []
    params = {}
    for column, value in values.items():
        if column in jsonb_fields:
            assignments.append(f"{column} = CAST(:{column} AS jsonb)")
            params[column] = json.dumps(value)
        else:
            assignments.append(f"{column} = :{column}")
            params[column] = value
    assignments.append("updated_at = NOW()")
    return ", ".join(assignments), params
