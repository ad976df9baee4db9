"""
Validation rules for boards, lists and tasks

The ORM models only describe storage. Every create/update path in the services
passes user input through one of these functions first; they return the
normalised (trimmed) values or raise ``ValidationError``.
"""
from typing import Any, Dict, List, Optional, Tuple

from kanban_api.core.exceptions import ValidationError

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
LABEL_TEXT_MAX_LENGTH = 20
# Колонки order в базе 32-битные
ORDER_MAX = 2 ** 31 - 1
LABEL_COLORS = ("green", "yellow", "orange", "red", "purple", "blue")
DEFAULT_LABEL_COLOR = "blue"


def validate_title(title: Optional[str], entity: str) -> str:
    if title is None:
        raise ValidationError(f"{entity} title is required", field="title")
    title = title.strip()
    if not title:
        raise ValidationError(f"{entity} title must not be empty", field="title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"{entity} title must be at most {TITLE_MAX_LENGTH} characters", field="title"
        )
    return title


def validate_description(description: Optional[str], entity: str) -> Optional[str]:
    if description is None:
        return None
    description = description.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"{entity} description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return description


def validate_board(title: Optional[str], description: Optional[str] = None) -> Tuple[str, Optional[str]]:
    return validate_title(title, "Board"), validate_description(description, "Board")


def validate_list(title: Optional[str]) -> str:
    return validate_title(title, "List")


def validate_label(label: Dict[str, Any]) -> Dict[str, str]:
    color = label.get("color") or DEFAULT_LABEL_COLOR
    if color not in LABEL_COLORS:
        raise ValidationError(
            f"Label color must be one of: {', '.join(LABEL_COLORS)}", field="labels"
        )
    text = (label.get("text") or "").strip()
    if len(text) > LABEL_TEXT_MAX_LENGTH:
        raise ValidationError(
            f"Label text must be at most {LABEL_TEXT_MAX_LENGTH} characters", field="labels"
        )
    return {"color": color, "text": text}


def validate_labels(labels: Optional[List[Dict[str, Any]]]) -> Optional[List[Dict[str, str]]]:
    if labels is None:
        return None
    return [validate_label(label) for label in labels]


def validate_task(
    title: Optional[str],
    description: Optional[str] = None,
    labels: Optional[List[Dict[str, Any]]] = None,
) -> Tuple[str, Optional[str], Optional[List[Dict[str, str]]]]:
    return (
        validate_title(title, "Task"),
        validate_description(description, "Task"),
        validate_labels(labels),
    )


def validate_order(order: int) -> int:
    if order < 0:
        raise ValidationError("Order must be a non-negative integer", field="order")
    if order > ORDER_MAX:
        raise ValidationError(f"Order must be at most {ORDER_MAX}", field="order")
    return order
