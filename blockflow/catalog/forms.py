"""
Block configuration forms for blockflow.

The engine only tracks whether a block was configured; the shape of each
kind's settings lives here. Every kind has its own payload model and the
payloads form a union discriminated by ``kind``, so adding a kind without a
form case fails loudly in ``parse_config``.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..models import BlockKind
from .registry import BlockCatalog, block_catalog


class _FormConfig(BaseModel):
    # Config maps are open: unknown keys are kept, not rejected
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class NewLeadConfig(_FormConfig):
    kind: Literal["new_lead"] = "new_lead"
    source: str = "none"
    tags: str = ""


class LeadMovedConfig(_FormConfig):
    kind: Literal["lead_moved"] = "lead_moved"
    from_stage: str = Field(default="any", alias="fromStage")
    to_stage: str = Field(default="none", alias="toStage")


class MessageReceivedConfig(_FormConfig):
    kind: Literal["message_received"] = "message_received"
    channel: str = "any"
    contains: str = ""


class LeadStatusConfig(_FormConfig):
    kind: Literal["lead_status"] = "lead_status"
    field: str = "status"
    operator: str = "equals"
    value: str = ""


class LeadSourceConfig(_FormConfig):
    kind: Literal["lead_source"] = "lead_source"
    operator: str = "equals"
    value: str = "none"


class ValueGreaterConfig(_FormConfig):
    kind: Literal["value_greater"] = "value_greater"
    field: str = "valor"
    operator: str = "greater"
    value: Optional[float] = None


class SendMessageConfig(_FormConfig):
    kind: Literal["send_message"] = "send_message"
    channel: str = "none"
    template: str = "none"
    message: str = ""


class CreateTaskConfig(_FormConfig):
    kind: Literal["create_task"] = "create_task"
    description: str = ""
    assignee: str = "none"
    due_days: int = Field(default=1, ge=0)
    priority: str = "medium"
    task_type: str = Field(default="general", alias="taskType")


class MovePipelineConfig(_FormConfig):
    kind: Literal["move_pipeline"] = "move_pipeline"
    pipeline: str = "default"
    stage: str = "none"


BlockConfig = Annotated[
    Union[
        NewLeadConfig,
        LeadMovedConfig,
        MessageReceivedConfig,
        LeadStatusConfig,
        LeadSourceConfig,
        ValueGreaterConfig,
        SendMessageConfig,
        CreateTaskConfig,
        MovePipelineConfig,
    ],
    Field(discriminator="kind"),
]

_config_adapter = TypeAdapter(BlockConfig)

# Fields the form refuses to complete without. "none" is the placeholder the
# select inputs start on, so it counts as missing.
REQUIRED_FIELDS: Dict[BlockKind, List[str]] = {
    BlockKind.SEND_MESSAGE: ["channel", "message"],
    BlockKind.CREATE_TASK: ["description"],
    BlockKind.MOVE_PIPELINE: ["stage"],
    BlockKind.LEAD_STATUS: ["value"],
}

_PLACEHOLDERS = (None, "", "none")


def parse_config(kind: Any, config: Dict[str, Any]) -> BlockConfig:
    """
    Parse a raw config map into the typed payload of its kind.

    Args:
        kind: The block kind the config belongs to
        config: Raw key/value settings

    Returns:
        The kind's payload model

    Raises:
        pydantic.ValidationError: If a field has the wrong type
    """
    kind = BlockKind(kind)
    return _config_adapter.validate_python({**(config or {}), "kind": kind.value})


def default_config(kind: Any, catalog: Optional[BlockCatalog] = None) -> Dict[str, Any]:
    """
    Get the initial form values for a block kind.

    Args:
        kind: The block kind
        catalog: Catalog to read defaults from (defaults to the global one)

    Returns:
        A fresh copy of the kind's default settings
    """
    definition = (catalog or block_catalog).get_block(kind)
    if not definition:
        raise ValueError(f"Unknown block kind '{kind}'")
    return dict(definition.default_config)


def validate_config(kind: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a block's settings the way the configuration form does.

    Args:
        kind: The block kind
        config: Raw key/value settings

    Returns:
        Dictionary with validation results
    """
    results: Dict[str, Any] = {
        'valid': True,
        'errors': [],
        'warnings': []
    }

    try:
        kind = BlockKind(kind)
    except ValueError:
        results['valid'] = False
        results['errors'].append(f"Unknown block kind '{kind}'")
        return results

    config = config or {}
    for field_name in REQUIRED_FIELDS.get(kind, []):
        if config.get(field_name) in _PLACEHOLDERS:
            results['errors'].append(f"'{field_name}' is required")

    try:
        payload = parse_config(kind, config)
    except ValidationError as e:
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            results['errors'].append(f"'{location}': {error['msg']}")
    else:
        if payload.model_extra:
            unknown = ", ".join(sorted(payload.model_extra))
            results['warnings'].append(f"Unknown settings for {kind.value}: {unknown}")

    results['valid'] = not results['errors']
    return results
