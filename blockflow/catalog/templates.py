"""
Ready-made automation templates for blockflow.

A template is a complete, valid block list. Applying one hands out deep
copies so edits made in one session never leak back into the template.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import Block, BlockKind, Position


@dataclass
class AutomationTemplate:
    """
    A named starting point for a new automation.
    """
    template_id: str
    name: str
    description: str
    blocks: List[Block] = field(default_factory=list)

    def instantiate(self) -> List[Block]:
        """Return fresh copies of the template's blocks."""
        return [block.model_copy(deep=True) for block in self.blocks]


def _block(block_id: str, kind: BlockKind, x: int, connections: List[str], **config) -> Block:
    return Block(
        id=block_id,
        kind=kind,
        position=Position(x=x, y=100),
        configured=True,
        config=config,
        connections=connections
    )


class TemplateLibrary:
    """
    Registry of the built-in automation templates.
    """

    def __init__(self):
        self._templates: Dict[str, AutomationTemplate] = {}
        self._register_default_templates()

    def _register_default_templates(self):
        self.register_template(AutomationTemplate(
            template_id="lead-welcome",
            name="Lead welcome",
            description="Sends an automatic message when a new lead is created",
            blocks=[
                _block("t1-trigger", BlockKind.NEW_LEAD, 100, ["t1-action"]),
                _block(
                    "t1-action", BlockKind.SEND_MESSAGE, 400, [],
                    channel="whatsapp",
                    message="Hi {name}, welcome! How can we help you today?"
                ),
            ]
        ))

        self.register_template(AutomationTemplate(
            template_id="inactive-follow-up",
            name="Inactive lead follow-up",
            description="Creates a follow-up task when a qualified lead goes quiet",
            blocks=[
                _block("t2-trigger", BlockKind.LEAD_MOVED, 100, ["t2-condition"]),
                _block("t2-condition", BlockKind.LEAD_STATUS, 400, ["t2-action"], value="qualified"),
                _block(
                    "t2-action", BlockKind.CREATE_TASK, 700, [],
                    description="Follow up with {name}",
                    due_days=3
                ),
            ]
        ))

        self.register_template(AutomationTemplate(
            template_id="auto-reply",
            name="Automatic message reply",
            description="Replies to messages received outside business hours",
            blocks=[
                _block("t3-trigger", BlockKind.MESSAGE_RECEIVED, 100, ["t3-action"]),
                _block(
                    "t3-action", BlockKind.SEND_MESSAGE, 400, [],
                    channel="auto",
                    message="Thanks for reaching out! Our team will reply on the next business day."
                ),
            ]
        ))

    def register_template(self, template: AutomationTemplate) -> None:
        self._templates[template.template_id] = template

    def get_template(self, template_id: str) -> Optional[AutomationTemplate]:
        return self._templates.get(template_id)

    def list_templates(self) -> List[AutomationTemplate]:
        return list(self._templates.values())


# Global template library instance
template_library = TemplateLibrary()
