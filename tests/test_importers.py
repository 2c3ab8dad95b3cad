import json

import pytest

from blockflow.importers import FileImporter, TemplateImporter
from blockflow.models import BlockKind


@pytest.fixture
def automation_yaml(tmp_path):
    path = tmp_path / "welcome.yaml"
    path.write_text("""
name: Welcome flow
blocks:
  - id: trigger
    kind: new_lead
    position: {x: 100, y: 100}
    configured: true
    connections: [action]
  - id: action
    kind: send_message
    position: {x: 400, y: 100}
    configured: true
    config:
      channel: whatsapp
      message: "Hi {name}"
""")
    return path


def test_yaml_document(automation_yaml):
    importer = FileImporter(str(automation_yaml))
    blocks = importer.get_blocks()

    assert importer.get_name() == "Welcome flow"
    assert [block.id for block in blocks] == ["trigger", "action"]
    assert blocks[0].kind == BlockKind.NEW_LEAD
    assert blocks[0].connections == ["action"]
    assert blocks[1].config["channel"] == "whatsapp"


def test_json_block_list(tmp_path):
    path = tmp_path / "reply.json"
    path.write_text(json.dumps([
        {"id": "t", "kind": "message_received", "configured": True},
    ]))
    importer = FileImporter(str(path))

    assert importer.get_name() == "reply"
    assert len(importer.get_blocks()) == 1


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileImporter(str(tmp_path / "nope.yaml")).get_blocks()


def test_not_an_automation(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("just a string\n")
    with pytest.raises(ValueError):
        FileImporter(str(path)).get_blocks()


def test_invalid_block(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("blocks:\n  - id: x\n    kind: send_fax\n")
    with pytest.raises(ValueError, match="Invalid block #0"):
        FileImporter(str(path)).get_blocks()


def test_template_importer():
    importer = TemplateImporter("auto-reply")

    assert importer.get_name() == "Automatic message reply"
    blocks = importer.get_blocks()
    assert [block.id for block in blocks] == ["t3-trigger", "t3-action"]
    # Fresh copies every time
    blocks[0].connections.clear()
    assert importer.get_blocks()[0].connections == ["t3-action"]


def test_unknown_template():
    with pytest.raises(ValueError):
        TemplateImporter("missing")
