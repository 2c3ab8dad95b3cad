"""
Unit tests for core blockflow components.

Tests configuration management, data models, the block catalog, configuration
forms and templates.
"""

import os
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from blockflow.config import ConfigManager
from blockflow.models import (
    Block,
    BlockCategory,
    BlockKind,
    CATEGORY_BY_KIND,
    Position,
    ValidationResult,
    category_for_kind,
    snap_to_grid,
)
from blockflow.catalog import (
    BlockCatalog,
    BlockDefinition,
    TemplateLibrary,
    default_config,
    load_catalog,
    parse_config,
    validate_config,
)
from blockflow.catalog.forms import CreateTaskConfig, LeadMovedConfig, SendMessageConfig
from blockflow.engine import StructuralValidator


class TestConfigManager(unittest.TestCase):
    """Test configuration management functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = Path(self.temp_dir) / "test_config.yaml"

    def tearDown(self):
        """Clean up test fixtures."""
        if self.config_path.exists():
            self.config_path.unlink()
        os.rmdir(self.temp_dir)

    def test_config_creation_with_defaults(self):
        """Test config manager falls back to defaults when file missing."""
        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.grid_size, 20)
        self.assertEqual(config.default_position, {"x": 100, "y": 100})
        self.assertEqual(config.id_prefix, "block")
        self.assertEqual(config.step_delay, 0.3)
        self.assertEqual(config.database_filename, "blockflow.db")
        self.assertEqual(config.catalog_definitions, {})

    def test_config_loading_from_file(self):
        """Test loading configuration from YAML file."""
        test_config = """
editor:
  grid_size: 10
  id_prefix: "node"

simulation:
  step_delay: 0

catalog:
  definitions:
    create_task:
      name: "New Task"
"""
        with open(self.config_path, 'w') as f:
            f.write(test_config)

        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.grid_size, 10)
        self.assertEqual(config.id_prefix, "node")
        self.assertEqual(config.step_delay, 0.0)
        self.assertEqual(config.catalog_definitions, {"create_task": {"name": "New Task"}})
        # Keys missing from the file use property defaults
        self.assertEqual(config.default_position, {"x": 100, "y": 100})

    def test_invalid_yaml_falls_back_to_defaults(self):
        """Test a malformed file does not break startup."""
        with open(self.config_path, 'w') as f:
            f.write("editor: [grid_size: 10\n")

        config = ConfigManager(str(self.config_path))
        self.assertEqual(config.grid_size, 20)

    def test_dot_notation_access(self):
        """Test accessing config values with dot notation."""
        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.get("editor.grid_size"), 20)
        self.assertEqual(config.get("editor.default_position.x"), 100)
        self.assertIsNone(config.get("nonexistent.key"))
        self.assertEqual(config.get("nonexistent.key", "default"), "default")

    def test_config_reload(self):
        """Test configuration reloading."""
        config = ConfigManager(str(self.config_path))
        self.assertEqual(config.grid_size, 20)

        with open(self.config_path, 'w') as f:
            f.write("editor:\n  grid_size: 40\n")

        config.reload()
        self.assertEqual(config.grid_size, 40)


class TestDataModels(unittest.TestCase):
    """Test block models and category derivation."""

    def test_every_kind_has_a_category(self):
        """Test the kind to category table is total."""
        self.assertEqual(set(CATEGORY_BY_KIND), set(BlockKind))

    def test_category_derived_from_kind(self):
        """Test a block's category always follows its kind."""
        block = Block(id="b1", kind=BlockKind.NEW_LEAD)
        self.assertEqual(block.category, BlockCategory.TRIGGER)
        self.assertTrue(block.is_trigger())

        block.kind = BlockKind.VALUE_GREATER
        self.assertEqual(block.category, BlockCategory.CONDITION)
        self.assertFalse(block.is_trigger())

        self.assertEqual(category_for_kind("create_task"), BlockCategory.ACTION)

    def test_unknown_kind_rejected(self):
        """Test kinds outside the catalog are refused."""
        with self.assertRaises(ValueError):
            category_for_kind("send_fax")
        with self.assertRaises(ValidationError):
            Block(id="b1", kind="send_fax")

    def test_block_defaults(self):
        """Test a new block starts unconfigured and unconnected."""
        block = Block(id="b1", kind="send_message")

        self.assertEqual(block.kind, BlockKind.SEND_MESSAGE)
        self.assertFalse(block.configured)
        self.assertEqual(block.config, {})
        self.assertEqual(block.connections, [])
        self.assertEqual(block.position, Position(x=0, y=0))

    def test_block_dump_includes_category(self):
        """Test serialized blocks carry the derived category and load back."""
        block = Block(id="b1", kind=BlockKind.LEAD_STATUS, connections=["b2"])
        data = block.model_dump(mode="json")

        self.assertEqual(data["category"], "condition")
        self.assertEqual(data["kind"], "lead_status")
        self.assertEqual(Block.model_validate(data), block)

    def test_negative_position_rejected(self):
        with self.assertRaises(ValidationError):
            Position(x=-1, y=0)

    def test_snap_to_grid(self):
        """Test snapping rounds to the nearest multiple, halves up."""
        self.assertEqual(snap_to_grid(0, 0), Position(x=0, y=0))
        self.assertEqual(snap_to_grid(109, 91), Position(x=100, y=100))
        self.assertEqual(snap_to_grid(110, 130), Position(x=120, y=140))
        self.assertEqual(snap_to_grid(29.9, 9.9), Position(x=20, y=0))
        self.assertEqual(snap_to_grid(-35, 12, grid_size=10), Position(x=0, y=10))

    def test_validation_result_valid_iff_no_errors(self):
        self.assertTrue(ValidationResult().valid)
        self.assertFalse(ValidationResult(errors=["boom"]).valid)


class TestBlockCatalog(unittest.TestCase):
    """Test the block catalog registry."""

    def setUp(self):
        """Set up a catalog without configuration overrides."""
        self.catalog = BlockCatalog()

    def test_default_blocks_registered(self):
        """Test that all nine kinds are registered."""
        self.assertEqual(set(self.catalog.list_kinds()), set(BlockKind))

        for kind in BlockKind:
            definition = self.catalog.get_block(kind)
            self.assertIsNotNone(definition)
            self.assertTrue(definition.name)
            self.assertTrue(definition.test_message)

    def test_block_retrieval(self):
        """Test lookup by enum member or string value."""
        definition = self.catalog.get_block("new_lead")
        self.assertEqual(definition.name, "New Lead")
        self.assertEqual(definition.test_message, "Fictitious lead created")
        self.assertEqual(definition.category, BlockCategory.TRIGGER)

        self.assertIsNone(self.catalog.get_block("send_fax"))

    def test_category_for(self):
        self.assertEqual(self.catalog.category_for("move_pipeline"), BlockCategory.ACTION)
        with self.assertRaises(ValueError):
            self.catalog.category_for("send_fax")

    def test_palette_grouping(self):
        """Test the palette holds three kinds per category."""
        palette = self.catalog.palette()

        self.assertEqual(list(palette), ["trigger", "condition", "action"])
        for category, definitions in palette.items():
            self.assertEqual(len(definitions), 3)
            for definition in definitions:
                self.assertEqual(definition.category.value, category)

    def test_custom_block_registration(self):
        """Test replacing a definition."""
        self.catalog.register_block(BlockDefinition(
            kind=BlockKind.CREATE_TASK,
            name="Create CRM Task",
            description="Custom description",
            test_message="Custom task created"
        ))

        definition = self.catalog.get_block(BlockKind.CREATE_TASK)
        self.assertEqual(definition.name, "Create CRM Task")
        self.assertEqual(len(self.catalog.list_kinds()), 9)

    def test_overrides_applied(self):
        """Test configuration overrides update existing kinds only."""
        updated = self.catalog.apply_overrides({
            "send_message": {"test_message": "WhatsApp sent"},
            "create_task": {"default_config": {"priority": "high"}},
            "send_fax": {"name": "Fax"},
            "lead_status": "not a mapping",
        })

        self.assertEqual(updated, ["send_message", "create_task"])
        self.assertEqual(self.catalog.get_block("send_message").test_message, "WhatsApp sent")
        self.assertEqual(self.catalog.get_block("create_task").default_config, {"priority": "high"})
        self.assertIsNone(self.catalog.get_block("send_fax"))

    def test_load_catalog_with_definitions(self):
        catalog = load_catalog({"new_lead": {"name": "Lead Created"}})
        self.assertEqual(catalog.get_block("new_lead").name, "Lead Created")


class TestConfigurationForms(unittest.TestCase):
    """Test per-kind configuration payloads."""

    def test_parse_config_picks_payload_by_kind(self):
        payload = parse_config("send_message", {"channel": "whatsapp", "message": "Hi"})

        self.assertIsInstance(payload, SendMessageConfig)
        self.assertEqual(payload.channel, "whatsapp")
        self.assertEqual(payload.template, "none")

    def test_parse_config_aliases(self):
        """Test camelCase keys written by the form are accepted."""
        moved = parse_config(BlockKind.LEAD_MOVED, {"fromStage": "new", "toStage": "won"})
        self.assertIsInstance(moved, LeadMovedConfig)
        self.assertEqual(moved.from_stage, "new")
        self.assertEqual(moved.to_stage, "won")

        task = parse_config("create_task", {"taskType": "call", "due_days": 3})
        self.assertIsInstance(task, CreateTaskConfig)
        self.assertEqual(task.task_type, "call")
        self.assertEqual(task.due_days, 3)

    def test_parse_config_rejects_bad_types(self):
        with self.assertRaises(ValidationError):
            parse_config("create_task", {"due_days": -2})

    def test_default_config_is_a_copy(self):
        catalog = BlockCatalog()
        defaults = default_config("create_task", catalog)
        defaults["priority"] = "high"

        self.assertEqual(catalog.get_block("create_task").default_config["priority"], "medium")
        with self.assertRaises(ValueError):
            default_config("send_fax", catalog)

    def test_validate_config_required_fields(self):
        """Test placeholders count as missing."""
        results = validate_config("send_message", {"channel": "none", "message": ""})

        self.assertFalse(results['valid'])
        self.assertIn("'channel' is required", results['errors'])
        self.assertIn("'message' is required", results['errors'])

        results = validate_config("send_message", {"channel": "email", "message": "Hello"})
        self.assertTrue(results['valid'])
        self.assertEqual(results['errors'], [])

    def test_validate_config_type_errors(self):
        results = validate_config("value_greater", {"value": "lots"})

        self.assertFalse(results['valid'])
        self.assertTrue(any("value" in error for error in results['errors']))

    def test_validate_config_unknown_settings_warn(self):
        results = validate_config("new_lead", {"source": "website", "colour": "red"})

        self.assertTrue(results['valid'])
        self.assertEqual(results['warnings'], ["Unknown settings for new_lead: colour"])

    def test_validate_config_unknown_kind(self):
        results = validate_config("send_fax", {})
        self.assertFalse(results['valid'])


class TestTemplates(unittest.TestCase):
    """Test the built-in automation templates."""

    def setUp(self):
        self.library = TemplateLibrary()

    def test_default_templates(self):
        ids = [template.template_id for template in self.library.list_templates()]
        self.assertEqual(ids, ["lead-welcome", "inactive-follow-up", "auto-reply"])
        self.assertIsNone(self.library.get_template("missing"))

    def test_templates_are_valid(self):
        """Test every template passes structural validation."""
        validator = StructuralValidator()
        for template in self.library.list_templates():
            result = validator.validate(template.instantiate())
            self.assertTrue(result.valid, f"{template.template_id}: {result.errors}")
            self.assertEqual(validator.unreachable_blocks(template.blocks), [])

    def test_template_settings_pass_forms(self):
        for template in self.library.list_templates():
            for block in template.blocks:
                results = validate_config(block.kind, block.config)
                self.assertTrue(results['valid'], f"{block.id}: {results['errors']}")

    def test_instantiate_returns_copies(self):
        """Test edits to an instantiated template never reach the template."""
        template = self.library.get_template("inactive-follow-up")
        blocks = template.instantiate()
        blocks[0].connections.append("elsewhere")
        blocks[1].config["value"] = "lost"

        self.assertEqual(template.blocks[0].connections, ["t2-condition"])
        self.assertEqual(template.blocks[1].config["value"], "qualified")


if __name__ == "__main__":
    unittest.main()
