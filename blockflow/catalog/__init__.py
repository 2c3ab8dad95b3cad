"""Block catalog, configuration forms and templates."""

from .registry import BlockCatalog, BlockDefinition, block_catalog, load_catalog
from .forms import BlockConfig, default_config, parse_config, validate_config
from .templates import AutomationTemplate, TemplateLibrary, template_library

__all__ = [
    "BlockCatalog",
    "BlockDefinition",
    "block_catalog",
    "load_catalog",
    "BlockConfig",
    "default_config",
    "parse_config",
    "validate_config",
    "AutomationTemplate",
    "TemplateLibrary",
    "template_library",
]
