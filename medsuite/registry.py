"""
Static tool registry.

Tools are data, not code: each entry in medsuite/data/tools.yml becomes a
ToolDefinition when the process starts, and the registry never changes after
that. Adding a tool means adding an entry to the YAML file.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

import yaml
from loguru import logger
from pydantic import ValidationError

from medsuite.errors import DuplicateToolError, RegistryError, ToolNotFoundError
from medsuite.models import ToolDefinition

DEFAULT_TOOLS_FILE = Path(__file__).parent / "data" / "tools.yml"


class ToolDefaults:
    """Model parameters applied to tools that leave them unset."""

    def __init__(self, model: str = "gpt-4o-mini", temperature: float = 0.3, max_tokens: int = 4000):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def apply(self, tool: ToolDefinition) -> ToolDefinition:
        """Return a copy of the tool with every unset model parameter filled in."""
        updates: dict[str, Any] = {}
        if tool.model is None:
            updates["model"] = self.model
        # Explicit 0.0 is a valid temperature and is kept
        if tool.temperature is None:
            updates["temperature"] = self.temperature
        if tool.max_tokens is None:
            updates["max_tokens"] = self.max_tokens
        return tool.model_copy(update=updates) if updates else tool


class ToolRegistry:
    """
    Immutable mapping from tool id to ToolDefinition.

    Safe to share across concurrent requests: there is no mutation API and
    the backing mapping is a read-only proxy.

    Example:
        >>> registry = load_registry()
        >>> registry.list_ids()
        ('mental-health', 'dexa-interpreter', 'spirometry-interpreter')
        >>> registry.lookup("dexa-interpreter").name
        'DEXA Scan Interpreter'
    """

    def __init__(self, tools: Iterable[ToolDefinition]):
        collected: dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.id in collected:
                raise DuplicateToolError(tool.id)
            collected[tool.id] = tool

        self._tools: Mapping[str, ToolDefinition] = MappingProxyType(collected)
        self._ids = tuple(collected)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Mapping[str, Any]],
        defaults: Optional[ToolDefaults] = None,
    ) -> "ToolRegistry":
        """
        Build a registry from raw entries, validating each one and applying defaults.

        Args:
            entries: Mappings with ToolDefinition fields
            defaults: Model parameter defaults (process defaults when omitted)

        Raises:
            RegistryError: If an entry is malformed
            DuplicateToolError: If two entries share an id
        """
        defaults = defaults or ToolDefaults()
        tools = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                raise RegistryError(f"Registry entry #{position} is not a mapping")
            try:
                tool = ToolDefinition.model_validate(dict(entry))
            except ValidationError as e:
                tool_id = entry.get("id", f"#{position}")
                raise RegistryError(f"Invalid registry entry {tool_id}: {e}") from e
            tools.append(defaults.apply(tool))
        return cls(tools)

    def lookup(self, tool_id: str) -> ToolDefinition:
        """
        Find a tool by id.

        Raises:
            ToolNotFoundError: If no tool has this id; the error lists valid ids
        """
        try:
            return self._tools[tool_id]
        except KeyError:
            raise ToolNotFoundError(tool_id, self._ids) from None

    def list_ids(self) -> tuple[str, ...]:
        """Registered tool ids in registry order."""
        return self._ids

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())


def load_registry(path: Path | str | None = None, defaults: Optional[ToolDefaults] = None) -> ToolRegistry:
    """
    Load the tool registry from a YAML file.

    The file holds a list of tool entries. A list (rather than a mapping keyed
    by id) keeps duplicate ids visible instead of letting the YAML parser
    silently keep the last one.

    Args:
        path: Registry file (defaults to the packaged medsuite/data/tools.yml)
        defaults: Model parameter defaults applied to each entry

    Returns:
        Loaded ToolRegistry

    Raises:
        RegistryError: If the file is missing, unreadable or malformed
    """
    path = Path(path) if path is not None else DEFAULT_TOOLS_FILE
    logger.info(f"Loading tool registry from {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            entries = yaml.safe_load(f)
    except OSError as e:
        raise RegistryError(f"Cannot read tool registry {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RegistryError(f"Tool registry {path} is not valid YAML: {e}") from e

    if not isinstance(entries, list):
        raise RegistryError(f"Tool registry {path} must contain a list of tools")

    registry = ToolRegistry.from_entries(entries, defaults)
    logger.info(f"Loaded {len(registry)} tools: {', '.join(registry.list_ids())}")
    return registry
