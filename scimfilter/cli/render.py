from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .results import CommandResult


@dataclass(frozen=True, slots=True)
class RenderSettings:
    output: str  # "tree" | "json"
    quiet: bool


def _path_label(path: dict[str, Any]) -> str:
    name = ".".join(path["names"])
    if path.get("schema"):
        return f"{path['schema']}:{name}"
    return name


def _node_label(node: dict[str, Any]) -> Text:
    node_type = node["type"]

    if node_type == "attribute_path":
        return Text.assemble(("attribute ", "bold cyan"), _path_label(node))
    if node_type == "comparison":
        label = Text.assemble(
            (_path_label(node["path"]), "cyan"), " ", (node["operator"], "bold magenta")
        )
        if node["operator"] != "pr":
            label.append(" ")
            label.append(json.dumps(node["value"]), style="green")
        return label
    if node_type == "negation":
        return Text("not", style="bold yellow")
    if node_type == "conjunction":
        return Text("and", style="bold yellow")
    if node_type == "disjunction":
        return Text("or", style="bold yellow")
    if node_type == "value_path":
        label = Text.assemble(("value path ", "bold cyan"), _path_label(node["path"]))
        if node.get("sub_attribute"):
            label.append(f".{node['sub_attribute']}", style="cyan")
        return label

    raise ValueError(f"Unknown node type '{node_type}'.")


def _add_children(tree: Tree, node: dict[str, Any]) -> None:
    node_type = node["type"]
    if node_type in ("conjunction", "disjunction"):
        children = node["children"]
    elif node_type in ("negation", "value_path"):
        children = [node["inner"]]
    else:
        children = []

    for child in children:
        _add_children(tree.add(_node_label(child)), child)


def build_tree(node: dict[str, Any]) -> Tree:
    """Rich tree for a serialized AST (``Node.to_dict()`` output)."""
    tree = Tree(_node_label(node))
    _add_children(tree, node)
    return tree


def render_result(result: CommandResult, *, settings: RenderSettings) -> None:
    stdout = Console(soft_wrap=True)
    stderr = Console(stderr=True, soft_wrap=True)

    if settings.output == "json":
        stdout.print_json(result.model_dump_json(by_alias=True))
        return

    if not result.ok:
        assert result.error is not None
        stderr.print(Text.assemble(("Error: ", "bold red"), result.error.message))
        details = result.error.details or {}
        position = details.get("position")
        if position is not None and not settings.quiet:
            stderr.print(f"  {result.input}", highlight=False, markup=False)
            stderr.print(f"  {' ' * position}^", highlight=False, markup=False)
        return

    if result.data is None:
        if not settings.quiet:
            stderr.print("Empty expression.", style="dim")
        return

    stdout.print(build_tree(result.data["ast"]))
