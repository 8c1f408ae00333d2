"""Read-only views of a component's dependency graph.

These walk the registry only; nothing here looks at the project. The
resolver in ``ownkit.installer`` does the same walk when it installs.
"""

from dataclasses import dataclass, field
from enum import Enum

from .registry import ComponentEntry, Registry

DEFAULT_TREE_DEPTH = 2


class NodeKind(Enum):
    COMPONENT = "component"
    LIB = "lib"
    NPM = "npm"


NODE_ICONS = {
    NodeKind.COMPONENT: "📦",
    NodeKind.LIB: "🔧",
    NodeKind.NPM: "📚",
}


@dataclass
class TreeNode:
    name: str
    kind: NodeKind
    description: str | None = None
    children: list["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {"name": self.name, "type": self.kind.value}
        if self.description:
            data["description"] = self.description
        data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class DependencySummary:
    components: list[str] = field(default_factory=list)
    libs: list[str] = field(default_factory=list)
    npm: list[str] = field(default_factory=list)

    def add(self, kind: NodeKind, name: str) -> None:
        bucket = {NodeKind.COMPONENT: self.components, NodeKind.LIB: self.libs, NodeKind.NPM: self.npm}[kind]
        if name not in bucket:
            bucket.append(name)

    def to_dict(self) -> dict:
        return {"components": list(self.components), "libs": list(self.libs), "npm": list(self.npm)}


def _lib_node(name: str, registry: Registry, visited: set[str]) -> TreeNode:
    module = registry.get_lib(name)
    node = TreeNode(name, NodeKind.LIB, module.description if module else None)
    if module is None:
        return node
    for dep_name in module.internal_dependencies:
        key = f"lib:{dep_name}"
        if key in visited:
            continue
        visited.add(key)
        node.children.append(_lib_node(dep_name, registry, visited))
    return node


def build_tree(
    component: ComponentEntry,
    registry: Registry,
    max_depth: int = DEFAULT_TREE_DEPTH,
    visited: set[str] | None = None,
    depth: int = 0,
) -> TreeNode:
    """Build the dependency tree below a component.

    Children are lib modules, then prerequisite components, then npm
    packages. A component seen before, or one at max_depth, is a leaf.
    """
    visited = set() if visited is None else visited
    node = TreeNode(component.name, NodeKind.COMPONENT, component.description)
    if component.name in visited or depth >= max_depth:
        return node
    visited.add(component.name)

    for lib_name in component.internal_dependencies:
        node.children.append(_lib_node(lib_name, registry, visited))
    for dep_name in component.registry_dependencies:
        dependency = registry.get_component(dep_name)
        if dependency is not None:
            node.children.append(build_tree(dependency, registry, max_depth, visited, depth + 1))
    for package in component.dependencies:
        node.children.append(TreeNode(package, NodeKind.NPM))
    return node


def render_tree(node: TreeNode, prefix: str = "", is_last: bool = True, is_root: bool = True) -> list[str]:
    if is_root:
        connector = child_prefix = ""
    else:
        connector = "└── " if is_last else "├── "
        child_prefix = "    " if is_last else "│   "

    line = f"{prefix}{connector}{NODE_ICONS[node.kind]} {node.name}"
    if is_root and node.description:
        line += f" - {node.description}"

    lines = [line]
    for i, child in enumerate(node.children):
        lines.extend(render_tree(child, prefix + child_prefix, i == len(node.children) - 1, False))
    return lines


def flatten_tree(node: TreeNode, summary: DependencySummary | None = None) -> DependencySummary:
    summary = DependencySummary() if summary is None else summary
    summary.add(node.kind, node.name)
    for child in node.children:
        flatten_tree(child, summary)
    return summary


def total_dependencies(component: ComponentEntry, registry: Registry) -> DependencySummary:
    """Everything an add of this component brings in, without a depth limit.

    Lib modules are expanded through their own internal dependencies, the
    same way the installer walks them.
    """
    summary = DependencySummary()
    seen_components: set[str] = set()

    def add_lib(name: str) -> None:
        if name in summary.libs:
            return
        summary.add(NodeKind.LIB, name)
        module = registry.get_lib(name)
        for dep_name in module.internal_dependencies if module else []:
            add_lib(dep_name)

    def visit(entry: ComponentEntry) -> None:
        if entry.name in seen_components:
            return
        seen_components.add(entry.name)
        summary.add(NodeKind.COMPONENT, entry.name)
        for lib_name in entry.internal_dependencies:
            add_lib(lib_name)
        for package in entry.dependencies:
            summary.add(NodeKind.NPM, package)
        for dep_name in entry.registry_dependencies:
            dependency = registry.get_component(dep_name)
            if dependency is not None:
                visit(dependency)

    visit(component)
    return summary


__all__ = [
    "DEFAULT_TREE_DEPTH",
    "NodeKind",
    "TreeNode",
    "DependencySummary",
    "build_tree",
    "render_tree",
    "flatten_tree",
    "total_dependencies",
]
