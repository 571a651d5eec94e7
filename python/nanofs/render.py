"""Rich rendering of manifest trees."""

from rich.console import Console
from rich.tree import Tree

from nanofs.manifest import Manifest
from nanofs.tree import Directory, File, Link

console = Console()


def render_manifest(manifest: Manifest) -> Tree:
    tree = Tree("[bold blue]manifest[/]")

    root_branch = tree.add("[bold blue]/[/] [dim](root)[/]")
    _render_directory(root_branch, manifest.root)
    if manifest.boot.children:
        boot_branch = tree.add("[bold blue]/[/] [dim](boot)[/]")
        _render_directory(boot_branch, manifest.boot)

    if manifest.program:
        tree.add(f"program [dim]→ {manifest.program}[/]")
    if manifest.arguments:
        tree.add(f"arguments [dim]{' '.join(manifest.arguments)}[/]")
    if manifest.environment:
        env = tree.add("environment")
        for name, value in sorted(manifest.environment.items()):
            env.add(f"{name}={value}")
    if manifest.mounts:
        mounts = tree.add("mounts")
        for label, path in sorted(manifest.mounts.items()):
            mounts.add(f"{label} [dim]→ {path}[/]")
    return tree


def _render_directory(branch: Tree, directory: Directory) -> None:
    for name, node in sorted(directory.children.items()):
        if isinstance(node, Directory):
            _render_directory(branch.add(f"[bold cyan]{name}/[/]"), node)
        elif isinstance(node, Link):
            branch.add(f"[magenta]{name}[/] [dim]-> {node.target}[/]")
        elif isinstance(node, File):
            branch.add(f"{name} [dim]→ {node.host_path}[/]")


def print_manifest(manifest: Manifest) -> None:
    console.print(render_manifest(manifest))
