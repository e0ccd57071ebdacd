# src/dockypody/cli/main.py
"""Main CLI entry point for dockypody commands."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, List, Optional, Tuple

import click

from dockypody.core.config.errors import ConfigError
from dockypody.core.config.manifest import ManifestLoader
from dockypody.core.config.settings import load_settings
from dockypody.core.context import BuildContext, overrides_from_environ
from dockypody.core.graph.node import BuildNode
from dockypody.core.graph.planner import build_edges, expand_roots, plan_build_order
from dockypody.core.hashing.engine import compute_build_hashes
from dockypody.core.services import list_service_names
from dockypody.core.sources.build_args import generate_build_args
from dockypody.core.sources.resolver import GitLsRemote, detect_source_types, resolve_source_shas


def get_loader(root: str) -> ManifestLoader:
    """Build a manifest loader for the repository at ``root``."""
    return ManifestLoader(load_settings(root))


def select_roots(
    loader: ManifestLoader,
    services: Tuple[str, ...],
    nodes: Tuple[str, ...] = (),
    version: Optional[str] = None,
    platform: Optional[str] = None,
    all_versions: bool = False,
) -> List[BuildNode]:
    roots = [BuildNode.parse(key) for key in nodes]
    names = list(services)
    if not names and not roots:
        names = list_service_names(loader.services_path)
    for root in expand_roots(loader, names, version=version, platform=platform, all_versions=all_versions):
        if root not in roots:
            roots.append(root)
    return roots


@click.group()
@click.version_option(package_name="dockypody")
@click.option(
    "--root",
    envvar="DOCKYPODY_ROOT",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Repository root containing the services directory",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx: click.Context, root: str, log_level: str) -> None:
    """dockypody - Build ordering and definition hashes for container services."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["root"] = root


@cli.command("list-services")
@click.pass_context
def list_services_cli(ctx: click.Context) -> None:
    """List all available services."""
    try:
        loader = get_loader(ctx.obj["root"])
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    names = list_service_names(loader.services_path)
    for name in names:
        click.echo(f"  - {name}")
    click.echo(f"Total: {len(names)} service(s)")


@cli.command("build-order")
@click.option("--service", "-s", "services", multiple=True, help="Service to include (default: all)")
@click.option("--version", "version", help="Version for the selected services")
@click.option("--platform", "platform", help="Platform for multi-platform services")
@click.option("--all-versions", is_flag=True, help="Include every declared version")
@click.option("--edges", is_flag=True, help="Print dependency edges instead of the order")
@click.pass_context
def build_order_cli(
    ctx: click.Context,
    services: Any,
    version: Any,
    platform: Any,
    all_versions: Any,
    edges: Any,
) -> None:
    """Print build nodes in dependency order."""
    try:
        loader = get_loader(ctx.obj["root"])
        roots = select_roots(loader, services, version=version, platform=platform, all_versions=all_versions)
        order = plan_build_order(loader, roots)
        if edges:
            for dependent, dependency in build_edges(loader, order):
                click.echo(f"{dependent} -> {dependency}")
            return
    except (ConfigError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    for node in order:
        click.echo(node.key)


@cli.command("hash")
@click.option("--service", "-s", "services", multiple=True, help="Service to include (default: all)")
@click.option("--node", "-n", "nodes", multiple=True, help="Explicit node key (service:version[:platform])")
@click.option("--version", "version", help="Version for the selected services")
@click.option("--platform", "platform", help="Platform for multi-platform services")
@click.option("--all-versions", is_flag=True, help="Include every declared version")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def hash_cli(
    ctx: click.Context,
    services: Any,
    nodes: Any,
    version: Any,
    platform: Any,
    all_versions: Any,
    as_json: Any,
) -> None:
    """Compute service definition hashes for the build graph.

    Git refs are resolved again on every invocation; the SHA cache only
    lives for the duration of one run.
    """
    try:
        build_ctx = BuildContext(overrides=overrides_from_environ(os.environ))
        loader = get_loader(ctx.obj["root"])
        roots = select_roots(loader, services, nodes, version=version, platform=platform, all_versions=all_versions)
        result = compute_build_hashes(loader, roots, ctx=build_ctx)
    except (ConfigError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        payload = {
            "hashes": result.hashes,
            "shas": result.sha_cache,
            "skipped": result.skipped,
            "warnings": result.warnings,
        }
        click.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    for key, digest in result.hashes.items():
        click.echo(f"{key} {digest}")


@cli.command("build-args")
@click.argument("node")
@click.pass_context
def build_args_cli(ctx: click.Context, node: Any) -> None:
    """Print the source and static build args of NODE."""
    overrides = overrides_from_environ(os.environ)
    build_ctx = BuildContext(overrides=overrides)
    try:
        loader = get_loader(ctx.obj["root"])
        build_node = BuildNode.parse(node)
        config, _, _ = loader.load(build_node.service, build_node.version, build_node.platform)
        source_types = detect_source_types(config.sources, overrides)
        shas = resolve_source_shas(
            config.sources,
            source_types,
            build_ctx.sha_cache,
            ls_remote=GitLsRemote(loader.settings.git_executable, loader.settings.git_timeout),
            ctx=build_ctx,
            node=build_node.key,
        )
    except (ConfigError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    for key, value in generate_build_args(config, source_types, shas, overrides).items():
        click.echo(f"{key}={value}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
