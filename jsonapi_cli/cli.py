from __future__ import annotations

import argparse
import contextlib
import dataclasses
import io
import sys
from pathlib import Path
from typing import Any

import click
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from . import render
from .cli_shared import (
    DCLI_API_KEY,
    DCLI_BASE_URL,
    DCLI_CONFIG,
    DEFAULT_TIMEOUT_SECONDS,
    DcliError,
    GlobalOpts,
    OpError,
    UsageError,
    ValidationError,
    _env_or_none,
    _eprint,
    _load_json_object,
    _load_json_value,
    _print_json,
    _require_str,
    build_logger,
)
from .client import JsonApiClient, linkage_from_value
from .config import (
    Config,
    config_path_from,
    load_config,
    require_base_url,
    resolve_config,
    save_config,
)
from .models import Document, Resource
from .permissions import SUBTRACT, UNION, format_names, parse_names_csv
from .query import list_options_from_flags

_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", soft_wrap=True)


def _bootstrap_env() -> None:
    # Discover and load .env without overriding already-exported variables.
    load_dotenv()


def _namespace(**kwargs: Any) -> argparse.Namespace:
    return argparse.Namespace(**kwargs)


def _apply_global_opts(args: argparse.Namespace) -> GlobalOpts:
    raw_timeout = getattr(args, "timeout", None)
    timeout = DEFAULT_TIMEOUT_SECONDS if raw_timeout is None else int(raw_timeout)
    if timeout <= 0:
        raise ValidationError("--timeout must be a positive number of seconds")
    config_path = config_path_from(getattr(args, "config", None), env_or_none=_env_or_none)
    cfg = resolve_config(
        base_url=getattr(args, "base_url", None),
        api_key=getattr(args, "api_key", None),
        config_path=config_path,
        env_or_none=_env_or_none,
    )
    return GlobalOpts(
        base_url=cfg.base_url,
        api_key=cfg.api_key,
        config_path=str(config_path),
        timeout_seconds=timeout,
        json_output=bool(getattr(args, "json_output", False)),
        pretty=not bool(getattr(args, "plain_json", False)),
        quiet=bool(getattr(args, "quiet", False)),
        verbose=bool(getattr(args, "verbose", False)),
    )


def _client_for(g: GlobalOpts) -> JsonApiClient:
    base_url = require_base_url(Config(base_url=g.base_url), config_path=Path(g.config_path))
    return JsonApiClient(
        base_url,
        api_key=g.api_key,
        timeout_seconds=g.timeout_seconds,
        logger=build_logger(quiet=g.quiet, verbose=g.verbose),
    )


def _print_document(doc: Document | None, g: GlobalOpts) -> None:
    _print_json((doc or Document()).to_dict(), pretty=g.pretty)


def _relationship_data_arg(raw: str) -> Any:
    value = _load_json_value(raw=raw, label="--data")
    # Accept a full {"data": ...} envelope as well as bare linkage.
    if isinstance(value, dict) and "data" in value and "type" not in value:
        value = value["data"]
    return linkage_from_value(value)


# -- resources -------------------------------------------------------------


def cmd_create(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    attrs = _load_json_object(raw=args.attributes, label="--attributes")
    created = _client_for(g).create(Resource(type=resource_type, attributes=attrs))
    if g.json_output:
        _print_document(Document(data=created), g)
        return 0
    sys.stdout.write(f"created {created.type} {created.id or '(no id)'}\n")
    render.print_resource(created)
    return 0


def cmd_read(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    resource = _client_for(g).read(resource_type, args.id)
    if g.json_output:
        _print_document(Document(data=resource), g)
        return 0
    render.print_resource(resource)
    return 0


def cmd_update(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    attrs = _load_json_object(raw=args.attributes, label="--attributes")
    resource = Resource(type=resource_type, id=str(args.id or "").strip(), attributes=attrs)
    updated = _client_for(g).update(resource)
    if g.json_output:
        _print_document(Document(data=updated) if updated is not None else None, g)
        return 0
    sys.stdout.write(f"updated {resource_type} {resource.id}\n")
    if updated is not None:
        render.print_resource(updated)
    return 0


def cmd_delete(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    _client_for(g).delete(resource_type, args.id)
    if g.json_output:
        _print_json({"deleted": {"type": resource_type, "id": args.id}}, pretty=g.pretty)
        return 0
    sys.stdout.write(f"deleted {resource_type} {args.id}\n")
    return 0


def _print_next_link_hint(doc: Document) -> None:
    links = doc.links if isinstance(doc.links, dict) else {}
    nxt = links.get("next")
    if isinstance(nxt, dict):
        nxt = nxt.get("href")
    if isinstance(nxt, str) and nxt.strip():
        sys.stdout.write(f"next: {nxt.strip()}\n")


def cmd_list(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    options = list_options_from_flags(
        page_number=args.page_number,
        page_size=args.page_size,
        filters=args.filter,
        sort=args.sort,
        include=args.include,
        fields=args.fields,
    )
    doc = _client_for(g).list(resource_type, options)
    if g.json_output:
        _print_document(doc, g)
        return 0
    resources = [r for r in doc.resources() if isinstance(r, Resource)]
    render.print_resource_table(resources)
    sys.stdout.write(f"items: {len(resources)}\n")
    _print_next_link_hint(doc)
    return 0


# -- relationships ---------------------------------------------------------


def _print_linkage(doc: Document | None) -> None:
    items = (doc or Document()).resources()
    rows = [[render.cell(i.type), render.cell(i.id)] for i in items]
    render.print_table(headers=["Type", "ID"], rows=rows, empty_message="No linked resources.")


def cmd_relation_get(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    relation = _require_str(args.relation, "--relation", hint="relationship name")
    client = _client_for(g)
    if args.linkage:
        doc = client.get_relationship(resource_type, args.id, relation)
    else:
        doc = client.fetch_related(resource_type, args.id, relation)
    if g.json_output:
        _print_document(doc, g)
        return 0
    if args.linkage:
        _print_linkage(doc)
        return 0
    render.print_resource_table([r for r in doc.resources() if isinstance(r, Resource)])
    return 0


def _cmd_relation_mutate(args: argparse.Namespace, g: GlobalOpts, op: str) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    relation = _require_str(args.relation, "--relation", hint="relationship name")
    data = _relationship_data_arg(_require_str(args.data, "--data", hint="identifier JSON"))
    client = _client_for(g)
    doc: Document | None = None
    if op == "update":
        doc = client.update_relationship(resource_type, args.id, relation, data)
    elif op == "add":
        doc = client.add_to_relationship(resource_type, args.id, relation, data)
    else:
        client.delete_from_relationship(resource_type, args.id, relation, data)
    if g.json_output:
        _print_document(doc, g)
        return 0
    verb = {"update": "replaced", "add": "added to", "remove": "removed from"}[op]
    sys.stdout.write(f"{verb} relationship {relation} on {resource_type} {args.id}\n")
    if doc is not None and doc.resources():
        _print_linkage(doc)
    return 0


def cmd_relation_update(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_relation_mutate(args, g, "update")


def cmd_relation_add(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_relation_mutate(args, g, "add")


def cmd_relation_remove(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_relation_mutate(args, g, "remove")


# -- schema and actions ----------------------------------------------------


def cmd_describe(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="entity name")
    table = _client_for(g).describe(resource_type)
    if g.json_output:
        _print_json(dataclasses.asdict(table), pretty=g.pretty)
        return 0
    render.print_entity_model(resource_type, table)
    return 0


def cmd_action_list(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="entity name")
    actions = _client_for(g).list_actions(resource_type)
    if g.json_output:
        _print_json([dataclasses.asdict(a) for a in actions], pretty=g.pretty)
        return 0
    render.print_actions(actions)
    return 0


def cmd_action_execute(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="entity name")
    name = _require_str(args.name, "--name", hint="action name")
    inputs = _load_json_object(raw=args.attributes or "{}", label="--attributes")
    out = _client_for(g).execute_action(resource_type, name, inputs, resource_id=args.id)
    _print_json(out, pretty=g.pretty)
    return 0


# -- permissions -----------------------------------------------------------


def _permission_payload(*, resource_type: str, resource_id: str, value: int) -> dict[str, Any]:
    return {
        "type": resource_type,
        "id": resource_id,
        "permission": value,
        "names": format_names(value),
    }


def cmd_permission_view(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    value = _client_for(g).get_permission(resource_type, args.id)
    if g.json_output:
        _print_json(_permission_payload(resource_type=resource_type, resource_id=args.id, value=value), pretty=g.pretty)
        return 0
    render.print_permissions(resource_type=resource_type, resource_id=args.id, value=value, names=format_names(value))
    return 0


def cmd_permission_set(args: argparse.Namespace, g: GlobalOpts) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    value = parse_names_csv(args.permissions)
    _client_for(g).set_permission(resource_type, args.id, value)
    if g.json_output:
        _print_json(_permission_payload(resource_type=resource_type, resource_id=args.id, value=value), pretty=g.pretty)
        return 0
    render.print_permissions(resource_type=resource_type, resource_id=args.id, value=value, names=format_names(value))
    return 0


def _cmd_permission_change(args: argparse.Namespace, g: GlobalOpts, op: str) -> int:
    resource_type = _require_str(args.type, "--type", hint="resource collection name")
    delta = parse_names_csv(_require_str(args.permissions, "--permissions", hint="comma-separated names"))
    before, after = _client_for(g).change_permission(resource_type, args.id, delta, op)
    if g.json_output:
        payload = _permission_payload(resource_type=resource_type, resource_id=args.id, value=after)
        payload["previous"] = before
        _print_json(payload, pretty=g.pretty)
        return 0
    sys.stdout.write(f"permission {before} -> {after}\n")
    render.print_permissions(resource_type=resource_type, resource_id=args.id, value=after, names=format_names(after))
    return 0


def cmd_permission_add(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_permission_change(args, g, UNION)


def cmd_permission_remove(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_permission_change(args, g, SUBTRACT)


# -- config ----------------------------------------------------------------


def cmd_config_show(args: argparse.Namespace, g: GlobalOpts) -> int:
    del args
    path = Path(g.config_path)
    payload = {
        "configPath": str(path),
        "configExists": path.exists(),
        **Config(base_url=g.base_url, api_key=g.api_key).redacted(),
    }
    _print_json(payload, pretty=g.pretty)
    return 0


def cmd_config_init(args: argparse.Namespace, g: GlobalOpts) -> int:
    path = Path(g.config_path)
    base_url = _require_str(args.base_url, "--base-url", hint="server root URL")
    if not base_url.startswith(("http://", "https://")):
        raise ValidationError(f"invalid --base-url {base_url!r} (expected http:// or https:// URL)")
    if path.exists() and not args.force:
        existing = load_config(path)
        if existing.base_url:
            raise ValidationError(f"config already exists at {path} (pass --force to overwrite)")
    cfg = Config(base_url=base_url.rstrip("/"), api_key=str(args.api_key or "").strip())
    save_config(cfg, path)
    _print_json({"configPath": str(path), **cfg.redacted()}, pretty=g.pretty)
    return 0


# -- typer surface ---------------------------------------------------------


def _root_help_text(*, root_app: typer.Typer, prog_name: str) -> str:
    buf = io.StringIO()
    try:
        with contextlib.redirect_stdout(buf):
            try:
                root_app(args=["--help"], prog_name=prog_name, standalone_mode=False)
            except (typer.Exit, click.ClickException):
                pass
    except Exception:
        return ""
    return str(buf.getvalue() or "").strip()


def _render_usage_error_with_help(
    *,
    message: str,
    ctx: click.Context | None = None,
    fallback_help: str = "",
) -> None:
    _rich_error(message)
    help_text = ""
    if isinstance(ctx, click.Context):
        try:
            help_text = str(ctx.get_help() or "").strip()
        except Exception:
            help_text = ""
    if not help_text:
        help_text = str(fallback_help or "").strip()
    if help_text:
        _eprint("")
        _eprint(help_text)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dcli {__version__}")
        raise typer.Exit(code=0)


app = typer.Typer(
    name="dcli",
    help="Create, read, update, delete and list resources on a JSON:API server.",
    no_args_is_help=True,
    add_completion=False,
)

relation_app = typer.Typer(help="Relationship sub-resource operations", no_args_is_help=True)
action_app = typer.Typer(help="Server-side actions declared by the entity schema", no_args_is_help=True)
permission_app = typer.Typer(help="Object permission bitmask (view/set/add/remove)", no_args_is_help=True)
config_app = typer.Typer(help="Local configuration file helpers", no_args_is_help=True)

app.add_typer(relation_app, name="relation")
app.add_typer(action_app, name="action")
app.add_typer(permission_app, name="permission")
app.add_typer(config_app, name="config")


@app.callback()
def app_callback(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        help=f"Path to config JSON (default: ~/.dcli/config.json; env override: {DCLI_CONFIG})",
    ),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        help=f"Server base URL (env override: {DCLI_BASE_URL})",
    ),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        help=f"Bearer token sent on every request (env override: {DCLI_API_KEY})",
    ),
    timeout: int = typer.Option(DEFAULT_TIMEOUT_SECONDS, "--timeout", help="Per-request timeout in seconds"),
    json_output: bool = typer.Option(False, "--json", help="Emit raw JSON documents instead of tables"),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
    quiet: bool = typer.Option(False, "--quiet", help="Only log errors to stderr"),
    verbose: bool = typer.Option(False, "--verbose", help="Log requests and responses to stderr"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    ns = _namespace(
        config=config,
        base_url=base_url,
        api_key=api_key,
        timeout=timeout,
        json_output=json_output,
        plain_json=plain_json,
        quiet=quiet,
        verbose=verbose,
    )
    try:
        g = _apply_global_opts(ns)
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=1)
    ctx.obj = {"g": g}


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    if isinstance(ctx.obj, dict) and isinstance(ctx.obj.get("g"), GlobalOpts):
        return ctx.obj["g"]
    try:
        return _apply_global_opts(_namespace())
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=1)


def _invoke(ctx: typer.Context, func: Any, **kwargs: Any) -> None:
    g = _ctx_global(ctx)
    args = _namespace(**kwargs)
    try:
        code = int(func(args, g))
    except DcliError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)

    if code:
        raise typer.Exit(code=code)


@app.command("create", help="Create a resource (POST <type>).")
def create(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    attributes: str = typer.Option(..., "--attributes", help="Resource attributes as a JSON object"),
) -> None:
    _invoke(ctx, cmd_create, type=type_, attributes=attributes)


@app.command("read", help="Read one resource (GET <type>/<id>).")
def read(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
) -> None:
    _invoke(ctx, cmd_read, type=type_, id=id_)


@app.command("update", help="Update resource attributes (PATCH <type>/<id>).")
def update(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    attributes: str = typer.Option(..., "--attributes", help="Attributes to change as a JSON object"),
) -> None:
    _invoke(ctx, cmd_update, type=type_, id=id_, attributes=attributes)


@app.command("delete", help="Delete a resource (DELETE <type>/<id>).")
def delete(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
) -> None:
    _invoke(ctx, cmd_delete, type=type_, id=id_)


@app.command("list", help="List a collection with paging, filters, sorting and sparse fieldsets.")
def list_(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    page_number: str | None = typer.Option(None, "--page[number]", "--page-number", help="Page number"),
    page_size: str | None = typer.Option(None, "--page[size]", "--page-size", help="Page size"),
    filter_: str | None = typer.Option(None, "--filter", help="Filters as key1:value1,key2:value2"),
    sort: str | None = typer.Option(None, "--sort", help="Sort fields, e.g. 'name,-created_at'"),
    include: str | None = typer.Option(None, "--include", help="Related resources to include"),
    fields: str | None = typer.Option(None, "--fields", help="Sparse fieldsets as type1:f1,f2;type2:f3"),
) -> None:
    _invoke(
        ctx,
        cmd_list,
        type=type_,
        page_number=page_number,
        page_size=page_size,
        filter=filter_,
        sort=sort,
        include=include,
        fields=fields,
    )


@relation_app.command("get", help="Fetch related resources (or linkage with --linkage).")
def relation_get(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    relation: str = typer.Option(..., "--relation", help="Relationship name"),
    linkage: bool = typer.Option(False, "--linkage", help="Fetch <type>/<id>/relationships/<relation> instead"),
) -> None:
    _invoke(ctx, cmd_relation_get, type=type_, id=id_, relation=relation, linkage=linkage)


@relation_app.command("update", help="Replace relationship linkage (PATCH).")
def relation_update(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    relation: str = typer.Option(..., "--relation", help="Relationship name"),
    data: str = typer.Option(..., "--data", help="Identifier JSON: object, array or null"),
) -> None:
    _invoke(ctx, cmd_relation_update, type=type_, id=id_, relation=relation, data=data)


@relation_app.command("add", help="Add members to a to-many relationship (POST).")
def relation_add(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    relation: str = typer.Option(..., "--relation", help="Relationship name"),
    data: str = typer.Option(..., "--data", help="Identifier JSON: object or array"),
) -> None:
    _invoke(ctx, cmd_relation_add, type=type_, id=id_, relation=relation, data=data)


@relation_app.command("remove", help="Remove members from a to-many relationship (DELETE).")
def relation_remove(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    relation: str = typer.Option(..., "--relation", help="Relationship name"),
    data: str = typer.Option(..., "--data", help="Identifier JSON: object or array"),
) -> None:
    _invoke(ctx, cmd_relation_remove, type=type_, id=id_, relation=relation, data=data)


@app.command("describe", help="Describe an entity: columns, relations and actions.")
def describe(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Entity type to describe"),
) -> None:
    _invoke(ctx, cmd_describe, type=type_)


@action_app.command("list", help="List actions declared for an entity type.")
def action_list(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Entity type"),
) -> None:
    _invoke(ctx, cmd_action_list, type=type_)


@action_app.command("execute", help="Execute a named action with JSON inputs.")
def action_execute(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Entity type"),
    name: str = typer.Option(..., "--name", help="Action name"),
    id_: str | None = typer.Option(None, "--id", help="Target resource ID for instance actions"),
    attributes: str = typer.Option("{}", "--attributes", help="Action inputs as a JSON object"),
) -> None:
    _invoke(ctx, cmd_action_execute, type=type_, name=name, id=id_, attributes=attributes)


@permission_app.command("view", help="Show the permission bitmask of a resource.")
def permission_view(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
) -> None:
    _invoke(ctx, cmd_permission_view, type=type_, id=id_)


@permission_app.command("set", help="Overwrite the permission bitmask with the given names.")
def permission_set(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    permissions: str = typer.Option(..., "--permissions", help="Comma-separated names, e.g. GuestRead,UserUpdate"),
) -> None:
    _invoke(ctx, cmd_permission_set, type=type_, id=id_, permissions=permissions)


@permission_app.command("add", help="Grant permissions (read current bitmask, OR, write back).")
def permission_add(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    permissions: str = typer.Option(..., "--permissions", help="Comma-separated names"),
) -> None:
    _invoke(ctx, cmd_permission_add, type=type_, id=id_, permissions=permissions)


@permission_app.command("remove", help="Revoke permissions (read current bitmask, clear bits, write back).")
def permission_remove(
    ctx: typer.Context,
    type_: str = typer.Option(..., "--type", help="Resource type"),
    id_: str = typer.Option(..., "--id", help="Resource ID"),
    permissions: str = typer.Option(..., "--permissions", help="Comma-separated names"),
) -> None:
    _invoke(ctx, cmd_permission_remove, type=type_, id=id_, permissions=permissions)


@config_app.command("show", help="Print the resolved configuration (API key redacted).")
def config_show(ctx: typer.Context) -> None:
    _invoke(ctx, cmd_config_show)


@config_app.command("init", help="Write the config file with base_url and optional api_key.")
def config_init(
    ctx: typer.Context,
    base_url: str = typer.Option(..., "--base-url", help="Server base URL"),
    api_key: str | None = typer.Option(None, "--api-key", help="Optional bearer token"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    _invoke(ctx, cmd_config_init, base_url=base_url, api_key=api_key, force=force)


def _run_cli(*, root_app: typer.Typer, prog_name: str, argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    _bootstrap_env()
    try:
        result = root_app(args=argv, prog_name=prog_name, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.exceptions.Abort:
        _rich_error("aborted")
        return 1
    except click.ClickException as e:
        if isinstance(e, click.UsageError):
            _render_usage_error_with_help(message=e.format_message(), ctx=getattr(e, "ctx", None))
            return 1
        _rich_error(e.format_message())
        return 1
    except UsageError as e:
        _render_usage_error_with_help(
            message=str(e),
            fallback_help=_root_help_text(root_app=root_app, prog_name=prog_name),
        )
        return 1
    except OpError as e:
        _rich_error(str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    return _run_cli(root_app=app, prog_name="dcli", argv=argv)


if __name__ == "__main__":
    raise SystemExit(main())
