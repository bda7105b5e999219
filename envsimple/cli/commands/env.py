"""Environment management: env list|create|clone|delete."""

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING

from envsimple.cli.commands.helpers import validate_name
from envsimple.core.context import clear_context_if_matches, switch_local_environment
from envsimple.errors import NotFoundError

if TYPE_CHECKING:
    from envsimple.cli.commands.helpers import App

logger = logging.getLogger(__name__)


def _env_list(args, app: "App"):
    output = app.output
    context = app.resolve(interactive=False)
    _, project = app.directory().resolve_project(context)

    envs = app.remote.list_environments(project.id)
    app.track("cli.env.list", {"count": len(envs)})

    if app.json_mode:
        output.json({"project": context.project, "environments": [asdict(e) for e in envs]})
        return

    output.info(f"Environments in {context.project}:")
    output.info()
    if not envs:
        output.warning("No environments found")
        return

    for env in envs:
        version = f"v{env.current_version_number}" if env.current_version_number else "no versions"
        marker = " (current)" if env.name == context.environment else ""
        output.info(f"  {env.name} - {version}{marker}")


def _env_create(args, app: "App"):
    output = app.output
    name = validate_name(args.name, "environment name")
    context = app.resolve(interactive=False)
    _, project = app.directory().resolve_project(context)

    env = app.remote.create_environment(project.id, name, getattr(args, "type", None))
    switch_local_environment(name, app.cwd)
    app.track("cli.env.create", {"name": name})

    if app.json_mode:
        output.json({"status": "success", "environment": asdict(env), "switched_to": name})
        return

    output.success(f'Created environment "{name}"')
    output.info(f'Switched local context to "{name}"')


def _env_clone(args, app: "App"):
    output = app.output
    source_name = validate_name(args.source, "source environment")
    dest_name = validate_name(args.destination, "destination environment")
    context = app.resolve(interactive=False)
    directory = app.directory()
    _, project = directory.resolve_project(context)

    try:
        source = directory.find_environment(project, source_name)
    except NotFoundError:
        raise NotFoundError(f'Source environment "{source_name}"')

    env = app.remote.clone_environment(
        project.id, source.id, dest_name, getattr(args, "type", None)
    )
    switch_local_environment(dest_name, app.cwd)
    app.track("cli.env.clone", {"source": source_name, "dest": dest_name})

    if app.json_mode:
        output.json(
            {
                "status": "success",
                "source": source_name,
                "destination": dest_name,
                "environment": asdict(env),
                "switched_to": dest_name,
            }
        )
        return

    output.success(f'Cloned "{source_name}" to "{dest_name}"')
    output.info(f'Switched local context to "{dest_name}"')


def _env_delete(args, app: "App"):
    output = app.output
    permanent = bool(getattr(args, "permanent", False))
    context = app.resolve(interactive=False)
    ref = app.directory().resolve(context)

    delete_type = "permanently delete" if permanent else "soft delete"
    if not app.prompter.confirm(
        f'Are you sure you want to {delete_type} environment "{context.environment}"?'
    ):
        output.info("Cancelled")
        return

    app.remote.delete_environment(ref.environment_id, permanent=permanent)
    removed = clear_context_if_matches(context.environment, app.cwd)
    for path in removed:
        logger.info("Removed %s pointing at deleted environment", path)
    app.track("cli.env.delete", {"environment": context.environment, "permanent": permanent})

    if app.json_mode:
        output.json(
            {"status": "success", "environment": context.environment, "permanent": permanent}
        )
        return

    action = "Permanently deleted" if permanent else "Soft deleted"
    output.success(f'{action} environment "{context.environment}"')
    if not permanent:
        output.info("Environment can be restored from the dashboard")


def cmd_env(args, app: "App"):
    """Handle env subcommands."""
    app.require_auth()
    if args.env_action == "list":
        _env_list(args, app)
    elif args.env_action == "create":
        _env_create(args, app)
    elif args.env_action == "clone":
        _env_clone(args, app)
    elif args.env_action == "delete":
        _env_delete(args, app)
