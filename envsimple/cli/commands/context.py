"""Context commands: status, update, help-config."""

import logging
from typing import TYPE_CHECKING

from envsimple.core.context import save_shared_context, switch_local_environment
from envsimple.errors import EnvSimpleError, ValidationError
from envsimple.types import SharedContext

if TYPE_CHECKING:
    from envsimple.cli.commands.helpers import App

logger = logging.getLogger(__name__)

CONFIG_HELP = """\
Configuration Files

.envsimple (shared, committed)
------------------------------
Team-wide context. Commit this file to your repository.

Example:
  org: acme
  project: payments-api
  environment: production

.envsimple.local (local, gitignored)
------------------------------------
Local-only configuration for:
  1. Switching environments without changing shared config
  2. Overriding specific keys for local development

Example:
  environment: dev-alice

  overrides:
    DATABASE_URL: postgresql://localhost/mydb
    DEBUG: true
    API_KEY: dev_key_12345

How overrides work:
  - pull:  overrides are applied to pulled values
  - push:  override keys found in .env are confirmed before they are sent
  - print: shows final values with overrides applied

Priority order:
  1. CLI flags (--org, --project, --environment)
  2. .envsimple.local
  3. .envsimple
  4. Interactive selection

Commands:
  envsimple update           change environment (saves to .envsimple.local)
  envsimple update --shared  change environment (saves to .envsimple)
"""


def cmd_status(args, app: "App"):
    """Show the authenticated user and the resolved context."""
    output = app.output
    app.require_auth()

    try:
        user_data = app.remote.get_current_user()
    except EnvSimpleError as e:
        logger.debug("Could not fetch current user: %s", e)
        if app.json_mode:
            output.json({"authenticated": True, "message": "Authenticated (user info unavailable)"})
        else:
            output.success("Authenticated")
            output.info("Credentials are stored but user info is unavailable.")
        return

    user = user_data.get("user") or user_data

    try:
        context = app.resolve()
    except ValidationError as e:
        if not app.json_mode or e.code != "CONTEXT_REQUIRED":
            raise
        output.json(
            {
                "authenticated": True,
                "user": user,
                "context": None,
                "message": "No context configured. Use flags or create .envsimple file.",
            }
        )
        return

    org = app.directory().find_organization(context.org)
    app.track("cli.status", {})

    if app.json_mode:
        output.json(
            {
                "authenticated": True,
                "user": user,
                "context": {
                    "organization": {"id": org.id, "name": org.name, "slug": org.slug},
                    "project": context.project,
                    "environment": context.environment,
                    "source": context.source.value,
                },
            }
        )
        return

    output.success(f"Authenticated as {user.get('email', 'unknown')}")
    output.info()
    output.info(f"Organization: {org.name} ({org.slug})")
    output.info(f"Project:      {context.project}")
    output.info(f"Environment:  {context.environment}")
    output.info(f"Context from: {context.source.value}")

    if org.is_locked:
        output.info()
        output.warning(f"Organization is locked: {org.locked_reason or 'no reason given'}")


def cmd_update(args, app: "App"):
    """Interactively switch environment in .envsimple.local (or .envsimple with --shared)."""
    output = app.output
    shared = bool(getattr(args, "shared", False))
    app.require_auth()

    context = app.resolve(interactive=False)
    directory = app.directory()
    _, project = directory.resolve_project(context)

    envs = directory.list_environments(project)
    if not envs:
        raise ValidationError("No environments found in this project")

    choices = [
        (f"{e.name} (current)" if e.name == context.environment else e.name, e.name) for e in envs
    ]
    selected = app.prompter.select("Select environment to switch to:", choices)

    if shared:
        save_shared_context(
            SharedContext(org=context.org, project=context.project, environment=selected),
            app.cwd,
        )
        target = ".envsimple"
    else:
        switch_local_environment(selected, app.cwd)
        target = ".envsimple.local"

    app.track("cli.update", {"environment": selected, "shared": shared})

    if app.json_mode:
        output.json({"status": "success", "environment": selected, "file": target})
        return

    output.success(f"Updated {target}")
    output.success(f'Switched context to "{selected}"')
    output.info('Run "envsimple pull" to fetch the environment')


def cmd_help_config(args, app: "App"):
    """Print help for the context files."""
    print(CONFIG_HELP, end="")
