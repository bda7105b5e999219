"""Telemetry commands: telemetry enable|disable|status."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from envsimple.cli.commands.helpers import App


def cmd_telemetry(args, app: "App"):
    """Handle telemetry subcommands."""
    output = app.output
    store = app.telemetry_store

    if args.telemetry_action == "enable":
        store.set_enabled(True)
        if app.json_mode:
            output.json({"status": "success", "enabled": True})
        else:
            output.success("Telemetry enabled")
            output.info("Anonymous usage data will be collected to improve EnvSimple")

    elif args.telemetry_action == "disable":
        store.set_enabled(False)
        if app.json_mode:
            output.json({"status": "success", "enabled": False})
        else:
            output.success("Telemetry disabled")
            output.info("No usage data will be collected")

    elif args.telemetry_action == "status":
        config = store.load()
        if app.json_mode:
            output.json({"enabled": config["enabled"], "anonymous_id": config["anonymous_id"]})
        else:
            output.info(f"Telemetry: {'enabled' if config['enabled'] else 'disabled'}")
            if config["enabled"]:
                output.info(f"Anonymous ID: {config['anonymous_id']}")
