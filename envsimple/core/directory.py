"""Name-to-id lookups against the remote listings."""

import logging
from typing import List

from envsimple.errors import NotFoundError, ValidationError
from envsimple.protocols import Prompter, RemoteBackend
from envsimple.types import (
    ContextSource,
    Environment,
    EnvironmentRef,
    Organization,
    Project,
    ResolvedContext,
)

logger = logging.getLogger(__name__)


class RemoteDirectory:
    """Resolves org slugs, project names and environment names to remote ids.

    A missing organization, project or environment is a fatal
    :class:`NotFoundError` for the invocation.
    """

    def __init__(self, remote: RemoteBackend):
        self.remote = remote

    def find_organization(self, slug: str) -> Organization:
        for org in self.remote.list_organizations():
            if org.slug == slug:
                return org
        raise NotFoundError(f'Organization "{slug}"')

    def find_project(self, org_slug: str, name: str) -> Project:
        for project in self.remote.list_projects(org_slug):
            if project.name == name:
                return project
        raise NotFoundError(f'Project "{name}"')

    def list_environments(self, project: Project) -> List[Environment]:
        return self.remote.list_environments(project.id)

    def find_environment(self, project: Project, name: str) -> Environment:
        for env in self.remote.list_environments(project.id):
            if env.name == name:
                return env
        raise NotFoundError(f'Environment "{name}"')

    def resolve_project(self, context: ResolvedContext):
        """Return (organization, project) for a context."""
        org = self.find_organization(context.org)
        project = self.find_project(context.org, context.project)
        return org, project

    def resolve(self, context: ResolvedContext) -> EnvironmentRef:
        """Look up the remote records behind ``context``."""
        org, project = self.resolve_project(context)
        env = self.find_environment(project, context.environment)
        logger.debug("Resolved %s to environment id %s", context.key, env.id)
        return EnvironmentRef(organization=org, project=project, environment=env)

    def choose_context(self, prompter: Prompter) -> ResolvedContext:
        """Interactively pick org, project and environment from the remote."""
        orgs = self.remote.list_organizations()
        if not orgs:
            raise ValidationError("No organizations available for this account")
        org_slug = prompter.select(
            "Select organization:", [(f"{o.name} ({o.slug})", o.slug) for o in orgs]
        )

        projects = self.remote.list_projects(org_slug)
        if not projects:
            raise ValidationError(f'No projects found in organization "{org_slug}"')
        project = prompter.select("Select project:", [(p.name, p) for p in projects])

        envs = self.remote.list_environments(project.id)
        if not envs:
            raise ValidationError(f'No environments found in project "{project.name}"')
        env = prompter.select("Select environment:", [(e.name, e) for e in envs])

        return ResolvedContext(
            org=org_slug,
            project=project.name,
            environment=env.name,
            source=ContextSource.INTERACTIVE,
        )
