"""Interactive flow driving a provisioning run from start to finish."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import Settings
from .console import HEAVY_RULE, Console
from .errors import FatalSelectionError
from .execution.command import CommandRunner
from .execution.context import ExecutionContext
from .execution.report import RunReport
from .execution.supervisor import supervise
from .interceptor import FaultInterceptor
from .models import Distribution, Role, RunState, StepOutcome
from .tasks import ROLE_DEFAULTS, build_additional_menu, common, default_actions, registry_for
from .tasks.common import clone_action
from .tasks.registry import ActionRegistry

logger = logging.getLogger(__name__)

DISTRIBUTION_PROMPT = "Which distro are you using? (1/2/3): "
ROLE_PROMPT = "Enter your role number: "
ADDITIONAL_PROMPT = "Your selection: "
PROJECTS_PROMPT = "Enter your choices (e.g. 1 3 5): "
SESSION_REMINDER = (
    "Remember to open a new terminal or log out/in for group memberships (e.g. Docker) "
    "or environment changes (PyEnv, RVM, NVM) to fully take effect."
)


class Provisioner:
    """Coordinator that walks the operator through one setup run.

    Stages run strictly in order: distribution, role, default actions,
    additional selection, additional actions, SSH identity, project clones and
    the developer-only docker build. Only an invalid distribution ends the run
    early; every later stage runs under the fault interceptor so an unexpected
    error pauses the run and then moves on to the next stage.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        console: Console,
        runner: CommandRunner,
        interceptor: Optional[FaultInterceptor] = None,
    ) -> None:
        self._settings = settings
        self._console = console
        self._runner = runner
        self._interceptor = interceptor or FaultInterceptor(console)

    def run(self) -> RunState:
        state = RunState()
        context = ExecutionContext(settings=self._settings, console=self._console, runner=self._runner)

        self.select_distribution(state)
        context.distribution = state.distribution
        registry = registry_for(state.distribution)
        logger.info("Using registry '%s' for %s", registry.name, state.distribution.label)

        guard = self._interceptor.guard
        guard("select role", self.select_role, state, state=state)
        context.role = state.role
        guard("default applications", self.run_defaults, registry, state, context, state=state)
        guard("additional selection", self.select_additional, registry, state, state=state)
        guard("additional applications", self.run_additional, registry, state, context, state=state)
        guard("ssh identity", self.configure_identity, state, context, state=state)
        guard("clone projects", self.clone_projects, state, context, state=state)
        guard("docker builds", self.post_clone_build, state.role, state, context, state=state)

        self.finish(state, context.events)
        return state

    def select_distribution(self, state: RunState) -> Distribution:
        self._console.banner("  Let's set up your distribution! ")
        self._console.menu([distribution.label for distribution in Distribution])
        self._console.say(HEAVY_RULE)
        choice = self._console.ask(DISTRIBUTION_PROMPT)
        self._console.say()

        distribution = Distribution.from_choice(choice)
        if distribution is None:
            logger.error("Invalid distribution choice %r", choice)
            self._console.say("Invalid choice. Exiting...")
            raise FatalSelectionError(f"Invalid distribution choice: {choice.strip()!r}")

        self._console.say(f"Selected: {distribution.label}")
        logger.info("Distribution selected: %s", distribution.label)
        state.distribution = distribution
        return distribution

    def select_role(self, state: RunState) -> Role:
        distribution = state.distribution.label if state.distribution else ""
        self._console.banner(f"   {distribution} Setup with Role Selection", rule="=" * 43)
        self._console.say("What is your role in the company?")
        self._console.menu([role.label for role in Role])
        choice = self._console.ask(ROLE_PROMPT)

        role = Role.from_choice(choice)
        if choice.strip() != role.value:
            self._console.say(f"Invalid role, defaulting to {Role.OTHER.label}")
        self._console.say(f"Selected Role: {role.label}")
        self._console.say()
        logger.info("Role selected: %s (input=%r)", role.label, choice)
        state.role = role
        return role

    def run_defaults(self, registry: ActionRegistry, state: RunState, context: ExecutionContext) -> None:
        actions = default_actions(registry, state.role)
        state.default_actions = tuple(action.identifier for action in actions)
        if not actions:
            self._console.say(f"No default applications for {state.role.label}.")
            return

        self._console.say(f"Installing default applications for {state.role.label}...")
        for action in actions:
            supervise(action, context, state)

    def select_additional(self, registry: ActionRegistry, state: RunState) -> List[str]:
        menu = build_additional_menu(registry, ROLE_DEFAULTS[state.role])
        self._console.say()
        indices, _ = self._console.choose_many(
            "Which additional applications do you require? "
            "(enter numbers space-separated, or press ENTER to skip)",
            [action.label for action in menu],
            ADDITIONAL_PROMPT,
        )
        state.additional_actions = [menu[index].identifier for index in indices]
        self._console.say(
            "You selected: " + (", ".join(menu[index].label for index in indices) or "nothing")
        )
        self._console.say()
        logger.info("Additional actions selected: %s", state.additional_actions)
        return state.additional_actions

    def run_additional(self, registry: ActionRegistry, state: RunState, context: ExecutionContext) -> None:
        for identifier in state.additional_actions:
            action = registry.resolve(identifier)
            self._console.say(f"Installing {action.label}...")
            supervise(action, context, state)
            self._console.say()

    def configure_identity(self, state: RunState, context: ExecutionContext) -> None:
        self._console.banner("Now we'll set up (or confirm) your SSH key.")
        supervise(common.resolve("generate_ssh_key"), context, state)
        self._console.say()
        self._console.say("Have you added your SSH key to Bitbucket (or your Git provider)?")
        self._console.pause()
        self._console.say()

    def clone_projects(self, state: RunState, context: ExecutionContext) -> None:
        projects_dir = self._settings.projects_dir
        self._console.say(HEAVY_RULE)
        self._console.say("Cloning projects...")
        self._console.say(f"Making Projects folder in {projects_dir}...")
        if not context.dry_run:
            projects_dir.mkdir(parents=True, exist_ok=True)

        projects = list(self._settings.projects)
        self._console.say()
        indices, _ = self._console.choose_many(
            "Which projects would you like to clone? (enter multiple numbers, space-separated)",
            projects,
            PROJECTS_PROMPT,
        )
        for index in indices:
            project = projects[index]
            if supervise(clone_action(project), context, state) is StepOutcome.COMPLETED:
                state.cloned_projects.append(project)
        self._console.say("Done cloning projects.")

    def post_clone_build(self, role: Role, state: RunState, context: ExecutionContext) -> Optional[StepOutcome]:
        """Build docker projects, for developers only."""

        if role is not Role.DEVELOPER:
            logger.info("Skipping docker builds for role %s", role.label)
            return None
        return supervise(common.resolve("build_docker_projects"), context, state)

    def finish(self, state: RunState, events: Sequence[str] = ()) -> RunReport:
        report = RunReport.from_state(state, events)
        self._console.say()
        for line in report.summary_lines():
            self._console.say(line)
        self._console.say()
        self._console.say("Script finished!")
        self._console.say(SESSION_REMINDER)
        logger.info("Run finished: %s", report.as_dict())
        return report
