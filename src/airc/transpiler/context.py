"""Semantic context extracted from a parsed AIR document."""

from __future__ import annotations

from dataclasses import dataclass, field

from airc.language.ast import AirApp, Scoped, UINode, walk
from airc.language.blocks import (
    ApiBlock,
    AuthBlock,
    CronBlock,
    CronJob,
    DbBlock,
    DbIndex,
    DbModel,
    DbRelation,
    DeployBlock,
    EmailBlock,
    EmailTemplate,
    EnvBlock,
    EnvVar,
    Field,
    HandlerBlock,
    HandlerContract,
    Hook,
    HookBlock,
    LiteralValue,
    NavBlock,
    NavRoute,
    PersistBlock,
    QueueBlock,
    QueueJob,
    Route,
    StateBlock,
    StyleBlock,
    UIBlock,
    WebhookBlock,
    WebhookRoute,
)
from airc.language.errors import AirContextError
from airc.logging_config import get_logger
from airc.transpiler.routes import ApiRoute, expand_routes


logger = get_logger("context")

RESERVED_MUTATION_NAMES = frozenset(
    {
        "add",
        "addItem",
        "del",
        "delItem",
        "delete",
        "remove",
        "toggle",
        "login",
        "logout",
        "signup",
        "register",
        "update",
        "save",
        "archive",
        "done",
        "updateProfile",
        "updateWorkspace",
        "forgotPassword",
        "resetPassword",
    }
)
CONVENTIONAL_PUBLIC_PAGES = ("home", "landing", "about", "pricing", "contact", "features", "faq")
AUTH_PAGE_NAMES = frozenset({"login", "signup", "register", "auth"})


def is_auth_page(name: str) -> bool:
    return name.lower() in AUTH_PAGE_NAMES


@dataclass(frozen=True, slots=True)
class Context:
    """Everything the backends need to know about one app."""

    app_name: str
    state: tuple[Field, ...] = ()
    style: dict[str, LiteralValue] = field(default_factory=dict)
    persist_method: str = "localStorage"
    persist_keys: tuple[str, ...] = ()
    persist_options: dict[str, LiteralValue] = field(default_factory=dict)
    hooks: tuple[Hook, ...] = ()
    auth: AuthBlock | None = None
    db: DbBlock | None = None
    api_routes: tuple[Route, ...] = ()
    expanded_routes: tuple[ApiRoute, ...] = ()
    contracts: tuple[HandlerContract, ...] = ()
    env_vars: tuple[EnvVar, ...] = ()
    deploy: dict[str, LiteralValue] = field(default_factory=dict)
    nav_routes: tuple[NavRoute, ...] = ()
    cron_jobs: tuple[CronJob, ...] = ()
    webhooks: tuple[WebhookRoute, ...] = ()
    queue_jobs: tuple[QueueJob, ...] = ()
    email_templates: tuple[EmailTemplate, ...] = ()
    ui_nodes: tuple[UINode, ...] = ()
    pages: tuple[str, ...] = ()
    public_pages: tuple[str, ...] = ()
    has_backend: bool = False

    def state_field(self, name: str) -> Field | None:
        for state_field in self.state:
            if state_field.name == name:
                return state_field
        return None

    def model(self, name: str) -> DbModel | None:
        return self.db.model(name) if self.db else None

    @property
    def models(self) -> tuple[DbModel, ...]:
        return self.db.models if self.db else ()


def _check_contracts(contracts: list[HandlerContract]) -> None:
    seen: set[str] = set()
    for contract in contracts:
        if contract.name in seen:
            raise AirContextError(f"Duplicate handler contract: '{contract.name}'")
        if contract.name in RESERVED_MUTATION_NAMES:
            raise AirContextError(
                f"Handler contract '{contract.name}' collides with a reserved mutation name"
            )
        seen.add(contract.name)


def _nav_page_name(target: str) -> str:
    """``@page:home`` / ``home`` / ``/home`` -> ``home``."""
    if target.startswith("@page:"):
        target = target.split(":", 1)[1]
    return target.strip("/")


def _public_pages(pages: list[str], nav_routes: list[NavRoute]) -> tuple[str, ...]:
    declared = {_nav_page_name(route.target) for route in nav_routes if route.condition is None}
    declared.update(CONVENTIONAL_PUBLIC_PAGES)
    return tuple(page for page in pages if page in declared and not is_auth_page(page))


def _merge_db(blocks: list[DbBlock]) -> DbBlock | None:
    if not blocks:
        return None
    models: list[DbModel] = []
    relations: list[DbRelation] = []
    indexes: list[DbIndex] = []
    for block in blocks:
        models.extend(block.models)
        relations.extend(block.relations)
        indexes.extend(block.indexes)
    return DbBlock(tuple(models), tuple(relations), tuple(indexes))


def extract_context(app: AirApp) -> Context:
    """Walk every block once and build the :class:`Context`.

    Raises:
        AirContextError: On duplicate or reserved handler-contract names.
    """
    state: list[Field] = []
    style: dict[str, LiteralValue] = {}
    persist: PersistBlock | None = None
    hooks: list[Hook] = []
    auth: AuthBlock | None = None
    db_blocks: list[DbBlock] = []
    routes: list[Route] = []
    contracts: list[HandlerContract] = []
    env_vars: list[EnvVar] = []
    deploy: dict[str, LiteralValue] = {}
    nav_routes: list[NavRoute] = []
    cron_jobs: list[CronJob] = []
    webhooks: list[WebhookRoute] = []
    queue_jobs: list[QueueJob] = []
    email_templates: list[EmailTemplate] = []
    ui_nodes: list[UINode] = []

    for block in app.blocks:
        match block:
            case StateBlock(fields=fields):
                state.extend(fields)
            case StyleBlock(properties=properties):
                style.update(properties)
            case UIBlock(children=children):
                ui_nodes.extend(children)
            case ApiBlock(routes=block_routes):
                routes.extend(block_routes)
            case AuthBlock():
                auth = block
            case NavBlock(routes=block_routes):
                nav_routes.extend(block_routes)
            case PersistBlock():
                persist = block
            case HookBlock(hooks=block_hooks):
                hooks.extend(block_hooks)
            case DbBlock():
                db_blocks.append(block)
            case CronBlock(jobs=jobs):
                cron_jobs.extend(jobs)
            case WebhookBlock(routes=block_routes):
                webhooks.extend(block_routes)
            case QueueBlock(jobs=jobs):
                queue_jobs.extend(jobs)
            case EmailBlock(templates=templates):
                email_templates.extend(templates)
            case EnvBlock(vars=block_vars):
                env_vars.extend(block_vars)
            case HandlerBlock(contracts=block_contracts):
                contracts.extend(block_contracts)
            case DeployBlock(properties=properties):
                deploy.update(properties)

    _check_contracts(contracts)
    db = _merge_db(db_blocks)
    pages = [node.name for node in walk(ui_nodes) if isinstance(node, Scoped) and node.scope == "page"]
    has_backend = bool(db or routes or env_vars or webhooks or contracts)

    context = Context(
        app_name=app.name,
        state=tuple(state),
        style=style,
        persist_method=persist.method if persist else "localStorage",
        persist_keys=persist.keys if persist else (),
        persist_options=dict(persist.options) if persist else {},
        hooks=tuple(hooks),
        auth=auth,
        db=db,
        api_routes=tuple(routes),
        expanded_routes=expand_routes(routes, contracts),
        contracts=tuple(contracts),
        env_vars=tuple(env_vars),
        deploy=deploy,
        nav_routes=tuple(nav_routes),
        cron_jobs=tuple(cron_jobs),
        webhooks=tuple(webhooks),
        queue_jobs=tuple(queue_jobs),
        email_templates=tuple(email_templates),
        ui_nodes=tuple(ui_nodes),
        pages=tuple(pages),
        public_pages=_public_pages(pages, nav_routes),
        has_backend=has_backend,
    )
    logger.info(
        "Extracted context for '%s': %d state fields, %d routes, %d models",
        app.name,
        len(context.state),
        len(context.expanded_routes),
        len(context.models),
    )
    return context
