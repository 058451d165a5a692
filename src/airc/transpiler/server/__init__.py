from airc.logging_config import get_logger
from airc.transpiler.context import Context
from airc.transpiler.output import OutputFile
from airc.transpiler.relations import RelationGraph
from airc.transpiler.seed import generate_seed_file
from airc.transpiler.server.entry import generate_middleware, generate_prisma_client, generate_server_entry
from airc.transpiler.server.router import generate_api_files, needs_auth_module
from airc.transpiler.server.schema import generate_prisma_schema
from airc.transpiler.server.services import (
    env_file,
    generate_auth_module,
    generate_cron_module,
    generate_email_module,
    generate_env_module,
    generate_queue_module,
    generate_webhooks_module,
)
from airc.transpiler.server.types import generate_types_file, generate_validation_file


logger = get_logger("server")


def generate_server(context: Context, graph: RelationGraph) -> list[OutputFile]:
    """Every ``server/`` file for an app with a backend, unsorted."""
    if not context.has_backend:
        return []
    files = [
        OutputFile("server/server.ts", generate_server_entry(context)),
        OutputFile("server/middleware.ts", generate_middleware()),
        OutputFile("server/types.ts", generate_types_file(context)),
        OutputFile("server/validation.ts", generate_validation_file()),
        OutputFile("server/.env", env_file(context)),
    ]
    if context.expanded_routes:
        files.extend(generate_api_files(context, graph))
    if context.db is not None:
        files.append(OutputFile("server/prisma/schema.prisma", generate_prisma_schema(context.db, graph)))
        files.append(OutputFile("server/prisma.ts", generate_prisma_client()))
        files.append(OutputFile("server/seed.ts", generate_seed_file(context, graph)))
    if needs_auth_module(context):
        files.append(OutputFile("server/auth.ts", generate_auth_module(context)))
    if context.env_vars:
        files.append(OutputFile("server/env.ts", generate_env_module(context)))
    if context.cron_jobs:
        files.append(OutputFile("server/cron.ts", generate_cron_module(context)))
    if context.queue_jobs:
        files.append(OutputFile("server/queue.ts", generate_queue_module(context)))
    if context.email_templates:
        files.append(OutputFile("server/templates.ts", generate_email_module(context)))
    if context.webhooks:
        files.append(OutputFile("server/webhooks.ts", generate_webhooks_module(context)))
    logger.info("Generated %d server files", len(files))
    return files


__all__ = ["generate_server"]
