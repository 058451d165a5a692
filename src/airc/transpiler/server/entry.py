"""``server.ts``, ``middleware.ts`` and ``prisma.ts``."""

from __future__ import annotations

from airc.transpiler.context import Context
from airc.transpiler.output import join_lines


MIDDLEWARE = """\
import type { Request, Response, NextFunction } from 'express';

/** Log method, path, status and duration of every request. */
export function requestLogger(req: Request, res: Response, next: NextFunction) {
  const start = Date.now();
  res.on('finish', () => {
    console.log(`${req.method} ${req.path} ${res.statusCode} ${Date.now() - start}ms`);
  });
  next();
}

/** Status-aware JSON errors: 400 for validation, 500 otherwise. */
export function errorHandler(err: Error & { status?: number }, req: Request, res: Response, _next: NextFunction) {
  console.error('Unhandled error:', err.message);
  const status = err.status ?? 500;
  const details = process.env.NODE_ENV !== 'production' ? err.message : undefined;
  res.status(status).json({ error: status === 400 ? 'Validation error' : 'Internal server error', ...(details && { details }) });
}
"""

PRISMA_CLIENT = """\
import { PrismaClient } from '@prisma/client';

export const prisma = new PrismaClient();
"""


def generate_server_entry(context: Context) -> str:
    has_api = bool(context.expanded_routes)
    lines = [
        "import express from 'express';",
        "import cors from 'cors';",
        "import 'dotenv/config';",
        "import { requestLogger, errorHandler } from './middleware.js';",
    ]
    if has_api:
        lines.append("import { apiRouter } from './api.js';")
    if context.webhooks:
        lines.append("import { webhookRouter } from './webhooks.js';")
    if context.cron_jobs:
        lines.append("import { startCronJobs } from './cron.js';")
    lines.extend(
        [
            "",
            "const app = express();",
            "app.use(cors({ exposedHeaders: ['X-Total-Count'] }));",
            "app.use(express.json());",
            "app.use(requestLogger);",
            "",
        ]
    )
    if has_api:
        lines.append("app.use('/api', apiRouter);")
    if context.webhooks:
        lines.append("app.use('/webhooks', webhookRouter);")
    lines.extend(
        [
            "app.use(errorHandler);",
            "",
            "const PORT = process.env.PORT || 3001;",
            "app.listen(PORT, () => {",
            "  console.log(`Server running on port ${PORT}`);",
        ]
    )
    if context.cron_jobs:
        lines.append("  startCronJobs();")
    lines.append("});")
    return join_lines(lines)


def generate_middleware() -> str:
    return MIDDLEWARE


def generate_prisma_client() -> str:
    return PRISMA_CLIENT
