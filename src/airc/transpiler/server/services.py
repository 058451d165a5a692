"""Server modules for the service blocks: auth, env, cron, queue, email and webhooks."""

from __future__ import annotations

from airc.transpiler.context import Context
from airc.transpiler.naming import capitalize, js_string
from airc.transpiler.output import join_lines
from airc.transpiler.server.types import ts_type


AUTH_HELPERS = """\
import crypto from 'crypto';
import type { Request, Response, NextFunction } from 'express';

const SECRET = process.env.JWT_SECRET || 'dev-secret';
const TOKEN_EXPIRY_SECONDS = 7 * 24 * 60 * 60;

function base64urlEncode(data: string): string {
  return Buffer.from(data).toString('base64url');
}

function base64urlDecode(str: string): string {
  return Buffer.from(str, 'base64url').toString('utf8');
}

/** Create an HMAC-SHA256 signed token in JWT format. */
export function createToken(payload: Record<string, unknown>): string {
  const header = base64urlEncode(JSON.stringify({ alg: 'HS256', typ: 'JWT' }));
  const iat = Math.floor(Date.now() / 1000);
  const body = base64urlEncode(JSON.stringify({ ...payload, iat, exp: iat + TOKEN_EXPIRY_SECONDS }));
  const signature = crypto.createHmac('sha256', SECRET).update(`${header}.${body}`).digest('base64url');
  return `${header}.${body}.${signature}`;
}

/** Verify signature and expiry; returns the payload or null. */
export function verifyToken(token: string): Record<string, unknown> | null {
  const parts = token.split('.');
  if (parts.length !== 3) return null;
  const [header, body, signature] = parts;
  const expected = crypto.createHmac('sha256', SECRET).update(`${header}.${body}`).digest('base64url');
  const sigBuf = Buffer.from(signature, 'utf8');
  const expBuf = Buffer.from(expected, 'utf8');
  if (sigBuf.length !== expBuf.length || !crypto.timingSafeEqual(sigBuf, expBuf)) return null;
  let payload: Record<string, unknown>;
  try {
    payload = JSON.parse(base64urlDecode(body));
  } catch {
    return null;
  }
  if (typeof payload.exp === 'number' && payload.exp < Math.floor(Date.now() / 1000)) return null;
  return payload;
}

/** Require a valid Bearer token. */
export function requireAuth(req: Request, res: Response, next: NextFunction) {
  const authHeader = req.headers.authorization;
  if (!authHeader?.startsWith('Bearer ')) {
    return res.status(401).json({ error: 'Unauthorized' });
  }
  const payload = verifyToken(authHeader.slice('Bearer '.length));
  if (!payload) {
    return res.status(401).json({ error: 'Invalid or expired token' });
  }
  (req as any).user = payload;
  next();
}
"""

WEBHOOK_HELPERS = """\
/** Verify an HMAC-SHA256 webhook signature. */
function verifySignature(rawBody: string, signature: string, secret: string): boolean {
  const expected = crypto.createHmac('sha256', secret).update(rawBody).digest('hex');
  const sig = Buffer.from(signature.replace('sha256=', ''));
  const exp = Buffer.from(expected);
  return sig.length === exp.length && crypto.timingSafeEqual(sig, exp);
}

// Processed event ids, to make redelivery idempotent
const processedWebhooks = new Set<string>();

export const webhookRouter = Router();
"""

QUEUE_DISPATCH = """\
/** Run a job in-process with linear backoff between retries. */
export async function dispatch(jobName: string, data: unknown): Promise<void> {
  const job = queueJobs[jobName];
  if (!job) throw new Error(`Unknown queue job: ${jobName}`);

  let lastError: Error | undefined;
  for (let attempt = 1; attempt <= job.retries; attempt++) {
    try {
      await job.handler(data);
      return;
    } catch (error) {
      lastError = error instanceof Error ? error : new Error(String(error));
      console.warn(`[Queue] Job ${jobName} attempt ${attempt}/${job.retries} failed:`, lastError.message);
      if (attempt < job.retries) await new Promise((r) => setTimeout(r, 1000 * attempt));
    }
  }
  throw lastError ?? new Error(`Job ${jobName} failed`);
}
"""


def generate_auth_module(context: Context) -> str:
    lines = [AUTH_HELPERS.rstrip("\n")]
    role = context.auth.role if context.auth else None
    if role is not None:
        role_type = " | ".join(f"'{value}'" for value in role) if isinstance(role, tuple) else "string"
        lines.extend(
            [
                "",
                f"export function requireRole(...roles: ({role_type})[]) {{",
                "  return (req: Request, res: Response, next: NextFunction) => {",
                "    const user = (req as any).user;",
                "    if (!user || !roles.includes(user.role)) {",
                "      return res.status(403).json({ error: 'Forbidden' });",
                "    }",
                "    next();",
                "  };",
                "}",
            ]
        )
    return join_lines(lines)


def generate_env_module(context: Context) -> str:
    lines = ["import 'dotenv/config';", "", "export const env = {"]
    if context.db is not None:
        lines.append("  DATABASE_URL: process.env.DATABASE_URL!,")
    for var in context.env_vars:
        if var.type in ("int", "float"):
            lines.append(f"  {var.name}: Number(process.env.{var.name}),")
        elif var.type == "bool":
            lines.append(f"  {var.name}: process.env.{var.name} === 'true',")
        else:
            lines.append(f"  {var.name}: process.env.{var.name}!,")
    lines.extend(["};", ""])
    required = [var.name for var in context.env_vars if var.required]
    if required:
        lines.extend(
            [
                f"const required = [{', '.join(js_string(name) for name in required)}];",
                "for (const key of required) {",
                "  if (!process.env[key]) {",
                "    throw new Error(`Missing required env var: ${key}`);",
                "  }",
                "}",
            ]
        )
    return join_lines(lines)


def env_file(context: Context) -> str:
    """``.env`` defaults; declared vars override the built-ins."""
    values: dict[str, str] = {}
    if context.db is not None:
        values["DATABASE_URL"] = '"file:./dev.db"'
    values["PORT"] = "3001"
    for var in context.env_vars:
        if var.default is not None:
            default = str(var.default).lower() if isinstance(var.default, bool) else str(var.default)
            values[var.name] = '"' + default.replace('"', '\\"') + '"'
        elif var.name not in values:
            values[var.name] = ""
    return join_lines([f"{key}={value}" for key, value in values.items()])


def generate_cron_module(context: Context) -> str:
    lines = [
        "// Schedules use cron syntax; wire them to node-cron or a platform scheduler",
        "",
        "interface CronJob {",
        "  name: string;",
        "  schedule: string;",
        "  handler: () => Promise<void>;",
        "}",
        "",
        "export const cronJobs: CronJob[] = [",
    ]
    for job in context.cron_jobs:
        lines.extend(
            [
                "  {",
                f"    name: {js_string(job.name)},",
                f"    schedule: {js_string(job.schedule)},",
                "    handler: async () => {",
                "      const start = Date.now();",
                f"      console.log('[Cron] Running {job.name} ({job.handler})');",
                f"      console.log('[Cron] Completed {job.name} in', Date.now() - start, 'ms');",
                "    },",
                "  },",
            ]
        )
    lines.extend(
        [
            "];",
            "",
            "export function startCronJobs(): void {",
            "  for (const job of cronJobs) {",
            "    console.log(`[Cron] Registered ${job.name} (${job.schedule})`);",
            "  }",
            "}",
        ]
    )
    return join_lines(lines)


def generate_queue_module(context: Context) -> str:
    lines = [
        "interface QueueJob<T = unknown> {",
        "  handler: (data: T) => Promise<void>;",
        "  retries: number;",
        "}",
        "",
    ]
    for job in context.queue_jobs:
        if job.params:
            lines.append(f"export interface {capitalize(job.name)}Data {{")
            lines.extend(f"  {param.name}: {ts_type(param.type)};" for param in job.params)
            lines.extend(["}", ""])
    lines.append("export const queueJobs: Record<string, QueueJob<any>> = {")
    for job in context.queue_jobs:
        data_type = f"{capitalize(job.name)}Data" if job.params else "unknown"
        lines.extend(
            [
                f"  {job.name}: {{",
                f"    handler: async (data: {data_type}) => {{",
                f"      console.log('[Queue] Processing {job.name} ({job.handler})', data);",
                "    },",
                "    retries: 3,",
                "  },",
            ]
        )
    lines.extend(["};", "", QUEUE_DISPATCH])
    return join_lines(lines)


def generate_email_module(context: Context) -> str:
    app_title = capitalize(context.app_name)
    lines = [
        "interface EmailTemplate {",
        "  subject: string;",
        "  html: (params: Record<string, unknown>) => string;",
        "  text: (params: Record<string, unknown>) => string;",
        "}",
        "",
        "const rows = (params: Record<string, unknown>) => Object.entries(params);",
        "",
        "export const emailTemplates: Record<string, EmailTemplate> = {",
    ]
    for template in context.email_templates:
        subject = js_string(template.subject)
        html_subject = template.subject.replace("`", "\\`").replace("${", "\\${")
        lines.extend(
            [
                f"  {template.name}: {{",
                f"    subject: {subject},",
                "    html: (params) => `<!DOCTYPE html>",
                '<html><body style="font-family: sans-serif; padding: 20px; max-width: 600px; margin: 0 auto;">',
                f"  <h2>{html_subject}</h2>",
                "  <p>${rows(params).map(([k, v]) => `<strong>${k}:</strong> ${v}`).join('<br>')}</p>",
                f'  <p style="color: #999; font-size: 12px;">Sent by {app_title}</p>',
                "</body></html>`,",
                f"    text: (params) => [{subject}, '', ...rows(params).map(([k, v]) => `${{k}}: ${{v}}`)].join('\\n'),",
                "  },",
            ]
        )
    lines.extend(
        [
            "};",
            "",
            "export async function sendEmail(templateName: string, to: string, params: Record<string, unknown>) {",
            "  const template = emailTemplates[templateName];",
            "  if (!template) throw new Error(`Unknown email template: ${templateName}`);",
            "  console.log(`[Email] ${template.subject} -> ${to}`);",
            "  return { to, subject: template.subject, html: template.html(params), text: template.text(params) };",
            "}",
        ]
    )
    return join_lines(lines)


def _webhook_service(path: str) -> str:
    segments = [segment for segment in path.split("/") if segment and not segment.startswith(":")]
    return segments[0] if segments else "webhook"


def generate_webhooks_module(context: Context) -> str:
    lines = ["import crypto from 'crypto';", "import { Router } from 'express';", "", WEBHOOK_HELPERS]
    for route in context.webhooks:
        service = _webhook_service(route.path)
        secret = "WEBHOOK_SECRET_" + service.upper().replace("-", "_")
        lines.extend(
            [
                f"webhookRouter.{route.method.lower()}('{route.path}', async (req, res) => {{",
                "  try {",
                "    const eventId = (req.headers['x-webhook-id'] as string) || (req.headers['x-request-id'] as string) || '';",
                "    if (eventId && processedWebhooks.has(eventId)) {",
                "      return res.status(200).json({ received: true, status: 'already_processed' });",
                "    }",
                f"    const secret = process.env.{secret} || '';",
                "    if (secret) {",
                "      const signature = (req.headers['x-signature-256'] as string) || (req.headers['x-hub-signature-256'] as string) || '';",
                "      if (!verifySignature(JSON.stringify(req.body), signature, secret)) {",
                "        return res.status(401).json({ error: 'Invalid signature' });",
                "      }",
                "    }",
                f"    console.log('[Webhook] {service} -> {route.handler}');",
                "    if (eventId) processedWebhooks.add(eventId);",
                "    res.status(200).json({ received: true, status: 'processed' });",
                "  } catch (error) {",
                f"    console.error('[Webhook] Error processing {service} event:', error);",
                "    res.status(500).json({ error: 'Webhook processing failed' });",
                "  }",
                "});",
                "",
            ]
        )
    return join_lines(lines)
