"""Turn a parsed AIR document into a deterministic set of generated files."""

import hashlib
import json
from dataclasses import dataclass, field

from airc.language.ast import AirApp, to_data
from airc.language.errors import AirStrictModeError
from airc.logging_config import get_logger
from airc.transpiler.context import Context, extract_context
from airc.transpiler.mutations import collect_mutations
from airc.transpiler.output import OutputFile
from airc.transpiler.relations import resolve_relations, seed_order
from airc.transpiler.server import generate_server
from airc.transpiler.ui import generate_ui
from airc.version import __version__


logger = get_logger("transpile")

MANIFEST_PATH = "_airc_manifest.json"
PROVENANCE_SUFFIXES = (".js", ".jsx", ".ts", ".tsx")
HASH_LENGTH = 16

UNUSED_CONTRACT = "AIR-W009"
UNBREAKABLE_CYCLE = "AIR-W010"
UNRESOLVED_MUTATION = "AIR-E009"
NON_EXECUTABLE_CONTRACT = "AIR-E010"


@dataclass(frozen=True)
class TranspileOptions:
    strict_handlers: bool = False
    # only used for the compression ratio
    source_lines: int = 0


@dataclass(frozen=True)
class TranspileStats:
    input_lines: int
    output_lines: int
    compression_ratio: float
    components: int
    pages: int
    mutations: int
    files: int


@dataclass
class TranspileResult:
    files: list[OutputFile]
    stats: TranspileStats
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    unresolved_mutations: list[str] = field(default_factory=list)

    def file(self, path: str) -> OutputFile | None:
        return next((f for f in self.files if f.path == path), None)


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def with_provenance(file: OutputFile, app_name: str) -> OutputFile:
    if not file.path.endswith(PROVENANCE_SUFFIXES):
        return file
    return OutputFile(file.path, f"// Generated by airc {__version__} from {app_name}.air\n{file.content}")


def build_manifest(app: AirApp, files: list[OutputFile]) -> OutputFile:
    manifest = {
        "generatedBy": "airc",
        "version": __version__,
        "sourceHash": _digest(json.dumps(to_data(app), sort_keys=True)),
        "files": [{"path": f.path, "hash": _digest(f.content), "lines": f.line_count} for f in files],
    }
    return OutputFile(MANIFEST_PATH, json.dumps(manifest, indent=2) + "\n")


def contract_diagnostics(context: Context, used: set[str]) -> tuple[list[str], list[str]]:
    """``(warnings, strict errors)`` for declared handler contracts."""
    warnings: list[str] = []
    errors: list[str] = []
    for route in context.expanded_routes:
        if route.contract is None:
            continue
        if route.contract not in used:
            warnings.append(f"{UNUSED_CONTRACT}: Handler contract '{route.contract}' is not referenced by any UI mutation")
        if not route.executable:
            errors.append(
                f"{NON_EXECUTABLE_CONTRACT}: Handler contract '{route.contract}' has no executable ~db.Model.op target"
            )
    return warnings, errors


def transpile(app: AirApp, options: TranspileOptions | None = None) -> TranspileResult:
    """Generate every output file for ``app``.

    Repeated calls with the same document and options return byte-identical
    files. In strict-handler mode a contract without an executable target or
    a UI mutation without a backing route raises :class:`AirStrictModeError`;
    otherwise they degrade to scaffolds and stubs, are reported in
    ``warnings`` under their error codes, and ``errors`` stays empty.
    Unresolved mutation names are also listed in ``unresolved_mutations``.
    """
    options = options or TranspileOptions()
    context = extract_context(app)
    graph = resolve_relations(context.db)
    mutations = collect_mutations(context.ui_nodes)

    warnings, contract_errors = contract_diagnostics(context, set(mutations))
    if options.strict_handlers and contract_errors:
        raise AirStrictModeError(NON_EXECUTABLE_CONTRACT, contract_errors[0].split(": ", 1)[1])
    warnings.extend(contract_errors)

    if context.db is not None:
        order = seed_order([model.name for model in context.db.models], graph)
        if order.unresolved:
            warnings.append(
                f"{UNBREAKABLE_CYCLE}: Relation cycle without an optional edge among {', '.join(order.unresolved)}; "
                "seed order may violate foreign keys"
            )

    ui = generate_ui(context)
    for name in ui.unresolved_mutations:
        message = f"Mutation '!{name}' does not match any API route"
        if options.strict_handlers:
            raise AirStrictModeError(UNRESOLVED_MUTATION, message)
        warnings.append(f"{UNRESOLVED_MUTATION}: {message}")

    generated = [*ui.files, *generate_server(context, graph)]
    files = sorted((with_provenance(f, context.app_name) for f in generated), key=lambda f: f.path)
    files.append(build_manifest(app, files))
    files.sort(key=lambda f: f.path)

    output_lines = sum(f.line_count for f in files)
    stats = TranspileStats(
        input_lines=options.source_lines,
        output_lines=output_lines,
        compression_ratio=round(output_lines / options.source_lines, 1) if options.source_lines > 0 else 0.0,
        components=len(context.pages) or 1,
        pages=len(context.pages),
        mutations=len(mutations),
        files=len(files),
    )
    logger.info(
        "Transpiled %s: %d files, %d lines, %d warnings", context.app_name, len(files), output_lines, len(warnings)
    )
    return TranspileResult(files, stats, warnings, unresolved_mutations=list(ui.unresolved_mutations))


__all__ = ["TranspileOptions", "TranspileResult", "TranspileStats", "transpile"]
