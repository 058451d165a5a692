from dataclasses import dataclass, field

from airc.logging_config import get_logger
from airc.transpiler.context import Context
from airc.transpiler.output import OutputFile
from airc.transpiler.ui.api_client import generate_api_client
from airc.transpiler.ui.app import generate_app
from airc.transpiler.ui.styles import generate_index_css


logger = get_logger("ui")


@dataclass
class UIOutput:
    files: list[OutputFile]
    unresolved_mutations: list[str] = field(default_factory=list)


def generate_ui(context: Context) -> UIOutput:
    """React client files; they live under ``client/`` when a server is generated too."""
    root = "client/src" if context.has_backend else "src"
    app = generate_app(context)
    files = [
        OutputFile(f"{root}/App.jsx", app.content),
        OutputFile(f"{root}/index.css", generate_index_css(context)),
    ]
    if context.has_backend and context.expanded_routes:
        files.append(OutputFile(f"{root}/api.js", generate_api_client(context)))
    logger.info("Generated %d client files", len(files))
    return UIOutput(files, app.unresolved)


__all__ = ["UIOutput", "generate_ui"]
