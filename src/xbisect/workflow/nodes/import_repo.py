"""ImportRepo node - clone a project and add it to the registry."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from xbisect.core.config import State
from xbisect.core.errors import ValidationError
from xbisect.core.log import logger
from xbisect.core.request import is_identifier
from xbisect.git.clone import clone_repository
from xbisect.tools.registry import ProjectRegistry


@dataclass
class ImportRepo(BaseNode[State, None, int]):
    """Clone runtime.import_.url as runtime.import_.name."""

    async def run(self, ctx: GraphRunContext[State]) -> End[int]:
        config = ctx.state.config
        import_state = ctx.state.runtime.import_
        name = import_state.name.strip().lower()

        if not import_state.url.strip():
            raise ValidationError("No git URL given")
        if not is_identifier(name):
            raise ValidationError(
                f"Invalid project name {import_state.name!r}. Only "
                f"alphanumeric and underscore/dash allowed."
            )

        registry = ProjectRegistry.load(config.registry_file)
        if registry.has(name):
            raise ValidationError(f"Project '{name}' already exists")

        local_path = clone_repository(
            import_state.url,
            config.repos_dir / name,
            commands=config.git,
        )
        registry.add(name, local_path, import_state.url)
        registry.save()

        import_state.name = name
        import_state.local_path = local_path
        import_state.status = "imported"
        logger.info(
            "Imported {name} into {path}", name=name, path=str(local_path)
        )
        return End(0)
