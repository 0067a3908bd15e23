"""Clean node - delete every staged workspace."""

from __future__ import annotations

import shutil
from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from xbisect.core.config import State
from xbisect.core.log import logger


@dataclass
class Clean(BaseNode[State, None, int]):
    """Remove the cache directory."""

    async def run(self, ctx: GraphRunContext[State]) -> End[int]:
        cache_dir = ctx.state.config.cache_dir
        if not cache_dir.exists():
            logger.info(
                "Cache directory does not exist: {path}", path=str(cache_dir)
            )
            return End(0)

        logger.info("Removing cache directory: {path}", path=str(cache_dir))
        shutil.rmtree(cache_dir)
        ctx.state.runtime.clean.removed = True
        return End(0)
