"""
System prompt loading.

The prompt is plain text read from a local file. A missing or unreadable
file is not an error: the configured fallback prompt is used instead.
"""
import logging
from pathlib import Path
from typing import Optional

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


def read_system_prompt(path: str, fallback: str) -> str:
    """Read the prompt file, returning the fallback if it can't be read."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading %s, using fallback prompt: %s", path, e)
        return fallback


class PromptLoader:
    """
    Loads the system prompt for each request.
    
    With cache=True the file is read on first use only, and later
    edits are ignored until restart. A fallback is never cached.
    """
    
    def __init__(self, path: str, fallback: str, cache: bool = False):
        self.path = path
        self.fallback = fallback
        self.cache = cache
        self._cached: Optional[str] = None
    
    async def load(self) -> str:
        if self._cached is not None:
            return self._cached
        
        prompt = await run_in_threadpool(read_system_prompt, self.path, self.fallback)
        
        if self.cache and prompt is not self.fallback:
            self._cached = prompt
        return prompt
